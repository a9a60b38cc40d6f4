# barber_booking/db.py

from sqlmodel import SQLModel, create_engine

from barber_booking import models  # noqa: F401  (registers SlotLease on the metadata)


def make_engine(database_url: str):
    """Engine for the slot-lease database shared by every API instance."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}  # required for SQLite + FastAPI
    return create_engine(
        database_url,
        echo=False,          # set to True to see SQL
        connect_args=connect_args,
    )


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)
