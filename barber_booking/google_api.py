# barber_booking/google_api.py
"""
Google Sheets / Calendar access for the booking service.

Handles:
- service-account credentials from the environment
- building API clients with a bounded socket timeout
- translating transport and API failures into booking errors
"""

import json
import logging
from typing import List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from barber_booking.config import Settings
from barber_booking.errors import NotificationFailure, StoreUnreachable

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/calendar.events",
]
TOKEN_URI = "https://oauth2.googleapis.com/token"

# Everything the google client stack raises for network, auth or API trouble
GOOGLE_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError, ValueError)


def load_credentials(settings: Settings):
    """
    Build service-account credentials.

    GOOGLE_CREDENTIALS (the whole key file as JSON) wins; otherwise
    GOOGLE_CLIENT_EMAIL + GOOGLE_PRIVATE_KEY are used, with literal "\\n"
    sequences in the key expanded.

    Raises:
        StoreUnreachable: if nothing usable is configured
    """
    info = None
    if settings.google_credentials:
        try:
            info = json.loads(settings.google_credentials)
        except ValueError:
            logger.error("GOOGLE_CREDENTIALS is not valid JSON")
    if info is None and settings.google_client_email and settings.google_private_key:
        info = {
            "client_email": settings.google_client_email,
            "private_key": settings.google_private_key.replace("\\n", "\n"),
        }
    if not info:
        raise StoreUnreachable("Google credentials are not configured")

    info.setdefault("token_uri", TOKEN_URI)
    try:
        return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    except (ValueError, KeyError) as e:
        logger.error(f"Invalid Google service-account credentials: {e}")
        raise StoreUnreachable("Google credentials are invalid") from e


def build_service(settings: Settings, name: str, version: str):
    """Build an API client; a fresh one per call since httplib2 is not thread-safe."""
    credentials = load_credentials(settings)
    http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=settings.store_timeout_seconds))
    return build(name, version, http=http, cache_discovery=False)


class SheetsClient:
    """Thin wrapper over spreadsheets.values for one spreadsheet."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.spreadsheet_id = settings.spreadsheet_id

    def _values(self):
        if not self.spreadsheet_id:
            raise StoreUnreachable("SPREADSHEET_ID is not configured")
        return build_service(self.settings, "sheets", "v4").spreadsheets().values()

    def get_values(self, range_name: str) -> List[List[str]]:
        try:
            response = self._values().get(
                spreadsheetId=self.spreadsheet_id,
                range=range_name,
            ).execute()
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to read {range_name}: {e}")
            raise StoreUnreachable("Could not read the booking sheet") from e
        return [[str(cell) for cell in row] for row in response.get("values", [])]

    def update_values(self, range_name: str, values: List[List[str]]) -> None:
        try:
            self._values().update(
                spreadsheetId=self.spreadsheet_id,
                range=range_name,
                valueInputOption="RAW",
                body={"values": values},
            ).execute()
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to update {range_name}: {e}")
            raise StoreUnreachable("Could not update the booking sheet") from e

    def append_values(self, range_name: str, values: List[List[str]]) -> None:
        try:
            self._values().append(
                spreadsheetId=self.spreadsheet_id,
                range=range_name,
                valueInputOption="USER_ENTERED",
                insertDataOption="INSERT_ROWS",
                body={"values": values},
            ).execute()
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to append to {range_name}: {e}")
            raise StoreUnreachable("Could not append to the booking sheet") from e


class CalendarClient:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.calendar_id = settings.calendar_id

    @property
    def configured(self) -> bool:
        return bool(self.calendar_id)

    def insert_event(self, event: dict) -> Optional[str]:
        """
        Insert an event and return its html link.

        Raises:
            NotificationFailure: on any credential, transport or API error
        """
        try:
            service = build_service(self.settings, "calendar", "v3")
            created = service.events().insert(
                calendarId=self.calendar_id,
                body=event,
                sendUpdates="none",
            ).execute()
        except StoreUnreachable as e:
            raise NotificationFailure(e.message) from e
        except GOOGLE_ERRORS as e:
            logger.error(f"Failed to create calendar event: {e}")
            raise NotificationFailure("Could not create the calendar event") from e

        logger.info(f"Created Google Calendar event: {created.get('id')}")
        return created.get("htmlLink")
