# barber_booking/logging_context.py
"""Request-ID logging context.

The HTTP middleware in ``main`` stores a correlation ID for each request;
``RequestIdFilter`` copies it onto every log record so the formatter can
print ``%(request_id)s``. Records emitted outside a request get ``-``.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set (or generate) the correlation ID for the current context."""
    value = request_id or uuid.uuid4().hex[:12]
    _request_id.set(value)
    return value


def get_request_id() -> str:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True
