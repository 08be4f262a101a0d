"""
Logging filters

Correlation id filter and helpers.

A caller (web handler, worker job, CLI command) opens a `request_context()` around
one unit of work; every log line emitted inside it, including the repository
events, then carries the same `request_id`. The id lives in a ContextVar so it
follows the work across `await` boundaries and never leaks between concurrent tasks.

Install the filters in dictConfig (builder.py does this):

    "filters": {"request_id": {"()": RequestIdFilter}, "redact": {"()": RedactFilter}},
    "handlers": {"console": {..., "filters": ["request_id", "redact"]}}
"""

import logging
import uuid
from contextlib import contextmanager
from logging import LogRecord
import contextvars

# None means "no request id set"
_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None):
    """
    Set the request id in the current context.

    Returns:
        token: contextvars.Token which can be passed to reset_request_id(token)
    """
    return _request_id_ctx.set(request_id)


def reset_request_id(token):
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


@contextmanager
def request_context(request_id: str | None = None):
    """
    Bind a request id for the duration of the block and restore the previous one afterwards.

    Args:
        request_id: id to bind; a fresh uuid4 hex string is generated when omitted.

    Yields:
        str: the bound request id.
    """
    rid = request_id or uuid.uuid4().hex
    token = set_request_id(rid)
    try:
        yield rid
    finally:
        reset_request_id(token)


class RequestIdFilter(logging.Filter):
    """
    Guarantees every LogRecord has a `request_id` attribute:
    an explicit `extra={"request_id": ...}` wins, then the contextvar, then "-".
    Never drops a record.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    """Masks record attributes whose name marks them as secrets (e.g. a DB password passed via extra)."""

    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "authorization",
                 "postgres_password", "database_url"}

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = "***REDACTED***"
        return True
