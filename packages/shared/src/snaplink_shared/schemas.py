"""Shared Pydantic schemas for the remote logging client."""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

Stack = Literal["backend", "frontend"]
Level = Literal["debug", "info", "warn", "error", "fatal"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LogPayload(BaseModel):
    """JSON body posted to the log collection endpoint."""

    stack: Stack = Field(description="Which side of the system emitted the log")
    level: Level = Field(description="Severity level")
    package: str = Field(description="Component within the stack that logged")
    message: str = Field(description="Log message")

    model_config = {"json_schema_extra": {"example": {
        "stack": "backend",
        "level": "info",
        "package": "service",
        "message": "Short URL created for https://example.com",
    }}}


class LogEntry(LogPayload):
    """A payload as kept in the client's in-memory ring buffer."""

    logged_at: datetime = Field(
        default_factory=_utcnow,
        description="Timestamp when the entry was recorded",
    )


class LogResult(BaseModel):
    """Outcome of a single log call."""

    ok: bool
    status_code: int | None = None
    data: Any = None
    error: str | None = None
