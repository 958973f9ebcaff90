"""Snaplink Shared - Remote logging client used by Snaplink services."""

from snaplink_shared.logger import (
    BoundLogClient,
    LogClient,
    LogDeliveryError,
    LogValidationError,
)
from snaplink_shared.middleware import RemoteLogMiddleware
from snaplink_shared.schemas import LogEntry, LogPayload, LogResult

__all__ = [
    "BoundLogClient",
    "LogClient",
    "LogDeliveryError",
    "LogEntry",
    "LogPayload",
    "LogResult",
    "LogValidationError",
    "RemoteLogMiddleware",
]
