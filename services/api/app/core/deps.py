"""Dependency injection utilities for FastAPI routes."""

from typing import Annotated

from fastapi import Depends, Request
from snaplink_shared import BoundLogClient, LogClient


def get_log_client(request: Request) -> LogClient:
    """Get the application's remote logging client."""
    return request.app.state.log_client


def get_service_log(
    client: Annotated[LogClient, Depends(get_log_client)],
) -> BoundLogClient:
    """Remote logger bound to the backend service package."""
    return client.bind("backend", "service")


def build_short_url(request: Request, short_code: str) -> str:
    """Absolute short URL based on the scheme and host of the request."""
    return f"{str(request.base_url).rstrip('/')}/{short_code}"


# Type aliases for dependency injection
ServiceLog = Annotated[BoundLogClient, Depends(get_service_log)]
