"""Pydantic schemas."""

from app.schemas.link import (
    CleanupResponse,
    DeletedLinkSummary,
    DeleteLinkResponse,
    LinkListResponse,
    LinkResponse,
    LinkStatusResponse,
    LinkStatusUpdate,
    PaginationInfo,
    ShortenRequest,
    ShortenResponse,
)

__all__ = [
    "CleanupResponse",
    "DeletedLinkSummary",
    "DeleteLinkResponse",
    "LinkListResponse",
    "LinkResponse",
    "LinkStatusResponse",
    "LinkStatusUpdate",
    "PaginationInfo",
    "ShortenRequest",
    "ShortenResponse",
]
