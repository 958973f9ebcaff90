"""Link statistics and admin endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Query, Request

from app.core.database import AsyncSessionDep
from app.core.deps import ServiceLog
from app.core.observability import record_link_operation
from app.core.rate_limit import RATE_LIMIT_API, limiter
from app.schemas.link import (
    CleanupResponse,
    DeletedLinkSummary,
    DeleteLinkResponse,
    LinkListResponse,
    LinkResponse,
    LinkStatusResponse,
    LinkStatusUpdate,
    PaginationInfo,
)
from app.services import link as link_service

logger = structlog.get_logger()

router = APIRouter(tags=["urls"])


@router.get("/stats/{short_code}", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_link_stats(
    request: Request,
    short_code: str,
    session: AsyncSessionDep,
) -> LinkResponse:
    """Get statistics for a short code, including inactive and expired ones."""
    link = await link_service.get_link_stats(session, short_code)
    return LinkResponse.from_link(link)


@router.get("/urls", response_model=LinkListResponse)
@limiter.limit(RATE_LIMIT_API)
async def list_links(
    request: Request,
    session: AsyncSessionDep,
    page: int = 1,
    limit: int = 10,
    sort_by: Annotated[str, Query(alias="sortBy")] = "createdAt",
    sort_order: Annotated[str, Query(alias="sortOrder")] = "desc",
    include_expired: Annotated[bool, Query(alias="includeExpired")] = False,
) -> LinkListResponse:
    """List links (paginated), newest first by default."""
    links, total = await link_service.list_links(
        session=session,
        page=page,
        page_size=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        include_expired=include_expired,
    )

    return LinkListResponse(
        urls=[LinkResponse.from_link(link) for link in links],
        pagination=PaginationInfo.build(total=total, page=page, page_size=limit),
    )


@router.post("/urls/cleanup", response_model=CleanupResponse)
@limiter.limit(RATE_LIMIT_API)
async def cleanup_expired_links(
    request: Request,
    session: AsyncSessionDep,
    log: ServiceLog,
) -> CleanupResponse:
    """Delete every expired link."""
    deleted = await link_service.cleanup_expired_links(session, log=log)
    await session.commit()

    record_link_operation("cleanup")
    return CleanupResponse(
        message=f"Cleaned up {deleted} expired URLs",
        deleted_count=deleted,
    )


@router.delete("/urls/{short_code}", response_model=DeleteLinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def delete_link(
    request: Request,
    short_code: str,
    session: AsyncSessionDep,
    log: ServiceLog,
) -> DeleteLinkResponse:
    """Permanently delete a link."""
    link = await link_service.delete_link(session, short_code, log=log)
    await session.commit()

    logger.info("Link deleted", link_id=str(link.id), short_code=short_code)
    record_link_operation("delete")
    return DeleteLinkResponse(
        message="Short URL deleted successfully",
        deleted_url=DeletedLinkSummary.from_link(link),
    )


@router.patch("/urls/{short_code}/status", response_model=LinkStatusResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_link_status(
    request: Request,
    short_code: str,
    status_data: LinkStatusUpdate,
    session: AsyncSessionDep,
    log: ServiceLog,
) -> LinkStatusResponse:
    """Activate or deactivate a link."""
    link = await link_service.set_link_status(
        session,
        short_code,
        status_data.is_active,
        log=log,
    )
    await session.commit()

    state = "activated" if link.is_active else "deactivated"
    logger.info("Link status updated", short_code=short_code, is_active=link.is_active)
    record_link_operation("status")
    return LinkStatusResponse(
        message=f"URL {state} successfully",
        url=LinkResponse.from_link(link),
    )
