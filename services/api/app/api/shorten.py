"""URL shortening endpoint."""

import structlog
from fastapi import APIRouter, Request, Response, status

from app.core.database import AsyncSessionDep
from app.core.deps import ServiceLog, build_short_url
from app.core.observability import record_link_operation
from app.core.rate_limit import RATE_LIMIT_API, limiter
from app.schemas.link import ShortenRequest, ShortenResponse, as_utc
from app.services import link as link_service

logger = structlog.get_logger()

router = APIRouter(tags=["shorten"])


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(RATE_LIMIT_API)
async def shorten(
    request: Request,
    response: Response,
    payload: ShortenRequest,
    session: AsyncSessionDep,
    log: ServiceLog,
) -> ShortenResponse:
    """Create a short link.

    If `shortcode` is provided, it will be used as the short code.
    Otherwise, a random short code will be generated. Submitting a URL that
    already has a live short link returns that link with status 200.
    """
    result = await link_service.shorten_url(session, payload, log=log)
    await session.commit()

    link = result.link
    body = ShortenResponse(
        short_link=build_short_url(request, link.short_code),
        expiry=as_utc(link.expires_at),
        short_code=link.short_code,
        original_url=link.original_url,
        validity=link.validity_minutes,
    )

    if result.existing:
        response.status_code = status.HTTP_200_OK
        body.existing = True
        body.message = "URL already shortened"
        record_link_operation("reuse")
        return body

    logger.info(
        "Link created",
        link_id=str(link.id),
        short_code=link.short_code,
        custom=payload.shortcode is not None,
    )
    record_link_operation("create")
    return body
