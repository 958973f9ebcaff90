"""Redirect endpoint for short links."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Path, Request, status
from fastapi.responses import RedirectResponse

from app.core.database import AsyncSessionDep
from app.core.deps import ServiceLog
from app.core.exceptions import ExpiredError, NotFoundError
from app.core.observability import record_redirect
from app.core.rate_limit import RATE_LIMIT_REDIRECT, limiter
from app.services import link as link_service
from app.services.codes import SHORT_CODE_PATTERN

logger = structlog.get_logger()

router = APIRouter(tags=["redirect"])


@router.get(
    "/{short_code}",
    response_class=RedirectResponse,
    status_code=status.HTTP_301_MOVED_PERMANENTLY,
    responses={
        status.HTTP_404_NOT_FOUND: {"description": "Unknown or inactive short code"},
        status.HTTP_410_GONE: {"description": "Short code has expired"},
    },
)
@limiter.limit(RATE_LIMIT_REDIRECT)
async def redirect_to_original(
    request: Request,
    short_code: Annotated[str, Path(pattern=SHORT_CODE_PATTERN)],
    session: AsyncSessionDep,
    log: ServiceLog,
) -> RedirectResponse:
    """Redirect a short code to its original URL and count the visit."""
    try:
        original_url = await link_service.resolve_short_code(session, short_code, log=log)
    except NotFoundError:
        logger.info("Redirect failed - link not found", short_code=short_code)
        record_redirect(status.HTTP_404_NOT_FOUND)
        raise
    except ExpiredError:
        logger.info("Redirect blocked - link expired", short_code=short_code)
        record_redirect(status.HTTP_410_GONE)
        raise

    await session.commit()

    logger.info("Redirect", short_code=short_code)
    record_redirect(status.HTTP_301_MOVED_PERMANENTLY)

    return RedirectResponse(
        url=original_url,
        status_code=status.HTTP_301_MOVED_PERMANENTLY,
    )
