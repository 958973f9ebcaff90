"""Link service: shortening, redirect resolution and admin queries."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import structlog
from snaplink_shared import BoundLogClient
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import (
    ConflictError,
    ExpiredError,
    GenerationExhaustedError,
    NotFoundError,
    ValidationError,
)
from app.core.redis import cache_link, get_cached_link, invalidate_link_cache
from app.models.link import Link, utcnow
from app.schemas.link import ShortenRequest, as_utc
from app.services.codes import generate_short_code, is_reserved_short_code

settings = get_settings()
logger = structlog.get_logger()

# API sort names mapped to columns
SORT_FIELDS = {
    "createdAt": Link.created_at,
    "expiry": Link.expires_at,
    "clicks": Link.clicks,
    "shortCode": Link.short_code,
    "originalUrl": Link.original_url,
    "lastAccessed": Link.last_accessed_at,
    "validity": Link.validity_minutes,
}
SORT_ORDERS = ("asc", "desc")
MAX_PAGE_SIZE = 100


@dataclass
class ShortenResult:
    """A shortened link and whether it already existed."""

    link: Link
    existing: bool = False


async def _remote_log(log: BoundLogClient | None, level: str, message: str) -> None:
    if log is not None:
        await log.log(level, message, suppress_errors=True)


async def is_short_code_available(session: AsyncSession, short_code: str) -> bool:
    """Check if a short code is available (held by no link in any state)."""
    result = await session.execute(
        select(Link.id).where(Link.short_code == short_code)
    )
    return result.scalar_one_or_none() is None


async def get_link_by_short_code(
    session: AsyncSession,
    short_code: str,
    active_only: bool = False,
) -> Link | None:
    """Get a link by its short code.

    With active_only, inactive links are treated as if they did not exist.
    """
    query = select(Link).where(Link.short_code == short_code)
    if active_only:
        query = query.where(Link.is_active == True)  # noqa: E712
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def get_live_link_by_original_url(
    session: AsyncSession,
    original_url: str,
) -> Link | None:
    """Get the newest active, unexpired link for an original URL."""
    result = await session.execute(
        select(Link)
        .where(
            Link.original_url == original_url,
            Link.is_active == True,  # noqa: E712
            Link.expires_at > utcnow(),
        )
        .order_by(Link.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def record_click(session: AsyncSession, link_id: UUID) -> bool:
    """Atomically count a visit on an active link.

    Returns False when no active link with that id exists anymore.
    """
    now = utcnow()
    result = await session.execute(
        update(Link)
        .where(Link.id == link_id, Link.is_active == True)  # noqa: E712
        .values(clicks=Link.clicks + 1, last_accessed_at=now, updated_at=now)
    )
    return result.rowcount > 0


async def create_with_custom_code(
    session: AsyncSession,
    short_code: str,
    original_url: str,
    validity_minutes: int,
) -> Link:
    """Create a link with a caller-chosen short code.

    A code held by a live link is a conflict. A code held by an expired or
    inactive link is reclaimed: that link is deleted and the new one takes
    the code, so short codes stay unique in the store.
    """
    current = await get_link_by_short_code(session, short_code)
    reclaimed = False
    if current is not None:
        if current.is_valid_for_redirect:
            raise ConflictError(
                "Custom shortcode already exists and is active",
                shortCode=short_code,
            )
        await session.delete(current)
        await session.flush()
        reclaimed = True

    link = Link.create(short_code, original_url, validity_minutes)
    session.add(link)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Short code already exists", shortCode=short_code)

    if reclaimed:
        await invalidate_link_cache(short_code)
        logger.info("Reclaimed stale short code", short_code=short_code)
    return link


async def create_with_generated_code(
    session: AsyncSession,
    original_url: str,
    validity_minutes: int,
    length: int | None = None,
    max_attempts: int | None = None,
) -> Link:
    """Create a link under a freshly generated unique short code.

    Raises GenerationExhaustedError if every attempt collided.
    """
    length = length or settings.short_code_length
    max_attempts = max_attempts or settings.max_generation_attempts

    for attempt in range(1, max_attempts + 1):
        short_code = generate_short_code(length)
        if is_reserved_short_code(short_code) or not await is_short_code_available(
            session, short_code
        ):
            logger.debug("Short code collision", short_code=short_code, attempt=attempt)
            continue

        link = Link.create(short_code, original_url, validity_minutes)
        session.add(link)
        try:
            await session.flush()
        except IntegrityError:
            # Claimed by a concurrent request between the check and the insert
            await session.rollback()
            logger.warning("Short code taken on insert", short_code=short_code, attempt=attempt)
            continue
        return link

    raise GenerationExhaustedError(
        "Unable to generate unique short code. Please try again."
    )


async def shorten_url(
    session: AsyncSession,
    request: ShortenRequest,
    log: BoundLogClient | None = None,
) -> ShortenResult:
    """Create a short link for a validated request.

    An active, unexpired link for the same URL is returned as is.
    """
    existing = await get_live_link_by_original_url(session, request.url)
    if existing is not None:
        logger.info("Reusing existing link", short_code=existing.short_code)
        await _remote_log(log, "info", f"Reused {existing.short_code} for {request.url}")
        return ShortenResult(link=existing, existing=True)

    validity = request.validity or settings.default_validity_minutes
    try:
        if request.shortcode:
            link = await create_with_custom_code(session, request.shortcode, request.url, validity)
        else:
            link = await create_with_generated_code(session, request.url, validity)
    except GenerationExhaustedError:
        await _remote_log(log, "error", f"Short code generation exhausted for {request.url}")
        raise

    await _remote_log(log, "info", f"Created {link.short_code} for {link.original_url}")
    return ShortenResult(link=link)


async def resolve_short_code(
    session: AsyncSession,
    short_code: str,
    log: BoundLogClient | None = None,
) -> str:
    """Resolve a short code to its original URL and count the visit.

    Raises NotFoundError for unknown or inactive codes and ExpiredError for
    expired ones. Expired visits are not counted.
    """
    cached = await get_cached_link(short_code)
    if cached:
        link_id = UUID(cached["link_id"])
        original_url = cached["original_url"]
        expires_at = datetime.fromisoformat(cached["expires_at"])
    else:
        link = await get_link_by_short_code(session, short_code, active_only=True)
        if link is None:
            raise NotFoundError("Short URL not found", shortCode=short_code)
        link_id, original_url, expires_at = link.id, link.original_url, link.expires_at
        if not link.is_expired:
            await cache_link(
                short_code=short_code,
                link_data={
                    "link_id": str(link.id),
                    "original_url": link.original_url,
                    "expires_at": link.expires_at.isoformat(),
                },
            )

    if utcnow() > expires_at:
        await _remote_log(log, "warn", f"Expired short code requested: {short_code}")
        raise ExpiredError(
            "Short URL has expired",
            shortCode=short_code,
            expiredAt=as_utc(expires_at),
        )

    if not await record_click(session, link_id):
        # Deactivated or deleted after it was cached
        await invalidate_link_cache(short_code)
        raise NotFoundError("Short URL not found", shortCode=short_code)

    await _remote_log(log, "info", f"Redirected {short_code} -> {original_url}")
    return original_url


async def get_link_stats(session: AsyncSession, short_code: str) -> Link:
    """Get a link regardless of its active state."""
    link = await get_link_by_short_code(session, short_code)
    if link is None:
        raise NotFoundError("Short URL not found", shortCode=short_code)
    return link


async def list_links(
    session: AsyncSession,
    page: int = 1,
    page_size: int = 10,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
    include_expired: bool = False,
) -> tuple[list[Link], int]:
    """Get a page of links.

    Returns tuple of (links, total_count).
    """
    errors = []
    if page < 1:
        errors.append("page must be at least 1")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        errors.append(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    if sort_by not in SORT_FIELDS:
        errors.append(f"sortBy must be one of: {', '.join(SORT_FIELDS)}")
    if sort_order not in SORT_ORDERS:
        errors.append("sortOrder must be 'asc' or 'desc'")
    if errors:
        raise ValidationError("Invalid query parameters", details=errors)

    query = select(Link)
    count_query = select(func.count(Link.id))

    if not include_expired:
        now = utcnow()
        query = query.where(Link.expires_at > now)
        count_query = count_query.where(Link.expires_at > now)

    # Get total count
    total_result = await session.execute(count_query)
    total = total_result.scalar() or 0

    # Apply pagination and ordering
    column = SORT_FIELDS[sort_by]
    order = column.desc() if sort_order == "desc" else column.asc()
    offset = (page - 1) * page_size
    query = query.order_by(order, Link.id).offset(offset).limit(page_size)

    result = await session.execute(query)
    links = list(result.scalars().all())

    return links, total


async def delete_link(
    session: AsyncSession,
    short_code: str,
    log: BoundLogClient | None = None,
) -> Link:
    """Permanently delete a link and return it."""
    link = await get_link_by_short_code(session, short_code)
    if link is None:
        raise NotFoundError("Short URL not found", shortCode=short_code)

    await session.delete(link)
    await session.flush()

    # Invalidate cache so redirect returns 404
    await invalidate_link_cache(short_code)
    await _remote_log(log, "info", f"Deleted {short_code}")
    return link


async def set_link_status(
    session: AsyncSession,
    short_code: str,
    is_active: bool,
    log: BoundLogClient | None = None,
) -> Link:
    """Activate or deactivate a link."""
    if not isinstance(is_active, bool):
        raise ValidationError("isActive must be a boolean value")

    link = await get_link_by_short_code(session, short_code)
    if link is None:
        raise NotFoundError("Short URL not found", shortCode=short_code)

    link.is_active = is_active
    await session.flush()

    await invalidate_link_cache(short_code)
    state = "activated" if is_active else "deactivated"
    await _remote_log(log, "info", f"{short_code} {state}")
    return link


async def cleanup_expired_links(
    session: AsyncSession,
    log: BoundLogClient | None = None,
) -> int:
    """Delete every link whose expiry has passed.

    Returns the number of deleted links.
    """
    now = utcnow()
    result = await session.execute(select(Link.short_code).where(Link.expires_at < now))
    short_codes = list(result.scalars().all())
    if not short_codes:
        return 0

    await session.execute(delete(Link).where(Link.short_code.in_(short_codes)))
    await invalidate_link_cache(*short_codes)

    logger.info("Expired links cleaned up", count=len(short_codes))
    await _remote_log(log, "info", f"Cleaned up {len(short_codes)} expired URLs")
    return len(short_codes)
