"""Link Pydantic schemas."""

import math
import re
from datetime import datetime, timedelta, timezone

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    StrictBool,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from app.models.link import MAX_URL_LENGTH, MAX_VALIDITY_MINUTES, MIN_VALIDITY_MINUTES, Link
from app.services.codes import is_reserved_short_code, is_valid_short_code

_scheme_re = re.compile(r"^https?://", re.IGNORECASE)
_http_url_adapter = TypeAdapter(HttpUrl)


def sanitize_url(url: str) -> str:
    """Trim whitespace and prepend http:// when no http(s) scheme is present."""
    url = url.strip()
    if not _scheme_re.match(url):
        url = f"http://{url}"
    return url


def is_valid_url(url: str) -> bool:
    """Check that a sanitized URL is an absolute http or https URL."""
    if len(url) > MAX_URL_LENGTH:
        return False
    try:
        _http_url_adapter.validate_python(url)
    except ValidationError:
        return False
    return True


def format_time_remaining(remaining: timedelta) -> str:
    """Format a remaining duration as e.g. '1d 2h 3m', '2h 5m' or '7m'."""
    if remaining <= timedelta(0):
        return "Expired"
    total_minutes = int(remaining.total_seconds() // 60)
    days, rest = divmod(total_minutes, 60 * 24)
    hours, minutes = divmod(rest, 60)
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to a stored naive timestamp."""
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(BaseModel):
    """Schema for shortening a URL."""

    url: str = Field(description="The URL to shorten; http:// is added if no scheme is given")
    validity: int | None = Field(
        default=None,
        ge=MIN_VALIDITY_MINUTES,
        le=MAX_VALIDITY_MINUTES,
        description="Validity in minutes",
    )
    shortcode: str | None = Field(default=None, description="Optional custom short code")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Sanitize the URL and make sure the result is usable."""
        if not v or not v.strip():
            raise ValueError("URL is required")
        url = sanitize_url(v)
        if not is_valid_url(url):
            raise ValueError("Please provide a valid URL")
        return url

    @field_validator("shortcode")
    @classmethod
    def validate_shortcode(cls, v: str | None) -> str | None:
        """Validate custom code format."""
        if v is None:
            return v
        if not is_valid_short_code(v):
            raise ValueError(
                "Custom shortcode must be 3-20 characters long and contain only "
                "letters, numbers, hyphens, and underscores"
            )
        if is_reserved_short_code(v):
            raise ValueError(f"Custom shortcode '{v}' is reserved")
        return v


class ShortenResponse(CamelModel):
    """Schema for a created (or reused) short link."""

    short_link: str
    expiry: datetime
    short_code: str
    original_url: str
    validity: int
    existing: bool | None = None
    message: str | None = None


class LinkResponse(CamelModel):
    """Schema for a link with its derived state."""

    short_code: str
    original_url: str
    clicks: int
    validity: int
    expiry: datetime
    is_expired: bool
    is_active: bool
    created_at: datetime
    last_accessed: datetime | None
    time_remaining: int = Field(description="Milliseconds until expiry, 0 once expired")
    time_remaining_text: str

    @classmethod
    def from_link(cls, link: Link) -> "LinkResponse":
        remaining = link.time_remaining
        return cls(
            short_code=link.short_code,
            original_url=link.original_url,
            clicks=link.clicks,
            validity=link.validity_minutes,
            expiry=as_utc(link.expires_at),
            is_expired=link.is_expired,
            is_active=link.is_active,
            created_at=as_utc(link.created_at),
            last_accessed=as_utc(link.last_accessed_at),
            time_remaining=int(remaining.total_seconds() * 1000),
            time_remaining_text=format_time_remaining(remaining),
        )


class PaginationInfo(CamelModel):
    """Page metadata for link listings."""

    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> "PaginationInfo":
        total_pages = math.ceil(total / page_size) if total > 0 else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            items_per_page=page_size,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class LinkListResponse(CamelModel):
    """Schema for paginated link list response."""

    urls: list[LinkResponse]
    pagination: PaginationInfo


class LinkStatusUpdate(CamelModel):
    """Schema for activating or deactivating a link."""

    is_active: StrictBool


class LinkStatusResponse(CamelModel):
    message: str
    url: LinkResponse


class DeletedLinkSummary(CamelModel):
    short_code: str
    original_url: str
    created_at: datetime
    clicks: int

    @classmethod
    def from_link(cls, link: Link) -> "DeletedLinkSummary":
        return cls(
            short_code=link.short_code,
            original_url=link.original_url,
            created_at=as_utc(link.created_at),
            clicks=link.clicks,
        )


class DeleteLinkResponse(CamelModel):
    message: str
    deleted_url: DeletedLinkSummary


class CleanupResponse(CamelModel):
    message: str
    deleted_count: int
