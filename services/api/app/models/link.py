"""Link SQLAlchemy model."""

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

DEFAULT_VALIDITY_MINUTES = 30
MIN_VALIDITY_MINUTES = 1
MAX_VALIDITY_MINUTES = 525600  # one year
MAX_URL_LENGTH = 2048


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Link(Base):
    """Link model for shortened URLs."""

    __tablename__ = "links"
    __table_args__ = (
        CheckConstraint("clicks >= 0", name="clicks_non_negative"),
        CheckConstraint(
            f"validity_minutes BETWEEN {MIN_VALIDITY_MINUTES} AND {MAX_VALIDITY_MINUTES}",
            name="validity_range",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    short_code: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="Short code for the URL (generated or custom)",
    )
    original_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        index=True,
        comment="The sanitized URL to redirect to",
    )
    validity_minutes: Mapped[int] = mapped_column(
        default=DEFAULT_VALIDITY_MINUTES,
        nullable=False,
        comment="Validity period in minutes",
    )
    expires_at: Mapped[datetime] = mapped_column(
        nullable=False,
        index=True,
        comment="created_at + validity_minutes",
    )
    clicks: Mapped[int] = mapped_column(
        default=0,
        nullable=False,
        comment="Successful redirect count",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Inactive links never redirect",
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow,
        index=True,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
    last_accessed_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
        comment="Time of the last successful redirect",
    )

    def __repr__(self) -> str:
        return f"<Link {self.short_code} -> {self.original_url[:50]}>"

    @classmethod
    def create(
        cls,
        short_code: str,
        original_url: str,
        validity_minutes: int = DEFAULT_VALIDITY_MINUTES,
    ) -> "Link":
        """Build a new link whose expiry is derived from its creation time."""
        created_at = utcnow()
        return cls(
            short_code=short_code,
            original_url=original_url,
            validity_minutes=validity_minutes,
            created_at=created_at,
            updated_at=created_at,
            expires_at=created_at + timedelta(minutes=validity_minutes),
            clicks=0,
            is_active=True,
        )

    @property
    def is_expired(self) -> bool:
        """Check if the link has expired."""
        return utcnow() > self.expires_at

    @property
    def is_valid_for_redirect(self) -> bool:
        return self.is_active and not self.is_expired

    @property
    def time_remaining(self) -> timedelta:
        """Time left before expiry, never negative."""
        return max(timedelta(0), self.expires_at - utcnow())
