"""Short code generation."""

import random
import re
import secrets
import string

import structlog

logger = structlog.get_logger()

# Characters for random short code generation (base62)
SHORT_CODE_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits
SHORT_CODE_LENGTH = 5
MIN_SHORT_CODE_LENGTH = 3
MAX_SHORT_CODE_LENGTH = 20

# Custom codes may also use hyphens and underscores
SHORT_CODE_PATTERN = r"^[A-Za-z0-9_-]+$"
_short_code_re = re.compile(SHORT_CODE_PATTERN)

# Single-segment paths served by fixed routes; a code here would never redirect
RESERVED_SHORT_CODES = frozenset({"metrics", "docs", "redoc"})


def is_valid_short_code(code: object) -> bool:
    """Check the short code format: 3-20 letters, digits, hyphens or underscores."""
    if not isinstance(code, str):
        return False
    return (
        MIN_SHORT_CODE_LENGTH <= len(code) <= MAX_SHORT_CODE_LENGTH
        and _short_code_re.match(code) is not None
    )


def is_reserved_short_code(code: str) -> bool:
    return code in RESERVED_SHORT_CODES


def _check_length(length: int) -> None:
    if not MIN_SHORT_CODE_LENGTH <= length <= MAX_SHORT_CODE_LENGTH:
        raise ValueError(
            f"Short code length must be between {MIN_SHORT_CODE_LENGTH} "
            f"and {MAX_SHORT_CODE_LENGTH}"
        )


def generate_fallback_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Generate a short code by plain random sampling of the base62 alphabet."""
    _check_length(length)
    return "".join(random.choices(SHORT_CODE_CHARS, k=length))


def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Generate a random short code using base62 characters.

    Uses the OS random source and falls back to plain random sampling when
    it is unavailable. The code is not checked for uniqueness.
    """
    _check_length(length)
    try:
        return "".join(secrets.choice(SHORT_CODE_CHARS) for _ in range(length))
    except (NotImplementedError, OSError) as e:
        logger.warning("Secure random source unavailable, using fallback", error=str(e))
        return generate_fallback_short_code(length)
