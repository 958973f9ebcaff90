from datetime import datetime, timezone

from app.core.exceptions import (
    ConflictError,
    ExpiredError,
    GenerationExhaustedError,
    NotFoundError,
    SnaplinkError,
    StoreError,
    ValidationError,
)


def test_status_codes():
    assert ValidationError("x").status_code == 400
    assert ConflictError("x").status_code == 409
    assert NotFoundError("x").status_code == 404
    assert ExpiredError("x").status_code == 410
    assert GenerationExhaustedError("x").status_code == 500
    assert StoreError("x").status_code == 500


def test_all_errors_share_a_base():
    for cls in (ValidationError, ConflictError, NotFoundError, ExpiredError,
                GenerationExhaustedError, StoreError):
        assert issubclass(cls, SnaplinkError)


def test_to_dict_skips_missing_and_formats_datetimes():
    expired_at = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    error = ExpiredError("Short URL has expired", shortCode="abc12", expiredAt=expired_at, hint=None)

    assert error.to_dict() == {
        "error": "Short URL has expired",
        "shortCode": "abc12",
        "expiredAt": "2026-01-01T12:00:00+00:00",
    }


def test_validation_error_details():
    assert ValidationError("Validation failed").to_dict() == {"error": "Validation failed"}

    error = ValidationError("Validation failed", details=["url: Invalid URL format"])
    assert error.details == ["url: Invalid URL format"]
    assert error.to_dict()["details"] == ["url: Invalid URL format"]
