import pytest

from app.core.observability import normalize_endpoint


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/", "/"),
        ("/shorten", "/shorten"),
        ("/metrics", "/metrics"),
        ("/api/health", "/api/health"),
        ("/api/urls", "/api/urls"),
        ("/api/urls/cleanup", "/api/urls/cleanup"),
        ("/api/urls/abc12", "/api/urls/{short_code}"),
        ("/api/urls/abc12/status", "/api/urls/{short_code}/status"),
        ("/api/stats/abc12", "/api/stats/{short_code}"),
        ("/api/whatever", "/api/{unknown}"),
        ("/abc12", "/{short_code}"),
    ],
)
def test_normalize_endpoint(path, expected):
    assert normalize_endpoint(path) == expected
