"""HTTP logging client that ships log entries to a collection endpoint."""

from collections import deque
from typing import Any

import httpx

from snaplink_shared.schemas import LogEntry, LogPayload, LogResult

STACK_VALUES = frozenset({"backend", "frontend"})
LEVEL_VALUES = frozenset({"debug", "info", "warn", "error", "fatal"})

# Packages valid for either stack
SHARED_PACKAGES = frozenset({
    "component",
    "hook",
    "page",
    "state",
    "style",
    "auth",
    "config",
    "middleware",
    "utils",
})
BACKEND_PACKAGES = frozenset({
    "cache",
    "controller",
    "cron_job",
    "db",
    "domain",
    "handler",
    "repository",
    "route",
    "service",
})
FRONTEND_PACKAGES = frozenset({"api"})

DEFAULT_BUFFER_SIZE = 1000
DEFAULT_TIMEOUT = 5.0


class LogValidationError(ValueError):
    """Raised when stack, level or package are missing or not allowed."""


class LogDeliveryError(RuntimeError):
    """Raised when the collection endpoint rejects or cannot receive a log."""


def is_valid_package(stack: str, package: str) -> bool:
    """Check a package name against the allow-list for its stack."""
    if package in SHARED_PACKAGES:
        return True
    if stack == "backend":
        return package in BACKEND_PACKAGES
    if stack == "frontend":
        return package in FRONTEND_PACKAGES
    return False


def build_payload(stack: str, level: str, package: str, message: str) -> LogPayload:
    """Normalize and validate the log fields.

    Raises LogValidationError on missing or unknown values.
    """
    if not stack or not level or not package:
        raise LogValidationError("stack, level, and package are required")

    stack = str(stack).lower()
    level = str(level).lower()
    package = str(package).lower()

    if stack not in STACK_VALUES:
        raise LogValidationError(f"invalid stack: {stack}")
    if level not in LEVEL_VALUES:
        raise LogValidationError(f"invalid level: {level}")
    if not is_valid_package(stack, package):
        raise LogValidationError(f"invalid package for {stack}: {package}")

    return LogPayload(stack=stack, level=level, package=package, message=str(message))


class LogClient:
    """Client for the remote log collection endpoint.

    Every accepted entry is kept in a bounded ring buffer. When an endpoint is
    configured the entry is also POSTed as JSON, with a bearer token if one is
    set. Create one instance per application and pass it to whatever needs it.

    Usage:
        client = LogClient(endpoint="http://logs.internal/logs", token="...")
        await client.log("backend", "info", "service", "Short URL created")

        service_log = client.bind("backend", "service")
        await service_log.warn("Generation retry", suppress_errors=True)

        await client.aclose()
    """

    def __init__(
        self,
        endpoint: str | None = None,
        token: str | None = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            endpoint: Collection URL. Entries are only buffered when unset.
            token: Optional bearer token sent with each request.
            buffer_size: Maximum number of entries kept in memory.
            timeout: Request timeout in seconds for the default HTTP client.
            http_client: Pre-built client, mostly useful for tests.
        """
        self._endpoint = endpoint or None
        self._token = token or None
        self._timeout = timeout
        self._buffer: deque[LogEntry] = deque(maxlen=buffer_size)
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._sent = 0
        self._failed = 0

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    @property
    def entries(self) -> list[LogEntry]:
        """Buffered entries, oldest first."""
        return list(self._buffer)

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "buffered": len(self._buffer),
            "buffer_size": self._buffer.maxlen,
            "sent": self._sent,
            "failed": self._failed,
        }

    def clear(self) -> None:
        self._buffer.clear()

    def bind(self, stack: str, package: str) -> "BoundLogClient":
        """Return a logger with stack and package fixed."""
        # Validate eagerly so misconfiguration shows up at wiring time
        build_payload(stack, "info", package, "")
        return BoundLogClient(self, stack, package)

    async def log(
        self,
        stack: str,
        level: str,
        package: str,
        message: str,
        *,
        suppress_errors: bool = False,
    ) -> LogResult:
        """Record a log entry and deliver it to the endpoint.

        Validation errors are always raised. Delivery errors are raised as
        LogDeliveryError unless suppress_errors is set, in which case the
        returned LogResult has ok=False.
        """
        payload = build_payload(stack, level, package, message)
        self._buffer.append(LogEntry(**payload.model_dump()))

        if self._endpoint is None:
            return LogResult(ok=True)

        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            self._failed += 1
            if suppress_errors:
                return LogResult(ok=False, error=str(e))
            raise LogDeliveryError(f"Log post failed: {e}") from e

        result = LogResult(
            ok=response.is_success,
            status_code=response.status_code,
            data=_safe_json(response),
        )
        if not result.ok:
            self._failed += 1
            if suppress_errors:
                result.error = f"Log post failed: {response.status_code}"
                return result
            raise LogDeliveryError(f"Log post failed: {response.status_code}")

        self._sent += 1
        return result

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _post(self, payload: LogPayload) -> httpx.Response:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return await self._http_client.post(
            self._endpoint,
            json=payload.model_dump(),
            headers=headers,
        )


class BoundLogClient:
    """LogClient view with a fixed stack and package."""

    def __init__(self, client: LogClient, stack: str, package: str):
        self.client = client
        self.stack = stack
        self.package = package

    async def log(self, level: str, message: str, **kwargs: Any) -> LogResult:
        return await self.client.log(self.stack, level, self.package, message, **kwargs)

    async def debug(self, message: str, **kwargs: Any) -> LogResult:
        return await self.log("debug", message, **kwargs)

    async def info(self, message: str, **kwargs: Any) -> LogResult:
        return await self.log("info", message, **kwargs)

    async def warn(self, message: str, **kwargs: Any) -> LogResult:
        return await self.log("warn", message, **kwargs)

    async def error(self, message: str, **kwargs: Any) -> LogResult:
        return await self.log("error", message, **kwargs)

    async def fatal(self, message: str, **kwargs: Any) -> LogResult:
        return await self.log("fatal", message, **kwargs)


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
