"""Starlette middleware that forwards request and error logs to a LogClient."""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snaplink_shared.logger import LogClient


class RemoteLogMiddleware(BaseHTTPMiddleware):
    """Log one line per request, plus the message of any unhandled error.

    Delivery failures never affect the response: logs are sent with
    suppress_errors and only validation problems surface, which happens when
    the middleware is added with a bad stack/package.
    """

    def __init__(
        self,
        app: object,
        client: LogClient,
        stack: str = "backend",
        package: str = "route",
        level: str = "info",
        error_package: str = "handler",
        error_level: str = "error",
    ) -> None:
        super().__init__(app)
        self.request_log = client.bind(stack, package)
        self.error_log = client.bind(stack, error_package)
        self.level = level
        self.error_level = error_level

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            message = str(e) or "Unhandled error"
            await self.error_log.log(self.error_level, message, suppress_errors=True)
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000)
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        await self.request_log.log(
            self.level,
            f"{request.method} {path} -> {response.status_code} ({duration_ms}ms)",
            suppress_errors=True,
        )
        return response
