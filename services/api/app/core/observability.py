"""Structured logging, request context, Prometheus metrics, Sentry and tracing."""

import logging
import time
import uuid
from contextvars import ContextVar

import sentry_sdk
import structlog
from fastapi import FastAPI, Request, Response
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.core.config import get_settings

settings = get_settings()

SERVICE = "snaplink-api"

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

HTTP_REQUESTS = Counter(
    "http_requests_total",
    "HTTP requests by method, endpoint and status",
    ["method", "endpoint", "status_code"],
)
HTTP_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)
REDIRECTS = Counter(
    "redirects_total",
    "Redirect outcomes by status code (301, 404, 410)",
    ["status_code"],
)
LINK_OPERATIONS = Counter(
    "link_operations_total",
    "Link operations: create, reuse, status, delete, cleanup",
    ["operation"],
)

STATIC_ENDPOINTS = frozenset({
    "/",
    "/shorten",
    "/metrics",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/api/health",
    "/api/urls",
    "/api/urls/cleanup",
})


def normalize_endpoint(path: str) -> str:
    """Collapse path parameters so metric labels stay low-cardinality."""
    if path in STATIC_ENDPOINTS:
        return path
    if path.startswith("/api/stats/"):
        return "/api/stats/{short_code}"
    if path.startswith("/api/urls/"):
        if path.endswith("/status"):
            return "/api/urls/{short_code}/status"
        return "/api/urls/{short_code}"
    if path.startswith("/api/"):
        return "/api/{unknown}"
    return "/{short_code}"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and bind it to the structlog context.

    An incoming X-Request-ID header is reused; otherwise a UUID4 is minted.
    The id is echoed back on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log request start and completion and feed the HTTP metrics."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        logger = structlog.get_logger()
        started = time.perf_counter()
        logger.info(
            "Request started",
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("User-Agent"),
        )

        response = await call_next(request)

        elapsed = time.perf_counter() - started
        logger.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )

        endpoint = normalize_endpoint(request.url.path)
        HTTP_REQUESTS.labels(request.method, endpoint, response.status_code).inc()
        HTTP_LATENCY.labels(request.method, endpoint).observe(elapsed)
        return response


def configure_structlog() -> None:
    """JSON log lines through the stdlib logging machinery."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if settings.debug else logging.INFO,
    )


def setup_opentelemetry(app: FastAPI) -> None:
    """Export traces over OTLP/gRPC when an endpoint is configured."""
    logger = structlog.get_logger()
    if not settings.otlp_endpoint:
        logger.info("OpenTelemetry disabled (no OTLP endpoint configured)")
        return

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: SERVICE}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app)
    logger.info("OpenTelemetry configured", otlp_endpoint=settings.otlp_endpoint)


def setup_sentry() -> None:
    logger = structlog.get_logger()
    if not settings.sentry_dsn:
        logger.info("Sentry disabled (no DSN configured)")
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment="development" if settings.debug else "production",
        traces_sample_rate=0.1,
        profiles_sample_rate=0.1,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
        max_request_body_size="small",
    )
    logger.info("Sentry configured")


def setup_observability(app: FastAPI) -> None:
    """Configure logging and external integrations and mount /metrics.

    Must run before the routers are included so /metrics is matched ahead of
    the short code catch-all.
    """
    configure_structlog()
    setup_sentry()
    setup_opentelemetry(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    structlog.get_logger().info("Observability setup complete", service=SERVICE)


def record_redirect(status_code: int) -> None:
    REDIRECTS.labels(status_code=status_code).inc()


def record_link_operation(operation: str) -> None:
    LINK_OPERATIONS.labels(operation=operation).inc()
