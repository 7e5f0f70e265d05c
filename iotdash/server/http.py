"""HTTP server exposing the dashboard core via FastAPI.

Endpoints are a thin transport over :class:`DashboardServer`. Authentication
(optional bearer token) and CORS come from the server's :class:`EnvSettings`,
i.e. ``IOTDASH_HTTP_TOKEN`` and ``IOTDASH_CORS_ORIGINS`` in the environment or
a ``.env`` file.
"""

from __future__ import annotations

import importlib
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import psutil
from pydantic import BaseModel, Field
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .. import __config_model_version__, __version__
from ..charts import TableQuery, all_shapers
from ..config.models import AppConfig, EnvSettings
from ..domain.models import AlarmEvent, Aggregation, Device, InteractionType
from ..interaction import InteractionOutcome, NavigationError
from ..observability import setup_logging
from ..utils.correlation import get_request_id, set_request_id
from .app import DashboardServer
from .models import (
    DashboardRender,
    FilterUpdateRequest,
    FilterUpdateResponse,
    InteractionRequest,
    MenuRequest,
    NavigationSnapshot,
)

logger = logging.getLogger(__name__)

CONFIG_ENV = "IOTDASH_CONFIG"

# Export helper functions so dead-code linters recognize runtime usage.
__all__ = [
    "create_app",
    "_load_fastapi",
    "_build_app",
    "_apply_cors_env",
    "_make_auth_dependency",
    "_register_health",
    "_register_capabilities",
    "_register_dashboards",
    "_register_navigation",
    "_register_alarms",
]


class RequestLoggingMiddleware(
    BaseHTTPMiddleware
):  # pylint: disable=too-few-public-methods
    """Assign a correlation id per request and log failures with timing."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        req_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())
        set_request_id(req_id)
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "http.request.failed",
                extra={
                    "req_id": req_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "duration_ms": int((time.time() - start_time) * 1000),
                },
                exc_info=True,
            )
            raise
        response.headers["x-correlation-id"] = req_id
        logger.debug(
            "http.request.completed",
            extra={
                "req_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": int((time.time() - start_time) * 1000),
            },
        )
        return response


class HealthResponse(BaseModel):
    """Simple health/readiness response model."""

    status: str


class ErrorResponse(BaseModel):
    """Structured JSON error response for HTTP endpoints.

    Fields
    ------
    detail: str
        Human-readable explanation of the error.
    error_type: str
        Machine-readable error classification.
    available_options: list[str] | None
        Optional list of valid options when the error is about an unknown
        id (e.g., dashboard or chart).
    """

    detail: str = Field(..., description="Human-readable error detail")
    error_type: str = Field(..., description="Machine-readable error type")
    available_options: Optional[List[str]] = Field(
        default=None, description="Optional list of valid alternative options"
    )


class CapabilitiesResponse(BaseModel):
    """Server capabilities summary for diagnostics and clients."""

    version: str
    config_model_version: str = Field("1.0.0")
    http_auth: str
    cors_origins: List[str]
    chart_types: List[str]
    shapers: List[str]
    aggregations: List[str]
    interaction_types: List[str]
    dashboards: List[str]


def _get_expected_token(settings: EnvSettings) -> Optional[str]:
    return settings.http_token or None


def _cors_origins(settings: EnvSettings) -> List[str]:
    origins = settings.cors_origins or ""
    return [o.strip() for o in origins.split(",") if o.strip()]


def _load_fastapi():
    """Dynamically import FastAPI pieces to keep the import graph light."""
    fastapi_mod = importlib.import_module("fastapi")
    cors_mod = importlib.import_module("fastapi.middleware.cors")
    exc_mod = importlib.import_module("fastapi.exceptions")
    resp_mod = importlib.import_module("fastapi.responses")
    st_exc_mod = importlib.import_module("starlette.exceptions")
    return {
        "fastapi_cls": getattr(fastapi_mod, "FastAPI"),
        "depends": getattr(fastapi_mod, "Depends"),
        "header": getattr(fastapi_mod, "Header"),
        "http_exc": getattr(fastapi_mod, "HTTPException"),
        "status": getattr(fastapi_mod, "status"),
        "cors_mw": getattr(cors_mod, "CORSMiddleware"),
        "validation_exc": getattr(exc_mod, "RequestValidationError"),
        "json_response": getattr(resp_mod, "JSONResponse"),
        "starlette_http_exc": getattr(st_exc_mod, "HTTPException"),
    }


def _build_app(fastapi_cls: Any, lifespan: Any | None = None):
    """Create base FastAPI app (optionally with lifespan)."""
    if lifespan is not None:
        return fastapi_cls(title="IoT Dashboard Server", version=__version__, lifespan=lifespan)
    return fastapi_cls(title="IoT Dashboard Server", version=__version__)


def _apply_cors_env(app: Any, cors_middleware_cls: Any, settings: EnvSettings) -> None:
    """Enable CORS if IOTDASH_CORS_ORIGINS is set."""
    allow_origins = _cors_origins(settings)
    if allow_origins:
        app.add_middleware(
            cors_middleware_cls,
            allow_origins=allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def _make_auth_dependency(header: Any, http_exc: Any, status_mod: Any, settings: EnvSettings):
    """Return a dependency function that enforces optional bearer token."""

    def _auth_dependency(authorization: str | None = header(default=None)) -> None:
        expected = _get_expected_token(settings)
        if expected is None:
            return
        if not authorization or not authorization.startswith("Bearer "):
            raise http_exc(status_code=status_mod.HTTP_401_UNAUTHORIZED)
        token = authorization.split(" ", 1)[1]
        if token != expected:
            raise http_exc(status_code=status_mod.HTTP_403_FORBIDDEN)

    return _auth_dependency


def _not_found(http_exc: Any, detail: str, error_type: str, options: List[str]) -> Any:
    err = ErrorResponse(detail=detail, error_type=error_type, available_options=options)
    return http_exc(status_code=404, detail=err.model_dump())


def _register_health(app: Any, server: DashboardServer) -> None:
    """Register health and readiness endpoints."""

    @app.get("/health", response_model=HealthResponse, summary="Liveness check")
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/ready", response_model=HealthResponse, summary="Readiness check")
    async def ready() -> HealthResponse:
        return HealthResponse(status="ready" if server.started else "starting")


def _register_capabilities(app: Any, server: DashboardServer) -> None:
    """Register server capabilities endpoint."""

    @app.get(
        "/capabilities",
        response_model=CapabilitiesResponse,
        summary="Server capabilities summary",
    )
    async def capabilities() -> CapabilitiesResponse:  # noqa: D401
        shapers = list(all_shapers())
        return CapabilitiesResponse(
            version=__version__,
            config_model_version=__config_model_version__,
            http_auth=("enabled" if _get_expected_token(server.settings) else "disabled"),
            cors_origins=_cors_origins(server.settings),
            chart_types=sorted(t.value for s in shapers for t in s.chart_types),
            shapers=sorted(s.id for s in shapers),
            aggregations=[a.value for a in Aggregation],
            interaction_types=[t.value for t in InteractionType],
            dashboards=server.dashboard_ids(),
        )


def _register_dashboards(
    app: Any, server: DashboardServer, depends: Any, http_exc: Any, auth_dep: Any
) -> None:
    """Register render, filter and interaction endpoints."""

    def _require_dashboard(dashboard_id: str) -> None:
        if dashboard_id not in server.dashboard_ids():
            raise _not_found(
                http_exc,
                f"Unknown dashboard '{dashboard_id}'",
                "dashboard_not_found",
                server.dashboard_ids(),
            )

    @app.get(
        "/dashboards/{dashboard_id}/render",
        response_model=DashboardRender,
        summary="Render every chart of a dashboard with its effective filters",
        dependencies=[depends(auth_dep)],
    )
    async def render_dashboard(
        dashboard_id: str,
        table: Optional[str] = None,
        sort_key: Optional[str] = None,
        sort_direction: str = "asc",
        page: int = 1,
    ) -> DashboardRender:
        _require_dashboard(dashboard_id)
        queries: Dict[str, TableQuery] = {}
        if table:
            queries[table] = TableQuery(
                sort_key=sort_key,
                sort_direction="desc" if sort_direction == "desc" else "asc",
                page=max(1, page),
            )
        return server.render_dashboard(dashboard_id, table_queries=queries)

    @app.put(
        "/dashboards/{dashboard_id}/filters",
        response_model=FilterUpdateResponse,
        summary="Apply a filter-widget change",
        dependencies=[depends(auth_dep)],
    )
    async def update_filter(dashboard_id: str, req: FilterUpdateRequest) -> FilterUpdateResponse:
        _require_dashboard(dashboard_id)
        filters = server.set_filter(dashboard_id, req.key, req.value)
        return FilterUpdateResponse(dashboard_id=dashboard_id, filters=filters)

    @app.post(
        "/dashboards/{dashboard_id}/interactions",
        response_model=InteractionOutcome,
        summary="Resolve a click on a rendered data point",
        dependencies=[depends(auth_dep)],
    )
    async def interact(dashboard_id: str, req: InteractionRequest) -> InteractionOutcome:
        _require_dashboard(dashboard_id)
        if server.get_chart(req.chart_id) is None:
            raise _not_found(
                http_exc,
                f"Unknown chart '{req.chart_id}'",
                "chart_not_found",
                server.chart_ids(),
            )
        return server.handle_interaction(dashboard_id, req.chart_id, req.payload)

    @app.get(
        "/devices",
        response_model=List[Device],
        summary="Current device snapshot",
        dependencies=[depends(auth_dep)],
    )
    async def devices() -> List[Device]:
        return list(server.devices())


def _register_navigation(
    app: Any, server: DashboardServer, depends: Any, http_exc: Any, auth_dep: Any
) -> None:
    """Register drill-down and menu navigation endpoints."""

    @app.get(
        "/navigation",
        response_model=NavigationSnapshot,
        dependencies=[depends(auth_dep)],
    )
    async def navigation() -> NavigationSnapshot:
        return server.navigation_snapshot()

    @app.post(
        "/navigation/back",
        response_model=NavigationSnapshot,
        dependencies=[depends(auth_dep)],
    )
    async def back() -> NavigationSnapshot:
        return server.back()

    @app.post(
        "/navigation/menu",
        response_model=NavigationSnapshot,
        dependencies=[depends(auth_dep)],
    )
    async def menu(req: MenuRequest) -> NavigationSnapshot:
        if req.dashboard_id is not None and req.dashboard_id not in server.dashboard_ids():
            raise _not_found(
                http_exc,
                f"Unknown dashboard '{req.dashboard_id}'",
                "dashboard_not_found",
                server.dashboard_ids(),
            )
        return server.select_menu(req.section, req.dashboard_id)


def _register_alarms(
    app: Any, server: DashboardServer, depends: Any, http_exc: Any, auth_dep: Any
) -> None:
    """Register alarm event endpoints."""

    @app.get(
        "/alarms/events",
        response_model=List[AlarmEvent],
        dependencies=[depends(auth_dep)],
    )
    async def events(status: Optional[str] = None) -> List[AlarmEvent]:
        return server.alarm_events(status)

    @app.post(
        "/alarms/events/{event_id}/ack",
        response_model=AlarmEvent,
        dependencies=[depends(auth_dep)],
    )
    async def acknowledge(event_id: str) -> AlarmEvent:
        try:
            return server.acknowledge_alarm(event_id)
        except KeyError as e:
            raise _not_found(
                http_exc, f"Unknown alarm event '{event_id}'", "event_not_found", []
            ) from e


def _load_server(settings: EnvSettings, config_path: Optional[Path]) -> DashboardServer:
    path = config_path
    if path is None and os.environ.get(CONFIG_ENV):
        path = Path(os.environ[CONFIG_ENV])
    config = AppConfig.load(path) if path is not None else AppConfig()
    return DashboardServer(config, settings)


def create_app(
    server: Optional[DashboardServer] = None,
    config_path: Optional[Path] = None,
    run_ticker: bool = True,
):
    """Create and configure the FastAPI application.

    Parameters
    ----------
    server: DashboardServer, optional
        Pre-built server (tests); otherwise built from ``config_path`` or the
        ``IOTDASH_CONFIG`` file.
    run_ticker: bool
        Start the background metric/alarm tick with the app.
    """
    settings = server.settings if server is not None else EnvSettings()
    # Respect prior logging configuration from CLI; otherwise use env setting
    if not logging.getLogger().hasHandlers():
        setup_logging(settings.log_level)
    parts = _load_fastapi()
    app_server = server or _load_server(settings, config_path)

    @asynccontextmanager
    async def lifespan(_app: Any):
        logger.info("http.startup")
        try:
            mem_info = psutil.Process().memory_info()
            logger.info(
                "http.startup.memory",
                extra={
                    "rss_mb": round(mem_info.rss / 1024 / 1024, 1),
                    "vms_mb": round(mem_info.vms / 1024 / 1024, 1),
                },
            )
        except (psutil.Error, OSError):  # pragma: no cover
            pass
        await app_server.start(run_ticker=run_ticker)
        try:
            yield
        finally:
            logger.info("http.shutdown")
            await app_server.stop()

    app = _build_app(parts["fastapi_cls"], lifespan=lifespan)
    request_validation_error_cls = parts["validation_exc"]
    jr = parts["json_response"]
    starlette_http_exception_cls = parts["starlette_http_exc"]

    @app.exception_handler(request_validation_error_cls)
    async def validation_exception_handler(_request: Any, exc: Exception):  # noqa: D401
        err = ErrorResponse(detail=str(exc), error_type="validation_error")
        return jr(status_code=400, content={"detail": err.model_dump()})

    @app.exception_handler(starlette_http_exception_cls)
    async def http_exception_handler(_request: Any, exc: Any):  # noqa: D401
        detail = getattr(exc, "detail", "")
        if isinstance(detail, dict) and {"detail", "error_type"} <= detail.keys():
            payload = {"detail": detail}
        else:
            payload = {
                "detail": ErrorResponse(
                    detail=str(detail) or "HTTP error", error_type="http_error"
                ).model_dump()
            }
        return jr(status_code=exc.status_code, content=payload)

    @app.exception_handler(NavigationError)
    async def navigation_exception_handler(_request: Any, exc: Exception):  # noqa: D401
        err = ErrorResponse(
            detail=str(exc),
            error_type="navigation_error",
            available_options=app_server.dashboard_ids(),
        )
        return jr(status_code=404, content={"detail": err.model_dump()})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Any, exc: Exception):  # noqa: D401
        # Avoid leaking internals; log server-side, return generic error
        logger.error(
            "http.unhandled_exception", extra={"req_id": get_request_id()}, exc_info=exc
        )
        err = ErrorResponse(
            detail="Internal error. See server logs for request id.",
            error_type="internal_server_error",
        )
        return jr(status_code=500, content={"detail": err.model_dump()})

    # Mark handlers as intentionally used (registered via decorators)
    _ = (
        validation_exception_handler,
        http_exception_handler,
        navigation_exception_handler,
        unhandled_exception_handler,
    )

    app.add_middleware(RequestLoggingMiddleware)
    _apply_cors_env(app, parts["cors_mw"], app_server.settings)
    auth_dep = _make_auth_dependency(
        parts["header"], parts["http_exc"], parts["status"], app_server.settings
    )
    _register_health(app, app_server)
    _register_capabilities(app, app_server)
    _register_dashboards(app, app_server, parts["depends"], parts["http_exc"], auth_dep)
    _register_navigation(app, app_server, parts["depends"], parts["http_exc"], auth_dep)
    _register_alarms(app, app_server, parts["depends"], parts["http_exc"], auth_dep)
    app.state.server = app_server
    return app
