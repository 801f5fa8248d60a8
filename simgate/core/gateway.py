"""FastAPI app entry."""

from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import MutableHeaders

from simgate.adapters.openai_compat.router import router as openai_router
from simgate.adapters.openai_compat.upstream import UpstreamClient
from simgate.config.settings import Settings
from simgate.core.errors import SimGateError
from simgate.core.registry import ModelRegistry
from simgate.util.logger import configure_logging, logger

_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}
_UVICORN_LOG_LEVELS = frozenset({"critical", "error", "warning", "info", "debug", "trace"})


class PermissiveCORSMiddleware:
    """
    Answers every OPTIONS request with 204 before routing or auth, and stamps
    ``Access-Control-Allow-Origin: *`` on every other response, errors included.
    """

    def __init__(self, app) -> None:
        self.app = app

    async def __call__(self, scope, receive, send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        if str(scope.get("method") or "").upper() == "OPTIONS":
            response = Response(status_code=204, headers=_PREFLIGHT_HEADERS)
            await response(scope, receive, send)
            return

        async def send_with_cors(message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                if "access-control-allow-origin" not in headers:
                    headers["Access-Control-Allow-Origin"] = "*"
            await send(message)

        await self.app(scope, receive, send_with_cors)


async def _simgate_error_handler(request: Request, exc: SimGateError) -> JSONResponse:
    logger.info(
        "request failed method=%s path=%s status=%s error=%s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def _method_not_allowed_handler(request: Request, exc: Exception) -> JSONResponse:
    # routing is path + method; a known path with the wrong method is still "not found"
    return JSONResponse(status_code=404, content={"detail": "Not Found"})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app around one settings object; handlers read it from ``app.state``."""
    settings = settings or Settings()
    configure_logging(settings.log_level)
    registry = ModelRegistry.from_settings(settings)
    upstream = UpstreamClient(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info("%s starting models=%d auth=%s", settings.app_name, len(registry), bool(settings.api_key))
        yield
        await upstream.aclose()

    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.upstream = upstream
    app.include_router(openai_router, prefix="/v1")
    app.add_exception_handler(SimGateError, _simgate_error_handler)
    app.add_exception_handler(405, _method_not_allowed_handler)

    @app.middleware("http")
    async def error_boundary_middleware(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("gateway unhandled exception path=%s", request.url.path)
            return JSONResponse(
                status_code=500,
                content={"error": str(exc).strip() or "Internal Server Error"},
            )

    @app.get("/health")
    def health() -> dict:
        logger.debug("health check")
        return {"status": "ok"}

    # outermost, so preflight skips everything and error responses still get CORS
    app.add_middleware(PermissiveCORSMiddleware)
    return app


def main() -> None:
    settings = Settings()
    app = create_app(settings)
    level = settings.log_level.strip().lower()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=level if level in _UVICORN_LOG_LEVELS else "info",
    )


if __name__ == "__main__":
    main()
