"""FastAPI application factory."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from app.config import get_settings
from app.core.errors import InboxError
from app.infra.logging_config import LoggingConfig, get_logger
from app.routers import inbox_router, webhooks

logger = get_logger("api")


async def inbox_error_handler(request: Request, exc: InboxError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(testing: bool = False) -> FastAPI:
    settings = get_settings()
    LoggingConfig()

    app = FastAPI(title=settings.app_name)
    app.add_exception_handler(InboxError, inbox_error_handler)

    app.include_router(inbox_router.router)
    app.include_router(webhooks.router)

    @app.get("/health", tags=["system"])
    def health() -> dict[str, str]:
        return {"status": "ok", "environment": settings.environment}

    if not testing:
        app.mount("/metrics", make_asgi_app())

    return app


app = create_app()
