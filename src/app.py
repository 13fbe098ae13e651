"""PrintFlow FastAPI application.

Printer webhooks, settlement links and the read API for order fulfillment
and printer settlements.

Usage:
    uvicorn app:create_app --factory --app-dir src --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notifications.api.routes import router as notifications_router
from ordering.api.routes import router as ordering_router
from settlements.api.routes import router as settlements_router
from shared.container import Container
from shared.exceptions import FulfillmentError, ValidationError
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
async def fulfillment_error_handler(request: Request, exc: FulfillmentError) -> JSONResponse:
    content = {"error": exc.message or exc.__class__.__name__}
    if isinstance(exc, ValidationError):
        content["details"] = exc.messages
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body"
        details.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(container: Container | None = None) -> FastAPI:
    if container is None:
        configure_logging()
        container = Container.build()
        container.database.create_all()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        container.close()
        logger.info("PrintFlow app shut down")

    app = FastAPI(
        title="PrintFlow API",
        description="Order fulfillment and printer settlements",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(FulfillmentError, fulfillment_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(ordering_router)
    app.include_router(settlements_router)
    app.include_router(notifications_router)

    @app.get("/health")
    def health():
        return {"status": "ok", "environment": container.settings.app_env}

    logger.info("PrintFlow app created", environment=container.settings.app_env)
    return app
