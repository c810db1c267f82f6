import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.dependencies import Container, build_container
from app.api.routers.health import router as health_router
from app.api.routers.outbox import router as outbox_router
from app.api.routers.reservations import router as reservations_router
from app.config import Settings, get_settings
from app.domain.errors import (
    AlreadyTerminalError,
    ConflictError,
    DomainError,
    OutboxEventNotFoundError,
    ReservationNotFoundError,
    StorageError,
    UnavailableError,
    ValidationError,
)
from app.infrastructure.db.engine import create_schema

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ERROR_STATUS: list[tuple[type[DomainError], int]] = [
    (ValidationError, 422),
    (ReservationNotFoundError, 404),
    (OutboxEventNotFoundError, 404),
    (AlreadyTerminalError, 409),
    (ConflictError, 409),
    (UnavailableError, 503),
    (StorageError, 503),
]


def status_for(exc: DomainError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


def create_app(settings: Settings | None = None, container: Container | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.container = container or build_container(settings)
        if app.state.container.engine is not None and settings.create_schema_on_startup:
            await create_schema(app.state.container.engine)
        if settings.enable_background_workers:
            app.state.container.start_background_tasks()
        yield
        # Cleanup
        await app.state.container.close()

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan
    )

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.warning(
                "Request failed on a dependency",
                extra={"code": exc.code, "path": request.url.path},
            )
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    # Global Exception Handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler to prevent stack trace exposure to clients.
        All unhandled exceptions are logged internally and return a generic error message.
        """
        error_id = str(uuid.uuid4())

        # Log the full error with context for internal debugging
        logger.error(
            "Unhandled exception occurred",
            exc_info=exc,
            extra={
                "error_id": error_id,
                "path": request.url.path,
                "method": request.method,
                "client_host": request.client.host if request.client else None,
            }
        )

        # Return a generic error to the client without exposing internal details
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error_id": error_id,
                "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
            }
        )

    app.include_router(health_router, tags=["Health"])
    app.include_router(reservations_router, prefix="/api/v1", tags=["Reservations"])
    app.include_router(outbox_router, prefix="/api/v1", tags=["Outbox"])
    return app


app = create_app()
