from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from agency_console.config import settings
from agency_console.api.v1.router import api_router
from agency_console.database import init_db, async_session_factory
from agency_console.services.payouts.exceptions import (
    PayoutError,
    PayoutValidationError,
    RunConflictError,
    RunNotFoundError,
    LineNotFoundError,
)


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Create tables
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    await init_db()

    yield

    logger.info("Shutting down...")


OPENAPI_TAGS = [
    {"name": "Payout Runs", "description": "Monthly payout preview, saved runs and their lifecycle"},
    {"name": "Agency Revenue", "description": "Agency-wide net revenue buckets per month"},
    {"name": "Exchange Rate", "description": "USD to EUR rate used by payout computation"},
    {"name": "Health", "description": "Service health"},
]


def register_exception_handlers(app: FastAPI) -> None:
    """Map payout errors to HTTP responses."""

    @app.exception_handler(PayoutValidationError)
    async def validation_error_handler(request: Request, exc: PayoutValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.message, "issues": exc.issues},
        )

    @app.exception_handler(RunConflictError)
    async def conflict_error_handler(request: Request, exc: RunConflictError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": exc.message, "details": exc.details},
        )

    @app.exception_handler(RunNotFoundError)
    @app.exception_handler(LineNotFoundError)
    async def not_found_error_handler(request: Request, exc: PayoutError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": exc.message, "details": exc.details},
        )

    @app.exception_handler(PayoutError)
    async def payout_error_handler(request: Request, exc: PayoutError):
        logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message, "details": exc.details},
        )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Agency operations console: monthly payout computation and payout runs.",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=OPENAPI_TAGS,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint with database validation."""
        health_status = {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "database": "unknown"
            }
        }

        try:
            async with async_session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
                health_status["checks"]["database"] = "connected"
        except Exception as e:
            health_status["status"] = "unhealthy"
            health_status["checks"]["database"] = f"error: {str(e)}"

        # Return 503 if unhealthy
        if health_status["status"] == "unhealthy":
            return JSONResponse(status_code=503, content=health_status)

        return health_status

    return app


app = create_app()
