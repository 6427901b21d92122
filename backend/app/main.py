"""Main FastAPI application for the osu! tournament rating backend."""

from contextlib import asynccontextmanager
from typing import Any, Dict

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core.config import get_global_settings
from app.core.exceptions import ServiceException
from app.core.logging import setup_logging
from app.core.rate_limiter import limiter
from app.features.jobs import shutdown_workers, start_workers
from app.features.matches import matches_router
from app.features.me import me_router
from app.features.players import players_router
from app.features.ratings import ratings_router

settings = get_global_settings()
setup_logging(settings.log_level)
logger = structlog.get_logger(__name__)


async def _start_workers_safely() -> None:
    """Start sync workers with error handling."""
    try:
        await start_workers()
    except Exception as e:
        logger.error(
            "Failed to start sync workers",
            error=str(e),
            error_type=type(e).__name__,
        )
        # Don't fail startup if the workers fail - the API still serves requests


async def _shutdown_workers_safely() -> None:
    """Shutdown sync workers with error handling."""
    try:
        await shutdown_workers()
    except Exception as e:
        logger.error(
            "Error during worker shutdown",
            error=str(e),
            error_type=type(e).__name__,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting up osu! rating backend", environment=settings.environment)
    if not settings.osu_api_key:
        logger.warning("OSU_API_KEY not configured; player data sync will fail")
    await _start_workers_safely()
    yield
    logger.info("Shutting down osu! rating backend")
    await _shutdown_workers_safely()


tags_metadata = [
    {
        "name": "players",
        "description": "Player directory: osu! ids, ranks and countries.",
    },
    {
        "name": "matches",
        "description": "Match submission, verification and duplicate resolution.",
    },
    {
        "name": "ratings",
        "description": "Current ratings and rating history.",
    },
    {
        "name": "me",
        "description": "The logged-in user and their statistics.",
    },
    {
        "name": "health",
        "description": "Health check and system status endpoints.",
    },
]

app = FastAPI(
    title="osu! Tournament Rating API",
    description="""
    Backend for rating osu! tournament players.

    ## Authentication

    Protected endpoints expect an access token in the `OTR-Access-Token`
    cookie or the `Authorization` header (`Bearer <token>`). Roles carried
    by the token gate verifier, admin and system operations.
    """,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    debug=settings.debug,
)

# Configure rate limiter for FastAPI app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]


@app.exception_handler(ServiceException)
async def service_exception_handler(
    request: Request, exc: ServiceException
) -> JSONResponse:
    """Translate service errors into JSON responses."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(players_router, prefix="/api")
app.include_router(matches_router, prefix="/api")
app.include_router(ratings_router, prefix="/api")
app.include_router(me_router, prefix="/api")


@app.get("/health", tags=["health"])
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns the health status of the application and whether the sync
    workers are enabled. Used by monitoring tools and load balancers.
    """
    return {
        "status": "healthy",
        "message": "Application is running",
        "version": "0.1.0",
        "debug": settings.debug,
        "workers_enabled": settings.auto_update_users,
    }
