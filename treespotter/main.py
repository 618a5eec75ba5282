"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from treespotter.config import settings
from treespotter.middleware.error_handler import ErrorHandlerMiddleware
from treespotter.api.rate_limit import limiter
from treespotter.api.v1.routers import submissions

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Image fetch: timeout={settings.image_fetch_timeout}s, "
                f"attempts={settings.image_fetch_max_attempts}")
    logger.info(f"Diameter model: {settings.text_generation_model}, "
                f"grouping threshold: {settings.tree_grouping_threshold_m}m")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    yield

    # Shutdown
    from treespotter.api.dependencies import get_image_acquirer
    from treespotter.infrastructure.text_generation_client import get_text_generation_client
    logger.info("Shutting down application...")
    await get_image_acquirer().close()
    await get_text_generation_client().close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Crowdsourced Tree Reporting API

    This API turns photos of downed or measured trees, submitted by SMS/MMS or
    email, into structured tree observations.

    ## Features

    - **Image Acquisition**: Downloads provider-hosted images with a bounded
      timeout, a single retry and format signature checks
    - **GPS Extraction**: Reads and validates coordinates from EXIF metadata
    - **Diameter Extraction**: Reads the trunk diameter from the message text
      using a text generation model
    - **Tree Grouping**: Groups photos taken within 3 meters of each other
    - **Stage-tagged Errors**: Every failed image is reported with the stage
      that failed, without failing the rest of the submission
    - **Rate Limiting**: Protects the API from abuse
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(submissions.router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
