"""Main FastAPI application for the Entity Feedback backend."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from entity_feedback import __version__
from entity_feedback.api import health, ratings, responses
from entity_feedback.config import get_catalog_base_url, get_catalog_timeout, get_cors_allow_origins
from entity_feedback.lib.catalog import CatalogClient
from entity_feedback.lib.exceptions import EntityFeedbackError
from entity_feedback.lib.feedback.service import FeedbackOptions, create_notifier
from entity_feedback.lib.logging_config import configure_logging, create_request_context_middleware
from entity_feedback.models.sql.database import SessionLocal, init_db

configure_logging()

logger = logging.getLogger(__name__)

FEEDBACK_PATH_PREFIX = "/api/entity-feedback"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info("Initializing Entity Feedback backend")

    init_db()
    logger.info("Feedback tables ready")

    options = FeedbackOptions(
        session_factory=SessionLocal,
        catalog=CatalogClient(
            base_url=get_catalog_base_url(),
            timeout_seconds=get_catalog_timeout(),
        ),
        notifier=create_notifier(),
    )
    app.state.feedback_options = options
    logger.info('Catalog client targeting %s', options.catalog.base_url)

    yield

    logger.info("Shutting down Entity Feedback backend")
    try:
        await options.catalog.aclose()
        close_notifier = getattr(options.notifier, "aclose", None)
        if close_notifier is not None:
            await close_notifier()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


app = FastAPI(
    title="Entity Feedback API",
    description="Ratings and feedback on catalog entities",
    version=__version__,
    lifespan=lifespan
)


@app.exception_handler(EntityFeedbackError)
async def entity_feedback_exception_handler(request: Request, exc: EntityFeedbackError):
    """Render service errors as ErrorResponse with the error's HTTP status."""
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.warning('%s %s rejected: %s', request.method, request.url.path, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "error": exc.message,
            "code": exc.error_code,
            "details": exc.details or None,
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic 422 validation errors to 400 with ErrorResponse shape.

    Only applies to feedback endpoints - other endpoints still get 422.
    """
    if request.url.path.startswith(FEEDBACK_PATH_PREFIX):
        details = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
            details.append({"field": field, "message": error["msg"]})

        return JSONResponse(
            status_code=400,
            content={
                "status": "error",
                "error": "Validation error",
                "code": "INPUT_001",
                "details": details,
            },
        )

    return await request_validation_exception_handler(request, exc)


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
create_request_context_middleware(app)

# Include routers
app.include_router(ratings.router, tags=["Ratings"])
app.include_router(responses.router, tags=["Responses"])
app.include_router(health.router, tags=["Health"])


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Entity Feedback API",
        "version": __version__,
        "docs": "/docs",
        "health": f"{FEEDBACK_PATH_PREFIX}/health",
    }

