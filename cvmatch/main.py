from datetime import datetime, timezone
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cvmatch.routers import extract, match
from cvmatch.models.rubric import DEFAULT_RUBRIC, check_rubric
from cvmatch.utils.logging_config import configure_for_environment, get_logger
from cvmatch.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
    register_exception_handlers
)

VERSION = "1.0.0"

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("CV Match API starting up...")

    # A broken rubric is fatal: refuse to serve
    check_rubric(DEFAULT_RUBRIC)
    logger.info(
        f"Scoring rubric v{DEFAULT_RUBRIC.version}: "
        + ", ".join(f"{c.name} {c.weight}%" for c in DEFAULT_RUBRIC.categories)
    )

    yield

    logger.info("CV Match API shutting down...")


app = FastAPI(title="CV Match API", version=VERSION, lifespan=lifespan)

register_exception_handlers(app)

# Add middleware in order (LIFO - Last In, First Out)
# Exception handler should be the outermost middleware
app.add_middleware(PerformanceMiddleware, slow_request_threshold=20.0)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionHandlerMiddleware)

# The browser builder calls the API directly
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[
        "X-Request-ID",
        "X-Processing-Time",
        "X-Job-Description-Truncated",
        "X-Job-Description-Truncated-At",
        "X-Job-Description-Original-Length",
    ],
)


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    return {"message": "Welcome to the CV Match API", "version": VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    """Health check endpoint - handles both GET and HEAD requests"""
    return {
        "status": "healthy",
        "rubric_version": DEFAULT_RUBRIC.version,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


app.include_router(match.router, prefix="/api")
app.include_router(extract.router, prefix="/api")

logger.info("CV Match API initialized successfully")
