# pyright: reportMissingTypeStubs=false
"""
Dental Booking Backend API

A FastAPI application serving the public booking site and the clinic admin
panel of a dental practice.

Features:
- Slot availability and public appointment booking
- Admin management of patients, appointments, blocked slots and files
- SQLAlchemy record store (SQLite locally, PostgreSQL in production)
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from api import admin, auth, booking
from core import config
from core.constants import CORS_ORIGINS
from core.database import RecordStore, StoreError
from services.snapshot_service import ScheduleSnapshot
from utils.file_storage import BlobStorageError, build_blob_storage

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)
logger.info("🦷 Dental Booking API starting...")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("🚀 Starting Dental Booking Backend API")

    store = RecordStore(config.DATABASE_URL).init()
    store.create_tables()
    app.state.store = store
    app.state.storage = build_blob_storage()
    app.state.snapshot = ScheduleSnapshot(config.APP_ID)
    logger.info(f"✅ Record store ready for app '{config.APP_ID}'")

    yield

    store.dispose()
    logger.info("🛑 Shutting down Dental Booking Backend API")


# Create FastAPI application
app = FastAPI(
    title="Dental Booking Backend",
    description="Availability, booking and admin API for a dental clinic",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(
    booking.router,
    prefix="/api",
    tags=["booking"],
    responses={
        400: {"description": "Bad request"},
        409: {"description": "Conflict"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    auth.router,
    prefix="/api/auth",
    tags=["authentication"],
    responses={
        401: {"description": "Unauthorized"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    admin.router,
    prefix="/api/admin",
    tags=["admin"],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal server error"},
    },
)

# Serve locally stored patient files
if config.STORAGE_BACKEND == "local":
    app.mount(
        "/static/uploads",
        StaticFiles(directory=config.STORAGE_LOCAL_DIR, check_dir=False),
        name="uploads",
    )


@app.get(
    "/",
    summary="Root endpoint",
    description="Returns basic API information",
)
async def root() -> dict[str, str]:
    """Get API information."""
    return {
        "message": "Dental Booking Backend API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


# Global exception handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Error interno del servidor", "type": "internal_error"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions."""
    logger.warning(f"ValueError: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    """Surface record store failures verbatim."""
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "type": "store_error"},
    )


@app.exception_handler(BlobStorageError)
async def blob_storage_error_handler(request: Request, exc: BlobStorageError):
    """Handle blob storage failures."""
    logger.error(f"Blob storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502,
        content={"detail": str(exc), "type": "storage_error"},
    )
