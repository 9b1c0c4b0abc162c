"""
Wedding Manager - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from wedding_manager.core.config import settings
from wedding_manager.core.db import engine, Base
from wedding_manager.api import routes_admin, routes_guest, routes_messaging, routes_public, routes_seating
from wedding_manager.utils.errors import WeddingError
from wedding_manager.utils.responses import domain_error_response, error_response

# Register models on Base.metadata
import wedding_manager.models  # noqa: F401

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Wedding Manager",
    description="Guest list, RSVP, seating and MMS invitation backend",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(WeddingError)
async def wedding_error_handler(request: Request, exc: WeddingError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return domain_error_response(exc)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(
        message="Validation failed",
        error_code="validation_failed",
        details=[{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()],
        status_code=400
    )

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return error_response(
        message="Internal server error",
        error_code="database_error",
        status_code=500
    )

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_guest.router, prefix="/api", tags=["guest"])
app.include_router(routes_admin.router, prefix="/api", tags=["admin"])
app.include_router(routes_seating.router, prefix="/api", tags=["seating"])
app.include_router(routes_messaging.router, prefix="/api", tags=["messaging"])

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
