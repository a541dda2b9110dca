"""
Main FastAPI application for Beta Car Hire.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from beta_car_hire.core.config import get_config
from beta_car_hire.core.simple_config import get_simple_config
from beta_car_hire.core.database import check_database_connection
from beta_car_hire.core.response_utils import create_success_response, create_error_response, ResponseTimer
from beta_car_hire.schemas import StandardResponse
from beta_car_hire.api.v1 import aichat, auth, bookings, chat, fleet
from beta_car_hire.services.genai_client import is_client_initialized

config = get_config()

logging.basicConfig(
    level=config.application.log_level,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Beta Car Hire API...")
    try:
        from beta_car_hire.core.database import initialize_database
        initialize_database()
        logger.info("Database initialization completed")
    except Exception as e:
        logger.warning(f"Database initialization failed during startup: {e}")
        logger.info("Application will continue - database will be initialized on first access")

    try:
        from beta_car_hire.services.genai_client import initialize_genai_client
        ai_settings = get_simple_config()
        logger.info(f"AI configuration: {ai_settings.to_dict()}")
        if is_client_initialized():
            logger.info("GenAI client already initialized")
        elif not ai_settings.has_credentials:
            logger.warning("No GenAI credentials configured - the assistant will answer with fallback replies")
        else:
            initialize_genai_client()
            logger.info("GenAI client initialization completed")
    except Exception as e:
        logger.warning(f"GenAI client initialization failed during startup: {e}")
        logger.info("Application will continue - the assistant will answer with fallback replies")

    logger.info("Application startup completed successfully")

    yield

    # Shutdown
    logger.info("Shutting down Beta Car Hire API...")


# Create FastAPI application
app = FastAPI(
    title=config.application.app_name,
    description=config.application.app_description,
    version=config.application.app_version,
    lifespan=lifespan,
)

# Cookies carry the session, so origins must be explicit
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.application.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    start_time = time.time()

    logger.info(f"Request: {request.method} {request.url.path}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(f"Response: {response.status_code} - {process_time:.3f}s")

    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP exception handler."""
    logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}")

    error_response = create_error_response(
        message=str(exc.detail),
        status_code=exc.status_code,
        errors=[str(exc.detail)],
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode='json'),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request body validation handler."""
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else error.get("msg", "Invalid value"))

    logger.warning(f"Validation failed for {request.method} {request.url.path}: {errors}")

    error_response = create_error_response(
        message="Validation error",
        status_code=400,
        errors=errors,
    )

    return JSONResponse(
        status_code=400,
        content=error_response.model_dump(mode='json')
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    error_response = create_error_response(
        message="Internal server error",
        status_code=500,
    )

    return JSONResponse(
        status_code=500,
        content=error_response.model_dump(mode='json')
    )


# Health check endpoint
@app.get("/health", response_model=StandardResponse)
def health_check():
    """Application health check."""
    with ResponseTimer() as timer:
        health_data = {
            "status": "healthy",
            "version": config.application.app_version,
            "environment": config.application.environment,
            "database": "connected" if check_database_connection() else "unavailable",
            "ai_client": "initialized" if is_client_initialized() else "not initialized",
        }

    return create_success_response(
        data=health_data,
        status_code=200,
        execution_time=timer.get_execution_time()
    )


# Include API routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(auth.profile_router, prefix="/api", tags=["Authentication"])
app.include_router(fleet.router, prefix="/api/fleet", tags=["Fleet"])
app.include_router(bookings.router, prefix="/api/bookings", tags=["Bookings"])
app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
app.include_router(aichat.router, prefix="/api/aichat", tags=["AI Chat"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "beta_car_hire.main:app",
        host=config.application.api_host,
        port=config.application.api_port,
        reload=config.application.debug,
        log_level=config.application.log_level.lower()
    )
