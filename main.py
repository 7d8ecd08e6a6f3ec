"""
Main FastAPI application entry point.
"""
import uvicorn
import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from routers import calendar, schedule
from config.settings import settings
from service.errors import NotFoundError

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize the FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Conflict-aware scheduling of intervention sessions across weekly grids and intervention cycles.",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# pydantic error type -> wording for numeric bounds
BOUND_WORDING = {
    "greater_than": "greater than",
    "greater_than_equal": "at least",
    "less_than": "less than",
    "less_than_equal": "at most",
}


def _field_label(loc) -> str:
    """("body", "options", "preferred_time") -> "Options -> Preferred Time"."""
    parts = list(loc)
    if len(parts) > 1 and parts[0] in ("body", "query"):
        parts = parts[1:]
    return " -> ".join(str(p) for p in parts).replace("_", " ").title()


def _friendly_message(field_name: str, error: dict) -> str:
    error_type = error.get("type", "")

    if error_type == "missing":
        return f"{field_name} is required."
    if error_type == "string_pattern_mismatch":
        return f"{field_name} must be in HH:MM format (e.g., '09:30')."
    if error_type.startswith("date"):
        return f"{field_name} must be a date in YYYY-MM-DD format."
    if error_type in BOUND_WORDING:
        limit = next(iter(error.get("ctx", {}).values()), "the allowed limit")
        return f"{field_name} must be {BOUND_WORDING[error_type]} {limit}."

    # literal_error, model validator value_error and the rest keep pydantic's text
    return f"{field_name}: {error.get('msg', 'Invalid value')}"


# Custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert FastAPI validation errors to human-friendly format.

    Expected format:
    {
        "errors": {
            "Options -> Preferred Time": ["Options -> Preferred Time must be in HH:MM format (e.g., '09:30')."]
        }
    }
    """
    errors = {}
    for error in exc.errors():
        field_name = _field_label(error.get("loc", []))
        errors.setdefault(field_name, []).append(_friendly_message(field_name, error))

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"errors": errors}
    )


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError):
    """Unknown group, cycle or interventionist ids surface as 404 in the same error format."""
    logger.info(str(exc))
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"errors": {exc.entity: [str(exc)]}}
    )

# Include routers
app.include_router(schedule.router, prefix="/api/v1", tags=["scheduling"])
app.include_router(calendar.router, prefix="/api/v1", tags=["calendar"])

@app.get("/", tags=["health"])
async def root():
    """Root endpoint - API health check."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "healthy",
        "docs": "/docs"
    }

@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}

if __name__ == "__main__":
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload
    )
