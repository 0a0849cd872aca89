"""
Payroll Journal Engine - FastAPI Application Entry Point

This is the main entry point for the FastAPI application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import settings
from app.utils.error_handling import setup_exception_handlers
from app.routers import payroll_journals
from app.services.payroll_engine import default_lookup

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.app_env}")
    logger.info(
        f"Realms: charity {settings.charity_realm_id}, enterprises {settings.enterprises_realm_id}"
    )
    logger.info(f"Journal limits: {default_lookup().as_dict()}")

    yield

    logger.info(f"Shutting down {settings.app_name}...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Allocates payroll costs across accounting classes and builds balanced ledger journals",
    version="0.1.0",
    docs_url="/api/docs" if settings.is_development else None,
    redoc_url="/api/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

# Register exception handlers
setup_exception_handlers(app)

API_PREFIX = f"/api/{settings.api_version}"


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "environment": settings.app_env,
    }


@app.get(API_PREFIX)
async def api_root():
    """API root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name} API {settings.api_version}",
        "endpoints": {
            "journals": f"{API_PREFIX}/payroll/journals/preview",
            "allocations": f"{API_PREFIX}/payroll/allocations/split",
            "doc_number": f"{API_PREFIX}/payroll/doc-number",
            "payroll_date": f"{API_PREFIX}/payroll/payroll-date",
        },
    }


app.include_router(payroll_journals.router, prefix=f"{API_PREFIX}/payroll", tags=["Payroll Journals"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
