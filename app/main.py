"""
FastAPI application entry point.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.middleware.logging import RequestLoggingMiddleware
from app.api import auth, errors, notifications
from app.utils.logging import setup_logging, get_logger

# Configure structured logging
setup_logging(settings.log_level)

logger = get_logger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Error Tracker",
    description="Dashboard API for logging and triaging application errors",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Error Tracker API",
        "version": "0.1.0",
        "docs": "/docs"
    }


# Include API routers
app.include_router(auth.router)
app.include_router(errors.router)
app.include_router(notifications.router)


@app.on_event("startup")
async def startup_event():
    """Load the error list once so the first page has data."""
    logger.info("Starting Error Tracker API")

    from app.api.dependencies import error_repository
    records = await error_repository.list()
    logger.info(f"Initial error list loaded: {len(records)} records")


@app.on_event("shutdown")
async def shutdown_event():
    """Close backend clients on application shutdown."""
    logger.info("Shutting down Error Tracker API")

    from app.api.dependencies import auth_client, record_store
    await record_store.close()
    await auth_client.close()
    logger.info("Backend clients closed")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
