# FastAPI Application Entry Point
from fastapi import FastAPI
import httpx

# Configuration and Observability
from fireguide_dashboard.app.config import settings
from fireguide_dashboard.app.observability import setup_opentelemetry, logger

# Initialize OpenTelemetry
setup_opentelemetry(service_name=settings.SERVICE_NAME_API)

# Import instrumentors after OTel SDK is initialized
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from fireguide_dashboard.app.service.session import SessionRegistry

# API Routers
from fireguide_dashboard.app.api.v1.endpoints import health as health_router
from fireguide_dashboard.app.api.v1.endpoints import sessions as sessions_router
from fireguide_dashboard.app.api.v1.endpoints import verification as verification_router
from fireguide_dashboard.app.api.v1.endpoints import notifications as notifications_router

# --- FastAPI Application Instance ---
app = FastAPI(
    title="FireGuide Dashboard Sync Service",
    description="Aggregates verification status and notification feeds for the professional dashboard.",
    version="0.1.0"
)

# Available before startup runs so dependencies resolve in every context.
app.state.session_registry = SessionRegistry()

@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI application startup...")
    app.state.http_client = httpx.AsyncClient(timeout=settings.DEFAULT_HTTP_TIMEOUT)
    HTTPXClientInstrumentor().instrument()
    logger.info(f"HTTPX AsyncClient initialized with timeout {settings.DEFAULT_HTTP_TIMEOUT} and instrumented.")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI application shutdown...")

    app.state.session_registry.close_all()
    logger.info("Dashboard sessions closed and caches discarded.")

    if hasattr(app.state, 'http_client') and app.state.http_client:
        await app.state.http_client.aclose()
        logger.info("HTTPX AsyncClient closed.")

FastAPIInstrumentor.instrument_app(app)
logger.info("FastAPI instrumentation complete.")

# Include API Routers
app.include_router(health_router.router)
app.include_router(sessions_router.router, prefix="/api/v1/sessions", tags=["Sessions"])
app.include_router(verification_router.router, prefix="/api/v1/verification", tags=["Verification"])
app.include_router(notifications_router.router, prefix="/api/v1/notifications", tags=["Notifications"])

logger.info("API routers included. Application setup complete.")

# To run: uvicorn fireguide_dashboard.app.main:app --reload --port 8000
