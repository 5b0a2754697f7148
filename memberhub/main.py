"""
MemberHub - Community membership backend

FastAPI application entry point.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Import observability modules
from memberhub.config import settings
from memberhub.logging_config import configure_logging
from memberhub.sentry_config import configure_sentry
from memberhub.middleware.logging import LoggingMiddleware
from memberhub.routes.metrics import router as metrics_router

# Import route modules
from memberhub.routes.webhooks import router as webhooks_router
from memberhub.routes.admin import router as admin_router

# Initialize logging first
configure_logging()

# Initialize Sentry (if SENTRY_DSN is set)
configure_sentry()

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Community membership backend: payment webhook fulfillment and access management",
)

# Add logging middleware FIRST (runs before other middleware)
app.add_middleware(LoggingMiddleware)

# Add CORS middleware for the admin frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include metrics endpoint FIRST (so it's always available)
app.include_router(metrics_router)

# Include payment webhook routes
app.include_router(webhooks_router)

# Include admin routes
app.include_router(admin_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected"
    }
