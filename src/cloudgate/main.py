"""CloudGate main application."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cloudgate.api import router
from cloudgate.api.deps import validate_auth_config
from cloudgate.api.router import API_VERSION
from cloudgate.config import settings
from cloudgate.db.base import close_db, init_db

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("cloudgate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting CloudGate server...")
    logger.info(f"Environment: {settings.env.value}")
    logger.info(f"External URL: {settings.external_url}")

    # Fail fast on insecure auth configuration
    validate_auth_config()

    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down CloudGate server...")
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title="CloudGate",
    description="Cloud controller API: deployments, audit events and role-based visibility",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)

app.include_router(router)


def main():
    """Entry point for the application."""
    uvicorn.run(
        "cloudgate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
