#!/usr/bin/env python3
"""
Weather Data API - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the API server

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weather_api import __version__
from weather_api.config.provider import ConfigProvider, EnvConfigProvider
from weather_api.logging_config import get_logging_config
from weather_api.modules.api.auth_routes import create_auth_router
from weather_api.modules.api.models import HealthResponse
from weather_api.modules.api.readings_routes import create_readings_router
from weather_api.modules.api.users_routes import create_users_router
from weather_api.modules.auth import ApiError, Authenticator, PasswordHasher
from weather_api.modules.readings import ReadingStore
from weather_api.modules.storage import StorageModule
from weather_api.modules.users import UserStore

logger = logging.getLogger(__name__)


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    redis_client: Optional[redis.Redis] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config_provider: Configuration source (environment by default)
        redis_client: Ready store client; when None one is created from
            the store configuration at startup

    Returns:
        Configured FastAPI application
    """
    config_provider = config_provider or EnvConfigProvider()
    api_config = config_provider.get_api_config()
    auth_config = config_provider.get_auth_config()
    readings_config = config_provider.get_readings_config()
    storage = StorageModule(config_provider.get_store_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - initialize and cleanup resources.
        """
        logger.info("Starting Weather API...")

        client = redis_client or await storage.connect()
        user_store = UserStore(client)

        app.state.redis_client = client
        app.state.user_store = user_store
        app.state.reading_store = ReadingStore(client)
        app.state.authenticator = Authenticator(
            user_store,
            PasswordHasher(rounds=auth_config.bcrypt_rounds),
            redis_client=client,
        )
        logger.info("Weather API started successfully")

        yield

        # Shutdown
        logger.info("Shutting down Weather API...")
        app.state.authenticator = None
        app.state.user_store = None
        app.state.reading_store = None
        app.state.redis_client = None
        await storage.disconnect()
        logger.info("Weather API shutdown complete")

    app = FastAPI(
        title="Weather Data API",
        description="Weather station readings with role-based access control",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.auth_header = auth_config.header_name

    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_auth_router())
    app.include_router(create_users_router())
    app.include_router(create_readings_router(readings_config))

    # Health/Monitoring Endpoints

    @app.get("/", tags=["Health"])
    async def root():
        return {"status": "Weather Data API running", "docs": "/docs"}

    @app.get("/healthz", tags=["Health"])
    async def healthz():
        """
        Minimal liveness endpoint. Unauthenticated, never touches the store.
        """
        return {"status": "ok"}

    @app.get("/health", tags=["Health"], response_model=HealthResponse)
    async def health_check(request: Request):
        """
        Health check including the store connection.

        Returns:
            200: Service healthy
            503: Store unreachable or modules not initialized
        """
        client = getattr(request.app.state, "redis_client", None)
        try:
            if client is None:
                redis_status = "disconnected"
            else:
                await client.ping()
                redis_status = "connected"
        except redis.RedisError as e:
            logger.error(f"Health check failed: {e}")
            redis_status = "disconnected"

        body = {"status": "healthy", "redis": redis_status, "version": __version__}
        if redis_status != "connected":
            body["status"] = "unhealthy"
            return JSONResponse(status_code=503, content=body)
        return body

    # Error handlers

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        """Render the error taxonomy as {"status", "message"}."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(redis.ConnectionError)
    async def redis_connection_error_handler(request: Request, exc: redis.ConnectionError):
        """Handle Redis connection errors that escaped a route."""
        logger.error(f"Redis connection error: {exc}")
        return JSONResponse(
            status_code=503,
            content={"status": 503, "message": "Database connection failed"},
        )

    @app.exception_handler(redis.RedisError)
    async def redis_error_handler(request: Request, exc: redis.RedisError):
        logger.error(f"Redis error: {exc}")
        return JSONResponse(status_code=500, content={"status": 500, "message": "Database error"})

    return app


# Configure logging with health check suppression
log_config.dictConfig(get_logging_config(EnvConfigProvider().get_api_config().log_level))

app = create_app()


def main():
    """Run the API with uvicorn."""
    api_config = EnvConfigProvider().get_api_config()
    uvicorn.run(
        "weather_api.main:app",
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        reload=api_config.debug,
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
