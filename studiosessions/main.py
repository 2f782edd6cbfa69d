#!/usr/bin/env python3
"""
Studio Sessions API entry point.

Wires configuration, logging, the session store and the auth stack into a
FastAPI app. Request handling lives in modules.session and modules.api.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse

from studiosessions import __version__
from studiosessions.config.provider import ConfigProvider, EnvConfigProvider
from studiosessions.logging_config import get_logging_config
from studiosessions.modules.api.routes import create_sessions_router
from studiosessions.modules.auth import AuthenticationService, AuthFactory
from studiosessions.modules.config import get_config
from studiosessions.modules.session import SessionModule
from studiosessions.modules.storage import QueryExecutor

config = get_config()
log_config.dictConfig(get_logging_config(config.get("log_level")))
logger = logging.getLogger(__name__)

config_provider: ConfigProvider = EnvConfigProvider()

# Populated by lifespan; None until startup completes
auth_service: Optional[AuthenticationService] = None
session_module: Optional[SessionModule] = None
query_executor: Optional[QueryExecutor] = None
redis_client: Optional[redis.Redis] = None

NOT_READY = "Service not initialized"


async def get_redis_client() -> Optional[redis.Redis]:
    """Audit-trail Redis client, or None when REDIS_HOST is unset."""
    host = config.get("redis_host")
    if not host:
        return None

    return redis.from_url(
        f"redis://{host}:{config.get('redis_port')}/{config.get('redis_db')}",
        # Kept out of the URL so special characters need no escaping
        password=config.get("redis_password"),
        encoding="utf-8",
        decode_responses=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store and build modules on startup; release them on shutdown."""
    global auth_service, session_module, query_executor, redis_client

    logger.info(f"Starting Studio Sessions API {__version__}")

    query_executor = QueryExecutor.from_url(
        config.get("database_url"), echo=config.get("database_echo", False)
    )
    if config.get("create_schema"):
        query_executor.create_schema()
        logger.info("Database schema ensured")

    redis_client = await get_redis_client()
    logger.info(f"Auth audit trail: {'redis' if redis_client else 'disabled'}")

    auth_service = AuthFactory.build(config_provider, redis_client)
    session_module = SessionModule(
        query_executor,
        notes_policy=config.get("session_end_notes_policy"),
    )
    logger.info(f"Sessions ready (notes policy on end: {session_module.notes_policy})")

    yield

    logger.info("Stopping Studio Sessions API")
    if redis_client:
        await redis_client.close()
    query_executor.dispose()


app = FastAPI(
    title="Studio Sessions API",
    description="Recording studio session tracking",
    version=__version__,
    lifespan=lifespan,
)


async def verify_dual_auth(
    x_api_key: Optional[str] = Header(None, description="Service API key"),
    authorization: Optional[str] = Header(None, description="Bearer <JWT>"),
) -> Tuple[Optional[str], Optional[str]]:
    """
    Reject the request unless it carries a valid API key or bearer token.

    Returns:
        Tuple of (identity, auth_method)
    """
    if not auth_service:
        raise HTTPException(503, NOT_READY)

    result = await auth_service.authenticate(api_key=x_api_key, authorization=authorization)
    if result.ok:
        return result.identity, result.method

    raise HTTPException(
        status_code=401,
        detail=f"Authentication failed: {result.error}",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_session_module() -> SessionModule:
    if not session_module:
        raise HTTPException(503, NOT_READY)
    return session_module


app.include_router(
    create_sessions_router(get_session_module, verify_dual_auth),
    prefix="/api/sessions",
)


@app.get("/healthz")
async def healthz():
    """Liveness probe. Unauthenticated and dependency-free."""
    return {"status": "ok"}


async def _redis_status() -> str:
    if not redis_client:
        return "disabled"
    try:
        await redis_client.ping()
        return "connected"
    except redis.RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        return "disconnected"


@app.get("/health")
async def health_check():
    """
    Readiness probe with dependency status.

    Returns:
        200: Database reachable and modules initialized
        503: Otherwise. Redis only backs the audit trail and does not count.
    """
    try:
        database_ok = bool(query_executor) and await query_executor.ping()
        modules_ready = auth_service is not None and session_module is not None
        body = {
            "database": "connected" if database_ok else "disconnected",
            "redis": await _redis_status(),
            "modules": "initialized" if modules_ready else "not initialized",
            "version": __version__,
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(e)})

    if database_ok and modules_ready:
        return {"status": "healthy", **body}
    return JSONResponse(status_code=503, content={"status": "unhealthy", **body})


@app.exception_handler(redis.ConnectionError)
async def redis_error_handler(request, exc):
    """Audit trail unreachable mid-request."""
    logger.error(f"Redis connection error: {exc}")
    return JSONResponse(status_code=503, content={"error": "Audit store connection failed"})


@app.exception_handler(ValueError)
async def value_error_handler(request, exc):
    logger.error(f"Invalid value: {exc}")
    return JSONResponse(status_code=400, content={"error": str(exc)})


if __name__ == "__main__":
    uvicorn.run(
        "studiosessions.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )
