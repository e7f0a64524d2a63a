"""
MedIntake API Service - FastAPI Application.

Serves the medical file ingestion endpoint plus liveness and readiness probes.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator, Awaitable, Callable

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from api.config import get_settings
from api.logic.forwarder import close_forwarder, init_forwarder
from api.middleware.error_handler import setup_error_handlers
from api.routes import health, ingest
from medintake_lib.db.connection import close_db, get_db_manager, init_db
from medintake_lib.db.minio import close_minio, get_minio, init_minio
from medintake_lib.helpers.auth import init_jwt_validator
from medintake_lib.helpers.readiness_probe import (
    HealthCheckResult,
    HealthStatus,
    get_readiness_probe,
)

if TYPE_CHECKING:
    from api.config import Settings

load_dotenv()

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format=_settings.log_format,
)
logger = logging.getLogger(__name__)

# python-multipart logs every skipped byte range at DEBUG
logging.getLogger("python_multipart").setLevel(logging.WARNING)

RECONNECT_INTERVAL = 30.0


async def _check_database() -> HealthCheckResult:
    """Run a trivial query against the timeline database."""
    try:
        async with get_db_manager().session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        return HealthCheckResult.failed("database", str(e))
    return HealthCheckResult(name="database", status=HealthStatus.HEALTHY, message="Connected")


async def _check_minio() -> HealthCheckResult:
    """Confirm the artifact bucket is reachable."""
    bucket = get_settings().minio_bucket
    try:
        exists = await get_minio().bucket_exists(bucket)
    except Exception as e:
        return HealthCheckResult.failed("minio", str(e))
    if not exists:
        return HealthCheckResult.failed("minio", f"Bucket '{bucket}' does not exist")
    return HealthCheckResult(name="minio", status=HealthStatus.HEALTHY, message="Connected")


async def _connect_database(settings: Settings) -> None:
    await init_db(settings.database_url, echo=settings.database_echo)


async def _connect_minio(settings: Settings) -> None:
    minio = await init_minio(
        endpoint=settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )
    await minio.create_bucket(settings.minio_bucket)


async def _keep_trying(name: str, connect: Callable[[], Awaitable[None]]) -> None:
    """Retry a failed startup connection until it succeeds."""
    while True:
        await asyncio.sleep(RECONNECT_INTERVAL)
        try:
            await connect()
        except Exception as e:
            logger.warning(f"⚠️ {name} reconnection attempt failed: {e}")
            continue
        logger.info(f"✅ {name} reconnected successfully")
        return


async def _connect_or_schedule_retry(
    name: str,
    connect: Callable[[], Awaitable[None]],
    retry_tasks: list[asyncio.Task[None]],
) -> None:
    """
    Connect a backing service without blocking startup.

    On failure the app still starts (readiness reports the dependency as
    unhealthy) and a background task keeps retrying.
    """
    try:
        await connect()
    except Exception as e:
        logger.warning(f"⚠️ {name} initialization failed: {e}")
        logger.info(f"🔄 Will retry {name} connection in background...")
        retry_tasks.append(
            asyncio.create_task(_keep_trying(name, connect), name=f"reconnect-{name}")
        )
        return
    logger.info(f"✅ {name} connected successfully")


def _init_forwarder(settings: Settings) -> None:
    secret = settings.wrapper_secret
    init_forwarder(
        url=settings.wrapper_url,
        secret=secret.get_secret_value() if secret else None,
        timeout=settings.wrapper_timeout,
        min_artifact_bytes=settings.min_artifact_bytes,
    )
    if secret is None:
        logger.warning("⚠️ MEDXERN_WRAPPER_SECRET is not set; ingestion requests will fail")
    else:
        logger.info(f"✅ Conversion forwarder ready ({settings.wrapper_url})")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Connects storage, database, token validation and the conversion client
    on startup and releases them on shutdown.
    """
    settings = get_settings()
    retry_tasks: list[asyncio.Task[None]] = []

    await _connect_or_schedule_retry(
        "Database", lambda: _connect_database(settings), retry_tasks
    )
    await _connect_or_schedule_retry(
        "MinIO", lambda: _connect_minio(settings), retry_tasks
    )

    init_jwt_validator(
        issuer=settings.auth_issuer,
        audience=settings.auth_audience,
        jwks_url=settings.auth_jwks_url,
        secret=settings.auth_secret,
    )
    logger.info("✅ JWT validator initialized successfully")

    _init_forwarder(settings)

    probe = get_readiness_probe()
    probe.timeout = settings.health_check_timeout
    probe.register("database", _check_database)
    probe.register("minio", _check_minio)

    yield

    for task in retry_tasks:
        task.cancel()
    await asyncio.gather(*retry_tasks, return_exceptions=True)

    await close_forwarder()
    close_minio()
    await close_db()
    logger.info("👋 MedIntake API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="MedIntake API",
        description="Converts uploaded medical files into a stored PDF summary",
        version="0.1.0",
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
        lifespan=lifespan,
    )

    setup_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])  # Root level for /health
    app.include_router(health.router, prefix="/api/v1", tags=["Health"])
    app.include_router(ingest.router, tags=["Ingestion"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.reload,
    )
