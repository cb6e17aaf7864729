# ============================================================================
# SPARK SUBMISSION GATEWAY - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Core - FastAPI application entry point
# PURPOSE: Wire configuration, orchestrator, storage and routes
# CREATED: 15 OCT 2026
# ============================================================================
"""
Spark Submission Gateway Main Application

FastAPI application that:
1. Loads configuration from the environment and GATEWAY_CONFIG_FILE
2. Connects to the Kubernetes API for the SparkApplication namespace
3. Serves the submission API under {url_prefix}/v1

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8080
    python main.py
    spark-gateway
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import get_defaults
from core.errors import GatewayError
from core.logging import configure_logging, get_logger
from gateway.auth import build_authenticator, set_auth_handler
from gateway.config import GatewayConfig, get_config, load_extra_config
from gateway.routes import router, set_gateway_services
from health import health_router
from infrastructure.kubernetes import KubernetesCluster, OrchestratorClient
from infrastructure.locking import SubmissionLockRegistry
from infrastructure.storage import ArtifactUploader, BlobRepository
from services.submission_service import SubmissionService
from services.teardown import TeardownExecutor

_startup_config = get_config()
configure_logging(level=_startup_config.log_level, json_output=_startup_config.log_json)
logger = get_logger(__name__)


# ============================================================================
# ERROR RENDERING
# ============================================================================

def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        msg = error.get("msg", "invalid value")
        cause = (error.get("ctx") or {}).get("error")
        if cause:
            msg = f"{msg}: {cause}"
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def install_exception_handlers(app: FastAPI) -> None:
    """Render every error as {"message": ...}."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": f"Bad json request: {_format_validation_errors(exc)}"},
        )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": f"Internal error: {exc}"})


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def _build_uploader(config: GatewayConfig) -> Optional[ArtifactUploader]:
    if not config.has_storage_config:
        logger.warning("Object storage not configured, /s3/upload will return 500")
        return None
    repository = BlobRepository(
        account_name=config.storage_account,
        connection_string=config.storage_connection_string,
    )
    return ArtifactUploader(repository, config.storage_container, config.storage_root)


def create_app(
    config: Optional[GatewayConfig] = None,
    cluster: Optional[OrchestratorClient] = None,
    uploader: Optional[ArtifactUploader] = None,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        config: Gateway config (default from environment)
        cluster: Orchestrator adapter (default: connect with kubernetes_asyncio)
        uploader: Upload target (default: Azure Blob when configured)

    Returns:
        FastAPI application
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Initializes services on startup, closes the orchestrator client on shutdown.
        """
        logger.info(
            f"Starting Spark Submission Gateway v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})"
        )

        extra = load_extra_config(config.config_file)
        set_auth_handler(
            build_authenticator(config.user_name, config.user_password, extra.users)
        )

        active_cluster = cluster
        owns_cluster = active_cluster is None
        if owns_cluster:
            active_cluster = await KubernetesCluster.connect(
                namespace=config.namespace, kubeconfig=config.kubeconfig
            )
        logger.info(f"SparkApplication namespace: {active_cluster.namespace}")

        defaults = get_defaults()
        service = SubmissionService(
            active_cluster,
            extra.submission,
            teardown=TeardownExecutor(active_cluster, defaults.teardown, defaults.submission),
            locks=SubmissionLockRegistry(),
            naming=defaults.submission,
            spark_ui_modify_redirect_url=config.spark_ui_modify_redirect_url,
        )
        set_gateway_services(
            submission_service=service,
            uploader=uploader if uploader is not None else _build_uploader(config),
        )
        logger.info(f"Submission API ready under {config.api_root}")

        yield

        logger.info("Shutting down Spark Submission Gateway")
        if owns_cluster:
            await active_cluster.close()

    app = FastAPI(
        title="Spark Submission Gateway",
        description="Submit, monitor and delete Spark applications on Kubernetes",
        version=__version__,
        lifespan=lifespan,
    )
    install_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(router, prefix=config.api_root)

    return app


app = create_app()


def run() -> None:
    """Serve the gateway with uvicorn (spark-gateway console script)."""
    import uvicorn

    config = get_config()
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    run()
