# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Infrastructure - FastAPI health check endpoints
# PURPOSE: Load balancer and Kubernetes probe endpoints
# CREATED: 15 OCT 2026
# ============================================================================
"""
Health Check Router

Unauthenticated endpoints for load balancers and Kubernetes probes:

    GET /              - Liveness (also /index.html, /index.htm)
    GET /health        - Liveness
    GET /healthcheck   - Liveness

No external checks: a slow orchestrator must not take the gateway out of
rotation. The authenticated {api_root}/health lives in gateway.routes.
"""

import logging

from fastapi import APIRouter

from __version__ import __version__, BUILD_DATE

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])


def _status() -> dict:
    return {"status": "healthy", "version": __version__, "build_date": BUILD_DATE}


@health_router.get("/")
@health_router.get("/index.html", include_in_schema=False)
@health_router.get("/index.htm", include_in_schema=False)
async def root_health():
    """Root liveness check."""
    return _status()


@health_router.get("/health")
@health_router.get("/healthcheck")
async def health_check():
    """Liveness check; returns 200 while the process serves requests."""
    return _status()


__all__ = ["health_router"]
