# ============================================================================
# GATEWAY MODULE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Gateway - HTTP surface for Spark submissions
# PURPOSE: Routes, auth, wire models and configuration
# CREATED: 14 OCT 2026
# ============================================================================
"""
Gateway Module

HTTP surface of the submission gateway. Routes are mounted by main.py
under {url_prefix}/v1; every route passes through gateway.auth.
"""

from gateway.models import SubmissionResponse, SubmissionStatusResponse
from gateway.routes import router as gateway_router

__all__ = [
    "SubmissionResponse",
    "SubmissionStatusResponse",
    "gateway_router",
]
