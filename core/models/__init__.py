# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Model exports
# PURPOSE: Central export point for submission models
# LAST_REVIEWED: 13 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models shared by the gateway services and HTTP layer.
"""

from core.models.submission import (
    RoleSpec,
    DriverSpec,
    ExecutorSpec,
    SparkApplicationSpec,
    SubmissionRequest,
    Submission,
)

__all__ = [
    "RoleSpec",
    "DriverSpec",
    "ExecutorSpec",
    "SparkApplicationSpec",
    "SubmissionRequest",
    "Submission",
]
