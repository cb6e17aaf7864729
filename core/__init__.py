# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# LAST_REVIEWED: 13 OCT 2026
# ============================================================================

from core.contracts import ApplicationType, ResourceKind, SubmissionState
from core.errors import (
    GatewayError,
    ClusterUnavailableError,
    ResourceNotFoundError,
    SubmissionConflictError,
    SubmissionValidationError,
    ClusterRejectedError,
    StorageUploadError,
    TeardownTimeoutError,
)
from core.models import SparkApplicationSpec, SubmissionRequest, Submission

__all__ = [
    # Enums
    "ApplicationType",
    "ResourceKind",
    "SubmissionState",
    # Errors
    "GatewayError",
    "ClusterUnavailableError",
    "ResourceNotFoundError",
    "SubmissionConflictError",
    "SubmissionValidationError",
    "ClusterRejectedError",
    "StorageUploadError",
    "TeardownTimeoutError",
    # Models
    "SparkApplicationSpec",
    "SubmissionRequest",
    "Submission",
]
