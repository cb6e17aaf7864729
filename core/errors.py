# ============================================================================
# GATEWAY ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Typed failures that carry their HTTP status
# CREATED: 12 OCT 2026
# ============================================================================
"""
Gateway Errors

Every failure the submission services raise is a GatewayError subclass.
The HTTP layer renders them as {"message": ...} with status_code.

    ClusterUnavailableError   500  orchestrator unreachable or indeterminate
    ResourceNotFoundError     404  resource does not exist
    SubmissionConflictError   400  id exists and overwrite not requested
    SubmissionValidationError 400  request cannot be turned into a resource
    ClusterRejectedError      500  orchestrator refused a create/delete
    StorageUploadError        500  object storage upload failed
    TeardownTimeoutError      500  resource still present after max wait

Not-found is a normal outcome for existence checks; callers catch it.
Teardown timeouts are logged and swallowed by the reconciler.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for failures surfaced by the gateway."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ClusterUnavailableError(GatewayError):
    """Transport or server failure talking to the orchestrator API."""
    status_code = 500


class ResourceNotFoundError(GatewayError):
    """The named resource does not exist."""
    status_code = 404

    def __init__(self, kind: str, name: str, namespace: Optional[str] = None):
        where = f" in namespace {namespace}" if namespace else ""
        super().__init__(f"{kind} {name} not found{where}")
        self.kind = kind
        self.name = name
        self.namespace = namespace


class SubmissionConflictError(GatewayError):
    """A submission with the same id exists and overwrite was not requested."""
    status_code = 400


class SubmissionValidationError(GatewayError):
    """The request cannot be turned into a valid SparkApplication."""
    status_code = 400


class ClusterRejectedError(GatewayError):
    """The orchestrator refused a create or delete."""
    status_code = 500


class StorageUploadError(GatewayError):
    """Uploading to object storage failed."""
    status_code = 500


class TeardownTimeoutError(GatewayError):
    """A deleted resource was still visible after the teardown deadline."""
    status_code = 500


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "GatewayError",
    "ClusterUnavailableError",
    "ResourceNotFoundError",
    "SubmissionConflictError",
    "SubmissionValidationError",
    "ClusterRejectedError",
    "StorageUploadError",
    "TeardownTimeoutError",
]
