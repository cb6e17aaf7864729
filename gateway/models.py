# ============================================================================
# GATEWAY MODELS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Gateway - Request/Response models for the submission API
# PURPOSE: Pydantic models for the gateway wire protocol
# CREATED: 14 OCT 2026
# ============================================================================
"""
Gateway Models

Pydantic response models for the submission API. Field names are
camelCase on the wire; optional fields are omitted when empty
(routes use response_model_exclude_none=True).

The request body is core.models.SubmissionRequest.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SubmissionResponse(BaseModel):
    """Response for POST /submissions[/{id}]."""

    submissionId: str = Field(..., description="Id of the created submission")


class SubmissionStatusResponse(BaseModel):
    """Response for GET /submissions/{id}/status."""

    submissionId: str
    state: str = Field(..., description="Operator state, UNKNOWN when not yet reported")
    applicationMessage: Optional[str] = Field(
        default=None, description="Operator error message, if any"
    )
    sparkUI: Optional[str] = Field(
        default=None, description="Spark UI URL, only while RUNNING"
    )
    recentAppId: Optional[str] = Field(
        default=None, description="Most recent spark-application id"
    )


class SubmissionSummary(BaseModel):
    """One row of GET /submissions."""

    submissionId: str
    applicationName: Optional[str] = None
    state: str
    recentAppId: Optional[str] = ""


class ListSubmissionsResponse(BaseModel):
    """Response for GET /submissions."""

    items: List[SubmissionSummary] = Field(default_factory=list)


class DeleteSubmissionResponse(BaseModel):
    """Response for DELETE /submissions/{id}."""

    submissionId: str
    message: str


class KillSubmissionResponse(BaseModel):
    """Response for POST /submissions/{id}/kill."""

    submissionId: str
    message: str


class UploadFileResponse(BaseModel):
    """Response for POST /s3/upload."""

    url: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "SubmissionResponse",
    "SubmissionStatusResponse",
    "SubmissionSummary",
    "ListSubmissionsResponse",
    "DeleteSubmissionResponse",
    "KillSubmissionResponse",
    "UploadFileResponse",
    "HealthResponse",
]
