# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Core - Business logic layer
# PURPOSE: Submission lifecycle, teardown, image resolution, validation
# CREATED: 13 OCT 2026
# ============================================================================
"""
Services Module

Business logic for the submission gateway.
Services coordinate between the orchestrator adapter and the HTTP layer.

Usage:
    from services import SubmissionService

    service = SubmissionService(cluster, submission_config)
    submission_id = await service.reconcile("app-1", request, overwrite=False)
"""

from .image_resolver import SparkImage, SubmissionConfig, find_image, merge_defaults
from .validator import validate_spec
from .teardown import TeardownExecutor
from .submission_service import SubmissionService

__all__ = [
    "SparkImage",
    "SubmissionConfig",
    "find_image",
    "merge_defaults",
    "validate_spec",
    "TeardownExecutor",
    "SubmissionService",
]
