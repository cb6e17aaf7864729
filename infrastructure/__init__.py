# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Infrastructure - Orchestrator, storage and locking adapters
# PURPOSE: Kubernetes API access, Azure Blob uploads, per-id locks
# CREATED: 13 OCT 2026
# ============================================================================
"""
Infrastructure module for the submission gateway.

Provides:
- KubernetesCluster: SparkApplication / pod / service operations
- BlobRepository, ArtifactUploader: application file uploads
- SubmissionLockRegistry: per-submission locks inside one process

Usage:
    from infrastructure import KubernetesCluster, SubmissionLockRegistry

    cluster = await KubernetesCluster.connect(namespace="spark-01")
    locks = SubmissionLockRegistry()
"""

from infrastructure.kubernetes import KubernetesCluster, OrchestratorClient, PodLogStream
from infrastructure.locking import SubmissionLockRegistry
from infrastructure.storage import ArtifactUploader, BlobRepository, artifact_key

__all__ = [
    "KubernetesCluster",
    "OrchestratorClient",
    "PodLogStream",
    "SubmissionLockRegistry",
    "ArtifactUploader",
    "BlobRepository",
    "artifact_key",
]
