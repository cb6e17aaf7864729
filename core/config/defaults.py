# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for teardown, submission and CLI polling
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides defaults for teardown polling, resource naming and CLI waits.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class TeardownDefaults:
    """
    Defaults for delete-and-confirm teardown.

    Each dependent resource gets its own max_wait budget.
    """
    max_wait_seconds: float = 30.0
    poll_interval_seconds: float = 0.1

    @classmethod
    def from_env(cls) -> "TeardownDefaults":
        """Create from environment variables."""
        return cls(
            max_wait_seconds=float(os.getenv("TEARDOWN_MAX_WAIT_SECONDS", 30.0)),
            poll_interval_seconds=float(os.getenv("TEARDOWN_POLL_INTERVAL_SECONDS", 0.1)),
        )


@dataclass(frozen=True)
class SubmissionDefaults:
    """
    Defaults for building SparkApplication resources.

    Resource naming follows the Spark operator's conventions.
    """
    crd_group: str = "sparkoperator.k8s.io"
    crd_version: str = "v1beta2"
    crd_plural: str = "sparkapplications"
    crd_kind: str = "SparkApplication"

    ui_port: str = "4040"
    ui_service_suffix: str = "-ui-svc"
    executor_pod_infix: str = "-exec-"
    id_prefix: str = "app-"

    list_limit: int = 100
    app_name_label: str = "appName"
    app_name_annotation: str = "sparkgateway/application-name"
    description_annotation: str = "sparkgateway/application-description"
    desired_state_annotation: str = "sparkgateway/desired-state"

    def ui_service_name(self, submission_id: str) -> str:
        """Name of the Spark UI service the operator creates."""
        return f"{submission_id}{self.ui_service_suffix}"

    def executor_pod_name(self, submission_id: str, index: int) -> str:
        """Name of executor pod N (pod name prefix is the submission id)."""
        return f"{submission_id}{self.executor_pod_infix}{index}"


@dataclass(frozen=True)
class ClientDefaults:
    """Defaults for the sparkcli client."""
    max_wait_seconds: int = 24 * 60 * 60
    status_poll_seconds: float = 10.0
    status_retry_seconds: float = 60.0
    status_retry_interval_seconds: float = 1.0
    request_timeout_seconds: float = 60.0
    credential_lock_wait_millis: int = 10_000

    @classmethod
    def from_env(cls) -> "ClientDefaults":
        """Create from environment variables."""
        return cls(
            status_poll_seconds=float(os.getenv("SPARKCLI_STATUS_POLL_SECONDS", 10.0)),
            request_timeout_seconds=float(os.getenv("SPARKCLI_REQUEST_TIMEOUT_SECONDS", 60.0)),
        )


@dataclass(frozen=True)
class Defaults:
    """All defaults in one object."""
    teardown: TeardownDefaults
    submission: SubmissionDefaults
    client: ClientDefaults


_defaults = None


def get_defaults() -> Defaults:
    """Get defaults singleton (environment read once)."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults(
            teardown=TeardownDefaults.from_env(),
            submission=SubmissionDefaults(),
            client=ClientDefaults.from_env(),
        )
    return _defaults


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "TeardownDefaults",
    "SubmissionDefaults",
    "ClientDefaults",
    "Defaults",
    "get_defaults",
]
