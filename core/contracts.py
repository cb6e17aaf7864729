# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Foundation - Core enums shared by gateway and CLI
# PURPOSE: Submission states, orchestrator resource kinds, application types
# LAST_REVIEWED: 12 OCT 2026
# EXPORTS: SubmissionState, ResourceKind, ApplicationType, TERMINAL_STATES
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the Spark submission gateway.

These values cross three boundaries:
- Kubernetes (SparkApplication status written by the Spark operator)
- HTTP (gateway wire protocol)
- CLI (terminal-state detection while waiting for completion)
"""

from enum import Enum
from typing import Optional


# ============================================================================
# STATUS ENUMS
# ============================================================================

class SubmissionState(str, Enum):
    """
    SparkApplication lifecycle states as reported by the Spark operator.

    State transitions:
        NEW -> SUBMITTED -> RUNNING -> SUCCEEDING -> COMPLETED
                                    -> FAILING    -> FAILED
            -> SUBMISSION_FAILED
        FAILED -> PENDING_RERUN -> SUBMITTED (when failure retries remain)
    """
    NEW = "NEW"
    SUBMITTED = "SUBMITTED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    PENDING_RERUN = "PENDING_RERUN"
    INVALIDATING = "INVALIDATING"
    SUCCEEDING = "SUCCEEDING"
    FAILING = "FAILING"
    UNKNOWN = "UNKNOWN"

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return is_terminal_state(self.value)

    @classmethod
    def parse(cls, value: Optional[str]) -> "SubmissionState":
        """Parse an operator state string; empty or unrecognized is UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN


# States the CLI stops waiting on. Compared case-insensitively because
# operators and older gateways report a few non-enum spellings.
TERMINAL_STATES = frozenset({
    "COMPLETED",
    "FAILED",
    "SUBMISSION_FAILED",
    "SUCCESS",
    "SUCCEEDED",
    "CANCELLED",
})


def is_terminal_state(state: Optional[str]) -> bool:
    """Case-insensitive terminal state check for raw state strings."""
    if not state:
        return False
    return state.upper() in TERMINAL_STATES


# ============================================================================
# RESOURCE KINDS
# ============================================================================

class ResourceKind(str, Enum):
    """Orchestrator resource kinds the gateway creates or tears down."""
    SPARK_APPLICATION = "SparkApplication"
    POD = "Pod"
    SERVICE = "Service"


class ApplicationType(str, Enum):
    """Spark application language type."""
    JAVA = "Java"
    SCALA = "Scala"
    PYTHON = "Python"
    R = "R"


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "SubmissionState",
    "TERMINAL_STATES",
    "is_terminal_state",
    "ResourceKind",
    "ApplicationType",
]
