# ============================================================================
# SUBMISSION VALIDATION
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Service - Pre-create validation of SparkApplication specs
# PURPOSE: Reject specs the orchestrator cannot schedule
# CREATED: 13 OCT 2026
# ============================================================================
"""
Submission Validation

Cheap checks run after defaults are applied and before the create call.
All errors are collected so the caller sees every problem at once.

Rules:
  - sparkVersion must be set
  - driver and executor service accounts must be set
  - an image must be resolvable: either the top-level image, or both the
    driver and the executor image
"""

from dataclasses import dataclass, field
from typing import List

from core.errors import SubmissionValidationError
from core.models import SparkApplicationSpec


@dataclass
class ValidationResult:
    """Outcome of validate_spec(); errors are human-readable."""
    valid: bool
    errors: List[str] = field(default_factory=list)

    def raise_if_invalid(self) -> None:
        """Raise SubmissionValidationError joining all errors."""
        if not self.valid:
            raise SubmissionValidationError("; ".join(self.errors))


def has_image(spec: SparkApplicationSpec) -> bool:
    """True when a pod image can be derived for both roles."""
    if spec.image:
        return True
    return bool(spec.driver.image) and bool(spec.executor.image)


def check_spec(spec: SparkApplicationSpec) -> ValidationResult:
    """Run all checks and collect errors."""
    errors: List[str] = []

    if not spec.spark_version:
        errors.append("Cannot submit Spark application due to empty Spark version")

    if not spec.driver.service_account or not spec.executor.service_account:
        errors.append(
            "Cannot submit Spark application due to empty service account"
        )

    if not has_image(spec):
        errors.append(
            "Cannot submit Spark application due to empty Spark image: "
            "set image, or both driver.image and executor.image"
        )

    return ValidationResult(valid=not errors, errors=errors)


def validate_spec(spec: SparkApplicationSpec) -> None:
    """
    Validate a fully defaulted spec.

    Raises:
        SubmissionValidationError: one or more checks failed
    """
    check_spec(spec).raise_if_invalid()


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ValidationResult",
    "has_image",
    "check_spec",
    "validate_spec",
]
