# ============================================================================
# SUBMISSION MODELS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Core model - SparkApplication spec and observed submission
# PURPOSE: Pydantic models for the submission request and resource view
# CREATED: 13 OCT 2026
# EXPORTS: DriverSpec, ExecutorSpec, SparkApplicationSpec, SubmissionRequest, Submission
# DEPENDENCIES: pydantic
# ============================================================================
"""
Submission Models

SparkApplicationSpec mirrors the Spark operator's v1beta2 spec with
camelCase wire names. Fields the operator knows but the gateway does not
touch (volumes, tolerations, monitoring, ...) are accepted as extras and
passed through to the resource untouched.

Submission is the read-side view of a SparkApplication object as returned
by the orchestrator API (plain dict from CustomObjectsApi).

Key Design:
- SubmissionRequest = SparkApplicationSpec + gateway-only fields
- to_resource_spec() drops the gateway-only fields
- Submission.from_resource() never raises on missing status blocks
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Set

from pydantic import BaseModel, Field

from core.contracts import SubmissionState


# ============================================================================
# SPEC MODELS
# ============================================================================

class RoleSpec(BaseModel):
    """Settings shared by the driver and executor roles."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    cores: Optional[int] = Field(default=None, ge=1, description="CPU cores")
    core_limit: Optional[str] = Field(default=None, alias="coreLimit")
    memory: Optional[str] = Field(default=None, description="Memory, e.g. 1g")
    memory_overhead: Optional[str] = Field(default=None, alias="memoryOverhead")
    image: Optional[str] = Field(default=None, description="Role-specific image")
    service_account: Optional[str] = Field(default=None, alias="serviceAccount")
    labels: Optional[Dict[str, str]] = None
    annotations: Optional[Dict[str, str]] = None
    env: Optional[List[Dict[str, Any]]] = None


class DriverSpec(RoleSpec):
    """Driver role settings."""


class ExecutorSpec(RoleSpec):
    """Executor role settings."""

    instances: Optional[int] = Field(default=None, ge=0)


class SparkApplicationSpec(BaseModel):
    """
    Desired state of a SparkApplication.

    Dumped with by_alias=True, exclude_none=True to build the resource.
    """

    model_config = {"populate_by_name": True, "extra": "allow"}

    type: Optional[str] = Field(
        default=None,
        description="Java, Scala, Python or R; inferred from mainClass when unset",
    )
    spark_version: Optional[str] = Field(default=None, alias="sparkVersion")
    mode: Optional[str] = Field(default=None, description="cluster or client")
    image: Optional[str] = Field(default=None, description="Spark container image")
    image_pull_policy: Optional[str] = Field(default=None, alias="imagePullPolicy")
    image_pull_secrets: Optional[List[str]] = Field(default=None, alias="imagePullSecrets")
    main_class: Optional[str] = Field(default=None, alias="mainClass")
    main_application_file: Optional[str] = Field(default=None, alias="mainApplicationFile")
    arguments: Optional[List[str]] = None
    spark_conf: Optional[Dict[str, str]] = Field(default=None, alias="sparkConf")
    hadoop_conf: Optional[Dict[str, str]] = Field(default=None, alias="hadoopConf")
    driver: DriverSpec = Field(default_factory=DriverSpec)
    executor: ExecutorSpec = Field(default_factory=ExecutorSpec)
    deps: Optional[Dict[str, Any]] = None
    restart_policy: Optional[Dict[str, Any]] = Field(default=None, alias="restartPolicy")
    failure_retries: Optional[int] = Field(default=None, alias="failureRetries", ge=0)
    python_version: Optional[str] = Field(default=None, alias="pythonVersion")
    time_to_live_seconds: Optional[int] = Field(default=None, alias="timeToLiveSeconds")

    def to_resource_spec(self) -> Dict[str, Any]:
        """Serialize to the operator's camelCase spec dict."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SubmissionRequest(SparkApplicationSpec):
    """
    Body of POST /submissions[/{id}].

    The operator spec inline, plus fields the gateway consumes itself.
    """

    GATEWAY_FIELDS: ClassVar[Set[str]] = {
        "submission_id",
        "overwrite",
        "application_name",
        "application_description",
        "desired_state",
    }

    submission_id: Optional[str] = Field(default=None, alias="submissionId")
    overwrite: Optional[bool] = None
    application_name: Optional[str] = Field(default=None, alias="applicationName")
    application_description: Optional[str] = Field(
        default=None, alias="applicationDescription"
    )
    desired_state: Optional[str] = Field(default=None, alias="desiredState")

    def to_resource_spec(self) -> Dict[str, Any]:
        """Serialize the operator part only."""
        return self.model_dump(
            by_alias=True, exclude_none=True, exclude=self.GATEWAY_FIELDS
        )


# ============================================================================
# OBSERVED SUBMISSION
# ============================================================================

class Submission(BaseModel):
    """
    Observed state of one SparkApplication.

    Built from the raw custom object; every status field is optional
    because the operator fills them in over time.
    """

    submission_id: str
    namespace: Optional[str] = None
    application_name: Optional[str] = None
    creation_timestamp: Optional[str] = None
    state: SubmissionState = SubmissionState.UNKNOWN
    raw_state: Optional[str] = None
    error_message: Optional[str] = None
    spark_application_id: Optional[str] = None
    driver_pod_name: Optional[str] = None
    executor_state: Dict[str, str] = Field(default_factory=dict)
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)

    @property
    def state_name(self) -> str:
        """State as reported on the wire (operator spelling, UNKNOWN when empty)."""
        return self.raw_state or SubmissionState.UNKNOWN.value

    @property
    def executor_pod_names(self) -> List[str]:
        """Executor pod names known to the operator."""
        return list(self.executor_state.keys())

    @classmethod
    def from_resource(
        cls,
        obj: Dict[str, Any],
        app_name_label: str = "appName",
        app_name_annotation: str = "sparkgateway/application-name",
    ) -> "Submission":
        """
        Create from a SparkApplication custom object dict.

        The application name is read from the annotation first because
        label values cannot hold arbitrary text.

        Args:
            obj: Object as returned by CustomObjectsApi
            app_name_label: Label holding the application name
            app_name_annotation: Annotation holding the application name

        Returns:
            Submission instance
        """
        metadata = obj.get("metadata") or {}
        status = obj.get("status") or {}
        app_state = status.get("applicationState") or {}
        driver_info = status.get("driverInfo") or {}
        labels = metadata.get("labels") or {}
        annotations = metadata.get("annotations") or {}

        created = metadata.get("creationTimestamp")
        if isinstance(created, datetime):
            created = created.isoformat()

        raw_state = app_state.get("state") or None
        return cls(
            submission_id=metadata.get("name", ""),
            namespace=metadata.get("namespace"),
            application_name=annotations.get(app_name_annotation) or labels.get(app_name_label),
            creation_timestamp=created,
            state=SubmissionState.parse(raw_state),
            raw_state=raw_state,
            error_message=app_state.get("errorMessage") or None,
            spark_application_id=status.get("sparkApplicationId") or None,
            driver_pod_name=driver_info.get("podName") or None,
            executor_state=dict(status.get("executorState") or {}),
            labels=dict(labels),
            annotations=dict(annotations),
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "RoleSpec",
    "DriverSpec",
    "ExecutorSpec",
    "SparkApplicationSpec",
    "SubmissionRequest",
    "Submission",
]
