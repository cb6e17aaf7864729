# ============================================================================
# SUBMISSION SERVICE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Service - Submission lifecycle management
# PURPOSE: Create, overwrite, observe, delete and kill SparkApplications
# CREATED: 14 OCT 2026
# ============================================================================
"""
Submission Service

Owns the submission lifecycle on top of an OrchestratorClient.

reconcile(id, request, overwrite) runs strictly in this order:

    1. get existing SparkApplication       (transport error -> abort)
    2. exists and not overwrite            -> SubmissionConflictError
    3. build + validate the new resource   (nothing touched yet)
    4. exists and overwrite                -> teardown driver, executors,
                                              UI service, then the app
                                              (failures logged, never abort)
    5. create                              (refusal -> ClusterRejectedError)

Mutations of one id are serialized by SubmissionLockRegistry; different
ids run concurrently.
"""

import re
import uuid
from typing import Dict, List, Optional

from core.config import SubmissionDefaults
from core.contracts import ApplicationType, ResourceKind
from core.errors import (
    GatewayError,
    ResourceNotFoundError,
    SubmissionConflictError,
    SubmissionValidationError,
)
from core.logging import get_logger, log_checkpoint, log_context, ComponentType
from core.models import SparkApplicationSpec, Submission, SubmissionRequest
from infrastructure.kubernetes import OrchestratorClient, PodLogStream
from infrastructure.locking import SubmissionLockRegistry
from services.image_resolver import SubmissionConfig, find_image, merge_defaults
from services.teardown import TeardownExecutor
from services.validator import has_image, validate_spec

logger = get_logger(__name__, ComponentType.SERVICE)

_LABEL_VALUE = re.compile(r"^(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?$")


def is_valid_label_value(value: str) -> bool:
    """Kubernetes label value rules: <= 63 chars, alphanumeric ends."""
    return len(value) <= 63 and bool(_LABEL_VALUE.match(value))


class SubmissionService:
    """
    Submission lifecycle against one namespace.

    Usage:
        service = SubmissionService(cluster, submission_config)
        submission_id = await service.reconcile("app-1", request, overwrite=True,
                                                api_root="/sparkapi/v1")
    """

    def __init__(
        self,
        cluster: OrchestratorClient,
        submission_config: SubmissionConfig,
        teardown: Optional[TeardownExecutor] = None,
        locks: Optional[SubmissionLockRegistry] = None,
        naming: Optional[SubmissionDefaults] = None,
        spark_ui_modify_redirect_url: bool = False,
    ):
        """
        Initialize submission service.

        Args:
            cluster: Orchestrator adapter bound to the submission namespace
            submission_config: SubmissionConfig (images, defaults, service account)
            teardown: Teardown executor (default: one over cluster)
            locks: Per-id lock registry (default: a private one)
            naming: Resource naming defaults
            spark_ui_modify_redirect_url: Let Spark rewrite UI redirects
        """
        self.cluster = cluster
        self.config = submission_config
        self.naming = naming or SubmissionDefaults()
        self.teardown = teardown or TeardownExecutor(cluster, naming=self.naming)
        self.locks = locks or SubmissionLockRegistry()
        self.spark_ui_modify_redirect_url = spark_ui_modify_redirect_url

    @property
    def namespace(self) -> str:
        return self.cluster.namespace

    def new_submission_id(self) -> str:
        """Server-generated id: app- plus uuid4 hex."""
        return f"{self.naming.id_prefix}{uuid.uuid4().hex}"

    # ========================================================================
    # RESOURCE BUILDING
    # ========================================================================

    def build_spec(
        self,
        submission_id: str,
        request: SparkApplicationSpec,
        api_root: str,
    ) -> SparkApplicationSpec:
        """
        Apply defaults to a requested spec and validate it.

        Raises:
            SubmissionValidationError: spec still incomplete after defaults
        """
        spec = SparkApplicationSpec.model_validate(request.to_resource_spec())

        service_account = self.config.service_account or None
        if not spec.driver.service_account:
            spec.driver.service_account = service_account
        if not spec.executor.service_account:
            spec.executor.service_account = service_account

        if not spec.spark_version:
            spec.spark_version = self.config.default_spark_version or None
            if spec.spark_version:
                logger.info(f"Add Spark version {spec.spark_version} for submission {submission_id}")

        if not spec.type:
            spec.type = (
                ApplicationType.JAVA.value if spec.main_class else ApplicationType.PYTHON.value
            )
            logger.info(f"Add type {spec.type} for submission {submission_id}")

        if not spec.image and spec.spark_version:
            image, found = find_image(self.config.spark_images, spec.spark_version, spec.type)
            if found:
                logger.info(f"Add image {image} for submission {submission_id}")
                spec.image = image
            elif not has_image(spec):
                raise SubmissionValidationError(
                    f"Cannot find Spark image for Spark {spec.spark_version} and {spec.type}"
                )

        spark_conf = dict(spec.spark_conf or {})
        merge_defaults(spark_conf, self.config.spark_conf)
        spark_conf["spark.kubernetes.executor.podNamePrefix"] = submission_id
        spark_conf["spark.ui.port"] = self.naming.ui_port
        spark_conf["spark.ui.proxyBase"] = f"{api_root.rstrip('/')}/sparkui/{submission_id}"
        if not self.spark_ui_modify_redirect_url:
            spark_conf["spark.ui.proxyRedirectUri"] = "/"
        spec.spark_conf = spark_conf

        validate_spec(spec)
        return spec

    def build_application(
        self,
        submission_id: str,
        request: SubmissionRequest,
        api_root: str,
    ) -> Dict:
        """Full SparkApplication object body for the create call."""
        spec = self.build_spec(submission_id, request, api_root)

        labels: Dict[str, str] = {}
        annotations: Dict[str, str] = {}
        if request.application_name:
            annotations[self.naming.app_name_annotation] = request.application_name
            if is_valid_label_value(request.application_name):
                labels[self.naming.app_name_label] = request.application_name
        if request.application_description:
            annotations[self.naming.description_annotation] = request.application_description
        if request.desired_state:
            annotations[self.naming.desired_state_annotation] = request.desired_state

        metadata = {"name": submission_id, "namespace": self.namespace}
        if labels:
            metadata["labels"] = labels
        if annotations:
            metadata["annotations"] = annotations

        return {
            "apiVersion": f"{self.naming.crd_group}/{self.naming.crd_version}",
            "kind": self.naming.crd_kind,
            "metadata": metadata,
            "spec": spec.to_resource_spec(),
        }

    # ========================================================================
    # RECONCILE
    # ========================================================================

    async def find_submission(self, submission_id: str) -> Optional[Submission]:
        """
        Existence check.

        Returns:
            Submission, or None when not found

        Raises:
            ClusterUnavailableError: existence could not be determined
        """
        try:
            obj = await self.cluster.get(ResourceKind.SPARK_APPLICATION, submission_id)
        except ResourceNotFoundError:
            return None
        return self._to_submission(obj)

    async def reconcile(
        self,
        submission_id: str,
        request: SubmissionRequest,
        overwrite: bool = False,
        api_root: str = "",
    ) -> str:
        """
        Create or overwrite a submission.

        Args:
            submission_id: Resource name to create
            request: Requested spec plus gateway fields
            overwrite: Replace an existing submission with the same id
            api_root: API root path used for the Spark UI proxy base

        Returns:
            submission_id

        Raises:
            ClusterUnavailableError: existence check failed
            SubmissionConflictError: exists and overwrite is False
            SubmissionValidationError: spec cannot be completed
            ClusterRejectedError: create refused
        """
        with log_context(submission_id=submission_id, namespace=self.namespace, operation="reconcile"):
            async with self.locks.submission_lock(submission_id):
                log_checkpoint("reconcile_started", {"overwrite": overwrite}, logger=logger.logger)

                existing = await self.find_submission(submission_id)
                if existing is not None and not overwrite:
                    raise SubmissionConflictError(
                        f"Cannot create SparkApplication {submission_id} since it already "
                        f"exists in namespace {self.namespace} "
                        f"(created at {existing.creation_timestamp})"
                    )

                body = self.build_application(submission_id, request, api_root)

                if existing is not None:
                    logger.info(f"Overwriting existing SparkApplication {submission_id}")
                    await self._replace(existing)

                await self.cluster.create_application(body)
                log_checkpoint("submission_created", logger=logger.logger)
                logger.info(f"Created SparkApplication {submission_id} in namespace {self.namespace}")
                return submission_id

    async def _replace(self, existing: Submission) -> None:
        """Tear down dependents, then the application itself; never raises."""
        await self.teardown.teardown_dependents(existing)
        try:
            await self.teardown.delete_and_confirm(
                ResourceKind.SPARK_APPLICATION, existing.submission_id
            )
        except GatewayError as e:
            logger.warning(
                f"Ignoring teardown failure for SparkApplication {existing.submission_id}: {e}"
            )

    # ========================================================================
    # READ
    # ========================================================================

    async def get_submission(self, submission_id: str) -> Submission:
        """
        Raises:
            ResourceNotFoundError: unknown submission
            ClusterUnavailableError: orchestrator failure
        """
        obj = await self.cluster.get(ResourceKind.SPARK_APPLICATION, submission_id)
        return self._to_submission(obj)

    async def list_submissions(self, limit: Optional[int] = None) -> List[Submission]:
        """List submissions in the namespace, at most limit items (0 = no limit)."""
        limit = self.naming.list_limit if limit is None else limit
        items = await self.cluster.list_applications(limit or None)
        if limit > 0:
            items = items[:limit]
        return [self._to_submission(obj) for obj in items]

    def _to_submission(self, obj) -> Submission:
        return Submission.from_resource(
            obj,
            app_name_label=self.naming.app_name_label,
            app_name_annotation=self.naming.app_name_annotation,
        )

    # ========================================================================
    # DELETE / KILL
    # ========================================================================

    async def delete_submission(self, submission_id: str) -> None:
        """
        Delete a submission, then best-effort teardown of its dependents.

        Raises:
            ResourceNotFoundError: unknown submission
            ClusterRejectedError: delete refused
        """
        with log_context(submission_id=submission_id, namespace=self.namespace, operation="delete"):
            async with self.locks.submission_lock(submission_id):
                submission = await self.get_submission(submission_id)
                await self.cluster.delete(ResourceKind.SPARK_APPLICATION, submission_id)
                logger.info(f"Deleted SparkApplication {submission_id}")
                await self.teardown.teardown_dependents(submission)

    async def kill_submission(self, submission_id: str) -> Submission:
        """
        Tear down driver, executors and UI service; keep the resource.

        Raises:
            ResourceNotFoundError: unknown submission
        """
        with log_context(submission_id=submission_id, namespace=self.namespace, operation="kill"):
            async with self.locks.submission_lock(submission_id):
                submission = await self.get_submission(submission_id)
                failed = await self.teardown.teardown_dependents(submission)
                logger.info(
                    f"Killed SparkApplication {submission_id} "
                    f"({len(failed)} resources still present)"
                )
                return submission

    # ========================================================================
    # LOG
    # ========================================================================

    def log_pod_name(self, submission: Submission, executor: int = -1) -> str:
        """Driver pod for executor < 0, otherwise {id}-exec-{executor}."""
        if executor < 0:
            return submission.driver_pod_name or ""
        return self.naming.executor_pod_name(submission.submission_id, executor)

    async def open_log(
        self,
        submission_id: str,
        executor: int = -1,
        follow: bool = False,
    ) -> PodLogStream:
        """
        Open the log of the driver or one executor.

        Raises:
            GatewayError: submission or pod log unavailable
        """
        submission = await self.get_submission(submission_id)
        pod_name = self.log_pod_name(submission, executor)
        if not pod_name:
            raise GatewayError(
                f"Unable to fetch log as the name of the pod for SparkApplication "
                f"{submission_id} is empty"
            )
        logger.info(f"Getting log for Spark application {submission_id} pod name: {pod_name}")
        return await self.cluster.open_pod_log(pod_name, follow=follow)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "SubmissionService",
    "is_valid_label_value",
]
