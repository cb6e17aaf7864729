# ============================================================================
# RESOURCE TEARDOWN EXECUTOR
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Service - Delete-and-confirm for orchestrator resources
# PURPOSE: Remove pods, services and applications and wait until gone
# CREATED: 13 OCT 2026
# ============================================================================
"""
Resource Teardown Executor

delete_and_confirm() issues one delete and then polls get() until the
orchestrator reports not-found, bounded by a wall-clock deadline.

    delete -> not found          ok, still confirmed by polling
    delete -> other error        logged, polling still decides
    poll   -> not found          done
    poll   -> found / error      keep polling until max_wait
    deadline passed              TeardownTimeoutError

teardown_dependents() runs it for a submission's driver pod, executor
pods and UI service, logging and swallowing every failure.
"""

import logging
from typing import List, Optional

from core.config import SubmissionDefaults, TeardownDefaults
from core.contracts import ResourceKind
from core.errors import GatewayError, ResourceNotFoundError, TeardownTimeoutError
from core.logging import log_checkpoint
from core.models import Submission
from core.retry import RetryTimeoutError, retry_until_async
from infrastructure.kubernetes import OrchestratorClient

logger = logging.getLogger(__name__)


class TeardownExecutor:
    """Delete-and-confirm against one namespace."""

    def __init__(
        self,
        cluster: OrchestratorClient,
        defaults: Optional[TeardownDefaults] = None,
        naming: Optional[SubmissionDefaults] = None,
    ):
        self.cluster = cluster
        self.defaults = defaults or TeardownDefaults()
        self.naming = naming or SubmissionDefaults()

    async def _is_gone(self, kind: ResourceKind, name: str) -> bool:
        try:
            await self.cluster.get(kind, name)
        except ResourceNotFoundError:
            return True
        except GatewayError as e:
            logger.debug(f"Polling {kind.value} {name} failed, retrying: {e}")
        return False

    async def delete_and_confirm(
        self,
        kind: ResourceKind,
        name: str,
        max_wait: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> None:
        """
        Delete a resource and wait until the orchestrator confirms it is gone.

        Args:
            kind: Resource kind
            name: Resource name; empty means nothing to do
            max_wait: Deadline in seconds (default from TeardownDefaults)
            poll_interval: Seconds between existence checks

        Raises:
            TeardownTimeoutError: resource still visible at the deadline
        """
        if not name:
            return

        max_wait = self.defaults.max_wait_seconds if max_wait is None else max_wait
        poll_interval = (
            self.defaults.poll_interval_seconds if poll_interval is None else poll_interval
        )
        namespace = self.cluster.namespace

        try:
            await self.cluster.delete(kind, name)
            logger.info(f"Deleted {kind.value} {name} in namespace {namespace}")
        except ResourceNotFoundError:
            logger.info(f"{kind.value} {name} already absent in namespace {namespace}")
        except GatewayError as e:
            logger.warning(
                f"Failed to delete {kind.value} {name} in namespace {namespace}, "
                f"waiting for it to disappear anyway: {e}"
            )

        try:
            attempts = await retry_until_async(
                lambda: self._is_gone(kind, name),
                max_wait=max_wait,
                interval=poll_interval,
            )
        except RetryTimeoutError as e:
            raise TeardownTimeoutError(
                f"{kind.value} {name} still exists in namespace {namespace} "
                f"after {max_wait:g}s"
            ) from e

        logger.debug(f"{kind.value} {name} confirmed gone after {attempts} polls")

    async def teardown_dependents(self, submission: Submission) -> List[str]:
        """
        Best-effort teardown of driver pod, executor pods and UI service.

        Every failure is logged and swallowed.

        Returns:
            Names of resources whose teardown failed
        """
        targets = []
        if submission.driver_pod_name:
            targets.append((ResourceKind.POD, submission.driver_pod_name))
        for pod_name in submission.executor_pod_names:
            targets.append((ResourceKind.POD, pod_name))
        targets.append(
            (ResourceKind.SERVICE, self.naming.ui_service_name(submission.submission_id))
        )

        failed = []
        for kind, name in targets:
            try:
                await self.delete_and_confirm(kind, name)
            except GatewayError as e:
                logger.warning(f"Ignoring teardown failure for {kind.value} {name}: {e}")
                failed.append(name)

        log_checkpoint(
            "teardown_finished",
            {"targets": [name for _, name in targets], "failed": failed},
            logger=logger,
        )
        return failed


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "TeardownExecutor",
]
