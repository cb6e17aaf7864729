# ============================================================================
# KUBERNETES ORCHESTRATOR ADAPTER
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Infrastructure - Async Kubernetes API access
# PURPOSE: SparkApplication, pod, service and pod-log operations
# CREATED: 13 OCT 2026
# ============================================================================
"""
Kubernetes Orchestrator Adapter

OrchestratorClient is the narrow interface the submission services use.
KubernetesCluster implements it with kubernetes_asyncio against one
namespace; tests substitute an in-memory fake.

Error mapping (every method):
    ApiException 404            -> ResourceNotFoundError
    ApiException on create      -> ClusterRejectedError
    ApiException on delete      -> ClusterRejectedError
    other ApiException          -> ClusterUnavailableError
    aiohttp / timeout errors    -> ClusterUnavailableError

Usage:
    cluster = await KubernetesCluster.connect(namespace="spark-01")
    try:
        obj = await cluster.get(ResourceKind.SPARK_APPLICATION, "app-123")
    finally:
        await cluster.close()
"""

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

import aiohttp
from kubernetes_asyncio import client, config
from kubernetes_asyncio.client.exceptions import ApiException
from kubernetes_asyncio.config.config_exception import ConfigException

from core.config import SubmissionDefaults
from core.contracts import ResourceKind
from core.errors import (
    ClusterRejectedError,
    ClusterUnavailableError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)


# ============================================================================
# POD LOG STREAM
# ============================================================================

class PodLogStream:
    """
    Open pod log response.

    Wraps the aiohttp response returned with _preload_content=False.
    close() is idempotent and must be called when the reader goes away.
    """

    def __init__(self, pod_name: str, response: Any):
        self.pod_name = pod_name
        self._response = response
        self._closed = False

    async def iter_chunks(self, chunk_size: int = 8192) -> AsyncIterator[bytes]:
        """Yield raw log bytes until the upstream stream ends."""
        async for chunk in self._response.content.iter_chunked(chunk_size):
            yield chunk

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._response.close()


# ============================================================================
# INTERFACE
# ============================================================================

class OrchestratorClient(ABC):
    """Operations the gateway needs from the orchestrator, bound to a namespace."""

    namespace: str

    @abstractmethod
    async def get(self, kind: ResourceKind, name: str) -> Any:
        """Get a resource; raises ResourceNotFoundError when absent."""

    @abstractmethod
    async def delete(self, kind: ResourceKind, name: str) -> None:
        """Delete a resource; raises ResourceNotFoundError when absent."""

    @abstractmethod
    async def create_application(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Create a SparkApplication from a full object body."""

    @abstractmethod
    async def list_applications(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """List SparkApplications in the namespace."""

    @abstractmethod
    async def open_pod_log(self, pod_name: str, follow: bool = False) -> PodLogStream:
        """Open a pod's log for streaming."""

    async def close(self) -> None:
        """Release connections (no-op by default)."""


# ============================================================================
# KUBERNETES IMPLEMENTATION
# ============================================================================

def _api_message(e: ApiException) -> str:
    """Best-effort human message from an ApiException body."""
    if e.body:
        try:
            body = json.loads(e.body)
            if isinstance(body, dict) and body.get("message"):
                return body["message"]
        except (TypeError, ValueError):
            pass
    return f"{e.status} {e.reason}"


class KubernetesCluster(OrchestratorClient):
    """
    kubernetes_asyncio-backed OrchestratorClient.

    One ApiClient (one aiohttp session) per gateway process; all
    request tasks share it.
    """

    def __init__(
        self,
        api_client: client.ApiClient,
        namespace: str,
        defaults: Optional[SubmissionDefaults] = None,
    ):
        self.namespace = namespace
        self.defaults = defaults or SubmissionDefaults()
        self._api_client = api_client
        self._custom = client.CustomObjectsApi(api_client)
        self._core = client.CoreV1Api(api_client)

    @classmethod
    async def connect(
        cls,
        namespace: str,
        kubeconfig: Optional[str] = None,
    ) -> "KubernetesCluster":
        """
        Load cluster credentials and build the adapter.

        Uses the kubeconfig file when one is given or KUBECONFIG is set,
        the in-cluster service account otherwise.

        Args:
            namespace: Namespace holding SparkApplications
            kubeconfig: Optional kubeconfig path

        Returns:
            Connected KubernetesCluster
        """
        kubeconfig = kubeconfig or os.environ.get("KUBECONFIG")
        if kubeconfig:
            await config.load_kube_config(config_file=kubeconfig)
            logger.info(f"Loaded kubeconfig from {kubeconfig}")
        else:
            try:
                config.load_incluster_config()
                logger.info("Loaded in-cluster Kubernetes config")
            except ConfigException:
                await config.load_kube_config()
                logger.info("Loaded default kubeconfig")

        return cls(client.ApiClient(), namespace)

    async def close(self) -> None:
        await self._api_client.close()

    # ------------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------------

    async def _call(
        self,
        operation: str,
        kind: ResourceKind,
        name: str,
        coro,
        rejectable: bool = False,
    ):
        try:
            return await coro
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFoundError(kind.value, name, self.namespace) from e
            message = (
                f"Failed to {operation} {kind.value} {name} "
                f"in namespace {self.namespace}: {_api_message(e)}"
            )
            if rejectable:
                raise ClusterRejectedError(message) from e
            raise ClusterUnavailableError(message) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ClusterUnavailableError(
                f"Failed to {operation} {kind.value} {name} "
                f"in namespace {self.namespace}: {e}"
            ) from e

    def _crd_args(self) -> Dict[str, str]:
        return {
            "group": self.defaults.crd_group,
            "version": self.defaults.crd_version,
            "namespace": self.namespace,
            "plural": self.defaults.crd_plural,
        }

    # ------------------------------------------------------------------------
    # OrchestratorClient
    # ------------------------------------------------------------------------

    async def get(self, kind: ResourceKind, name: str) -> Any:
        if kind == ResourceKind.SPARK_APPLICATION:
            coro = self._custom.get_namespaced_custom_object(name=name, **self._crd_args())
        elif kind == ResourceKind.POD:
            coro = self._core.read_namespaced_pod(name, self.namespace)
        elif kind == ResourceKind.SERVICE:
            coro = self._core.read_namespaced_service(name, self.namespace)
        else:
            raise ValueError(f"Unsupported resource kind: {kind}")
        return await self._call("get", kind, name, coro)

    async def delete(self, kind: ResourceKind, name: str) -> None:
        if kind == ResourceKind.SPARK_APPLICATION:
            coro = self._custom.delete_namespaced_custom_object(name=name, **self._crd_args())
        elif kind == ResourceKind.POD:
            coro = self._core.delete_namespaced_pod(name, self.namespace)
        elif kind == ResourceKind.SERVICE:
            coro = self._core.delete_namespaced_service(name, self.namespace)
        else:
            raise ValueError(f"Unsupported resource kind: {kind}")
        await self._call("delete", kind, name, coro, rejectable=True)

    async def create_application(self, body: Dict[str, Any]) -> Dict[str, Any]:
        name = body.get("metadata", {}).get("name", "")
        try:
            return await self._custom.create_namespaced_custom_object(
                body=body, **self._crd_args()
            )
        except ApiException as e:
            raise ClusterRejectedError(
                f"Failed to create SparkApplication: {_api_message(e)}"
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ClusterUnavailableError(
                f"Failed to create SparkApplication {name}: {e}"
            ) from e

    async def list_applications(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        kwargs = self._crd_args()
        if limit:
            kwargs["limit"] = limit
        result = await self._call(
            "list",
            ResourceKind.SPARK_APPLICATION,
            "*",
            self._custom.list_namespaced_custom_object(**kwargs),
        )
        return list(result.get("items") or [])

    async def open_pod_log(self, pod_name: str, follow: bool = False) -> PodLogStream:
        response = await self._call(
            "read log of",
            ResourceKind.POD,
            pod_name,
            self._core.read_namespaced_pod_log(
                pod_name,
                self.namespace,
                follow=follow,
                _preload_content=False,
            ),
        )
        return PodLogStream(pod_name, response)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "PodLogStream",
    "OrchestratorClient",
    "KubernetesCluster",
]
