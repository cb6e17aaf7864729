# ============================================================================
# SHARED TEST FIXTURES
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Tests - In-memory orchestrator and shared fixtures
# PURPOSE: Exercise services and routes without a Kubernetes cluster
# CREATED: 16 OCT 2026
# ============================================================================
"""
Shared fixtures.

FakeCluster is an in-memory OrchestratorClient that records every call,
so tests can assert the exact sequence of gets/deletes/creates.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from core.config import SubmissionDefaults
from core.contracts import ResourceKind
from core.errors import ClusterRejectedError, ResourceNotFoundError
from gateway.config import SubmissionConfig
from infrastructure.kubernetes import OrchestratorClient, PodLogStream
from services.image_resolver import SparkImage


class _FakeContent:
    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None):
        self._chunks = chunks
        self._error = error

    async def iter_chunked(self, chunk_size: int):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


class FakeLogResponse:
    """Stands in for the aiohttp response behind PodLogStream."""

    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None):
        self.content = _FakeContent(chunks, error)
        self.closed = 0

    def close(self):
        self.closed += 1


class FakeCluster(OrchestratorClient):
    """In-memory orchestrator keyed by (kind, name)."""

    def __init__(self, namespace: str = "spark-jobs"):
        self.namespace = namespace
        self.objects: Dict[Tuple[ResourceKind, str], Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str, str]] = []
        # name -> number of gets that still report "found" after delete
        self.linger: Dict[str, int] = {}
        # names that never disappear
        self.stuck: set = set()
        self.get_error: Optional[Exception] = None
        self.create_error: Optional[Exception] = None
        self.logs: Dict[str, FakeLogResponse] = {}
        self.closed = False

    # ------------------------------------------------------------------
    # SEEDING
    # ------------------------------------------------------------------

    def add(self, kind: ResourceKind, name: str, obj: Optional[Dict[str, Any]] = None):
        self.objects[(kind, name)] = obj or {"metadata": {"name": name}}

    def add_application(
        self,
        name: str,
        state: Optional[str] = None,
        driver_pod: Optional[str] = None,
        executors: Tuple[str, ...] = (),
        app_name: Optional[str] = None,
        spark_app_id: Optional[str] = None,
        with_dependents: bool = True,
    ) -> Dict[str, Any]:
        status: Dict[str, Any] = {}
        if state:
            status["applicationState"] = {"state": state}
        if driver_pod:
            status["driverInfo"] = {"podName": driver_pod}
        if executors:
            status["executorState"] = {e: "RUNNING" for e in executors}
        if spark_app_id:
            status["sparkApplicationId"] = spark_app_id
        metadata: Dict[str, Any] = {
            "name": name,
            "namespace": self.namespace,
            "creationTimestamp": "2026-10-01T12:00:00Z",
        }
        if app_name:
            metadata["annotations"] = {"sparkgateway/application-name": app_name}
        obj = {"metadata": metadata, "spec": {}, "status": status}
        self.add(ResourceKind.SPARK_APPLICATION, name, obj)
        if with_dependents:
            if driver_pod:
                self.add(ResourceKind.POD, driver_pod)
            for pod in executors:
                self.add(ResourceKind.POD, pod)
            self.add(ResourceKind.SERVICE, f"{name}-ui-svc")
        return obj

    def set_status(self, name: str, **kwargs) -> None:
        obj = self.objects[(ResourceKind.SPARK_APPLICATION, name)]
        fresh = self.add_application(name, with_dependents=True, **kwargs)
        fresh["spec"] = obj.get("spec", {})

    def has(self, kind: ResourceKind, name: str) -> bool:
        return (kind, name) in self.objects

    def ops(self, op: str) -> List[Tuple[str, str]]:
        return [(kind, name) for o, kind, name in self.calls if o == op]

    # ------------------------------------------------------------------
    # OrchestratorClient
    # ------------------------------------------------------------------

    async def get(self, kind: ResourceKind, name: str) -> Any:
        self.calls.append(("get", kind.value, name))
        if self.get_error is not None:
            raise self.get_error
        if self.linger.get(name, 0) > 0:
            self.linger[name] -= 1
            return {"metadata": {"name": name}}
        if name in self.stuck:
            return {"metadata": {"name": name}}
        obj = self.objects.get((kind, name))
        if obj is None:
            raise ResourceNotFoundError(kind.value, name, self.namespace)
        return obj

    async def delete(self, kind: ResourceKind, name: str) -> None:
        self.calls.append(("delete", kind.value, name))
        if self.objects.pop((kind, name), None) is None and name not in self.stuck:
            raise ResourceNotFoundError(kind.value, name, self.namespace)

    async def create_application(self, body: Dict[str, Any]) -> Dict[str, Any]:
        name = body["metadata"]["name"]
        self.calls.append(("create", ResourceKind.SPARK_APPLICATION.value, name))
        if self.create_error is not None:
            raise self.create_error
        if (ResourceKind.SPARK_APPLICATION, name) in self.objects:
            raise ClusterRejectedError(
                f"Failed to create SparkApplication {name}: already exists"
            )
        obj = dict(body)
        obj["metadata"] = dict(body["metadata"])
        obj["metadata"]["creationTimestamp"] = datetime.now(timezone.utc).isoformat()
        obj["status"] = {}
        self.objects[(ResourceKind.SPARK_APPLICATION, name)] = obj
        return obj

    async def list_applications(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        self.calls.append(("list", ResourceKind.SPARK_APPLICATION.value, str(limit)))
        items = [
            obj for (kind, _), obj in self.objects.items()
            if kind == ResourceKind.SPARK_APPLICATION
        ]
        return items[:limit] if limit else items

    async def open_pod_log(self, pod_name: str, follow: bool = False) -> PodLogStream:
        self.calls.append(("log", ResourceKind.POD.value, pod_name))
        response = self.logs.get(pod_name)
        if response is None:
            raise ResourceNotFoundError(ResourceKind.POD.value, pod_name, self.namespace)
        return PodLogStream(pod_name, response)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_cluster():
    return FakeCluster()


@pytest.fixture
def submission_config():
    """Namespace defaults with a small image table."""
    return SubmissionConfig(
        spark_images=[
            SparkImage(version="3.2", type="Java", image="registry/spark-java:3.2"),
            SparkImage(version="3.2", type="Python", image="registry/spark-py:3.2"),
            SparkImage(version="3.2", type="java", image="registry/spark-java:shadowed"),
        ],
        default_spark_version="3.2",
        spark_conf={
            "spark.eventLog.enabled": "true",
            "spark.executor.heartbeatInterval": "20s",
        },
        service_account="spark-sa",
    )


@pytest.fixture
def naming():
    return SubmissionDefaults()

