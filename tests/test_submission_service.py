# ============================================================================
# SUBMISSION SERVICE TESTS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Tests - Reconcile, overwrite teardown, delete, kill, log lookup
# PURPOSE: Verify submission lifecycle against an in-memory orchestrator
# CREATED: 16 OCT 2026
# ============================================================================
"""
Submission Service Tests

Covers:
1. Conflict on existing id without overwrite (nothing deleted or created)
2. Overwrite tears down driver, executors, UI service, then the app
3. Teardown timeouts never block the create
4. Spec defaulting (service account, version, type, image, conf keys)
5. Per-id serialization of concurrent submissions
6. Delete / kill / log pod selection

Run with:
    pytest tests/test_submission_service.py -v
"""

import asyncio

import pytest

from conftest import FakeCluster
from core.config import TeardownDefaults
from core.contracts import ResourceKind
from core.errors import (
    ClusterRejectedError,
    ClusterUnavailableError,
    GatewayError,
    ResourceNotFoundError,
    SubmissionConflictError,
    SubmissionValidationError,
)
from core.models import SubmissionRequest
from gateway.config import SubmissionConfig
from services.submission_service import SubmissionService, is_valid_label_value
from services.teardown import TeardownExecutor


# ============================================================================
# FIXTURES
# ============================================================================

def _make_service(cluster, config, max_wait=0.2):
    teardown = TeardownExecutor(
        cluster, TeardownDefaults(max_wait_seconds=max_wait, poll_interval_seconds=0.01)
    )
    return SubmissionService(cluster, config, teardown=teardown)


def _request(**kwargs) -> SubmissionRequest:
    data = {
        "mainClass": "org.example.Main",
        "mainApplicationFile": "wasbs://c@acct.blob.core.windows.net/app.jar",
    }
    data.update(kwargs)
    return SubmissionRequest.model_validate(data)


def _reconcile(service, submission_id, request=None, overwrite=False):
    return asyncio.run(
        service.reconcile(
            submission_id, request or _request(), overwrite=overwrite, api_root="/sparkapi/v1"
        )
    )


# ============================================================================
# RECONCILE
# ============================================================================

class TestReconcile:

    def test_new_id_creates_directly(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)

        assert _reconcile(service, "app-1") == "app-1"

        assert fake_cluster.ops("delete") == []
        assert fake_cluster.ops("create") == [("SparkApplication", "app-1")]

    def test_new_id_with_overwrite_creates_directly(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)

        _reconcile(service, "app-1", overwrite=True)

        assert fake_cluster.ops("delete") == []
        assert fake_cluster.ops("create") == [("SparkApplication", "app-1")]

    def test_existing_without_overwrite_conflicts(self, fake_cluster, submission_config):
        fake_cluster.add_application("app-1", state="RUNNING", driver_pod="app-1-driver")
        service = _make_service(fake_cluster, submission_config)

        with pytest.raises(SubmissionConflictError) as exc:
            _reconcile(service, "app-1")

        assert exc.value.status_code == 400
        assert exc.value.message == (
            "Cannot create SparkApplication app-1 since it already exists in namespace "
            "spark-jobs (created at 2026-10-01T12:00:00Z)"
        )
        assert fake_cluster.ops("delete") == []
        assert fake_cluster.ops("create") == []

    def test_overwrite_tears_down_dependents_then_app(self, fake_cluster, submission_config):
        fake_cluster.add_application(
            "app-1",
            state="RUNNING",
            driver_pod="app-1-driver",
            executors=("app-1-exec-1", "app-1-exec-2"),
        )
        service = _make_service(fake_cluster, submission_config)

        _reconcile(service, "app-1", overwrite=True)

        assert fake_cluster.ops("delete") == [
            ("Pod", "app-1-driver"),
            ("Pod", "app-1-exec-1"),
            ("Pod", "app-1-exec-2"),
            ("Service", "app-1-ui-svc"),
            ("SparkApplication", "app-1"),
        ]
        assert fake_cluster.calls[-1] == ("create", "SparkApplication", "app-1")
        assert fake_cluster.has(ResourceKind.SPARK_APPLICATION, "app-1")
        assert not fake_cluster.has(ResourceKind.POD, "app-1-driver")

    def test_overwrite_creates_even_when_teardown_times_out(self, fake_cluster, submission_config):
        fake_cluster.add_application(
            "app-1", driver_pod="app-1-driver", executors=("app-1-exec-1",)
        )
        fake_cluster.stuck.add("app-1-exec-1")
        fake_cluster.stuck.add("app-1-ui-svc")
        service = _make_service(fake_cluster, submission_config, max_wait=0.05)

        assert _reconcile(service, "app-1", overwrite=True) == "app-1"
        assert fake_cluster.calls[-1] == ("create", "SparkApplication", "app-1")

    def test_overwrite_twice_is_safe(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)

        _reconcile(service, "app-1", overwrite=True)
        _reconcile(service, "app-1", overwrite=True)

        assert fake_cluster.ops("create") == [("SparkApplication", "app-1")] * 2
        assert ("SparkApplication", "app-1") in fake_cluster.ops("delete")

    def test_existence_check_failure_aborts(self, fake_cluster, submission_config):
        fake_cluster.get_error = ClusterUnavailableError("connection refused")
        service = _make_service(fake_cluster, submission_config)

        with pytest.raises(ClusterUnavailableError):
            _reconcile(service, "app-1", overwrite=True)

        assert fake_cluster.ops("delete") == []
        assert fake_cluster.ops("create") == []

    def test_invalid_request_never_tears_down_existing(self, fake_cluster):
        fake_cluster.add_application("app-1", driver_pod="app-1-driver")
        service = _make_service(fake_cluster, SubmissionConfig(default_spark_version="3.2"))

        with pytest.raises(SubmissionValidationError):
            _reconcile(service, "app-1", _request(image="img"), overwrite=True)

        assert fake_cluster.ops("delete") == []
        assert fake_cluster.has(ResourceKind.POD, "app-1-driver")

    def test_create_refusal_is_reported(self, fake_cluster, submission_config):
        fake_cluster.create_error = ClusterRejectedError("Failed to create SparkApplication: quota")
        service = _make_service(fake_cluster, submission_config)

        with pytest.raises(ClusterRejectedError) as exc:
            _reconcile(service, "app-1")
        assert exc.value.status_code == 500

    def test_concurrent_submissions_for_same_id_are_serialized(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)

        async def both():
            return await asyncio.gather(
                service.reconcile("app-1", _request(), api_root="/sparkapi/v1"),
                service.reconcile("app-1", _request(), api_root="/sparkapi/v1"),
                return_exceptions=True,
            )

        results = asyncio.run(both())

        assert results.count("app-1") == 1
        assert sum(isinstance(r, SubmissionConflictError) for r in results) == 1
        assert fake_cluster.ops("create") == [("SparkApplication", "app-1")]
        assert len(service.locks) == 0


# ============================================================================
# SPEC BUILDING
# ============================================================================

class TestBuildApplication:

    def test_defaults_applied(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)

        body = service.build_application("app-1", _request(), "/sparkapi/v1")
        spec = body["spec"]

        assert body["apiVersion"] == "sparkoperator.k8s.io/v1beta2"
        assert body["kind"] == "SparkApplication"
        assert body["metadata"] == {"name": "app-1", "namespace": "spark-jobs"}
        assert spec["sparkVersion"] == "3.2"
        assert spec["type"] == "Java"
        assert spec["image"] == "registry/spark-java:3.2"
        assert spec["driver"]["serviceAccount"] == "spark-sa"
        assert spec["executor"]["serviceAccount"] == "spark-sa"

    def test_operational_conf_keys(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)

        conf = service.build_application("app-1", _request(), "/sparkapi/v1")["spec"]["sparkConf"]

        assert conf["spark.kubernetes.executor.podNamePrefix"] == "app-1"
        assert conf["spark.ui.port"] == "4040"
        assert conf["spark.ui.proxyBase"] == "/sparkapi/v1/sparkui/app-1"
        assert conf["spark.ui.proxyRedirectUri"] == "/"

    def test_caller_conf_wins_over_defaults(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)
        request = _request(sparkConf={"spark.eventLog.enabled": "false"})

        conf = service.build_application("app-1", request, "/sparkapi/v1")["spec"]["sparkConf"]

        assert conf["spark.eventLog.enabled"] == "false"
        assert conf["spark.executor.heartbeatInterval"] == "20s"

    def test_python_type_without_main_class(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)
        request = SubmissionRequest.model_validate({"mainApplicationFile": "wasbs://c@a/x.py"})

        spec = service.build_application("app-1", request, "/sparkapi/v1")["spec"]

        assert spec["type"] == "Python"
        assert spec["image"] == "registry/spark-py:3.2"

    def test_caller_values_kept(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)
        request = _request(
            image="custom:1",
            sparkVersion="3.1",
            type="Scala",
            driver={"serviceAccount": "own-sa", "cores": 2},
        )

        spec = service.build_application("app-1", request, "/sparkapi/v1")["spec"]

        assert spec["image"] == "custom:1"
        assert spec["sparkVersion"] == "3.1"
        assert spec["type"] == "Scala"
        assert spec["driver"] == {"cores": 2, "serviceAccount": "own-sa"}
        assert spec["executor"]["serviceAccount"] == "spark-sa"

    def test_unresolvable_image_fails(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)

        with pytest.raises(SubmissionValidationError) as exc:
            service.build_application("app-1", _request(sparkVersion="9.9"), "/sparkapi/v1")
        assert "Cannot find Spark image for Spark 9.9 and Java" in exc.value.message

    def test_missing_service_account_fails(self, fake_cluster):
        config = SubmissionConfig(default_spark_version="3.2")
        service = _make_service(fake_cluster, config)

        with pytest.raises(SubmissionValidationError) as exc:
            service.build_application("app-1", _request(image="img"), "/sparkapi/v1")
        assert "service account" in exc.value.message

    def test_gateway_fields_stay_out_of_spec(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)
        request = _request(
            submissionId="ignored",
            overwrite=True,
            applicationName="nightly-etl",
            applicationDescription="Nightly ETL run",
            desiredState="RUNNING",
        )

        body = service.build_application("app-1", request, "/sparkapi/v1")

        for key in ("submissionId", "overwrite", "applicationName", "desiredState"):
            assert key not in body["spec"]
        assert body["metadata"]["labels"] == {"appName": "nightly-etl"}
        assert body["metadata"]["annotations"]["sparkgateway/application-name"] == "nightly-etl"

    def test_free_text_name_is_annotation_only(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)
        request = _request(applicationName="Nightly ETL (prod)")

        metadata = service.build_application("app-1", request, "/sparkapi/v1")["metadata"]

        assert "labels" not in metadata
        assert metadata["annotations"]["sparkgateway/application-name"] == "Nightly ETL (prod)"

    def test_label_value_rules(self):
        assert is_valid_label_value("")
        assert is_valid_label_value("etl-1.2_b")
        assert not is_valid_label_value("-leading")
        assert not is_valid_label_value("has space")
        assert not is_valid_label_value("x" * 64)

    def test_new_submission_id(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)
        first, second = service.new_submission_id(), service.new_submission_id()
        assert first.startswith("app-")
        assert first != second


# ============================================================================
# READ / DELETE / KILL / LOG
# ============================================================================

class TestLifecycle:

    def test_get_unknown_is_not_found(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)
        with pytest.raises(ResourceNotFoundError) as exc:
            asyncio.run(service.get_submission("nope"))
        assert exc.value.status_code == 404

    def test_list_respects_limit(self, fake_cluster, submission_config):
        for i in range(3):
            fake_cluster.add_application(f"app-{i}", state="COMPLETED", app_name=f"job {i}")
        service = _make_service(fake_cluster, submission_config)

        items = asyncio.run(service.list_submissions(2))

        assert [s.submission_id for s in items] == ["app-0", "app-1"]
        assert items[0].application_name == "job 0"
        assert items[0].state_name == "COMPLETED"

    def test_delete_removes_app_and_dependents(self, fake_cluster, submission_config):
        fake_cluster.add_application("app-1", driver_pod="app-1-driver")
        service = _make_service(fake_cluster, submission_config)

        asyncio.run(service.delete_submission("app-1"))

        assert fake_cluster.ops("delete")[0] == ("SparkApplication", "app-1")
        assert not fake_cluster.has(ResourceKind.SPARK_APPLICATION, "app-1")
        assert not fake_cluster.has(ResourceKind.POD, "app-1-driver")
        assert not fake_cluster.has(ResourceKind.SERVICE, "app-1-ui-svc")

    def test_delete_unknown_is_not_found(self, fake_cluster, submission_config):
        service = _make_service(fake_cluster, submission_config)
        with pytest.raises(ResourceNotFoundError):
            asyncio.run(service.delete_submission("nope"))
        assert fake_cluster.ops("delete") == []

    def test_kill_keeps_submission(self, fake_cluster, submission_config):
        fake_cluster.add_application(
            "app-1", state="RUNNING", driver_pod="app-1-driver", executors=("app-1-exec-1",)
        )
        service = _make_service(fake_cluster, submission_config)

        asyncio.run(service.kill_submission("app-1"))

        assert fake_cluster.has(ResourceKind.SPARK_APPLICATION, "app-1")
        assert not fake_cluster.has(ResourceKind.POD, "app-1-driver")
        assert not fake_cluster.has(ResourceKind.POD, "app-1-exec-1")

    def test_log_pod_selection(self, fake_cluster, submission_config):
        obj = fake_cluster.add_application("app-1", driver_pod="app-1-driver")
        service = _make_service(fake_cluster, submission_config)
        submission = service._to_submission(obj)

        assert service.log_pod_name(submission) == "app-1-driver"
        assert service.log_pod_name(submission, -5) == "app-1-driver"
        assert service.log_pod_name(submission, 0) == "app-1-exec-0"
        assert service.log_pod_name(submission, 3) == "app-1-exec-3"

    def test_log_without_driver_pod(self, fake_cluster, submission_config):
        fake_cluster.add_application("app-1")
        service = _make_service(fake_cluster, submission_config)

        with pytest.raises(GatewayError) as exc:
            asyncio.run(service.open_log("app-1"))
        assert exc.value.message == (
            "Unable to fetch log as the name of the pod for SparkApplication app-1 is empty"
        )
