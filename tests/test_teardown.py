# ============================================================================
# TEARDOWN EXECUTOR TESTS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Tests - Delete-and-confirm polling
# PURPOSE: Verify poll counts, deadlines and best-effort dependent teardown
# CREATED: 16 OCT 2026
# ============================================================================
"""
Teardown Executor Tests

Run with:
    pytest tests/test_teardown.py -v
"""

import asyncio
import time

import pytest

from conftest import FakeCluster
from core.config import TeardownDefaults
from core.contracts import ResourceKind
from core.errors import ClusterUnavailableError, TeardownTimeoutError
from core.models import Submission
from services.teardown import TeardownExecutor


def _executor(cluster, max_wait=1.0, poll=0.01):
    return TeardownExecutor(cluster, TeardownDefaults(max_wait_seconds=max_wait, poll_interval_seconds=poll))


class TestDeleteAndConfirm:

    def test_found_twice_then_gone_polls_three_times(self):
        cluster = FakeCluster()
        cluster.add(ResourceKind.POD, "app-1-driver")
        cluster.linger["app-1-driver"] = 2

        asyncio.run(_executor(cluster).delete_and_confirm(ResourceKind.POD, "app-1-driver"))

        assert cluster.ops("delete") == [("Pod", "app-1-driver")]
        assert cluster.ops("get") == [("Pod", "app-1-driver")] * 3

    def test_never_gone_times_out_within_one_interval(self):
        cluster = FakeCluster()
        cluster.stuck.add("app-1-driver")
        executor = _executor(cluster)

        start = time.monotonic()
        with pytest.raises(TeardownTimeoutError) as exc:
            asyncio.run(
                executor.delete_and_confirm(
                    ResourceKind.POD, "app-1-driver", max_wait=0.3, poll_interval=0.05
                )
            )
        elapsed = time.monotonic() - start

        assert 0.3 <= elapsed <= 0.3 + 0.05 + 0.2
        assert exc.value.status_code == 500
        assert "app-1-driver" in exc.value.message

    def test_not_found_on_delete_counts_as_success(self):
        cluster = FakeCluster()
        asyncio.run(_executor(cluster).delete_and_confirm(ResourceKind.SERVICE, "app-1-ui-svc"))
        assert cluster.ops("delete") == [("Service", "app-1-ui-svc")]
        assert cluster.ops("get") == [("Service", "app-1-ui-svc")]

    def test_empty_name_is_noop(self):
        cluster = FakeCluster()
        asyncio.run(_executor(cluster).delete_and_confirm(ResourceKind.POD, ""))
        assert cluster.calls == []

    def test_transport_errors_while_polling_keep_polling(self):
        cluster = FakeCluster()
        cluster.get_error = ClusterUnavailableError("connection refused")
        with pytest.raises(TeardownTimeoutError):
            asyncio.run(
                _executor(cluster).delete_and_confirm(
                    ResourceKind.POD, "p", max_wait=0.05, poll_interval=0.01
                )
            )
        assert len(cluster.ops("get")) >= 2


class TestTeardownDependents:

    def _submission(self, cluster):
        obj = cluster.add_application(
            "app-1",
            state="RUNNING",
            driver_pod="app-1-driver",
            executors=("app-1-exec-1", "app-1-exec-2"),
        )
        return Submission.from_resource(obj)

    def test_deletes_driver_executors_then_ui_service(self):
        cluster = FakeCluster()
        submission = self._submission(cluster)

        failed = asyncio.run(_executor(cluster).teardown_dependents(submission))

        assert failed == []
        assert cluster.ops("delete") == [
            ("Pod", "app-1-driver"),
            ("Pod", "app-1-exec-1"),
            ("Pod", "app-1-exec-2"),
            ("Service", "app-1-ui-svc"),
        ]
        assert cluster.has(ResourceKind.SPARK_APPLICATION, "app-1")

    def test_failures_are_reported_not_raised(self):
        cluster = FakeCluster()
        submission = self._submission(cluster)
        cluster.stuck.add("app-1-exec-1")

        failed = asyncio.run(_executor(cluster, max_wait=0.05).teardown_dependents(submission))

        assert failed == ["app-1-exec-1"]
        assert ("Service", "app-1-ui-svc") in cluster.ops("delete")

    def test_submission_without_driver_still_removes_service(self):
        cluster = FakeCluster()
        obj = cluster.add_application("app-2")
        failed = asyncio.run(_executor(cluster).teardown_dependents(Submission.from_resource(obj)))
        assert failed == []
        assert cluster.ops("delete") == [("Service", "app-2-ui-svc")]
