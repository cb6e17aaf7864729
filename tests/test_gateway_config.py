# ============================================================================
# GATEWAY CONFIGURATION TESTS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Tests - Environment and config-file settings
# PURPOSE: Verify GatewayConfig.from_env and the extra config file loader
# CREATED: 19 OCT 2026
# ============================================================================
"""
Gateway Configuration Tests

Run with:
    pytest tests/test_gateway_config.py -v
"""

import pytest

from gateway.config import GatewayConfig, SubmissionConfig, load_extra_config
from services.image_resolver import SparkImage


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "GATEWAY_PORT",
        "GATEWAY_URL_PREFIX",
        "GATEWAY_USER",
        "GATEWAY_PASSWORD",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "GATEWAY_STORAGE_ACCOUNT",
        "AZURE_STORAGE_CONNECTION_STRING",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestGatewayConfigFromEnv:

    def test_defaults(self, clean_env):
        config = GatewayConfig.from_env()
        assert config.port == 8080
        assert config.api_root == "/sparkapi/v1"
        assert config.log_level == "INFO"
        assert config.log_json is False
        assert config.has_storage_config is False

    def test_logging_settings(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "DEBUG")
        clean_env.setenv("LOG_FORMAT", "JSON")
        config = GatewayConfig.from_env()
        assert config.log_level == "DEBUG"
        assert config.log_json is True

    def test_url_prefix(self, clean_env):
        clean_env.setenv("GATEWAY_URL_PREFIX", "/spark/")
        assert GatewayConfig.from_env().api_root == "/spark/v1"


class TestExtraConfig:

    def test_no_file(self):
        extra = load_extra_config(None)
        assert extra.users == {}
        assert extra.submission == SubmissionConfig()

    def test_missing_file_is_ignored(self, tmp_path):
        extra = load_extra_config(str(tmp_path / "nope.yaml"))
        assert extra.submission.spark_images == []

    def test_invalid_yaml_is_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("submissionConfig: [unclosed")
        assert load_extra_config(str(path)).submission == SubmissionConfig()

    def test_submission_block_and_users(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "submissionConfig:\n"
            "  serviceAccount: spark\n"
            "  defaultSparkVersion: 3.1\n"
            "  sparkImages:\n"
            "    - {version: '3.1', type: Java, image: 'repo/spark:3.1'}\n"
            "  sparkConf:\n"
            "    spark.eventLog.enabled: true\n"
            "users:\n"
            "  alice: secret\n"
        )

        extra = load_extra_config(str(path))

        assert extra.submission.service_account == "spark"
        assert extra.submission.default_spark_version == "3.1"
        assert extra.submission.spark_images == [SparkImage("3.1", "Java", "repo/spark:3.1")]
        assert extra.submission.spark_conf == {"spark.eventLog.enabled": "True"}
        assert extra.users == {"alice": "secret"}

    def test_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"submissionConfig": {"serviceAccount": "sa"}}')
        assert load_extra_config(str(path)).submission.service_account == "sa"
