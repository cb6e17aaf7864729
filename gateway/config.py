# ============================================================================
# GATEWAY CONFIGURATION
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Gateway - Configuration management
# PURPOSE: Environment and config-file settings for the gateway server
# CREATED: 14 OCT 2026
# ============================================================================
"""
Gateway Configuration

Two layers:
1. GatewayConfig from environment variables (port, URL prefix, auth user,
   namespace, storage account)
2. An optional YAML or JSON file (GATEWAY_CONFIG_FILE) holding the
   submission config and extra users:

    submissionConfig:
      serviceAccount: spark
      defaultSparkVersion: "3.1"
      sparkImages:
        - {version: "3.1", type: Java, image: "repo/spark:3.1"}
        - {version: "3.1", type: Python, image: "repo/pyspark:3.1"}
      sparkConf:
        spark.eventLog.enabled: "true"
    users:
      alice: secret

JSON is a subset of YAML, so one loader handles both. A missing or
malformed file is logged and ignored; the gateway starts without it.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from services.image_resolver import SubmissionConfig

logger = logging.getLogger(__name__)

DEFAULT_URL_PREFIX = "/sparkapi"
DEFAULT_STORAGE_ROOT = "api-gateway-root"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes")


@dataclass
class ExtraConfig:
    """Contents of GATEWAY_CONFIG_FILE."""

    submission: SubmissionConfig = field(default_factory=SubmissionConfig)
    users: Dict[str, str] = field(default_factory=dict)


def load_extra_config(path: Optional[str]) -> ExtraConfig:
    """
    Load the optional YAML/JSON config file.

    Args:
        path: File path; empty or None means no file

    Returns:
        ExtraConfig (empty when the file is missing or invalid)
    """
    if not path:
        return ExtraConfig()

    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring config file {file_path}: {e}")
        return ExtraConfig()

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {file_path}: top level is not a mapping")
        return ExtraConfig()

    submission = SubmissionConfig.from_dict(data.get("submissionConfig"))
    users = {str(k): str(v) for k, v in (data.get("users") or {}).items()}
    logger.info(
        f"Loaded config file {file_path}: {len(submission.spark_images)} Spark images, "
        f"{len(submission.spark_conf)} default conf keys, {len(users)} users"
    )
    return ExtraConfig(submission=submission, users=users)


# ============================================================================
# GATEWAY CONFIG (from environment)
# ============================================================================

@dataclass
class GatewayConfig:
    """Configuration for the gateway server."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    url_prefix: str = DEFAULT_URL_PREFIX

    # Auth (empty user = open access)
    user_name: str = ""
    user_password: str = ""

    # Orchestrator
    namespace: str = "default"
    kubeconfig: Optional[str] = None
    spark_ui_modify_redirect_url: bool = False

    # Object storage
    storage_account: str = ""
    storage_connection_string: Optional[str] = None
    storage_container: str = "spark-uploads"
    storage_root: str = DEFAULT_STORAGE_ROOT

    # Extra file
    config_file: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Load configuration from environment variables."""
        return cls(
            host=os.environ.get("GATEWAY_HOST", "0.0.0.0"),
            port=int(os.environ.get("GATEWAY_PORT", "8080")),
            url_prefix=os.environ.get("GATEWAY_URL_PREFIX", DEFAULT_URL_PREFIX),
            user_name=os.environ.get("GATEWAY_USER", ""),
            user_password=os.environ.get("GATEWAY_PASSWORD", ""),
            namespace=os.environ.get("SPARK_APPLICATION_NAMESPACE", "default"),
            kubeconfig=os.environ.get("KUBECONFIG") or None,
            spark_ui_modify_redirect_url=_env_bool("SPARK_UI_MODIFY_REDIRECT_URL"),
            storage_account=os.environ.get("GATEWAY_STORAGE_ACCOUNT", ""),
            storage_connection_string=os.environ.get("AZURE_STORAGE_CONNECTION_STRING"),
            storage_container=os.environ.get("GATEWAY_STORAGE_CONTAINER", "spark-uploads"),
            storage_root=os.environ.get("GATEWAY_STORAGE_ROOT", DEFAULT_STORAGE_ROOT),
            config_file=os.environ.get("GATEWAY_CONFIG_FILE") or None,
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            log_json=os.environ.get("LOG_FORMAT", "").lower() == "json",
        )

    @property
    def api_root(self) -> str:
        """Path all API routes are mounted under, e.g. /sparkapi/v1."""
        return f"{self.url_prefix.rstrip('/')}/v1"

    @property
    def has_storage_config(self) -> bool:
        """Check if object storage is configured (for /s3/upload)."""
        return bool(self.storage_account or self.storage_connection_string)


# Global config singleton
_config: Optional[GatewayConfig] = None


def get_config() -> GatewayConfig:
    """Get the global configuration singleton."""
    global _config
    if _config is None:
        _config = GatewayConfig.from_env()
    return _config


__all__ = [
    "SubmissionConfig",
    "ExtraConfig",
    "load_extra_config",
    "GatewayConfig",
    "get_config",
]
