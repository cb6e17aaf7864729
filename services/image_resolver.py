# ============================================================================
# SPARK IMAGE / DEFAULTS RESOLVER
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Service - Pure lookup helpers for submission building
# PURPOSE: Image table lookup and non-overwriting map merge
# CREATED: 13 OCT 2026
# ============================================================================
"""
Spark Image / Defaults Resolver

find_image() picks the container image for a (Spark version, application
type) pair from the configured image table. merge_defaults() fills in
namespace-wide sparkConf defaults without touching caller-set keys.

Both are pure functions; the image table is loaded once at startup and
never mutated afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class SparkImage:
    """One row of the image table."""
    version: str
    type: str
    image: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SparkImage":
        """Create from a config-file entry ({version, type, image})."""
        return cls(
            version=str(data.get("version", "")),
            type=str(data.get("type", "")),
            image=str(data.get("image", "")),
        )


@dataclass
class SubmissionConfig:
    """Namespace-wide defaults applied to every submission."""

    spark_images: List[SparkImage] = field(default_factory=list)
    default_spark_version: str = ""
    spark_conf: Dict[str, str] = field(default_factory=dict)
    service_account: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SubmissionConfig":
        """Create from the submissionConfig block of the config file."""
        data = data or {}
        return cls(
            spark_images=[SparkImage.from_dict(row) for row in data.get("sparkImages") or []],
            default_spark_version=str(data.get("defaultSparkVersion") or ""),
            spark_conf={str(k): str(v) for k, v in (data.get("sparkConf") or {}).items()},
            service_account=str(data.get("serviceAccount") or ""),
        )


def find_image(
    table: Iterable[SparkImage],
    version: str,
    app_type: str,
) -> Tuple[str, bool]:
    """
    Find the image for a Spark version and application type.

    Matching is case-insensitive on both fields; the first matching row
    wins, so table order is significant.

    Args:
        table: Ordered image rows
        version: Spark version, e.g. "3.1"
        app_type: Application type, e.g. "Java"

    Returns:
        (image, True) on a match, ("", False) otherwise
    """
    version_key = (version or "").lower()
    type_key = (app_type or "").lower()
    for row in table:
        if row.version.lower() == version_key and row.type.lower() == type_key:
            return row.image, True
    return "", False


def merge_defaults(
    into: Dict[str, str],
    defaults: Optional[Mapping[str, str]],
) -> Dict[str, str]:
    """
    Copy keys from defaults that are missing in into.

    Existing keys in into are never overwritten. Mutates and returns into.
    """
    if not defaults:
        return into
    for key, value in defaults.items():
        if key not in into:
            into[key] = value
    return into


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "SparkImage",
    "SubmissionConfig",
    "find_image",
    "merge_defaults",
]
