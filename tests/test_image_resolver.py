# ============================================================================
# IMAGE RESOLVER + VALIDATOR TESTS
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Tests - Image table lookup, default merging, spec validation
# PURPOSE: Verify find_image, merge_defaults and validate_spec
# CREATED: 16 OCT 2026
# ============================================================================
"""
Image Resolver + Validator Tests

Run with:
    pytest tests/test_image_resolver.py -v
"""

import pytest

from core.errors import SubmissionValidationError
from core.models import DriverSpec, ExecutorSpec, SparkApplicationSpec
from services.image_resolver import SparkImage, find_image, merge_defaults
from services.validator import check_spec, has_image, validate_spec


# ============================================================================
# FIND IMAGE
# ============================================================================

class TestFindImage:

    def test_case_insensitive_first_match_wins(self):
        table = [
            SparkImage("3.1", "java", "imgA"),
            SparkImage("3.1", "Java", "imgB"),
        ]
        assert find_image(table, "3.1", "JAVA") == ("imgA", True)

    def test_version_is_case_insensitive(self):
        table = [SparkImage("3.1-Preview", "Python", "py-preview")]
        assert find_image(table, "3.1-preview", "python") == ("py-preview", True)

    def test_no_match(self):
        table = [SparkImage("3.1", "Java", "imgA")]
        assert find_image(table, "3.2", "Java") == ("", False)
        assert find_image(table, "3.1", "Python") == ("", False)

    def test_empty_table(self):
        assert find_image([], "3.1", "Java") == ("", False)

    def test_from_dict(self):
        row = SparkImage.from_dict({"version": 3.1, "type": "Scala", "image": "img"})
        assert row == SparkImage("3.1", "Scala", "img")


# ============================================================================
# MERGE DEFAULTS
# ============================================================================

class TestMergeDefaults:

    def test_existing_keys_never_overwritten(self):
        into = {"a": "caller", "b": ""}
        merge_defaults(into, {"a": "default", "b": "default", "c": "3"})
        assert into == {"a": "caller", "b": "", "c": "3"}

    def test_returns_same_dict(self):
        into = {}
        assert merge_defaults(into, {"x": "1"}) is into

    def test_none_defaults(self):
        into = {"a": "1"}
        assert merge_defaults(into, None) == {"a": "1"}


# ============================================================================
# VALIDATOR
# ============================================================================

def _spec(**kwargs) -> SparkApplicationSpec:
    base = dict(
        spark_version="3.2",
        image="registry/spark:3.2",
        driver=DriverSpec(service_account="sa"),
        executor=ExecutorSpec(service_account="sa"),
    )
    base.update(kwargs)
    return SparkApplicationSpec(**base)


class TestValidator:

    def test_complete_spec_is_valid(self):
        validate_spec(_spec())

    def test_missing_image_everywhere_fails(self):
        with pytest.raises(SubmissionValidationError) as exc:
            validate_spec(_spec(image=None))
        assert exc.value.status_code == 400
        assert "image" in exc.value.message

    def test_role_images_on_both_roles_are_enough(self):
        spec = _spec(
            image=None,
            driver=DriverSpec(service_account="sa", image="drv"),
            executor=ExecutorSpec(service_account="sa", image="exe"),
        )
        assert has_image(spec)
        validate_spec(spec)

    def test_role_image_on_one_role_only_fails(self):
        spec = _spec(
            image=None,
            driver=DriverSpec(service_account="sa", image="drv"),
        )
        assert not has_image(spec)
        with pytest.raises(SubmissionValidationError):
            validate_spec(spec)

    def test_errors_are_collected(self):
        result = check_spec(SparkApplicationSpec())
        assert not result.valid
        assert len(result.errors) == 3
        assert any("Spark version" in e for e in result.errors)
        assert any("service account" in e for e in result.errors)
