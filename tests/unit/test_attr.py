"""Unit tests for tri-state attributes and the state record."""

import pytest

from ocm_cluster.models import Attr, AttrState, ClusterState, StsConfig


# =============================================================================
# Attr
# =============================================================================

class TestAttr:
    """Test the tri-state attribute type."""

    def test_states_are_distinct(self):
        assert Attr.unknown() != Attr.null()
        assert Attr.null() != Attr.of(False)
        assert Attr.of(0) != Attr.unknown()

    def test_known_value(self):
        attr = Attr.of("x")
        assert attr.is_known
        assert attr.state == AttrState.KNOWN
        assert attr.value == "x"

    def test_value_or(self):
        assert Attr.of(5).value_or(1) == 5
        assert Attr.null().value_or(1) == 1
        assert Attr.unknown().value_or(1) == 1

    def test_of_rejects_none(self):
        with pytest.raises(ValueError):
            Attr.of(None)

    def test_null_cannot_hold_value(self):
        with pytest.raises(ValueError):
            Attr(AttrState.NULL, "x")

    def test_repr(self):
        assert repr(Attr.of(3)) == "Attr.of(3)"
        assert repr(Attr.unknown()) == "Attr.unknown()"


# =============================================================================
# ClusterState validation
# =============================================================================

class TestClusterStateValidation:
    """Test how raw values are coerced into tri-state fields."""

    def test_missing_field_is_unknown(self):
        state = ClusterState.model_validate({"name": "c1"})
        assert state.name == Attr.of("c1")
        assert state.cloud_region.is_unknown

    def test_none_is_null(self):
        state = ClusterState.model_validate({"replicas": None})
        assert state.replicas.is_null

    def test_value_is_validated(self):
        state = ClusterState.model_validate({"replicas": "3"})
        assert state.replicas == Attr.of(3)

    def test_nested_sts(self, sample_plan):
        sts = sample_plan.sts.value
        assert isinstance(sts, StsConfig)
        assert sts.instance_iam_roles.value.worker_role_arn.value.endswith("role/Worker")
        assert sts.thumbprint.is_unknown

    def test_tags_mapping_becomes_pairs(self, sample_plan):
        assert sample_plan.tags.value == [("owner", "team-a"), ("env", "dev")]

    def test_duplicate_tag_pairs_survive(self):
        state = ClusterState.model_validate({"tags": [("k", "1"), ("k", "2")]})
        assert state.tags.value == [("k", "1"), ("k", "2")]


# =============================================================================
# State record
# =============================================================================

class TestStateRecord:
    """Test the at-rest record of a state."""

    def test_unknown_fields_are_omitted(self):
        record = ClusterState.model_validate({"name": "c1", "fips": None}).to_record()
        assert record == {"name": "c1", "fips": None}

    def test_record_restores_tri_states(self, sample_plan):
        restored = ClusterState.from_record(sample_plan.to_record())
        assert restored == sample_plan

    def test_nested_record(self, sample_plan):
        record = sample_plan.to_record()
        assert record["sts"]["instance_iam_roles"]["master_role_arn"].endswith("ControlPlane")
        assert "thumbprint" not in record["sts"]
        assert record["tags"] == [["owner", "team-a"], ["env", "dev"]]
