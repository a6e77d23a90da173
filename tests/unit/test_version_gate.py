"""Unit tests for the minimum version check."""

import pytest

from ocm_cluster.errors import VersionCheckError
from ocm_cluster.services.version_gate import VersionGate


@pytest.fixture
def gate():
    """Create a VersionGate with the default minimum."""
    return VersionGate(min_version="4.10")


class TestVersionGate:
    """Test semantic version comparison against the minimum."""

    def test_minimum_is_supported(self, gate):
        assert gate.is_supported("openshift-v4.10.0") is True

    def test_older_minor_is_not_supported(self, gate):
        assert gate.is_supported("openshift-v4.9.0") is False

    def test_newer_version_is_supported(self, gate):
        assert gate.is_supported("openshift-v4.12.15") is True

    def test_prefix_is_optional(self, gate):
        assert gate.is_supported("4.11.3") is True

    def test_minor_compares_numerically(self, gate):
        # 4.9 < 4.10 even though "9" > "1" as text
        assert gate.is_supported("4.9.59") is False

    def test_prerelease_sorts_below_release(self):
        gate = VersionGate(min_version="4.10.0")
        assert gate.is_supported("openshift-v4.10.0-rc.1") is False

    def test_unparseable_version_raises(self, gate):
        with pytest.raises(VersionCheckError) as exc_info:
            gate.is_supported("not-a-version")

        assert "not-a-version" in exc_info.value.description

    def test_unparseable_minimum_raises(self):
        gate = VersionGate(min_version="four")
        with pytest.raises(VersionCheckError):
            gate.is_supported("openshift-v4.10.0")
