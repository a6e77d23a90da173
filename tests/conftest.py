"""Pytest configuration and shared fixtures."""

import pytest
from unittest.mock import MagicMock, AsyncMock

from ocm_cluster.clients.ocm_client import OCMClient
from ocm_cluster.models import ClusterState
from ocm_cluster.models.wire import Cluster


# =============================================================================
# Environment and Configuration Fixtures
# =============================================================================

@pytest.fixture
def test_env(monkeypatch):
    """Set up test environment variables."""
    test_vars = {
        "OCM_URL": "https://api.stage.openshift.com",
        "OCM_TOKEN": "test-token",
        "LOG_LEVEL": "DEBUG",
        "TF_LOG": "DEBUG",
        "OCM_DESTROY_TIMEOUT_MINUTES": "30",
    }
    for key, value in test_vars.items():
        monkeypatch.setenv(key, value)
    return test_vars


# =============================================================================
# OCM Mocks
# =============================================================================

@pytest.fixture
def mock_ocm_client():
    """Create a mock OCM client for testing."""
    client = MagicMock(spec=OCMClient)
    client.create_cluster = AsyncMock()
    client.get_cluster = AsyncMock()
    client.update_cluster = AsyncMock()
    client.delete_cluster = AsyncMock(return_value=None)
    client.poll_cluster = AsyncMock()
    return client


@pytest.fixture
def fake_resolver():
    """Thumbprint resolver that never touches the network."""
    resolver = MagicMock()
    resolver.resolve = MagicMock(return_value="a" * 40)
    return resolver


# =============================================================================
# Test Data Fixtures
# =============================================================================

@pytest.fixture
def sample_plan_data():
    """Provide a sample STS cluster plan as the front-end would hand it over."""
    return {
        "name": "my-cluster",
        "cloud_region": "us-east-1",
        "multi_az": False,
        "replicas": 3,
        "compute_machine_type": "m5.xlarge",
        "aws_account_id": "123456789012",
        "aws_subnet_ids": ["subnet-1", "subnet-2"],
        "aws_private_link": False,
        "tags": {"owner": "team-a", "env": "dev"},
        "properties": {"rosa_creator_arn": "arn:aws:iam::123456789012:user/admin"},
        "version": "openshift-v4.11.3",
        "sts": {
            "role_arn": "arn:aws:iam::123456789012:role/Installer",
            "support_role_arn": "arn:aws:iam::123456789012:role/Support",
            "instance_iam_roles": {
                "master_role_arn": "arn:aws:iam::123456789012:role/ControlPlane",
                "worker_role_arn": "arn:aws:iam::123456789012:role/Worker",
            },
            "operator_role_prefix": "my-cluster-x1y2",
        },
    }


@pytest.fixture
def sample_plan(sample_plan_data):
    """Provide a sample plan as a ClusterState."""
    return ClusterState.model_validate(sample_plan_data)


@pytest.fixture
def sample_cluster_data():
    """Provide a sample cluster body as returned by the OCM API."""
    return {
        "kind": "Cluster",
        "id": "1n2j3k4l5m6n7o8p",
        "href": "/api/clusters_mgmt/v1/clusters/1n2j3k4l5m6n7o8p",
        "name": "my-cluster",
        "external_id": "6b1c0a34-9f52-4c0e-8a51-3a6a6f5b0e2d",
        "state": "installing",
        "cloud_provider": {"kind": "CloudProviderLink", "id": "aws"},
        "product": {"id": "rosa"},
        "region": {"id": "us-east-1"},
        "version": {"id": "openshift-v4.11.3"},
        "multi_az": False,
        "etcd_encryption": False,
        "properties": {"rosa_creator_arn": "arn:aws:iam::123456789012:user/admin"},
        "nodes": {
            "compute": 3,
            "compute_machine_type": {"id": "m5.xlarge"},
            "availability_zones": ["us-east-1a"],
        },
        "ccs": {"enabled": True},
        "aws": {
            "subnet_ids": ["subnet-1", "subnet-2"],
            "private_link": False,
            "tags": {"owner": "team-a", "env": "dev"},
            "sts": {
                "role_arn": "arn:aws:iam::123456789012:role/Installer",
                "support_role_arn": "arn:aws:iam::123456789012:role/Support",
                "instance_iam_roles": {
                    "master_role_arn": "arn:aws:iam::123456789012:role/ControlPlane",
                    "worker_role_arn": "arn:aws:iam::123456789012:role/Worker",
                },
                "operator_role_prefix": "my-cluster-x1y2",
                "oidc_endpoint_url": "https://rh-oidc.s3.us-east-1.amazonaws.com/1n2j3k4l5m6n7o8p",
            },
        },
        "network": {
            "machine_cidr": "10.0.0.0/16",
            "service_cidr": "172.30.0.0/16",
            "pod_cidr": "10.128.0.0/14",
            "host_prefix": 23,
        },
        "api": {"url": "https://api.my-cluster.abcd.p1.openshiftapps.com:6443", "listening": "external"},
        "console": {"url": "https://console-openshift-console.apps.my-cluster.abcd.p1.openshiftapps.com"},
    }


@pytest.fixture
def sample_cluster(sample_cluster_data):
    """Provide the sample cluster body parsed as a wire Cluster."""
    return Cluster.model_validate(sample_cluster_data)


# =============================================================================
# Pytest Hooks for Test Reporting
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "property: marks tests as property-based tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark tests by directory
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)


def pytest_sessionstart(session):
    """Print test session information."""
    print("\n" + "=" * 70)
    print("OCM Cluster Reconciliation Engine - Test Suite")
    print("=" * 70)


def pytest_sessionfinish(session, exitstatus):
    """Print test session summary."""
    print("\n" + "=" * 70)
    if exitstatus == 0:
        print("PASS: All tests passed!")
    else:
        print(f"FAIL: Tests failed with exit status: {exitstatus}")
    print("=" * 70)
