# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Desired state and persisted state record of a ROSA classic cluster."""

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

from .attr import Attr


def _as_tag_pairs(value: Any) -> Any:
    if isinstance(value, Mapping):
        return list(value.items())
    return value


# Tags are kept as ordered (key, value) pairs so that duplicate keys coming
# from user input survive until the constraint validator sees them.
TagPairs = Annotated[list[tuple[str, str]], BeforeValidator(_as_tag_pairs)]


def attr_field(description: str) -> Any:
    """Declare a tri-state field that defaults to unknown."""
    return Field(default_factory=Attr.unknown, description=description)


class TriStateModel(BaseModel):
    """Base model whose fields are all tri-state attributes."""

    def to_record(self) -> dict[str, Any]:
        """
        Convert to the at-rest record.

        Unknown fields are omitted, null fields are stored as None and
        known fields hold their value (nested models become nested records).
        """
        record: dict[str, Any] = {}
        for name in type(self).model_fields:
            attr = getattr(self, name)
            if attr.is_unknown:
                continue
            value = attr.value
            if isinstance(value, TriStateModel):
                value = value.to_record()
            elif name == "tags" and value is not None:
                value = [list(pair) for pair in value]
            record[name] = value
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]):
        """Load a record produced by ``to_record``."""
        return cls.model_validate(dict(record))


class InstanceIAMRoles(TriStateModel):
    """Instance profile roles of the control plane and worker nodes."""

    master_role_arn: Attr[str] = attr_field("Master/Controller Plane Role ARN")
    worker_role_arn: Attr[str] = attr_field("Worker Node Role ARN")


class StsConfig(TriStateModel):
    """AWS STS trust roles of the cluster."""

    role_arn: Attr[str] = attr_field("Installer Role ARN")
    support_role_arn: Attr[str] = attr_field("Support Role ARN")
    instance_iam_roles: Attr[InstanceIAMRoles] = attr_field("Instance IAM Roles")
    operator_role_prefix: Attr[str] = attr_field("Prefix for operator roles")
    oidc_endpoint_url: Attr[str] = attr_field(
        "OIDC issuer endpoint, stored without the https:// scheme"
    )
    oidc_private_key_secret_arn: Attr[str] = attr_field(
        "ARN of the secret holding the BYO OIDC private key"
    )
    thumbprint: Attr[str] = attr_field("SHA1 hash of the root CA of the issuer URL")


class ProxyConfig(TriStateModel):
    """Cluster-wide proxy settings."""

    http_proxy: Attr[str] = attr_field("HTTP proxy URL")
    https_proxy: Attr[str] = attr_field("HTTPS proxy URL")
    no_proxy: Attr[str] = attr_field("Comma separated list of hosts excluded from proxying")
    additional_trust_bundle: Attr[str] = attr_field("PEM encoded CA bundle trusted by the cluster")


class ClusterState(TriStateModel):
    """
    Shape of a ROSA classic cluster.

    The same model holds the user's plan (desired state) and the persisted
    state record refreshed from the OCM API after every operation.
    """

    # Identity (id, URLs and state are assigned by the server)
    id: Attr[str] = attr_field("Unique identifier of the cluster")
    external_id: Attr[str] = attr_field("Unique external identifier of the cluster")
    name: Attr[str] = attr_field("Name of the cluster")
    cloud_region: Attr[str] = attr_field("Cloud region identifier, for example 'us-east-1'")
    api_url: Attr[str] = attr_field("URL of the API server")
    console_url: Attr[str] = attr_field("URL of the console")
    state: Attr[str] = attr_field("Lifecycle state reported by OCM")
    ccs_enabled: Attr[bool] = attr_field("Customer cloud subscription enabled")

    # Placement and compute
    multi_az: Attr[bool] = attr_field("Deploy to multiple availability zones")
    replicas: Attr[int] = attr_field("Number of compute nodes")
    autoscaling_enabled: Attr[bool] = attr_field("Enables compute autoscaling")
    min_replicas: Attr[int] = attr_field("Minimum compute replicas when autoscaling")
    max_replicas: Attr[int] = attr_field("Maximum compute replicas when autoscaling")
    compute_machine_type: Attr[str] = attr_field("Machine type of the compute nodes")
    compute_labels: Attr[dict[str, str]] = attr_field("Labels applied to compute nodes")
    availability_zones: Attr[list[str]] = attr_field("Availability zones")

    # Network
    machine_cidr: Attr[str] = attr_field("Block of IP addresses used by cluster nodes")
    service_cidr: Attr[str] = attr_field("Block of IP addresses for services")
    pod_cidr: Attr[str] = attr_field("Block of IP addresses for pods")
    host_prefix: Attr[int] = attr_field("Length of the prefix of the subnet assigned to each node")

    # Platform and security posture
    version: Attr[str] = attr_field("OpenShift version, for example 'openshift-v4.10.0'")
    fips: Attr[bool] = attr_field("Create cluster that uses FIPS validated modules")
    etcd_encryption: Attr[bool] = attr_field("Encrypt etcd data")
    disable_workload_monitoring: Attr[bool] = attr_field("Disable user workload monitoring")
    disable_scp_checks: Attr[bool] = attr_field("Disable service control policy checks")
    kms_key_arn: Attr[str] = attr_field("KMS key ARN or key id used for encryption")

    # AWS account linkage
    aws_account_id: Attr[str] = attr_field("Identifier of the AWS account")
    aws_subnet_ids: Attr[list[str]] = attr_field("AWS subnet identifiers")
    aws_private_link: Attr[bool] = attr_field("Provision the cluster with PrivateLink")
    tags: Attr[TagPairs] = attr_field("User defined tags applied to AWS resources")
    properties: Attr[dict[str, str]] = attr_field("User defined properties")

    # Trust roles and proxy
    sts: Attr[StsConfig] = attr_field("STS configuration")
    proxy: Attr[ProxyConfig] = attr_field("Proxy configuration")

    # Destroy-time behavior (local only, never sent to OCM)
    disable_waiting_in_destroy: Attr[bool] = attr_field(
        "Skip waiting for the cluster to disappear after delete"
    )
    destroy_timeout: Attr[int] = attr_field("Minutes to wait for the cluster to be deleted")


# Attributes that can be set at creation but never changed by an update.
IMMUTABLE_FIELDS: tuple[str, ...] = (
    "name",
    "external_id",
    "cloud_region",
    "multi_az",
    "disable_workload_monitoring",
    "disable_scp_checks",
    "tags",
    "etcd_encryption",
    "compute_machine_type",
    "aws_account_id",
    "aws_subnet_ids",
    "kms_key_arn",
    "fips",
    "aws_private_link",
    "availability_zones",
    "machine_cidr",
    "service_cidr",
    "pod_cidr",
    "host_prefix",
    "version",
    "proxy",
    "sts",
)
