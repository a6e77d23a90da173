# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Wire representation of an OCM cluster.

Every field is optional: None means the API did not return the field (or
the payload does not send it). Presence is decided once, when the JSON body
is parsed, and read through plain attribute access afterwards.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class WireModel(BaseModel):
    """Base model for OCM JSON objects."""

    model_config = ConfigDict(extra="ignore")

    def is_empty(self) -> bool:
        """True when no field of the object is set."""
        return all(getattr(self, name) is None for name in type(self).model_fields)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a JSON body, leaving out every unset field."""
        return self.model_dump(mode="json", exclude_none=True)


class ObjectReference(WireModel):
    """Reference to another OCM object by identifier."""

    id: str | None = None


class AutoscaleCompute(WireModel):
    min_replicas: int | None = None
    max_replicas: int | None = None


class ClusterNodes(WireModel):
    compute: int | None = None
    compute_machine_type: ObjectReference | None = None
    compute_labels: dict[str, str] | None = None
    availability_zones: list[str] | None = None
    autoscale_compute: AutoscaleCompute | None = None


class CCS(WireModel):
    """Customer cloud subscription settings."""

    enabled: bool | None = None
    disable_scp_checks: bool | None = None


class InstanceIAMRolesSpec(WireModel):
    master_role_arn: str | None = None
    worker_role_arn: str | None = None


class STSSpec(WireModel):
    role_arn: str | None = None
    support_role_arn: str | None = None
    instance_iam_roles: InstanceIAMRolesSpec | None = None
    operator_role_prefix: str | None = None
    oidc_endpoint_url: str | None = None
    oidc_private_key_secret_arn: str | None = None


class AWSSpec(WireModel):
    account_id: str | None = None
    subnet_ids: list[str] | None = None
    private_link: bool | None = None
    kms_key_arn: str | None = None
    tags: dict[str, str] | None = None
    sts: STSSpec | None = None


class Network(WireModel):
    machine_cidr: str | None = None
    service_cidr: str | None = None
    pod_cidr: str | None = None
    host_prefix: int | None = None


class ClusterAPI(WireModel):
    url: str | None = None
    listening: str | None = None


class ClusterConsole(WireModel):
    url: str | None = None


class ProxySpec(WireModel):
    http_proxy: str | None = None
    https_proxy: str | None = None
    no_proxy: str | None = None


class Cluster(WireModel):
    """Cluster object of the clusters_mgmt/v1 API."""

    id: str | None = None
    name: str | None = None
    external_id: str | None = None
    state: str | None = None
    cloud_provider: ObjectReference | None = None
    product: ObjectReference | None = None
    region: ObjectReference | None = None
    version: ObjectReference | None = None
    multi_az: bool | None = None
    fips: bool | None = None
    etcd_encryption: bool | None = None
    disable_user_workload_monitoring: bool | None = None
    properties: dict[str, str] | None = None
    nodes: ClusterNodes | None = None
    ccs: CCS | None = None
    aws: AWSSpec | None = None
    network: Network | None = None
    api: ClusterAPI | None = None
    console: ClusterConsole | None = None
    proxy: ProxySpec | None = None
    additional_trust_bundle: str | None = None
