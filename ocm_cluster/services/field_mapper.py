# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Translation between ``ClusterState`` and the OCM wire ``Cluster``.

The forward direction builds creation and patch payloads and is where every
cross-field invariant is enforced. The inverse direction refreshes a state
record from a cluster returned by the API and never fails.
"""

import logging
from typing import Any, Optional

from ..errors import ClusterValidationError, TrustResolutionError
from ..models.attr import Attr
from ..models.cluster_state import ClusterState, InstanceIAMRoles, ProxyConfig, StsConfig
from ..models.wire import (
    CCS,
    AWSSpec,
    AutoscaleCompute,
    Cluster,
    ClusterAPI,
    ClusterNodes,
    InstanceIAMRolesSpec,
    Network,
    ObjectReference,
    ProxySpec,
    STSSpec,
)
from .constraint_validator import (
    ERR_HEADLINE,
    build_tags,
    validate_autoscaling_bounds,
    validate_byo_oidc,
    validate_kms_key_arn,
    validate_sts_roles,
)
from .thumbprint_resolver import ThumbprintResolver
from .version_gate import VersionGate

AWS_CLOUD_PROVIDER = "aws"
ROSA_PRODUCT = "rosa"
HTTPS_SCHEME = "https://"
LISTENING_INTERNAL = "internal"
REQUIRED_FIELDS = ("name", "cloud_region")


def _known(attr: Attr) -> Any:
    """Value of a known attribute, None for unknown and null."""
    return attr.value if attr.is_known else None


def _is_true(attr: Attr[bool]) -> bool:
    return attr.is_known and bool(attr.value)


# ----------------------------------------------------------------------
# Forward: ClusterState -> Cluster
# ----------------------------------------------------------------------


def build_cluster_payload(
    state: ClusterState,
    *,
    version_gate: VersionGate,
    logger: Optional[logging.Logger] = None,
) -> Cluster:
    """
    Build the creation payload for a cluster.

    Only known attributes are sent. Composite blocks (nodes, aws, network,
    sts, proxy, autoscaling) are left out when none of their fields is set,
    so OCM applies its own defaults instead of an empty override.

    Args:
        state: Desired state; it is not modified
        version_gate: Gate applied to the requested version
        logger: Logger to use

    Returns:
        The wire cluster to POST

    Raises:
        ClusterValidationError: If an invariant is violated or the version
            is not supported
        VersionCheckError: If the version cannot be parsed
    """
    logger = logger or logging.getLogger(__name__)
    try:
        return _build_cluster_payload(state, version_gate, logger)
    except ClusterValidationError as e:
        logger.error(e.description)
        raise


def _build_cluster_payload(
    state: ClusterState, version_gate: VersionGate, logger: logging.Logger
) -> Cluster:
    for name in REQUIRED_FIELDS:
        attr = getattr(state, name)
        if not attr.is_known or not attr.value:
            raise ClusterValidationError(
                ERR_HEADLINE, f"Attribute '{name}' is required to create a cluster"
            )

    cluster = Cluster(
        name=state.name.value,
        cloud_provider=ObjectReference(id=AWS_CLOUD_PROVIDER),
        product=ObjectReference(id=ROSA_PRODUCT),
        region=ObjectReference(id=state.cloud_region.value),
        multi_az=_known(state.multi_az),
        properties=_known(state.properties),
        etcd_encryption=_known(state.etcd_encryption),
        external_id=_known(state.external_id),
        disable_user_workload_monitoring=_known(state.disable_workload_monitoring),
        fips=True if _is_true(state.fips) else None,
    )

    nodes = _build_nodes(state)
    if not nodes.is_empty():
        cluster.nodes = nodes

    # CCS is always on for ROSA
    cluster.ccs = CCS(
        enabled=True,
        disable_scp_checks=True if _is_true(state.disable_scp_checks) else None,
    )

    aws = AWSSpec(account_id=_known(state.aws_account_id), subnet_ids=_known(state.aws_subnet_ids))
    if state.tags.is_known:
        aws.tags = build_tags(state.tags.value)
    if state.kms_key_arn.is_known and state.kms_key_arn.value:
        validate_kms_key_arn(state.kms_key_arn.value)
        aws.kms_key_arn = state.kms_key_arn.value
    if state.aws_private_link.is_known:
        aws.private_link = state.aws_private_link.value
        if state.aws_private_link.value:
            cluster.api = ClusterAPI(listening=LISTENING_INTERNAL)
    if state.sts.is_known:
        aws.sts = _build_sts(state.sts.value)
    if not aws.is_empty():
        cluster.aws = aws

    network = Network(
        machine_cidr=_known(state.machine_cidr),
        service_cidr=_known(state.service_cidr),
        pod_cidr=_known(state.pod_cidr),
        host_prefix=_known(state.host_prefix),
    )
    if not network.is_empty():
        cluster.network = network

    if state.version.is_known:
        version = state.version.value
        if not version_gate.is_supported(version):
            logger.error(f"Cluster version {version} is not supported")
            raise ClusterValidationError(
                ERR_HEADLINE,
                f"Cluster version '{version}' is not supported, the minimum "
                f"supported version is {version_gate.min_version}",
            )
        cluster.version = ObjectReference(id=version)

    if state.proxy.is_known:
        proxy_config = state.proxy.value
        proxy = ProxySpec(
            http_proxy=_known(proxy_config.http_proxy),
            https_proxy=_known(proxy_config.https_proxy),
            no_proxy=_known(proxy_config.no_proxy),
        )
        if not proxy.is_empty():
            cluster.proxy = proxy
        cluster.additional_trust_bundle = _known(proxy_config.additional_trust_bundle)

    return cluster


def _build_nodes(state: ClusterState) -> ClusterNodes:
    nodes = ClusterNodes(
        compute=_known(state.replicas),
        compute_labels=_known(state.compute_labels),
        availability_zones=_known(state.availability_zones),
    )
    if state.compute_machine_type.is_known:
        nodes.compute_machine_type = ObjectReference(id=state.compute_machine_type.value)

    if _is_true(state.autoscaling_enabled):
        autoscaling = AutoscaleCompute(
            min_replicas=_known(state.min_replicas),
            max_replicas=_known(state.max_replicas),
        )
        if not autoscaling.is_empty():
            nodes.autoscale_compute = autoscaling
    else:
        validate_autoscaling_bounds(state)
    return nodes


def _build_sts(sts: StsConfig) -> STSSpec:
    validate_sts_roles(sts)
    roles = sts.instance_iam_roles.value
    spec = STSSpec(
        role_arn=sts.role_arn.value,
        support_role_arn=sts.support_role_arn.value,
        instance_iam_roles=InstanceIAMRolesSpec(
            master_role_arn=roles.master_role_arn.value,
            worker_role_arn=roles.worker_role_arn.value,
        ),
        operator_role_prefix=_known(sts.operator_role_prefix),
    )
    if validate_byo_oidc(sts):
        spec.oidc_endpoint_url = with_https(sts.oidc_endpoint_url.value)
        spec.oidc_private_key_secret_arn = sts.oidc_private_key_secret_arn.value
    return spec


def with_https(url: str) -> str:
    """Prefix a URL with https:// unless it already has it."""
    return url if url.startswith(HTTPS_SCHEME) else HTTPS_SCHEME + url


def without_https(url: str) -> str:
    """Strip a leading https:// from a URL."""
    return url[len(HTTPS_SCHEME):] if url.startswith(HTTPS_SCHEME) else url


# ----------------------------------------------------------------------
# Update patch
# ----------------------------------------------------------------------


def _should_patch(current: Attr, planned: Attr) -> bool:
    if not planned.is_known:
        return False
    return not current.is_known or current.value != planned.value


def build_cluster_patch(state: ClusterState, plan: ClusterState) -> Cluster:
    """
    Build the minimal patch that moves a stored cluster to a plan.

    Only the mutable attributes are considered: replicas, autoscaling
    bounds, compute labels and properties. The caller checks immutable
    attributes and the autoscaling invariant beforehand.

    Returns:
        The patch; ``is_empty()`` tells whether anything changed
    """
    patch = Cluster()
    nodes = ClusterNodes()

    if _should_patch(state.replicas, plan.replicas):
        nodes.compute = plan.replicas.value

    if _is_true(plan.autoscaling_enabled):
        bounds_changed = (
            not _is_true(state.autoscaling_enabled)
            or _should_patch(state.min_replicas, plan.min_replicas)
            or _should_patch(state.max_replicas, plan.max_replicas)
        )
        if bounds_changed:
            nodes.autoscale_compute = AutoscaleCompute(
                min_replicas=_known(plan.min_replicas),
                max_replicas=_known(plan.max_replicas),
            )

    if _should_patch(state.compute_labels, plan.compute_labels):
        nodes.compute_labels = plan.compute_labels.value

    if not nodes.is_empty():
        patch.nodes = nodes

    if _should_patch(state.properties, plan.properties):
        patch.properties = plan.properties.value

    return patch


# ----------------------------------------------------------------------
# Inverse: Cluster -> ClusterState
# ----------------------------------------------------------------------


def _known_or_null(value: Any) -> Attr:
    return Attr.null() if value is None else Attr.of(value)


def _known_or_prior(value: Any, prior: Attr) -> Attr:
    """Use the API value when present, else keep a known prior value."""
    if value is not None:
        return Attr.of(value)
    return prior if prior.is_known else Attr.null()


def _true_or_prior(value: Optional[bool], prior: Attr) -> Attr:
    """Record a flag OCM reports as set, else keep the prior value."""
    if value:
        return Attr.of(True)
    return Attr.null() if prior.is_unknown else prior


def _ref_id(ref: Optional[ObjectReference]) -> Optional[str]:
    return ref.id if ref is not None else None


def populate_cluster_state(
    snapshot: Cluster,
    state: ClusterState,
    *,
    resolver: Optional[ThumbprintResolver] = None,
    logger: Optional[logging.Logger] = None,
) -> ClusterState:
    """
    Refresh a state record from a cluster returned by OCM.

    Every attribute of the result is either known or null. Attributes the
    API omits become null, except those OCM never echoes back (account id,
    BYO OIDC secret ARN) or reports only when enabled (FIPS, disabled
    workload monitoring, disabled SCP checks), which keep the value from
    ``state`` unless OCM reports them set.

    Args:
        snapshot: Cluster returned by the API
        state: Prior state (plan, stored state, or empty state on import)
        resolver: Resolver for the OIDC thumbprint; failures are logged
            and leave the thumbprint empty
        logger: Logger to use

    Returns:
        A new state; ``state`` is not modified
    """
    logger = logger or logging.getLogger(__name__)
    nodes = snapshot.nodes or ClusterNodes()
    aws = snapshot.aws or AWSSpec()
    ccs = snapshot.ccs or CCS()
    network = snapshot.network or Network()

    update: dict[str, Attr] = {
        "id": _known_or_null(snapshot.id),
        "external_id": _known_or_null(snapshot.external_id),
        "name": _known_or_null(snapshot.name),
        "cloud_region": _known_or_null(_ref_id(snapshot.region)),
        "api_url": _known_or_null(snapshot.api.url if snapshot.api else None),
        "console_url": _known_or_null(snapshot.console.url if snapshot.console else None),
        "state": _known_or_null(snapshot.state),
        "ccs_enabled": _known_or_null(ccs.enabled),
        "multi_az": _known_or_null(snapshot.multi_az),
        "properties": _known_or_null(snapshot.properties),
        "replicas": _known_or_null(nodes.compute),
        "compute_machine_type": _known_or_null(_ref_id(nodes.compute_machine_type)),
        "compute_labels": _known_or_null(nodes.compute_labels),
        "availability_zones": _known_or_null(nodes.availability_zones),
        "machine_cidr": _known_or_null(network.machine_cidr),
        "service_cidr": _known_or_null(network.service_cidr),
        "pod_cidr": _known_or_null(network.pod_cidr),
        "host_prefix": _known_or_null(network.host_prefix),
        "version": _known_or_null(_ref_id(snapshot.version)),
        "etcd_encryption": _known_or_null(snapshot.etcd_encryption),
        "fips": _true_or_prior(snapshot.fips, state.fips),
        "disable_workload_monitoring": _true_or_prior(
            snapshot.disable_user_workload_monitoring, state.disable_workload_monitoring
        ),
        "disable_scp_checks": _true_or_prior(ccs.disable_scp_checks, state.disable_scp_checks),
        "kms_key_arn": _known_or_null(aws.kms_key_arn),
        "aws_account_id": _known_or_prior(aws.account_id, state.aws_account_id),
        "aws_subnet_ids": _known_or_null(aws.subnet_ids),
        "aws_private_link": _known_or_null(aws.private_link),
        "tags": _known_or_null(list(aws.tags.items()) if aws.tags is not None else None),
        "disable_waiting_in_destroy": _local_only(state.disable_waiting_in_destroy),
        "destroy_timeout": _local_only(state.destroy_timeout),
    }

    autoscaling = nodes.autoscale_compute
    if autoscaling is not None:
        update["autoscaling_enabled"] = Attr.of(True)
        update["min_replicas"] = _known_or_null(autoscaling.min_replicas)
        update["max_replicas"] = _known_or_null(autoscaling.max_replicas)
    else:
        update["autoscaling_enabled"] = (
            state.autoscaling_enabled if state.autoscaling_enabled.is_known else Attr.null()
        )
        update["min_replicas"] = Attr.null()
        update["max_replicas"] = Attr.null()

    prior_sts = state.sts.value if state.sts.is_known else StsConfig()
    update["sts"] = (
        Attr.of(_populate_sts(aws.sts, prior_sts, resolver, logger))
        if aws.sts is not None
        else Attr.null()
    )
    update["proxy"] = _populate_proxy(snapshot, state.proxy)

    return state.model_copy(update=update)


def _local_only(prior: Attr) -> Attr:
    return Attr.null() if prior.is_unknown else prior


def _populate_sts(
    sts: STSSpec,
    prior: StsConfig,
    resolver: Optional[ThumbprintResolver],
    logger: logging.Logger,
) -> StsConfig:
    roles = sts.instance_iam_roles
    instance_roles = (
        Attr.of(
            InstanceIAMRoles(
                master_role_arn=_known_or_null(roles.master_role_arn),
                worker_role_arn=_known_or_null(roles.worker_role_arn),
            )
        )
        if roles is not None
        else Attr.null()
    )

    # OCM does not always echo the prefix back; keep the one we sent
    if prior.operator_role_prefix.is_known:
        operator_role_prefix = prior.operator_role_prefix
    else:
        operator_role_prefix = _known_or_null(sts.operator_role_prefix)

    oidc_endpoint_url = sts.oidc_endpoint_url
    thumbprint = ""
    if oidc_endpoint_url:
        thumbprint = _resolve_thumbprint(with_https(oidc_endpoint_url), resolver, logger)

    return StsConfig(
        role_arn=_known_or_null(sts.role_arn),
        support_role_arn=_known_or_null(sts.support_role_arn),
        instance_iam_roles=instance_roles,
        operator_role_prefix=operator_role_prefix,
        oidc_endpoint_url=_known_or_null(
            without_https(oidc_endpoint_url) if oidc_endpoint_url is not None else None
        ),
        oidc_private_key_secret_arn=_known_or_prior(
            sts.oidc_private_key_secret_arn, prior.oidc_private_key_secret_arn
        ),
        thumbprint=Attr.of(thumbprint),
    )


def _resolve_thumbprint(
    issuer_url: str, resolver: Optional[ThumbprintResolver], logger: logging.Logger
) -> str:
    if resolver is None:
        return ""
    try:
        return resolver.resolve(issuer_url)
    except TrustResolutionError as e:
        logger.error(f"Cannot get thumbprint: {e.description}")
        return ""


def _populate_proxy(snapshot: Cluster, prior: Attr) -> Attr:
    prior_proxy = prior.value if prior.is_known else ProxyConfig()
    proxy = snapshot.proxy
    if proxy is None and snapshot.additional_trust_bundle is None:
        return Attr.null()
    proxy = proxy or ProxySpec()
    # OCM answers with a redacted bundle, keep the one that was sent
    trust_bundle = prior_proxy.additional_trust_bundle
    if not trust_bundle.is_known:
        trust_bundle = _known_or_null(snapshot.additional_trust_bundle)
    return Attr.of(
        ProxyConfig(
            http_proxy=_known_or_null(proxy.http_proxy),
            https_proxy=_known_or_null(proxy.https_proxy),
            no_proxy=_known_or_null(proxy.no_proxy),
            additional_trust_bundle=trust_bundle,
        )
    )
