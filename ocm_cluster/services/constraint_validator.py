# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Cross-field invariant checks run before any payload leaves the engine."""

import logging
from typing import Iterable, Optional

from ..errors import ClusterValidationError
from ..models.attr import Attr
from ..models.cluster_state import IMMUTABLE_FIELDS, ClusterState, StsConfig, TriStateModel
from ..utils.arn_utils import KMS_KEY_ARN_PATTERN, is_valid_kms_key_arn

logger = logging.getLogger(__name__)

ERR_HEADLINE = "Can't build cluster"
UPDATE_HEADLINE = "Can't update cluster"

# Optional attributes the server fills in when the user leaves them out.
# A null plan value for these means "not specified", not "remove".
SERVER_DEFAULTED_FIELDS = frozenset(
    {
        "external_id",
        "multi_az",
        "etcd_encryption",
        "compute_machine_type",
        "aws_private_link",
        "availability_zones",
        "machine_cidr",
        "service_cidr",
        "pod_cidr",
        "host_prefix",
        "version",
        "oidc_endpoint_url",
        "operator_role_prefix",
    }
)

# Nested attributes derived by the engine rather than set by the user
DERIVED_FIELDS = frozenset({"thumbprint"})


def build_tags(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    """
    Build the tag map sent to OCM, rejecting duplicate keys.

    Args:
        pairs: Tag (key, value) pairs in declaration order

    Returns:
        Mapping of tag key to value

    Raises:
        ClusterValidationError: On the first duplicate key
    """
    tags: dict[str, str] = {}
    for key, value in pairs:
        if key in tags:
            raise ClusterValidationError(
                ERR_HEADLINE,
                f"Invalid tags, user tag keys must be unique, duplicate key '{key}' found",
            )
        tags[key] = value
    return tags


def validate_kms_key_arn(value: str) -> None:
    """Reject a non-empty KMS key identifier that is neither a key ARN nor a UUID."""
    if value and not is_valid_kms_key_arn(value):
        raise ClusterValidationError(
            ERR_HEADLINE,
            f"Expected a valid value for kms-key-arn matching {KMS_KEY_ARN_PATTERN.pattern}",
        )


def validate_autoscaling_bounds(state: ClusterState, headline: str = ERR_HEADLINE) -> None:
    """
    Reject replica bounds supplied while autoscaling is not enabled.

    Raises:
        ClusterValidationError: If min_replicas or max_replicas is set and
            autoscaling_enabled is not explicitly true
    """
    autoscaling = state.autoscaling_enabled
    if autoscaling.is_known and autoscaling.value:
        return
    if state.min_replicas.is_known or state.max_replicas.is_known:
        raise ClusterValidationError(
            headline,
            "Can't update MaxReplica and/or MinReplica of cluster when autoscaling is not enabled",
        )


def validate_sts_roles(sts: StsConfig) -> None:
    """Require the installer, support and instance roles of an STS cluster."""
    missing = [
        name
        for name, attr in (("role_arn", sts.role_arn), ("support_role_arn", sts.support_role_arn))
        if not attr.value
    ]
    roles = sts.instance_iam_roles.value
    if roles is None:
        missing.append("instance_iam_roles")
    else:
        if not roles.master_role_arn.value:
            missing.append("instance_iam_roles.master_role_arn")
        if not roles.worker_role_arn.value:
            missing.append("instance_iam_roles.worker_role_arn")

    if missing:
        raise ClusterValidationError(
            ERR_HEADLINE, f"STS configuration requires {', '.join(missing)}"
        )


def validate_byo_oidc(sts: StsConfig) -> bool:
    """
    Check the bring-your-own OIDC fields are set together or not at all.

    Returns:
        True when a BYO OIDC configuration is present

    Raises:
        ClusterValidationError: If only one of the two fields is set
    """
    endpoint = sts.oidc_endpoint_url.value or ""
    secret_arn = sts.oidc_private_key_secret_arn.value or ""

    if not endpoint and not secret_arn:
        return False
    if not endpoint:
        raise ClusterValidationError(
            ERR_HEADLINE, "When using BYO OIDC Endpoint URL cannot be empty"
        )
    if not secret_arn:
        raise ClusterValidationError(
            ERR_HEADLINE, "When using BYO OIDC Secret ARN cannot be empty"
        )
    return True


def check_immutable_fields(state: ClusterState, plan: ClusterState) -> None:
    """
    Reject an update plan that alters an attribute fixed at creation.

    Plan values that are still unknown never count as a change, nor do
    null plan values of attributes the server defaults.

    Raises:
        ClusterValidationError: Naming the first attribute that differs
    """
    for name in IMMUTABLE_FIELDS:
        path = _first_difference(name, getattr(state, name), getattr(plan, name))
        if path is not None:
            logger.warning(f"Rejected update of immutable attribute '{path}'")
            raise ClusterValidationError(
                UPDATE_HEADLINE,
                f"Attribute '{path}' can't be changed after the cluster is created",
            )


def _first_difference(name: str, current: Attr, planned: Attr) -> Optional[str]:
    if planned.is_unknown:
        return None
    if planned.is_null and name in SERVER_DEFAULTED_FIELDS:
        return None
    if isinstance(current.value, TriStateModel) and isinstance(planned.value, TriStateModel):
        for sub_name in type(planned.value).model_fields:
            if sub_name in DERIVED_FIELDS:
                continue
            path = _first_difference(
                sub_name, getattr(current.value, sub_name), getattr(planned.value, sub_name)
            )
            if path is not None:
                return f"{name}.{path}"
        return None
    if current.is_unknown:
        return None
    if name == "tags" and current.is_known and planned.is_known:
        # Tag order is not significant
        return name if sorted(current.value) != sorted(planned.value) else None
    if current != planned:
        return name
    return None
