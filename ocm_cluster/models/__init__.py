# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Data models for the OCM cluster reconciliation engine."""

from .attr import Attr, AttrState
from .enums import Severity, PollOutcome
from .cluster_state import (
    ClusterState,
    StsConfig,
    InstanceIAMRoles,
    ProxyConfig,
    IMMUTABLE_FIELDS,
)
from .wire import Cluster
from .envelope import (
    Diagnostic,
    Diagnostics,
    CreateRequest,
    ReadRequest,
    UpdateRequest,
    DeleteRequest,
    ImportRequest,
    OperationResponse,
)

__all__ = [
    "Attr",
    "AttrState",
    "Severity",
    "PollOutcome",
    "ClusterState",
    "StsConfig",
    "InstanceIAMRoles",
    "ProxyConfig",
    "IMMUTABLE_FIELDS",
    "Cluster",
    "Diagnostic",
    "Diagnostics",
    "CreateRequest",
    "ReadRequest",
    "UpdateRequest",
    "DeleteRequest",
    "ImportRequest",
    "OperationResponse",
]
