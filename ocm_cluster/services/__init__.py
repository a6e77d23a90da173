# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Service layer for the OCM cluster reconciliation engine."""

from .version_gate import VersionGate
from .thumbprint_resolver import ThumbprintResolver, TLSChainFetcher
from .deletion_poller import DeletionPoller, RetryPolicy
from .field_mapper import build_cluster_payload, build_cluster_patch, populate_cluster_state
from .lifecycle_service import ClusterLifecycleService

__all__ = [
    "VersionGate",
    "ThumbprintResolver",
    "TLSChainFetcher",
    "DeletionPoller",
    "RetryPolicy",
    "build_cluster_payload",
    "build_cluster_patch",
    "populate_cluster_state",
    "ClusterLifecycleService",
]
