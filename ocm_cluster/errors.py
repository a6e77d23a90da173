# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Errors raised by the cluster reconciliation engine.

Every engine error carries a short headline and a longer description so
that callers can surface both to the user. Transport failures live in
``ocm_cluster.clients.ocm_client``.
"""


class ClusterError(Exception):
    """Base class for engine errors with a headline and a description."""

    def __init__(self, headline: str, description: str):
        super().__init__(f"{headline}\n{description}")
        self.headline = headline
        self.description = description


class ClusterValidationError(ClusterError):
    """Raised when a cross-field invariant is violated before any remote call."""

    pass


class VersionCheckError(ClusterError):
    """Raised when a version string cannot be parsed as a semantic version."""

    pass


class TrustResolutionError(ClusterError):
    """Raised when the OIDC issuer thumbprint cannot be derived."""

    def __init__(self, description: str):
        super().__init__("Can't get thumbprint", description)
