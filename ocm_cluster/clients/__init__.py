# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""OCM API client module."""

from .ocm_client import OCMClient, OCMAPIError, ClusterNotFoundError

__all__ = ["OCMClient", "OCMAPIError", "ClusterNotFoundError"]
