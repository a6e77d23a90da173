# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Utility modules for the OCM cluster reconciliation engine."""

from .arn_utils import KMS_KEY_ARN_PATTERN, is_valid_kms_key_arn
from .correlation import (
    CorrelationIDFilter,
    generate_correlation_id,
    get_correlation_id,
    get_correlation_id_for_logging,
    set_correlation_id,
    start_operation,
)
from .logging_config import configure_logging

__all__ = [
    "KMS_KEY_ARN_PATTERN",
    "is_valid_kms_key_arn",
    "CorrelationIDFilter",
    "generate_correlation_id",
    "get_correlation_id",
    "get_correlation_id_for_logging",
    "set_correlation_id",
    "start_operation",
    "configure_logging",
]
