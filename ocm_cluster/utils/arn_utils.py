# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Shared ARN validation utilities.

This module centralizes the key identifier patterns accepted for cluster
encryption so that validation and error messages stay consistent.
"""

import re
from typing import Optional


# KMS key identifier pattern - accepts either:
# - a multi-region key ARN: arn:aws:kms:us-east-1:123456789012:key/mrk-<32 hex>
# - anything ending in a canonical UUID key id (bare key id or key ARN)
KMS_KEY_ARN_PATTERN = re.compile(
    r"^arn:aws[\w-]*:kms:[\w-]+:\d{12}:key\/mrk-[0-9a-f]{32}$"
    r"|[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def is_valid_kms_key_arn(value: Optional[str]) -> bool:
    """
    Validate a KMS key identifier.

    The second alternative of the pattern is not anchored at the start, so
    a full key ARN whose key id is a UUID matches as well as a bare UUID.

    Args:
        value: String to validate

    Returns:
        True if the value matches a recognized key ARN or UUID shape

    Example:
        >>> is_valid_kms_key_arn("arn:aws:kms:us-east-1:123456789012:key/mrk-" + "a" * 32)
        True
        >>> is_valid_kms_key_arn("1234abcd-12ab-34cd-56ef-1234567890ab")
        True
        >>> is_valid_kms_key_arn("alias/my-key")
        False
    """
    if not value or not isinstance(value, str):
        return False

    return bool(KMS_KEY_ARN_PATTERN.search(value))
