# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Enumerations for diagnostic severities and deletion poll outcomes."""

from enum import Enum


class Severity(str, Enum):
    """Severity levels for diagnostics."""

    ERROR = "error"
    WARNING = "warning"


class PollOutcome(str, Enum):
    """Terminal states of the deletion poller."""

    NOT_FOUND = "not_found"
    TIMED_OUT = "timed_out"
