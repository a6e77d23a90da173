# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Minimum OpenShift version check."""

import logging
from typing import Optional

from semver import Version

from ..errors import VersionCheckError

# Prefix OCM puts in front of installable version identifiers
VERSION_PREFIX = "openshift-v"

DEFAULT_MIN_VERSION = "4.10"


class VersionGate:
    """
    Compares requested OpenShift versions against a minimum.

    Versions are ordered as semantic versions, so a pre-release such as
    ``4.10.0-rc.1`` sorts below ``4.10.0``. A version that cannot be parsed
    raises ``VersionCheckError``; that is a different outcome from a
    version that parses but is too old.
    """

    def __init__(
        self,
        min_version: str = DEFAULT_MIN_VERSION,
        logger: Optional[logging.Logger] = None,
    ):
        self.min_version = min_version
        self._logger = logger or logging.getLogger(__name__)

    def is_supported(self, requested: str) -> bool:
        """
        Check whether a requested version meets the minimum.

        Args:
            requested: Version such as ``openshift-v4.11.3`` or ``4.11.3``

        Returns:
            True if the version is greater than or equal to the minimum

        Raises:
            VersionCheckError: If either version cannot be parsed
        """
        raw = requested
        if raw.startswith(VERSION_PREFIX):
            raw = raw[len(VERSION_PREFIX):]

        wanted = self._parse(raw, requested)
        minimum = self._parse(self.min_version, self.min_version)

        supported = wanted >= minimum
        self._logger.debug(
            f"Version {requested} {'meets' if supported else 'is below'} minimum {self.min_version}"
        )
        return supported

    @staticmethod
    def _parse(raw: str, original: str) -> Version:
        try:
            return Version.parse(raw, optional_minor_and_patch=True)
        except (ValueError, TypeError) as e:
            raise VersionCheckError(
                "Can't check cluster version",
                f"Can't parse version '{original}': {e}",
            ) from e
