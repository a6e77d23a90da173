# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Service container for dependency wiring.

Builds the OCM client and the lifecycle service with its collaborators
from a single ``Settings`` object, so entry points never assemble the
object graph themselves.
"""

import logging
from typing import Optional

from .clients.ocm_client import OCMClient
from .config import Settings, settings as get_default_settings
from .services.deletion_poller import DeletionPoller
from .services.lifecycle_service import ClusterLifecycleService
from .services.thumbprint_resolver import ThumbprintResolver, TLSChainFetcher
from .services.version_gate import VersionGate

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Wires together the engine services.

    Usage::

        container = ServiceContainer()          # uses default settings
        response = await container.lifecycle_service.read(request)
        container.close()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[OCMClient] = None,
    ) -> None:
        """
        Create a ServiceContainer.

        Args:
            settings: Engine settings. If None, loads from environment
                      variables / .env file via the default ``settings()``
                      helper.
            client: Pre-built OCM client (tests inject a fake)
        """
        self._settings: Settings = settings or get_default_settings()
        s = self._settings

        self._client = client or OCMClient.from_settings(s)
        self._version_gate = VersionGate(min_version=s.min_version)
        self._resolver = ThumbprintResolver(
            fetcher=TLSChainFetcher(timeout=s.thumbprint_timeout_seconds)
        )
        self._poller = DeletionPoller(
            self._client, poll_interval=s.poll_interval_minutes * 60
        )
        self._lifecycle_service = ClusterLifecycleService(
            self._client,
            version_gate=self._version_gate,
            resolver=self._resolver,
            poller=self._poller,
            default_destroy_timeout=s.destroy_timeout_minutes,
        )
        logger.info(f"ServiceContainer: services initialized (url={s.ocm_url})")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def client(self) -> OCMClient:
        return self._client

    @property
    def version_gate(self) -> VersionGate:
        return self._version_gate

    @property
    def resolver(self) -> ThumbprintResolver:
        return self._resolver

    @property
    def poller(self) -> DeletionPoller:
        return self._poller

    @property
    def lifecycle_service(self) -> ClusterLifecycleService:
        return self._lifecycle_service

    def close(self) -> None:
        """Release the HTTP session."""
        self._client.close()
        logger.info("ServiceContainer: shutdown complete")
