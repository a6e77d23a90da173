# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Waits for a deleted cluster to disappear from the OCM API."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Optional

from ..clients.ocm_client import ClusterNotFoundError, OCMAPIError, OCMClient
from ..models.attr import Attr
from ..models.enums import PollOutcome

DEFAULT_DESTROY_TIMEOUT_MINUTES = 60


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry schedule for failed polls: 1m, 2m, 4m by default."""

    attempts: int = 3
    base_delay: float = 60.0
    multiplier: float = 2.0

    def delays(self) -> Iterator[float]:
        """Delays applied after each failed attempt except the last."""
        delay = self.base_delay
        for _ in range(self.attempts - 1):
            yield delay
            delay *= self.multiplier


class DeletionPoller:
    """
    Polls a cluster after its deletion was accepted.

    Each attempt polls until OCM answers 404 or the caller's timeout
    expires. Polls that fail for any other reason are retried under a
    ``RetryPolicy``; once attempts are exhausted the last error is raised.
    """

    def __init__(
        self,
        client: OCMClient,
        *,
        poll_interval: float = 120.0,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the poller.

        Args:
            client: OCM client used to poll the cluster
            poll_interval: Seconds between two status polls
            retry_policy: Schedule for retrying failed polls
            sleep: Coroutine used for the backoff delay
            logger: Logger to use (defaults to this module's logger)
        """
        self.client = client
        self.poll_interval = poll_interval
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)

    async def wait_for_deletion(self, cluster_id: str, timeout_minutes: int) -> PollOutcome:
        """
        Wait until the cluster is gone or the timeout elapses.

        Args:
            cluster_id: Identifier of the deleted cluster
            timeout_minutes: Deadline of each poll attempt

        Returns:
            PollOutcome.NOT_FOUND once OCM reports the cluster missing,
            PollOutcome.TIMED_OUT when the deadline expired first

        Raises:
            OCMAPIError: The last poll error once retries are exhausted
        """
        delays = self.retry_policy.delays()
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._poll_once(cluster_id, timeout_minutes)
            except OCMAPIError as e:
                delay = next(delays, None)
                if delay is None:
                    self._logger.error(
                        f"Polling cluster '{cluster_id}' failed after {attempt} attempts: {e}"
                    )
                    raise
                self._logger.warning(
                    f"Polling cluster '{cluster_id}' failed (attempt {attempt}/"
                    f"{self.retry_policy.attempts}), retrying in {delay:.0f}s: {e}"
                )
                await self._sleep(delay)

    async def _poll_once(self, cluster_id: str, timeout_minutes: int) -> PollOutcome:
        try:
            await asyncio.wait_for(
                self.client.poll_cluster(cluster_id, self.poll_interval, expected_status=404),
                timeout=timeout_minutes * 60,
            )
        except ClusterNotFoundError:
            self._logger.info(f"Cluster '{cluster_id}' is gone")
            return PollOutcome.NOT_FOUND
        except asyncio.TimeoutError:
            self._logger.warning(
                f"Cluster '{cluster_id}' still exists after {timeout_minutes} minutes"
            )
            return PollOutcome.TIMED_OUT
        # The poll ended without a 404
        return PollOutcome.TIMED_OUT


def resolve_destroy_timeout(
    timeout: Attr[int], default: int = DEFAULT_DESTROY_TIMEOUT_MINUTES
) -> tuple[int, Optional[str]]:
    """
    Pick the destroy timeout in minutes.

    Returns:
        The timeout to use and, when the configured value was rejected,
        a warning describing the fallback
    """
    if not timeout.is_known:
        return default, None
    if timeout.value <= 0:
        return default, (
            f"destroy_timeout must be positive, got {timeout.value}; "
            f"waiting {default} minutes instead"
        )
    return timeout.value, None
