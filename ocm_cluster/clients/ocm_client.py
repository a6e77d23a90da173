# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""OCM clusters API client with token handling and backoff."""

import asyncio
import base64
import json
import logging
import time
from typing import Any, Optional

import requests
from pydantic import ValidationError

from ..config import Settings
from ..models.wire import Cluster

logger = logging.getLogger(__name__)

CLUSTERS_PATH = "/api/clusters_mgmt/v1/clusters"

# Statuses that mean "slow down" rather than "failed"
THROTTLING_STATUSES = {429, 503}

# Access tokens are refreshed this many seconds before they expire
TOKEN_EXPIRY_MARGIN_SECONDS = 30


class OCMAPIError(Exception):
    """Raised when OCM API calls fail."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        operation_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code
        self.operation_id = operation_id


class ClusterNotFoundError(OCMAPIError):
    """Raised when the API answers 404 for a cluster."""

    pass


class OCMClient:
    """
    Async wrapper around the clusters collection of the OCM API.

    Requests are sent with a ``requests.Session`` from the default executor
    so the event loop is never blocked. Throttling answers are retried with
    exponential backoff; every other failure is raised as ``OCMAPIError``
    carrying the HTTP status (``ClusterNotFoundError`` for 404).
    """

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        *,
        token_url: Optional[str] = None,
        client_id: str = "cloud-services",
        insecure: bool = False,
        trusted_cas: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            url: Base URL of the OCM API (e.g. https://api.openshift.com)
            token: Offline/refresh token, or an access token
            token_url: OpenID token endpoint used to exchange refresh tokens
            client_id: OpenID client identifier
            insecure: Disable TLS verification
            trusted_cas: Path to a PEM bundle used to verify the API
            timeout: Timeout in seconds for a single request
            session: Pre-built session (tests inject one)
        """
        self.url = url.rstrip("/")
        self._token = token
        self._token_url = token_url
        self._client_id = client_id
        self._timeout = timeout
        self._verify: bool | str = False if insecure else (trusted_cas or True)
        self._session = session or requests.Session()

        self._access_token: Optional[str] = None
        self._access_token_expires_at = 0.0

        self._max_retries = 5
        self._base_delay = 1.0

    @classmethod
    def from_settings(cls, config: Settings) -> "OCMClient":
        """Build a client from engine settings."""
        return cls(
            config.ocm_url,
            config.ocm_token,
            token_url=config.ocm_token_url,
            client_id=config.ocm_client_id,
            insecure=config.ocm_insecure,
            trusted_cas=config.ocm_trusted_cas,
            timeout=config.request_timeout_seconds,
        )

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Clusters collection
    # ------------------------------------------------------------------

    async def create_cluster(self, cluster: Cluster) -> Cluster:
        """Create a cluster and return the API's representation of it."""
        body = await self._call_with_backoff(
            "create cluster", "POST", CLUSTERS_PATH, payload=cluster.to_payload()
        )
        return self._parse_cluster(body)

    async def get_cluster(self, cluster_id: str) -> Cluster:
        """Fetch a cluster by identifier."""
        body = await self._call_with_backoff(
            f"get cluster '{cluster_id}'", "GET", f"{CLUSTERS_PATH}/{cluster_id}"
        )
        return self._parse_cluster(body)

    async def update_cluster(self, cluster_id: str, patch: Cluster) -> Cluster:
        """Apply a partial update and return the updated cluster."""
        body = await self._call_with_backoff(
            f"update cluster '{cluster_id}'",
            "PATCH",
            f"{CLUSTERS_PATH}/{cluster_id}",
            payload=patch.to_payload(),
        )
        return self._parse_cluster(body)

    async def delete_cluster(self, cluster_id: str) -> None:
        """Request deletion. OCM accepts the call and removes the cluster asynchronously."""
        await self._call_with_backoff(
            f"delete cluster '{cluster_id}'", "DELETE", f"{CLUSTERS_PATH}/{cluster_id}"
        )

    async def poll_cluster(
        self, cluster_id: str, interval: float, expected_status: int = 404
    ) -> Optional[Cluster]:
        """
        Poll a cluster until the API answers with ``expected_status``.

        When the expected status is an error status the matching
        ``OCMAPIError`` (``ClusterNotFoundError`` for 404) is raised, so the
        caller can tell the terminal condition apart from other failures.
        Any other error ends the poll immediately. Runs until cancelled.

        Args:
            cluster_id: Identifier of the cluster
            interval: Seconds between two polls
            expected_status: HTTP status that ends the poll

        Returns:
            The cluster when ``expected_status`` is a success status
        """
        while True:
            cluster = await self.get_cluster(cluster_id)
            if expected_status < 300:
                return cluster
            logger.debug(
                f"Cluster '{cluster_id}' still present (state: {cluster.state}), "
                f"polling again in {interval:.0f}s"
            )
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _call_with_backoff(
        self,
        operation: str,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Call the OCM API with exponential backoff on throttling answers.

        Args:
            operation: Human readable operation name used in error messages
            method: HTTP method
            path: Path below the API base URL
            payload: JSON body

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            OCMAPIError: If the call fails or retries are exhausted
        """
        for attempt in range(self._max_retries):
            try:
                # Run the blocking request in the thread pool
                loop = asyncio.get_event_loop()
                response = await loop.run_in_executor(
                    None, lambda: self._send(method, path, payload)
                )
            except requests.RequestException as e:
                raise OCMAPIError(f"Can't {operation}: {e}") from e

            if response.status_code in THROTTLING_STATUSES and attempt < self._max_retries - 1:
                delay = self._base_delay * (2**attempt)
                logger.warning(
                    f"OCM throttled '{operation}' (status {response.status_code}), "
                    f"retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code >= 400:
                raise self._error_from_response(operation, response)

            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise OCMAPIError(
                    f"Can't {operation}: invalid response body: {e}",
                    status=response.status_code,
                ) from e

        raise OCMAPIError(f"Max retries exceeded for {operation}")

    def _send(
        self, method: str, path: str, payload: Optional[dict[str, Any]]
    ) -> requests.Response:
        url = f"{self.url}{path}"
        logger.debug(f"{method} {url}")
        if payload is not None:
            logger.debug(f"Request body: {json.dumps(payload)}")
        response = self._session.request(
            method,
            url,
            json=payload,
            headers={"Authorization": f"Bearer {self._get_access_token()}"},
            timeout=self._timeout,
            verify=self._verify,
        )
        logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    def _get_access_token(self) -> str:
        """
        Return a bearer token for the API.

        Access tokens are used as they are; offline and refresh tokens are
        exchanged at the token URL and the result cached until shortly
        before it expires.
        """
        if not self._token:
            raise OCMAPIError("No OCM token configured, set OCM_TOKEN")

        if _token_type(self._token) == "Bearer" or not self._token_url:
            return self._token

        if self._access_token and time.time() < self._access_token_expires_at:
            return self._access_token

        logger.debug(f"Exchanging refresh token at {self._token_url}")
        response = self._session.post(
            self._token_url,
            data={
                "grant_type": "refresh_token",
                "client_id": self._client_id,
                "refresh_token": self._token,
            },
            timeout=self._timeout,
            verify=self._verify,
        )
        if response.status_code >= 400:
            raise OCMAPIError(
                f"Can't obtain access token: token endpoint answered {response.status_code}",
                status=response.status_code,
            )
        try:
            body = response.json()
            access_token = body["access_token"]
            expires_in = float(body.get("expires_in", 300))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise OCMAPIError(
                f"Can't obtain access token: invalid token response: {e!r}",
                status=response.status_code,
            ) from e
        self._access_token = access_token
        self._access_token_expires_at = time.time() + expires_in - TOKEN_EXPIRY_MARGIN_SECONDS
        return self._access_token

    @staticmethod
    def _error_from_response(operation: str, response: requests.Response) -> OCMAPIError:
        """Build an error from an OCM error body (kind, code, reason, operation_id)."""
        code = None
        reason = response.reason or ""
        operation_id = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            reason = body.get("reason", reason)
            operation_id = body.get("operation_id")

        message = f"Can't {operation}: status is {response.status_code}"
        if code:
            message += f", identifier is '{code}'"
        if operation_id:
            message += f", operation identifier is '{operation_id}'"
        if reason:
            message += f": {reason}"

        error_class = ClusterNotFoundError if response.status_code == 404 else OCMAPIError
        return error_class(
            message, status=response.status_code, code=code, operation_id=operation_id
        )

    @staticmethod
    def _parse_cluster(body: Optional[dict[str, Any]]) -> Cluster:
        try:
            return Cluster.model_validate(body or {})
        except ValidationError as e:
            raise OCMAPIError(f"Can't parse cluster returned by OCM: {e}") from e


def _token_type(token: str) -> Optional[str]:
    """Read the 'typ' claim of a JWT without verifying it."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    padded = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(padded))
    except ValueError:
        return None
    if not isinstance(claims, dict):
        return None
    return claims.get("typ")
