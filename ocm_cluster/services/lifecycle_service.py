# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Lifecycle operations of a ROSA classic cluster."""

import asyncio
import logging
from typing import Optional

from ..clients.ocm_client import OCMAPIError, OCMClient
from ..errors import ClusterError
from ..models.cluster_state import ClusterState
from ..models.enums import PollOutcome
from ..models.envelope import (
    CreateRequest,
    DeleteRequest,
    ImportRequest,
    OperationResponse,
    ReadRequest,
    UpdateRequest,
)
from ..models.wire import Cluster
from ..utils.correlation import start_operation
from .constraint_validator import (
    check_immutable_fields,
    validate_autoscaling_bounds,
    UPDATE_HEADLINE,
)
from .deletion_poller import (
    DEFAULT_DESTROY_TIMEOUT_MINUTES,
    DeletionPoller,
    resolve_destroy_timeout,
)
from .field_mapper import build_cluster_patch, build_cluster_payload, populate_cluster_state
from .thumbprint_resolver import ThumbprintResolver
from .version_gate import VersionGate


class ClusterLifecycleService:
    """
    Reconciles declared clusters against the OCM API.

    Each operation takes a request envelope and returns an
    ``OperationResponse`` holding diagnostics and the state record to
    persist. Errors never escape as exceptions: fatal ones become error
    diagnostics and leave the prior state untouched, non-fatal ones become
    warnings.

    Operations on the same cluster are expected to be invoked one at a
    time; operations on different clusters share nothing.
    """

    def __init__(
        self,
        client: OCMClient,
        *,
        version_gate: VersionGate,
        resolver: ThumbprintResolver,
        poller: DeletionPoller,
        default_destroy_timeout: int = DEFAULT_DESTROY_TIMEOUT_MINUTES,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the service.

        Args:
            client: OCM API client
            version_gate: Minimum version check used on create
            resolver: OIDC thumbprint resolver used when refreshing state
            poller: Waits for deleted clusters to disappear
            default_destroy_timeout: Minutes to wait when none is configured
            logger: Logger to use (defaults to this module's logger)
        """
        self.client = client
        self.version_gate = version_gate
        self.resolver = resolver
        self.poller = poller
        self.default_destroy_timeout = default_destroy_timeout
        self._logger = logger or logging.getLogger(__name__)

    async def create(self, request: CreateRequest) -> OperationResponse:
        """Create a cluster from a plan."""
        start_operation("create")
        response = OperationResponse()
        plan = request.plan

        try:
            payload = build_cluster_payload(
                plan, version_gate=self.version_gate, logger=self._logger
            )
        except ClusterError as e:
            response.diagnostics.add_error(e.headline, e.description)
            return response

        try:
            snapshot = await self.client.create_cluster(payload)
        except OCMAPIError as e:
            self._logger.error(f"Failed to create cluster '{plan.name.value}': {e}")
            response.diagnostics.add_error(
                "Can't create cluster",
                f"Can't create cluster with name '{plan.name.value}': {e}",
            )
            return response

        self._logger.info(f"Created cluster '{plan.name.value}' with identifier '{snapshot.id}'")
        response.state = await self._populate(snapshot, plan)
        return response

    async def read(self, request: ReadRequest) -> OperationResponse:
        """Refresh the stored state from OCM. A missing cluster is an error."""
        start_operation("read")
        state = request.state
        response = OperationResponse(state=state)
        cluster_id = state.id.value

        try:
            snapshot = await self.client.get_cluster(cluster_id)
        except OCMAPIError as e:
            self._logger.error(f"Failed to fetch cluster '{cluster_id}': {e}")
            response.diagnostics.add_error(
                "Can't find cluster",
                f"Can't find cluster with identifier '{cluster_id}': {e}",
            )
            return response

        response.state = await self._populate(snapshot, state)
        return response

    async def update(self, request: UpdateRequest) -> OperationResponse:
        """
        Move a cluster to a new plan.

        Immutable attributes and the autoscaling invariant are checked
        before anything is sent. The patch call is skipped when nothing
        mutable changed. Afterwards the plan's autoscaling flag, replica
        count and destroy-time settings are adopted so that transitions to
        null are reflected in the stored state.
        """
        start_operation("update")
        state, plan = request.state, request.plan
        response = OperationResponse(state=state)
        cluster_id = state.id.value

        try:
            check_immutable_fields(state, plan)
            validate_autoscaling_bounds(plan, UPDATE_HEADLINE)
        except ClusterError as e:
            response.diagnostics.add_error(e.headline, e.description)
            return response

        patch = build_cluster_patch(state, plan)
        if patch.is_empty():
            self._logger.debug(f"No mutable attribute of cluster '{cluster_id}' changed")
            new_state = state
        else:
            try:
                snapshot = await self.client.update_cluster(cluster_id, patch)
            except OCMAPIError as e:
                self._logger.error(f"Failed to update cluster '{cluster_id}': {e}")
                response.diagnostics.add_error(
                    UPDATE_HEADLINE,
                    f"Can't update cluster with identifier '{cluster_id}': {e}",
                )
                return response
            self._logger.info(f"Updated cluster '{cluster_id}'")
            new_state = await self._populate(snapshot, state)

        adopted = {
            name: getattr(plan, name)
            for name in (
                "autoscaling_enabled",
                "replicas",
                "disable_waiting_in_destroy",
                "destroy_timeout",
            )
            if not getattr(plan, name).is_unknown
        }
        response.state = new_state.model_copy(update=adopted)
        return response

    async def delete(self, request: DeleteRequest) -> OperationResponse:
        """
        Delete a cluster and, unless disabled, wait for it to disappear.

        The state record is removed once OCM reports the cluster gone or
        the wait times out; the latter adds a warning.
        """
        start_operation("delete")
        state = request.state
        response = OperationResponse(state=state)
        cluster_id = state.id.value

        try:
            await self.client.delete_cluster(cluster_id)
        except OCMAPIError as e:
            self._logger.error(f"Failed to delete cluster '{cluster_id}': {e}")
            response.diagnostics.add_error(
                "Can't delete cluster",
                f"Can't delete cluster with identifier '{cluster_id}': {e}",
            )
            return response

        skip_wait = state.disable_waiting_in_destroy
        if skip_wait.is_known and skip_wait.value:
            self._logger.info("Waiting for destroy to be completed, is disabled")
        else:
            timeout, warning = resolve_destroy_timeout(
                state.destroy_timeout, self.default_destroy_timeout
            )
            if warning:
                response.diagnostics.add_warning(
                    "Non-positive destroy timeout",
                    f"Cluster '{cluster_id}': {warning}",
                )

            try:
                outcome = await self.poller.wait_for_deletion(cluster_id, timeout)
            except OCMAPIError as e:
                response.diagnostics.add_error(
                    "Can't poll cluster state",
                    f"Can't poll state of cluster with identifier '{cluster_id}': {e}",
                )
                return response

            if outcome == PollOutcome.TIMED_OUT:
                response.diagnostics.add_warning(
                    "Cluster wasn't deleted yet",
                    f"The cluster with identifier '{cluster_id}' is not deleted yet, "
                    "but the polling finished due to a timeout",
                )

        self._logger.info(f"Deleted cluster '{cluster_id}'")
        response.state = None
        response.state_removed = True
        return response

    async def import_state(self, request: ImportRequest) -> OperationResponse:
        """Adopt an existing cluster by identifier."""
        start_operation("import")
        response = OperationResponse()

        try:
            snapshot = await self.client.get_cluster(request.id)
        except OCMAPIError as e:
            self._logger.error(f"Failed to fetch cluster '{request.id}' for import: {e}")
            response.diagnostics.add_error(
                "Can't find cluster",
                f"Can't find cluster with identifier '{request.id}': {e}",
            )
            return response

        response.state = await self._populate(snapshot, ClusterState())
        return response

    async def _populate(self, snapshot: Cluster, state: ClusterState) -> ClusterState:
        # The thumbprint lookup blocks on a TLS handshake
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None,
            lambda: populate_cluster_state(
                snapshot, state, resolver=self.resolver, logger=self._logger
            ),
        )
