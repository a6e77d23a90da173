"""Unit tests for the deletion poller."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from ocm_cluster.clients.ocm_client import ClusterNotFoundError, OCMAPIError
from ocm_cluster.models import Attr, PollOutcome
from ocm_cluster.services.deletion_poller import (
    DeletionPoller,
    RetryPolicy,
    resolve_destroy_timeout,
)


@pytest.fixture
def sleep():
    """Record backoff delays instead of sleeping."""
    return AsyncMock(return_value=None)


def _poller(client, sleep, **kwargs):
    return DeletionPoller(client, poll_interval=0.01, sleep=sleep, **kwargs)


class TestRetryPolicy:
    """Test the retry delay schedule."""

    def test_default_schedule(self):
        assert list(RetryPolicy().delays()) == [60.0, 120.0]

    def test_custom_schedule(self):
        assert list(RetryPolicy(attempts=4, base_delay=1.0).delays()) == [1.0, 2.0, 4.0]


class TestDeletionPoller:
    """Test polling outcomes and retries."""

    @pytest.mark.asyncio
    async def test_not_found_is_success(self, mock_ocm_client, sleep):
        mock_ocm_client.poll_cluster.side_effect = ClusterNotFoundError("gone", status=404)

        outcome = await _poller(mock_ocm_client, sleep).wait_for_deletion("abc", 60)

        assert outcome == PollOutcome.NOT_FOUND
        mock_ocm_client.poll_cluster.assert_awaited_once_with("abc", 0.01, expected_status=404)
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transient_errors_then_not_found(self, mock_ocm_client, sleep):
        mock_ocm_client.poll_cluster.side_effect = [
            OCMAPIError("unavailable", status=500),
            OCMAPIError("unavailable", status=500),
            ClusterNotFoundError("gone", status=404),
        ]

        outcome = await _poller(mock_ocm_client, sleep).wait_for_deletion("abc", 60)

        assert outcome == PollOutcome.NOT_FOUND
        assert mock_ocm_client.poll_cluster.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [60.0, 120.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_error(self, mock_ocm_client, sleep):
        mock_ocm_client.poll_cluster.side_effect = [
            OCMAPIError("first", status=500),
            OCMAPIError("second", status=500),
            OCMAPIError("third", status=502),
        ]

        with pytest.raises(OCMAPIError, match="third"):
            await _poller(mock_ocm_client, sleep).wait_for_deletion("abc", 60)

        assert mock_ocm_client.poll_cluster.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_deadline_is_timed_out(self, mock_ocm_client, sleep):
        async def never_gone(*args, **kwargs):
            await asyncio.sleep(3600)

        mock_ocm_client.poll_cluster.side_effect = never_gone

        # A tiny deadline expressed in minutes
        outcome = await _poller(mock_ocm_client, sleep).wait_for_deletion("abc", 0.001)

        assert outcome == PollOutcome.TIMED_OUT
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_api_errors_are_not_retried(self, mock_ocm_client, sleep):
        mock_ocm_client.poll_cluster.side_effect = ValueError("bug")

        with pytest.raises(ValueError):
            await _poller(mock_ocm_client, sleep).wait_for_deletion("abc", 60)

        sleep.assert_not_awaited()


class TestResolveDestroyTimeout:
    """Test selection of the destroy timeout."""

    def test_unset_uses_default(self):
        assert resolve_destroy_timeout(Attr.null()) == (60, None)
        assert resolve_destroy_timeout(Attr.unknown(), default=30) == (30, None)

    def test_positive_value(self):
        assert resolve_destroy_timeout(Attr.of(15)) == (15, None)

    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_value_warns(self, value):
        timeout, warning = resolve_destroy_timeout(Attr.of(value))
        assert timeout == 60
        assert "must be positive" in warning
