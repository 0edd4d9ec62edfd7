"""Tests for the four lifecycle waits."""

import logging
from unittest.mock import MagicMock
import pytest

from conftest import snap
from powerlpar.base.exceptions import (
    InstanceApiError,
    InstanceNotFoundError,
    UnexpectedStateError,
    WaitTimeoutError,
)
from powerlpar.base.instance_client import InstanceClientBlueprint
from powerlpar.base.models import ResourceHandle
from powerlpar.base.poller import Deadline
from powerlpar.lifecycle.state_machine import (
    wait_for_available,
    wait_for_deleted,
    wait_for_resized,
    wait_for_stopped,
)

HANDLE = ResourceHandle("cid", "pvm-1")


@pytest.fixture
def client():
    return MagicMock(spec=InstanceClientBlueprint)


class TestWaitForAvailable:
    def test_build_then_active(self, client):
        client.get_instance.side_effect = [
            snap("BUILD", "PENDING"),
            snap("ACTIVE", "WARNING"),
            snap("ACTIVE", "OK"),
        ]
        result = wait_for_available(client, HANDLE)
        assert result.status == "ACTIVE"
        assert client.get_instance.call_count == 3
        args, kwargs = client.get_instance.call_args
        assert args == ("pvm-1", "cid")
        assert kwargs["timeout"] == 120

    def test_error_state_fails_fast(self, client):
        client.get_instance.side_effect = [snap("BUILD"), snap("ERROR", "CRITICAL")]
        with pytest.raises(UnexpectedStateError) as exc_info:
            wait_for_available(client, HANDLE)
        assert exc_info.value.snapshot.status == "ERROR"

    def test_failure_is_logged_with_wait_context(self, client, caplog):
        caplog.set_level(logging.INFO, logger="powerlpar")
        client.get_instance.return_value = snap("ERROR", "CRITICAL")
        with pytest.raises(UnexpectedStateError):
            wait_for_available(client, HANDLE, request_id="req-1")
        (failure,) = [
            r for r in caplog.records
            if r.levelno == logging.ERROR and getattr(r, "wait", None)
        ]
        assert failure.wait == "available"
        assert failure.handle == "cid/pvm-1"
        assert failure.request_id == "req-1"
        assert failure.exc_info[0] is UnexpectedStateError

    def test_read_failure_propagates(self, client):
        client.get_instance.side_effect = InstanceApiError("boom", 500)
        with pytest.raises(InstanceApiError):
            wait_for_available(client, HANDLE)

    def test_bounded_by_deadline(self, client, clock):
        client.get_instance.return_value = snap("BUILD")
        with pytest.raises(WaitTimeoutError):
            wait_for_available(client, HANDLE, Deadline(60))
        assert clock.now == 60


class TestWaitForStopped:
    def test_stopping_then_shutoff(self, client):
        client.get_instance.side_effect = [
            snap("ACTIVE"),
            snap("STOPPING"),
            snap("SHUTOFF", "WARNING"),
            snap("SHUTOFF", "OK"),
        ]
        assert wait_for_stopped(client, HANDLE).status == "SHUTOFF"
        assert client.get_instance.call_count == 4

    def test_times_out_after_thirty_minutes(self, client, clock):
        client.get_instance.return_value = snap("STOPPING")
        with pytest.raises(WaitTimeoutError) as exc_info:
            wait_for_stopped(client, HANDLE)
        assert clock.now == 30 * 60
        assert exc_info.value.wait == "stopped"


class TestWaitForResized:
    def test_resize_then_shutoff(self, client):
        client.get_instance.side_effect = [
            snap("RESIZE"),
            snap("VERIFY_RESIZE"),
            snap("SHUTOFF", "OK"),
        ]
        assert wait_for_resized(client, HANDLE).status == "SHUTOFF"

    def test_reactivated_counts_as_done(self, client):
        client.get_instance.side_effect = [snap("RESIZE"), snap("ACTIVE", "PENDING")]
        assert wait_for_resized(client, HANDLE).status == "ACTIVE"

    def test_per_poll_timeout(self, client):
        client.get_instance.return_value = snap("SHUTOFF", "OK")
        wait_for_resized(client, HANDLE)
        assert client.get_instance.call_args.kwargs["timeout"] == 300


class TestWaitForDeleted:
    def test_deleting_then_not_found(self, client):
        client.get_instance.side_effect = [
            snap("DELETING"),
            InstanceNotFoundError("gone", 404),
        ]
        assert wait_for_deleted(client, HANDLE) is None
        assert client.get_instance.call_count == 2

    def test_other_errors_are_not_deletion(self, client):
        client.get_instance.side_effect = [
            snap("DELETING"),
            InstanceApiError("gateway timeout", 504),
        ]
        with pytest.raises(InstanceApiError) as exc_info:
            wait_for_deleted(client, HANDLE)
        assert not isinstance(exc_info.value, InstanceNotFoundError)

    def test_times_out_after_ten_minutes(self, client, clock):
        client.get_instance.return_value = snap("DELETING")
        with pytest.raises(WaitTimeoutError):
            wait_for_deleted(client, HANDLE)
        assert clock.now == 10 * 60
