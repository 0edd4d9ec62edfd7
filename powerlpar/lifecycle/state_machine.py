"""
Lifecycle waits.

Each wait builds a state reader around :meth:`InstanceClientBlueprint.get_instance`
and runs it through :func:`powerlpar.base.poller.wait_for` with one of the
descriptors from :mod:`powerlpar.base.states`.
"""

from __future__ import annotations

from typing import Any, Optional

from powerlpar.base.exceptions import InstanceNotFoundError, WaitError
from powerlpar.base.instance_client import InstanceClientBlueprint
from powerlpar.base.logger import lpar_logger
from powerlpar.base.models import Instance, ResourceHandle
from powerlpar.base.poller import Deadline, StateReader, wait_for
from powerlpar.base.states import (
    AVAILABLE,
    DELETED,
    NOT_FOUND,
    RESIZED,
    STOPPED,
    StateKey,
    WaitDescriptor,
)


def _state_reader(client: InstanceClientBlueprint, handle: ResourceHandle) -> StateReader:
    def read_state(timeout: float) -> tuple[Instance, StateKey]:
        instance = client.get_instance(
            handle.instance_id, handle.cloud_instance_id, timeout=timeout
        )
        return instance, instance.state

    return read_state


def _deleted_reader(client: InstanceClientBlueprint, handle: ResourceHandle) -> StateReader:
    # Only a confirmed 404 counts as deleted; other read failures propagate.
    def read_state(timeout: float) -> tuple[Optional[Instance], StateKey]:
        try:
            instance = client.get_instance(
                handle.instance_id, handle.cloud_instance_id, timeout=timeout
            )
        except InstanceNotFoundError:
            return None, NOT_FOUND
        return instance, instance.state

    return read_state


def _run(
    client: InstanceClientBlueprint,
    handle: ResourceHandle,
    descriptor: WaitDescriptor,
    read_state: StateReader,
    deadline: Optional[Deadline],
    request_id: Optional[str],
) -> Any:
    bounded = descriptor.within(deadline.remaining() if deadline else None)
    log = lpar_logger.bind("wait", handle=handle, request_id=request_id).bind(
        wait=descriptor.name
    )
    log.info(f"Waiting up to {bounded.timeout:.0f}s for instance to be {descriptor.name}")
    try:
        return wait_for(read_state, bounded)
    except WaitError:
        log.error(f"Instance did not become {descriptor.name}", exc_info=True)
        raise


def wait_for_available(
    client: InstanceClientBlueprint,
    handle: ResourceHandle,
    deadline: Optional[Deadline] = None,
    request_id: Optional[str] = None,
) -> Instance:
    """Block until the instance is ACTIVE with health OK."""
    return _run(
        client, handle, AVAILABLE, _state_reader(client, handle), deadline, request_id
    )


def wait_for_stopped(
    client: InstanceClientBlueprint,
    handle: ResourceHandle,
    deadline: Optional[Deadline] = None,
    request_id: Optional[str] = None,
) -> Instance:
    """Block until the instance is SHUTOFF with health OK."""
    return _run(
        client, handle, STOPPED, _state_reader(client, handle), deadline, request_id
    )


def wait_for_resized(
    client: InstanceClientBlueprint,
    handle: ResourceHandle,
    deadline: Optional[Deadline] = None,
    request_id: Optional[str] = None,
) -> Instance:
    """Block until a capacity change settles in SHUTOFF (health OK) or ACTIVE."""
    return _run(
        client, handle, RESIZED, _state_reader(client, handle), deadline, request_id
    )


def wait_for_deleted(
    client: InstanceClientBlueprint,
    handle: ResourceHandle,
    deadline: Optional[Deadline] = None,
    request_id: Optional[str] = None,
) -> None:
    """Block until the instance lookup reports not-found."""
    _run(client, handle, DELETED, _deleted_reader(client, handle), deadline, request_id)
