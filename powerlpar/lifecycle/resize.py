"""
Resize orchestration.

The remote API has no atomic resize.  Memory and processor changes within the
instance's current ceilings are applied in place; anything above a ceiling,
and any processor type change, needs the instance powered off first::

    ACTIVE -> stop -> SHUTOFF -> update -> RESIZE/VERIFY_RESIZE -> SHUTOFF
           -> start -> PENDING/BUILD -> ACTIVE

A failure at any step aborts the sequence and propagates.  Nothing is rolled
back: an instance stopped before a failed update stays stopped.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional

from powerlpar.base.instance_client import InstanceAction, InstanceClientBlueprint
from powerlpar.base.logger import OperationLogger, lpar_logger
from powerlpar.base.models import Instance, ResourceHandle
from powerlpar.base.poller import Deadline
from powerlpar.lifecycle.state_machine import (
    wait_for_available,
    wait_for_resized,
    wait_for_stopped,
)

STOP_ACTION = InstanceAction.IMMEDIATE_SHUTDOWN

Settle = Callable[..., Instance]


class ResizePath(str, Enum):
    IN_PLACE = "in-place"
    RESTART = "stop-modify-start"


def plan_resize(
    memory: float,
    processors: float,
    max_memory: Optional[float],
    max_processors: Optional[float],
) -> ResizePath:
    """Pick the update path for a memory/processor change.

    An unknown ceiling is treated as exceeded.
    """
    if max_memory is None or max_processors is None:
        return ResizePath.RESTART
    if memory <= max_memory and processors <= max_processors:
        return ResizePath.IN_PLACE
    return ResizePath.RESTART


def _stop_modify_start(
    client: InstanceClientBlueprint,
    handle: ResourceHandle,
    changes: dict[str, Any],
    settle: Settle,
    *,
    already_stopped: bool,
    deadline: Optional[Deadline],
    log: OperationLogger,
) -> Instance:
    if already_stopped:
        log.info("Instance is already SHUTOFF, skipping stop", operation="stop")
    else:
        log.info("Stopping instance", operation="stop")
        client.perform_action(handle.instance_id, handle.cloud_instance_id, STOP_ACTION)
        wait_for_stopped(client, handle, deadline, log.request_id)

    log.info(f"Applying {sorted(changes)} while powered off", operation="modify")
    client.update_instance(handle.instance_id, handle.cloud_instance_id, changes)
    settle(client, handle, deadline, log.request_id)

    log.info("Starting instance", operation="start")
    client.perform_action(handle.instance_id, handle.cloud_instance_id, InstanceAction.START)
    return wait_for_available(client, handle, deadline, log.request_id)


def resize_instance(
    client: InstanceClientBlueprint,
    handle: ResourceHandle,
    *,
    memory: float,
    processors: float,
    max_memory: Optional[float],
    max_processors: Optional[float],
    name: Optional[str] = None,
    processor_type: Optional[str] = None,
    already_stopped: bool = False,
    deadline: Optional[Deadline] = None,
    request_id: Optional[str] = None,
) -> Instance:
    """Change memory and processor count, restarting only when required.

    Args:
        client: Remote instance client.
        handle: Instance to resize.
        memory: Requested memory in GB.
        processors: Requested processor count.
        max_memory: Current memory ceiling of the instance.
        max_processors: Current processor ceiling of the instance.
        name: Name sent with an in-place update.
        processor_type: Processor type sent with an in-place update.
        already_stopped: The instance is known to be SHUTOFF.
        deadline: Overall budget shared by every wait.
        request_id: Correlation ID for log records.

    Returns:
        The snapshot that confirmed the instance settled.
    """
    path = plan_resize(memory, processors, max_memory, max_processors)
    log = lpar_logger.bind("resize", handle=handle, request_id=request_id)
    log.info(
        f"Resizing to memory={memory} processors={processors} "
        f"(ceilings memory={max_memory} processors={max_processors}) via {path.value}",
    )

    if path is ResizePath.RESTART:
        return _stop_modify_start(
            client,
            handle,
            {"memory": memory, "processors": processors},
            wait_for_resized,
            already_stopped=already_stopped,
            deadline=deadline,
            log=log,
        )

    changes: dict[str, Any] = {"memory": memory, "processors": processors}
    if name is not None:
        changes["name"] = name
    if processor_type is not None:
        changes["processor_type"] = processor_type
    client.update_instance(handle.instance_id, handle.cloud_instance_id, changes)
    # A powered-off instance stays off after an in-place change.
    if already_stopped:
        return wait_for_resized(client, handle, deadline, log.request_id)
    return wait_for_available(client, handle, deadline, log.request_id)


def change_processor_type(
    client: InstanceClientBlueprint,
    handle: ResourceHandle,
    processor_type: str,
    *,
    already_stopped: bool = False,
    deadline: Optional[Deadline] = None,
    request_id: Optional[str] = None,
) -> Instance:
    """Switch processor type; always needs a stop, update and start."""
    log = lpar_logger.bind("change_processor_type", handle=handle, request_id=request_id)
    log.info(f"Changing processor type to {processor_type}")
    return _stop_modify_start(
        client,
        handle,
        {"processor_type": processor_type},
        wait_for_stopped,
        already_stopped=already_stopped,
        deadline=deadline,
        log=log,
    )
