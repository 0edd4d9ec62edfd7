"""
Lifecycle controller.

Top-level create / read / update / delete / exists entry points.  Each call
runs to completion on the caller's thread, issuing one remote call at a time
and blocking on lifecycle waits between steps.  Errors propagate unchanged
and partially applied sequences are not rolled back.
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional, Union

from powerlpar.base.exceptions import (
    InstanceHealthWarningError,
    InstanceNotFoundError,
    InvalidUserDataError,
    ProvisioningError,
)
from powerlpar.base.config import LifecycleTimeouts
from powerlpar.base.instance_client import InstanceClientBlueprint
from powerlpar.base.logger import lpar_logger
from powerlpar.base.models import Instance, InstanceChanges, InstanceRequest, ResourceHandle
from powerlpar.base.poller import Deadline
from powerlpar.base.states import HealthStatus, InstanceStatus
from powerlpar.lifecycle.resize import change_processor_type, resize_instance
from powerlpar.lifecycle.state_machine import wait_for_available, wait_for_deleted

HandleLike = Union[ResourceHandle, str]


def check_user_data(user_data: str) -> None:
    """Reject user data that is not standard base64.

    Raises:
        InvalidUserDataError: If *user_data* does not decode.
    """
    try:
        base64.b64decode(user_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidUserDataError("User data is not base64 encoded") from e


class LifecycleController:
    """Drives instances through their lifecycle on top of a remote client.

    Attributes:
        client: Remote instance client used for every call.
        timeouts: Default overall budget per operation.
    """

    def __init__(
        self,
        client: InstanceClientBlueprint,
        timeouts: Optional[LifecycleTimeouts] = None,
    ) -> None:
        self.client = client
        self.timeouts = timeouts or LifecycleTimeouts()

    def create(
        self, request: InstanceRequest, timeout: Optional[float] = None
    ) -> list[Instance]:
        """Provision ``request.replicants`` instances and wait for each.

        Args:
            request: Desired configuration.
            timeout: Overall budget in seconds; defaults to ``timeouts.create``.

        Returns:
            One available snapshot per instance, in creation order.  Each
            snapshot's ``handle`` addresses exactly one instance.

        Raises:
            InvalidUserDataError: Before any remote call, on bad user data.
            ProvisioningError: If the API returned the wrong number of instances.
        """
        check_user_data(request.user_data)
        log = lpar_logger.bind("create", cloud_instance_id=request.cloud_instance_id)
        deadline = Deadline(timeout if timeout is not None else self.timeouts.create)

        log.info(f"Creating {request.replicants} instance(s) named '{request.name}'")
        created = self.client.create_instances(request)
        if len(created) != request.replicants:
            raise ProvisioningError(
                f"Requested {request.replicants} instance(s) but the API returned "
                f"{len(created)}"
            )

        available: list[Instance] = []
        for instance in created:
            log.info("Instance submitted, checking for status", handle=instance.handle)
            available.append(
                wait_for_available(self.client, instance.handle, deadline, log.request_id)
            )
        return available

    def read(self, handle: HandleLike) -> Instance:
        """Fetch the current snapshot.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
        """
        handle = ResourceHandle.parse(handle)
        return self.client.get_instance(handle.instance_id, handle.cloud_instance_id)

    def update(
        self,
        handle: HandleLike,
        current: Instance,
        changes: InstanceChanges,
        timeout: Optional[float] = None,
    ) -> Instance:
        """Apply *changes* to an instance last seen as *current*.

        A processor type change is completed first (stop, update, start).
        A memory or processor count change then goes through
        :func:`~powerlpar.lifecycle.resize.resize_instance`, which restarts
        the instance only when a value exceeds its current ceiling.

        Args:
            handle: Instance to update.
            current: Last known snapshot; supplies status, health and ceilings.
            changes: Requested values.
            timeout: Overall budget in seconds; defaults to ``timeouts.update``.

        Returns:
            A fresh snapshot read after every step completed.

        Raises:
            InstanceHealthWarningError: If ``current.health`` is WARNING.
        """
        handle = ResourceHandle.parse(handle)
        if current.health == HealthStatus.WARNING:
            raise InstanceHealthWarningError(
                "The operation cannot be performed while the instance health is WARNING"
            )

        log = lpar_logger.bind("update", handle=handle)
        deadline = Deadline(timeout if timeout is not None else self.timeouts.update)
        stopped = current.status == InstanceStatus.SHUTOFF

        type_changed = (
            changes.processor_type is not None
            and changes.processor_type != current.processor_type
        )
        if type_changed:
            change_processor_type(
                self.client,
                handle,
                changes.processor_type,
                already_stopped=stopped,
                deadline=deadline,
                request_id=log.request_id,
            )
            stopped = False

        memory = current.memory if changes.memory is None else changes.memory
        processors = current.processors if changes.processors is None else changes.processors
        renamed = changes.name is not None and changes.name != current.name

        if memory != current.memory or processors != current.processors:
            resize_instance(
                self.client,
                handle,
                memory=memory,
                processors=processors,
                max_memory=current.max_memory,
                max_processors=current.max_processors,
                name=changes.name,
                processor_type=changes.processor_type or current.processor_type,
                already_stopped=stopped,
                deadline=deadline,
                request_id=log.request_id,
            )
        elif renamed:
            log.info(f"Renaming instance to '{changes.name}'")
            self.client.update_instance(
                handle.instance_id, handle.cloud_instance_id, {"name": changes.name}
            )
            if not stopped:
                wait_for_available(self.client, handle, deadline, log.request_id)

        return self.read(handle)

    def delete(self, handle: HandleLike, timeout: Optional[float] = None) -> None:
        """Delete an instance and wait until lookups report not-found."""
        handle = ResourceHandle.parse(handle)
        log = lpar_logger.bind("delete", handle=handle)
        deadline = Deadline(timeout if timeout is not None else self.timeouts.delete)
        log.info("Deleting instance")
        self.client.delete_instance(handle.instance_id, handle.cloud_instance_id)
        wait_for_deleted(self.client, handle, deadline, log.request_id)

    def exists(self, handle: HandleLike) -> bool:
        """Return whether the instance behind *handle* still exists.

        Raises:
            InstanceApiError: For any lookup failure other than not-found.
        """
        handle = ResourceHandle.parse(handle)
        try:
            instance = self.client.get_instance(
                handle.instance_id, handle.cloud_instance_id
            )
        except InstanceNotFoundError:
            return False
        return instance.instance_id == handle.instance_id
