"""Remote instance client blueprint."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

from .models import Instance, InstanceRequest


class InstanceAction(str, Enum):
    """Power actions accepted by the remote API."""

    START = "start"
    IMMEDIATE_SHUTDOWN = "immediate-shutdown"


class InstanceClientBlueprint(ABC):
    """Abstract interface for the remote instance (LPAR) API.

    Every call is a single remote round trip; none of them wait for the
    instance to settle.  Lifecycle waits are layered on top by
    :mod:`powerlpar.lifecycle`.
    """

    @abstractmethod
    def create_instances(self, request: InstanceRequest) -> list[Instance]:
        """Submit a create request and return one snapshot per instance created.

        Args:
            request: Desired configuration.  ``request.replicants`` instances
                are requested in the same call.

        Returns:
            Snapshots of the new instances, in the order the API returned them.
        """

    @abstractmethod
    def get_instance(
        self,
        instance_id: str,
        cloud_instance_id: str,
        *,
        timeout: Optional[float] = None,
    ) -> Instance:
        """Fetch the current snapshot of one instance.

        Args:
            instance_id: Instance ID.
            cloud_instance_id: Workspace (cloud instance) that owns it.
            timeout: Upper bound in seconds for this call.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
        """

    @abstractmethod
    def update_instance(
        self,
        instance_id: str,
        cloud_instance_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """Apply a partial update.

        Args:
            changes: Any of ``name``, ``memory``, ``processors``,
                ``processor_type``, ``pin_policy``.

        Returns:
            The raw update acknowledgement.
        """

    @abstractmethod
    def perform_action(
        self, instance_id: str, cloud_instance_id: str, action: InstanceAction
    ) -> None:
        """Request a power action (start, stop, immediate shutdown)."""

    @abstractmethod
    def delete_instance(self, instance_id: str, cloud_instance_id: str) -> None:
        """Request deletion of an instance."""
