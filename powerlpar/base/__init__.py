"""Client blueprint, typed models and core utilities.

The remote instance API is abstracted by :class:`InstanceClientBlueprint`;
import it to type-hint your own code or to plug in another client.
"""

from .instance_client import InstanceAction, InstanceClientBlueprint
from .models import Address, Instance, InstanceChanges, InstanceRequest, ResourceHandle
from .states import HealthStatus, InstanceStatus, StateKey, WaitDescriptor
from .supported_services import existing_cloud_providers


__all__ = [
    "InstanceAction",
    "InstanceClientBlueprint",
    "Address",
    "Instance",
    "InstanceChanges",
    "InstanceRequest",
    "ResourceHandle",
    "HealthStatus",
    "InstanceStatus",
    "StateKey",
    "WaitDescriptor",
    "existing_cloud_providers",
]
