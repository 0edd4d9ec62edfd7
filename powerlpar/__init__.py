"""powerlpar: lifecycle orchestration for Power Virtual Server instances.

Entry point for the library. Import :func:`lifecycle_factory` to build a
controller with a single call::

    from powerlpar import lifecycle_factory

    lpars = lifecycle_factory("ibm", {"region": "us-south", "crn": "crn:v1:..."})
    instances = lpars.create(request)
"""

from .base import (
    Instance,
    InstanceChanges,
    InstanceClientBlueprint,
    InstanceRequest,
    ResourceHandle,
)
from .factory import lifecycle_factory
from .lifecycle import LifecycleController

__all__ = [
    "Instance",
    "InstanceChanges",
    "InstanceClientBlueprint",
    "InstanceRequest",
    "ResourceHandle",
    "LifecycleController",
    "lifecycle_factory",
]
