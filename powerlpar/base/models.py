"""
Typed models for instance snapshots, lifecycle requests and resource handles.
"""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidHandleError
from .states import HealthStatus, InstanceStatus, StateKey
from .supported_services import (
    pin_policies,
    processor_types,
    replication_policies,
    replication_schemes,
    system_types,
)


class ResourceHandle(NamedTuple):
    """Composite identity of one instance: ``<cloudInstanceId>/<instanceId>``."""

    cloud_instance_id: str
    instance_id: str

    def __str__(self) -> str:
        return f"{self.cloud_instance_id}/{self.instance_id}"

    @classmethod
    def parse(cls, value: str | ResourceHandle) -> ResourceHandle:
        """Build a handle from its string form.

        Raises:
            InvalidHandleError: Unless *value* has exactly two non-empty parts.
        """
        if isinstance(value, ResourceHandle):
            return value
        parts = str(value).split("/")
        if len(parts) != 2 or not all(parts):
            raise InvalidHandleError(
                f"Invalid handle '{value}': expected <cloudInstanceId>/<instanceId>"
            )
        return cls(parts[0], parts[1])


class Address(BaseModel):
    """One network attachment of an instance."""

    model_config = ConfigDict(frozen=True)

    ip: str | None = None
    mac_address: str | None = None
    network_id: str | None = None
    network_name: str | None = None
    type: str | None = None
    external_ip: str | None = None


class Instance(BaseModel):
    """Snapshot of one remote instance (LPAR)."""

    model_config = ConfigDict(frozen=True)

    cloud_instance_id: str
    instance_id: str
    name: str = ""
    image_id: str | None = None
    status: InstanceStatus = InstanceStatus.UNKNOWN
    health: HealthStatus = HealthStatus.UNKNOWN
    processor_type: str | None = None
    system_type: str | None = None
    memory: float = 0.0
    processors: float = 0.0
    min_memory: float | None = None
    max_memory: float | None = None
    min_processors: float | None = None
    max_processors: float | None = None
    network_ids: list[str] = Field(default_factory=list)
    volume_ids: list[str] = Field(default_factory=list)
    addresses: list[Address] = Field(default_factory=list)
    pin_policy: str | None = None
    migratable: bool | None = None
    progress: float | None = None

    @property
    def state(self) -> StateKey:
        return StateKey(self.status, self.health)

    @property
    def handle(self) -> ResourceHandle:
        return ResourceHandle(self.cloud_instance_id, self.instance_id)


class InstanceRequest(BaseModel):
    """Desired configuration for a create call.

    ``replicants`` greater than one asks the remote side for that many
    near-identical instances in one call; each gets its own instance ID.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    cloud_instance_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    image_id: str = Field(min_length=1)
    processor_type: processor_types
    system_type: system_types
    memory: float = Field(gt=0, description="Memory in GB")
    processors: float = Field(gt=0)
    ssh_key_name: str
    network_ids: list[str] = Field(min_length=1)
    volume_ids: list[str] = Field(default_factory=list)
    replicants: int = Field(default=1, ge=1)
    replication_policy: replication_policies = "none"
    replication_scheme: replication_schemes = "suffix"
    pin_policy: pin_policies = "none"
    user_data: str = ""


class InstanceChanges(BaseModel):
    """Mutable subset of an instance; ``None`` leaves a field unchanged."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    memory: float | None = Field(default=None, gt=0)
    processors: float | None = Field(default=None, gt=0)
    processor_type: processor_types | None = None
