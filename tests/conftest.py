"""Shared fixtures: a fake clock for the poller and an in-memory instance client."""

from __future__ import annotations

import itertools
from typing import Any
from unittest.mock import patch

import pytest

from powerlpar.base.exceptions import InstanceNotFoundError
from powerlpar.base.instance_client import InstanceAction, InstanceClientBlueprint
from powerlpar.base.models import Instance, InstanceRequest
from powerlpar.base.states import HealthStatus, InstanceStatus


class FakeClock:
    """Stands in for the ``time`` module inside the poller."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def clock():
    fake = FakeClock()
    with patch("powerlpar.base.poller.time", fake):
        yield fake


def snap(
    status: str = "ACTIVE",
    health: str = "OK",
    instance_id: str = "pvm-1",
    cloud_instance_id: str = "cid",
    **kwargs: Any,
) -> Instance:
    fields: dict[str, Any] = {
        "memory": 4.0,
        "processors": 1.0,
        "max_memory": 8.0,
        "max_processors": 2.0,
        "processor_type": "shared",
        "name": "lpar",
    }
    fields.update(kwargs)
    return Instance(
        cloud_instance_id=cloud_instance_id,
        instance_id=instance_id,
        status=InstanceStatus(status),
        health=HealthStatus(health),
        **fields,
    )


class InMemoryInstanceClient(InstanceClientBlueprint):
    """Instance client whose instances are ACTIVE/OK as soon as they exist."""

    def __init__(self) -> None:
        self.instances: dict[tuple[str, str], Instance] = {}
        self.calls: list[tuple[str, Any]] = []
        self._ids = itertools.count(1)

    def create_instances(self, request: InstanceRequest) -> list[Instance]:
        self.calls.append(("create", request.replicants))
        created = []
        for _ in range(request.replicants):
            instance = snap(
                instance_id=f"pvm-{next(self._ids)}",
                cloud_instance_id=request.cloud_instance_id,
                status="BUILD",
                health="PENDING",
                name=request.name,
                memory=request.memory,
                processors=request.processors,
                processor_type=request.processor_type,
            )
            self.instances[(request.cloud_instance_id, instance.instance_id)] = instance
            created.append(instance)
        return created

    def get_instance(self, instance_id, cloud_instance_id, *, timeout=None):
        self.calls.append(("get", instance_id))
        try:
            instance = self.instances[(cloud_instance_id, instance_id)]
        except KeyError:
            raise InstanceNotFoundError(f"Instance '{instance_id}' not found", 404)
        return instance.model_copy(update={"status": InstanceStatus.ACTIVE, "health": HealthStatus.OK})

    def update_instance(self, instance_id, cloud_instance_id, changes):
        self.calls.append(("update", dict(changes)))
        key = (cloud_instance_id, instance_id)
        self.instances[key] = self.instances[key].model_copy(update=changes)
        return {}

    def perform_action(self, instance_id, cloud_instance_id, action: InstanceAction):
        self.calls.append(("action", action))

    def delete_instance(self, instance_id, cloud_instance_id):
        self.calls.append(("delete", instance_id))
        del self.instances[(cloud_instance_id, instance_id)]


@pytest.fixture
def memory_client():
    return InMemoryInstanceClient()
