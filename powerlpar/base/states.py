"""
Instance states and lifecycle wait descriptors.

A state reader labels every snapshot with a :class:`StateKey` (coarse status plus
health).  Each lifecycle wait is a :class:`WaitDescriptor` whose pending and
target :class:`StateSet` tables decide whether polling continues, succeeds,
or fails on an unexpected state.  The four waits differ only in these tables
and their timing constants; :mod:`powerlpar.base.poller` runs all of them.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


class InstanceStatus(str, Enum):
    """Coarse lifecycle status reported by the remote API."""

    PENDING = "PENDING"
    BUILD = "BUILD"
    ACTIVE = "ACTIVE"
    SHUTOFF = "SHUTOFF"
    STOPPING = "STOPPING"
    RESIZE = "RESIZE"
    VERIFY_RESIZE = "VERIFY_RESIZE"
    DELETING = "DELETING"
    ERROR = "ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> InstanceStatus:
        if isinstance(value, str) and value.upper() in cls.__members__:
            return cls[value.upper()]
        return cls.UNKNOWN


class HealthStatus(str, Enum):
    """Fine-grained health reported alongside the status."""

    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    PENDING = "PENDING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> HealthStatus:
        if isinstance(value, str) and value.upper() in cls.__members__:
            return cls[value.upper()]
        return cls.UNKNOWN


class StateKey(NamedTuple):
    """The label a state reader attaches to a snapshot."""

    status: InstanceStatus
    health: HealthStatus = HealthStatus.UNKNOWN

    def __str__(self) -> str:
        return f"{self.status.value}/{self.health.value}"


NOT_FOUND = StateKey(InstanceStatus.NOT_FOUND, HealthStatus.UNKNOWN)


class StateSet:
    """Immutable set of ``(status, health)`` patterns.

    ``None`` in either position matches any value, so
    ``StateSet((None, HealthStatus.WARNING))`` contains every state whose
    health is WARNING.
    """

    __slots__ = ("_patterns",)

    def __init__(
        self, *patterns: tuple[Optional[InstanceStatus], Optional[HealthStatus]]
    ) -> None:
        self._patterns = frozenset(patterns)

    def __contains__(self, state: object) -> bool:
        if not isinstance(state, tuple) or len(state) != 2:
            return False
        status, health = state
        return any(
            (want_status is None or want_status == status)
            and (want_health is None or want_health == health)
            for want_status, want_health in self._patterns
        )

    def __iter__(self):
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __repr__(self) -> str:
        def _fmt(value: Optional[Enum]) -> str:
            return "*" if value is None else value.value

        body = ", ".join(
            sorted(f"{_fmt(s)}/{_fmt(h)}" for s, h in self._patterns)
        )
        return f"StateSet({body})"


class WaitDescriptor(BaseModel):
    """Configuration for one polling wait.

    Attributes:
        name: Short name used in logs and errors.
        pending: States that keep the wait going.
        target: States that end the wait successfully.
        delay: Seconds to sleep before the first poll.
        poll_interval: Seconds to sleep between polls.
        min_timeout: Upper bound in seconds for a single state read.
        timeout: Overall bound in seconds for the whole wait.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    pending: StateSet
    target: StateSet
    delay: float = Field(default=0.0, ge=0)
    poll_interval: float = Field(default=10.0, ge=0)
    min_timeout: float = Field(default=60.0, gt=0)
    timeout: float = Field(default=60 * 60, ge=0)

    def within(self, limit: float | None) -> WaitDescriptor:
        """Return a copy whose overall timeout does not exceed *limit*."""
        if limit is None or limit >= self.timeout:
            return self
        return self.model_copy(update={"timeout": max(limit, 0.0)})


class WaitKind(str, Enum):
    AVAILABLE = "available"
    STOPPED = "stopped"
    RESIZED = "resized"
    DELETED = "deleted"


_S = InstanceStatus
_H = HealthStatus

# After create, start, or an in-place update. Start is asynchronous, so a
# freshly started instance may still report SHUTOFF; an in-place update may
# pass through RESIZE.
AVAILABLE = WaitDescriptor(
    name=WaitKind.AVAILABLE.value,
    pending=StateSet(
        (_S.PENDING, None),
        (_S.BUILD, None),
        (_S.RESIZE, None),
        (_S.VERIFY_RESIZE, None),
        (_S.SHUTOFF, None),
        (None, _H.WARNING),
        (_S.ACTIVE, _H.PENDING),
        (_S.ACTIVE, _H.UNKNOWN),
    ),
    target=StateSet((_S.ACTIVE, _H.OK)),
    delay=10,
    poll_interval=10,
    min_timeout=2 * 60,
    timeout=60 * 60,
)

# Before a change that needs the instance powered off. ACTIVE stays pending
# until the stop action is picked up.
STOPPED = WaitDescriptor(
    name=WaitKind.STOPPED.value,
    pending=StateSet(
        (_S.STOPPING, None),
        (_S.RESIZE, None),
        (_S.VERIFY_RESIZE, None),
        (_S.ACTIVE, None),
        (None, _H.WARNING),
        (_S.SHUTOFF, _H.PENDING),
        (_S.SHUTOFF, _H.UNKNOWN),
    ),
    target=StateSet((_S.SHUTOFF, _H.OK)),
    delay=10,
    poll_interval=10,
    min_timeout=2 * 60,
    timeout=30 * 60,
)

# After an update that changes capacity ceilings; the remote side may
# re-activate the instance instead of leaving it off.
RESIZED = WaitDescriptor(
    name=WaitKind.RESIZED.value,
    pending=StateSet(
        (_S.RESIZE, None),
        (_S.VERIFY_RESIZE, None),
        (_S.SHUTOFF, _H.WARNING),
        (_S.SHUTOFF, _H.PENDING),
        (_S.SHUTOFF, _H.UNKNOWN),
    ),
    target=StateSet((_S.SHUTOFF, _H.OK), (_S.ACTIVE, None)),
    delay=10,
    poll_interval=10,
    min_timeout=5 * 60,
    timeout=60 * 60,
)

# After a delete call; any still-present status is winding down.
DELETED = WaitDescriptor(
    name=WaitKind.DELETED.value,
    pending=StateSet(
        (_S.DELETING, None),
        (_S.ACTIVE, None),
        (_S.SHUTOFF, None),
        (_S.STOPPING, None),
        (_S.ERROR, None),
    ),
    target=StateSet((_S.NOT_FOUND, None)),
    delay=10,
    poll_interval=10,
    min_timeout=10,
    timeout=10 * 60,
)

LIFECYCLE_WAITS: dict[WaitKind, WaitDescriptor] = {
    WaitKind.AVAILABLE: AVAILABLE,
    WaitKind.STOPPED: STOPPED,
    WaitKind.RESIZED: RESIZED,
    WaitKind.DELETED: DELETED,
}


__all__ = [
    "InstanceStatus",
    "HealthStatus",
    "StateKey",
    "StateSet",
    "NOT_FOUND",
    "WaitDescriptor",
    "WaitKind",
    "AVAILABLE",
    "STOPPED",
    "RESIZED",
    "DELETED",
    "LIFECYCLE_WAITS",
]
