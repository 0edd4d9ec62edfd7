"""
powerlpar exception hierarchy.

Every failure surfaced by a lifecycle operation inherits from
:class:`PowerLparError`.  Remote failures, local validation failures,
refused preconditions and polling failures each have their own branch so
callers can tell them apart without inspecting messages.
"""

from __future__ import annotations

from typing import Any


# ── Base ──────────────────────────────────────────────────────────────
class PowerLparError(Exception):
    """Root exception for all powerlpar errors."""


# ── Remote API ────────────────────────────────────────────────────────
class InstanceApiError(PowerLparError):
    """A call to the remote instance API failed.

    Attributes:
        status_code: HTTP status code, or None for transport failures.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InstanceNotFoundError(InstanceApiError):
    """Instance not found (HTTP 404)."""


class ProvisioningError(PowerLparError):
    """The create call did not return the requested instances."""


# ── Validation ────────────────────────────────────────────────────────
class LifecycleValidationError(PowerLparError):
    """Base exception for input rejected before any remote call."""


class InvalidUserDataError(LifecycleValidationError):
    """User data is not valid base64."""


class InvalidHandleError(LifecycleValidationError):
    """Composite resource handle is malformed."""


# ── Preconditions ─────────────────────────────────────────────────────
class PreconditionError(PowerLparError):
    """The instance is not in a state that allows the operation."""


class InstanceHealthWarningError(PreconditionError):
    """Operation refused while the instance health is WARNING."""


# ── Polling ───────────────────────────────────────────────────────────
class WaitError(PowerLparError):
    """Base exception for a lifecycle wait that did not reach its target.

    Attributes:
        wait: Name of the wait descriptor that failed.
        state: Last state observed by the state reader, if any.
        snapshot: Last snapshot returned by the state reader, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        wait: str,
        state: Any = None,
        snapshot: Any = None,
    ) -> None:
        super().__init__(message)
        self.wait = wait
        self.state = state
        self.snapshot = snapshot


class UnexpectedStateError(WaitError):
    """The state reader reported a state outside the pending and target sets."""


class WaitTimeoutError(WaitError):
    """The wait exceeded its overall timeout."""
