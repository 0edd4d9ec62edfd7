"""
Generic blocking wait engine.

:func:`wait_for` repeatedly calls a state reader on a fixed cadence until the
reader reports a target state, reports a state the wait does not model, raises,
or the wait's overall timeout elapses.  Only state reads are repeated; the
reader's own errors are never retried.
"""

from __future__ import annotations

import time
import logging
from typing import Any, Callable, Tuple

from powerlpar.base.exceptions import UnexpectedStateError, WaitTimeoutError
from powerlpar.base.states import WaitDescriptor

logger = logging.getLogger("powerlpar")

# read_state(timeout) -> (snapshot, state)
StateReader = Callable[[float], Tuple[Any, Any]]


class Deadline:
    """Overall time budget shared by the steps of one operation."""

    def __init__(self, seconds: float | None) -> None:
        self.seconds = seconds
        self._expires = None if seconds is None else time.monotonic() + seconds

    def remaining(self) -> float | None:
        """Seconds left, clamped at zero, or None when unbounded."""
        if self._expires is None:
            return None
        return max(self._expires - time.monotonic(), 0.0)


def wait_for(read_state: StateReader, descriptor: WaitDescriptor) -> Any:
    """Poll *read_state* until it reports one of ``descriptor.target``.

    Args:
        read_state: Callable taking the per-call timeout in seconds and returning
            ``(snapshot, state)``.  Exceptions it raises end the wait.
        descriptor: Pending/target states and timing for this wait.

    Returns:
        The snapshot that accompanied the first target state.

    Raises:
        UnexpectedStateError: If a state is in neither pending nor target.
        WaitTimeoutError: If ``descriptor.timeout`` elapses first.
    """
    deadline = time.monotonic() + descriptor.timeout
    last_state: Any = None
    last_snapshot: Any = None

    if descriptor.delay:
        time.sleep(min(descriptor.delay, descriptor.timeout))

    attempt = 0
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.error(
                "Wait '%s' timed out after %.0fs and %d polls (last state %s)",
                descriptor.name,
                descriptor.timeout,
                attempt,
                last_state,
            )
            raise WaitTimeoutError(
                f"Timed out after {descriptor.timeout:.0f}s waiting for "
                f"'{descriptor.name}' (last state: {last_state})",
                wait=descriptor.name,
                state=last_state,
                snapshot=last_snapshot,
            )

        attempt += 1
        last_snapshot, last_state = read_state(min(descriptor.min_timeout, remaining))

        if last_state in descriptor.target:
            logger.debug(
                "Wait '%s' reached %s after %d polls",
                descriptor.name,
                last_state,
                attempt,
            )
            return last_snapshot

        if last_state not in descriptor.pending:
            logger.error(
                "Wait '%s' observed unexpected state %s", descriptor.name, last_state
            )
            raise UnexpectedStateError(
                f"Unexpected state {last_state} while waiting for '{descriptor.name}'",
                wait=descriptor.name,
                state=last_state,
                snapshot=last_snapshot,
            )

        remaining = deadline - time.monotonic()
        logger.debug(
            "Wait '%s' poll %d observed %s, next poll in %.1fs",
            descriptor.name,
            attempt,
            last_state,
            descriptor.poll_interval,
        )
        time.sleep(min(descriptor.poll_interval, max(remaining, 0.0)))
