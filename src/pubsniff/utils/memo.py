# topmark:header:start
#
#   project      : PubSniff
#   file         : memo.py
#   file_relpath : src/pubsniff/utils/memo.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Single-flight, compute-once memoization for coroutines.

`SingleFlight` is a small state cell holding one of three states:

* ``UNSTARTED``: nothing computed yet;
* ``IN_FLIGHT``: a computation is running; concurrent callers await it;
* ``DONE``: the result (or the exception) is cached for the cell's lifetime.

If the computation is cancelled or interrupted (any `BaseException` that is
not an `Exception`), the cell goes back to ``UNSTARTED`` so the next caller
starts afresh; callers that were merely waiting retry instead of
inheriting a cancellation that was not theirs.

The cell is keyed by identity: each object that needs compute-once semantics
owns its own cells. There is no process-wide cache.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from pubsniff.config.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pubsniff.config.logging import PubsniffLogger

logger: PubsniffLogger = get_logger(__name__)

T = TypeVar("T")


class FlightState(Enum):
    """Lifecycle of a `SingleFlight` cell."""

    UNSTARTED = "unstarted"
    IN_FLIGHT = "in-flight"
    DONE = "done"


class SingleFlight(Generic[T]):
    """Compute a coroutine result at most once, sharing it with concurrent callers.

    Failures are cached like results: a computation that raised is not retried.
    Only cancellation or an interrupt resets the cell.
    """

    __slots__ = ("_state", "_future", "_result", "_error", "_name")

    def __init__(self, name: str = "") -> None:
        self._name: str = name
        self._state: FlightState = FlightState.UNSTARTED
        self._future: asyncio.Future[T] | None = None
        self._result: T | None = None
        self._error: BaseException | None = None

    @property
    def state(self) -> FlightState:
        """Current state of the cell."""
        return self._state

    def peek(self) -> T | None:
        """Return the cached result without computing, or None if not (successfully) done."""
        if self._state is FlightState.DONE and self._error is None:
            return self._result
        return None

    async def run(self, compute: Callable[[], Awaitable[T]]) -> T:
        """Return the memoized result, computing it with ``compute`` on first call.

        Args:
            compute (Callable[[], Awaitable[T]]): Zero-argument coroutine factory.
                Only invoked by the first caller.

        Returns:
            T: The computed (or cached) result.

        Raises:
            BaseException: Whatever ``compute`` raised, re-raised to every caller.
        """
        while True:
            if self._state is FlightState.DONE:
                if self._error is not None:
                    raise self._error
                return self._result  # type: ignore[return-value]

            fut: asyncio.Future[T] | None = self._future
            if fut is None:
                return await self._compute(compute)

            try:
                return await asyncio.shield(fut)
            except asyncio.CancelledError:
                if fut.cancelled():
                    # The owner was cancelled, not us: try again.
                    logger.trace("single-flight %s: in-flight owner cancelled, retrying", self._name)
                    continue
                raise

    async def _compute(self, compute: Callable[[], Awaitable[T]]) -> T:
        fut: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._future = fut
        self._state = FlightState.IN_FLIGHT
        try:
            result: T = await compute()
        except Exception as exc:
            self._error = exc
            self._state = FlightState.DONE
            fut.set_exception(exc)
            # Mark as retrieved: waiters are optional.
            fut.exception()
            raise
        except BaseException:
            # Cancellation, interrupts and exits are not results: waiters retry.
            self._future = None
            self._state = FlightState.UNSTARTED
            fut.cancel()
            raise
        self._result = result
        self._state = FlightState.DONE
        fut.set_result(result)
        return result
