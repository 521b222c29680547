"""
Scroll Drivers
==============

Advance the target's scroll position one increment at a time.

This module provides the ScrollDriver protocol and its two strategies,
selected once per session by create_scroll_driver():

    - StructuredScrollDriver: Uses the target's structured scroll query;
      observes the scroll percentage and reports end-of-content itself.
    - SimulatedScrollDriver: Sends a page-down key; cannot observe the
      end, so the capture loop's stagnation check is its only end signal.

Contract:
    advance() returns False ONLY on failure (capability lost). Reaching
    the end is reported through `at_end`, which callers check after
    every successful advance.

State Machine:
    UNINITIALIZED → CAPABILITY_PROBED → ADVANCING → EXHAUSTED | FAILED
"""

import logging
import time
from typing import Any, Callable, Optional, Protocol

from scrollshot.errors import DriverFailure
from scrollshot.models.session import CaptureMode, DriverState
from scrollshot.scrolling.platform import InputSimulator, ScrollQuery


logger = logging.getLogger(__name__)


class ScrollDriver(Protocol):
    """
    Protocol for scroll strategies.

    Attributes:
        state: Current lifecycle state
        at_end: Whether end-of-content has been observed
        failure: The error that moved the driver to FAILED, if any
    """

    state: DriverState
    failure: Optional[DriverFailure]

    @property
    def at_end(self) -> bool:
        ...

    def mark_exhausted(self) -> None:
        """Record that the capture loop detected sustained stagnation."""
        ...

    def advance(self) -> bool:
        """
        Scroll forward by one increment.

        Returns:
            True if the increment was issued (or the end was already
            reached), False if the scroll capability failed
        """
        ...


class StructuredScrollDriver:
    """
    Scroll driver for targets exposing a structured scroll capability.

    End-of-content: the scroll percentage is within `end_tolerance_percent`
    of 100, the target reports it cannot scroll (negative percentage), or
    the visible fraction already covers the whole content.

    Attributes:
        handle: Target handle passed to the query
        end_tolerance_percent: Distance from 100% treated as the end
        settle_seconds: Delay after each increment before re-querying
    """

    def __init__(
        self,
        handle: Any,
        query: ScrollQuery,
        end_tolerance_percent: float = 0.5,
        settle_seconds: float = 0.03,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.handle = handle
        self.end_tolerance_percent = end_tolerance_percent
        self.settle_seconds = settle_seconds
        self.state = DriverState.UNINITIALIZED
        self.failure: Optional[DriverFailure] = None
        self._query = query
        self._sleep = sleep
        self._at_end = False

        try:
            self._at_end = self._end_reached()
        except Exception as e:
            self._fail(f"Initial scroll query failed: {e}")
            return

        self.state = DriverState.EXHAUSTED if self._at_end else DriverState.CAPABILITY_PROBED
        logger.info(f"StructuredScrollDriver initialized: at_end={self._at_end}")

    @property
    def at_end(self) -> bool:
        return self._at_end

    def _end_reached(self) -> bool:
        percent = self._query.vertical_percent(self.handle)
        visible = self._query.visible_fraction(self.handle)
        return (
            percent < 0
            or percent >= 100.0 - self.end_tolerance_percent
            or visible >= 1.0
        )

    def _fail(self, message: str) -> None:
        self.failure = DriverFailure(message)
        self.state = DriverState.FAILED
        logger.warning(f"Structured scrolling failed: {message}")

    def advance(self) -> bool:
        if self.state == DriverState.FAILED:
            return False
        if self._at_end:
            return True

        try:
            if self._end_reached():
                self._at_end = True
                self.state = DriverState.EXHAUSTED
                return True

            if not self._query.scroll_small_increment(self.handle):
                self._fail("Small increment was rejected by the target")
                return False

            self._sleep(self.settle_seconds)
            self._at_end = self._end_reached()
        except Exception as e:
            self._fail(f"Scroll query raised: {e}")
            return False

        self.state = DriverState.EXHAUSTED if self._at_end else DriverState.ADVANCING
        return True

    def mark_exhausted(self) -> None:
        if self.state != DriverState.FAILED:
            self.state = DriverState.EXHAUSTED


class SimulatedScrollDriver:
    """
    Scroll driver that sends a page-down key to the target.

    It never observes end-of-content; `at_end` stays False.

    Attributes:
        handle: Target handle passed to the input simulator
        key: Key name sent on each advance
        settle_seconds: Delay after each key press
    """

    def __init__(
        self,
        handle: Any,
        input_simulator: InputSimulator,
        key: str = "page_down",
        settle_seconds: float = 0.06,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.handle = handle
        self.key = key
        self.settle_seconds = settle_seconds
        self.failure: Optional[DriverFailure] = None
        self._input = input_simulator
        self._sleep = sleep
        self.state = DriverState.CAPABILITY_PROBED

        logger.info(f"SimulatedScrollDriver initialized: key={key}")

    @property
    def at_end(self) -> bool:
        return False

    def advance(self) -> bool:
        if self.state == DriverState.FAILED:
            return False

        try:
            self._input.send_key(self.handle, self.key)
        except Exception as e:
            self.failure = DriverFailure(f"Sending {self.key} failed: {e}")
            self.state = DriverState.FAILED
            logger.warning(str(self.failure))
            return False

        self._sleep(self.settle_seconds)
        self.state = DriverState.ADVANCING
        return True

    def mark_exhausted(self) -> None:
        """Record that the loop detected sustained stagnation."""
        self.state = DriverState.EXHAUSTED


def _probe_capability(handle: Any, query: ScrollQuery) -> bool:
    """Fallible structured-capability probe; errors count as unavailable."""
    try:
        return bool(query.has_scroll_capability(handle))
    except Exception as e:
        logger.info(f"Structured scroll probe failed, falling back: {e}")
        return False


def create_scroll_driver(
    handle: Any,
    mode: CaptureMode,
    query: Optional[ScrollQuery] = None,
    input_simulator: Optional[InputSimulator] = None,
    end_tolerance_percent: float = 0.5,
    structured_settle_seconds: float = 0.03,
    simulated_settle_seconds: float = 0.06,
    key: str = "page_down",
    sleep: Callable[[float], None] = time.sleep,
) -> ScrollDriver:
    """
    Select the scroll strategy for a session.

    The structured capability is probed once, here; the chosen driver is
    used for the rest of the session.

    Args:
        handle: Target handle
        mode: Caller's strategy preference
        query: Structured scroll query, if the platform offers one
        input_simulator: Key input backend for the simulated strategy
        end_tolerance_percent: Structured end tolerance
        structured_settle_seconds: Structured settle delay
        simulated_settle_seconds: Simulated settle delay
        key: Key sent by the simulated strategy
        sleep: Sleep function (injectable for tests)

    Returns:
        StructuredScrollDriver or SimulatedScrollDriver

    Raises:
        DriverFailure: If no strategy is available
    """
    if (
        mode == CaptureMode.STRUCTURED_FIRST
        and query is not None
        and _probe_capability(handle, query)
    ):
        driver = StructuredScrollDriver(
            handle,
            query,
            end_tolerance_percent=end_tolerance_percent,
            settle_seconds=structured_settle_seconds,
            sleep=sleep,
        )
        if driver.state != DriverState.FAILED:
            return driver
        logger.info("Structured driver failed its first query, falling back")

    if input_simulator is None:
        raise DriverFailure(
            "Target has no structured scroll capability and no input simulator was provided"
        )

    return SimulatedScrollDriver(
        handle,
        input_simulator,
        key=key,
        settle_seconds=simulated_settle_seconds,
        sleep=sleep,
    )
