"""
Session State Models
====================

This module defines the state carried through one scrolling capture.

Core Concepts:
    - CaptureMode: Which scroll strategy the caller prefers
    - DriverState: Lifecycle of the scroll driver
    - StopReason: Why the capture loop ended
    - CaptureSession: Mutable, session-scoped loop state

Lifecycle:
    A CaptureSession is created when a capture starts, threaded through
    every loop step, and discarded when the composite is returned. It is
    never shared between sessions and never persisted.

Driver Transitions:
    UNINITIALIZED → CAPABILITY_PROBED → ADVANCING → EXHAUSTED | FAILED
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from scrollshot.capture.frame import Frame


class CaptureMode(str, Enum):
    """
    Scroll strategy preference.

    Attributes:
        STRUCTURED_FIRST: Use the structured scroll query when the target
            exposes one, otherwise simulate key input
        SIMULATED_ONLY: Always simulate key input
    """

    STRUCTURED_FIRST = "structured_first"
    SIMULATED_ONLY = "simulated_only"


class DriverState(str, Enum):
    """Lifecycle states of a scroll driver."""

    UNINITIALIZED = "UNINITIALIZED"
    CAPABILITY_PROBED = "CAPABILITY_PROBED"
    ADVANCING = "ADVANCING"
    EXHAUSTED = "EXHAUSTED"
    FAILED = "FAILED"


class StopReason(str, Enum):
    """
    Why a capture loop ended.

    Attributes:
        END_OF_CONTENT: Structured driver reached the end
        STAGNATION: Consecutive frames stopped changing
        STEP_BUDGET: Maximum number of steps reached
        DRIVER_FAILURE: Scroll capability lost
        CAPTURE_FAILURE: Frame source failed mid-session
        CANCELLED: Operator cancelled the session
    """

    END_OF_CONTENT = "END_OF_CONTENT"
    STAGNATION = "STAGNATION"
    STEP_BUDGET = "STEP_BUDGET"
    DRIVER_FAILURE = "DRIVER_FAILURE"
    CAPTURE_FAILURE = "CAPTURE_FAILURE"
    CANCELLED = "CANCELLED"


@dataclass
class CaptureSession:
    """
    Session-scoped state of the capture loop.

    Attributes:
        sticky_height: Running maximum of the sticky header probe
        stagnant_frames: Consecutive frames similar to their predecessor
        steps: Completed loop iterations
        frames_captured: Frames accepted into the composite
        last_fingerprint: Fingerprint of the last frame seen while polling
        previous_cropped: Last cropped frame (stagnation reference)
        stop_reason: Set when the loop ends
        warnings: Best-effort degradations reported to the caller
    """

    sticky_height: int = 0
    stagnant_frames: int = 0
    steps: int = 0
    frames_captured: int = 0
    last_fingerprint: Optional[str] = None
    previous_cropped: Optional[Frame] = None
    stop_reason: Optional[StopReason] = None
    warnings: List[str] = field(default_factory=list)

    def raise_sticky(self, probed: int) -> int:
        """
        Fold a probe result into the running sticky height.

        The height only grows: a smaller probe never shrinks the crop.

        Returns:
            The running sticky height after the update
        """
        if probed > self.sticky_height:
            self.sticky_height = probed
        return self.sticky_height

    def record_stagnation(self, is_stagnant: bool) -> int:
        """Update and return the consecutive stagnant frame counter."""
        self.stagnant_frames = self.stagnant_frames + 1 if is_stagnant else 0
        return self.stagnant_frames

    def stop(self, reason: StopReason, warning: Optional[str] = None) -> None:
        """Mark the session as finished."""
        self.stop_reason = reason
        if warning:
            self.warnings.append(warning)
