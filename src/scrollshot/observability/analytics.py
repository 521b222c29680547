"""
Capture Analytics
=================

Per-step records and a session summary for scrolling captures.

This module is PURELY DESCRIPTIVE. Nothing recorded here feeds back into
the capture loop's decisions.

Records:
    - StepRecord: One loop iteration (change detected, sticky height,
      stagnation count, overlap estimate, placement)
    - CaptureStats: All steps plus the session outcome
"""

import logging
import time
from typing import List, Optional

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


class StepRecord(BaseModel):
    """
    One iteration of the capture loop.

    Attributes:
        index: Frame sequence index
        changed: Whether polling saw a visible change before the budget ran out
        sticky_height: Running sticky height applied to this frame
        stagnant_frames: Consecutive stagnant frames after this step
        dy: Overlap estimator offset (None when the frame was not appended)
        overlap: Rows shared with the composite
        offset: Placement of the appended tile
        method: Overlap method that produced the estimate
    """

    index: int = Field(..., ge=0)
    changed: bool = Field(...)
    sticky_height: int = Field(default=0, ge=0)
    stagnant_frames: int = Field(default=0, ge=0)
    dy: Optional[int] = Field(default=None, ge=0)
    overlap: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)
    method: Optional[str] = Field(default=None)


class CaptureStats(BaseModel):
    """
    Summary of a capture session.

    Attributes:
        steps: Per-iteration records in order
        frames_captured: Frames accepted into the composite
        final_height: Composite height in pixels
        final_width: Composite width in pixels
        stop_reason: Why the loop ended
        elapsed_seconds: Wall time of the session
    """

    steps: List[StepRecord] = Field(default_factory=list)
    frames_captured: int = Field(default=0, ge=0)
    final_height: int = Field(default=0, ge=0)
    final_width: int = Field(default=0, ge=0)
    stop_reason: Optional[str] = Field(default=None)
    elapsed_seconds: float = Field(default=0.0, ge=0)


class CaptureAnalytics:
    """
    Collects StepRecords while a session runs.

    Example:
        analytics = CaptureAnalytics()
        analytics.record(StepRecord(index=1, changed=True))
        stats = analytics.finish(frames_captured=2, height=1150,
                                 width=800, stop_reason="STAGNATION")
    """

    def __init__(self) -> None:
        self._steps: List[StepRecord] = []
        self._started = time.monotonic()

    def record(self, step: StepRecord) -> None:
        self._steps.append(step)
        logger.debug(f"Step {step.index}: {step.model_dump(exclude_none=True)}")

    def finish(
        self,
        frames_captured: int,
        height: int,
        width: int,
        stop_reason: Optional[str],
    ) -> CaptureStats:
        """Freeze the collected steps into a CaptureStats summary."""
        stats = CaptureStats(
            steps=list(self._steps),
            frames_captured=frames_captured,
            final_height=height,
            final_width=width,
            stop_reason=stop_reason,
            elapsed_seconds=time.monotonic() - self._started,
        )
        logger.info(
            f"Capture finished: {frames_captured} frames, {width}x{height}px, "
            f"reason={stop_reason}, {stats.elapsed_seconds:.2f}s"
        )
        return stats
