"""
Capture Result
==============

Output contract of a scrolling capture session.
"""

from dataclasses import dataclass
from typing import Tuple

from scrollshot.capture.frame import Frame
from scrollshot.models.session import StopReason
from scrollshot.observability.analytics import CaptureStats


# Stop reasons that mean the composite may be missing content.
_PARTIAL_REASONS = (StopReason.DRIVER_FAILURE, StopReason.CAPTURE_FAILURE, StopReason.CANCELLED)


@dataclass(frozen=True, slots=True)
class CaptureResult:
    """
    Composite image plus how the session went.

    Attributes:
        image: The stitched composite (viewport width x accumulated height)
        stop_reason: Why the loop ended
        frames_captured: Frames accepted into the composite
        stats: Per-step analytics
        warnings: Best-effort degradations, empty on a clean run
        tile_offsets: Row at which each frame was placed, in capture order
    """

    image: Frame
    stop_reason: StopReason
    frames_captured: int
    stats: CaptureStats
    warnings: Tuple[str, ...] = ()
    tile_offsets: Tuple[int, ...] = ()

    @property
    def partial(self) -> bool:
        """Whether the session stopped early on a failure or cancellation."""
        return self.stop_reason in _PARTIAL_REASONS

    def __repr__(self) -> str:
        return (
            f"CaptureResult(size={self.image.width}x{self.image.height}, "
            f"frames={self.frames_captured}, reason={self.stop_reason.value})"
        )
