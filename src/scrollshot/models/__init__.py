"""
Data Models
===========

Models shared across the scrolling capture pipeline.

Models:
    Geometry:
        - Viewport: Screen rectangle captured every step

    Session:
        - CaptureMode: Scroll strategy preference
        - DriverState: Scroll driver lifecycle
        - StopReason: Why the loop ended
        - CaptureSession: Mutable session-scoped loop state

    Output:
        - CaptureResult: Composite plus outcome and analytics
"""

from scrollshot.models.geometry import Viewport
from scrollshot.models.session import (
    CaptureMode,
    CaptureSession,
    DriverState,
    StopReason,
)
from scrollshot.models.result import CaptureResult

__all__ = [
    # Geometry
    "Viewport",
    # Session
    "CaptureMode",
    "CaptureSession",
    "DriverState",
    "StopReason",
    # Output
    "CaptureResult",
]
