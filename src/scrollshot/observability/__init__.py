"""
Observability Module
====================

Analytics and debug visualization for scrolling captures.

This module provides:
    - CaptureAnalytics: Collects per-step records during a session
    - CaptureStats / StepRecord: Serializable session summary
    - render_seam_overlay: Marks tile seams on a composite

DESIGN RULES:
    - Does NOT influence capture decisions
"""

from scrollshot.observability.analytics import (
    CaptureAnalytics,
    CaptureStats,
    StepRecord,
)
from scrollshot.observability.visualization import render_seam_overlay


__all__ = [
    "CaptureAnalytics",
    "CaptureStats",
    "StepRecord",
    "render_seam_overlay",
]
