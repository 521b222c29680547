"""
Scrollshot
==========

Scrolling screenshot capture and stitching.

This package captures a window viewport repeatedly while scrolling its
content, removes stationary headers, estimates how far the content moved
between frames, and stitches the frames into one tall composite.

Components:
    - capture: Frame type, screen capture, change detection
    - scrolling: Structured and simulated scroll drivers
    - stitching: Sticky header probe, overlap estimation, accumulator
    - agent: The capture loop tying everything together
    - observability: Per-step analytics and seam overlays

Example:
    from scrollshot.agent import ScrollCapture
    from scrollshot.models import Viewport

    capture = ScrollCapture(frame_source, activator, input_simulator=keys)
    result = capture.capture("My Window", Viewport(left=0, top=0, width=800, height=600))
    print(result.image.height, result.stop_reason)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
