"""
Capture Module
==============

Frame representation, screen capture and change detection.

Components:
    - Frame: Immutable BGRA raster
    - FrameSource: Protocol for viewport capture backends
    - MssFrameSource: Desktop backend (requires the `desktop` extra)
    - fingerprint / similar: Cheap perceptual change detection
"""

from scrollshot.capture.frame import Frame
from scrollshot.capture.comparator import Fingerprint, fingerprint, similar
from scrollshot.capture.source import FrameSource, MssFrameSource


__all__ = [
    "Frame",
    "Fingerprint",
    "fingerprint",
    "similar",
    "FrameSource",
    "MssFrameSource",
]
