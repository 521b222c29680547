"""
Frame Sources
=============

Screen capture backends for the capture loop.

This module provides the FrameSource protocol the loop consumes and
MssFrameSource, the desktop implementation built on mss.

Design Rules:
    - capture() blocks until a raster is available
    - Backend errors surface as CaptureFailure, never as raw library errors
    - mss is imported lazily so the stitching core runs headless
"""

import logging
from typing import Protocol

from scrollshot.capture.frame import Frame
from scrollshot.errors import CaptureFailure
from scrollshot.models.geometry import Viewport


logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """
    Protocol for viewport capture backends.

    Implementations must return a stable raster of exactly the viewport
    size, falling back internally between capture techniques if needed.
    """

    def capture(self, viewport: Viewport, index: int = 0) -> Frame:
        """
        Capture the current contents of the viewport.

        Args:
            viewport: Screen rectangle to grab
            index: Sequence index to tag the frame with

        Returns:
            Frame of viewport.width x viewport.height pixels

        Raises:
            CaptureFailure: If no raster could be produced
        """
        ...


class MssFrameSource:
    """
    Desktop frame source backed by mss.

    mss returns tightly packed BGRA rows, which map directly onto the
    Frame layout. A single mss instance is reused across captures.
    """

    def __init__(self) -> None:
        import mss

        self._sct = mss.mss()
        logger.info("MssFrameSource initialized")

    def capture(self, viewport: Viewport, index: int = 0) -> Frame:
        try:
            shot = self._sct.grab(viewport.as_monitor())
        except Exception as e:
            raise CaptureFailure(f"Screen grab of {viewport} failed: {e}") from e

        width, height = shot.size
        if (width, height) != (viewport.width, viewport.height):
            logger.warning(
                f"Grab returned {width}x{height}, expected "
                f"{viewport.width}x{viewport.height}"
            )

        return Frame.from_buffer(
            shot.bgra,
            width=width,
            height=height,
            stride=width * 4,
            index=index,
        )

    def close(self) -> None:
        """Release the underlying mss handle."""
        self._sct.close()
