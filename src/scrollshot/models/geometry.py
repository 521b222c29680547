"""
Geometry Models
===============

Screen geometry for capture sessions.

Design Philosophy:
    A Viewport is fixed for the whole session. It is resolved once
    (from a window box or an explicit region) and never re-measured
    while scrolling, so every frame has the same dimensions.

Note:
    All coordinates are in SCREEN SPACE (pixels), origin at the top-left
    of the virtual desktop.
"""

from pydantic import BaseModel, Field

from scrollshot.errors import ViewportTooSmall


class Viewport(BaseModel):
    """
    Axis-aligned capture rectangle in screen coordinates.

    Attributes:
        left: Horizontal position of the left edge (pixels)
        top: Vertical position of the top edge (pixels)
        width: Rectangle width (pixels)
        height: Rectangle height (pixels)
    """

    left: int = Field(..., description="Left edge (pixels)")
    top: int = Field(..., description="Top edge (pixels)")
    width: int = Field(..., ge=0, description="Width (pixels)")
    height: int = Field(..., ge=0, description="Height (pixels)")

    class Config:
        """Viewports are immutable for the duration of a session."""

        frozen = True

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    def ensure_min_size(self, minimum: int) -> None:
        """
        Reject viewports too small to stitch.

        Args:
            minimum: Minimum width and height (pixels)

        Raises:
            ViewportTooSmall: If either dimension is below the minimum
        """
        if self.width < minimum or self.height < minimum:
            raise ViewportTooSmall(
                f"Viewport {self.width}x{self.height} is too small; "
                f"at least {minimum}x{minimum} is required"
            )

    def as_monitor(self) -> dict:
        """Return the region in the dict shape expected by mss."""
        return {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
        }
