"""
Capture Errors
==============

Error taxonomy for scrolling capture sessions.

Policy:
    - InvalidTarget and ViewportTooSmall fail the session before any
      capture happens.
    - CaptureFailure and DriverFailure raised mid-session stop the loop;
      whatever was accumulated is still rendered and returned with a
      warning.
    - A session that captured zero frames always raises.
"""


class ScrollCaptureError(Exception):
    """Base class for all scrolling capture errors."""
    pass


class InvalidTarget(ScrollCaptureError):
    """Raised when the target handle is missing or no longer valid."""
    pass


class ViewportTooSmall(ScrollCaptureError):
    """Raised when the viewport is below the minimum usable size."""
    pass


class CaptureFailure(ScrollCaptureError):
    """Raised when the frame source cannot produce a raster."""
    pass


class DriverFailure(ScrollCaptureError):
    """Raised when the scroll capability is lost or unavailable."""
    pass
