"""
Platform Collaborators
======================

Interfaces the capture loop consumes from the desktop, plus desktop
backends built on pygetwindow and pynput.

Interfaces:
    - TargetActivator: Validate a target handle, bring it to front
    - InputSimulator: Send a key to the target (simulated scrolling)
    - ScrollQuery: Structured scroll capability of the target

Handles:
    A target handle is whatever the backends agree on. The bundled
    WindowActivator addresses windows by title.

Note:
    No structured scroll backend ships here. Callers with access to an
    accessibility API inject their own ScrollQuery; without one the
    capture falls back to simulated key input.
"""

import logging
from typing import Any, Optional, Protocol

from scrollshot.models.geometry import Viewport


logger = logging.getLogger(__name__)


class TargetActivator(Protocol):
    """Protocol for target window activation."""

    def is_valid_handle(self, handle: Any) -> bool:
        """Whether the handle refers to an existing target."""
        ...

    def bring_to_front(self, handle: Any) -> None:
        """Raise and focus the target."""
        ...


class InputSimulator(Protocol):
    """Protocol for simulated key input."""

    def send_key(self, handle: Any, key: str) -> None:
        """Send one key press (down then up) to the target."""
        ...


class ScrollQuery(Protocol):
    """
    Protocol for structured scroll queries.

    Percentages follow the accessibility convention: vertical_percent is
    0..100, or negative when the target cannot scroll vertically;
    visible_fraction is the share of the content in view, 0..1.
    """

    def has_scroll_capability(self, handle: Any) -> bool:
        ...

    def vertical_percent(self, handle: Any) -> float:
        ...

    def visible_fraction(self, handle: Any) -> float:
        ...

    def scroll_small_increment(self, handle: Any) -> bool:
        ...


class WindowActivator:
    """
    Title-addressed window activation backed by pygetwindow.

    pygetwindow supports Windows and macOS; it is imported on construction
    so headless environments can still use the rest of the package.
    """

    def __init__(self) -> None:
        import pygetwindow

        self._gw = pygetwindow
        logger.info("WindowActivator initialized")

    def _find(self, handle: Any):
        if not handle:
            return None
        matches = self._gw.getWindowsWithTitle(str(handle))
        return matches[0] if matches else None

    def is_valid_handle(self, handle: Any) -> bool:
        return self._find(handle) is not None

    def bring_to_front(self, handle: Any) -> None:
        window = self._find(handle)
        if window is None:
            return
        if window.isMinimized:
            window.restore()
        window.activate()

    def viewport(self, handle: Any) -> Optional[Viewport]:
        """Screen box of the window, or None if it cannot be found."""
        window = self._find(handle)
        if window is None:
            return None
        return Viewport(
            left=window.left,
            top=window.top,
            width=window.width,
            height=window.height,
        )


class KeyboardInputSimulator:
    """
    Key input through pynput.

    pynput types into the focused window, so the target must have been
    brought to front first; the handle is accepted for interface parity.
    """

    def __init__(self) -> None:
        from pynput.keyboard import Controller, Key

        self._keyboard = Controller()
        self._keys = Key
        logger.info("KeyboardInputSimulator initialized")

    def send_key(self, handle: Any, key: str) -> None:
        resolved = getattr(self._keys, key, None)
        if resolved is None:
            if len(key) != 1:
                raise ValueError(f"Unknown key name: {key}")
            resolved = key
        self._keyboard.press(resolved)
        self._keyboard.release(resolved)
