"""
Scrolling Module
================

Scroll strategies and the platform interfaces they drive.

Components:
    - ScrollDriver: Protocol for scroll strategies
    - StructuredScrollDriver / SimulatedScrollDriver: The two strategies
    - create_scroll_driver: One-time capability probe and selection
    - TargetActivator / InputSimulator / ScrollQuery: Platform protocols
    - WindowActivator / KeyboardInputSimulator: Desktop backends
      (require the `desktop` extra)
"""

from scrollshot.scrolling.driver import (
    ScrollDriver,
    SimulatedScrollDriver,
    StructuredScrollDriver,
    create_scroll_driver,
)
from scrollshot.scrolling.platform import (
    InputSimulator,
    KeyboardInputSimulator,
    ScrollQuery,
    TargetActivator,
    WindowActivator,
)


__all__ = [
    "ScrollDriver",
    "SimulatedScrollDriver",
    "StructuredScrollDriver",
    "create_scroll_driver",
    "InputSimulator",
    "KeyboardInputSimulator",
    "ScrollQuery",
    "TargetActivator",
    "WindowActivator",
]
