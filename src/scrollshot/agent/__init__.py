"""
Capture Agent
=============

The scrolling capture orchestrator.
"""

from scrollshot.agent.capture_loop import CancellationToken, ScrollCapture

__all__ = ["CancellationToken", "ScrollCapture"]
