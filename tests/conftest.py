"""
Test Configuration
==================

Pytest fixtures and synthetic desktop collaborators for scrollshot.

The fakes model a tall page behind a fixed viewport: scrolling moves the
page position, capturing returns the rows currently in view.
"""

from typing import Any, Callable, List, Optional

import numpy as np
import pytest

from scrollshot.capture.frame import Frame
from scrollshot.config import (
    CaptureConfig,
    ScrollingConfig,
    Settings,
    StitchingConfig,
)
from scrollshot.models.geometry import Viewport


def make_content(height: int, width: int, seed: int = 7, block: int = 20) -> np.ndarray:
    """
    Tall BGRA page with coarse blocks and fine per-pixel noise.

    The blocks keep fingerprints distinct between scroll positions; the
    noise makes every alignment but the true one score badly.
    """
    rng = np.random.default_rng(seed)
    blocks = rng.integers(
        0, 256, size=(height // block + 1, width // block + 1, 3), dtype=np.uint8
    )
    coarse = np.repeat(np.repeat(blocks, block, axis=0), block, axis=1)[:height, :width]
    noise = rng.integers(0, 64, size=(height, width, 3), dtype=np.uint8)

    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[:, :, :3] = coarse // 4 * 3 + noise
    pixels[:, :, 3] = 255
    return pixels


class FakeSurface:
    """
    A scrollable page seen through a viewport of `view_height` rows.

    Attributes:
        content: Full page, BGRA
        position: Page row currently at the top of the viewport
    """

    def __init__(self, content: np.ndarray, view_height: int, page_step: int) -> None:
        self.content = content
        self.view_height = view_height
        self.page_step = page_step
        self.position = 0

    @property
    def max_position(self) -> int:
        return max(0, self.content.shape[0] - self.view_height)

    def scroll(self) -> None:
        self.position = min(self.position + self.page_step, self.max_position)

    def view(self) -> np.ndarray:
        return self.content[self.position:self.position + self.view_height]


class FakeFrameSource:
    """Frame source reading from a FakeSurface; can fail after N captures."""

    def __init__(self, surface: FakeSurface, fail_after: Optional[int] = None) -> None:
        self.surface = surface
        self.fail_after = fail_after
        self.captures = 0

    def capture(self, viewport: Viewport, index: int = 0) -> Frame:
        if self.fail_after is not None and self.captures >= self.fail_after:
            raise RuntimeError("display went away")
        self.captures += 1
        return Frame.from_array(self.surface.view(), index=index)


class FakeActivator:
    def __init__(self, valid: bool = True) -> None:
        self.valid = valid
        self.activations: List[Any] = []

    def is_valid_handle(self, handle: Any) -> bool:
        return self.valid

    def bring_to_front(self, handle: Any) -> None:
        self.activations.append(handle)


class FakeInputSimulator:
    """Page-down key that scrolls the surface; optional hook per press."""

    def __init__(
        self,
        surface: FakeSurface,
        on_key: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.surface = surface
        self.on_key = on_key
        self.presses = 0

    def send_key(self, handle: Any, key: str) -> None:
        self.presses += 1
        if self.on_key is not None:
            self.on_key(self.presses)
        self.surface.scroll()


class FakeScrollQuery:
    """Structured scroll capability backed by the surface position."""

    def __init__(
        self,
        surface: FakeSurface,
        capable: bool = True,
        fail_after: Optional[int] = None,
    ) -> None:
        self.surface = surface
        self.capable = capable
        self.fail_after = fail_after
        self.increments = 0

    def has_scroll_capability(self, handle: Any) -> bool:
        return self.capable

    def vertical_percent(self, handle: Any) -> float:
        if self.surface.max_position == 0:
            return -1.0
        return 100.0 * self.surface.position / self.surface.max_position

    def visible_fraction(self, handle: Any) -> float:
        return min(1.0, self.surface.view_height / self.surface.content.shape[0])

    def scroll_small_increment(self, handle: Any) -> bool:
        if self.fail_after is not None and self.increments >= self.fail_after:
            raise RuntimeError("scroll pattern no longer available")
        self.increments += 1
        self.surface.scroll()
        return True


def no_sleep(seconds: float) -> None:
    pass


@pytest.fixture
def fast_settings() -> Settings:
    """Default settings with every delay zeroed."""
    return Settings(
        capture=CaptureConfig(
            activation_settle_seconds=0.0,
            change_poll_attempts=3,
            change_poll_interval_seconds=0.0,
        ),
        scrolling=ScrollingConfig(
            structured_settle_seconds=0.0,
            simulated_settle_seconds=0.0,
        ),
        stitching=StitchingConfig(),
    )


@pytest.fixture
def viewport() -> Viewport:
    return Viewport(left=0, top=0, width=240, height=160)


@pytest.fixture
def surface() -> FakeSurface:
    """760-row page, 160-row viewport, 120-row pages (40 rows overlap)."""
    return FakeSurface(make_content(760, 240), view_height=160, page_step=120)
