"""
Sticky Header Tests
===================

Tests for the probe comparing the top of a new frame with the bottom of
the previous one.
"""

import numpy as np

from scrollshot.capture.frame import Frame
from scrollshot.stitching.sticky import estimate_sticky_height

from conftest import make_content


def _pair(repeated_rows: int, height: int = 200):
    """Previous frame and a current frame opening with its last rows."""
    previous = make_content(height, 120, seed=1)
    current = make_content(height, 120, seed=2)
    current[:repeated_rows] = previous[height - repeated_rows:]
    return Frame(pixels=previous), current


class TestStickyHeight:
    """Tests for estimate_sticky_height()."""

    def test_repeated_band_detected(self):
        previous, current = _pair(40)
        assert estimate_sticky_height(previous, Frame(pixels=current), max_probe=40) == 40

    def test_top_aligned_rows_are_not_compared(self):
        """Matching tops say nothing; only the previous frame's bottom counts."""
        previous = Frame(pixels=make_content(200, 120, seed=1))
        current = make_content(200, 120, seed=2)
        current[:40] = previous.pixels[:40]

        assert estimate_sticky_height(previous, Frame(pixels=current), max_probe=40) == 0

    def test_unrelated_frames(self):
        previous = Frame(pixels=make_content(200, 120, seed=1))
        current = Frame(pixels=make_content(200, 120, seed=2))
        assert estimate_sticky_height(previous, current, max_probe=66) == 0

    def test_stops_at_first_moving_row(self):
        previous, current = _pair(40)
        current[25] = 255 - current[25]
        assert estimate_sticky_height(previous, Frame(pixels=current), max_probe=40) == 25

    def test_bounded_by_shorter_previous_frame(self):
        """A cropped previous tile limits the probe to its own height."""
        previous = Frame(pixels=make_content(30, 120, seed=3))
        current = make_content(200, 120, seed=2)
        current[:30] = previous.pixels

        assert estimate_sticky_height(previous, Frame(pixels=current), max_probe=66) == 30

    def test_zero_probe(self):
        frame = Frame(pixels=make_content(200, 120, seed=1))
        assert estimate_sticky_height(frame, frame, max_probe=0) == 0

    def test_small_differences_count_as_stationary(self):
        """A row whose mean luma difference stays below the threshold still matches."""
        previous, current = _pair(40)
        current[:40, :, :3] = np.minimum(current[:40, :, :3], 254) + 1

        assert estimate_sticky_height(previous, Frame(pixels=current), max_probe=40) == 40
