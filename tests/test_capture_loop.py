"""
Capture Loop Tests
==================

End-to-end tests of ScrollCapture against synthetic scrolling surfaces.
"""

import numpy as np
import pytest

from scrollshot.agent import CancellationToken, ScrollCapture
from scrollshot.errors import CaptureFailure, InvalidTarget, ViewportTooSmall
from scrollshot.models import CaptureMode, CaptureSession, StopReason, Viewport
from scrollshot.stitching.overlap import OverlapEstimate

from conftest import (
    FakeActivator,
    FakeFrameSource,
    FakeInputSimulator,
    FakeScrollQuery,
    FakeSurface,
    make_content,
    no_sleep,
)


def _structured(surface, settings, **kwargs):
    return ScrollCapture(
        frame_source=kwargs.pop("source", FakeFrameSource(surface)),
        activator=kwargs.pop("activator", FakeActivator()),
        scroll_query=FakeScrollQuery(surface),
        input_simulator=FakeInputSimulator(surface),
        settings=settings,
        sleep=no_sleep,
        **kwargs,
    )


def _simulated(surface, settings, keys=None, source=None):
    return ScrollCapture(
        frame_source=source or FakeFrameSource(surface),
        activator=FakeActivator(),
        input_simulator=keys or FakeInputSimulator(surface),
        settings=settings,
        sleep=no_sleep,
    )


class TestCaptureEndToEnd:
    """Full sessions that should reproduce the page exactly."""

    def test_single_frame_when_already_at_end(self, fast_settings, viewport):
        """A page that fits the viewport yields exactly one frame."""
        surface = FakeSurface(make_content(160, 240), view_height=160, page_step=120)
        result = _structured(surface, fast_settings).capture("win", viewport)

        assert result.stop_reason == StopReason.END_OF_CONTENT
        assert result.frames_captured == 1
        assert (result.image.width, result.image.height) == (240, 160)
        assert result.warnings == ()
        assert not result.partial

    def test_structured_scroll_reproduces_page(self, fast_settings, viewport, surface):
        result = _structured(surface, fast_settings).capture("win", viewport)

        assert result.stop_reason == StopReason.END_OF_CONTENT
        assert result.frames_captured == 6
        assert result.image.height == 760
        assert np.array_equal(result.image.pixels, surface.content)
        assert result.tile_offsets == (0, 120, 240, 360, 480, 600)

    def test_page_sized_scrolls_at_desktop_resolution(self, fast_settings):
        """800x600 viewport, 550-row scrolls, 50 rows shared per step."""
        surface = FakeSurface(make_content(2800, 800, seed=3), view_height=600, page_step=550)
        viewport = Viewport(left=0, top=0, width=800, height=600)

        result = _structured(surface, fast_settings).capture("win", viewport)

        assert result.frames_captured == 5
        assert (result.image.width, result.image.height) == (800, 2800)
        assert np.array_equal(result.image.pixels, surface.content)

    def test_simulated_scroll_stops_on_stagnation(self, fast_settings, viewport, surface):
        keys = FakeInputSimulator(surface)
        result = _simulated(surface, fast_settings, keys=keys).capture("win", viewport)

        assert result.stop_reason == StopReason.STAGNATION
        assert keys.presses == 5 + 4
        assert result.image.height == 760
        assert np.array_equal(result.image.pixels, surface.content)

    def test_enhanced_method(self, fast_settings, viewport, surface):
        fast_settings.stitching.method = "enhanced"
        result = _structured(surface, fast_settings).capture("win", viewport)

        assert result.image.height == 760
        assert np.array_equal(result.image.pixels, surface.content)

    def test_step_records(self, fast_settings, viewport, surface):
        result = _structured(surface, fast_settings).capture("win", viewport)

        steps = result.stats.steps
        assert [s.index for s in steps] == [1, 2, 3, 4, 5]
        assert all(s.changed for s in steps)
        assert all(s.dy == 120 for s in steps)
        assert result.stats.final_height == 760
        assert result.stats.stop_reason == "END_OF_CONTENT"


class TestStagnation:
    """Tests for the stagnation stop rule."""

    def test_frozen_target_stops_after_threshold(self, fast_settings, viewport):
        """Keys that scroll nothing end the session after four unchanged frames."""
        surface = FakeSurface(make_content(760, 240), view_height=160, page_step=0)
        keys = FakeInputSimulator(surface)
        result = _simulated(surface, fast_settings, keys=keys).capture("win", viewport)

        assert result.stop_reason == StopReason.STAGNATION
        assert keys.presses == 4
        assert result.frames_captured == 4
        assert result.image.height == 160
        assert [s.stagnant_frames for s in result.stats.steps] == [1, 2, 3, 4]
        assert not any(s.changed for s in result.stats.steps)

    def test_threshold_is_configurable(self, fast_settings, viewport):
        fast_settings.stitching.stagnation_threshold = 2
        surface = FakeSurface(make_content(760, 240), view_height=160, page_step=0)
        keys = FakeInputSimulator(surface)
        result = _simulated(surface, fast_settings, keys=keys).capture("win", viewport)

        assert keys.presses == 2


class CleanCutEstimator:
    """Places every frame directly below the composite."""

    method = "clean-cut"

    def estimate(self, tail, frame, search_limit):
        return OverlapEstimate(dy=tail.height, overlap=0, method=self.method, score=0.0)


class TestStickyHeader:
    """Tests for cropping rows that repeat the bottom of the last tile."""

    def test_repeated_rows_cropped_every_step(self, fast_settings, viewport):
        """Scrolling by view - probe rows repeats exactly the probed band."""
        surface = FakeSurface(make_content(481, 240, seed=6), view_height=160, page_step=107)
        capture = _structured(surface, fast_settings, estimator=CleanCutEstimator())

        result = capture.capture("win", viewport)

        assert result.stop_reason == StopReason.END_OF_CONTENT
        assert [s.sticky_height for s in result.stats.steps] == [53, 53, 53]
        assert result.tile_offsets == (0, 160, 267, 374)
        assert np.array_equal(result.image.pixels, surface.content)

    def test_ordinary_scroll_crops_nothing(self, fast_settings, viewport, surface):
        result = _structured(surface, fast_settings).capture("win", viewport)

        assert all(s.sticky_height == 0 for s in result.stats.steps)

    def test_sticky_height_only_grows(self):
        session = CaptureSession()
        assert session.raise_sticky(30) == 30
        assert session.raise_sticky(10) == 30
        assert session.raise_sticky(45) == 45
        assert session.sticky_height == 45


class TestStopConditions:
    """Tests for the remaining stop reasons and failure policy."""

    def test_step_budget(self, fast_settings, viewport, surface):
        result = _structured(surface, fast_settings).capture("win", viewport, max_steps=2)

        assert result.stop_reason == StopReason.STEP_BUDGET
        assert result.frames_captured == 3
        assert result.image.height == 160 + 2 * 120

    def test_cancelled_before_first_step(self, fast_settings, viewport, surface):
        token = CancellationToken()
        token.cancel()
        result = _structured(surface, fast_settings).capture("win", viewport, cancel_token=token)

        assert result.stop_reason == StopReason.CANCELLED
        assert result.partial
        assert result.frames_captured == 1
        assert result.image.height == 160

    def test_cancelled_mid_session(self, fast_settings, viewport, surface):
        token = CancellationToken()

        def cancel_on_second(presses):
            if presses == 2:
                token.cancel()

        keys = FakeInputSimulator(surface, on_key=cancel_on_second)
        result = _simulated(surface, fast_settings, keys=keys).capture(
            "win", viewport, cancel_token=token
        )

        assert result.stop_reason == StopReason.CANCELLED
        assert keys.presses == 2
        assert result.image.height == 160 + 2 * 120
        assert result.warnings

    def test_capture_failure_mid_session(self, fast_settings, viewport, surface):
        source = FakeFrameSource(surface, fail_after=4)
        result = _structured(surface, fast_settings, source=source).capture("win", viewport)

        assert result.stop_reason == StopReason.CAPTURE_FAILURE
        assert result.partial
        assert result.frames_captured >= 1
        assert "display went away" in result.warnings[0]

    def test_driver_failure_mid_session(self, fast_settings, viewport, surface):
        def fail_on_third(presses):
            if presses == 3:
                raise OSError("input blocked")

        keys = FakeInputSimulator(surface, on_key=fail_on_third)
        result = _simulated(surface, fast_settings, keys=keys).capture("win", viewport)

        assert result.stop_reason == StopReason.DRIVER_FAILURE
        assert result.frames_captured == 3
        assert result.image.height == 160 + 2 * 120
        assert "input blocked" in result.warnings[0]

    def test_no_scroll_strategy(self, fast_settings, viewport, surface):
        capture = ScrollCapture(
            frame_source=FakeFrameSource(surface),
            activator=FakeActivator(),
            settings=fast_settings,
            sleep=no_sleep,
        )
        result = capture.capture("win", viewport)

        assert result.stop_reason == StopReason.DRIVER_FAILURE
        assert result.frames_captured == 1
        assert result.warnings

    def test_simulated_only_mode(self, fast_settings, viewport, surface):
        query = FakeScrollQuery(surface)
        capture = ScrollCapture(
            frame_source=FakeFrameSource(surface),
            activator=FakeActivator(),
            scroll_query=query,
            input_simulator=FakeInputSimulator(surface),
            settings=fast_settings,
            sleep=no_sleep,
        )
        result = capture.capture("win", viewport, mode=CaptureMode.SIMULATED_ONLY)

        assert query.increments == 0
        assert result.stop_reason == StopReason.STAGNATION


class TestPreconditions:
    """Tests for errors raised before any capture."""

    def test_missing_handle(self, fast_settings, viewport, surface):
        with pytest.raises(InvalidTarget):
            _structured(surface, fast_settings).capture(None, viewport)

    def test_invalid_handle(self, fast_settings, viewport, surface):
        capture = _structured(surface, fast_settings, activator=FakeActivator(valid=False))
        with pytest.raises(InvalidTarget):
            capture.capture("gone", viewport)

    def test_viewport_too_small(self, fast_settings, surface):
        with pytest.raises(ViewportTooSmall):
            _structured(surface, fast_settings).capture(
                "win", Viewport(left=0, top=0, width=40, height=300)
            )

    def test_first_capture_failure_raises(self, fast_settings, viewport, surface):
        source = FakeFrameSource(surface, fail_after=0)
        with pytest.raises(CaptureFailure):
            _structured(surface, fast_settings, source=source).capture("win", viewport)

    def test_target_brought_to_front(self, fast_settings, viewport, surface):
        activator = FakeActivator()
        _structured(surface, fast_settings, activator=activator).capture(
            "win", viewport, max_steps=0
        )
        assert activator.activations == ["win"]
