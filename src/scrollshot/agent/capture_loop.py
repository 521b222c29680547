"""
Scrolling Capture Loop
======================

Composes the capture components into one end-to-end operation.

Control Flow:
    1. Validate the target handle and the viewport (fail fast)
    2. Bring the target to front and let it settle
    3. Capture the first frame and store it at offset 0
    4. Until a stop condition:
         advance the scroll driver
         poll until the fingerprint changes (bounded)
         capture, probe it against the last tile, crop the running sticky height
         compare with the previous cropped frame (stagnation)
         estimate overlap against the composite tail, append
    5. Render the composite

Stop Conditions:
    END_OF_CONTENT   structured driver reports the end
    STAGNATION       `stagnation_threshold` consecutive similar frames
    STEP_BUDGET      `max_steps` iterations done
    DRIVER_FAILURE   scroll capability lost (best-effort result)
    CAPTURE_FAILURE  frame source failed mid-session (best-effort result)
    CANCELLED        cancellation token set (best-effort result)

Concurrency:
    Single-threaded and blocking. Scrolling and capturing are strictly
    interleaved; one session must never run concurrently against the
    same target. All session state lives in a CaptureSession owned by
    one capture() call.
"""

import logging
import threading
import time
from typing import Any, Callable, Optional

from scrollshot.capture.comparator import fingerprint, similar
from scrollshot.capture.frame import Frame
from scrollshot.capture.source import FrameSource
from scrollshot.config import Settings
from scrollshot.errors import CaptureFailure, DriverFailure, InvalidTarget
from scrollshot.models.geometry import Viewport
from scrollshot.models.result import CaptureResult
from scrollshot.models.session import CaptureMode, CaptureSession, StopReason
from scrollshot.observability.analytics import CaptureAnalytics, StepRecord
from scrollshot.scrolling.driver import ScrollDriver, create_scroll_driver
from scrollshot.scrolling.platform import InputSimulator, ScrollQuery, TargetActivator
from scrollshot.stitching.accumulator import StitchingAccumulator
from scrollshot.stitching.overlap import OverlapEstimator, create_overlap_estimator
from scrollshot.stitching.sticky import estimate_sticky_height


logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Thread-safe cancellation flag polled once per loop iteration.

    Example:
        token = CancellationToken()
        # from a signal handler or UI thread:
        token.cancel()
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ScrollCapture:
    """
    Scrolling capture orchestrator.

    Collaborators are injected so the loop runs against real desktop
    backends or synthetic ones alike.

    Attributes:
        settings: Configuration in effect for every session
    """

    def __init__(
        self,
        frame_source: FrameSource,
        activator: TargetActivator,
        scroll_query: Optional[ScrollQuery] = None,
        input_simulator: Optional[InputSimulator] = None,
        settings: Optional[Settings] = None,
        estimator: Optional[OverlapEstimator] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if settings is None:
            from scrollshot.config import settings as loaded_settings
            settings = loaded_settings

        self.settings = settings
        self._source = frame_source
        self._activator = activator
        self._query = scroll_query
        self._input = input_simulator
        self._estimator = estimator or create_overlap_estimator(settings.stitching)
        self._sleep = sleep

        logger.info(
            f"ScrollCapture initialized: method={settings.stitching.method}, "
            f"structured_query={'yes' if scroll_query is not None else 'no'}"
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def capture(
        self,
        handle: Any,
        viewport: Viewport,
        max_steps: Optional[int] = None,
        mode: Optional[CaptureMode] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CaptureResult:
        """
        Run one scrolling capture session.

        Args:
            handle: Target handle understood by the collaborators
            viewport: Screen rectangle to capture every step
            max_steps: Step budget (default: settings.capture.max_steps)
            mode: Scroll strategy preference (default: settings.capture.mode)
            cancel_token: Optional operator cancellation flag

        Returns:
            CaptureResult with the composite; `warnings` is non-empty when
            the session ended early on a failure

        Raises:
            InvalidTarget: If the handle is missing or invalid
            ViewportTooSmall: If the viewport is below the minimum size
            CaptureFailure: If not even the first frame could be captured
        """
        capture_cfg = self.settings.capture
        max_steps = capture_cfg.max_steps if max_steps is None else max_steps
        mode = CaptureMode(mode or capture_cfg.mode)

        if not handle or not self._activator.is_valid_handle(handle):
            raise InvalidTarget(f"Invalid target handle: {handle!r}")
        viewport.ensure_min_size(capture_cfg.min_viewport_size)

        logger.info(
            f"Starting scroll capture of {viewport.width}x{viewport.height} "
            f"at ({viewport.left}, {viewport.top}), max_steps={max_steps}, mode={mode.value}"
        )

        self._activator.bring_to_front(handle)
        self._sleep(capture_cfg.activation_settle_seconds)

        session = CaptureSession()
        analytics = CaptureAnalytics()
        accumulator = StitchingAccumulator(
            viewport.width,
            background=self.settings.stitching.background,
        )

        try:
            first = self._capture(viewport, index=0)
        except CaptureFailure as e:
            logger.error(f"Scroll capture aborted, no frame captured: {e}")
            raise

        accumulator.append(first, overlap=0)
        session.frames_captured = 1
        session.previous_cropped = first
        session.last_fingerprint = fingerprint(first)

        try:
            driver = self._create_driver(handle, mode)
        except DriverFailure as e:
            session.stop(StopReason.DRIVER_FAILURE, str(e))
        else:
            self._run(driver, viewport, max_steps, session, accumulator, analytics, cancel_token)

        image = accumulator.render()
        stats = analytics.finish(
            frames_captured=session.frames_captured,
            height=image.height,
            width=image.width,
            stop_reason=session.stop_reason.value,
        )
        for warning in session.warnings:
            logger.warning(f"Partial capture: {warning}")

        return CaptureResult(
            image=image,
            stop_reason=session.stop_reason,
            frames_captured=session.frames_captured,
            stats=stats,
            warnings=tuple(session.warnings),
            tile_offsets=tuple(tile.offset for tile in accumulator.tiles),
        )

    # =========================================================================
    # Loop
    # =========================================================================

    def _create_driver(self, handle: Any, mode: CaptureMode) -> ScrollDriver:
        scrolling = self.settings.scrolling
        return create_scroll_driver(
            handle,
            mode,
            query=self._query,
            input_simulator=self._input,
            end_tolerance_percent=scrolling.end_tolerance_percent,
            structured_settle_seconds=scrolling.structured_settle_seconds,
            simulated_settle_seconds=scrolling.simulated_settle_seconds,
            key=scrolling.key,
            sleep=self._sleep,
        )

    def _run(
        self,
        driver: ScrollDriver,
        viewport: Viewport,
        max_steps: int,
        session: CaptureSession,
        accumulator: StitchingAccumulator,
        analytics: CaptureAnalytics,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        while session.stop_reason is None:
            if cancel_token is not None and cancel_token.cancelled:
                session.stop(StopReason.CANCELLED, "Capture cancelled by operator")
                break
            if driver.at_end:
                session.stop(StopReason.END_OF_CONTENT)
                break
            if session.steps >= max_steps:
                session.stop(StopReason.STEP_BUDGET)
                break

            if not driver.advance():
                reason = driver.failure or DriverFailure("Scroll driver failed")
                session.stop(StopReason.DRIVER_FAILURE, str(reason))
                break
            session.steps += 1

            try:
                changed = self._wait_for_change(viewport, session)
                raw = self._capture(viewport, index=session.steps)
            except CaptureFailure as e:
                session.stop(StopReason.CAPTURE_FAILURE, str(e))
                break

            analytics.record(self._step(raw, changed, session, accumulator, driver))

    def _step(
        self,
        raw: Frame,
        changed: bool,
        session: CaptureSession,
        accumulator: StitchingAccumulator,
        driver: ScrollDriver,
    ) -> StepRecord:
        """Process one captured frame; may stop the session on stagnation."""
        stitching = self.settings.stitching

        max_probe = min(
            stitching.sticky_max_probe,
            int(raw.height * stitching.sticky_probe_fraction),
        )
        probed = estimate_sticky_height(
            accumulator.last_frame,
            raw,
            max_probe,
            threshold=stitching.sticky_threshold,
        )
        session.raise_sticky(probed)

        cropped = raw.crop_top(session.sticky_height)
        stagnant = similar(cropped, session.previous_cropped)
        stagnant_count = session.record_stagnation(stagnant)
        session.previous_cropped = cropped

        record = StepRecord(
            index=raw.index,
            changed=changed,
            sticky_height=session.sticky_height,
            stagnant_frames=stagnant_count,
        )

        if stagnant_count >= stitching.stagnation_threshold:
            logger.info(f"No visible change for {stagnant_count} frames, stopping")
            driver.mark_exhausted()
            session.stop(StopReason.STAGNATION)
            return record

        last_height = accumulator.last_frame.height
        tail = accumulator.tail_slice(max(1, round(last_height * stitching.tail_fraction)))
        search_limit = stitching.search_limit if stitching.search_limit is not None else tail.height

        estimate = self._estimator.estimate(tail, cropped, search_limit)
        overlap = max(0, tail.height - max(0, estimate.dy))
        tile = accumulator.append(cropped, overlap)
        session.frames_captured += 1

        logger.debug(
            f"Frame {raw.index}: sticky={session.sticky_height}px, {estimate!r}, "
            f"placed at y={tile.offset}"
        )

        return record.model_copy(update={
            "dy": estimate.dy,
            "overlap": overlap,
            "offset": tile.offset,
            "method": estimate.method,
        })

    # =========================================================================
    # Capture helpers
    # =========================================================================

    def _capture(self, viewport: Viewport, index: int) -> Frame:
        """Capture through the frame source, normalizing its errors."""
        try:
            return self._source.capture(viewport, index=index)
        except CaptureFailure:
            raise
        except Exception as e:
            raise CaptureFailure(f"Frame source failed: {e}") from e

    def _wait_for_change(self, viewport: Viewport, session: CaptureSession) -> bool:
        """
        Poll until the fingerprint differs from the last one seen.

        Returns:
            True if a change was seen, False if the polling budget ran out
        """
        capture_cfg = self.settings.capture
        for _ in range(capture_cfg.change_poll_attempts):
            probe = self._capture(viewport, index=session.steps)
            current = fingerprint(probe)
            if current != session.last_fingerprint:
                session.last_fingerprint = current
                return True
            self._sleep(capture_cfg.change_poll_interval_seconds)

        logger.debug(f"No change after {capture_cfg.change_poll_attempts} polls")
        return False
