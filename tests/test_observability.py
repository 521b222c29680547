"""
Observability Tests
===================

Tests for capture analytics, the seam overlay and result saving.
"""

import cv2
import numpy as np

from scrollshot.capture.frame import Frame
from scrollshot.main import save_result
from scrollshot.models import CaptureResult, StopReason
from scrollshot.observability import (
    CaptureAnalytics,
    StepRecord,
    render_seam_overlay,
)
from scrollshot.observability.visualization import SEAM_COLOR


def _white(height: int = 300, width: int = 120) -> Frame:
    return Frame(pixels=np.full((height, width, 4), 255, dtype=np.uint8))


class TestCaptureAnalytics:
    """Tests for CaptureAnalytics."""

    def test_finish_summarizes(self):
        analytics = CaptureAnalytics()
        analytics.record(StepRecord(index=1, changed=True, dy=120, overlap=40, offset=120))
        analytics.record(StepRecord(index=2, changed=False, stagnant_frames=1))

        stats = analytics.finish(frames_captured=3, height=400, width=240, stop_reason="STAGNATION")
        assert len(stats.steps) == 2
        assert stats.frames_captured == 3
        assert stats.final_height == 400
        assert stats.stop_reason == "STAGNATION"
        assert stats.elapsed_seconds >= 0

    def test_stats_serialize(self):
        analytics = CaptureAnalytics()
        analytics.record(StepRecord(index=1, changed=True, method="exhaustive"))
        payload = analytics.finish(1, 10, 10, "END_OF_CONTENT").model_dump()
        assert payload["steps"][0]["method"] == "exhaustive"


class TestSeamOverlay:
    """Tests for render_seam_overlay()."""

    def test_draws_seams_on_a_copy(self):
        composite = _white()
        overlay = render_seam_overlay(composite, [0, 100, 200])

        assert tuple(overlay.pixels[100, 60]) == SEAM_COLOR
        assert tuple(overlay.pixels[200, 60]) == SEAM_COLOR
        assert np.all(composite.pixels == 255)

    def test_origin_and_out_of_range_ignored(self):
        overlay = render_seam_overlay(_white(), [0, 999])
        assert np.all(overlay.pixels[0] == 255)


class TestSaveResult:
    """Tests for writing composites to disk."""

    def _result(self) -> CaptureResult:
        analytics = CaptureAnalytics()
        return CaptureResult(
            image=_white(),
            stop_reason=StopReason.STAGNATION,
            frames_captured=2,
            stats=analytics.finish(2, 300, 120, "STAGNATION"),
            tile_offsets=(0, 150),
        )

    def test_writes_png(self, tmp_path):
        path = tmp_path / "out" / "shot.png"
        written = save_result(self._result(), path)

        assert written == [path]
        image = cv2.imread(str(path))
        assert image.shape == (300, 120, 3)

    def test_writes_seam_copy(self, tmp_path):
        path = tmp_path / "shot.png"
        written = save_result(self._result(), path, debug_seams=True)

        assert written[1] == tmp_path / "shot_seams.png"
        assert written[1].exists()
