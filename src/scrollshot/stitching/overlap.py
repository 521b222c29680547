"""
Overlap Estimation
==================

Finds where a new frame continues the accumulated composite.

Geometry:
    The trailing slice is the bottom `tail_h` rows of the composite. A
    candidate shift `s` aligns the new frame's top row with slice row `s`.
    The two images then share

        overlap = tail_h - s

    rows: the bottom `overlap` rows of the slice against the top `overlap`
    rows of the new frame. Estimators report

        dy = tail_h - overlap

    so dy = 0 is maximal overlap (nothing scrolled) and dy = tail_h is a
    clean cut (nothing shared).

    Candidate shifts run over [max(0, tail_h - new_h), min(limit, tail_h - 1)].
    A shift below tail_h - new_h would leave the new frame ending inside
    the slice, where the accumulator cannot place it.

    A shift needs at least min(24, tail_h // 4) shared rows, never fewer
    than one. 24 is a cap, not a floor: a 40-row slice needs only 10.

Estimators:
    - ExhaustiveOverlapEstimator: bounded search over every shift, scoring
      the mean squared per-channel difference on a sparse grid (every
      third column, every second row). Always available, robust on plain
      text with little texture.
    - EnhancedOverlapEstimator: edge-filtered template matching, then
      phase correlation, then the exhaustive search. Better on noisy or
      anti-aliased renders, strictly additive to the exhaustive path.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

import cv2
import numpy as np

from scrollshot.capture.frame import Frame


logger = logging.getLogger(__name__)


COLUMN_STEP = 3
ROW_STEP = 2
MIN_COMPARABLE_ROWS = 24
TEMPLATE_ROWS = 32
MIN_TEMPLATE_WINDOW = 40
REFINE_ROWS = 2


@dataclass(frozen=True, slots=True)
class OverlapEstimate:
    """
    Result of one overlap estimation.

    Attributes:
        dy: Rows of the trailing slice NOT covered by the new frame
        overlap: Rows shared by the slice and the new frame (tail_h - dy)
        method: Which estimator produced the result
        score: Mean squared difference at the chosen shift (sampled grid)
    """

    dy: int
    overlap: int
    method: str
    score: float

    def __repr__(self) -> str:
        return (
            f"OverlapEstimate(dy={self.dy}, overlap={self.overlap}, "
            f"method={self.method}, score={self.score:.4f})"
        )


class OverlapEstimator(Protocol):
    """
    Protocol for overlap estimation backends.

    All implementations return a non-negative dy in [0, tail.height].
    """

    def estimate(self, tail: Frame, frame: Frame, search_limit: int) -> OverlapEstimate:
        """
        Estimate where `frame` continues `tail`.

        Args:
            tail: Trailing slice of the composite
            frame: Newly captured (sticky-cropped) frame
            search_limit: Largest candidate shift to consider

        Returns:
            OverlapEstimate for the best alignment
        """
        ...


def min_comparable_rows(tail_height: int) -> int:
    """Fewest shared rows a candidate needs to be scored."""
    return max(1, min(MIN_COMPARABLE_ROWS, tail_height // 4))


def candidate_shifts(tail_height: int, frame_height: int, search_limit: int) -> range:
    """Shifts whose shared rows are the bottom rows of the tail."""
    first = max(0, tail_height - frame_height)
    last = min(search_limit, tail_height - min_comparable_rows(tail_height))
    return range(first, last + 1)


def _sample(frame: Frame) -> np.ndarray:
    """Column-subsampled BGR channels as int32 for difference arithmetic."""
    return frame.pixels[:, ::COLUMN_STEP, :3].astype(np.int32)


def _shift_score(
    tail_samples: np.ndarray,
    frame_samples: np.ndarray,
    shift: int,
) -> Tuple[float, int]:
    """
    Score one candidate shift from candidate_shifts().

    Returns:
        Tuple of (mean squared difference, overlap rows)
    """
    overlap = tail_samples.shape[0] - shift
    width = min(tail_samples.shape[1], frame_samples.shape[1])

    a = tail_samples[shift::ROW_STEP, :width]
    b = frame_samples[0:overlap:ROW_STEP, :width]
    diff = a - b
    return float(np.mean(diff * diff)), overlap


class ExhaustiveOverlapEstimator:
    """
    Bounded exhaustive search minimizing a pixel-difference score.

    Every shift from candidate_shifts() is scored; the lowest score wins,
    the smallest shift on ties. When no shift shares enough rows the
    result is a clean cut.
    """

    method = "exhaustive"

    def estimate(self, tail: Frame, frame: Frame, search_limit: int) -> OverlapEstimate:
        tail_h = tail.height
        tail_samples = _sample(tail)
        frame_samples = _sample(frame)

        best_score = math.inf
        best_overlap: Optional[int] = None

        for shift in candidate_shifts(tail_h, frame.height, search_limit):
            score, overlap = _shift_score(tail_samples, frame_samples, shift)
            if score < best_score:
                best_score = score
                best_overlap = overlap

        if best_overlap is None:
            logger.debug(
                f"No shift shares {min_comparable_rows(tail_h)} rows with a "
                f"{frame.height}px frame (tail={tail_h}px, limit={search_limit}); "
                f"treating as clean cut"
            )
            return OverlapEstimate(dy=tail_h, overlap=0, method=self.method, score=math.inf)

        return OverlapEstimate(
            dy=tail_h - best_overlap,
            overlap=best_overlap,
            method=self.method,
            score=best_score,
        )


def estimate_overlap(tail: Frame, frame: Frame, search_limit: int) -> int:
    """
    Exhaustive overlap estimate as a bare offset.

    Args:
        tail: Trailing slice of the composite
        frame: New frame
        search_limit: Largest candidate shift

    Returns:
        dy in [0, tail.height]
    """
    return ExhaustiveOverlapEstimator().estimate(tail, frame, search_limit).dy


class EnhancedOverlapEstimator:
    """
    Correlation-based estimator with an exhaustive safety net.

    Stages:
        1. Template: Canny-filter both images, search the bottom strip of
           the slice (the rows a forward scroll leaves at the top of the
           new frame) inside a bounded top window of the new frame with
           normalized cross-correlation; a peak >= match_threshold
           proposes a shift.
        2. Phase: phase-correlate equally sized grayscale crops; both
           circular readings of the vertical shift are proposed.
        3. Exhaustive search when neither stage yields a verified shift.

    Proposed shifts are refined within +/-REFINE_ROWS rows using the
    exhaustive score and accepted only if that score is at most
    max_score, so correlation never overrides clear pixel evidence.

    Attributes:
        match_threshold: Minimum correlation peak for a template match
        canny_low: Canny lower hysteresis threshold
        canny_high: Canny upper hysteresis threshold
        template_window: Maximum height of the template search window
        phase_min_response: Minimum phase correlation response
        max_score: Largest mean squared difference a proposal may keep
    """

    def __init__(
        self,
        match_threshold: float = 0.75,
        canny_low: int = 60,
        canny_high: int = 180,
        template_window: int = 240,
        phase_min_response: float = 0.05,
        max_score: float = 100.0,
        fallback: Optional[OverlapEstimator] = None,
    ) -> None:
        if not 0 <= match_threshold <= 1:
            raise ValueError(f"match_threshold must be in [0, 1], got {match_threshold}")
        if canny_low > canny_high:
            raise ValueError(
                f"canny_low ({canny_low}) must not exceed canny_high ({canny_high})"
            )
        if max_score < 0:
            raise ValueError(f"max_score must be >= 0, got {max_score}")

        self.match_threshold = match_threshold
        self.canny_low = canny_low
        self.canny_high = canny_high
        self.template_window = template_window
        self.phase_min_response = phase_min_response
        self.max_score = max_score
        self._fallback = fallback or ExhaustiveOverlapEstimator()

        logger.info(
            f"EnhancedOverlapEstimator initialized: threshold={match_threshold}, "
            f"canny={canny_low}/{canny_high}, window={template_window}px"
        )

    def estimate(self, tail: Frame, frame: Frame, search_limit: int) -> OverlapEstimate:
        width = min(tail.width, frame.width)
        tail_gray = np.ascontiguousarray(tail.gray()[:, :width])
        frame_gray = np.ascontiguousarray(frame.gray()[:, :width])

        stages = (
            ("template", self._template_shifts),
            ("phase", self._phase_shifts),
        )
        tail_samples = frame_samples = None
        for method, propose in stages:
            proposals = propose(tail_gray, frame_gray)
            if not proposals:
                continue
            if tail_samples is None:
                tail_samples, frame_samples = _sample(tail), _sample(frame)
            result = self._verify(proposals, method, tail_samples, frame_samples, search_limit)
            if result is not None:
                return result

        logger.debug("Correlation stages inconclusive, using exhaustive search")
        return self._fallback.estimate(tail, frame, search_limit)

    def _template_shifts(self, tail_gray: np.ndarray, frame_gray: np.ndarray) -> List[int]:
        tail_h, frame_h = tail_gray.shape[0], frame_gray.shape[0]
        strip_h = min(tail_h, TEMPLATE_ROWS)
        window_h = min(
            frame_h,
            max(min(frame_h // 3, self.template_window), MIN_TEMPLATE_WINDOW, strip_h),
        )
        if strip_h == 0 or window_h < strip_h:
            return []

        tail_edges = cv2.Canny(tail_gray, self.canny_low, self.canny_high)
        template = tail_edges[tail_h - strip_h:]
        if not np.any(template):
            return []

        frame_edges = cv2.Canny(frame_gray, self.canny_low, self.canny_high)
        response = cv2.matchTemplate(frame_edges[:window_h], template, cv2.TM_CCOEFF_NORMED)
        _, peak, _, peak_loc = cv2.minMaxLoc(response)

        if not math.isfinite(peak) or peak < self.match_threshold:
            logger.debug(f"Template peak {peak:.3f} below {self.match_threshold}")
            return []

        # Slice row (tail_h - strip_h) sits at frame row peak_loc[1].
        return [tail_h - strip_h - peak_loc[1]]

    def _phase_shifts(self, tail_gray: np.ndarray, frame_gray: np.ndarray) -> List[int]:
        tail_h = tail_gray.shape[0]
        rows = min(tail_h, frame_gray.shape[0])
        base = tail_h - rows

        a = tail_gray[base:].astype(np.float32)
        b = frame_gray[:rows].astype(np.float32)
        if rows < 2 or a.std() < 1e-3 or b.std() < 1e-3:
            return []

        window = cv2.createHanningWindow((a.shape[1], rows), cv2.CV_32F)
        (_, raw_dy), response = cv2.phaseCorrelate(a, b, window)
        if not math.isfinite(response) or response < self.phase_min_response:
            logger.debug(f"Phase response {response:.3f} too weak")
            return []

        # Circular correlation cannot tell -d from rows - d; propose both.
        raw = int(round(raw_dy))
        return sorted({base + (-raw) % rows, base + raw % rows})

    def _verify(
        self,
        proposals: List[int],
        method: str,
        tail_samples: np.ndarray,
        frame_samples: np.ndarray,
        search_limit: int,
    ) -> Optional[OverlapEstimate]:
        """Refine proposed shifts on the pixel score; None if none holds up."""
        tail_h = tail_samples.shape[0]
        allowed = candidate_shifts(tail_h, frame_samples.shape[0], search_limit)

        candidates = sorted({
            shift
            for proposal in proposals
            for shift in range(proposal - REFINE_ROWS, proposal + REFINE_ROWS + 1)
            if shift in allowed
        })

        best: Optional[Tuple[float, int]] = None
        for shift in candidates:
            score, overlap = _shift_score(tail_samples, frame_samples, shift)
            if best is None or score < best[0]:
                best = (score, overlap)

        if best is None:
            return None

        score, overlap = best
        if score > self.max_score:
            logger.debug(f"{method} proposal rejected: score {score:.1f} > {self.max_score}")
            return None

        return OverlapEstimate(
            dy=tail_h - overlap,
            overlap=overlap,
            method=method,
            score=score,
        )


def create_overlap_estimator(config) -> OverlapEstimator:
    """
    Build the estimator selected by a StitchingConfig.

    Args:
        config: StitchingConfig section of the settings

    Returns:
        Exhaustive or enhanced estimator
    """
    if config.method == "enhanced":
        return EnhancedOverlapEstimator(
            match_threshold=config.match_threshold,
            canny_low=config.canny_low,
            canny_high=config.canny_high,
            template_window=config.template_window,
            phase_min_response=config.phase_min_response,
            max_score=config.max_score,
        )
    return ExhaustiveOverlapEstimator()
