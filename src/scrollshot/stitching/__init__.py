"""
Stitching Module
================

Everything that turns a sequence of overlapping frames into one image.

Components:
    - estimate_sticky_height: Probe for rows repeating the last tile
    - OverlapEstimator: Protocol for overlap estimation
    - candidate_shifts: Shifts an estimator may score
    - ExhaustiveOverlapEstimator: Bounded pixel-difference search
    - EnhancedOverlapEstimator: Template / phase correlation with fallback
    - StitchingAccumulator: Tile store and composite renderer
"""

from scrollshot.stitching.accumulator import (
    EmptyCompositeError,
    StitchingAccumulator,
    Tile,
)
from scrollshot.stitching.overlap import (
    EnhancedOverlapEstimator,
    ExhaustiveOverlapEstimator,
    OverlapEstimate,
    OverlapEstimator,
    candidate_shifts,
    create_overlap_estimator,
    estimate_overlap,
)
from scrollshot.stitching.sticky import estimate_sticky_height


__all__ = [
    "EmptyCompositeError",
    "StitchingAccumulator",
    "Tile",
    "EnhancedOverlapEstimator",
    "ExhaustiveOverlapEstimator",
    "OverlapEstimate",
    "OverlapEstimator",
    "candidate_shifts",
    "create_overlap_estimator",
    "estimate_overlap",
    "estimate_sticky_height",
]
