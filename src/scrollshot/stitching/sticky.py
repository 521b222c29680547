"""
Sticky Region Detection
=======================

Finds the band at the top of a new frame that repeats rows already held
by the previous frame, so it can be cropped before stitching.

Algorithm:
    With probe = min(max_probe, previous.height, current.height), walk
    rows y = 0, 1, ... while the mean absolute luma difference between
    current[y] and previous[previous.height - probe + y] stays below the
    threshold. The number of rows walked is the sticky height.

Design Note:
    The probe only answers for one pair of frames. The capture loop keeps
    the running maximum, so a band once detected stays cropped for the
    rest of the session.
"""

import logging

import numpy as np

from scrollshot.capture.frame import Frame


logger = logging.getLogger(__name__)


DEFAULT_STICKY_THRESHOLD = 2.0


def estimate_sticky_height(
    previous: Frame,
    current: Frame,
    max_probe: int,
    threshold: float = DEFAULT_STICKY_THRESHOLD,
) -> int:
    """
    Estimate how many top rows of `current` repeat the bottom of `previous`.

    Args:
        previous: Last frame accepted into the composite
        current: Newly captured raw frame
        max_probe: Maximum number of rows to examine
        threshold: Mean absolute luma difference a matching row stays under

    Returns:
        Sticky height in [0, min(max_probe, previous.height, current.height)]
    """
    probe = min(max_probe, previous.height, current.height)
    if probe <= 0:
        return 0

    width = min(previous.width, current.width)
    prev_rows = previous.gray()[previous.height - probe:, :width].astype(np.int16)
    curr_rows = current.gray()[:probe, :width].astype(np.int16)
    row_means = np.abs(curr_rows - prev_rows).mean(axis=1)

    moving = np.flatnonzero(row_means >= threshold)
    height = int(moving[0]) if moving.size else probe

    logger.debug(f"Sticky probe: {height}px stationary of {probe}px examined")
    return height
