"""
Seam Visualization
==================

Debug rendering of where tiles were placed in a composite.

Draws a horizontal line at each tile's top edge and labels it with the
tile number and offset, so misestimated overlaps show up as duplicated
or missing content right next to a marked seam.

Does NOT modify the composite it is given.
"""

import logging
from typing import Sequence, Tuple

import cv2

from scrollshot.capture.frame import Frame


logger = logging.getLogger(__name__)


SEAM_COLOR: Tuple[int, int, int, int] = (0, 0, 255, 255)  # red, BGRA


def render_seam_overlay(
    composite: Frame,
    offsets: Sequence[int],
    color: Tuple[int, int, int, int] = SEAM_COLOR,
) -> Frame:
    """
    Return a copy of the composite with tile seams drawn.

    Args:
        composite: Rendered composite
        offsets: Tile offsets in capture order (CaptureResult.tile_offsets)
        color: BGRA line color

    Returns:
        New Frame with seams and labels
    """
    canvas = composite.pixels.copy()

    for number, offset in enumerate(offsets):
        if offset == 0 or offset >= composite.height:
            continue
        cv2.line(canvas, (0, offset), (composite.width - 1, offset), color, 1)
        cv2.putText(
            canvas,
            f"#{number} y={offset}",
            (4, max(12, offset - 4)),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.4,
            color,
            1,
            cv2.LINE_AA,
        )

    logger.debug(f"Drew {max(0, len(offsets) - 1)} seams")
    return Frame(pixels=canvas, index=composite.index)
