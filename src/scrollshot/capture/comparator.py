"""
Frame Comparator
================

Cheap perceptual fingerprints used to detect "nothing changed".

Algorithm:
    1. Area-downsample the frame to a 16x16 grid
    2. Convert each cell to luma: Y = (299 R + 587 G + 114 B) / 1000
    3. Quantize each luma value to 4 bits (Y // 16)
    4. Concatenate the 256 nibbles as a hex token

Design Note:
    Comparison cost is independent of the source resolution. The
    quantization absorbs compression and anti-aliasing noise between
    otherwise identical frames; content changes that stay inside one
    quantization step are missed on purpose.
"""

import cv2
import numpy as np

from scrollshot.capture.frame import Frame


GRID_SIZE = 16
QUANT_STEP = 16

# A fingerprint is the 256-character hex token described above.
Fingerprint = str


def fingerprint(frame: Frame) -> Fingerprint:
    """
    Compute the 16x16 quantized-luma fingerprint of a frame.

    Args:
        frame: Frame to fingerprint

    Returns:
        Hex token, one character per grid cell
    """
    small = cv2.resize(
        np.ascontiguousarray(frame.pixels[:, :, :3]),
        (GRID_SIZE, GRID_SIZE),
        interpolation=cv2.INTER_AREA,
    ).astype(np.int32)

    b, g, r = small[:, :, 0], small[:, :, 1], small[:, :, 2]
    luma = (r * 299 + g * 587 + b * 114) // 1000
    levels = np.clip(luma // QUANT_STEP, 0, 15)

    return "".join(f"{level:X}" for level in levels.ravel())


def similar(a: Frame, b: Frame) -> bool:
    """
    Whether two frames look the same at fingerprint precision.

    Frames of different dimensions are never similar.
    """
    if a.width != b.width or a.height != b.height:
        return False
    return fingerprint(a) == fingerprint(b)
