"""
Frame Data Model
=================

Internal raster representation shared by every capture stage.

Design Rules:
    - Pixels are a (H, W, 4) uint8 array in BGRA order, origin top-left
    - Frames are immutable: the pixel array is marked read-only
    - Padded capture buffers are addressed row by row through their stride
      (row y starts at byte y * stride), never assumed to be tightly packed
"""

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np


CHANNELS = 4

_CHANNEL_ORDERS = ("BGRA", "RGBA")


@dataclass(frozen=True, slots=True, eq=False)
class Frame:
    """
    Immutable raster snapshot of the viewport.

    Attributes:
        pixels: Read-only (H, W, 4) uint8 array, BGRA channel order
        index: Sequence index at which the frame was captured
    """

    pixels: np.ndarray
    index: int = 0

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != CHANNELS:
            raise ValueError(
                f"Frame pixels must have shape (H, W, {CHANNELS}), "
                f"got {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Frame pixels must be uint8, got {self.pixels.dtype}")
        self.pixels.setflags(write=False)

    @classmethod
    def from_array(cls, pixels: np.ndarray, index: int = 0) -> "Frame":
        """
        Build a frame from a caller-owned array.

        Accepts (H, W, 4) BGRA or (H, W, 3) BGR arrays; the data is copied
        so later changes to the source array cannot leak into the frame.
        """
        if pixels.ndim == 3 and pixels.shape[2] == 3:
            pixels = cv2.cvtColor(pixels, cv2.COLOR_BGR2BGRA)
        return cls(pixels=np.array(pixels, dtype=np.uint8, copy=True), index=index)

    @classmethod
    def from_buffer(
        cls,
        buffer: bytes,
        width: int,
        height: int,
        stride: Optional[int] = None,
        index: int = 0,
        channel_order: str = "BGRA",
    ) -> "Frame":
        """
        Decode a raw 4-byte-per-pixel capture buffer.

        Args:
            buffer: Raw pixel bytes, rows top to bottom
            width: Image width in pixels
            height: Image height in pixels
            stride: Bytes per row including padding (default: width * 4)
            index: Sequence index to tag the frame with
            channel_order: "BGRA" or "RGBA"

        Returns:
            Frame with an owned, tightly packed BGRA copy of the pixels

        Raises:
            ValueError: If the buffer is too short for the given geometry
        """
        if channel_order not in _CHANNEL_ORDERS:
            raise ValueError(f"Unsupported channel order: {channel_order}")

        row_bytes = width * CHANNELS
        if stride is None:
            stride = row_bytes
        if stride < row_bytes:
            raise ValueError(f"Stride {stride} is smaller than row size {row_bytes}")

        needed = stride * (height - 1) + row_bytes if height > 0 else 0
        if len(buffer) < needed:
            raise ValueError(
                f"Buffer of {len(buffer)} bytes too short for "
                f"{width}x{height} with stride {stride} (need {needed})"
            )

        flat = np.frombuffer(buffer, dtype=np.uint8, count=needed)
        rows = np.empty((height, row_bytes), dtype=np.uint8)
        for y in range(height):
            base = y * stride
            rows[y] = flat[base:base + row_bytes]
        pixels = rows.reshape(height, width, CHANNELS)

        if channel_order == "RGBA":
            pixels = cv2.cvtColor(pixels, cv2.COLOR_RGBA2BGRA)

        return cls(pixels=pixels, index=index)

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    def clone(self, index: Optional[int] = None) -> "Frame":
        """Return an independent copy, optionally re-tagged."""
        return Frame(
            pixels=self.pixels.copy(),
            index=self.index if index is None else index,
        )

    def crop_top(self, rows: int) -> "Frame":
        """Return the frame without its top `rows` rows."""
        rows = max(0, min(rows, self.height))
        if rows == 0:
            return self
        return Frame(pixels=self.pixels[rows:].copy(), index=self.index)

    def bottom(self, rows: int) -> "Frame":
        """Return the bottom `rows` rows, clamped to the frame height."""
        rows = max(0, min(rows, self.height))
        return Frame(pixels=self.pixels[self.height - rows:].copy(), index=self.index)

    def to_bgr(self) -> np.ndarray:
        """Return a BGR copy suitable for cv2.imwrite."""
        return cv2.cvtColor(self.pixels, cv2.COLOR_BGRA2BGR)

    def gray(self) -> np.ndarray:
        """Return the (H, W) uint8 grayscale image."""
        return cv2.cvtColor(self.pixels, cv2.COLOR_BGRA2GRAY)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixels."""
        return f"Frame(index={self.index}, size={self.width}x{self.height})"
