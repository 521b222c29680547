"""
Stitching Accumulator
=====================

Ordered store of accepted tiles and their vertical placements.

Design Rules:
    - The composite is never grown in place; tiles are kept as-is and
      only painted onto one canvas in render()
    - Placement: offset = max(previous offset, total_height - overlap)
    - Invariant: total_height == last.offset + last.frame.height
    - Later tiles are painted over earlier ones (later content wins)
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from scrollshot.capture.frame import Frame


logger = logging.getLogger(__name__)


DEFAULT_BACKGROUND = (255, 255, 255, 255)


class EmptyCompositeError(Exception):
    """Raised when the accumulator is queried before any tile was added."""
    pass


@dataclass(frozen=True, slots=True)
class Tile:
    """
    A frame accepted into the composite.

    Attributes:
        frame: The stored frame
        offset: Composite row at which the frame's top row is drawn
    """

    frame: Frame
    offset: int

    @property
    def bottom(self) -> int:
        return self.offset + self.frame.height


class StitchingAccumulator:
    """
    Accumulates tiles in capture order and renders the composite.

    Attributes:
        width: Canvas width (the viewport width)
        background: BGRA fill shown where a tile is narrower than the canvas

    Example:
        acc = StitchingAccumulator(width=800)
        acc.append(first, overlap=0)
        tail = acc.tail_slice(600)
        acc.append(second, overlap=50)
        composite = acc.render()
    """

    def __init__(
        self,
        width: int,
        background: Sequence[int] = DEFAULT_BACKGROUND,
    ) -> None:
        if width <= 0:
            raise ValueError(f"width must be > 0, got {width}")
        if len(background) != 4:
            raise ValueError(f"background must have 4 channels, got {len(background)}")

        self.width = width
        self.background: Tuple[int, ...] = tuple(int(c) for c in background)
        self._tiles: List[Tile] = []
        self._total_height = 0

    @property
    def tiles(self) -> Tuple[Tile, ...]:
        return tuple(self._tiles)

    @property
    def total_height(self) -> int:
        return self._total_height

    @property
    def last_frame(self) -> Frame:
        """Most recently appended frame."""
        if not self._tiles:
            raise EmptyCompositeError("No tiles have been appended")
        return self._tiles[-1].frame

    def __len__(self) -> int:
        return len(self._tiles)

    def append(self, frame: Frame, overlap: int) -> Tile:
        """
        Store a frame below the current composite.

        Args:
            frame: Frame to add (the accumulator keeps its own copy)
            overlap: Rows of the composite bottom the frame covers

        Returns:
            The stored Tile
        """
        offset = max(0, self._total_height - max(0, overlap))
        if self._tiles and offset < self._tiles[-1].offset:
            logger.debug(
                f"Overlap {overlap} reaches above the last tile; "
                f"clamping offset {offset} -> {self._tiles[-1].offset}"
            )
            offset = self._tiles[-1].offset

        tile = Tile(frame=frame.clone(), offset=offset)
        self._tiles.append(tile)
        self._total_height = tile.bottom

        logger.debug(
            f"Appended tile #{len(self._tiles)} at y={offset} "
            f"(overlap={overlap}, total={self._total_height}px)"
        )
        return tile

    def tail_slice(self, height: int) -> Frame:
        """
        Bottom rows of the most recent tile.

        Args:
            height: Requested rows, clamped to the tile height

        Returns:
            Frame holding the bottom rows

        Raises:
            EmptyCompositeError: If nothing has been appended
        """
        return self.last_frame.bottom(height)

    def render(self) -> Frame:
        """
        Paint all tiles onto one canvas.

        Returns:
            Frame of width x total_height

        Raises:
            EmptyCompositeError: If nothing has been appended
        """
        if not self._tiles:
            raise EmptyCompositeError("Cannot render an empty composite")

        canvas = np.empty((self._total_height, self.width, 4), dtype=np.uint8)
        canvas[:] = self.background

        for tile in self._tiles:
            # A later, shorter tile can end above an earlier one's bottom.
            rows = min(tile.bottom, self._total_height) - tile.offset
            w = min(tile.frame.width, self.width)
            canvas[tile.offset:tile.offset + rows, :w] = tile.frame.pixels[:rows, :w]

        return Frame(pixels=canvas, index=self._tiles[-1].frame.index)
