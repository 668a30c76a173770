from typing import Callable, Dict

import numpy as np

from ..models.crop_settings import (
    BOUNDS_CORNERS,
    BOUNDS_EXTENT,
    FOREGROUND_RED_NONZERO,
    FOREGROUND_RED_ZERO,
)
from ..models.pixel_grid import PixelGrid
from ..models.rectangle import Rectangle

RED_CHANNEL = 0


class BoundsService:
    """
    Locates the foreground region of a binary grid.

    Two strategies exist and are never mixed:
      • extent  – min/max over every foreground pixel
      • corners – foreground pixel closest to each page corner, then min/max
                  over those four candidates
    """

    def __init__(self):
        self._strategies: Dict[str, Callable[[PixelGrid, str], Rectangle]] = {
            BOUNDS_EXTENT: self.find_bounds,
            BOUNDS_CORNERS: self.find_bounds_nearest_corners,
        }

    @staticmethod
    def foreground_mask(grid: PixelGrid, convention: str = FOREGROUND_RED_NONZERO) -> np.ndarray:
        """Flat boolean mask, True where the pixel counts as foreground."""
        red = grid.pixels[:, RED_CHANNEL]
        if convention == FOREGROUND_RED_NONZERO:
            return red != 0
        if convention == FOREGROUND_RED_ZERO:
            return red == 0
        raise ValueError(f"Unknown foreground convention {convention!r}")

    def has_foreground(self, grid: PixelGrid, convention: str = FOREGROUND_RED_NONZERO) -> bool:
        return bool(self.foreground_mask(grid, convention).any())

    def find(self, grid: PixelGrid, strategy: str = BOUNDS_EXTENT,
             convention: str = FOREGROUND_RED_NONZERO) -> Rectangle:
        try:
            locate = self._strategies[strategy]
        except KeyError:
            raise ValueError(f"Unknown bounds strategy {strategy!r}") from None
        return locate(grid, convention)

    def find_bounds(self, grid: PixelGrid, convention: str = FOREGROUND_RED_NONZERO) -> Rectangle:
        """
        Bounding box of every foreground pixel.

        Seeds are minX=width, maxX=0, minY=height, maxY=0, so a grid with no
        foreground comes back inverted (x1 > x2) rather than raising.
        """
        flat = np.flatnonzero(self.foreground_mask(grid, convention))
        if flat.size == 0:
            return Rectangle(x1=grid.width, y1=grid.height, x2=0, y2=0)

        ys, xs = np.divmod(flat, grid.width)
        return Rectangle(
            x1=int(xs.min()),
            y1=int(ys.min()),
            x2=int(xs.max()),
            y2=int(ys.max()),
        )

    def find_bounds_nearest_corners(self, grid: PixelGrid,
                                    convention: str = FOREGROUND_RED_NONZERO) -> Rectangle:
        """
        For each corner (0,0), (w,0), (0,h), (w,h) keep the closest foreground
        pixel by Euclidean distance. Ties go to the first pixel met scanning
        columns left to right, each column top to bottom. Candidates start on
        the corners themselves, so an empty grid gives the full page.
        """
        w, h = grid.width, grid.height
        corners = ((0, 0), (w, 0), (0, h), (w, h))
        candidates = list(corners)

        flat = np.flatnonzero(self.foreground_mask(grid, convention))
        if flat.size:
            ys, xs = np.divmod(flat, w)
            # column-major scan order: x outer, y inner
            order = np.lexsort((ys, xs))
            xs, ys = xs[order], ys[order]

            for i, (cx, cy) in enumerate(corners):
                dx, dy = xs - cx, ys - cy
                nearest = int(np.argmin(np.sqrt(dx * dx + dy * dy)))
                candidates[i] = (int(xs[nearest]), int(ys[nearest]))

        cand_x = [x for x, _ in candidates]
        cand_y = [y for _, y in candidates]
        return Rectangle(x1=min(cand_x), y1=min(cand_y), x2=max(cand_x), y2=max(cand_y))
