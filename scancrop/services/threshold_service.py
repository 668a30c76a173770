import math

import numpy as np

from ..models.crop_settings import DEFAULT_THRESHOLD
from ..models.pixel_grid import PixelGrid, clamped_index

BRIGHTNESS_EPSILON = 1e-6  # keeps the relative difference finite on pure black
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)

# (dx, dy) of the 8-neighbourhood, top row first
NEIGHBOUR_OFFSETS = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)

# Pixels per vectorised block; bounds the temporary index arrays on large scans
CHUNK_PIXELS = 1 << 20


class ThresholdService:
    """
    Adaptive local-contrast thresholding.

    A pixel turns black when its brightness differs from the mean of its
    eight neighbours by more than `ratio` of that mean; every other pixel
    turns white. Neighbours are looked up with clamped_index, so edge
    pixels borrow boundary pixels instead of failing.
    """

    @staticmethod
    def brightness(pixels: np.ndarray) -> np.ndarray:
        """Mean of the RGB channels plus BRIGHTNESS_EPSILON, as float64."""
        return pixels.astype(np.float64).mean(axis=-1) + BRIGHTNESS_EPSILON

    def contrast_map(self, grid: PixelGrid) -> np.ndarray:
        """
        Relative difference |avg - own| / avg for every pixel, flat row-major.

        Each pixel is independent of the others, so the work is a plain
        data-parallel map: every block writes its own disjoint slice.
        """
        own = self.brightness(grid.pixels)
        diff = np.empty(grid.size, dtype=np.float64)

        for start in range(0, grid.size, CHUNK_PIXELS):
            flat = np.arange(start, min(start + CHUNK_PIXELS, grid.size))
            ys, xs = np.divmod(flat, grid.width)

            neighbour_sum = np.zeros(flat.size, dtype=np.float64)
            for dx, dy in NEIGHBOUR_OFFSETS:
                neighbour_sum += own[clamped_index(grid.width, grid.height, xs + dx, ys + dy)]
            avg = neighbour_sum / len(NEIGHBOUR_OFFSETS)

            diff[flat] = np.abs(avg - own[flat]) / avg

        return diff

    def threshold(self, grid: PixelGrid, ratio: float = DEFAULT_THRESHOLD) -> PixelGrid:
        """
        Grid comes first, like every other service call, so ratio can default.

        Args:
            grid (PixelGrid): Colour source grid.
            ratio (float): Contrast above which a pixel turns black.

        Returns:
            PixelGrid: New binary grid with the same dimensions.
        """
        if not math.isfinite(ratio) or ratio < 0:
            raise ValueError(f"Threshold ratio must be a finite number >= 0, got {ratio!r}")

        pixels = np.empty((grid.size, 3), dtype=np.uint8)
        pixels[:] = WHITE
        if grid.size:
            pixels[self.contrast_map(grid) > ratio] = BLACK
        return PixelGrid(width=grid.width, height=grid.height, pixels=pixels)
