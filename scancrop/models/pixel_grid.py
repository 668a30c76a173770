from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

import numpy as np


def clamped_index(width: int, height: int, x, y):
    """
    Flat row-major index of (x, y), clamped to [0, width*height).

    The clamp applies to the flat index, not to each coordinate: one step
    left of column 0 lands on the last pixel of the previous row, and
    anything before the first or after the last pixel resolves to that
    pixel. Accepts plain ints or numpy coordinate arrays.
    """
    flat = np.clip(np.asarray(y) * width + np.asarray(x), 0, width * height - 1)
    return int(flat) if flat.ndim == 0 else flat


@dataclass(frozen=True)
class PixelGrid:
    """
    Immutable RGB pixel container shared by every pipeline stage.
    No codec or OpenCV logic in here.
    """
    width: int
    height: int
    pixels: np.ndarray  # Shape (width*height, 3), dtype uint8, RGB, index y*width + x.

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Negative grid size {self.width}x{self.height}")

        pixels = np.array(self.pixels, dtype=np.uint8).reshape(-1, 3)
        if pixels.shape[0] != self.width * self.height:
            raise ValueError(
                f"Expected {self.width * self.height} pixels for a "
                f"{self.width}x{self.height} grid, got {pixels.shape[0]}"
            )
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    @classmethod
    def from_array(cls, rgb: np.ndarray) -> "PixelGrid":
        """Build a grid from an (H, W, 3+) array; extra channels are dropped."""
        if rgb.ndim != 3 or rgb.shape[2] < 3:
            raise ValueError(f"Expected an (H, W, 3) array, got shape {rgb.shape}")
        height, width = rgb.shape[:2]
        return cls(width=width, height=height, pixels=rgb[:, :, :3].reshape(-1, 3))

    @classmethod
    def filled(cls, width: int, height: int, color: Tuple[int, int, int]) -> "PixelGrid":
        pixels = np.empty((width * height, 3), dtype=np.uint8)
        pixels[:] = color
        return cls(width=width, height=height, pixels=pixels)

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    def index(self, x, y):
        return clamped_index(self.width, self.height, x, y)

    def pixel_at(self, x: int, y: int) -> Tuple[int, int, int]:
        r, g, b = self.pixels[self.index(x, y)]
        return int(r), int(g), int(b)

    def to_array(self) -> np.ndarray:
        """Writable (H, W, 3) copy, ready for OpenCV / Pillow."""
        return self.pixels.reshape(self.height, self.width, 3).copy()
