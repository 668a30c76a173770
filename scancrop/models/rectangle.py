from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Rectangle:
    """
    Two corner points, (x1, y1) top-left and (x2, y2) bottom-right.
    Inverted (x1 > x2 or y1 > y2) when no foreground pixel was found.
    """
    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def top_left(self) -> Tuple[int, int]:
        return self.x1, self.y1

    @property
    def bottom_right(self) -> Tuple[int, int]:
        return self.x2, self.y2

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    @property
    def is_inverted(self) -> bool:
        return self.x1 > self.x2 or self.y1 > self.y2

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.x1, self.y1, self.x2, self.y2

    def as_dict(self) -> dict:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}
