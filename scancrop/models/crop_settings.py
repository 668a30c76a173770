from __future__ import annotations
from dataclasses import dataclass, replace
import math
import os

from dotenv import load_dotenv

DEFAULT_MARGIN = 40
DEFAULT_THRESHOLD = 0.9

# Bounds strategies
BOUNDS_EXTENT = "extent"    # min/max over every foreground pixel
BOUNDS_CORNERS = "corners"  # closest foreground pixel to each page corner
BOUNDS_STRATEGIES = (BOUNDS_EXTENT, BOUNDS_CORNERS)

# Foreground conventions, tested on the red channel of the binary grid
FOREGROUND_RED_NONZERO = "red_nonzero"  # white pixels are foreground
FOREGROUND_RED_ZERO = "red_zero"        # black ("ink") pixels are foreground
FOREGROUND_CONVENTIONS = (FOREGROUND_RED_NONZERO, FOREGROUND_RED_ZERO)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CropSettings:
    """
    Per-call tuning for the autocrop pipeline.
    Use CropSettings.from_env() to pick values up from .env.
    """
    margin: int = DEFAULT_MARGIN            # pixels added around the detected bounds
    threshold: float = DEFAULT_THRESHOLD    # relative neighbourhood contrast that turns a pixel black
    bounds_strategy: str = BOUNDS_EXTENT
    foreground_convention: str = FOREGROUND_RED_NONZERO
    write_debug_image: bool = False

    def __post_init__(self):
        if isinstance(self.margin, bool) or not isinstance(self.margin, int) or self.margin < 0:
            raise ValueError(f"margin must be an integer >= 0, got {self.margin!r}")
        if not math.isfinite(self.threshold) or self.threshold < 0:
            raise ValueError(f"threshold must be a finite number >= 0, got {self.threshold!r}")
        if self.bounds_strategy not in BOUNDS_STRATEGIES:
            raise ValueError(
                f"Unknown bounds strategy {self.bounds_strategy!r}, "
                f"expected one of {', '.join(BOUNDS_STRATEGIES)}"
            )
        if self.foreground_convention not in FOREGROUND_CONVENTIONS:
            raise ValueError(
                f"Unknown foreground convention {self.foreground_convention!r}, "
                f"expected one of {', '.join(FOREGROUND_CONVENTIONS)}"
            )

    @classmethod
    def from_env(cls) -> "CropSettings":
        load_dotenv()
        return cls(
            margin=int(os.getenv("MARGIN_SIZE", str(DEFAULT_MARGIN))),
            threshold=float(os.getenv("ADAPTIVE_THRESHOLD", str(DEFAULT_THRESHOLD))),
            bounds_strategy=os.getenv("BOUNDS_STRATEGY", BOUNDS_EXTENT).strip().lower(),
            foreground_convention=os.getenv("FOREGROUND_CONVENTION", FOREGROUND_RED_NONZERO).strip().lower(),
            write_debug_image=os.getenv("WRITE_DEBUG_IMAGE", "false").strip().lower() in _TRUE_VALUES,
        )

    def replace(self, **changes) -> "CropSettings":
        """Copy with the given fields changed; None values are ignored."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
