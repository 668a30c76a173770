from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from .rectangle import Rectangle


@dataclass
class CropResult:
    """
    What process_file produced for one input image.
    """
    input_path: Path
    output_path: Path
    source_size: Tuple[int, int]   # (width, height) of the decoded input
    bounds: Rectangle              # detected bounds, before margin
    crop_bounds: Rectangle         # bounds actually cropped, after margin
    debug_path: Path | None = None # binary debug image, when requested

    @property
    def output_size(self) -> Tuple[int, int]:
        return self.crop_bounds.width, self.crop_bounds.height
