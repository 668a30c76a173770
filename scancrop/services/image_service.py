from io import BytesIO
from pathlib import Path
from typing import Iterable, List, Tuple, Union
import base64

import cv2
import numpy as np
from PIL import Image as PILImage

from ..models.pixel_grid import PixelGrid
from ..models.rectangle import Rectangle
from ..repositories.image_repository import ImageRepository

DEBUG_SUFFIX = ".bw.png"
DEBUG_HIGHLIGHT_COLOR: Tuple[int, int, int] = (255, 0, 0)  # pure red, never produced by thresholding


class ImageService:
    """Codec and drawing helpers. No thresholding or bounds logic."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def load(self, path: Union[str, Path]) -> PixelGrid:
        """Decode a single image from disk into a PixelGrid."""
        return self.image_repository.load(path)

    def save(self, grid: PixelGrid, path: Union[str, Path]) -> Path:
        """
        Business-level method to write a grid to a specific path.
        The format follows the path's extension.
        """
        return self.image_repository.save(grid, path)

    def list_images(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> List[Path]:
        return self.image_repository.list_paths(folder, recursive=recursive, exts=exts)

    @staticmethod
    def debug_path_for(output_path: Union[str, Path], keep_extension: bool = False) -> Path:
        """
        scan.jpg -> scan.bw.png, next to the output.
        keep_extension gives scan.jpg.bw.png, for outputs sharing a stem.
        """
        output_path = Path(output_path)
        base = output_path.name if keep_extension else output_path.stem
        return output_path.with_name(f"{base}{DEBUG_SUFFIX}")

    @staticmethod
    def draw_bounds(
        grid: PixelGrid,
        bounds: Rectangle,
        color: Tuple[int, int, int] = DEBUG_HIGHLIGHT_COLOR,
        thickness: int = 1,
    ) -> PixelGrid:
        """
        Return a *new* grid with a rectangle outline at bounds.
        Inverted bounds (nothing found) leave the picture untouched.
        """
        canvas = grid.to_array()
        if not bounds.is_inverted:
            cv2.rectangle(canvas, bounds.top_left, bounds.bottom_right, color, thickness)
        return PixelGrid.from_array(canvas)

    @staticmethod
    def to_pil_image(grid: PixelGrid) -> PILImage.Image:
        return PILImage.fromarray(np.ascontiguousarray(grid.to_array()))

    def to_base64_png(self, grid: PixelGrid) -> str:
        """Encode a grid as a PNG data URL for JSON responses."""
        buffer = BytesIO()
        self.to_pil_image(grid).save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
        return f"data:image/png;base64,{encoded}"
