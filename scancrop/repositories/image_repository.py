import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Union

import cv2
import numpy as np
from dotenv import load_dotenv
from PIL import Image as PILImage

from ..exceptions import DecodeError, DimensionError, ImageWriteError
from ..models.pixel_grid import PixelGrid

# Load environment variables
load_dotenv()

DEFAULT_IMAGE_EXTENSIONS = ".png,.jpg,.jpeg,.bmp,.tif,.tiff"

logger = logging.getLogger(__name__)


class ImageRepository:
    """
    Handles file I/O for PixelGrid entities.
    """
    def __init__(self):
        exts = os.getenv("VALID_IMAGE_EXTENSIONS", DEFAULT_IMAGE_EXTENSIONS)
        self.VALID_EXTS = {self._normalize_ext(ext) for ext in exts.split(",") if ext.strip()}

    @staticmethod
    def _normalize_ext(ext: str) -> str:
        ext = ext.strip().lower()
        return ext if ext.startswith(".") else f".{ext}"

    @staticmethod
    def load(path: Union[str, Path]) -> PixelGrid:
        path = Path(path)
        arr_bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if arr_bgr is None:
            raise DecodeError(f"Image not found or unreadable: {path}")

        height, width = arr_bgr.shape[:2]
        if width == 0 or height == 0:
            raise DimensionError(f"Image has no pixels ({width}x{height}): {path}")

        return PixelGrid.from_array(arr_bgr[:, :, ::-1])

    @staticmethod
    def save(grid: PixelGrid, path: Union[str, Path]) -> Path:
        path = Path(path)
        if grid.is_empty:
            raise DimensionError(f"Refusing to write an empty {grid.width}x{grid.height} image: {path}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            PILImage.fromarray(np.ascontiguousarray(grid.to_array())).save(path)
        except (OSError, ValueError) as err:
            # Pillow raises ValueError for extensions it can't map to a format
            raise ImageWriteError(f"Cannot write image to {path}: {err}") from err
        return path

    def iter_paths(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Path]:
        """
        Yield image file paths in name order. Nothing is decoded here.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {self._normalize_ext(e) for e in exts} if exts else self.VALID_EXTS
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if not p.is_file():
                continue
            if p.suffix.lower() not in allowed:
                logger.debug(f"Skipping due to extension: {p}")
                continue
            yield p

    def list_paths(
        self, folder: Union[str, Path], *, recursive=False, exts=None
    ) -> List[Path]:
        return list(self.iter_paths(folder, recursive=recursive, exts=exts))
