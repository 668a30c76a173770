from pathlib import Path

import numpy as np
from PIL import Image as PILImage

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def page_with_block(width=60, height=40, block=(20, 10, 39, 29), page=WHITE, ink=BLACK) -> np.ndarray:
    """(H, W, 3) page with a filled block; block corners are inclusive."""
    arr = np.empty((height, width, 3), dtype=np.uint8)
    arr[:] = page
    x1, y1, x2, y2 = block
    arr[y1:y2 + 1, x1:x2 + 1] = ink
    return arr


def write_image(path: Path, arr: np.ndarray) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    PILImage.fromarray(arr).save(path)
    return path


def read_image(path: Path) -> np.ndarray:
    with PILImage.open(path) as img:
        return np.asarray(img.convert("RGB"))
