import numpy as np
import pytest

from scancrop.models.pixel_grid import PixelGrid


@pytest.fixture
def coordinate_grid():
    """6x7 grid where pixel (x, y) is (x, y, 7)."""
    width, height = 6, 7
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    for y in range(height):
        for x in range(width):
            arr[y, x] = (x, y, 7)
    return PixelGrid.from_array(arr)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "MARGIN_SIZE", "ADAPTIVE_THRESHOLD", "BOUNDS_STRATEGY",
        "FOREGROUND_CONVENTION", "WRITE_DEBUG_IMAGE", "VALID_IMAGE_EXTENSIONS",
    ):
        monkeypatch.delenv(name, raising=False)
