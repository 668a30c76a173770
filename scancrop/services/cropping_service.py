from ..exceptions import CropRegionError, DegenerateBoundsError
from ..models.pixel_grid import PixelGrid
from ..models.rectangle import Rectangle


class CroppingService:
    """
    Margin adjustment and sub-rectangle extraction.
    """

    @staticmethod
    def apply_margin(bounds: Rectangle, margin: int, width: int, height: int) -> Rectangle:
        """
        Grow bounds by margin on each side where there is room to do so.

        A side that would cross the image edge keeps its original value
        instead of being clamped, so the margin can end up partly applied.
        """
        if margin < 0:
            raise ValueError(f"Margin must be >= 0, got {margin}")

        x1 = bounds.x1 - margin if bounds.x1 > margin else bounds.x1
        x2 = bounds.x2 + margin if bounds.x2 + margin < width else bounds.x2
        y1 = bounds.y1 - margin if bounds.y1 > margin else bounds.y1
        y2 = bounds.y2 + margin if bounds.y2 + margin < height else bounds.y2
        return Rectangle(x1=x1, y1=y1, x2=x2, y2=y2)

    @staticmethod
    def crop(grid: PixelGrid, bounds: Rectangle) -> PixelGrid:
        """
        Keep pixel (x, y) iff x1 < x <= x2 and y1 < y <= y2.

        The x1 column and y1 row are excluded, so the result is exactly
        (x2 - x1) x (y2 - y1); equal corners give an empty grid.
        """
        if bounds.is_inverted:
            raise DegenerateBoundsError(f"Cannot crop inverted bounds {bounds.as_tuple()}", bounds=bounds)
        if bounds.x1 < 0 or bounds.y1 < 0 or bounds.x2 >= grid.width or bounds.y2 >= grid.height:
            raise CropRegionError(
                f"Crop bounds {bounds.as_tuple()} fall outside the {grid.width}x{grid.height} image"
            )

        rows = grid.pixels.reshape(grid.height, grid.width, 3)
        region = rows[bounds.y1 + 1:bounds.y2 + 1, bounds.x1 + 1:bounds.x2 + 1]
        return PixelGrid(width=bounds.width, height=bounds.height, pixels=region.reshape(-1, 3))

