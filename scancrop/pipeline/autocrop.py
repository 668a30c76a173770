"""
Autocrop Pipeline
Decode → threshold → bounds → margin → crop → encode, for one image.
"""

import logging
from pathlib import Path
from typing import Tuple, Union

from ..exceptions import DegenerateBoundsError
from ..models.crop_result import CropResult
from ..models.crop_settings import CropSettings
from ..models.pixel_grid import PixelGrid
from ..models.rectangle import Rectangle
from ..services.bounds_service import BoundsService
from ..services.cropping_service import CroppingService
from ..services.image_service import ImageService
from ..services.threshold_service import ThresholdService

logger = logging.getLogger(__name__)


def locate_content(
    source: PixelGrid,
    settings: CropSettings,
    *,
    threshold_service: ThresholdService = ThresholdService(),
    bounds_service: BoundsService = BoundsService(),
) -> Tuple[PixelGrid, Rectangle]:
    """
    Threshold the colour grid and find the foreground bounds.

    Returns:
        Tuple[PixelGrid, Rectangle]: the binary grid and the detected
        (pre-margin) bounds, possibly inverted when nothing was found.
    """
    binary = threshold_service.threshold(source, settings.threshold)
    bounds = bounds_service.find(binary, settings.bounds_strategy, settings.foreground_convention)
    return binary, bounds


def crop_content(
    source: PixelGrid,
    binary: PixelGrid,
    bounds: Rectangle,
    settings: CropSettings,
    *,
    bounds_service: BoundsService = BoundsService(),
    cropping_service: CroppingService = CroppingService(),
) -> Tuple[Rectangle, PixelGrid]:
    """
    Apply the margin to bounds and cut that region out of the colour grid.

    Raises DegenerateBoundsError when the binary grid holds no foreground or
    the margin-adjusted region has no area.
    """
    if not bounds_service.has_foreground(binary, settings.foreground_convention):
        raise DegenerateBoundsError("No foreground detected", bounds=bounds)

    crop_bounds = cropping_service.apply_margin(bounds, settings.margin, source.width, source.height)
    if crop_bounds.is_empty:
        raise DegenerateBoundsError(
            f"Detected region {crop_bounds.as_tuple()} has no area to crop", bounds=crop_bounds
        )
    return crop_bounds, cropping_service.crop(source, crop_bounds)


def process_file(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    settings: CropSettings | None = None,
    *,
    debug_path: Union[str, Path, None] = None,
    image_service: ImageService = ImageService(),
    threshold_service: ThresholdService = ThresholdService(),
    bounds_service: BoundsService = BoundsService(),
    cropping_service: CroppingService = CroppingService(),
) -> CropResult:
    """
    Crop one image file to its detected content plus margin.

    The debug image (binary grid with the pre-margin bounds outlined) is
    written before the degenerate check so failed files keep their
    diagnostic too.

    Args:
        input_path: Image to read.
        output_path: Where the cropped image goes; format follows the extension.
        settings: Tuning; defaults to CropSettings.from_env().
        debug_path: Where the debug image goes; defaults to <output stem>.bw.png.

    Returns:
        CropResult: bounds, sizes and written paths.
    """
    input_path, output_path = Path(input_path), Path(output_path)
    settings = settings or CropSettings.from_env()

    source = image_service.load(input_path)
    binary, bounds = locate_content(
        source, settings,
        threshold_service=threshold_service,
        bounds_service=bounds_service,
    )
    logger.debug(f"{input_path.name}: {source.width}x{source.height}, bounds {bounds.as_tuple()}")

    written_debug_path = None
    if settings.write_debug_image:
        written_debug_path = image_service.save(
            image_service.draw_bounds(binary, bounds),
            debug_path or image_service.debug_path_for(output_path),
        )

    try:
        crop_bounds, cropped = crop_content(
            source, binary, bounds, settings,
            bounds_service=bounds_service,
            cropping_service=cropping_service,
        )
    except DegenerateBoundsError as err:
        raise DegenerateBoundsError(f"{input_path}: {err}", bounds=err.bounds) from err

    image_service.save(cropped, output_path)
    logger.debug(f"{input_path.name}: cropped to {crop_bounds.as_tuple()} → {output_path}")

    return CropResult(
        input_path=input_path,
        output_path=output_path,
        source_size=(source.width, source.height),
        bounds=bounds,
        crop_bounds=crop_bounds,
        debug_path=written_debug_path,
    )
