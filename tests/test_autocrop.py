import numpy as np
import pytest

from scancrop.exceptions import DecodeError, DegenerateBoundsError, ImageWriteError
from scancrop.models.crop_settings import FOREGROUND_RED_ZERO, CropSettings
from scancrop.models.pixel_grid import PixelGrid
from scancrop.models.rectangle import Rectangle
from scancrop.pipeline.autocrop import crop_content, locate_content, process_file
from scancrop.services.image_service import ImageService

from helpers import BLACK, WHITE, page_with_block, read_image, write_image

INK = CropSettings(margin=5, foreground_convention=FOREGROUND_RED_ZERO)


def test_process_file_with_default_convention_keeps_whole_page(tmp_path):
    source = page_with_block()
    input_path = write_image(tmp_path / "in" / "scan.png", source)
    output_path = tmp_path / "out" / "scan.png"

    result = process_file(input_path, output_path, CropSettings())

    # thresholded page is white almost everywhere, and white is foreground
    assert result.bounds == Rectangle(0, 0, 59, 39)
    assert result.crop_bounds == Rectangle(0, 0, 59, 39)
    assert result.source_size == (60, 40)
    assert result.output_size == (59, 39)
    assert np.array_equal(read_image(output_path), source[1:, 1:])
    assert result.debug_path is None


def test_process_file_with_ink_convention_crops_to_block(tmp_path):
    source = page_with_block()
    input_path = write_image(tmp_path / "scan.png", source)
    output_path = tmp_path / "out" / "scan.png"

    result = process_file(input_path, output_path, INK)

    assert result.bounds == Rectangle(20, 10, 39, 29)
    assert result.crop_bounds == Rectangle(15, 5, 44, 34)
    cropped = read_image(output_path)
    assert cropped.shape == (29, 29, 3)
    assert np.array_equal(cropped, source[6:35, 16:45])


def test_process_file_writes_debug_image(tmp_path):
    input_path = write_image(tmp_path / "scan.png", page_with_block())
    output_path = tmp_path / "out" / "scan.png"

    result = process_file(input_path, output_path, INK.replace(write_debug_image=True))

    assert result.debug_path == tmp_path / "out" / "scan.bw.png"
    debug = read_image(result.debug_path)
    assert debug.shape == (40, 60, 3)
    assert tuple(debug[10, 20]) == (255, 0, 0)
    assert tuple(debug[29, 39]) == (255, 0, 0)
    assert tuple(debug[0, 0]) == WHITE
    assert tuple(debug[20, 30]) == WHITE


def test_process_file_debug_path_override(tmp_path):
    input_path = write_image(tmp_path / "scan.png", page_with_block())
    debug_path = tmp_path / "diagnostics" / "scan.png.bw.png"

    result = process_file(
        input_path, tmp_path / "out" / "scan.png",
        INK.replace(write_debug_image=True), debug_path=debug_path,
    )

    assert result.debug_path == debug_path
    assert read_image(debug_path).shape == (40, 60, 3)
    assert not (tmp_path / "out" / "scan.bw.png").exists()


@pytest.mark.parametrize("keep_extension, expected", [(False, "scan.bw.png"), (True, "scan.jpg.bw.png")])
def test_debug_path_for(tmp_path, keep_extension, expected):
    path = ImageService.debug_path_for(tmp_path / "scan.jpg", keep_extension=keep_extension)
    assert path == tmp_path / expected


def test_single_pixel_scenario(tmp_path):
    source = np.full((4, 4, 3), 255, dtype=np.uint8)
    source[2, 2] = BLACK
    grid = PixelGrid.from_array(source)
    ink = CropSettings(margin=0, threshold=0.5, foreground_convention=FOREGROUND_RED_ZERO)

    binary, bounds = locate_content(grid, ink)
    assert bounds == Rectangle(2, 2, 2, 2)

    with pytest.raises(DegenerateBoundsError):
        crop_content(grid, binary, bounds, ink)

    # same binary grid, default convention: every white pixel is foreground
    _, bounds = locate_content(grid, ink.replace(foreground_convention="red_nonzero"))
    assert bounds == Rectangle(0, 0, 3, 3)


def test_single_pixel_file_is_not_written(tmp_path):
    source = np.full((4, 4, 3), 255, dtype=np.uint8)
    source[2, 2] = BLACK
    input_path = write_image(tmp_path / "dot.png", source)
    output_path = tmp_path / "out" / "dot.png"
    ink = CropSettings(margin=0, threshold=0.5, foreground_convention=FOREGROUND_RED_ZERO)

    with pytest.raises(DegenerateBoundsError):
        process_file(input_path, output_path, ink)
    assert not output_path.exists()


def test_blank_page_raises_degenerate_bounds_but_keeps_debug_image(tmp_path):
    input_path = write_image(tmp_path / "blank.png", np.full((30, 20, 3), 255, dtype=np.uint8))
    output_path = tmp_path / "out" / "blank.png"

    with pytest.raises(DegenerateBoundsError) as excinfo:
        process_file(input_path, output_path, INK.replace(write_debug_image=True))

    assert excinfo.value.bounds == Rectangle(20, 30, 0, 0)
    assert not output_path.exists()
    assert (tmp_path / "out" / "blank.bw.png").exists()


def test_unreadable_input_raises_decode_error(tmp_path):
    bogus = tmp_path / "bogus.png"
    bogus.write_bytes(b"not an image at all")

    with pytest.raises(DecodeError):
        process_file(bogus, tmp_path / "out.png", INK)
    with pytest.raises(DecodeError):
        process_file(tmp_path / "missing.png", tmp_path / "out.png", INK)


def test_unwritable_output_raises_image_write_error(tmp_path):
    input_path = write_image(tmp_path / "scan.png", page_with_block())
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    with pytest.raises(ImageWriteError) as excinfo:
        process_file(input_path, blocker / "scan.png", INK)
    assert isinstance(excinfo.value, IOError)

    with pytest.raises(ImageWriteError):
        process_file(input_path, tmp_path / "scan.unknownext", INK)


def test_jpeg_round_trip_keeps_dimensions(tmp_path):
    input_path = write_image(tmp_path / "scan.png", page_with_block())
    output_path = tmp_path / "scan.jpg"

    result = process_file(input_path, output_path, INK)

    assert read_image(output_path).shape == (29, 29, 3)
    assert result.output_size == (29, 29)


def test_settings_default_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("MARGIN_SIZE", "2")
    monkeypatch.setenv("FOREGROUND_CONVENTION", "red_zero")
    input_path = write_image(tmp_path / "scan.png", page_with_block())

    result = process_file(input_path, tmp_path / "out.png")

    assert result.crop_bounds == Rectangle(18, 8, 41, 31)
