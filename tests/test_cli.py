import pytest

from scancrop.cli.batch_process import main

from helpers import page_with_block, read_image, write_image


@pytest.fixture
def scans(tmp_path):
    input_dir = tmp_path / "scans"
    write_image(input_dir / "page1.png", page_with_block())
    write_image(input_dir / "page2.png", page_with_block(block=(10, 5, 30, 25)))
    return input_dir


def test_cli_crops_directory(scans, tmp_path):
    output_dir = tmp_path / "cropped"

    code = main([str(scans), str(output_dir), "--margin", "5", "--foreground", "red_zero", "--workers", "2"])

    assert code == 0
    assert read_image(output_dir / "page1.png").shape == (29, 29, 3)
    assert read_image(output_dir / "page2.png").shape == (25, 30, 3)


def test_cli_debug_image_flag(scans, tmp_path):
    output_dir = tmp_path / "cropped"

    code = main([str(scans), str(output_dir), "--foreground", "red_zero", "--debug-image"])

    assert code == 0
    assert (output_dir / "page1.bw.png").exists()
    assert (output_dir / "page2.bw.png").exists()


def test_cli_reports_partial_failure(scans, tmp_path):
    (scans / "corrupt.png").write_bytes(b"garbage")
    output_dir = tmp_path / "cropped"

    code = main([str(scans), str(output_dir), "--foreground", "red_zero"])

    assert code == 1
    assert (output_dir / "page1.png").exists()
    assert not (output_dir / "corrupt.png").exists()


def test_cli_missing_input_dir(tmp_path):
    assert main([str(tmp_path / "missing"), str(tmp_path / "out")]) == 2


def test_cli_uses_env_directories(scans, tmp_path, monkeypatch):
    output_dir = tmp_path / "from_env"
    monkeypatch.setenv("INPUT_DIR", str(scans))
    monkeypatch.setenv("OUTPUT_DIR", str(output_dir))
    monkeypatch.setenv("FOREGROUND_CONVENTION", "red_zero")

    assert main([]) == 0
    assert (output_dir / "page1.png").exists()


@pytest.mark.parametrize("args", [
    ["--margin", "-3"],
    ["--threshold", "-1"],
    ["--strategy", "sobel"],
    ["--workers", "0"],
])
def test_cli_rejects_bad_options(scans, tmp_path, args):
    with pytest.raises(SystemExit) as excinfo:
        main([str(scans), str(tmp_path / "out"), *args])
    assert excinfo.value.code == 2
