"""
Batch Pipeline
Runs process_file over every image in a directory. Files share no state,
so they go through a thread pool and finish in any order; one bad file
is recorded and skipped, never fatal to the batch.
"""

import logging
import os
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

from dotenv import load_dotenv

from ..exceptions import ScanCropError
from ..models.crop_result import CropResult
from ..models.crop_settings import CropSettings
from ..services.image_service import ImageService
from .autocrop import process_file

# Load environment variables
load_dotenv()

DEFAULT_WORKERS = int(os.getenv("BATCH_WORKERS", str(os.cpu_count() or 1)))

logger = logging.getLogger(__name__)


@dataclass
class FileOutcome:
    """Result of one file in a batch: either a CropResult or an error."""
    input_path: Path
    output_path: Path
    elapsed_ms: int
    result: CropResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    outcomes: List[FileOutcome] = field(default_factory=list)
    elapsed_ms: int = 0
    # Outputs whose debug image kept the extension (scan.jpg.bw.png) to avoid a shared stem.
    debug_renamed: List[Path] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    def failures(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if not o.ok]


def _process_one(
    input_path: Path,
    output_path: Path,
    settings: CropSettings,
    debug_path: Path | None = None,
) -> FileOutcome:
    logger.info(f"Processing input file '{input_path}'")
    start = time.perf_counter()
    try:
        result = process_file(input_path, output_path, settings, debug_path=debug_path)
    except ScanCropError as err:
        elapsed = int((time.perf_counter() - start) * 1000)
        logger.warning(f"Skipping {input_path.name}: {err}")
        return FileOutcome(input_path, output_path, elapsed, error=f"{type(err).__name__}: {err}")
    except Exception as err:
        elapsed = int((time.perf_counter() - start) * 1000)
        logger.exception(f"Unexpected failure on {input_path.name}")
        return FileOutcome(input_path, output_path, elapsed, error=f"{type(err).__name__}: {err}")

    elapsed = int((time.perf_counter() - start) * 1000)
    logger.info(f"Done in {elapsed}(ms): {output_path}")
    return FileOutcome(input_path, output_path, elapsed, result=result)


def _debug_paths(outputs: Dict[Path, Path], image_service: ImageService) -> Dict[Path, Path]:
    """
    Debug image path per input. Outputs that would share <stem>.bw.png
    (scan.png, scan.jpg) keep their extension in the name instead.
    """
    counts = Counter(image_service.debug_path_for(out) for out in outputs.values())
    return {
        path: image_service.debug_path_for(out, keep_extension=counts[image_service.debug_path_for(out)] > 1)
        for path, out in outputs.items()
    }


def process_directory(
    input_dir: Union[str, Path],
    output_dir: Union[str, Path],
    settings: CropSettings | None = None,
    *,
    workers: int = DEFAULT_WORKERS,
    recursive: bool = False,
    image_service: ImageService = ImageService(),
) -> BatchReport:
    """
    Crop every image under input_dir into output_dir, mirroring file names
    (and sub-folders when recursive).

    Raises:
        NotADirectoryError: input_dir is not a directory.
    """
    input_dir, output_dir = Path(input_dir), Path(output_dir)
    settings = settings or CropSettings.from_env()
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")

    paths = image_service.list_images(input_dir, recursive=recursive)
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Found {len(paths)} images in {input_dir}")

    report = BatchReport()
    outputs = {path: output_dir / path.relative_to(input_dir) for path in paths}
    debug_paths: Dict[Path, Path | None] = {path: None for path in paths}
    if settings.write_debug_image:
        debug_paths = _debug_paths(outputs, image_service)
        for path, out in sorted(outputs.items()):
            if debug_paths[path] != image_service.debug_path_for(out):
                logger.warning(f"{out.name} shares its stem with another output, debug image goes to {debug_paths[path].name}")
                report.debug_renamed.append(out)

    start = time.perf_counter()

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_path = {
            executor.submit(_process_one, path, outputs[path], settings, debug_paths[path]): path
            for path in paths
        }
        for future in as_completed(future_to_path):
            report.outcomes.append(future.result())

    report.outcomes.sort(key=lambda o: str(o.input_path))
    report.elapsed_ms = int((time.perf_counter() - start) * 1000)
    return report
