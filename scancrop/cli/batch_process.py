"""
scancrop – crop scanned pages to their content.

Reads every image in INPUT_DIR, crops it to the detected content plus a
margin and writes it under the same name into OUTPUT_DIR.

Exit codes: 0 all files cropped, 1 at least one file failed,
2 the input directory is missing.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from ..models.crop_settings import BOUNDS_STRATEGIES, FOREGROUND_CONVENTIONS, CropSettings
from ..pipeline.batch import DEFAULT_WORKERS, process_directory

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='scancrop',
        description='Crop scanned images to their content plus a margin.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    scancrop scans/ cropped/
    scancrop scans/ cropped/ --margin 20 --threshold 0.7
    scancrop scans/ cropped/ --strategy corners --debug-image
    scancrop scans/ cropped/ --workers 4 --recursive
        """,
    )
    parser.add_argument(
        'input_dir',
        nargs='?',
        type=Path,
        default=Path(os.getenv("INPUT_DIR", "input")),
        help='Directory of images to crop (default: $INPUT_DIR or ./input)',
    )
    parser.add_argument(
        'output_dir',
        nargs='?',
        type=Path,
        default=Path(os.getenv("OUTPUT_DIR", "output")),
        help='Directory for cropped images (default: $OUTPUT_DIR or ./output)',
    )
    parser.add_argument(
        '--margin',
        type=int,
        help='Pixels of padding around the detected content (default: $MARGIN_SIZE or 40)',
    )
    parser.add_argument(
        '--threshold',
        type=float,
        help='Adaptive threshold ratio, typically 0.6-0.9 (default: $ADAPTIVE_THRESHOLD or 0.9)',
    )
    parser.add_argument(
        '--strategy',
        choices=BOUNDS_STRATEGIES,
        help='Bounds strategy (default: $BOUNDS_STRATEGY or extent)',
    )
    parser.add_argument(
        '--foreground',
        choices=FOREGROUND_CONVENTIONS,
        help='Which binary pixels count as content (default: $FOREGROUND_CONVENTION or red_nonzero)',
    )
    parser.add_argument(
        '--debug-image',
        action='store_true',
        default=None,
        help='Also write <name>.bw.png with the thresholded image and detected bounds',
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=DEFAULT_WORKERS,
        help=f'Number of files processed in parallel (default: {DEFAULT_WORKERS})',
    )
    parser.add_argument(
        '--recursive',
        action='store_true',
        help='Descend into sub-directories, mirroring them in the output',
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose (debug) logging',
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = CropSettings.from_env().replace(
            margin=args.margin,
            threshold=args.threshold,
            bounds_strategy=args.strategy,
            foreground_convention=args.foreground,
            write_debug_image=args.debug_image,
        )
    except ValueError as exc:
        parser.error(str(exc))
    if args.workers < 1:
        parser.error(f"--workers must be >= 1, got {args.workers}")

    try:
        report = process_directory(
            args.input_dir,
            args.output_dir,
            settings,
            workers=args.workers,
            recursive=args.recursive,
        )
    except NotADirectoryError:
        logger.error(f"Input directory does not exist: {args.input_dir}")
        return 2

    for outcome in report.failures():
        logger.error(f"FAILED {outcome.input_path.name}: {outcome.error}")

    logger.info(
        f"Cropped {report.processed}/{len(report.outcomes)} images "
        f"({report.failed} failed) in {report.elapsed_ms}(ms)"
    )
    return 0 if report.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
