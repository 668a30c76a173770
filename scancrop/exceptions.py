"""
Error kinds raised by the cropping pipeline.

Core functions raise these and never recover silently; the batch layer
catches ScanCropError per file and keeps going.
"""
from __future__ import annotations


class ScanCropError(Exception):
    """Base class for every failure the pipeline reports on its own."""


class DecodeError(ScanCropError):
    """The input file is missing, unreadable or not an image."""


class DimensionError(ScanCropError):
    """The image has zero width or zero height."""


class DegenerateBoundsError(ScanCropError):
    """No usable foreground region was found."""

    def __init__(self, message: str, bounds=None):
        super().__init__(message)
        self.bounds = bounds


class CropRegionError(ScanCropError, ValueError):
    """A crop rectangle reaches outside the source grid."""


class ImageWriteError(ScanCropError, OSError):
    """The output image could not be written."""
