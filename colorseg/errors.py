"""
Exception hierarchy for the segmentation pipeline.

Every error derives from SegmentationError. Validation errors also derive
from ValueError and loading errors from OSError, so callers that already
catch the builtin types keep working.
"""


class SegmentationError(Exception):
    """Base class for all colorseg errors."""


class InputShapeError(SegmentationError, ValueError):
    """Array has the wrong number of dimensions or channels."""


class InvalidConfigurationError(SegmentationError, ValueError):
    """A clustering or thresholding parameter cannot be satisfied."""


class EmptyMaskError(SegmentationError, ValueError):
    """A mask selects no samples to threshold."""


class ImageLoadError(SegmentationError, OSError):
    """Base class for image source failures."""


class UnsupportedImageFormatError(ImageLoadError):
    """The file is not an image format Pillow can identify."""


class ImageDecodeError(ImageLoadError):
    """The file was identified but its pixel data could not be decoded."""
