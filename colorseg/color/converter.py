"""
RGB to CIE L*a*b* Conversion

How many colors are in an H&E image if variations in brightness are ignored?
Three: white, blue and pink. The L*a*b* space makes this visible: L* holds
the brightness, while a* (red-green axis) and b* (blue-yellow axis) hold all
of the color information, and Euclidean distance between (a*, b*) pairs
approximates perceived color difference.

The conversion chain is sRGB -> linear RGB (gamma) -> XYZ -> L*a*b* with the
D65 reference white, delegated to OpenCV.
"""

import numpy as np
import cv2

from ..errors import InputShapeError


def _validate_rgb(image: np.ndarray) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise InputShapeError(
            f"image must have shape (H, W, 3), got {image.shape}"
        )


def to_unit_range(image: np.ndarray) -> np.ndarray:
    """
    Convert an RGB image to float32 in [0, 1].

    Integer images are divided by the maximum of their dtype (255 for uint8,
    65535 for uint16). Float images are assumed to already be in [0, 1] and
    are clipped to that range.

    Args:
        image: RGB image, shape (H, W, 3)

    Returns:
        rgb: float32 array, shape (H, W, 3), values in [0, 1]

    Raises:
        InputShapeError: If image is not (H, W, 3)
    """
    _validate_rgb(image)

    if image.dtype == np.bool_:
        return image.astype(np.float32)

    if np.issubdtype(image.dtype, np.integer):
        max_value = np.iinfo(image.dtype).max
        return (image.astype(np.float64) / max_value).astype(np.float32)

    return np.clip(image, 0.0, 1.0).astype(np.float32)


def rgb_to_lab(image: np.ndarray) -> np.ndarray:
    """
    Convert an RGB image to CIE L*a*b*.

    Args:
        image: RGB image, shape (H, W, 3), uint8/uint16 or float in [0, 1]

    Returns:
        lab: float32 array, shape (H, W, 3)
             - channel 0: L* in [0, 100]
             - channel 1: a* (approximately [-127, 127])
             - channel 2: b* (approximately [-127, 127])

    Raises:
        InputShapeError: If image is not (H, W, 3)

    Example:
        >>> he = load_image('hestain.png').image
        >>> lab_he = rgb_to_lab(he)
        >>> L = lab_he[:, :, 0]
    """
    rgb = to_unit_range(image)

    # float32 input keeps unscaled L*a*b* values (8-bit output would be
    # packed into 0..255)
    lab = cv2.cvtColor(np.ascontiguousarray(rgb), cv2.COLOR_RGB2Lab)

    return lab


def lightness_channel(lab: np.ndarray) -> np.ndarray:
    """
    Extract the L* layer of a L*a*b* image.

    Args:
        lab: L*a*b* image, shape (H, W, 3)

    Returns:
        L: float64 copy of channel 0, shape (H, W)
    """
    _validate_rgb(lab)
    return lab[:, :, 0].astype(np.float64)
