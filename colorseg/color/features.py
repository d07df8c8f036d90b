"""
Chromaticity Features for Clustering

Since the color information lives in the a*b* layers, the objects to cluster
are pixels with (a*, b*) values. The flattening order is row-major and must
be reversed with the same order to get spatial maps back.
"""

from typing import Tuple
import numpy as np

from ..errors import InputShapeError


def extract_chromaticity(lab: np.ndarray) -> np.ndarray:
    """
    Extract the a*b* feature vector of every pixel.

    Args:
        lab: L*a*b* image, shape (H, W, 3)

    Returns:
        features: float32 array, shape (H*W, 2), row-major pixel order

    Raises:
        InputShapeError: If lab is not (H, W, 3)

    Example:
        >>> ab = extract_chromaticity(rgb_to_lab(he))
        >>> ab.shape
        (H*W, 2)
    """
    if lab.ndim != 3 or lab.shape[2] != 3:
        raise InputShapeError(
            f"lab image must have shape (H, W, 3), got {lab.shape}"
        )

    ab = lab[:, :, 1:3]
    features = ab.reshape(-1, 2).astype(np.float32)

    return features


def restore_spatial(flat: np.ndarray, shape: Tuple[int, int]) -> np.ndarray:
    """
    Reshape a per-pixel array back to the image grid.

    Args:
        flat: Per-pixel values, shape (H*W,) or (H*W, C)
        shape: (H, W) image dimensions

    Returns:
        Array of shape (H, W) or (H, W, C)

    Raises:
        InputShapeError: If the number of values does not match H*W
    """
    h, w = shape
    if flat.shape[0] != h * w:
        raise InputShapeError(
            f"Cannot restore {flat.shape[0]} values to image shape {shape}"
        )

    return flat.reshape((h, w) + flat.shape[1:])
