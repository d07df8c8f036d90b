"""
Lightness Sub-Segmentation

The blue cluster holds both dark and light blue objects. The cell nuclei are
dark blue, so they are separated from the light blue ones with the L* layer:
the brightness of the cluster pixels is thresholded with a global Otsu
threshold computed over the cluster population only, and the light pixels
are removed from the cluster mask.

Rescaling modes:
- 'image': lightness outside the mask is set to 0 and the whole image is
  rescaled to [0, 1], so the floor is usually the zeros outside the cluster.
  The threshold population is the non-zero masked values. This reproduces the
  reference H&E nuclei output. When the mask covers the whole image the
  darkest masked pixels rescale to 0 and leave the population, so a
  two-level cluster keeps all of its pixels; use 'masked' to split it.
- 'masked': min/max come from the masked pixels only, so the darkest cluster
  pixel maps to 0 and the brightest to 1. Every masked pixel (zeros included)
  is part of the threshold population.
"""

import logging
from dataclasses import dataclass
from typing import Optional
import numpy as np
from skimage.filters import threshold_otsu

from ..errors import EmptyMaskError, InputShapeError, InvalidConfigurationError
from .cluster_mask import apply_mask

logger = logging.getLogger(__name__)

RESCALE_MODES = ('image', 'masked')
REMOVE_SIDES = ('light', 'dark')


# ============================================================================
# Configuration
# ============================================================================

@dataclass
class ThresholdConfig:
    """
    Configuration for the lightness threshold inside one cluster.

    Attributes:
        rescale: Range used for the [0, 1] rescale ('image' or 'masked')
        remove: Side removed from the mask: 'light' (values > threshold,
                keeps the dark nuclei) or 'dark' (values <= threshold)
        nbins: Histogram bins for Otsu's method
    """
    rescale: str = 'image'
    remove: str = 'light'
    nbins: int = 256

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.rescale not in RESCALE_MODES:
            raise InvalidConfigurationError(
                f"rescale must be 'image' or 'masked', got '{self.rescale}'"
            )
        if self.remove not in REMOVE_SIDES:
            raise InvalidConfigurationError(
                f"remove must be 'light' or 'dark', got '{self.remove}'"
            )
        if self.nbins < 2:
            raise InvalidConfigurationError(f"nbins must be >= 2, got {self.nbins}")


# ============================================================================
# Results
# ============================================================================

@dataclass
class IntensityThresholdResult:
    """
    Results of the lightness sub-segmentation.

    Attributes:
        mask: Refined mask (input mask minus removed pixels), shape (H, W)
        image: Original image with pixels outside the refined mask zeroed
        threshold: Otsu threshold on the rescaled lightness
        removed: Pixels cleared from the input mask, shape (H, W)
        rescaled: Rescaled masked lightness in [0, 1], shape (H, W)
    """
    mask: np.ndarray
    image: np.ndarray
    threshold: float
    removed: np.ndarray
    rescaled: np.ndarray

    def get_removed_count(self) -> int:
        return int(self.removed.sum())

    def __str__(self) -> str:
        return (
            f"IntensityThresholdResult(threshold={self.threshold:.4f}, "
            f"kept={int(self.mask.sum())}, removed={self.get_removed_count()})"
        )


# ============================================================================
# Thresholding
# ============================================================================

def rescale_masked_lightness(
    lightness: np.ndarray,
    mask: np.ndarray,
    mode: str = 'image'
) -> np.ndarray:
    """
    Zero lightness outside the mask and rescale it linearly to [0, 1].

    Args:
        lightness: L* layer, shape (H, W)
        mask: Boolean mask, shape (H, W)
        mode: 'image' (min/max over the zero-floor image) or
              'masked' (min/max over masked pixels only)

    Returns:
        rescaled: float64 array, shape (H, W); 0 outside the mask.
                  A constant input maps to all zeros.
    """
    masked = np.where(mask, lightness.astype(np.float64), 0.0)

    source = masked if mode == 'image' else masked[mask]
    low, high = source.min(), source.max()

    if high <= low:
        return np.zeros_like(masked)

    rescaled = (masked - low) / (high - low)
    rescaled[~mask] = 0.0

    return rescaled


def split_by_lightness(
    lightness: np.ndarray,
    mask: np.ndarray,
    image: np.ndarray,
    config: Optional[ThresholdConfig] = None
) -> IntensityThresholdResult:
    """
    Remove the light (or dark) sub-population from a cluster mask.

    The decision is made per mask coordinate: coordinates come from
    np.argwhere(mask) in row-major order and the rescaled lightness is read
    at exactly those coordinates, so the thresholded values and the cleared
    pixels cannot drift apart.

    Args:
        lightness: L* layer of the converted image, shape (H, W)
        mask: Cluster mask, shape (H, W). Not modified.
        image: Original RGB image, shape (H, W, 3)
        config: Threshold configuration (defaults: 'image' rescale, remove light)

    Returns:
        IntensityThresholdResult with the refined mask and masked image

    Raises:
        InputShapeError: If shapes disagree
        EmptyMaskError: If the mask is empty or leaves nothing to threshold

    Example:
        >>> L = lightness_channel(lab_he)
        >>> nuclei = split_by_lightness(L, mask3.mask, he)
        >>> show_image(nuclei.image, 'Blue Nuclei')
    """
    config = config or ThresholdConfig()

    if lightness.ndim != 2:
        raise InputShapeError(f"lightness must be 2D (H, W), got shape {lightness.shape}")
    if mask.shape != lightness.shape:
        raise InputShapeError(
            f"mask shape {mask.shape} doesn't match lightness shape {lightness.shape}"
        )

    mask = mask.astype(bool)
    if not mask.any():
        raise EmptyMaskError("mask contains no pixels to threshold")

    rescaled = rescale_masked_lightness(lightness, mask, config.rescale)

    coords = np.argwhere(mask)
    values = rescaled[coords[:, 0], coords[:, 1]]

    if config.rescale == 'image':
        population = values[values != 0]
    else:
        population = values

    if population.size == 0:
        raise EmptyMaskError("masked lightness has no non-zero samples to threshold")

    threshold = float(threshold_otsu(population, nbins=config.nbins))
    is_light = values > threshold

    remove = is_light if config.remove == 'light' else ~is_light
    removed_coords = coords[remove]

    refined = mask.copy()
    refined[removed_coords[:, 0], removed_coords[:, 1]] = False

    removed = np.zeros_like(mask)
    removed[removed_coords[:, 0], removed_coords[:, 1]] = True

    logger.info(
        f"Lightness threshold {threshold:.4f} ({config.rescale} rescale): "
        f"removed {len(removed_coords)} {config.remove} of {len(coords)} pixels"
    )

    return IntensityThresholdResult(
        mask=refined,
        image=apply_mask(image, refined),
        threshold=threshold,
        removed=removed,
        rescaled=rescaled
    )
