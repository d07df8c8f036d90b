"""
Cluster Masks

Using the pixel labels, the objects in the image are separated by color:
one mask and one image per cluster, where every pixel outside the cluster
is set to black.
"""

from dataclasses import dataclass
from typing import Dict
import numpy as np

from ..errors import InputShapeError


# ============================================================================
# Results
# ============================================================================

@dataclass
class ClusterMaskResult:
    """
    Mask and masked image for one cluster.

    Attributes:
        label: Cluster label the mask was built from
        mask: Boolean membership, shape (H, W)
        image: Original image with non-member pixels zeroed, shape (H, W, 3)
    """
    label: int
    mask: np.ndarray
    image: np.ndarray

    def get_pixel_count(self) -> int:
        """Get number of pixels in the cluster."""
        return int(self.mask.sum())

    def get_ratio(self) -> float:
        """Get ratio of cluster pixels to total pixels."""
        total = self.mask.size
        return self.get_pixel_count() / total if total > 0 else 0.0

    def __str__(self) -> str:
        return (
            f"ClusterMaskResult(label={self.label}, "
            f"pixels={self.get_pixel_count()}, {self.get_ratio() * 100:.2f}% of image)"
        )


# ============================================================================
# Masking
# ============================================================================

def apply_mask(image: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """
    Zero every channel of the pixels outside the mask.

    Args:
        image: Image, shape (H, W) or (H, W, C)
        mask: Boolean mask, shape (H, W)

    Returns:
        New image with the same dtype; pixels inside the mask are unchanged

    Raises:
        InputShapeError: If mask and image disagree on (H, W)
    """
    if mask.ndim != 2 or image.shape[:2] != mask.shape:
        raise InputShapeError(
            f"mask shape {mask.shape} doesn't match image shape {image.shape[:2]}"
        )

    keep = mask.astype(bool)
    if image.ndim == 3:
        keep = keep[:, :, np.newaxis]

    return np.where(keep, image, np.zeros((), dtype=image.dtype))


def mask_cluster(
    label_map: np.ndarray,
    label: int,
    image: np.ndarray
) -> ClusterMaskResult:
    """
    Build the mask and masked image of one cluster.

    Args:
        label_map: Pixel labels, shape (H, W)
        label: Target label value
        image: Original RGB image, shape (H, W, 3)

    Returns:
        ClusterMaskResult with mask = (label_map == label)

    Example:
        >>> mask3 = mask_cluster(pixel_labels, 3, he)
        >>> show_image(mask3.image, 'Objects in Cluster 3')
    """
    if label_map.ndim != 2:
        raise InputShapeError(f"label_map must be 2D (H, W), got shape {label_map.shape}")

    mask = label_map == label

    return ClusterMaskResult(
        label=int(label),
        mask=mask,
        image=apply_mask(image, mask)
    )


def mask_all_clusters(
    label_map: np.ndarray,
    image: np.ndarray,
    n_clusters: int
) -> Dict[int, ClusterMaskResult]:
    """
    Separate the image into one masked image per cluster.

    Args:
        label_map: Pixel labels, shape (H, W), values 1..n_clusters
        image: Original RGB image, shape (H, W, 3)
        n_clusters: Number of clusters K

    Returns:
        Dictionary {label: ClusterMaskResult} for labels 1..K
    """
    return {
        label: mask_cluster(label_map, label, image)
        for label in range(1, n_clusters + 1)
    }
