"""
Masking Module.

This module provides:
1. Per-cluster masks and masked images from a label map
2. Lightness sub-segmentation inside one cluster (dark vs light objects)
"""

from .cluster_mask import (
    ClusterMaskResult,
    apply_mask,
    mask_cluster,
    mask_all_clusters
)

from .intensity import (
    ThresholdConfig,
    IntensityThresholdResult,
    rescale_masked_lightness,
    split_by_lightness
)

__all__ = [
    # Cluster masks
    'ClusterMaskResult',
    'apply_mask',
    'mask_cluster',
    'mask_all_clusters',
    # Lightness threshold
    'ThresholdConfig',
    'IntensityThresholdResult',
    'rescale_masked_lightness',
    'split_by_lightness'
]
