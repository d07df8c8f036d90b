"""
Color-Based Segmentation Pipeline

Five stages composed explicitly; every stage takes the previous stage's
output as an argument and returns new arrays:

1. rgb_to_lab            RGB -> L*a*b*
2. extract_chromaticity  L*a*b* -> (H*W, 2) a*b* features
3. segment_features      features -> label map 1..K (K-means)
4. mask_all_clusters     label map -> one mask and image per cluster
5. split_by_lightness    cluster mask -> nuclei mask (L* Otsu threshold)
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

from .color import rgb_to_lab, lightness_channel, extract_chromaticity
from .errors import InvalidConfigurationError
from .kmeans import KMeansConfig, KMeansResult, segment_features, select_cluster
from .masking import (
    ClusterMaskResult,
    IntensityThresholdResult,
    ThresholdConfig,
    mask_all_clusters,
    split_by_lightness
)

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration
# ============================================================================

@dataclass
class SegmentationConfig:
    """
    Configuration of the full pipeline.

    Attributes:
        kmeans: K-means parameters (K, attempts, seed...)
        threshold: Lightness threshold parameters
        target_label: Cluster holding the nuclei. None selects it from the
                      centroids (see select_cluster).
        target_chromaticity: Optional (a*, b*) reference color used when
                             target_label is None
    """
    kmeans: KMeansConfig = field(default_factory=KMeansConfig)
    threshold: ThresholdConfig = field(default_factory=ThresholdConfig)
    target_label: Optional[int] = None
    target_chromaticity: Optional[Tuple[float, float]] = None

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.target_label is not None and not (
            1 <= self.target_label <= self.kmeans.n_clusters
        ):
            raise InvalidConfigurationError(
                f"target_label must be in [1, {self.kmeans.n_clusters}], "
                f"got {self.target_label}"
            )


# ============================================================================
# Results
# ============================================================================

@dataclass
class SegmentationResult:
    """
    Output of every stage of one pipeline run.
    """
    image: np.ndarray
    """Original RGB image, shape (H, W, 3)."""

    lab: np.ndarray
    """L*a*b* image, shape (H, W, 3)."""

    features: np.ndarray
    """a*b* features, shape (H*W, 2)."""

    kmeans: KMeansResult
    """Clustering result of the selected attempt."""

    label_map: np.ndarray
    """Pixel labels, shape (H, W), values 1..K."""

    clusters: Dict[int, ClusterMaskResult]
    """Mask and masked image of every cluster."""

    target_label: int
    """Cluster that was sub-segmented."""

    nuclei: IntensityThresholdResult
    """Refined mask and image of the nuclei."""

    @property
    def nuclei_mask(self) -> np.ndarray:
        return self.nuclei.mask

    def __str__(self) -> str:
        h, w = self.label_map.shape
        return (
            f"SegmentationResult({h}x{w}, K={self.kmeans.n_clusters}, "
            f"target={self.target_label}, nuclei_pixels={int(self.nuclei.mask.sum())})"
        )


# ============================================================================
# Pipeline
# ============================================================================

class ColorSegmentationPipeline:
    """
    Segment an H&E image by color and isolate the dark blue nuclei.

    Each stage is a public method, so intermediate values can be inspected or
    replaced; run() chains them.

    Example:
        >>> he = load_image('hestain.png').image
        >>> pipeline = ColorSegmentationPipeline(SegmentationConfig())
        >>> result = pipeline.run(he)
        >>> show_image(result.nuclei.image, 'Blue Nuclei')
    """

    def __init__(self, config: Optional[SegmentationConfig] = None):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration. If None, uses defaults.
        """
        self.config = config or SegmentationConfig()

    def convert(self, image: np.ndarray) -> np.ndarray:
        """Stage 1: RGB -> L*a*b*."""
        return rgb_to_lab(image)

    def extract_features(self, lab: np.ndarray) -> np.ndarray:
        """Stage 2: L*a*b* -> a*b* features."""
        return extract_chromaticity(lab)

    def cluster(
        self,
        features: np.ndarray,
        shape: Tuple[int, int]
    ) -> Tuple[np.ndarray, KMeansResult]:
        """Stage 3: features -> label map."""
        return segment_features(features, shape, self.config.kmeans)

    def mask_clusters(
        self,
        label_map: np.ndarray,
        image: np.ndarray
    ) -> Dict[int, ClusterMaskResult]:
        """Stage 4: label map -> masked image per cluster."""
        return mask_all_clusters(label_map, image, self.config.kmeans.n_clusters)

    def choose_target(self, kmeans_result: KMeansResult) -> int:
        """Label of the cluster to sub-segment."""
        if self.config.target_label is not None:
            return self.config.target_label

        return select_cluster(kmeans_result.centroids, self.config.target_chromaticity)

    def segment_nuclei(
        self,
        lab: np.ndarray,
        cluster: ClusterMaskResult,
        image: np.ndarray
    ) -> IntensityThresholdResult:
        """Stage 5: cluster mask -> nuclei mask."""
        return split_by_lightness(
            lightness_channel(lab),
            cluster.mask,
            image,
            self.config.threshold
        )

    def run(self, image: np.ndarray) -> SegmentationResult:
        """
        Run all stages on one image.

        Args:
            image: RGB image, shape (H, W, 3)

        Returns:
            SegmentationResult with the output of every stage

        Raises:
            InputShapeError: If image is not (H, W, 3)
            InvalidConfigurationError: If K exceeds the distinct colors
            EmptyMaskError: If the target cluster leaves nothing to threshold
        """
        lab = self.convert(image)
        logger.info(f"Converted {image.shape[0]}x{image.shape[1]} image to L*a*b*")

        features = self.extract_features(lab)
        label_map, kmeans_result = self.cluster(features, image.shape[:2])

        clusters = self.mask_clusters(label_map, image)

        target = self.choose_target(kmeans_result)
        a_star, b_star = kmeans_result.centroids[target - 1]
        logger.info(
            f"Target cluster {target}: centroid a*={a_star:.2f}, b*={b_star:.2f}, "
            f"{clusters[target].get_pixel_count()} pixels"
        )

        nuclei = self.segment_nuclei(lab, clusters[target], image)

        return SegmentationResult(
            image=image,
            lab=lab,
            features=features,
            kmeans=kmeans_result,
            label_map=label_map,
            clusters=clusters,
            target_label=target,
            nuclei=nuclei
        )


def segment_nuclei(
    image: np.ndarray,
    config: Optional[SegmentationConfig] = None
) -> SegmentationResult:
    """Run ColorSegmentationPipeline(config) on one image."""
    return ColorSegmentationPipeline(config).run(image)
