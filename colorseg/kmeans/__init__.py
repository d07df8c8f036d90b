"""
K-Means clustering module for image segmentation.
"""

from .kmeans import (
    KMeansConfig,
    KMeansResult,
    BaseKMeans,
    LloydKMeans,
    SklearnKMeans,
    assign_labels,
    update_centroids,
    select_cluster,
    create_kmeans,
    segment_features
)

__all__ = [
    'KMeansConfig',
    'KMeansResult',
    'BaseKMeans',
    'LloydKMeans',
    'SklearnKMeans',
    'assign_labels',
    'update_centroids',
    'select_cluster',
    'create_kmeans',
    'segment_features'
]
