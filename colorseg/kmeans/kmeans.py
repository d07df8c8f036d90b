"""
K-Means Clustering of a*b* Features

Clustering separates groups of objects: each pixel is a point in (a*, b*)
space and K-means finds the partition where points are as close as possible
to their own centroid and as far as possible from the others.

Objective Function: J(V) = Σ Σ ||xn - vl||²

Since K-means only finds a local minimum, the clustering is repeated several
times from independent initializations and the run with the lowest J(V) is
kept.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import List, Optional, Tuple

import numpy as np
from sklearn.cluster import KMeans as SklearnKMeansAlgorithm
from sklearn.cluster import kmeans_plusplus

from ..errors import InputShapeError, InvalidConfigurationError

logger = logging.getLogger(__name__)

INIT_METHODS = ('k-means++', 'random')
BACKENDS = ('lloyd', 'sklearn')


# ============================================================================
# Configuration
# ============================================================================

@dataclass
class KMeansConfig:
    """
    Configuration for K-means clustering.
    """
    n_clusters: int = 3
    """Number of clusters (K). H&E images have three colors: white, blue, pink."""

    n_attempts: int = 3
    """Number of independent initializations. Lowest inertia is kept."""

    max_iter: int = 100
    """Maximum number of Lloyd iterations per attempt."""

    init: str = 'k-means++'
    """Centroid initialization method.
    Options: 'k-means++' (smart), 'random' (K distinct data points)."""

    random_state: Optional[int] = 0
    """Random seed for reproducibility. None draws fresh entropy."""

    n_jobs: int = 1
    """Worker threads. 1 runs everything serially."""

    backend: str = 'lloyd'
    """Implementation: 'lloyd' (numpy) or 'sklearn' (scikit-learn)."""

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.n_clusters < 1:
            raise InvalidConfigurationError(
                f"n_clusters must be >= 1, got {self.n_clusters}"
            )
        if self.n_attempts < 1:
            raise InvalidConfigurationError(
                f"n_attempts must be >= 1, got {self.n_attempts}"
            )
        if self.max_iter < 1:
            raise InvalidConfigurationError(
                f"max_iter must be >= 1, got {self.max_iter}"
            )
        if self.n_jobs < 1:
            raise InvalidConfigurationError(
                f"n_jobs must be >= 1, got {self.n_jobs}"
            )
        if self.init not in INIT_METHODS:
            raise InvalidConfigurationError(
                f"init must be 'k-means++' or 'random', got '{self.init}'"
            )
        if self.backend not in BACKENDS:
            raise InvalidConfigurationError(
                f"backend must be 'lloyd' or 'sklearn', got '{self.backend}'"
            )


# ============================================================================
# Results
# ============================================================================

@dataclass
class KMeansResult:
    """
    Results from k-means clustering.
    """
    labels: np.ndarray
    """Cluster label of each pixel, values 1..K. Shape: (H*W,)"""

    centroids: np.ndarray
    """a*b* values of the cluster centroids. Row k is label k+1. Shape: (K, 2)"""

    inertia: float
    """Objective function J(V) of the selected attempt."""

    n_iter: int
    """Number of centroid updates of the selected attempt."""

    converged: bool
    """Whether assignments stopped changing within max_iter."""

    attempt_inertias: List[float] = field(default_factory=list)
    """Inertia of every attempt, in attempt order."""

    @property
    def n_clusters(self) -> int:
        return len(self.centroids)

    def reshape_labels(self, shape: Tuple[int, int]) -> np.ndarray:
        """
        Reshape flat labels to 2D image shape.

        Args:
            shape: (H, W) image dimensions

        Returns:
            labels_2d: (H, W) cluster labels
        """
        return self.labels.reshape(shape)

    def cluster_sizes(self) -> np.ndarray:
        """Pixel count per label, index 0 is label 1."""
        return np.bincount(self.labels, minlength=self.n_clusters + 1)[1:]

    def __str__(self) -> str:
        return (
            f"KMeansResult(K={self.n_clusters}, inertia={self.inertia:.4f}, "
            f"n_iter={self.n_iter}, converged={self.converged})"
        )


# ============================================================================
# Helper Functions
# ============================================================================

def _nearest_centroid(
    points: np.ndarray,
    centroids: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    distances_sq = np.sum(
        (points[:, np.newaxis, :] - centroids[np.newaxis, :, :]) ** 2,
        axis=2
    )
    # argmin returns the first minimum: ties go to the lower index
    labels = np.argmin(distances_sq, axis=1)
    return labels, distances_sq[np.arange(len(points)), labels]


def assign_labels(
    points: np.ndarray,
    centroids: np.ndarray,
    executor: Optional[Executor] = None,
    n_chunks: int = 1
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Assign every point to its nearest centroid.

    With an executor, the points are split into contiguous chunks that are
    mapped in parallel and concatenated back in order.

    Args:
        points: Feature array, shape (N, F)
        centroids: Cluster centers, shape (K, F)
        executor: Optional executor for data-parallel assignment
        n_chunks: Number of chunks when an executor is given

    Returns:
        labels: 0-based nearest centroid index, shape (N,)
        distances_sq: Squared distance to that centroid, shape (N,)
    """
    if executor is None or n_chunks <= 1 or len(points) < n_chunks:
        return _nearest_centroid(points, centroids)

    chunks = np.array_split(points, n_chunks)
    parts = list(executor.map(partial(_nearest_centroid, centroids=centroids), chunks))

    labels = np.concatenate([p[0] for p in parts])
    distances_sq = np.concatenate([p[1] for p in parts])

    return labels, distances_sq


def update_centroids(
    points: np.ndarray,
    labels: np.ndarray,
    previous: np.ndarray
) -> np.ndarray:
    """
    Recompute every centroid as the mean of its assigned points.

    A cluster that lost all of its points keeps its previous centroid.

    Args:
        points: Feature array, shape (N, F)
        labels: 0-based assignments, shape (N,)
        previous: Current centroids, shape (K, F)

    Returns:
        centroids: New centroids, shape (K, F)
    """
    k, n_features = previous.shape
    counts = np.bincount(labels, minlength=k)

    sums = np.empty_like(previous)
    for f in range(n_features):
        sums[:, f] = np.bincount(labels, weights=points[:, f], minlength=k)

    centroids = previous.copy()
    nonempty = counts > 0
    centroids[nonempty] = sums[nonempty] / counts[nonempty, np.newaxis]

    return centroids


def select_cluster(
    centroids: np.ndarray,
    target_chromaticity: Optional[Tuple[float, float]] = None
) -> int:
    """
    Pick the label of the cluster of interest from its centroid.

    K-means labels are arbitrary, so the cluster is chosen by color:
    - with a target (a*, b*), the nearest centroid wins;
    - without one, the centroid with the most negative b* wins (the bluest
      color, where hematoxylin-stained nuclei end up).

    Args:
        centroids: a*b* centroids, shape (K, 2), row k is label k+1
        target_chromaticity: Optional (a*, b*) reference color

    Returns:
        label: 1-based cluster label
    """
    if target_chromaticity is None:
        return int(np.argmin(centroids[:, 1])) + 1

    target = np.asarray(target_chromaticity, dtype=np.float64)
    distances_sq = np.sum((centroids - target) ** 2, axis=1)

    return int(np.argmin(distances_sq)) + 1


# ============================================================================
# Abstract Base Class (Interface)
# ============================================================================

class BaseKMeans(ABC):
    """
    Abstract base class for k-means clustering implementations.

    - LloydKMeans: numpy implementation of Lloyd's algorithm (default)
    - SklearnKMeans: Wrapper around scikit-learn

    All implementations take (N, F) features and return a KMeansResult with
    1-based labels.
    """

    def __init__(self, config: KMeansConfig):
        """
        Initialize k-means clusterer.

        Args:
            config: Configuration parameters
        """
        self.config = config
        self._fitted = False
        self._centroids: Optional[np.ndarray] = None

    @abstractmethod
    def fit_predict(self, features: np.ndarray) -> KMeansResult:
        """
        Fit k-means and return complete results.

        Args:
            features: Feature array, shape (N, F) where N = H*W

        Returns:
            result: KMeansResult with labels, centroids, inertia, etc.
        """
        pass

    def fit(self, features: np.ndarray) -> 'BaseKMeans':
        """Fit k-means, returning self for method chaining."""
        self.fit_predict(features)
        return self

    @property
    def centroids(self) -> np.ndarray:
        if not self._fitted:
            raise RuntimeError("Must call fit() before accessing centroids")
        return self._centroids

    def predict(self, features: np.ndarray) -> np.ndarray:
        """
        Predict 1-based cluster labels using fitted centroids.

        Raises:
            RuntimeError: If called before fit()
        """
        if not self._fitted:
            raise RuntimeError(
                "Must call fit() before predict(). "
                "Or use fit_predict() to do both."
            )

        labels, _ = assign_labels(np.asarray(features, dtype=np.float64), self._centroids)

        return labels + 1

    def compute_inertia(
        self,
        features: np.ndarray,
        labels: np.ndarray,
        centroids: Optional[np.ndarray] = None
    ) -> float:
        """
        Compute k-means objective function J(V).

        Args:
            features: Feature array, shape (N, F)
            labels: 1-based cluster assignments, shape (N,)
            centroids: Cluster centers, shape (K, F).
                      If None, uses fitted centroids.

        Returns:
            inertia: Sum of squared distances to assigned centroid
        """
        if centroids is None:
            if self._centroids is None:
                raise RuntimeError("Must fit() before computing inertia")
            centroids = self._centroids

        inertia = 0.0
        for k in range(len(centroids)):
            cluster_points = features[labels == k + 1]

            if len(cluster_points) > 0:
                inertia += float(np.sum((cluster_points - centroids[k]) ** 2))

        return inertia

    def _validate(self, features: np.ndarray) -> np.ndarray:
        if features.ndim != 2 or features.shape[0] == 0:
            raise InputShapeError(
                f"features must have shape (N, F) with N > 0, got {features.shape}"
            )

        points = features.astype(np.float64)
        if not np.all(np.isfinite(points)):
            raise InputShapeError("features contain NaN or infinite values")

        n_distinct = len(np.unique(points, axis=0))
        if self.config.n_clusters > n_distinct:
            raise InvalidConfigurationError(
                f"n_clusters ({self.config.n_clusters}) exceeds the number of "
                f"distinct feature vectors ({n_distinct})"
            )

        return points


# ============================================================================
# Lloyd Implementation
# ============================================================================

class LloydKMeans(BaseKMeans):
    """
    K-means clustering with Lloyd's algorithm.

    Algorithm (per attempt):
    1. Initialize K centroids (k-means++ or K distinct random points)
    2. Assign each point to the nearest centroid
    3. Update centroids as the mean of assigned points
    4. Repeat until assignments stop changing or max_iter

    Attempt i is seeded from child i of SeedSequence(random_state), so the
    first A attempts are the same whatever n_attempts is: adding attempts can
    only lower the selected inertia.

    With n_jobs > 1, attempts run on a thread pool; a single attempt instead
    spreads its assignment step over the pool.

    Example:
        >>> config = KMeansConfig(n_clusters=3, n_attempts=3)
        >>> result = LloydKMeans(config).fit_predict(ab)
        >>> pixel_labels = result.reshape_labels((h, w))
    """

    def fit_predict(self, features: np.ndarray) -> KMeansResult:
        points = self._validate(features)
        seeds = np.random.SeedSequence(self.config.random_state).spawn(
            self.config.n_attempts
        )

        if self.config.n_jobs > 1:
            with ThreadPoolExecutor(max_workers=self.config.n_jobs) as executor:
                if len(seeds) > 1:
                    runs = list(executor.map(partial(self._run_attempt, points), seeds))
                else:
                    runs = [self._run_attempt(points, seeds[0], executor)]
        else:
            runs = [self._run_attempt(points, seed) for seed in seeds]

        inertias = [run[2] for run in runs]
        for attempt, run in enumerate(runs, start=1):
            logger.debug(
                f"Attempt {attempt}/{len(runs)}: inertia={run[2]:.4f}, "
                f"n_iter={run[3]}, converged={run[4]}"
            )

        best = int(np.argmin(inertias))
        labels, centroids, inertia, n_iter, converged = runs[best]

        if not converged:
            logger.warning(
                f"K-means did not converge within max_iter={self.config.max_iter}"
            )

        self._centroids = centroids
        self._fitted = True

        return KMeansResult(
            labels=labels + 1,
            centroids=centroids,
            inertia=inertia,
            n_iter=n_iter,
            converged=converged,
            attempt_inertias=inertias
        )

    def _init_centroids(self, points: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        k = self.config.n_clusters

        if self.config.init == 'k-means++':
            seed = int(rng.integers(np.iinfo(np.int32).max))
            centers, _ = kmeans_plusplus(points, n_clusters=k, random_state=seed)
            return centers.astype(np.float64)

        distinct = np.unique(points, axis=0)
        chosen = rng.choice(len(distinct), size=k, replace=False)

        return distinct[chosen].copy()

    def _run_attempt(
        self,
        points: np.ndarray,
        seed: np.random.SeedSequence,
        executor: Optional[Executor] = None
    ) -> Tuple[np.ndarray, np.ndarray, float, int, bool]:
        rng = np.random.default_rng(seed)
        n_chunks = self.config.n_jobs if executor is not None else 1

        centroids = self._init_centroids(points, rng)
        labels = None
        distances_sq = None
        converged = False
        n_iter = 0

        for _ in range(self.config.max_iter + 1):
            new_labels, distances_sq = assign_labels(points, centroids, executor, n_chunks)

            if labels is not None and np.array_equal(new_labels, labels):
                converged = True
                break

            labels = new_labels
            if n_iter == self.config.max_iter:
                break

            centroids = update_centroids(points, labels, centroids)
            n_iter += 1

        inertia = float(np.sum(distances_sq))

        return labels, centroids, inertia, n_iter, converged


# ============================================================================
# Sklearn Implementation
# ============================================================================

class SklearnKMeans(BaseKMeans):
    """
    K-means clustering using scikit-learn.

    n_attempts maps to sklearn's n_init. n_jobs is ignored: sklearn manages
    its own OpenMP threads.
    """

    def __init__(self, config: KMeansConfig):
        super().__init__(config)
        self._sklearn_kmeans: Optional[SklearnKMeansAlgorithm] = None

    def fit_predict(self, features: np.ndarray) -> KMeansResult:
        points = self._validate(features)

        self._sklearn_kmeans = SklearnKMeansAlgorithm(
            n_clusters=self.config.n_clusters,
            init=self.config.init,
            n_init=self.config.n_attempts,
            max_iter=self.config.max_iter,
            random_state=self.config.random_state,
            algorithm='lloyd'
        )
        self._sklearn_kmeans.fit(points)

        self._centroids = self._sklearn_kmeans.cluster_centers_
        self._fitted = True

        n_iter = int(self._sklearn_kmeans.n_iter_)
        inertia = float(self._sklearn_kmeans.inertia_)

        return KMeansResult(
            labels=self._sklearn_kmeans.labels_.astype(np.int64) + 1,
            centroids=self._centroids,
            inertia=inertia,
            n_iter=n_iter,
            # sklearn sets n_iter_ = max_iter if it didn't converge
            converged=(n_iter < self.config.max_iter),
            attempt_inertias=[inertia]
        )


def create_kmeans(config: Optional[KMeansConfig] = None) -> BaseKMeans:
    """
    Factory for the backend named by config.backend.
    """
    config = config or KMeansConfig()

    if config.backend == 'sklearn':
        return SklearnKMeans(config)

    return LloydKMeans(config)


def segment_features(
    features: np.ndarray,
    shape: Tuple[int, int],
    config: Optional[KMeansConfig] = None
) -> Tuple[np.ndarray, KMeansResult]:
    """
    Cluster a*b* features and label every pixel of the image.

    Args:
        features: a*b* features, shape (H*W, 2), row-major
        shape: (H, W) image dimensions
        config: K-means configuration (defaults: K=3, 3 attempts)

    Returns:
        pixel_labels: Label map, shape (H, W), values 1..K
        result: KMeansResult with centroids and inertia

    Raises:
        InputShapeError: If features do not match H*W pixels
        InvalidConfigurationError: If K exceeds the distinct feature count

    Example:
        >>> pixel_labels, result = segment_features(ab, he.shape[:2])
        >>> show_image(pixel_labels, 'Image Labeled by Cluster Index')
    """
    h, w = shape
    if features.shape[0] != h * w:
        raise InputShapeError(
            f"Image shape {shape} doesn't match features ({features.shape[0]} pixels)"
        )

    kmeans = create_kmeans(config)
    result = kmeans.fit_predict(features)

    logger.info(
        f"K-means ({kmeans.config.backend}): K={result.n_clusters}, "
        f"inertia={result.inertia:.4f}, sizes={result.cluster_sizes().tolist()}"
    )

    return result.reshape_labels(shape), result
