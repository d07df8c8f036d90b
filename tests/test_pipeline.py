"""
End-to-End Pipeline Tests
"""

import numpy as np
import pytest

from colorseg import (
    ColorSegmentationPipeline,
    EmptyMaskError,
    InputShapeError,
    InvalidConfigurationError,
    SegmentationConfig,
    segment_nuclei,
)
from colorseg.kmeans import KMeansConfig
from colorseg.masking import ThresholdConfig


class TestThreeColorScenario:
    """White, pure blue and pink regions of 16 pixels each, K=3, A=1"""

    def _run(self, image, backend='lloyd'):
        config = SegmentationConfig(
            kmeans=KMeansConfig(n_clusters=3, n_attempts=1, backend=backend)
        )
        return ColorSegmentationPipeline(config).run(image)

    @pytest.mark.parametrize("backend", ["lloyd", "sklearn"])
    def test_one_label_per_region(self, three_color_image, region_slices, backend):
        result = self._run(three_color_image, backend)

        assert len(np.unique(result.label_map)) == 3

        region_labels = []
        for region in region_slices.values():
            labels = np.unique(result.label_map[region])
            assert len(labels) == 1
            region_labels.append(labels[0])

        assert sorted(region_labels) == [1, 2, 3]

    def test_blue_cluster_is_selected(self, three_color_image, region_slices):
        result = self._run(three_color_image)

        blue_label = result.label_map[region_slices['blue']][0, 0]
        assert result.target_label == blue_label

    def test_uniform_blue_cluster_keeps_every_pixel(self, three_color_image, region_slices):
        result = self._run(three_color_image)

        expected = np.zeros((4, 12), dtype=bool)
        expected[region_slices['blue']] = True
        np.testing.assert_array_equal(result.nuclei.mask, expected)

    def test_cluster_images(self, three_color_image):
        result = self._run(three_color_image)

        for label, cluster in result.clusters.items():
            mask = result.label_map == label
            np.testing.assert_array_equal(cluster.image[mask], three_color_image[mask])
            assert np.all(cluster.image[~mask] == 0)


class TestNucleiScenario:
    """Dark and light blue share a cluster; only the dark blue stays"""

    def test_dark_blue_nuclei_isolated(self, he_like_image):
        result = segment_nuclei(he_like_image)

        expected = np.zeros((8, 8), dtype=bool)
        expected[4:8, 0:4] = True

        blue_mask = result.clusters[result.target_label].mask
        np.testing.assert_array_equal(blue_mask[4:8], np.ones((4, 8), dtype=bool))
        np.testing.assert_array_equal(result.nuclei_mask, expected)

    def test_refined_mask_within_cluster(self, he_like_image):
        result = segment_nuclei(he_like_image)

        cluster_mask = result.clusters[result.target_label].mask
        assert not np.any(result.nuclei_mask & ~cluster_mask)

    def test_explicit_target_label(self, he_like_image):
        auto = segment_nuclei(he_like_image)
        white_label = int(auto.label_map[0, 0])

        config = SegmentationConfig(target_label=white_label)
        result = segment_nuclei(he_like_image, config)

        assert result.target_label == white_label

    def test_target_chromaticity(self, he_like_image):
        config = SegmentationConfig(target_chromaticity=(40.0, 5.0))
        result = segment_nuclei(he_like_image, config)

        assert result.target_label == result.label_map[0, 4]

    def test_deterministic(self, he_like_image):
        first = segment_nuclei(he_like_image)
        second = segment_nuclei(he_like_image)

        np.testing.assert_array_equal(first.label_map, second.label_map)
        np.testing.assert_array_equal(first.nuclei_mask, second.nuclei_mask)


class TestStages:
    def test_stage_outputs(self, he_like_image):
        result = segment_nuclei(he_like_image)

        assert result.lab.shape == (8, 8, 3)
        assert result.features.shape == (64, 2)
        assert result.label_map.shape == (8, 8)
        assert result.label_map.min() >= 1
        assert result.label_map.max() <= 3
        assert "K=3" in str(result)

    def test_stages_compose_explicitly(self, he_like_image):
        pipeline = ColorSegmentationPipeline()

        lab = pipeline.convert(he_like_image)
        features = pipeline.extract_features(lab)
        label_map, kmeans_result = pipeline.cluster(features, he_like_image.shape[:2])
        clusters = pipeline.mask_clusters(label_map, he_like_image)
        target = pipeline.choose_target(kmeans_result)
        nuclei = pipeline.segment_nuclei(lab, clusters[target], he_like_image)

        np.testing.assert_array_equal(nuclei.mask, pipeline.run(he_like_image).nuclei_mask)


class TestErrors:
    def test_target_label_out_of_range(self):
        with pytest.raises(InvalidConfigurationError):
            SegmentationConfig(target_label=4)

        with pytest.raises(InvalidConfigurationError):
            SegmentationConfig(target_label=0)

    def test_grayscale_image(self):
        with pytest.raises(InputShapeError):
            segment_nuclei(np.zeros((4, 4), dtype=np.uint8))

    def test_too_few_colors(self):
        image = np.zeros((4, 4, 3), dtype=np.uint8)
        image[:, 2:] = (0, 0, 255)

        with pytest.raises(InvalidConfigurationError):
            segment_nuclei(image)

    def test_black_target_cluster(self):
        """A black cluster has no non-zero lightness to threshold"""
        image = np.zeros((4, 4, 3), dtype=np.uint8)
        image[:, 2:] = (0, 0, 255)

        config = SegmentationConfig(
            kmeans=KMeansConfig(n_clusters=2),
            threshold=ThresholdConfig(rescale='image'),
        )

        pipeline = ColorSegmentationPipeline(config)
        lab = pipeline.convert(image)
        label_map, _ = pipeline.cluster(pipeline.extract_features(lab), (4, 4))
        clusters = pipeline.mask_clusters(label_map, image)
        black = int(label_map[0, 0])

        with pytest.raises(EmptyMaskError):
            pipeline.segment_nuclei(lab, clusters[black], image)
