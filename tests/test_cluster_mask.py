"""
Cluster Mask Tests
"""

import numpy as np
import pytest

from colorseg.errors import InputShapeError
from colorseg.masking import apply_mask, mask_all_clusters, mask_cluster


@pytest.fixture
def label_map():
    rng = np.random.default_rng(4)
    return rng.integers(1, 4, size=(6, 9))


@pytest.fixture
def image():
    rng = np.random.default_rng(5)
    return rng.integers(1, 256, size=(6, 9, 3), dtype=np.uint8)


class TestMaskCluster:
    def test_mask_is_label_equality(self, label_map, image):
        result = mask_cluster(label_map, 2, image)

        np.testing.assert_array_equal(result.mask, label_map == 2)
        assert result.mask.dtype == np.bool_
        assert result.label == 2

    def test_masked_out_pixels_are_zero(self, label_map, image):
        result = mask_cluster(label_map, 2, image)

        assert np.all(result.image[label_map != 2] == 0)

    def test_masked_in_pixels_unchanged(self, label_map, image):
        result = mask_cluster(label_map, 2, image)

        np.testing.assert_array_equal(result.image[label_map == 2], image[label_map == 2])
        assert result.image.dtype == image.dtype

    def test_inputs_not_modified(self, label_map, image):
        original_labels = label_map.copy()
        original_image = image.copy()

        mask_cluster(label_map, 1, image)

        np.testing.assert_array_equal(label_map, original_labels)
        np.testing.assert_array_equal(image, original_image)

    def test_absent_label_gives_empty_mask(self, label_map, image):
        result = mask_cluster(label_map, 7, image)

        assert result.get_pixel_count() == 0
        assert result.get_ratio() == 0.0
        assert np.all(result.image == 0)

    def test_shape_mismatch(self, label_map):
        with pytest.raises(InputShapeError):
            mask_cluster(label_map, 1, np.zeros((5, 9, 3), dtype=np.uint8))

    def test_rejects_flat_label_map(self, image):
        with pytest.raises(InputShapeError):
            mask_cluster(np.ones(54, dtype=int), 1, image)


class TestMaskAllClusters:
    def test_one_result_per_label(self, label_map, image):
        results = mask_all_clusters(label_map, image, 3)

        assert sorted(results) == [1, 2, 3]

    def test_masks_partition_the_image(self, label_map, image):
        results = mask_all_clusters(label_map, image, 3)

        coverage = sum(r.mask.astype(int) for r in results.values())
        np.testing.assert_array_equal(coverage, np.ones(label_map.shape, dtype=int))

        recombined = sum(r.image.astype(int) for r in results.values())
        np.testing.assert_array_equal(recombined, image.astype(int))


class TestApplyMask:
    def test_two_dimensional_image(self):
        values = np.arange(6, dtype=np.float64).reshape(2, 3) + 1
        mask = np.array([[True, False, True], [False, True, False]])

        masked = apply_mask(values, mask)

        np.testing.assert_array_equal(masked, [[1, 0, 3], [0, 5, 0]])

    def test_str(self, label_map, image):
        text = str(mask_cluster(label_map, 1, image))

        assert "label=1" in text
