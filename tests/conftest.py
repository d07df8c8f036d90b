import matplotlib

matplotlib.use("Agg")

import cv2
import numpy as np
import pytest

WHITE = (255, 255, 255)
BLUE = (0, 0, 255)
PINK = (255, 192, 203)


@pytest.fixture
def three_color_image():
    # 4x12: white | blue | pink, 16 pixels each
    image = np.zeros((4, 12, 3), dtype=np.uint8)
    image[:, 0:4] = WHITE
    image[:, 4:8] = BLUE
    image[:, 8:12] = PINK
    return image


@pytest.fixture
def region_slices():
    return {
        'white': (slice(None), slice(0, 4)),
        'blue': (slice(None), slice(4, 8)),
        'pink': (slice(None), slice(8, 12)),
    }


def lab_to_rgb(L, a, b):
    lab = np.array([[[L, a, b]]], dtype=np.float32)
    return cv2.cvtColor(lab, cv2.COLOR_Lab2RGB)[0, 0]


@pytest.fixture
def he_like_image():
    """
    Float RGB image with white, pink and two shades of blue.

    The two blues share a*b* and differ only in L*, so they fall in the same
    cluster; the dark one plays the nuclei.
    """
    image = np.zeros((8, 8, 3), dtype=np.float32)
    image[0:4, 0:4] = lab_to_rgb(95.0, 0.0, 0.0)      # white background
    image[0:4, 4:8] = lab_to_rgb(70.0, 40.0, 5.0)     # pink stroma
    image[4:8, 0:4] = lab_to_rgb(30.0, 20.0, -50.0)   # dark blue nuclei
    image[4:8, 4:8] = lab_to_rgb(60.0, 20.0, -50.0)   # light blue
    return image


@pytest.fixture
def blob_features():
    rng = np.random.default_rng(0)
    centers = np.array([[0.0, 0.0], [10.0, 10.0], [-10.0, 10.0]])
    points = [rng.normal(c, 1.0, size=(50, 2)) for c in centers]
    return np.vstack(points).astype(np.float32)
