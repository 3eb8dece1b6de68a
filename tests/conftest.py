import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from bmpedit import from_pixels, write_bitmap


def random_image(height, width, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


@pytest.fixture
def make_image():
    return random_image


@pytest.fixture
def sample_2x2():
    """The 2x2 example image used throughout the docs."""
    return from_pixels([
        [(10, 10, 10), (250, 250, 250)],
        [(80, 80, 80), (200, 50, 30)],
    ])


@pytest.fixture
def noisy_image():
    """Odd width so every row carries padding."""
    return random_image(7, 5, seed=42)


@pytest.fixture
def bitmap_file(tmp_path, noisy_image):
    path = tmp_path / "noisy.bmp"
    assert write_bitmap(path, noisy_image)
    return path
