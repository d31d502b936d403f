"""Test configuration for the palette gradient pipeline."""

import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


def solid_rgba(height, width, rgb, alpha=255):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :, :3] = rgb
    pixels[:, :, 3] = alpha
    return pixels


def horizontal_stripes(colors, rows_per_stripe=4, width=6):
    """RGBA image with one solid stripe per color, top to bottom."""
    return np.concatenate([solid_rgba(rows_per_stripe, width, c) for c in colors], axis=0)


@pytest.fixture
def black_white_4x4():
    """Top two rows black, bottom two rows white."""
    pixels = solid_rgba(4, 4, (255, 255, 255))
    pixels[:2, :, :3] = 0
    return pixels


@pytest.fixture
def write_png(tmp_path):
    """Save an RGBA array as a PNG under tmp_path and return the path."""
    def _write(pixels, name="image.png"):
        path = tmp_path / name
        Image.fromarray(np.asarray(pixels, dtype=np.uint8)).save(path)
        return path
    return _write
