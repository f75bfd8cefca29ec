"""Shared image fixtures."""

import numpy as np
import pytest
from PIL import Image, ImageDraw

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


@pytest.fixture
def solid_image() -> Image.Image:
    """100x100 image of a single color."""
    return Image.new("RGB", (100, 100), (120, 60, 200))


@pytest.fixture
def checkerboard_image() -> Image.Image:
    """4x4 checkerboard of 2x2 black and white blocks, black top-left."""
    image = Image.new("RGB", (4, 4), WHITE)
    draw = ImageDraw.Draw(image)
    draw.rectangle([0, 0, 1, 1], fill=BLACK)
    draw.rectangle([2, 2, 3, 3], fill=BLACK)
    return image


@pytest.fixture
def step_pixels() -> np.ndarray:
    """20x20 pixels: left half black, right half white."""
    pixels = np.zeros((20, 20, 3), dtype=np.uint8)
    pixels[:, 10:] = 255
    return pixels


@pytest.fixture
def shapes_image() -> Image.Image:
    """200x200 white canvas with a red square and a blue disc."""
    image = Image.new("RGB", (200, 200), WHITE)
    draw = ImageDraw.Draw(image)
    draw.rectangle([20, 20, 90, 90], fill=(220, 30, 30))
    draw.ellipse([100, 100, 180, 180], fill=(30, 40, 210))
    return image


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
