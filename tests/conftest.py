"""
Pytest configuration and shared fixtures for Print Studio tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import pytest
from PIL import Image

from PS_Libs.ColorGradeLib.color_cube import build_identity_cube


TWO_CUBE_TEXT = """# Two point cube used across tests
TITLE "Test Cube"
LUT_3D_SIZE 2

0.2 0.4 0.6
0.1 0.1 0.1
0.2 0.2 0.2
0.3 0.3 0.3
0.4 0.4 0.4
0.5 0.5 0.5
0.6 0.6 0.6
0.8 0.6 0.4
"""


def make_gradient_image(width=32, height=32, alpha=255):
    """RGBA image whose red follows x, green follows y and blue mixes both."""
    img = Image.new("RGBA", (width, height))
    pixels = img.load()
    for y in range(height):
        for x in range(width):
            pixels[x, y] = (
                x * 255 // max(1, width - 1),
                y * 255 // max(1, height - 1),
                (x * 7 + y * 13) % 256,
                alpha,
            )
    return img


@pytest.fixture
def two_cube_text():
    """Cube text with LUT_3D_SIZE 2 and eight distinct entries."""
    return TWO_CUBE_TEXT


@pytest.fixture
def identity_cube():
    """Identity cube of size 5."""
    return build_identity_cube(5)


@pytest.fixture
def gradient_image():
    """32x32 RGBA gradient image."""
    return make_gradient_image()


@pytest.fixture
def temp_session_dir(tmp_path):
    """
    Provide a temporary directory for session files.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path object pointing to a temporary directory
    """
    return tmp_path
