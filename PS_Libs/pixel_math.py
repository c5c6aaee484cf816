"""
Shared rounding helpers.

Every place that turns a float into a pixel value or pixel coordinate goes
through round_half_away so repeated runs produce identical integers.
"""

import math

import numpy as np


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def clamp_byte(value: float) -> int:
    return max(0, min(255, round_half_away(value)))


def round_half_away_array(values: np.ndarray) -> np.ndarray:
    """Vectorised round_half_away. Returns float64 with integral values."""
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def clamp_byte_array(values: np.ndarray) -> np.ndarray:
    return np.clip(round_half_away_array(values), 0, 255).astype(np.uint8)
