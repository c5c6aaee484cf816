"""
LayoutLib - Template layout and frame geometry

This module provides the template/frame records and the cover-fit
geometry that maps a photo into a frame.
"""

from PS_Libs.LayoutLib.template_models import Frame, PrintTemplate, DrawLayer
from PS_Libs.LayoutLib.region_fit import (
    FitResult,
    PixelGeometry,
    InvalidDimensionsError,
    fit_image_to_frame,
)

__all__ = [
    "Frame",
    "PrintTemplate",
    "DrawLayer",
    "FitResult",
    "PixelGeometry",
    "InvalidDimensionsError",
    "fit_image_to_frame",
]
