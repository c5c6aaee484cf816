"""
ColorGradeLib - Color grading with 3D lookup tables

This module parses .cube color-cube files and applies them to images
by trilinear interpolation.
"""

from PS_Libs.ColorGradeLib.color_cube import (
    ColorCube,
    CubeParseError,
    MalformedHeaderError,
    InvalidDataLineError,
    parse_cube_text,
    load_cube_file,
    build_identity_cube,
)
from PS_Libs.ColorGradeLib.lut_filter import (
    LutFilter,
    apply_lut,
    apply_lut_in_place,
    make_filter_preview,
    get_supported_backends,
    split_row_bands,
)

__all__ = [
    "ColorCube",
    "CubeParseError",
    "MalformedHeaderError",
    "InvalidDataLineError",
    "parse_cube_text",
    "load_cube_file",
    "build_identity_cube",
    "LutFilter",
    "apply_lut",
    "apply_lut_in_place",
    "make_filter_preview",
    "get_supported_backends",
    "split_row_bands",
]
