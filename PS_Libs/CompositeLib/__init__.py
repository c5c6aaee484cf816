"""
CompositeLib - Frame compositing

This module builds ordered, clipped draw layers from a template, its
photos and the selected color filter, and provides a Pillow renderer for
those layers.
"""

from PS_Libs.CompositeLib.composite_pipeline import (
    CompositeIssue,
    CompositeResult,
    CompositeSession,
    resolve_filter_cube,
    build_layers,
    run_composite,
)
from PS_Libs.CompositeLib.layer_renderer import render_layers, flatten_for_print

__all__ = [
    "CompositeIssue",
    "CompositeResult",
    "CompositeSession",
    "resolve_filter_cube",
    "build_layers",
    "run_composite",
    "render_layers",
    "flatten_for_print",
]
