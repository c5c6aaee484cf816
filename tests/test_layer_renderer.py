"""
Tests for the Pillow layer renderer.
"""

import numpy as np
import pytest
from PIL import Image

from PS_Libs.CompositeLib.composite_pipeline import build_layers
from PS_Libs.CompositeLib.layer_renderer import flatten_for_print, render_layers
from PS_Libs.LayoutLib.template_models import DrawLayer, Frame, PrintTemplate
from PS_Libs.constants import DEFAULT_CANVAS_COLOR, LAYER_KIND_PHOTO

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def _split_photo():
    """200x100 photo: red left half, green right half."""
    photo = Image.new("RGBA", (200, 100), RED)
    photo.paste(Image.new("RGBA", (100, 100), GREEN), (100, 0))
    return photo


def _template(pan_x=0.0):
    background = Image.new("RGBA", (200, 100), (0, 0, 0, 0))
    # Opaque artwork strip along the bottom edge
    background.paste(Image.new("RGBA", (200, 10), BLUE), (0, 90))
    frame = Frame("f1", 0, 0, 100, 100)
    frame.assign_photo("p1")
    frame.pan_to(pan_x, 0)
    return PrintTemplate("t1", background_image=background, frames=[frame])


class TestRenderLayers:
    """Tests for render_layers function."""

    def test_auto_centered_crop_shows_middle_of_photo(self):
        result = build_layers(_template(), {"p1": _split_photo()}, None)

        canvas = render_layers(result.layers)

        assert canvas.size == (200, 100)
        assert canvas.getpixel((25, 50)) == RED
        assert canvas.getpixel((75, 50)) == GREEN

    def test_manual_pan_shows_right_half(self):
        result = build_layers(_template(pan_x=100), {"p1": _split_photo()}, None)

        canvas = render_layers(result.layers)

        assert canvas.getpixel((25, 50)) == GREEN
        assert canvas.getpixel((75, 50)) == GREEN

    def test_outside_frame_shows_canvas_color(self):
        result = build_layers(_template(), {"p1": _split_photo()}, None)
        canvas = render_layers(result.layers)
        assert canvas.getpixel((150, 50)) == DEFAULT_CANVAS_COLOR

    def test_template_is_drawn_on_top(self):
        result = build_layers(_template(), {"p1": _split_photo()}, None)

        canvas = render_layers(result.layers)

        assert canvas.getpixel((25, 95)) == BLUE
        assert canvas.getpixel((150, 95)) == BLUE

    def test_explicit_canvas_size_without_template(self):
        layer = DrawLayer(LAYER_KIND_PHOTO, "f1", _split_photo(), 0, 0, 200, 100, 0, 0, 50, 50)

        canvas = render_layers([layer], canvas_size=(60, 60))

        assert canvas.size == (60, 60)
        assert canvas.getpixel((10, 10)) == RED
        assert canvas.getpixel((55, 55)) == DEFAULT_CANVAS_COLOR

    def test_missing_canvas_size_raises(self):
        layer = DrawLayer(LAYER_KIND_PHOTO, "f1", _split_photo(), 0, 0, 200, 100, 0, 0, 50, 50)
        with pytest.raises(ValueError):
            render_layers([layer])

    def test_layer_is_resized_to_draw_size(self):
        layer = DrawLayer(LAYER_KIND_PHOTO, "f1", _split_photo(), 0, 0, 100, 50, 0, 0, 100, 50)

        canvas = render_layers([layer], canvas_size=(100, 50))

        assert canvas.getpixel((10, 25)) == RED
        assert canvas.getpixel((90, 25)) == GREEN

    def test_zero_size_layer_is_skipped(self):
        layer = DrawLayer(LAYER_KIND_PHOTO, "f1", _split_photo(), 0, 0, 0, 0)
        canvas = render_layers([layer], canvas_size=(10, 10))
        assert canvas.getpixel((5, 5)) == DEFAULT_CANVAS_COLOR

    def test_non_image_layer_raises(self):
        layer = DrawLayer(LAYER_KIND_PHOTO, "f1", "photo.jpg", 0, 0, 10, 10, 0, 0, 10, 10)
        with pytest.raises(TypeError):
            render_layers([layer], canvas_size=(10, 10))

    def test_identity_graded_photo_renders_unchanged(self, gradient_image, identity_cube):
        frame = Frame("f1", 0, 0, 32, 32)
        frame.assign_photo("p1")
        template = PrintTemplate(
            "t1",
            background_image=Image.new("RGBA", (32, 32), (0, 0, 0, 0)),
            frames=[frame],
        )
        result = build_layers(template, {"p1": gradient_image}, identity_cube)

        canvas = render_layers(result.layers)

        diff = np.abs(np.asarray(canvas, dtype=np.int16) - np.asarray(gradient_image, dtype=np.int16))
        assert diff.max() <= 1

    def test_unsupported_mode(self):
        with pytest.raises(ValueError):
            render_layers([], canvas_size=(10, 10), output_mode="CMYK")


class TestFlattenForPrint:
    """Tests for flatten_for_print function."""

    def test_returns_rgb_on_white(self):
        result = build_layers(_template(), {"p1": _split_photo()}, None)

        flat = flatten_for_print(result.layers)

        assert flat.mode == "RGB"
        assert flat.getpixel((150, 50)) == (255, 255, 255)
        assert flat.getpixel((25, 50)) == (255, 0, 0)
