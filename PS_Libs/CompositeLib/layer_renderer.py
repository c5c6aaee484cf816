"""
Reference rendering surface for draw layers.

Paints a list of DrawLayer instructions onto a Pillow canvas using standard
alpha compositing: each image is resized to its draw size, the clip window
is cut out at the draw offset, and the result is placed at the layer
position. Layers are composited in list order, so the template artwork
(last) ends up on top.
"""

from typing import Any, Optional, Sequence, Tuple

from PIL import Image

from PS_Libs.constants import DEFAULT_CANVAS_COLOR
from PS_Libs.LayoutLib.template_models import DrawLayer
from PS_Libs.pixel_math import round_half_away

RgbaColor = Tuple[int, int, int, int]


def _canvas_size_from_layers(layers: Sequence[DrawLayer]) -> Tuple[int, int]:
    for layer in layers:
        if layer.is_template:
            return round_half_away(layer.width), round_half_away(layer.height)
    raise ValueError("canvas_size is required when there is no template layer")


def _clip_layer_image(layer: DrawLayer, layer_idx: int) -> Optional[Any]:
    """
    Resize a layer's image to its draw size and cut out the clip window.

    Returns:
        RGBA PIL Image of the clip size, or None for an empty layer
    """
    if not hasattr(layer.image, "convert"):
        raise TypeError(f"Layer {layer_idx} image is not PIL Image, got {type(layer.image)}")

    draw_width = round_half_away(layer.width)
    draw_height = round_half_away(layer.height)
    clip_width = round_half_away(layer.clip_width)
    clip_height = round_half_away(layer.clip_height)
    if min(draw_width, draw_height, clip_width, clip_height) <= 0:
        return None

    image = layer.image.convert("RGBA")
    if image.size != (draw_width, draw_height):
        image = image.resize((draw_width, draw_height), Image.Resampling.LANCZOS)

    left = round_half_away(layer.offset_x)
    top = round_half_away(layer.offset_y)
    # Areas of the window outside the image come back transparent
    return image.crop((left, top, left + clip_width, top + clip_height))


def render_layers(
    layers: Sequence[DrawLayer],
    canvas_size: Optional[Tuple[int, int]] = None,
    background_color: RgbaColor = DEFAULT_CANVAS_COLOR,
    output_mode: str = "RGBA",
) -> Any:
    """
    Composite draw layers into a single image.

    Args:
        layers: Layers from build_layers(), bottom first
        canvas_size: Output (width, height); defaults to the template layer size
        background_color: Canvas fill under all layers
        output_mode: 'RGBA' or 'RGB'

    Returns:
        PIL Image in output_mode

    Raises:
        ValueError: If canvas size cannot be determined or output_mode unsupported
        TypeError: If a layer image is not a PIL Image
    """
    if output_mode not in ("RGBA", "RGB"):
        raise ValueError(f"Unsupported output_mode: {output_mode}")

    if canvas_size is None:
        canvas_size = _canvas_size_from_layers(layers)

    canvas = Image.new("RGBA", tuple(canvas_size), background_color)

    for layer_idx, layer in enumerate(layers):
        tile = _clip_layer_image(layer, layer_idx)
        if tile is None:
            continue

        overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        overlay.paste(tile, (round_half_away(layer.x), round_half_away(layer.y)))
        canvas = Image.alpha_composite(canvas, overlay)

    if output_mode == "RGB":
        return canvas.convert("RGB")
    return canvas


def flatten_for_print(
    layers: Sequence[DrawLayer],
    canvas_size: Optional[Tuple[int, int]] = None,
    background_color: RgbaColor = (255, 255, 255, 255),
) -> Any:
    """Flatten layers into an opaque RGB raster for printing or export."""
    return render_layers(layers, canvas_size, background_color, output_mode="RGB")
