"""
Region fitting: cover-fit geometry for placing a photo inside a frame.

The photo is scaled uniformly until it fully covers the frame. The frame
then acts as a clip window into the scaled photo, positioned by a draw
offset. A pan offset of exactly 0 on the cropped axis means "auto-center";
a photo deliberately panned to 0 cannot be told apart from one that was
never panned.

Example:
    >>> fit = fit_image_to_frame(400, 200, 100, 200)
    >>> fit.draw_width, fit.draw_height, fit.draw_offset_x
    (400.0, 200.0, 150.0)
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict

from PS_Libs.constants import ISSUE_INVALID_DIMENSIONS
from PS_Libs.pixel_math import round_half_away


class InvalidDimensionsError(ValueError):
    """An image or frame dimension is zero, negative or otherwise unusable."""

    kind = ISSUE_INVALID_DIMENSIONS


@dataclass(frozen=True)
class PixelGeometry:
    """FitResult rounded to whole pixels."""
    width: int
    height: int
    offset_x: int
    offset_y: int
    clip_width: int
    clip_height: int


@dataclass(frozen=True)
class FitResult:
    """Draw geometry for one photo in one frame.

    Attributes:
        draw_width: Width of the scaled photo
        draw_height: Height of the scaled photo
        draw_offset_x: Left edge of the clip window inside the scaled photo
        draw_offset_y: Top edge of the clip window inside the scaled photo
        clip_width: Always the frame width
        clip_height: Always the frame height
        scale: Uniform scale applied to the source photo
        auto_centered_x: True if draw_offset_x was computed, not taken from a pan
        auto_centered_y: True if draw_offset_y was computed, not taken from a pan
    """
    draw_width: float
    draw_height: float
    draw_offset_x: float
    draw_offset_y: float
    clip_width: float
    clip_height: float
    scale: float
    auto_centered_x: bool = False
    auto_centered_y: bool = False

    def scaled(self, factor: float) -> "FitResult":
        """Same geometry in a coordinate space scaled by factor (e.g. preview scale)."""
        if factor <= 0:
            raise InvalidDimensionsError(f"scale factor must be positive, got {factor}")
        return FitResult(
            draw_width=self.draw_width * factor,
            draw_height=self.draw_height * factor,
            draw_offset_x=self.draw_offset_x * factor,
            draw_offset_y=self.draw_offset_y * factor,
            clip_width=self.clip_width * factor,
            clip_height=self.clip_height * factor,
            scale=self.scale * factor,
            auto_centered_x=self.auto_centered_x,
            auto_centered_y=self.auto_centered_y,
        )

    def to_pixel_geometry(self) -> PixelGeometry:
        return PixelGeometry(
            width=round_half_away(self.draw_width),
            height=round_half_away(self.draw_height),
            offset_x=round_half_away(self.draw_offset_x),
            offset_y=round_half_away(self.draw_offset_y),
            clip_width=round_half_away(self.clip_width),
            clip_height=round_half_away(self.clip_height),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _require_positive(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidDimensionsError(f"{name} must be a number, got {value!r}")
    if not number > 0:
        raise InvalidDimensionsError(f"{name} must be positive, got {value}")
    return number


def fit_image_to_frame(
    image_width: float,
    image_height: float,
    frame_width: float,
    frame_height: float,
    pan_x: float = 0.0,
    pan_y: float = 0.0,
) -> FitResult:
    """
    Compute cover-fit geometry for an image inside a frame.

    A relatively wider image is fitted to the frame height and cropped
    horizontally; otherwise it is fitted to the frame width and cropped
    vertically. On the cropped axis a zero pan centers the crop; any other
    pan value is used as the offset directly. The other axis always takes
    its pan value unchanged.

    Args:
        image_width: Source image width in pixels
        image_height: Source image height in pixels
        frame_width: Frame width in template units
        frame_height: Frame height in template units
        pan_x: Manual horizontal offset (0 = auto-center when cropping horizontally)
        pan_y: Manual vertical offset (0 = auto-center when cropping vertically)

    Returns:
        FitResult

    Raises:
        InvalidDimensionsError: If any dimension is zero, negative or not a number
    """
    image_width = _require_positive("image_width", image_width)
    image_height = _require_positive("image_height", image_height)
    frame_width = _require_positive("frame_width", frame_width)
    frame_height = _require_positive("frame_height", frame_height)
    pan_x = float(pan_x)
    pan_y = float(pan_y)

    image_aspect = image_width / image_height
    frame_aspect = frame_width / frame_height

    if image_aspect > frame_aspect:
        draw_height = frame_height
        draw_width = draw_height * image_aspect
        auto_centered_x = pan_x == 0
        offset_x = (draw_width - frame_width) / 2 if auto_centered_x else pan_x
        return FitResult(
            draw_width=draw_width,
            draw_height=draw_height,
            draw_offset_x=offset_x,
            draw_offset_y=pan_y,
            clip_width=frame_width,
            clip_height=frame_height,
            scale=draw_height / image_height,
            auto_centered_x=auto_centered_x,
        )

    draw_width = frame_width
    draw_height = draw_width / image_aspect
    auto_centered_y = pan_y == 0
    offset_y = (draw_height - frame_height) / 2 if auto_centered_y else pan_y
    return FitResult(
        draw_width=draw_width,
        draw_height=draw_height,
        draw_offset_x=pan_x,
        draw_offset_y=offset_y,
        clip_width=frame_width,
        clip_height=frame_height,
        scale=draw_width / image_width,
        auto_centered_y=auto_centered_y,
    )
