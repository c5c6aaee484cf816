"""
Template data models for Print Studio.

This module defines the records that describe a print template and the
draw instructions produced from it.

Classes:
    Frame: Rectangular region of a template that holds one photo
    PrintTemplate: Background artwork plus its ordered frames
    DrawLayer: One positioned, clipped image for a rendering surface
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from PS_Libs.constants import (
    DEFAULT_PAPER_HEIGHT,
    DEFAULT_PAPER_WIDTH,
    FIELD_ASSIGNED_PHOTO_ID,
    FIELD_BACKGROUND_PATH,
    FIELD_FRAME_HEIGHT,
    FIELD_FRAME_ID,
    FIELD_FRAME_WIDTH,
    FIELD_FRAME_X,
    FIELD_FRAME_Y,
    FIELD_FRAMES,
    FIELD_HEIGHT,
    FIELD_PAN_OFFSET_X,
    FIELD_PAN_OFFSET_Y,
    FIELD_TEMPLATE_ID,
    FIELD_TEMPLATE_NAME,
    FIELD_WIDTH,
    LAYER_KIND_PHOTO,
    LAYER_KIND_TEMPLATE,
)


@dataclass
class Frame:
    """A named rectangle in template space.

    Attributes:
        frame_id: Stable identifier, unique within its template
        x: Left edge in template units
        y: Top edge in template units
        width: Frame width in template units
        height: Frame height in template units
        assigned_photo_id: Photo currently placed in the frame, if any
        pan_offset_x: Manual horizontal offset into the fitted photo (0 = auto-center)
        pan_offset_y: Manual vertical offset into the fitted photo (0 = auto-center)
    """
    frame_id: str
    x: float
    y: float
    width: float
    height: float
    assigned_photo_id: Optional[str] = None
    pan_offset_x: float = 0.0
    pan_offset_y: float = 0.0

    def __post_init__(self):
        self.frame_id = str(self.frame_id).strip()
        if not self.frame_id:
            raise ValueError("Frame requires a non-empty frame_id")

    @property
    def has_manual_pan(self) -> bool:
        """True if the operator panned the photo away from (0, 0)."""
        return self.pan_offset_x != 0 or self.pan_offset_y != 0

    def assign_photo(self, photo_id: str) -> None:
        """Place a photo in the frame; a new photo starts auto-centered."""
        self.assigned_photo_id = str(photo_id)
        self.pan_offset_x = 0.0
        self.pan_offset_y = 0.0

    def clear_photo(self) -> None:
        self.assigned_photo_id = None
        self.pan_offset_x = 0.0
        self.pan_offset_y = 0.0

    def pan_to(self, offset_x: float, offset_y: float) -> None:
        self.pan_offset_x = float(offset_x)
        self.pan_offset_y = float(offset_y)

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_FRAME_ID: self.frame_id,
            FIELD_FRAME_X: self.x,
            FIELD_FRAME_Y: self.y,
            FIELD_FRAME_WIDTH: self.width,
            FIELD_FRAME_HEIGHT: self.height,
            FIELD_ASSIGNED_PHOTO_ID: self.assigned_photo_id,
            FIELD_PAN_OFFSET_X: self.pan_offset_x,
            FIELD_PAN_OFFSET_Y: self.pan_offset_y,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Frame":
        photo_id = data.get(FIELD_ASSIGNED_PHOTO_ID)
        return cls(
            frame_id=data.get(FIELD_FRAME_ID, ""),
            x=float(data.get(FIELD_FRAME_X, 0.0)),
            y=float(data.get(FIELD_FRAME_Y, 0.0)),
            width=float(data.get(FIELD_FRAME_WIDTH, 0.0)),
            height=float(data.get(FIELD_FRAME_HEIGHT, 0.0)),
            assigned_photo_id=str(photo_id) if photo_id is not None else None,
            pan_offset_x=float(data.get(FIELD_PAN_OFFSET_X) or 0.0),
            pan_offset_y=float(data.get(FIELD_PAN_OFFSET_Y) or 0.0),
        )


@dataclass
class PrintTemplate:
    """Template artwork and the frames photos are composited into.

    Attributes:
        template_id: Stable identifier
        name: Display name
        background_image: PIL Image drawn above all photo layers (None if not loaded)
        frames: Frames in declaration order; this order is the layer order
        width: Canvas width in template units (defaults to background or paper width)
        height: Canvas height in template units (defaults to background or paper height)
        background_path: Where background_image is loaded from, for persistence
    """
    template_id: str
    name: str = ""
    background_image: Optional[Any] = None
    frames: List[Frame] = field(default_factory=list)
    width: Optional[float] = None
    height: Optional[float] = None
    background_path: Optional[str] = None

    def __post_init__(self):
        seen = set()
        for frame in self.frames:
            if frame.frame_id in seen:
                raise ValueError(f"Duplicate frame id in template {self.template_id}: {frame.frame_id}")
            seen.add(frame.frame_id)

    @property
    def canvas_size(self) -> Tuple[float, float]:
        if self.width is not None and self.height is not None:
            return float(self.width), float(self.height)
        if self.background_image is not None:
            width, height = self.background_image.size
            return float(width), float(height)
        return float(DEFAULT_PAPER_WIDTH), float(DEFAULT_PAPER_HEIGHT)

    def get_frame(self, frame_id: str) -> Frame:
        for frame in self.frames:
            if frame.frame_id == frame_id:
                return frame
        raise KeyError(f"No frame '{frame_id}' in template {self.template_id}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (excludes the background image object)."""
        return {
            FIELD_TEMPLATE_ID: self.template_id,
            FIELD_TEMPLATE_NAME: self.name,
            FIELD_BACKGROUND_PATH: self.background_path,
            FIELD_WIDTH: self.width,
            FIELD_HEIGHT: self.height,
            FIELD_FRAMES: [frame.to_dict() for frame in self.frames],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], background_image: Optional[Any] = None) -> "PrintTemplate":
        frames = [Frame.from_dict(f) for f in data.get(FIELD_FRAMES, [])]
        width = data.get(FIELD_WIDTH)
        height = data.get(FIELD_HEIGHT)
        return cls(
            template_id=str(data.get(FIELD_TEMPLATE_ID, "")),
            name=str(data.get(FIELD_TEMPLATE_NAME, "")),
            background_image=background_image,
            frames=frames,
            width=float(width) if width is not None else None,
            height=float(height) if height is not None else None,
            background_path=data.get(FIELD_BACKGROUND_PATH),
        )


@dataclass(frozen=True)
class DrawLayer:
    """A single draw instruction for a rendering surface.

    The image is drawn at (x, y) scaled to width x height, shifted by
    (-offset_x, -offset_y) and clipped to clip_width x clip_height
    starting at (x, y).
    """
    kind: str
    frame_id: Optional[str]
    image: Any
    x: float
    y: float
    width: float
    height: float
    offset_x: float = 0.0
    offset_y: float = 0.0
    clip_width: float = 0.0
    clip_height: float = 0.0

    @property
    def is_photo(self) -> bool:
        return self.kind == LAYER_KIND_PHOTO

    @property
    def is_template(self) -> bool:
        return self.kind == LAYER_KIND_TEMPLATE

    def geometry(self) -> Tuple[float, ...]:
        """All numeric fields, for comparing layers without the image."""
        return (
            self.x,
            self.y,
            self.width,
            self.height,
            self.offset_x,
            self.offset_y,
            self.clip_width,
            self.clip_height,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (excludes the image object)."""
        return {
            "kind": self.kind,
            "frame_id": self.frame_id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "offset_x": self.offset_x,
            "offset_y": self.offset_y,
            "clip_width": self.clip_width,
            "clip_height": self.clip_height,
        }
