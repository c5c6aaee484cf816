"""
Composite Pipeline - turns a template, its photos and a color filter into
an ordered list of draw layers.

For each frame, in declaration order, the assigned photo is resolved,
cover-fitted into the frame, optionally graded with the active color cube,
and emitted as a clipped DrawLayer. The template artwork is emitted last so
it sits above every photo.

Nothing in here raises for bad input data: unusable filters fall back to
unfiltered output, and per-frame problems are collected as CompositeIssue
records on the CompositeResult while the remaining frames carry on.

Example:
    >>> session = CompositeSession(template=template, filter_id="warm", cube_text=text)
    >>> result = run_composite(session, {"photo-1": photo})
    >>> for issue in result.issues:
    ...     print(issue.kind, issue.frame_id, issue.message)
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from PS_Libs.constants import (
    DEFAULT_BACKEND,
    DEFAULT_PREVIEW_SCALE,
    FIELD_BACKEND,
    FIELD_CUBE_TEXT,
    FIELD_FILTER_ID,
    FIELD_MAX_WORKERS,
    FIELD_SCALE,
    FIELD_TEMPLATE,
    FIELD_USE_THREADING,
    ISSUE_DEGENERATE_CUBE,
    ISSUE_MALFORMED_HEADER,
    ISSUE_MISSING_PHOTO,
    ISSUE_SIZE_MISMATCH,
    LAYER_KIND_PHOTO,
    LAYER_KIND_TEMPLATE,
    ORIGINAL_FILTER_ID,
    SUPPORTED_BACKENDS,
)
from PS_Libs.ColorGradeLib.color_cube import ColorCube, CubeParseError, parse_cube_text
from PS_Libs.ColorGradeLib.lut_filter import LutFilter
from PS_Libs.LayoutLib.region_fit import InvalidDimensionsError, fit_image_to_frame
from PS_Libs.LayoutLib.template_models import DrawLayer, Frame, PrintTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompositeIssue:
    """A non-fatal problem found while compositing.

    Attributes:
        kind: One of the ISSUE_* constants
        message: Human-readable detail for logs or an operator
        frame_id: Frame the issue applies to (None for filter-level issues)
    """
    kind: str
    message: str
    frame_id: Optional[str] = None


@dataclass
class CompositeResult:
    """Layers ready for a rendering surface plus everything that went wrong.

    Attributes:
        layers: Photo layers in frame order, then the template layer
        issues: Problems that were recovered from
        cancelled: True if the job was stopped before every frame was processed
    """
    layers: List[DrawLayer] = field(default_factory=list)
    issues: List[CompositeIssue] = field(default_factory=list)
    cancelled: bool = False

    @property
    def photo_layers(self) -> List[DrawLayer]:
        return [layer for layer in self.layers if layer.is_photo]

    @property
    def template_layer(self) -> Optional[DrawLayer]:
        for layer in self.layers:
            if layer.is_template:
                return layer
        return None

    def issues_of_kind(self, kind: str) -> List[CompositeIssue]:
        return [issue for issue in self.issues if issue.kind == kind]


@dataclass
class CompositeSession:
    """Everything one compositing run needs, passed explicitly by value.

    Attributes:
        template: Template with frames and background artwork
        filter_id: Selected filter (None or "original" means unfiltered)
        cube_text: Contents of the selected filter's .cube file
        scale: Multiplier from template units to output pixels
        backend: LUT backend ('numpy' or 'pil')
        use_threading: Grade row bands on a thread pool
        max_workers: Thread pool size (None = CPU count)
    """
    template: PrintTemplate
    filter_id: Optional[str] = None
    cube_text: Optional[str] = None
    scale: float = DEFAULT_PREVIEW_SCALE
    backend: str = DEFAULT_BACKEND
    use_threading: bool = True
    max_workers: Optional[int] = None

    def __post_init__(self):
        if not self.scale > 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if self.backend not in SUPPORTED_BACKENDS:
            raise ValueError(f"Unsupported backend: {self.backend}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (excludes image objects)."""
        return {
            FIELD_TEMPLATE: self.template.to_dict(),
            FIELD_FILTER_ID: self.filter_id,
            FIELD_CUBE_TEXT: self.cube_text,
            FIELD_SCALE: self.scale,
            FIELD_BACKEND: self.backend,
            FIELD_USE_THREADING: self.use_threading,
            FIELD_MAX_WORKERS: self.max_workers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], background_image: Optional[Any] = None) -> "CompositeSession":
        max_workers = data.get(FIELD_MAX_WORKERS)
        return cls(
            template=PrintTemplate.from_dict(data.get(FIELD_TEMPLATE, {}), background_image),
            filter_id=data.get(FIELD_FILTER_ID),
            cube_text=data.get(FIELD_CUBE_TEXT),
            scale=float(data.get(FIELD_SCALE, DEFAULT_PREVIEW_SCALE)),
            backend=data.get(FIELD_BACKEND, DEFAULT_BACKEND),
            use_threading=bool(data.get(FIELD_USE_THREADING, True)),
            max_workers=int(max_workers) if max_workers is not None else None,
        )


def resolve_filter_cube(
    filter_id: Optional[str],
    cube_text: Optional[str],
    strict: bool = True,
) -> Tuple[Optional[ColorCube], List[CompositeIssue]]:
    """
    Parse the selected filter, falling back to no filter on any problem.

    Args:
        filter_id: Selected filter id; None or "original" selects no filter
        cube_text: Contents of the filter's .cube file
        strict: Passed to parse_cube_text

    Returns:
        Tuple of (cube or None, issues). None means the photos are
        composited unfiltered.
    """
    if filter_id is None or filter_id == ORIGINAL_FILTER_ID:
        return None, []

    issues: List[CompositeIssue] = []

    if not cube_text:
        message = f"Filter '{filter_id}' has no cube data; using unfiltered output"
        logger.warning(message)
        issues.append(CompositeIssue(ISSUE_MALFORMED_HEADER, message))
        return None, issues

    try:
        cube = parse_cube_text(cube_text, strict=strict)
    except CubeParseError as e:
        message = f"Filter '{filter_id}' could not be parsed ({e}); using unfiltered output"
        logger.warning(message)
        issues.append(CompositeIssue(e.kind, message))
        return None, issues

    if len(cube.entries) != cube.expected_entry_count:
        issues.append(CompositeIssue(
            ISSUE_SIZE_MISMATCH,
            f"Filter '{filter_id}' has {len(cube.entries)} entries, "
            f"expected {cube.expected_entry_count}",
        ))

    if cube.is_degenerate:
        message = f"Filter '{filter_id}' is degenerate (size {cube.size}); using unfiltered output"
        logger.warning(message)
        issues.append(CompositeIssue(ISSUE_DEGENERATE_CUBE, message))
        return None, issues

    return cube, issues


def _build_photo_layer(
    frame: Frame,
    photo: Any,
    lut_filter: Optional[LutFilter],
    active_cube: Optional[ColorCube],
    graded_cache: Dict[str, Any],
    scale: float,
) -> DrawLayer:
    image_width, image_height = photo.size
    fit = fit_image_to_frame(
        image_width,
        image_height,
        frame.width,
        frame.height,
        frame.pan_offset_x,
        frame.pan_offset_y,
    ).scaled(scale)

    image = photo
    if lut_filter is not None and active_cube is not None:
        photo_id = frame.assigned_photo_id
        if photo_id not in graded_cache:
            graded_cache[photo_id] = lut_filter.apply(photo, active_cube)
        image = graded_cache[photo_id]

    return DrawLayer(
        kind=LAYER_KIND_PHOTO,
        frame_id=frame.frame_id,
        image=image,
        x=frame.x * scale,
        y=frame.y * scale,
        width=fit.draw_width,
        height=fit.draw_height,
        offset_x=fit.draw_offset_x,
        offset_y=fit.draw_offset_y,
        clip_width=fit.clip_width,
        clip_height=fit.clip_height,
    )


def _build_template_layer(template: PrintTemplate, scale: float) -> Optional[DrawLayer]:
    background = template.background_image
    if background is None:
        logger.warning(f"Template {template.template_id} has no background image loaded")
        return None

    width, height = background.size
    return DrawLayer(
        kind=LAYER_KIND_TEMPLATE,
        frame_id=None,
        image=background,
        x=0.0,
        y=0.0,
        width=width * scale,
        height=height * scale,
        clip_width=width * scale,
        clip_height=height * scale,
    )


def build_layers(
    template: PrintTemplate,
    photos: Mapping[str, Any],
    active_cube: Optional[ColorCube],
    scale: float = DEFAULT_PREVIEW_SCALE,
    backend: str = DEFAULT_BACKEND,
    use_threading: bool = True,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> CompositeResult:
    """
    Build the ordered draw layers for a template.

    Args:
        template: Template with frames in layer order
        photos: Mapping of photo id -> PIL Image
        active_cube: Cube to grade photos with (None = unfiltered)
        scale: Multiplier from template units to output pixels
        backend: LUT backend
        use_threading: Grade each photo's row bands on a thread pool
        max_workers: Thread pool size
        cancel_event: Checked before each frame; once set, no further
                      frames are processed

    Returns:
        CompositeResult. Photo layers follow frame order; the template
        layer is always last. Caller photos are never modified.

    Raises:
        ValueError: If scale is not positive
    """
    if not scale > 0:
        raise ValueError(f"scale must be positive, got {scale}")

    result = CompositeResult()

    lut_filter: Optional[LutFilter] = None
    if active_cube is not None:
        if active_cube.is_degenerate:
            message = f"Cube of size {active_cube.size} is degenerate; photos left unfiltered"
            logger.warning(message)
            result.issues.append(CompositeIssue(ISSUE_DEGENERATE_CUBE, message))
        else:
            lut_filter = LutFilter(backend, use_threading, max_workers)

    graded_cache: Dict[str, Any] = {}

    for frame in template.frames:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(
                f"Compositing of template {template.template_id} cancelled before frame {frame.frame_id}"
            )
            result.cancelled = True
            break

        if frame.assigned_photo_id is None:
            logger.debug(f"Frame {frame.frame_id} has no photo; leaving empty")
            continue

        photo = photos.get(frame.assigned_photo_id)
        if photo is None:
            message = f"Photo '{frame.assigned_photo_id}' is not available"
            logger.warning(f"Frame {frame.frame_id}: {message}")
            result.issues.append(CompositeIssue(ISSUE_MISSING_PHOTO, message, frame.frame_id))
            continue

        try:
            layer = _build_photo_layer(frame, photo, lut_filter, active_cube, graded_cache, scale)
        except InvalidDimensionsError as e:
            logger.warning(f"Frame {frame.frame_id}: {e}")
            result.issues.append(CompositeIssue(e.kind, str(e), frame.frame_id))
            continue

        result.layers.append(layer)
        logger.debug(f"Frame {frame.frame_id}: placed photo {frame.assigned_photo_id}")

    template_layer = _build_template_layer(template, scale)
    if template_layer is not None:
        result.layers.append(template_layer)

    logger.info(
        f"Composited template {template.template_id}: {len(result.photo_layers)} photo layer(s), "
        f"{len(result.issues)} issue(s){' (cancelled)' if result.cancelled else ''}"
    )
    return result


def run_composite(
    session: CompositeSession,
    photos: Mapping[str, Any],
    cancel_event: Optional[threading.Event] = None,
) -> CompositeResult:
    """Resolve the session's filter and build its layers. See build_layers."""
    cube, filter_issues = resolve_filter_cube(session.filter_id, session.cube_text)
    result = build_layers(
        session.template,
        photos,
        cube,
        scale=session.scale,
        backend=session.backend,
        use_threading=session.use_threading,
        max_workers=session.max_workers,
        cancel_event=cancel_event,
    )
    result.issues = filter_issues + result.issues
    return result
