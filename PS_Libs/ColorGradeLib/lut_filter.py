"""
LUT Filter - applies a ColorCube to Pillow images by trilinear interpolation.

Each pixel is graded independently: its RGB is scaled into grid space,
the eight surrounding grid entries are blended with corner weights, and
the result is rounded half away from zero and clamped to 0-255. Alpha
passes through untouched.

Backends:
    - numpy: vectorised interpolation over whole row bands
    - pil: per-pixel reference loop over Pillow pixel data

Both backends split the image into disjoint row bands. With threading
enabled the bands run on a ThreadPoolExecutor; every band writes only its
own slice of the output buffer, so the only synchronisation is the join.

Example:
    >>> cube = parse_cube_text(Path("warm.cube").read_text())
    >>> graded = apply_lut(Image.open("photo.jpg"), cube)
"""

import concurrent.futures
import logging
import math
import os
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from PS_Libs.constants import (
    BACKEND_NUMPY,
    BACKEND_PIL,
    DEFAULT_BACKEND,
    DEFAULT_PREVIEW_MAX_SIZE,
    ISSUE_DEGENERATE_CUBE,
    MIN_ROWS_PER_BAND,
    SUPPORTED_BACKENDS,
)
from PS_Libs.ColorGradeLib.color_cube import ColorCube, RgbTriple
from PS_Libs.pixel_math import clamp_byte, clamp_byte_array

logger = logging.getLogger(__name__)

RowBand = Tuple[int, int]


def get_supported_backends() -> Tuple[str, ...]:
    return SUPPORTED_BACKENDS


def split_row_bands(height: int, workers: int) -> List[RowBand]:
    """
    Partition rows [0, height) into contiguous, non-overlapping bands.

    Bands are at least MIN_ROWS_PER_BAND rows tall so small images are not
    split into a band per row.
    """
    if height <= 0:
        return []
    workers = max(1, workers)
    band_rows = max(MIN_ROWS_PER_BAND, math.ceil(height / workers))
    return [(start, min(start + band_rows, height)) for start in range(0, height, band_rows)]


def _interpolate_rows(rgb: np.ndarray, table: np.ndarray) -> np.ndarray:
    """Grade an (h, w, 3) uint8 block against an (N, N, N, 3) table."""
    n = table.shape[0]
    grid = (rgb.astype(np.float64) / 255.0) * (n - 1)

    i0 = np.floor(grid).astype(np.intp)
    i1 = np.minimum(i0 + 1, n - 1)
    d = grid - i0

    x0, y0, z0 = i0[..., 0], i0[..., 1], i0[..., 2]
    x1, y1, z1 = i1[..., 0], i1[..., 1], i1[..., 2]
    xd, yd, zd = d[..., 0], d[..., 1], d[..., 2]

    w000 = ((1 - xd) * (1 - yd) * (1 - zd))[..., None]
    w001 = ((1 - xd) * (1 - yd) * zd)[..., None]
    w010 = ((1 - xd) * yd * (1 - zd))[..., None]
    w011 = ((1 - xd) * yd * zd)[..., None]
    w100 = (xd * (1 - yd) * (1 - zd))[..., None]
    w101 = (xd * (1 - yd) * zd)[..., None]
    w110 = (xd * yd * (1 - zd))[..., None]
    w111 = (xd * yd * zd)[..., None]

    graded = (
        table[x0, y0, z0] * w000
        + table[x0, y0, z1] * w001
        + table[x0, y1, z0] * w010
        + table[x0, y1, z1] * w011
        + table[x1, y0, z0] * w100
        + table[x1, y0, z1] * w101
        + table[x1, y1, z0] * w110
        + table[x1, y1, z1] * w111
    )
    return clamp_byte_array(graded * 255)


def _interpolate_pixel(
    pixel: Tuple[int, int, int, int],
    entries: Sequence[RgbTriple],
    size: int,
) -> Tuple[int, int, int, int]:
    """Grade a single RGBA pixel. Lookups past the end of a short table clamp."""
    r, g, b, a = pixel
    last = len(entries) - 1
    square = size * size

    rx = (r / 255.0) * (size - 1)
    gx = (g / 255.0) * (size - 1)
    bx = (b / 255.0) * (size - 1)

    x0, y0, z0 = math.floor(rx), math.floor(gx), math.floor(bx)
    x1 = min(x0 + 1, size - 1)
    y1 = min(y0 + 1, size - 1)
    z1 = min(z0 + 1, size - 1)
    xd, yd, zd = rx - x0, gx - y0, bx - z0

    def corner(x: int, y: int, z: int) -> RgbTriple:
        return entries[min(x * square + y * size + z, last)]

    c000 = corner(x0, y0, z0)
    c001 = corner(x0, y0, z1)
    c010 = corner(x0, y1, z0)
    c011 = corner(x0, y1, z1)
    c100 = corner(x1, y0, z0)
    c101 = corner(x1, y0, z1)
    c110 = corner(x1, y1, z0)
    c111 = corner(x1, y1, z1)

    w000 = (1 - xd) * (1 - yd) * (1 - zd)
    w001 = (1 - xd) * (1 - yd) * zd
    w010 = (1 - xd) * yd * (1 - zd)
    w011 = (1 - xd) * yd * zd
    w100 = xd * (1 - yd) * (1 - zd)
    w101 = xd * (1 - yd) * zd
    w110 = xd * yd * (1 - zd)
    w111 = xd * yd * zd

    channels = []
    for ch in range(3):
        value = (
            c000[ch] * w000
            + c001[ch] * w001
            + c010[ch] * w010
            + c011[ch] * w011
            + c100[ch] * w100
            + c101[ch] * w101
            + c110[ch] * w110
            + c111[ch] * w111
        )
        channels.append(clamp_byte(value * 255))

    return (channels[0], channels[1], channels[2], a)


class LutFilter:
    """
    Applies a ColorCube to images.

    Example:
        >>> lut_filter = LutFilter(backend="numpy", use_threading=True)
        >>> graded = lut_filter.apply(photo, cube)
        >>> lut_filter.apply_in_place(full_res_photo, cube)
    """

    def __init__(
        self,
        backend: str = DEFAULT_BACKEND,
        use_threading: bool = True,
        max_workers: Optional[int] = None,
    ) -> None:
        if backend not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"Invalid backend: {backend}. Use one of: {', '.join(SUPPORTED_BACKENDS)}"
            )
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self.backend = backend
        self.use_threading = use_threading
        self.max_workers = max_workers

    def apply(self, image: Any, cube: ColorCube) -> Any:
        """
        Grade an image into a new RGBA image; the input is not modified.

        Args:
            image: PIL Image in any mode (converted to RGBA)
            cube: Parsed ColorCube

        Returns:
            New RGBA PIL Image. For a degenerate cube this is an unmodified copy.

        Raises:
            TypeError: If image is not a PIL Image
        """
        if not hasattr(image, "mode"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")

        # convert() always returns a new image, even for RGBA input
        source = image.convert("RGBA")

        if cube.is_degenerate:
            _log_degenerate(cube)
            return source

        return self._grade(source, cube)

    def apply_in_place(self, image: Any, cube: ColorCube) -> Any:
        """
        Grade an RGBA or RGB image by overwriting its pixels.

        Returns:
            The same PIL Image object

        Raises:
            TypeError: If image is not a PIL Image
            ValueError: If the image mode is not RGBA or RGB
        """
        if not hasattr(image, "mode"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        if image.mode not in ("RGBA", "RGB"):
            raise ValueError(f"In-place grading needs an RGBA or RGB image, got {image.mode}")

        if cube.is_degenerate:
            _log_degenerate(cube)
            return image

        graded = self._grade(image.convert("RGBA"), cube)
        if image.mode == "RGB":
            graded = graded.convert("RGB")
        image.paste(graded, (0, 0))
        return image

    def make_preview(
        self,
        image: Any,
        cube: Optional[ColorCube],
        max_size: int = DEFAULT_PREVIEW_MAX_SIZE,
    ) -> Any:
        """Downscale a copy of image to fit max_size, then grade it."""
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")

        thumbnail = image.convert("RGBA")
        thumbnail.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)

        if cube is None:
            return thumbnail
        return self.apply(thumbnail, cube)

    def _grade(self, rgba: Any, cube: ColorCube) -> Any:
        width, height = rgba.size
        if width == 0 or height == 0:
            return rgba

        bands = split_row_bands(height, self._worker_count())
        if self.backend == BACKEND_NUMPY:
            return self._grade_numpy(rgba, cube, bands)
        return self._grade_pil(rgba, cube, bands)

    def _grade_numpy(self, rgba: Any, cube: ColorCube, bands: List[RowBand]) -> Any:
        source = np.asarray(rgba, dtype=np.uint8)
        output = source.copy()
        table = cube.as_table()

        def grade_band(band: RowBand) -> None:
            start, end = band
            output[start:end, :, :3] = _interpolate_rows(source[start:end, :, :3], table)

        self._run_bands(grade_band, bands)
        return Image.fromarray(output)

    def _grade_pil(self, rgba: Any, cube: ColorCube, bands: List[RowBand]) -> Any:
        width, height = rgba.size
        source_pixels = rgba.load()
        output: List[Any] = [None] * (width * height)
        entries = cube.entries
        size = cube.size

        def grade_band(band: RowBand) -> None:
            start, end = band
            for y in range(start, end):
                row_offset = y * width
                for x in range(width):
                    output[row_offset + x] = _interpolate_pixel(source_pixels[x, y], entries, size)

        self._run_bands(grade_band, bands)

        result = Image.new("RGBA", rgba.size)
        result.putdata(output)
        return result

    def _run_bands(self, grade_band: Callable[[RowBand], None], bands: List[RowBand]) -> None:
        if not self.use_threading or len(bands) < 2:
            for band in bands:
                grade_band(band)
            return

        with concurrent.futures.ThreadPoolExecutor(max_workers=self._worker_count()) as executor:
            futures = [executor.submit(grade_band, band) for band in bands]
            for future in futures:
                future.result()

    def _worker_count(self) -> int:
        if not self.use_threading:
            return 1
        return self.max_workers or os.cpu_count() or 1


def _log_degenerate(cube: ColorCube) -> None:
    logger.warning(
        f"{ISSUE_DEGENERATE_CUBE}: cube of size {cube.size} with {len(cube.entries)} "
        f"entries cannot be interpolated; returning image unchanged"
    )


def apply_lut(
    image: Any,
    cube: ColorCube,
    backend: str = DEFAULT_BACKEND,
    use_threading: bool = True,
    max_workers: Optional[int] = None,
) -> Any:
    """Grade image into a new RGBA image. See LutFilter.apply."""
    return LutFilter(backend, use_threading, max_workers).apply(image, cube)


def apply_lut_in_place(
    image: Any,
    cube: ColorCube,
    backend: str = DEFAULT_BACKEND,
    use_threading: bool = True,
    max_workers: Optional[int] = None,
) -> Any:
    """Grade an RGBA/RGB image in place. See LutFilter.apply_in_place."""
    return LutFilter(backend, use_threading, max_workers).apply_in_place(image, cube)


def make_filter_preview(
    image: Any,
    cube: Optional[ColorCube],
    max_size: int = DEFAULT_PREVIEW_MAX_SIZE,
    backend: str = DEFAULT_BACKEND,
) -> Any:
    """Thumbnail of image graded with cube (unfiltered when cube is None)."""
    return LutFilter(backend, use_threading=False).make_preview(image, cube, max_size)
