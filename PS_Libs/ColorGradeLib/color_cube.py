"""
Color cube (3D LUT) model and .cube text parser.

A cube file is line oriented:

    # comment
    TITLE "Warm Film"
    LUT_3D_SIZE 2
    DOMAIN_MIN 0.0 0.0 0.0
    DOMAIN_MAX 1.0 1.0 1.0
    0.0 0.0 0.0
    ...

Data lines are stored red-major: entry k sits at grid coordinate
(k // size**2, (k // size) % size, k % size) for (red, green, blue).

DOMAIN_MIN / DOMAIN_MAX are parsed and stored but never applied when
sampling the cube.

Classes:
    ColorCube: Immutable parsed lookup table
    CubeParseError: Base error for unusable cube text

Functions:
    parse_cube_text: Parse cube text into a ColorCube
    load_cube_file: Read and parse a .cube file
    build_identity_cube: Cube that maps every color onto itself
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np

from PS_Libs.constants import (
    CUBE_COMMENT_PREFIX,
    CUBE_KEYWORD_DOMAIN_MAX,
    CUBE_KEYWORD_DOMAIN_MIN,
    CUBE_KEYWORD_SIZE,
    CUBE_KEYWORD_SIZE_1D,
    CUBE_KEYWORD_TITLE,
    DEFAULT_DOMAIN_MAX,
    DEFAULT_DOMAIN_MIN,
    ISSUE_DEGENERATE_CUBE,
    ISSUE_INVALID_DATA_LINE,
    ISSUE_MALFORMED_HEADER,
    ISSUE_SIZE_MISMATCH,
)

logger = logging.getLogger(__name__)

RgbTriple = Tuple[float, float, float]


class CubeParseError(ValueError):
    """Cube text could not be turned into a usable ColorCube."""

    kind = ISSUE_MALFORMED_HEADER

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class MalformedHeaderError(CubeParseError):
    kind = ISSUE_MALFORMED_HEADER


class InvalidDataLineError(CubeParseError):
    kind = ISSUE_INVALID_DATA_LINE


@dataclass(frozen=True)
class ColorCube:
    """Parsed 3D lookup table.

    Attributes:
        size: Edge length N of the grid
        entries: N**3 RGB triples in red-major order, channels in [0, 1]
        domain_min: Lower input bound (stored only)
        domain_max: Upper input bound (stored only)
        title: Optional TITLE from the cube file
    """
    size: int
    entries: Tuple[RgbTriple, ...]
    domain_min: RgbTriple = DEFAULT_DOMAIN_MIN
    domain_max: RgbTriple = DEFAULT_DOMAIN_MAX
    title: str = ""

    @property
    def expected_entry_count(self) -> int:
        return self.size ** 3

    @property
    def is_degenerate(self) -> bool:
        """True when the cube cannot be interpolated (size < 2 or no data)."""
        return self.size < 2 or not self.entries

    def entry_index(self, x: int, y: int, z: int) -> int:
        return x * self.size * self.size + y * self.size + z

    def entry_at(self, x: int, y: int, z: int) -> RgbTriple:
        """Entry at grid coordinate (red, green, blue), clamped for short tables."""
        index = min(self.entry_index(x, y, z), len(self.entries) - 1)
        return self.entries[index]

    def check_integrity(self) -> Tuple[bool, List[str]]:
        """
        Report non-fatal problems with the cube.

        Returns:
            Tuple of (is_valid, messages). A size mismatch is reported but
            still leaves the cube usable; a degenerate cube is not.
        """
        messages: List[str] = []
        if len(self.entries) != self.expected_entry_count:
            messages.append(
                f"{ISSUE_SIZE_MISMATCH}: expected {self.expected_entry_count} "
                f"RGB entries, got {len(self.entries)}"
            )
        if self.is_degenerate:
            messages.append(
                f"{ISSUE_DEGENERATE_CUBE}: size {self.size} with "
                f"{len(self.entries)} entries cannot be interpolated"
            )
        return not self.is_degenerate, messages

    def as_table(self) -> np.ndarray:
        """
        Grid as a float64 array of shape (N, N, N, 3) indexed [r, g, b].

        Short tables are padded with their last entry, which matches the
        clamped lookup of entry_at. Extra entries are dropped.
        """
        if self.is_degenerate:
            raise ValueError("Cannot build a lookup table from a degenerate cube")

        data = np.asarray(self.entries, dtype=np.float64).reshape(-1, 3)
        expected = self.expected_entry_count
        if data.shape[0] < expected:
            padding = np.repeat(data[-1:], expected - data.shape[0], axis=0)
            data = np.concatenate([data, padding], axis=0)
        elif data.shape[0] > expected:
            data = data[:expected]
        return data.reshape(self.size, self.size, self.size, 3)

    def to_cube_text(self) -> str:
        lines: List[str] = []
        if self.title:
            lines.append(f'{CUBE_KEYWORD_TITLE} "{self.title}"')
        lines.append(f"{CUBE_KEYWORD_SIZE} {self.size}")
        if tuple(self.domain_min) != DEFAULT_DOMAIN_MIN:
            lines.append(f"{CUBE_KEYWORD_DOMAIN_MIN} " + _format_triple(self.domain_min))
        if tuple(self.domain_max) != DEFAULT_DOMAIN_MAX:
            lines.append(f"{CUBE_KEYWORD_DOMAIN_MAX} " + _format_triple(self.domain_max))
        for entry in self.entries:
            lines.append(_format_triple(entry))
        return "\n".join(lines) + "\n"


def _format_triple(values: Sequence[float]) -> str:
    return " ".join(f"{value:.6f}" for value in values)


def _parse_float_triple(tokens: Sequence[str]) -> Optional[RgbTriple]:
    if len(tokens) != 3:
        return None
    try:
        values = tuple(float(token) for token in tokens)
    except ValueError:
        return None
    if not all(math.isfinite(value) for value in values):
        return None
    return values


def _parse_size(tokens: Sequence[str], line_number: int) -> int:
    if len(tokens) != 2:
        raise MalformedHeaderError(
            f"{CUBE_KEYWORD_SIZE} expects exactly one integer", line_number
        )
    try:
        size = int(tokens[1])
    except ValueError:
        raise MalformedHeaderError(
            f"{CUBE_KEYWORD_SIZE} value is not an integer: {tokens[1]!r}", line_number
        )
    if size <= 0:
        raise MalformedHeaderError(
            f"{CUBE_KEYWORD_SIZE} must be positive, got {size}", line_number
        )
    return size


def _parse_title(line: str) -> str:
    title = line[len(CUBE_KEYWORD_TITLE):].strip()
    if len(title) >= 2 and title[0] == title[-1] == '"':
        title = title[1:-1]
    return title


def parse_cube_text(text: str, strict: bool = True) -> ColorCube:
    """
    Parse .cube text into a ColorCube.

    Args:
        text: Full cube file contents
        strict: If True, a data line that is not exactly three floats raises
                InvalidDataLineError. If False, the line is skipped and a
                warning is logged.

    Returns:
        ColorCube. A table whose length differs from size**3 is still
        returned; the mismatch is logged and reported by check_integrity().

    Raises:
        MalformedHeaderError: LUT_3D_SIZE missing, repeated or invalid, data
            before the size declaration, bad DOMAIN line, or a 1D LUT
        InvalidDataLineError: Unparseable data line (strict mode only)
    """
    size: Optional[int] = None
    entries: List[RgbTriple] = []
    domain_min: RgbTriple = DEFAULT_DOMAIN_MIN
    domain_max: RgbTriple = DEFAULT_DOMAIN_MAX
    title = ""

    # Exporters on Windows often prefix the file with a byte-order mark
    if text.startswith("\ufeff"):
        text = text[1:]

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith(CUBE_COMMENT_PREFIX):
            continue

        tokens = line.split()
        keyword = tokens[0]

        if keyword == CUBE_KEYWORD_TITLE:
            title = _parse_title(line)
            continue

        if keyword == CUBE_KEYWORD_SIZE_1D:
            raise MalformedHeaderError("1D LUTs are not supported", line_number)

        if keyword == CUBE_KEYWORD_SIZE:
            if size is not None:
                raise MalformedHeaderError(
                    f"{CUBE_KEYWORD_SIZE} declared more than once", line_number
                )
            size = _parse_size(tokens, line_number)
            continue

        if keyword in (CUBE_KEYWORD_DOMAIN_MIN, CUBE_KEYWORD_DOMAIN_MAX):
            bound = _parse_float_triple(tokens[1:])
            if bound is None:
                raise MalformedHeaderError(
                    f"{keyword} expects three numbers", line_number
                )
            if keyword == CUBE_KEYWORD_DOMAIN_MIN:
                domain_min = bound
            else:
                domain_max = bound
            continue

        if size is None:
            raise MalformedHeaderError(
                f"data line before {CUBE_KEYWORD_SIZE} declaration", line_number
            )

        entry = _parse_float_triple(tokens)
        if entry is None:
            if strict:
                raise InvalidDataLineError(
                    f"expected three numbers, got {line!r}", line_number
                )
            logger.warning(f"Skipping invalid cube data line {line_number}: {line!r}")
            continue
        entries.append(entry)

    if size is None:
        raise MalformedHeaderError(f"missing {CUBE_KEYWORD_SIZE} declaration")

    cube = ColorCube(
        size=size,
        entries=tuple(entries),
        domain_min=domain_min,
        domain_max=domain_max,
        title=title,
    )

    if len(entries) != cube.expected_entry_count:
        logger.warning(
            f"{ISSUE_SIZE_MISMATCH}: expected {cube.expected_entry_count} RGB entries, "
            f"got {len(entries)}; lookups will be clamped"
        )

    return cube


def load_cube_file(path: Path, strict: bool = True) -> ColorCube:
    """Read a UTF-8 .cube file (with or without a byte-order mark) and parse it."""
    text = Path(path).read_text(encoding="utf-8-sig")
    return parse_cube_text(text, strict=strict)


def build_identity_cube(size: int) -> ColorCube:
    """Cube whose entry (x, y, z) is (x, y, z) / (size - 1)."""
    if size < 2:
        raise ValueError(f"identity cube size must be >= 2, got {size}")

    step = float(size - 1)
    entries = tuple(
        (x / step, y / step, z / step)
        for x in range(size)
        for y in range(size)
        for z in range(size)
    )
    return ColorCube(size=size, entries=entries, title="Identity")
