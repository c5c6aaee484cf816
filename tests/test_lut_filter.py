"""
Tests for the LUT filter.

Tests cover:
- Identity grading on both backends
- Exact corner lookups on a size-2 cube
- Alpha passthrough and output clamping
- Backend and threading equivalence
- New-image vs in-place contracts
- Degenerate cubes
- Filter previews
- Row band partitioning
"""

import unittest

import numpy as np
from PIL import Image

from PS_Libs.ColorGradeLib.color_cube import ColorCube, build_identity_cube, parse_cube_text
from PS_Libs.ColorGradeLib.lut_filter import (
    LutFilter,
    apply_lut,
    apply_lut_in_place,
    get_supported_backends,
    make_filter_preview,
    split_row_bands,
)

from conftest import TWO_CUBE_TEXT, make_gradient_image


def _max_channel_diff(a, b):
    return int(np.abs(np.asarray(a, dtype=np.int16) - np.asarray(b, dtype=np.int16)).max())


def _warm_cube(size=5):
    identity = build_identity_cube(size)
    entries = tuple((min(1.0, r * 1.2), g * 0.95, b * 0.7) for r, g, b in identity.entries)
    return ColorCube(size=size, entries=entries)


class TestIdentityGrading(unittest.TestCase):
    """An identity cube should leave every pixel within rounding of the input."""

    def setUp(self):
        self.image = make_gradient_image(40, 24)

    def test_identity_numpy(self):
        result = apply_lut(self.image, build_identity_cube(5), backend="numpy")
        self.assertLessEqual(_max_channel_diff(result, self.image), 1)

    def test_identity_pil(self):
        result = apply_lut(self.image, build_identity_cube(5), backend="pil")
        self.assertLessEqual(_max_channel_diff(result, self.image), 1)

    def test_identity_size_two(self):
        result = apply_lut(self.image, build_identity_cube(2))
        self.assertLessEqual(_max_channel_diff(result, self.image), 1)

    def test_identity_large_cube(self):
        result = apply_lut(self.image, build_identity_cube(17))
        self.assertLessEqual(_max_channel_diff(result, self.image), 1)


class TestCornerLookups(unittest.TestCase):
    """Black and white pixels map exactly onto the first and last entries."""

    def setUp(self):
        self.cube = parse_cube_text(TWO_CUBE_TEXT)
        self.image = Image.new("RGBA", (2, 1))
        self.image.putpixel((0, 0), (0, 0, 0, 255))
        self.image.putpixel((1, 0), (255, 255, 255, 255))

    def test_black_and_white_numpy(self):
        result = apply_lut(self.image, self.cube, backend="numpy")
        self.assertEqual(result.getpixel((0, 0)), (51, 102, 153, 255))
        self.assertEqual(result.getpixel((1, 0)), (204, 153, 102, 255))

    def test_black_and_white_pil(self):
        result = apply_lut(self.image, self.cube, backend="pil")
        self.assertEqual(result.getpixel((0, 0)), (51, 102, 153, 255))
        self.assertEqual(result.getpixel((1, 0)), (204, 153, 102, 255))

    def test_pure_red_uses_red_major_entry(self):
        image = Image.new("RGBA", (1, 1), (255, 0, 0, 255))
        result = apply_lut(image, self.cube)
        # Entry 4 is grid coordinate (1, 0, 0): (0.4, 0.4, 0.4)
        self.assertEqual(result.getpixel((0, 0)), (102, 102, 102, 255))

    def test_midpoint_blends_corners(self):
        cube = ColorCube(size=2, entries=tuple([(0.0, 0.0, 0.0)] * 4 + [(1.0, 1.0, 1.0)] * 4))
        image = Image.new("RGBA", (1, 1), (51, 0, 0, 255))
        result = apply_lut(image, cube)
        # Only red selects the upper half of the table: output follows red
        self.assertEqual(result.getpixel((0, 0))[:3], (51, 51, 51))


class TestAlphaAndClamping(unittest.TestCase):
    """Alpha passes through; out-of-range table values are clamped."""

    def test_alpha_preserved(self):
        image = make_gradient_image(8, 8, alpha=77)
        for backend in get_supported_backends():
            result = apply_lut(image, _warm_cube(), backend=backend)
            alphas = set(np.unique(np.asarray(result)[..., 3]).tolist())
            self.assertEqual(alphas, {77})

    def test_values_above_one_clamp_to_255(self):
        cube = ColorCube(size=2, entries=tuple([(1.5, 2.0, 1.01)] * 8))
        image = make_gradient_image(8, 8)
        for backend in get_supported_backends():
            result = apply_lut(image, cube, backend=backend)
            self.assertTrue((np.asarray(result)[..., :3] == 255).all())

    def test_negative_values_clamp_to_zero(self):
        cube = ColorCube(size=2, entries=tuple([(-0.5, -1.0, -0.01)] * 8))
        image = make_gradient_image(8, 8)
        for backend in get_supported_backends():
            result = apply_lut(image, cube, backend=backend)
            self.assertTrue((np.asarray(result)[..., :3] == 0).all())


class TestBackendEquivalence(unittest.TestCase):
    """Backends and threading modes must agree."""

    def setUp(self):
        self.image = make_gradient_image(48, 64)
        self.cube = _warm_cube(5)

    def test_numpy_matches_pil(self):
        numpy_result = apply_lut(self.image, self.cube, backend="numpy", use_threading=False)
        pil_result = apply_lut(self.image, self.cube, backend="pil", use_threading=False)
        self.assertLessEqual(_max_channel_diff(numpy_result, pil_result), 1)

    def test_threaded_matches_sequential_numpy(self):
        threaded = apply_lut(self.image, self.cube, backend="numpy", use_threading=True, max_workers=4)
        sequential = apply_lut(self.image, self.cube, backend="numpy", use_threading=False)
        self.assertEqual(threaded.tobytes(), sequential.tobytes())

    def test_threaded_matches_sequential_pil(self):
        threaded = apply_lut(self.image, self.cube, backend="pil", use_threading=True, max_workers=4)
        sequential = apply_lut(self.image, self.cube, backend="pil", use_threading=False)
        self.assertEqual(threaded.tobytes(), sequential.tobytes())

    def test_repeat_runs_are_identical(self):
        first = apply_lut(self.image, self.cube)
        second = apply_lut(self.image, self.cube)
        self.assertEqual(first.tobytes(), second.tobytes())

    def test_short_table_agrees_across_backends(self):
        entries = tuple((i / 7, 1 - i / 7, 0.5) for i in range(7))
        cube = ColorCube(size=2, entries=entries)
        numpy_result = apply_lut(self.image, cube, backend="numpy")
        pil_result = apply_lut(self.image, cube, backend="pil")
        self.assertLessEqual(_max_channel_diff(numpy_result, pil_result), 1)


class TestOutputContracts(unittest.TestCase):
    """New-image and in-place application."""

    def setUp(self):
        self.cube = _warm_cube()

    def test_apply_returns_new_image(self):
        image = make_gradient_image(16, 16)
        before = image.tobytes()

        result = apply_lut(image, self.cube)

        self.assertIsNot(result, image)
        self.assertEqual(image.tobytes(), before)
        self.assertEqual(result.mode, "RGBA")
        self.assertEqual(result.size, image.size)

    def test_apply_converts_rgb_input(self):
        image = make_gradient_image(16, 16).convert("RGB")
        result = apply_lut(image, self.cube)
        self.assertEqual(result.mode, "RGBA")
        self.assertTrue((np.asarray(result)[..., 3] == 255).all())

    def test_in_place_rgba(self):
        image = make_gradient_image(16, 16)
        expected = apply_lut(image, self.cube)

        returned = apply_lut_in_place(image, self.cube)

        self.assertIs(returned, image)
        self.assertEqual(image.tobytes(), expected.tobytes())

    def test_in_place_rgb(self):
        image = make_gradient_image(16, 16).convert("RGB")
        expected = apply_lut(image, self.cube).convert("RGB")

        apply_lut_in_place(image, self.cube)

        self.assertEqual(image.mode, "RGB")
        self.assertEqual(image.tobytes(), expected.tobytes())

    def test_in_place_rejects_other_modes(self):
        with self.assertRaises(ValueError):
            apply_lut_in_place(Image.new("L", (4, 4)), self.cube)

    def test_non_image_rejected(self):
        with self.assertRaises(TypeError):
            apply_lut("not an image", self.cube)

    def test_empty_image(self):
        image = Image.new("RGBA", (0, 0))
        result = apply_lut(image, self.cube)
        self.assertEqual(result.size, (0, 0))


class TestDegenerateCube(unittest.TestCase):
    """Size-1 cubes leave the image unchanged instead of dividing by zero."""

    def setUp(self):
        self.cube = ColorCube(size=1, entries=((1.0, 0.0, 0.0),))
        self.image = make_gradient_image(8, 8)

    def test_apply_returns_unchanged_copy(self):
        with self.assertLogs("PS_Libs.ColorGradeLib.lut_filter", level="WARNING"):
            result = apply_lut(self.image, self.cube)

        self.assertIsNot(result, self.image)
        self.assertEqual(result.tobytes(), self.image.tobytes())

    def test_in_place_leaves_image_alone(self):
        before = self.image.tobytes()
        with self.assertLogs("PS_Libs.ColorGradeLib.lut_filter", level="WARNING"):
            apply_lut_in_place(self.image, self.cube)
        self.assertEqual(self.image.tobytes(), before)


class TestLutFilterOptions(unittest.TestCase):
    """Constructor validation and previews."""

    def test_invalid_backend(self):
        with self.assertRaises(ValueError):
            LutFilter(backend="cuda")

    def test_invalid_worker_count(self):
        with self.assertRaises(ValueError):
            LutFilter(max_workers=0)

    def test_preview_is_downscaled_and_graded(self):
        image = Image.new("RGBA", (400, 200), (0, 0, 0, 255))
        cube = parse_cube_text(TWO_CUBE_TEXT)

        preview = make_filter_preview(image, cube, max_size=100)

        self.assertEqual(preview.size, (100, 50))
        self.assertEqual(preview.getpixel((10, 10)), (51, 102, 153, 255))
        self.assertEqual(image.size, (400, 200))

    def test_preview_without_cube_is_unfiltered(self):
        image = Image.new("RGBA", (300, 300), (10, 20, 30, 255))
        preview = make_filter_preview(image, None, max_size=64)

        self.assertEqual(preview.size, (64, 64))
        self.assertEqual(preview.getpixel((5, 5)), (10, 20, 30, 255))

    def test_preview_rejects_bad_size(self):
        with self.assertRaises(ValueError):
            make_filter_preview(Image.new("RGBA", (4, 4)), None, max_size=0)


class TestSplitRowBands(unittest.TestCase):
    """Row partitioning covers every row exactly once."""

    def test_even_split(self):
        self.assertEqual(split_row_bands(100, 4), [(0, 25), (25, 50), (50, 75), (75, 100)])

    def test_small_image_single_band(self):
        self.assertEqual(split_row_bands(10, 8), [(0, 10)])

    def test_bands_are_contiguous(self):
        bands = split_row_bands(1000, 7)
        self.assertEqual(bands[0][0], 0)
        self.assertEqual(bands[-1][1], 1000)
        for (_, end), (start, _) in zip(bands, bands[1:]):
            self.assertEqual(end, start)

    def test_empty(self):
        self.assertEqual(split_row_bands(0, 4), [])


if __name__ == "__main__":
    unittest.main()
