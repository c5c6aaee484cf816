"""
Performance demonstration for LUT grading.

Compares the vectorised NumPy backend against the per-pixel PIL backend,
each with and without row-band threading, on a synthetic gradient image.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import time
from PIL import Image

from PS_Libs.ColorGradeLib.color_cube import ColorCube, build_identity_cube
from PS_Libs.ColorGradeLib.lut_filter import LutFilter


def make_warm_cube(size):
    """Identity cube with red lifted and blue pulled down."""
    identity = build_identity_cube(size)
    entries = tuple(
        (min(1.0, r * 1.1), g, b * 0.9)
        for r, g, b in identity.entries
    )
    return ColorCube(size=size, entries=entries, title="Warm")


def make_gradient(size):
    img = Image.new("RGBA", (size, size))
    pixels = img.load()
    for y in range(size):
        for x in range(size):
            pixels[x, y] = (x * 255 // size, y * 255 // size, 128, 255)
    return img


def time_run(lut_filter, image, cube, iterations):
    times = []
    for _ in range(iterations):
        start = time.time()
        lut_filter.apply(image, cube)
        times.append(time.time() - start)
    # First run includes warmup
    return sum(times[1:]) / len(times[1:]) if len(times) > 1 else times[0]


def main():
    """Run LUT benchmarks."""
    print("=" * 60)
    print("LUT Grading Performance Demonstration")
    print("=" * 60)

    cube = make_warm_cube(17)
    configs = [
        ("numpy", True),
        ("numpy", False),
        ("pil", True),
        ("pil", False),
    ]

    results = []
    for size in (128, 512):
        image = make_gradient(size)
        for backend, use_threading in configs:
            iterations = 3 if backend == "numpy" or size <= 128 else 2
            try:
                avg = time_run(LutFilter(backend, use_threading), image, cube, iterations)
            except KeyboardInterrupt:
                print("\n\nBenchmark interrupted by user")
                return
            results.append((size, backend, use_threading, avg))
            print(f"  {size}x{size} {backend:5s} threads={use_threading!s:5s} {avg:7.3f}s")

    print("\n" + "=" * 60)
    print("Summary")
    print("=" * 60)
    print("Size       Backend  Threads  Time")
    print("-" * 60)
    for size, backend, use_threading, avg in results:
        print(f"{size:4d}x{size:<4d}  {backend:7s}  {use_threading!s:7s}  {avg:6.3f}s")
    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
