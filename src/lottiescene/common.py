"""lottiescene.common: shared geometry, color and matrix primitives.

Contains: point/size/color value types, path elements, 3x3 affine matrix
constructors (numpy), path flattening, and hex color parsing.
Everything else in the package builds on these.
"""

import math
from typing import NamedTuple

import numpy as np


# ── Value types ────────────────────────────────────────────────────


class Point(NamedTuple):
    x: float
    y: float


class Size(NamedTuple):
    width: float
    height: float


class Color(NamedTuple):
    """Straight (non-premultiplied) RGBA color, channels in 0..1."""

    r: float
    g: float
    b: float
    a: float = 1.0

    def with_alpha_factor(self, factor: float) -> "Color":
        return Color(self.r, self.g, self.b, self.a * factor)


# Vectors (scale factors, offsets) share the point layout.
Vec2 = Point


# ── Path elements ──────────────────────────────────────────────────
#
# Paths are plain lists of these tuples. Coordinates are always in the
# local space of the geometry; the matrix that places them is carried
# separately and applied by the sink at paint time.


class MoveTo(NamedTuple):
    p: Point


class LineTo(NamedTuple):
    p: Point


class QuadTo(NamedTuple):
    p1: Point
    p2: Point


class CurveTo(NamedTuple):
    p1: Point
    p2: Point
    p3: Point


class ClosePath(NamedTuple):
    pass


PathEl = MoveTo | LineTo | QuadTo | CurveTo | ClosePath


# ── Color utilities ────────────────────────────────────────────────


def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.lstrip("#")
    if len(hex_str) != 6 or not all(c in "0123456789abcdefABCDEF" for c in hex_str):
        raise ValueError(f"Invalid hex color: '#{hex_str}'")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


# ── Affine matrices ────────────────────────────────────────────────
#
# 3x3 float64 arrays acting on column vectors (x, y, 1). Composition
# reads left to right as outer-to-inner: (A @ B) applies B first.


def identity() -> np.ndarray:
    return np.eye(3)


def translate(x: float, y: float) -> np.ndarray:
    m = np.eye(3)
    m[0, 2] = x
    m[1, 2] = y
    return m


def rotate(radians: float) -> np.ndarray:
    c, s = math.cos(radians), math.sin(radians)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def scale(sx: float, sy: float | None = None) -> np.ndarray:
    if sy is None:
        sy = sx
    return np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])


def shear(kx: float, ky: float) -> np.ndarray:
    """Shear matrix: x' = x + kx * y, y' = ky * x + y."""
    return np.array([[1.0, kx, 0.0], [ky, 1.0, 0.0], [0.0, 0.0, 1.0]])


def apply(matrix: np.ndarray, p: Point) -> Point:
    """Map a point through an affine matrix."""
    x = matrix[0, 0] * p[0] + matrix[0, 1] * p[1] + matrix[0, 2]
    y = matrix[1, 0] * p[0] + matrix[1, 1] * p[1] + matrix[1, 2]
    return Point(float(x), float(y))


def scale_factor(matrix: np.ndarray) -> float:
    """Geometric-mean scale of the linear part (used for stroke widths)."""
    return math.sqrt(abs(float(np.linalg.det(matrix[:2, :2]))))


# ── Path utilities ─────────────────────────────────────────────────


def flatten_path(
    path: list,
    matrix: np.ndarray,
    segments: int = 16,
) -> list[tuple[list[Point], bool]]:
    """Flatten a path to polylines in device space.

    Bézier segments are subdivided uniformly into *segments* line
    segments. Returns a list of (points, closed) subpaths.
    """
    subpaths = []
    current: list[Point] = []
    closed = False
    start = last = Point(0.0, 0.0)

    def _flush():
        if len(current) > 1:
            subpaths.append(([apply(matrix, p) for p in current], closed))

    for el in path:
        if isinstance(el, MoveTo):
            _flush()
            current, closed = [el.p], False
            start = last = el.p
        elif isinstance(el, LineTo):
            current.append(el.p)
            last = el.p
        elif isinstance(el, QuadTo):
            for i in range(1, segments + 1):
                t = i / segments
                mt = 1.0 - t
                current.append(Point(
                    mt * mt * last[0] + 2 * mt * t * el.p1[0] + t * t * el.p2[0],
                    mt * mt * last[1] + 2 * mt * t * el.p1[1] + t * t * el.p2[1],
                ))
            last = el.p2
        elif isinstance(el, CurveTo):
            for i in range(1, segments + 1):
                t = i / segments
                mt = 1.0 - t
                a, b, c, d = mt ** 3, 3 * mt * mt * t, 3 * mt * t * t, t ** 3
                current.append(Point(
                    a * last[0] + b * el.p1[0] + c * el.p2[0] + d * el.p3[0],
                    a * last[1] + b * el.p1[1] + c * el.p2[1] + d * el.p3[1],
                ))
            last = el.p3
        elif isinstance(el, ClosePath):
            closed = True
            _flush()
            current, closed = [start], False
            last = start
    _flush()
    return subpaths
