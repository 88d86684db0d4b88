"""Composite animated evaluators.

Each evaluator groups the Values of one property type (a transform, an
ellipse, a stroke, a gradient, ...) and turns them into a concrete value
for a frame: a 3x3 affine matrix, a list of path elements, a stroke style
or a paint.

All evaluators share the Value interface:
  - is_fixed(): True when no contained Value is animated.
  - evaluate(frame): the concrete value at that frame.
  - into_model(): a Fixed holding the evaluated value when the evaluator
    is fixed (so static content skips the keyframe search at render time),
    otherwise the evaluator itself.

Brushes take an extra alpha factor: evaluate(alpha, frame).
"""

import enum
import math
from dataclasses import dataclass, replace
from typing import NamedTuple

import numpy as np

from .common import (
    ClosePath,
    Color,
    CurveTo,
    LineTo,
    MoveTo,
    Point,
    Size,
    Vec2,
    rotate,
    scale,
    shear,
    translate,
)
from .value import Fixed, Keyframe, Value, frames_and_weight, tween


# ── Constants ────────────────────────────────────────────────────

SKEW_LIMIT = 85.0            # degrees; skew magnitude is clamped to this
KAPPA = 0.5522847498307936   # cubic handle length for a quarter circle
DEFAULT_MITER_LIMIT = 4.0


def _sample(value: Value, frame: float, fallback):
    """Evaluate a Value, substituting *fallback* for a missing sample."""
    result = value.evaluate(frame)
    return fallback if result is None else result


# ── Transform ────────────────────────────────────────────────────


@dataclass(frozen=True)
class SplitPosition:
    """Position animated as two independent scalar axes."""

    x: Value
    y: Value

    def is_fixed(self) -> bool:
        return self.x.is_fixed() and self.y.is_fixed()

    def evaluate(self, frame: float) -> Point:
        return Point(_sample(self.x, frame, 0.0), _sample(self.y, frame, 0.0))


@dataclass(frozen=True)
class Transform(Value):
    """Animated affine transform.

    Rotation and skew are in degrees, scale is in percent.
    """

    anchor: Value = Fixed(Point(0.0, 0.0))
    position: Value | SplitPosition = Fixed(Point(0.0, 0.0))
    rotation: Value = Fixed(0.0)
    scale: Value = Fixed(Vec2(100.0, 100.0))
    skew: Value = Fixed(0.0)
    skew_angle: Value = Fixed(0.0)

    def is_fixed(self) -> bool:
        return (
            self.anchor.is_fixed()
            and self.position.is_fixed()
            and self.rotation.is_fixed()
            and self.scale.is_fixed()
            and self.skew.is_fixed()
            and self.skew_angle.is_fixed()
        )

    def evaluate(self, frame: float) -> np.ndarray:
        anchor = _sample(self.anchor, frame, Point(0.0, 0.0))
        position = _sample(self.position, frame, Point(0.0, 0.0))
        rotation = _sample(self.rotation, frame, 0.0)
        sx, sy = _sample(self.scale, frame, Vec2(100.0, 100.0))
        skew = _sample(self.skew, frame, 0.0)
        skew_angle = _sample(self.skew_angle, frame, 0.0)

        if skew != 0.0:
            skew = -min(max(skew, -SKEW_LIMIT), SKEW_LIMIT)
            angle = math.radians(skew_angle)
            skew_matrix = (
                rotate(-angle) @ shear(math.tan(math.radians(skew)), 0.0) @ rotate(angle)
            )
        else:
            skew_matrix = np.eye(3)

        return (
            translate(position[0], position[1])
            @ rotate(math.radians(rotation))
            @ skew_matrix
            @ scale(sx / 100.0, sy / 100.0)
            @ translate(-anchor[0], -anchor[1])
        )

    def into_model(self) -> Value:
        if self.is_fixed():
            return Fixed(self.evaluate(0.0))
        return self


# ── Shapes ───────────────────────────────────────────────────────


def _mirror(path: list, cy: float) -> list:
    """Reflect a path across the horizontal line y = cy (reverses winding)."""
    def flip(p):
        return Point(p[0], 2.0 * cy - p[1])

    mirrored = []
    for el in path:
        if isinstance(el, ClosePath):
            mirrored.append(el)
        else:
            mirrored.append(type(el)(*(flip(p) for p in el)))
    return mirrored


def ellipse_path(center: Point, size: Size, ccw: bool = False) -> list:
    """Closed ellipse as four cubic arcs, starting at the rightmost point."""
    cx, cy = center
    rx, ry = size[0] * 0.5, size[1] * 0.5
    kx, ky = rx * KAPPA, ry * KAPPA
    path = [
        MoveTo(Point(cx + rx, cy)),
        CurveTo(Point(cx + rx, cy + ky), Point(cx + kx, cy + ry), Point(cx, cy + ry)),
        CurveTo(Point(cx - kx, cy + ry), Point(cx - rx, cy + ky), Point(cx - rx, cy)),
        CurveTo(Point(cx - rx, cy - ky), Point(cx - kx, cy - ry), Point(cx, cy - ry)),
        CurveTo(Point(cx + kx, cy - ry), Point(cx + rx, cy - ky), Point(cx + rx, cy)),
        ClosePath(),
    ]
    return _mirror(path, cy) if ccw else path


def rect_path(center: Point, size: Size, radius: float = 0.0, ccw: bool = False) -> list:
    """Closed (optionally rounded) rectangle centered on *center*."""
    cx, cy = center
    w, h = size
    x0, y0 = cx - w * 0.5, cy - h * 0.5
    x1, y1 = x0 + w, y0 + h
    r = min(max(radius, 0.0), abs(w) * 0.5, abs(h) * 0.5)

    if r == 0.0:
        path = [
            MoveTo(Point(x0, y0)),
            LineTo(Point(x1, y0)),
            LineTo(Point(x1, y1)),
            LineTo(Point(x0, y1)),
            ClosePath(),
        ]
    else:
        k = r * (1.0 - KAPPA)
        path = [
            MoveTo(Point(x0 + r, y0)),
            LineTo(Point(x1 - r, y0)),
            CurveTo(Point(x1 - k, y0), Point(x1, y0 + k), Point(x1, y0 + r)),
            LineTo(Point(x1, y1 - r)),
            CurveTo(Point(x1, y1 - k), Point(x1 - k, y1), Point(x1 - r, y1)),
            LineTo(Point(x0 + r, y1)),
            CurveTo(Point(x0 + k, y1), Point(x0, y1 - k), Point(x0, y1 - r)),
            LineTo(Point(x0, y0 + r)),
            CurveTo(Point(x0, y0 + k), Point(x0 + k, y0), Point(x0 + r, y0)),
            ClosePath(),
        ]
    return _mirror(path, cy) if ccw else path


@dataclass(frozen=True)
class Ellipse:
    """Animated ellipse; position is its center."""

    position: Value
    size: Value
    is_ccw: bool = False

    def is_fixed(self) -> bool:
        return self.position.is_fixed() and self.size.is_fixed()

    def evaluate(self, frame: float) -> list:
        position = _sample(self.position, frame, Point(0.0, 0.0))
        size = _sample(self.size, frame, Size(0.0, 0.0))
        return ellipse_path(position, size, self.is_ccw)


@dataclass(frozen=True)
class Rect:
    """Animated rounded rectangle; position is its center."""

    position: Value
    size: Value
    corner_radius: Value = Fixed(0.0)
    is_ccw: bool = False

    def is_fixed(self) -> bool:
        return (
            self.position.is_fixed()
            and self.size.is_fixed()
            and self.corner_radius.is_fixed()
        )

    def evaluate(self, frame: float) -> list:
        position = _sample(self.position, frame, Point(0.0, 0.0))
        size = _sample(self.size, frame, Size(0.0, 0.0))
        radius = _sample(self.corner_radius, frame, 0.0)
        return rect_path(position, size, radius, self.is_ccw)


def spline_to_path(points: list, is_closed: bool, path: list) -> bool:
    """Emit a cubic spline into *path*.

    Points are laid out as vertex triples [v0, in0, out0, v1, in1, out1, ...]
    in absolute coordinates. A segment whose handles coincide with their
    vertices is emitted as a line. Returns False for malformed input.
    """
    if not points or len(points) % 3:
        return False
    n_vertices = len(points) // 3

    def segment(i0, i1):
        p0, p1 = points[3 * i0], points[3 * i0 + 2]
        p2, p3 = points[3 * i1 + 1], points[3 * i1]
        if p0 == p1 and p2 == p3:
            return LineTo(Point(*p3))
        return CurveTo(Point(*p1), Point(*p2), Point(*p3))

    path.append(MoveTo(Point(*points[0])))
    for i in range(1, n_vertices):
        path.append(segment(i - 1, i))
    if is_closed:
        path.append(segment(n_vertices - 1, 0))
        path.append(ClosePath())
    return True


@dataclass(frozen=True)
class Spline:
    """Animated cubic spline; each keyframe value is a full point list."""

    keyframes: tuple[Keyframe, ...]
    is_closed: bool = False

    def __post_init__(self):
        object.__setattr__(self, "keyframes", tuple(self.keyframes))

    def is_fixed(self) -> bool:
        return len(self.keyframes) <= 1

    def evaluate(self, frame: float, path: list) -> bool:
        """Append the spline at *frame* to *path*; False if nothing was emitted."""
        found = frames_and_weight(self.keyframes, frame)
        if found is None:
            return False
        ix0, ix1, t = found
        start, end = self.keyframes[ix0].value, self.keyframes[ix1].value
        if len(start) != len(end):
            return False
        points = [tween(Point(*a), Point(*b), t) for a, b in zip(start, end)]
        return spline_to_path(points, self.is_closed, path)


# ── Repeater ─────────────────────────────────────────────────────


def _signed_pow(base: float, exponent: float) -> float:
    """base ** exponent for repeater scale compounding.

    A negative base with a fractional exponent has no real power; the
    magnitude is raised and the sign kept, so a mirrored copy scale stays
    mirrored at every fractional step.
    """
    if base == 0.0:
        return 0.0 if exponent > 0 else 1.0
    if base < 0.0 and not float(exponent).is_integer():
        return -((-base) ** exponent)
    return base ** exponent


@dataclass(frozen=True)
class RepeaterParams:
    """Repeater parameters sampled at one frame.

    Rotation is in degrees, scale in percent, opacities are fractions.
    """

    copies: int
    offset: float
    anchor_point: Point
    position: Point
    rotation: float
    scale: Vec2
    start_opacity: float
    end_opacity: float

    def copy_transform(self, index: int) -> np.ndarray:
        """Transform of copy *index*; each copy advances one step further."""
        t = self.offset + index
        ax, ay = self.anchor_point
        return (
            translate(t * self.position[0], t * self.position[1])
            @ translate(ax, ay)
            @ rotate(math.radians(t * self.rotation))
            @ scale(
                _signed_pow(self.scale[0] / 100.0, t),
                _signed_pow(self.scale[1] / 100.0, t),
            )
            @ translate(-ax, -ay)
        )

    def copy_opacity(self, index: int) -> float:
        """Opacity ramped linearly from start to end across the copies."""
        if self.copies <= 1:
            return self.start_opacity
        fraction = index / (self.copies - 1)
        return self.start_opacity + (self.end_opacity - self.start_opacity) * fraction


@dataclass(frozen=True)
class Repeater(Value):
    copies: Value
    offset: Value = Fixed(0.0)
    anchor_point: Value = Fixed(Point(0.0, 0.0))
    position: Value = Fixed(Point(0.0, 0.0))
    rotation: Value = Fixed(0.0)
    scale: Value = Fixed(Vec2(100.0, 100.0))
    start_opacity: Value = Fixed(1.0)
    end_opacity: Value = Fixed(1.0)

    def is_fixed(self) -> bool:
        return (
            self.copies.is_fixed()
            and self.offset.is_fixed()
            and self.anchor_point.is_fixed()
            and self.position.is_fixed()
            and self.rotation.is_fixed()
            and self.scale.is_fixed()
            and self.start_opacity.is_fixed()
            and self.end_opacity.is_fixed()
        )

    def evaluate(self, frame: float) -> RepeaterParams:
        copies = _sample(self.copies, frame, 0.0)
        return RepeaterParams(
            copies=max(0, int(math.floor(copies + 0.5))),
            offset=_sample(self.offset, frame, 0.0),
            anchor_point=Point(*_sample(self.anchor_point, frame, (0.0, 0.0))),
            position=Point(*_sample(self.position, frame, (0.0, 0.0))),
            rotation=_sample(self.rotation, frame, 0.0),
            scale=Vec2(*_sample(self.scale, frame, (100.0, 100.0))),
            start_opacity=_sample(self.start_opacity, frame, 1.0),
            end_opacity=_sample(self.end_opacity, frame, 1.0),
        )

    def into_model(self) -> Value:
        if self.is_fixed():
            return Fixed(self.evaluate(0.0))
        return self


# ── Stroke ───────────────────────────────────────────────────────


class Join(enum.Enum):
    BEVEL = "bevel"
    MITER = "miter"
    ROUND = "round"


class Cap(enum.Enum):
    BUTT = "butt"
    ROUND = "round"
    SQUARE = "square"


@dataclass(frozen=True)
class StrokeStyle:
    width: float
    join: Join = Join.MITER
    cap: Cap = Cap.BUTT
    miter_limit: float = DEFAULT_MITER_LIMIT


@dataclass(frozen=True)
class Stroke(Value):
    """Animated stroke; only the width is animatable."""

    width: Value
    join: Join = Join.MITER
    cap: Cap = Cap.BUTT
    miter_limit: float | None = None

    def is_fixed(self) -> bool:
        return self.width.is_fixed()

    def evaluate(self, frame: float) -> StrokeStyle:
        miter_limit = DEFAULT_MITER_LIMIT if self.miter_limit is None else self.miter_limit
        return StrokeStyle(
            width=_sample(self.width, frame, 0.0),
            join=self.join,
            cap=self.cap,
            miter_limit=miter_limit,
        )

    def into_model(self) -> Value:
        if self.is_fixed():
            return Fixed(self.evaluate(0.0))
        return self


# ── Gradients ────────────────────────────────────────────────────


class ColorStop(NamedTuple):
    offset: float
    color: Color


@dataclass(frozen=True)
class GradientPaint:
    """Concrete gradient. radius is only meaningful when radial."""

    start: Point
    end: Point
    stops: tuple[ColorStop, ...]
    is_radial: bool = False
    radius: float = 0.0

    def with_alpha_factor(self, factor: float) -> "GradientPaint":
        stops = tuple(
            ColorStop(stop.offset, stop.color.with_alpha_factor(factor))
            for stop in self.stops
        )
        return replace(self, stops=stops)


@dataclass(frozen=True)
class ColorStops(Value):
    """Animated color stops.

    Each keyframe value is a flat sequence of `count` 5-tuples
    (offset, r, g, b, a). Every channel is interpolated on its own.
    """

    keyframes: tuple[Keyframe, ...]
    count: int

    def __post_init__(self):
        object.__setattr__(self, "keyframes", tuple(self.keyframes))

    def is_fixed(self) -> bool:
        return len(self.keyframes) <= 1

    def evaluate(self, frame: float) -> tuple[ColorStop, ...]:
        found = frames_and_weight(self.keyframes, frame)
        if found is None:
            return ()
        ix0, ix1, t = found
        v0, v1 = self.keyframes[ix0].value, self.keyframes[ix1].value
        needed = self.count * 5
        if len(v0) < needed or len(v1) < needed:
            return ()

        stops = []
        for i in range(self.count):
            j = i * 5
            offset, r, g, b, a = (tween(v0[j + c], v1[j + c], t) for c in range(5))
            stops.append(ColorStop(offset, Color(r, g, b, a)))
        return tuple(stops)


@dataclass(frozen=True)
class Gradient(Value):
    start_point: Value
    end_point: Value
    stops: ColorStops
    is_radial: bool = False

    def is_fixed(self) -> bool:
        return (
            self.start_point.is_fixed()
            and self.end_point.is_fixed()
            and self.stops.is_fixed()
        )

    def evaluate(self, frame: float) -> GradientPaint:
        start = Point(*_sample(self.start_point, frame, (0.0, 0.0)))
        end = Point(*_sample(self.end_point, frame, (0.0, 0.0)))
        stops = self.stops.evaluate(frame)
        if self.is_radial:
            radius = math.hypot(end[0] - start[0], end[1] - start[1])
            return GradientPaint(start, end, stops, is_radial=True, radius=radius)
        return GradientPaint(start, end, stops)


# ── Brushes ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class FixedBrush:
    """Collapsed brush; reused as-is when no extra alpha is applied."""

    paint: Color | GradientPaint

    def is_fixed(self) -> bool:
        return True

    def evaluate(self, alpha: float, frame: float) -> Color | GradientPaint:
        if alpha == 1.0:
            return self.paint
        return self.paint.with_alpha_factor(alpha)


@dataclass(frozen=True)
class SolidBrush:
    color: Value

    def is_fixed(self) -> bool:
        return self.color.is_fixed()

    def evaluate(self, alpha: float, frame: float) -> Color | None:
        color = self.color.evaluate(frame)
        if color is None:
            return None
        return Color(*color).with_alpha_factor(alpha)

    def into_model(self):
        if self.is_fixed():
            paint = self.evaluate(1.0, 0.0)
            if paint is not None:
                return FixedBrush(paint)
        return self


@dataclass(frozen=True)
class GradientBrush:
    gradient: Gradient

    def is_fixed(self) -> bool:
        return self.gradient.is_fixed()

    def evaluate(self, alpha: float, frame: float) -> GradientPaint:
        paint = self.gradient.evaluate(frame)
        if alpha == 1.0:
            return paint
        return paint.with_alpha_factor(alpha)

    def into_model(self):
        if self.is_fixed():
            return FixedBrush(self.evaluate(1.0, 0.0))
        return self


Brush = FixedBrush | SolidBrush | GradientBrush
