"""Keyframe value engine: time-sampled properties.

Every animatable property in a scene is a Value: either a Fixed value that
never changes, or an Animated sequence of keyframes. Sampling an animated
value at a frame works in three steps:

  1. Locate the bracketing keyframe pair (k0, k1) with a binary search over
     the (non-decreasing) keyframe times. Frames before the first keyframe
     or after the last clamp to that keyframe.
  2. Compute the interpolation weight t = (frame - k0.time) / (k1.time - k0.time).
     A zero-length interval gives t = 0. A hold keyframe forces t = 0 until
     the next keyframe's own time. Otherwise k0's easing remaps t.
  3. Tween the two keyframe values by the weight.

Tweening is linear per component for numbers, points, sizes and colors
(no gamma correction).
"""

import bisect
from dataclasses import dataclass
from typing import Any


# Newton iterations before falling back to bisection when solving easing.
_NEWTON_ITERATIONS = 8
_EPSILON = 1e-7


# ── Easing ───────────────────────────────────────────────────────


def _bezier(u: float, p1: float, p2: float) -> float:
    """1D cubic Bézier through 0, p1, p2, 1 at parameter u."""
    mu = 1.0 - u
    return 3.0 * mu * mu * u * p1 + 3.0 * mu * u * u * p2 + u * u * u


def _bezier_slope(u: float, p1: float, p2: float) -> float:
    mu = 1.0 - u
    return 3.0 * mu * mu * p1 + 6.0 * mu * u * (p2 - p1) + 3.0 * u * u * (1.0 - p2)


@dataclass(frozen=True)
class Easing:
    """Two-handle cubic timing curve from (0, 0) to (1, 1).

    out_handle is the first control point (leaving k0), in_handle the second
    (arriving at k1). Handle x coordinates are clamped to 0..1 so the curve
    stays a function of time.
    """

    out_handle: tuple[float, float]
    in_handle: tuple[float, float]

    def ease(self, t: float) -> float:
        if t <= 0.0:
            return 0.0
        if t >= 1.0:
            return 1.0
        x1 = min(max(self.out_handle[0], 0.0), 1.0)
        x2 = min(max(self.in_handle[0], 0.0), 1.0)
        y1, y2 = self.out_handle[1], self.in_handle[1]
        if x1 == y1 and x2 == y2:
            return t
        return _bezier(self._solve_x(t, x1, x2), y1, y2)

    @staticmethod
    def _solve_x(x: float, x1: float, x2: float) -> float:
        """Find the curve parameter whose x coordinate equals x."""
        u = x
        for _ in range(_NEWTON_ITERATIONS):
            error = _bezier(u, x1, x2) - x
            if abs(error) < _EPSILON:
                return u
            slope = _bezier_slope(u, x1, x2)
            if abs(slope) < 1e-6:
                break
            u -= error / slope

        # Newton stalled on a flat spot; bisect instead.
        lo, hi = 0.0, 1.0
        u = x
        while hi - lo > _EPSILON:
            if _bezier(u, x1, x2) < x:
                lo = u
            else:
                hi = u
            u = (lo + hi) * 0.5
        return u


# ── Keyframes ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Keyframe:
    """A value sample at one instant.

    easing shapes the interval that starts at this keyframe. hold turns that
    interval into a step: the value stays put until the next keyframe.
    """

    time: float
    value: Any
    easing: Easing | None = None
    hold: bool = False


def frames_and_weight(
    keyframes: list[Keyframe] | tuple[Keyframe, ...],
    frame: float,
) -> tuple[int, int, float] | None:
    """Locate the keyframe pair bracketing *frame* and the eased weight.

    Returns (index0, index1, t), or None when there are no keyframes.
    """
    if not keyframes:
        return None
    last = len(keyframes) - 1
    ix0 = bisect.bisect_right(keyframes, frame, key=lambda k: k.time) - 1
    ix0 = min(max(ix0, 0), last)
    ix1 = min(ix0 + 1, last)
    k0, k1 = keyframes[ix0], keyframes[ix1]

    span = k1.time - k0.time
    if span > 0.0:
        t = min(max((frame - k0.time) / span, 0.0), 1.0)
    else:
        t = 0.0

    if k0.hold:
        t = 0.0
    elif k0.easing is not None:
        t = k0.easing.ease(t)
    return ix0, ix1, t


def tween(a, b, t: float):
    """Interpolate between two keyframe values.

    Numbers interpolate linearly; tuples (including Point, Size, Color)
    and lists interpolate component by component.
    """
    if t == 0.0:
        return a
    if isinstance(a, tuple):
        values = [tween(x, y, t) for x, y in zip(a, b)]
        if hasattr(a, "_fields"):
            return type(a)(*values)
        return tuple(values)
    if isinstance(a, list):
        return [tween(x, y, t) for x, y in zip(a, b)]
    return a + (b - a) * t


# ── Values ───────────────────────────────────────────────────────


class Value:
    """A property that is either fixed or keyframe-animated."""

    def is_fixed(self) -> bool:
        raise NotImplementedError

    def evaluate(self, frame: float):
        raise NotImplementedError


@dataclass(frozen=True)
class Fixed(Value):
    value: Any

    def is_fixed(self) -> bool:
        return True

    def evaluate(self, frame: float):
        return self.value


@dataclass(frozen=True)
class Animated(Value):
    """Keyframe-driven value.

    default is returned when the keyframe list is empty.
    """

    keyframes: tuple[Keyframe, ...]
    default: Any = None

    def __post_init__(self):
        object.__setattr__(self, "keyframes", tuple(self.keyframes))

    def is_fixed(self) -> bool:
        return False

    def evaluate(self, frame: float):
        found = frames_and_weight(self.keyframes, frame)
        if found is None:
            return self.default
        ix0, ix1, t = found
        return tween(self.keyframes[ix0].value, self.keyframes[ix1].value, t)
