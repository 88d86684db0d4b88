"""Tests for the keyframe value engine."""

import pytest

from lottiescene.common import Color, Point
from lottiescene.value import (
    Animated,
    Easing,
    Fixed,
    Keyframe,
    frames_and_weight,
    tween,
)


def _ramp(*pairs, **kwargs):
    """Animated value from (time, value) pairs."""
    return Animated([Keyframe(t, v, **kwargs) for t, v in pairs])


class TestEasing:
    def test_endpoints_are_fixed(self):
        easing = Easing((0.42, 0.0), (0.58, 1.0))
        assert easing.ease(0.0) == 0.0
        assert easing.ease(1.0) == 1.0

    def test_diagonal_handles_are_linear(self):
        easing = Easing((0.25, 0.25), (0.75, 0.75))
        assert easing.ease(0.3) == 0.3

    def test_symmetric_ease_in_out_midpoint(self):
        easing = Easing((0.42, 0.0), (0.58, 1.0))
        assert easing.ease(0.5) == pytest.approx(0.5, abs=1e-6)

    def test_ease_in_lags_behind_linear(self):
        easing = Easing((0.42, 0.0), (1.0, 1.0))
        assert easing.ease(0.5) < 0.5

    def test_ease_out_runs_ahead_of_linear(self):
        easing = Easing((0.0, 0.0), (0.58, 1.0))
        assert easing.ease(0.5) > 0.5

    def test_monotonic(self):
        easing = Easing((0.7, 0.1), (0.2, 0.9))
        samples = [easing.ease(i / 20) for i in range(21)]
        assert samples == sorted(samples)


class TestFramesAndWeight:
    def test_empty_returns_none(self):
        assert frames_and_weight([], 3.0) is None

    def test_single_keyframe(self):
        assert frames_and_weight([Keyframe(5.0, 1.0)], 100.0) == (0, 0, 0.0)

    def test_before_first_clamps(self):
        keys = [Keyframe(10.0, 0.0), Keyframe(20.0, 1.0)]
        assert frames_and_weight(keys, -5.0) == (0, 1, 0.0)

    def test_after_last_clamps(self):
        keys = [Keyframe(10.0, 0.0), Keyframe(20.0, 1.0)]
        assert frames_and_weight(keys, 50.0) == (1, 1, 0.0)

    def test_midpoint_weight(self):
        keys = [Keyframe(10.0, 0.0), Keyframe(20.0, 1.0), Keyframe(40.0, 2.0)]
        assert frames_and_weight(keys, 30.0) == (1, 2, 0.5)

    def test_exact_keyframe_time_selects_that_keyframe(self):
        keys = [Keyframe(0.0, 0.0), Keyframe(10.0, 1.0), Keyframe(20.0, 2.0)]
        assert frames_and_weight(keys, 10.0) == (1, 2, 0.0)

    def test_hold_forces_zero_weight(self):
        keys = [Keyframe(0.0, 0.0, hold=True), Keyframe(10.0, 1.0)]
        assert frames_and_weight(keys, 9.0) == (0, 1, 0.0)

    def test_easing_applied_to_weight(self):
        easing = Easing((0.42, 0.0), (1.0, 1.0))
        keys = [Keyframe(0.0, 0.0, easing=easing), Keyframe(10.0, 1.0)]
        _, _, t = frames_and_weight(keys, 5.0)
        assert t == pytest.approx(easing.ease(0.5))

    def test_duplicate_times_jump_to_later_keyframe(self):
        keys = [Keyframe(0.0, 0.0), Keyframe(5.0, 1.0), Keyframe(5.0, 9.0)]
        ix0, _, t = frames_and_weight(keys, 5.0)
        assert ix0 == 2
        assert t == 0.0


class TestTween:
    def test_scalar(self):
        assert tween(2.0, 4.0, 0.25) == 2.5

    def test_point_keeps_type(self):
        result = tween(Point(0.0, 10.0), Point(10.0, 20.0), 0.5)
        assert isinstance(result, Point)
        assert result == Point(5.0, 15.0)

    def test_color_channels_independent(self):
        result = tween(Color(0.0, 1.0, 0.0, 1.0), Color(1.0, 0.0, 0.0, 0.0), 0.5)
        assert result == Color(0.5, 0.5, 0.0, 0.5)

    def test_plain_tuple(self):
        assert tween((0.0, 2.0), (2.0, 4.0), 0.5) == (1.0, 3.0)

    def test_list_of_points(self):
        result = tween([Point(0.0, 0.0)], [Point(2.0, 2.0)], 0.5)
        assert result == [Point(1.0, 1.0)]

    def test_zero_weight_returns_start_exactly(self):
        start = Point(0.1, 0.2)
        assert tween(start, Point(5.0, 5.0), 0.0) is start


class TestFixed:
    def test_is_fixed(self):
        assert Fixed(3.0).is_fixed()

    @pytest.mark.parametrize("frame", [-100.0, 0.0, 12.5, 1e6])
    def test_same_value_every_frame(self, frame):
        value = Fixed(Point(1.0, 2.0))
        assert value.evaluate(frame) == Point(1.0, 2.0)


class TestAnimated:
    def test_is_not_fixed(self):
        assert not _ramp((0.0, 0.0), (10.0, 1.0)).is_fixed()

    def test_exact_keyframe_values(self):
        value = _ramp((0.0, 0.3), (10.0, 0.7), (25.0, 0.1))
        assert value.evaluate(0.0) == 0.3
        assert value.evaluate(10.0) == 0.7
        assert value.evaluate(25.0) == 0.1

    def test_linear_interpolation(self):
        value = _ramp((0.0, 0.0), (10.0, 100.0))
        assert value.evaluate(5.0) == 50.0
        assert value.evaluate(2.5) == 25.0

    def test_clamps_before_and_after(self):
        value = _ramp((10.0, 1.0), (20.0, 2.0))
        assert value.evaluate(-1.0) == 1.0
        assert value.evaluate(1e9) == 2.0

    def test_single_keyframe_clamps_everywhere(self):
        value = _ramp((4.0, 7.0))
        assert value.evaluate(0.0) == 7.0
        assert value.evaluate(100.0) == 7.0

    def test_hold_keyframe_holds_until_next(self):
        value = Animated([
            Keyframe(0.0, 1.0, hold=True),
            Keyframe(10.0, 5.0),
        ])
        assert value.evaluate(0.0) == 1.0
        assert value.evaluate(5.0) == 1.0
        assert value.evaluate(9.999) == 1.0
        assert value.evaluate(10.0) == 5.0

    def test_point_interpolation(self):
        value = Animated([
            Keyframe(0.0, Point(0.0, 0.0)),
            Keyframe(4.0, Point(8.0, -4.0)),
        ])
        assert value.evaluate(1.0) == Point(2.0, -1.0)

    def test_empty_returns_default(self):
        assert Animated([]).evaluate(3.0) is None
        assert Animated([], default=0.5).evaluate(3.0) == 0.5

    def test_keyframes_stored_as_tuple(self):
        value = _ramp((0.0, 0.0))
        assert isinstance(value.keyframes, tuple)
