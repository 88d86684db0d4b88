"""Tests for lottiescene.common utilities."""

import math

import numpy as np
import pytest

from lottiescene.common import (
    ClosePath,
    Color,
    CurveTo,
    LineTo,
    MoveTo,
    Point,
    apply,
    flatten_path,
    identity,
    parse_hex_color,
    rotate,
    scale,
    scale_factor,
    shear,
    translate,
)


class TestParseHexColor:
    def test_with_hash(self):
        assert parse_hex_color("#e04c77") == (224, 76, 119)

    def test_without_hash(self):
        assert parse_hex_color("1A1A1A") == (26, 26, 26)

    def test_black(self):
        assert parse_hex_color("#000000") == (0, 0, 0)

    def test_white(self):
        assert parse_hex_color("#FFFFFF") == (255, 255, 255)

    def test_invalid_raises(self):
        with pytest.raises(ValueError, match="Invalid hex color"):
            parse_hex_color("#12345")


class TestColor:
    def test_default_alpha_is_opaque(self):
        assert Color(0.1, 0.2, 0.3).a == 1.0

    def test_with_alpha_factor(self):
        assert Color(1.0, 0.5, 0.0, 0.8).with_alpha_factor(0.5) == Color(1.0, 0.5, 0.0, 0.4)


class TestAffine:
    def test_identity(self):
        assert np.array_equal(identity(), np.eye(3))

    def test_translate(self):
        assert apply(translate(3.0, -2.0), Point(1.0, 1.0)) == Point(4.0, -1.0)

    def test_rotate_quarter_turn(self):
        p = apply(rotate(math.pi / 2), Point(1.0, 0.0))
        assert p[0] == pytest.approx(0.0, abs=1e-12)
        assert p[1] == pytest.approx(1.0)

    def test_uniform_scale(self):
        assert apply(scale(2.0), Point(1.5, -1.0)) == Point(3.0, -2.0)

    def test_non_uniform_scale(self):
        assert apply(scale(2.0, 3.0), Point(1.0, 1.0)) == Point(2.0, 3.0)

    def test_shear_x(self):
        assert apply(shear(0.5, 0.0), Point(0.0, 2.0)) == Point(1.0, 2.0)

    def test_composition_applies_right_first(self):
        matrix = translate(10.0, 0.0) @ scale(2.0)
        assert apply(matrix, Point(1.0, 1.0)) == Point(12.0, 2.0)

    def test_scale_factor(self):
        assert scale_factor(scale(2.0, 8.0)) == pytest.approx(4.0)
        assert scale_factor(rotate(0.3)) == pytest.approx(1.0)


class TestFlattenPath:
    def test_polyline_is_transformed(self):
        path = [MoveTo(Point(0.0, 0.0)), LineTo(Point(1.0, 0.0)), LineTo(Point(1.0, 1.0))]
        subpaths = flatten_path(path, translate(5.0, 5.0))
        assert subpaths == [([Point(5.0, 5.0), Point(6.0, 5.0), Point(6.0, 6.0)], False)]

    def test_close_marks_subpath_closed(self):
        path = [
            MoveTo(Point(0.0, 0.0)),
            LineTo(Point(1.0, 0.0)),
            LineTo(Point(1.0, 1.0)),
            ClosePath(),
        ]
        subpaths = flatten_path(path, identity())
        assert len(subpaths) == 1
        assert subpaths[0][1] is True

    def test_curve_subdivided(self):
        path = [
            MoveTo(Point(0.0, 0.0)),
            CurveTo(Point(0.0, 1.0), Point(1.0, 1.0), Point(1.0, 0.0)),
        ]
        points, closed = flatten_path(path, identity(), segments=8)[0]
        assert len(points) == 9
        assert points[-1] == Point(1.0, 0.0)
        assert not closed

    def test_multiple_subpaths(self):
        path = [
            MoveTo(Point(0.0, 0.0)), LineTo(Point(1.0, 0.0)),
            MoveTo(Point(5.0, 5.0)), LineTo(Point(6.0, 5.0)),
        ]
        assert len(flatten_path(path, identity())) == 2

    def test_lone_move_is_dropped(self):
        assert flatten_path([MoveTo(Point(0.0, 0.0))], identity()) == []
