"""Shared test fixtures for lottiescene tests."""

import pytest

from lottiescene.animated import FixedBrush, Rect
from lottiescene.common import Color, Point, Size
from lottiescene.model import (
    Composition,
    Draw,
    GeometryShape,
    Layer,
    ShapeContent,
    geometry_model,
)
from lottiescene.value import Fixed


@pytest.fixture
def red_square_composition():
    """A 10x10 composition with one red 6x6 square centered at (5, 5).

    Active for frames 0-60. Shared across renderer and preview tests.
    """
    square = GeometryShape(geometry_model(
        Rect(position=Fixed(Point(5.0, 5.0)), size=Fixed(Size(6.0, 6.0))),
    ))
    fill = Draw(brush=FixedBrush(Color(1.0, 0.0, 0.0, 1.0)))
    layer = Layer(
        name="square",
        frames=(0.0, 60.0),
        content=ShapeContent([square, fill]),
    )
    return Composition(
        frames=(0.0, 60.0), frame_rate=30.0, width=10, height=10, layers=[layer],
    )
