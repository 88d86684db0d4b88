"""Scene sink: the boundary between evaluation and rasterization.

The renderer never touches pixels. It pushes operations into a sink in
paint order (back to front):

  fill(path, transform, brush)
  stroke(path, transform, brush, style)
  push_layer(blend, alpha, transform, clip)   isolate / clip / blend a group
  pop_layer()                                 composite the group back

Transforms are absolute 3x3 matrices; paths are in local coordinates.
A clip of None means "no clip shape" (the layer covers everything).

RecordingSink keeps the operations as plain dataclasses, which is what
Renderer.render() returns.
"""

from dataclasses import dataclass
from typing import Protocol

import numpy as np

from .animated import GradientPaint, StrokeStyle
from .common import Color
from .model import BlendMode


@dataclass(frozen=True, eq=False)
class FillOp:
    path: tuple
    transform: np.ndarray
    brush: Color | GradientPaint


@dataclass(frozen=True, eq=False)
class StrokeOp:
    path: tuple
    transform: np.ndarray
    brush: Color | GradientPaint
    style: StrokeStyle


@dataclass(frozen=True, eq=False)
class PushLayerOp:
    blend: BlendMode
    alpha: float
    transform: np.ndarray
    clip: tuple | None = None


@dataclass(frozen=True)
class PopLayerOp:
    pass


class SceneSink(Protocol):
    def fill(self, path, transform: np.ndarray, brush) -> None: ...

    def stroke(self, path, transform: np.ndarray, brush, style: StrokeStyle) -> None: ...

    def push_layer(
        self, blend: BlendMode, alpha: float, transform: np.ndarray, clip=None,
    ) -> None: ...

    def pop_layer(self) -> None: ...


class RecordingSink:
    """Sink that records every operation in order."""

    def __init__(self):
        self.ops: list = []

    def fill(self, path, transform, brush):
        self.ops.append(FillOp(tuple(path), transform, brush))

    def stroke(self, path, transform, brush, style):
        self.ops.append(StrokeOp(tuple(path), transform, brush, style))

    def push_layer(self, blend, alpha, transform, clip=None):
        clip = None if clip is None else tuple(clip)
        self.ops.append(PushLayerOp(blend, alpha, transform, clip))

    def pop_layer(self):
        self.ops.append(PopLayerOp())
