"""Scene graph data model.

A Composition is built once (by whatever maps a source document into these
types) and is read-only afterwards. The renderer only reads it.

Layout of the tree:

  Composition
    layers: [Layer, ...]              paint order, back to front
    assets: {name: [Layer, ...]}      precomposed content for Instance layers

  Layer
    transform / opacity               Values (fixed or animated)
    parent                            index into the same layer list
    masks: [Mask, ...]                clip the layer's content
    mask_layer: (BlendMode, index)    track matte source for this layer
    content: NoContent | Instance | ShapeContent

  Shape (recursive)
    Group(children, GroupTransform?)
    GeometryShape(Geometry)           feeds the group's current path
    Draw(stroke?, brush, opacity)     fills or strokes the current path
    RepeaterShape(Repeater)           repeats the remaining siblings

Opacity values throughout the model are fractions in 0..1.
"""

import enum
from dataclasses import dataclass, field

from .animated import (
    Brush,
    Ellipse,
    Rect,
    Spline,
    Transform,
)
from .value import Fixed, Value


# ── Blend modes ──────────────────────────────────────────────────


class Mix(enum.Enum):
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    COLOR_DODGE = "color-dodge"
    COLOR_BURN = "color-burn"
    HARD_LIGHT = "hard-light"
    SOFT_LIGHT = "soft-light"
    DIFFERENCE = "difference"
    EXCLUSION = "exclusion"
    HUE = "hue"
    SATURATION = "saturation"
    COLOR = "color"
    LUMINOSITY = "luminosity"
    # Clip only, no blending; used for isolation layers.
    CLIP = "clip"


class Compose(enum.Enum):
    CLEAR = "clear"
    COPY = "copy"
    DEST = "dest"
    SRC_OVER = "src-over"
    DEST_OVER = "dest-over"
    SRC_IN = "src-in"
    DEST_IN = "dest-in"
    SRC_OUT = "src-out"
    DEST_OUT = "dest-out"
    SRC_ATOP = "src-atop"
    DEST_ATOP = "dest-atop"
    XOR = "xor"
    PLUS = "plus"


@dataclass(frozen=True)
class BlendMode:
    mix: Mix = Mix.NORMAL
    compose: Compose = Compose.SRC_OVER


class Matte(enum.Enum):
    """Track matte mode. Only NORMAL is evaluated; the rest render as NORMAL."""

    NORMAL = "normal"
    ALPHA = "alpha"
    INVERT_ALPHA = "invert-alpha"
    LUMA = "luma"
    INVERT_LUMA = "invert-luma"


# ── Geometry ─────────────────────────────────────────────────────


class Geometry:
    """Something that appends path elements for a frame."""

    def evaluate(self, frame: float, path: list) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class FixedGeometry(Geometry):
    elements: tuple

    def __post_init__(self):
        object.__setattr__(self, "elements", tuple(self.elements))

    def evaluate(self, frame: float, path: list) -> None:
        path.extend(self.elements)


@dataclass(frozen=True)
class RectGeometry(Geometry):
    rect: Rect

    def evaluate(self, frame: float, path: list) -> None:
        path.extend(self.rect.evaluate(frame))


@dataclass(frozen=True)
class EllipseGeometry(Geometry):
    ellipse: Ellipse

    def evaluate(self, frame: float, path: list) -> None:
        path.extend(self.ellipse.evaluate(frame))


@dataclass(frozen=True)
class SplineGeometry(Geometry):
    spline: Spline

    def evaluate(self, frame: float, path: list) -> None:
        self.spline.evaluate(frame, path)


def geometry_model(shape: Rect | Ellipse | Spline) -> Geometry:
    """Wrap an animated shape as Geometry, collapsing fixed shapes to a path."""
    if isinstance(shape, Spline):
        if shape.is_fixed():
            path = []
            shape.evaluate(0.0, path)
            return FixedGeometry(path)
        return SplineGeometry(shape)
    if shape.is_fixed():
        return FixedGeometry(shape.evaluate(0.0))
    if isinstance(shape, Rect):
        return RectGeometry(shape)
    return EllipseGeometry(shape)


# ── Shapes ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class GroupTransform:
    transform: Value
    opacity: Value = Fixed(1.0)


@dataclass(frozen=True)
class Group:
    children: tuple
    transform: GroupTransform | None = None

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class GeometryShape:
    geometry: Geometry


@dataclass(frozen=True)
class Draw:
    """Fill (stroke is None) or stroke of the group's current path."""

    brush: Brush
    stroke: Value | None = None
    opacity: Value = Fixed(1.0)


@dataclass(frozen=True)
class RepeaterShape:
    repeater: Value


Shape = Group | GeometryShape | Draw | RepeaterShape


# ── Layers ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Mask:
    mode: BlendMode
    geometry: Geometry
    opacity: Value = Fixed(1.0)


@dataclass(frozen=True)
class NoContent:
    pass


@dataclass(frozen=True)
class Instance:
    """Reference to a precomposed asset, optionally time-remapped."""

    name: str
    time_remap: Value | None = None


@dataclass(frozen=True)
class ShapeContent:
    shapes: tuple

    def __post_init__(self):
        object.__setattr__(self, "shapes", tuple(self.shapes))


Content = NoContent | Instance | ShapeContent


@dataclass(frozen=True)
class Layer:
    name: str = ""
    parent: int | None = None
    transform: Value = Transform()
    opacity: Value = Fixed(1.0)
    width: float = 0.0
    height: float = 0.0
    blend_mode: BlendMode | None = None
    # Active range; end is exclusive. Unbounded unless given.
    frames: tuple[float, float] = (float("-inf"), float("inf"))
    stretch: float = 1.0
    # Only applied to instances.
    start_frame: float = 0.0
    masks: tuple = ()
    is_mask: bool = False
    mask_layer: tuple[BlendMode, int] | None = None
    matte: Matte = Matte.NORMAL
    content: Content = NoContent()

    def __post_init__(self):
        object.__setattr__(self, "masks", tuple(self.masks))

    def is_active(self, frame: float) -> bool:
        start, end = self.frames
        return start <= frame < end


@dataclass(frozen=True)
class Composition:
    # Active range; end is exclusive.
    frames: tuple[float, float] = (0.0, 0.0)
    frame_rate: float = 0.0
    width: int = 0
    height: int = 0
    assets: dict = field(default_factory=dict)
    layers: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "layers", tuple(self.layers))

    def layer(self, index: int) -> Layer | None:
        """Top-level layer at *index*, or None when out of range."""
        if 0 <= index < len(self.layers):
            return self.layers[index]
        return None

    def asset(self, name: str) -> tuple | None:
        """Layers of the asset named *name*, or None when unresolved."""
        layers = self.assets.get(name)
        return None if layers is None else tuple(layers)
