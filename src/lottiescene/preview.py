"""Reference raster sink for previews and debugging.

Rasterizes scene sink operations into a numpy canvas using Pillow for
polygon coverage. Anti-aliasing comes only from supersampling; fills use
the even-odd rule and Béziers are flattened uniformly. Enough to look at
(and test) a frame without a production backend.

The canvas is premultiplied RGBA float32 in 0..1, shape (h, w, 4).

Layers:
  - push_layer() opens a transparent canvas. Its clip path (if any) is
    rasterized at push time.
  - pop_layer() composites the canvas back onto the one beneath, scaled by
    the layer alpha and clip coverage, using the layer's compose rule.
    SRC_IN, DEST_IN and DEST_OUT are honored (track mattes rely on them);
    every other rule and every blend mix composite as source-over.
"""

import numpy as np
from PIL import Image, ImageDraw

from .animated import GradientPaint, Join
from .common import Color, flatten_path, scale, scale_factor
from .model import Compose, Composition
from .renderer import Renderer
from .settings import PreviewSettings, Settings, default_settings


# ── Paint helpers ────────────────────────────────────────────────


def _premultiply(color: Color) -> np.ndarray:
    r, g, b, a = color
    return np.array([r * a, g * a, b * a, a], dtype=np.float32)


def _shade_gradient(
    paint: GradientPaint, matrix: np.ndarray, width: int, height: int,
) -> np.ndarray | None:
    """Evaluate a gradient at every pixel center, premultiplied (h, w, 4).

    Returns None when the transform cannot be inverted or the gradient has
    no stops.
    """
    if not paint.stops:
        return None
    try:
        inverse = np.linalg.inv(matrix)
    except np.linalg.LinAlgError:
        return None

    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64) + 0.5
    lx = inverse[0, 0] * xs + inverse[0, 1] * ys + inverse[0, 2]
    ly = inverse[1, 0] * xs + inverse[1, 1] * ys + inverse[1, 2]

    sx, sy = paint.start
    if paint.is_radial:
        if paint.radius <= 0.0:
            t = np.ones_like(lx)
        else:
            t = np.hypot(lx - sx, ly - sy) / paint.radius
    else:
        dx, dy = paint.end[0] - sx, paint.end[1] - sy
        length_sq = dx * dx + dy * dy
        if length_sq == 0.0:
            t = np.zeros_like(lx)
        else:
            t = ((lx - sx) * dx + (ly - sy) * dy) / length_sq
    t = np.clip(t, 0.0, 1.0)

    stops = sorted(paint.stops, key=lambda stop: stop.offset)
    offsets = [stop.offset for stop in stops]
    channels = [
        np.interp(t, offsets, [stop.color[c] for stop in stops]) for c in range(4)
    ]
    r, g, b, a = channels
    return np.stack([r * a, g * a, b * a, a], axis=-1).astype(np.float32)


# ── Sink ─────────────────────────────────────────────────────────


class PreviewSink:
    """Scene sink that rasterizes into an RGBA canvas."""

    def __init__(self, width: int, height: int, settings: PreviewSettings | None = None):
        self.settings = settings or PreviewSettings()
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        ss = self.settings.supersample
        self._w = self.width * ss
        self._h = self.height * ss
        self._device = scale(float(ss))
        self._canvas = np.zeros((self._h, self._w, 4), dtype=np.float32)
        # Stack of (parent canvas, blend, alpha, clip coverage or None).
        self._stack: list = []

    # ── Coverage ──

    def _fill_coverage(self, path, transform: np.ndarray) -> np.ndarray:
        subpaths = flatten_path(
            path, self._device @ transform, self.settings.curve_segments,
        )
        inside = np.zeros((self._h, self._w), dtype=bool)
        for points, _closed in subpaths:
            if len(points) < 3:
                continue
            mask = Image.new("L", (self._w, self._h), 0)
            ImageDraw.Draw(mask).polygon([tuple(p) for p in points], fill=255)
            inside ^= np.array(mask) > 127
        return inside.astype(np.float32)

    def _stroke_coverage(self, path, transform: np.ndarray, style) -> np.ndarray:
        matrix = self._device @ transform
        subpaths = flatten_path(path, matrix, self.settings.curve_segments)
        width = max(1, round(style.width * scale_factor(matrix)))
        joint = "curve" if style.join is Join.ROUND else None
        mask = Image.new("L", (self._w, self._h), 0)
        draw = ImageDraw.Draw(mask)
        for points, closed in subpaths:
            line = [tuple(p) for p in points]
            if closed:
                line.append(line[0])
            draw.line(line, fill=255, width=width, joint=joint)
        return (np.array(mask) > 127).astype(np.float32)

    def _paint(self, brush, transform: np.ndarray):
        if isinstance(brush, GradientPaint):
            return _shade_gradient(brush, self._device @ transform, self._w, self._h)
        return _premultiply(Color(*brush))

    def _composite(self, paint, coverage: np.ndarray) -> None:
        if paint is None:
            return
        src = paint * coverage[..., None]
        self._canvas = src + self._canvas * (1.0 - src[..., 3:4])

    # ── SceneSink ──

    def fill(self, path, transform, brush):
        self._composite(self._paint(brush, transform), self._fill_coverage(path, transform))

    def stroke(self, path, transform, brush, style):
        self._composite(
            self._paint(brush, transform), self._stroke_coverage(path, transform, style),
        )

    def push_layer(self, blend, alpha, transform, clip=None):
        coverage = None if clip is None else self._fill_coverage(clip, transform)
        self._stack.append((self._canvas, blend, alpha, coverage))
        self._canvas = np.zeros_like(self._canvas)

    def pop_layer(self):
        if not self._stack:
            return
        layer = self._canvas
        parent, blend, alpha, coverage = self._stack.pop()

        weight = np.full((self._h, self._w), alpha, dtype=np.float32)
        if coverage is not None:
            weight *= coverage
        src = layer * weight[..., None]

        compose = blend.compose
        if compose is Compose.SRC_IN:
            self._canvas = src * parent[..., 3:4]
        elif compose is Compose.DEST_IN:
            self._canvas = parent * src[..., 3:4]
        elif compose is Compose.DEST_OUT:
            self._canvas = parent * (1.0 - src[..., 3:4])
        else:
            self._canvas = src + parent * (1.0 - src[..., 3:4])

    # ── Output ──

    def to_array(self) -> np.ndarray:
        """Flattened frame over the background, uint8 (h, w, 4)."""
        canvas = self._canvas
        ss = self.settings.supersample
        if ss > 1:
            canvas = canvas.reshape(self.height, ss, self.width, ss, 4).mean(axis=(1, 3))
        background = np.array(self.settings.background, dtype=np.float32) / 255.0
        rgb = canvas[..., :3] + background * (1.0 - canvas[..., 3:4])
        out = np.empty(canvas.shape[:2] + (4,), dtype=np.uint8)
        out[..., :3] = np.clip(np.round(rgb * 255.0), 0, 255).astype(np.uint8)
        out[..., 3] = 255
        return out

    def image(self) -> Image.Image:
        return Image.fromarray(self.to_array())


def render_preview(
    composition: Composition,
    frame: float,
    settings: Settings | None = None,
) -> Image.Image:
    """Render one frame of a composition to a Pillow image."""
    settings = settings or default_settings()
    sink = PreviewSink(composition.width, composition.height, settings.preview)
    Renderer(settings.render).append(composition, frame, None, 1.0, sink)
    return sink.image()
