"""Renderer: walks a composition at one frame and emits drawing operations.

For each layer, in paint order (back to front):
  1. Skip it if the frame is outside its active range. Matte sources
     (is_mask) are only drawn through the layer that references them.
  2. Compose its transform beneath its parent chain, then beneath the
     caller's base transform. Parent chains are walked with a visited set,
     so a cyclic chain is cut off instead of looping.
  3. Multiply its opacity into the base alpha.
  4. Open the layer's scopes on the sink: blend mode, track matte, masks.
  5. Draw the content: nothing, an asset instance (recursing into the
     asset's layers on a remapped timeline) or a shape tree.
  6. Close the scopes.

Shape trees are walked with an explicit path accumulator per group:
geometry appends to it, draws paint it (without clearing it), and a
repeater re-walks the remaining siblings once per copy.

Nothing here raises for a structurally valid composition. Missing assets,
dangling indices, cycles and malformed geometry draw nothing and are
reported on the module logger at DEBUG level.
"""

import logging

import numpy as np

from .model import (
    BlendMode,
    Composition,
    Draw,
    GeometryShape,
    Group,
    Instance,
    Layer,
    Matte,
    ShapeContent,
)
from .settings import RenderSettings
from .sink import RecordingSink, SceneSink

log = logging.getLogger(__name__)


def _matrix(value, frame: float) -> np.ndarray:
    matrix = value.evaluate(frame)
    return np.eye(3) if matrix is None else matrix


def _opacity(value, frame: float) -> float:
    opacity = value.evaluate(frame)
    return 1.0 if opacity is None else float(opacity)


# ── Path accumulation ────────────────────────────────────────────


class _PathAccumulator:
    """Geometry gathered within one group, as [path, transform] entries.

    Consecutive geometry under the same transform shares one entry, so a
    draw over several shapes in a group emits a single operation.
    """

    def __init__(self, entries: list | None = None):
        self.entries = entries if entries is not None else []

    def add(self, geometry, transform: np.ndarray, frame: float) -> None:
        if self.entries and np.array_equal(self.entries[-1][1], transform):
            geometry.evaluate(frame, self.entries[-1][0])
        else:
            path = []
            geometry.evaluate(frame, path)
            self.entries.append([path, transform])

    def extend(self, other: "_PathAccumulator") -> None:
        self.entries.extend(other.entries)

    def rebased(self, base: np.ndarray, offset: np.ndarray) -> "_PathAccumulator":
        """Copy with every entry moved by *offset*, expressed in *base* space.

        Entries carry absolute transforms (base, or base followed by nested
        group transforms), so the offset is conjugated into device space and
        applied in front: base @ offset @ inv(base) @ entry.
        """
        try:
            inverse = np.linalg.inv(base)
        except np.linalg.LinAlgError:
            inverse = np.linalg.pinv(base)
        shift = base @ offset @ inverse
        return _PathAccumulator(
            [[list(path), shift @ transform] for path, transform in self.entries]
        )


# ── Renderer ─────────────────────────────────────────────────────


class Renderer:
    """Evaluates compositions into scene sink operations.

    Holds only settings; every call is independent of the previous ones.
    """

    def __init__(self, settings: RenderSettings | None = None):
        self.settings = settings or RenderSettings()

    def render(
        self,
        composition: Composition,
        frame: float,
        transform: np.ndarray | None = None,
        alpha: float = 1.0,
    ) -> list:
        """Render one frame and return the recorded operations."""
        sink = RecordingSink()
        self.append(composition, frame, transform, alpha, sink)
        return sink.ops

    def append(
        self,
        composition: Composition,
        frame: float,
        transform: np.ndarray | None,
        alpha: float,
        sink: SceneSink,
    ) -> None:
        """Render one frame into an existing sink."""
        base = np.eye(3) if transform is None else np.asarray(transform, dtype=float)
        self._render_layers(composition, composition.layers, frame, base, alpha, sink, 0)

    # ── Layers ──

    def _render_layers(self, composition, layers, frame, transform, alpha, sink, depth):
        for index, layer in enumerate(layers):
            if layer.is_mask:
                continue
            self._render_layer(
                composition, layers, index, frame, transform, alpha, sink, depth,
            )

    def _render_layer(
        self,
        composition: Composition,
        layers: tuple,
        index: int,
        frame: float,
        transform: np.ndarray,
        alpha: float,
        sink: SceneSink,
        depth: int,
        mattes: frozenset = frozenset(),
    ) -> None:
        layer = layers[index]
        if not layer.is_active(frame):
            return

        matte_index = None
        if layer.mask_layer is not None:
            matte_index = layer.mask_layer[1]
            if not 0 <= matte_index < len(layers):
                log.debug("Layer '%s': matte index %d out of range", layer.name, matte_index)
                return
            if matte_index in mattes or matte_index == index:
                log.debug("Layer '%s': cyclic matte reference %d", layer.name, matte_index)
                return
            if layer.matte is not Matte.NORMAL:
                log.debug(
                    "Layer '%s': matte mode %s not evaluated, using normal",
                    layer.name, layer.matte.value,
                )

        layer_transform = self._layer_transform(layers, index, frame, transform)
        layer_alpha = alpha * _opacity(layer.opacity, frame)

        scopes = 0
        if layer.blend_mode is not None:
            sink.push_layer(layer.blend_mode, 1.0, transform, None)
            scopes += 1

        if matte_index is not None:
            # Matte source first, then the content composited against it.
            sink.push_layer(BlendMode(), 1.0, transform, None)
            self._render_layer(
                composition, layers, matte_index, frame, transform, alpha, sink,
                depth, mattes | {index},
            )
            sink.push_layer(layer.mask_layer[0], 1.0, transform, None)
            scopes += 2

        for mask in layer.masks:
            path = []
            mask.geometry.evaluate(frame, path)
            sink.push_layer(mask.mode, _opacity(mask.opacity, frame), layer_transform, path)
            scopes += 1

        content = layer.content
        if isinstance(content, Instance):
            self._render_instance(
                composition, layer, content, frame, layer_transform, layer_alpha,
                sink, depth,
            )
        elif isinstance(content, ShapeContent):
            self._render_shapes(
                content.shapes, layer_transform, layer_alpha, frame,
                _PathAccumulator(), sink,
            )

        for _ in range(scopes):
            sink.pop_layer()

    def _layer_transform(self, layers, index, frame, base) -> np.ndarray:
        """Own transform composed beneath the parent chain and *base*."""
        layer = layers[index]
        matrix = _matrix(layer.transform, frame)
        visited = {index}
        parent = layer.parent
        while parent is not None:
            if parent in visited:
                log.debug("Layer '%s': parent cycle at index %d", layer.name, parent)
                break
            if not 0 <= parent < len(layers):
                log.debug("Layer '%s': parent index %d out of range", layer.name, parent)
                break
            visited.add(parent)
            ancestor = layers[parent]
            matrix = _matrix(ancestor.transform, frame) @ matrix
            parent = ancestor.parent
        return base @ matrix

    def _render_instance(
        self,
        composition: Composition,
        layer: Layer,
        content: Instance,
        frame: float,
        transform: np.ndarray,
        alpha: float,
        sink: SceneSink,
        depth: int,
    ) -> None:
        asset = composition.asset(content.name)
        if asset is None:
            log.debug("Layer '%s': unresolved asset '%s'", layer.name, content.name)
            return
        if depth >= self.settings.max_instance_depth:
            log.debug(
                "Layer '%s': instance depth limit %d reached",
                layer.name, self.settings.max_instance_depth,
            )
            return

        local_frame = None
        if content.time_remap is not None:
            local_frame = content.time_remap.evaluate(frame)
        if local_frame is None:
            stretch = layer.stretch if layer.stretch != 0.0 else 1.0
            local_frame = (frame - layer.start_frame) / stretch

        self._render_layers(
            composition, asset, local_frame, transform, alpha, sink, depth + 1,
        )

    # ── Shapes ──

    def _render_shapes(self, shapes, transform, alpha, frame, acc, sink) -> None:
        for position, shape in enumerate(shapes):
            if isinstance(shape, Group):
                group_transform, group_alpha = transform, alpha
                if shape.transform is not None:
                    group_transform = transform @ _matrix(shape.transform.transform, frame)
                    group_alpha = alpha * _opacity(shape.transform.opacity, frame)
                child = _PathAccumulator()
                self._render_shapes(
                    shape.children, group_transform, group_alpha, frame, child, sink,
                )
                acc.extend(child)
            elif isinstance(shape, GeometryShape):
                acc.add(shape.geometry, transform, frame)
            elif isinstance(shape, Draw):
                self._draw(shape, alpha, frame, acc, sink)
            else:
                # Repeater: the remaining siblings are walked once per copy.
                params = shape.repeater.evaluate(frame)
                remaining = shapes[position + 1:]
                repeated = _PathAccumulator()
                for copy in range(params.copies):
                    copy_alpha = params.copy_opacity(copy)
                    if copy_alpha <= 0.0:
                        continue
                    offset = params.copy_transform(copy)
                    copy_acc = acc.rebased(transform, offset)
                    self._render_shapes(
                        remaining, transform @ offset, alpha * copy_alpha, frame,
                        copy_acc, sink,
                    )
                    repeated.extend(copy_acc)
                acc.entries = repeated.entries
                return

    def _draw(self, draw: Draw, alpha: float, frame: float, acc, sink) -> None:
        if not acc.entries:
            return
        brush = draw.brush.evaluate(alpha * _opacity(draw.opacity, frame), frame)
        if brush is None:
            return
        style = None if draw.stroke is None else draw.stroke.evaluate(frame)
        for path, transform in acc.entries:
            if not path:
                continue
            if style is None:
                sink.fill(tuple(path), transform, brush)
            else:
                sink.stroke(tuple(path), transform, brush, style)
