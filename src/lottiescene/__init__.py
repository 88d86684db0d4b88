"""lottiescene: frame evaluation for Lottie-style vector animations.

Evaluate a keyframed scene graph (compositions, layers, shape trees) at any
frame and emit fill/stroke/layer operations to a scene sink. Rasterizing
those operations is the sink's job; a simple Pillow preview sink is included.
"""

from .model import Composition
from .renderer import Renderer

__all__ = ["Composition", "Renderer"]
