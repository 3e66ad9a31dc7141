from dataclasses import dataclass
from typing import Tuple

from .config import DEFAULT_CONFIG, GraphConfig


@dataclass(frozen=True)
class ZoomTransform:
    """Pan and zoom as one affine map: screen = world * k + (x, y)."""
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, point: Tuple[float, float]) -> Tuple[float, float]:
        return point[0] * self.k + self.x, point[1] * self.k + self.y

    def invert(self, point: Tuple[float, float]) -> Tuple[float, float]:
        return (point[0] - self.x) / self.k, (point[1] - self.y) / self.k

    def translate_by(self, dx: float, dy: float) -> "ZoomTransform":
        return ZoomTransform(self.x + dx, self.y + dy, self.k)

    def scale_about(self, point: Tuple[float, float], k: float) -> "ZoomTransform":
        """Zooms to ``k`` keeping ``point`` (in screen space) fixed."""
        wx, wy = self.invert(point)
        return ZoomTransform(point[0] - wx * k, point[1] - wy * k, k)


IDENTITY = ZoomTransform()


@dataclass(frozen=True)
class ScaledSizes:
    node_radius: float
    font_size: float
    letter_spacing: float
    label_offset: float
    link_width: float
    arrow_size: float


class ZoomCompensator:
    """Keeps apparent sizes constant while the canvas is zoomed.

    Sizes are always derived from the base (k=1) values of the config, never
    from the previously applied ones, so successive zooms do not compound.
    """

    def __init__(self, binder, config: GraphConfig = DEFAULT_CONFIG):
        self.binder = binder
        self.config = config
        self.transform = IDENTITY

    @property
    def scale(self) -> float:
        return self.transform.k

    def sizes(self) -> ScaledSizes:
        k = self.transform.k
        c = self.config
        return ScaledSizes(
            node_radius=c.node_radius / k,
            font_size=c.font_size / k,
            letter_spacing=c.letter_spacing / k,
            # Negative: labels sit above their node
            label_offset=-c.font_size / k,
            link_width=c.link_width / k,
            arrow_size=c.arrow_size / k,
        )

    def clamp(self, k: float) -> float:
        return max(self.config.min_zoom, min(self.config.max_zoom, k))

    def apply(self, transform: ZoomTransform):
        self.transform = transform
        self.binder.set_view_transform(transform)
        self.binder.apply_sizes(self.sizes())
