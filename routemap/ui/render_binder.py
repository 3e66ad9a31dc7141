import logging
import math
from typing import Dict, Iterable, Optional, Sequence, Set, Tuple

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QPen, QPolygonF, QTransform
from PyQt6.QtWidgets import (QGraphicsEllipseItem, QGraphicsItemGroup, QGraphicsLineItem,
                             QGraphicsPolygonItem, QGraphicsScene, QGraphicsSimpleTextItem)

from ..config import DEFAULT_CONFIG, GraphConfig
from ..model import VisualEdge, VisualNode
from ..zoom import IDENTITY, ScaledSizes, ZoomTransform

logger = logging.getLogger(__name__)


class NodeItem(QGraphicsEllipseItem):
    def __init__(self, uid, parent=None):
        super().__init__(parent)
        self.uid = uid
        self.radius = 0.0

    def set_radius(self, radius):
        self.radius = radius
        self.setRect(QRectF(-radius, -radius, radius * 2, radius * 2))


# Qt stores letter spacing in 1/64 steps, too coarse for the tiny
# compensated sizes. Labels are laid out this many times larger and
# scaled down by their transform.
LABEL_OVERSAMPLE = 40


class LabelItem(QGraphicsSimpleTextItem):
    """Text centred horizontally on its position, baseline shifted by ``offset``.

    The font is set once at the base size; zoom compensation only changes
    the scale factor of the item transform.
    """

    def __init__(self, uid, text, font_size, letter_spacing, parent=None):
        super().__init__(text, parent)
        self.uid = uid
        self.base_font_size = font_size
        self.offset = 0.0
        self.factor = 1.0 / LABEL_OVERSAMPLE

        font = QFont(self.font())
        font.setPointSizeF(font_size * LABEL_OVERSAMPLE)
        font.setLetterSpacing(QFont.SpacingType.AbsoluteSpacing, letter_spacing * LABEL_OVERSAMPLE)
        self.setFont(font)

    @property
    def font_size(self):
        return self.font().pointSizeF() * self.factor

    @property
    def letter_spacing(self):
        return self.font().letterSpacing() * self.factor

    def set_label(self, text):
        if text != self.text():
            self.setText(text)
            self._realign()

    def apply_size(self, font_size, offset):
        self.factor = font_size / (self.base_font_size * LABEL_OVERSAMPLE)
        self.offset = offset
        self._realign()

    def _realign(self):
        s = self.factor
        width = self.boundingRect().width()
        ascent = QFontMetricsF(self.font()).ascent()
        self.setTransform(QTransform(s, 0.0, 0.0, s, -width * s / 2, self.offset - ascent * s))


class LinkItem(QGraphicsLineItem):
    """Directed line with an arrowhead resting on the target node's rim."""

    def __init__(self, uid, parent=None):
        super().__init__(parent)
        self.uid = uid
        self.arrow = QGraphicsPolygonItem(self)
        self.arrow.setPen(QPen(Qt.PenStyle.NoPen))
        self.arrow_size = 0.0
        self.inset = 0.0

    def set_width(self, width):
        pen = QPen(self.pen())
        pen.setWidthF(width)
        self.setPen(pen)

    def set_endpoints(self, x1, y1, x2, y2):
        self.setLine(x1, y1, x2, y2)

        dx = x2 - x1
        dy = y2 - y1
        dist = math.sqrt(dx * dx + dy * dy)
        # Nodes overlap, nothing sensible to point at
        if dist <= self.inset:
            self.arrow.setVisible(False)
            return
        dx /= dist
        dy /= dist

        end_x = x2 - dx * self.inset
        end_y = y2 - dy * self.inset
        size = self.arrow_size
        self.arrow.setPolygon(QPolygonF([
            QPointF(end_x, end_y),
            QPointF(end_x - dx * size + dy * size * 0.5, end_y - dy * size - dx * size * 0.5),
            QPointF(end_x - dx * size - dy * size * 0.5, end_y - dy * size + dx * size * 0.5),
        ]))
        self.arrow.setVisible(True)


class RenderBinder:
    """Keeps one scene primitive per visual node and edge.

    Nodes get a circle and a label, edges a line. Primitives are keyed by
    identity: reconciliation adds and removes them, ticks only move them.
    Everything hangs off a single root group carrying the pan/zoom transform.
    """

    def __init__(self, scene: QGraphicsScene, config: GraphConfig = DEFAULT_CONFIG):
        self.scene = scene
        self.config = config
        self.sizes: Optional[ScaledSizes] = None
        self.transform: ZoomTransform = IDENTITY

        self.root = QGraphicsItemGroup()
        scene.addItem(self.root)
        # Order matters: links below nodes, labels on top
        self.links_layer = QGraphicsItemGroup(self.root)
        self.nodes_layer = QGraphicsItemGroup(self.root)
        self.labels_layer = QGraphicsItemGroup(self.root)

        self._node_brush = QBrush(QColor(config.node_color))
        self._label_brush = QBrush(QColor(config.label_color))
        self._link_pen = QPen(QColor(config.link_color))
        self._arrow_brush = QBrush(QColor(config.link_color))

        self._nodes: Dict[str, Tuple[VisualNode, NodeItem, LabelItem]] = {}
        self._edges: Dict[str, Tuple[VisualEdge, LinkItem]] = {}

    # --- Reconciliation ----------------------------------------------------

    def on_reconcile(self, nodes: Sequence[VisualNode], edges: Sequence[VisualEdge], sizes: ScaledSizes):
        self.sizes = sizes
        self._bind_nodes(nodes)
        self._bind_edges(edges)
        # Also syncs positions
        self.apply_sizes(sizes)

    def _bind_nodes(self, nodes):
        wanted = {node.id: node for node in nodes}
        for uid in list(self._nodes):
            if uid not in wanted:
                _, circle, label = self._nodes.pop(uid)
                self.scene.removeItem(circle)
                self.scene.removeItem(label)

        for uid, node in wanted.items():
            bound = self._nodes.get(uid)
            if bound is None:
                circle = NodeItem(uid, self.nodes_layer)
                circle.setBrush(self._node_brush)
                circle.setPen(QPen(Qt.PenStyle.NoPen))
                label = LabelItem(uid, node.display_name, self.config.font_size,
                                  self.config.letter_spacing, self.labels_layer)
                label.setBrush(self._label_brush)
            else:
                _, circle, label = bound
                label.set_label(node.display_name)
            self._nodes[uid] = (node, circle, label)

    def _bind_edges(self, edges):
        wanted = {}
        for edge in edges:
            if edge.source_id not in self._nodes or edge.target_id not in self._nodes:
                logger.debug("Not drawing edge %s: endpoint missing", edge.id)
                continue
            wanted[edge.id] = edge

        for uid in list(self._edges):
            if uid not in wanted:
                _, line = self._edges.pop(uid)
                self.scene.removeItem(line)

        for uid, edge in wanted.items():
            bound = self._edges.get(uid)
            if bound is None:
                line = LinkItem(uid, self.links_layer)
                line.setPen(QPen(self._link_pen))
                line.arrow.setBrush(self._arrow_brush)
            else:
                line = bound[1]
            self._edges[uid] = (edge, line)

    # --- Ticks -------------------------------------------------------------

    def _endpoint(self, end, uid) -> Optional[VisualNode]:
        if isinstance(end, VisualNode):
            return end
        bound = self._nodes.get(uid)
        return bound[0] if bound else None

    def on_tick(self):
        for node, circle, label in self._nodes.values():
            if node.x is None or node.y is None:
                continue
            circle.setPos(node.x, node.y)
            label.setPos(node.x, node.y)

        for edge, line in self._edges.values():
            source = self._endpoint(edge.source, edge.source_id)
            target = self._endpoint(edge.target, edge.target_id)
            if source is None or target is None or source.x is None or target.x is None:
                continue
            line.set_endpoints(source.x, source.y, target.x, target.y)

    # --- Zoom --------------------------------------------------------------

    def set_view_transform(self, transform: ZoomTransform):
        self.transform = transform
        self.root.setTransform(QTransform(transform.k, 0.0, 0.0, transform.k, transform.x, transform.y))

    def apply_sizes(self, sizes: ScaledSizes):
        self.sizes = sizes
        for _, circle, label in self._nodes.values():
            circle.set_radius(sizes.node_radius)
            label.apply_size(sizes.font_size, sizes.label_offset)
        for _, line in self._edges.values():
            line.set_width(sizes.link_width)
            line.arrow_size = sizes.arrow_size
            line.inset = sizes.node_radius
        # Arrowheads depend on the sizes, redraw them in place
        self.on_tick()

    # --- Focus -------------------------------------------------------------

    def apply_focus(self, node_ids: Optional[Set[str]], edge_ids: Optional[Set[str]]):
        """Fades everything outside the given sets; ``None`` clears the focus."""
        faded = self.config.faded_opacity
        for uid, (_, circle, label) in self._nodes.items():
            opacity = 1.0 if node_ids is None or uid in node_ids else faded
            circle.setOpacity(opacity)
            label.setOpacity(opacity)
        for uid, (_, line) in self._edges.items():
            line.setOpacity(1.0 if edge_ids is None or uid in edge_ids else faded)

    # --- Introspection -----------------------------------------------------

    @property
    def node_ids(self) -> Iterable[str]:
        return self._nodes.keys()

    @property
    def edge_ids(self) -> Iterable[str]:
        return self._edges.keys()

    def node_items(self, uid) -> Tuple[NodeItem, LabelItem]:
        _, circle, label = self._nodes[uid]
        return circle, label

    def link_item(self, uid) -> LinkItem:
        return self._edges[uid][1]

    def clear(self):
        self._nodes.clear()
        self._edges.clear()
        self.scene.removeItem(self.root)
