from PyQt6.QtCore import QPointF, QRectF, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QBrush, QColor, QPainter
from PyQt6.QtWidgets import QGraphicsScene, QGraphicsView

from ..config import DEFAULT_CONFIG, GraphConfig
from ..graph_engine import GraphEngine
from ..model import Snapshot
from ..zoom import IDENTITY
from .render_binder import RenderBinder


class GraphWidget(QGraphicsView):
    elementFocused = pyqtSignal(object)  # VisualNode, VisualEdge or None

    def __init__(self, config: GraphConfig = DEFAULT_CONFIG, seed=None, parent=None):
        super().__init__(parent)
        self.config = config

        # Fixed logical canvas, centred on the simulation origin
        self.graph_scene = QGraphicsScene(QRectF(-config.width / 2, -config.height / 2,
                                                 config.width, config.height), self)
        self.graph_scene.setBackgroundBrush(QBrush(QColor(config.bg_color)))
        self.setScene(self.graph_scene)
        self.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        # Physics Timer
        self.timer = QTimer(self)
        self.timer.setInterval(config.tick_interval_ms)
        self.timer.timeout.connect(self.physics_loop)

        self.binder = RenderBinder(self.graph_scene, config)
        self.engine = GraphEngine(self.binder, config, timer=self.timer, seed=seed)

        # Interaction
        self.panning = False
        self.last_scene_pos = QPointF()

        self.viewport().setMouseTracking(True)

    def physics_loop(self):
        simulation = self.engine.simulation
        if simulation is not None:
            simulation.step()

    def update_snapshot(self, snapshot: Snapshot):
        return self.engine.update(snapshot)

    def reset_view(self):
        self.engine.zoom_to(IDENTITY)

    def dispose(self):
        self.timer.stop()
        if not self.engine.disposed:
            self.engine.dispose()

    # --- Coordinates -------------------------------------------------------

    def _scene_pos(self, event) -> QPointF:
        return self.mapToScene(event.position().toPoint())

    def _world_pos(self, event):
        pos = self._scene_pos(event)
        return self.engine.zoom.transform.invert((pos.x(), pos.y()))

    # --- Events ------------------------------------------------------------

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.fitInView(self.graph_scene.sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)

    def wheelEvent(self, event):
        angle = event.angleDelta().y()
        if angle == 0:
            return
        factor = self.config.wheel_factor if angle > 0 else 1 / self.config.wheel_factor

        zoom = self.engine.zoom
        k = zoom.clamp(zoom.scale * factor)
        pos = self._scene_pos(event)
        self.engine.zoom_to(zoom.transform.scale_about((pos.x(), pos.y()), k))
        event.accept()

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.RightButton:
            self.panning = True
            self.last_scene_pos = self._scene_pos(event)
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
            return

        if event.button() == Qt.MouseButton.LeftButton:
            x, y = self._world_pos(event)
            node = self.engine.node_at(x, y)
            if node is not None:
                self.engine.begin_drag(node)
                self.elementFocused.emit(None)
                self.setCursor(Qt.CursorShape.PointingHandCursor)

    def mouseMoveEvent(self, event):
        if self.panning:
            pos = self._scene_pos(event)
            delta = pos - self.last_scene_pos
            self.last_scene_pos = pos
            self.engine.zoom_to(self.engine.zoom.transform.translate_by(delta.x(), delta.y()))
            return

        x, y = self._world_pos(event)
        if self.engine.dragging is not None:
            self.engine.drag_to(x, y)
            return

        previous = self.engine.focused
        focused = self.engine.focus_at(x, y)
        if focused is not previous:
            self.elementFocused.emit(focused)

    def mouseReleaseEvent(self, event):
        self.engine.end_drag()
        self.panning = False
        self.setCursor(Qt.CursorShape.ArrowCursor)

    def closeEvent(self, event):
        self.dispose()
        super().closeEvent(event)
