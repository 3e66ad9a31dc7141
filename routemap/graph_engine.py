import logging
from typing import Dict, List, Optional, Set, Union

from .config import DEFAULT_CONFIG, GraphConfig
from .driver import DriverState, SimulationDriver
from .geometry import closest_edge_to, closest_node_to
from .model import Snapshot, VisualEdge, VisualNode
from .reconciler import ReconcileResult, reconcile
from .zoom import ZoomCompensator, ZoomTransform

logger = logging.getLogger(__name__)


class GraphEngine:
    """Per-view handle tying reconciliation, physics and drawing together.

    Three independent triggers reach it: new snapshots (update), simulation
    steps (on_tick) and pan/zoom gestures (zoom_to). The binder is any object
    with the RenderBinder interface.
    """

    def __init__(self, binder, config: GraphConfig = DEFAULT_CONFIG, timer=None, seed=None):
        self.config = config
        self.binder = binder
        self.zoom = ZoomCompensator(binder, config)
        self.driver = SimulationDriver(self.on_tick, timer=timer, seed=seed)

        self.nodes: List[VisualNode] = []
        self.edges: List[VisualEdge] = []
        self.neighbors: Dict[str, Set[str]] = {}
        self.incident: Dict[str, Set[str]] = {}

        self.focused: Optional[Union[VisualNode, VisualEdge]] = None
        self.dragging: Optional[VisualNode] = None

    @property
    def simulation(self):
        return self.driver.simulation

    @property
    def disposed(self) -> bool:
        return self.driver.state is DriverState.DISPOSED

    # --- Snapshots ---------------------------------------------------------

    def update(self, snapshot: Snapshot) -> Optional[ReconcileResult]:
        if self.disposed:
            logger.debug("Snapshot received after dispose, ignored")
            return None

        result = reconcile(self.nodes, self.edges, snapshot.nodes, snapshot.edges)
        self.nodes = result.nodes
        self.edges = result.edges
        self._index_adjacency()

        self.driver.apply(result)
        self.binder.on_reconcile(self.nodes, self.edges, self.zoom.sizes())
        self._restore_focus()
        return result

    def _index_adjacency(self):
        self.neighbors = {node.id: set() for node in self.nodes}
        self.incident = {node.id: set() for node in self.nodes}
        for edge in self.edges:
            source, target = edge.source_id, edge.target_id
            if source not in self.neighbors or target not in self.neighbors:
                continue
            self.neighbors[source].add(target)
            self.neighbors[target].add(source)
            self.incident[source].add(edge.id)
            self.incident[target].add(edge.id)

    # --- Ticks and zoom ----------------------------------------------------

    def on_tick(self):
        self.binder.on_tick()

    def zoom_to(self, transform: ZoomTransform):
        self.zoom.apply(transform)

    # --- Pointer interaction -----------------------------------------------

    def _pick_bound(self) -> float:
        return self.config.focus_threshold / self.zoom.scale

    def node_at(self, x, y) -> Optional[VisualNode]:
        return closest_node_to(x, y, self.nodes, self._pick_bound())

    def focus_at(self, x, y):
        """Focuses the element under (x, y), in simulation coordinates."""
        if self.dragging is not None:
            return self.focused
        bound = self._pick_bound()
        element = closest_node_to(x, y, self.nodes, bound) or closest_edge_to(x, y, self.edges, bound)
        if element is None:
            self.unfocus()
        elif element is not self.focused:
            self.focused = element
            self._apply_focus()
        return self.focused

    def unfocus(self):
        if self.focused is None:
            return
        self.focused = None
        self.binder.apply_focus(None, None)

    def _apply_focus(self):
        element = self.focused
        if isinstance(element, VisualNode):
            node_ids = {element.id} | self.neighbors.get(element.id, set())
            edge_ids = set(self.incident.get(element.id, set()))
        else:
            node_ids = {element.source_id, element.target_id}
            edge_ids = {element.id}
        self.binder.apply_focus(node_ids, edge_ids)

    def _restore_focus(self):
        if self.focused is None:
            return
        if isinstance(self.focused, VisualNode):
            live = self.nodes
        else:
            # Edges whose endpoints left the node set are not drawn
            live = [edge for edge in self.edges
                    if isinstance(edge.source, VisualNode) and isinstance(edge.target, VisualNode)]
        if any(item is self.focused for item in live):
            self._apply_focus()
        else:
            self.unfocus()

    def begin_drag(self, node: VisualNode):
        self.unfocus()
        self.dragging = node
        node.fx, node.fy = node.x, node.y
        self.driver.keep_running()

    def drag_to(self, x, y):
        if self.dragging is not None:
            self.dragging.fx, self.dragging.fy = x, y

    def end_drag(self):
        if self.dragging is None:
            return
        self.dragging.fx = self.dragging.fy = None
        self.dragging = None
        self.driver.stop_keeping_running()

    # --- Lifecycle ---------------------------------------------------------

    def dispose(self):
        self.driver.dispose()
        self.binder.clear()
        self.nodes = []
        self.edges = []
        self.focused = None
        self.dragging = None
