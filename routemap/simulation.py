"""
Iterative force-directed layout.

A damped-velocity simulation with a cooling parameter (alpha): every
step moves alpha toward alpha_target, lets each force add to the node
velocities, damps them and integrates positions. Once alpha falls below
alpha_min the stepping loop stops until the next restart.

The loop itself is driven by an external timer (anything with start() and
stop(), typically a QTimer whose timeout is connected to step()). Without a
timer, callers step the simulation by hand.
"""

import logging
import math
import random
from typing import Callable, Dict, List, Optional, Sequence

from .model import VisualEdge, VisualNode

logger = logging.getLogger(__name__)


def _jiggle(rng: random.Random) -> float:
    return (rng.random() - 0.5) * 1e-6


class Force:
    def initialize(self, nodes: Sequence[VisualNode], rng: random.Random):
        self.nodes = nodes
        self.rng = rng

    def apply(self, alpha: float):
        raise NotImplementedError


class LinkForce(Force):
    """Springs along the edges, resolving string endpoints into live nodes."""

    def __init__(self, links: Sequence[VisualEdge] = (), distance: float = 30.0):
        self.distance = distance
        self._links: Sequence[VisualEdge] = links
        self._active: List[VisualEdge] = []
        self._bias: Dict[str, float] = {}
        self._strength: Dict[str, float] = {}
        self.nodes: Sequence[VisualNode] = []
        self.rng = random.Random()

    @property
    def links(self) -> Sequence[VisualEdge]:
        return self._links

    @links.setter
    def links(self, links: Sequence[VisualEdge]):
        self._links = links
        self._resolve(warn=True)

    def initialize(self, nodes, rng):
        super().initialize(nodes, rng)
        # Links may lag one generation behind the nodes here
        self._resolve(warn=False)

    def _resolve(self, warn):
        by_id = {node.id: node for node in self.nodes}
        self._active = []
        count: Dict[str, int] = {}
        for link in self._links:
            source = by_id.get(link.source_id)
            target = by_id.get(link.target_id)
            if source is None or target is None:
                # Forget nodes from an earlier generation
                link.source, link.target = link.source_id, link.target_id
                if warn:
                    logger.warning("Dropping edge %s: endpoint not in node set", link.id)
                continue
            link.source = source
            link.target = target
            self._active.append(link)
            count[source.id] = count.get(source.id, 0) + 1
            count[target.id] = count.get(target.id, 0) + 1

        self._bias = {}
        self._strength = {}
        for link in self._active:
            s = count[link.source.id]
            t = count[link.target.id]
            self._bias[link.id] = s / (s + t)
            self._strength[link.id] = 1.0 / min(s, t)

    @property
    def active_links(self) -> List[VisualEdge]:
        return self._active

    def apply(self, alpha):
        for link in self._active:
            source, target = link.source, link.target
            dx = target.x + target.vx - source.x - source.vx
            dy = target.y + target.vy - source.y - source.vy
            if dx == 0:
                dx = _jiggle(self.rng)
            if dy == 0:
                dy = _jiggle(self.rng)
            dist = math.sqrt(dx * dx + dy * dy)
            f = (dist - self.distance) / dist * alpha * self._strength[link.id]
            dx *= f
            dy *= f
            b = self._bias[link.id]
            target.vx -= dx * b
            target.vy -= dy * b
            source.vx += dx * (1 - b)
            source.vy += dy * (1 - b)


class ManyBodyForce(Force):
    """Pairwise charge; negative strength repels."""

    def __init__(self, strength: float = -30.0, distance_min: float = 1.0):
        self.strength = strength
        self.distance_min2 = distance_min * distance_min
        self.nodes: Sequence[VisualNode] = []
        self.rng = random.Random()

    def apply(self, alpha):
        # O(N^2), fine for cluster-sized graphs (a few hundred nodes)
        nodes = self.nodes
        for i, n1 in enumerate(nodes):
            for n2 in nodes[i + 1:]:
                dx = n2.x - n1.x
                dy = n2.y - n1.y
                if dx == 0:
                    dx = _jiggle(self.rng)
                if dy == 0:
                    dy = _jiggle(self.rng)
                dist_sq = dx * dx + dy * dy
                if dist_sq < self.distance_min2:
                    dist_sq = math.sqrt(self.distance_min2 * dist_sq)
                f = self.strength * alpha / dist_sq
                n1.vx += dx * f
                n1.vy += dy * f
                n2.vx -= dx * f
                n2.vy -= dy * f


class PositionForce(Force):
    """Pulls every node toward a fixed coordinate on one axis."""

    def __init__(self, axis: str, target: float = 0.0, strength: float = 0.1):
        if axis not in ("x", "y"):
            raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")
        self.axis = axis
        self.target = target
        self.strength = strength
        self.nodes: Sequence[VisualNode] = []
        self.rng = random.Random()

    def apply(self, alpha):
        k = self.strength * alpha
        if self.axis == "x":
            for node in self.nodes:
                node.vx += (self.target - node.x) * k
        else:
            for node in self.nodes:
                node.vy += (self.target - node.y) * k


class ForceSimulation:
    def __init__(self, nodes: Sequence[VisualNode] = (), timer=None, seed=None,
                 alpha_min: float = 0.001, velocity_decay: float = 0.4,
                 initial_radius: float = 10.0):
        self.alpha = 1.0
        self.alpha_min = alpha_min
        self.alpha_decay = 1 - math.pow(alpha_min, 1.0 / 300)
        self.alpha_target = 0.0
        self.velocity_decay = velocity_decay
        self.initial_radius = initial_radius
        self.running = False

        self._rng = random.Random(seed)
        self._timer = timer
        self._forces: Dict[str, Force] = {}
        self._listeners: Dict[str, List[Callable[[], None]]] = {"tick": [], "end": []}
        self._nodes: Sequence[VisualNode] = []
        self.nodes = nodes

    # --- Data ----------------------------------------------------------------

    @property
    def nodes(self) -> Sequence[VisualNode]:
        return self._nodes

    @nodes.setter
    def nodes(self, nodes: Sequence[VisualNode]):
        # Keeps the caller's list; no copy
        self._nodes = nodes
        self._initialize_nodes()
        for force in self._forces.values():
            force.initialize(self._nodes, self._rng)

    def _initialize_nodes(self):
        r = self.initial_radius
        for node in self._nodes:
            if node.fx is not None:
                node.x = node.fx
            if node.fy is not None:
                node.y = node.fy
            if node.x is None or node.y is None:
                node.x = self._rng.uniform(-r, r)
                node.y = self._rng.uniform(-r, r)
            if node.vx is None or node.vy is None:
                node.vx = 0.0
                node.vy = 0.0

    def force(self, name: str) -> Optional[Force]:
        return self._forces.get(name)

    def add_force(self, name: str, force: Force):
        force.initialize(self._nodes, self._rng)
        self._forces[name] = force
        return self

    # --- Events --------------------------------------------------------------

    def on(self, event: str, callback: Callable[[], None]):
        self._listeners[event].append(callback)
        return self

    def off(self, event: str, callback: Optional[Callable[[], None]] = None):
        if callback is None:
            self._listeners[event].clear()
        elif callback in self._listeners[event]:
            self._listeners[event].remove(callback)
        return self

    def _emit(self, event: str):
        for callback in list(self._listeners[event]):
            callback()

    # --- Loop ----------------------------------------------------------------

    def restart(self):
        self.running = True
        if self._timer is not None:
            self._timer.start()
        return self

    def stop(self):
        self.running = False
        if self._timer is not None:
            self._timer.stop()
        return self

    def tick(self, iterations: int = 1):
        """Advances the layout without firing events."""
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay

            for force in self._forces.values():
                force.apply(self.alpha)

            damping = 1 - self.velocity_decay
            for node in self._nodes:
                if node.fx is None:
                    node.vx *= damping
                    node.x += node.vx
                else:
                    node.x = node.fx
                    node.vx = 0.0
                if node.fy is None:
                    node.vy *= damping
                    node.y += node.vy
                else:
                    node.y = node.fy
                    node.vy = 0.0
        return self

    def step(self):
        """One timer-driven step: advance, notify, and stop once at rest."""
        self.tick()
        self._emit("tick")
        if self.alpha < self.alpha_min:
            self.stop()
            self._emit("end")

    def run_until_rest(self, max_steps: int = 1000) -> int:
        """Steps by hand until the simulation comes to rest."""
        steps = 0
        while self.running and steps < max_steps:
            self.step()
            steps += 1
        return steps
