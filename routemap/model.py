"""
Domain and visual graph types.

Domain objects describe a snapshot as handed over by the route analysis:
workload instances (nodes) and the allowed traffic routes between them
(edges). They are immutable and rebuilt for every snapshot.

Visual objects are what the force simulation and the canvas work on. They
live across snapshots and carry the kinematic state (x, y, vx, vy) the
simulation writes on every step.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

import networkx as nx


class SnapshotError(ValueError):
    """Raised when a snapshot payload cannot be read or parsed."""


@dataclass(frozen=True)
class NodeRef:
    namespace: str
    name: str


@dataclass(frozen=True)
class DomainNode:
    namespace: str
    name: str
    display_name: str


@dataclass(frozen=True)
class DomainEdge:
    source: NodeRef
    target: NodeRef


@dataclass(frozen=True)
class Snapshot:
    nodes: List[DomainNode] = field(default_factory=list)
    edges: List[DomainEdge] = field(default_factory=list)


def node_identity(node: Union[DomainNode, NodeRef]) -> str:
    return f"{node.namespace}/{node.name}"


def edge_identity(edge: DomainEdge) -> str:
    return f"{node_identity(edge.source)}->{node_identity(edge.target)}"


class VisualNode:
    def __init__(self, uid: str, display_name: str):
        self.id = uid
        self.display_name = display_name
        # Left unset so the simulation picks the initial placement
        self.x: Optional[float] = None
        self.y: Optional[float] = None
        self.vx: Optional[float] = None
        self.vy: Optional[float] = None
        # Pinned position, set while the node is dragged
        self.fx: Optional[float] = None
        self.fy: Optional[float] = None

    def __repr__(self):
        return f"VisualNode({self.id!r}, x={self.x}, y={self.y})"


class VisualEdge:
    def __init__(self, uid: str, source: str, target: str):
        self.id = uid
        # Identity strings until the link force swaps in the live VisualNode
        self.source: Union[str, VisualNode] = source
        self.target: Union[str, VisualNode] = target

    @property
    def source_id(self) -> str:
        return self.source.id if isinstance(self.source, VisualNode) else self.source

    @property
    def target_id(self) -> str:
        return self.target.id if isinstance(self.target, VisualNode) else self.target

    def __repr__(self):
        return f"VisualEdge({self.id!r})"


# --- Parsing -----------------------------------------------------------------

def _require_str(obj, key, where):
    if not isinstance(obj, dict):
        raise SnapshotError(f"{where}: expected an object, got {type(obj).__name__}")
    value = obj.get(key)
    if not isinstance(value, str):
        raise SnapshotError(f"{where}: missing or invalid '{key}'")
    return value


def _parse_ref(obj, where) -> NodeRef:
    return NodeRef(_require_str(obj, "namespace", where), _require_str(obj, "name", where))


def _parse_node(obj, where) -> DomainNode:
    ref = _parse_ref(obj, where)
    display_name = obj.get("displayName", ref.name)
    if not isinstance(display_name, str):
        raise SnapshotError(f"{where}: invalid 'displayName'")
    return DomainNode(ref.namespace, ref.name, display_name)


def _parse_edge(obj, where) -> DomainEdge:
    if not isinstance(obj, dict):
        raise SnapshotError(f"{where}: expected an object, got {type(obj).__name__}")
    source = obj.get("sourcePod", obj.get("source"))
    target = obj.get("targetPod", obj.get("target"))
    return DomainEdge(_parse_ref(source, f"{where}.source"), _parse_ref(target, f"{where}.target"))


def _list_field(payload, *keys):
    for key in keys:
        if key in payload:
            value = payload[key]
            if value is None:
                return []
            if not isinstance(value, list):
                raise SnapshotError(f"'{key}' must be a list")
            return value
    raise SnapshotError(f"missing '{keys[0]}'")


def snapshot_from_payload(payload) -> Snapshot:
    """Builds a Snapshot from an analysis result document.

    Accepts the backend format (``pods`` / ``allowedRoutes`` with
    ``sourcePod`` / ``targetPod``) as well as ``nodes`` / ``edges`` with
    ``source`` / ``target``.
    """
    if not isinstance(payload, dict):
        raise SnapshotError("snapshot payload must be a JSON object")
    raw_nodes = _list_field(payload, "pods", "nodes")
    raw_edges = _list_field(payload, "allowedRoutes", "edges")
    nodes = [_parse_node(n, f"nodes[{i}]") for i, n in enumerate(raw_nodes)]
    edges = [_parse_edge(e, f"edges[{i}]") for i, e in enumerate(raw_edges)]
    return Snapshot(nodes, edges)


def _ref_from_key(key) -> NodeRef:
    if isinstance(key, tuple) and len(key) == 2:
        return NodeRef(str(key[0]), str(key[1]))
    if isinstance(key, str) and "/" in key:
        namespace, name = key.split("/", 1)
        return NodeRef(namespace, name)
    raise SnapshotError(f"cannot derive namespace/name from node key {key!r}")


def snapshot_from_networkx(graph: nx.DiGraph) -> Snapshot:
    """Converts a directed graph keyed by (namespace, name) into a Snapshot."""
    nodes = []
    for key, data in graph.nodes(data=True):
        ref = _ref_from_key(key)
        nodes.append(DomainNode(ref.namespace, ref.name, data.get("displayName", ref.name)))
    edges = [DomainEdge(_ref_from_key(u), _ref_from_key(v)) for u, v in graph.edges()]
    return Snapshot(nodes, edges)
