import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .model import DomainEdge, DomainNode, VisualEdge, VisualNode, edge_identity, node_identity

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    nodes: List[VisualNode]
    edges: List[VisualEdge]
    changed: bool


def reconcile(previous_nodes: Sequence[VisualNode],
              previous_edges: Sequence[VisualEdge],
              new_nodes: Sequence[DomainNode],
              new_edges: Sequence[DomainEdge]) -> ReconcileResult:
    """Computes the next visual sets from the previous ones and a new snapshot.

    Survivors keep their VisualNode / VisualEdge instance so the kinematic
    state the simulation stored on them carries over. Only non-kinematic
    fields are refreshed. Identities missing from the snapshot are dropped.
    ``changed`` is set whenever membership differs from the previous
    generation.
    """
    changed = False

    indexed_nodes: Dict[str, VisualNode] = {node.id: node for node in previous_nodes}
    next_nodes: Dict[str, VisualNode] = {}
    for domain_node in new_nodes:
        uid = node_identity(domain_node)
        node = indexed_nodes.get(uid)
        if node is None:
            node = next_nodes.get(uid)
        if node is None:
            node = VisualNode(uid, domain_node.display_name)
            changed = True
        else:
            node.display_name = domain_node.display_name
        # A duplicate identity within one snapshot keeps its last occurrence
        next_nodes[uid] = node

    indexed_edges: Dict[str, VisualEdge] = {edge.id: edge for edge in previous_edges}
    next_edges: Dict[str, VisualEdge] = {}
    for domain_edge in new_edges:
        uid = edge_identity(domain_edge)
        edge = indexed_edges.get(uid) or next_edges.get(uid)
        if edge is None:
            edge = VisualEdge(uid, node_identity(domain_edge.source), node_identity(domain_edge.target))
            changed = True
        next_edges[uid] = edge

    if len(next_nodes) != len(previous_nodes) or len(next_edges) != len(previous_edges):
        changed = True

    logger.debug("Reconciled %d nodes, %d edges (changed=%s)", len(next_nodes), len(next_edges), changed)
    return ReconcileResult(list(next_nodes.values()), list(next_edges.values()), changed)
