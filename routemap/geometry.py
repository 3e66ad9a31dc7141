import math
from typing import Iterable, Optional

from .model import VisualEdge, VisualNode


def distance_between_points(x1, y1, x2, y2):
    dx = x1 - x2
    dy = y1 - y2
    return math.sqrt(dx * dx + dy * dy)


def distance_point_to_segment(x, y, x1, y1, x2, y2):
    """Distance from (x, y) to the segment (x1, y1)-(x2, y2)."""
    c = x2 - x1
    d = y2 - y1
    len_sq = c * c + d * d
    # Degenerate segment: distance to its single point
    param = ((x - x1) * c + (y - y1) * d) / len_sq if len_sq != 0 else -1

    if param < 0:
        xx, yy = x1, y1
    elif param > 1:
        xx, yy = x2, y2
    else:
        xx, yy = x1 + param * c, y1 + param * d
    return distance_between_points(x, y, xx, yy)


def closest_node_to(x, y, nodes: Iterable[VisualNode], upper_bound: float) -> Optional[VisualNode]:
    closest = None
    best = upper_bound
    for node in nodes:
        if node.x is None or node.y is None:
            continue
        distance = distance_between_points(x, y, node.x, node.y)
        if distance < best:
            closest, best = node, distance
    return closest


def closest_edge_to(x, y, edges: Iterable[VisualEdge], upper_bound: float) -> Optional[VisualEdge]:
    closest = None
    best = upper_bound
    for edge in edges:
        source, target = edge.source, edge.target
        if not isinstance(source, VisualNode) or not isinstance(target, VisualNode):
            continue
        distance = distance_point_to_segment(x, y, source.x, source.y, target.x, target.y)
        if distance < best:
            closest, best = edge, distance
    return closest
