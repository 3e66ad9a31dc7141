from conftest import pod, route

from routemap.model import VisualEdge, VisualNode
from routemap.reconciler import reconcile


def test_first_snapshot_creates_everything():
    result = reconcile([], [], [pod("a"), pod("b")], [route("a", "b")])

    assert [n.id for n in result.nodes] == ["ns/a", "ns/b"]
    assert [e.id for e in result.edges] == ["ns/a->ns/b"]
    assert result.edges[0].source == "ns/a"
    assert result.edges[0].target == "ns/b"
    assert result.changed


def test_survivor_keeps_instance_and_kinematics():
    previous = VisualNode("ns/a", "A")
    previous.x, previous.y, previous.vx, previous.vy = 5, 7, 1.5, -2

    result = reconcile([previous], [], [pod("a", "Renamed")], [])

    node = result.nodes[0]
    assert node is previous
    assert node.id == "ns/a"
    assert (node.x, node.y, node.vx, node.vy) == (5, 7, 1.5, -2)
    assert node.display_name == "Renamed"
    assert not result.changed


def test_survivor_edge_keeps_resolved_endpoints():
    a, b = VisualNode("ns/a", "A"), VisualNode("ns/b", "B")
    edge = VisualEdge("ns/a->ns/b", "ns/a", "ns/b")
    edge.source, edge.target = a, b

    result = reconcile([a, b], [edge], [pod("a"), pod("b")], [route("a", "b")])

    assert result.edges[0] is edge
    assert edge.source is a and edge.target is b
    assert not result.changed


def test_dropped_identity_loses_its_state():
    first = reconcile([], [], [pod("a"), pod("b")], [])
    first.nodes[1].x, first.nodes[1].y = 40, 40

    second = reconcile(first.nodes, first.edges, [pod("a")], [])
    assert [n.id for n in second.nodes] == ["ns/a"]
    assert second.changed

    third = reconcile(second.nodes, second.edges, [pod("a"), pod("b")], [])
    revived = third.nodes[1]
    assert revived.id == "ns/b"
    assert revived is not first.nodes[1]
    assert revived.x is None and revived.y is None
    assert third.changed


def test_identical_snapshot_is_not_a_change():
    first = reconcile([], [], [pod("a"), pod("b")], [route("a", "b")])
    second = reconcile(first.nodes, first.edges, [pod("a"), pod("b")], [route("a", "b")])

    assert not second.changed
    assert all(n1 is n2 for n1, n2 in zip(first.nodes, second.nodes))
    assert second.edges[0] is first.edges[0]


def test_same_count_swap_is_a_change():
    first = reconcile([], [], [pod("a"), pod("b")], [])
    second = reconcile(first.nodes, first.edges, [pod("a"), pod("c")], [])

    assert len(second.nodes) == len(first.nodes)
    assert [n.id for n in second.nodes] == ["ns/a", "ns/c"]
    assert second.changed


def test_same_count_edge_swap_is_a_change():
    nodes = [pod("a"), pod("b")]
    first = reconcile([], [], nodes, [route("a", "b")])
    second = reconcile(first.nodes, first.edges, nodes, [route("b", "a")])

    assert [e.id for e in second.edges] == ["ns/b->ns/a"]
    assert second.changed


def test_removed_edge_is_a_change():
    nodes = [pod("a"), pod("b")]
    first = reconcile([], [], nodes, [route("a", "b")])
    second = reconcile(first.nodes, first.edges, nodes, [])

    assert second.edges == []
    assert second.changed


def test_order_follows_new_snapshot():
    first = reconcile([], [], [pod("a"), pod("b")], [])
    second = reconcile(first.nodes, first.edges, [pod("b"), pod("a")], [])

    assert [n.id for n in second.nodes] == ["ns/b", "ns/a"]
    assert not second.changed


def test_duplicate_identity_keeps_last_occurrence():
    result = reconcile([], [], [pod("a", "First"), pod("a", "Second")], [])

    assert len(result.nodes) == 1
    assert result.nodes[0].display_name == "Second"


def test_empty_snapshot_is_stable():
    first = reconcile([], [], [], [])
    assert first.nodes == [] and first.edges == []
    assert not first.changed
