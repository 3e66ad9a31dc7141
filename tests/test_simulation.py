import math

import pytest

from routemap.model import VisualEdge, VisualNode
from routemap.simulation import ForceSimulation, LinkForce, ManyBodyForce, PositionForce


def placed(uid, x, y):
    node = VisualNode(uid, uid)
    node.x, node.y = x, y
    return node


def distance(n1, n2):
    return math.hypot(n1.x - n2.x, n1.y - n2.y)


def test_new_nodes_are_seeded_near_origin():
    nodes = [VisualNode(f"ns/{i}", str(i)) for i in range(5)]
    ForceSimulation(nodes, seed=3, initial_radius=10)

    for node in nodes:
        assert -10 <= node.x <= 10 and -10 <= node.y <= 10
        assert node.vx == 0 and node.vy == 0


def test_seeded_placement_is_reproducible():
    first = [VisualNode("ns/a", "a")]
    second = [VisualNode("ns/a", "a")]
    ForceSimulation(first, seed=42)
    ForceSimulation(second, seed=42)
    assert (first[0].x, first[0].y) == (second[0].x, second[0].y)


def test_reassigning_nodes_keeps_existing_positions():
    a = placed("ns/a", 5, 7)
    simulation = ForceSimulation([a], seed=1)
    b = VisualNode("ns/b", "b")
    new_nodes = [a, b]

    simulation.nodes = new_nodes

    assert simulation.nodes is new_nodes
    assert (a.x, a.y) == (5, 7)
    assert b.x is not None


def test_link_force_resolves_endpoints_and_drops_dangling():
    a, b = placed("ns/a", 0, 0), placed("ns/b", 10, 0)
    good = VisualEdge("ns/a->ns/b", "ns/a", "ns/b")
    dangling = VisualEdge("ns/a->ns/zz", "ns/a", "ns/zz")
    link = LinkForce([good, dangling])
    simulation = ForceSimulation([a, b]).add_force("link", link)

    assert good.source is a and good.target is b
    assert link.active_links == [good]
    assert dangling.target == "ns/zz"
    simulation.tick()


def test_link_force_releases_endpoints_that_left_the_node_set():
    a, b = placed("ns/a", 0, 0), placed("ns/b", 10, 0)
    edge = VisualEdge("ns/a->ns/b", "ns/a", "ns/b")
    link = LinkForce([edge])
    simulation = ForceSimulation([a, b]).add_force("link", link)
    assert edge.target is b

    simulation.nodes = [a]
    link.links = [edge]

    assert link.active_links == []
    assert (edge.source, edge.target) == ("ns/a", "ns/b")


def test_link_force_pulls_toward_rest_length():
    a, b = placed("ns/a", 0, 0), placed("ns/b", 100, 0)
    simulation = ForceSimulation([a, b])
    simulation.add_force("link", LinkForce([VisualEdge("ns/a->ns/b", "ns/a", "ns/b")], distance=30))

    simulation.tick()

    assert distance(a, b) < 100


def test_many_body_repels():
    a, b = placed("ns/a", 0, 0), placed("ns/b", 1, 0)
    simulation = ForceSimulation([a, b]).add_force("charge", ManyBodyForce())

    simulation.tick(5)

    assert distance(a, b) > 1


def test_many_body_handles_coincident_nodes():
    a, b = placed("ns/a", 0, 0), placed("ns/b", 0, 0)
    simulation = ForceSimulation([a, b], seed=7).add_force("charge", ManyBodyForce())

    simulation.tick(10)

    assert all(math.isfinite(v) for v in (a.x, a.y, b.x, b.y))
    assert distance(a, b) > 0


def test_position_forces_pull_to_origin():
    a = placed("ns/a", 50, -50)
    simulation = ForceSimulation([a])
    simulation.add_force("x", PositionForce("x")).add_force("y", PositionForce("y"))

    simulation.tick(50)

    assert abs(a.x) < 50 and abs(a.y) < 50


def test_position_force_rejects_unknown_axis():
    with pytest.raises(ValueError):
        PositionForce("z")


def test_pinned_node_stays_put():
    a, b = placed("ns/a", 0, 0), placed("ns/b", 1, 0)
    a.fx, a.fy = 3, 4
    simulation = ForceSimulation([a, b]).add_force("charge", ManyBodyForce())

    simulation.tick(3)

    assert (a.x, a.y) == (3, 4)
    assert (a.vx, a.vy) == (0, 0)


def test_alpha_decays_toward_target():
    simulation = ForceSimulation([])
    simulation.tick()
    assert simulation.alpha < 1
    simulation.alpha_target = 0.3
    simulation.alpha = 0.0
    simulation.tick(1000)
    assert simulation.alpha == pytest.approx(0.3, rel=1e-3)


def test_step_fires_tick_and_stops_at_rest(fake_timer):
    ticks, ends = [], []
    simulation = ForceSimulation([placed("ns/a", 1, 1)], timer=fake_timer)
    simulation.on("tick", lambda: ticks.append(simulation.alpha))
    simulation.on("end", lambda: ends.append(True))

    simulation.restart()
    assert fake_timer.active
    steps = simulation.run_until_rest()

    assert 250 < steps < 1000
    assert len(ticks) == steps
    assert ends == [True]
    assert not simulation.running
    assert not fake_timer.active
    assert simulation.alpha < simulation.alpha_min


def test_off_removes_listeners():
    calls = []
    simulation = ForceSimulation([])
    callback = lambda: calls.append(1)
    simulation.on("tick", callback)
    simulation.off("tick", callback)
    simulation.step()
    assert calls == []


def test_empty_simulation_is_stable():
    simulation = ForceSimulation([])
    simulation.add_force("charge", ManyBodyForce()).add_force("link", LinkForce([]))
    simulation.restart()
    simulation.run_until_rest()
    assert not simulation.running
