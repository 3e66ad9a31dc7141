import os

# Must be set before pytest-qt creates the QApplication
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from routemap.model import DomainEdge, DomainNode, NodeRef, Snapshot


class FakeBinder:
    """Records what the engine asks the canvas to do."""

    def __init__(self):
        self.reconciled = []
        self.ticks = 0
        self.transform = None
        self.sizes = None
        self.focus = None
        self.cleared = False

    def on_reconcile(self, nodes, edges, sizes):
        self.reconciled.append((list(nodes), list(edges)))
        self.sizes = sizes

    def on_tick(self):
        self.ticks += 1

    def set_view_transform(self, transform):
        self.transform = transform

    def apply_sizes(self, sizes):
        self.sizes = sizes

    def apply_focus(self, node_ids, edge_ids):
        self.focus = (node_ids, edge_ids)

    def clear(self):
        self.cleared = True


class FakeTimer:
    def __init__(self):
        self.active = False
        self.starts = 0
        self.stops = 0

    def start(self):
        self.active = True
        self.starts += 1

    def stop(self):
        self.active = False
        self.stops += 1


def pod(name, display_name=None, namespace="ns"):
    return DomainNode(namespace, name, display_name or name.upper())


def route(source, target, namespace="ns"):
    return DomainEdge(NodeRef(namespace, source), NodeRef(namespace, target))


@pytest.fixture
def fake_binder():
    return FakeBinder()


@pytest.fixture
def fake_timer():
    return FakeTimer()


@pytest.fixture
def two_pods():
    return Snapshot([pod("a"), pod("b")], [route("a", "b")])
