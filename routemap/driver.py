import logging
from enum import Enum
from typing import Callable, Optional

from .reconciler import ReconcileResult
from .simulation import ForceSimulation, LinkForce, ManyBodyForce, PositionForce

logger = logging.getLogger(__name__)

LINK_FORCE = "link"
CHARGE_FORCE = "charge"

DRAG_ALPHA_TARGET = 0.3


class DriverState(Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    DISPOSED = "disposed"


class SimulationDriver:
    """Owns the force simulation for one view and feeds it reconciled data.

    The simulation is built lazily on the first reconciliation. Later
    reconciliations only swap in the new node/edge lists; the layout is
    reheated only when the membership changed.
    """

    def __init__(self, on_tick: Callable[[], None], timer=None, seed=None):
        self.state = DriverState.UNINITIALIZED
        self.simulation: Optional[ForceSimulation] = None
        self._on_tick = on_tick
        self._timer = timer
        self._seed = seed

    def _create_simulation(self, result: ReconcileResult) -> ForceSimulation:
        simulation = ForceSimulation(result.nodes, timer=self._timer, seed=self._seed)
        simulation.add_force(LINK_FORCE, LinkForce())
        simulation.add_force(CHARGE_FORCE, ManyBodyForce())
        simulation.add_force("x", PositionForce("x"))
        simulation.add_force("y", PositionForce("y"))
        simulation.force(LINK_FORCE).links = result.edges
        simulation.on("tick", self._on_tick)
        return simulation

    def apply(self, result: ReconcileResult):
        if self.state is DriverState.DISPOSED:
            logger.debug("Ignoring snapshot on a disposed driver")
            return

        if self.state is DriverState.UNINITIALIZED:
            self.simulation = self._create_simulation(result)
            self.state = DriverState.RUNNING
        else:
            self.simulation.nodes = result.nodes
            self.simulation.force(LINK_FORCE).links = result.edges

        if result.changed:
            logger.debug("Topology changed, restarting simulation")
            self.simulation.alpha = 1.0
            self.simulation.restart()

    def keep_running(self):
        """Keeps the layout warm while the user drags a node."""
        if self.simulation is not None:
            self.simulation.alpha_target = DRAG_ALPHA_TARGET
            self.simulation.restart()

    def stop_keeping_running(self):
        if self.simulation is not None:
            self.simulation.alpha_target = 0.0

    def dispose(self):
        if self.simulation is not None:
            self.simulation.stop()
            self.simulation.off("tick")
            self.simulation.off("end")
        self.state = DriverState.DISPOSED
