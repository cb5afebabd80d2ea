# simulation.py
"""
Layout solver.

A continuous relaxation loop driven by a decaying energy value ``alpha``.
The solver never schedules itself: a host (QTimer, streamlit loop, test)
calls ``step()`` once per frame and each call performs exactly one tick.
"""

import enum
import logging
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from config import SimulationConfig
from utils_geom import phyllotaxis

logger = logging.getLogger(__name__)


class SolverState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SETTLED = "settled"


@dataclass(frozen=True)
class TickEvent:
    positions: Dict[object, Tuple[float, float]]
    alpha: float
    tick: int
    settled: bool = False


class Simulation:
    def __init__(self, config: Optional[SimulationConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or SimulationConfig()
        self.rng = rng or random.Random(self.config.seed)
        self.alpha = 1.0
        self.alpha_min = self.config.alpha_min
        self.alpha_decay = self.config.alpha_decay
        self.alpha_target = self.config.alpha_target
        self.velocity_decay = self.config.velocity_decay
        self.state = SolverState.IDLE
        self.tick_count = 0
        self._nodes: Tuple = ()
        self._registry = None
        self._listeners: List[Callable[[TickEvent], None]] = []

    # --------------------------
    # Lifecycle
    # --------------------------
    def attach(self, nodes: Sequence, registry, center: Tuple[float, float] = (0.0, 0.0)) -> None:
        """Take ownership of the node list and start running at full energy."""
        self._nodes = tuple(nodes)
        self._registry = registry
        self._place_initial(center)
        self.tick_count = 0
        self.alpha_target = self.config.alpha_target
        self.reheat(1.0)
        logger.debug("Solver attached to %d nodes", len(self._nodes))

    def _place_initial(self, center) -> None:
        cx, cy = center
        for i, n in enumerate(self._nodes):
            if n.fx is not None:
                n.x = n.fx
            if n.fy is not None:
                n.y = n.fy
            if n.x is None or n.y is None:
                n.x, n.y = phyllotaxis(i, cx, cy)
            n.vx = n.vx or 0.0
            n.vy = n.vy or 0.0

    def reset_positions(self, center: Tuple[float, float] = (0.0, 0.0)) -> None:
        for n in self._nodes:
            n.x = n.y = None
            n.vx = n.vy = 0.0
        self._place_initial(center)

    def is_attached(self) -> bool:
        return self._registry is not None

    def reheat(self, alpha: float = 1.0) -> None:
        self.alpha = float(alpha)
        self.restart()

    def set_alpha_target(self, target: float) -> None:
        self.alpha_target = float(target)

    def restart(self) -> None:
        if not self.is_attached():
            logger.debug("restart() ignored: no nodes attached")
            return
        self.state = SolverState.RUNNING

    def stop(self) -> None:
        # Safe to call any number of times
        if self.state is SolverState.RUNNING:
            self.state = SolverState.IDLE

    def dispose(self) -> None:
        self.stop()
        self.state = SolverState.IDLE
        self._nodes = ()
        self._registry = None
        self._listeners.clear()

    # --------------------------
    # Listeners
    # --------------------------
    def add_listener(self, fn: Callable[[TickEvent], None]) -> None:
        if fn not in self._listeners:
            self._listeners.append(fn)

    def remove_listener(self, fn: Callable[[TickEvent], None]) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    # --------------------------
    # Tick
    # --------------------------
    def step(self) -> Optional[TickEvent]:
        """Advance one tick. Returns None when the solver is not running."""
        if self.state is not SolverState.RUNNING:
            return None

        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
        self._registry.run(self.alpha)

        keep = 1.0 - self.velocity_decay
        for n in self._nodes:
            if n.fx is None:
                n.vx *= keep
                n.x += n.vx
            else:
                n.x = n.fx
                n.vx = 0.0
            if n.fy is None:
                n.vy *= keep
                n.y += n.vy
            else:
                n.y = n.fy
                n.vy = 0.0

        self.tick_count += 1
        settled = self.alpha < self.alpha_min
        if settled:
            self.state = SolverState.SETTLED
            logger.debug("Settled after %d ticks (alpha=%.5f)", self.tick_count, self.alpha)

        event = TickEvent(self.positions(), self.alpha, self.tick_count, settled)
        for fn in list(self._listeners):
            fn(event)
        return event

    def run(self, max_ticks: int = 1000) -> Optional[TickEvent]:
        """Tick until settled or ``max_ticks``; returns the last event."""
        last = None
        for _ in range(max(0, int(max_ticks))):
            event = self.step()
            if event is None:
                break
            last = event
        return last

    def positions(self) -> Dict[object, Tuple[float, float]]:
        return {n.getId(): (n.x, n.y) for n in self._nodes}

    @property
    def nodes(self) -> Tuple:
        return self._nodes
