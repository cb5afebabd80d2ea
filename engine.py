# engine.py
"""
Layout engine: one instance per loaded dataset.

Owns the graph store, force registry, solver, filter controller and drag
controller, and exposes the user's actions as discrete commands. Every
command returns the derived output a renderer needs (positions snapshot or
FilterUpdate) instead of touching rendering objects.
"""

import logging
import random
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import graphstore
from config import ForceProperties, Settings
from errors import ExplorerError
from filters import FilterController, FilterUpdate, apply_visibility
from forces import ForceRegistry
from interaction import DragController, hit_test
from palette import link_color_map, node_color_map
from simulation import Simulation, SolverState, TickEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisplayStyle:
    node_radius: float
    node_stroke: str
    node_stroke_width: float
    link_width: float
    link_opacity: float


class LayoutEngine:
    def __init__(self, data: graphstore.GraphData, viewport: Tuple[float, float] = (960.0, 600.0),
                 settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.data = data
        self.viewport = (float(viewport[0]), float(viewport[1]))
        self.properties: ForceProperties = self.settings.forces.copy()

        self._rng = random.Random(self.settings.simulation.seed)
        self.registry = ForceRegistry(data.nodes, data.edges, self._rng)
        self.simulation = Simulation(self.settings.simulation, self._rng)
        self.filters = FilterController(data)
        self.drag = DragController(
            self.simulation,
            drag_alpha_target=self.settings.simulation.drag_alpha_target,
            release_alpha_target=self.settings.simulation.release_alpha_target,
        )
        self.node_colors = node_color_map()
        self.link_colors = link_color_map()
        self._disposed = False

        self.registry.apply(self.properties, self.viewport)
        self.simulation.attach(data.nodes, self.registry, center=self._center())
        apply_visibility(self.filters.visibility(), data.nodes, data.edges)

    # --------------------------
    # Lifecycle
    # --------------------------
    @classmethod
    def create(cls, raw, viewport=(960.0, 600.0), settings: Optional[Settings] = None) -> "LayoutEngine":
        """Load ``raw`` and build an engine. MalformedDatasetError propagates."""
        engine = cls(graphstore.load(raw), viewport, settings)
        logger.info("Engine created: %s", engine.data.stats())
        return engine

    @classmethod
    def from_file(cls, path, viewport=(960.0, 600.0), settings: Optional[Settings] = None) -> "LayoutEngine":
        engine = cls(graphstore.load_file(path), viewport, settings)
        logger.info("Engine created from %s: %s", path, engine.data.stats())
        return engine

    def reset(self) -> Dict[object, Tuple[float, float]]:
        """Fresh positions, default filters, forces re-applied, full energy."""
        self._check_alive()
        self.drag.cancel_all(self.data.nodes)
        self.simulation.reset_positions(self._center())
        self.simulation.set_alpha_target(self.settings.simulation.alpha_target)
        update = self.filters.clear()
        apply_visibility(update.visibility, self.data.nodes, self.data.edges)
        self._apply_forces()
        return self.simulation.positions()

    def dispose(self) -> None:
        if self._disposed:
            return
        self.drag.cancel_all(self.data.nodes)
        self.simulation.dispose()
        self._disposed = True
        logger.debug("Engine disposed")

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _check_alive(self):
        if self._disposed:
            raise ExplorerError("Engine has been disposed.")

    def _center(self):
        return (self.viewport[0] * self.properties.center.x, self.viewport[1] * self.properties.center.y)

    def _apply_forces(self):
        self.registry.apply(self.properties, self.viewport)
        # Parameter changes are invisible on a settled layout without new energy
        self.simulation.reheat(1.0)

    # --------------------------
    # Commands
    # --------------------------
    def step(self) -> Optional[TickEvent]:
        if self._disposed:
            return None
        return self.simulation.step()

    def on_parameter_change(self, force: str, name: str, value) -> Dict[object, Tuple[float, float]]:
        self._check_alive()
        self.properties = self.properties.with_change(force, name, value)
        logger.info("Force %s.%s = %r", force, name, value)
        self._apply_forces()
        return self.simulation.positions()

    def set_properties(self, properties: ForceProperties) -> Dict[object, Tuple[float, float]]:
        self._check_alive()
        properties.validate()
        self.properties = properties.copy()
        self._apply_forces()
        return self.simulation.positions()

    def on_viewport_resize(self, width: float, height: float) -> Dict[object, Tuple[float, float]]:
        self._check_alive()
        self.viewport = (float(width), float(height))
        self._apply_forces()
        return self.simulation.positions()

    def on_filter_change(self, attribute: str, value) -> FilterUpdate:
        self._check_alive()
        update = self.filters.select(attribute, value)
        apply_visibility(update.visibility, self.data.nodes, self.data.edges)
        return update

    def on_drag_start(self, node_id) -> Dict[object, Tuple[float, float]]:
        self._check_alive()
        self.drag.drag_start(self.data.node(node_id))
        return self.simulation.positions()

    def on_drag_move(self, node_id, x: float, y: float) -> Dict[object, Tuple[float, float]]:
        self._check_alive()
        self.drag.drag_move(self.data.node(node_id), x, y)
        return self.simulation.positions()

    def on_drag_end(self, node_id) -> Dict[object, Tuple[float, float]]:
        self._check_alive()
        self.drag.drag_end(self.data.node(node_id))
        return self.simulation.positions()

    # --------------------------
    # Queries (used by UI)
    # --------------------------
    def node_at(self, x: float, y: float, slop: float = 2.0):
        return hit_test(self.data.nodes, x, y, self.properties.collide.radius + slop)

    def positions(self) -> Dict[object, Tuple[float, float]]:
        return self.simulation.positions()

    @property
    def alpha(self) -> float:
        return self.simulation.alpha

    @property
    def state(self) -> SolverState:
        return self.simulation.state

    def initial_options(self):
        return self.filters.initial_options()

    def display_style(self) -> DisplayStyle:
        p = self.properties
        return DisplayStyle(
            node_radius=p.collide.radius,
            node_stroke="blue" if p.charge.strength > 0 else "red",
            node_stroke_width=abs(p.charge.strength) / 15.0 if p.charge.enabled else 0.0,
            link_width=1.0 if p.link.enabled else 0.5,
            link_opacity=1.0 if p.link.enabled else 0.0,
        )

    def get_stats(self) -> dict:
        stats = self.data.stats()
        stats.update({
            "effective_links": len(self.registry.effective_edges),
            "visible_nodes": sum(1 for n in self.data.nodes if n.isVisible()),
            "visible_links": sum(1 for e in self.data.edges if e.isVisible()),
            "alpha": self.simulation.alpha,
            "state": self.simulation.state.value,
            "ticks": self.simulation.tick_count,
        })
        return stats
