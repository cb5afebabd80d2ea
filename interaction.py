# interaction.py

import logging
import math
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


class DragController:
    """Pointer drags -> pin overrides and solver energy."""

    def __init__(self, simulation, drag_alpha_target: float = 0.3, release_alpha_target: float = 0.0001):
        self.simulation = simulation
        self.drag_alpha_target = float(drag_alpha_target)
        self.release_alpha_target = float(release_alpha_target)
        self._active = set()

    def active_count(self) -> int:
        return len(self._active)

    def drag_start(self, node) -> None:
        # Only the first concurrent drag raises the energy floor
        if not self._active:
            self.simulation.set_alpha_target(self.drag_alpha_target)
            self.simulation.restart()
        self._active.add(node.getId())
        node.pin(node.x, node.y)
        logger.debug("Drag start %r at (%.1f, %.1f)", node.getId(), node.x, node.y)

    def drag_move(self, node, x: float, y: float) -> None:
        node.pin(x, y)

    def drag_end(self, node) -> None:
        self._active.discard(node.getId())
        if not self._active:
            self.simulation.set_alpha_target(self.release_alpha_target)
        node.unpin()
        logger.debug("Drag end %r", node.getId())

    def cancel_all(self, nodes: Iterable) -> None:
        for n in nodes:
            if n.getId() in self._active:
                n.unpin()
        self._active.clear()


def hit_test(nodes: Iterable, x: float, y: float, radius: float) -> Optional[object]:
    """Topmost visible node whose disc contains (x, y)."""
    for n in reversed(list(nodes)):
        if not n.isVisible() or n.x is None:
            continue
        if math.hypot(n.x - x, n.y - y) <= radius:
            return n
    return None
