# forces.py
"""
Force registry.

Each force term adds velocity (or, for centering, a position shift) to the
nodes once per tick. Forces own parameters only; positions live on the
Node records. ``ForceRegistry.apply`` rebuilds the whole set from a
ForceProperties record and swaps it in, so the solver never sees a
half-updated registry.
"""

import logging
import math
import random
from typing import Dict, List, Optional, Sequence, Tuple

from config import ForceProperties
from utils_geom import EPS, grid_cell, jiggle, neighbour_cells

logger = logging.getLogger(__name__)

# Order in which forces run inside one tick
FORCE_ORDER = ("link", "charge", "collide", "center", "force_x", "force_y")


class Force:
    name = ""

    def initialize(self, nodes: Sequence, rng: random.Random) -> None:
        self._nodes = list(nodes)
        self._rng = rng

    def __call__(self, alpha: float) -> None:
        raise NotImplementedError

    def describe(self) -> dict:
        """Resolved parameters (pixels, effective strengths)."""
        raise NotImplementedError


# --------------------------
# Center
# --------------------------
class CenterForce(Force):
    name = "center"

    def __init__(self, x: float, y: float):
        self.x = float(x)
        self.y = float(y)

    def __call__(self, alpha: float) -> None:
        nodes = self._nodes
        if not nodes:
            return
        sx = sum(n.x for n in nodes) / len(nodes) - self.x
        sy = sum(n.y for n in nodes) / len(nodes) - self.y
        for n in nodes:
            n.x -= sx
            n.y -= sy

    def describe(self) -> dict:
        return {"x": self.x, "y": self.y}


# --------------------------
# Many-body (charge)
# --------------------------
class ManyBodyForce(Force):
    """
    Pairwise repulsion (strength < 0) or attraction (strength > 0).
    Pairs further apart than distance_max are ignored; closer than
    distance_min are softened so the force stays finite.
    """
    name = "charge"

    def __init__(self, strength: float, distance_min: float, distance_max: float):
        self.strength = float(strength)
        self.distance_min2 = float(distance_min) ** 2
        self.distance_max2 = float(distance_max) ** 2

    def __call__(self, alpha: float) -> None:
        if self.strength == 0.0:
            return
        nodes = self._nodes
        k = self.strength * alpha
        n = len(nodes)
        for i in range(n):
            a = nodes[i]
            for j in range(i + 1, n):
                b = nodes[j]
                dx = b.x - a.x
                dy = b.y - a.y
                l = dx * dx + dy * dy
                if l >= self.distance_max2:
                    continue
                if dx == 0.0:
                    dx = jiggle(self._rng)
                    l += dx * dx
                if dy == 0.0:
                    dy = jiggle(self._rng)
                    l += dy * dy
                if l < self.distance_min2:
                    l = math.sqrt(self.distance_min2 * l)
                l = max(l, EPS)
                w = k / l
                a.vx += dx * w
                a.vy += dy * w
                b.vx -= dx * w
                b.vy -= dy * w

    def describe(self) -> dict:
        return {
            "strength": self.strength,
            "distance_min": math.sqrt(self.distance_min2),
            "distance_max": math.sqrt(self.distance_max2),
        }


# --------------------------
# Collision (grid-hashed)
# --------------------------
class CollideForce(Force):
    name = "collide"

    def __init__(self, radius: float, strength: float, iterations: int):
        self.radius = float(radius)
        self.strength = float(strength)
        self.iterations = max(1, int(iterations))

    def __call__(self, alpha: float) -> None:
        if self.radius <= 0.0 or self.strength == 0.0 or not self._nodes:
            return
        r = 2.0 * self.radius
        r2 = r * r
        inv_cell = 1.0 / r
        for _ in range(self.iterations):
            # Bucket by predicted position; a cell is one contact diameter wide
            grid: Dict[Tuple[int, int], List] = {}
            for node in self._nodes:
                grid.setdefault(grid_cell(node.x + node.vx, node.y + node.vy, inv_cell), []).append(node)

            for a in self._nodes:
                xi = a.x + a.vx
                yi = a.y + a.vy
                for cell in neighbour_cells(*grid_cell(xi, yi, inv_cell)):
                    for b in grid.get(cell, ()):
                        if b.index <= a.index:
                            continue
                        x = xi - b.x - b.vx
                        y = yi - b.y - b.vy
                        l = x * x + y * y
                        if l >= r2:
                            continue
                        if x == 0.0:
                            x = jiggle(self._rng)
                            l += x * x
                        if y == 0.0:
                            y = jiggle(self._rng)
                            l += y * y
                        l = math.sqrt(max(l, EPS))
                        l = (r - l) / l * self.strength
                        x *= l
                        y *= l
                        # Equal radii: the push is split evenly
                        a.vx += x * 0.5
                        a.vy += y * 0.5
                        b.vx -= x * 0.5
                        b.vy -= y * 0.5

    def describe(self) -> dict:
        return {"radius": self.radius, "strength": self.strength, "iterations": self.iterations}


# --------------------------
# Axis alignment
# --------------------------
class AxisForce(Force):
    def __init__(self, axis: str, target: float, strength: float):
        if axis not in ("x", "y"):
            raise ValueError(f"axis must be 'x' or 'y', not {axis!r}")
        self.axis = axis
        self.name = f"force_{axis}"
        self.target = float(target)
        self.strength = float(strength)

    def __call__(self, alpha: float) -> None:
        if self.strength == 0.0:
            return
        k = self.strength * alpha
        if self.axis == "x":
            for n in self._nodes:
                n.vx += (self.target - n.x) * k
        else:
            for n in self._nodes:
                n.vy += (self.target - n.y) * k

    def describe(self) -> dict:
        return {self.axis: self.target, "strength": self.strength}


# --------------------------
# Link springs
# --------------------------
class LinkForce(Force):
    """
    Springs along edges toward a rest distance. Each link is weighted by
    1/min(degree) and the correction is split by relative degree so hubs
    move less than leaves.
    """
    name = "link"

    def __init__(self, edges: Sequence, distance: float, iterations: int):
        self.edges = tuple(edges)
        self.distance = float(distance)
        self.iterations = max(1, int(iterations))
        self._strengths: List[float] = []
        self._bias: List[float] = []

    def initialize(self, nodes: Sequence, rng: random.Random) -> None:
        super().initialize(nodes, rng)
        count: Dict[int, int] = {}
        for e in self.edges:
            s, t = e.getSource().index, e.getTarget().index
            count[s] = count.get(s, 0) + 1
            count[t] = count.get(t, 0) + 1
        self._strengths = []
        self._bias = []
        for e in self.edges:
            cs = count[e.getSource().index]
            ct = count[e.getTarget().index]
            self._strengths.append(1.0 / min(cs, ct))
            self._bias.append(cs / (cs + ct))

    def __call__(self, alpha: float) -> None:
        for _ in range(self.iterations):
            for e, strength, bias in zip(self.edges, self._strengths, self._bias):
                source, target = e.getSource(), e.getTarget()
                x = target.x + target.vx - source.x - source.vx
                y = target.y + target.vy - source.y - source.vy
                if x == 0.0:
                    x = jiggle(self._rng)
                if y == 0.0:
                    y = jiggle(self._rng)
                l = max(math.hypot(x, y), EPS)
                l = (l - self.distance) / l * alpha * strength
                x *= l
                y *= l
                target.vx -= x * bias
                target.vy -= y * bias
                source.vx += x * (1.0 - bias)
                source.vy += y * (1.0 - bias)

    def describe(self) -> dict:
        return {"distance": self.distance, "iterations": self.iterations, "links": len(self.edges)}


# --------------------------
# Registry
# --------------------------
class ForceRegistry:
    def __init__(self, nodes: Sequence, edges: Sequence, rng: Optional[random.Random] = None):
        self._nodes = tuple(nodes)
        self._edges = tuple(edges)
        self._rng = rng or random.Random()
        self._forces: Dict[str, Force] = {}
        self._properties: Optional[ForceProperties] = None
        self._viewport = (0.0, 0.0)

    def apply(self, properties: ForceProperties, viewport: Tuple[float, float]) -> None:
        """
        Resolve ``properties`` against the viewport size and install the
        resulting forces. Applying the same inputs twice yields the same
        force state. Energy reinjection is the caller's job.
        """
        properties.validate()
        width, height = float(viewport[0]), float(viewport[1])
        p = properties

        def on(flag):
            return 1.0 if flag else 0.0

        built: Dict[str, Force] = {
            "link": LinkForce(self._edges if p.link.enabled else (), p.link.distance, p.link.iterations),
            "charge": ManyBodyForce(p.charge.strength * on(p.charge.enabled),
                                    p.charge.distance_min, p.charge.distance_max),
            "collide": CollideForce(p.collide.radius, p.collide.strength * on(p.collide.enabled),
                                    p.collide.iterations),
            "center": CenterForce(width * p.center.x, height * p.center.y),
            "force_x": AxisForce("x", width * p.force_x.x, p.force_x.strength * on(p.force_x.enabled)),
            "force_y": AxisForce("y", height * p.force_y.y, p.force_y.strength * on(p.force_y.enabled)),
        }
        for name in FORCE_ORDER:
            built[name].initialize(self._nodes, self._rng)

        # Swap in one assignment
        self._forces = built
        self._properties = properties.copy()
        self._viewport = (width, height)
        logger.debug("Applied forces for viewport %.0fx%.0f: %s", width, height, self.describe())

    def forces(self) -> List[Force]:
        forces = self._forces
        return [forces[name] for name in FORCE_ORDER if name in forces]

    def force(self, name: str) -> Force:
        return self._forces[name]

    def run(self, alpha: float) -> None:
        for f in self.forces():
            f(alpha)

    @property
    def effective_edges(self) -> Tuple:
        link = self._forces.get("link")
        return link.edges if link is not None else ()

    @property
    def properties(self) -> Optional[ForceProperties]:
        return self._properties.copy() if self._properties is not None else None

    @property
    def viewport(self) -> Tuple[float, float]:
        return self._viewport

    def describe(self) -> Dict[str, dict]:
        return {name: f.describe() for name, f in self._forces.items()}
