# utils_geom.py

from PyQt5.QtCore import QPointF
import math

EPS = 1e-9
# Largest offset used to separate coincident points
JIGGLE_SPAN = 1e-6

INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


def jiggle(rng) -> float:
    # Tiny random offset in (-JIGGLE_SPAN/2, JIGGLE_SPAN/2)
    return (rng.random() - 0.5) * JIGGLE_SPAN


def phyllotaxis(i: int, cx: float = 0.0, cy: float = 0.0):
    """Position of the i-th point on a sunflower spiral around (cx, cy)."""
    r = INITIAL_RADIUS * math.sqrt(0.5 + i)
    a = i * INITIAL_ANGLE
    return cx + r * math.cos(a), cy + r * math.sin(a)


def grid_cell(x: float, y: float, inv_cell: float):
    return int(math.floor(x * inv_cell)), int(math.floor(y * inv_cell))


def neighbour_cells(cx: int, cy: int):
    return [(cx + dx, cy + dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)]


def v_sub(a: QPointF, b: QPointF) -> QPointF:
    return QPointF(a.x() - b.x(), a.y() - b.y())
