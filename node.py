# node.py

from PyQt5.QtCore import QPointF
from typing import Optional, Tuple

ATTRIBUTES = ("state", "city", "region", "vendor", "type")


class Node:
    __slots__ = ("_id", "_attrs", "index", "x", "y", "vx", "vy", "fx", "fy", "_visible")

    def __init__(self, node_id, attributes: dict, index: int = 0):
        self._id = node_id
        self._attrs = {name: attributes[name] for name in ATTRIBUTES}
        self.index = int(index)
        # Position is undefined until the solver places the node
        self.x: Optional[float] = None
        self.y: Optional[float] = None
        self.vx = 0.0
        self.vy = 0.0
        self.fx: Optional[float] = None
        self.fy: Optional[float] = None
        self._visible = True

    # --- Getters and Setters ---
    def getId(self):
        return self._id

    def getAttribute(self, name: str) -> str:
        return self._attrs[name]

    def attributes(self) -> dict:
        return dict(self._attrs)

    def hasPosition(self) -> bool:
        return self.x is not None and self.y is not None

    def getPosition(self) -> QPointF:
        return QPointF(self.x or 0.0, self.y or 0.0)

    def pos_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def isPinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    def pin(self, x: float, y: float) -> None:
        self.fx = float(x)
        self.fy = float(y)

    def unpin(self) -> None:
        self.fx = None
        self.fy = None

    def isVisible(self) -> bool:
        return self._visible

    def setVisible(self, v: bool) -> None:
        self._visible = bool(v)

    def __getattr__(self, name):
        # Attribute shorthand: node.state, node.city, ...
        if name in ATTRIBUTES:
            return self._attrs[name]
        raise AttributeError(name)

    def __repr__(self) -> str:
        return f"N({self._id!r})"
