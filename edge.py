# edge.py
from __future__ import annotations
from typing import Tuple


class Edge:
    __slots__ = ("_source", "_target", "index", "_visible")

    def __init__(self, source, target, index: int = 0):
        # Orientation is kept as given: source -> target
        self._source = source
        self._target = target
        self.index = int(index)
        self._visible = True

    # --- Getters and Setters ---
    def getSource(self): return self._source
    def getTarget(self): return self._target
    def isVisible(self): return self._visible
    def setVisible(self, v: bool): self._visible = bool(v)

    # Identity is the endpoint id pair
    def key(self) -> Tuple:
        return (self._source.getId(), self._target.getId())

    def __eq__(self, other) -> bool:
        return isinstance(other, Edge) and self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def __repr__(self):
        return f"E({self._source.getId()!r} -> {self._target.getId()!r})"
