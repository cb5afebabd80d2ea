# palette.py

from PyQt5.QtGui import QColor
from typing import Callable, Dict, Mapping, Optional

from errors import ConfigurationError


class ColorMap:
    """
    Declarative value -> colour table with an explicit default.
    Every colour is checked once, when the table is built.
    """

    def __init__(self, key: Callable, table: Mapping, default: str = "black", name: str = ""):
        self.name = name
        self._key = key
        self.default = default
        self.table: Dict = dict(table)
        bad = [c for c in list(self.table.values()) + [default] if not QColor.isValidColor(str(c))]
        if bad:
            raise ConfigurationError(f"{name or 'colour map'}: invalid colour(s) {', '.join(map(repr, bad))}.")

    def color_for(self, item) -> str:
        return self.table.get(self._key(item), self.default)

    def qcolor_for(self, item) -> QColor:
        return QColor(self.color_for(item))


# Node fill by state
NODE_FILL = {"TN": "red", "MA": "blue", "WB": "green", "Delhi": "yellow"}
# Link stroke by raw source id
LINK_STROKE = {1: "red", 2: "blue", 3: "green", 4: "yellow"}


def node_color_map(table: Optional[Mapping] = None, default: str = "black") -> ColorMap:
    return ColorMap(lambda n: n.getAttribute("state"), NODE_FILL if table is None else table,
                    default, name="node fill")


def link_color_map(table: Optional[Mapping] = None, default: str = "black") -> ColorMap:
    return ColorMap(lambda e: e.getSource().getId(), LINK_STROKE if table is None else table,
                    default, name="link stroke")
