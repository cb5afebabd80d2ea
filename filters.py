# filters.py
"""
Filter engine: attribute selections -> node and edge visibility.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Optional, Tuple

from errors import InvalidFilterSelectionError
from node import ATTRIBUTES

logger = logging.getLogger(__name__)

# "Unconstrained" marker shown at the top of every option list
ALL = "All"


@dataclass(frozen=True)
class FilterSelection:
    state: str = ALL
    city: str = ALL
    region: str = ALL
    vendor: str = ALL
    type: str = ALL

    def constraints(self) -> Dict[str, str]:
        return {a: getattr(self, a) for a in ATTRIBUTES if getattr(self, a) != ALL}

    def is_unconstrained(self) -> bool:
        return not self.constraints()


@dataclass(frozen=True)
class Visibility:
    nodes: Dict[object, bool]
    edges: Dict[Tuple, bool]

    def visible_node_ids(self):
        return [k for k, v in self.nodes.items() if v]

    def visible_edge_keys(self):
        return [k for k, v in self.edges.items() if v]


def node_matches(node, selection: FilterSelection) -> bool:
    return all(node.getAttribute(a) == v for a, v in selection.constraints().items())


def compute_visibility(selection: FilterSelection, nodes: Iterable, edges: Iterable) -> Visibility:
    """
    A node is visible iff it matches every constrained attribute; an edge is
    visible iff both endpoints are.
    """
    node_vis = {n.getId(): node_matches(n, selection) for n in nodes}
    edge_vis = {}
    for e in edges:
        edge_vis[e.key()] = node_vis[e.getSource().getId()] and node_vis[e.getTarget().getId()]
    return Visibility(node_vis, edge_vis)


def apply_visibility(visibility: Visibility, nodes: Iterable, edges: Iterable) -> None:
    """Copy flags onto the records the renderers read."""
    for n in nodes:
        n.setVisible(visibility.nodes.get(n.getId(), True))
    for e in edges:
        e.setVisible(visibility.edges.get(e.key(), True))


@dataclass(frozen=True)
class FilterUpdate:
    selection: FilterSelection
    visibility: Visibility
    # Only the option lists that changed: {"city": (...), "region": (...)}
    options: Dict[str, Tuple[str, ...]] = field(default_factory=dict)


class FilterController:
    """
    Holds the current selection and applies the cascade rules:
    state resets city and region, city resets region, the rest stand alone.
    """

    def __init__(self, graph_data):
        self._data = graph_data
        self._index = graph_data.attribute_index
        self.selection = FilterSelection()

    def initial_options(self) -> Dict[str, Tuple[str, ...]]:
        enums = self._data.enumerations
        return {
            "state": enums.states,
            "city": (),
            "region": (),
            "vendor": enums.vendors,
            "type": enums.types,
        }

    def city_options(self, state: str) -> Tuple[str, ...]:
        if state == ALL:
            return ()
        try:
            return self._index.cities(state)
        except InvalidFilterSelectionError as e:
            logger.warning("%s Offering no cities.", e)
            return ()

    def region_options(self, state: str, city: str) -> Tuple[str, ...]:
        if state == ALL or city == ALL:
            return ()
        try:
            return self._index.regions(state, city)
        except InvalidFilterSelectionError as e:
            logger.warning("%s Offering no regions.", e)
            return ()

    def select(self, attribute: str, value: Optional[str]) -> FilterUpdate:
        if attribute not in ATTRIBUTES:
            raise ValueError(f"Unknown filter attribute {attribute!r}")
        value = ALL if value is None else str(value)
        options: Dict[str, Tuple[str, ...]] = {}
        sel = self.selection
        if attribute == "state":
            sel = replace(sel, state=value, city=ALL, region=ALL)
            options["city"] = self.city_options(value)
            options["region"] = ()
        elif attribute == "city":
            sel = replace(sel, city=value, region=ALL)
            options["region"] = self.region_options(sel.state, value)
        else:
            sel = replace(sel, **{attribute: value})
        self.selection = sel
        logger.debug("Filter %s=%r -> %s", attribute, value, sel.constraints())
        return FilterUpdate(sel, self.visibility(), options)

    def clear(self) -> FilterUpdate:
        self.selection = FilterSelection()
        return FilterUpdate(self.selection, self.visibility(), {"city": (), "region": ()})

    def visibility(self) -> Visibility:
        return compute_visibility(self.selection, self._data.nodes, self._data.edges)
