# graphstore.py
"""
Graph data store.

Turns the startup payload (``nodes``, ``links`` and the flat ``state`` /
``vendor`` / ``type`` enumerations) into resolved Node and Edge records
plus the attribute index used by the filters. Everything here is read-only
once ``load`` returns; only node position, velocity and pin fields change
afterwards.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from edge import Edge
from errors import InvalidFilterSelectionError, MalformedDatasetError, UnknownNodeError
from node import ATTRIBUTES, Node

logger = logging.getLogger(__name__)


class AttributeIndex:
    """
    state -> city -> ordered regions, plus ordered vendors and types.
    Order is first-seen order in the node list.
    """

    def __init__(self):
        self._geo: Dict[str, Dict[str, List[str]]] = {}
        self._vendors: List[str] = []
        self._types: List[str] = []

    @classmethod
    def from_nodes(cls, nodes) -> "AttributeIndex":
        idx = cls()
        for n in nodes:
            cities = idx._geo.setdefault(n.getAttribute("state"), {})
            regions = cities.setdefault(n.getAttribute("city"), [])
            region = n.getAttribute("region")
            if region not in regions:
                regions.append(region)
            if n.getAttribute("vendor") not in idx._vendors:
                idx._vendors.append(n.getAttribute("vendor"))
            if n.getAttribute("type") not in idx._types:
                idx._types.append(n.getAttribute("type"))
        return idx

    # -------- lookups --------
    def states(self) -> Tuple[str, ...]:
        return tuple(self._geo)

    def cities(self, state: str) -> Tuple[str, ...]:
        if state not in self._geo:
            raise InvalidFilterSelectionError("state", state)
        return tuple(self._geo[state])

    def regions(self, state: str, city: str) -> Tuple[str, ...]:
        cities = self._geo.get(state)
        if cities is None:
            raise InvalidFilterSelectionError("state", state)
        if city not in cities:
            raise InvalidFilterSelectionError("city", city, parent=state)
        return tuple(cities[city])

    def vendors(self) -> Tuple[str, ...]:
        return tuple(self._vendors)

    def types(self) -> Tuple[str, ...]:
        return tuple(self._types)

    def as_dict(self) -> Dict[str, Dict[str, List[str]]]:
        return {s: {c: list(r) for c, r in cities.items()} for s, cities in self._geo.items()}


@dataclass(frozen=True)
class Enumerations:
    """Option lists offered before any filter is chosen."""
    states: Tuple[str, ...]
    vendors: Tuple[str, ...]
    types: Tuple[str, ...]


@dataclass
class GraphData:
    nodes: List[Node]
    edges: List[Edge]
    attribute_index: AttributeIndex
    enumerations: Enumerations
    _by_id: Dict[object, Node] = field(default_factory=dict, repr=False)

    def node(self, node_id) -> Node:
        try:
            return self._by_id[node_id]
        except (KeyError, TypeError):
            raise UnknownNodeError(node_id) from None

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def stats(self) -> dict:
        return {
            "nodes": self.node_count,
            "edges": self.edge_count,
            "states": len(self.attribute_index.states()),
            "vendors": len(self.attribute_index.vendors()),
            "types": len(self.attribute_index.types()),
        }


# --------------------------
# Loading
# --------------------------
def _node_id(raw_node, i):
    if not isinstance(raw_node, dict):
        raise MalformedDatasetError(f"Node #{i} is not an object.")
    if "id" not in raw_node or raw_node["id"] is None:
        raise MalformedDatasetError(f"Node #{i} has no 'id'.")
    node_id = raw_node["id"]
    if isinstance(node_id, (dict, list)):
        raise MalformedDatasetError(f"Node #{i} has a non-scalar id {node_id!r}.")
    return node_id


def _enumeration(raw, key: str, fallback) -> Tuple[str, ...]:
    values = raw.get(key)
    if values is None:
        return tuple(fallback)
    if not isinstance(values, list) or any(v is None or isinstance(v, (dict, list)) for v in values):
        raise MalformedDatasetError(f"'{key}' must be a list of scalar values.")
    # Same conversion as the node attributes, so options match node values
    return tuple(str(v) for v in values)


def load(raw) -> GraphData:
    """
    Build the graph store from a decoded payload.

    Raises MalformedDatasetError if any link names an unknown node, if any
    node lacks one of state/city/region/vendor/type, or if the payload shape
    is wrong. No partial result is ever returned.
    """
    if not isinstance(raw, dict):
        raise MalformedDatasetError("Dataset must be a JSON object.")
    raw_nodes = raw.get("nodes")
    raw_links = raw.get("links")
    if not isinstance(raw_nodes, list):
        raise MalformedDatasetError("Dataset has no 'nodes' list.")
    if not isinstance(raw_links, list):
        raise MalformedDatasetError("Dataset has no 'links' list.")

    nodes: List[Node] = []
    by_id: Dict[object, Node] = {}
    for i, rn in enumerate(raw_nodes):
        node_id = _node_id(rn, i)
        if node_id in by_id:
            raise MalformedDatasetError(f"Duplicate node id {node_id!r}.")
        missing = [a for a in ATTRIBUTES if a not in rn or rn[a] is None]
        if missing:
            raise MalformedDatasetError(f"Node {node_id!r} is missing {', '.join(missing)}.")
        node = Node(node_id, {a: str(rn[a]) for a in ATTRIBUTES}, index=i)
        nodes.append(node)
        by_id[node_id] = node

    edges: List[Edge] = []
    for i, rl in enumerate(raw_links):
        if not isinstance(rl, dict) or "source" not in rl or "target" not in rl:
            raise MalformedDatasetError(f"Link #{i} needs 'source' and 'target'.")
        for end in (rl["source"], rl["target"]):
            if isinstance(end, (dict, list)) or end not in by_id:
                raise MalformedDatasetError(f"Link #{i} references unknown node {end!r}.")
        edges.append(Edge(by_id[rl["source"]], by_id[rl["target"]], index=i))

    index = AttributeIndex.from_nodes(nodes)
    enums = Enumerations(
        states=_enumeration(raw, "state", index.states()),
        vendors=_enumeration(raw, "vendor", index.vendors()),
        types=_enumeration(raw, "type", index.types()),
    )
    logger.info("Loaded dataset: %d nodes, %d links, %d states",
                len(nodes), len(edges), len(index.states()))
    return GraphData(nodes, edges, index, enums, by_id)


def load_file(path) -> GraphData:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise MalformedDatasetError(f"Cannot read dataset {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise MalformedDatasetError(f"Dataset {path} is not valid JSON: {e}") from e
    logger.debug("Read dataset file %s", path)
    return load(raw)
