"""
Road network graph with planar Euclidean edge weights
"""
import logging
from dataclasses import dataclass, field
from math import sqrt
from typing import Dict, Iterator, List, Optional

import numpy as np

logger = logging.getLogger(__name__)


class GraphDataError(ValueError):
    """Raised when graph data references missing nodes or is otherwise malformed"""


def euclidean_distance(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Straight-line distance over raw coordinates (city scale only)"""
    return sqrt((lon2 - lon1) ** 2 + (lat2 - lat1) ** 2)


@dataclass(frozen=True)
class GeoPoint:
    lon: float
    lat: float

    def distance_to(self, other: "GeoPoint") -> float:
        return euclidean_distance(self.lon, self.lat, other.lon, other.lat)


@dataclass(frozen=True)
class Connection:
    """Directed edge; weight is computed once when the edge is created"""
    from_id: int
    to_id: int
    weight: float


@dataclass(eq=False)
class GraphNode:
    id: int
    point: GeoPoint
    connections: List[Connection] = field(default_factory=list)

    @property
    def lon(self) -> float:
        return self.point.lon

    @property
    def lat(self) -> float:
        return self.point.lat

    def __eq__(self, other):
        if not isinstance(other, GraphNode):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


class GeoGraph:
    """Nodes keyed by id plus their outgoing connections"""

    def __init__(self):
        self._nodes: Dict[int, GraphNode] = {}
        self._edge_count = 0
        # (ids, coords) snapshot used by closest_node, rebuilt after inserts
        self._coord_index = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id) -> bool:
        return node_id in self._nodes

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def nodes(self) -> Iterator[GraphNode]:
        return iter(self._nodes.values())

    def add_node(self, node_id: int, lon: float, lat: float) -> GraphNode:
        if node_id in self._nodes:
            raise GraphDataError(f"Duplicate node id {node_id}")
        node = GraphNode(id=node_id, point=GeoPoint(float(lon), float(lat)))
        self._nodes[node_id] = node
        self._coord_index = None
        return node

    def add_edge(self, from_id: int, to_id: int) -> Connection:
        """Insert a directed edge between two existing nodes"""
        source = self._nodes.get(from_id)
        target = self._nodes.get(to_id)
        if source is None or target is None:
            missing = from_id if source is None else to_id
            raise GraphDataError(f"Edge {from_id} -> {to_id} references unknown node {missing}")

        connection = Connection(from_id, to_id, source.point.distance_to(target.point))
        source.connections.append(connection)
        self._edge_count += 1
        return connection

    def get_node(self, node_id: int) -> GraphNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise GraphDataError(f"Unknown node id {node_id}") from None

    def closest_node(self, lon: float, lat: float) -> Optional[GraphNode]:
        """Node nearest to (lon, lat), or None for an empty graph"""
        if not self._nodes:
            return None

        if self._coord_index is None:
            ids = np.fromiter(self._nodes.keys(), dtype=np.int64, count=len(self._nodes))
            coords = np.array([(n.lon, n.lat) for n in self._nodes.values()], dtype=np.float64)
            self._coord_index = (ids, coords)

        ids, coords = self._coord_index
        squared = (coords[:, 0] - lon) ** 2 + (coords[:, 1] - lat) ** 2
        return self._nodes[int(ids[int(np.argmin(squared))])]
