"""
A* shortest-path search over the road network graph.

All per-search state (scores, predecessors, frontier, closed set) lives in a
SearchContext created for each call, so one graph can serve concurrent
searches without resetting anything between runs.
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from bearmaps.services.geo_graph import GeoGraph, GraphNode

logger = logging.getLogger(__name__)

Heuristic = Callable[[GraphNode, GraphNode], float]

_REMOVED = object()


def euclidean_heuristic(node: GraphNode, goal: GraphNode) -> float:
    """Straight-line distance to the goal; admissible since edge weights are straight lines too"""
    return node.point.distance_to(goal.point)


def zero_heuristic(node: GraphNode, goal: GraphNode) -> float:
    return 0.0


class IndexedPriorityQueue:
    """
    Min-priority queue of node ids with O(1) membership and decrease-key.

    Re-pushing an id invalidates its previous heap entry in place; stale
    entries are discarded when they surface.
    """

    def __init__(self):
        self._heap: List[list] = []
        self._entries: Dict[int, list] = {}
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __contains__(self, node_id) -> bool:
        return node_id in self._entries

    def priority(self, node_id: int) -> float:
        return self._entries[node_id][0]

    def push(self, node_id: int, priority: float):
        """Add a node or change the priority of one already queued"""
        if node_id in self._entries:
            self.remove(node_id)
        entry = [priority, next(self._counter), node_id]
        self._entries[node_id] = entry
        heapq.heappush(self._heap, entry)

    def remove(self, node_id: int):
        entry = self._entries.pop(node_id)
        entry[-1] = _REMOVED

    def pop(self) -> Tuple[int, float]:
        """Remove and return the (node_id, priority) with the lowest priority"""
        while self._heap:
            priority, _, node_id = heapq.heappop(self._heap)
            if node_id is not _REMOVED:
                del self._entries[node_id]
                return node_id, priority
        raise KeyError("pop from an empty priority queue")


@dataclass
class SearchContext:
    """Scratch state for a single search run"""
    g_score: Dict[int, float] = field(default_factory=dict)
    came_from: Dict[int, int] = field(default_factory=dict)
    closed: Set[int] = field(default_factory=set)
    frontier: IndexedPriorityQueue = field(default_factory=IndexedPriorityQueue)
    expanded: int = 0

    def reconstruct(self, node_id: int) -> List[int]:
        path = [node_id]
        while path[-1] in self.came_from:
            path.append(self.came_from[path[-1]])
        path.reverse()
        return path


@dataclass
class PathResult:
    found: bool
    node_ids: List[int]
    cost: float
    expanded: int = 0

    @classmethod
    def unreachable(cls, expanded: int = 0) -> "PathResult":
        return cls(found=False, node_ids=[], cost=float("inf"), expanded=expanded)


class PathFinder:
    """A* search with an injectable (consistent) heuristic"""

    def __init__(self, graph: GeoGraph, heuristic: Optional[Heuristic] = None):
        self.graph = graph
        self.heuristic = heuristic or euclidean_heuristic

    def search(self, start_id: int, goal_id: int) -> PathResult:
        """
        Find the minimum-weight path from start_id to goal_id.

        Returns a PathResult whose `found` flag is False when the goal cannot
        be reached; no partial path is returned in that case.
        Raises GraphDataError if either id is not in the graph.
        """
        start = self.graph.get_node(start_id)
        goal = self.graph.get_node(goal_id)

        ctx = SearchContext()
        ctx.g_score[start_id] = 0.0
        ctx.frontier.push(start_id, self.heuristic(start, goal))

        while ctx.frontier:
            current_id, _ = ctx.frontier.pop()

            if current_id == goal_id:
                path = ctx.reconstruct(current_id)
                logger.debug(f"[ROUTE] {start_id} -> {goal_id}: {len(path)} nodes, "
                             f"cost {ctx.g_score[goal_id]:.6f}, expanded {ctx.expanded}")
                return PathResult(True, path, ctx.g_score[goal_id], ctx.expanded)

            ctx.closed.add(current_id)
            ctx.expanded += 1
            current_g = ctx.g_score[current_id]

            for connection in self.graph.get_node(current_id).connections:
                neighbor_id = connection.to_id
                if neighbor_id in ctx.closed:
                    continue

                tentative_g = current_g + connection.weight
                if tentative_g < ctx.g_score.get(neighbor_id, float("inf")):
                    ctx.came_from[neighbor_id] = current_id
                    ctx.g_score[neighbor_id] = tentative_g
                    neighbor = self.graph.get_node(neighbor_id)
                    ctx.frontier.push(neighbor_id, tentative_g + self.heuristic(neighbor, goal))

        logger.info(f"[ROUTE] Goal {goal_id} unreachable from {start_id} after expanding {ctx.expanded} nodes")
        return PathResult.unreachable(ctx.expanded)


def shortest_path(graph: GeoGraph, start_id: int, goal_id: int) -> PathResult:
    """A* with the Euclidean heuristic"""
    return PathFinder(graph).search(start_id, goal_id)


def dijkstra(graph: GeoGraph, start_id: int, goal_id: int) -> PathResult:
    """Uninformed search, kept as an independent reference for A* results"""
    return PathFinder(graph, heuristic=zero_heuristic).search(start_id, goal_id)
