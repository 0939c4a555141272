"""
Graph data providers: build a GeoGraph from a JSON graph file or an
OpenStreetMap XML extract.

Any problem with the data raises GraphDataError; callers treat that as fatal.
"""

import json
import logging
import os
from typing import Any, Dict

from bearmaps.services.geo_graph import GeoGraph, GraphDataError

logger = logging.getLogger(__name__)

OSM_SUFFIXES = (".osm", ".xml")


def build_graph(data: Dict[str, Any]) -> GeoGraph:
    """
    Build a graph from a document of the form

        {"nodes": [{"id": 1, "lon": -122.26, "lat": 37.87}, ...],
         "edges": [{"from": 1, "to": 2, "oneway": false}, ...]}

    Edges are two-way unless `oneway` is true.
    """
    if not isinstance(data, dict) or "nodes" not in data:
        raise GraphDataError("Graph document must be an object with a 'nodes' list")

    graph = GeoGraph()
    try:
        for node in data["nodes"]:
            graph.add_node(int(node["id"]), float(node["lon"]), float(node["lat"]))

        for edge in data.get("edges", []):
            from_id, to_id = int(edge["from"]), int(edge["to"])
            graph.add_edge(from_id, to_id)
            if not edge.get("oneway", False):
                graph.add_edge(to_id, from_id)
    except GraphDataError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise GraphDataError(f"Malformed graph entry: {e!r}") from e

    return graph


def load_graph_json(path: str) -> GeoGraph:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise GraphDataError(f"Invalid JSON in {path}: {e}") from e

    graph = build_graph(data)
    logger.info(f"Loaded graph from {path}: {len(graph)} nodes, {graph.edge_count} edges")
    return graph


def load_graph_osm(path: str) -> GeoGraph:
    """
    Load every way of an OSM XML file. osmnx adds the reverse edge for
    two-way streets, so each directed OSM edge maps to one connection.
    """
    import osmnx as ox

    try:
        osm_graph = ox.graph_from_xml(path, simplify=False, retain_all=True)
    except Exception as e:
        raise GraphDataError(f"Could not read OSM data from {path}: {e}") from e

    graph = GeoGraph()
    for node_id, attrs in osm_graph.nodes(data=True):
        graph.add_node(int(node_id), attrs["x"], attrs["y"])

    seen = set()
    for u, v in osm_graph.edges():
        if u == v or (u, v) in seen:
            continue
        seen.add((u, v))
        graph.add_edge(int(u), int(v))

    logger.info(f"Loaded OSM graph from {path}: {len(graph)} nodes, {graph.edge_count} edges")
    return graph


def load_graph(path: str) -> GeoGraph:
    """Pick a loader from the file suffix"""
    if not os.path.exists(path):
        raise GraphDataError(f"Graph file not found: {path}")

    if path.lower().endswith(OSM_SUFFIXES):
        return load_graph_osm(path)
    return load_graph_json(path)
