#!/usr/bin/env python3
"""
Command-line tool for route and raster queries.

Usage:
    # Using a local graph file:
    python route_cli.py --graph berkeley.osm route "Start: 37.8702, -122.2585" "End: 37.8584, -122.2468"

    # Using API service:
    python route_cli.py --api route "Start: 37.8702, -122.2585" "End: 37.8584, -122.2468"

    # Which tiles cover a viewport:
    python route_cli.py raster -122.2998 37.8922 -122.2119 37.8228 1024 768
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import time
import re
import argparse
import requests


class TimedStep:
    """Context manager for timing individual steps"""
    def __init__(self, description):
        self.description = description
        self.start_time = None

    def __enter__(self):
        print(f"\n📍 {self.description}...")
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        if exc_type is None:
            print(f"   ✓ Completed in {format_time(duration)}")
        else:
            print(f"   ✗ Failed after {format_time(duration)}")


def parse_coordinate(coord_str):
    """Parse coordinate string like 'Start: 37.8702, -122.2585' into (lat, lon)"""
    coord_str = coord_str.replace('Start:', '').replace('End:', '').strip()

    match = re.match(r'^\s*(-?\d+\.?\d*)\s*,\s*(-?\d+\.?\d*)\s*$', coord_str)
    if match:
        return float(match.group(1)), float(match.group(2))
    raise ValueError(f"Invalid coordinate format: {coord_str}")


def format_time(seconds):
    """Format time in human-readable way"""
    if seconds < 1:
        return f"{seconds*1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        minutes = int(seconds / 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.0f}s"


def build_local_service(graph_path):
    """MapService over a local graph file, configured from the environment"""
    from bearmaps.config import MapServerConfig
    from bearmaps.services.map_service import MapService

    config = MapServerConfig.from_env()
    if graph_path:
        config.graph_path = graph_path
    return MapService.from_config(config)


def find_route_via_api(start_lat, start_lon, end_lat, end_lon, api_url="http://localhost:4567"):
    """Find route using the API service"""
    payload = {
        "start": {"lat": start_lat, "lon": start_lon},
        "end": {"lat": end_lat, "lon": end_lon}
    }

    with TimedStep("Requesting route from API"):
        try:
            response = requests.post(f"{api_url}/api/route", json=payload, timeout=30)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.ConnectionError:
            print(f"   ✗ Cannot connect to API at {api_url}")
            return None
        except requests.exceptions.RequestException as e:
            print(f"   ✗ API request failed: {e}")
            return None


def raster_via_api(params, api_url="http://localhost:4567"):
    """Run a raster query against the API service without rendering"""
    with TimedStep("Requesting raster from API"):
        try:
            response = requests.post(f"{api_url}/api/raster", json={**params, "render": False}, timeout=30)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            print(f"   ✗ API request failed: {e}")
            return None


def run_route(args):
    try:
        start_lat, start_lon = parse_coordinate(args.start)
        end_lat, end_lon = parse_coordinate(args.end)
    except ValueError as e:
        print(f"❌ Error parsing coordinates: {e}")
        print("\nExpected format:")
        print('  "Start: 37.8702, -122.2585"')
        print('  "End: 37.8584, -122.2468"')
        return 1

    print("\n🗺️  BEARMAPS ROUTE")
    print("=" * 60)
    print(f"Mode:  {'API Service' if args.api else 'Local graph'}")
    print(f"Start: {start_lat}, {start_lon}")
    print(f"End:   {end_lat}, {end_lon}")
    print("-" * 60)

    if args.api:
        data = find_route_via_api(start_lat, start_lon, end_lat, end_lon, args.api_url)
        if data is None:
            return 1
        found, route, cost = data["found"], data["route"], data.get("cost")
    else:
        with TimedStep("Loading graph"):
            service = build_local_service(args.graph)
            print(f"   {len(service.graph)} nodes, {service.graph.edge_count} edges")
        with TimedStep("Searching"):
            result = service.find_route(start_lon, start_lat, end_lon, end_lat)
            print(f"   Expanded {result.expanded} nodes")
        found, route, cost = result.found, result.node_ids, result.cost

    if not found:
        print("\n❌ No route found")
        return 1

    print(f"\n✅ ROUTE FOUND: {len(route)} nodes, planar length {cost:.6f}")
    print(f"   {' -> '.join(str(node_id) for node_id in route[:10])}{' ...' if len(route) > 10 else ''}")
    return 0


def run_raster(args):
    params = {
        "ullon": args.ullon, "ullat": args.ullat,
        "lrlon": args.lrlon, "lrlat": args.lrlat,
        "w": args.width, "h": args.height
    }

    if args.api:
        data = raster_via_api(params, args.api_url)
        if data is None:
            return 1
    else:
        with TimedStep("Building tile index"):
            from bearmaps.config import MapServerConfig
            from bearmaps.services.map_service import MapService
            service = MapService(config=MapServerConfig.from_env())
        with TimedStep("Querying tiles"):
            data = service.raster(args.ullon, args.ullat, args.lrlon, args.lrlat,
                                  args.width, args.height).to_dict()

    if not data["query_success"]:
        print(f"\n❌ Raster query failed: {data.get('message')}")
        return 1

    print(f"\n✅ Depth {data['depth']}: {data['rows']}x{data['cols']} tiles, "
          f"{data['raster_width']}x{data['raster_height']}px")
    print(f"   Upper left:  {data['raster_ul_lon']}, {data['raster_ul_lat']}")
    print(f"   Lower right: {data['raster_lr_lon']}, {data['raster_lr_lat']}")
    cols = data["cols"]
    grid = data["render_grid"]
    for row in range(data["rows"]):
        print("   " + " ".join(f"{image_id:>8}" for image_id in grid[row * cols:(row + 1) * cols]))
    return 0


def main(argv=None):
    """Main CLI function"""
    parser = argparse.ArgumentParser(
        description='Route and raster queries using a local graph or the API service',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--api', action='store_true', help='Use API service instead of local libraries')
    parser.add_argument('--api-url', default='http://localhost:4567', help='API service URL (default: http://localhost:4567)')
    parser.add_argument('--graph', default=None, help='Graph file (.json or .osm); defaults to BEARMAPS_GRAPH_PATH')

    subparsers = parser.add_subparsers(dest='command', required=True)

    route_parser = subparsers.add_parser('route', help='Shortest route between two points')
    route_parser.add_argument('start', help='Start coordinates (e.g., "Start: 37.8702, -122.2585")')
    route_parser.add_argument('end', help='End coordinates (e.g., "End: 37.8584, -122.2468")')
    route_parser.set_defaults(func=run_route)

    raster_parser = subparsers.add_parser('raster', help='Tiles covering a viewport')
    for name in ('ullon', 'ullat', 'lrlon', 'lrlat'):
        raster_parser.add_argument(name, type=float)
    raster_parser.add_argument('width', type=float, help='Viewport width in pixels')
    raster_parser.add_argument('height', type=float, help='Viewport height in pixels')
    raster_parser.set_defaults(func=run_raster)

    args = parser.parse_args(argv)

    overall_start = time.time()
    status = args.func(args)
    print("\n" + "=" * 60)
    print(f"✓ Complete! Total time: {format_time(time.time() - overall_start)}")
    return status


if __name__ == "__main__":
    sys.exit(main())
