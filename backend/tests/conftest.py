"""
Pytest configuration and shared fixtures
"""

import pytest
import sys
import os

# Add backend directory to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Import all fixtures from graph_fixtures
from fixtures.graph_fixtures import (
    triangle_graph,
    berkeley_graph,
    random_graph,
    disconnected_graph,
    graph_document,
    graph_json_file,
    berkeley_config,
    tile_index,
    shallow_config,
    tile_image_dir,
    map_service
)

# Re-export all fixtures
__all__ = [
    'triangle_graph',
    'berkeley_graph',
    'random_graph',
    'disconnected_graph',
    'graph_document',
    'graph_json_file',
    'berkeley_config',
    'tile_index',
    'shallow_config',
    'tile_image_dir',
    'map_service'
]
