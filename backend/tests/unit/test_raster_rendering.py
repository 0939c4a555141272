#!/usr/bin/env python3
"""
Tests for tile image lookup and raster composition
"""

import io

import pytest
from PIL import Image

from bearmaps.services.raster_renderer import RasterRenderer
from bearmaps.services.tile_index import BoundingBox, SpatialTileIndex
from bearmaps.services.tile_query import RasterResult, TileQueryEngine
from bearmaps.services.tile_store import TileImageNotFoundError, TileImageStore
from fixtures.graph_fixtures import tile_color


@pytest.fixture
def engine(shallow_config):
    index = SpatialTileIndex(BoundingBox(*shallow_config.root_bounds), shallow_config.max_depth)
    return TileQueryEngine(index, shallow_config.tile_size)


@pytest.fixture
def renderer(tile_image_dir):
    return RasterRenderer(TileImageStore(tile_image_dir))


def full_map(engine, width):
    box = engine.index.bounds
    return engine.query(box.ullon, box.ullat, box.lrlon, box.lrlat, width, width)


@pytest.mark.unit
class TestTileImageStore:

    def test_file_names(self, tmp_path):
        store = TileImageStore(str(tmp_path))

        assert store.path_for(0) == str(tmp_path / "root.png")
        assert store.path_for(1423) == str(tmp_path / "1423.png")

    def test_reads_tile_bytes(self, tile_image_dir):
        store = TileImageStore(tile_image_dir)

        assert store.exists(0)
        assert store.exists(44)
        assert store.get(12).startswith(b"\x89PNG")

    def test_missing_tile(self, tmp_path):
        store = TileImageStore(str(tmp_path))

        assert not store.exists(3)
        with pytest.raises(TileImageNotFoundError):
            store.get(3)
        with pytest.raises(OSError):
            store.get(3)


@pytest.mark.unit
class TestRasterRenderer:

    def test_compose_places_tiles_by_grid_position(self, renderer, engine):
        result = full_map(engine, 512)
        image = renderer.compose(result)

        assert image.size == (512, 512)
        assert image.getpixel((10, 10)) == tile_color(1)
        assert image.getpixel((300, 10)) == tile_color(2)
        assert image.getpixel((10, 300)) == tile_color(3)
        assert image.getpixel((300, 300)) == tile_color(4)

    def test_compose_offsets_partial_grid(self, renderer, engine):
        box = engine.index.bounds
        mid_lon = (box.ullon + box.lrlon) / 2
        mid_lat = (box.ullat + box.lrlat) / 2
        result = engine.query(mid_lon + 0.001, mid_lat - 0.001, box.lrlon, box.lrlat, 200, 200)
        image = renderer.compose(result)

        assert result.render_grid == [4]
        assert image.size == (256, 256)
        assert image.getpixel((0, 0)) == tile_color(4)

    def test_draw_route(self, renderer, engine):
        result = full_map(engine, 512)
        box = result.bounds
        mid_lat = (box.ullat + box.lrlat) / 2
        points = [(box.ullon + box.width * 0.25, mid_lat), (box.ullon + box.width * 0.75, mid_lat)]

        image = renderer.draw_route(renderer.compose(result), result, points)

        assert image.getpixel((256, 256)) != tile_color(4)
        assert image.getpixel((200, 257)) != tile_color(3)
        assert image.getpixel((10, 10)) == tile_color(1)
        assert image.getpixel((500, 500)) == tile_color(4)

    def test_single_point_route_draws_nothing(self, renderer, engine):
        result = full_map(engine, 256)
        image = renderer.compose(result)

        assert renderer.draw_route(image, result, [(-122.25, 37.85)]) is image

    def test_render_png(self, renderer, engine):
        result = full_map(engine, 1024)
        data = renderer.render(result, [(-122.28, 37.88), (-122.22, 37.84)])

        image = Image.open(io.BytesIO(data))
        assert image.format == "PNG"
        assert image.size == (1024, 1024)

    def test_render_failed_query(self, renderer):
        with pytest.raises(ValueError):
            renderer.render(RasterResult.failure("outside"))

    def test_resizes_odd_sized_tiles(self, tmp_path, engine):
        Image.new("RGB", (64, 64), (10, 20, 30)).save(tmp_path / "root.png")
        renderer = RasterRenderer(TileImageStore(str(tmp_path)))

        image = renderer.compose(full_map(engine, 256))

        assert image.size == (256, 256)
        assert image.getpixel((200, 200)) == (10, 20, 30)

    def test_missing_tile_image(self, tmp_path, engine):
        renderer = RasterRenderer(TileImageStore(str(tmp_path)))

        with pytest.raises(TileImageNotFoundError):
            renderer.compose(full_map(engine, 256))
