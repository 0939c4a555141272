#!/usr/bin/env python3
"""
Tests for the quadtree tile index
"""

import itertools

import pytest

from bearmaps.services.tile_index import (
    MAX_SUPPORTED_DEPTH, NE, NW, SE, SW, BoundingBox, SpatialTileIndex, TileIndexNode, split
)


@pytest.mark.unit
class TestBoundingBox:

    def test_xywh(self):
        box = BoundingBox.from_xywh(-122.3, 37.9, 0.1, 0.05)

        assert box.x == -122.3
        assert box.y == 37.9
        assert box.width == pytest.approx(0.1)
        assert box.height == pytest.approx(0.05)
        assert box.lrlat == pytest.approx(37.85)

    def test_overlapping_boxes(self):
        a = BoundingBox(0, 10, 10, 0)
        b = BoundingBox(5, 15, 15, 5)
        assert a.overlaps(b)
        assert b.overlaps(a)

    def test_contained_box_overlaps(self):
        outer = BoundingBox(0, 10, 10, 0)
        inner = BoundingBox(2, 8, 3, 7)
        assert outer.overlaps(inner)
        assert inner.overlaps(outer)

    def test_touching_edges_do_not_overlap(self):
        left = BoundingBox(0, 10, 5, 0)
        right = BoundingBox(5, 10, 10, 0)
        below = BoundingBox(0, 0, 5, -10)
        assert not left.overlaps(right)
        assert not left.overlaps(below)

    def test_disjoint_boxes(self):
        assert not BoundingBox(0, 10, 5, 0).overlaps(BoundingBox(6, 10, 10, 0))
        assert not BoundingBox(0, 10, 5, 0).overlaps(BoundingBox(0, -1, 5, -5))

    def test_overlap_normalizes_corners(self):
        flipped = BoundingBox(10, 0, 0, 10)
        assert flipped.left == 0 and flipped.right == 10
        assert flipped.bottom == 0 and flipped.top == 10
        assert flipped.overlaps(BoundingBox(5, 5, 6, 4))

    def test_contains(self):
        box = BoundingBox(0, 10, 10, 0)
        assert box.contains(10, 0)
        assert not box.contains(11, 5)


@pytest.mark.unit
class TestSplit:

    def test_quadrants(self):
        root = TileIndexNode(0, 0, 0, 0, BoundingBox(0, 8, 8, 0))
        nw, ne, sw, se = split(root)

        assert [q.image_id for q in (nw, ne, sw, se)] == [NW, NE, SW, SE]
        assert nw.bbox == BoundingBox(0, 8, 4, 4)
        assert ne.bbox == BoundingBox(4, 8, 8, 4)
        assert sw.bbox == BoundingBox(0, 4, 4, 0)
        assert se.bbox == BoundingBox(4, 4, 8, 0)
        assert [(q.row, q.col) for q in (nw, ne, sw, se)] == [(0, 0), (0, 1), (1, 0), (1, 1)]
        assert all(q.depth == 1 for q in (nw, ne, sw, se))


@pytest.mark.unit
class TestSpatialTileIndex:

    def test_node_counts(self, tile_index):
        for depth in range(tile_index.max_depth + 1):
            assert len(tile_index.level(depth)) == 4 ** depth
        assert len(tile_index) == sum(4 ** d for d in range(8))

    def test_root(self, tile_index, berkeley_config):
        assert tile_index.root.image_id == 0
        assert tile_index.root.depth == 0
        assert tile_index.bounds == BoundingBox(*berkeley_config.root_bounds)

    def test_id_digits_match_depth(self, tile_index):
        for depth in range(1, tile_index.max_depth + 1):
            for node in tile_index.level(depth):
                digits = str(node.image_id)
                assert len(digits) == depth
                assert set(digits) <= set("1234")

    def test_children_all_or_nothing(self, tile_index):
        for depth in range(tile_index.max_depth + 1):
            for node in tile_index.level(depth):
                assert len(node.children) in (0, 4)
                assert node.is_leaf == (depth == tile_index.max_depth)

    def test_traversal_ids(self, tile_index):
        node = tile_index.root.child(NW).child(SE).child(NW)
        assert node.image_id == 141
        assert node.depth == 3

        node = tile_index.root.child(NW).child(SE).child(NE)
        assert node.image_id == 142
        assert tile_index.node_for_id(142) is node

    def test_child_ids_extend_parent(self, tile_index):
        for node in tile_index.level(3):
            for quadrant in (NW, NE, SW, SE):
                assert node.child(quadrant).image_id == node.image_id * 10 + quadrant

    @pytest.mark.parametrize("depth", [1, 2, 3, 7])
    def test_level_partitions_root(self, tile_index, depth):
        root = tile_index.bounds
        tiles = tile_index.level(depth)
        side = 2 ** depth
        grid = {(t.row, t.col): t for t in tiles}

        assert set(grid) == {(r, c) for r in range(side) for c in range(side)}

        for (row, col), tile in grid.items():
            if col + 1 < side:
                assert grid[(row, col + 1)].bbox.ullon == tile.bbox.lrlon
            else:
                assert tile.bbox.lrlon == root.lrlon
            if row + 1 < side:
                assert grid[(row + 1, col)].bbox.ullat == tile.bbox.lrlat
            else:
                assert tile.bbox.lrlat == root.lrlat
            if col == 0:
                assert tile.bbox.ullon == root.ullon
            if row == 0:
                assert tile.bbox.ullat == root.ullat

        area = sum(t.bbox.width * t.bbox.height for t in tiles)
        assert area == pytest.approx(root.width * root.height)

    def test_level_tiles_do_not_overlap(self, tile_index):
        for a, b in itertools.combinations(tile_index.level(3), 2):
            assert not a.bbox.overlaps(b.bbox)

    def test_level_is_row_major(self, tile_index):
        tiles = tile_index.level(2)
        assert [(t.row, t.col) for t in tiles] == [(r, c) for r in range(4) for c in range(4)]
        assert tiles[0].image_id == 11
        assert tiles[-1].image_id == 44

    def test_leaves(self, tile_index):
        leaves = tile_index.leaves()
        assert len(leaves) == 4 ** 7
        assert all(leaf.is_leaf for leaf in leaves)

    def test_depth_limits(self, berkeley_config):
        root = BoundingBox(*berkeley_config.root_bounds)
        with pytest.raises(ValueError):
            SpatialTileIndex(root, max_depth=MAX_SUPPORTED_DEPTH + 1)
        with pytest.raises(ValueError):
            SpatialTileIndex(root, max_depth=-1)

        single = SpatialTileIndex(root, max_depth=0)
        assert len(single) == 1
        assert single.root.is_leaf

    def test_level_out_of_range(self, tile_index):
        with pytest.raises(ValueError):
            tile_index.level(8)

    def test_unknown_id(self, tile_index):
        assert tile_index.node_for_id(5) is None
