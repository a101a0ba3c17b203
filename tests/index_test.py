#!/usr/bin/env python3
"""
空間インデックスのテスト

均等グリッドの最近傍点検索を総当たりと照合し、
KD-Tree バックエンドと同じ距離を返すことを確認します。
"""

import unittest
import numpy as np

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from geoconv.errors import EmptyInputError
from geoconv.mesh import (
    BoundingBox, IndexType, KDTreePointIndex, UniformGrid,
    build_point_index, query_nearest_points
)


def brute_force_distance(points: np.ndarray, query: np.ndarray) -> float:
    return float(np.min(np.linalg.norm(points - query, axis=1)))


class TestUniformGrid(unittest.TestCase):
    """均等グリッドテスト"""

    def setUp(self):
        self.rng = np.random.default_rng(42)

    def assert_nearest_matches_brute_force(self, grid: UniformGrid, queries: np.ndarray):
        for query in queries:
            index = grid.nearest_point(query)
            found = float(np.linalg.norm(grid.points[index] - query))
            self.assertAlmostEqual(found, brute_force_distance(grid.points, query), places=12)

    def test_random_3d_points(self):
        """3D乱数点群で総当たりと一致"""
        points = self.rng.uniform(-5, 5, (300, 3))
        grid = UniformGrid(points, max_points_per_cell=4)
        queries = self.rng.uniform(-6, 6, (200, 3))
        self.assert_nearest_matches_brute_force(grid, queries)

    def test_flat_points(self):
        """z=0 の平面点群では z 方向に分割しない"""
        points = np.column_stack([self.rng.uniform(0, 10, 500), self.rng.uniform(0, 3, 500), np.zeros(500)])
        grid = UniformGrid(points)
        self.assertEqual(grid.n_steps[2], 1)
        self.assertGreater(grid.num_cells, 1)

        queries = np.column_stack([self.rng.uniform(-1, 11, 100), self.rng.uniform(-1, 4, 100), np.zeros(100)])
        self.assert_nearest_matches_brute_force(grid, queries)

    def test_queries_far_outside(self):
        """範囲外の検索点でも総当たりと一致"""
        points = self.rng.uniform(0, 1, (100, 3))
        grid = UniformGrid(points, max_points_per_cell=2)
        queries = np.array([[100.0, 0.5, 0.5], [-50.0, -50.0, -50.0], [0.5, 0.5, 30.0]])
        self.assert_nearest_matches_brute_force(grid, queries)

    def test_collinear_points(self):
        """一直線上の点群"""
        points = np.column_stack([np.linspace(0, 100, 50), np.zeros(50), np.zeros(50)])
        grid = UniformGrid(points)
        self.assertEqual(grid.n_steps[1], 1)
        self.assertEqual(grid.n_steps[2], 1)
        queries = self.rng.uniform(-10, 110, (50, 3))
        self.assert_nearest_matches_brute_force(grid, queries)

    def test_single_and_duplicate_points(self):
        """1点のみ・全点重複"""
        grid = UniformGrid(np.array([[1.0, 2.0, 3.0]]))
        self.assertEqual(grid.nearest_point([10.0, 10.0, 10.0]), 0)

        duplicates = np.tile([[1.0, 1.0, 0.0]], (20, 1))
        grid = UniformGrid(duplicates)
        self.assertEqual(grid.num_cells, 1)
        self.assertIn(grid.nearest_point([0.0, 0.0, 0.0]), range(20))

    def test_2d_input(self):
        """(N, 2) 入力は z=0 として扱う"""
        points = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
        grid = UniformGrid(points)
        self.assertEqual(grid.points.shape, (3, 3))
        self.assertEqual(grid.nearest_point([0.9, 0.1]), 1)

    def test_empty_point_set(self):
        """空の点群はエラー"""
        with self.assertRaises(EmptyInputError):
            UniformGrid(np.empty((0, 3)))

    def test_invalid_density(self):
        """セルあたり点数は1以上"""
        with self.assertRaises(ValueError):
            UniformGrid(np.zeros((3, 3)), max_points_per_cell=0)

    def test_bucket_contents(self):
        """全点がちょうど1つのバケットに入る"""
        points = self.rng.uniform(0, 1, (64, 3))
        grid = UniformGrid(points, max_points_per_cell=2)
        all_ids = grid._cell_candidates(np.arange(grid.num_cells))
        self.assertEqual(sorted(all_ids.tolist()), list(range(64)))

    def test_stats(self):
        """統計情報"""
        grid = UniformGrid(self.rng.uniform(0, 1, (50, 3)))
        grid.nearest_points(self.rng.uniform(0, 1, (5, 3)))
        stats = grid.get_performance_stats()
        self.assertEqual(stats['total_queries'], 5)
        self.assertEqual(stats['num_points'], 50)


class TestKDTreePointIndex(unittest.TestCase):
    """KD-Tree バックエンドテスト"""

    def test_same_distances_as_grid(self):
        """均等グリッドと同じ最近傍距離"""
        rng = np.random.default_rng(7)
        points = rng.uniform(-1, 1, (200, 3))
        queries = rng.uniform(-1.5, 1.5, (100, 3))

        grid = build_point_index(points, IndexType.UNIFORM_GRID)
        kdtree = build_point_index(points, "kdtree")
        self.assertIsInstance(grid, UniformGrid)
        self.assertIsInstance(kdtree, KDTreePointIndex)

        grid_ids = query_nearest_points(grid, queries)
        kdtree_ids = query_nearest_points(kdtree, queries)
        grid_distances = np.linalg.norm(points[grid_ids] - queries, axis=1)
        kdtree_distances = np.linalg.norm(points[kdtree_ids] - queries, axis=1)
        np.testing.assert_allclose(grid_distances, kdtree_distances)

    def test_empty_point_set(self):
        with self.assertRaises(EmptyInputError):
            KDTreePointIndex(np.empty((0, 3)))

    def test_unknown_index_type(self):
        with self.assertRaises(ValueError):
            build_point_index(np.zeros((1, 3)), "octree")


class TestBoundingBox(unittest.TestCase):
    """バウンディングボックステスト"""

    def test_from_points(self):
        box = BoundingBox.from_points(np.array([[0.0, 1.0, 2.0], [4.0, -1.0, 2.0]]))
        np.testing.assert_array_equal(box.size, [4.0, 2.0, 0.0])
        np.testing.assert_array_equal(box.clamp(np.array([5.0, 0.0, 3.0])), [4.0, 0.0, 2.0])

    def test_queries_outside_box_use_border_cells(self):
        """範囲外の検索点は境界セルから探索を始める"""
        grid = UniformGrid(np.random.default_rng(2).uniform(0, 1, (200, 3)), max_points_per_cell=2)
        coords = grid._cell_coordinates(np.array([[-5.0, 0.5, 9.0], [0.5, 0.5, 0.5]]))
        self.assertEqual(coords[0, 0], 0)
        self.assertEqual(coords[0, 2], grid.n_steps[2] - 1)
        self.assertTrue(np.all(coords[1] < grid.n_steps))


if __name__ == '__main__':
    unittest.main()
