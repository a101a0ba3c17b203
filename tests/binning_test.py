#!/usr/bin/env python3
"""
点-セル集約のテスト

2×2 メッシュのシナリオ、平均化、範囲外サンプルの破棄、
入力順序への非依存性、境界上サンプルの割り当てを確認します。
"""

import unittest
import numpy as np

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from conftest import make_grid_mesh
from geoconv.mesh import CellAccumulator, CellBinner, IndexType, Mesh, bin, bin_samples


class TestCellAccumulator(unittest.TestCase):
    """アキュムレータテスト"""

    def test_mean_and_empty_cells(self):
        accumulator = CellAccumulator.empty(3)
        accumulator.add(0, 10.0)
        accumulator.add(0, 30.0)
        accumulator.add(2, -4.0)
        np.testing.assert_array_equal(accumulator.finalize(), [20.0, 0.0, -4.0])
        np.testing.assert_array_equal(accumulator.counts, [2, 0, 1])


class TestBinningScenarios(unittest.TestCase):
    """集約シナリオテスト"""

    def setUp(self):
        self.mesh = make_grid_mesh(2, 2)

    def test_one_sample_per_cell(self):
        """各セル中心に1点ずつ"""
        samples = np.array([
            [0.5, 0.5, 10.0],
            [1.5, 0.5, 20.0],
            [0.5, 1.5, 30.0],
            [1.5, 1.5, 40.0]
        ])
        self.assertEqual(bin(self.mesh, samples), {0: 10.0, 1: 20.0, 2: 30.0, 3: 40.0})

    def test_mean_in_single_cell(self):
        """同じセルに入った2点は平均、他のセルは 0.0"""
        samples = np.array([[0.25, 0.25, 10.0], [0.75, 0.75, 30.0]])
        result = bin_samples(self.mesh, samples)
        np.testing.assert_array_equal(result.values, [20.0, 0.0, 0.0, 0.0])
        np.testing.assert_array_equal(result.counts, [2, 0, 0, 0])
        self.assertEqual(result.n_dropped, 0)

    def test_far_outside_sample_dropped(self):
        """範囲外サンプルは破棄され、結果に影響しない"""
        inside = np.array([[0.5, 0.5, 10.0], [1.5, 1.5, 40.0]])
        outside = np.array([[100.0, 100.0, 999.0]])

        baseline = bin_samples(self.mesh, inside)
        result = bin_samples(self.mesh, np.vstack([inside, outside]))

        np.testing.assert_array_equal(result.values, baseline.values)
        self.assertEqual(result.n_samples, 3)
        self.assertEqual(result.n_dropped, 1)
        self.assertEqual(result.n_binned, 2)

    def test_empty_samples(self):
        """サンプルなしなら全セル 0.0"""
        result = bin_samples(self.mesh, np.empty((0, 3)))
        np.testing.assert_array_equal(result.values, np.zeros(4))
        self.assertEqual(result.n_samples, 0)

    def test_shared_edge_goes_to_lowest_cell(self):
        """セル境界上のサンプルは最初に見つかった（ID最小の）接続セルへ"""
        result = bin_samples(self.mesh, np.array([[1.0, 0.5, 7.0]]))
        np.testing.assert_array_equal(result.values, [7.0, 0.0, 0.0, 0.0])

    def test_invalid_samples(self):
        binner = CellBinner(self.mesh)
        with self.assertRaises(ValueError):
            binner.bin(np.array([[0.5, 0.5]]))
        with self.assertRaises(ValueError):
            binner.bin(np.array([[0.5, np.nan, 1.0]]))

    def test_z_coordinates_ignored(self):
        """傾いたメッシュも (x, y) で集約される"""
        tilted = Mesh(
            np.column_stack([self.mesh.nodes[:, :2], self.mesh.nodes[:, 0] * 3.0]),
            self.mesh.cells
        )
        samples = np.array([[1.5, 0.5, 20.0], [0.5, 1.5, 30.0]])
        self.assertEqual(bin(tilted, samples), {0: 0.0, 1: 20.0, 2: 30.0, 3: 0.0})


class TestBinningProperties(unittest.TestCase):
    """集約の性質テスト"""

    def setUp(self):
        self.rng = np.random.default_rng(11)
        self.mesh = make_grid_mesh(6, 4, spacing=2.5)
        # セル境界から離れた位置のサンプル
        cell_x = self.rng.integers(0, 6, 200)
        cell_y = self.rng.integers(0, 4, 200)
        offsets = self.rng.uniform(0.1, 0.9, (200, 2))
        self.samples = np.column_stack([
            (cell_x + offsets[:, 0]) * 2.5,
            (cell_y + offsets[:, 1]) * 2.5,
            self.rng.normal(50.0, 10.0, 200)
        ])
        self.expected_cells = cell_y * 6 + cell_x

    def test_matches_direct_assignment(self):
        """セルごとの平均が直接計算と一致"""
        result = bin_samples(self.mesh, self.samples)
        for cell_id in range(self.mesh.num_cells):
            in_cell = self.samples[self.expected_cells == cell_id, 2]
            expected = in_cell.mean() if len(in_cell) else 0.0
            self.assertAlmostEqual(result.values[cell_id], expected, places=9)
        self.assertEqual(result.n_dropped, 0)

    def test_order_independent(self):
        """入力順を入れ替えても結果は同じ"""
        binner = CellBinner(self.mesh)
        first = binner.bin(self.samples)
        shuffled = binner.bin(self.samples[self.rng.permutation(len(self.samples))])
        np.testing.assert_allclose(first.values, shuffled.values, rtol=1e-12)
        np.testing.assert_array_equal(first.counts, shuffled.counts)
        self.assertEqual(binner.get_performance_stats()['total_passes'], 2)

    def test_kdtree_backend(self):
        """KD-Tree バックエンドでも同じ結果"""
        grid_result = bin_samples(self.mesh, self.samples, index_type=IndexType.UNIFORM_GRID)
        kdtree_result = bin_samples(self.mesh, self.samples, index_type="kdtree")
        np.testing.assert_allclose(grid_result.values, kdtree_result.values)

    def test_triangle_mesh(self):
        """三角形メッシュ"""
        triangles = []
        for a, b, c, d in self.mesh.cells:
            triangles.extend([(a, b, c), (a, c, d)])
        tri_mesh = Mesh(self.mesh.nodes, triangles)
        samples = np.array([[0.5, 2.0, 5.0], [2.0, 0.5, 9.0]])
        result = bin_samples(tri_mesh, samples)
        self.assertEqual(result.values[1], 5.0)
        self.assertEqual(result.values[0], 9.0)
        self.assertEqual(result.n_dropped, 0)


if __name__ == '__main__':
    unittest.main()
