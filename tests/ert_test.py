#!/usr/bin/env python3
"""
ERTメッシュ化・地表面写像のテスト
"""

import unittest
import tempfile
import os
import numpy as np

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from conftest import make_grid_mesh
from geoconv.errors import EmptyInputError
from geoconv.ert import (
    ErtProfiles, correct_elevations, create_ert_mesh, material_ids, read_ert_profiles
)
from geoconv.mesh import Mesh, SurfaceMapper

ERT_HEADER = "Nr\tE1\tN1\tH1\tE2\tN2\tH2\tz1/m\tz2/m\n"


def ert_row(i, e1, n1, h1, e2, n2, h2, z1, z2):
    return f"{i}\t{e1}\t{n1}\t{h1}\t{e2}\t{n2}\t{h2}\t{z1}\t{z2}\n"


class TestErtMesh(unittest.TestCase):
    """ERTメッシュ作成テスト"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "hang.txt")
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(ERT_HEADER)
            f.write(ert_row(1, 0, 0, 100, 1, 0, 101, 0, 1))
            f.write(ert_row(2, 1, 0, 101, 2, 0, 102, 0, 1))
            f.write(ert_row(3, 0, 0, 100, 1, 0, 101, 1, 2))
            f.write(ert_row(4, 1, 0, 101, 2, 0, 102, 1, 2))
            f.write(ert_row(5, 0, 0, 100, 1, 0, 101, 2, 4))

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_read_profiles(self):
        profiles = read_ert_profiles(self.path)
        self.assertEqual(profiles.num_records, 5)
        np.testing.assert_array_equal(profiles.profile_1[1], [1.0, 0.0, 101.0])
        np.testing.assert_array_equal(profiles.z2, [1, 1, 2, 2, 4])

    def test_node_layout(self):
        """レコードごとに4ノード・1四角形"""
        mesh = create_ert_mesh(read_ert_profiles(self.path))
        self.assertEqual(mesh.num_nodes, 20)
        self.assertEqual(mesh.num_cells, 5)
        self.assertEqual(mesh.cells[1], (4, 5, 6, 7))
        np.testing.assert_array_equal(mesh.nodes[8:12], [
            [0.0, 0.0, 99.0],
            [0.0, 0.0, 98.0],
            [1.0, 0.0, 99.0],
            [1.0, 0.0, 100.0]
        ])

    def test_material_ids(self):
        mesh = create_ert_mesh(read_ert_profiles(self.path))
        np.testing.assert_array_equal(mesh.get_cell_array("MaterialIDs"), [0, 0, 1, 1, 2])
        self.assertEqual(mesh.get_cell_array("MaterialIDs").dtype, np.int32)

    def test_material_ids_count_every_change(self):
        """上端深度が元に戻っても番号は増え続ける"""
        np.testing.assert_array_equal(material_ids(np.array([0.0, 1.0, 0.0, 0.0])), [0, 1, 2, 2])
        self.assertEqual(len(material_ids(np.array([]))), 0)

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            ErtProfiles(np.zeros((3, 3)), np.zeros((2, 3)), np.zeros(3), np.zeros(3))

    def test_header_only(self):
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(ERT_HEADER)
        with self.assertRaises(EmptyInputError):
            read_ert_profiles(self.path)

    def test_dem_correction(self):
        """地表面内の点は標高を置き換え、外の点はそのまま"""
        surface = make_grid_mesh(1, 1, spacing=1.5)
        surface.nodes[:, 2] = 50.0
        profiles = correct_elevations(read_ert_profiles(self.path), SurfaceMapper(surface))

        np.testing.assert_array_equal(profiles.profile_1[:, 2], 50.0)
        # E2 = 2 の点は地表面 (0..1.5) の外
        np.testing.assert_array_equal(profiles.profile_2[:, 2], [50.0, 102.0, 50.0, 102.0, 50.0])


class TestSurfaceMapper(unittest.TestCase):
    """地表面写像テスト"""

    def setUp(self):
        self.surface = make_grid_mesh(4, 3, spacing=2.0)
        # 平面 z = 2x + 3y + 1 は線形補間で正確に再現される
        x, y = self.surface.nodes[:, 0], self.surface.nodes[:, 1]
        self.surface.nodes[:, 2] = 2 * x + 3 * y + 1
        self.mapper = SurfaceMapper(self.surface)

    def test_elevation_on_plane(self):
        rng = np.random.default_rng(5)
        for x, y in rng.uniform(0.0, [8.0, 6.0], (50, 2)):
            self.assertAlmostEqual(self.mapper.elevation_at(x, y), 2 * x + 3 * y + 1, places=9)

    def test_elevation_at_node(self):
        self.assertAlmostEqual(self.mapper.elevation_at(2.0, 2.0), 11.0)

    def test_outside_surface(self):
        self.assertIsNone(self.mapper.elevation_at(-1.0, 3.0))
        self.assertIsNone(self.mapper.elevation_at(100.0, 100.0))

    def test_map_points(self):
        points = np.array([[1.0, 1.0, 0.0], [50.0, 50.0, 7.0]])
        mapped, n_unmapped = self.mapper.map_points(points)
        self.assertEqual(n_unmapped, 1)
        np.testing.assert_allclose(mapped[:, 2], [6.0, 7.0])
        np.testing.assert_array_equal(points[:, 2], [0.0, 7.0])

    def test_triangle_surface(self):
        nodes = np.array([[0.0, 0.0, 0.0], [4.0, 0.0, 4.0], [0.0, 4.0, 8.0]])
        mapper = SurfaceMapper(Mesh(nodes, [(0, 1, 2)]), index_type="kdtree")
        self.assertAlmostEqual(mapper.elevation_at(1.0, 1.0), 3.0)


if __name__ == '__main__':
    unittest.main()
