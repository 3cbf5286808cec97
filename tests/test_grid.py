import unittest

import numpy as np

from pathwarp.model.grid import FlatGrid


class FlatGridTest(unittest.TestCase):

    def setUp(self):
        self.grid = FlatGrid(columns=2, rows=1, height_scale=1.5)

    def test_vertex_layout(self):
        self.assertEqual(6, self.grid.n_vertices)
        np.testing.assert_allclose(self.grid.reference_positions[0], [-1.0, 1.5, 0.0])
        np.testing.assert_allclose(self.grid.reference_positions[2], [1.0, 1.5, 0.0])
        np.testing.assert_allclose(self.grid.reference_positions[3], [-1.0, -1.5, 0.0])
        np.testing.assert_allclose(self.grid.reference_positions[5], [1.0, -1.5, 0.0])

    def test_uv(self):
        np.testing.assert_allclose(self.grid.uv[0], [0.0, 1.0])
        np.testing.assert_allclose(self.grid.uv[1], [0.5, 1.0])
        np.testing.assert_allclose(self.grid.uv[5], [1.0, 0.0])

    def test_triangles(self):
        faces = self.grid.triangles
        self.assertEqual((4, 3), faces.shape)
        self.assertEqual([0, 3, 1], faces[0].tolist())
        self.assertEqual([3, 4, 1], faces[1].tolist())

    def test_reference_is_read_only(self):
        with self.assertRaises(ValueError):
            self.grid.reference_positions[0, 0] = 5.0

    def test_polydata(self):
        mesh = self.grid.to_polydata()
        self.assertEqual(6, mesh.n_points)
        self.assertEqual(4, mesh.n_cells)
        self.assertEqual((6, 2), mesh.active_texture_coordinates.shape)

    def test_polydata_with_positions(self):
        moved = self.grid.reference_positions + 1.0
        mesh = self.grid.to_polydata(moved)
        np.testing.assert_allclose(mesh.points, moved)
        self.assertRaises(ValueError, self.grid.to_polydata, moved[:3])

    def test_uv_inside_a_triangle(self):
        # first triangle is (a, b, d) = vertices (0, 3, 1)
        np.testing.assert_allclose(self.grid.uv_at(0, (0.0, 0.0)), [0.0, 1.0])
        np.testing.assert_allclose(self.grid.uv_at(0, (1.0, 0.0)), [0.0, 0.0])
        np.testing.assert_allclose(self.grid.uv_at(0, (0.0, 1.0)), [0.5, 1.0])
        # between grid columns, not snapped to one
        np.testing.assert_allclose(self.grid.uv_at(0, (0.25, 0.3)), [0.15, 0.75])
        self.assertRaises(IndexError, self.grid.uv_at, 4, (0.0, 0.0))

    def test_invalid_arguments(self):
        self.assertRaises(ValueError, FlatGrid, 0)
        self.assertRaises(ValueError, FlatGrid, 2, 0)
        self.assertRaises(ValueError, FlatGrid, 2, 1, 0.0)


if __name__ == '__main__':
    unittest.main()
