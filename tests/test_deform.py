import unittest

import numpy as np

from pathwarp.model.deform import deform, path_parameters
from pathwarp.model.grid import FlatGrid
from pathwarp.model.spline import PathCurve


class DeformTest(unittest.TestCase):

    def setUp(self):
        self.curve = PathCurve([
            [-1.5, 0.5, 0.0],
            [-0.75, -0.5, 0.0],
            [0.75, 0.5, 0.0],
            [1.5, -0.5, 0.0],
        ])
        self.grid = FlatGrid(columns=10, rows=2, height_scale=1.0)

    def test_path_parameters(self):
        t = path_parameters(np.array([-1.0, 0.0, 1.0]), 0.0, 0.5)
        np.testing.assert_allclose(t, [0.0, 0.25, 0.5])

    def test_path_parameters_are_clamped(self):
        t = path_parameters(np.array([-1.0, 1.0]), 0.8, 0.5)
        np.testing.assert_allclose(t, [0.8, 1.0])

    def test_left_and_right_edge_on_the_centreline(self):
        reference = np.array([[-1.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        out = deform(reference, self.curve, 1.0, 0.0, 0.5)
        np.testing.assert_allclose(out[0], self.curve.point_at(0.0), atol=1e-12)
        np.testing.assert_allclose(out[1], self.curve.point_at(0.5), atol=1e-12)

    def test_zero_intensity_collapses_to_centreline(self):
        reference = self.grid.reference_positions
        out = deform(reference, self.curve, 0.0, 0.1, 0.5)
        expected = self.curve.point_at(path_parameters(reference[:, 0], 0.1, 0.5))
        np.testing.assert_allclose(out, expected, atol=1e-12)

    def test_offset_follows_the_normal(self):
        reference = np.array([[0.0, 0.5, 0.0]])
        out = deform(reference, self.curve, 2.0, 0.0, 1.0)[0]
        point = self.curve.point_at(0.5)
        tangent = self.curve.tangent_at(0.5)
        normal = np.array([-tangent[1], tangent[0], 0.0])
        np.testing.assert_allclose(out, point + normal * 1.0, atol=1e-12)
        self.assertEqual(0.0, out[2])

    def test_same_inputs_same_output(self):
        first = deform(self.grid.reference_positions, self.curve, 1.0, 0.2, 0.4)
        second = deform(self.grid.reference_positions, self.curve, 1.0, 0.2, 0.4)
        np.testing.assert_array_equal(first, second)

    def test_overhang_is_pinned_to_the_end(self):
        reference = np.array([[0.5, 0.0, 0.0], [1.0, 0.0, 0.0]])
        out = deform(reference, self.curve, 1.0, 0.8, 0.5)
        np.testing.assert_allclose(out[0], self.curve.point_at(1.0), atol=1e-12)
        np.testing.assert_allclose(out[1], self.curve.point_at(1.0), atol=1e-12)

    def test_no_curve_returns_a_copy(self):
        reference = self.grid.reference_positions
        out = deform(reference, None, 1.0, 0.0, 0.5)
        np.testing.assert_array_equal(out, reference)
        self.assertIsNot(out, reference)
        out[0, 0] = 42.0
        self.assertNotEqual(42.0, reference[0, 0])

    def test_reference_is_not_modified(self):
        before = self.grid.reference_positions.copy()
        deform(self.grid.reference_positions, self.curve, 3.0, 0.3, 0.7)
        np.testing.assert_array_equal(before, self.grid.reference_positions)


if __name__ == '__main__':
    unittest.main()
