import unittest

import numpy as np

from pathwarp.model.spline import PathCurve, build_curve


class PathCurveTest(unittest.TestCase):

    def setUp(self):
        self.points = np.array([
            [-1.5, 0.5, 0.0],
            [-0.75, -0.5, 0.0],
            [0.75, 0.5, 0.0],
            [1.5, -0.5, 0.0],
        ])
        self.curve = PathCurve(self.points)

    def test_endpoints(self):
        np.testing.assert_allclose(self.curve.point_at(0.0), self.points[0], atol=1e-9)
        np.testing.assert_allclose(self.curve.point_at(1.0), self.points[-1], atol=1e-9)

    def test_out_of_range_is_clamped(self):
        np.testing.assert_allclose(self.curve.point_at(-0.5), self.curve.point_at(0.0))
        np.testing.assert_allclose(self.curve.point_at(1.5), self.curve.point_at(1.0))

    def test_tangents_are_unit_length(self):
        tangents = self.curve.tangent_at(np.linspace(0.0, 1.0, 41))
        np.testing.assert_allclose(np.linalg.norm(tangents, axis=1), 1.0, atol=1e-9)

    def test_scalar_and_array_shapes(self):
        self.assertEqual((3,), self.curve.point_at(0.5).shape)
        self.assertEqual((3,), self.curve.tangent_at(0.5).shape)
        self.assertEqual((7, 3), self.curve.point_at(np.linspace(0, 1, 7)).shape)
        self.assertEqual((7, 3), self.curve.tangent_at(np.linspace(0, 1, 7)).shape)

    def test_length_is_at_least_the_chord(self):
        chord = np.linalg.norm(self.points[-1] - self.points[0])
        self.assertGreater(self.curve.length, chord)
        self.assertEqual(self.curve.length, self.curve.length_approx())

    def test_straight_line(self):
        curve = PathCurve([[0.0, 0.0, 0.0], [3.0, 4.0, 0.0]])
        self.assertAlmostEqual(5.0, curve.length, places=6)
        np.testing.assert_allclose(curve.point_at(0.5), [1.5, 2.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(curve.tangent_at(0.3), [0.6, 0.8, 0.0], atol=1e-6)

    def test_arc_length_parametrisation(self):
        # equal steps in t cover (nearly) equal distances
        samples = self.curve.sample(50)
        steps = np.linalg.norm(np.diff(samples, axis=0), axis=1)
        self.assertEqual((51, 3), samples.shape)
        self.assertLess(steps.max() / steps.min(), 1.1)

    def test_coincident_points_keep_finite_tangents(self):
        curve = PathCurve([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        tangents = curve.tangent_at(np.linspace(0.0, 1.0, 21))
        self.assertTrue(np.all(np.isfinite(tangents)))
        np.testing.assert_allclose(np.linalg.norm(tangents, axis=1), 1.0, atol=1e-9)

    def test_all_points_coincident(self):
        curve = PathCurve([[0.2, 0.2, 0.0], [0.2, 0.2, 0.0]])
        self.assertEqual(0.0, curve.length)
        np.testing.assert_allclose(curve.point_at(0.7), [0.2, 0.2, 0.0])
        self.assertAlmostEqual(1.0, float(np.linalg.norm(curve.tangent_at(0.7))))

    def test_control_points_are_a_copy(self):
        pts = self.curve.control_points
        pts[0] = 99.0
        np.testing.assert_allclose(self.curve.control_points[0], self.points[0])

    def test_too_few_points(self):
        self.assertRaises(ValueError, PathCurve, [[0.0, 0.0, 0.0]])


class BuildCurveTest(unittest.TestCase):

    def test_unavailable_path(self):
        self.assertIsNone(build_curve(None))
        self.assertIsNone(build_curve([]))
        self.assertIsNone(build_curve([[1.0, 2.0, 0.0]]))

    def test_available_path(self):
        curve = build_curve([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        self.assertIsInstance(curve, PathCurve)


if __name__ == '__main__':
    unittest.main()
