import unittest

import numpy as np

from pathwarp.controller.interaction import (
    ControlPointDrag, DragPhase, InteractionController, PointerEvent, SurfaceDrag
)
from pathwarp.model.geometry_primitives import Ray
from pathwarp.model.state import WarpState


def pointer(x, y, pointer_id=0, uv=None):
    """Pointer looking straight down at (x, y) on the reference plane."""
    ray = Ray(origin=(x, y, 5.0), direction=(0.0, 0.0, -1.0))
    return PointerEvent(ray=ray, pointer_id=pointer_id, uv=uv)


def parallel_pointer(pointer_id=0, uv=None):
    ray = Ray(origin=(0.0, 0.0, 5.0), direction=(1.0, 0.0, 0.0))
    return PointerEvent(ray=ray, pointer_id=pointer_id, uv=uv)


class SurfaceDragTest(unittest.TestCase):

    def setUp(self):
        self.state = WarpState()
        # straight path along x, 2 units long
        self.state.set_control_points([[-1.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        self.state.set_image_length_ratio(0.5)
        self.drag = SurfaceDrag(self.state)

    def test_press_move_release(self):
        self.assertTrue(self.drag.press(pointer(0.0, 0.0, uv=(0.5, 0.5))))
        self.assertEqual(DragPhase.ACTIVE, self.drag.phase)
        self.assertAlmostEqual(0.25, self.drag.snapshot.start_t)

        self.assertTrue(self.drag.move(pointer(0.5, 0.3)))
        # 0.5 units along a 2 unit path; the y component is ignored
        self.assertAlmostEqual(0.25, self.state.path_offset, places=6)

        self.drag.release(pointer(0.5, 0.3))
        self.assertEqual(DragPhase.IDLE, self.drag.phase)
        self.assertIsNone(self.drag.snapshot)
        self.assertFalse(self.drag.move(pointer(1.0, 0.0)))
        self.assertAlmostEqual(0.25, self.state.path_offset, places=6)

    def test_moves_are_relative_to_the_start(self):
        self.drag.press(pointer(0.0, 0.0, uv=(0.0, 0.5)))
        self.drag.move(pointer(0.2, 0.0))
        self.drag.move(pointer(0.4, 0.0))
        self.assertAlmostEqual(0.2, self.state.path_offset, places=6)

    def test_offset_stays_clamped(self):
        self.drag.press(pointer(0.0, 0.0, uv=(0.5, 0.5)))
        self.drag.move(pointer(10.0, 0.0))
        self.assertEqual(self.state.max_path_offset, self.state.path_offset)
        self.drag.move(pointer(-10.0, 0.0))
        self.assertEqual(0.0, self.state.path_offset)

    def test_press_without_surface_hit(self):
        self.assertFalse(self.drag.press(pointer(0.0, 0.0)))
        self.assertEqual(DragPhase.IDLE, self.drag.phase)

    def test_press_without_curve(self):
        self.state.set_control_points([[0.0, 0.0, 0.0]])
        self.assertFalse(self.drag.press(pointer(0.0, 0.0, uv=(0.5, 0.5))))

    def test_parallel_ray_is_ignored(self):
        self.assertFalse(self.drag.press(parallel_pointer(uv=(0.5, 0.5))))
        self.assertEqual(DragPhase.IDLE, self.drag.phase)

        self.drag.press(pointer(0.0, 0.0, uv=(0.5, 0.5)))
        self.assertFalse(self.drag.move(parallel_pointer()))
        self.assertEqual(DragPhase.ACTIVE, self.drag.phase)
        self.assertEqual(0.0, self.state.path_offset)

    def test_pointer_capture(self):
        self.drag.press(pointer(0.0, 0.0, pointer_id=1, uv=(0.5, 0.5)))
        self.assertFalse(self.drag.move(pointer(0.5, 0.0, pointer_id=2)))
        self.assertEqual(0.0, self.state.path_offset)
        self.drag.release(pointer(0.5, 0.0, pointer_id=2))
        self.assertTrue(self.drag.is_active)
        self.assertTrue(self.drag.move(pointer(0.5, 0.0, pointer_id=1)))

    def test_leave_cancels(self):
        self.drag.press(pointer(0.0, 0.0, uv=(0.5, 0.5)))
        self.drag.leave()
        self.assertFalse(self.drag.is_active)
        self.assertFalse(self.drag.move(pointer(0.5, 0.0)))


class ControlPointDragTest(unittest.TestCase):

    def setUp(self):
        self.state = WarpState()

    def test_absolute_positioning(self):
        drag = ControlPointDrag(self.state, 0)
        self.assertTrue(drag.press(pointer(0.3, 0.2)))
        self.assertTrue(drag.move(pointer(-0.5, 0.4)))
        np.testing.assert_allclose(self.state.control_points[0], [-0.5, 0.4, 0.0])
        drag.release()
        self.assertFalse(drag.move(pointer(1.0, 1.0)))
        np.testing.assert_allclose(self.state.control_points[0], [-0.5, 0.4, 0.0])

    def test_parallel_ray(self):
        drag = ControlPointDrag(self.state, 0)
        self.assertFalse(drag.press(parallel_pointer()))


class InteractionControllerTest(unittest.TestCase):

    def setUp(self):
        self.state = WarpState()
        self.controller = InteractionController(self.state)

    def test_one_gesture_per_control_point(self):
        self.assertEqual(4, len(self.controller.handles))
        self.state.set_control_points([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        self.controller.sync_handles()
        self.assertEqual(2, len(self.controller.handles))

    def test_handle_routing(self):
        self.assertTrue(self.controller.press_handle(2, pointer(0.75, 0.5)))
        self.assertEqual(2, self.controller.active_handle)
        self.assertTrue(self.controller.any_active)
        self.assertTrue(self.controller.move(pointer(0.9, 0.1)))
        np.testing.assert_allclose(self.state.control_points[2], [0.9, 0.1, 0.0])
        self.controller.release(pointer(0.9, 0.1))
        self.assertFalse(self.controller.any_active)
        self.assertIsNone(self.controller.active_handle)

    def test_unknown_handle(self):
        self.assertFalse(self.controller.press_handle(9, pointer(0.0, 0.0)))

    def test_move_without_gesture(self):
        self.assertFalse(self.controller.move(pointer(0.0, 0.0)))

    def test_leave(self):
        self.controller.press_surface(pointer(0.0, 0.0, uv=(0.5, 0.5)))
        self.controller.press_handle(0, pointer(0.0, 0.0))
        self.controller.leave()
        self.assertFalse(self.controller.any_active)


if __name__ == '__main__':
    unittest.main()
