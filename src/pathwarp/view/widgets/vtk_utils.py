"""
VTK and Geometry Utilities
Helper functions for display/world conversion and polyline data.
"""
import numpy as np
import numpy.typing as npt
import pyvista as pv
from vtkmodules.vtkRenderingCore import vtkRenderer

import logging

from pathwarp.model.geometry_primitives import Ray

logger = logging.getLogger(__name__)


class VtkUtils:
    @staticmethod
    def display_to_world(renderer: vtkRenderer, x: float, y: float, depth: float) -> npt.NDArray[np.float64]:
        """
        Unproject a display pixel at normalized depth (0 = near, 1 = far).
        """
        renderer.SetDisplayPoint(x, y, depth)
        renderer.DisplayToWorld()
        wx, wy, wz, w = renderer.GetWorldPoint()
        if w == 0.0:
            w = 1.0
        return np.array([wx / w, wy / w, wz / w], dtype=np.float64)

    @staticmethod
    def display_to_ray(renderer: vtkRenderer, x: float, y: float) -> Ray:
        """
        Pointer ray through a display pixel: from the near clipping plane
        towards the far one.
        """
        near = VtkUtils.display_to_world(renderer, x, y, 0.0)
        far = VtkUtils.display_to_world(renderer, x, y, 1.0)
        return Ray(origin=near, direction=far - near)

    @staticmethod
    def world_to_display(renderer: vtkRenderer, point: npt.NDArray[np.float64]) -> tuple[float, float]:
        renderer.SetWorldPoint(float(point[0]), float(point[1]), float(point[2]), 1.0)
        renderer.WorldToDisplay()
        dx, dy, _ = renderer.GetDisplayPoint()
        return float(dx), float(dy)

    @staticmethod
    def polyline_to_polydata(points: npt.NDArray[np.float64]) -> pv.PolyData:
        """Convert a (N, 3) array of points to an open PolyData line."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        n = pts.shape[0]
        pd = pv.PolyData(pts)
        pd.lines = np.hstack([[n], np.arange(n, dtype=np.int_)])
        # remove vertex cells, so they don't show up as dots
        pd.verts = np.empty(0, np.int32)
        return pd
