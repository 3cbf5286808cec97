"""
Flat Grid
=========
The undeformed rectangular mesh the image is mapped onto.

Layout (same as a standard plane geometry):
    - 2 world units wide (x in [-1, 1]), 2 * height_scale high,
    - (columns + 1) * (rows + 1) vertices, row-major from the top row
      (y = +height_scale) down to the bottom row (y = -height_scale),
    - UV = (ix / columns, 1 - iy / rows),
    - two triangles per cell.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pyvista as pv

from pathwarp.config import GRID_WIDTH

if TYPE_CHECKING:
    import numpy.typing as npt


class FlatGrid:
    """
    Immutable reference grid. Only deformed *copies* of `reference_positions`
    ever change; the reference itself is write-protected.
    """

    def __init__(self, columns: int, rows: int = 1, height_scale: float = 1.0) -> None:
        if columns < 1 or rows < 1:
            raise ValueError(f"Grid needs at least 1x1 cells, got {columns}x{rows}.")
        if not height_scale > 0.0:
            raise ValueError(f"height_scale must be > 0, got {height_scale}.")

        self.columns = int(columns)
        self.rows = int(rows)
        self.height_scale = float(height_scale)

        half_w = GRID_WIDTH / 2.0
        xs = np.linspace(-half_w, half_w, self.columns + 1)
        ys = np.linspace(self.height_scale, -self.height_scale, self.rows + 1)
        gx, gy = np.meshgrid(xs, ys)

        positions = np.column_stack((gx.ravel(), gy.ravel(), np.zeros(gx.size)))
        positions.setflags(write=False)
        self._reference = positions

        us = np.linspace(0.0, 1.0, self.columns + 1)
        vs = 1.0 - np.linspace(0.0, 1.0, self.rows + 1)
        gu, gv = np.meshgrid(us, vs)
        uv = np.column_stack((gu.ravel(), gv.ravel()))
        uv.setflags(write=False)
        self._uv = uv

        self._faces = self._build_faces(self.columns, self.rows)

    @property
    def reference_positions(self) -> npt.NDArray[np.float64]:
        return self._reference

    @property
    def uv(self) -> npt.NDArray[np.float64]:
        return self._uv

    @property
    def triangles(self) -> npt.NDArray[np.int_]:
        return self._faces

    @property
    def n_vertices(self) -> int:
        return self._reference.shape[0]

    @staticmethod
    def _build_faces(columns: int, rows: int) -> npt.NDArray[np.int_]:
        """(2 * columns * rows, 3) vertex indices."""
        stride = columns + 1
        ix, iy = np.meshgrid(np.arange(columns), np.arange(rows))
        ix = ix.ravel()
        iy = iy.ravel()

        a = ix + stride * iy
        b = ix + stride * (iy + 1)
        c = (ix + 1) + stride * (iy + 1)
        d = (ix + 1) + stride * iy

        first = np.column_stack((a, b, d))
        second = np.column_stack((b, c, d))
        return np.stack((first, second), axis=1).reshape(-1, 3)

    def uv_at(self, cell_id: int, pcoords: tuple[float, float]) -> npt.NDArray[np.float64]:
        """
        Texture coordinate inside one triangle.

        Args:
            cell_id: Index into `triangles` (same order as the PolyData cells).
            pcoords: Parametric (r, s) of the hit, as reported by a VTK picker.
        """
        if not 0 <= cell_id < self._faces.shape[0]:
            raise IndexError(f"Cell {cell_id} out of range.")
        r, s = float(pcoords[0]), float(pcoords[1])
        corners = self._uv[self._faces[cell_id]]
        return corners[0] * (1.0 - r - s) + corners[1] * r + corners[2] * s

    def to_polydata(self, positions: npt.NDArray[np.float64] | None = None) -> pv.PolyData:
        """
        Build a textured PyVista surface for this grid.

        Args:
            positions: Optional (N, 3) vertex positions (e.g. a deformed copy).
                Defaults to the flat reference positions.
        """
        pts = self._reference if positions is None else np.asarray(positions, dtype=np.float64)
        if pts.shape != self._reference.shape:
            raise ValueError(f"Expected positions of shape {self._reference.shape}, got {pts.shape}.")

        n_faces = self._faces.shape[0]
        cells = np.column_stack((np.full(n_faces, 3, dtype=np.int_), self._faces)).ravel()

        mesh = pv.PolyData(np.array(pts, dtype=np.float64), faces=cells)
        mesh.active_texture_coordinates = np.array(self._uv, dtype=np.float32)
        return mesh
