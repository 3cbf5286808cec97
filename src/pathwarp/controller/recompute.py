"""
Continuous Recompute Loop
=========================
Keeps the interactive surface mesh in sync with the WarpState.

`LiveSurface.tick()` is called once per display refresh by the viewport's
frame timer; it is not self-timed. Each tick re-runs the deformation over
the whole live grid (no dirty tracking) and refreshes normals and bounds so
lighting and picking stay correct.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple, TYPE_CHECKING

import pyvista as pv

from pathwarp.model.deform import deform
from pathwarp.model.grid import FlatGrid

if TYPE_CHECKING:
    from pathwarp.model.state import WarpState

logger = logging.getLogger(__name__)


class LiveSurface:
    """The on-screen grid and the PolyData handed to the renderer."""

    def __init__(self, state: WarpState) -> None:
        self.state = state
        self.grid: Optional[FlatGrid] = None
        self.mesh: Optional[pv.PolyData] = None
        self._grid_key: Optional[Tuple[int, float]] = None
        self.ensure_grid()

    def ensure_grid(self) -> bool:
        """
        (Re)build the grid when resolution or height scale changed.

        Returns:
            True if a new mesh object was created (the caller must re-attach it
            to its actor).
        """
        key = (self.state.resolution, self.state.height_scale)
        if key == self._grid_key and self.mesh is not None:
            return False

        self.grid = FlatGrid(columns=key[0], rows=1, height_scale=key[1])
        self.mesh = self.grid.to_polydata()
        self._grid_key = key
        logger.debug(f"Live grid rebuilt: {key[0]} columns, height scale {key[1]:g}.")
        return True

    def tick(self) -> bool:
        """
        Deform the live grid with the current parameters.

        Returns:
            False if the path is unavailable; the previous (or flat) positions
            are then left untouched.
        """
        self.ensure_grid()

        curve = self.state.curve
        if curve is None:
            return False

        self.mesh.points = deform(
            self.grid.reference_positions,
            curve,
            self.state.warp_intensity,
            self.state.path_offset,
            self.state.image_length_ratio,
        )
        self._refresh_normals_and_bounds()
        return True

    def _refresh_normals_and_bounds(self) -> None:
        with_normals = self.mesh.compute_normals(
            cell_normals=False,
            point_normals=True,
            split_vertices=False,
            consistent_normals=False,
            auto_orient_normals=False,
        )
        self.mesh.GetPointData().SetNormals(with_normals.GetPointData().GetNormals())
        self.mesh.ComputeBounds()
