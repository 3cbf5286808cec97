"""
Deformation Mapper
==================
Pure function bending flat grid positions along a PathCurve.

For every reference vertex (x, y):
    u = (x + 1) / 2                        horizontal position in [0, 1]
    t = clip(path_offset + u * ratio, 0, 1) arc-length fraction on the path
    P = point_at(t), T = tangent_at(t)
    N = (-T.y, T.x, 0)                     in-plane normal
    new = P + N * (y * warp_intensity)

Portions of the image mapped beyond the path ends are pinned to the end
points (t is clamped, the curve is never extrapolated).
"""
from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import numpy as np

from pathwarp.config import GRID_WIDTH
from pathwarp.model.geometry_utils import normalize_rows

if TYPE_CHECKING:
    import numpy.typing as npt
    from pathwarp.model.spline import PathCurve


def path_parameters(
    x: npt.NDArray[np.float64],
    path_offset: float,
    image_length_ratio: float
) -> npt.NDArray[np.float64]:
    """Clamped arc-length fraction for each horizontal grid coordinate."""
    u = (np.asarray(x, dtype=np.float64) + GRID_WIDTH / 2.0) / GRID_WIDTH
    return np.clip(path_offset + u * image_length_ratio, 0.0, 1.0)


def deform(
    reference_positions: npt.NDArray[np.float64],
    curve: Optional[PathCurve],
    warp_intensity: float,
    path_offset: float,
    image_length_ratio: float
) -> npt.NDArray[np.float64]:
    """
    Map flat grid positions onto the path.

    Args:
        reference_positions: (N, 3) flat positions; only x and y are used.
        curve: The path, or None when it is unavailable.
        warp_intensity: Multiplier on the normal offset (0 = centreline only).
        path_offset: Arc-length fraction where the image's left edge starts.
        image_length_ratio: Fraction of the path the full image width spans.

    Returns:
        A new (N, 3) array. With no curve this is an unmodified copy of the
        reference positions.
    """
    reference = np.asarray(reference_positions, dtype=np.float64).reshape(-1, 3)
    if curve is None:
        return reference.copy()

    t = path_parameters(reference[:, 0], path_offset, image_length_ratio)

    points = curve.point_at(t)
    tangents = normalize_rows(curve.tangent_at(t))

    normals = np.zeros_like(tangents)
    normals[:, 0] = -tangents[:, 1]
    normals[:, 1] = tangents[:, 0]

    return points + normals * (reference[:, 1] * warp_intensity)[:, None]
