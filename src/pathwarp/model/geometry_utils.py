from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from pathwarp.model.errors import NoIntersectionError
from pathwarp.model.geometry_primitives import Plane, Ray, REFERENCE_PLANE

if TYPE_CHECKING:
    from numpy import typing as npt


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def ray_plane_intersection(
    ray: Ray,
    plane: Plane = REFERENCE_PLANE,
    *,
    eps: float = 1e-12
    ) -> npt.NDArray[np.float64]:
    """
    Intersect a ray with an infinite plane.

    The ray is given in parametric form: P(s) = O + s * D. Substituting into
    the plane equation N . P + c = 0 gives s = -(O . N + c) / (D . N).

    Args:
        ray: The pointer ray (origin + normalized direction).
        plane: The plane to intersect with. Defaults to z = 0.
        eps: Tolerance below which D . N counts as zero.

    Returns:
        The (3,) intersection point.

    Raises:
        NoIntersectionError: If the ray is parallel to the plane.

    Notes:
        - Intersections behind the ray origin (s < 0) are returned as well,
          the drag protocols only care about the line.
    """
    denom = float(np.dot(ray.direction, plane.normal))
    if abs(denom) < eps:
        raise NoIntersectionError("Ray is parallel to the reference plane.")

    s = -(float(np.dot(ray.origin, plane.normal)) + plane.constant) / denom
    return ray.at(s)


def normalize_rows(vectors: npt.NDArray[np.float64], eps: float = 1e-12) -> npt.NDArray[np.float64]:
    """Normalize an (N, 3) array row by row. Zero rows stay zero."""
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    return np.divide(vectors, norms, out=np.zeros_like(vectors), where=norms > eps)

