"""
Spline Model
============
A smooth, open path through an ordered list of control points.

Why is this file needed?
------------------------
The image's horizontal axis must map onto *physical* distance along the path,
not onto the spline segment index. This module therefore builds a centripetal
Catmull-Rom curve and answers every query through an arc-length table, so
equal steps in t correspond to (approximately) equal distance travelled.

Classes:
    PathCurve: The read-only curve with vectorised point/tangent queries.

Functions:
    build_curve: Factory returning None when there are fewer than 2 points.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence, Union, TYPE_CHECKING

import numpy as np

from pathwarp.config import ARC_LENGTH_DIVISIONS
from pathwarp.model.geometry_utils import normalize_rows

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

FloatOrArray = Union[float, "npt.NDArray[np.float64]"]

# Knot intervals below this are treated as coincident points.
_MIN_KNOT_INTERVAL = 1e-4
_EPS = 1e-12


class PathCurve:
    """
    Centripetal Catmull-Rom curve (alpha = 0.5), open, through >= 2 points.

    All public queries take t as a global arc-length fraction in [0, 1].
    Values outside that range are clamped; the curve is never extrapolated.
    """

    def __init__(
        self,
        points: npt.NDArray[np.float64],
        divisions: int = ARC_LENGTH_DIVISIONS
    ) -> None:
        pts = np.array(points, dtype=np.float64).reshape(-1, 3)
        if pts.shape[0] < 2:
            raise ValueError(f"A path needs at least 2 control points, got {pts.shape[0]}.")
        if divisions < 1:
            raise ValueError("divisions must be >= 1.")

        pts.setflags(write=False)
        self._points = pts
        self._coefficients = self._build_segments(pts)

        # Arc-length table: parametric samples and their cumulative distance
        self._params = np.linspace(0.0, 1.0, divisions + 1)
        self._samples = self._evaluate(self._params)
        chords = np.diff(self._samples, axis=0)
        chord_lengths = np.linalg.norm(chords, axis=1)
        self._cumulative = np.concatenate(([0.0], np.cumsum(chord_lengths)))
        self._length = float(self._cumulative[-1])

        # Fallback directions for degenerate tangents
        self._chord_dirs = normalize_rows(chords)
        self._valid_chords = np.flatnonzero(chord_lengths > _EPS)

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    @property
    def control_points(self) -> npt.NDArray[np.float64]:
        return self._points.copy()

    @property
    def length(self) -> float:
        """Arc length, measured on the sampled polyline."""
        return self._length

    def length_approx(self) -> float:
        return self._length

    def point_at(self, t: FloatOrArray) -> npt.NDArray[np.float64]:
        """
        Point at arc-length fraction t.

        Args:
            t: Scalar or array of fractions.

        Returns:
            (3,) for scalar input, (N, 3) for array input.
        """
        u, scalar = self._as_fractions(t)
        points = self._evaluate(self._arc_to_param(u))
        return points[0] if scalar else points

    def tangent_at(self, t: FloatOrArray) -> npt.NDArray[np.float64]:
        """
        Unit tangent at arc-length fraction t.

        Where the curve is degenerate (coincident control points) the nearest
        well-defined chord direction of the arc-length table is used instead.
        """
        u, scalar = self._as_fractions(t)
        params = self._arc_to_param(u)
        tangents = self._derivative(params)

        norms = np.linalg.norm(tangents, axis=1)
        bad = norms <= _EPS
        tangents = normalize_rows(tangents)
        if np.any(bad):
            tangents[bad] = self._fallback_tangents(params[bad])

        return tangents[0] if scalar else tangents

    def sample(self, divisions: int) -> npt.NDArray[np.float64]:
        """Evenly spaced (by arc length) points, for drawing the path."""
        return self.point_at(np.linspace(0.0, 1.0, max(1, divisions) + 1))

    # ------------------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------------------

    @staticmethod
    def _as_fractions(t: FloatOrArray) -> tuple[npt.NDArray[np.float64], bool]:
        arr = np.asarray(t, dtype=np.float64)
        scalar = arr.ndim == 0
        return np.clip(arr.reshape(-1), 0.0, 1.0), scalar

    @staticmethod
    def _build_segments(pts: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Cubic coefficients (c0, c1, c2, c3) of every segment, shape (n-1, 4, 3).

        The outer neighbours of the first and last segment are reflected
        (2*P0 - P1 and 2*Pn - Pn-1) so the curve starts and ends exactly on
        the first and last control points.
        """
        n = pts.shape[0]
        coefficients = np.empty((n - 1, 4, 3), dtype=np.float64)

        for i in range(n - 1):
            p1 = pts[i]
            p2 = pts[i + 1]
            p0 = pts[i - 1] if i > 0 else 2.0 * p1 - p2
            p3 = pts[i + 2] if i + 2 < n else 2.0 * p2 - p1

            # centripetal knot intervals: |Pi+1 - Pi| ** 0.5
            dt0 = float(np.linalg.norm(p1 - p0)) ** 0.5
            dt1 = float(np.linalg.norm(p2 - p1)) ** 0.5
            dt2 = float(np.linalg.norm(p3 - p2)) ** 0.5

            if dt1 < _MIN_KNOT_INTERVAL:
                dt1 = 1.0
            if dt0 < _MIN_KNOT_INTERVAL:
                dt0 = dt1
            if dt2 < _MIN_KNOT_INTERVAL:
                dt2 = dt1

            m1 = (p1 - p0) / dt0 - (p2 - p0) / (dt0 + dt1) + (p2 - p1) / dt1
            m2 = (p2 - p1) / dt1 - (p3 - p1) / (dt1 + dt2) + (p3 - p2) / dt2
            # rescale tangents for parameters in [0, 1]
            m1 *= dt1
            m2 *= dt1

            coefficients[i, 0] = p1
            coefficients[i, 1] = m1
            coefficients[i, 2] = -3.0 * p1 + 3.0 * p2 - 2.0 * m1 - m2
            coefficients[i, 3] = 2.0 * p1 - 2.0 * p2 + m1 + m2

        return coefficients

    def _locate(self, params: npt.NDArray[np.float64]) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]:
        """Split global parameters into (segment index, local weight)."""
        n_segments = self._coefficients.shape[0]
        scaled = params * n_segments
        index = np.clip(np.floor(scaled).astype(np.int_), 0, n_segments - 1)
        return index, scaled - index

    def _evaluate(self, params: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        index, w = self._locate(params)
        c = self._coefficients[index]
        w = w[:, None]
        return c[:, 0] + w * (c[:, 1] + w * (c[:, 2] + w * c[:, 3]))

    def _derivative(self, params: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        index, w = self._locate(params)
        c = self._coefficients[index]
        w = w[:, None]
        return (c[:, 1] + w * (2.0 * c[:, 2] + 3.0 * w * c[:, 3])) * self._coefficients.shape[0]

    def _arc_to_param(self, u: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """Map arc-length fractions onto the spline's own parameter."""
        if self._length <= _EPS:
            return u
        return np.interp(u * self._length, self._cumulative, self._params)

    def _fallback_tangents(self, params: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        if self._valid_chords.size == 0:
            chord = self._points[-1] - self._points[0]
            norm = float(np.linalg.norm(chord))
            direction = chord / norm if norm > _EPS else np.array([1.0, 0.0, 0.0])
            return np.tile(direction, (params.shape[0], 1))

        n_chords = self._chord_dirs.shape[0]
        index = np.clip(np.searchsorted(self._params, params, side="right") - 1, 0, n_chords - 1)
        nearest = np.abs(self._valid_chords[None, :] - index[:, None]).argmin(axis=1)
        return self._chord_dirs[self._valid_chords[nearest]]


def build_curve(
    points: Union[Sequence[Sequence[float]], npt.NDArray[np.float64], None],
    divisions: int = ARC_LENGTH_DIVISIONS
) -> Optional[PathCurve]:
    """
    Build the path through `points`.

    Returns:
        A PathCurve, or None when fewer than 2 points are given
        (callers must then skip the deformation).
    """
    if points is None:
        return None
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if pts.shape[0] < 2:
        logger.debug(f"Path unavailable: {pts.shape[0]} control point(s).")
        return None
    return PathCurve(pts, divisions=divisions)
