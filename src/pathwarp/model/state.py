"""
Warp State (Data Model)
=======================
This module defines the central parameter store for the running application.

Why is this file needed?
------------------------
1. State Management: It holds the control points and every warp parameter in
   one place. The viewport, the interaction controller and the exporter all
   read from the same instance.
2. Invariants: Every mutation goes through a setter that clamps or validates
   the value, so `path_offset` always lies in [0, 1 - image_length_ratio]
   regardless of call order.
3. Decoupling: Views read from this object; Controllers write to this object.

Classes:
    WarpSnapshot: Immutable copy of the state, used by the exporter.
    WarpState: The main container class.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Optional, Sequence, Union, TYPE_CHECKING

import numpy as np

from pathwarp.config import (
    DEFAULT_CONTROL_POINTS, DEFAULT_HEIGHT_SCALE, DEFAULT_IMAGE_LENGTH_RATIO,
    DEFAULT_PATH_OFFSET, DEFAULT_RESOLUTION, DEFAULT_WARP_INTENSITY, MIN_IMAGE_LENGTH_RATIO
)
from pathwarp.model.geometry_primitives import as_vec3
from pathwarp.model.geometry_utils import clamp
from pathwarp.model.spline import PathCurve, build_curve

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def default_control_points() -> npt.NDArray[np.float64]:
    return np.array(DEFAULT_CONTROL_POINTS, dtype=np.float64)


def _finite(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}.")
    return value


@dataclass(frozen=True)
class WarpSnapshot:
    """Independent copy of the warp parameters at one point in time."""
    control_points: npt.NDArray[np.float64]
    resolution: int
    warp_intensity: float
    height_scale: float
    path_offset: float
    image_length_ratio: float

    def build_curve(self) -> Optional[PathCurve]:
        return build_curve(self.control_points)


class WarpState:
    """
    Singleton-like class that holds the warp parameters.
    Pass this instance to your Controllers and Views.
    """

    def __init__(self) -> None:
        self.image_url: Optional[str] = None
        self.export_request_count: int = 0
        self.is_exporting: bool = False

        self._resolution: int = DEFAULT_RESOLUTION
        self._warp_intensity: float = DEFAULT_WARP_INTENSITY
        self._height_scale: float = DEFAULT_HEIGHT_SCALE
        self._image_length_ratio: float = DEFAULT_IMAGE_LENGTH_RATIO
        self._path_offset: float = DEFAULT_PATH_OFFSET
        self._control_points: npt.NDArray[np.float64] = default_control_points()

        self._curve: Optional[PathCurve] = None
        self._curve_dirty: bool = True
        self.curve_revision: int = 0

    # ------------------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------------------

    @property
    def resolution(self) -> int:
        return self._resolution

    @property
    def warp_intensity(self) -> float:
        return self._warp_intensity

    @property
    def height_scale(self) -> float:
        return self._height_scale

    @property
    def path_offset(self) -> float:
        return self._path_offset

    @property
    def image_length_ratio(self) -> float:
        return self._image_length_ratio

    @property
    def max_path_offset(self) -> float:
        return 1.0 - self._image_length_ratio

    @property
    def control_points(self) -> npt.NDArray[np.float64]:
        """Copy of the (N, 3) control points. Mutate through the setters."""
        return self._control_points.copy()

    @property
    def curve(self) -> Optional[PathCurve]:
        """The path through the control points, rebuilt lazily after edits."""
        if self._curve_dirty:
            self._curve = build_curve(self._control_points)
            self._curve_dirty = False
        return self._curve

    # ------------------------------------------------------------------------------
    # Setters (the parameter surface)
    # ------------------------------------------------------------------------------

    def set_image_url(self, url: Optional[str]) -> None:
        self.image_url = url or None

    def set_resolution(self, resolution: int) -> None:
        resolution = int(resolution)
        if resolution < 1:
            raise ValueError(f"Resolution must be >= 1, got {resolution}.")
        self._resolution = resolution

    def set_warp_intensity(self, intensity: float) -> None:
        self._warp_intensity = _finite("Warp intensity", intensity)

    def set_height_scale(self, scale: float) -> None:
        scale = _finite("Height scale", scale)
        if scale <= 0.0:
            raise ValueError(f"Height scale must be > 0, got {scale}.")
        self._height_scale = scale

    def set_path_offset(self, offset: float) -> None:
        """Clamped to [0, 1 - image_length_ratio]."""
        offset = _finite("Path offset", offset)
        self._path_offset = clamp(offset, 0.0, self.max_path_offset)

    def set_image_length_ratio(self, ratio: float) -> None:
        """Clamped to [MIN_IMAGE_LENGTH_RATIO, 1]; re-clamps the path offset."""
        ratio = _finite("Image length ratio", ratio)
        self._image_length_ratio = clamp(ratio, MIN_IMAGE_LENGTH_RATIO, 1.0)
        self._path_offset = clamp(self._path_offset, 0.0, self.max_path_offset)

    def update_control_point(self, index: int, position: Union[Sequence[float], npt.NDArray[np.float64]]) -> None:
        if not 0 <= index < self._control_points.shape[0]:
            raise IndexError(f"Control point index {index} out of range.")
        point = as_vec3(position).copy()
        if not np.all(np.isfinite(point)):
            raise ValueError(f"Control point must be finite, got {point}.")
        point[2] = 0.0
        self._control_points[index] = point
        self._invalidate_curve()

    def set_control_points(self, points: Union[Sequence[Sequence[float]], npt.NDArray[np.float64]]) -> None:
        """Replace the whole control polygon (adding/removing points happens here)."""
        pts = np.array(points, dtype=np.float64).reshape(-1, 3)
        if not np.all(np.isfinite(pts)):
            raise ValueError("Control points must be finite.")
        pts[:, 2] = 0.0
        self._control_points = pts
        self._invalidate_curve()

    def trigger_export(self) -> int:
        """One-shot export request. Returns the new request count."""
        self.export_request_count += 1
        logger.info(f"Export requested (#{self.export_request_count}).")
        return self.export_request_count

    def begin_export(self) -> None:
        self.is_exporting = True

    def finish_export(self) -> None:
        self.is_exporting = False

    # ------------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------------

    def snapshot(self) -> WarpSnapshot:
        return WarpSnapshot(
            control_points=self._control_points.copy(),
            resolution=self._resolution,
            warp_intensity=self._warp_intensity,
            height_scale=self._height_scale,
            path_offset=self._path_offset,
            image_length_ratio=self._image_length_ratio,
        )

    def reset(self) -> None:
        """Restore every parameter to its startup default."""
        self.image_url = None
        self._resolution = DEFAULT_RESOLUTION
        self._warp_intensity = DEFAULT_WARP_INTENSITY
        self._height_scale = DEFAULT_HEIGHT_SCALE
        self._image_length_ratio = DEFAULT_IMAGE_LENGTH_RATIO
        self._path_offset = DEFAULT_PATH_OFFSET
        self._control_points = default_control_points()
        self._invalidate_curve()
        logger.info("Warp state has been reset.")

    def _invalidate_curve(self) -> None:
        self._curve_dirty = True
        self.curve_revision += 1
