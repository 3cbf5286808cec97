"""
Interaction Controller
======================
Turns pointer rays into warp parameter edits.

Why is this file needed?
------------------------
Two drag protocols share one mechanism, the intersection of the pointer ray
with the fixed reference plane z = 0:

1. Surface drag: dragging the warped image slides it along the path
   (writes `path_offset`).
2. Handle drag: dragging a control point marker moves that point to the
   intersection directly (writes one control point).

Each draggable entity owns a tiny state machine (IDLE -> ACTIVE -> IDLE) and
a snapshot taken when the gesture starts. Entities are independent; when a
surface drag and a handle drag overlap, the last write wins.

Classes:
    PointerEvent: One pointer sample delivered by the viewport.
    SurfaceDrag: Path offset gesture.
    ControlPointDrag: Control point gesture.
    InteractionController: Routes events to the gestures.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import List, Optional, Tuple, TYPE_CHECKING

import numpy as np

from pathwarp.model.errors import NoIntersectionError
from pathwarp.model.geometry_primitives import Plane, Ray, REFERENCE_PLANE
from pathwarp.model.geometry_utils import clamp, ray_plane_intersection

if TYPE_CHECKING:
    import numpy.typing as npt
    from pathwarp.model.state import WarpState

logger = logging.getLogger(__name__)


class DragPhase(Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True)
class PointerEvent:
    """
    Attributes:
        ray: Pointer ray in world space.
        pointer_id: Opaque id; an active gesture only accepts its own pointer.
        uv: Texture coordinate of the hit on the warped surface, if any.
    """
    ray: Ray
    pointer_id: int = 0
    uv: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class DragSnapshot:
    """Everything a surface drag needs from the moment it started."""
    start_point: npt.NDArray[np.float64]
    start_offset: float
    start_t: float
    pointer_id: int


class _Gesture:
    def __init__(self, state: WarpState, plane: Plane = REFERENCE_PLANE) -> None:
        self.state = state
        self.plane = plane
        self.phase = DragPhase.IDLE
        self._pointer_id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.phase is DragPhase.ACTIVE

    def owns(self, event: PointerEvent) -> bool:
        return self.is_active and event.pointer_id == self._pointer_id

    def _intersect(self, event: PointerEvent) -> Optional[npt.NDArray[np.float64]]:
        try:
            return ray_plane_intersection(event.ray, self.plane)
        except NoIntersectionError:
            logger.debug(f"{type(self).__name__}: ray parallel to the drag plane, event ignored.")
            return None

    def release(self, event: Optional[PointerEvent] = None) -> None:
        """End the gesture (pointer up). No further distance is applied."""
        if event is not None and self.is_active and event.pointer_id != self._pointer_id:
            return
        self.phase = DragPhase.IDLE
        self._pointer_id = None

    def leave(self) -> None:
        """The pointer left the interactive surface: cancel."""
        self.phase = DragPhase.IDLE
        self._pointer_id = None


class SurfaceDrag(_Gesture):
    """Slide the image along the path by dragging the warped surface."""

    def __init__(self, state: WarpState, plane: Plane = REFERENCE_PLANE) -> None:
        super().__init__(state, plane)
        self.snapshot: Optional[DragSnapshot] = None

    def press(self, event: PointerEvent) -> bool:
        """
        Start the gesture. Stays IDLE when there is no path, no surface hit
        or no plane intersection.

        Returns:
            True if the gesture became ACTIVE.
        """
        if self.is_active or event.uv is None or self.state.curve is None:
            return False

        start_point = self._intersect(event)
        if start_point is None:
            return False

        start_t = clamp(
            self.state.path_offset + float(event.uv[0]) * self.state.image_length_ratio,
            0.0, 1.0
        )
        self.snapshot = DragSnapshot(
            start_point=start_point,
            start_offset=self.state.path_offset,
            start_t=start_t,
            pointer_id=event.pointer_id,
        )
        self._pointer_id = event.pointer_id
        self.phase = DragPhase.ACTIVE
        logger.debug(f"Surface drag started at t={start_t:.3f}.")
        return True

    def move(self, event: PointerEvent) -> bool:
        """
        Project the plane-space displacement onto the path tangent at the
        start parameter and convert it to a path offset delta.

        Returns:
            True if the path offset was written.
        """
        if not self.owns(event) or self.snapshot is None:
            return False

        curve = self.state.curve
        if curve is None or curve.length <= 0.0:
            return False

        current = self._intersect(event)
        if current is None:
            return False

        move_vector = current - self.snapshot.start_point
        tangent = curve.tangent_at(self.snapshot.start_t)
        distance_along = float(np.dot(move_vector, tangent))

        self.state.set_path_offset(self.snapshot.start_offset + distance_along / curve.length)
        return True

    def release(self, event: Optional[PointerEvent] = None) -> None:
        super().release(event)
        if not self.is_active:
            self.snapshot = None

    def leave(self) -> None:
        super().leave()
        self.snapshot = None


class ControlPointDrag(_Gesture):
    """Move one control point with the pointer (absolute positioning)."""

    def __init__(self, state: WarpState, index: int, plane: Plane = REFERENCE_PLANE) -> None:
        super().__init__(state, plane)
        self.index = index

    def press(self, event: PointerEvent) -> bool:
        if self.is_active:
            return False
        if self._intersect(event) is None:
            return False
        self._pointer_id = event.pointer_id
        self.phase = DragPhase.ACTIVE
        logger.debug(f"Handle drag started on control point {self.index}.")
        return True

    def move(self, event: PointerEvent) -> bool:
        if not self.owns(event):
            return False
        point = self._intersect(event)
        if point is None:
            return False
        self.state.update_control_point(self.index, point)
        return True


class InteractionController:
    """
    Owns one SurfaceDrag and one ControlPointDrag per control point and
    routes viewport events to them.
    """

    def __init__(self, state: WarpState, plane: Plane = REFERENCE_PLANE) -> None:
        self.state = state
        self.plane = plane
        self.surface = SurfaceDrag(state, plane)
        self.handles: List[ControlPointDrag] = []
        self.sync_handles()

    def sync_handles(self) -> None:
        """Match the handle gestures to the current number of control points."""
        n = self.state.control_points.shape[0]
        if len(self.handles) > n:
            for handle in self.handles[n:]:
                handle.leave()
            del self.handles[n:]
        while len(self.handles) < n:
            self.handles.append(ControlPointDrag(self.state, len(self.handles), self.plane))

    @property
    def active_handle(self) -> Optional[int]:
        for handle in self.handles:
            if handle.is_active:
                return handle.index
        return None

    @property
    def any_active(self) -> bool:
        return self.surface.is_active or self.active_handle is not None

    def press_surface(self, event: PointerEvent) -> bool:
        return self.surface.press(event)

    def press_handle(self, index: int, event: PointerEvent) -> bool:
        self.sync_handles()
        if not 0 <= index < len(self.handles):
            return False
        return self.handles[index].press(event)

    def move(self, event: PointerEvent) -> bool:
        """Feed a pointer move to every active gesture. True if state changed."""
        changed = False
        for handle in self.handles:
            if handle.owns(event):
                changed = handle.move(event) or changed
        if self.surface.owns(event):
            changed = self.surface.move(event) or changed
        return changed

    def release(self, event: PointerEvent) -> None:
        self.surface.release(event)
        for handle in self.handles:
            handle.release(event)

    def leave(self) -> None:
        self.surface.leave()
        for handle in self.handles:
            handle.leave()
