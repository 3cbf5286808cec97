"""
Warp Viewport (PyVista Wrapper)
===============================
The interactive canvas: shows the bent image, the path and the control point
handles, and feeds mouse input to the InteractionController.

Why is this file needed?
------------------------
1. Render loop: A frame QTimer drives `LiveSurface.tick()` once per refresh
   and re-renders the scene.
2. Input: A Qt event filter converts mouse presses/moves/releases into
   pointer rays (display -> world) and surface UV hits.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple, TYPE_CHECKING

import numpy as np
import pyvista as pv
from PySide6.QtCore import QEvent, QObject, QTimer, Qt, Signal
from PySide6.QtGui import QCloseEvent, QCursor
from PySide6.QtWidgets import QVBoxLayout, QWidget
from pyvistaqt import QtInteractor
from vtkmodules.vtkRenderingCore import vtkCellPicker

from pathwarp.config import (
    CAMERA_DISTANCE, CAMERA_PARALLEL_SCALE, FRAME_INTERVAL_MS, HANDLE_PICK_RADIUS_PX,
    HANDLE_RADIUS, PATH_PREVIEW_SAMPLES
)
from pathwarp.controller.interaction import InteractionController, PointerEvent
from pathwarp.controller.recompute import LiveSurface
from pathwarp.view.widgets.vtk_utils import VtkUtils

if TYPE_CHECKING:
    from pathwarp.model.image_source import SourceImage
    from pathwarp.model.state import WarpState

logger = logging.getLogger(__name__)

MOUSE_POINTER_ID = 0


class WarpViewport(QWidget):
    # Emitted when a drag wrote to the state (panel needs to re-sync)
    state_changed = Signal()
    # Emitted once per frame after the surface was recomputed
    frame_ticked = Signal()

    def __init__(self, state: WarpState, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.state = state

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        self.plotter: QtInteractor = QtInteractor(self)
        self.layout_box.addWidget(self.plotter.interactor)

        self.surface = LiveSurface(state)
        self.interaction = InteractionController(state)

        # --- Actors state ---
        self._texture: Optional[pv.Texture] = None
        self._surface_actor: Optional[pv.Actor] = None
        self._path_actor: Optional[pv.Actor] = None
        self._handle_actors: List[pv.Actor] = []
        self._drawn_curve_revision: Optional[int] = None

        self._picker = vtkCellPicker()
        self._picker.SetTolerance(0.0005)
        self._picker.PickFromListOn()

        self._init_plotter()
        self._attach_surface()

        self.plotter.interactor.setMouseTracking(True)
        self.plotter.interactor.installEventFilter(self)

        # Frame loop
        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(FRAME_INTERVAL_MS)
        self._frame_timer.timeout.connect(self._on_frame)
        self._frame_timer.start()

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def set_image(self, image: SourceImage) -> None:
        """Apply a newly loaded source image to the live surface."""
        self._texture = image.texture
        self._attach_surface()
        self.plotter.render()

    def reset_view(self) -> None:
        cam = self.plotter.camera
        cam.position = (0.0, 0.0, CAMERA_DISTANCE)
        cam.focal_point = (0.0, 0.0, 0.0)
        cam.up = (0.0, 1.0, 0.0)
        cam.parallel_scale = CAMERA_PARALLEL_SCALE
        self.plotter.reset_camera_clipping_range()

    def redraw_path(self) -> None:
        """Force the path and handles to be rebuilt on the next frame."""
        self._drawn_curve_revision = None

    # ------------------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------------------

    # ---- plotter ----

    def _init_plotter(self) -> None:
        self.plotter.set_background("#1e1e1e")
        self.plotter.enable_parallel_projection()
        # pan/zoom only, left button is ours
        self.plotter.enable_image_style()
        self.reset_view()

    def _attach_surface(self) -> None:
        if self._surface_actor is not None:
            self.plotter.remove_actor(self._surface_actor)

        kwargs = {"texture": self._texture} if self._texture is not None else {"color": "white"}
        self._surface_actor = self.plotter.add_mesh(
            self.surface.mesh,
            pickable=True,
            show_scalar_bar=False,
            reset_camera=False,
            **kwargs,
        )
        self._picker.InitializePickList()
        self._picker.AddPickList(self._surface_actor)

    def _on_frame(self) -> None:
        if self.surface.ensure_grid():
            self._attach_surface()
        self.surface.tick()
        self._sync_path_and_handles()
        self.frame_ticked.emit()
        self.plotter.render()

    # ---- path + handles ----

    def _sync_path_and_handles(self) -> None:
        if self._drawn_curve_revision == self.state.curve_revision:
            self._update_handle_colors()
            return
        self._drawn_curve_revision = self.state.curve_revision

        if self._path_actor is not None:
            self.plotter.remove_actor(self._path_actor)
            self._path_actor = None

        curve = self.state.curve
        if curve is not None:
            path = VtkUtils.polyline_to_polydata(curve.sample(PATH_PREVIEW_SAMPLES))
            self._path_actor = self.plotter.add_mesh(
                path, color="white", opacity=0.5, line_width=1,
                pickable=False, reset_camera=False
            )

        points = self.state.control_points
        self.interaction.sync_handles()
        if len(self._handle_actors) != points.shape[0]:
            for actor in self._handle_actors:
                self.plotter.remove_actor(actor)
            self._handle_actors = [
                self.plotter.add_mesh(
                    pv.Sphere(radius=HANDLE_RADIUS, theta_resolution=32, phi_resolution=32),
                    color="white", opacity=0.8, pickable=False, reset_camera=False
                )
                for _ in range(points.shape[0])
            ]

        for actor, point in zip(self._handle_actors, points):
            actor.position = tuple(point)
        self._update_handle_colors()

    def _update_handle_colors(self) -> None:
        active = self.interaction.active_handle
        for i, actor in enumerate(self._handle_actors):
            actor.prop.color = "hotpink" if i == active else "white"

    # ---- picking ----

    def _display_coords(self, event) -> Tuple[float, float]:
        """Qt widget position -> VTK display pixels (origin bottom-left)."""
        widget = self.plotter.interactor
        ratio = widget.devicePixelRatioF()
        pos = event.position()
        x = pos.x() * ratio
        y = widget.height() * ratio - pos.y() * ratio - 1.0
        return x, y

    def _pick_handle(self, x: float, y: float) -> Optional[int]:
        renderer = self.plotter.renderer
        ratio = self.plotter.interactor.devicePixelRatioF()
        best: Optional[int] = None
        best_dist = HANDLE_PICK_RADIUS_PX * ratio
        for i, point in enumerate(self.state.control_points):
            dx, dy = VtkUtils.world_to_display(renderer, point)
            dist = float(np.hypot(dx - x, dy - y))
            if dist <= best_dist:
                best, best_dist = i, dist
        return best

    def _pick_surface_uv(self, x: float, y: float) -> Optional[Tuple[float, float]]:
        if not self._picker.Pick(x, y, 0.0, self.plotter.renderer):
            return None
        cell_id = self._picker.GetCellId()
        grid = self.surface.grid
        if grid is None or not 0 <= cell_id < grid.triangles.shape[0]:
            return None
        r, s, _ = self._picker.GetPCoords()
        u, v = grid.uv_at(cell_id, (r, s))
        return float(u), float(v)

    # ---- mouse ----

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        if watched is self.plotter.interactor:
            et = event.type()
            if et == QEvent.Type.MouseButtonPress and event.button() == Qt.MouseButton.LeftButton:
                return self._on_press(event)
            if et == QEvent.Type.MouseMove:
                return self._on_move(event)
            if et == QEvent.Type.MouseButtonRelease and event.button() == Qt.MouseButton.LeftButton:
                return self._on_release(event)
            if et == QEvent.Type.Leave:
                self._on_leave()
        return super().eventFilter(watched, event)

    def _pointer_event(self, x: float, y: float, uv: Optional[Tuple[float, float]] = None) -> PointerEvent:
        ray = VtkUtils.display_to_ray(self.plotter.renderer, x, y)
        return PointerEvent(ray=ray, pointer_id=MOUSE_POINTER_ID, uv=uv)

    def _on_press(self, event) -> bool:
        x, y = self._display_coords(event)

        index = self._pick_handle(x, y)
        if index is not None:
            started = self.interaction.press_handle(index, self._pointer_event(x, y))
        else:
            uv = self._pick_surface_uv(x, y)
            if uv is None:
                return False
            started = self.interaction.press_surface(self._pointer_event(x, y, uv))

        if started:
            self.plotter.interactor.setCursor(QCursor(Qt.CursorShape.ClosedHandCursor))
            self._update_handle_colors()
        return started

    def _on_move(self, event) -> bool:
        x, y = self._display_coords(event)

        if not self.interaction.any_active:
            over_handle = self._pick_handle(x, y) is not None
            shape = Qt.CursorShape.OpenHandCursor if over_handle else Qt.CursorShape.ArrowCursor
            self.plotter.interactor.setCursor(QCursor(shape))
            return False

        if self.interaction.move(self._pointer_event(x, y)):
            self.state_changed.emit()
        return True

    def _on_release(self, event) -> bool:
        was_active = self.interaction.any_active
        x, y = self._display_coords(event)
        self.interaction.release(self._pointer_event(x, y))
        self.plotter.interactor.setCursor(QCursor(Qt.CursorShape.ArrowCursor))
        self._update_handle_colors()
        return was_active

    def _on_leave(self) -> None:
        if self.interaction.any_active:
            logger.debug("Pointer left the viewport, drag cancelled.")
        self.interaction.leave()
        self._update_handle_colors()

    def closeEvent(self, event: QCloseEvent) -> None:
        self._frame_timer.stop()
        self.plotter.close()
        super().closeEvent(event)
