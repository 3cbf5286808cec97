"""
High-Resolution Exporter
========================
Re-runs the deformation at a much higher vertex density and rasterizes it
off-screen into a PNG.

Why is this file needed?
------------------------
1. Fidelity: The on-screen grid has only `resolution` columns. The export
   builds a fresh grid sized to the source image (up to 2048 columns) so the
   bent edges stay smooth at full pixel density.
2. Isolation: It works on a WarpSnapshot and its own grid/curve/plotter, so
   the live preview is never touched.
3. Lifecycle: It turns the one-shot `export_request_count` edge into exactly
   one export, defers while the source image is still loading and guarantees
   `is_exporting` is cleared on every exit path.

Classes:
    ExportPlan: Everything needed to render one export.
    HighResExporter: Edge detection + the render/encode/deliver sequence.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Callable, Optional, Tuple, TYPE_CHECKING

import numpy as np
import pyvista as pv
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QImage

from pathwarp.config import CAMERA_DISTANCE, EXPORT_FILENAME, GRID_WIDTH, MAX_EXPORT_COLUMNS
from pathwarp.model.deform import deform
from pathwarp.model.errors import ImageNotReadyError, InvalidExportDimensionsError
from pathwarp.model.geometry_primitives import BoundingBox
from pathwarp.model.grid import FlatGrid

if TYPE_CHECKING:
    import numpy.typing as npt
    from pathwarp.model.image_source import SourceImage
    from pathwarp.model.state import WarpSnapshot, WarpState

logger = logging.getLogger(__name__)

ExportSink = Callable[[str, bytes], None]
Renderer = Callable[["ExportPlan", pv.Texture], "npt.NDArray[np.uint8]"]
Encoder = Callable[["npt.NDArray[np.uint8]"], bytes]


# -------------------------------------------------------------------------------
# Data model
# -------------------------------------------------------------------------------

@dataclass(frozen=True)
class ExportFraming:
    """World-space extent of the deformed surface."""
    center: npt.NDArray[np.float64]
    world_width: float
    world_height: float


@dataclass
class ExportPlan:
    columns: int
    rows: int
    mesh: Optional[pv.PolyData]
    framing: ExportFraming
    pixels_per_unit: float
    output_width: int
    output_height: int

    def release(self) -> None:
        """Drop the temporary high-density mesh."""
        self.mesh = None


@dataclass
class ExportResult:
    filename: str
    output_width: int
    output_height: int
    png: bytes


# -------------------------------------------------------------------------------
# Export steps
# -------------------------------------------------------------------------------

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def high_res_dimensions(source_width: int, height_scale: float) -> Tuple[int, int]:
    """Export grid density: min(2048, width / 2) columns, rows keep the aspect."""
    columns = max(1, min(MAX_EXPORT_COLUMNS, int(source_width) // 2))
    rows = max(1, _round_half_up(columns * height_scale))
    return columns, rows


def _pixel_extent(world_size: float, pixels_per_unit: float) -> int:
    # rounding first keeps e.g. 2.0000000001 * 512 from becoming 1025 px
    return int(math.ceil(round(world_size * pixels_per_unit, 6)))


def plan_export(snapshot: WarpSnapshot, source_width: int) -> ExportPlan:
    """
    Build the high-density deformed mesh and its output framing.

    Args:
        snapshot: Frozen warp parameters.
        source_width: Pixel width of the source image.

    Raises:
        ImageNotReadyError: If the source width is unknown (< 1).
        InvalidExportDimensionsError: If the deformed bounding box is degenerate.
    """
    if source_width < 1:
        raise ImageNotReadyError("Source image dimensions are not known yet.")

    columns, rows = high_res_dimensions(source_width, snapshot.height_scale)
    grid = FlatGrid(columns=columns, rows=rows, height_scale=snapshot.height_scale)
    curve = snapshot.build_curve()

    positions = deform(
        grid.reference_positions,
        curve,
        snapshot.warp_intensity,
        snapshot.path_offset,
        snapshot.image_length_ratio,
    )

    box = BoundingBox.from_points(positions)
    pixels_per_unit = source_width / GRID_WIDTH
    output_width = _pixel_extent(box.width, pixels_per_unit)
    output_height = _pixel_extent(box.height, pixels_per_unit)
    if output_width <= 0 or output_height <= 0:
        raise InvalidExportDimensionsError(output_width, output_height)

    mesh = grid.to_polydata(positions - box.center).compute_normals(
        cell_normals=False,
        split_vertices=False,
        consistent_normals=False,
        auto_orient_normals=False,
    )

    return ExportPlan(
        columns=columns,
        rows=rows,
        mesh=mesh,
        framing=ExportFraming(center=box.center, world_width=box.width, world_height=box.height),
        pixels_per_unit=pixels_per_unit,
        output_width=output_width,
        output_height=output_height,
    )


def render_offscreen(plan: ExportPlan, texture: pv.Texture) -> npt.NDArray[np.uint8]:
    """
    Rasterize the re-centred mesh with an orthographic camera framed exactly
    to its bounding box, at 1:1 pixel density.

    Returns:
        (output_height, output_width, 4) RGBA pixels.
    """
    if plan.mesh is None:
        raise ValueError("Export plan has already been released.")

    size = (plan.output_width, plan.output_height)
    plotter = pv.Plotter(off_screen=True, window_size=list(size))
    try:
        plotter.add_mesh(plan.mesh, texture=texture, lighting=False, show_scalar_bar=False)
        plotter.enable_parallel_projection()

        cam = plotter.camera
        cam.position = (0.0, 0.0, CAMERA_DISTANCE)
        cam.focal_point = (0.0, 0.0, 0.0)
        cam.up = (0.0, 1.0, 0.0)
        cam.parallel_scale = plan.framing.world_height / 2.0
        plotter.reset_camera_clipping_range()

        return plotter.screenshot(transparent_background=True, return_img=True, window_size=size)
    finally:
        plotter.close()


def encode_png(pixels: npt.NDArray[np.uint8]) -> bytes:
    """Encode an (H, W, 3|4) uint8 buffer as PNG bytes."""
    arr = np.ascontiguousarray(pixels, dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W, 3|4) pixels, got {arr.shape}.")

    height, width, channels = arr.shape
    fmt = QImage.Format.Format_RGBA8888 if channels == 4 else QImage.Format.Format_RGB888
    raw = arr.tobytes()
    image = QImage(raw, width, height, width * channels, fmt)

    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    try:
        if not image.save(buffer, "PNG"):
            raise RuntimeError("PNG encoding failed.")
    finally:
        buffer.close()
    return bytes(data.data())


# -------------------------------------------------------------------------------
# Exporter
# -------------------------------------------------------------------------------

class HighResExporter:
    """
    Watches `WarpState.export_request_count` and runs one export per rising
    edge. Only one export is ever in flight; requests that arrive meanwhile
    are dropped.
    """

    def __init__(
        self,
        state: WarpState,
        sink: ExportSink,
        renderer: Renderer = render_offscreen,
        encoder: Encoder = encode_png,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.state = state
        self.sink = sink
        self.renderer = renderer
        self.encoder = encoder
        self.on_error = on_error
        self._handled_count = state.export_request_count

    @property
    def pending(self) -> bool:
        return self.state.export_request_count > self._handled_count

    def poll(self, image: Optional[SourceImage]) -> Optional[ExportResult]:
        """
        Run the export if a request is pending and the image is ready.

        Called every frame and when the source image finishes loading.
        A missing image defers the request (it stays pending).
        """
        if not self.pending:
            return None
        if self.state.is_exporting:
            logger.debug("Export already in flight, request ignored.")
            return None
        if image is None:
            logger.debug("Export deferred: source image not ready.")
            return None

        self._handled_count = self.state.export_request_count
        return self._run(image)

    def _run(self, image: SourceImage) -> Optional[ExportResult]:
        self.state.begin_export()
        plan: Optional[ExportPlan] = None
        try:
            plan = plan_export(self.state.snapshot(), image.width)
            logger.info(
                f"Exporting {plan.output_width} x {plan.output_height} px "
                f"({plan.columns} x {plan.rows} grid)."
            )

            pixels = self.renderer(plan, image.texture)
            png = self.encoder(pixels)
            self.sink(EXPORT_FILENAME, png)

            logger.info(f"Export finished: {EXPORT_FILENAME} ({len(png)} bytes).")
            return ExportResult(
                filename=EXPORT_FILENAME,
                output_width=plan.output_width,
                output_height=plan.output_height,
                png=png,
            )

        except InvalidExportDimensionsError as e:
            logger.error(f"Export aborted: {e}")
            if self.on_error is not None:
                self.on_error(str(e))
            return None

        finally:
            if plan is not None:
                plan.release()
            self.state.finish_export()
            self._handled_count = max(self._handled_count, self.state.export_request_count)
