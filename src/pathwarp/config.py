"""
Configuration & Constants
=========================
This module serves as the central registry for global constants.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (default control points, export
   limits, frame rate) from being scattered throughout the code.
2. Consistency: The interactive preview and the high-resolution exporter
   must agree on the flat grid convention (2 world units wide), so both
   read it from here.

Exports:
    DEFAULT_CONTROL_POINTS: Seed S-curve used at startup and on reset.
    MAX_EXPORT_COLUMNS: Upper bound on the export grid density.
    EXPORT_FILENAME: Fixed name of the exported PNG.
"""
from typing import Tuple

# Flat grid convention: x spans [-1, 1], so the grid is 2 world units wide.
GRID_WIDTH: float = 2.0

# WarpState defaults
DEFAULT_RESOLUTION: int = 50
DEFAULT_WARP_INTENSITY: float = 1.0
DEFAULT_HEIGHT_SCALE: float = 1.0
DEFAULT_PATH_OFFSET: float = 0.0
DEFAULT_IMAGE_LENGTH_RATIO: float = 0.5
MIN_IMAGE_LENGTH_RATIO: float = 0.01

DEFAULT_CONTROL_POINTS: Tuple[Tuple[float, float, float], ...] = (
    (-1.5, 0.5, 0.0),
    (-0.75, -0.5, 0.0),
    (0.75, 0.5, 0.0),
    (1.5, -0.5, 0.0),
)

# Spline sampling
ARC_LENGTH_DIVISIONS: int = 200
PATH_PREVIEW_SAMPLES: int = 100

# Export
MAX_EXPORT_COLUMNS: int = 2048
EXPORT_FILENAME: str = "warped-image.png"

# Image loading
DOWNLOAD_TIMEOUT_S: float = 15.0
# shutdown waits a little longer than one stalled download
LOADER_SHUTDOWN_WAIT_MS: int = int(DOWNLOAD_TIMEOUT_S * 1000) + 2000

# Source image placeholder (used while no image URL is set)
PLACEHOLDER_SIZE: int = 1024
PLACEHOLDER_TILES: int = 8

# Viewport
FRAME_INTERVAL_MS: int = 16
CAMERA_DISTANCE: float = 5.0
CAMERA_PARALLEL_SCALE: float = 2.5
HANDLE_RADIUS: float = 0.05
HANDLE_PICK_RADIUS_PX: float = 12.0
