"""
Error Taxonomy
==============
Exceptions raised by the geometry engine. All of them are local and
recoverable; callers decide whether a failure is shown to the user.

Note: "geometry unavailable" (fewer than two control points) is not an
exception. `build_curve` returns None and every consumer treats that as
"no deformation".
"""


class WarpError(Exception):
    """Base class for all path-warp failures."""


class NoIntersectionError(WarpError):
    """The pointer ray is parallel to the reference plane."""


class InvalidExportDimensionsError(WarpError):
    """The deformed surface has a degenerate (zero or negative) bounding box."""

    def __init__(self, width: int, height: int) -> None:
        super().__init__(
            f"Cannot export a degenerate surface ({width} x {height} px)."
        )
        self.width = width
        self.height = height


class ImageNotReadyError(WarpError):
    """The source image has not finished loading yet."""


class ImageLoadError(WarpError):
    """The source image could not be downloaded or decoded."""
