"""
Geometric Primitives for picking and framing.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence, Union, TYPE_CHECKING
import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

ArrayLike3 = Union[Sequence[float], "npt.NDArray[np.float64]"]


def as_vec3(value: ArrayLike3) -> npt.NDArray[np.float64]:
    """Coerce a 3-sequence into a float64 array of shape (3,)."""
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3D vector, got shape {arr.shape}.")
    return arr


@dataclass(frozen=True)
class Ray:
    """
    A half-line in 3D space: origin + s * direction.
    The direction is stored normalized.
    """
    origin: npt.NDArray[np.float64]
    direction: npt.NDArray[np.float64]

    def __post_init__(self) -> None:
        origin = as_vec3(self.origin)
        direction = as_vec3(self.direction)
        mag = float(np.linalg.norm(direction))
        if mag == 0.0:
            raise ValueError("Ray direction must be non-zero.")
        object.__setattr__(self, "origin", origin)
        object.__setattr__(self, "direction", direction / mag)

    def at(self, s: float) -> npt.NDArray[np.float64]:
        return self.origin + s * self.direction


@dataclass(frozen=True)
class Plane:
    """
    An infinite plane n . p + constant = 0 (same convention as most 3D engines).
    """
    normal: npt.NDArray[np.float64] = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))
    constant: float = 0.0

    def __post_init__(self) -> None:
        normal = as_vec3(self.normal)
        mag = float(np.linalg.norm(normal))
        if mag == 0.0:
            raise ValueError("Plane normal must be non-zero.")
        object.__setattr__(self, "normal", normal / mag)
        object.__setattr__(self, "constant", float(self.constant) / mag)


# Fixed plane used to turn pointer rays into drag positions: z = 0.
REFERENCE_PLANE = Plane()


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box of a point set."""
    minimum: npt.NDArray[np.float64]
    maximum: npt.NDArray[np.float64]

    @classmethod
    def from_points(cls, points: npt.NDArray[np.float64]) -> BoundingBox:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if pts.shape[0] == 0:
            raise ValueError("Cannot compute the bounds of an empty point set.")
        return cls(minimum=pts.min(axis=0), maximum=pts.max(axis=0))

    @property
    def width(self) -> float:
        return float(self.maximum[0] - self.minimum[0])

    @property
    def height(self) -> float:
        return float(self.maximum[1] - self.minimum[1])

    @property
    def center(self) -> npt.NDArray[np.float64]:
        return (self.minimum + self.maximum) / 2.0
