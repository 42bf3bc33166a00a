"""3D vector value type and array helpers shared by chains and skeletons."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, TypeAlias, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

__all__ = [
    "ArrayF64",
    "Vector3",
    "as_point",
    "as_points",
    "rescale_link",
]

ArrayF64: TypeAlias = NDArray[np.float64]


@dataclass(frozen=True)
class Vector3:
    """Immutable 3D point/vector.

    Arithmetic returns new instances; ``normalized`` leaves the zero vector
    unchanged instead of raising.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_array(cls, values: ArrayLike) -> "Vector3":
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
        if arr.shape[0] != 3:
            raise ValueError(f"Expected 3 components, got {arr.shape[0]}.")
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def to_array(self) -> ArrayF64:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def __array__(self, dtype=None, copy=None):
        return np.array([self.x, self.y, self.z], dtype=dtype or np.float64)

    def __iter__(self):
        return iter((self.x, self.y, self.z))

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalized(self) -> "Vector3":
        norm = self.length()
        if norm == 0.0:
            return self
        return self * (1.0 / norm)

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def distance_to(self, other: "Vector3") -> float:
        return (self - other).length()


PointLike = Union[Vector3, ArrayLike]


def as_point(value: PointLike) -> ArrayF64:
    """Return ``value`` as a float64 array of shape (3,)."""

    if isinstance(value, Vector3):
        return value.to_array()
    arr = np.array(value, dtype=np.float64).reshape(-1)
    if arr.shape[0] != 3:
        raise ValueError(f"Expected a 3D point, got shape {np.shape(value)}.")
    return arr


def as_points(values: Union[Sequence[PointLike], ArrayLike, Iterable[Vector3]]) -> ArrayF64:
    """Return ``values`` as a fresh float64 array of shape (N, 3).

    Accepts an (N, 3) array-like or a sequence of :class:`Vector3`.
    """

    if isinstance(values, np.ndarray):
        arr = np.array(values, dtype=np.float64)
    else:
        arr = np.array([as_point(v) for v in values], dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected points of shape (N, 3), got {arr.shape}.")
    return arr


def rescale_link(
    anchor: ArrayF64, point: ArrayF64, length: float
) -> Optional[ArrayF64]:
    """Pull ``point`` along the anchor->point direction to ``length``.

    Returns ``None`` when the two points coincide; callers skip that link.
    """

    direction = point - anchor
    norm = float(np.linalg.norm(direction))
    if norm == 0.0:
        return None
    return anchor + direction * (length / norm)
