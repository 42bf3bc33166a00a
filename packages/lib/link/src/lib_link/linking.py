"""Planar crossing count between two polylines.

Both polylines are projected onto the XY plane (Z is dropped). Every segment
of the first polyline is tested against every segment of the second with the
usual signed-orientation straddle test. Segments that merely touch or are
collinear (an orientation of exactly zero) do not count. Each crossing adds
the sign of the first orientation term, and the linking value is half of the
signed sum, so open chains can produce half-integers. This is only a proxy
for the 3D linking number.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .vector import ArrayF64, PointLike, as_points

__all__ = ["count_crossings", "crossing_signs", "linking_number"]


def _orient(a: ArrayF64, b: ArrayF64, c: ArrayF64) -> ArrayF64:
    return (b[..., 0] - a[..., 0]) * (c[..., 1] - a[..., 1]) - (
        b[..., 1] - a[..., 1]
    ) * (c[..., 0] - a[..., 0])


def crossing_signs(
    joints_a: Sequence[PointLike] | ArrayF64,
    joints_b: Sequence[PointLike] | ArrayF64,
) -> np.ndarray:
    """Return an int matrix (segments of A x segments of B) of crossing signs.

    Entries are +1/-1 where the segment pair crosses and 0 elsewhere.
    """

    a = as_points(joints_a)[:, :2]
    b = as_points(joints_b)[:, :2]
    if len(a) < 2 or len(b) < 2:
        return np.zeros((max(len(a) - 1, 0), max(len(b) - 1, 0)), dtype=np.int64)

    a1 = a[:-1, np.newaxis, :]
    a2 = a[1:, np.newaxis, :]
    b1 = b[np.newaxis, :-1, :]
    b2 = b[np.newaxis, 1:, :]

    o1 = _orient(a1, a2, b1)
    o2 = _orient(a1, a2, b2)
    o3 = _orient(b1, b2, a1)
    o4 = _orient(b1, b2, a2)

    crossing = (o1 * o2 < 0.0) & (o3 * o4 < 0.0)
    signs = np.where(o1 > 0.0, 1, -1)
    return np.where(crossing, signs, 0).astype(np.int64)


def count_crossings(
    joints_a: Sequence[PointLike] | ArrayF64,
    joints_b: Sequence[PointLike] | ArrayF64,
) -> int:
    """Signed number of planar crossings between two polylines."""

    return int(crossing_signs(joints_a, joints_b).sum())


def linking_number(
    joints_a: Sequence[PointLike] | ArrayF64,
    joints_b: Sequence[PointLike] | ArrayF64,
) -> float:
    return count_crossings(joints_a, joints_b) / 2.0
