"""Linear chain of joints with fixed segment lengths."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .vector import ArrayF64, PointLike, as_point, as_points, rescale_link

__all__ = ["RigidChain"]


class RigidChain:
    """Ordered joints whose consecutive distances are fixed at load time.

    ``lengths[i]`` is the distance between ``joints[i]`` and ``joints[i + 1]``
    measured when the chain is created or reset. It is never recomputed from
    the live joints, so every :meth:`move` restores exactly those lengths.
    """

    def __init__(self, joints: Sequence[PointLike] | ArrayF64) -> None:
        self._joints: ArrayF64 = np.zeros((0, 3), dtype=np.float64)
        self._lengths: ArrayF64 = np.zeros(0, dtype=np.float64)
        self.reset(joints)

    def reset(self, joints: Sequence[PointLike] | ArrayF64) -> None:
        """Replace all joints and re-measure the segment lengths."""

        points = as_points(joints)
        if len(points) == 0:
            raise ValueError("A chain needs at least one joint.")
        self._joints = points
        self._lengths = np.linalg.norm(np.diff(points, axis=0), axis=1)

    def __len__(self) -> int:
        return len(self._joints)

    @property
    def joints(self) -> ArrayF64:
        return self._joints.copy()

    @property
    def lengths(self) -> ArrayF64:
        return self._lengths.copy()

    def joint(self, index: int) -> ArrayF64:
        self._check_index(index)
        return self._joints[index].copy()

    def centroid(self) -> ArrayF64:
        return self._joints.mean(axis=0)

    def move(self, index: int, position: PointLike) -> None:
        """Place joint ``index`` at ``position`` and restore every length.

        The forward pass pulls joints after ``index`` toward their predecessor,
        the backward pass pulls joints before it toward their successor. A
        link whose two joints coincide is skipped.
        """

        self._check_index(index)
        joints = self._joints
        joints[index] = as_point(position)

        for i in range(index, len(joints) - 1):
            pulled = rescale_link(joints[i], joints[i + 1], self._lengths[i])
            if pulled is not None:
                joints[i + 1] = pulled

        for i in range(index, 0, -1):
            pulled = rescale_link(joints[i], joints[i - 1], self._lengths[i - 1])
            if pulled is not None:
                joints[i - 1] = pulled

    def translate(self, delta: PointLike) -> None:
        self._joints += as_point(delta)

    def snapshot(self) -> ArrayF64:
        return self._joints.copy()

    def restore(self, snapshot: ArrayF64) -> None:
        """Put back joints captured by :meth:`snapshot` without re-measuring."""

        points = as_points(snapshot)
        if points.shape != self._joints.shape:
            raise ValueError(
                f"Snapshot shape {points.shape} does not match chain {self._joints.shape}."
            )
        self._joints = points

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._joints):
            raise IndexError(f"Joint index {index} out of range for {len(self)} joints.")
