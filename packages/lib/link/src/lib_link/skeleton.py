"""Tree-shaped skeleton with fixed bone lengths and a head/shoulder ring.

Joints live in a flat array and the hierarchy is a tuple of parent indices
(``-1`` marks the root). Moving a joint carries its whole subtree along and
then re-imposes each bone length from the moved joint outward. The ring is a
second, non-hierarchical constraint: the head may never drift further than
``ring_width`` from either shoulder, and a shoulder never further than that
from the head.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .data import SKELETON18_JOINTS, SKELETON18_PARENTS
from .vector import ArrayF64, PointLike, as_point, as_points, rescale_link

__all__ = ["Ring", "SkeletonTree"]

ROOT = -1


@dataclass(frozen=True)
class Ring:
    """Indices of the three joints bound by the ring constraint."""

    head: int
    left_shoulder: int
    right_shoulder: int

    def partners(self, index: int) -> Tuple[int, ...]:
        if index == self.head:
            return (self.left_shoulder, self.right_shoulder)
        if index in (self.left_shoulder, self.right_shoulder):
            return (self.head,)
        return ()

    def pairs(self) -> Tuple[Tuple[int, int], ...]:
        return ((self.head, self.left_shoulder), (self.head, self.right_shoulder))


class SkeletonTree:
    """Joints with a parent table, fixed bone lengths and an optional ring.

    ``ring_width`` is the larger of the initial shoulder-to-shoulder distance
    and the initial head-to-shoulder distances. Figures mirrored from a chain
    have coinciding shoulders, and a zero width would pin their head.
    """

    def __init__(
        self,
        joints: Sequence[PointLike] | ArrayF64,
        parents: Sequence[int],
        ring: Optional[Ring] = None,
    ) -> None:
        points = as_points(joints)
        if len(parents) != len(points):
            raise ValueError(
                f"Got {len(parents)} parent indices for {len(points)} joints."
            )
        self._parents: Tuple[int, ...] = tuple(int(p) for p in parents)
        self._root = _validate_hierarchy(self._parents)
        self._children: Dict[int, List[int]] = {i: [] for i in range(len(points))}
        for child, parent in enumerate(self._parents):
            if parent != ROOT:
                self._children[parent].append(child)

        self._joints: ArrayF64 = points
        self._bone_lengths: ArrayF64 = np.zeros(len(points), dtype=np.float64)
        for child, parent in enumerate(self._parents):
            if parent != ROOT:
                self._bone_lengths[child] = float(
                    np.linalg.norm(points[child] - points[parent])
                )

        self.ring = ring
        self.ring_width = 0.0
        if ring is not None:
            for index in (ring.head, ring.left_shoulder, ring.right_shoulder):
                if not 0 <= index < len(points):
                    raise ValueError(f"Ring joint {index} is not part of the skeleton.")
            shoulder_span = float(
                np.linalg.norm(points[ring.left_shoulder] - points[ring.right_shoulder])
            )
            head_spans = [
                float(np.linalg.norm(points[a] - points[b])) for a, b in ring.pairs()
            ]
            # a pose that already starts wider than the shoulders keeps its width
            self.ring_width = max([shoulder_span] + head_spans)

    @classmethod
    def from_layout18(cls, joints: Sequence[PointLike] | ArrayF64) -> "SkeletonTree":
        """Build the standard 18-joint figure rooted at the core."""

        ring = Ring(
            head=SKELETON18_JOINTS["head"],
            left_shoulder=SKELETON18_JOINTS["left_shoulder"],
            right_shoulder=SKELETON18_JOINTS["right_shoulder"],
        )
        return cls(joints, SKELETON18_PARENTS, ring=ring)

    def __len__(self) -> int:
        return len(self._joints)

    @property
    def joints(self) -> ArrayF64:
        return self._joints.copy()

    @property
    def parents(self) -> Tuple[int, ...]:
        return self._parents

    @property
    def root(self) -> int:
        return self._root

    @property
    def bone_lengths(self) -> ArrayF64:
        return self._bone_lengths.copy()

    def children(self, index: int) -> Tuple[int, ...]:
        self._check_index(index)
        return tuple(self._children[index])

    def is_root(self, index: int) -> bool:
        return self._parents[index] == ROOT

    def move(self, index: int, delta: PointLike) -> None:
        """Displace joint ``index`` by ``delta`` and propagate to its subtree.

        Ring joints first have the outward radial part of ``delta`` clamped
        against each partner. The root translates the whole skeleton. Any
        other joint is moved, pulled back to its bone length from the parent,
        and the displacement it actually realised is carried down the
        subtree. If the parent pull lands a ring joint outside the ring
        again, the move is dropped and nothing changes. A head already at the
        ring boundary therefore cannot slide along it; when its bone to the
        core is longer than the ring allows in every other direction (the
        mirrored "Initial" figure), the head does not move at all.
        """

        self._check_index(index)
        step = as_point(delta)
        partners = self.ring.partners(index) if self.ring is not None else ()
        if partners:
            step = self._clamp_radial(index, step, partners)

        if self.is_root(index):
            self._joints += step
            return

        before = self._joints[index].copy()
        target = before + step
        pulled = rescale_link(
            self._joints[self._parents[index]], target, self._bone_lengths[index]
        )
        if pulled is not None:
            target = pulled
        if partners and not self._within_ring(target, partners):
            return

        self._joints[index] = target
        real_delta = target - before
        for child in self._children[index]:
            self._carry(child, real_delta)

    def ring_distances(self) -> Tuple[float, float]:
        """Current head-to-left-shoulder and head-to-right-shoulder distances."""

        if self.ring is None:
            raise RuntimeError("This skeleton has no ring constraint.")
        left, right = (
            float(np.linalg.norm(self._joints[a] - self._joints[b]))
            for a, b in self.ring.pairs()
        )
        return left, right

    def translate(self, delta: PointLike) -> None:
        self._joints += as_point(delta)

    def snapshot(self) -> ArrayF64:
        return self._joints.copy()

    def restore(self, snapshot: ArrayF64) -> None:
        points = as_points(snapshot)
        if points.shape != self._joints.shape:
            raise ValueError(
                f"Snapshot shape {points.shape} does not match skeleton {self._joints.shape}."
            )
        self._joints = points

    def _carry(self, index: int, delta: ArrayF64) -> None:
        before = self._joints[index].copy()
        moved = before + delta
        pulled = rescale_link(
            self._joints[self._parents[index]], moved, self._bone_lengths[index]
        )
        if pulled is not None:
            moved = pulled
        self._joints[index] = moved
        real_delta = moved - before
        for child in self._children[index]:
            self._carry(child, real_delta)

    def _clamp_radial(
        self, index: int, delta: ArrayF64, partners: Sequence[int]
    ) -> ArrayF64:
        position = self._joints[index]
        clamped = delta.copy()
        for partner in partners:
            offset = position - self._joints[partner]
            distance = float(np.linalg.norm(offset))
            if distance == 0.0:
                continue
            unit = offset / distance
            radial = float(np.dot(delta, unit))
            if radial <= 0.0:
                continue
            excess = distance + radial - self.ring_width
            if excess > 0.0:
                clamped -= unit * min(excess, radial)
        return clamped

    def _within_ring(self, position: ArrayF64, partners: Sequence[int]) -> bool:
        limit = self.ring_width + 1e-9
        return all(
            float(np.linalg.norm(position - self._joints[p])) <= limit for p in partners
        )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._joints):
            raise IndexError(
                f"Joint index {index} out of range for {len(self)} joints."
            )


def _validate_hierarchy(parents: Tuple[int, ...]) -> int:
    """Return the root index, raising ``ValueError`` unless ``parents`` is a tree."""

    count = len(parents)
    roots = [i for i, p in enumerate(parents) if p == ROOT]
    if len(roots) != 1:
        raise ValueError(f"Expected exactly one root, found {len(roots)}.")
    for i, parent in enumerate(parents):
        if parent != ROOT and not 0 <= parent < count:
            raise ValueError(f"Joint {i} has invalid parent {parent}.")
        if parent == i:
            raise ValueError(f"Joint {i} is its own parent.")

    for start in range(count):
        seen = set()
        node = start
        while node != ROOT:
            if node in seen:
                raise ValueError(f"Cycle in hierarchy through joint {start}.")
            seen.add(node)
            node = parents[node]
    return roots[0]
