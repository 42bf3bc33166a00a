"""Interactive state for the two figures.

A :class:`PoseSession` owns one :class:`RigidChain` and one
:class:`SkeletonTree` per figure and exposes the operations a rendering or
input layer needs: load a named pose, move a joint by a world-space delta,
read the current linking value and look up the closest known pose. Drags are
bracketed by :meth:`PoseSession.begin_drag` / :meth:`PoseSession.end_drag`,
which restores the pre-drag snapshot in one step if the figures end up
overlapping.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple, Union, cast

import numpy as np

from .chain import RigidChain
from .codec import as_skeleton18, skeleton_from_chain
from .data import COLLISION_THRESHOLD
from .features import FeatureIndex, NearestPose, compute_features
from .linking import linking_number
from .loader import fallback_poses
from .pose import Pose, PoseCollection
from .skeleton import SkeletonTree
from .vector import ArrayF64, PointLike, as_point

__all__ = [
    "Edited",
    "Handle",
    "Loaded",
    "LoadedPose",
    "PoseSession",
    "PoseState",
    "figures_overlap",
]


class Handle(enum.Enum):
    CHAIN1 = "chain1"
    CHAIN2 = "chain2"
    SKELETON1 = "skeleton1"
    SKELETON2 = "skeleton2"

    @property
    def is_chain(self) -> bool:
        return self in (Handle.CHAIN1, Handle.CHAIN2)


@dataclass(frozen=True)
class Loaded:
    """The figures show pose ``index`` exactly as stored."""

    index: int


@dataclass(frozen=True)
class Edited:
    """The figures have been dragged since the last load."""


PoseState = Union[Loaded, Edited]
Structure = Union[RigidChain, SkeletonTree]


@dataclass(frozen=True)
class LoadedPose:
    chain1: ArrayF64
    chain2: ArrayF64
    skeleton1: ArrayF64
    skeleton2: ArrayF64


def figures_overlap(
    joints_a: ArrayF64, joints_b: ArrayF64, threshold: float = COLLISION_THRESHOLD
) -> bool:
    """True if any joint of ``joints_a`` is closer than ``threshold`` to one of ``joints_b``."""

    if len(joints_a) == 0 or len(joints_b) == 0:
        return False
    gaps = joints_a[:, np.newaxis, :] - joints_b[np.newaxis, :, :]
    return bool((np.einsum("ijk,ijk->ij", gaps, gaps) < threshold * threshold).any())


def _skeleton_for(skeleton: Optional[ArrayF64], chain: ArrayF64) -> ArrayF64:
    if skeleton is not None:
        return as_skeleton18(skeleton)
    return skeleton_from_chain(chain)


class PoseSession:
    def __init__(
        self,
        collection: PoseCollection,
        collision_threshold: float = COLLISION_THRESHOLD,
    ) -> None:
        self.collection = collection
        self.feature_index = FeatureIndex(collection)
        self.collision_threshold = collision_threshold
        self.state: PoseState = Edited()
        self._snapshot: Optional[Dict[Handle, Tuple[Structure, ArrayF64]]] = None
        self._snapshot_state: PoseState = self.state

        if len(collection):
            first = self._figures_of(collection[0])
        else:
            first = self._figures_of(fallback_poses()[0])
        self.chain1 = RigidChain(first.chain1)
        self.chain2 = RigidChain(first.chain2)
        self.skeleton1 = SkeletonTree.from_layout18(first.skeleton1)
        self.skeleton2 = SkeletonTree.from_layout18(first.skeleton2)
        if len(collection):
            self.state = Loaded(0)

    def structure(self, handle: Handle) -> Structure:
        return {
            Handle.CHAIN1: self.chain1,
            Handle.CHAIN2: self.chain2,
            Handle.SKELETON1: self.skeleton1,
            Handle.SKELETON2: self.skeleton2,
        }[handle]

    def load_pose(self, index: int) -> LoadedPose:
        """Replace both figures with pose ``index`` and re-measure all lengths."""

        if not 0 <= index < len(self.collection):
            raise IndexError(f"Pose index {index} out of range ({len(self.collection)} poses).")
        figures = self._figures_of(self.collection[index])
        self.chain1.reset(figures.chain1)
        self.chain2.reset(figures.chain2)
        self.skeleton1 = SkeletonTree.from_layout18(figures.skeleton1)
        self.skeleton2 = SkeletonTree.from_layout18(figures.skeleton2)
        self._snapshot = None
        self.state = Loaded(index)
        return figures

    def move_joint(self, handle: Handle, joint_index: int, world_delta: PointLike) -> None:
        """Move a joint of one structure by ``world_delta``, keeping its constraints.

        A chain move also rebuilds that figure's skeleton from the chain, so
        earlier skeleton edits of the same figure are replaced. Skeleton moves
        leave the chains untouched.
        """

        delta = as_point(world_delta)
        if handle.is_chain:
            chain = cast(RigidChain, self.structure(handle))
            chain.move(joint_index, chain.joint(joint_index) + delta)
            skeleton = SkeletonTree.from_layout18(skeleton_from_chain(chain.joints))
            if handle is Handle.CHAIN1:
                self.skeleton1 = skeleton
            else:
                self.skeleton2 = skeleton
        else:
            cast(SkeletonTree, self.structure(handle)).move(joint_index, delta)
        self.state = Edited()

    def current_linking(self) -> float:
        return linking_number(self.chain1.joints, self.chain2.joints)

    def current_features(self) -> ArrayF64:
        return compute_features(self.chain1.joints, self.chain2.joints)

    def nearest_pose(
        self,
        chain1: Optional[Sequence[PointLike] | ArrayF64] = None,
        chain2: Optional[Sequence[PointLike] | ArrayF64] = None,
    ) -> Optional[NearestPose]:
        """Closest known pose to the given chains (the live chains by default)."""

        live1 = self.chain1.joints if chain1 is None else chain1
        live2 = self.chain2.joints if chain2 is None else chain2
        return self.feature_index.nearest_to_chains(live1, live2)

    def begin_drag(self) -> None:
        # chain moves replace the skeleton objects, so the objects are kept too
        self._snapshot = {
            handle: (self.structure(handle), self.structure(handle).snapshot())
            for handle in Handle
        }
        self._snapshot_state = self.state

    def end_drag(self) -> bool:
        """Finish a drag; returns True if the figures overlapped and were reverted."""

        snapshot, self._snapshot = self._snapshot, None
        if snapshot is None:
            return False
        if not figures_overlap(
            self.chain1.joints, self.chain2.joints, self.collision_threshold
        ):
            return False
        for handle, (structure, joints) in snapshot.items():
            structure.restore(joints)
            setattr(self, handle.value, structure)
        self.state = self._snapshot_state
        return True

    @property
    def dragging(self) -> bool:
        return self._snapshot is not None

    @staticmethod
    def _figures_of(pose: Pose) -> LoadedPose:
        return LoadedPose(
            chain1=np.array(pose.chain1),
            chain2=np.array(pose.chain2),
            skeleton1=_skeleton_for(pose.skeleton1, pose.chain1),
            skeleton2=_skeleton_for(pose.skeleton2, pose.chain2),
        )