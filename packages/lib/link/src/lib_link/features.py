"""位相的特徴量 (linking number, 重心間距離) と最近傍姿勢の検索"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from scipy.spatial.distance import cdist

from .linking import linking_number
from .pose import Pose, PoseCollection
from .vector import ArrayF64, PointLike, as_points

__all__ = ["FeatureIndex", "NearestPose", "compute_features", "ensure_features"]


def compute_features(
    chain1: Sequence[PointLike] | ArrayF64, chain2: Sequence[PointLike] | ArrayF64
) -> ArrayF64:
    """2 本のチェーンから特徴量ベクトル [linking number, 重心間距離] を計算する。"""
    a = as_points(chain1)
    b = as_points(chain2)
    link = linking_number(a, b)
    centre_distance = float(np.linalg.norm(a.mean(axis=0) - b.mean(axis=0)))
    return np.array([link, centre_distance], dtype=np.float64)


def ensure_features(collection: PoseCollection) -> None:
    """特徴量が未計算の姿勢だけ計算して埋める。"""
    for pose in collection:
        if pose.features is None:
            pose.features = compute_features(pose.chain1, pose.chain2)


@dataclass(frozen=True)
class NearestPose:
    index: int
    pose: Pose
    distance: float


class FeatureIndex:
    """特徴量空間での線形探索による最近傍検索。

    数百件程度を想定しているので索引構造は持たない。
    距離が等しい場合は先に登録された姿勢を返す。
    """

    def __init__(self, collection: PoseCollection) -> None:
        ensure_features(collection)
        self._collection = collection
        if len(collection):
            self._matrix = np.vstack([pose.features for pose in collection])
        else:
            self._matrix = np.zeros((0, 2), dtype=np.float64)

    def __len__(self) -> int:
        return len(self._collection)

    @property
    def features(self) -> ArrayF64:
        return self._matrix.copy()

    def nearest(self, feature: Sequence[float] | ArrayF64) -> Optional[NearestPose]:
        """特徴量ベクトルに最も近い姿勢を返す。空なら None。"""
        if len(self._matrix) == 0:
            return None
        query = np.asarray(feature, dtype=np.float64).reshape(1, 2)
        distances = cdist(self._matrix, query)[:, 0]
        # argmin は最初の最小値を返すので登録順で決まる
        best = int(np.argmin(distances))
        return NearestPose(
            index=best,
            pose=self._collection[best],
            distance=float(distances[best]),
        )

    def nearest_to_chains(
        self,
        chain1: Sequence[PointLike] | ArrayF64,
        chain2: Sequence[PointLike] | ArrayF64,
    ) -> Optional[NearestPose]:
        return self.nearest(compute_features(chain1, chain2))
