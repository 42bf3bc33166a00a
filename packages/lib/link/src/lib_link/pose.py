"""姿勢レコードと姿勢コレクションの定義"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

import numpy as np

from .data import CHAIN_JOINTS, SKELETON14_JOINTS, SKELETON18_JOINTS
from .vector import ArrayF64, as_points

__all__ = ["Pose", "PoseCollection"]

_SKELETON_SIZES = (len(SKELETON14_JOINTS), len(SKELETON18_JOINTS))


def _frozen(points: Any, expected: Sequence[int], label: str) -> ArrayF64:
    arr = as_points(points)
    if len(arr) not in expected:
        raise ValueError(f"{label}: expected {expected} joints, got {len(arr)}.")
    arr.setflags(write=False)
    return arr


@dataclass(eq=False)
class Pose:
    """名前付きの姿勢 (両者の 6 関節チェーンと任意の骨格)。

    attributes:
            name: 姿勢名 (データベースの説明行を改行で連結したもの)
            chain1, chain2: (6, 3) の簡略チェーン
            skeleton1, skeleton2: (14, 3) または (18, 3) の骨格。無ければ None
            features: [linking number, 重心間距離]。未計算なら None
    """

    name: str
    chain1: ArrayF64
    chain2: ArrayF64
    skeleton1: Optional[ArrayF64] = None
    skeleton2: Optional[ArrayF64] = None
    features: Optional[ArrayF64] = None

    def __post_init__(self) -> None:
        chain_size = (len(CHAIN_JOINTS),)
        self.chain1 = _frozen(self.chain1, chain_size, "chain1")
        self.chain2 = _frozen(self.chain2, chain_size, "chain2")
        if self.skeleton1 is not None:
            self.skeleton1 = _frozen(self.skeleton1, _SKELETON_SIZES, "skeleton1")
        if self.skeleton2 is not None:
            self.skeleton2 = _frozen(self.skeleton2, _SKELETON_SIZES, "skeleton2")
        if self.features is not None:
            self.features = np.asarray(self.features, dtype=np.float64).reshape(2)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Pose":
        """事前計算ファイルの 1 レコード (dict) から Pose を作る。

        構造が不正なレコードは ValueError にまとめて送出する。
        """
        if not isinstance(record, Mapping):
            raise ValueError(f"Pose record must be an object, got {type(record).__name__}")
        try:
            return cls(
                name=str(record["name"]),
                chain1=_points_from_json(record["chain1"]),
                chain2=_points_from_json(record["chain2"]),
                skeleton1=_optional_points(record.get("skeleton1")),
                skeleton2=_optional_points(record.get("skeleton2")),
                features=record.get("features"),
            )
        except KeyError as e:
            raise ValueError(f"Pose record is missing field {e}") from e
        except TypeError as e:
            raise ValueError(f"Pose record {record.get('name')!r} is malformed: {e}") from e

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "name": self.name,
            "chain1": _points_to_json(self.chain1),
            "chain2": _points_to_json(self.chain2),
        }
        if self.skeleton1 is not None:
            record["skeleton1"] = _points_to_json(self.skeleton1)
        if self.skeleton2 is not None:
            record["skeleton2"] = _points_to_json(self.skeleton2)
        if self.features is not None:
            record["features"] = [float(v) for v in self.features]
        return record

    @property
    def display_name(self) -> str:
        return self.name.replace("\n", " / ")


def _points_from_json(points: Any) -> ArrayF64:
    # {x, y, z} 形式と [x, y, z] 形式の両方を受け付ける
    rows = []
    for p in points:
        if isinstance(p, Mapping):
            rows.append((float(p["x"]), float(p["y"]), float(p["z"])))
        else:
            rows.append(tuple(float(v) for v in p))
    return as_points(rows)


def _optional_points(points: Any) -> Optional[ArrayF64]:
    if points is None:
        return None
    return _points_from_json(points)


def _points_to_json(points: ArrayF64) -> List[Dict[str, float]]:
    return [{"x": float(x), "y": float(y), "z": float(z)} for x, y, z in points]


class PoseCollection:
    """読み込み後は読み取り専用の、順序付き姿勢リスト。

    特徴量の後埋め (features.ensure_features) だけが例外的に各 Pose を書き換える。
    """

    def __init__(self, poses: Optional[Sequence[Pose]] = None) -> None:
        self._poses: List[Pose] = list(poses or [])

    def __len__(self) -> int:
        return len(self._poses)

    def __iter__(self) -> Iterator[Pose]:
        return iter(self._poses)

    def __getitem__(self, index: int) -> Pose:
        return self._poses[index]

    def __bool__(self) -> bool:
        return bool(self._poses)

    def names(self) -> List[str]:
        return [pose.display_name for pose in self._poses]

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]]) -> "PoseCollection":
        return cls([Pose.from_record(r) for r in records])

    def to_records(self) -> List[Dict[str, Any]]:
        return [pose.to_record() for pose in self._poses]

    @classmethod
    def load_json(cls, path: Union[str, Path]) -> "PoseCollection":
        """事前計算済みの姿勢ファイル (JSON 配列) を読み込む。"""
        with open(path, encoding="utf-8") as f:
            records = json.load(f)
        if not isinstance(records, list):
            raise ValueError(f"{path}: expected a JSON array of pose records")
        return cls.from_records(records)

    def save_json(self, path: Union[str, Path]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_records(), f, ensure_ascii=False, indent=1)
