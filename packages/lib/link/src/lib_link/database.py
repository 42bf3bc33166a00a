"""姿勢データベース (テキスト形式) の読み込み

形式:
        インデントの無い行は姿勢名の行 (``tags:`` で始まる行は無視)。
        続くインデント付きの行を連結したものが符号化された姿勢。
        インデント付きの行の後に現れたインデント無しの行で、直前の姿勢が確定する。
        空行による区切りは存在しない。
"""

from __future__ import annotations

import sys
from typing import List, Optional

from .codec import (
    PoseDecodeError,
    decode_positions,
    derive_chain,
    derive_skeleton18,
    split_players,
)
from .data import TAG_PREFIX
from .pose import Pose, PoseCollection

__all__ = ["decode_pose", "parse_database"]


def decode_pose(name: str, encoded: str) -> Pose:
    """符号化文字列 1 件を Pose に変換する。

    失敗時は PoseDecodeError を送出する。
    """
    positions = decode_positions(encoded)
    player1, player2 = split_players(positions)
    return Pose(
        name=name,
        chain1=derive_chain(player1),
        chain2=derive_chain(player2),
        skeleton1=derive_skeleton18(player1),
        skeleton2=derive_skeleton18(player2),
    )


def parse_database(text: str, limit: Optional[int] = None) -> PoseCollection:
    """データベース全文から最大 ``limit`` 件の姿勢を取り出す。

    復号に失敗した姿勢は警告を表示して読み飛ばし、残りの読み込みは続ける。
    """
    poses: List[Pose] = []
    name_lines: List[str] = []
    encoded_lines: List[str] = []

    def finalize() -> None:
        name = "\n".join(name_lines) or f"Pose {len(poses) + 1}"
        encoded = "".join(line.strip() for line in encoded_lines)
        try:
            poses.append(decode_pose(name, encoded))
        except PoseDecodeError as e:
            print(
                f"Failed to decode position for entry {name!r}: {e}",
                file=sys.stderr,
            )
        name_lines.clear()
        encoded_lines.clear()

    def full() -> bool:
        return limit is not None and len(poses) >= limit

    for line in text.splitlines():
        if full():
            break
        if not line.strip():
            continue
        if line[0].isspace():
            encoded_lines.append(line)
            continue
        stripped = line.strip()
        if stripped.startswith(TAG_PREFIX):
            continue
        if encoded_lines:
            finalize()
            if full():
                break
        name_lines.append(stripped)

    if encoded_lines and not full():
        finalize()

    return PoseCollection(poses)
