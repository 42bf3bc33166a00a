"""Base-62 fixed-point pose strings and the reduced skeletons derived from them.

An encoded pose is a run of two-symbol tokens, one token per coordinate. The
value of a token is ``(v0 * 62 + v1) / 1000`` where ``v`` is the position of
the symbol in ``a-z A-Z 0-9``. X and Z are then shifted by -2 to center the
figure. Whitespace between symbols is ignored. A pose holds 23 joints for each
of the two players, in the fixed order of :data:`lib_link.data.RAW_JOINTS`.
"""

from __future__ import annotations

from typing import Iterator, Sequence, Tuple

import numpy as np

from .data import (
    ANKLE_BLEND,
    BASE62_ALPHABET,
    BASE62_VALUES,
    CHAIN_GROUPS,
    COORDINATE_OFFSET,
    COORDINATE_SCALE,
    PLAYER_COUNT,
    RAW_JOINT_COUNT,
    RAW_JOINTS,
    SKELETON14_JOINTS,
    SKELETON14_SOURCES,
    SKELETON18_JOINTS,
    WRIST_BLEND,
)
from .vector import ArrayF64, PointLike, as_points

__all__ = [
    "PoseDecodeError",
    "as_skeleton18",
    "decode_positions",
    "derive_chain",
    "derive_skeleton14",
    "derive_skeleton18",
    "encode_positions",
    "skeleton_from_chain",
    "split_players",
    "upgrade_skeleton14",
]

BASE = len(BASE62_ALPHABET)
MAX_TOKEN = BASE * BASE - 1
POSE_JOINT_COUNT = RAW_JOINT_COUNT * PLAYER_COUNT

_CHAIN_INDICES = tuple(
    tuple(RAW_JOINTS[name] for name in group) for group in CHAIN_GROUPS
)
_SKELETON18_INDICES = tuple(RAW_JOINTS[name] for name in SKELETON18_JOINTS)
_SKELETON14_INDICES = tuple(
    RAW_JOINTS[SKELETON14_SOURCES[name]] for name in SKELETON14_JOINTS
)


class PoseDecodeError(ValueError):
    """Raised when an encoded pose string is truncated or malformed."""


def _symbols(text: str) -> Iterator[Tuple[int, str]]:
    for position, symbol in enumerate(text):
        if not symbol.isspace():
            yield position, symbol


def decode_positions(text: str, joint_count: int = POSE_JOINT_COUNT) -> ArrayF64:
    """Decode ``joint_count`` joints from ``text`` into an (N, 3) array.

    Characters after the last requested joint are ignored.

    Raises:
            PoseDecodeError: the input ends early or holds a symbol outside
                the base-62 alphabet.
    """

    values = np.empty(joint_count * 3, dtype=np.float64)
    symbols = _symbols(text)
    for slot in range(joint_count * 3):
        digits = []
        for _ in range(2):
            try:
                position, symbol = next(symbols)
            except StopIteration:
                raise PoseDecodeError(
                    f"Input exhausted after {slot // 3} of {joint_count} joints."
                ) from None
            value = BASE62_VALUES.get(symbol)
            if value is None:
                raise PoseDecodeError(
                    f"Invalid symbol {symbol!r} at offset {position}."
                )
            digits.append(value)
        values[slot] = (digits[0] * BASE + digits[1]) / COORDINATE_SCALE

    positions = values.reshape(joint_count, 3)
    positions += np.asarray(COORDINATE_OFFSET, dtype=np.float64)
    return positions


def encode_positions(points: Sequence[PointLike] | ArrayF64) -> str:
    """Encode joints back into the base-62 format (millimeter rounding)."""

    coords = as_points(points) - np.asarray(COORDINATE_OFFSET, dtype=np.float64)
    tokens = np.rint(coords.reshape(-1) * COORDINATE_SCALE).astype(np.int64)
    if tokens.size and (tokens.min() < 0 or tokens.max() > MAX_TOKEN):
        raise PoseDecodeError("Coordinates fall outside the encodable range.")
    return "".join(
        BASE62_ALPHABET[token // BASE] + BASE62_ALPHABET[token % BASE]
        for token in tokens.tolist()
    )


def split_players(positions: ArrayF64) -> Tuple[ArrayF64, ArrayF64]:
    """Split a decoded pose into the two players' 23-joint arrays."""

    if positions.shape != (POSE_JOINT_COUNT, 3):
        raise ValueError(
            f"Expected {POSE_JOINT_COUNT} joints, got shape {positions.shape}."
        )
    return (
        positions[:RAW_JOINT_COUNT].copy(),
        positions[RAW_JOINT_COUNT:].copy(),
    )


def _check_raw(joints: Sequence[PointLike] | ArrayF64) -> ArrayF64:
    points = as_points(joints)
    if len(points) != RAW_JOINT_COUNT:
        raise ValueError(f"Expected {RAW_JOINT_COUNT} joints, got {len(points)}.")
    return points


def derive_chain(joints: Sequence[PointLike] | ArrayF64) -> ArrayF64:
    """Average symmetric joint groups into the 6-joint simplified chain."""

    points = _check_raw(joints)
    return np.array([points[list(group)].mean(axis=0) for group in _CHAIN_INDICES])


def derive_skeleton18(joints: Sequence[PointLike] | ArrayF64) -> ArrayF64:
    return _check_raw(joints)[list(_SKELETON18_INDICES)]


def derive_skeleton14(joints: Sequence[PointLike] | ArrayF64) -> ArrayF64:
    return _check_raw(joints)[list(_SKELETON14_INDICES)]


def _blend(a: ArrayF64, b: ArrayF64, weights: Tuple[float, float]) -> ArrayF64:
    return a * weights[0] + b * weights[1]


def upgrade_skeleton14(
    points: Sequence[PointLike] | ArrayF64,
    ankle_blend: Tuple[float, float] = ANKLE_BLEND,
    wrist_blend: Tuple[float, float] = WRIST_BLEND,
) -> ArrayF64:
    """Rebuild the 18-joint layout from the older 14-joint one.

    Ankles are synthesised as ``ankle_blend`` of (foot, knee) and wrists as
    ``wrist_blend`` of (elbow, hand). The result is an approximation.
    """

    sk = as_points(points)
    if len(sk) != len(SKELETON14_JOINTS):
        raise ValueError(f"Expected {len(SKELETON14_JOINTS)} joints, got {len(sk)}.")
    j = SKELETON14_JOINTS

    out = np.zeros((len(SKELETON18_JOINTS), 3), dtype=np.float64)
    for name, index in SKELETON18_JOINTS.items():
        if name in j:
            out[index] = sk[j[name]]
    out[SKELETON18_JOINTS["left_toe"]] = sk[j["left_foot"]]
    out[SKELETON18_JOINTS["right_toe"]] = sk[j["right_foot"]]
    for side in ("left", "right"):
        out[SKELETON18_JOINTS[f"{side}_ankle"]] = _blend(
            sk[j[f"{side}_foot"]], sk[j[f"{side}_knee"]], ankle_blend
        )
        out[SKELETON18_JOINTS[f"{side}_wrist"]] = _blend(
            sk[j[f"{side}_elbow"]], sk[j[f"{side}_hand"]], wrist_blend
        )
    return out


def as_skeleton18(points: Sequence[PointLike] | ArrayF64) -> ArrayF64:
    """Return an 18-joint skeleton from either a 14- or an 18-joint one."""

    sk = as_points(points)
    if len(sk) == len(SKELETON18_JOINTS):
        return sk
    if len(sk) == len(SKELETON14_JOINTS):
        return upgrade_skeleton14(sk)
    raise ValueError(f"Unsupported skeleton with {len(sk)} joints.")


def skeleton_from_chain(chain: Sequence[PointLike] | ArrayF64) -> ArrayF64:
    """Approximate an 18-joint figure from a 6-joint simplified chain.

    The chain is treated as the left side; elbow, wrist and ankle are
    interpolated and the right side is mirrored across the hip in X.
    """

    points = as_points(chain)
    if len(points) != len(CHAIN_GROUPS):
        raise ValueError(f"Expected {len(CHAIN_GROUPS)} joints, got {len(points)}.")
    foot, knee, hip, shoulder, hand, head = points

    elbow = 0.5 * shoulder + 0.5 * hand
    wrist = _blend(elbow, hand, WRIST_BLEND)
    ankle = _blend(foot, knee, ANKLE_BLEND)

    def mirror(p: ArrayF64) -> ArrayF64:
        return np.array([2.0 * hip[0] - p[0], p[1], p[2]])

    left = {
        "toe": foot,
        "ankle": ankle,
        "knee": knee,
        "hip": hip,
        "shoulder": shoulder,
        "elbow": elbow,
        "wrist": wrist,
        "hand": hand,
    }
    out = np.zeros((len(SKELETON18_JOINTS), 3), dtype=np.float64)
    for part, position in left.items():
        out[SKELETON18_JOINTS[f"left_{part}"]] = position
        out[SKELETON18_JOINTS[f"right_{part}"]] = mirror(position)
    out[SKELETON18_JOINTS["core"]] = hip
    out[SKELETON18_JOINTS["head"]] = head
    return out
