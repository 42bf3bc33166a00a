"""Pose collection loading with graceful fallback.

The collection comes from the first tier that yields poses:

1. a precomputed JSON file of pose records,
2. the raw pose database fetched over HTTP and decoded,
3. a few hand-authored poses, so the viewer always has something to show.

Each tier returns a :class:`PoseCollection` or ``None`` to fall through.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

import requests

from .codec import skeleton_from_chain
from .data import DATABASE_POSE_LIMIT, DATABASE_URL
from .database import parse_database
from .features import ensure_features
from .pose import Pose, PoseCollection

__all__ = [
    "LoadResult",
    "LoaderConfig",
    "fallback_poses",
    "fetch_database_text",
    "load_pose_collection",
]


@dataclass
class LoaderConfig:
    """Where to look for poses.

    precomputed_path: JSON file of pose records; skipped when ``None``.
    url: raw database location; the network tier is skipped when ``None``.
    limit: cap on decoded poses from the database.
    timeout: HTTP timeout in seconds.
    """

    precomputed_path: Optional[Path] = None
    url: Optional[str] = DATABASE_URL
    limit: int = DATABASE_POSE_LIMIT
    timeout: float = 10.0


@dataclass
class LoadResult:
    collection: PoseCollection
    source: str


def fetch_database_text(url: str, timeout: float = 10.0) -> str:
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text


def _from_precomputed(config: LoaderConfig) -> Optional[PoseCollection]:
    if config.precomputed_path is None:
        return None
    try:
        collection = PoseCollection.load_json(config.precomputed_path)
    except (OSError, ValueError) as e:
        print(
            f"Precomputed poses unavailable ({config.precomputed_path}): {e}",
            file=sys.stderr,
        )
        return None
    return collection or None


def _from_network(config: LoaderConfig) -> Optional[PoseCollection]:
    if config.url is None:
        return None
    try:
        text = fetch_database_text(config.url, timeout=config.timeout)
    except requests.RequestException as e:
        print(f"Failed to load pose database: {e}", file=sys.stderr)
        return None
    collection = parse_database(text, limit=config.limit)
    if not collection:
        print("Pose database contained no decodable poses", file=sys.stderr)
        return None
    return collection


def _from_fallback(config: LoaderConfig) -> Optional[PoseCollection]:
    return PoseCollection(fallback_poses())


_TIERS: Sequence[Tuple[str, Callable[[LoaderConfig], Optional[PoseCollection]]]] = (
    ("precomputed", _from_precomputed),
    ("network", _from_network),
    ("fallback", _from_fallback),
)


def load_pose_collection(config: Optional[LoaderConfig] = None) -> LoadResult:
    """Return the first non-empty collection from the configured tiers."""

    config = config or LoaderConfig()
    for source, tier in _TIERS:
        collection = tier(config)
        if collection is None:
            continue
        ensure_features(collection)
        print(f"Loader: {len(collection)} poses from {source}")
        return LoadResult(collection=collection, source=source)
    raise RuntimeError("No pose source produced a collection.")


def fallback_poses() -> list[Pose]:
    """Hand-authored poses: side by side, crossing diagonals and a twist."""

    base = [
        (
            "Initial",
            [(-1, 0, -1), (-1, 1, -1), (-1, 2, -1), (-1, 3, -1), (-1, 3.5, -1), (-1, 4, -1)],
            [(1, 0, 1), (1, 1, 1), (1, 2, 1), (1, 3, 1), (1, 3.5, 1), (1, 4, 1)],
        ),
        (
            "Cross",
            [(-2, 0, -1), (-1, 1, -1), (0, 2, -1), (1, 3, -1), (1.5, 3.5, -1), (2, 4, -1)],
            [(2, 0, 1), (1, 1, 1), (0, 2, 1), (-1, 3, 1), (-1.5, 3.5, 1), (-2, 4, 1)],
        ),
        (
            "Twist",
            [
                (-1, 0, 0),
                (-0.5, 1, 0.5),
                (0, 2, 1),
                (0.5, 3, 0.5),
                (0.75, 3.5, 0.25),
                (1, 4, 0),
            ],
            [
                (1, 0, 0),
                (0.5, 1, -0.5),
                (0, 2, -1),
                (-0.5, 3, -0.5),
                (-0.75, 3.5, -0.25),
                (-1, 4, 0),
            ],
        ),
    ]
    return [
        Pose(
            name=name,
            chain1=chain1,
            chain2=chain2,
            skeleton1=skeleton_from_chain(chain1),
            skeleton2=skeleton_from_chain(chain2),
        )
        for name, chain1, chain2 in base
    ]
