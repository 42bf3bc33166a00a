import numpy as np
import pytest
from lib_link.codec import encode_positions
from lib_link.data import SKELETON18_JOINTS
from lib_link.loader import fallback_poses
from lib_link.pose import PoseCollection


@pytest.fixture
def t_pose() -> np.ndarray:
    """Standing 18-joint figure, arms out, rooted at the core."""

    left = {
        "toe": (-0.15, 0.0, 0.1),
        "ankle": (-0.15, 0.1, 0.0),
        "knee": (-0.15, 0.5, 0.0),
        "hip": (-0.15, 0.95, 0.0),
        "shoulder": (-0.2, 1.5, 0.0),
        "elbow": (-0.45, 1.5, 0.0),
        "wrist": (-0.7, 1.5, 0.0),
        "hand": (-0.8, 1.5, 0.0),
    }
    points = np.zeros((len(SKELETON18_JOINTS), 3))
    for part, (x, y, z) in left.items():
        points[SKELETON18_JOINTS[f"left_{part}"]] = (x, y, z)
        points[SKELETON18_JOINTS[f"right_{part}"]] = (-x, y, z)
    points[SKELETON18_JOINTS["core"]] = (0.0, 1.0, 0.0)
    points[SKELETON18_JOINTS["head"]] = (0.0, 1.75, 0.0)
    return points


@pytest.fixture
def fallback_collection() -> PoseCollection:
    return PoseCollection(fallback_poses())


def make_raw_pose(seed: int = 0) -> np.ndarray:
    """46 joints inside the encodable range, rounded to millimeters."""

    rng = np.random.default_rng(seed)
    points = rng.uniform(0.2, 3.6, size=(46, 3))
    points = np.round(points, 3)
    points[:, 0] -= 2.0
    points[:, 2] -= 2.0
    return points


def encoded_block(points: np.ndarray, indent: str = "    ") -> str:
    """Encode a pose and wrap it over four indented lines."""

    encoded = encode_positions(points)
    quarter = len(encoded) // 4
    lines = [encoded[i * quarter : (i + 1) * quarter] for i in range(3)]
    lines.append(encoded[3 * quarter :])
    return "\n".join(indent + line for line in lines)


@pytest.fixture
def raw_pose():
    return make_raw_pose


@pytest.fixture
def block():
    return encoded_block
