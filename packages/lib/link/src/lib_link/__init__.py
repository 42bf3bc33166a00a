from .chain import RigidChain
from .codec import PoseDecodeError, decode_positions, derive_chain, derive_skeleton18
from .database import parse_database
from .features import FeatureIndex, NearestPose, compute_features
from .linking import linking_number
from .loader import LoaderConfig, LoadResult, load_pose_collection
from .pose import Pose, PoseCollection
from .session import Edited, Handle, Loaded, LoadedPose, PoseSession
from .skeleton import Ring, SkeletonTree
from .util_3d import FigureVisuals, create_figure_batch, dispose_figure_visuals
from .vector import Vector3

__all__ = [
    "Vector3",
    "RigidChain",
    "SkeletonTree",
    "Ring",
    "linking_number",
    "PoseDecodeError",
    "decode_positions",
    "derive_chain",
    "derive_skeleton18",
    "Pose",
    "PoseCollection",
    "parse_database",
    "compute_features",
    "FeatureIndex",
    "NearestPose",
    "LoaderConfig",
    "LoadResult",
    "load_pose_collection",
    "PoseSession",
    "Handle",
    "Loaded",
    "Edited",
    "LoadedPose",
    "FigureVisuals",
    "create_figure_batch",
    "dispose_figure_visuals",
]
