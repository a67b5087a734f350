from posematch.api.params_io import load_similarity, save_similarity
from posematch.api.pose_match import InsufficientKeypointsError, PoseMatchResult, compare_poses

__all__ = [
    "PoseMatchResult",
    "InsufficientKeypointsError",
    "compare_poses",
    "load_similarity",
    "save_similarity",
]
