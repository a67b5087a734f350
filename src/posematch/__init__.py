from posematch.api import PoseMatchResult, compare_poses, load_similarity, save_similarity
from posematch.core.similarity import (
    DegenerateInputError,
    LengthMismatchError,
    NonFiniteInputError,
    SimilarityError,
    SimilarityParameters,
    alignment_error,
    apply_similarity,
    estimate_similarity,
)

__all__ = [
    "SimilarityParameters",
    "estimate_similarity",
    "apply_similarity",
    "alignment_error",
    "SimilarityError",
    "DegenerateInputError",
    "LengthMismatchError",
    "NonFiniteInputError",
    "PoseMatchResult",
    "compare_poses",
    "load_similarity",
    "save_similarity",
]
