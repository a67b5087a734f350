from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from posematch.config import MatchConfig
from posematch.core.keypoints import PoseKeypoints, pair_keypoints
from posematch.core.similarity import (
    DegenerateInputError,
    SimilarityParameters,
    alignment_error,
    apply_similarity,
    estimate_similarity,
)


class InsufficientKeypointsError(DegenerateInputError):
    pass


@dataclass(frozen=True)
class PoseMatchResult:
    """
    Outcome of fitting a reference pose onto a photographed pose.

    `overlay` holds the reference keypoints mapped into photo coordinates, in
    the order of `labels`. `error` is the summed point distance, so it grows
    with the number of pairs; `normalized_error` divides the mean distance by
    the RMS spread of the photo keypoints and is the quantity thresholded.
    """

    labels: tuple[str, ...]
    parameters: SimilarityParameters
    overlay: np.ndarray  # (N,2)
    error: float
    mean_error: float
    normalized_error: float
    rotation_deg: float
    is_match: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "labels": list(self.labels),
            "parameters": self.parameters.to_dict(),
            "scale": self.parameters.scale(),
            "rotation_deg": float(self.rotation_deg),
            "overlay_px": np.asarray(self.overlay, dtype=np.float64).tolist(),
            "error_px": float(self.error),
            "mean_error_px": float(self.mean_error),
            "normalized_error": float(self.normalized_error),
            "is_match": bool(self.is_match),
        }


def _rms_spread(points: np.ndarray) -> float:
    centered = points - points.mean(axis=0, keepdims=True)
    return float(np.sqrt(np.mean(np.sum(centered * centered, axis=1))))


def compare_poses(
    photo: PoseKeypoints,
    reference: PoseKeypoints,
    config: MatchConfig | None = None,
) -> PoseMatchResult:
    if config is None:
        config = MatchConfig()

    labels, uv_photo, uv_ref = pair_keypoints(photo, reference, min_confidence=config.min_confidence)
    if len(labels) < config.min_keypoints:
        raise InsufficientKeypointsError(
            f"only {len(labels)} keypoints shared by both poses (need {config.min_keypoints})"
        )

    params = estimate_similarity(uv_ref, uv_photo)
    overlay = apply_similarity(uv_ref, params)
    err = alignment_error(overlay, uv_photo)
    mean_err = err / len(labels)
    # Nonzero: estimate_similarity rejects a photo set without spread.
    norm_err = mean_err / _rms_spread(uv_photo)

    if config.rotation == "unsigned":
        rot = params.rotation_degrees_unsigned()
    else:
        rot = params.rotation_degrees()

    return PoseMatchResult(
        labels=labels,
        parameters=params,
        overlay=overlay,
        error=err,
        mean_error=mean_err,
        normalized_error=norm_err,
        rotation_deg=rot,
        is_match=bool(norm_err <= config.max_normalized_error),
    )
