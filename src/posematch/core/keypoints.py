from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

KEYPOINTS_SCHEMA = "posematch.keypoints.v0"

# OpenPose COCO body model, in output order.
COCO_BODY_PARTS: tuple[str, ...] = (
    "nose",
    "neck",
    "right_shoulder",
    "right_elbow",
    "right_wrist",
    "left_shoulder",
    "left_elbow",
    "left_wrist",
    "right_hip",
    "right_knee",
    "right_ankle",
    "left_hip",
    "left_knee",
    "left_ankle",
    "right_eye",
    "left_eye",
    "right_ear",
    "left_ear",
)


class KeypointValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Keypoint:
    label: str
    x: float
    y: float
    confidence: float = 1.0

    @property
    def detected(self) -> bool:
        # OpenPose reports missing parts as (0, 0, 0).
        return not (self.x == 0.0 and self.y == 0.0 and self.confidence == 0.0)


@dataclass(frozen=True)
class PoseKeypoints:
    keypoints: tuple[Keypoint, ...]

    def __len__(self) -> int:
        return len(self.keypoints)

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(kp.label for kp in self.keypoints)

    def points(self) -> np.ndarray:
        return np.array([[kp.x, kp.y] for kp in self.keypoints], dtype=np.float64).reshape(-1, 2)

    def by_label(self) -> dict[str, Keypoint]:
        return {kp.label: kp for kp in self.keypoints}


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise KeypointValidationError(msg)


def _finite(value: Any, what: str) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise KeypointValidationError(f"{what} must be a number, got {value!r}") from e
    _require(bool(np.isfinite(v)), f"{what} must be finite")
    return v


def parse_pose_keypoints(obj: Any) -> PoseKeypoints:
    """
    Parse the keypoints of one person.

    Accepted shapes:
    - list of {"label", "x", "y", "confidence"?} objects
    - OpenPose flat list [x0, y0, c0, x1, y1, c1, ...] labelled by COCO_BODY_PARTS
    """
    _require(isinstance(obj, list), "keypoints must be a list")
    if obj and all(not isinstance(v, dict) for v in obj):
        return _parse_flat(obj)

    kps: list[Keypoint] = []
    for i, item in enumerate(obj):
        _require(isinstance(item, dict), f"keypoint[{i}] must be an object")
        _require("label" in item, f"keypoint[{i}].label is required")
        _require("x" in item and "y" in item, f"keypoint[{i}].x and .y are required")
        conf = _finite(item.get("confidence", 1.0), f"keypoint[{i}].confidence")
        _require(0.0 <= conf <= 1.0, f"keypoint[{i}].confidence must be in [0,1]")
        kps.append(
            Keypoint(
                label=str(item["label"]),
                x=_finite(item["x"], f"keypoint[{i}].x"),
                y=_finite(item["y"], f"keypoint[{i}].y"),
                confidence=conf,
            )
        )

    labels = [kp.label for kp in kps]
    _require(len(set(labels)) == len(labels), "keypoint labels must be unique")
    return PoseKeypoints(keypoints=tuple(kps))


def _parse_flat(values: list[Any]) -> PoseKeypoints:
    _require(len(values) % 3 == 0, "flat keypoint list length must be a multiple of 3")
    n = len(values) // 3
    _require(n <= len(COCO_BODY_PARTS), f"flat keypoint list has {n} parts, COCO model has {len(COCO_BODY_PARTS)}")
    kps = []
    for i in range(n):
        x, y, c = values[3 * i : 3 * i + 3]
        label = COCO_BODY_PARTS[i]
        conf = _finite(c, f"{label}.confidence")
        _require(0.0 <= conf <= 1.0, f"{label}.confidence must be in [0,1]")
        kps.append(
            Keypoint(
                label=label,
                x=_finite(x, f"{label}.x"),
                y=_finite(y, f"{label}.y"),
                confidence=conf,
            )
        )
    return PoseKeypoints(keypoints=tuple(kps))


def parse_keypoint_response(data: dict[str, Any]) -> tuple[PoseKeypoints, PoseKeypoints]:
    """
    Parse a keypoint-detection response into (photo, reference) poses.

    person1 is the captured photo, person2 the stored reference pose.
    """
    _require(isinstance(data, dict), "keypoint response must be an object")
    _require(data.get("schema_version") == KEYPOINTS_SCHEMA, f"schema_version must be {KEYPOINTS_SCHEMA}")
    _require("person1" in data and "person2" in data, "person1 and person2 are required")
    return parse_pose_keypoints(data["person1"]), parse_pose_keypoints(data["person2"])


def load_keypoint_response(path: Path) -> tuple[PoseKeypoints, PoseKeypoints]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return parse_keypoint_response(data)


def pair_keypoints(
    a: PoseKeypoints, b: PoseKeypoints, *, min_confidence: float = 0.0
) -> tuple[tuple[str, ...], np.ndarray, np.ndarray]:
    """
    Match two poses by label.

    Keeps labels detected in both poses with confidence >= min_confidence on
    both sides, in the order of `a`. Returns (labels, points_a, points_b).
    """
    b_map = b.by_label()
    labels: list[str] = []
    pa: list[tuple[float, float]] = []
    pb: list[tuple[float, float]] = []
    for ka in a.keypoints:
        kb = b_map.get(ka.label)
        if kb is None or not (ka.detected and kb.detected):
            continue
        if ka.confidence < min_confidence or kb.confidence < min_confidence:
            continue
        labels.append(ka.label)
        pa.append((ka.x, ka.y))
        pb.append((kb.x, kb.y))
    points_a = np.asarray(pa, dtype=np.float64).reshape(-1, 2)
    points_b = np.asarray(pb, dtype=np.float64).reshape(-1, 2)
    return tuple(labels), points_a, points_b
