from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

CONFIG_SCHEMA = "posematch.config.v0"

RotationConvention = Literal["signed", "unsigned"]


class ConfigValidationError(ValueError):
    pass


@dataclass(frozen=True)
class MatchConfig:
    min_confidence: float = 0.1
    min_keypoints: int = 3
    max_normalized_error: float = 0.15
    rotation: RotationConvention = "signed"


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigValidationError(msg)


def load_match_config(path: Path) -> MatchConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    data = json.loads(p.read_text(encoding="utf-8"))
    return parse_match_config(data)


def _number(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    _require(not isinstance(value, bool), f"{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"{key} must be a number, got {value!r}") from e


def parse_match_config(data: dict[str, Any]) -> MatchConfig:
    _require(isinstance(data, dict), "config must be an object")
    _require(data.get("schema_version") == CONFIG_SCHEMA, f"schema_version must be {CONFIG_SCHEMA}")
    defaults = MatchConfig()

    min_confidence = _number(data, "min_confidence", defaults.min_confidence)
    _require(0.0 <= min_confidence <= 1.0, "min_confidence must be in [0,1]")

    min_keypoints = data.get("min_keypoints", defaults.min_keypoints)
    _require(
        isinstance(min_keypoints, int) and not isinstance(min_keypoints, bool),
        f"min_keypoints must be an integer, got {min_keypoints!r}",
    )
    _require(min_keypoints >= 2, "min_keypoints must be >= 2")

    max_err = _number(data, "max_normalized_error", defaults.max_normalized_error)
    _require(max_err > 0.0, "max_normalized_error must be > 0")

    rotation = data.get("rotation", defaults.rotation)
    _require(rotation in ("signed", "unsigned"), "rotation must be 'signed' or 'unsigned'")

    return MatchConfig(
        min_confidence=min_confidence,
        min_keypoints=min_keypoints,
        max_normalized_error=max_err,
        rotation=rotation,  # type: ignore[arg-type]
    )
