from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from posematch.core.similarity import SimilarityParameters

SIMILARITY_SCHEMA = "posematch.similarity.v0"


def save_similarity(path: Path, params: SimilarityParameters) -> Path:
    """
    Save similarity parameters as JSON.

    The derived scale/rotation are written for readability only; loading uses
    (tx, ty, sc, ss).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    meta: dict[str, Any] = {
        "schema_version": SIMILARITY_SCHEMA,
        **params.to_dict(),
        "derived": {"scale": params.scale(), "rotation_deg": params.rotation_degrees()},
    }
    path.write_text(json.dumps(meta, indent=2, sort_keys=True), encoding="utf-8")
    return path


def load_similarity(path: Path) -> SimilarityParameters:
    meta = json.loads(Path(path).read_text(encoding="utf-8"))
    if str(meta.get("schema_version")) != SIMILARITY_SCHEMA:
        raise ValueError("unsupported similarity schema")
    return SimilarityParameters.from_dict(meta)
