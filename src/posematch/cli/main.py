from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import numpy as np

from posematch.api.params_io import save_similarity
from posematch.api.pose_match import compare_poses
from posematch.config import MatchConfig, load_match_config
from posematch.core.keypoints import load_keypoint_response
from posematch.core.overlay import draw_keypoints, load_rgb
from posematch.core.similarity import as_points, estimate_similarity


def load_points(path: Path) -> np.ndarray:
    """Load a JSON list of [x, y] pairs."""
    data: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    return as_points(data, name=str(path))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="posematch")
    sub = parser.add_subparsers(dest="cmd", required=True)

    est = sub.add_parser("estimate", help="Fit the similarity transform mapping points A onto points B.")
    est.add_argument("points_a", type=Path, help="JSON list of [x,y] (source).")
    est.add_argument("points_b", type=Path, help="JSON list of [x,y] (target), matched by index.")
    est.add_argument("--out", type=Path, default=None, help="Write parameters JSON here.")

    match = sub.add_parser("match", help="Compare the photo pose against the reference pose of a keypoint response.")
    match.add_argument("keypoints", type=Path, help="Keypoint response JSON (person1=photo, person2=reference).")
    match.add_argument("--config", type=Path, default=None, help="Match config JSON.")
    match.add_argument("--out-json", type=Path, default=None, help="Write the match report here.")
    match.add_argument("--image", type=Path, default=None, help="Photo to draw the fitted reference pose on.")
    match.add_argument("--out-image", type=Path, default=None)

    draw = sub.add_parser("draw", help="Draw the keypoints of one pose on an image.")
    draw.add_argument("keypoints", type=Path)
    draw.add_argument("image", type=Path)
    draw.add_argument("--out", type=Path, required=True)
    draw.add_argument("--which", type=str, default="photo", choices=["photo", "reference"])
    draw.add_argument("--radius", type=float, default=30.0)
    draw.add_argument("--width", type=int, default=10)

    args = parser.parse_args(argv)

    if args.cmd == "estimate":
        params = estimate_similarity(load_points(args.points_a), load_points(args.points_b))
        print(params.summary())
        if args.out is not None:
            save_similarity(args.out, params)
            print(f"Wrote {args.out}")
        return 0

    if args.cmd == "match":
        if (args.image is None) != (args.out_image is None):
            parser.error("--image and --out-image must be given together")
        config = load_match_config(args.config) if args.config is not None else MatchConfig()
        photo, reference = load_keypoint_response(args.keypoints)
        result = compare_poses(photo, reference, config)
        print(
            f"match={result.is_match} keypoints={len(result.labels)} "
            f"normalized_error={result.normalized_error:.4f} {result.parameters.summary()}"
        )
        if args.out_json is not None:
            args.out_json.parent.mkdir(parents=True, exist_ok=True)
            args.out_json.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
            print(f"Wrote {args.out_json}")
        if args.image is not None:
            img = draw_keypoints(load_rgb(args.image), result.overlay)
            args.out_image.parent.mkdir(parents=True, exist_ok=True)
            img.save(args.out_image)
            print(f"Wrote {args.out_image}")
        return 0

    if args.cmd == "draw":
        photo, reference = load_keypoint_response(args.keypoints)
        pose = photo if args.which == "photo" else reference
        detected = [kp for kp in pose.keypoints if kp.detected]
        pts = np.array([[kp.x, kp.y] for kp in detected], dtype=np.float64).reshape(-1, 2)
        img = draw_keypoints(load_rgb(args.image), pts, radius=args.radius, width=args.width)
        args.out.parent.mkdir(parents=True, exist_ok=True)
        img.save(args.out)
        print(f"Wrote {args.out}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")
