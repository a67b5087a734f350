from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw

from posematch.core.similarity import PointsLike, as_points


def load_rgb(path: str | Path) -> Image.Image:
    with Image.open(Path(path)) as im:
        return im.convert("RGB")


def draw_keypoints(
    image: Image.Image | np.ndarray,
    points: PointsLike,
    *,
    radius: float = 30.0,
    width: int = 10,
    color: tuple[int, int, int] = (255, 0, 0),
) -> Image.Image:
    """
    Draw a circle outline around each keypoint on an RGB copy of `image`.

    Points outside the image are clipped by Pillow. The input is not modified.
    """
    if isinstance(image, np.ndarray):
        base = Image.fromarray(np.asarray(image, dtype=np.uint8))
    else:
        base = image
    out = base.convert("RGB")  # always a copy
    pts = as_points(points)
    if radius <= 0:
        raise ValueError("radius must be > 0")

    draw = ImageDraw.Draw(out)
    for x, y in pts:
        box = (x - radius, y - radius, x + radius, y + radius)
        draw.ellipse(box, outline=color, width=int(width))
    return out
