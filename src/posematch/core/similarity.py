from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

# Relative threshold on det / (k * sum|p|^2) below which a point set has no spread.
SPREAD_RTOL = 1e-12

PointsLike = np.ndarray | Sequence[Sequence[float]]


class SimilarityError(ValueError):
    pass


class DegenerateInputError(SimilarityError):
    pass


class LengthMismatchError(SimilarityError):
    pass


class NonFiniteInputError(SimilarityError):
    pass


def as_points(points: PointsLike, name: str = "points", *, check_finite: bool = True) -> np.ndarray:
    """
    Normalise an array-like of (x, y) pairs to a fresh float64 array of shape (N, 2).

    Raises NonFiniteInputError if any coordinate is NaN or infinite.
    """
    arr = np.array(points, dtype=np.float64)
    if arr.ndim == 1 and arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"{name} must have shape (N,2), got {arr.shape}")
    if check_finite and not np.all(np.isfinite(arr)):
        raise NonFiniteInputError(f"{name} contains non-finite coordinates")
    return arr


def _matched_pair(points_a: PointsLike, points_b: PointsLike) -> tuple[np.ndarray, np.ndarray]:
    a = as_points(points_a, "points_a", check_finite=False)
    b = as_points(points_b, "points_b", check_finite=False)
    if a.shape[0] != b.shape[0]:
        raise LengthMismatchError(f"point sequences differ in length: {a.shape[0]} != {b.shape[0]}")
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        raise NonFiniteInputError("point sequences contain non-finite coordinates")
    return a, b


@dataclass(frozen=True)
class SimilarityParameters:
    """
    2D similarity transform z -> (tx + i*ty) + z*(sc + i*ss).

    (sc, ss) = scale * (cos(theta), sin(theta)) encodes rotation and uniform
    scale as a single complex factor.
    """

    tx: float
    ty: float
    sc: float
    ss: float

    def __post_init__(self) -> None:
        for name in ("tx", "ty", "sc", "ss"):
            v = float(getattr(self, name))
            if not np.isfinite(v):
                raise NonFiniteInputError(f"{name} must be finite, got {v}")
            object.__setattr__(self, name, v)
        if self.sc == 0.0 and self.ss == 0.0:
            raise DegenerateInputError("similarity scale must be nonzero")

    @property
    def translation_x(self) -> float:
        return self.tx

    @property
    def translation_y(self) -> float:
        return self.ty

    def scale(self) -> float:
        return float(np.hypot(self.sc, self.ss))

    def rotation_degrees(self) -> float:
        """Signed rotation angle in (-180, 180]."""
        # +0.0 folds -0.0 so a half turn reports 180, not -180.
        return float(np.degrees(np.arctan2(self.ss + 0.0, self.sc)))

    def rotation_degrees_unsigned(self) -> float:
        """
        Legacy rotation angle in [0, 180] from arccos(sc / scale).

        The sign of the rotation is lost: +theta and -theta report the same value.
        """
        c = np.clip(self.sc / self.scale(), -1.0, 1.0)
        return float(np.degrees(np.arccos(c)))

    def matrix(self) -> np.ndarray:
        """3x3 homogeneous matrix acting on column vectors (x, y, 1)."""
        return np.array(
            [[self.sc, -self.ss, self.tx], [self.ss, self.sc, self.ty], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )

    def to_dict(self) -> dict[str, float]:
        return {"tx": self.tx, "ty": self.ty, "sc": self.sc, "ss": self.ss}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimilarityParameters":
        try:
            return cls(tx=float(data["tx"]), ty=float(data["ty"]), sc=float(data["sc"]), ss=float(data["ss"]))
        except KeyError as e:
            raise ValueError(f"similarity parameters missing key: {e}") from e

    def summary(self) -> str:
        return (
            f"tx={self.tx:.3f} ty={self.ty:.3f} scale={self.scale():.6f} "
            f"rot={self.rotation_degrees():.3f}°"
        )


def _has_spread(k: int, sx: float, sy: float, ssq: float) -> bool:
    det = k * ssq - sx**2 - sy**2
    return det > SPREAD_RTOL * k * ssq


def estimate_similarity(points_a: PointsLike, points_b: PointsLike) -> SimilarityParameters:
    """
    Closed-form least-squares similarity transform mapping points_a onto points_b.

    Points are matched by index. Minimises sum_i |T(a_i) - b_i|^2 by solving the
    4x4 normal equations in (tx, ty, sc, ss), which reduce to sums over the
    correspondences (Chang et al., Pattern Recognition 30(2), 1997).
    """
    a, b = _matched_pair(points_a, points_b)
    k = int(a.shape[0])
    if k < 2:
        raise DegenerateInputError(f"need at least 2 correspondences, got {k}")

    xa, ya = a[:, 0], a[:, 1]
    xb, yb = b[:, 0], b[:, 1]
    m_xa = float(np.sum(xa))
    m_ya = float(np.sum(ya))
    m_xb = float(np.sum(xb))
    m_yb = float(np.sum(yb))
    s_dot = float(np.sum(xa * xb + ya * yb))
    s_cross = float(np.sum(xa * yb - ya * xb))
    s_sq_a = float(np.sum(xa**2 + ya**2))
    s_sq_b = float(np.sum(xb**2 + yb**2))

    if not _has_spread(k, m_xa, m_ya, s_sq_a):
        raise DegenerateInputError("points_a have zero spread around their centroid")
    # A collapsed target would fit a zero linear map.
    if not _has_spread(k, m_xb, m_yb, s_sq_b):
        raise DegenerateInputError("points_b have zero spread around their centroid")

    det = k * s_sq_a - m_xa**2 - m_ya**2
    tx = (s_sq_a * m_xb - m_xa * s_dot + m_ya * s_cross) / det
    ty = (s_sq_a * m_yb - m_ya * s_dot - m_xa * s_cross) / det
    sc = (-m_xa * m_xb - m_ya * m_yb + k * s_dot) / det
    ss = (m_ya * m_xb - m_xa * m_yb + k * s_cross) / det
    return SimilarityParameters(tx=tx, ty=ty, sc=sc, ss=ss)


def apply_similarity(points: PointsLike, params: SimilarityParameters) -> np.ndarray:
    """Return a transformed copy of points, shape (N,2)."""
    p = as_points(points)
    x, y = p[:, 0], p[:, 1]
    out = np.empty_like(p)
    out[:, 0] = params.tx + x * params.sc - y * params.ss
    out[:, 1] = params.ty + y * params.sc + x * params.ss
    return out


def alignment_error(points_a: PointsLike, points_b: PointsLike) -> float:
    """
    Summed Euclidean distance between matched points (a sum, not a mean).
    """
    a, b = _matched_pair(points_a, points_b)
    if a.shape[0] == 0:
        return 0.0
    return float(np.sum(np.hypot(a[:, 0] - b[:, 0], a[:, 1] - b[:, 1])))
