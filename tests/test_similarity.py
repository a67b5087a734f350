from __future__ import annotations

import numpy as np
import pytest

from posematch.core.similarity import (
    DegenerateInputError,
    LengthMismatchError,
    NonFiniteInputError,
    SimilarityParameters,
    alignment_error,
    apply_similarity,
    estimate_similarity,
)


def _params(tx: float, ty: float, scale: float, theta_deg: float) -> SimilarityParameters:
    t = np.radians(theta_deg)
    return SimilarityParameters(tx=tx, ty=ty, sc=scale * np.cos(t), ss=scale * np.sin(t))


def test_two_point_fixture_is_fitted_exactly():
    a = [(1, 1), (5, 7)]
    b = [(8, 11), (8, 9)]
    assert alignment_error(apply_similarity(a, estimate_similarity(a, b)), b) < 1e-6


def test_estimate_recovers_known_transform():
    rng = np.random.default_rng(0)
    a = rng.uniform(-50.0, 50.0, size=(20, 2))
    p = _params(3.5, -12.0, 1.7, 37.0)
    est = estimate_similarity(a, apply_similarity(a, p))
    np.testing.assert_allclose(
        [est.tx, est.ty, est.sc, est.ss], [p.tx, p.ty, p.sc, p.ss], rtol=1e-9, atol=1e-9
    )


def test_exact_fit_has_zero_residual():
    rng = np.random.default_rng(1)
    a = rng.uniform(0.0, 640.0, size=(12, 2))
    moved = apply_similarity(a, _params(10.0, 20.0, 0.5, -120.0))
    assert alignment_error(moved, moved) == 0.0


def test_fit_does_not_increase_error_over_identity():
    rng = np.random.default_rng(2)
    a = rng.uniform(0.0, 480.0, size=(17, 2))
    b = apply_similarity(a, _params(-40.0, 15.0, 1.3, 25.0)) + rng.normal(0.0, 2.0, size=a.shape)
    fitted = alignment_error(apply_similarity(a, estimate_similarity(a, b)), b)
    baseline = alignment_error(a, b)
    assert fitted <= baseline
    # Residual is at the noise level: roughly sqrt(pi/2) * sigma per point.
    assert fitted / len(a) < 5.0


def test_estimate_rejects_coincident_source_points():
    a = [(2, 2), (2, 2), (2, 2)]
    b = [(0, 0), (1, 0), (0, 1)]
    with pytest.raises(DegenerateInputError):
        estimate_similarity(a, b)


def test_estimate_rejects_points_at_origin_and_single_point():
    with pytest.raises(DegenerateInputError):
        estimate_similarity([(0, 0), (0, 0)], [(1, 0), (0, 1)])
    with pytest.raises(DegenerateInputError):
        estimate_similarity([(1, 2)], [(3, 4)])
    with pytest.raises(DegenerateInputError):
        estimate_similarity([], [])


def test_estimate_rejects_collapsed_target():
    with pytest.raises(DegenerateInputError):
        estimate_similarity([(0, 0), (1, 0), (0, 1)], [(5, 5), (5, 5), (5, 5)])


def test_length_mismatch_is_rejected():
    with pytest.raises(LengthMismatchError):
        estimate_similarity([(0, 0), (1, 0), (0, 1)], [(0, 0), (1, 0)])
    with pytest.raises(LengthMismatchError):
        alignment_error([(0, 0)], [(0, 0), (1, 1)])


def test_non_finite_input_is_rejected():
    with pytest.raises(NonFiniteInputError):
        estimate_similarity([(0, 0), (np.nan, 1)], [(0, 0), (1, 1)])
    with pytest.raises(NonFiniteInputError):
        alignment_error([(0, 0)], [(np.inf, 0)])
    with pytest.raises(NonFiniteInputError):
        apply_similarity([(0, np.nan)], _params(0, 0, 1, 0))


def test_bad_shape_is_rejected():
    with pytest.raises(ValueError):
        estimate_similarity([(0, 0, 0), (1, 1, 1)], [(0, 0, 0), (1, 1, 1)])


def test_scale_and_rotation_of_pure_rotation():
    p = SimilarityParameters(tx=0.0, ty=0.0, sc=0.0, ss=5.0)
    assert p.scale() == pytest.approx(5.0)
    assert p.rotation_degrees() == pytest.approx(90.0)
    assert p.rotation_degrees_unsigned() == pytest.approx(90.0)


def test_unsigned_rotation_loses_direction():
    cw = _params(0.0, 0.0, 2.0, -30.0)
    ccw = _params(0.0, 0.0, 2.0, 30.0)
    assert cw.rotation_degrees() == pytest.approx(-30.0)
    assert ccw.rotation_degrees() == pytest.approx(30.0)
    assert cw.rotation_degrees_unsigned() == pytest.approx(ccw.rotation_degrees_unsigned())


def test_parameters_reject_invalid_values():
    with pytest.raises(NonFiniteInputError):
        SimilarityParameters(tx=np.nan, ty=0.0, sc=1.0, ss=0.0)
    with pytest.raises(NonFiniteInputError):
        SimilarityParameters(tx=0.0, ty=0.0, sc=np.inf, ss=0.0)
    with pytest.raises(DegenerateInputError):
        SimilarityParameters(tx=1.0, ty=2.0, sc=0.0, ss=0.0)


def test_apply_matches_matrix_and_leaves_input_untouched():
    a = np.array([[1.0, 2.0], [-3.0, 4.5], [0.0, 0.0]])
    a_copy = a.copy()
    p = _params(7.0, -1.0, 0.8, 145.0)
    out = apply_similarity(a, p)
    homog = np.c_[a, np.ones(len(a))] @ p.matrix().T
    np.testing.assert_allclose(out, homog[:, :2], atol=1e-12)
    np.testing.assert_array_equal(a, a_copy)
    assert apply_similarity([], p).shape == (0, 2)


def test_error_is_a_sum_over_points():
    a = [(0.0, 0.0), (1.0, 1.0)]
    b = [(3.0, 4.0), (4.0, 5.0)]
    assert alignment_error(a, b) == pytest.approx(10.0)
    assert alignment_error(a + a, b + b) == pytest.approx(20.0)


def test_half_turn_reports_positive_180():
    p = SimilarityParameters(tx=0.0, ty=0.0, sc=-1.0, ss=-0.0)
    assert p.rotation_degrees() == pytest.approx(180.0)
    assert p.rotation_degrees_unsigned() == pytest.approx(180.0)


def test_empty_rows_are_not_an_empty_point_set():
    with pytest.raises(ValueError):
        alignment_error([[], []], [])
    with pytest.raises(ValueError):
        apply_similarity([[], []], _params(0, 0, 1, 0))


def test_estimate_rejects_target_uncorrelated_with_source():
    # B has spread, but every dot/cross sum against A cancels: the fit is the zero map.
    a = [(-1, 0), (1, 0), (0, -1), (0, 1)]
    b = [(1, 0), (1, 0), (-1, 0), (-1, 0)]
    with pytest.raises(DegenerateInputError):
        estimate_similarity(a, b)
