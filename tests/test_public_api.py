from __future__ import annotations


def test_public_api_exports() -> None:
    import posematch as pm

    assert hasattr(pm, "estimate_similarity")
    assert hasattr(pm, "apply_similarity")
    assert hasattr(pm, "alignment_error")
    assert hasattr(pm, "SimilarityParameters")
    assert hasattr(pm, "DegenerateInputError")
    assert hasattr(pm, "compare_poses")
    assert hasattr(pm, "save_similarity")
    assert hasattr(pm, "load_similarity")
