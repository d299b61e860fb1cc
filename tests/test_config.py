"""
Tests for PairFinderConfig, axis transforms and the distance normalizer.

Test Coverage:
- Defaults and derived m/z scale
- Validation errors (intercepts, negative thresholds, tie-break mode)
- Flat "similarity:*" parameter keys
- Per-dimension getters/setters
- LinearTransform / IdentityTransform
- DistanceNormalizer
"""

import numpy as np
import pytest

from featurematch.config import (
    ConfigurationError,
    Dimension,
    IdentityTransform,
    LinearTransform,
    PairFinderConfig,
    PARAM_KEYS,
)
from featurematch.matching.normalizer import DistanceNormalizer


# ========== Config ==========

def test_defaults():
    """Default parameters match the documented values."""
    cfg = PairFinderConfig()

    assert cfg.max_pair_distance_rt == 3.0
    assert cfg.max_pair_distance_mz == 1.0
    assert cfg.precision_rt == 20.0
    assert cfg.precision_mz == 5.0
    assert cfg.diff_intercept_rt == 1.0
    assert cfg.diff_intercept_mz == 0.1
    assert cfg.index_backend == "delaunay"
    assert cfg.tie_break_distance == "euclidean"
    assert np.isclose(cfg.mz_scale, 0.1)


@pytest.mark.parametrize("kwargs", [
    {"diff_intercept_rt": 0.0},
    {"diff_intercept_rt": -1.0},
    {"diff_intercept_mz": 0.0},
    {"precision_rt": -0.1},
    {"precision_mz": -5.0},
    {"max_pair_distance_rt": -3.0},
    {"max_pair_distance_mz": -1.0},
    {"tie_break_distance": "manhattan"},
])
def test_invalid_config_raises(kwargs):
    """Invalid parameters are rejected at construction."""
    with pytest.raises(ConfigurationError):
        PairFinderConfig(**kwargs)


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_zero_thresholds_allowed():
    """Zero precision / distance is degenerate but valid."""
    cfg = PairFinderConfig(precision_rt=0.0, max_pair_distance_mz=0.0)
    assert cfg.precision_rt == 0.0


def test_param_keys_cover_all_similarity_fields():
    assert set(PARAM_KEYS) == {
        "similarity:max_pair_distance:RT",
        "similarity:max_pair_distance:MZ",
        "similarity:precision:RT",
        "similarity:precision:MZ",
        "similarity:diff_intercept:RT",
        "similarity:diff_intercept:MZ",
    }


def test_from_param_and_to_param():
    """Flat keys override defaults; to_param exports all of them."""
    cfg = PairFinderConfig.from_param(
        {"similarity:precision:RT": 10, "similarity:diff_intercept:MZ": 0.5},
        index_backend="kdtree",
    )

    assert cfg.precision_rt == 10.0
    assert cfg.diff_intercept_mz == 0.5
    assert cfg.index_backend == "kdtree"

    param = cfg.to_param()
    assert param["similarity:precision:RT"] == 10.0
    assert param["similarity:max_pair_distance:MZ"] == 1.0
    assert len(param) == 6


def test_from_param_unknown_key():
    with pytest.raises(ConfigurationError, match="Unknown parameter"):
        PairFinderConfig.from_param({"similarity:precision:XX": 1.0})


def test_update_validates():
    cfg = PairFinderConfig()
    cfg.update({"similarity:max_pair_distance:RT": 7})
    assert cfg.max_pair_distance_rt == 7.0

    with pytest.raises(ConfigurationError):
        cfg.update({"similarity:diff_intercept:RT": 0})


def test_per_dimension_access():
    cfg = PairFinderConfig()

    cfg.set_precision(Dimension.MZ, 2.5)
    cfg.set_max_pair_distance(Dimension.RT, 4)
    cfg.set_diff_intercept(Dimension.MZ, 0.2)

    assert cfg.get_precision(Dimension.MZ) == 2.5
    assert cfg.precision_mz == 2.5
    assert cfg.get_max_pair_distance(Dimension.RT) == 4.0
    assert cfg.get_diff_intercept(Dimension.MZ) == 0.2
    assert cfg.get_diff_intercept(Dimension.RT) == 1.0

    with pytest.raises(ConfigurationError):
        cfg.set_precision(Dimension.RT, -1)


@pytest.mark.parametrize("setter, getter, bad", [
    ("set_diff_intercept", "get_diff_intercept", 0.0),
    ("set_max_pair_distance", "get_max_pair_distance", -1.0),
    ("set_precision", "get_precision", -0.5),
])
def test_rejected_setter_keeps_previous_value(setter, getter, bad):
    cfg = PairFinderConfig()
    before = getattr(cfg, getter)(Dimension.RT)

    with pytest.raises(ConfigurationError):
        getattr(cfg, setter)(Dimension.RT, bad)

    assert getattr(cfg, getter)(Dimension.RT) == before
    cfg.validate()


def test_rejected_update_is_all_or_nothing():
    cfg = PairFinderConfig()

    with pytest.raises(ConfigurationError):
        cfg.update({"similarity:precision:RT": 9, "similarity:diff_intercept:MZ": -1})
    with pytest.raises(ConfigurationError):
        cfg.update({"similarity:precision:RT": 9, "similarity:nonsense:RT": 1})

    assert cfg == PairFinderConfig()


def test_copy_is_independent():
    cfg = PairFinderConfig(precision_rt=12.0)
    other = cfg.copy()
    other.precision_rt = 1.0

    assert cfg.precision_rt == 12.0
    assert other == PairFinderConfig(precision_rt=1.0)


# ========== Transforms ==========

def test_linear_transform():
    t = LinearTransform(slope=2.0, intercept=-1.0)
    assert t.apply(3.0) == 5.0
    assert LinearTransform().apply(7.5) == 7.5


def test_identity_transform():
    assert IdentityTransform().apply(-4.25) == -4.25


# ========== DistanceNormalizer ==========

def test_normalizer_scale_and_point():
    n = DistanceNormalizer(1.0, 0.1)

    assert np.isclose(n.scale, 0.1)
    assert np.allclose(n.normalize((10.0, 5.0)), [10.0, 50.0])
    assert np.isclose(n.normalize_mz(5.05), 50.5)


def test_normalizer_many():
    n = DistanceNormalizer(2.0, 1.0)  # scale 0.5
    positions = np.array([[1.0, 1.0], [3.0, 2.5]])

    out = n.normalize_many(positions)

    assert np.allclose(out, [[1.0, 2.0], [3.0, 5.0]])
    assert np.allclose(positions, [[1.0, 1.0], [3.0, 2.5]]), "Input must not be modified"
    assert n.normalize_many(np.empty((0, 2))).shape == (0, 2)


def test_normalizer_rejects_bad_shape():
    with pytest.raises(ValueError):
        DistanceNormalizer(1.0, 0.1).normalize_many(np.zeros((3, 3)))


@pytest.mark.parametrize("rt,mz", [(0.0, 0.1), (-1.0, 0.1), (1.0, 0.0)])
def test_normalizer_rejects_non_positive_intercepts(rt, mz):
    with pytest.raises(ConfigurationError):
        DistanceNormalizer(rt, mz)


def test_normalizer_from_config():
    n = DistanceNormalizer.from_config(PairFinderConfig(diff_intercept_rt=2.0, diff_intercept_mz=0.5))
    assert np.isclose(n.scale, 0.25)
