"""
Tests for feature map data models.

Test Coverage:
- PositionRange enclosure (inclusive bounds) and extension
- Feature / ConsensusFeature positions
- ConsensusFeature insert / merge bookkeeping
- consensus_map_from_features
"""

import numpy as np
import pytest

from featurematch.models import (
    ConsensusFeature,
    ElementHandle,
    Feature,
    PositionRange,
    consensus_map_from_features,
)


# ========== PositionRange ==========

def test_range_encloses_inclusive():
    r = PositionRange(1.0, 2.0, 3.0, 4.0)

    assert r.encloses((2.0, 3.0))
    assert r.encloses((1.0, 2.0)), "Lower corner inside"
    assert r.encloses((3.0, 4.0)), "Upper corner inside"
    assert not r.encloses((0.99, 3.0))
    assert not r.encloses((2.0, 4.01))


def test_range_extend():
    r = PositionRange.from_position((5.0, 5.0))
    r.extend((3.0, 7.0))
    r.extend((4.0, 6.0))

    assert r == PositionRange(3.0, 5.0, 5.0, 7.0)


def test_degenerate_range_encloses_only_its_point():
    r = Feature(rt=10.0, mz=500.0).position_range
    assert r.encloses(np.array([10.0, 500.0]))
    assert not r.encloses((10.0, 500.001))


# ========== Features ==========

def test_feature_position():
    f = Feature(rt=12.5, mz=400.25, intensity=1e5, charge=2, feature_id="f1")
    assert np.array_equal(f.position, [12.5, 400.25])


def test_consensus_from_feature():
    cf = ConsensusFeature.from_feature(3, 7, Feature(rt=1.0, mz=2.0, intensity=10.0))

    assert cf.size == 1
    assert cf.handles[0] == ElementHandle(3, 7, 1.0, 2.0, 10.0)
    assert cf.position_range == PositionRange(1.0, 2.0, 1.0, 2.0)
    assert np.array_equal(cf.position, [1.0, 2.0])


def test_consensus_range_from_handles():
    handles = [ElementHandle(0, 0, 1.0, 10.0), ElementHandle(1, 0, 3.0, 9.0)]
    cf = ConsensusFeature(rt=2.0, mz=9.5, handles=handles)
    assert cf.position_range == PositionRange(1.0, 9.0, 3.0, 10.0)


def test_insert_updates_centroid_intensity_and_range():
    cf = ConsensusFeature.from_feature(0, 0, Feature(rt=10.0, mz=100.0, intensity=2.0))
    cf.insert(ElementHandle(1, 4, 12.0, 101.0, 4.0))

    assert cf.size == 2
    assert cf.rt == pytest.approx(11.0)
    assert cf.mz == pytest.approx(100.5)
    assert cf.intensity == pytest.approx(3.0)
    assert cf.position_range == PositionRange(10.0, 100.0, 12.0, 101.0)


def test_merge_absorbs_all_handles():
    a = consensus_map_from_features(0, [Feature(rt=10.0, mz=100.0)])[0]
    b = ConsensusFeature(rt=11.0, mz=100.2, handles=[
        ElementHandle(1, 0, 11.0, 100.2),
        ElementHandle(2, 5, 11.0, 100.2),
    ])

    a.merge(b)

    assert [(h.map_index, h.element_index) for h in a] == [(0, 0), (1, 0), (2, 5)]
    assert b.size == 2, "Merged element is left untouched"


def test_consensus_map_from_features():
    cmap = consensus_map_from_features(2, [Feature(1.0, 2.0), Feature(3.0, 4.0)])

    assert len(cmap) == 2
    assert [(h.map_index, h.element_index) for cf in cmap for h in cf] == [(2, 0), (2, 1)]


def test_insert_without_handles_seeds_centroid_with_own_position():
    cf = ConsensusFeature(rt=9.8, mz=5.01, intensity=6.0)
    cf.insert(ElementHandle(0, 0, 10.0, 5.0, 2.0))

    assert cf.rt == pytest.approx(9.9)
    assert cf.mz == pytest.approx(5.005)
    assert cf.intensity == pytest.approx(4.0)

    cf.insert(ElementHandle(1, 0, 10.3, 5.0, 1.0))
    assert cf.rt == pytest.approx(10.0), "Running mean over all three positions"
