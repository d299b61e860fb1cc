"""
featurematch: Nearest-neighbour pair finding for LC-MS feature maps.

Main API:
    find_pairs(model_map, scene_map, config, transformation) -> list[ElementPair]
    merge(reference_map, consensus_map, config) -> None   (consensus_map mutated)

Positions are (retention time, m/z). m/z is rescaled by
diff_intercept_mz / diff_intercept_rt before any distance is taken.
"""

from __future__ import annotations
from typing import MutableSequence, Optional, Sequence

from .config import (
    AxisTransform,
    ConfigurationError,
    Dimension,
    IdentityTransform,
    LinearTransform,
    PairFinderConfig,
)
from .models import (
    PositionRange,
    ElementHandle,
    Feature,
    ConsensusFeature,
    consensus_map_from_features,
    IndexedPoint,
    CandidatePair,
    ElementPair,
    MatchOutcome,
    PairFindingStatistics,
    ConsensusStatistics,
)
from .matching import (
    DistanceNormalizer,
    ClaimState,
    LookupTable,
    find_element_pairs,
    compute_consensus_map,
    DelaunayPairFinder,
    create_pair_finder,
    available_pair_finders,
)
from .spatial import SpatialIndex, create_index, available_indexes
from .logging_config import setup_logging


__all__ = [
    # Main API
    "find_pairs",
    "merge",
    # Config
    "PairFinderConfig",
    "ConfigurationError",
    "Dimension",
    "AxisTransform",
    "IdentityTransform",
    "LinearTransform",
    # Models
    "PositionRange",
    "ElementHandle",
    "Feature",
    "ConsensusFeature",
    "consensus_map_from_features",
    "IndexedPoint",
    "CandidatePair",
    "ElementPair",
    "MatchOutcome",
    "PairFindingStatistics",
    "ConsensusStatistics",
    # Matching
    "DistanceNormalizer",
    "ClaimState",
    "LookupTable",
    "find_element_pairs",
    "compute_consensus_map",
    "DelaunayPairFinder",
    "create_pair_finder",
    "available_pair_finders",
    # Spatial
    "SpatialIndex",
    "create_index",
    "available_indexes",
    # Logging
    "setup_logging",
]


def find_pairs(
    model_map: Sequence,
    scene_map: Sequence,
    config: Optional[PairFinderConfig] = None,
    transformation: Optional[tuple[AxisTransform, AxisTransform]] = None
) -> list[ElementPair]:
    """
    Find unique (model, scene) element pairs.

    Args:
        model_map: Reference elements, each exposing .position (rt, mz)
        scene_map: Scene elements, each exposing .position (rt, mz)
        config: PairFinderConfig (defaults if None)
        transformation: Optional (rt, mz) AxisTransforms for scene coordinates

    Returns:
        List of ElementPair, ascending model index
    """
    return find_element_pairs(model_map, scene_map, config or PairFinderConfig(), transformation)


def merge(
    reference_map: Sequence,
    consensus_map: MutableSequence,
    config: Optional[PairFinderConfig] = None,
    map_index: int = 0
) -> None:
    """
    Merge reference_map into consensus_map in place.

    Matched consensus elements absorb their reference element; unmatched
    reference elements are appended as singletons. Plain reference elements
    (Feature) are linked under map_index.
    """
    compute_consensus_map(reference_map, consensus_map, config or PairFinderConfig(), map_index=map_index)
