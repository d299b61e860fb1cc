"""
Reference Indexing and Match Acceptance.

Shared by pair finding and consensus building:
- build_reference_index: Normalize the reference map and index it
- evaluate_match: Proximity + unambiguity test for one query

Acceptance (all coordinates normalized):
    proximity:    |q.rt - n1.rt| < precision_rt  AND |q.mz - n1.mz| < precision_mz
    unambiguity:  |n2.rt - n1.rt| > max_pair_distance_rt
                  OR |n2.mz - n1.mz| > max_pair_distance_mz
with n1, n2 the nearest and second nearest reference points.
"""

from __future__ import annotations
import logging
from typing import Optional, Sequence, TYPE_CHECKING
import numpy as np

from ..models import IndexedPoint, MatchOutcome
from ..spatial import SpatialIndex, create_index

if TYPE_CHECKING:
    from ..config import PairFinderConfig
    from .normalizer import DistanceNormalizer


logger = logging.getLogger(__name__)


def build_reference_index(
    reference_map: Sequence,
    normalizer: DistanceNormalizer,
    backend: str
) -> SpatialIndex:
    """
    Index the normalized positions of a reference map.

    Args:
        reference_map: Elements exposing .position (rt, mz)
        normalizer: DistanceNormalizer for the m/z axis
        backend: Spatial index registry key

    Returns:
        SpatialIndex whose keys are positions in reference_map
    """
    positions = np.array([element.position for element in reference_map], dtype=float).reshape(-1, 2)
    index = create_index(backend, normalizer.normalize_many(positions))
    logger.debug("Indexed %d reference elements with '%s' backend", len(positions), backend)
    return index


def evaluate_match(
    query: np.ndarray,
    neighbors: list[IndexedPoint],
    config: PairFinderConfig
) -> tuple[MatchOutcome, Optional[IndexedPoint]]:
    """
    Apply the acceptance test to the neighbours of one query.

    Args:
        query: Normalized query position (2,)
        neighbors: Result of k_nearest(query, 2), nearest first
        config: Thresholds

    Returns:
        Tuple (outcome, nearest):
        - outcome: MatchOutcome
        - nearest: Nearest reference point (None only for NO_NEIGHBOR)

    Notes:
        - No neighbour: NO_NEIGHBOR (query skipped)
        - One neighbour: nothing to be confused with, only proximity applies
    """
    if not neighbors:
        return MatchOutcome.NO_NEIGHBOR, None

    nearest = neighbors[0]
    if not (abs(query[0] - nearest.rt) < config.precision_rt
            and abs(query[1] - nearest.mz) < config.precision_mz):
        return MatchOutcome.OUT_OF_PRECISION, nearest

    if len(neighbors) > 1:
        second = neighbors[1]
        if not (abs(second.rt - nearest.rt) > config.max_pair_distance_rt
                or abs(second.mz - nearest.mz) > config.max_pair_distance_mz):
            return MatchOutcome.AMBIGUOUS, nearest

    return MatchOutcome.ACCEPTED, nearest
