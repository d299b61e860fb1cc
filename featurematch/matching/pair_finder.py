"""
Element Pair Finding.

For every scene element the two nearest reference elements are looked up in
normalized space. Accepted matches become candidate pairs; a reference element
claimed by two different scene elements is excluded for good (sticky
conflict). Only reference elements claimed exactly once produce a pair.

The result depends on scene order only through which claim comes first; for
pair finding a conflict is symmetric, so the emitted pair set does not depend
on scene order at all.
"""

from __future__ import annotations
import logging
from typing import Optional, Sequence, TYPE_CHECKING

from ..config import IdentityTransform
from ..models import CandidatePair, ElementPair, MatchOutcome, PairFindingStatistics
from ..performance import time_block
from .acceptance import build_reference_index, evaluate_match
from .lookup import ClaimState, LookupTable
from .normalizer import DistanceNormalizer

if TYPE_CHECKING:
    from ..config import AxisTransform, PairFinderConfig


logger = logging.getLogger(__name__)


def find_element_pairs(
    model_map: Sequence,
    scene_map: Sequence,
    config: PairFinderConfig,
    transformation: Optional[tuple[AxisTransform, AxisTransform]] = None,
    index_backend: Optional[str] = None,
    statistics: Optional[PairFindingStatistics] = None
) -> list[ElementPair]:
    """
    Find unique element pairs between a model map and a scene map.

    Args:
        model_map: Reference elements (exposing .position)
        scene_map: Scene elements (exposing .position)
        config: PairFinderConfig with thresholds and metric
        transformation: Optional (rt, mz) AxisTransforms applied to scene
                        coordinates before normalization (None = identity)
        index_backend: Spatial index key, overrides config.index_backend
        statistics: Optional PairFindingStatistics filled in place

    Returns:
        List of ElementPair in ascending model index order

    Raises:
        ConfigurationError: Invalid config

    Algorithm:
        1. Normalize + index the model map (key = model index)
        2. For each scene element: transform, normalize, query 2 nearest
        3. Acceptance test (see acceptance.evaluate_match)
        4. Claim the nearest model key; a second claim marks it CONFLICTED
        5. Emit one pair per key that is still CLAIMED

    Example:
        >>> model = [Feature(10, 5), Feature(50, 5)]
        >>> scene = [Feature(10.1, 5.05)]
        >>> pairs = find_element_pairs(model, scene, PairFinderConfig())
        >>> (pairs[0].model_index, pairs[0].scene_index)
        (0, 0)
    """
    config.validate()
    normalizer = DistanceNormalizer.from_config(config)
    stats = statistics if statistics is not None else PairFindingStatistics()

    if len(model_map) == 0 or len(scene_map) == 0:
        logger.debug("Empty input map (model=%d, scene=%d), no pairs", len(model_map), len(scene_map))
        return []

    rt_transform, mz_transform = transformation or (IdentityTransform(), IdentityTransform())
    backend = index_backend or config.index_backend
    timing = config.enable_performance_logging or None

    with time_block("find_element_pairs", timing):
        with time_block("build reference index", timing):
            index = build_reference_index(model_map, normalizer, backend)

        lookup = LookupTable(len(model_map))
        candidates: list[CandidatePair] = []

        with time_block("match scene elements", timing):
            for scene_index, element in enumerate(scene_map):
                rt, mz = element.position
                query = normalizer.normalize((rt_transform.apply(rt), mz_transform.apply(mz)))

                outcome, nearest = evaluate_match(query, index.k_nearest(query, 2), config)
                stats.record(outcome)
                if outcome is not MatchOutcome.ACCEPTED:
                    continue

                key = nearest.key
                candidates.append(CandidatePair(reference_key=key, scene_index=scene_index))
                state = lookup.state(key)

                if state is ClaimState.CLAIMED:
                    lookup.mark_conflicted(key)
                    stats.conflicts += 1
                    logger.debug("Model element %d claimed twice, excluded", key)
                elif state is ClaimState.UNCLAIMED:
                    lookup.claim(key, len(candidates) - 1)

    pairs = []
    for key, candidate_index in lookup.claimed():
        candidate = candidates[candidate_index]
        pairs.append(ElementPair(
            model=model_map[key],
            scene=scene_map[candidate.scene_index],
            model_index=key,
            scene_index=candidate.scene_index,
        ))
    stats.pairs = len(pairs)

    logger.info(
        "Pair finding: %d pairs from %d candidates (%d conflicts, %d ambiguous, %d out of precision)",
        stats.pairs, stats.candidates, stats.conflicts, stats.ambiguous, stats.out_of_precision
    )
    return pairs
