"""
Consensus Map Building.

Elements of a first map are aligned to the consensus elements of a second
map, which is assumed to be dewarped already. The matching loop is the one of
pair finding, but a second claim on a reference element goes through a
tie-break before the element is given up:

    a = reference element, b = current holder, c = new candidate

    1. c's range encloses a, b's does not          -> c takes over
    2. b's range encloses a, c's does not          -> b keeps a
    3. otherwise (both or neither enclose a):
       normalized m/z gap |b.mz - c.mz| / scale > max_pair_distance_mz
           -> the closer of b and c keeps a (see _prefers_new_candidate)
       else
           -> a is CONFLICTED

Claimed reference elements are merged into their consensus element; the
others (unclaimed or conflicted) are appended to the consensus map as new
singleton consensus elements.
"""

from __future__ import annotations
import copy
import logging
import math
from typing import MutableSequence, Optional, Sequence, TYPE_CHECKING

from ..models import CandidatePair, ConsensusFeature, ConsensusStatistics, ElementHandle, MatchOutcome
from ..performance import time_block
from .acceptance import build_reference_index, evaluate_match
from .lookup import ClaimState, LookupTable
from .normalizer import DistanceNormalizer

if TYPE_CHECKING:
    from ..config import PairFinderConfig


logger = logging.getLogger(__name__)


def compute_consensus_map(
    first_map: Sequence,
    second_map: MutableSequence,
    config: PairFinderConfig,
    index_backend: Optional[str] = None,
    map_index: int = 0
) -> ConsensusStatistics:
    """
    Merge first_map into the consensus map second_map (in place).

    Args:
        first_map: Reference elements, either consensus elements (.handles)
                   or plain positioned elements such as Feature
        second_map: Consensus elements (.position, .position_range, .merge()),
                    mutated: matched elements absorb their reference element,
                    unmatched reference elements are appended
        config: PairFinderConfig with thresholds, metric and tie-break mode
        index_backend: Spatial index key, overrides config.index_backend
        map_index: Map index recorded in the handles of plain reference elements

    Returns:
        ConsensusStatistics of this merge

    Raises:
        ConfigurationError: Invalid config

    Notes:
        - Only the consensus elements present at call time are queried;
          appended singletons are never matched in the same call
        - Appended singletons are deep copies of consensus reference elements,
          plain reference elements are wrapped into singleton ConsensusFeatures
        - Outcome depends on the order of second_map (first claim wins
          unless the tie-break moves it)
    """
    config.validate()
    normalizer = DistanceNormalizer.from_config(config)
    stats = ConsensusStatistics()

    if len(first_map) == 0:
        logger.debug("Empty reference map, consensus map unchanged")
        return stats

    backend = index_backend or config.index_backend
    timing = config.enable_performance_logging or None
    n_scene = len(second_map)

    with time_block("compute_consensus_map", timing):
        with time_block("build reference index", timing):
            index = build_reference_index(first_map, normalizer, backend)

        lookup = LookupTable(len(first_map))
        candidates: list[CandidatePair] = []

        with time_block("match consensus elements", timing):
            for scene_index in range(n_scene):
                element = second_map[scene_index]
                query = normalizer.normalize(element.position)

                outcome, nearest = evaluate_match(query, index.k_nearest(query, 2), config)
                if outcome is not MatchOutcome.ACCEPTED:
                    # no corresponding element in the reference map
                    if outcome is not MatchOutcome.NO_NEIGHBOR:
                        stats.scene_singletons += 1
                    continue

                key = nearest.key
                candidates.append(CandidatePair(reference_key=key, scene_index=scene_index))
                candidate_index = len(candidates) - 1
                state = lookup.state(key)

                if state is ClaimState.UNCLAIMED:
                    lookup.claim(key, candidate_index)
                elif state is ClaimState.CLAIMED:
                    holder = candidates[lookup.candidate_index(key)]
                    _resolve_claim(
                        key, candidate_index,
                        first_map[key], second_map[holder.scene_index], element,
                        lookup, normalizer, config, stats
                    )

        with time_block("insert elements", timing):
            singletons = []
            for key, reference in enumerate(first_map):
                if lookup.state(key) is ClaimState.CLAIMED:
                    candidate = candidates[lookup.candidate_index(key)]
                    second_map[candidate.scene_index].merge(_as_consensus(reference, map_index, key))
                    stats.pairs += 1
                else:
                    singletons.append(_as_consensus(reference, map_index, key))

            second_map.extend(singletons)
            stats.reference_singletons = len(singletons)

    logger.info(
        "Consensus: %d pairs, %d reference singletons, %d scene singletons, %d reassigned, %d conflicts",
        stats.pairs, stats.reference_singletons, stats.scene_singletons,
        stats.reassignments, stats.conflicts
    )
    return stats


def _as_consensus(element, map_index: int, key: int) -> ConsensusFeature:
    """Consensus view of a reference element (copied, never shared with first_map)."""
    if hasattr(element, "handles"):
        return copy.deepcopy(element)

    rt, mz = element.position
    handle = ElementHandle(
        map_index=map_index,
        element_index=key,
        rt=float(rt),
        mz=float(mz),
        intensity=float(getattr(element, "intensity", 0.0)),
    )
    return ConsensusFeature(rt=handle.rt, mz=handle.mz, intensity=handle.intensity, handles=[handle])


def _resolve_claim(
    key: int,
    candidate_index: int,
    reference,
    holder,
    challenger,
    lookup: LookupTable,
    normalizer: DistanceNormalizer,
    config: PairFinderConfig,
    stats: ConsensusStatistics
) -> None:
    """Tie-break between the current holder b and the challenger c of reference a."""
    a_pos = reference.position
    b_encloses = holder.position_range.encloses(a_pos)
    c_encloses = challenger.position_range.encloses(a_pos)

    if c_encloses and not b_encloses:
        lookup.reassign(key, candidate_index)
        stats.reassignments += 1
        logger.debug("Reference %d moved to enclosing consensus element", key)
        return

    if b_encloses and not c_encloses:
        return

    mz_gap = abs(normalizer.normalize_mz(holder.position[1]) - normalizer.normalize_mz(challenger.position[1]))
    if mz_gap > config.max_pair_distance_mz:
        if _prefers_new_candidate(a_pos, holder.position, challenger.position, config.tie_break_distance):
            lookup.reassign(key, candidate_index)
            stats.reassignments += 1
            logger.debug("Reference %d moved to closer consensus element", key)
    else:
        lookup.mark_conflicted(key)
        stats.conflicts += 1
        stats.scene_singletons += 1
        logger.debug("Reference %d has two indistinguishable partners, conflicted", key)


def _prefers_new_candidate(a, b, c, mode: str) -> bool:
    """
    Decide whether the challenger c takes reference a away from holder b.

    Args:
        a, b, c: Raw (rt, mz) positions
        mode: "euclidean" or "legacy"

    Returns:
        True if the claim moves to c

    Notes:
        - euclidean: c must be strictly closer to a than b
        - legacy: historical rule, kept for reproducing old results. The m/z
          term is taken against the candidate's RT, and the claim moves when
          b is the closer one under that formula.
    """
    if mode == "legacy":
        dist_b = math.hypot(a[0] - b[0], a[1] - b[0])
        dist_c = math.hypot(a[0] - c[0], a[1] - c[0])
        return dist_b < dist_c

    dist_b = math.hypot(a[0] - b[0], a[1] - b[1])
    dist_c = math.hypot(a[0] - c[0], a[1] - c[1])
    return dist_c < dist_b
