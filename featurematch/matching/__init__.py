"""
Matching Module.

Pair finding and consensus building on normalized (RT, m/z) positions:
- DistanceNormalizer: Anisotropic metric (m/z divided by scale)
- LookupTable / ClaimState: Claim bookkeeping per reference element
- find_element_pairs: Unique pairs between a model and a scene map
- compute_consensus_map: Merge a map into a consensus map
- DelaunayPairFinder: Stateful front end + factory (create_pair_finder)
"""

from .normalizer import DistanceNormalizer
from .lookup import ClaimState, LookupTable
from .acceptance import build_reference_index, evaluate_match
from .pair_finder import find_element_pairs
from .consensus import compute_consensus_map
from .finder import (
    MODEL,
    SCENE,
    BasePairFinder,
    DelaunayPairFinder,
    register_pair_finder,
    create_pair_finder,
    available_pair_finders,
)

__all__ = [
    "DistanceNormalizer",
    "ClaimState",
    "LookupTable",
    "build_reference_index",
    "evaluate_match",
    "find_element_pairs",
    "compute_consensus_map",
    "MODEL",
    "SCENE",
    "BasePairFinder",
    "DelaunayPairFinder",
    "register_pair_finder",
    "create_pair_finder",
    "available_pair_finders",
]
