"""
Feature Map Data Models.

This module defines all data structures used by the pair finder:
- PositionRange: Axis-aligned (RT, m/z) bounding box
- ElementHandle: Non-owning link to one element of one input map
- Feature: Single positioned element
- ConsensusFeature: Group of linked elements with centroid and range
- IndexedPoint: Normalized coordinate + key into the reference map
- CandidatePair: Tentative (reference, scene) match
- ElementPair: Output pair
- MatchOutcome: Result of the acceptance test for one query
- PairFindingStatistics / ConsensusStatistics: Counters per matching call

Positions are (rt, mz) numpy arrays of shape (2,).

NOTE: LookupTable / ClaimState are NOT defined here. They live in
      matching/lookup.py next to the code that drives their transitions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, Sequence
import numpy as np


@dataclass
class PositionRange:
    """
    Closed 2D interval in (RT, m/z).

    Attributes:
        min_rt, min_mz: Lower corner
        max_rt, max_mz: Upper corner

    Notes:
        - encloses() is inclusive on both bounds
        - A single point yields a degenerate range (min == max)
    """
    min_rt: float
    min_mz: float
    max_rt: float
    max_mz: float

    @classmethod
    def from_position(cls, position: Sequence[float]) -> PositionRange:
        rt, mz = float(position[0]), float(position[1])
        return cls(rt, mz, rt, mz)

    def encloses(self, position: Sequence[float]) -> bool:
        rt, mz = position[0], position[1]
        return (self.min_rt <= rt <= self.max_rt) and (self.min_mz <= mz <= self.max_mz)

    def extend(self, position: Sequence[float]) -> None:
        """Grow the range so that it contains position."""
        rt, mz = float(position[0]), float(position[1])
        self.min_rt = min(self.min_rt, rt)
        self.min_mz = min(self.min_mz, mz)
        self.max_rt = max(self.max_rt, rt)
        self.max_mz = max(self.max_mz, mz)


@dataclass(frozen=True)
class ElementHandle:
    """
    Link to an element of an input map.

    Attributes:
        map_index: Index of the input map the element came from
        element_index: Position of the element in that map
        rt, mz: Element position at the time the handle was taken
        intensity: Element intensity

    Notes:
        - Frozen (hashable): handles are values, never owners
    """
    map_index: int
    element_index: int
    rt: float
    mz: float
    intensity: float = 0.0

    @property
    def position(self) -> np.ndarray:
        return np.array([self.rt, self.mz], dtype=float)


@dataclass
class Feature:
    """
    Positioned element of a feature map.

    Attributes:
        rt: Retention time
        mz: Mass-to-charge ratio
        intensity: Feature intensity
        charge: Charge state (0 = unknown)
        feature_id: Optional external identifier
    """
    rt: float
    mz: float
    intensity: float = 0.0
    charge: int = 0
    feature_id: Optional[Any] = None

    @property
    def position(self) -> np.ndarray:
        return np.array([self.rt, self.mz], dtype=float)

    @property
    def position_range(self) -> PositionRange:
        return PositionRange.from_position((self.rt, self.mz))


@dataclass
class ConsensusFeature:
    """
    Consensus element: a group of linked elements from several maps.

    Attributes:
        rt: Centroid retention time of all linked positions
        mz: Centroid m/z of all linked positions
        intensity: Mean intensity of all linked positions
        handles: Linked elements (insertion order)
        position_range: Bounding box of all handle positions

    Notes:
        - insert() updates centroid, intensity and range
        - merge() absorbs every handle of another consensus feature; this is
          how a matched reference element is linked into the consensus map
        - A consensus feature without handles keeps its own position as range
          and as first member of the centroid (weight counts the members)
    """
    rt: float
    mz: float
    intensity: float = 0.0
    handles: list[ElementHandle] = field(default_factory=list)
    position_range: Optional[PositionRange] = None
    weight: int = field(default=0, init=False, repr=False, compare=False)

    def __post_init__(self):
        # an element without handles counts its own position once
        self.weight = max(len(self.handles), 1)
        if self.position_range is None:
            self.position_range = PositionRange.from_position((self.rt, self.mz))
            for handle in self.handles:
                self.position_range.extend((handle.rt, handle.mz))

    @classmethod
    def from_feature(cls, map_index: int, element_index: int, feature: Feature) -> ConsensusFeature:
        """Singleton consensus feature linking one element."""
        handle = ElementHandle(
            map_index=map_index,
            element_index=element_index,
            rt=feature.rt,
            mz=feature.mz,
            intensity=feature.intensity,
        )
        return cls(rt=feature.rt, mz=feature.mz, intensity=feature.intensity, handles=[handle])

    @property
    def position(self) -> np.ndarray:
        return np.array([self.rt, self.mz], dtype=float)

    @property
    def size(self) -> int:
        return len(self.handles)

    def __iter__(self) -> Iterator[ElementHandle]:
        return iter(self.handles)

    def insert(self, handle: ElementHandle) -> None:
        """Link one more element and recompute centroid, intensity and range."""
        self.handles.append(handle)
        self.position_range.extend((handle.rt, handle.mz))

        w = self.weight
        self.rt = (self.rt * w + handle.rt) / (w + 1)
        self.mz = (self.mz * w + handle.mz) / (w + 1)
        self.intensity = (self.intensity * w + handle.intensity) / (w + 1)
        self.weight = w + 1

    def merge(self, other: ConsensusFeature) -> None:
        """Absorb all elements linked by other (other itself is left untouched)."""
        for handle in other.handles:
            self.insert(handle)


def consensus_map_from_features(map_index: int, features: Sequence[Feature]) -> list[ConsensusFeature]:
    """
    Wrap every feature of a map into a singleton consensus feature.

    Args:
        map_index: Index recorded in every handle
        features: Input feature map

    Returns:
        List of ConsensusFeature, same order as features
    """
    return [
        ConsensusFeature.from_feature(map_index, i, feature)
        for i, feature in enumerate(features)
    ]


@dataclass
class IndexedPoint:
    """
    Point stored in a spatial index.

    Attributes:
        position: Normalized (rt, mz / scale) coordinate, shape (2,)
        key: Position of the originating element in the reference map

    Notes:
        - key is the only back-reference to the element (no object reference)
    """
    position: np.ndarray
    key: int

    @property
    def rt(self) -> float:
        return float(self.position[0])

    @property
    def mz(self) -> float:
        return float(self.position[1])


@dataclass(frozen=True)
class CandidatePair:
    """
    Tentative match recorded during a matching pass.

    Attributes:
        reference_key: Index of the reference element
        scene_index: Index of the scene (or consensus) element

    Notes:
        - Stored in insertion order; a LookupTable entry points at one of them
        - Entries superseded by a tie-break stay in the list, unreferenced
    """
    reference_key: int
    scene_index: int


@dataclass
class ElementPair:
    """
    Output pair of the pair finder.

    Attributes:
        model: Reference (model map) element
        scene: Scene map element
        model_index: Position of model in the model map
        scene_index: Position of scene in the scene map

    Notes:
        - References only; both elements are owned by their maps
    """
    model: Any
    scene: Any
    model_index: int
    scene_index: int


class MatchOutcome(Enum):
    """
    Result of the acceptance test for one query.

    Values:
        ACCEPTED: Nearest neighbour is close and unambiguous
        NO_NEIGHBOR: Index returned no neighbour at all
        OUT_OF_PRECISION: Nearest neighbour farther than precision
        AMBIGUOUS: Second neighbour too close to the nearest one
    """
    ACCEPTED = "ACCEPTED"
    NO_NEIGHBOR = "NO_NEIGHBOR"
    OUT_OF_PRECISION = "OUT_OF_PRECISION"
    AMBIGUOUS = "AMBIGUOUS"


@dataclass
class PairFindingStatistics:
    """Counters collected by find_element_pairs()."""
    pairs: int = 0
    candidates: int = 0
    conflicts: int = 0
    ambiguous: int = 0
    out_of_precision: int = 0
    no_neighbor: int = 0

    def record(self, outcome: MatchOutcome) -> None:
        if outcome is MatchOutcome.ACCEPTED:
            self.candidates += 1
        elif outcome is MatchOutcome.AMBIGUOUS:
            self.ambiguous += 1
        elif outcome is MatchOutcome.OUT_OF_PRECISION:
            self.out_of_precision += 1
        elif outcome is MatchOutcome.NO_NEIGHBOR:
            self.no_neighbor += 1


@dataclass
class ConsensusStatistics:
    """
    Counters collected by compute_consensus_map().

    Attributes:
        pairs: Reference elements merged into a consensus element
        reference_singletons: Reference elements appended as new consensus elements
        scene_singletons: Scene elements left without reference partner
            (failed acceptance test, or claim conflict without tie-break)
        reassignments: Claims moved to a new candidate by the tie-break
        conflicts: Reference keys that ended CONFLICTED
    """
    pairs: int = 0
    reference_singletons: int = 0
    scene_singletons: int = 0
    reassignments: int = 0
    conflicts: int = 0
