"""
Pair Finder Objects.

Stateful front end around find_element_pairs() / compute_consensus_map():
element map slots, per-axis transformations, flat "similarity:*" parameters
and a name-based factory.

Example:
    >>> finder = create_pair_finder("delaunay")
    >>> finder.set_param({"similarity:precision:RT": 10})
    >>> finder.set_model_map(model_features)
    >>> finder.set_scene_map(scene_features)
    >>> finder.set_transformation(Dimension.RT, LinearTransform(slope=1.0, intercept=-2.5))
    >>> pairs = finder.find_element_pairs()
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import ClassVar, MutableSequence, Optional, Sequence

from ..config import AxisTransform, Dimension, IdentityTransform, PairFinderConfig
from ..models import ConsensusStatistics, ElementPair, PairFindingStatistics
from .consensus import compute_consensus_map
from .pair_finder import find_element_pairs


logger = logging.getLogger(__name__)

# Element map slots
MODEL = 0
SCENE = 1

_REGISTRY: dict[str, type["BasePairFinder"]] = {}


class BasePairFinder(ABC):
    """
    Common state of pair finders.

    Attributes:
        config: PairFinderConfig (owned copy)
        element_maps: [model_map, scene_map], None until set
        transformation: Per-axis AxisTransform for scene coordinates
        element_pairs: Result of the last find_element_pairs() call
    """

    NAME: ClassVar[str] = ""

    def __init__(self, config: Optional[PairFinderConfig] = None):
        self.config = config.copy() if config is not None else PairFinderConfig()
        self.element_maps: list[Optional[Sequence]] = [None, None]
        self.transformation: dict[Dimension, AxisTransform] = {
            Dimension.RT: IdentityTransform(),
            Dimension.MZ: IdentityTransform(),
        }
        self.element_pairs: list[ElementPair] = []

    @classmethod
    def get_name(cls) -> str:
        return cls.NAME

    # ---------- Inputs ----------

    def set_element_map(self, index: int, element_map: Sequence) -> None:
        if index not in (MODEL, SCENE):
            raise ValueError(f"Element map index must be {MODEL} (model) or {SCENE} (scene), got {index}")
        self.element_maps[index] = element_map

    def set_model_map(self, element_map: Sequence) -> None:
        self.set_element_map(MODEL, element_map)

    def set_scene_map(self, element_map: Sequence) -> None:
        self.set_element_map(SCENE, element_map)

    def set_transformation(self, dim: Dimension, transform: AxisTransform) -> None:
        self.transformation[Dimension(dim)] = transform

    # ---------- Parameters ----------

    def set_param(self, param: dict[str, float]) -> None:
        """Apply flat "similarity:*" parameters (unknown keys raise ConfigurationError)."""
        self.config.update(param)

    def get_param(self) -> dict[str, float]:
        return self.config.to_param()

    def get_diff_intercept(self, dim: Dimension) -> float:
        return self.config.get_diff_intercept(dim)

    def set_diff_intercept(self, dim: Dimension, value: float) -> None:
        self.config.set_diff_intercept(dim, value)

    def get_max_pair_distance(self, dim: Dimension) -> float:
        return self.config.get_max_pair_distance(dim)

    def set_max_pair_distance(self, dim: Dimension, value: float) -> None:
        self.config.set_max_pair_distance(dim, value)

    def get_precision(self, dim: Dimension) -> float:
        return self.config.get_precision(dim)

    def set_precision(self, dim: Dimension, value: float) -> None:
        self.config.set_precision(dim, value)

    # ---------- Algorithms ----------

    @abstractmethod
    def find_element_pairs(self) -> list[ElementPair]:
        """Find pairs between the model and the scene map."""


def register_pair_finder(cls: type[BasePairFinder]) -> type[BasePairFinder]:
    """Class decorator to register a pair finder by its NAME."""
    name = getattr(cls, "NAME", None)
    if not name:
        raise ValueError(f"{cls.__name__} must define NAME")
    _REGISTRY[name] = cls
    return cls


def create_pair_finder(name: str, config: Optional[PairFinderConfig] = None) -> BasePairFinder:
    cls = _REGISTRY.get(name)
    if not cls:
        raise KeyError(f"No pair finder registered for name '{name}'")
    return cls(config)


def available_pair_finders() -> list[str]:
    return list(_REGISTRY.keys())


@register_pair_finder
class DelaunayPairFinder(BasePairFinder):
    """
    Nearest-neighbour pair finder with sticky conflicts and consensus merging.

    Attributes:
        last_statistics: Statistics of the last run (pair finding or consensus)

    Notes:
        - The spatial backend comes from config.index_backend ("delaunay" by default)
    """

    NAME = "delaunay"

    def __init__(self, config: Optional[PairFinderConfig] = None):
        super().__init__(config)
        self.last_statistics: Optional[PairFindingStatistics | ConsensusStatistics] = None

    def find_element_pairs(self) -> list[ElementPair]:
        """
        Run pair finding on the current element maps.

        Returns:
            List of ElementPair (also stored in self.element_pairs)

        Raises:
            ValueError: Model or scene map not set
        """
        model_map, scene_map = self.element_maps
        if model_map is None or scene_map is None:
            raise ValueError("Model and scene map must be set before finding pairs")

        stats = PairFindingStatistics()
        self.element_pairs = find_element_pairs(
            model_map,
            scene_map,
            self.config,
            transformation=(self.transformation[Dimension.RT], self.transformation[Dimension.MZ]),
            statistics=stats,
        )
        self.last_statistics = stats
        return self.element_pairs

    def compute_consensus_map(self, first_map: Sequence, second_map: MutableSequence, map_index: int = 0) -> None:
        """
        Merge first_map into the consensus map second_map (in place).

        Statistics of the merge are kept in self.last_statistics.
        """
        self.last_statistics = compute_consensus_map(first_map, second_map, self.config, map_index=map_index)
