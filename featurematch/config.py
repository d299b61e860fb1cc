"""
Pair Finder Configuration Models.

This module defines the configuration structures for the pair finder:
- Dimension: Axis identifiers (RT, MZ)
- AxisTransform: Per-axis coordinate transformations applied to the scene map
- PairFinderConfig: All matching parameters (3 groups + runtime switches)

Axis conventions:
- RT: retention time (time-like axis), index 0
- MZ: mass-to-charge (mass-like axis), index 1
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, replace
from enum import IntEnum
from typing import Literal


class ConfigurationError(ValueError):
    """
    Raised when pair finder parameters are invalid.

    Reported before any matching work is done (see PairFinderConfig.validate()).
    """
    pass


class Dimension(IntEnum):
    """Axis identifiers. Values double as column indices into position arrays."""
    RT = 0
    MZ = 1


# Short axis names used in flat parameter keys ("similarity:precision:RT")
DIMENSION_NAMES = {Dimension.RT: "RT", Dimension.MZ: "MZ"}


class AxisTransform(ABC):
    """One-dimensional coordinate transformation applied to a single axis."""

    @abstractmethod
    def apply(self, value: float) -> float:
        """Map a coordinate to its transformed value."""


class IdentityTransform(AxisTransform):
    """Leaves coordinates unchanged."""

    def apply(self, value: float) -> float:
        return value

    def __repr__(self) -> str:
        return "IdentityTransform()"


@dataclass
class LinearTransform(AxisTransform):
    """
    Affine axis transformation: value' = slope * value + intercept.

    Attributes:
        slope: Multiplicative factor
        intercept: Additive offset (applied after scaling)

    Notes:
        - Typical result of a map dewarping step (e.g. RT shift + stretch)
        - LinearTransform() is the identity
    """
    slope: float = 1.0
    intercept: float = 0.0

    def apply(self, value: float) -> float:
        return self.slope * value + self.intercept


@dataclass
class PairFinderConfig:
    """
    Complete pair finder configuration (all parameters).

    Organized in 3 groups:
    1. Similarity: Acceptance thresholds (precision, max pair distance)
    2. Metric: Anisotropic distance calibration (diff intercepts)
    3. Runtime: Spatial index backend, tie-break mode, timing

    Notes:
        - diff_intercept_rt / diff_intercept_mz define the scale by which m/z is
          divided before Euclidean distances are taken: a difference of
          diff_intercept_rt in RT counts as much as diff_intercept_mz in m/z
        - Thresholds are compared in normalized space (m/z already divided)
        - Call validate() after mutating fields by hand
    """

    # ========== 1. Similarity ==========
    max_pair_distance_rt: float = 3.0
    """Nearest and second nearest reference elements closer than this in RT
    (and in normalized m/z) make a match ambiguous."""

    max_pair_distance_mz: float = 1.0
    """Ambiguity threshold on the normalized m/z axis. Also the minimum
    normalized m/z gap between two competing consensus elements before a
    distance tie-break is attempted."""

    precision_rt: float = 20.0
    """Maximum RT deviation between a query and its nearest reference element."""

    precision_mz: float = 5.0
    """Maximum normalized m/z deviation between a query and its nearest reference element."""

    # ========== 2. Metric ==========
    diff_intercept_rt: float = 1.0
    """RT difference considered as significant as diff_intercept_mz in m/z."""

    diff_intercept_mz: float = 0.1
    """m/z difference considered as significant as diff_intercept_rt in RT."""

    # ========== 3. Runtime ==========
    index_backend: str = "delaunay"
    """Spatial index used for nearest neighbour queries.
       - 'delaunay': Delaunay triangulation graph walk (scipy.spatial.Delaunay)
       - 'kdtree': scipy.spatial.cKDTree
       - 'brute_force': exhaustive search (small maps, tests)"""

    tie_break_distance: Literal["euclidean", "legacy"] = "euclidean"
    """Distance rule used when two consensus elements claim the same reference element.
       - 'euclidean': raw (RT, m/z) distance, the closer candidate wins
       - 'legacy': historical formula, m/z term taken against the candidate's RT
         and the claim moves when the current holder is closer"""

    enable_performance_logging: bool = False
    """Time index construction and matching loops (reported via logging)."""

    def __post_init__(self):
        self.validate()

    @property
    def mz_scale(self) -> float:
        """Divisor applied to m/z coordinates before distance computations."""
        return self.diff_intercept_mz / self.diff_intercept_rt

    def validate(self) -> None:
        """
        Check parameter ranges.

        Raises:
            ConfigurationError: On non-positive diff intercepts, negative
                thresholds or an unknown tie-break mode
        """
        if self.diff_intercept_rt <= 0:
            raise ConfigurationError(
                f"diff_intercept_rt must be > 0, got {self.diff_intercept_rt}"
            )
        if self.diff_intercept_mz <= 0:
            raise ConfigurationError(
                f"diff_intercept_mz must be > 0, got {self.diff_intercept_mz}"
            )
        for name in ("max_pair_distance_rt", "max_pair_distance_mz", "precision_rt", "precision_mz"):
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {value}")
        if self.tie_break_distance not in ("euclidean", "legacy"):
            raise ConfigurationError(
                f"tie_break_distance must be 'euclidean' or 'legacy', got {self.tie_break_distance!r}"
            )

    # ---------- Per-dimension access ----------

    def get_diff_intercept(self, dim: Dimension) -> float:
        return getattr(self, f"diff_intercept_{_suffix(dim)}")

    def set_diff_intercept(self, dim: Dimension, value: float) -> None:
        self._assign({f"diff_intercept_{_suffix(dim)}": float(value)})

    def get_max_pair_distance(self, dim: Dimension) -> float:
        return getattr(self, f"max_pair_distance_{_suffix(dim)}")

    def set_max_pair_distance(self, dim: Dimension, value: float) -> None:
        self._assign({f"max_pair_distance_{_suffix(dim)}": float(value)})

    def get_precision(self, dim: Dimension) -> float:
        return getattr(self, f"precision_{_suffix(dim)}")

    def set_precision(self, dim: Dimension, value: float) -> None:
        self._assign({f"precision_{_suffix(dim)}": float(value)})

    # ---------- Flat parameter keys ----------

    def to_param(self) -> dict[str, float]:
        """
        Export similarity parameters as flat keys.

        Returns:
            Dict like {"similarity:precision:RT": 20.0, ...}
        """
        return {key: float(getattr(self, attr)) for key, attr in PARAM_KEYS.items()}

    @classmethod
    def from_param(cls, param: dict[str, float], **overrides) -> PairFinderConfig:
        """
        Create config from flat parameter keys.

        Args:
            param: Mapping of "similarity:*" keys to values; missing keys keep defaults
            **overrides: Additional dataclass fields (index_backend, ...)

        Raises:
            ConfigurationError: Unknown key or invalid value

        Example:
            >>> cfg = PairFinderConfig.from_param({"similarity:precision:RT": 10})
            >>> cfg.precision_rt
            10.0
        """
        kwargs = dict(overrides)
        for key, value in param.items():
            if key not in PARAM_KEYS:
                raise ConfigurationError(f"Unknown parameter '{key}'")
            kwargs[PARAM_KEYS[key]] = float(value)
        return cls(**kwargs)

    def update(self, param: dict[str, float]) -> None:
        """Apply flat parameter keys in place (all or nothing)."""
        values = {}
        for key, value in param.items():
            if key not in PARAM_KEYS:
                raise ConfigurationError(f"Unknown parameter '{key}'")
            values[PARAM_KEYS[key]] = float(value)
        self._assign(values)

    def copy(self) -> PairFinderConfig:
        return PairFinderConfig(**{f.name: getattr(self, f.name) for f in fields(self)})

    def _assign(self, values: dict) -> None:
        # replace() runs validate() on the candidate, self stays untouched on error
        replace(self, **values)
        for name, value in values.items():
            setattr(self, name, value)


def _suffix(dim: Dimension) -> str:
    return DIMENSION_NAMES[Dimension(dim)].lower()


PARAM_KEYS: dict[str, str] = {
    f"similarity:{group}:{DIMENSION_NAMES[dim]}": f"{group}_{DIMENSION_NAMES[dim].lower()}"
    for group in ("max_pair_distance", "precision", "diff_intercept")
    for dim in Dimension
}
