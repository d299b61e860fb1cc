"""
Anisotropic Distance Normalization.

RT and m/z differences are not equally significant: a difference of
diff_intercept_rt in RT is as large as diff_intercept_mz in m/z. Dividing m/z
by scale = diff_intercept_mz / diff_intercept_rt makes plain Euclidean
distance reflect that metric.
"""

from __future__ import annotations
from typing import Sequence, TYPE_CHECKING
import numpy as np

from ..config import ConfigurationError

if TYPE_CHECKING:
    from ..config import PairFinderConfig


class DistanceNormalizer:
    """
    Maps raw (rt, mz) positions to normalized (rt, mz / scale).

    Args:
        diff_intercept_rt: RT calibration constant (> 0)
        diff_intercept_mz: m/z calibration constant (> 0)

    Raises:
        ConfigurationError: If either intercept is not positive

    Example:
        >>> n = DistanceNormalizer(1.0, 0.1)
        >>> n.scale
        0.1
        >>> n.normalize((10.0, 5.0))
        array([10., 50.])
    """

    def __init__(self, diff_intercept_rt: float, diff_intercept_mz: float):
        if diff_intercept_rt <= 0:
            raise ConfigurationError(f"diff_intercept_rt must be > 0, got {diff_intercept_rt}")
        if diff_intercept_mz <= 0:
            raise ConfigurationError(f"diff_intercept_mz must be > 0, got {diff_intercept_mz}")
        self.scale = diff_intercept_mz / diff_intercept_rt

    @classmethod
    def from_config(cls, config: PairFinderConfig) -> DistanceNormalizer:
        return cls(config.diff_intercept_rt, config.diff_intercept_mz)

    def normalize(self, position: Sequence[float]) -> np.ndarray:
        return np.array([float(position[0]), float(position[1]) / self.scale], dtype=float)

    def normalize_mz(self, mz: float) -> float:
        return float(mz) / self.scale

    def normalize_many(self, positions: np.ndarray) -> np.ndarray:
        """Normalize an (N, 2) array of positions (returns a new array)."""
        arr = np.asarray(positions, dtype=float)
        if arr.size == 0:
            return arr.reshape(0, 2)
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ValueError(f"Expected (N, 2) array, got shape {arr.shape}")
        out = arr.copy()
        out[:, 1] /= self.scale
        return out
