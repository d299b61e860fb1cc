"""
Spatial Index Interface and Backend Registry.

A spatial index is built once over the normalized reference coordinates and
answers k-nearest-neighbour queries. The matching code only relies on:

    index = create_index(key, points)      # points: (N, 2) normalized
    index.k_nearest(query, k)              # -> list[IndexedPoint], nearest first

Keys of the returned points are row indices into `points`.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import ClassVar, Sequence
import numpy as np

from ..models import IndexedPoint


_REGISTRY: dict[str, type["SpatialIndex"]] = {}


class SpatialIndex(ABC):
    """
    Immutable nearest-neighbour index over 2D points.

    Attributes:
        points: (N, 2) float array, row i has key i

    Contract for k_nearest():
        - At most min(k, N) results
        - Ordered by Euclidean distance, ties broken by smaller key
    """

    KEY: ClassVar[str] = ""

    def __init__(self, points: np.ndarray):
        self.points = _as_points(points)

    def __len__(self) -> int:
        return len(self.points)

    @abstractmethod
    def k_nearest(self, query: Sequence[float], k: int) -> list[IndexedPoint]:
        """Return the k nearest stored points to query."""

    def _result(self, keys: Sequence[int]) -> list[IndexedPoint]:
        return [IndexedPoint(position=self.points[key].copy(), key=int(key)) for key in keys]


def register_index(cls: type[SpatialIndex]) -> type[SpatialIndex]:
    """Class decorator to register an index backend by its KEY."""
    key = getattr(cls, "KEY", None)
    if not key:
        raise ValueError(f"{cls.__name__} must define KEY")
    _REGISTRY[key] = cls
    return cls


def create_index(key: str, points: np.ndarray) -> SpatialIndex:
    cls = _REGISTRY.get(key)
    if not cls:
        raise KeyError(f"No spatial index registered for key '{key}'")
    return cls(points)


def available_indexes() -> list[str]:
    return list(_REGISTRY.keys())


def _as_points(points: np.ndarray) -> np.ndarray:
    arr = np.asarray(points, dtype=float)
    if arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected (N, 2) array, got shape {arr.shape}")
    return arr


def _as_query(query: Sequence[float]) -> np.ndarray:
    q = np.asarray(query, dtype=float)
    if q.shape != (2,):
        raise ValueError(f"Expected query of shape (2,), got {q.shape}")
    return q
