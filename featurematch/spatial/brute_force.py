"""Exhaustive nearest-neighbour search."""

from __future__ import annotations
from typing import Sequence
import numpy as np

from .base import SpatialIndex, register_index, _as_query
from ..models import IndexedPoint


@register_index
class BruteForceIndex(SpatialIndex):
    """
    O(N) per query. Reference behaviour for the other backends.

    Notes:
        - Stable sort on squared distance: equal distances keep key order
    """

    KEY = "brute_force"

    def k_nearest(self, query: Sequence[float], k: int) -> list[IndexedPoint]:
        if k <= 0 or len(self.points) == 0:
            return []
        q = _as_query(query)
        d2 = np.sum((self.points - q) ** 2, axis=1)
        order = np.argsort(d2, kind="stable")[:k]
        return self._result(order)
