"""k-d tree backend (scipy.spatial.cKDTree)."""

from __future__ import annotations
from typing import Sequence
import numpy as np
from scipy.spatial import cKDTree

from .base import SpatialIndex, register_index, _as_query
from ..models import IndexedPoint


@register_index
class KDTreeIndex(SpatialIndex):
    """
    cKDTree over the normalized reference points.

    Notes:
        - cKDTree does not guarantee key order on exact distance ties, so the
          returned block is re-sorted by (distance, key)
    """

    KEY = "kdtree"

    def __init__(self, points: np.ndarray, leafsize: int = 16):
        super().__init__(points)
        self._tree = cKDTree(self.points, leafsize=leafsize) if len(self.points) else None

    def k_nearest(self, query: Sequence[float], k: int) -> list[IndexedPoint]:
        if k <= 0 or self._tree is None:
            return []
        q = _as_query(query)
        k_eff = min(k, len(self.points))

        # One extra neighbour so that a tie at the cut is still ordered by key
        distances, indices = self._tree.query(q, k=min(k_eff + 1, len(self.points)))
        distances = np.atleast_1d(distances)
        indices = np.atleast_1d(indices)

        order = np.lexsort((indices, distances))
        return self._result(indices[order][:k_eff])
