"""
Delaunay Triangulation Backend.

Nearest-neighbour search on the Delaunay graph of the reference points
(scipy.spatial.Delaunay):

1. Locate the simplex containing the query and start at one of its vertices
   (any hull vertex if the query lies outside the hull).
2. Greedy walk: move to a strictly closer adjacent vertex until none exists.
   On a Delaunay graph this ends at the nearest site.
3. Best-first expansion from the nearest site: the (i+1)-th nearest site is
   adjacent to one of the first i, so popping a distance-ordered frontier
   yields the k nearest sites in order.

Points qhull does not use as vertices (duplicates, reported as "coplanar")
are attached to their nearest vertex in the adjacency graph.
"""

from __future__ import annotations
import heapq
import logging
from typing import Sequence
import numpy as np
from scipy.spatial import Delaunay, QhullError

from .base import SpatialIndex, register_index, _as_query
from ..models import IndexedPoint


logger = logging.getLogger(__name__)


@register_index
class DelaunayIndex(SpatialIndex):
    """
    Delaunay-graph k-nearest-neighbour index.

    Notes:
        - Fewer than 3 points or a degenerate (collinear) point set cannot be
          triangulated; queries then fall back to exhaustive search
        - Results ordered by (distance, key), like BruteForceIndex
    """

    KEY = "delaunay"

    def __init__(self, points: np.ndarray):
        super().__init__(points)
        self._tri = None
        self._neighbors: list[list[int]] = []

        if len(self.points) < 3:
            return

        try:
            self._tri = Delaunay(self.points)
        except QhullError as exc:
            logger.debug("Delaunay triangulation failed (%s), using exhaustive search", exc)
            self._tri = None
            return

        self._neighbors = _adjacency(self._tri, len(self.points))

    @property
    def is_triangulated(self) -> bool:
        return self._tri is not None

    def k_nearest(self, query: Sequence[float], k: int) -> list[IndexedPoint]:
        if k <= 0 or len(self.points) == 0:
            return []
        q = _as_query(query)

        if self._tri is None:
            d2 = np.sum((self.points - q) ** 2, axis=1)
            return self._result(np.argsort(d2, kind="stable")[:k])

        nearest = self._walk(q, self._start_vertex(q))
        return self._result(self._expand(q, nearest, min(k, len(self.points))))

    # ---------- Internals ----------

    def _dist2(self, q: np.ndarray, key: int) -> float:
        diff = self.points[key] - q
        return float(diff[0] * diff[0] + diff[1] * diff[1])

    def _start_vertex(self, q: np.ndarray) -> int:
        simplex = int(self._tri.find_simplex(q))
        if simplex >= 0:
            return int(self._tri.simplices[simplex][0])
        return int(self._tri.convex_hull[0][0])

    def _walk(self, q: np.ndarray, start: int) -> int:
        current = start
        current_d2 = self._dist2(q, current)
        while True:
            best, best_d2 = current, current_d2
            for nb in self._neighbors[current]:
                d2 = self._dist2(q, nb)
                if d2 < best_d2 or (d2 == best_d2 and nb < best):
                    best, best_d2 = nb, d2
            if best == current:
                return current
            current, current_d2 = best, best_d2

    def _expand(self, q: np.ndarray, nearest: int, k: int) -> list[int]:
        heap = [(self._dist2(q, nearest), nearest)]
        visited = {nearest}
        found: list[tuple[float, int]] = []

        while heap:
            d2, key = heapq.heappop(heap)
            # Keep popping exact ties of the k-th distance so key order decides
            if len(found) >= k and d2 > found[-1][0]:
                break
            found.append((d2, key))
            for nb in self._neighbors[key]:
                if nb not in visited:
                    visited.add(nb)
                    heapq.heappush(heap, (self._dist2(q, nb), nb))

        found.sort()
        return [key for _, key in found[:k]]


def _adjacency(tri: Delaunay, n_points: int) -> list[list[int]]:
    indptr, indices = tri.vertex_neighbor_vertices
    neighbors = [
        [int(v) for v in indices[indptr[i]:indptr[i + 1]]]
        for i in range(n_points)
    ]

    for point, _simplex, vertex in np.asarray(tri.coplanar).reshape(-1, 3):
        point, vertex = int(point), int(vertex)
        neighbors[point].append(vertex)
        neighbors[vertex].append(point)

    return neighbors
