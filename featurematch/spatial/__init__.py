"""
Spatial Index Module.

Nearest-neighbour backends for the normalized reference map:
- SpatialIndex: Abstract interface (k_nearest)
- BruteForceIndex: Exhaustive search ("brute_force")
- KDTreeIndex: scipy cKDTree ("kdtree")
- DelaunayIndex: Delaunay graph walk ("delaunay", default)

Backends register themselves on import; use create_index(key, points).
"""

from .base import SpatialIndex, register_index, create_index, available_indexes
from .brute_force import BruteForceIndex
from .kdtree import KDTreeIndex
from .delaunay import DelaunayIndex

__all__ = [
    "SpatialIndex",
    "register_index",
    "create_index",
    "available_indexes",
    "BruteForceIndex",
    "KDTreeIndex",
    "DelaunayIndex",
]
