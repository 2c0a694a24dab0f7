"""
Neighbor Index

Radius queries over agent ground-plane positions for the flocking pass.

Backend selection via constants.USE_CKDTREE:
- True: scipy.cKDTree query_ball_point, O(log N) per query
- False: O(n) scan with identical results (A/B comparisons, tiny scenes)

Rows are population slot indices. DEAD agents are left out of the index
entirely, so they never show up as anyone's neighbor.
"""

import numpy as np
from scipy.spatial import cKDTree
from typing import List, Optional

from .constants import USE_CKDTREE, CKDTREE_LEAFSIZE


class NeighborIndex:
    """
    Spatial index with a stable API over either backend.

    build() must be called once per tick, on the tick-start snapshot,
    before any neighbors_within() call.
    """

    def __init__(self, use_ckdtree: Optional[bool] = None, leafsize: Optional[int] = None):
        """
        Args:
            use_ckdtree: Override USE_CKDTREE constant (for testing)
            leafsize: Override CKDTREE_LEAFSIZE constant (for testing)
        """
        self._use_ckdtree = USE_CKDTREE if use_ckdtree is None else bool(use_ckdtree)
        self._leafsize = CKDTREE_LEAFSIZE if leafsize is None else int(leafsize)
        self._tree: Optional[cKDTree] = None
        self._positions = np.zeros((0, 2), dtype=np.float64)
        self._active_rows = np.zeros(0, dtype=np.int64)
        self._build_seq: int = 0

    @property
    def use_ckdtree(self) -> bool:
        return self._use_ckdtree

    @property
    def build_seq(self) -> int:
        """Incremented on every build (stale-result checks in tests)"""
        return self._build_seq

    def __len__(self) -> int:
        return int(self._active_rows.shape[0])

    def build(self, positions_xz: np.ndarray, alive_mask: Optional[np.ndarray] = None):
        """
        Index a snapshot of positions.

        Args:
            positions_xz: (N, 2) array of [x, z] per slot
            alive_mask: Optional (N,) bool array; False rows are not indexed
        """
        positions = np.asarray(positions_xz, dtype=np.float64).reshape(-1, 2)
        if alive_mask is None:
            rows = np.arange(positions.shape[0], dtype=np.int64)
        else:
            rows = np.flatnonzero(np.asarray(alive_mask, dtype=bool)).astype(np.int64)

        self._positions = positions
        self._active_rows = rows
        self._build_seq += 1

        if self._use_ckdtree and rows.size > 0:
            self._tree = cKDTree(positions[rows], leafsize=self._leafsize)
        else:
            self._tree = None

    def neighbors_within(self, row: int, radius: float) -> List[int]:
        """
        Slots within radius of a slot (inclusive), excluding the slot itself.

        The query point is the slot's snapshot position, so a DEAD (unindexed)
        row can still ask; it just never appears in results.

        Returns:
            Sorted list of slot indices
        """
        if not 0 <= row < self._positions.shape[0] or self._active_rows.size == 0:
            return []

        if self._tree is not None:
            local = self._tree.query_ball_point(self._positions[row], r=radius)
            hits = self._active_rows[np.asarray(local, dtype=np.int64)] if local else []
            result = sorted(int(i) for i in hits if int(i) != row)
        else:
            result = self._neighbors_within_scan(row, radius)
        return result

    def _neighbors_within_scan(self, row: int, radius: float) -> List[int]:
        """O(n) fallback with the same inclusive-radius semantics"""
        deltas = self._positions[self._active_rows] - self._positions[row]
        d2 = np.einsum('ij,ij->i', deltas, deltas)
        hits = self._active_rows[d2 <= radius * radius]
        return [int(i) for i in hits if int(i) != row]
