"""
A/B comparison of the neighbor index backends.

cKDTree and the O(n) scan must return identical neighbor sets.
"""

import sys
import numpy as np
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from thermobugs.spatial_queries import NeighborIndex


def test_ckdtree_matches_linear_scan():
    print("=" * 60)
    print("A/B: cKDTree vs O(n) neighbor search")
    print("=" * 60)

    rng = np.random.default_rng(42)
    positions = rng.uniform(-15.0, 15.0, size=(120, 2))
    alive = rng.random(120) > 0.2

    tree = NeighborIndex(use_ckdtree=True)
    scan = NeighborIndex(use_ckdtree=False)
    tree.build(positions, alive)
    scan.build(positions, alive)

    total = 0
    for row in range(120):
        a = tree.neighbors_within(row, 4.0)
        b = scan.neighbors_within(row, 4.0)
        assert a == b, f"row {row}: {a} != {b}"
        assert row not in a
        assert all(alive[j] for j in a)
        total += len(a)

    print(f"[OK] {total} neighbor hits matched across backends")


def test_radius_is_inclusive_and_self_excluded():
    positions = np.array([[0.0, 0.0], [2.0, 0.0], [5.0, 0.0]])
    for use_tree in (True, False):
        index = NeighborIndex(use_ckdtree=use_tree)
        index.build(positions)
        assert index.neighbors_within(0, 2.0) == [1]
        assert index.neighbors_within(1, 3.0) == [0, 2]


def test_dead_rows_can_query_but_never_appear():
    positions = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    alive = np.array([True, False, True])
    for use_tree in (True, False):
        index = NeighborIndex(use_ckdtree=use_tree)
        index.build(positions, alive)
        assert len(index) == 2
        assert index.neighbors_within(0, 5.0) == [2]
        assert index.neighbors_within(1, 5.0) == [0, 2]


def test_empty_and_out_of_range():
    index = NeighborIndex()
    index.build(np.zeros((3, 2)), np.zeros(3, dtype=bool))
    assert index.neighbors_within(0, 10.0) == []
    assert index.neighbors_within(99, 10.0) == []

    seq = index.build_seq
    index.build(np.zeros((0, 2)))
    assert index.build_seq == seq + 1
    assert index.neighbors_within(0, 1.0) == []
