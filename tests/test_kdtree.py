"""Unit tests for the balanced kd-tree.

Query results are checked against a brute-force search over the same
points.
"""

import math

import numpy as np
import pytest


def _brute_force(points, query, k, radius, accept=None):
    d2 = np.sum((points - query) ** 2, axis=1)
    found = [(float(d), int(i)) for i, d in enumerate(d2) if d <= radius * radius and (accept is None or accept(i))]
    found.sort()
    return found[:k]


class TestKDTreeBuild:
    """Tests for tree construction."""

    @pytest.mark.parametrize("n", [1, 2, 7, 100, 1000])
    def test_balanced_depth(self, n, rng):
        from src.prism.photon.kdtree import KDTree

        tree = KDTree(rng.random((n, 3)))
        assert len(tree) == n
        assert tree.depth == math.ceil(math.log2(n + 1))

    def test_empty_tree(self):
        from src.prism.photon.kdtree import KDTree

        tree = KDTree(np.zeros((0, 3)))
        assert len(tree) == 0
        assert tree.query(np.zeros(3), 5, 10.0) == []

    def test_points_are_copied_and_read_only(self):
        from src.prism.photon.kdtree import KDTree

        source = np.zeros((3, 3))
        tree = KDTree(source)
        source[0, 0] = 5.0
        assert tree.points[0, 0] == 0.0
        with pytest.raises(ValueError):
            tree.points[0, 0] = 1.0


class TestKDTreeQuery:
    """Tests for k-nearest-neighbour queries."""

    def test_matches_brute_force(self, rng):
        from src.prism.photon.kdtree import KDTree

        points = rng.random((500, 3)) * 10.0
        tree = KDTree(points)
        for _ in range(30):
            query = rng.random(3) * 10.0
            for k, radius in ((1, 100.0), (10, 2.0), (50, 1.5), (500, 100.0)):
                assert tree.query(query, k, radius) == _brute_force(points, query, k, radius)

    def test_radius_limits_results(self):
        from src.prism.photon.kdtree import KDTree

        points = np.array([[0.0, 0, 0], [1, 0, 0], [2, 0, 0], [3, 0, 0]])
        tree = KDTree(points)
        found = tree.query(np.zeros(3), 10, 1.5)
        assert [idx for _, idx in found] == [0, 1]

    def test_radius_is_inclusive(self):
        from src.prism.photon.kdtree import KDTree

        tree = KDTree(np.array([[2.0, 0, 0]]))
        assert tree.query(np.zeros(3), 1, 2.0) == [(4.0, 0)]

    def test_ties_ordered_by_index(self):
        """Test that equidistant points come back in index order."""
        from src.prism.photon.kdtree import KDTree

        points = np.array([[1.0, 0, 0], [0, 1.0, 0], [-1.0, 0, 0], [0, -1.0, 0], [0, 0, 1.0]])
        tree = KDTree(points)
        found = tree.query(np.zeros(3), 3, 2.0)
        assert [idx for _, idx in found] == [0, 1, 2]

    def test_duplicate_points(self):
        from src.prism.photon.kdtree import KDTree

        tree = KDTree(np.zeros((20, 3)))
        found = tree.query(np.zeros(3), 5, 0.1)
        assert [idx for _, idx in found] == [0, 1, 2, 3, 4]

    def test_accept_predicate(self, rng):
        """Test that rejected points do not use up the k slots."""
        from src.prism.photon.kdtree import KDTree

        points = rng.random((300, 3))
        tree = KDTree(points)

        def even(i):
            return i % 2 == 0

        query = np.full(3, 0.5)
        found = tree.query(query, 10, 1.0, accept=even)
        assert len(found) == 10
        assert found == _brute_force(points, query, 10, 1.0, even)

    def test_query_radius(self, rng):
        from src.prism.photon.kdtree import KDTree

        points = rng.random((200, 3))
        tree = KDTree(points)
        query = np.full(3, 0.5)
        expected = sorted(i for _, i in _brute_force(points, query, 200, 0.3))
        assert tree.query_radius(query, 0.3) == expected

    def test_invalid_arguments(self):
        from src.prism.photon.kdtree import KDTree

        tree = KDTree(np.zeros((3, 3)))
        assert tree.query(np.zeros(3), 0, 1.0) == []
        assert tree.query(np.zeros(3), 3, -1.0) == []
