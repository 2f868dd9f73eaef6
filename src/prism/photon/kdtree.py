"""Balanced kd-tree for k-nearest-neighbour photon queries.

The tree stores one point per node. Each subtree is split at the median of
its widest axis, which keeps the depth at ceil(log2(n + 1)). Nodes live in
flat numpy arrays so a built tree is a plain read-only value that can be
shared between threads.

Queries return at most k points within a radius, ordered by distance.
Equal distances are ordered by point index, so results do not depend on
the traversal order.
"""

from __future__ import annotations

import heapq
from collections.abc import Callable

import numpy as np

from src.prism.core.ray import Vec3


class KDTree:
    """Median-split kd-tree over a fixed (n, 3) array of points.

    Args:
        points: Array of shape (n, 3). It is copied and never modified.

    Example:
        >>> import numpy as np
        >>> tree = KDTree(np.array([[0.0, 0, 0], [1, 0, 0], [3, 0, 0]]))
        >>> [idx for _, idx in tree.query(np.array([0.9, 0, 0]), k=2, max_radius=5.0)]
        [1, 0]
    """

    def __init__(self, points: np.ndarray):
        pts = np.array(points, dtype=np.float64, copy=True).reshape(-1, 3)
        pts.setflags(write=False)
        self.points = pts
        n = len(pts)
        self._point = np.full(n, -1, dtype=np.int64)
        self._axis = np.zeros(n, dtype=np.int8)
        self._left = np.full(n, -1, dtype=np.int64)
        self._right = np.full(n, -1, dtype=np.int64)
        self._count = 0
        self.depth = 0
        self.root = self._build(np.arange(n, dtype=np.int64), 1) if n else -1
        # Plain lists are much faster than numpy scalars in the query loop
        self._nodes = list(zip(self._point.tolist(), self._axis.tolist(), self._left.tolist(), self._right.tolist()))
        self._coords = pts.tolist()

    def __len__(self) -> int:
        return len(self.points)

    def _build(self, indices: np.ndarray, depth: int) -> int:
        self.depth = max(self.depth, depth)
        subset = self.points[indices]
        axis = int(np.argmax(subset.max(axis=0) - subset.min(axis=0)))
        # Ties on the split coordinate are ordered by index for determinism
        order = indices[np.lexsort((indices, subset[:, axis]))]
        mid = len(order) // 2

        node = self._count
        self._count += 1
        self._point[node] = order[mid]
        self._axis[node] = axis
        if mid > 0:
            self._left[node] = self._build(order[:mid], depth + 1)
        if mid + 1 < len(order):
            self._right[node] = self._build(order[mid + 1 :], depth + 1)
        return node

    def query(
        self,
        point: Vec3,
        k: int,
        max_radius: float,
        accept: Callable[[int], bool] | None = None,
    ) -> list[tuple[float, int]]:
        """Find the k nearest accepted points within max_radius.

        Args:
            point: Query position.
            k: Maximum number of neighbours.
            max_radius: Search radius (inclusive).
            accept: Optional predicate on point indices; rejected points do
                not count toward k.

        Returns:
            List of (squared_distance, index) sorted by distance then index.
        """
        if self.root < 0 or k <= 0 or max_radius < 0.0:
            return []

        q = (float(point[0]), float(point[1]), float(point[2]))
        qx, qy, qz = q
        nodes = self._nodes
        coords = self._coords
        # Max-heap of the current best candidates as (-d2, -index)
        heap: list[tuple[float, int]] = []
        r2 = max_radius * max_radius

        # Subtrees still to visit, with the squared distance to their
        # splitting plane
        pending: list[tuple[int, float]] = [(self.root, 0.0)]
        while pending:
            node, plane_d2 = pending.pop()
            if plane_d2 > r2:
                continue
            while node >= 0:
                idx, axis, left, right = nodes[node]
                p = coords[idx]
                diff = q[axis] - p[axis]
                if diff < 0.0:
                    near, far = left, right
                else:
                    near, far = right, left

                dx, dy, dz = qx - p[0], qy - p[1], qz - p[2]
                d2 = dx * dx + dy * dy + dz * dz
                if d2 <= r2 and (accept is None or accept(idx)):
                    entry = (-d2, -idx)
                    if len(heap) < k:
                        heapq.heappush(heap, entry)
                    elif entry > heap[0]:
                        heapq.heapreplace(heap, entry)
                    if len(heap) == k:
                        r2 = -heap[0][0]

                if far >= 0 and diff * diff <= r2:
                    pending.append((far, diff * diff))
                node = near

        result = [(-nd2, -nidx) for nd2, nidx in heap]
        result.sort()
        return result

    def query_radius(self, point: Vec3, radius: float) -> list[int]:
        """Indices of every point within radius, in index order."""
        found = self.query(point, len(self.points), radius)
        return sorted(idx for _, idx in found)
