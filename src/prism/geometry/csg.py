"""Constructive Solid Geometry through interval algebra.

Each child surface reports its crossings of a ray's line as a sorted,
alternating hit sequence. The sequence is read as a list of closed
intervals [enter, exit] along the line and combined with the node's
boolean operation:

    UNION         every point inside either child
    INTERSECTION  every point inside both children
    DIFFERENCE    every point inside the left child and not the right one

Overlap tests are strict, so intervals that only touch at a single t are
kept apart rather than merged. The result is converted back into a hit
sequence, which makes a CSGNode a drop-in Surface that nests freely.

Example:
    >>> from src.prism.core.ray import vec3
    >>> from src.prism.geometry.box import Box
    >>> from src.prism.geometry.csg import CSGNode, CSGOperation
    >>> from src.prism.geometry.sphere import Sphere
    >>> carved = CSGNode(
    ...     CSGOperation.DIFFERENCE,
    ...     Box(vec3(-1, -1, -1), vec3(2, 2, 2)),
    ...     Sphere(vec3(0, 0, 1), 0.75),
    ... )
"""

from __future__ import annotations

import math
from enum import Enum

import numpy as np

from src.prism.core.errors import SceneError
from src.prism.core.ray import Ray, Vec3
from src.prism.geometry.base import HitRecord, Surface, check_hit_sequence, infinite_hit

Interval = tuple[HitRecord, HitRecord]


class CSGOperation(Enum):
    UNION = "union"
    INTERSECTION = "intersection"
    DIFFERENCE = "difference"


# =============================================================================
# Interval algebra
# =============================================================================


def hits_to_intervals(hits: list[HitRecord], ray: Ray, owner: Surface) -> list[Interval]:
    """Pair a sorted, alternating hit sequence into (enter, exit) intervals.

    A sequence that starts with an exit or ends with an entry is closed
    with a synthetic hit at -inf or +inf.
    """
    intervals: list[Interval] = []
    pending: HitRecord | None = None
    for hit in hits:
        if hit.entering:
            pending = hit
        else:
            enter = pending if pending is not None else infinite_hit(ray, -math.inf, True, owner)
            intervals.append((enter, hit))
            pending = None
    if pending is not None:
        intervals.append((pending, infinite_hit(ray, math.inf, False, owner)))
    return intervals


def intervals_to_hits(intervals: list[Interval]) -> list[HitRecord]:
    hits: list[HitRecord] = []
    for enter, leave in intervals:
        hits.append(enter.with_role(True))
        hits.append(leave.with_role(False))
    return hits


def union_intervals(left: list[Interval], right: list[Interval]) -> list[Interval]:
    """Merge two interval lists; strictly overlapping intervals fuse."""
    merged: list[Interval] = []
    for enter, leave in sorted(left + right, key=lambda iv: iv[0].t):
        if merged and enter.t < merged[-1][1].t:
            prev_enter, prev_leave = merged[-1]
            if leave.t > prev_leave.t:
                merged[-1] = (prev_enter, leave)
        else:
            merged.append((enter, leave))
    return merged


def intersect_intervals(left: list[Interval], right: list[Interval]) -> list[Interval]:
    """Pairwise overlaps of two sorted interval lists."""
    result: list[Interval] = []
    i = j = 0
    while i < len(left) and j < len(right):
        a_enter, a_leave = left[i]
        b_enter, b_leave = right[j]
        enter = a_enter if a_enter.t >= b_enter.t else b_enter
        leave = a_leave if a_leave.t <= b_leave.t else b_leave
        if enter.t < leave.t:
            result.append((enter, leave))
        if a_leave.t <= b_leave.t:
            i += 1
        else:
            j += 1
    return result


def subtract_intervals(left: list[Interval], right: list[Interval]) -> list[Interval]:
    """Remove the right intervals from the left ones.

    Where a right interval cuts into a left one, the right child's boundary
    becomes part of the result with its role reversed: its entry closes
    the remaining piece and its exit opens the next one.
    """
    result: list[Interval] = []
    for a_enter, a_leave in left:
        start: HitRecord | None = a_enter
        for b_enter, b_leave in right:
            if b_leave.t <= start.t:
                continue
            if b_enter.t >= a_leave.t:
                break
            if b_enter.t > start.t:
                result.append((start, b_enter.with_role(False)))
            if b_leave.t >= a_leave.t:
                start = None
                break
            start = b_leave.with_role(True)
        if start is not None and start.t < a_leave.t:
            result.append((start, a_leave))
    return result


_COMBINE = {
    CSGOperation.UNION: union_intervals,
    CSGOperation.INTERSECTION: intersect_intervals,
    CSGOperation.DIFFERENCE: subtract_intervals,
}


# =============================================================================
# CSG node
# =============================================================================


class CSGNode(Surface):
    """Boolean combination of two surfaces.

    Args:
        operation: The boolean operation.
        left: First operand (the minuend for DIFFERENCE).
        right: Second operand.
        material: Optional material that overrides the children's materials
            on every hit of this node.

    Raises:
        SceneError: If a child already belongs to another node or scene.
    """

    def __init__(
        self,
        operation: CSGOperation,
        left: Surface,
        right: Surface,
        material=None,
        name: str | None = None,
    ):
        super().__init__(material, name)
        if not isinstance(operation, CSGOperation):
            raise SceneError(f"Unknown CSG operation: {operation!r}")
        if left is right:
            raise SceneError("CSG operands must be distinct surfaces")
        left.attach_to(self)
        right.attach_to(self)
        self.operation = operation
        self.left = left
        self.right = right

    def intersect(self, ray: Ray) -> list[HitRecord]:
        if ray.is_degenerate:
            return []

        left_hits = self.left.intersect(ray)
        right_hits = self.right.intersect(ray)
        check_hit_sequence(left_hits, self.left)
        check_hit_sequence(right_hits, self.right)

        left = hits_to_intervals(left_hits, ray, self)
        right = hits_to_intervals(right_hits, ray, self)
        hits = intervals_to_hits(_COMBINE[self.operation](left, right))

        if self.material is not None:
            hits = [hit.with_material(self.material) for hit in hits]
        return hits

    def bounds(self) -> tuple[Vec3, Vec3]:
        l_lo, l_hi = self.left.bounds()
        if self.operation is CSGOperation.DIFFERENCE:
            return l_lo, l_hi
        r_lo, r_hi = self.right.bounds()
        if self.operation is CSGOperation.UNION:
            return np.minimum(l_lo, r_lo), np.maximum(l_hi, r_hi)
        lo, hi = np.maximum(l_lo, r_lo), np.minimum(l_hi, r_hi)
        # Disjoint operands give an empty (degenerate) box
        return lo, np.maximum(lo, hi)

    def primitives(self) -> list[Surface]:
        return self.left.primitives() + self.right.primitives()

    @classmethod
    def union(cls, left: Surface, right: Surface, **kwargs) -> CSGNode:
        return cls(CSGOperation.UNION, left, right, **kwargs)

    @classmethod
    def intersection(cls, left: Surface, right: Surface, **kwargs) -> CSGNode:
        return cls(CSGOperation.INTERSECTION, left, right, **kwargs)

    @classmethod
    def difference(cls, left: Surface, right: Surface, **kwargs) -> CSGNode:
        return cls(CSGOperation.DIFFERENCE, left, right, **kwargs)
