"""Texture-coordinate projections.

Maps a surface point to (u, v) texture coordinates. The ``u`` axis runs
left to right and ``v`` runs top to bottom of the image. Every projection
returns finite coordinates for every finite point, so a texture can be
attached to any surface.
"""

from __future__ import annotations

import math
from enum import Enum

import numpy as np

from src.prism.core.ray import Vec3, cross, dot, normalize


class Projection(Enum):
    """How a texture is wrapped around a surface."""

    PLANAR = "planar"
    SPHERICAL = "spherical"
    CUBOID = "cuboid"


def _dominant_axis(normal: Vec3) -> int:
    return int(np.argmax(np.abs(normal)))


def planar_uv(point: Vec3, anchor: Vec3, normal: Vec3) -> tuple[float, float]:
    """Drop the dominant axis of the normal and use the two remaining coordinates.

    Args:
        point: Surface point.
        anchor: Origin of the texture plane.
        normal: Surface normal at the point.

    Returns:
        (u, v) in world units relative to the anchor.
    """
    rel = point - anchor
    axis = _dominant_axis(normal)
    if axis == 0:
        return float(rel[2]), float(-rel[1])
    if axis == 1:
        return float(rel[0]), float(rel[2])
    return float(rel[0]), float(-rel[1])


def oriented_planar_uv(point: Vec3, anchor: Vec3, normal: Vec3, up: Vec3) -> tuple[float, float]:
    """Planar coordinates along an explicit right/up frame on the plane.

    ``v`` grows against ``up`` so that the top of the image faces up.
    """
    right = normalize(cross(up, normal))
    rel = point - anchor
    return dot(rel, right), -dot(rel, up)


def spherical_uv(point: Vec3, center: Vec3) -> tuple[float, float]:
    """Longitude/latitude coordinates about a centre.

    Returns:
        (u, v) in [0, 1]; v = 0 at the north pole (+y).
    """
    d = normalize(point - center)
    if not d.any():
        return 0.0, 0.0
    theta = -math.atan2(d[0], d[2]) + math.pi
    phi = math.acos(max(-1.0, min(1.0, -d[1])))
    return theta / (2.0 * math.pi), (math.pi - phi) / math.pi


def cuboid_uv(point: Vec3, normal: Vec3, lo: Vec3, hi: Vec3) -> tuple[float, float]:
    """Select a face by the dominant normal axis and project within it.

    Coordinates are normalized to the box extent, so each face shows the
    whole image. Unbounded boxes fall back to planar_uv about the origin.
    """
    if not (np.all(np.isfinite(lo)) and np.all(np.isfinite(hi))):
        return planar_uv(point, np.zeros(3), normal)
    extent = np.where(hi - lo > 0.0, hi - lo, 1.0)
    rel = (point - lo) / extent
    axis = _dominant_axis(normal)
    if axis == 0:
        u = rel[2] if normal[0] < 0 else 1.0 - rel[2]
        return float(u), float(1.0 - rel[1])
    if axis == 1:
        v = rel[2] if normal[1] > 0 else 1.0 - rel[2]
        return float(rel[0]), float(v)
    u = rel[0] if normal[2] > 0 else 1.0 - rel[0]
    return float(u), float(1.0 - rel[1])


def project(projection: Projection, point: Vec3, normal: Vec3, surface) -> tuple[float, float]:
    """Apply an explicit projection policy to a point on a surface.

    Args:
        projection: The projection policy.
        point: Surface point.
        normal: Outward surface normal at the point.
        surface: The surface providing the anchor and bounds.

    Returns:
        Finite (u, v) texture coordinates.
    """
    if projection is Projection.SPHERICAL:
        return spherical_uv(point, surface.anchor())
    if projection is Projection.CUBOID:
        lo, hi = surface.bounds()
        return cuboid_uv(point, normal, lo, hi)
    return planar_uv(point, surface.anchor(), normal)


# =============================================================================
# Tangents
# =============================================================================
#
# Each helper returns the world direction in which u grows at a point, for
# the matching projection above. Normal maps use it as the tangent axis.

_X = np.array((1.0, 0.0, 0.0))
_Z = np.array((0.0, 0.0, 1.0))


def planar_tangent(normal: Vec3) -> Vec3:
    return _Z.copy() if _dominant_axis(normal) == 0 else _X.copy()


def oriented_planar_tangent(normal: Vec3, up: Vec3) -> Vec3:
    return normalize(cross(up, normal))


def spherical_tangent(point: Vec3, center: Vec3) -> Vec3:
    """Eastward direction along the line of latitude; zero at the poles."""
    d = point - center
    return normalize(np.array((-d[2], 0.0, d[0])))


def cuboid_tangent(normal: Vec3, lo: Vec3, hi: Vec3) -> Vec3:
    if not (np.all(np.isfinite(lo)) and np.all(np.isfinite(hi))):
        return planar_tangent(normal)
    axis = _dominant_axis(normal)
    if axis == 0:
        return _Z.copy() if normal[0] < 0 else -_Z
    if axis == 1:
        return _X.copy()
    return _X.copy() if normal[2] > 0 else -_X


def project_tangent(projection: Projection, point: Vec3, normal: Vec3, surface) -> Vec3:
    """Direction of growing u under an explicit projection policy."""
    if projection is Projection.SPHERICAL:
        return spherical_tangent(point, surface.anchor())
    if projection is Projection.CUBOID:
        lo, hi = surface.bounds()
        return cuboid_tangent(normal, lo, hi)
    return planar_tangent(normal)
