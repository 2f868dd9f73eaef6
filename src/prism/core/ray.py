"""Ray data structure and vector utilities for recursive ray tracing.

This module provides the fundamental Ray dataclass and the vector utility
functions shared by the geometry kernel, the Whitted shader and the photon
tracer. Vectors are plain ``numpy`` arrays of shape ``(3,)`` with dtype
``float64``; every helper here is pure and returns a new array.

Example:
    >>> from src.prism.core.ray import Ray, make_ray, ray_at, vec3
    >>> ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -2.0))
    >>> ray_at(ray, 5.0)  # Point 5 units along the (normalized) ray
    array([ 0.,  0., -5.])
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

Vec3 = npt.NDArray[np.float64]

# Ray offset epsilon to avoid self-intersection
RAY_EPSILON = 1e-6

# Default parametric bounds for rays
T_MIN = RAY_EPSILON
T_MAX = 1e10

# Vectors shorter than this are treated as zero-length
_ZERO_LENGTH = 1e-12


def vec3(x: float, y: float, z: float) -> Vec3:
    """Create a 3-component float64 vector."""
    return np.array((x, y, z), dtype=np.float64)


def as_vec3(value) -> Vec3:
    """Coerce a tuple, list or array of three numbers to a vector.

    Raises:
        ValueError: If the value does not hold exactly three components.
    """
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected three components, got shape {arr.shape}")
    return arr.copy()


ZERO = vec3(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Ray:
    """A half-line with an origin point, unit direction and valid t-interval.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction of the ray. Unit length when built with
            make_ray(); a zero vector marks a degenerate ray that hits nothing.
        t_min: Smallest parameter accepted as a hit (avoids self-intersection).
        t_max: Largest parameter accepted as a hit (shadow rays, etc.).
    """

    origin: Vec3
    direction: Vec3
    t_min: float = T_MIN
    t_max: float = T_MAX

    @property
    def is_degenerate(self) -> bool:
        """True when the direction has zero length."""
        return length_squared(self.direction) < _ZERO_LENGTH


def make_ray(
    origin,
    direction,
    t_min: float = T_MIN,
    t_max: float = T_MAX,
) -> Ray:
    """Create a ray from origin and direction, normalizing the direction.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector (any non-zero length).
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A new Ray instance. A zero-length direction yields a degenerate ray
        whose intersections are always empty.
    """
    return Ray(
        origin=as_vec3(origin),
        direction=normalize(as_vec3(direction)),
        t_min=t_min,
        t_max=t_max,
    )


def ray_at(ray: Ray, t: float) -> Vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


def dot(a: Vec3, b: Vec3) -> float:
    """Compute the dot product of two vectors."""
    return float(a[0] * b[0] + a[1] * b[1] + a[2] * b[2])


def cross(a: Vec3, b: Vec3) -> Vec3:
    """Compute the cross product of two vectors."""
    return np.array(
        (
            a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0],
        ),
        dtype=np.float64,
    )


def length_squared(v: Vec3) -> float:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return dot(v, v)


def length(v: Vec3) -> float:
    """Compute the Euclidean length of a vector."""
    return math.sqrt(length_squared(v))


def normalize(v: Vec3) -> Vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
        If v is zero-length, returns a zero vector.
    """
    n2 = length_squared(v)
    if n2 < _ZERO_LENGTH:
        return np.zeros(3, dtype=np.float64)
    return v / math.sqrt(n2)


def is_unit(v: Vec3, tolerance: float = 1e-6) -> bool:
    """Check whether a vector has unit length within tolerance."""
    return abs(length(v) - 1.0) <= tolerance


def reflect(incident: Vec3, normal: Vec3) -> Vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * dot(incident, normal) * normal


def refract(incident: Vec3, normal: Vec3, eta: float) -> Vec3 | None:
    """Refract an incident vector through a surface using Snell's law.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal facing the incident ray (normalized).
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted unit direction, or None on total internal reflection
        (negative discriminant of Snell's law).
    """
    cos_i = min(-dot(incident, normal), 1.0)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    if sin2_t > 1.0:
        return None
    cos_t = math.sqrt(1.0 - sin2_t)
    return normalize(eta * incident + (eta * cos_i - cos_t) * normal)


def schlick_fresnel(cosine: float, n1: float, n2: float) -> float:
    """Compute Fresnel reflectance using Schlick's approximation.

    When light leaves the denser medium the cosine of the transmitted angle
    is used, and total internal reflection returns 1.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        n1: Refractive index of the medium the light comes from.
        n2: Refractive index of the medium the light enters.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = ((n1 - n2) / (n1 + n2)) ** 2
    cos_x = cosine
    if n1 > n2:
        sin2_t = (n1 / n2) ** 2 * (1.0 - cosine * cosine)
        if sin2_t > 1.0:
            return 1.0
        cos_x = math.sqrt(1.0 - sin2_t)
    return r0 + (1.0 - r0) * ((1.0 - cos_x) ** 5)


def fresnel_reflectance(cos_i: float, n1: float, n2: float) -> float:
    """Unpolarized Fresnel reflectance from the exact Fresnel equations.

    Averages the parallel and perpendicular reflection coefficients. At
    normal incidence this reduces to ((n1 - n2) / (n1 + n2))^2.

    Args:
        cos_i: Cosine of the incidence angle, in [0, 1].
        n1: Refractive index of the incident medium.
        n2: Refractive index of the transmitting medium.

    Returns:
        Reflectance in [0, 1]; 1.0 on total internal reflection.
    """
    cos_i = min(max(cos_i, 0.0), 1.0)
    eta = n1 / n2
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    if sin2_t > 1.0:
        return 1.0
    cos_t = math.sqrt(1.0 - sin2_t)
    r_par = (n2 * cos_i - n1 * cos_t) / (n2 * cos_i + n1 * cos_t)
    r_per = (n1 * cos_i - n2 * cos_t) / (n1 * cos_i + n2 * cos_t)
    return 0.5 * (r_par * r_par + r_per * r_per)


# =============================================================================
# Random Sampling Utilities
# =============================================================================
#
# Every sampler takes an explicit numpy Generator so photon tracing stays
# reproducible for a given seed.


def random_unit_vector(rng: np.random.Generator) -> Vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    while True:
        v = rng.normal(size=3)
        n2 = length_squared(v)
        if n2 > _ZERO_LENGTH:
            return v / math.sqrt(n2)


def random_in_unit_disk(rng: np.random.Generator) -> tuple[float, float]:
    """Generate a uniformly distributed point inside the unit disk."""
    r = math.sqrt(rng.random())
    phi = 2.0 * math.pi * rng.random()
    return r * math.cos(phi), r * math.sin(phi)


def random_cosine_direction(rng: np.random.Generator) -> Vec3:
    """Generate a random direction with cosine-weighted distribution.

    The distribution has PDF = cos(theta) / pi.

    Returns:
        A random direction in the local coordinate frame (z-up).
    """
    r1 = rng.random()
    r2 = rng.random()
    phi = 2.0 * math.pi * r1
    sqrt_r2 = math.sqrt(r2)
    return vec3(math.cos(phi) * sqrt_r2, math.sin(phi) * sqrt_r2, math.sqrt(1.0 - r2))


def build_onb_from_normal(normal: Vec3) -> tuple[Vec3, Vec3, Vec3]:
    """Build an orthonormal basis from a normal vector.

    Creates a local coordinate frame where the normal is the z-axis.

    Args:
        normal: The surface normal (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    # Choose a vector not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if abs(normal[0]) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(a, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent, normal


def local_to_world(local_dir: Vec3, tangent: Vec3, bitangent: Vec3, normal: Vec3) -> Vec3:
    """Transform a direction from local (z-up) to world coordinates."""
    return local_dir[0] * tangent + local_dir[1] * bitangent + local_dir[2] * normal


def sample_cosine_hemisphere(normal: Vec3, rng: np.random.Generator) -> tuple[Vec3, float]:
    """Cosine-weighted hemisphere sampling for diffuse surfaces.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        rng: The random source.

    Returns:
        A tuple of (direction, pdf) with pdf = cos(theta) / pi.
    """
    local_dir = random_cosine_direction(rng)
    tangent, bitangent, n = build_onb_from_normal(normal)
    world_dir = normalize(local_to_world(local_dir, tangent, bitangent, n))
    pdf = max(dot(world_dir, normal), 0.0) / math.pi
    return world_dir, pdf


def offset_ray_origin(point: Vec3, normal: Vec3, direction: Vec3) -> Vec3:
    """Offset ray origin to avoid self-intersection.

    Pushes the point slightly along the geometric normal in the direction
    the new ray will travel (above surface for reflection, below for
    refraction).

    Args:
        point: The intersection point.
        normal: The geometric surface normal.
        direction: The direction of the spawned ray.

    Returns:
        The offset origin point.
    """
    offset_dir = normal
    if dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + (RAY_EPSILON * 100.0) * offset_dir
