"""Fresnel split between specular reflection and refraction.

This module decides how much of the light arriving at a surface continues
along the mirror direction and how much is transmitted into (or out of) the
solid. The same split drives the recursive shader, which weights its two
child rays with it, and the photon tracer, which uses it as Russian-roulette
probabilities.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Exact (unpolarized) or Schlick Fresnel reflectance
    - Total internal reflection when sin(theta_t) > 1

The outside of every solid is assumed to be air (n = 1).

Example:
    >>> from src.prism.core.ray import vec3
    >>> from src.prism.materials.dielectric import specular_split
    >>> from src.prism.materials.material import Material
    >>> split = specular_split(
    ...     Material.glass(1.5), vec3(0, 0, -1), vec3(0, 0, 1), entering=True
    ... )
    >>> round(split.w_reflect, 4)
    0.04
"""

from __future__ import annotations

from typing import NamedTuple

from src.prism.core.errors import InvariantViolation
from src.prism.core.ray import (
    Vec3,
    dot,
    fresnel_reflectance,
    is_unit,
    normalize,
    reflect,
    refract,
    schlick_fresnel,
)
from src.prism.materials.material import Material

# Refractive index of the medium outside every solid
AIR_IOR = 1.0


class SpecularSplit(NamedTuple):
    """Weights and directions of the specular branches at a hit.

    Attributes:
        w_reflect: Weight of the mirror-reflected branch.
        w_transmit: Weight of the refracted branch.
        reflected: Mirror direction (unit).
        refracted: Refracted direction (unit), or None when there is none.
    """

    w_reflect: float
    w_transmit: float
    reflected: Vec3
    refracted: Vec3 | None


def fresnel(cos_i: float, n1: float, n2: float, mode: str = "exact") -> float:
    """Fresnel reflectance for light going from medium n1 into n2.

    Args:
        cos_i: Cosine of the incidence angle.
        n1: Refractive index on the incident side.
        n2: Refractive index on the transmitted side.
        mode: "exact" or "schlick".

    Returns:
        The reflectance R in [0, 1]; the transmittance is 1 - R.

    Raises:
        ValueError: If either index is not positive or the mode is unknown.
    """
    if n1 <= 0.0 or n2 <= 0.0:
        raise ValueError(f"Refractive indices must be positive, got {n1} and {n2}")
    if mode == "exact":
        return fresnel_reflectance(cos_i, n1, n2)
    if mode == "schlick":
        return schlick_fresnel(cos_i, n1, n2)
    raise ValueError(f"Unknown Fresnel mode: {mode!r}")


def media(material: Material, entering: bool) -> tuple[float, float]:
    """Return (n_incident, n_transmitted) for a crossing of the surface."""
    if entering:
        return AIR_IOR, material.ior
    return material.ior, AIR_IOR


def specular_split(
    material: Material,
    direction: Vec3,
    facing_normal: Vec3,
    entering: bool,
    mode: str = "exact",
) -> SpecularSplit:
    """Compute the reflect/transmit weights and directions at a hit.

    Transparent materials weight the reflected branch by R x reflectivity
    and the transmitted branch by T x transparency with T = 1 - R. When
    Snell's law has no solution the transmission weight is added to the
    reflection instead. Opaque materials reflect with their reflectivity
    alone. The pair is rescaled so that w_reflect + w_transmit <= 1.

    Args:
        material: Material at the hit.
        direction: Unit direction of the incoming ray.
        facing_normal: Unit normal oriented against the incoming ray.
        entering: True when the ray enters the solid.
        mode: Fresnel formula, "exact" or "schlick".

    Returns:
        A SpecularSplit.

    Raises:
        InvariantViolation: If the normal is not unit length.
    """
    if not is_unit(facing_normal, 1e-4):
        raise InvariantViolation(f"Non-unit normal reached the shader: {facing_normal}")

    reflected = normalize(reflect(direction, facing_normal))

    if material.transparency <= 0.0:
        return SpecularSplit(material.reflectivity, 0.0, reflected, None)

    n1, n2 = media(material, entering)
    refracted = refract(direction, facing_normal, n1 / n2)
    if refracted is None:
        # Total internal reflection
        w_reflect = material.reflectivity + material.transparency
        w_transmit = 0.0
    else:
        cos_i = min(-dot(direction, facing_normal), 1.0)
        r = fresnel(cos_i, n1, n2, mode)
        w_reflect = r * material.reflectivity
        w_transmit = (1.0 - r) * material.transparency

    total = w_reflect + w_transmit
    if total > 1.0:
        w_reflect /= total
        w_transmit /= total
    return SpecularSplit(w_reflect, w_transmit, reflected, refracted)
