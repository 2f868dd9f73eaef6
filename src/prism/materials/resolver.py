"""Material and texture resolution at a hit point.

Turns a raw HitRecord into the inputs of the shading equations: the base
color (white, or a texture sample) and the shading normal (the geometric
normal, optionally perturbed by a normal map in the local tangent frame).
Resolution is deterministic and has no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from src.prism.core.errors import InvariantViolation
from src.prism.core.ray import Vec3, build_onb_from_normal, cross, dot, is_unit, local_to_world, normalize
from src.prism.geometry.base import HitRecord
from src.prism.materials.material import Material
from src.prism.materials.texture import Texture

_WHITE = np.ones(3)

# Material used when a surface was built without one
DEFAULT_MATERIAL = Material()


@dataclass(frozen=True, eq=False)
class ShadingPoint:
    """Everything the shader needs about one visible hit.

    Attributes:
        hit: The underlying hit record.
        material: Resolved material.
        base_color: RGB multiplier of the ambient and diffuse reflectances.
        normal: Outward shading normal (unit).
        facing_normal: Shading normal oriented against the incoming ray.
        geometric_normal: Unperturbed facing normal, used to offset rays.
    """

    hit: HitRecord
    material: Material
    base_color: Vec3
    normal: Vec3
    facing_normal: Vec3
    geometric_normal: Vec3

    @property
    def point(self) -> Vec3:
        return self.hit.point

    @property
    def entering(self) -> bool:
        return self.hit.entering


def tangent_frame(normal: Vec3, tangent: Vec3 | None = None) -> tuple[Vec3, Vec3, Vec3]:
    """Orthonormal (tangent, bitangent, normal) frame for normal mapping.

    The tangent is ``tangent`` with its normal component removed, so the
    map's red channel follows the texture's u axis. Without a usable
    tangent an arbitrary frame around the normal is used.
    """
    if tangent is not None:
        t = normalize(tangent - dot(tangent, normal) * normal)
        if t.any():
            return t, cross(normal, t), normal
    return build_onb_from_normal(normal)


def perturb_normal(normal: Vec3, texel: Vec3, strength: float, tangent: Vec3 | None = None) -> Vec3:
    """Blend a normal-map sample into a geometric normal.

    The texel c is decoded as the tangent-space vector 2c - 1 in the frame
    returned by tangent_frame, then linearly blended with the normal.

    Args:
        normal: Unit geometric normal.
        texel: RGB sample in [0, 1].
        strength: 0 keeps the geometric normal, 1 uses the mapped one.
        tangent: World direction of growing u, if known.

    Returns:
        Unit shading normal in the same hemisphere as the geometric normal.
    """
    t, b, n = tangent_frame(normal, tangent)
    mapped = normalize(local_to_world(2.0 * texel - 1.0, t, b, n))
    blended = normalize((1.0 - strength) * normal + strength * mapped)
    if dot(blended, normal) <= 0.0:
        return normal.copy()
    return blended


def resolve(hit: HitRecord) -> ShadingPoint:
    """Resolve the material, base color and shading normal of a hit.

    Raises:
        InvariantViolation: If the hit carries a non-unit normal.
    """
    if not is_unit(hit.normal, 1e-4):
        raise InvariantViolation(f"Non-unit normal from {hit.surface!r}: {hit.normal}")

    material = hit.material if hit.material is not None else DEFAULT_MATERIAL

    base_color = _WHITE
    if isinstance(material.texture, Texture):
        base_color = material.texture.sample_hit(hit)

    normal = hit.normal
    if isinstance(material.normal_map, Texture) and material.normal_strength > 0.0:
        normal_map = material.normal_map
        normal = perturb_normal(
            hit.normal, normal_map.sample_hit(hit), material.normal_strength, normal_map.tangent_for(hit)
        )

    sign = 1.0 if hit.entering else -1.0
    return ShadingPoint(
        hit=hit,
        material=material,
        base_color=base_color,
        normal=normal,
        facing_normal=sign * normal,
        geometric_normal=hit.facing_normal,
    )
