"""Scene container.

A Scene owns the root surfaces (primitives or CSG trees), the lights, the
camera, and, after the photon pass, the photon maps. Surfaces may belong to
only one owner, so the surface graph is always a forest of trees.

The photon maps are attached exactly once. After that the scene is treated
as read-only and may be shared by the rendering threads.

Example:
    >>> from src.prism.core.ray import vec3
    >>> from src.prism.geometry.sphere import Sphere
    >>> from src.prism.lights.lights import PositionalLight
    >>> from src.prism.materials.material import Material
    >>> from src.prism.scene.scene import Scene
    >>> scene = Scene()
    >>> scene.add(Sphere(vec3(0, 0, 0), 1.0, Material.matte((1, 1, 1))))
    >>> scene.add_light(PositionalLight(vec3(0, 5, 0), intensity=1.0))
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import TYPE_CHECKING

import numpy as np

from src.prism.core.errors import InvariantViolation, SceneError
from src.prism.core.ray import Ray, Vec3, length
from src.prism.geometry.base import HitRecord, Surface
from src.prism.geometry.csg import CSGNode
from src.prism.lights.lights import AmbientLight, Light
from src.prism.materials.material import Material

if TYPE_CHECKING:
    from src.prism.camera.pinhole import PinholeCamera
    from src.prism.photon.photon_map import PhotonMaps

logger = logging.getLogger(__name__)


def surface_materials(surface: Surface) -> list[Material]:
    """Materials that can appear on hits of a surface."""
    if isinstance(surface, CSGNode):
        if surface.material is not None:
            return [surface.material]
        return surface_materials(surface.left) + surface_materials(surface.right)
    return [surface.material] if surface.material is not None else []


class Scene:
    """Surfaces, lights and camera of one render.

    Attributes:
        surfaces: Root surfaces in insertion order.
        lights: Lights in insertion order; photon records refer to them by index.
        camera: Camera used by the renderer, if any.
        name: Label used in log messages.
    """

    def __init__(
        self,
        surfaces: Iterable[Surface] = (),
        lights: Iterable[Light] = (),
        camera: PinholeCamera | None = None,
        name: str = "scene",
    ) -> None:
        self.surfaces: list[Surface] = []
        self.lights: list[Light] = []
        self.camera = camera
        self.name = name
        self._photon_maps: PhotonMaps | None = None
        for surface in surfaces:
            self.add(surface)
        for light in lights:
            self.add_light(light)

    # =========================================================================
    # Construction
    # =========================================================================

    def add(self, surface: Surface) -> Surface:
        """Add a root surface.

        Raises:
            SceneError: If the surface already belongs to a CSG node or scene.
        """
        if not isinstance(surface, Surface):
            raise SceneError(f"Not a surface: {surface!r}")
        surface.attach_to(self)
        self.surfaces.append(surface)
        return surface

    def add_light(self, light: Light) -> Light:
        if not isinstance(light, Light):
            raise SceneError(f"Not a light: {light!r}")
        self.lights.append(light)
        return light

    # =========================================================================
    # Ray queries
    # =========================================================================

    def intersect(self, ray: Ray) -> HitRecord | None:
        """Closest hit over all root surfaces within the ray's interval."""
        closest: HitRecord | None = None
        for surface in self.surfaces:
            hit = surface.closest_hit(ray)
            if hit is not None and (closest is None or hit.t < closest.t):
                closest = hit
        return closest

    def occluded(self, ray: Ray) -> bool:
        """True if any surface blocks the ray within its interval."""
        return any(surface.closest_hit(ray) is not None for surface in self.surfaces)

    # =========================================================================
    # Extents
    # =========================================================================

    def bounding_sphere(self) -> tuple[Vec3, float]:
        """Sphere enclosing every bounded surface.

        Unbounded surfaces (planes, infinite quadrics) are ignored. A scene
        with no bounded surface gets the unit sphere at the origin.
        """
        spheres = [s.bounding_sphere() for s in self.surfaces]
        spheres = [s for s in spheres if s is not None]
        if not spheres:
            return np.zeros(3), 1.0
        lo = np.min([c - r for c, r in spheres], axis=0)
        hi = np.max([c + r for c, r in spheres], axis=0)
        center = 0.5 * (lo + hi)
        radius = max(length(c - center) + r for c, r in spheres)
        return center, max(radius, 1e-6)

    def specular_targets(self) -> list[tuple[Vec3, float]]:
        """Bounding spheres of the bounded surfaces that reflect or refract."""
        targets = []
        for surface in self.surfaces:
            sphere = surface.bounding_sphere()
            if sphere is None or not math.isfinite(sphere[1]) or sphere[1] <= 0.0:
                continue
            if any(m.is_specular for m in surface_materials(surface)):
                targets.append(sphere)
        return targets

    def ambient_intensity(self) -> Vec3:
        total = np.zeros(3)
        for light in self.lights:
            if isinstance(light, AmbientLight):
                total += light.intensity
        return total

    # =========================================================================
    # Photon maps
    # =========================================================================

    @property
    def has_photon_maps(self) -> bool:
        return self._photon_maps is not None

    @property
    def photon_maps(self) -> PhotonMaps:
        """The attached photon maps.

        Raises:
            InvariantViolation: If the photon pass has not run yet.
        """
        if self._photon_maps is None:
            raise InvariantViolation(f"Photon maps of {self.name!r} were queried before they were built")
        return self._photon_maps

    def attach_photon_maps(self, maps: PhotonMaps) -> None:
        """Attach the built photon maps; allowed once per scene.

        Raises:
            InvariantViolation: If maps were already attached.
        """
        if self._photon_maps is not None:
            raise InvariantViolation(f"Photon maps of {self.name!r} are already attached")
        self._photon_maps = maps
        logger.info(
            "Attached photon maps to %s: %d global, %d caustic, %s shadow",
            self.name,
            len(maps.global_map),
            len(maps.caustic_map),
            len(maps.shadow_map) if maps.shadow_map is not None else "no",
        )

    def __repr__(self) -> str:
        return f"<Scene {self.name!r}: {len(self.surfaces)} surfaces, {len(self.lights)} lights>"
