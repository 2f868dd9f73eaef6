"""Light sources.

Four kinds of light are supported:

    AmbientLight      constant illumination everywhere, never shadowed
    DirectionalLight  parallel rays from infinitely far away
    PositionalLight   point light with polynomial distance attenuation
    SpotLight         positional light confined to a cone with cosine falloff

Every light answers two questions: how it illuminates a surface point for
direct shading (``illuminate``), and how it launches photons for the
photon pass (``emit``).

Example:
    >>> from src.prism.core.ray import vec3
    >>> from src.prism.lights.lights import PositionalLight
    >>> light = PositionalLight(vec3(0, 4, 0), intensity=(1, 1, 1))
    >>> sample = light.illuminate(vec3(0, 1, 0))
    >>> sample.to_light, sample.distance
    (array([0., 1., 0.]), 3.0)
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from src.prism.core.errors import SceneError
from src.prism.core.ray import (
    Vec3,
    as_vec3,
    build_onb_from_normal,
    dot,
    length,
    local_to_world,
    normalize,
    random_in_unit_disk,
    random_unit_vector,
)
from src.prism.materials.material import as_color


@dataclass(frozen=True)
class LightSample:
    """Illumination arriving at a point from one light.

    Attributes:
        to_light: Unit direction from the point toward the light.
        distance: Distance to the light (inf for directional lights).
        irradiance: RGB intensity after attenuation.
    """

    to_light: Vec3
    distance: float
    irradiance: Vec3


def _intensity(value) -> Vec3:
    color = as_color(value, "Light intensity")
    if np.any(color < 0.0):
        raise SceneError(f"Light intensity must be non-negative, got {color}")
    return color


class Light(ABC):
    """Base class of all lights.

    Subclasses say how they light a point for direct shading and how they
    launch photons. ``photon_flux`` defaults to the light's intensity.
    """

    casts_shadows = True
    emits_photons = True

    def __init__(self, intensity, name: str | None = None):
        self.intensity = _intensity(intensity)
        self.name = name

    @abstractmethod
    def illuminate(self, point: Vec3) -> LightSample | None:
        """Direct illumination at a point, ignoring occlusion."""

    @abstractmethod
    def emit(self, rng: np.random.Generator, scene_center: Vec3, scene_radius: float) -> tuple[Vec3, Vec3]:
        """Sample the origin and unit direction of one emitted photon."""

    def photon_flux(self, scene_radius: float) -> Vec3:
        """Total RGB power shared by the photons of one pass."""
        return self.intensity.copy()

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<{type(self).__name__}{label} intensity={self.intensity.tolist()}>"


class AmbientLight(Light):
    """Uniform light reaching every point from every direction."""

    casts_shadows = False
    emits_photons = False

    def illuminate(self, point: Vec3) -> LightSample | None:
        return None

    def photon_flux(self, scene_radius: float) -> Vec3:
        return np.zeros(3, dtype=np.float64)

    def emit(self, rng: np.random.Generator, scene_center: Vec3, scene_radius: float) -> tuple[Vec3, Vec3]:
        raise SceneError("Ambient light has no position or direction to emit photons from")


class DirectionalLight(Light):
    """Parallel light travelling along ``direction``.

    Args:
        direction: Direction the light travels (normalized on construction).
        intensity: RGB irradiance on a surface facing the light.
    """

    def __init__(self, direction, intensity, name: str | None = None):
        super().__init__(intensity, name)
        direction = as_vec3(direction)
        n = length(direction)
        if n < 1e-12:
            raise SceneError("Directional light direction must be non-zero")
        self.direction = direction / n

    def illuminate(self, point: Vec3) -> LightSample:
        return LightSample(-self.direction, math.inf, self.intensity.copy())

    def photon_flux(self, scene_radius: float) -> Vec3:
        # Irradiance times the area of the disk the photons are launched from
        return self.intensity * (math.pi * scene_radius * scene_radius)

    def disk_frame(self) -> tuple[Vec3, Vec3]:
        """Two unit vectors spanning the plane perpendicular to the light."""
        tangent, bitangent, _ = build_onb_from_normal(self.direction)
        return tangent, bitangent

    def launch_point(
        self,
        center: Vec3,
        radius: float,
        rng: np.random.Generator,
        upstream: float | None = None,
    ) -> Vec3:
        """Uniform point on a disk facing the light.

        Args:
            center: Point the disk is centred on, seen along the light.
            radius: Disk radius.
            rng: Random source.
            upstream: How far against the light the disk is moved back from
                ``center``; defaults to radius + 1 so photons start outside
                the sphere they aim at.
        """
        if upstream is None:
            upstream = radius + 1.0
        tangent, bitangent = self.disk_frame()
        x, y = random_in_unit_disk(rng)
        return center - self.direction * upstream + radius * (x * tangent + y * bitangent)

    def emit(self, rng: np.random.Generator, scene_center: Vec3, scene_radius: float) -> tuple[Vec3, Vec3]:
        return self.launch_point(scene_center, scene_radius, rng), self.direction.copy()


class PositionalLight(Light):
    """Point light with attenuation 1 / (c + l*d + q*d^2).

    Args:
        position: Location of the light.
        intensity: RGB intensity before attenuation.
        attenuation: (constant, linear, quadratic) coefficients.
    """

    def __init__(self, position, intensity, attenuation=(1.0, 0.0, 0.0), name: str | None = None):
        super().__init__(intensity, name)
        self.position = as_vec3(position)
        c, l, q = (float(x) for x in attenuation)
        if min(c, l, q) < 0.0 or c + l + q <= 0.0:
            raise SceneError(f"Invalid attenuation coefficients: {attenuation!r}")
        self.attenuation = (c, l, q)

    def attenuate(self, distance: float) -> float:
        c, l, q = self.attenuation
        denom = c + l * distance + q * distance * distance
        return 1.0 / denom if denom > 0.0 else 0.0

    def illuminate(self, point: Vec3) -> LightSample | None:
        offset = self.position - point
        distance = length(offset)
        if distance < 1e-12:
            return None
        return LightSample(offset / distance, distance, self.intensity * self.attenuate(distance))

    def emit(self, rng: np.random.Generator, scene_center: Vec3, scene_radius: float) -> tuple[Vec3, Vec3]:
        return self.position.copy(), random_unit_vector(rng)

    def emission_pdf(self, direction: Vec3) -> float:
        """Solid-angle density of ``emit`` directions (uniform sphere)."""
        return 1.0 / (4.0 * math.pi)


class SpotLight(PositionalLight):
    """Point light shining into a cone around ``direction``.

    Intensity falls off as cos(angle)**exponent away from the axis and is
    zero beyond ``cutoff`` degrees. The defaults light the whole front
    hemisphere with a plain cosine falloff.

    Photons follow the same falloff, so a spot light puts the same energy
    per solid angle into the photon maps as into direct shading, relative
    to a PositionalLight of equal intensity.

    Args:
        position: Location of the light.
        direction: Axis of the cone (normalized on construction).
        intensity: RGB intensity on the axis before attenuation.
        exponent: Falloff exponent, >= 0.
        cutoff: Half-angle of the cone in degrees, in (0, 90].
        attenuation: (constant, linear, quadratic) coefficients.
    """

    def __init__(
        self,
        position,
        direction,
        intensity,
        exponent: float = 1.0,
        cutoff: float = 90.0,
        attenuation=(1.0, 0.0, 0.0),
        name: str | None = None,
    ):
        super().__init__(position, intensity, attenuation, name)
        direction = as_vec3(direction)
        n = length(direction)
        if n < 1e-12:
            raise SceneError("Spot light direction must be non-zero")
        self.direction = direction / n
        if not exponent >= 0.0:
            raise SceneError(f"Spot light exponent must be non-negative, got {exponent}")
        if not 0.0 < cutoff <= 90.0:
            raise SceneError(f"Spot light cutoff must be in (0, 90] degrees, got {cutoff}")
        self.exponent = float(exponent)
        self.cutoff = float(cutoff)
        self.cos_cutoff = max(0.0, math.cos(math.radians(self.cutoff)))

    def falloff(self, direction: Vec3) -> float:
        """Relative intensity leaving the light along a unit direction."""
        cos_theta = dot(direction, self.direction)
        if cos_theta <= 0.0 or cos_theta < self.cos_cutoff:
            return 0.0
        return cos_theta**self.exponent

    def _cone_integral(self) -> float:
        # Integral of cos**exponent over the cone, divided by 2 pi
        p1 = self.exponent + 1.0
        return (1.0 - self.cos_cutoff**p1) / p1

    def illuminate(self, point: Vec3) -> LightSample | None:
        offset = self.position - point
        distance = length(offset)
        if distance < 1e-12:
            return None
        to_light = offset / distance
        weight = self.falloff(-to_light)
        if weight == 0.0:
            return None
        return LightSample(to_light, distance, self.intensity * (weight * self.attenuate(distance)))

    def photon_flux(self, scene_radius: float) -> Vec3:
        # A positional light spreads its intensity over 4 pi steradians
        return self.intensity * (self._cone_integral() / 2.0)

    def emit(self, rng: np.random.Generator, scene_center: Vec3, scene_radius: float) -> tuple[Vec3, Vec3]:
        p1 = self.exponent + 1.0
        cos_theta = (1.0 - rng.random() * (1.0 - self.cos_cutoff**p1)) ** (1.0 / p1)
        sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
        phi = 2.0 * math.pi * rng.random()
        local = np.array((sin_theta * math.cos(phi), sin_theta * math.sin(phi), cos_theta))
        tangent, bitangent, n = build_onb_from_normal(self.direction)
        direction = normalize(local_to_world(local, tangent, bitangent, n))
        return self.position.copy(), direction

    def emission_pdf(self, direction: Vec3) -> float:
        weight = self.falloff(direction)
        if weight == 0.0:
            return 0.0
        return weight / (2.0 * math.pi * self._cone_integral())
