"""Surface material description.

A Material gathers every coefficient the Whitted shader and the photon
tracer need at a surface: Phong reflectances, the specular reflection and
transmission weights, the refractive index, and optional texture and
normal-map references.

Example:
    >>> from src.prism.materials.material import Material
    >>> red = Material.matte((0.8, 0.1, 0.1))
    >>> glass = Material.glass(ior=1.5)
    >>> glass.is_specular, red.is_specular
    (True, False)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from src.prism.core.errors import SceneError
from src.prism.core.ray import Vec3

if TYPE_CHECKING:
    from src.prism.materials.texture import Texture


def as_color(value, what: str = "color") -> Vec3:
    """Coerce a scalar or RGB triple to a float64 color array.

    Raises:
        SceneError: If the value is not a scalar or three finite numbers.
    """
    arr = np.asarray(value, dtype=np.float64)
    if arr.ndim == 0:
        arr = np.full(3, float(arr))
    if arr.shape != (3,) or not np.all(np.isfinite(arr)):
        raise SceneError(f"{what} must be a scalar or three finite numbers, got {value!r}")
    return arr.copy()


def _unit_interval(value: float, what: str) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise SceneError(f"{what} must lie in [0, 1], got {value}")
    return value


@dataclass(frozen=True, eq=False)
class Material:
    """Shading coefficients of a surface.

    Attributes:
        ambient: RGB reflectance for ambient light.
        diffuse: RGB Lambertian reflectance.
        specular: RGB Phong highlight reflectance.
        shininess: Phong exponent.
        reflectivity: Weight of the mirror reflection in [0, 1].
        transparency: Weight of the refracted transmission in [0, 1].
        ior: Refractive index of the solid's interior (> 0).
        texture: Optional color texture replacing the white base color.
        normal_map: Optional normal map perturbing the shading normal.
        normal_strength: Blend factor between geometric and mapped normal.
        name: Optional label for logging.
    """

    ambient: Vec3 = field(default_factory=lambda: np.full(3, 0.1))
    diffuse: Vec3 = field(default_factory=lambda: np.full(3, 0.7))
    specular: Vec3 = field(default_factory=lambda: np.zeros(3))
    shininess: float = 32.0
    reflectivity: float = 0.0
    transparency: float = 0.0
    ior: float = 1.0
    texture: Texture | None = None
    normal_map: Texture | None = None
    normal_strength: float = 1.0
    name: str | None = None

    def __post_init__(self) -> None:
        # frozen dataclass: normalize fields through object.__setattr__
        for attr in ("ambient", "diffuse", "specular"):
            color = as_color(getattr(self, attr), f"Material {attr}")
            if np.any(color < 0.0) or np.any(color > 1.0):
                raise SceneError(f"Material {attr} components must lie in [0, 1], got {color}")
            object.__setattr__(self, attr, color)

        shininess = float(self.shininess)
        if not shininess >= 0.0 or not math.isfinite(shininess):
            raise SceneError(f"Material shininess must be non-negative, got {shininess}")
        object.__setattr__(self, "shininess", shininess)
        object.__setattr__(self, "reflectivity", _unit_interval(self.reflectivity, "Material reflectivity"))
        object.__setattr__(self, "transparency", _unit_interval(self.transparency, "Material transparency"))
        object.__setattr__(self, "normal_strength", _unit_interval(self.normal_strength, "Normal strength"))

        ior = float(self.ior)
        if not ior > 0.0 or not math.isfinite(ior):
            raise SceneError(f"Material ior must be positive, got {ior}")
        object.__setattr__(self, "ior", ior)

    @property
    def is_specular(self) -> bool:
        """True when the surface reflects or transmits specularly."""
        return self.reflectivity > 0.0 or self.transparency > 0.0

    @property
    def is_diffuse(self) -> bool:
        return bool(np.any(self.diffuse > 0.0))

    # =========================================================================
    # Presets
    # =========================================================================

    @classmethod
    def matte(cls, color, ambient: float = 0.1, **kwargs) -> Material:
        """Pure Lambertian surface with a small ambient term."""
        color = as_color(color, "Matte color")
        return cls(ambient=ambient * color, diffuse=color, specular=0.0, **kwargs)

    @classmethod
    def phong(cls, color, specular: float = 0.5, shininess: float = 32.0, **kwargs) -> Material:
        """Plastic-like surface: Lambertian base with a white highlight."""
        color = as_color(color, "Phong color")
        return cls(ambient=0.1 * color, diffuse=color, specular=specular, shininess=shininess, **kwargs)

    @classmethod
    def mirror(cls, reflectivity: float = 1.0, **kwargs) -> Material:
        """Ideal mirror with no diffuse response."""
        return cls(ambient=0.0, diffuse=0.0, specular=0.0, reflectivity=reflectivity, **kwargs)

    @classmethod
    def glass(cls, ior: float = 1.5, **kwargs) -> Material:
        """Clear dielectric whose Fresnel terms split reflection and transmission."""
        kwargs.setdefault("specular", 0.2)
        kwargs.setdefault("shininess", 128.0)
        return cls(ambient=0.0, diffuse=0.0, reflectivity=1.0, transparency=1.0, ior=ior, **kwargs)

    @classmethod
    def translucent(cls, color, transparency: float = 0.5, ior: float = 1.3, **kwargs) -> Material:
        """Tinted dielectric mixing a diffuse layer with refraction."""
        color = as_color(color, "Translucent color")
        transparency = _unit_interval(transparency, "Material transparency")
        diffuse = color * (1.0 - transparency)
        return cls(
            ambient=0.1 * diffuse,
            diffuse=diffuse,
            reflectivity=transparency,
            transparency=transparency,
            ior=ior,
            **kwargs,
        )
