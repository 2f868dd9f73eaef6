"""Materials module for shading coefficients and textures.

Components:
    material: Material coefficients and presets
    lambertian: Lambert and Phong terms, diffuse photon scattering
    dielectric: Fresnel equations and the reflect/transmit split
    texture: Pixel grids, image textures and normal maps
    resolver: Base color and shading normal of a hit

The specular split is shared by the shader and the photon tracer, so both
passes weight reflection and refraction identically.
"""

from .dielectric import AIR_IOR, SpecularSplit, fresnel, specular_split
from .lambertian import diffuse_albedo, lambert, phong, scatter_lambertian
from .material import Material
from .resolver import ShadingPoint, resolve
from .texture import PixelGrid, Texture, load_pixel_grid

__all__ = [
    "Material",
    # Lambertian / Phong
    "lambert",
    "phong",
    "diffuse_albedo",
    "scatter_lambertian",
    # Dielectric
    "AIR_IOR",
    "SpecularSplit",
    "fresnel",
    "specular_split",
    # Textures
    "PixelGrid",
    "Texture",
    "load_pixel_grid",
    # Resolver
    "ShadingPoint",
    "resolve",
]
