"""Photon-mapping Whitted ray tracer.

This package renders scenes with recursive Whitted-style ray tracing and
Jensen's two-pass photon mapping, with support for:
- Spheres, planes, boxes and general quadrics
- Constructive solid geometry (union, intersection, difference)
- Fresnel-weighted reflection and refraction
- Global, caustic and shadow photon maps with k-NN radiance estimates
- Image textures and normal maps

Subpackages:
    core: Vectors and rays, settings, errors, shader, frame buffer, renderer
    geometry: Surface primitives, CSG and texture projections
    materials: Material coefficients, Fresnel split, textures, resolver
    lights: Ambient, directional and positional lights
    photon: Photon records, kd-tree, photon maps and the photon tracer
    scene: Scene container and built-in scenes
    camera: Pinhole camera with Taichi primary-ray generation
    preview: Tone mapping, preview window and PNG export
"""

__version__ = "0.1.0"
