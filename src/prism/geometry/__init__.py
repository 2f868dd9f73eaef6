"""Geometry module for surface primitives and CSG.

Components:
    base: HitRecord and the Surface interface
    sphere: Sphere primitive
    plane: Half-space bounded by a plane
    quadric: General quadric surfaces (ellipsoids, cylinders, cones)
    box: Axis-aligned box (slab method)
    mesh: Triangle meshes, single triangles and OBJ loading
    csg: Boolean combination of surfaces by interval algebra
    projection: Planar, spherical and cuboid texture coordinates

Every surface returns all crossings of the ray's line, sorted by t and
alternating entering/exiting, so CSG nodes can nest arbitrarily:
    hits = surface.intersect(ray)
    hit = surface.closest_hit(ray)
"""

from .base import HitRecord, Surface
from .box import Box
from .csg import CSGNode, CSGOperation
from .mesh import Mesh, Triangle
from .plane import Plane
from .projection import Projection
from .quadric import Quadric
from .sphere import Sphere

__all__ = [
    "HitRecord",
    "Surface",
    "Sphere",
    "Plane",
    "Quadric",
    "Box",
    "Triangle",
    "Mesh",
    "CSGNode",
    "CSGOperation",
    "Projection",
]
