"""Pinhole camera model and primary ray generation.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport is a virtual image plane at unit distance from the camera.
Primary ray directions are computed by a Taichi kernel, one per pixel
centre, and handed back to the Python shader as a numpy array.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.prism.camera.pinhole import PinholeCamera, generate_primary_rays
    >>>
    >>> camera = PinholeCamera(lookfrom=(0.0, 0.0, 3.0), lookat=(0.0, 0.0, 0.0))
    >>> rays = generate_primary_rays(camera, 160, 120)
    >>> rays.shape
    (120, 160, 3)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.prism.core.errors import SceneError
from src.prism.core.ray import Vec3, as_vec3, cross, length, normalize

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    A pinhole camera produces perfect perspective projection with no
    depth of field effects. The aspect ratio comes from the image size.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float] = (0.0, 0.0, 0.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 60.0

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise SceneError(f"Vertical field of view must be in (0, 180) degrees, got {self.vfov}")
        w = as_vec3(self.lookfrom) - as_vec3(self.lookat)
        if length(w) < 1e-12:
            raise SceneError("Camera lookfrom and lookat must differ")
        if length(cross(as_vec3(self.vup), w)) < 1e-12:
            raise SceneError("Camera up vector must not be parallel to the view direction")

    @property
    def origin(self) -> Vec3:
        return as_vec3(self.lookfrom)

    def basis(self) -> tuple[Vec3, Vec3, Vec3]:
        """Return the (u, v, w) orthonormal basis: right, up, backward."""
        w = normalize(as_vec3(self.lookfrom) - as_vec3(self.lookat))
        u = normalize(cross(as_vec3(self.vup), w))
        v = cross(w, u)
        return u, v, w

    def viewport(self, aspect_ratio: float) -> tuple[Vec3, Vec3, Vec3]:
        """Viewport geometry for an image aspect ratio.

        Returns:
            (lower_left, horizontal, vertical): the lower-left corner of the
            image plane and the vectors spanning its full width and height.
        """
        h = math.tan(math.radians(self.vfov) / 2.0)
        viewport_height = 2.0 * h
        viewport_width = aspect_ratio * viewport_height
        u, v, w = self.basis()
        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = self.origin - w - horizontal / 2.0 - vertical / 2.0
        return lower_left, horizontal, vertical


# =============================================================================
# Ray Generation (Taichi kernel)
# =============================================================================


@ti.kernel
def _primary_ray_kernel(
    rays: ti.template(),
    origin: tm.vec3,
    lower_left: tm.vec3,
    horizontal: tm.vec3,
    vertical: tm.vec3,
    width: ti.i32,
    height: ti.i32,
):
    # rays[i, j]: i = column (0 = left), j = row (0 = bottom)
    for i, j in rays:
        u = (ti.cast(i, ti.f32) + 0.5) / ti.cast(width, ti.f32)
        v = (ti.cast(j, ti.f32) + 0.5) / ti.cast(height, ti.f32)
        point_on_viewport = lower_left + u * horizontal + v * vertical
        rays[i, j] = tm.normalize(point_on_viewport - origin)


def generate_primary_rays(camera: PinholeCamera, width: int, height: int) -> np.ndarray:
    """Unit directions of the rays through every pixel centre.

    Args:
        camera: Camera configuration.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        float64 array of shape (height, width, 3) with row 0 at the top of
        the image. All rays start at ``camera.origin``.

    Note:
        Requires ti.init() to have been called.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {width}x{height}")

    lower_left, horizontal, vertical = camera.viewport(width / height)
    rays = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))
    _primary_ray_kernel(
        rays,
        tm.vec3(*camera.origin.tolist()),
        tm.vec3(*lower_left.tolist()),
        tm.vec3(*horizontal.tolist()),
        tm.vec3(*vertical.tolist()),
        width,
        height,
    )

    # (width, height) bottom-up -> (height, width) top-down
    directions = np.flip(rays.to_numpy().astype(np.float64).transpose(1, 0, 2), axis=0)
    # Renormalize after the float32 round trip
    norms = np.linalg.norm(directions, axis=2, keepdims=True)
    return np.ascontiguousarray(directions / norms)
