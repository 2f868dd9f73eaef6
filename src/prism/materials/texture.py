"""Image textures and normal maps.

Textures are sampled from decoded pixel grids. Decoding files is left to
Pillow; the renderer only ever sees a PixelGrid, a float RGB array with
row 0 at the top of the image.

Example:
    >>> import numpy as np
    >>> from src.prism.materials.texture import PixelGrid, Texture
    >>> checker = np.array([[[0, 0, 0], [255, 255, 255]]], dtype=np.uint8)
    >>> tex = Texture(PixelGrid.from_array(checker))
    >>> tex.sample((0.75, 0.0))
    array([1., 1., 1.])
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from src.prism.core.errors import SceneError
from src.prism.core.ray import Vec3
from src.prism.geometry.base import HitRecord
from src.prism.geometry.projection import Projection, project, project_tangent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class PixelGrid:
    """Decoded image data.

    Attributes:
        pixels: Float64 array of shape (height, width, 3) in [0, 1].
    """

    pixels: np.ndarray

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @classmethod
    def from_array(cls, array) -> PixelGrid:
        """Build a grid from a uint8 or float image array.

        Args:
            array: (H, W, 3) or (H, W, 4) uint8 values in [0, 255], or float
                values in [0, 1]. A (H, W) array is read as grayscale.

        Raises:
            SceneError: If the array is empty or has an unsupported shape.
        """
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, None], 3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise SceneError(f"Pixel grid must have shape (H, W, 3), got {arr.shape}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise SceneError("Pixel grid is empty")
        arr = arr[:, :, :3]
        if np.issubdtype(arr.dtype, np.integer):
            pixels = arr.astype(np.float64) / 255.0
        else:
            pixels = np.clip(arr.astype(np.float64), 0.0, 1.0)
        return cls(pixels=pixels)

    def texel(self, u: float, v: float) -> Vec3:
        """Nearest texel for wrapped coordinates; v = 0 is the top row."""
        u = u % 1.0
        v = v % 1.0
        x = min(int(math.floor(u * self.width)), self.width - 1)
        y = min(int(math.floor(v * self.height)), self.height - 1)
        return self.pixels[y, x].copy()


def load_pixel_grid(path: str | Path) -> PixelGrid:
    """Decode an image file into a PixelGrid.

    Args:
        path: Path to any image format Pillow understands.

    Raises:
        SceneError: If the file is missing or cannot be decoded.
    """
    path = Path(path)
    if not path.exists():
        raise SceneError(f"Texture file not found: {path}")
    try:
        with Image.open(path) as img:
            rgb = np.asarray(img.convert("RGB"))
    except (UnidentifiedImageError, OSError) as exc:
        raise SceneError(f"Cannot decode texture {path}: {exc}") from exc
    logger.debug("Loaded texture %s (%dx%d)", path, rgb.shape[1], rgb.shape[0])
    return PixelGrid.from_array(rgb)


class Texture:
    """A pixel grid wrapped around a surface by a projection.

    Args:
        image: The decoded pixels.
        projection: Projection policy, or None to use the surface's own
            texture coordinates.
        scale: Texture repeats per unit of texture coordinate.
    """

    def __init__(self, image: PixelGrid, projection: Projection | None = None, scale: float = 1.0):
        if not isinstance(image, PixelGrid):
            image = PixelGrid.from_array(image)
        if not scale > 0.0:
            raise SceneError(f"Texture scale must be positive, got {scale}")
        self.image = image
        self.projection = projection
        self.scale = float(scale)

    @classmethod
    def from_file(cls, path: str | Path, projection: Projection | None = None, scale: float = 1.0) -> Texture:
        return cls(load_pixel_grid(path), projection, scale)

    def uv_for(self, hit: HitRecord) -> tuple[float, float]:
        """Texture coordinates of a hit under this texture's projection."""
        if self.projection is None:
            uv = hit.uv if hit.uv is not None else (0.0, 0.0)
        else:
            uv = project(self.projection, hit.point, hit.normal, hit.surface)
        return uv[0] * self.scale, uv[1] * self.scale

    def tangent_for(self, hit: HitRecord) -> Vec3 | None:
        """World direction of growing u at a hit, None if the surface has none."""
        if self.projection is None:
            return hit.tangent
        return project_tangent(self.projection, hit.point, hit.normal, hit.surface)

    def sample(self, uv: tuple[float, float]) -> Vec3:
        return self.image.texel(uv[0], uv[1])

    def sample_hit(self, hit: HitRecord) -> Vec3:
        return self.sample(self.uv_for(hit))
