"""Image export utilities for rendered images.

This module saves rendered images to files with tone mapping and gamma
correction applied first.

Supported formats:
    - PNG (8-bit sRGB via Pillow)

Example:
    >>> from src.prism.preview.export import save_png_from_array
    >>> image = renderer.render()
    >>> save_png_from_array(image, "output.png", tone_map="reinhard")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.prism.preview.display import ToneMapMethod, normalize_depth, process_image_for_display

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.floating],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for display/export.

    Args:
        image: Linear HDR image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image_for_display(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    return np.round(processed * 255.0).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.floating],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> Path:
    """Save a linear image as an 8-bit sRGB PNG file.

    Missing parent directories are created.

    Args:
        image: Linear HDR image array of shape (H, W, 3).
        filepath: Output file path (should end in .png).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).

    Returns:
        The path written.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    image_uint8 = image_to_uint8(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    PILImage.fromarray(image_uint8).save(path)
    logger.info("Wrote %s (%dx%d)", path, image_uint8.shape[1], image_uint8.shape[0])
    return path


def save_depth_png(depth: npt.NDArray[np.floating], filepath: str | Path) -> Path:
    """Save a depth plane as an 8-bit grayscale PNG (near = bright)."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    gray = np.round(normalize_depth(depth) * 255.0).astype(np.uint8)
    PILImage.fromarray(gray).save(path)
    logger.info("Wrote depth image %s", path)
    return path
