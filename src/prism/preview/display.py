"""Tone mapping and Matplotlib preview for rendered images.

The renderer produces linear radiance with no upper bound. Before it can be
shown or written as 8-bit PNG it is tone mapped, gamma encoded and clamped
to [0, 1]. Depth planes get their own normalization (near = bright).

Example:
    >>> from src.prism.preview.display import process_image_for_display, show_preview
    >>> display = process_image_for_display(image, tone_map="reinhard")
    >>> show_preview(image, tone_map="reinhard")
"""

from __future__ import annotations

from typing import Literal

import numpy as np
import numpy.typing as npt

ToneMapMethod = Literal["none", "reinhard", "exposure"]

TONE_MAP_METHODS = ("none", "reinhard", "exposure")

# Brightness of the farthest hit in a normalized depth image
DEPTH_FAR_LEVEL = 0.2


# =============================================================================
# Tone Mapping
# =============================================================================


def tone_map_reinhard(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Reinhard operator L / (1 + L); negative radiance maps to 0."""
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(image: npt.NDArray[np.floating], exposure: float = 1.0) -> npt.NDArray[np.float32]:
    """Exponential operator 1 - exp(-L * exposure).

    Larger exposure values brighten the image; the result never reaches 1.
    """
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def apply_gamma(image: npt.NDArray[np.floating], gamma: float = 2.2) -> npt.NDArray[np.float32]:
    """Gamma-encode an image already in [0, 1]. gamma=1 returns the input."""
    if gamma == 1.0:
        return image

    # pow of a negative base would give NaN
    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.floating],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Tone map, gamma-encode and clamp a linear image.

    Args:
        image: Linear image of shape (H, W, 3).
        tone_map: One of TONE_MAP_METHODS; "none" skips tone mapping.
        gamma: Display gamma.
        exposure: Used by the "exposure" operator only.

    Returns:
        float32 image in [0, 1].

    Raises:
        ValueError: If the tone mapping method is unknown.
    """
    if tone_map not in TONE_MAP_METHODS:
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = np.array(image, dtype=np.float32, copy=True)
    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)

    return np.clip(apply_gamma(result, gamma), 0.0, 1.0).astype(np.float32)


def normalize_depth(depth: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Map a depth plane to [0, 1], near = bright, no hit (0) = black."""
    depth = np.asarray(depth, dtype=np.float32)
    hit = depth > 0.0
    if not hit.any():
        return np.zeros_like(depth)
    near, far = float(depth[hit].min()), float(depth[hit].max())
    span = far - near if far > near else 1.0
    result = np.zeros_like(depth)
    result[hit] = 1.0 - (1.0 - DEPTH_FAR_LEVEL) * (depth[hit] - near) / span
    return result


# =============================================================================
# Preview Window
# =============================================================================


def show_preview(
    image: npt.NDArray[np.floating],
    *,
    depth: npt.NDArray[np.floating] | None = None,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display a render as a Matplotlib figure.

    Args:
        image: Linear image of shape (H, W, 3).
        depth: Optional depth plane shown next to the image.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 2.2 for sRGB).
        exposure: Exposure value for exposure tone mapping (default 1.0).
        title: Custom title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(image, tone_map=tone_map, gamma=gamma, exposure=exposure)

    panels = 2 if depth is not None else 1
    fig, axes = plt.subplots(1, panels, figsize=(figsize[0] * panels, figsize[1]), squeeze=False)

    axes[0, 0].imshow(display_image)
    axes[0, 0].axis("off")
    if title is None:
        title = f"Render Preview - {image.shape[1]}x{image.shape[0]}"
        if tone_map != "none":
            title += f" ({tone_map})"
    axes[0, 0].set_title(title)

    if depth is not None:
        axes[0, 1].imshow(normalize_depth(depth), cmap="gray", vmin=0.0, vmax=1.0)
        axes[0, 1].axis("off")
        axes[0, 1].set_title("Depth")

    plt.tight_layout()
    plt.show(block=block)
