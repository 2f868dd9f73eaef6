"""Preview module for output and visualization.

Components:
    display: Tone mapping and the Matplotlib preview window
    export: PNG export for color and depth images

Example:
    >>> from src.prism.preview import save_png_from_array
    >>> save_png_from_array(image, "output.png", tone_map="reinhard")
"""

from src.prism.preview.display import (
    TONE_MAP_METHODS,
    ToneMapMethod,
    apply_gamma,
    normalize_depth,
    process_image_for_display,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from src.prism.preview.export import image_to_uint8, save_depth_png, save_png_from_array

__all__ = [
    # Display functions
    "show_preview",
    # Tone mapping
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "normalize_depth",
    "ToneMapMethod",
    "TONE_MAP_METHODS",
    # Export functions
    "save_png_from_array",
    "save_depth_png",
    "image_to_uint8",
]
