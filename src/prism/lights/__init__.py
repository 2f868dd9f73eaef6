"""Light sources for direct shading and photon emission."""

from .lights import AmbientLight, DirectionalLight, Light, LightSample, PositionalLight, SpotLight

__all__ = [
    "Light",
    "LightSample",
    "AmbientLight",
    "DirectionalLight",
    "PositionalLight",
    "SpotLight",
]
