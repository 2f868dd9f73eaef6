"""Render settings.

All tunables of a render live in one RenderSettings dataclass. Settings can
be built in code, from a plain mapping, or from a YAML file.

Example:
    >>> from src.prism.core.config import RenderSettings
    >>> settings = RenderSettings(width=64, height=48, photon_mapping=False)
    >>> settings.aspect_ratio
    1.3333333333333333
"""

from __future__ import annotations

import dataclasses
import logging
import numbers
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from src.prism.core.errors import ConfigError

logger = logging.getLogger(__name__)

FRESNEL_MODES = ("exact", "schlick")
RADIANCE_FILTERS = ("disk", "cone", "gaussian")


@dataclass(frozen=True)
class RenderSettings:
    """Every tunable parameter of a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum recursion depth of the Whitted shader.
        background: RGB color returned for rays that escape the scene.
        fresnel: "exact" for the unpolarized Fresnel equations or "schlick".
        photon_mapping: Whether to run the photon pass before rendering.
        global_photons: Photons emitted per light for the global store.
        caustic_photons: Photons emitted per light toward specular surfaces.
        max_photon_bounces: Bounce cap for photon tracing.
        gather_photons: k for the global radiance estimate.
        gather_radius: Search radius for the global radiance estimate.
        caustic_gather_photons: k for the caustic radiance estimate.
        caustic_gather_radius: Search radius for the caustic radiance estimate.
        radiance_filter: "disk", "cone" or "gaussian".
        cone_filter_k: Cone filter constant (must be >= 1).
        shadow_photons: Build the shadow store and use it to skip shadow rays.
        seed: Seed of the deterministic random source.
        workers: Worker threads for photon batches and image rows.
        photon_batches: Independent photon batches per light.
    """

    width: int = 160
    height: int = 120
    max_depth: int = 5
    background: tuple[float, float, float] = (0.0, 0.0, 0.0)
    fresnel: str = "exact"
    photon_mapping: bool = True
    global_photons: int = 20000
    caustic_photons: int = 20000
    max_photon_bounces: int = 8
    gather_photons: int = 100
    gather_radius: float = 1.0
    caustic_gather_photons: int = 60
    caustic_gather_radius: float = 0.5
    radiance_filter: str = "cone"
    cone_filter_k: float = 1.1
    shadow_photons: bool = False
    seed: int = 1234
    workers: int = 1
    photon_batches: int = 8

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            _check_type(f.name, f.type, getattr(self, f.name))
        _require(self.width > 0 and self.height > 0, "width and height must be positive")
        _require(self.max_depth >= 0, "max_depth must be non-negative")
        _require(len(self.background) == 3, "background must have three components")
        _require(self.fresnel in FRESNEL_MODES, f"fresnel must be one of {FRESNEL_MODES}")
        _require(self.global_photons >= 0, "global_photons must be non-negative")
        _require(self.caustic_photons >= 0, "caustic_photons must be non-negative")
        _require(self.max_photon_bounces >= 1, "max_photon_bounces must be at least 1")
        _require(self.gather_photons >= 1, "gather_photons must be at least 1")
        _require(self.caustic_gather_photons >= 1, "caustic_gather_photons must be at least 1")
        _require(self.gather_radius > 0.0, "gather_radius must be positive")
        _require(self.caustic_gather_radius > 0.0, "caustic_gather_radius must be positive")
        _require(
            self.radiance_filter in RADIANCE_FILTERS,
            f"radiance_filter must be one of {RADIANCE_FILTERS}",
        )
        _require(self.cone_filter_k >= 1.0, "cone_filter_k must be >= 1")
        _require(self.workers >= 1, "workers must be at least 1")
        _require(self.photon_batches >= 1, "photon_batches must be at least 1")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def with_overrides(self, **overrides: Any) -> RenderSettings:
        """Return a copy with some fields replaced (None values are ignored)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> RenderSettings:
        """Build settings from a mapping, validating keys and values.

        Args:
            raw: Mapping of setting names to values. None means all defaults.

        Returns:
            A validated RenderSettings instance.

        Raises:
            ConfigError: On unknown keys or invalid values.
        """
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ConfigError(f"Render settings must be a mapping, got {type(raw).__name__}")

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigError(f"Unknown render settings: {', '.join(unknown)}")

        values = dict(raw)
        if "background" in values:
            try:
                values["background"] = tuple(float(c) for c in values["background"])
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid background color: {values['background']!r}") from exc
        try:
            return cls(**values)
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc

    @classmethod
    def from_yaml(cls, path: str | Path) -> RenderSettings:
        """Load and validate render settings from a YAML file.

        Args:
            path: Path to the YAML file.

        Returns:
            A validated RenderSettings instance.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigError: If the content is not a valid settings mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"Malformed YAML in {path}: {exc}") from exc

        logger.info("Loading render settings from: %s", path)
        return cls.from_dict(raw)


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


# Annotation string -> accepted runtime types; bool is never a number here
_FIELD_TYPES = {
    "int": numbers.Integral,
    "float": numbers.Real,
    "bool": bool,
    "str": str,
}


def _check_type(name: str, annotation: str, value: Any) -> None:
    if annotation.startswith("tuple"):
        _require(
            isinstance(value, tuple)
            and all(isinstance(c, numbers.Real) and not isinstance(c, bool) for c in value),
            f"{name} must be a tuple of numbers, got {value!r}",
        )
        return
    expected = _FIELD_TYPES[annotation]
    ok = isinstance(value, expected)
    if expected is not bool and isinstance(value, bool):
        ok = False
    _require(ok, f"{name} must be of type {annotation}, got {type(value).__name__} {value!r}")
