"""Unit tests for render settings and YAML loading."""

import pytest


class TestRenderSettings:
    """Tests for RenderSettings validation."""

    def test_defaults(self):
        from src.prism.core.config import RenderSettings

        settings = RenderSettings()
        assert settings.width == 160
        assert settings.height == 120
        assert settings.max_depth == 5
        assert settings.radiance_filter == "cone"
        assert settings.fresnel == "exact"
        assert settings.aspect_ratio == pytest.approx(160 / 120)

    def test_invalid_values_raise_config_error(self):
        from src.prism.core.config import RenderSettings
        from src.prism.core.errors import ConfigError

        with pytest.raises(ConfigError):
            RenderSettings(width=0)
        with pytest.raises(ConfigError):
            RenderSettings(max_depth=-1)
        with pytest.raises(ConfigError):
            RenderSettings(fresnel="polarized")
        with pytest.raises(ConfigError):
            RenderSettings(radiance_filter="box")
        with pytest.raises(ConfigError):
            RenderSettings(cone_filter_k=0.5)

    def test_wrong_types_raise_config_error(self):
        from src.prism.core.config import RenderSettings
        from src.prism.core.errors import ConfigError

        with pytest.raises(ConfigError, match="width"):
            RenderSettings(width=10.5)
        with pytest.raises(ConfigError, match="workers"):
            RenderSettings(workers=True)
        with pytest.raises(ConfigError, match="photon_mapping"):
            RenderSettings(photon_mapping="no")
        with pytest.raises(ConfigError, match="background"):
            RenderSettings(background=(0.0, "red", 0.0))
        assert RenderSettings(gather_radius=1).gather_radius == 1

    def test_config_error_is_value_error(self):
        from src.prism.core.errors import ConfigError

        assert issubclass(ConfigError, ValueError)

    def test_with_overrides_ignores_none(self):
        from src.prism.core.config import RenderSettings

        settings = RenderSettings().with_overrides(width=32, height=None)
        assert settings.width == 32
        assert settings.height == 120

    def test_with_overrides_validates(self):
        from src.prism.core.config import RenderSettings
        from src.prism.core.errors import ConfigError

        with pytest.raises(ConfigError):
            RenderSettings().with_overrides(workers=0)


class TestFromDict:
    """Tests for mapping-based construction."""

    def test_none_gives_defaults(self):
        from src.prism.core.config import RenderSettings

        assert RenderSettings.from_dict(None) == RenderSettings()

    def test_background_list_becomes_tuple(self):
        from src.prism.core.config import RenderSettings

        settings = RenderSettings.from_dict({"background": [0.1, 0.2, 0.3]})
        assert settings.background == (0.1, 0.2, 0.3)

    def test_unknown_key(self):
        from src.prism.core.config import RenderSettings
        from src.prism.core.errors import ConfigError

        with pytest.raises(ConfigError, match="samples"):
            RenderSettings.from_dict({"samples": 4})

    def test_non_mapping(self):
        from src.prism.core.config import RenderSettings
        from src.prism.core.errors import ConfigError

        with pytest.raises(ConfigError):
            RenderSettings.from_dict([1, 2, 3])

    @pytest.mark.parametrize(
        "raw",
        [
            {"global_photons": 100.5},
            {"photon_mapping": "no"},
            {"width": 64.0},
            {"height": "48"},
            {"workers": True},
            {"gather_radius": "1.0"},
            {"shadow_photons": 1},
            {"fresnel": 1},
        ],
    )
    def test_wrong_types(self, raw):
        from src.prism.core.config import RenderSettings
        from src.prism.core.errors import ConfigError

        with pytest.raises(ConfigError, match=next(iter(raw))):
            RenderSettings.from_dict(raw)

    def test_int_accepted_for_float(self):
        import numpy as np

        from src.prism.core.config import RenderSettings

        settings = RenderSettings.from_dict({"gather_radius": 2, "seed": np.int64(5)})
        assert settings.gather_radius == 2
        assert settings.seed == 5


class TestFromYaml:
    """Tests for YAML loading."""

    def test_load(self, tmp_path):
        from src.prism.core.config import RenderSettings

        path = tmp_path / "settings.yaml"
        path.write_text("width: 64\nheight: 48\nradiance_filter: gaussian\nshadow_photons: true\n")
        settings = RenderSettings.from_yaml(path)
        assert settings.width == 64
        assert settings.height == 48
        assert settings.radiance_filter == "gaussian"
        assert settings.shadow_photons is True

    def test_empty_file_gives_defaults(self, tmp_path):
        from src.prism.core.config import RenderSettings

        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert RenderSettings.from_yaml(path) == RenderSettings()

    def test_missing_file(self, tmp_path):
        from src.prism.core.config import RenderSettings

        with pytest.raises(FileNotFoundError):
            RenderSettings.from_yaml(tmp_path / "missing.yaml")

    def test_malformed_yaml(self, tmp_path):
        from src.prism.core.config import RenderSettings
        from src.prism.core.errors import ConfigError

        path = tmp_path / "bad.yaml"
        path.write_text("width: [64\n")
        with pytest.raises(ConfigError):
            RenderSettings.from_yaml(path)

    def test_example_settings_file_loads(self):
        from pathlib import Path

        from src.prism.core.config import RenderSettings

        path = Path(__file__).resolve().parents[1] / "examples" / "settings.yaml"
        settings = RenderSettings.from_yaml(path)
        assert settings.width == 320
        assert settings.workers == 4
