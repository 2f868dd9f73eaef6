"""Tests for the preview module.

This module tests the preview/display and preview/export functionality including:
- Tone mapping (Reinhard, exposure) and gamma correction
- Depth normalization
- PNG export of color and depth planes

Note: show_preview is never called here, so no window opens during the
automated tests.
"""

import numpy as np
import pytest
from PIL import Image as PILImage


class TestToneMapping:
    """Tests for the tone mapping operators."""

    @pytest.mark.parametrize("value", [0.0, 0.5, 1.0, 2.0, 10.0])
    def test_reinhard_formula(self, value):
        """Test Reinhard formula: L / (1 + L)."""
        from src.prism.preview.display import tone_map_reinhard

        result = tone_map_reinhard(np.full((2, 2, 3), value, dtype=np.float32))
        assert np.allclose(result, value / (1.0 + value), atol=1e-6)

    def test_reinhard_clamps_negative(self):
        from src.prism.preview.display import tone_map_reinhard

        result = tone_map_reinhard(np.full((2, 2, 3), -1.0, dtype=np.float32))
        assert np.all(result >= 0.0)

    def test_exposure_formula(self):
        """Test exposure formula: 1 - exp(-c * exposure)."""
        from src.prism.preview.display import tone_map_exposure

        result = tone_map_exposure(np.full((2, 2, 3), 1.0, dtype=np.float32), exposure=2.0)
        assert np.allclose(result, 1.0 - np.exp(-2.0), atol=1e-6)

    def test_exposure_higher_value_brighter(self):
        from src.prism.preview.display import tone_map_exposure

        image = np.full((4, 4, 3), 0.5, dtype=np.float32)
        assert tone_map_exposure(image, exposure=2.0).mean() > tone_map_exposure(image, exposure=0.5).mean()


class TestApplyGamma:
    """Tests for gamma correction."""

    def test_gamma_1_no_change(self, rng):
        from src.prism.preview.display import apply_gamma

        image = rng.random((4, 4, 3)).astype(np.float32)
        assert np.allclose(apply_gamma(image, gamma=1.0), image)

    def test_gamma_endpoints_and_midtone(self):
        from src.prism.preview.display import apply_gamma

        result = apply_gamma(np.array([[[0.0, 1.0, 0.5]]], dtype=np.float32), gamma=2.2)
        assert np.isclose(result[0, 0, 0], 0.0)
        assert np.isclose(result[0, 0, 1], 1.0)
        assert np.isclose(result[0, 0, 2], 0.5 ** (1.0 / 2.2), atol=1e-6)

    def test_gamma_clamps_negative(self):
        from src.prism.preview.display import apply_gamma

        assert np.all(apply_gamma(np.full((2, 2, 3), -0.5, dtype=np.float32)) >= 0.0)


class TestProcessImageForDisplay:
    """Tests for the full display pipeline."""

    @pytest.mark.parametrize(
        "tone_map, expected",
        [("none", 0.5), ("reinhard", 1.0 / 3.0), ("exposure", 1.0 - np.exp(-0.5))],
    )
    def test_pipeline(self, tone_map, expected):
        from src.prism.preview.display import process_image_for_display

        image = np.full((3, 3, 3), 0.5, dtype=np.float32)
        result = process_image_for_display(image, tone_map=tone_map, gamma=1.0)
        assert np.allclose(result, expected, atol=1e-6)

    def test_output_always_valid(self, rng):
        from src.prism.preview.display import process_image_for_display

        image = (rng.random((8, 8, 3)) * 10.0).astype(np.float32)
        for tone_map in ("none", "reinhard", "exposure"):
            result = process_image_for_display(image, tone_map=tone_map)
            assert np.all((result >= 0.0) & (result <= 1.0))
            assert np.all(np.isfinite(result))

    def test_invalid_tone_map_raises(self):
        from src.prism.preview.display import process_image_for_display

        with pytest.raises(ValueError, match="Unknown tone mapping"):
            process_image_for_display(np.zeros((2, 2, 3)), tone_map="filmic")


class TestNormalizeDepth:
    """Tests for depth visualization."""

    def test_near_is_bright(self):
        from src.prism.preview.display import normalize_depth

        result = normalize_depth(np.array([[1.0, 3.0, 0.0]]))
        assert np.allclose(result, [[1.0, 0.2, 0.0]])

    def test_no_hits(self):
        from src.prism.preview.display import normalize_depth

        assert np.all(normalize_depth(np.zeros((2, 2))) == 0.0)

    def test_constant_depth(self):
        from src.prism.preview.display import normalize_depth

        assert np.allclose(normalize_depth(np.full((2, 2), 4.0)), 1.0)


class TestExport:
    """Tests for PNG export."""

    def test_image_to_uint8_black_and_white(self):
        from src.prism.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]]], dtype=np.float32)
        result = image_to_uint8(image, gamma=1.0)

        assert result.dtype == np.uint8
        assert np.all(result[0, 0] == 0)
        assert np.all(result[0, 1] == 255)

    def test_save_png_from_array(self, tmp_path):
        """Test saving a linear gradient, creating the parent directory."""
        from src.prism.preview.export import save_png_from_array

        image = np.zeros((32, 64, 3), dtype=np.float32)
        image[:, :, 0] = np.linspace(0.0, 1.0, 64)

        path = save_png_from_array(image, tmp_path / "out" / "gradient.png", gamma=1.0)

        assert path.exists()
        with PILImage.open(path) as img:
            assert img.size == (64, 32)
            assert img.mode == "RGB"
            pixels = np.asarray(img)
        assert pixels[0, 0, 0] == 0
        assert pixels[0, -1, 0] == 255

    @pytest.mark.parametrize("tone_map", ["none", "reinhard", "exposure"])
    def test_save_png_with_tone_mapping(self, tmp_path, tone_map):
        from src.prism.preview.export import save_png_from_array

        path = save_png_from_array(np.full((8, 8, 3), 3.0), tmp_path / f"{tone_map}.png", tone_map=tone_map)
        with PILImage.open(path) as img:
            assert img.size == (8, 8)

    def test_save_depth_png(self, tmp_path):
        from src.prism.preview.export import save_depth_png

        path = save_depth_png(np.array([[1.0, 2.0], [0.0, 1.0]]), tmp_path / "depth.png")
        with PILImage.open(path) as img:
            assert img.mode == "L"
            pixels = np.asarray(img)
        assert pixels[0, 0] == 255
        assert pixels[1, 0] == 0
        assert pixels[0, 1] == round(0.2 * 255)


class TestModuleExports:
    def test_exports(self):
        import src.prism.preview as preview

        for name in preview.__all__:
            assert hasattr(preview, name)
        assert callable(preview.show_preview)
