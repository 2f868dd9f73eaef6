"""Tests for the render_scene command-line script.

Taichi is already initialized by the session fixture, so main() is run with
init_taichi patched out.
"""

import pytest
from PIL import Image as PILImage


@pytest.fixture
def cli(monkeypatch):
    from examples import render_scene

    monkeypatch.setattr(render_scene, "init_taichi", lambda: None)
    return render_scene


class TestParseArgs:
    def test_defaults(self, cli):
        args = cli.parse_args([])
        assert args.scene == "default"
        assert args.output == "render.png"
        assert args.width is None
        assert not args.no_photons
        assert args.tone_map == "none"

    def test_invalid_tone_map(self, cli):
        with pytest.raises(SystemExit):
            cli.parse_args(["--tone-map", "filmic"])


class TestMain:
    def test_render_writes_png(self, cli, tmp_path):
        output = tmp_path / "csg.png"
        depth = tmp_path / "csg_depth.png"
        code = cli.main(
            [
                "csg",
                "--no-photons",
                "--width",
                "8",
                "--height",
                "6",
                "--output",
                str(output),
                "--depth-output",
                str(depth),
                "--log-level",
                "WARNING",
            ]
        )

        assert code == 0
        with PILImage.open(output) as img:
            assert img.size == (8, 6)
        assert depth.exists()

    def test_config_file(self, cli, tmp_path):
        config = tmp_path / "settings.yaml"
        config.write_text("width: 6\nheight: 4\nphoton_mapping: false\n")
        output = tmp_path / "out.png"

        assert cli.main(["default", "--config", str(config), "--output", str(output)]) == 0
        with PILImage.open(output) as img:
            assert img.size == (6, 4)

    def test_unknown_scene_fails(self, cli, tmp_path):
        assert cli.main(["cornell", "--output", str(tmp_path / "x.png")]) == 1
        assert not (tmp_path / "x.png").exists()
