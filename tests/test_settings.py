"""Tests for settings loading and validation."""

import pytest

from lottiescene.settings import (
    PreviewSettings,
    RenderSettings,
    Settings,
    default_settings,
    load_settings,
)


def _write(tmp_path, text):
    path = tmp_path / "settings.yaml"
    path.write_text(text)
    return path


class TestDefaults:
    def test_default_settings(self):
        settings = default_settings()
        assert settings == Settings(RenderSettings(), PreviewSettings())
        assert settings.render.max_instance_depth == 32
        assert settings.preview.background == (0, 0, 0)
        assert settings.preview.curve_segments == 16
        assert settings.preview.supersample == 1

    def test_empty_file_gives_defaults(self, tmp_path):
        assert load_settings(_write(tmp_path, "")) == default_settings()

    def test_missing_sections_use_defaults(self, tmp_path):
        settings = load_settings(_write(tmp_path, "render:\n  max_instance_depth: 4\n"))
        assert settings.render.max_instance_depth == 4
        assert settings.preview == PreviewSettings()


class TestLoadSettings:
    def test_all_values(self, tmp_path):
        path = _write(tmp_path, (
            "render:\n"
            "  max_instance_depth: 8\n"
            "preview:\n"
            "  background: \"#1A1A1A\"\n"
            "  curve_segments: 32\n"
            "  supersample: 2\n"
        ))
        settings = load_settings(path)
        assert settings.render == RenderSettings(max_instance_depth=8)
        assert settings.preview == PreviewSettings(
            background=(26, 26, 26), curve_segments=32, supersample=2,
        )

    def test_background_as_list(self, tmp_path):
        path = _write(tmp_path, "preview:\n  background: [10, 20, 30]\n")
        assert load_settings(path).preview.background == (10, 20, 30)

    def test_accepts_str_path(self, tmp_path):
        path = _write(tmp_path, "preview:\n  supersample: 4\n")
        assert load_settings(str(path)).preview.supersample == 4

    def test_empty_section_uses_defaults(self, tmp_path):
        settings = load_settings(_write(tmp_path, "preview:\n"))
        assert settings.preview == PreviewSettings()


class TestValidation:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")

    def test_non_mapping(self, tmp_path):
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_settings(_write(tmp_path, "- render\n- preview\n"))

    def test_unknown_section(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown settings section"):
            load_settings(_write(tmp_path, "output:\n  fps: 30\n"))

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ValueError, match="preview: unknown key"):
            load_settings(_write(tmp_path, "preview:\n  antialias: true\n"))

    def test_section_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError, match="'render' must be a mapping"):
            load_settings(_write(tmp_path, "render: 5\n"))

    @pytest.mark.parametrize("value", ["0", "-2", "1.5", "many", "true"])
    def test_bad_positive_int(self, tmp_path, value):
        with pytest.raises(ValueError, match="'supersample' must be a positive integer"):
            load_settings(_write(tmp_path, f"preview:\n  supersample: {value}\n"))

    def test_bad_depth(self, tmp_path):
        with pytest.raises(ValueError, match="render: 'max_instance_depth'"):
            load_settings(_write(tmp_path, "render:\n  max_instance_depth: 0\n"))

    def test_bad_hex_background(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid hex color"):
            load_settings(_write(tmp_path, "preview:\n  background: \"#12\"\n"))

    @pytest.mark.parametrize("value", ["[1, 2]", "[0, 0, 256]", "[true, 0, 0]", "7"])
    def test_bad_background(self, tmp_path, value):
        with pytest.raises(ValueError, match="'background' must be"):
            load_settings(_write(tmp_path, f"preview:\n  background: {value}\n"))
