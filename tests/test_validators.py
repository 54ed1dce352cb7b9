"""Test converter config validation and loading.

Tests for jop_paint.utils.validators:
    - Shipped configs/converter.v1.yaml loads and matches the defaults
    - Bounds checking (canvas type, preview scale, grid, image size/format)
    - Schema version check
    - Missing file → FileNotFoundError, invalid content → ValueError naming the path

Run:
    pytest tests/test_validators.py -v
"""
from pathlib import Path

import pytest
import yaml

from jop_paint.utils import validators


@pytest.fixture(scope="module")
def project_root():
    """Project root directory."""
    return Path(__file__).parent.parent


def _write_config(tmp_path, data) -> Path:
    path = tmp_path / "converter.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestShippedConfig:
    """configs/converter.v1.yaml."""

    def test_loads(self, project_root):
        cfg = validators.load_converter_config(project_root / "configs/converter.v1.yaml")
        assert cfg.schema_version == "converter.v1"
        assert cfg.defaults.canvas_type == 1
        assert cfg.defaults.grid == (2, 2)
        assert cfg.logging.log_level == "INFO"
        assert cfg.logging.json_logs is False

    def test_matches_builtin_defaults(self, project_root):
        shipped = validators.load_converter_config(project_root / "configs/converter.v1.yaml")
        assert shipped.model_dump() == validators.default_converter_config().model_dump()


class TestDefaultsConfig:
    """Field validators."""

    @pytest.mark.parametrize("canvas_type", [0, 1, 2, 3])
    def test_valid_canvas_types(self, canvas_type):
        assert validators.DefaultsConfig(canvas_type=canvas_type).canvas_type == canvas_type

    @pytest.mark.parametrize("canvas_type", [-1, 4])
    def test_invalid_canvas_type(self, canvas_type):
        with pytest.raises(ValueError, match="canvas_type"):
            validators.DefaultsConfig(canvas_type=canvas_type)

    def test_preview_scale_bounds(self):
        with pytest.raises(ValueError):
            validators.DefaultsConfig(preview_scale=0)

    @pytest.mark.parametrize("value,expected", [("native", "native"), (512, 512), ("256", 256)])
    def test_image_size(self, value, expected):
        assert validators.DefaultsConfig(image_size=value).image_size == expected

    @pytest.mark.parametrize("value", ["big", 0, -5])
    def test_invalid_image_size(self, value):
        with pytest.raises(ValueError, match="image_size"):
            validators.DefaultsConfig(image_size=value)

    def test_image_format_normalised(self):
        assert validators.DefaultsConfig(image_format="JPEG").image_format == "jpg"
        with pytest.raises(ValueError, match="image_format"):
            validators.DefaultsConfig(image_format="gif")

    def test_invalid_grid(self):
        with pytest.raises(ValueError, match="grid"):
            validators.DefaultsConfig(grid=[0, 2])


class TestLoadConverterConfig:
    """load_converter_config() error paths."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            validators.load_converter_config(tmp_path / "nope.yaml")

    def test_wrong_schema(self, tmp_path):
        path = _write_config(tmp_path, {"schema": "converter.v2"})
        with pytest.raises(ValueError, match="converter.v1"):
            validators.load_converter_config(path)

    def test_error_names_path(self, tmp_path):
        path = _write_config(tmp_path, {"schema": "converter.v1", "defaults": {"canvas_type": 9}})
        with pytest.raises(ValueError, match="converter.yaml"):
            validators.load_converter_config(path)

    def test_partial_config_uses_defaults(self, tmp_path):
        path = _write_config(tmp_path, {"schema": "converter.v1", "logging": {"json": True}})
        cfg = validators.load_converter_config(path)
        assert cfg.logging.json_logs is True
        assert cfg.defaults.preview_scale == 8

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        cfg = validators.load_converter_config(path)
        assert cfg.model_dump() == validators.default_converter_config().model_dump()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            validators.load_converter_config(path)
