"""YAML schema validation and config loading.

Validates the converter configuration (converter.v1.yaml) with pydantic so
bad values fail fast with the offending key and expected range:

    schema: converter.v1
    defaults:
      canvas_type: 1        # 0 Small, 1 Large, 2 Long, 3 Tall
      preview_scale: 8
      image_size: native    # "native" or target size in px
      image_format: png     # png | jpg
      grid: [2, 2]          # default multi-canvas grid (width, height)
    logging:
      log_level: INFO
      log_file: null
      json: false
      color: true

Usage:
    from jop_paint.utils import validators

    cfg = validators.load_converter_config("configs/converter.v1.yaml")
    cfg = validators.default_converter_config()
"""

from pathlib import Path
from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

CANVAS_TYPE_IDS = (0, 1, 2, 3)
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DefaultsConfig(BaseModel):
    """Default conversion options used when the CLI flag is omitted."""
    canvas_type: int = Field(1, description="Canvas type id (0-3)")
    preview_scale: int = Field(8, ge=1, le=64, description="Upscale factor for previews")
    image_size: Union[int, str] = Field("native", description="'native' or target size in px")
    image_format: str = Field("png", description="Output image format (png | jpg)")
    grid: Tuple[int, int] = Field((2, 2), description="Multi-canvas grid (width, height)")

    @field_validator('canvas_type')
    @classmethod
    def validate_canvas_type(cls, v: int) -> int:
        if v not in CANVAS_TYPE_IDS:
            raise ValueError(f"canvas_type must be one of {CANVAS_TYPE_IDS}, got {v}")
        return v

    @field_validator('image_size')
    @classmethod
    def validate_image_size(cls, v: Union[int, str]) -> Union[int, str]:
        if isinstance(v, str):
            if v == "native":
                return v
            if not v.isdigit():
                raise ValueError(f"image_size must be 'native' or a positive integer, got '{v}'")
            v = int(v)
        if v < 1:
            raise ValueError(f"image_size must be positive, got {v}")
        return v

    @field_validator('image_format')
    @classmethod
    def validate_image_format(cls, v: str) -> str:
        v = v.lower()
        if v == "jpeg":
            v = "jpg"
        if v not in ("png", "jpg"):
            raise ValueError(f"image_format must be 'png' or 'jpg', got '{v}'")
        return v

    @field_validator('grid')
    @classmethod
    def validate_grid(cls, v: Tuple[int, int]) -> Tuple[int, int]:
        if v[0] < 1 or v[1] < 1:
            raise ValueError(f"grid dimensions must be >= 1, got {v}")
        return v


class LoggingConfig(BaseModel):
    """Arguments forwarded to logging_config.setup_logging()."""
    log_level: str = Field("INFO", description="Root log level")
    log_file: Optional[str] = Field(None, description="Optional log file path")
    json_logs: bool = Field(False, alias="json", description="JSON lines in the log file")
    color: bool = Field(True, description="ANSI colours on a TTY")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('log_level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got '{v}'")
        return v


class ConverterConfigV1(BaseModel):
    """Converter configuration (converter.v1.yaml schema)."""
    schema_version: str = Field("converter.v1", alias="schema", description="Schema version")
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "converter.v1":
            raise ValueError(f"Expected schema 'converter.v1', got '{v}'")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def default_converter_config() -> ConverterConfigV1:
    """Configuration used when no config file is given."""
    return ConverterConfigV1()


def load_converter_config(path: Union[str, Path]) -> ConverterConfigV1:
    """Load and validate converter config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to converter.v1.yaml file

    Returns
    -------
    ConverterConfigV1
        Validated configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (message names the file and the offending key)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Converter config not found: {path}")

    data = fs.load_yaml(path) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Converter config at {path} must be a mapping, got {type(data).__name__}")
    try:
        return ConverterConfigV1(**data)
    except Exception as e:
        raise ValueError(f"Converter config validation failed at {path}: {e}") from e
