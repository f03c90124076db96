"""
Configuration models and YAML I/O for mft-stream.

Key models:
- ParserConfig: How the table is read (entry size override, buffer
  size, path cache size).  Used by ``MftParser`` directly.
- OutputConfig: Output directory and format for bulk export.
- ExportConfig: Top-level config for ``run_export`` (source + parser +
  output).  Maps 1:1 to an export YAML file.

Key functions:
- load_config(path) -> ExportConfig: Load and validate from YAML.
- save_config(config, path): Serialize to YAML.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from mft_stream.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

SECTOR_SIZE = 512


class SourceConfig(BaseModel):
    """Input file information."""

    input_path: str = Field(..., description="Path to an extracted $MFT file")


class ParserConfig(BaseModel):
    """Settings for reading the table."""

    entry_size: int | None = Field(
        None,
        description=(
            "Fixed record slot size in bytes. If None, taken from the "
            "first entry header (1024 when the first slot is zeroed)."
        ),
    )
    buffer_size: int = Field(4096, description="Read buffer for path inputs")
    path_cache_size: int = Field(
        1000, description="Directory paths kept for full path resolution"
    )

    @field_validator("entry_size")
    @classmethod
    def _check_entry_size(cls, value: int | None) -> int | None:
        if value is not None and (value <= 0 or value % SECTOR_SIZE != 0):
            raise ValueError(
                f"entry_size must be a positive multiple of {SECTOR_SIZE}, got {value}"
            )
        return value

    @field_validator("buffer_size")
    @classmethod
    def _check_buffer_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("buffer_size must be positive")
        return value

    @field_validator("path_cache_size")
    @classmethod
    def _check_cache_size(cls, value: int) -> int:
        if value < 0:
            raise ValueError("path_cache_size cannot be negative")
        return value


class OutputConfig(BaseModel):
    """Bulk export settings."""

    output_dir: str = Field("outputs/", description="Directory for output files")
    output_format: Literal["csv", "parquet", "jsonl"] = Field(
        "csv", description="Output format"
    )
    write_errors: bool = Field(
        True, description="If True, also write per-slot failures to _errors"
    )


class ExportConfig(BaseModel):
    """Top-level configuration for a bulk export run."""

    source: SourceConfig
    parser: ParserConfig = Field(default_factory=ParserConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def load_config(path: str | Path) -> ExportConfig:
    """Load and validate an export YAML into an ExportConfig model.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigValidationError: If the file is empty.
        pydantic.ValidationError: If the YAML content fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Config file is empty: {path}")
    logger.info("Loaded config from %s", path)
    return ExportConfig.model_validate(raw)


def save_config(config: ExportConfig, path: str | Path) -> None:
    """Serialize an ExportConfig to YAML with a header comment."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("# mft-stream export configuration\n\n")
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    logger.info("Saved config to %s", path)
