"""YAML schema validation for plotter configuration files.

Provides centralized validation using pydantic:
    - Plotter schema (plotter.v1.yaml): trace threshold, preview box,
      toolpath options, output names, logging

Config files fail fast with actionable messages (offending key, expected
range). Interactive option values coming from a form or CLI flags are
*not* validated here; those go through the lenient coercion in
``raster_plotter.configs.loader.coerce_options``.

Units:
    - Toolpath lengths: millimeters (mm); scale is mm per grid pixel
    - Feed rates: mm/min (written verbatim into the ``F`` word)

Usage:
    from raster_plotter.utils import validators
    cfg = validators.load_plotter_config("plotter.yaml")
"""

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


# ============================================================================
# PLOTTER SCHEMA V1
# ============================================================================

class TraceSection(BaseModel):
    """Thresholding and preview-fit settings."""
    threshold: int = Field(128, ge=0, le=256, description="Luminance threshold (cell=1 iff lum < threshold)")
    preview_max_width_px: int = Field(800, gt=0, description="Preview box width")
    preview_max_height_px: int = Field(600, gt=0, description="Preview box height")


class ToolpathSection(BaseModel):
    """Toolpath emission options."""
    scale: float = Field(0.25, gt=0.0, description="Grid-to-device scale (mm/px)")
    feed_rate: float = Field(1000.0, gt=0.0, description="Cutting feed (mm/min)")
    travel_rate: float = Field(3000.0, gt=0.0, description="Travel feed (mm/min)")
    use_z_axis: bool = Field(False, description="Raise/lower a physical Z axis")
    z_up: float = Field(5.0, description="Tool-up height (mm)")
    z_down: float = Field(0.0, description="Tool-down height (mm)")
    laser_mode: bool = Field(False, description="M3/M5 laser toggles instead of Z moves")

    @model_validator(mode='after')
    def validate_z_order(self) -> 'ToolpathSection':
        if self.use_z_axis and self.z_up < self.z_down:
            raise ValueError(
                f"z_up ({self.z_up}) must not be below z_down ({self.z_down})"
            )
        return self


class OutputSection(BaseModel):
    """Output artifact names."""
    gcode_filename: str = Field("plot.gcode", description="G-code file name")
    preview_filename: str = Field("preview.png", description="Overlay preview file name")

    @field_validator('gcode_filename', 'preview_filename')
    @classmethod
    def validate_filename(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Output name must be a bare file name, got '{v}'")
        return v


class LoggingSection(BaseModel):
    """Arguments forwarded to setup_logging()."""
    log_level: str = Field("INFO", description="Root log level")
    log_file: Optional[str] = Field(None, description="Optional log file path")
    json_format: bool = Field(False, alias="json", description="JSON lines in the log file")
    color: bool = Field(True, description="ANSI colors on the console")

    model_config = {"populate_by_name": True}

    @field_validator('log_level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}, got '{v}'")
        return v.upper()


class PlotterConfigV1(BaseModel):
    """Plotter config schema v1."""
    schema_version: str = Field(..., alias="schema", description="Schema version")
    trace: TraceSection = Field(default_factory=TraceSection)
    toolpath: ToolpathSection = Field(default_factory=ToolpathSection)
    output: OutputSection = Field(default_factory=OutputSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)

    model_config = {"populate_by_name": True}

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "plotter.v1":
            raise ValueError(f"Expected schema 'plotter.v1', got '{v}'")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def load_plotter_config(path: Union[str, Path]) -> PlotterConfigV1:
    """Load and validate a plotter config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to a plotter.v1 YAML file

    Returns
    -------
    PlotterConfigV1
        Validated configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If the file is not valid YAML or fails validation (with an
        actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Plotter config not found: {path}")

    try:
        data = fs.load_yaml(path)
    except yaml.YAMLError as e:
        raise ValueError(f"Plotter config is not valid YAML: {e}") from e
    if data is None:
        raise ValueError(f"Plotter config is empty: {path}")
    try:
        return PlotterConfigV1(**data)
    except Exception as e:
        raise ValueError(f"Plotter config validation failed at {path}: {e}") from e
