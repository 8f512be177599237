"""Configuration loader for the plotter.

Two entry points with deliberately different strictness:

``coerce_options(raw)``
    Lenient.  Turns whatever a form, CLI or caller supplies into
    ``ToolpathOptions``; absent, non-numeric or non-finite fields fall
    back to the documented defaults.  Never raises.

``load_config(path)``
    Strict.  Loads ``plotter.yaml`` through the pydantic schema in
    ``raster_plotter.utils.validators`` into typed, frozen dataclasses and
    raises ``ConfigError`` on anything invalid.

Usage::

    from raster_plotter.configs.loader import load_config, coerce_options
    cfg = load_config()                        # default path
    cfg = load_config("/custom/plotter.yaml")  # explicit path
    opts = coerce_options({"scale": "0.5", "useZ": True})
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

from raster_plotter.utils import validators

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolpathOptions:
    """Toolpath emission options.

    ``laser_mode`` and ``use_z_axis`` are mutually exclusive in effect:
    when both are set the emitter uses laser toggles only.
    """

    scale: float = 0.25
    feed_rate: float = 1000.0
    travel_rate: float = 3000.0
    use_z_axis: bool = False
    z_up: float = 5.0
    z_down: float = 0.0
    laser_mode: bool = False


@dataclass(frozen=True)
class TraceSettings:
    """Threshold and preview box used before tracing."""

    threshold: int = 128
    preview_max_width_px: int = 800
    preview_max_height_px: int = 600

    @property
    def preview_box(self) -> tuple[int, int]:
        return self.preview_max_width_px, self.preview_max_height_px


@dataclass(frozen=True)
class OutputSettings:
    """Artifact file names."""

    gcode_filename: str = "plot.gcode"
    preview_filename: str = "preview.png"


@dataclass(frozen=True)
class PlotterConfig:
    """Complete plotter configuration loaded from ``plotter.yaml``."""

    trace: TraceSettings = field(default_factory=TraceSettings)
    toolpath: ToolpathOptions = field(default_factory=ToolpathOptions)
    output: OutputSettings = field(default_factory=OutputSettings)
    logging: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Lenient option coercion
# ---------------------------------------------------------------------------

# option field -> accepted input keys (snake_case first, then form names)
_OPTION_KEYS: dict[str, tuple[str, ...]] = {
    "scale": ("scale",),
    "feed_rate": ("feed_rate", "feedRate", "feed"),
    "travel_rate": ("travel_rate", "travelRate", "travel"),
    "use_z_axis": ("use_z_axis", "useZAxis", "useZ"),
    "z_up": ("z_up", "zUp"),
    "z_down": ("z_down", "zDown"),
    "laser_mode": ("laser_mode", "laserMode", "laser"),
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}


def _lookup(raw: Mapping[str, Any], name: str) -> Any:
    for key in _OPTION_KEYS[name]:
        if key in raw:
            return raw[key]
    return None


def _to_float(value: Any, default: float, name: str) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        logger.warning("Option %s=%r is not numeric, using %s", name, value, default)
        return default
    if not math.isfinite(parsed):
        logger.warning("Option %s=%r is not finite, using %s", name, value, default)
        return default
    return parsed


def _to_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def coerce_options(
    raw: Mapping[str, Any] | None = None,
    base: ToolpathOptions | None = None,
) -> ToolpathOptions:
    """Build ``ToolpathOptions`` from loosely-typed input.

    Parameters
    ----------
    raw : Mapping[str, Any] | None
        Field values keyed by snake_case names (``feed_rate``) or the
        short form names (``feed``, ``travel``, ``useZ``, ``zUp``,
        ``zDown``, ``laser``).  Values may be numbers or strings.
    base : ToolpathOptions | None
        Defaults for missing / unusable fields.  ``None`` uses the
        documented defaults (scale 0.25, feed 1000, travel 3000, z_up 5,
        z_down 0, Z and laser off).

    Returns
    -------
    ToolpathOptions
        Never raises; an explicit ``0`` is kept, not replaced.
    """
    base = base or ToolpathOptions()
    raw = raw or {}

    return ToolpathOptions(
        scale=_to_float(_lookup(raw, "scale"), base.scale, "scale"),
        feed_rate=_to_float(_lookup(raw, "feed_rate"), base.feed_rate, "feed_rate"),
        travel_rate=_to_float(
            _lookup(raw, "travel_rate"), base.travel_rate, "travel_rate"
        ),
        use_z_axis=_to_bool(_lookup(raw, "use_z_axis"), base.use_z_axis),
        z_up=_to_float(_lookup(raw, "z_up"), base.z_up, "z_up"),
        z_down=_to_float(_lookup(raw, "z_down"), base.z_down, "z_down"),
        laser_mode=_to_bool(_lookup(raw, "laser_mode"), base.laser_mode),
    )


def with_overrides(cfg: PlotterConfig, raw: Mapping[str, Any]) -> PlotterConfig:
    """Return *cfg* with toolpath fields from *raw* coerced on top."""
    return replace(cfg, toolpath=coerce_options(raw, base=cfg.toolpath))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: PlotterConfig) -> None:
    """Cross-field checks that only warn."""
    tp = cfg.toolpath
    if tp.laser_mode and tp.use_z_axis:
        logger.warning(
            "Both laser_mode and use_z_axis are enabled; "
            "laser toggles take precedence and Z moves are not emitted"
        )
    if cfg.trace.threshold in (0, 256):
        logger.warning(
            "threshold=%d produces a uniform grid (no contours)",
            cfg.trace.threshold,
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def default_config_path() -> Path:
    """Path of the ``plotter.yaml`` shipped alongside this module."""
    return Path(__file__).parent / "plotter.yaml"


def load_config(path: str | Path | None = None) -> PlotterConfig:
    """Load and validate plotter configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``plotter.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    PlotterConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = default_config_path() if path is None else Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    try:
        raw = validators.load_plotter_config(path)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    config = PlotterConfig(
        trace=TraceSettings(
            threshold=raw.trace.threshold,
            preview_max_width_px=raw.trace.preview_max_width_px,
            preview_max_height_px=raw.trace.preview_max_height_px,
        ),
        toolpath=ToolpathOptions(
            scale=raw.toolpath.scale,
            feed_rate=raw.toolpath.feed_rate,
            travel_rate=raw.toolpath.travel_rate,
            use_z_axis=raw.toolpath.use_z_axis,
            z_up=raw.toolpath.z_up,
            z_down=raw.toolpath.z_down,
            laser_mode=raw.toolpath.laser_mode,
        ),
        output=OutputSettings(
            gcode_filename=raw.output.gcode_filename,
            preview_filename=raw.output.preview_filename,
        ),
        logging={
            "log_level": raw.logging.log_level,
            "log_file": raw.logging.log_file,
            "json": raw.logging.json_format,
            "color": raw.logging.color,
        },
    )

    _validate_config(config)
    logger.info("Configuration loaded successfully")
    return config
