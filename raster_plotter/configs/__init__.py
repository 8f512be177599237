"""Plotter configuration: lenient option coercion and strict YAML loading."""

from raster_plotter.configs.loader import (
    ConfigError,
    OutputSettings,
    PlotterConfig,
    ToolpathOptions,
    TraceSettings,
    coerce_options,
    load_config,
    with_overrides,
)

__all__ = [
    "ConfigError",
    "OutputSettings",
    "PlotterConfig",
    "ToolpathOptions",
    "TraceSettings",
    "coerce_options",
    "load_config",
    "with_overrides",
]
