"""Lowest layer: filesystem helpers, config schema and logging setup.

Nothing here imports from raster, contour, gcode or pipeline.

    from raster_plotter.utils import fs, validators
    from raster_plotter.utils import setup_logging, push_context
"""

from . import fs
from . import logging_config
from . import validators

from .logging_config import install_excepthook, push_context, setup_logging

__all__ = [
    'fs',
    'logging_config',
    'validators',
    'install_excepthook',
    'push_context',
    'setup_logging',
]
