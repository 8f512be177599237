"""Logging setup shared by the CLI, the trace session and tests.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where records go and how they look:
    - Console handler on stderr, optionally colored by level
    - Optional file handler, human or JSON lines
    - Context fields (app, image, threshold) appended to every record

Typical use from an entrypoint::

    setup_logging(**cfg.logging, context={"app": "trace"})
    install_excepthook()
    push_context(image="logo.png")

Line formats:
    Human: 2025-10-28T13:45:12.345Z | INFO     | app=trace image=logo.png | Traced 3 paths
    JSON:  {"t": "...", "lvl": "INFO", "name": "...", "msg": "...", "image": "logo.png"}

Calling ``setup_logging`` again replaces the handlers it installed earlier.
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_context_var: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "raster_plotter_log_context", default={}
)

# Handlers owned by the last setup_logging() call
_installed: List[logging.Handler] = []

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


class ContextFormatter(logging.Formatter):
    """Formatter that appends the pushed context fields.

    Parameters
    ----------
    fmt_mode : str
        ``"human"`` or ``"json"``.
    use_color : bool
        Color the level name; ignored unless stderr is a terminal.
    """

    def __init__(self, fmt_mode: str = "human", use_color: bool = True):
        super().__init__()
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        context = _context_var.get()
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if self.fmt_mode == "json":
            return self._format_json(record, ts, context)
        return self._format_human(record, ts, context)

    def _format_json(self, record, ts, context) -> str:
        payload = {
            "t": ts.isoformat(),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)

    def _format_human(self, record, ts, context) -> str:
        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{_LEVEL_COLORS.get(record.levelname, '')}{level}{_RESET}"

        parts = [ts.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z", "|", level, "|"]
        if context:
            parts.append(" ".join(f"{k}={v}" for k, v in context.items()) + " |")
        parts.append(record.getMessage())

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Configure the root logger.

    Parameters
    ----------
    log_level : str
        Root level name, e.g. ``"INFO"``.
    log_file : str, optional
        Also write records to this file (parent directories are created).
    json : bool
        JSON lines in the log file instead of the human format.
    color : bool
        Color level names on the console.
    to_stderr : bool
        Install the console handler.
    context : dict, optional
        Fields pushed before the first record, e.g. ``{"app": "trace"}``.

    Returns
    -------
    dict
        ``{"handlers": [...]}``, the handlers installed by this call.
    """
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    root.setLevel(getattr(logging, log_level.upper()))

    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", color))
        _installed.append(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(
            ContextFormatter("json" if json else "human", use_color=False)
        )
        _installed.append(file_handler)

    for handler in _installed:
        root.addHandler(handler)

    if context:
        push_context(**context)

    # numpy / Pillow deprecation warnings end up in the log, not on bare stderr
    logging.captureWarnings(True)

    return {"handlers": list(_installed)}


def push_context(**kwargs) -> None:
    """Add fields to every subsequent record (e.g. ``image="logo.png"``)."""
    _context_var.set({**_context_var.get(), **kwargs})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove *keys* from the context, or everything when ``None``."""
    if keys is None:
        _context_var.set({})
        return
    _context_var.set({k: v for k, v in _context_var.get().items() if k not in keys})


def install_excepthook() -> None:
    """Route uncaught exceptions through logging before the process exits."""
    def log_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logging.getLogger("raster_plotter").critical(
            "Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = log_exception
