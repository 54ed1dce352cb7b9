"""Unified logging configuration for the converter entrypoints.

One call configures the root logger for the CLI, scripts and tests:
    - stderr handler, human readable, ANSI level colours on a TTY
    - optional file handler (plain, size- or time-rotated), human or JSON lines
    - contextual fields (app, cmd, file) appended to every record
    - Python warnings routed into logging, noisy libraries raised to WARNING

Public API:
    setup_logging(log_level="INFO", log_file=None, context={"app": "jop-paint"})
    get_logger(name)
    set_level("DEBUG")
    push_context(cmd="split", file="sunset.png")
    pop_context(keys=["file"])
    get_context()
    install_excepthook()
    route_warnings()

Format examples:
    Human: 2026-10-17T13:45:12.345Z | INFO     | app=jop-paint cmd=split | Wrote 4 canvases
    JSON:  {"t": "2026-10-17T13:45:12.345000+00:00", "lvl": "INFO", "logger": "jop_paint.cli",
            "msg": "Wrote 4 canvases", "app": "jop-paint", "cmd": "split"}

Context lives in a contextvar, so threads and nested calls see their own
fields. setup_logging() may be called repeatedly: each call swaps out the
handlers installed by the previous one and leaves foreign handlers alone.
"""

import contextvars
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_context_var: contextvars.ContextVar = contextvars.ContextVar('jop_paint_log_context', default={})

# Handlers owned by setup_logging(); replaced on every call
_installed_handlers: List[logging.Handler] = []


class ContextFormatter(logging.Formatter):
    """Render records with the current push_context() fields.

    Parameters
    ----------
    fmt_mode : str
        "human" (``ts | LEVEL | k=v ... | message``) or "json" (one object per line)
    use_color : bool
        Colour the level name; ignored unless stderr is a TTY
    tz : str
        "UTC" or "local" timestamps
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt_mode: str = "human", use_color: bool = True, tz: str = "UTC"):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"Unknown log format: {fmt_mode}. Use 'human' or 'json'.")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()
        self.tz = tz

    def _timestamp(self, record: logging.LogRecord) -> datetime:
        tzinfo = timezone.utc if self.tz == "UTC" else None
        return datetime.fromtimestamp(record.created, tz=tzinfo)

    def format(self, record: logging.LogRecord) -> str:
        ts = self._timestamp(record)
        context = _context_var.get()
        message = record.getMessage()
        exc_text = self.formatException(record.exc_info) if record.exc_info else None

        if self.fmt_mode == "json":
            payload: Dict[str, Any] = {
                't': ts.isoformat(),
                'lvl': record.levelname,
                'logger': record.name,
                'msg': message,
            }
            payload.update(context)
            if exc_text:
                payload['exc'] = exc_text
            return json.dumps(payload, default=str)

        level = f"{record.levelname:<8}"
        if self.use_color:
            level = self.COLORS.get(record.levelname, '') + level + self.RESET
        fields = [ts.strftime('%Y-%m-%dT%H:%M:%S.') + f"{ts.microsecond // 1000:03d}Z", level]
        if context:
            fields.append(' '.join(f"{key}={value}" for key, value in context.items()))
        fields.append(message)
        line = ' | '.join(fields)
        return f"{line}\n{exc_text}" if exc_text else line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    tz: str = "UTC",
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Configure the root logger.

    Parameters
    ----------
    log_level : str
        One of LEVELS (case-insensitive)
    log_file : str, optional
        Also write records to this file (parent directories are created)
    json : bool
        JSON lines in the log file instead of the human format
    color : bool
        Colour level names on the console
    to_stderr : bool
        Attach the console handler, default True
    rotate : dict, optional
        ``{"mode": "size", "max_bytes": ..., "backup_count": ...}`` or
        ``{"mode": "time", "when": "D", "interval": 1, "backup_count": ...}``
    tz : str
        "UTC" (default) or "local"
    capture_warnings : bool
        Route ``warnings.warn`` through logging
    quiet_libs : list[str], optional
        Logger names raised to WARNING (the CLI passes ["PIL"])
    context : dict, optional
        Fields pushed with push_context() before returning

    Returns
    -------
    dict
        {"handlers": [...]} as installed on the root logger

    Raises
    ------
    ValueError
        For an unknown level or rotation mode
    """
    global _installed_handlers

    if log_level.upper() not in LEVELS:
        raise ValueError(f"Unknown log level: {log_level}. Use one of {', '.join(LEVELS)}.")

    handlers: List[logging.Handler] = []
    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", use_color=color, tz=tz))
        handlers.append(console)
    if log_file:
        file_handler = _create_file_handler(Path(log_file), rotate)
        file_handler.setFormatter(ContextFormatter("json" if json else "human", use_color=False, tz=tz))
        handlers.append(file_handler)

    root = logging.getLogger()
    for old in _installed_handlers:
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(log_level.upper())
    _installed_handlers = handlers

    for name in quiet_libs or []:
        logging.getLogger(name).setLevel(logging.WARNING)
    if capture_warnings:
        route_warnings()
    if context:
        push_context(**context)

    return {'handlers': handlers}


_ROTATING_HANDLERS = {
    'size': lambda path, opts: logging.handlers.RotatingFileHandler(
        path,
        maxBytes=opts.get('max_bytes', 10_000_000),
        backupCount=opts.get('backup_count', 3),
        encoding='utf-8',
    ),
    'time': lambda path, opts: logging.handlers.TimedRotatingFileHandler(
        path,
        when=opts.get('when', 'D'),
        interval=opts.get('interval', 1),
        backupCount=opts.get('backup_count', 7),
        encoding='utf-8',
    ),
}


def _create_file_handler(path: Path, rotate: Optional[Dict[str, Any]]) -> logging.Handler:
    mode = (rotate or {}).get('mode', 'size')
    if rotate and mode not in _ROTATING_HANDLERS:
        raise ValueError(f"Unknown rotation mode: {mode}. Use 'size' or 'time'.")
    path.parent.mkdir(parents=True, exist_ok=True)
    if rotate:
        return _ROTATING_HANDLERS[mode](path, rotate)
    return logging.FileHandler(path, encoding='utf-8')


def get_logger(name: str) -> logging.Logger:
    """Named logger; modules use ``get_logger(__name__)``."""
    return logging.getLogger(name)


def set_level(level: str) -> None:
    """Change the root level after setup (e.g. from a --log-level flag)."""
    if level.upper() not in LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    logging.getLogger().setLevel(level.upper())


def push_context(**fields: Any) -> None:
    """Add fields to every record logged from this context onwards.

    Examples
    --------
    >>> push_context(app="jop-paint", cmd="to-image")
    >>> get_logger("jop_paint").info("Rendered")  # "... | app=jop-paint cmd=to-image | Rendered"
    """
    _context_var.set({**_context_var.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the given fields, or all of them when ``keys`` is None."""
    if keys is None:
        _context_var.set({})
        return
    _context_var.set({k: v for k, v in _context_var.get().items() if k not in keys})


def get_context() -> Dict[str, Any]:
    """Copy of the fields currently attached to records."""
    return dict(_context_var.get())


def install_excepthook() -> None:
    """Log uncaught exceptions at CRITICAL; Ctrl+C keeps the default handling."""
    previous = sys.excepthook

    def hook(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            previous(exc_type, exc_value, exc_traceback)
            return
        logging.getLogger(__name__).critical(
            "Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = hook


def route_warnings() -> None:
    """Send ``warnings.warn`` output to the 'py.warnings' logger."""
    logging.captureWarnings(True)
