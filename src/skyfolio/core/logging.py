"""Centralized logging for skyfolio.

Four verbosity levels:
- QUIET (0): Warnings + errors
- NORMAL (1): Info + warnings + errors
- VERBOSE (2): Detailed info (requests, refreshes)
- DEBUG (3): Everything including payload shapes

Usage:
    from skyfolio.core.logging import get_logger, set_verbosity

    logger = get_logger(__name__)
    set_verbosity(2)  # VERBOSE

    logger.verbose("GET /locations")
    logger.warning("Location save rejected")
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from enum import IntEnum

from skyfolio.core.log_bus import LogRecord, get_log_bus


class VerbosityLevel(IntEnum):
    """Verbosity levels for skyfolio."""

    QUIET = 0  # Warnings + errors
    NORMAL = 1  # Info + warnings + errors
    VERBOSE = 2  # Detailed info
    DEBUG = 3  # Everything


LEVEL_NAMES: dict[str, VerbosityLevel] = {
    "quiet": VerbosityLevel.QUIET,
    "normal": VerbosityLevel.NORMAL,
    "verbose": VerbosityLevel.VERBOSE,
    "debug": VerbosityLevel.DEBUG,
}

_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL
_USE_COLORS: bool = True

_LOG_SINK: Callable[[str], None] | None = None
_SINK_ADAPTER: Callable[[LogRecord], None] | None = None


def set_verbosity(level: int | VerbosityLevel) -> None:
    """Set global verbosity level.

    Args:
        level: Verbosity level (0-3 or VerbosityLevel enum)
    """
    global _VERBOSITY

    if isinstance(level, int):
        level = VerbosityLevel(level)

    _VERBOSITY = level


def get_verbosity() -> VerbosityLevel:
    """Get current verbosity level."""
    return _VERBOSITY


def apply_logging_level(level_name: str) -> None:
    """Apply a resolved ``logging.level`` value (quiet|normal|verbose|debug)."""
    set_verbosity(LEVEL_NAMES[level_name])


def set_colors(enabled: bool) -> None:
    """Enable or disable colored output."""
    global _USE_COLORS
    _USE_COLORS = enabled


def set_log_sink(sink: Callable[[str], None] | None) -> None:
    """Set a global log sink callback.

    Adapter over LogBus: the sink receives each plain log line.

    Args:
        sink: Callback receiving a single log line, or None to disable.
    """
    global _LOG_SINK
    global _SINK_ADAPTER

    if _SINK_ADAPTER is not None:
        get_log_bus().unsubscribe(_SINK_ADAPTER)
        _SINK_ADAPTER = None

    _LOG_SINK = sink

    if sink is None:
        return

    def _adapter(rec: LogRecord) -> None:
        try:
            sink(rec.plain)
        except Exception:
            return

    _SINK_ADAPTER = _adapter
    get_log_bus().subscribe(_adapter)


class SkyfolioLogger:
    """Logger with verbosity support."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "VERBOSE": "\033[34m",  # Blue
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "RESET": "\033[0m",
    }

    def __init__(self, name: str):
        self.name = name

    def _should_log(self, level: VerbosityLevel) -> bool:
        return level <= _VERBOSITY

    def _format_message(self, level: str, message: str) -> str:
        if _USE_COLORS and sys.stdout.isatty():
            color = self.COLORS.get(level, "")
            reset = self.COLORS["RESET"]
            return f"{color}[{level.lower()}]{reset} {message}"
        return f"[{level.lower()}] {message}"

    def _log(self, level: VerbosityLevel, level_name: str, message: str) -> None:
        """Publish to the LogBus and print when the level is enabled.

        Args:
            level: Required verbosity level
            level_name: Level name for display
            message: Message to log
        """
        if not self._should_log(level):
            return

        formatted = self._format_message(level_name, message)

        plain = f"[{level_name.lower()}] {message}"
        get_log_bus().publish(LogRecord(level_name=level_name, plain=plain, logger_name=self.name))

        print(formatted, file=sys.stderr if level_name in ("WARNING", "ERROR") else sys.stdout)

    def debug(self, message: str) -> None:
        self._log(VerbosityLevel.DEBUG, "DEBUG", message)

    def verbose(self, message: str) -> None:
        self._log(VerbosityLevel.VERBOSE, "VERBOSE", message)

    def info(self, message: str) -> None:
        self._log(VerbosityLevel.NORMAL, "INFO", message)

    def warning(self, message: str) -> None:
        self._log(VerbosityLevel.QUIET, "WARNING", message)

    def error(self, message: str) -> None:
        """Log error message (always shown)."""
        formatted = self._format_message("ERROR", message)

        plain = f"[error] {message}"
        get_log_bus().publish(LogRecord(level_name="ERROR", plain=plain, logger_name=self.name))

        print(formatted, file=sys.stderr)


_LOGGERS: dict[str, SkyfolioLogger] = {}


def get_logger(name: str = __name__) -> SkyfolioLogger:
    """Get logger instance for module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = SkyfolioLogger(name)

    return _LOGGERS[name]
