"""Fan-out of log records to in-process subscribers.

Every line that skyfolio.core.logging prints is also published here as a
LogRecord. The CLI attaches a LogFileSink when ``logging.file`` is set; tests
subscribe directly. A failing subscriber never breaks logging.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TextIO

from skyfolio.core.errors import ConfigError

Subscriber = Callable[["LogRecord"], None]


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str
    created: datetime = field(default_factory=datetime.now)

    def as_line(self) -> str:
        return f"{self.created.isoformat(timespec='seconds')} {self.logger_name} {self.plain}"


class LogBus:
    def __init__(self) -> None:
        # (level names or None for every level, callback)
        self._subscribers: list[tuple[frozenset[str] | None, Subscriber]] = []

    def subscribe(self, callback: Subscriber, levels: Iterable[str] | None = None) -> None:
        """Receive published records, optionally only for some level names."""
        wanted = frozenset(levels) if levels is not None else None
        self._subscribers.append((wanted, callback))

    def unsubscribe(self, callback: Subscriber) -> None:
        self._subscribers = [(lv, cb) for lv, cb in self._subscribers if cb != callback]

    def publish(self, record: LogRecord) -> None:
        for levels, callback in list(self._subscribers):
            if levels is None or record.level_name in levels:
                self._deliver(callback, record)

    def clear(self) -> None:
        self._subscribers.clear()

    def _deliver(self, callback: Subscriber, record: LogRecord) -> None:
        try:
            callback(record)
        except Exception:
            # The core logger would recurse into this bus.
            with contextlib.suppress(Exception):
                sys.stderr.write("log subscriber failed\n" + traceback.format_exc())


class LogFileSink:
    """Append every published record to a file, one timestamped line each.

    Usage:
        with LogFileSink(Path("~/skyfolio.log").expanduser()):
            ...
    """

    def __init__(self, path: Path, bus: LogBus | None = None) -> None:
        self.path = path
        self.bus = bus or get_log_bus()
        self._handle: TextIO | None = None

    def open(self) -> LogFileSink:
        """Start writing.

        Raises:
            ConfigError: If the file cannot be opened for appending
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(self.path, "a", encoding="utf-8")
        except OSError as e:
            raise ConfigError(
                f"Cannot open log file {self.path}: {e}",
                suggestion="Check logging.file or --log-file",
            ) from e
        self.bus.subscribe(self._write)
        return self

    def close(self) -> None:
        self.bus.unsubscribe(self._write)
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> LogFileSink:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _write(self, record: LogRecord) -> None:
        if self._handle is None:
            return
        self._handle.write(record.as_line() + "\n")
        self._handle.flush()


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS
