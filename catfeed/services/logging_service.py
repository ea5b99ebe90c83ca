"""
Logging service implementation for catfeed.

A single ``LoggingService`` owns the handlers of the package logger. The
core modules (paging, cache, dispatch) log through plain ``catfeed.core.*``
loggers, so their records reach the same handlers. Every record is tagged
with the component it came from, and the file log also names the thread,
which tells fetch workers apart from the owner thread.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List
from pathlib import Path
import logging
import sys
from datetime import datetime
from enum import Enum

from .config_service import LoggingConfig
from .interfaces import ILogger


class LogLevel(Enum):
    """Log level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    @property
    def number(self) -> int:
        return getattr(logging, self.value)


CONSOLE_FORMAT = '%(asctime)s %(levelname)-7s [%(component)s] %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)-7s [%(component)s] (%(threadName)s) %(message)s'


class ComponentFilter(logging.Filter):
    """Sets ``record.component`` to the logger name below the package root."""

    def __init__(self, root: str):
        super().__init__()
        self._root = root
        self._prefix = root + "."

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(self._prefix):
            record.component = record.name[len(self._prefix):]
        else:
            record.component = "services"
        return True


class LoggingService(ILogger):
    """Handlers for the package logger, shared by services and the core."""

    def __init__(self, name: str = "catfeed", log_file: Optional[Path] = None,
                 console_level: LogLevel = LogLevel.INFO, file_level: LogLevel = LogLevel.DEBUG,
                 core_level: Optional[LogLevel] = None):
        self._name = name
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)
        self._core = logging.getLogger(f"{name}.core")
        self._filter = ComponentFilter(name)
        self._file_handler: Optional[logging.FileHandler] = None

        # A second service for the same package replaces the first one's handlers.
        self.close()

        self._console_handler = logging.StreamHandler(sys.stderr)
        self._install(self._console_handler, console_level, logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
        if log_file:
            self._open_file(log_file, file_level)
        if core_level is not None:
            self.set_core_level(core_level)

    @classmethod
    def from_config(cls, config: LoggingConfig, name: str = "catfeed",
                    log_file: Optional[Path] = None) -> "LoggingService":
        """Build from the ``logging`` config section; ``log_file`` overrides ``config.file``."""
        if log_file is None and config.file:
            log_file = Path(config.file)
        core_level = LogLevel(config.core_level) if config.core_level else None
        return cls(name, log_file, LogLevel(config.level), LogLevel(config.file_level), core_level)

    def _install(self, handler: logging.Handler, level: LogLevel, formatter: logging.Formatter) -> None:
        handler.setLevel(level.number)
        handler.setFormatter(formatter)
        handler.addFilter(self._filter)
        self._logger.addHandler(handler)

    def _open_file(self, log_file: Path, level: LogLevel) -> None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            self._logger.warning(f"File logging disabled, cannot open {log_file}: {e}")
            return
        self._install(handler, level, logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        self._file_handler = handler

    @property
    def log_file(self) -> Optional[Path]:
        if self._file_handler is None:
            return None
        return Path(self._file_handler.baseFilename)

    def debug(self, message: str, **kwargs) -> None:
        self._logger.debug(self._render(message, kwargs))

    def info(self, message: str, **kwargs) -> None:
        self._logger.info(self._render(message, kwargs))

    def warning(self, message: str, **kwargs) -> None:
        self._logger.warning(self._render(message, kwargs))

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        self._logger.error(self._render(message, kwargs), exc_info=exception)

    @staticmethod
    def _render(message: str, kwargs: Dict[str, Any]) -> str:
        """Append keyword context as `` [key=value, ...]``."""
        if not kwargs:
            return message
        parts = [f"{key}={value}" for key, value in kwargs.items()]
        return f"{message} [{', '.join(parts)}]"

    def set_console_level(self, level: LogLevel) -> None:
        self._console_handler.setLevel(level.number)

    def set_core_level(self, level: LogLevel) -> None:
        """Threshold for the paging, cache and dispatch loggers only."""
        self._core.setLevel(level.number)

    def core_loggers(self) -> List[str]:
        """Names of the ``<name>.core.*`` loggers created so far."""
        prefix = self._core.name + "."
        return sorted(n for n in logging.Logger.manager.loggerDict if n.startswith(prefix))

    def close(self) -> None:
        """Detach and close every handler on the package logger."""
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()
        self._file_handler = None


class MemoryLogger(ILogger):
    """In-memory logger for testing purposes."""

    def __init__(self, max_entries: int = 1000):
        self._max_entries = max_entries
        self._entries: list = []

    def debug(self, message: str, **kwargs) -> None:
        self._add_entry("DEBUG", message, kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._add_entry("INFO", message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._add_entry("WARNING", message, kwargs)

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        entry_kwargs = dict(kwargs)
        if exception:
            entry_kwargs['exception'] = str(exception)
        self._add_entry("ERROR", message, entry_kwargs)

    def _add_entry(self, level: str, message: str, kwargs: Dict[str, Any]) -> None:
        self._entries.append({
            'timestamp': datetime.now(),
            'level': level,
            'message': message,
            'kwargs': kwargs
        })
        if len(self._entries) > self._max_entries:
            self._entries = self._entries[-self._max_entries:]

    def get_entries(self, level: Optional[str] = None) -> list:
        """Get log entries, optionally filtered by level."""
        if level:
            return [e for e in self._entries if e['level'] == level]
        return self._entries.copy()

    def clear(self) -> None:
        self._entries.clear()
