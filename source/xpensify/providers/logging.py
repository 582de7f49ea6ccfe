"""This module sets up a centralized, context-aware logging system.

It provides a `LoggingProvider` singleton that configures and dispenses the
`xpensify` logger. Ledger work is always done on behalf of one user, often
inside a larger unit such as an ingested document, so every record carries
two thread-local context fields: the `correlation_id` of that unit and the
`user_id` it acts for. Contexts nest; leaving an inner one restores the
outer values.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Generator
from contextlib import contextmanager
from logging import Filter, Formatter, Logger, LogRecord, StreamHandler, _nameToLevel, getLogger
from uuid import UUID

from xpensify.providers.config import ConfigProvider

__all__ = ["ContextualFilter", "LOG_FORMAT", "Logger", "LoggingProvider"]

LOG_FORMAT = "%(asctime)s - %(name)s - [%(levelname)s] [%(correlation_id)s] [user=%(user_id)s] - %(message)s"
CONTEXT_FIELDS = ("correlation_id", "user_id")

_log_context = threading.local()


class ContextualFilter(Filter):
    """Copies the thread-local logging context onto each record.

    Fields without a value in the current thread are rendered as "-".
    """

    def filter(self, record: LogRecord) -> bool:
        """Adds the context fields to the log record.

        Args:
            record: The log record to be filtered.

        Returns:
            Always True to ensure the log record is processed.
        """
        for field in CONTEXT_FIELDS:
            setattr(record, field, getattr(_log_context, field, None) or "-")
        return True


class LoggingProvider:
    """Dispenses the application logger and manages the logging context.

    The logger is configured once, from `LOG_LEVEL` or a CLI override, the
    first time it is requested.
    """

    _instance: LoggingProvider | None = None
    _logger: Logger | None = None

    def __new__(cls) -> LoggingProvider:
        """Implements the Singleton pattern.

        Returns:
            The singleton instance of the LoggingProvider.
        """
        if not cls._instance:  # pragma: no cover
            cls._instance = super().__new__(cls)
        return cls._instance

    @staticmethod
    def _resolve_level(level_name: str | None, default: int) -> int:
        if not level_name:
            return default
        return _nameToLevel.get(level_name.upper(), default)

    def _configure_logger(self, level_override: str | None) -> Logger:
        logger = getLogger("xpensify")
        configured_level = ConfigProvider.get_config().LOG_LEVEL
        logger.setLevel(self._resolve_level(level_override or configured_level, _nameToLevel["INFO"]))
        logger.propagate = False

        if not any(isinstance(existing, StreamHandler) for existing in logger.handlers):
            handler = StreamHandler(sys.stderr)
            handler.setFormatter(Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            handler.addFilter(ContextualFilter())
            logger.addHandler(handler)

        logger.debug(f"Logger configured (LOG_LEVEL={configured_level}, override={level_override}).")
        return logger

    def get_logger(self, level_override: str | None = None) -> Logger:
        """Returns the application logger, configuring it on first use.

        Args:
            level_override: An optional level name, used by the CLI. It also
                applies when the logger is already configured; unknown names
                leave the level unchanged.

        Returns:
            The configured logger instance.
        """
        if self._logger is None:
            self._logger = self._configure_logger(level_override)
        elif level_override:
            self._logger.setLevel(self._resolve_level(level_override, self._logger.level))
        return self._logger

    @contextmanager
    def set_correlation_id(self, correlation_id: str, user_id: UUID | str | None = None) -> Generator[None, None, None]:
        """Scopes log records to a unit of work and, optionally, a user.

        Args:
            correlation_id: The id shared by every record of the unit of work.
            user_id: The user the work is done for. When omitted, an outer
                user binding stays in effect.

        Yields:
            None.
        """
        previous = {field: getattr(_log_context, field, None) for field in CONTEXT_FIELDS}
        _log_context.correlation_id = correlation_id
        if user_id is not None:
            _log_context.user_id = str(user_id)
        try:
            yield
        finally:
            for field, value in previous.items():
                setattr(_log_context, field, value)
