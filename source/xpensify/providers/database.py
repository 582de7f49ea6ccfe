"""This module provides a singleton database connection manager for the application.

It also exposes `translate_database_errors`, a decorator used at the service
boundary so that driver and pool failures surface as
`DependencyFailureError` instead of leaking SQLAlchemy exceptions to callers.
"""

import threading
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from xpensify.exceptions.ledger import DependencyFailureError
from xpensify.providers.config import Config, ConfigProvider
from xpensify.providers.logging import Logger, LoggingProvider

P = ParamSpec("P")
R = TypeVar("R")


class DatabaseManager:
    """Manages a thread-safe connection pool for PostgreSQL using SQLAlchemy."""

    _engine: Engine | None = None
    _engine_creation_lock = threading.Lock()

    def __new__(cls) -> "DatabaseManager":
        """Ensures that only one instance of this class can be created.

        Returns:
            The singleton instance of the DatabaseManager.
        """
        if not hasattr(cls, "instance"):
            cls.instance = super().__new__(cls)
        return cls.instance

    @classmethod
    def get_engine(cls) -> Engine:
        """Retrieves a singleton instance of the SQLAlchemy engine.

        Returns:
            The singleton instance of the SQLAlchemy engine.
        """
        if cls._engine is None:
            with cls._engine_creation_lock:
                if cls._engine is None:
                    logger: Logger = LoggingProvider().get_logger()
                    config: Config = ConfigProvider.get_config()

                    url = (
                        f"{config.POSTGRES_DRIVER}://"
                        f"{config.POSTGRES_USER}:{config.POSTGRES_PASSWORD}@"
                        f"{config.POSTGRES_HOST}:{config.POSTGRES_PORT}/"
                        f"{config.POSTGRES_DB}"
                    )

                    connect_args = {}
                    if config.POSTGRES_DB_SCHEMA:
                        logger.info(f"Using isolated schema: {config.POSTGRES_DB_SCHEMA}")
                        connect_args["options"] = f"-csearch_path={config.POSTGRES_DB_SCHEMA}"

                    cls._engine = create_engine(
                        url,
                        pool_size=config.POSTGRES_POOL_SIZE,
                        max_overflow=config.POSTGRES_MAX_OVERFLOW,
                        pool_timeout=config.POSTGRES_POOL_TIMEOUT_SECONDS,
                        pool_pre_ping=True,
                        connect_args=connect_args,
                    )
                    logger.info("SQLAlchemy engine created successfully.")
        return cls._engine

    @classmethod
    def release_engine(cls) -> None:
        """Disposes of the engine's connection pool and resets the singleton instance."""
        logger: Logger = LoggingProvider().get_logger()
        if cls._engine:
            logger.info("Disposing of the database engine.")
            cls._engine.dispose()
            cls._engine = None


def translate_database_errors(func: Callable[P, R]) -> Callable[P, R]:
    """A decorator that converts storage failures into `DependencyFailureError`.

    Only `SQLAlchemyError` is translated; ledger errors raised by the wrapped
    function propagate untouched.

    Args:
        func: The service method to wrap.

    Returns:
        The wrapped function.
    """

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as e:
            LoggingProvider().get_logger().error(f"Storage failure in {func.__qualname__}: {e}")
            raise DependencyFailureError(f"Storage is unavailable while running {func.__name__}.") from e

    return wrapper
