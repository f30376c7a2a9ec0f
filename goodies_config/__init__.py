"""
goodies_config -- settings for the goodies engine.

Responsibility:
    ``load_settings()`` reads YAML plus environment into a frozen
    ``EngineSettings``; ``init_from_settings()`` applies it (logging, DB
    engine).

Architecture position:
    Sits above ``goodies_kernel``.  The kernel MUST NEVER import from
    ``goodies_config``; settings reach the kernel as plain arguments.
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from goodies_config.loader import load_settings
from goodies_config.schema import BulkImportSettings, EngineSettings
from goodies_kernel.db.engine import init_engine_from_url
from goodies_kernel.logging_config import configure_logging, get_logger

logger = get_logger("config")


def init_from_settings(settings: EngineSettings) -> Engine:
    """Configure logging and initialize the database engine."""
    configure_logging(level=getattr(logging, settings.log_level))
    engine = init_engine_from_url(
        settings.database_url,
        echo=settings.echo_sql,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )
    logger.info(
        "settings_applied",
        extra={
            "dialect": engine.dialect.name,
            "log_level": settings.log_level,
            "bulk_max_rows": settings.bulk_import.max_rows,
        },
    )
    return engine


__all__ = [
    "BulkImportSettings",
    "EngineSettings",
    "init_from_settings",
    "load_settings",
]
