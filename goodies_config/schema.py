"""
Settings schema for the goodies engine.

Frozen dataclasses produced by ``goodies_config.loader``.  Defaults here are
the values used when neither YAML nor the environment says otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_DATABASE_URL = "sqlite:///goodies.db"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class BulkImportSettings:
    """Limits for spreadsheet uploads."""

    max_rows: int = 5000
    allowed_extensions: tuple[str, ...] = (".csv", ".xlsx")
    sheet: int | str | None = None  # None = first sheet


@dataclass(frozen=True)
class EngineSettings:
    """Everything needed to start the engine in one process."""

    database_url: str = DEFAULT_DATABASE_URL
    echo_sql: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    log_level: str = "INFO"
    bulk_import: BulkImportSettings = field(default_factory=BulkImportSettings)
