"""
Configuration management for rowseed.

Loads and validates configuration from rowseed.toml files using Pydantic.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE_NAME = "rowseed.toml"


class DatabaseConfig(BaseSettings):
    """Database connection configuration."""

    model_config = SettingsConfigDict(populate_by_name=True)

    url: str = Field(
        default="postgresql://localhost/postgres",
        validation_alias=AliasChoices("url", "DATABASE_URL"),
        description="PostgreSQL connection URL",
    )
    schema_name: str = Field(
        default="public",
        validation_alias=AliasChoices("schema", "schema_name"),
        description="Schema to introspect, seed and export",
    )
    statement_timeout_ms: Optional[int] = Field(
        default=None, description="Per-statement timeout applied to the run's transaction"
    )


class ExportConfig(BaseSettings):
    """Export defaults."""

    exclude_tables: list[str] = Field(
        default_factory=list, description="Tables left out of exports"
    )
    exclude_columns: list[str] = Field(
        default_factory=list, description="'column' or 'table.column' entries left out of exports"
    )
    ignore_on_update: list[str] = Field(
        default_factory=list,
        description="'column' or 'table.column' entries kept stable across exports",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Root log level")


class Config(BaseSettings):
    """Main configuration for rowseed."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_toml(cls, path: Path | str) -> Config:
        """
        Load configuration from TOML file.

        Args:
            path: Path to rowseed.toml file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        return cls(
            database=DatabaseConfig(**data.get("database", {})),
            export=ExportConfig(**data.get("export", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    @classmethod
    def find_and_load(cls, start_dir: Optional[Path] = None) -> Config:
        """
        Find and load configuration from rowseed.toml.

        Searches for rowseed.toml starting from start_dir and walking up
        parent directories. Falls back to defaults (and environment
        variables such as DATABASE_URL) when no file is found.

        Args:
            start_dir: Directory to start search (defaults to current directory)

        Returns:
            Config instance
        """
        if start_dir is None:
            start_dir = Path.cwd()

        current = Path(start_dir).resolve()

        # Walk up directory tree
        while True:
            config_path = current / CONFIG_FILE_NAME
            if config_path.exists():
                return cls.from_toml(config_path)

            # Check if we've reached filesystem root
            parent = current.parent
            if parent == current:
                break
            current = parent

        return cls()
