"""
Settings Loader Module.

Locates and loads the harness settings file:
- File name from HARNESS_CONFIG_NAME (default "harness").
- Search directory from HARNESS_CONFIG_DIR (default: current directory).
- YAML (.yml/.yaml) or JSON (.json) content, first match wins.
- Schema validation using JSON Schema.

A missing settings file is not an error: every capability then falls back to
its defaults or its no-op backend.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from loguru import logger

from harness.config.schema_registry import SchemaRegistry
from harness.config.settings import Settings

ENV_CONFIG_NAME = "HARNESS_CONFIG_NAME"
ENV_CONFIG_DIR = "HARNESS_CONFIG_DIR"
DEFAULT_CONFIG_NAME = "harness"
SETTINGS_SCHEMA = "settings_schema"

_PARSERS: Dict[str, Callable[[str], Any]] = {
    ".yml": yaml.safe_load,
    ".yaml": yaml.safe_load,
    ".json": json.loads,
}


class SettingsError(Exception):
    """Raised when a settings file is invalid or cannot be loaded."""

    pass


class SettingsLoader:
    """
    Loads harness settings with schema validation.

    Attributes:
        config_dir: Directory searched for the settings file.
        config_name: Base name of the settings file, without extension.
        schema_registry: Registry of JSON schemas for validation.
    """

    SUPPORTED_EXTENSIONS = (".yml", ".yaml", ".json")

    def __init__(
        self,
        config_dir: str | Path | None = None,
        config_name: Optional[str] = None,
        schema_registry: Optional[SchemaRegistry] = None,
    ) -> None:
        self.config_dir = Path(config_dir or os.environ.get(ENV_CONFIG_DIR) or ".")
        self.config_name = (
            config_name or os.environ.get(ENV_CONFIG_NAME) or DEFAULT_CONFIG_NAME
        )
        self.schema_registry = schema_registry or SchemaRegistry()
        self._cache: Dict[str, Settings] = {}

    def find(self) -> Optional[Path]:
        """Return the first existing settings file, or None."""
        for suffix in self.SUPPORTED_EXTENSIONS:
            candidate = self.config_dir / f"{self.config_name}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def load(
        self,
        path: str | Path | None = None,
        *,
        validate: bool = True,
        use_cache: bool = True,
    ) -> Settings:
        """
        Load settings from ``path`` or from the discovered settings file.

        Args:
            path: Explicit settings file. Must exist when given.
            validate: Whether to validate against the settings schema.
            use_cache: Whether to reuse a previously loaded file.

        Returns:
            Loaded settings; empty settings when no file was found.

        Raises:
            SettingsError: If the file cannot be read, parsed or validated.
            FileNotFoundError: If an explicit ``path`` does not exist.
        """
        if path is not None:
            file_path = Path(path)
            if not file_path.is_file():
                raise FileNotFoundError(f"Settings file not found: {file_path}")
        else:
            file_path = self.find()
            if file_path is None:
                logger.info(
                    f"No settings file '{self.config_name}' found in "
                    f"{self.config_dir.resolve()}, using defaults"
                )
                return Settings()

        cache_key = str(file_path.resolve())
        if use_cache and cache_key in self._cache:
            logger.debug(f"Returning cached settings for: {file_path}")
            return self._cache[cache_key]

        logger.info(f"Loading settings: {file_path}")
        data = self._read_file(file_path)

        if validate:
            try:
                self.schema_registry.validate(data, SETTINGS_SCHEMA)
            except Exception as e:
                raise SettingsError(f"Settings validation failed for {file_path}: {e}") from e

        settings = Settings(data, source=file_path)
        if use_cache:
            self._cache[cache_key] = settings
        return settings

    def clear_cache(self) -> None:
        self._cache.clear()

    def _read_file(self, file_path: Path) -> Dict[str, Any]:
        parse = _PARSERS.get(file_path.suffix.lower())
        if parse is None:
            raise SettingsError(
                f"Unsupported file format '{file_path.suffix}' for {file_path.name}; "
                f"use one of {', '.join(self.SUPPORTED_EXTENSIONS)}"
            )

        try:
            data = parse(file_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise SettingsError(f"Cannot read settings file {file_path}: {e}") from e
        except (yaml.YAMLError, ValueError) as e:
            raise SettingsError(f"Failed to parse {file_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SettingsError(
                f"{file_path} must contain a mapping of sections, not a {type(data).__name__}"
            )
        return data


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings with the environment-driven defaults."""
    return SettingsLoader().load(path)
