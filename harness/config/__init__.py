"""
Configuration Management Module.

Handles loading and validation of the harness settings file (YAML/JSON) and
exposes it as a flattened, dotted-key view.
"""

from harness.config.loader import SettingsError, SettingsLoader, load_settings
from harness.config.schema_registry import SchemaRegistry, SchemaValidationError
from harness.config.settings import Settings

__all__ = [
    "SchemaRegistry",
    "SchemaValidationError",
    "Settings",
    "SettingsError",
    "SettingsLoader",
    "load_settings",
]
