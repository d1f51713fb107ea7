"""
Schema Registry Module.

Holds the JSON schemas bundled with the package (``schemas/*.json``) and the
validators compiled from them. The draft is taken from each schema's
``$schema`` keyword, and a schema that is itself invalid is rejected when
first loaded.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema
from jsonschema.exceptions import SchemaError
from loguru import logger

DEFAULT_SCHEMA_DIR = Path(__file__).parent / "schemas"


class SchemaValidationError(Exception):
    """
    Raised when a document does not match its schema.

    Attributes:
        errors: One ``"<json path>: <message>"`` line per violation.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class SchemaRegistry:
    """
    Named JSON schemas, compiled once and reused.

    Usage::

        registry = SchemaRegistry()
        registry.validate({"logging": {"provider": "console"}}, "settings_schema")
    """

    def __init__(self, schema_dir: str | Path = DEFAULT_SCHEMA_DIR) -> None:
        self.schema_dir = Path(schema_dir)
        self._validators: Dict[str, Any] = {}

    def get_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Return the schema document named ``schema_name``.

        Raises:
            FileNotFoundError: If ``<schema_dir>/<schema_name>.json`` is missing.
            SchemaValidationError: If the file is not JSON or not a valid schema.
        """
        return self._validator(schema_name).schema

    def _validator(self, schema_name: str) -> Any:
        validator = self._validators.get(schema_name)
        if validator is not None:
            return validator

        path = self.schema_dir / f"{schema_name}.json"
        if not path.is_file():
            raise FileNotFoundError(f"Schema not found: {schema_name} ({path})")

        try:
            schema = json.loads(path.read_text(encoding="utf-8"))
            validator_cls = jsonschema.validators.validator_for(schema)
            validator_cls.check_schema(schema)
        except (OSError, ValueError, SchemaError) as e:
            raise SchemaValidationError(f"Unusable schema {schema_name}: {e}") from e

        validator = validator_cls(schema)
        self._validators[schema_name] = validator
        logger.debug(f"Schema {schema_name} compiled with {validator_cls.__name__}")
        return validator

    def errors_for(self, data: Any, schema_name: str) -> List[str]:
        """Return every violation of ``schema_name`` in ``data``, ordered by location."""
        validator = self._validator(schema_name)
        found = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        return [f"{error.json_path}: {error.message}" for error in found]

    def validate(self, data: Any, schema_name: str) -> None:
        """
        Check ``data`` against ``schema_name``.

        Raises:
            SchemaValidationError: Listing all violations, not only the first.
        """
        errors = self.errors_for(data, schema_name)
        if errors:
            details = "\n".join(f"  {line}" for line in errors)
            raise SchemaValidationError(
                f"Schema '{schema_name}' validation failed with {len(errors)} error(s):\n{details}",
                errors=errors,
            )

    def list_schemas(self) -> List[str]:
        """Names of the schemas available in ``schema_dir``, sorted."""
        if not self.schema_dir.is_dir():
            return []
        return sorted(path.stem for path in self.schema_dir.glob("*.json"))
