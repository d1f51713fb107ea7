"""
Data Reader Module.

Reads tabular test data (parameter sets, fixtures, expected values) from files:
- JSON: a top-level array of objects.
- YAML: a top-level list of mappings.
- CSV / TSV: a header row followed by records.
- TXT: fixed-width columns aligned under a header row.
- XLSX: an Excel worksheet whose first row names the columns.

Every format is its own capability kind, so several readers may advertise the
same format and the registry picks the first available one. A reader that
cannot locate, open or parse its source logs the cause and returns an empty
list; it never raises.
"""

from __future__ import annotations

import csv
import json
import re
from abc import abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Union

import openpyxl
import yaml
from loguru import logger

from harness.config.settings import Settings
from harness.registry import Capability, CapabilityRegistry, get_registry

Target = Optional[Callable[..., Any]]


class DataFormat(Enum):
    """Structured-data formats understood by the harness."""

    JSON = "json"
    YAML = "yaml"
    CSV = "csv"
    TSV = "tsv"
    TXT = "txt"
    XLSX = "xlsx"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> Optional["DataFormat"]:
        """Guess the format from a file extension."""
        suffix = Path(path).suffix.lower().lstrip(".")
        if suffix == "yml":
            suffix = "yaml"
        try:
            return cls(suffix)
        except ValueError:
            return None


class DataReader(Capability):
    """
    Base class for data readers.

    Subclasses implement ``_load()``, returning raw rows from an open path;
    ``read()`` adds source resolution, row conversion and error containment.

    Attributes:
        data_dir: Directory relative sources are looked up in first.
    """

    formats: FrozenSet[DataFormat] = frozenset()

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings if settings is not None else Settings()
        directory = settings.get_string("data.directory")
        self.data_dir = Path(directory) if directory else None

    def supported_formats(self) -> FrozenSet[DataFormat]:
        return self.formats

    def is_available(self) -> bool:
        return True

    def read(self, source: Union[str, Path], target: Target = dict) -> List[Any]:
        """
        Read every record of ``source``.

        Args:
            source: File path, absolute or relative to ``data_dir`` / the
                    working directory.
            target: ``dict`` (or None) to get mappings, or a callable such as
                    a dataclass that accepts each record's fields as keyword
                    arguments.

        Returns:
            Records in file order; an empty list on any failure.
        """
        try:
            path = self.resolve_source(source)
            rows = self._load(path)
            records = [self._convert(row, target) for row in rows]
        except Exception as e:
            logger.error(f"{self.name}: unable to read data from [{source}]: {e}")
            return []

        logger.debug(f"{self.name}: read {len(records)} record(s) from {path}")
        return records

    def resolve_source(self, source: Union[str, Path]) -> Path:
        path = Path(source)
        candidates = [path] if path.is_absolute() else []
        if not path.is_absolute():
            if self.data_dir is not None:
                candidates.append(self.data_dir / path)
            candidates.append(path)

        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise FileNotFoundError(f"File [{source}] not found")

    @staticmethod
    def _convert(row: Any, target: Target) -> Any:
        if target is None or target is dict:
            return dict(row) if isinstance(row, dict) else row
        if isinstance(row, dict):
            return target(**row)
        return target(row)

    @abstractmethod
    def _load(self, path: Path) -> Iterable[Any]:
        """Parse ``path`` into raw rows."""


class JsonDataReader(DataReader):
    formats = frozenset({DataFormat.JSON})

    def _load(self, path: Path) -> Iterable[Any]:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"expected a JSON array, got {type(data).__name__}")
        return data


class YamlDataReader(DataReader):
    formats = frozenset({DataFormat.YAML})

    def _load(self, path: Path) -> Iterable[Any]:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError(f"expected a YAML list, got {type(data).__name__}")
        return data


class DelimitedDataReader(DataReader):
    """
    Header-first delimited text: comma for CSV, tab for TSV.

    Without an explicit ``data_format`` the delimiter follows the file extension.
    """

    formats = frozenset({DataFormat.CSV, DataFormat.TSV})
    DELIMITERS: Dict[DataFormat, str] = {DataFormat.CSV: ",", DataFormat.TSV: "\t"}

    def __init__(
        self,
        settings: Optional[Settings] = None,
        data_format: Optional[DataFormat] = None,
    ) -> None:
        super().__init__(settings)
        self.data_format = data_format

    def _load(self, path: Path) -> Iterable[Any]:
        data_format = self.data_format or DataFormat.from_path(path) or DataFormat.CSV
        delimiter = self.DELIMITERS.get(data_format, ",")
        with path.open(encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f, delimiter=delimiter, skipinitialspace=True)
            return [
                {key.strip(): (value.strip() if isinstance(value, str) else value)
                 for key, value in row.items() if key is not None}
                for row in reader
            ]


class FixedWidthDataReader(DataReader):
    """
    Column-aligned text with a header row.

    Each column starts where its header name starts and runs up to the next
    one; the last column takes the rest of the line. Values are stripped and
    blank lines are skipped.
    """

    formats = frozenset({DataFormat.TXT})

    def _load(self, path: Path) -> Iterable[Any]:
        with path.open(encoding="utf-8") as f:
            lines = [line.rstrip("\r\n") for line in f if line.strip()]
        if not lines:
            return []

        starts = [match.start() for match in re.finditer(r"\S+", lines[0])]
        bounds = list(zip(starts, starts[1:] + [None]))
        names = [lines[0][start:end].strip() for start, end in bounds]
        return [
            {name: line[start:end].strip() for name, (start, end) in zip(names, bounds)}
            for line in lines[1:]
        ]


class XlsxDataReader(DataReader):
    """
    Excel workbooks (``.xlsx``) read with openpyxl.

    The first row of the worksheet names the columns. The worksheet is the
    one named by ``sheet`` (or the ``data.excel.sheet`` setting) and the
    first one otherwise. Cells keep the type openpyxl gives them; empty rows
    are skipped.
    """

    formats = frozenset({DataFormat.XLSX})

    def __init__(self, settings: Optional[Settings] = None, sheet: Optional[str] = None) -> None:
        super().__init__(settings)
        settings = settings if settings is not None else Settings()
        self.sheet = sheet or settings.get_string("data.excel.sheet")

    def _load(self, path: Path) -> Iterable[Any]:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
        try:
            worksheet = workbook[self.sheet] if self.sheet else workbook.worksheets[0]
            rows = worksheet.iter_rows(values_only=True)
            header = next(rows, None)
            if header is None:
                return []
            columns = [
                (index, str(name).strip())
                for index, name in enumerate(header)
                if name is not None and str(name).strip()
            ]
            return [
                {name: row[index] if index < len(row) else None for index, name in columns}
                for row in rows
                if any(cell is not None for cell in row)
            ]
        finally:
            workbook.close()


class NullDataReader(DataReader):
    """Fallback for formats no reader supports; always reads nothing."""

    noop = True

    def _load(self, path: Path) -> Iterable[Any]:
        return []

    def read(self, source: Union[str, Path], target: Target = dict) -> List[Any]:
        logger.warning(f"No data reader available for [{source}]")
        return []


def read_data(
    source: Union[str, Path],
    target: Target = dict,
    data_format: Optional[DataFormat] = None,
    registry: Optional[CapabilityRegistry] = None,
) -> List[Any]:
    """
    Read ``source`` with the reader resolved for its format.

    Args:
        source: Data file path.
        target: Row type, see ``DataReader.read``.
        data_format: Explicit format; inferred from the extension when omitted.
        registry: Registry to resolve against; the process-wide one by default.

    Returns:
        Records in file order; an empty list when the format is unknown or
        the file cannot be read.
    """
    data_format = data_format or DataFormat.from_path(source)
    if data_format is None:
        logger.error(f"Cannot infer the data format of [{source}]")
        return []
    registry = registry if registry is not None else get_registry()
    return registry.resolve(data_format).read(source, target)
