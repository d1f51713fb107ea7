"""
Structured test-data reading.

One capability kind per ``DataFormat``; readers for JSON, YAML and
delimited (CSV/TSV) files.
"""

from harness.data.reader import (
    DataFormat,
    DataReader,
    DelimitedDataReader,
    JsonDataReader,
    NullDataReader,
    YamlDataReader,
    read_data,
)

__all__ = [
    "DataFormat",
    "DataReader",
    "DelimitedDataReader",
    "JsonDataReader",
    "NullDataReader",
    "YamlDataReader",
    "read_data",
]
