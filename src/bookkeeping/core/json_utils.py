#!/usr/bin/env python3
"""
JSON Utilities Module

Centralized JSON reading and writing with consistent pretty-printing. Entity
stores and CLI output go through these helpers so money always leaves the
process as decimal strings.
"""

import json
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from .decimal_value import DecimalValue


def json_default(value: Any) -> Any:
    """
    Serialize engine types that the json module does not know.

    DecimalValue/Decimal become plain decimal strings (scale preserved), dates
    become ISO strings, enums their values, tuples lists.
    """
    if isinstance(value, DecimalValue):
        return value.to_plain_string()
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(filepath: str | Path, data: Any, sort_keys: bool = False) -> None:
    """
    Pretty-print data to filepath, creating parent directories.

    Args:
        filepath: Destination file
        data: JSON-compatible data; engine types go through json_default
        sort_keys: Sort object keys for stable diffs
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=sort_keys, default=json_default)


def read_json(filepath: str | Path) -> Any:
    """
    Load a JSON document.

    Floats in the file are parsed as Decimal so hand-edited amounts like
    12.30 are not routed through binary floating point.

    Args:
        filepath: Source file

    Returns:
        Parsed document
    """
    with open(filepath, encoding="utf-8") as f:
        return json.load(f, parse_float=Decimal)


def format_json(data: Any, sort_keys: bool = False) -> str:
    """Format data as a pretty-printed JSON string."""
    return json.dumps(data, indent=2, ensure_ascii=False, sort_keys=sort_keys, default=json_default)
