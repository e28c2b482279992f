import csv
import logging
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..record import ImportRecord
from ..result import ViolationCollector
from ..schema import (
    IMPORT_TYPE_CSV,
    PATH_PREFIXES,
    CSV_DELIMITER,
    CSV_FALLBACK_DELIMITER,
    CSV_NESTING_SEPARATOR,
    MSG_CSV_EMPTY,
    MSG_CSV_COLUMN_COUNT,
)
from .base import BaseAdapter

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r'^[+-]?\d+$')
_DECIMAL_RE = re.compile(r'^[+-]?(\d+\.\d*|\.\d+)$')


def split_line(line: str, delimiter: str) -> List[str]:
    """Split one CSV line, honouring quotes."""
    for row in csv.reader([line], delimiter=delimiter):
        return row
    return []


def detect_columns(line: str, expected: Optional[int] = None) -> Tuple[List[str], str]:
    """Split a line on the primary delimiter, falling back to the secondary one.

    Without `expected` (the header row), the fallback is used when the primary
    delimiter yields a single column. With `expected` (data rows), it is used
    when the column count differs from the header's.

    Returns:
        Tuple of (columns, delimiter used)
    """
    columns = split_line(line, CSV_DELIMITER)
    needs_fallback = len(columns) == 1 if expected is None else len(columns) != expected
    if needs_fallback:
        fallback = split_line(line, CSV_FALLBACK_DELIMITER)
        if expected is None or len(fallback) == expected:
            return fallback, CSV_FALLBACK_DELIMITER
    return columns, CSV_DELIMITER


def coerce_value(value: str) -> Any:
    """Convert numeric-looking strings: with a '.' to float, otherwise to int."""
    value = value.strip()
    if _INTEGER_RE.match(value):
        return int(value)
    if _DECIMAL_RE.match(value):
        return float(value)
    return value


def build_nested(header: List[str], values: List[Any]) -> Dict[str, Any]:
    """Build a nested record from underscore-delimited column paths.

    "part_manufacturer_name" -> {"part": {"manufacturer": {"name": ...}}}

    A nested object always wins over a plain column of the same name,
    whichever comes first in the header.
    """
    record: Dict[str, Any] = {}
    for column, value in zip(header, values):
        segments = [s for s in column.split(CSV_NESTING_SEPARATOR) if s]
        if not segments:
            continue
        node = record
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        if isinstance(node.get(segments[-1]), dict):
            if value not in (None, ""):
                logger.warning(f"CSV column '{column}' conflicts with nested columns, value ignored")
            continue
        node[segments[-1]] = value
    return record


def prune_empty(record: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively drop empty/None leaves and sub-mappings left empty."""
    pruned = {}
    for key, value in record.items():
        if isinstance(value, dict):
            value = prune_empty(value)
            if not value:
                continue
        elif value is None or value == "":
            continue
        pruned[key] = value
    return pruned


class CsvAdapter(BaseAdapter):
    """Generic header-driven CSV adapter.

    Handles:
    - Comma delimiter with semicolon fallback, re-detected per row
    - Underscore-delimited column names as nested paths
    - Numeric coercion and pruning of empty values
    """

    import_type = IMPORT_TYPE_CSV

    def read(self, text: str, violations: ViolationCollector) -> Iterator[ImportRecord]:
        prefix = PATH_PREFIXES[self.import_type]
        lines = [line for line in text.splitlines() if line.strip()]

        if not lines:
            violations.add(MSG_CSV_EMPTY, prefix)
            return

        header_columns, delimiter = detect_columns(lines[0])
        header = [column.strip().lower() for column in header_columns]
        logger.debug(f"CSV header uses delimiter {delimiter!r}: {header}")

        for index, line in enumerate(lines[1:]):
            columns, _ = detect_columns(line, expected=len(header))
            if len(columns) != len(header):
                logger.warning(
                    f"CSV row {index} has {len(columns)} columns, header has {len(header)}"
                )
                violations.add(
                    MSG_CSV_COLUMN_COUNT,
                    f"{prefix}[{index}]",
                    invalid_value=line,
                    parameters={"actual": len(columns), "expected": len(header)},
                )
                continue

            values = [coerce_value(column) for column in columns]
            data = prune_empty(build_nested(header, values))
            yield ImportRecord.build(index, prefix, data)
