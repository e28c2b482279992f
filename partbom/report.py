"""Export an ImporterResult (entries and violations) to CSV, Excel or JSON."""

import csv
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import openpyxl

from .result import ImporterResult

ENTRY_HEADERS = [
    "name",
    "quantity",
    "part_id",
    "part_name",
    "mountnames",
    "comment",
]

VIOLATION_HEADERS = [
    "property_path",
    "message",
    "message_template",
    "invalid_value",
]


def entry_rows(result: ImporterResult) -> List[Dict[str, Any]]:
    rows = []
    for entry in result.entries:
        rows.append({
            "name": entry.name or "",
            "quantity": entry.quantity,
            "part_id": entry.part.id if entry.part is not None else "",
            "part_name": entry.part.name if entry.part is not None else "",
            "mountnames": entry.mountnames,
            "comment": entry.comment,
        })
    return rows


def violation_rows(result: ImporterResult) -> List[Dict[str, Any]]:
    return [
        {
            "property_path": v.property_path,
            "message": v.message,
            "message_template": v.message_template,
            "invalid_value": "" if v.invalid_value is None else str(v.invalid_value),
        }
        for v in result.violations
    ]


def export_result(result: ImporterResult, output_path: Union[str, Path], format: Optional[str] = None) -> str:
    """Export an import result to a file.

    CSV output contains the violations when there are any, otherwise the
    entries; Excel output (xlsx) has one sheet for each; JSON output has both.

    Args:
        result: Result returned by BomImporter
        output_path: Path where the file should be saved
        format: Output format ('csv', 'excel', 'json', or None for auto-detect from extension)

    Returns:
        Path to the exported file

    Raises:
        ValueError: If format is not supported
    """
    output_path = Path(output_path)

    # Auto-detect format from extension if not provided
    if format is None:
        suffix = output_path.suffix.lower()
        if suffix == '.csv':
            format = 'csv'
        elif suffix == '.xlsx':
            format = 'excel'
        elif suffix == '.json':
            format = 'json'
        else:
            # Default to CSV if extension is not recognized
            format = 'csv'
            output_path = output_path.with_suffix('.csv')

    format = format.lower()

    if format == 'csv':
        if result.violations:
            _export_csv(violation_rows(result), output_path, VIOLATION_HEADERS)
        else:
            _export_csv(entry_rows(result), output_path, ENTRY_HEADERS)
    elif format == 'excel':
        _export_excel(result, output_path)
    elif format == 'json':
        _export_json(result, output_path)
    else:
        raise ValueError(f"Unsupported export format: {format}. Supported formats: csv, excel, json")

    return str(output_path)


def _export_csv(rows: List[Dict[str, Any]], output_path: Path, headers: List[str]) -> None:
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=headers, extrasaction='ignore')
        writer.writeheader()
        for row in rows:
            writer.writerow(row)


def _write_sheet(ws, rows: List[Dict[str, Any]], headers: List[str]) -> None:
    for col_idx, header in enumerate(headers, start=1):
        ws.cell(row=1, column=col_idx, value=header)

    for row_idx, row_data in enumerate(rows, start=2):
        for col_idx, header in enumerate(headers, start=1):
            ws.cell(row=row_idx, column=col_idx, value=row_data.get(header, ''))


def _export_excel(result: ImporterResult, output_path: Path) -> None:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Entries"
    _write_sheet(ws, entry_rows(result), ENTRY_HEADERS)

    _write_sheet(wb.create_sheet("Violations"), violation_rows(result), VIOLATION_HEADERS)

    wb.save(output_path)


def _export_json(result: ImporterResult, output_path: Path) -> None:
    payload = {
        "entries": entry_rows(result),
        "violations": [v.to_dict() for v in result.violations],
    }
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, default=str)
