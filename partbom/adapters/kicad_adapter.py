import csv
import io
import logging
from typing import Iterator

from ..record import ImportRecord
from ..result import ViolationCollector
from ..schema import (
    IMPORT_TYPE_KICAD_PCBNEW,
    PATH_PREFIXES,
    KICAD_PCB_FIELDS,
    KICAD_REQUIRED_FIELDS,
    KICAD_DELIMITER,
    MSG_KICAD_FIELD_REQUIRED,
)
from .base import BaseAdapter

logger = logging.getLogger(__name__)


def map_kicad_columns(row) -> dict:
    """Map a KiCad pcbnew BOM row to field names by column position.

    KiCad localizes the header row, so names are taken from the column order
    instead. Columns beyond the known fields are ignored.
    """
    return {
        field: value.strip()
        for field, value in zip(KICAD_PCB_FIELDS, row)
    }


class KicadPcbAdapter(BaseAdapter):
    """Adapter for BOM CSV files exported by KiCad pcbnew (semicolon separated)."""

    import_type = IMPORT_TYPE_KICAD_PCBNEW

    def read(self, text: str, violations: ViolationCollector) -> Iterator[ImportRecord]:
        prefix = PATH_PREFIXES[self.import_type]
        reader = csv.reader(io.StringIO(text), delimiter=KICAD_DELIMITER)

        # First row is the (localized) header
        next(reader, None)

        index = 0
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue

            entry = map_kicad_columns(row)
            missing = [field for field in KICAD_REQUIRED_FIELDS if field not in entry]
            if missing:
                logger.warning(f"KiCad row {index} is missing fields: {', '.join(missing)}")
                for field in missing:
                    violations.add(
                        MSG_KICAD_FIELD_REQUIRED,
                        f"{prefix}[{index}].{field.lower()}",
                        parameters={"field": field},
                    )
            else:
                yield ImportRecord.build(index, prefix, entry)

            index += 1
