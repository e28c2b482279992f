import json
import logging
from typing import Iterator

from ..record import ImportRecord
from ..result import ViolationCollector
from ..schema import (
    IMPORT_TYPE_JSON,
    PATH_PREFIXES,
    MSG_JSON_INVALID,
    MSG_JSON_NOT_ARRAY,
    MSG_PARAMETER_ARRAY,
)
from .base import BaseAdapter

logger = logging.getLogger(__name__)


class JsonAdapter(BaseAdapter):
    """Adapter for a top-level JSON array of BOM entry objects."""

    import_type = IMPORT_TYPE_JSON

    def read(self, text: str, violations: ViolationCollector) -> Iterator[ImportRecord]:
        prefix = PATH_PREFIXES[self.import_type]

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON import data: {e}")
            violations.add(MSG_JSON_INVALID, prefix, parameters={"error": str(e)})
            return

        if not isinstance(data, list):
            violations.add(MSG_JSON_NOT_ARRAY, prefix, invalid_value=type(data).__name__)
            return

        for index, entry in enumerate(data):
            if not isinstance(entry, dict):
                violations.add(MSG_PARAMETER_ARRAY, f"{prefix}[{index}]", invalid_value=entry)
                continue
            yield ImportRecord.build(index, prefix, entry)
