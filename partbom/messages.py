"""Message catalogue and translator used to render violation messages."""

from typing import Any, Dict, Mapping, Optional

from .schema import (
    MSG_INVALID_IMPORT_TYPE,
    MSG_INVALID_FILE_EXTENSION,
    MSG_JSON_INVALID,
    MSG_JSON_NOT_ARRAY,
    MSG_CSV_EMPTY,
    MSG_CSV_COLUMN_COUNT,
    MSG_KICAD_FIELD_REQUIRED,
    MSG_QUANTITY_REQUIRED,
    MSG_QUANTITY_FLOAT,
    MSG_PARAMETER_STRING,
    MSG_PARAMETER_STRING_NOT_EMPTY,
    MSG_PARAMETER_ARRAY,
    MSG_PARAMETER_SUBPROPERTIES,
    MSG_PARAMETER_NOT_FOUND_FOR,
    MSG_PARAMETER_NO_EXACT_MATCH,
)

# Default English catalogue. Placeholders use the %name% form.
DEFAULT_MESSAGES: Dict[str, str] = {
    MSG_INVALID_IMPORT_TYPE: 'The import type "%type%" is not supported. Supported types: %allowedTypes%.',
    MSG_INVALID_FILE_EXTENSION: 'The file extension "%extension%" is not allowed for import type "%type%". Allowed extensions: %allowedExtensions%.',
    MSG_JSON_INVALID: "The file does not contain valid JSON: %error%",
    MSG_JSON_NOT_ARRAY: "The JSON data must be an array of entries.",
    MSG_CSV_EMPTY: "The CSV data does not contain a header row.",
    MSG_CSV_COLUMN_COUNT: "The row has %actual% columns, but the header has %expected%.",
    MSG_KICAD_FIELD_REQUIRED: 'The field "%field%" is missing.',
    MSG_QUANTITY_REQUIRED: "The quantity is required.",
    MSG_QUANTITY_FLOAT: "The quantity must be a number greater than 0.",
    MSG_PARAMETER_STRING: "The value must be a string.",
    MSG_PARAMETER_STRING_NOT_EMPTY: "The value must be a non-empty string.",
    MSG_PARAMETER_ARRAY: "The value must be an object.",
    MSG_PARAMETER_SUBPROPERTIES: "The object must have at least one of the following properties: %propertyString%.",
    MSG_PARAMETER_NOT_FOUND_FOR: "No existing %entity% found for %value%.",
    MSG_PARAMETER_NO_EXACT_MATCH: 'The given value "%importValue%" does not exactly match the found %entity% #%foundId% ("%foundValue%").',
}


class MessageTranslator:
    """
    Abstract translator interface.

    Implement this with your application's translation service.
    """

    def translate(self, key: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
        """
        Render the message for a stable template key.

        Args:
            key: Message template key (e.g. "validator.bom_importer.json_csv.quantity.required")
            parameters: Placeholder values; keys may be given with or without the surrounding %

        Returns:
            Human-readable message
        """
        raise NotImplementedError


class CatalogTranslator(MessageTranslator):
    """Translator backed by an in-memory catalogue (English by default).

    Unknown keys render as the key itself, with placeholders still substituted.
    """

    def __init__(self, catalog: Optional[Mapping[str, str]] = None):
        self.catalog = dict(DEFAULT_MESSAGES)
        if catalog:
            self.catalog.update(catalog)

    def translate(self, key: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
        template = self.catalog.get(key, key)
        for name, value in (parameters or {}).items():
            placeholder = name if name.startswith("%") else f"%{name}%"
            template = template.replace(placeholder, "" if value is None else str(value))
        return template
