"""BOM import schema definitions: import types, file extensions, field maps and message keys."""

from typing import Dict, List, Tuple

# Supported import types
IMPORT_TYPE_KICAD_PCBNEW = "kicad_pcbnew"
IMPORT_TYPE_JSON = "json"
IMPORT_TYPE_CSV = "csv"

IMPORT_TYPES = [
    IMPORT_TYPE_KICAD_PCBNEW,
    IMPORT_TYPE_JSON,
    IMPORT_TYPE_CSV,
]

# Whitelisted file extensions per import type (without the leading dot)
FILE_EXTENSIONS: Dict[str, Tuple[str, ...]] = {
    IMPORT_TYPE_KICAD_PCBNEW: ("kicad_pcb",),
    IMPORT_TYPE_JSON: ("json",),
    IMPORT_TYPE_CSV: ("csv",),
}

# Options accepted by BomImporter.string_to_bom_entries()
KNOWN_OPTIONS = {"type"}

# KiCad pcbnew BOM columns in export order. The header row is localized,
# so columns are mapped by position instead of by name.
KICAD_PCB_FIELDS: List[str] = [
    "Id",
    "Designator",
    "Package",
    "Quantity",
    "Designation",
    "Supplier and ref",
]

KICAD_REQUIRED_FIELDS: List[str] = [
    "Designator",
    "Package",
    "Designation",
    "Quantity",
]

KICAD_DELIMITER = ";"

# Generic CSV
CSV_DELIMITER = ","
CSV_FALLBACK_DELIMITER = ";"
CSV_NESTING_SEPARATOR = "_"

# Property path prefixes used in violations
PATH_PREFIXES: Dict[str, str] = {
    IMPORT_TYPE_KICAD_PCBNEW: "row",
    IMPORT_TYPE_JSON: "entry",
    IMPORT_TYPE_CSV: "row",
}

# Candidate identity keys, in lookup order
PART_KEYS: List[str] = ["id", "mpnr", "ipn", "name"]
MANUFACTURER_KEYS: List[str] = ["id", "name"]
CATEGORY_KEYS: List[str] = ["id", "name"]

# Part attribute compared against each candidate key for exact-match checks
PART_KEY_ATTRIBUTES: Dict[str, str] = {
    "id": "id",
    "mpnr": "manufacturer_product_number",
    "ipn": "ipn",
    "name": "name",
}

# Stable message template keys
MSG_INVALID_IMPORT_TYPE = "validator.bom_importer.invalid_import_type"
MSG_INVALID_FILE_EXTENSION = "validator.bom_importer.invalid_file_extension"
MSG_JSON_INVALID = "validator.bom_importer.json.invalid"
MSG_JSON_NOT_ARRAY = "validator.bom_importer.json.not_array"
MSG_CSV_EMPTY = "validator.bom_importer.csv.empty"
MSG_CSV_COLUMN_COUNT = "validator.bom_importer.csv.column_count"
MSG_KICAD_FIELD_REQUIRED = "validator.bom_importer.kicad_pcbnew.field.required"
MSG_QUANTITY_REQUIRED = "validator.bom_importer.json_csv.quantity.required"
MSG_QUANTITY_FLOAT = "validator.bom_importer.json_csv.quantity.float"
MSG_PARAMETER_STRING = "validator.bom_importer.json_csv.parameter.string"
MSG_PARAMETER_STRING_NOT_EMPTY = "validator.bom_importer.json_csv.parameter.string.notEmpty"
MSG_PARAMETER_ARRAY = "validator.bom_importer.json_csv.parameter.array"
MSG_PARAMETER_SUBPROPERTIES = "validator.bom_importer.json_csv.parameter.subproperties"
MSG_PARAMETER_NOT_FOUND_FOR = "validator.bom_importer.json_csv.parameter.notFoundFor"
MSG_PARAMETER_NO_EXACT_MATCH = "validator.bom_importer.json_csv.parameter.noExactMatch"
