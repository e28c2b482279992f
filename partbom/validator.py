"""
Per-record field validation.

Every check runs and every failure is collected; nothing here raises for
invalid input. The validator also extracts the identity candidates the
resolver works from.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from .record import ImportRecord
from .result import ViolationCollector
from .schema import (
    IMPORT_TYPE_JSON,
    PART_KEYS,
    MANUFACTURER_KEYS,
    CATEGORY_KEYS,
    MSG_QUANTITY_REQUIRED,
    MSG_QUANTITY_FLOAT,
    MSG_PARAMETER_STRING,
    MSG_PARAMETER_STRING_NOT_EMPTY,
    MSG_PARAMETER_ARRAY,
    MSG_PARAMETER_SUBPROPERTIES,
)


def is_valid_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def is_non_blank(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _property_string(keys: List[str]) -> str:
    quoted = [f'"{key}"' for key in keys]
    if len(quoted) <= 2:
        return " or ".join(quoted)
    return ", ".join(quoted[:-1]) + ", or " + quoted[-1]


@dataclass(frozen=True)
class CandidateKeySet:
    """
    Identity candidates for one entity of one record.

    - raw: every candidate value as given in the input (kind -> value)
    - valid: candidates that passed type and non-blank checks, strings trimmed
    """
    entity: str
    raw: Mapping[str, Any]
    valid: Mapping[str, Any]

    @classmethod
    def from_mapping(cls, entity: str, data: Mapping[str, Any], kinds: List[str]) -> "CandidateKeySet":
        raw = {kind: data.get(kind) for kind in kinds}
        valid = {}
        for kind, value in raw.items():
            if kind == "id":
                if is_valid_id(value):
                    valid[kind] = value
            elif is_non_blank(value):
                valid[kind] = value.strip()
        return cls(entity=entity, raw=raw, valid=valid)

    def is_valid(self, kind: str) -> bool:
        return kind in self.valid

    def any_valid(self) -> bool:
        return bool(self.valid)

    def get(self, kind: str) -> Any:
        return self.valid.get(kind)

    def summary(self) -> str:
        """Summarise every attempted key, e.g. 'part.id: 5, part.name: R1'."""
        return ", ".join(
            f"{self.entity}.{kind}: {'' if value is None else value}"
            for kind, value in self.raw.items()
        )


@dataclass
class ValidatedRecord:
    """
    Field values of a record after validation.

    `has_name` distinguishes an absent name from an explicit one (which may
    be blank); sub-entity key sets are None when the sub-object was absent
    or structurally invalid.
    """
    record: ImportRecord
    quantity: Optional[float] = None
    has_name: bool = False
    name: Optional[str] = None
    has_part: bool = False
    part_keys: Optional[CandidateKeySet] = None
    description: str = ""
    manufacturer_keys: Optional[CandidateKeySet] = None
    category_keys: Optional[CandidateKeySet] = None


class FieldValidator:
    """Validates quantity, name and the nested part/manufacturer/category objects."""

    def __init__(self, import_type: str):
        self.import_type = import_type

    def validate(self, record: ImportRecord, violations: ViolationCollector) -> ValidatedRecord:
        validated = ValidatedRecord(record=record)
        self._validate_quantity(record, validated, violations)
        self._validate_name(record, validated, violations)

        # A null part is treated like an absent one
        if record.get("part") is not None:
            validated.has_part = True
            self._validate_part(record, validated, violations)

        return validated

    def _quantity_type_ok(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        if self.import_type == IMPORT_TYPE_JSON:
            return isinstance(value, float)
        return isinstance(value, (int, float))

    def _validate_quantity(self, record, validated, violations) -> None:
        quantity = record.get("quantity")
        if quantity is None:
            violations.add(MSG_QUANTITY_REQUIRED, record.path("quantity"))
            return
        if not self._quantity_type_ok(quantity) or not math.isfinite(quantity) or quantity <= 0:
            violations.add(MSG_QUANTITY_FLOAT, record.path("quantity"), invalid_value=quantity)
            return
        validated.quantity = float(quantity)

    def _validate_name(self, record, validated, violations) -> None:
        if not record.has("name"):
            return
        name = record.get("name")
        validated.has_name = True
        if name is None:
            return
        if not isinstance(name, str):
            violations.add(MSG_PARAMETER_STRING, record.path("name"), invalid_value=name)
            return
        validated.name = name

    def _validate_part(self, record, validated, violations) -> None:
        part = record.get("part")
        if not isinstance(part, Mapping):
            violations.add(MSG_PARAMETER_ARRAY, record.path("part"), invalid_value=part)
            return

        keys = CandidateKeySet.from_mapping("part", part, PART_KEYS)
        if not keys.any_valid():
            violations.add(
                MSG_PARAMETER_SUBPROPERTIES,
                record.path("part"),
                invalid_value=dict(part),
                parameters={"propertyString": '"id", "name", "mpnr", or "ipn"'},
            )
        else:
            validated.part_keys = keys

        description = part.get("description")
        if description is not None:
            if not is_non_blank(description):
                violations.add(
                    MSG_PARAMETER_STRING_NOT_EMPTY,
                    record.path("part", "description"),
                    invalid_value=description,
                )
            else:
                validated.description = description.strip()

        validated.manufacturer_keys = self._validate_sub_entity(
            record, part, "manufacturer", MANUFACTURER_KEYS, violations
        )
        validated.category_keys = self._validate_sub_entity(
            record, part, "category", CATEGORY_KEYS, violations
        )

    @staticmethod
    def _validate_sub_entity(record, part, entity, kinds, violations) -> Optional[CandidateKeySet]:
        if entity not in part:
            return None

        value = part.get(entity)
        path = record.path("part", entity)
        if not isinstance(value, Mapping):
            violations.add(MSG_PARAMETER_ARRAY, path, invalid_value=value)
            return None

        keys = CandidateKeySet.from_mapping(entity, value, kinds)
        if not keys.any_valid():
            violations.add(
                MSG_PARAMETER_SUBPROPERTIES,
                path,
                invalid_value=dict(value),
                parameters={"propertyString": _property_string(kinds)},
            )
            return None
        return keys
