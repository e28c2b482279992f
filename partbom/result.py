"""
Import results and violations.

A violation is a structured, already-rendered validation failure tied to one
input field. Violations accumulate across the whole import instead of
aborting it; a record with any violation never contributes an entry.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, List, Mapping, Optional

from .messages import MessageTranslator, CatalogTranslator
from .models import BomEntry


@dataclass(frozen=True)
class Violation:
    message: str
    message_template: str
    property_path: str
    invalid_value: Any = None
    parameters: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "message_template": self.message_template,
            "property_path": self.property_path,
            "invalid_value": self.invalid_value,
            "parameters": dict(self.parameters),
        }


class BomImportError(ValueError):
    """Raised by the list-returning import API for the first violation found."""

    def __init__(self, violation: Violation):
        super().__init__(f"{violation.property_path}: {violation.message}")
        self.violation = violation


class ViolationCollector:
    """Builds violations through a translator and appends them to a list.

    Pass an existing list to append into it directly (e.g. a result's
    violation list); otherwise the collector keeps its own.
    """

    def __init__(
        self,
        translator: Optional[MessageTranslator] = None,
        violations: Optional[List[Violation]] = None
    ):
        self.translator = translator or CatalogTranslator()
        self.violations = violations if violations is not None else []

    def add(
        self,
        message_template: str,
        property_path: str,
        invalid_value: Any = None,
        parameters: Optional[Mapping[str, Any]] = None
    ) -> Violation:
        parameters = dict(parameters or {})
        violation = Violation(
            message=self.translator.translate(message_template, parameters),
            message_template=message_template,
            property_path=property_path,
            invalid_value=invalid_value,
            parameters=MappingProxyType(parameters),
        )
        self.violations.append(violation)
        return violation

    def child(self) -> "ViolationCollector":
        """Return an empty collector sharing this collector's translator."""
        return ViolationCollector(self.translator)

    def __len__(self) -> int:
        return len(self.violations)

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.violations)


class ImporterResult:
    """Resolved BOM entries plus every violation found, both in input order."""

    def __init__(self):
        self.entries: List[BomEntry] = []
        self.violations: List[Violation] = []

    def add_bom_entry(self, entry: BomEntry) -> None:
        self.entries.append(entry)

    def add_violation(self, violation: Violation) -> None:
        self.violations.append(violation)

    def add_violations(self, violations) -> None:
        self.violations.extend(violations)

    def has_violations(self) -> bool:
        return bool(self.violations)

    def get_bom_entries(self) -> List[BomEntry]:
        return list(self.entries)

    def get_violations(self) -> List[Violation]:
        return list(self.violations)

    def __repr__(self) -> str:
        return f"ImporterResult(entries={len(self.entries)}, violations={len(self.violations)})"
