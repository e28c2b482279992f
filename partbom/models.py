"""
Domain records touched by the BOM importer.

Entities compare by identity (eq=False): two Part objects with the same name
are still different parts until a lookup says otherwise. The importer merges
resolved attributes into Part objects in place, so callers persisting the
result should persist the Parts as well as the entries.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(eq=False)
class Manufacturer:
    name: str
    id: Optional[int] = None


@dataclass(eq=False)
class Category:
    name: str
    id: Optional[int] = None


@dataclass(eq=False)
class Part:
    """A part in the parts database."""
    name: str
    id: Optional[int] = None
    description: str = ""
    manufacturer_product_number: str = ""
    ipn: Optional[str] = None
    manufacturer: Optional[Manufacturer] = None
    category: Optional[Category] = None


@dataclass(eq=False)
class BomEntry:
    """
    One line of a bill of materials.

    An entry either links a Part or is a free-text line identified only by
    its name. `name` overrides the part's name for display; None means
    "use the part's name".
    """
    quantity: float = 1.0
    name: Optional[str] = None
    part: Optional[Part] = None
    mountnames: str = ""
    comment: str = ""
    id: Optional[int] = None

    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.part is not None:
            return self.part.name
        return ""


@dataclass(eq=False)
class ProjectBomEntry(BomEntry):
    project: Optional["Project"] = None


@dataclass(eq=False)
class AssemblyBomEntry(BomEntry):
    assembly: Optional["Assembly"] = None


@dataclass(eq=False)
class Project:
    name: str
    id: Optional[int] = None
    bom_entries: List[ProjectBomEntry] = field(default_factory=list)

    def add_bom_entry(self, entry: ProjectBomEntry) -> None:
        entry.project = self
        if entry not in self.bom_entries:
            self.bom_entries.append(entry)


@dataclass(eq=False)
class Assembly:
    name: str
    id: Optional[int] = None
    bom_entries: List[AssemblyBomEntry] = field(default_factory=list)

    def add_bom_entry(self, entry: AssemblyBomEntry) -> None:
        entry.assembly = self
        if entry not in self.bom_entries:
            self.bom_entries.append(entry)
