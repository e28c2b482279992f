"""
Entity lookup interface used by the BOM importer.

The importer never writes to storage. It only asks a lookup for existing
parts, manufacturers, categories and BOM entries; persisting what the
import returns is the caller's responsibility.

Key kinds:
- Parts: "id", "mpnr" (manufacturer product number), "ipn" (internal part number), "name"
- Manufacturers and categories: "id", "name"
"""

from typing import Any, Iterable, List, Optional, Type

from ..models import BomEntry, Category, Manufacturer, Part
from ..schema import PART_KEY_ATTRIBUTES

NAMED_ENTITY_KEY_ATTRIBUTES = {
    "id": "id",
    "name": "name",
}


class EntityLookup:
    """
    Abstract entity lookup interface.

    Implement this interface with your actual storage (e.g. psycopg2, SQLAlchemy).
    All methods are read-only and return None when nothing matches.
    """

    def find_part_by_key(self, kind: str, value: Any) -> Optional[Part]:
        """
        Find one part by an identity key.

        Args:
            kind: One of "id", "mpnr", "ipn", "name"
            value: Key value (int for "id", trimmed string otherwise)

        Returns:
            Matching Part or None
        """
        raise NotImplementedError

    def find_manufacturer_by_key(self, kind: str, value: Any) -> Optional[Manufacturer]:
        """Find one manufacturer by "id" or "name"."""
        raise NotImplementedError

    def find_category_by_key(self, kind: str, value: Any) -> Optional[Category]:
        """Find one category by "id" or "name"."""
        raise NotImplementedError

    def find_bom_entry_by_part(self, entry_type: Type[BomEntry], part: Part) -> Optional[BomEntry]:
        """
        Find an existing BOM entry of the given type linked to a part.

        Args:
            entry_type: ProjectBomEntry or AssemblyBomEntry
            part: Part the entry must reference

        Returns:
            Matching entry or None
        """
        raise NotImplementedError

    def find_bom_entry_by_name(self, entry_type: Type[BomEntry], name: str) -> Optional[BomEntry]:
        """Find an existing BOM entry of the given type by its name."""
        raise NotImplementedError


def _find_first(items: Iterable, attribute: str, value: Any):
    for item in items:
        if getattr(item, attribute, None) == value:
            return item
    return None


class InMemoryEntityLookup(EntityLookup):
    """
    List-backed lookup.

    Useful for tests, scripts and previews where the candidate entities are
    already loaded.
    """

    def __init__(
        self,
        parts: Optional[Iterable[Part]] = None,
        manufacturers: Optional[Iterable[Manufacturer]] = None,
        categories: Optional[Iterable[Category]] = None,
        bom_entries: Optional[Iterable[BomEntry]] = None
    ):
        self.parts: List[Part] = list(parts or [])
        self.manufacturers: List[Manufacturer] = list(manufacturers or [])
        self.categories: List[Category] = list(categories or [])
        self.bom_entries: List[BomEntry] = list(bom_entries or [])

    def add_part(self, part: Part) -> Part:
        self.parts.append(part)
        return part

    def add_manufacturer(self, manufacturer: Manufacturer) -> Manufacturer:
        self.manufacturers.append(manufacturer)
        return manufacturer

    def add_category(self, category: Category) -> Category:
        self.categories.append(category)
        return category

    def add_bom_entry(self, entry: BomEntry) -> BomEntry:
        self.bom_entries.append(entry)
        return entry

    def find_part_by_key(self, kind: str, value: Any) -> Optional[Part]:
        if kind not in PART_KEY_ATTRIBUTES:
            raise ValueError(f"Unknown part key kind: {kind}")
        return _find_first(self.parts, PART_KEY_ATTRIBUTES[kind], value)

    def find_manufacturer_by_key(self, kind: str, value: Any) -> Optional[Manufacturer]:
        if kind not in NAMED_ENTITY_KEY_ATTRIBUTES:
            raise ValueError(f"Unknown manufacturer key kind: {kind}")
        return _find_first(self.manufacturers, NAMED_ENTITY_KEY_ATTRIBUTES[kind], value)

    def find_category_by_key(self, kind: str, value: Any) -> Optional[Category]:
        if kind not in NAMED_ENTITY_KEY_ATTRIBUTES:
            raise ValueError(f"Unknown category key kind: {kind}")
        return _find_first(self.categories, NAMED_ENTITY_KEY_ATTRIBUTES[kind], value)

    def find_bom_entry_by_part(self, entry_type: Type[BomEntry], part: Part) -> Optional[BomEntry]:
        for entry in self.bom_entries:
            if type(entry) is entry_type and entry.part is part:
                return entry
        return None

    def find_bom_entry_by_name(self, entry_type: Type[BomEntry], name: str) -> Optional[BomEntry]:
        for entry in self.bom_entries:
            if type(entry) is entry_type and entry.name == name:
                return entry
        return None
