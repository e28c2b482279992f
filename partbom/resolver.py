"""
Cascading entity resolution.

Each entity is looked up by its identity candidates in a fixed order; the
first hit wins. Resolution is conservative: finding a part by one key does
not validate a sibling key that disagrees with it.

Lookup order:
- Part: id -> mpnr -> ipn -> name
- Manufacturer, category: id -> name
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Tuple

from .lookup.entity_lookup import EntityLookup
from .models import Category, Manufacturer, Part
from .result import ViolationCollector
from .schema import (
    PART_KEYS,
    MANUFACTURER_KEYS,
    CATEGORY_KEYS,
    PART_KEY_ATTRIBUTES,
    MSG_PARAMETER_NOT_FOUND_FOR,
    MSG_PARAMETER_NO_EXACT_MATCH,
)
from .validator import CandidateKeySet, ValidatedRecord

logger = logging.getLogger(__name__)


def first_match(strategies: Iterable[Tuple[str, Callable[[], Any]]]) -> Tuple[Optional[str], Any]:
    """Run lookup strategies in order, stopping at the first non-None result.

    Args:
        strategies: (label, zero-argument lookup) pairs

    Returns:
        Tuple of (label of the matching strategy, result), or (None, None)
    """
    for label, lookup in strategies:
        found = lookup()
        if found is not None:
            return label, found
    return None, None


def _cascade(keys: CandidateKeySet, kinds, find) -> Tuple[Optional[str], Any]:
    return first_match(
        (kind, lambda kind=kind: find(kind, keys.get(kind)))
        for kind in kinds
        if keys.is_valid(kind)
    )


@dataclass
class Resolution:
    """Entities resolved for one record (None where not supplied or not found)."""
    part: Optional[Part] = None
    matched_by: Optional[str] = None
    manufacturer: Optional[Manufacturer] = None
    category: Optional[Category] = None


class EntityResolver:
    """Resolves the part, manufacturer and category of a validated record."""

    def __init__(self, lookup: EntityLookup, debug: bool = False):
        self.lookup = lookup
        self.debug = debug

    def resolve(self, validated: ValidatedRecord, violations: ViolationCollector) -> Resolution:
        resolution = Resolution()
        if validated.part_keys is None:
            return resolution

        record = validated.record
        keys = validated.part_keys

        matched_by, part = _cascade(keys, PART_KEYS, self.lookup.find_part_by_key)
        if part is None:
            violations.add(
                MSG_PARAMETER_NOT_FOUND_FOR,
                record.path("part"),
                invalid_value=keys.summary(),
                parameters={"entity": "part", "value": keys.summary()},
            )
            if self.debug:
                logger.info(f"Part not found for {record.path()}: {keys.summary()}")
            return resolution

        if self.debug:
            logger.info(f"Part match: {record.path()} -> part #{part.id} '{part.name}' (by {matched_by})")

        resolution.part = part
        resolution.matched_by = matched_by

        for kind in ("name", "mpnr", "ipn"):
            if not keys.is_valid(kind):
                continue
            found_value = getattr(part, PART_KEY_ATTRIBUTES[kind])
            if found_value != keys.get(kind):
                violations.add(
                    MSG_PARAMETER_NO_EXACT_MATCH,
                    record.path("part", kind),
                    invalid_value=keys.raw.get(kind),
                    parameters={
                        "entity": "part",
                        "importValue": keys.get(kind),
                        "foundId": part.id,
                        "foundValue": found_value,
                    },
                )

        resolution.manufacturer = self._resolve_named(
            validated, "manufacturer", validated.manufacturer_keys,
            MANUFACTURER_KEYS, self.lookup.find_manufacturer_by_key, violations
        )
        resolution.category = self._resolve_named(
            validated, "category", validated.category_keys,
            CATEGORY_KEYS, self.lookup.find_category_by_key, violations
        )
        return resolution

    def _resolve_named(self, validated, entity, keys, kinds, find, violations):
        """Resolve a manufacturer or category; absent sub-objects resolve to None silently."""
        if keys is None or not keys.any_valid():
            return None

        record = validated.record
        matched_by, found = _cascade(keys, kinds, find)
        if found is None:
            violations.add(
                MSG_PARAMETER_NOT_FOUND_FOR,
                record.path("part", entity),
                invalid_value=keys.summary(),
                parameters={"entity": entity, "value": keys.summary()},
            )
            return None

        if self.debug:
            logger.info(f"{entity.capitalize()} match: {record.path()} -> #{found.id} '{found.name}' (by {matched_by})")

        if keys.is_valid("name") and found.name != keys.get("name"):
            violations.add(
                MSG_PARAMETER_NO_EXACT_MATCH,
                record.path("part", entity, "name"),
                invalid_value=keys.raw.get("name"),
                parameters={
                    "entity": entity,
                    "importValue": keys.get("name"),
                    "foundId": found.id,
                    "foundValue": found.name,
                },
            )
        return found
