"""Entity lookup collaborators for the BOM importer."""

from .entity_lookup import EntityLookup, InMemoryEntityLookup
from .postgres_lookup import PostgresEntityLookup

__all__ = [
    "EntityLookup",
    "InMemoryEntityLookup",
    "PostgresEntityLookup",
]
