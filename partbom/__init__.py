from .importer import BomImporter
from .result import ImporterResult, Violation, BomImportError
from .messages import MessageTranslator, CatalogTranslator
from .config import ImporterSettings, load_settings
from .models import Part, Manufacturer, Category, ProjectBomEntry, AssemblyBomEntry, Project, Assembly
from .lookup import EntityLookup, InMemoryEntityLookup, PostgresEntityLookup
from .report import export_result

__all__ = [
    "BomImporter",
    "ImporterResult",
    "Violation",
    "BomImportError",
    "MessageTranslator",
    "CatalogTranslator",
    "ImporterSettings",
    "load_settings",
    "Part",
    "Manufacturer",
    "Category",
    "ProjectBomEntry",
    "AssemblyBomEntry",
    "Project",
    "Assembly",
    "EntityLookup",
    "InMemoryEntityLookup",
    "PostgresEntityLookup",
    "export_result",
]
