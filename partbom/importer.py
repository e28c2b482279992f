"""
BOM importer: turns KiCad, CSV and JSON bills of materials into BOM entries.

Pipeline per import:
1. Format detection: the declared import type selects an adapter and the
   file extension must be whitelisted for that type
2. The adapter turns the payload into ImportRecords (input order)
3. Each record is validated, its part/manufacturer/category resolved and,
   only when the record produced no violation at all, merged into a new or
   existing BOM entry

Invalid input never raises: every problem becomes a Violation in the
returned ImporterResult. Nothing is persisted; callers store the returned
entries (and the Parts they reference, which may have been updated).
"""

import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union

from .adapters import BaseAdapter, CsvAdapter, JsonAdapter, KicadPcbAdapter, decode_content
from .config import ImporterSettings
from .lookup.entity_lookup import EntityLookup
from .messages import CatalogTranslator, MessageTranslator
from .models import Assembly, AssemblyBomEntry, BomEntry, Part, Project, ProjectBomEntry
from .record import ImportRecord
from .resolver import EntityResolver, Resolution
from .result import BomImportError, ImporterResult, ViolationCollector
from .schema import (
    IMPORT_TYPES,
    IMPORT_TYPE_KICAD_PCBNEW,
    KNOWN_OPTIONS,
    MSG_INVALID_IMPORT_TYPE,
    MSG_INVALID_FILE_EXTENSION,
    MSG_QUANTITY_FLOAT,
)
from .validator import FieldValidator, ValidatedRecord

logger = logging.getLogger(__name__)


class BomImporter:
    """Importer for Bill of Materials files with entity reconciliation."""

    def __init__(
        self,
        lookup: EntityLookup,
        translator: Optional[MessageTranslator] = None,
        settings: Optional[ImporterSettings] = None,
        debug: Optional[bool] = None
    ):
        """Initialize the BOM importer.

        Args:
            lookup: Entity lookup used to find existing parts, manufacturers,
                    categories and BOM entries
            translator: Renders violation messages (default: English catalogue)
            settings: Importer settings (default: built-in extension whitelist)
            debug: Log resolution decisions (default: settings.debug)
        """
        self.lookup = lookup
        self.translator = translator or CatalogTranslator()
        self.settings = settings or ImporterSettings()
        self.debug = self.settings.debug if debug is None else debug
        self.resolver = EntityResolver(lookup, debug=self.debug)
        self.adapters: List[BaseAdapter] = []

        for adapter in (KicadPcbAdapter(), JsonAdapter(), CsvAdapter()):
            self.register_adapter(adapter)

    def register_adapter(self, adapter: BaseAdapter) -> None:
        """Register a format adapter.

        Adapters registered later take precedence for their import type.

        Args:
            adapter: Adapter instance with can_handle() and read() methods

        Raises:
            ValueError: If the adapter's import type is not a known import type
        """
        if adapter.import_type not in IMPORT_TYPES:
            raise ValueError(
                f"Cannot register {type(adapter).__name__}: unknown import type "
                f"'{adapter.import_type}'. Known types: {', '.join(IMPORT_TYPES)}"
            )
        self.adapters.insert(0, adapter)

    # ── Public API ─────────────────────────────────────────────────────

    def import_file_into_project(
        self,
        file_path: Union[str, Path],
        project: Project,
        options: Dict[str, Any]
    ) -> ImporterResult:
        """Import a file and add the resulting entries to a project (not persisted)."""
        result = self.file_to_bom_entries(file_path, options, ProjectBomEntry)
        for entry in result.entries:
            project.add_bom_entry(entry)
        return result

    def import_file_into_assembly(
        self,
        file_path: Union[str, Path],
        assembly: Assembly,
        options: Dict[str, Any]
    ) -> ImporterResult:
        """Import a file and add the resulting entries to an assembly (not persisted)."""
        result = self.file_to_bom_entries(file_path, options, AssemblyBomEntry)
        for entry in result.entries:
            assembly.add_bom_entry(entry)
        return result

    def file_to_bom_entries(
        self,
        file_path: Union[str, Path],
        options: Dict[str, Any],
        entry_type: Type[BomEntry] = ProjectBomEntry
    ) -> ImporterResult:
        """Convert a file into BOM entries.

        The file extension is checked against the import type's whitelist.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If options contain unknown keys
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        import_type = self._resolve_options(options)
        return self._import(path.read_bytes(), import_type, entry_type, file_name=path.name)

    def string_to_bom_entries(
        self,
        data: Union[str, bytes],
        options: Dict[str, Any],
        entry_type: Type[BomEntry] = ProjectBomEntry
    ) -> ImporterResult:
        """Convert string data into BOM entries, not yet assigned to a project or assembly.

        Args:
            data: The data to import
            options: Import options; "type" is one of "kicad_pcbnew", "json", "csv"
            entry_type: ProjectBomEntry or AssemblyBomEntry

        Returns:
            ImporterResult with entries and violations

        Raises:
            ValueError: If options contain unknown keys
        """
        import_type = self._resolve_options(options)
        return self._import(data, import_type, entry_type)

    def string_to_bom_entry_list(
        self,
        data: Union[str, bytes],
        options: Dict[str, Any],
        entry_type: Type[BomEntry] = ProjectBomEntry
    ) -> List[BomEntry]:
        """List-returning variant of string_to_bom_entries().

        Raises:
            BomImportError: For the first violation found, if any
        """
        result = self.string_to_bom_entries(data, options, entry_type)
        if result.violations:
            raise BomImportError(result.violations[0])
        return result.entries

    # ── Pipeline ───────────────────────────────────────────────────────

    @staticmethod
    def _resolve_options(options: Dict[str, Any]) -> Optional[str]:
        unknown = set(options) - KNOWN_OPTIONS
        if unknown:
            raise ValueError(
                f"Unknown import option(s): {', '.join(sorted(unknown))}. "
                f"Known options: {', '.join(sorted(KNOWN_OPTIONS))}"
            )
        return options.get("type")

    def _detect_format(
        self,
        import_type: Optional[str],
        file_name: Optional[str],
        violations: ViolationCollector
    ) -> Optional[BaseAdapter]:
        """Select the adapter for an import type, checking the file extension."""
        adapter = None
        if import_type in IMPORT_TYPES:
            for a in self.adapters:
                if a.can_handle(import_type):
                    adapter = a
                    break

        if adapter is None:
            violations.add(
                MSG_INVALID_IMPORT_TYPE,
                "type",
                invalid_value=import_type,
                parameters={"type": import_type, "allowedTypes": ", ".join(IMPORT_TYPES)},
            )
            return None

        if file_name is not None:
            extension = Path(file_name).suffix.lower().lstrip('.')
            allowed = self.settings.extensions_for(import_type)
            if extension not in allowed:
                violations.add(
                    MSG_INVALID_FILE_EXTENSION,
                    "file",
                    invalid_value=file_name,
                    parameters={
                        "extension": extension,
                        "type": import_type,
                        "allowedExtensions": ", ".join(allowed),
                    },
                )
                return None

        return adapter

    def _import(
        self,
        data: Union[str, bytes],
        import_type: Optional[str],
        entry_type: Type[BomEntry],
        file_name: Optional[str] = None
    ) -> ImporterResult:
        result = ImporterResult()
        sink = ViolationCollector(self.translator, result.violations)

        adapter = self._detect_format(import_type, file_name, sink)
        if adapter is None:
            logger.warning(f"BOM import rejected: {result.violations[0].message}")
            return result

        text = decode_content(data)
        validator = FieldValidator(import_type)

        # Adapters report unreadable rows to the sink while yielding, so
        # violations stay in input order.
        for record in adapter.read(text, sink):
            record_violations = sink.child()
            if import_type == IMPORT_TYPE_KICAD_PCBNEW:
                entry = self._process_kicad_record(record, entry_type, record_violations)
            else:
                entry = self._process_record(record, validator, entry_type, record_violations)

            if record_violations.violations:
                result.add_violations(record_violations.violations)
                if self.debug:
                    logger.info(
                        f"Rejected {record.path()}: {len(record_violations)} violation(s)"
                    )
            elif entry is not None:
                if any(e is entry for e in result.entries):
                    # Same existing entry matched again: the later record's values win
                    logger.warning(
                        f"{record.path()} updates a BOM entry already imported in this batch"
                    )
                else:
                    result.add_bom_entry(entry)

        if self.debug:
            logger.info(
                f"BOM import ({import_type}) finished: {len(result.entries)} entries, "
                f"{len(result.violations)} violations"
            )
        return result

    def _process_kicad_record(
        self,
        record: ImportRecord,
        entry_type: Type[BomEntry],
        violations: ViolationCollector
    ) -> Optional[BomEntry]:
        """Build a free-text entry from a KiCad pcbnew row."""
        raw_quantity = record.get("Quantity")
        try:
            quantity = float(raw_quantity)
        except (TypeError, ValueError):
            quantity = None

        if quantity is None or not math.isfinite(quantity) or quantity <= 0:
            violations.add(MSG_QUANTITY_FLOAT, record.path("quantity"), invalid_value=raw_quantity)
            return None

        entry = entry_type()
        if entry_type is AssemblyBomEntry:
            entry.name = record.get("Designation")
        else:
            entry.name = f"{record.get('Designation')} ({record.get('Package')})"
        entry.mountnames = record.get("Designator", "")
        entry.comment = record.get("Supplier and ref", "")
        entry.quantity = quantity
        return entry

    def _process_record(
        self,
        record: ImportRecord,
        validator: FieldValidator,
        entry_type: Type[BomEntry],
        violations: ViolationCollector
    ) -> Optional[BomEntry]:
        """Validate, resolve and merge one CSV/JSON record.

        Returns the entry to emit, or None when the record was rejected.
        """
        validated = validator.validate(record, violations)

        if not validated.has_part:
            if violations.violations:
                return None
            return self._build_free_text_entry(validated, entry_type)

        resolution = self.resolver.resolve(validated, violations)
        if violations.violations or resolution.part is None:
            return None

        self._merge_part(resolution.part, validated, resolution)
        return self._build_part_entry(validated, resolution.part, entry_type)

    # ── Reconciliation & merge ─────────────────────────────────────────

    def _merge_part(self, part: Part, validated: ValidatedRecord, resolution: Resolution) -> None:
        """Write imported description, manufacturer and category onto the part."""
        if validated.description and validated.description != part.description:
            part.description = validated.description

        if resolution.manufacturer is not None and resolution.manufacturer is not part.manufacturer:
            if self.debug:
                logger.info(f"Part #{part.id}: manufacturer set to '{resolution.manufacturer.name}'")
            part.manufacturer = resolution.manufacturer

        if resolution.category is not None and resolution.category is not part.category:
            if self.debug:
                logger.info(f"Part #{part.id}: category set to '{resolution.category.name}'")
            part.category = resolution.category

    def _find_entry_by_name(self, entry_type: Type[BomEntry], name: Optional[str]) -> Optional[BomEntry]:
        if name is None or not name.strip():
            return None
        return self.lookup.find_bom_entry_by_name(entry_type, name.strip())

    def _build_part_entry(
        self,
        validated: ValidatedRecord,
        part: Part,
        entry_type: Type[BomEntry]
    ) -> BomEntry:
        entry = self.lookup.find_bom_entry_by_part(entry_type, part)
        if entry is None:
            entry = self._find_entry_by_name(entry_type, validated.name)
        if entry is None:
            entry = entry_type()
        elif self.debug:
            logger.info(f"Updating existing BOM entry #{entry.id} for {validated.record.path()}")

        entry.quantity = validated.quantity

        # Absent name: untouched. Blank or equal to the part name: cleared,
        # the part name is displayed. Otherwise: override.
        if validated.has_name:
            given = validated.name.strip() if validated.name else ""
            if given and given != part.name:
                entry.name = given
            else:
                entry.name = None

        entry.part = part
        return entry

    def _build_free_text_entry(self, validated: ValidatedRecord, entry_type: Type[BomEntry]) -> BomEntry:
        entry = self._find_entry_by_name(entry_type, validated.name)
        if entry is None:
            entry = entry_type()

        entry.quantity = validated.quantity
        if validated.has_name:
            given = validated.name.strip() if validated.name else ""
            entry.name = given or None
        return entry
