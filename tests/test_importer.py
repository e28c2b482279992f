"""
Tests for the BOM importer pipeline (JSON and CSV).

These tests verify that:
1. Format detection rejects unknown types and wrong extensions up front
2. Field violations accumulate and reject only the offending record
3. Parts, manufacturers and categories resolve through cascading keys
4. Existing entries are updated instead of duplicated
5. Violation paths follow input order
"""

import json

import pytest

from partbom import (
    AssemblyBomEntry,
    Assembly,
    BomImporter,
    BomImportError,
    Category,
    ImporterSettings,
    InMemoryEntityLookup,
    Manufacturer,
    Part,
    Project,
    ProjectBomEntry,
)
from partbom.adapters import BaseAdapter, JsonAdapter
from partbom.schema import (
    MSG_INVALID_IMPORT_TYPE,
    MSG_INVALID_FILE_EXTENSION,
    MSG_JSON_INVALID,
    MSG_JSON_NOT_ARRAY,
    MSG_QUANTITY_REQUIRED,
    MSG_QUANTITY_FLOAT,
    MSG_PARAMETER_STRING,
    MSG_PARAMETER_STRING_NOT_EMPTY,
    MSG_PARAMETER_ARRAY,
    MSG_PARAMETER_SUBPROPERTIES,
    MSG_PARAMETER_NOT_FOUND_FOR,
    MSG_PARAMETER_NO_EXACT_MATCH,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def yageo():
    return Manufacturer(id=1, name="Yageo")


@pytest.fixture
def murata():
    return Manufacturer(id=2, name="Murata")


@pytest.fixture
def resistors():
    return Category(id=10, name="Resistors")


@pytest.fixture
def capacitors():
    return Category(id=11, name="Capacitors")


@pytest.fixture
def lookup(yageo, murata, resistors, capacitors):
    return InMemoryEntityLookup(
        parts=[
            Part(id=5, name="R1", manufacturer_product_number="RC0805FR-0710KL", ipn="RES-10K",
                 manufacturer=yageo, category=resistors),
            Part(id=6, name="C1", manufacturer_product_number="GRM21BR71H104KA01L", ipn="CAP-100N"),
        ],
        manufacturers=[yageo, murata],
        categories=[resistors, capacitors],
    )


@pytest.fixture
def importer(lookup):
    return BomImporter(lookup)


def import_json(importer, entries, entry_type=ProjectBomEntry):
    return importer.string_to_bom_entries(json.dumps(entries), {"type": "json"}, entry_type)


def templates(result):
    return [v.message_template for v in result.violations]


def paths(result):
    return [v.property_path for v in result.violations]


# =============================================================================
# FORMAT DETECTION
# =============================================================================

class TestFormatDetection:

    def test_invalid_import_type(self, importer):
        result = importer.string_to_bom_entries("[]", {"type": "xml"})
        assert result.entries == []
        assert templates(result) == [MSG_INVALID_IMPORT_TYPE]
        assert result.violations[0].invalid_value == "xml"

    def test_missing_import_type(self, importer):
        result = importer.string_to_bom_entries("[]", {})
        assert templates(result) == [MSG_INVALID_IMPORT_TYPE]

    def test_unknown_option_raises(self, importer):
        with pytest.raises(ValueError):
            importer.string_to_bom_entries("[]", {"type": "json", "delimiter": ";"})

    def test_register_adapter_for_unknown_type_raises(self, importer):
        class XmlAdapter(BaseAdapter):
            import_type = "xml"

        with pytest.raises(ValueError):
            importer.register_adapter(XmlAdapter())

    def test_registered_adapter_takes_precedence(self, importer):
        class UpperJsonAdapter(JsonAdapter):
            def read(self, text, violations):
                return super().read(text.replace('"r1"', '"R1"'), violations)

        importer.register_adapter(UpperJsonAdapter())
        result = importer.string_to_bom_entries('[{"quantity": 1.0, "part": {"name": "r1"}}]', {"type": "json"})
        assert result.violations == []

    def test_wrong_extension_halts(self, importer, tmp_path):
        bom_file = tmp_path / "bom.csv"
        bom_file.write_text('[{"quantity": 1.0}]', encoding="utf-8")

        result = importer.file_to_bom_entries(bom_file, {"type": "json"})

        assert result.entries == []
        assert templates(result) == [MSG_INVALID_FILE_EXTENSION]
        assert result.violations[0].parameters["extension"] == "csv"

    def test_kicad_requires_kicad_extension(self, importer, tmp_path):
        bom_file = tmp_path / "board.csv"
        bom_file.write_text("Id;Designator\n", encoding="utf-8")

        result = importer.file_to_bom_entries(bom_file, {"type": "kicad_pcbnew"})
        assert templates(result) == [MSG_INVALID_FILE_EXTENSION]

    def test_extension_whitelist_from_settings(self, lookup, tmp_path):
        settings = ImporterSettings()
        settings.allowed_extensions["kicad_pcbnew"] = ("kicad_pcb", "csv")
        importer = BomImporter(lookup, settings=settings)

        bom_file = tmp_path / "board.csv"
        bom_file.write_text('Id;Designator;Package;Quantity;Designation\n1;R1;0805;2;10k\n', encoding="utf-8")

        result = importer.file_to_bom_entries(bom_file, {"type": "kicad_pcbnew"})
        assert result.violations == []
        assert result.entries[0].name == "10k (0805)"

    def test_missing_file_raises(self, importer, tmp_path):
        with pytest.raises(FileNotFoundError):
            importer.file_to_bom_entries(tmp_path / "missing.json", {"type": "json"})

    def test_malformed_json(self, importer):
        result = importer.string_to_bom_entries("[{", {"type": "json"})
        assert templates(result) == [MSG_JSON_INVALID]

    def test_json_not_array(self, importer):
        result = importer.string_to_bom_entries('{"quantity": 1.0}', {"type": "json"})
        assert templates(result) == [MSG_JSON_NOT_ARRAY]

    def test_json_element_not_object(self, importer):
        result = import_json(importer, ["R1", {"quantity": 1.0, "name": "Free"}])
        assert paths(result) == ["entry[0]"]
        assert templates(result) == [MSG_PARAMETER_ARRAY]
        assert [e.name for e in result.entries] == ["Free"]


# =============================================================================
# FIELD VALIDATION
# =============================================================================

class TestFieldValidation:

    def test_quantity_missing(self, importer):
        result = import_json(importer, [{"part": {"id": 5}}])
        assert result.entries == []
        assert templates(result) == [MSG_QUANTITY_REQUIRED]
        assert paths(result) == ["entry[0].quantity"]

    @pytest.mark.parametrize("quantity", [0.0, -1.5, 2, "2.0", True])
    def test_quantity_invalid_json(self, importer, quantity):
        """JSON quantities must be floats greater than zero."""
        result = import_json(importer, [{"quantity": quantity, "part": {"id": 5}}])
        assert result.entries == []
        assert templates(result) == [MSG_QUANTITY_FLOAT]
        assert paths(result) == ["entry[0].quantity"]

    def test_csv_quantity_accepts_integers(self, importer):
        result = importer.string_to_bom_entries("quantity,part_id\r\n3,5\r\n", {"type": "csv"})
        assert result.violations == []
        assert result.entries[0].quantity == 3.0

    def test_csv_quantity_invalid(self, importer):
        result = importer.string_to_bom_entries(
            "quantity,part_id\r\nmany,5\r\n0,5\r\n", {"type": "csv"}
        )
        assert result.entries == []
        assert paths(result) == ["row[0].quantity", "row[1].quantity"]

    @pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_json_quantity(self, importer, token):
        data = '[{"quantity": %s, "part": {"id": 5}}]' % token
        result = importer.string_to_bom_entries(data, {"type": "json"})

        assert result.entries == []
        assert templates(result) == [MSG_QUANTITY_FLOAT]
        assert paths(result) == ["entry[0].quantity"]

    def test_null_part_is_treated_as_absent(self, importer):
        result = import_json(importer, [{"quantity": 1.0, "name": "Spacer", "part": None}])

        assert result.violations == []
        assert result.entries[0].part is None
        assert result.entries[0].name == "Spacer"

    def test_name_must_be_string(self, importer):
        result = import_json(importer, [{"quantity": 1.0, "name": 42}])
        assert templates(result) == [MSG_PARAMETER_STRING]
        assert paths(result) == ["entry[0].name"]

    def test_part_must_be_object(self, importer):
        result = import_json(importer, [{"quantity": 1.0, "part": 5}])
        assert templates(result) == [MSG_PARAMETER_ARRAY]
        assert paths(result) == ["entry[0].part"]

    @pytest.mark.parametrize("part", [{}, {"id": 0}, {"id": "5"}, {"name": "  "}, {"mpnr": 123}])
    def test_part_needs_a_valid_key(self, importer, part):
        result = import_json(importer, [{"quantity": 1.0, "part": part}])
        assert templates(result) == [MSG_PARAMETER_SUBPROPERTIES]
        assert result.violations[0].parameters["propertyString"] == '"id", "name", "mpnr", or "ipn"'

    def test_blank_description(self, importer):
        result = import_json(importer, [{"quantity": 1.0, "part": {"id": 5, "description": " "}}])
        assert templates(result) == [MSG_PARAMETER_STRING_NOT_EMPTY]
        assert paths(result) == ["entry[0].part.description"]

    def test_manufacturer_must_be_object(self, importer):
        result = import_json(importer, [{"quantity": 1.0, "part": {"id": 5, "manufacturer": "Yageo"}}])
        assert templates(result) == [MSG_PARAMETER_ARRAY]
        assert paths(result) == ["entry[0].part.manufacturer"]

    def test_category_needs_a_valid_key(self, importer):
        result = import_json(importer, [{"quantity": 1.0, "part": {"id": 5, "category": {"id": -1}}}])
        assert templates(result) == [MSG_PARAMETER_SUBPROPERTIES]
        assert result.violations[0].parameters["propertyString"] == '"id" or "name"'

    def test_violations_accumulate(self, importer):
        """All failures of one record are reported, not only the first."""
        result = import_json(importer, [{
            "quantity": -1.0,
            "name": 7,
            "part": {"id": 5, "description": "", "manufacturer": [], "category": {}},
        }])
        assert result.entries == []
        assert paths(result) == [
            "entry[0].quantity",
            "entry[0].name",
            "entry[0].part.description",
            "entry[0].part.manufacturer",
            "entry[0].part.category",
        ]

    def test_invalid_record_does_not_stop_batch(self, importer):
        result = import_json(importer, [
            {"quantity": 1.0, "part": {"id": 5}},
            {"part": {"id": 6}},
            {"quantity": 4.0, "part": {"id": 6}},
        ])
        assert [e.part.id for e in result.entries] == [5, 6]
        assert paths(result) == ["entry[1].quantity"]


# =============================================================================
# ENTITY RESOLUTION
# =============================================================================

class TestEntityResolution:

    def test_resolve_by_id(self, importer):
        result = import_json(importer, [{"quantity": 2.0, "name": "R1", "part": {"id": 5}}])

        assert result.violations == []
        assert len(result.entries) == 1
        entry = result.entries[0]
        assert entry.quantity == 2.0
        assert entry.part.id == 5

    @pytest.mark.parametrize("part", [
        {"mpnr": " RC0805FR-0710KL "},
        {"ipn": "RES-10K"},
        {"name": "R1"},
    ])
    def test_resolve_by_secondary_keys(self, importer, part):
        result = import_json(importer, [{"quantity": 1.0, "part": part}])
        assert result.violations == []
        assert result.entries[0].part.id == 5

    def test_part_not_found(self, importer):
        result = import_json(importer, [{"quantity": 2.0, "part": {"name": "R2"}}])

        assert result.entries == []
        assert len(result.violations) == 1
        violation = result.violations[0]
        assert violation.message_template == MSG_PARAMETER_NOT_FOUND_FOR
        assert violation.property_path == "entry[0].part"
        assert "part.name: R2" in violation.invalid_value
        assert "part.id: " in violation.invalid_value

    def test_found_by_mpnr_but_name_differs(self, importer):
        result = import_json(importer, [{
            "quantity": 1.0,
            "part": {"mpnr": "RC0805FR-0710KL", "name": "R99"},
        }])

        assert result.entries == []
        assert templates(result) == [MSG_PARAMETER_NO_EXACT_MATCH]
        assert paths(result) == ["entry[0].part.name"]
        assert result.violations[0].parameters["foundId"] == 5
        assert result.violations[0].parameters["foundValue"] == "R1"

    def test_found_by_id_but_ipn_differs(self, importer):
        result = import_json(importer, [{"quantity": 1.0, "part": {"id": 5, "ipn": "RES-22K"}}])
        assert paths(result) == ["entry[0].part.ipn"]

    def test_manufacturer_not_found(self, importer):
        result = import_json(importer, [{
            "quantity": 1.0,
            "part": {"id": 5, "manufacturer": {"name": "Vishay"}},
        }])
        assert templates(result) == [MSG_PARAMETER_NOT_FOUND_FOR]
        assert paths(result) == ["entry[0].part.manufacturer"]

    def test_manufacturer_name_mismatch(self, importer):
        result = import_json(importer, [{
            "quantity": 1.0,
            "part": {"id": 5, "manufacturer": {"id": 2, "name": "Yageo"}},
        }])
        assert templates(result) == [MSG_PARAMETER_NO_EXACT_MATCH]
        assert paths(result) == ["entry[0].part.manufacturer.name"]

    def test_category_not_found(self, importer):
        result = import_json(importer, [{"quantity": 1.0, "part": {"id": 5, "category": {"id": 99}}}])
        assert paths(result) == ["entry[0].part.category"]

    def test_absent_manufacturer_and_category_are_ignored(self, importer, yageo):
        result = import_json(importer, [{"quantity": 1.0, "part": {"id": 5}}])
        assert result.violations == []
        assert result.entries[0].part.manufacturer is yageo

    def test_part_not_found_skips_sub_entity_checks(self, importer):
        result = import_json(importer, [{
            "quantity": 1.0,
            "part": {"id": 404, "manufacturer": {"name": "Nobody"}},
        }])
        assert paths(result) == ["entry[0].part"]


# =============================================================================
# RECONCILIATION & MERGE
# =============================================================================

class TestReconciliation:

    def test_merge_description_manufacturer_category(self, importer, lookup, murata, capacitors):
        result = import_json(importer, [{
            "quantity": 10.0,
            "part": {
                "id": 6,
                "description": " 100nF X7R 50V ",
                "manufacturer": {"name": "Murata"},
                "category": {"id": 11},
            },
        }])

        assert result.violations == []
        part = lookup.find_part_by_key("id", 6)
        assert part.description == "100nF X7R 50V"
        assert part.manufacturer is murata
        assert part.category is capacitors

    def test_no_merge_when_record_rejected(self, importer, lookup):
        result = import_json(importer, [{
            "quantity": 1.0,
            "part": {"id": 6, "description": "changed", "category": {"name": "Unknown"}},
        }])

        assert result.entries == []
        assert lookup.find_part_by_key("id", 6).description == ""

    def test_update_existing_entry_by_part(self, importer, lookup):
        part = lookup.find_part_by_key("id", 5)
        existing = lookup.add_bom_entry(AssemblyBomEntry(id=100, quantity=1.0, part=part))

        result = import_json(importer, [{"quantity": 3.0, "part": {"id": 5}}], AssemblyBomEntry)

        assert result.entries == [existing]
        assert existing.quantity == 3.0

    def test_update_existing_entry_by_name(self, importer, lookup):
        existing = lookup.add_bom_entry(ProjectBomEntry(id=101, quantity=1.0, name="Pull-up"))

        result = import_json(importer, [{"quantity": 4.0, "name": "Pull-up", "part": {"id": 5}}])

        assert result.entries[0] is existing
        assert existing.quantity == 4.0
        assert existing.part.id == 5
        assert existing.name == "Pull-up"

    def test_entry_lookup_is_scoped_by_type(self, importer, lookup):
        part = lookup.find_part_by_key("id", 5)
        lookup.add_bom_entry(AssemblyBomEntry(id=100, quantity=1.0, part=part))

        result = import_json(importer, [{"quantity": 3.0, "part": {"id": 5}}], ProjectBomEntry)

        assert isinstance(result.entries[0], ProjectBomEntry)
        assert result.entries[0].id is None

    def test_reimport_is_idempotent(self, importer, lookup):
        records = [{"quantity": 2.0, "part": {"id": 5}}]
        first = import_json(importer, records)
        lookup.add_bom_entry(first.entries[0])

        second = import_json(importer, [{"quantity": 5.0, "part": {"id": 5}}])

        assert second.entries[0] is first.entries[0]
        assert first.entries[0].quantity == 5.0
        assert len(lookup.bom_entries) == 1

    def test_name_absent_leaves_name_untouched(self, importer, lookup):
        part = lookup.find_part_by_key("id", 5)
        existing = lookup.add_bom_entry(ProjectBomEntry(quantity=1.0, name="Keep me", part=part))

        import_json(importer, [{"quantity": 2.0, "part": {"id": 5}}])

        assert existing.name == "Keep me"

    def test_name_blank_clears_name(self, importer, lookup):
        part = lookup.find_part_by_key("id", 5)
        existing = lookup.add_bom_entry(ProjectBomEntry(quantity=1.0, name="Old", part=part))

        import_json(importer, [{"quantity": 2.0, "name": "  ", "part": {"id": 5}}])

        assert existing.name is None

    def test_name_equal_to_part_name_is_cleared(self, importer):
        result = import_json(importer, [{"quantity": 2.0, "name": " R1 ", "part": {"id": 5}}])
        assert result.entries[0].name is None
        assert result.entries[0].display_name() == "R1"

    def test_name_different_from_part_name_overrides(self, importer):
        result = import_json(importer, [{"quantity": 2.0, "name": " Pull-up ", "part": {"id": 5}}])
        assert result.entries[0].name == "Pull-up"

    def test_free_text_entry(self, importer):
        result = import_json(importer, [{"quantity": 1.0, "name": "Heat sink compound"}])

        assert result.violations == []
        entry = result.entries[0]
        assert entry.part is None
        assert entry.name == "Heat sink compound"

    def test_repeated_match_is_emitted_once(self, importer, lookup):
        existing = lookup.add_bom_entry(ProjectBomEntry(quantity=1.0, part=lookup.find_part_by_key("id", 5)))
        result = import_json(importer, [
            {"quantity": 1.0, "part": {"id": 5}},
            {"quantity": 4.0, "part": {"name": "R1"}},
        ])

        assert result.violations == []
        assert result.entries == [existing]
        assert existing.quantity == 4.0

    def test_repeated_free_text_name_is_emitted_once(self, importer, lookup):
        existing = lookup.add_bom_entry(ProjectBomEntry(quantity=1.0, name="Screws M3"))
        result = import_json(importer, [
            {"quantity": 2.0, "name": "Screws M3"},
            {"quantity": 6.0, "name": "Screws M3"},
        ])

        assert result.entries == [existing]
        assert existing.quantity == 6.0

    def test_free_text_entry_updates_by_name(self, importer, lookup):
        existing = lookup.add_bom_entry(ProjectBomEntry(quantity=1.0, name="Screws M3"))
        result = import_json(importer, [{"quantity": 8.0, "name": "Screws M3"}])

        assert result.entries[0] is existing
        assert existing.quantity == 8.0


# =============================================================================
# CSV PIPELINE
# =============================================================================

class TestCsvImport:

    def test_nested_columns_resolve(self, importer, lookup, murata):
        data = (
            "quantity;name;part_mpnr;part_manufacturer_name;part_category_name\r\n"
            "10;Decoupling;GRM21BR71H104KA01L;Murata;Capacitors\r\n"
        )
        result = importer.string_to_bom_entries(data, {"type": "csv"})

        assert result.violations == []
        entry = result.entries[0]
        assert entry.quantity == 10.0
        assert entry.name == "Decoupling"
        assert entry.part.manufacturer is murata

    def test_violation_paths_use_row_index(self, importer):
        data = (
            "quantity,part_name\r\n"
            "1,R1\r\n"
            "1,Unknown\r\n"
            "1,C1\r\n"
            "1,Missing\r\n"
        )
        result = importer.string_to_bom_entries(data, {"type": "csv"})

        assert [e.part.name for e in result.entries] == ["R1", "C1"]
        assert paths(result) == ["row[1].part", "row[3].part"]

    def test_plain_column_does_not_drop_nested_part(self, importer):
        result = importer.string_to_bom_entries("quantity,part_name,part\r\n1,R1,\r\n", {"type": "csv"})

        assert result.violations == []
        assert result.entries[0].part.id == 5

    def test_numeric_part_id(self, importer):
        result = importer.string_to_bom_entries("quantity,part_id\r\n2.5,6\r\n", {"type": "csv"})
        assert result.entries[0].part.name == "C1"
        assert result.entries[0].quantity == 2.5


# =============================================================================
# ORDER & ENTRY POINTS
# =============================================================================

class TestOrderAndEntryPoints:

    def test_violation_order_is_stable(self, importer):
        records = [
            {"quantity": 1.0, "part": {"name": "X"}},
            {"quantity": 0.0},
            {"quantity": 1.0, "part": {"id": 5, "name": "Y"}},
        ]
        first = import_json(importer, records)
        second = import_json(importer, records)

        assert paths(first) == ["entry[0].part", "entry[1].quantity", "entry[2].part.name"]
        assert paths(first) == paths(second)

    def test_list_api_returns_entries(self, importer):
        entries = importer.string_to_bom_entry_list('[{"quantity": 1.0, "part": {"id": 5}}]', {"type": "json"})
        assert [e.part.id for e in entries] == [5]

    def test_list_api_raises_first_violation(self, importer):
        with pytest.raises(BomImportError) as excinfo:
            importer.string_to_bom_entry_list(
                '[{"quantity": 1.0, "part": {"name": "R2"}}, {"quantity": -1.0}]',
                {"type": "json"},
            )
        assert excinfo.value.violation.property_path == "entry[0].part"

    def test_import_file_into_project(self, importer, tmp_path):
        bom_file = tmp_path / "bom.json"
        bom_file.write_text(json.dumps([{"quantity": 2.0, "part": {"id": 5}}]), encoding="utf-8")
        project = Project(name="Main board")

        result = importer.import_file_into_project(bom_file, project, {"type": "json"})

        assert project.bom_entries == result.entries
        assert result.entries[0].project is project

    def test_import_file_into_assembly(self, importer, tmp_path):
        bom_file = tmp_path / "bom.csv"
        bom_file.write_bytes("quantity,name\r\n1,Kühlkörper\r\n".encode("latin-1"))
        assembly = Assembly(name="Enclosure")

        result = importer.import_file_into_assembly(bom_file, assembly, {"type": "csv"})

        assert len(assembly.bom_entries) == 1
        assert isinstance(assembly.bom_entries[0], AssemblyBomEntry)
        assert assembly.bom_entries[0].assembly is assembly
        assert result.violations == []
