#!/usr/bin/env python3
"""Example: import a BOM file against the parts database and export a report.

Connection settings are read from the environment or a .env file
(PARTBOM_DB_URL, or PARTBOM_DB_HOST / PARTBOM_DB_NAME / PARTBOM_DB_USER /
PARTBOM_DB_PASSWORD).
"""

import logging

from partbom import BomImporter, PostgresEntityLookup, Project, export_result, load_settings


def import_bom(input_file: str, import_type: str, report_file: str):
    """Import a BOM file into a (new, unsaved) project.

    Args:
        input_file: Path to the BOM file
        import_type: One of "kicad_pcbnew", "json", "csv"
        report_file: Path of the entries/violations report (.csv, .xlsx or .json)
    """
    settings = load_settings(".env")
    logging.basicConfig(level=logging.INFO if settings.debug else logging.WARNING)

    lookup = PostgresEntityLookup.from_settings(settings)
    try:
        importer = BomImporter(lookup, settings=settings)
        project = Project(name=input_file)
        result = importer.import_file_into_project(input_file, project, {"type": import_type})
    finally:
        lookup.close()

    print(f"✓ Imported {len(result.entries)} entries")
    if result.violations:
        print(f"✗ {len(result.violations)} violations:")
        for violation in result.violations:
            print(f"  {violation.property_path}: {violation.message}")

    print(f"✓ Report saved to: {export_result(result, report_file)}")
    return result


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 4:
        print("Usage: python import_bom.py <input_file> <kicad_pcbnew|json|csv> <report_file>")
        print("\nExample:")
        print("  python import_bom.py board_bom.csv csv import_report.xlsx")
        sys.exit(1)

    import_bom(sys.argv[1], sys.argv[2], sys.argv[3])
