"""
Importer configuration.

Settings come from environment variables, optionally loaded from a .env
file. Recognised variables:

- PARTBOM_DEBUG: "1"/"true"/"yes" enables resolution decision logging
- PARTBOM_EXTENSIONS_<TYPE>: comma-separated extension whitelist for an
  import type, e.g. PARTBOM_EXTENSIONS_KICAD_PCBNEW=kicad_pcb,csv
- PARTBOM_DB_URL, or PARTBOM_DB_HOST / PARTBOM_DB_PORT / PARTBOM_DB_NAME /
  PARTBOM_DB_USER / PARTBOM_DB_PASSWORD: Postgres lookup connection
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from dotenv import load_dotenv

from .schema import FILE_EXTENSIONS

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _parse_extensions(value: str) -> Tuple[str, ...]:
    return tuple(
        ext.strip().lower().lstrip('.')
        for ext in value.split(',')
        if ext.strip()
    )


@dataclass
class ImporterSettings:
    allowed_extensions: Dict[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(FILE_EXTENSIONS)
    )
    debug: bool = False
    db_url: Optional[str] = None
    db_host: Optional[str] = None
    db_port: Optional[int] = None
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None

    def extensions_for(self, import_type: str) -> Tuple[str, ...]:
        return self.allowed_extensions.get(import_type, ())


def load_settings(env_file: Optional[Union[str, Path]] = None) -> ImporterSettings:
    """
    Build settings from the environment.

    Args:
        env_file: Optional path to a .env file. Variables already set in the
                  environment take precedence over the file.

    Returns:
        ImporterSettings instance
    """
    if env_file is not None:
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            logger.info(f"Loaded environment variables from {env_path}")
        else:
            logger.warning(f"No .env file found at {env_path}")

    allowed_extensions = dict(FILE_EXTENSIONS)
    for import_type in FILE_EXTENSIONS:
        override = os.getenv(f"PARTBOM_EXTENSIONS_{import_type.upper()}")
        if override:
            allowed_extensions[import_type] = _parse_extensions(override)

    port = os.getenv("PARTBOM_DB_PORT")

    return ImporterSettings(
        allowed_extensions=allowed_extensions,
        debug=os.getenv("PARTBOM_DEBUG", "").strip().lower() in _TRUE_VALUES,
        db_url=os.getenv("PARTBOM_DB_URL") or None,
        db_host=os.getenv("PARTBOM_DB_HOST") or None,
        db_port=int(port) if port else None,
        db_name=os.getenv("PARTBOM_DB_NAME") or None,
        db_user=os.getenv("PARTBOM_DB_USER") or None,
        db_password=os.getenv("PARTBOM_DB_PASSWORD") or None,
    )
