import logging
from typing import Iterator, Union

import chardet

from ..record import ImportRecord
from ..result import ViolationCollector

logger = logging.getLogger(__name__)


def decode_content(raw: Union[str, bytes]) -> str:
    """Decode uploaded file content to text.

    Handles a UTF-8 byte order mark first, then tries UTF-8, then falls back
    to the encoding detected by chardet.
    """
    if isinstance(raw, str):
        return raw[1:] if raw.startswith("\ufeff") else raw

    if raw.startswith(b'\xef\xbb\xbf'):
        return raw.decode('utf-8-sig')

    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError:
        pass

    # Read first 10KB for detection
    result = chardet.detect(raw[:10000])
    encoding = result.get('encoding') or 'latin-1'
    logger.info(f"Decoding import data as {encoding} (confidence: {result.get('confidence')})")
    try:
        return raw.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return raw.decode('latin-1')


class BaseAdapter:
    """
    Base class for import format adapters.

    Subclasses set `import_type` and implement read(). The extension
    whitelist per import type lives in ImporterSettings.
    """

    import_type: str = ""

    def can_handle(self, import_type: str) -> bool:
        """Check if this adapter parses the given import type."""
        return import_type == self.import_type

    def read(self, text: str, violations: ViolationCollector) -> Iterator[ImportRecord]:
        """
        Parse decoded text into records, in input order.

        Rows that cannot be turned into a record are reported to `violations`
        and skipped; the remaining rows are still yielded.

        Args:
            text: Decoded file content
            violations: Collector receiving structural problems

        Yields:
            ImportRecord instances
        """
        raise NotImplementedError
