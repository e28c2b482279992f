"""Format adapters turning raw import data into ImportRecords."""

from .base import BaseAdapter, decode_content
from .csv_adapter import CsvAdapter
from .json_adapter import JsonAdapter
from .kicad_adapter import KicadPcbAdapter

__all__ = ["BaseAdapter", "CsvAdapter", "JsonAdapter", "KicadPcbAdapter", "decode_content"]
