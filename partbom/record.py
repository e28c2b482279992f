"""Normalized import records shared by all adapters."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping


def freeze(value: Any) -> Any:
    """Recursively wrap mappings in read-only proxies.

    Lists are converted to tuples so nested values cannot be mutated either.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(freeze(item) for item in value)
    return value


@dataclass(frozen=True)
class ImportRecord:
    """
    One normalized input unit (a CSV row or a JSON array element).

    - index: zero-based position in the input (data rows only for CSV)
    - prefix: property path prefix ("entry" for JSON, "row" for CSV/KiCad)
    - data: read-only mapping of field name to scalar or nested mapping
    """
    index: int
    prefix: str
    data: Mapping[str, Any]

    @classmethod
    def build(cls, index: int, prefix: str, data: Mapping[str, Any]) -> "ImportRecord":
        return cls(index=index, prefix=prefix, data=freeze(data))

    def path(self, *segments: str) -> str:
        """Build a property path such as entry[3].part.manufacturer.name."""
        base = f"{self.prefix}[{self.index}]"
        if not segments:
            return base
        return base + "." + ".".join(segments)

    def has(self, key: str) -> bool:
        return key in self.data

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)
