"""
field_values.py - Previously decoded integer values, keyed by field path

Length directives such as ``length: Header.TextSize`` are resolved
against this table. Entries are added as unsigned integer fields decode
and are never removed, except by reset().
"""

from typing import Dict, Iterator, Optional

from .errors import UnresolvedReference


class FieldValueTable:
    """Mapping of dot-separated field path to decoded unsigned value."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._values: Dict[str, int] = {}

    def record(self, path: str, value: int) -> None:
        if not self.enabled or not path:
            return
        self._values[path] = value

    def resolve(self, reference: str, path: Optional[str] = None) -> int:
        """Return the value recorded at ``reference``.

        ``path`` names the field asking, for the error message.
        """
        if not self.enabled or reference not in self._values:
            raise UnresolvedReference(reference, path)
        return self._values[reference]

    def get(self, path: str, default: Optional[int] = None) -> Optional[int]:
        return self._values.get(path, default)

    def reset(self) -> None:
        self._values.clear()

    def as_dict(self) -> Dict[str, int]:
        return dict(self._values)

    def __contains__(self, path: str) -> bool:
        return path in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        state = '' if self.enabled else ' disabled'
        return f"<FieldValueTable{state} {self._values!r}>"
