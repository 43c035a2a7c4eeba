"""
context.py - Per-node decoding context

Every field or element visited during a decode gets its own immutable
DecodeContext. The context knows where it is (``path``), which byte
order and length-prefix width apply, and what the field's own length
directive says. Byte order and prefix width are inherited from the
parent unless the field overrides them.

    root = DecodeContext.root(config)
    header = root.child('Header')
    size = header.child('Size', Directives.parse(endian='big'))
    size.path        # 'Header.Size'
"""

from dataclasses import dataclass
from typing import Optional

from .config import Config, DEFAULT_CONFIG
from .directives import Directives, Endian, Greedy, LengthDirective, Literal, Reference
from .field_values import FieldValueTable


@dataclass(frozen=True)
class DecodeContext:
    path: str = ''
    endian: Endian = Endian.LITTLE
    length_size: int = 4
    length: LengthDirective = None
    flags: str = ''

    @classmethod
    def root(cls, config: Config = DEFAULT_CONFIG) -> 'DecodeContext':
        return cls(path='', endian=Endian.LITTLE, length_size=config.length_size)

    def child(self, name: str, directives: Optional[Directives] = None) -> 'DecodeContext':
        """Derive the context for field or element ``name``.

        Array elements pass no directives; they inherit byte order and
        prefix width but never a length.
        """
        if not self.path:
            path = name
        elif name:
            path = f"{self.path}.{name}"
        else:
            path = self.path

        endian = self.endian
        length_size = self.length_size
        length = None
        flags = ''
        if directives is not None:
            if directives.endian is not None:
                endian = directives.endian
            if directives.length_size is not None:
                length_size = directives.length_size
            if directives.flags is not None:
                flags = directives.flags
            length = directives.length

        return DecodeContext(path=path, endian=endian, length_size=length_size,
                             length=length, flags=flags)

    @property
    def byteorder(self) -> str:
        """Byte order as accepted by int.from_bytes()."""
        return self.endian.value

    @property
    def is_greedy(self) -> bool:
        return isinstance(self.length, Greedy)

    def has_flag(self, name: str) -> bool:
        if not name:
            return False
        return name in self.flags.split(',')

    def resolve_length(self, table: FieldValueTable) -> Optional[int]:
        """Turn the length directive into a count.

        Returns None when the count has to come from elsewhere (a length
        prefix, or the rest of the input for greedy fields).
        """
        if isinstance(self.length, Literal):
            return self.length.count
        if isinstance(self.length, Reference):
            return table.resolve(self.length.path, self.path)
        return None
