"""
directives.py - Per-field decoding directives

A field may carry four directives, the declarative equivalent of tags
attached to a struct member:

    length      fixed byte/item count, a dot-path to an earlier field,
                or the greedy sentinel "greedy:" (rest of the input)
    endian      'big' or 'little'
    lengthSize  width in bytes of the length prefix read when no length
                is given
    flags       comma-separated opaque tokens

Directives are parsed and validated once, when the schema is built.
Reference lookups are deferred until decode time.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .errors import MalformedDirective


GREEDY = 'greedy:'

_PATH_RE = re.compile(r'^\w+(\.\w+)*$')
_PREFIXED_INT_RE = re.compile(r'^0[xXoObB][0-9a-fA-F_]+$')


class Endian(Enum):
    BIG = 'big'
    LITTLE = 'little'


@dataclass(frozen=True)
class Literal:
    """Fixed length."""
    count: int


@dataclass(frozen=True)
class Reference:
    """Length taken from a previously decoded field."""
    path: str


@dataclass(frozen=True)
class Greedy:
    """Length is everything left in the input."""
    pass


LengthDirective = Union[Literal, Reference, Greedy, None]


def parse_length(value: Any) -> LengthDirective:
    """Parse a length directive value."""
    if value is None:
        return None
    if isinstance(value, (Literal, Reference, Greedy)):
        return value
    if isinstance(value, bool):
        raise MalformedDirective('length', value, "expected an integer or a field path")
    if isinstance(value, int):
        if value < 0:
            raise MalformedDirective('length', value, "length cannot be negative")
        return Literal(value)
    if not isinstance(value, str):
        raise MalformedDirective('length', value, "expected an integer or a field path")

    text = value.strip()
    if text == GREEDY:
        return Greedy()
    if text.isdigit():
        return Literal(int(text, 10))
    if _PREFIXED_INT_RE.match(text):
        try:
            return Literal(int(text, 0))
        except ValueError:
            raise MalformedDirective('length', value, "not a valid integer literal")
    if _PATH_RE.match(text):
        return Reference(text)
    raise MalformedDirective('length', value, "not an integer, a field path, or " + repr(GREEDY))


def parse_endian(value: Any) -> Optional[Endian]:
    if value is None:
        return None
    if isinstance(value, Endian):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('big', 'little'):
            return Endian(lowered)
    raise MalformedDirective('endian', value, "must be 'big' or 'little'")


def parse_length_size(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedDirective('lengthSize', value, "must be a positive integer")
    if isinstance(value, str):
        try:
            value = int(value.strip(), 0)
        except ValueError:
            raise MalformedDirective('lengthSize', value, "cannot parse as an unsigned integer")
    if not isinstance(value, int):
        raise MalformedDirective('lengthSize', value, "must be a positive integer")
    if value <= 0:
        raise MalformedDirective('lengthSize', value, "lengthSize cannot be zero or negative")
    return value


def parse_flags(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return ','.join(str(v) for v in value)
    if not isinstance(value, str):
        raise MalformedDirective('flags', value, "must be a comma-separated string")
    return value


# Accepted tag spellings -> Directives attribute
TAG_NAMES = {
    'length': 'length',
    'endian': 'endian',
    'lengthSize': 'length_size',
    'length_size': 'length_size',
    'flags': 'flags',
}


@dataclass(frozen=True)
class Directives:
    """Validated directives for one field. ``None`` means "not set"."""
    length: LengthDirective = None
    endian: Optional[Endian] = None
    length_size: Optional[int] = None
    flags: Optional[str] = None

    @classmethod
    def parse(cls, length=None, endian=None, length_size=None, flags=None) -> 'Directives':
        return cls(
            length=parse_length(length),
            endian=parse_endian(endian),
            length_size=parse_length_size(length_size),
            flags=parse_flags(flags),
        )

    @classmethod
    def from_tags(cls, tags: Optional[Mapping[str, Any]]) -> 'Directives':
        """Build from a tag mapping such as ``{'length': '3', 'endian': 'big'}``."""
        if not tags:
            return EMPTY
        kwargs = {}
        for key, value in tags.items():
            attr = TAG_NAMES.get(key)
            if attr is None:
                raise MalformedDirective(key, value, "unknown directive")
            if attr in kwargs:
                raise MalformedDirective(key, value, "directive given twice")
            kwargs[attr] = value
        return cls.parse(**kwargs)

    @property
    def is_empty(self) -> bool:
        return self == EMPTY


EMPTY = Directives()
