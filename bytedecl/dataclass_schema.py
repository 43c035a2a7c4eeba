"""
dataclass_schema.py - Build Records from annotated dataclasses

Directives live in each field's metadata, next to the shape:

    @dataclass
    class Header:
        sig: str = field(metadata={'shape': Text(), 'length': 3})
        size: int = field(metadata={'shape': U32, 'endian': 'big'})

    @dataclass
    class File:
        header: Header = field(metadata={'shape': Header})
        body: list = field(metadata={'shape': Sequence(U8), 'length': 'header.size'})

    file = unmarshal(data, record_from_dataclass(File))   # -> File(...)

A dataclass used as a shape (directly, or as the element of a Sequence
or FixedArray) is converted recursively. Records are cached per class,
so self-referencing dataclasses work through Pointer.
"""

import dataclasses
from typing import Any, Dict, Mapping

from .directives import Directives
from .errors import SchemaError
from .shapes import Field, FixedArray, Pointer, Record, Sequence, Shape


SHAPE_KEY = 'shape'


def record_from_dataclass(cls: type, _cache: Dict[type, Record] = None) -> Record:
    """Return a Record that decodes into instances of dataclass ``cls``."""
    if not dataclasses.is_dataclass(cls) or not isinstance(cls, type):
        raise SchemaError(f"{cls!r} is not a dataclass type")

    cache = {} if _cache is None else _cache
    if cls in cache:
        return cache[cls]

    rec = Record(cls.__name__, [], factory=cls)
    cache[cls] = rec

    members = []
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        meta: Mapping[str, Any] = f.metadata or {}
        if SHAPE_KEY not in meta:
            raise SchemaError(f"{cls.__name__}.{f.name}: missing '{SHAPE_KEY}' in field metadata")
        shape = _to_shape(meta[SHAPE_KEY], cache, f"{cls.__name__}.{f.name}")
        tags = {k: v for k, v in meta.items() if k != SHAPE_KEY}
        members.append(Field(f.name, shape, directives=Directives.from_tags(tags)))

    rec.fields = members
    rec.validate()
    return rec


def _to_shape(declared: Any, cache: Dict[type, Record], where: str) -> Shape:
    if isinstance(declared, type) and dataclasses.is_dataclass(declared):
        return record_from_dataclass(declared, cache)
    if isinstance(declared, Sequence):
        return Sequence(_to_shape(declared.element, cache, where))
    if isinstance(declared, FixedArray):
        return FixedArray(_to_shape(declared.element, cache, where), declared.count)
    if isinstance(declared, Pointer):
        if declared.target is None:
            return declared
        return Pointer(_to_shape(declared.target, cache, where))
    if isinstance(declared, Shape):
        return declared
    raise SchemaError(f"{where}: {declared!r} is not a shape or a dataclass")
