"""
shapes.py - The decodable shapes

A schema is a tree built from a closed set of shapes:

    Scalar       fixed-width bool / integer / float
    Text         length-prefixed or directive-sized string
    FixedArray   exactly N elements, no length prefix
    Sequence     length-prefixed or directive-sized list of elements
    Pointer      indirection to another shape (same context)
    Record       ordered named fields, each with its own directives

Example (a header followed by a body sized by a header field):

    HEADER = Record('Header', [
        Field('Sig', Text(), length=3),
        Field('Size', U32, endian='big'),
    ])
    FILE = Record('File', [
        Field('Header', HEADER),
        Field('Body', Sequence(U8), length='Header.Size'),
    ])
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .directives import Directives, Greedy
from .errors import MalformedDirective, SchemaError


class Shape:
    """Base class for every decodable shape."""

    #: Whether a ``length`` directive means anything for this shape
    takes_length = False

    @property
    def type_name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, eq=False)
class Scalar(Shape):
    name: str
    size: int
    signed: bool = False
    is_float: bool = False
    is_bool: bool = False

    @property
    def is_integer(self) -> bool:
        return not self.is_float and not self.is_bool

    @property
    def type_name(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return self.name.upper()


BOOL = Scalar('bool', 1, is_bool=True)
U8 = Scalar('u8', 1)
U16 = Scalar('u16', 2)
U32 = Scalar('u32', 4)
U64 = Scalar('u64', 8)
S8 = Scalar('s8', 1, signed=True)
S16 = Scalar('s16', 2, signed=True)
S32 = Scalar('s32', 4, signed=True)
S64 = Scalar('s64', 8, signed=True)
F32 = Scalar('f32', 4, signed=True, is_float=True)
F64 = Scalar('f64', 8, signed=True, is_float=True)

# Canonical names plus the aliases accepted in schemas
SCALARS: Dict[str, Scalar] = {
    'bool': BOOL,
    'u8': U8, 'uint8': U8, 'byte': U8,
    'u16': U16, 'uint16': U16,
    'u32': U32, 'uint32': U32,
    'u64': U64, 'uint64': U64,
    's8': S8, 'i8': S8, 'int8': S8,
    's16': S16, 'i16': S16, 'int16': S16,
    's32': S32, 'i32': S32, 'int32': S32,
    's64': S64, 'i64': S64, 'int64': S64,
    'f32': F32, 'float': F32,
    'f64': F64, 'double': F64,
}


@dataclass(frozen=True)
class Text(Shape):
    encoding: str = 'utf-8'
    errors: str = 'replace'

    takes_length = True


@dataclass(eq=False)
class FixedArray(Shape):
    element: Shape
    count: int

    def __post_init__(self):
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 0:
            raise SchemaError(f"FixedArray count must be a non-negative integer, got {self.count!r}")

    @property
    def type_name(self) -> str:
        return f"{self.element.type_name}[{self.count}]"


@dataclass(eq=False)
class Sequence(Shape):
    element: Shape

    takes_length = True

    @property
    def type_name(self) -> str:
        return f"{self.element.type_name}[]"


@dataclass(eq=False)
class Pointer(Shape):
    target: Optional[Shape] = None

    @property
    def takes_length(self) -> bool:
        return self.target is not None and self.target.takes_length

    @property
    def type_name(self) -> str:
        return f"*{self.target.type_name if self.target is not None else '?'}"


class Field:
    """A named record member with its directives.

    Directives are validated here, once; a bad ``endian`` or
    ``lengthSize`` raises MalformedDirective before anything is decoded.
    """

    def __init__(self, name: str, shape: Shape, length=None, endian=None,
                 length_size=None, flags=None, directives: Optional[Directives] = None):
        if not name or not isinstance(name, str):
            raise SchemaError(f"Field name must be a non-empty string, got {name!r}")
        if '.' in name:
            raise SchemaError(f"Field name cannot contain '.': {name!r}")
        self.name = name
        self.shape = shape
        if directives is None:
            directives = Directives.parse(length=length, endian=endian,
                                          length_size=length_size, flags=flags)
        self.directives = directives
        self.check_length()

    def check_length(self) -> None:
        """Reject a length on a shape that has no use for one.

        A Pointer whose target is not filled in yet (recursive schemas)
        passes; Record.validate() checks it again later.
        """
        if self.directives.length is None:
            return
        shape = pointee(self.shape)
        if shape is None or getattr(shape, 'takes_length', False):
            return
        raise MalformedDirective(
            'length', self.directives.length,
            f"field '{self.name}' of type {self.shape.type_name} does not take a length"
        )

    @property
    def is_greedy(self) -> bool:
        return isinstance(self.directives.length, Greedy)

    def __repr__(self) -> str:
        return f"Field({self.name!r}, {self.shape.type_name})"


@dataclass(eq=False)
class Record(Shape):
    name: str
    fields: List[Field] = field(default_factory=list)
    factory: Optional[Callable[..., Any]] = None

    def __post_init__(self):
        self.fields = list(self.fields)
        self.validate()

    def validate(self) -> None:
        """Check field names, lengths and greedy placement."""
        seen = set()
        for f in self.fields:
            if not isinstance(f, Field):
                raise SchemaError(f"Record '{self.name}' member {f!r} is not a Field")
            if f.name in seen:
                raise SchemaError(f"Record '{self.name}' declares field '{f.name}' twice")
            seen.add(f.name)
            f.check_length()

        for f in self.fields[:-1]:
            if consumes_rest(f):
                raise MalformedDirective(
                    'length', f.directives.length or Greedy(),
                    f"greedy field '{self.name}.{f.name}' must be the last field"
                )

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def type_name(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Record({self.name!r}, {self.field_names!r})"


def pointee(shape: Shape) -> Optional[Shape]:
    """Follow Pointers to the shape they decode as, or None if unset."""
    seen = set()
    while isinstance(shape, Pointer):
        if shape.target is None or id(shape) in seen:
            return None
        seen.add(id(shape))
        shape = shape.target
    return shape


def consumes_rest(f: Field, _seen=None) -> bool:
    """True if decoding ``f`` reads through to end-of-input."""
    if f.is_greedy:
        return True
    shape = f.shape
    _seen = set() if _seen is None else _seen
    while isinstance(shape, Pointer) and shape.target is not None:
        if id(shape) in _seen:
            return False
        _seen.add(id(shape))
        shape = shape.target
    if isinstance(shape, Record) and shape.fields:
        if id(shape) in _seen:
            return False
        _seen.add(id(shape))
        return consumes_rest(shape.fields[-1], _seen)
    return False


def record(name: str, *fields: Field, factory=None) -> Record:
    """Shorthand: ``record('Point', Field('x', S32), Field('y', S32))``."""
    return Record(name, list(fields), factory=factory)
