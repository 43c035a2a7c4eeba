"""
bytedecl - Declarative binary decoding

Describe a value's shape once, with per-field directives (length,
endian, lengthSize, flags), and decode bytes into it.
"""

from .byte_source import ByteSource
from .config import Config, DEFAULT_CONFIG
from .context import DecodeContext
from .dataclass_schema import record_from_dataclass
from .decoder import DecodeResult, Decoder, decode_payload, iter_decode, unmarshal
from .directives import GREEDY, Directives, Endian, Greedy, Literal, Reference
from .errors import (
    DecodeError, MalformedDirective, SchemaError, ShortRead,
    UnresolvedReference, UnsupportedType,
)
from .field_values import FieldValueTable
from .schema_loader import LoadedSchema, load_schema, load_schema_file
from .shapes import (
    BOOL, F32, F64, S8, S16, S32, S64, SCALARS, U8, U16, U32, U64,
    Field, FixedArray, Pointer, Record, Scalar, Sequence, Shape, Text, record,
)

__version__ = '0.1.0'
