"""
decoder.py - Recursive decoder driven by shapes and field directives

Usage:
    from bytedecl import Decoder, unmarshal, decode_payload

    value = unmarshal(data, FILE)              # one shot, raises on error

    result = decode_payload(data, FILE)        # one shot, reports errors
    if result.success:
        print(result.data)

    decoder = Decoder(open('frames.bin', 'rb'))
    first = decoder.decode(FRAME)              # streaming, one record per call
    second = decoder.decode(FRAME)

Decoding rules, per shape:

    Scalar      read the type's size; integers honour the field's byte
                order (default little), floats are always little-endian
    Text        N bytes, N from the length directive or a length prefix
    FixedArray  N elements, no prefix
    Sequence    N elements, N as for Text
    Record      each field in order, nothing read for the record itself
    Pointer     the target shape, same context

Length prefixes are ``lengthSize`` bytes wide (default from Config) and
always little-endian, whatever the field's byte order. Unsigned integer
fields are recorded in the decoder's FieldValueTable under their dotted
path so that later fields can say ``length: Header.Size``.
"""

import logging
import struct
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional

from .byte_source import ByteSource
from .config import Config, DEFAULT_CONFIG
from .context import DecodeContext
from .errors import DecodeError, SchemaError, UnsupportedType
from .field_values import FieldValueTable
from .shapes import FixedArray, Pointer, Record, Scalar, Sequence, Shape, Text


logger = logging.getLogger(__name__)


@dataclass
class DecodeResult:
    """Result of decoding a payload."""
    data: Any
    bytes_consumed: int
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    error: Optional[DecodeError] = None

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


class Decoder:
    """
    Decodes values from a byte source, one decode() call per value.

    The decoder owns its FieldValueTable. With the default config the
    table is cleared at the start of every decode() call; set
    ``Config.persist_field_values`` to let a later record reference
    values recorded by an earlier one. A decoder is not safe for
    overlapping use from several threads.
    """

    def __init__(self, source, config: Optional[Config] = None,
                 field_values: Optional[FieldValueTable] = None):
        self.config = config if config is not None else DEFAULT_CONFIG
        self.source = source if isinstance(source, ByteSource) else ByteSource(source)
        if field_values is None:
            field_values = FieldValueTable(enabled=self.config.store_field_values)
        self.field_values = field_values

    @property
    def bytes_consumed(self) -> int:
        return self.source.position

    def reset(self) -> None:
        """Forget every recorded field value."""
        self.field_values.reset()

    def decode(self, shape: Shape, into: Any = None) -> Any:
        """Decode the next value of ``shape`` from the source.

        With ``into`` (a dict or any object), the fields of a Record are
        assigned onto it as they decode and ``into`` is returned. If
        decoding fails it holds whatever was decoded before the failure.
        """
        if not self.config.persist_field_values:
            self.field_values.reset()

        ctx = DecodeContext.root(self.config)
        start = self.source.position
        logger.debug("decode %s at pos %d", _type_name(shape), start)

        if into is not None:
            if not isinstance(shape, Record):
                raise TypeError(f"'into' needs a Record shape, got {_type_name(shape)}")
            value = self._decode_record(shape, ctx, self.source, into)
        else:
            value = self._decode(shape, ctx, self.source)

        logger.debug("decoded %s: %d bytes", _type_name(shape), self.source.position - start)
        return value

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _decode(self, shape: Shape, ctx: DecodeContext, src: ByteSource) -> Any:
        if isinstance(shape, Pointer):
            if shape.target is None:
                raise UnsupportedType(shape.type_name, ctx.path)
            return self._decode(shape.target, ctx, src)
        if isinstance(shape, Scalar):
            return self._decode_scalar(shape, ctx, src)
        if isinstance(shape, Text):
            return self._decode_text(shape, ctx, src)
        if isinstance(shape, FixedArray):
            return self._decode_items(shape.element, shape.count, ctx, src)
        if isinstance(shape, Sequence):
            return self._decode_sequence(shape, ctx, src)
        if isinstance(shape, Record):
            return self._decode_record(shape, ctx, src)
        raise UnsupportedType(_type_name(shape), ctx.path)

    def _decode_scalar(self, shape: Scalar, ctx: DecodeContext, src: ByteSource) -> Any:
        data = src.read(shape.size, ctx.path)

        if shape.is_bool:
            return data[0] != 0

        if shape.is_float:
            return struct.unpack('<f' if shape.size == 4 else '<d', data)[0]

        value = int.from_bytes(data, ctx.byteorder, signed=shape.signed)
        if not shape.signed and ctx.path:
            self.field_values.record(ctx.path, value)
            logger.debug("%s = %d (recorded)", ctx.path, value)
        return value

    def _resolve_length(self, ctx: DecodeContext, src: ByteSource) -> int:
        """Count for a Text or Sequence that is not greedy."""
        n = ctx.resolve_length(self.field_values)
        if n is not None:
            logger.debug("%s: length %d from %s", ctx.path, n, ctx.length)
            return n

        prefix = src.read(ctx.length_size, ctx.path)
        n = int.from_bytes(prefix, 'little')
        logger.debug("%s: length %d from %d-byte prefix", ctx.path, n, ctx.length_size)
        return n

    def _decode_text(self, shape: Text, ctx: DecodeContext, src: ByteSource) -> str:
        if ctx.is_greedy:
            data = src.read_rest()
        else:
            data = src.read(self._resolve_length(ctx, src), ctx.path)
        return data.decode(shape.encoding, errors=shape.errors)

    def _decode_items(self, element: Shape, count: int, ctx: DecodeContext,
                      src: ByteSource) -> List[Any]:
        items = []
        for i in range(count):
            items.append(self._decode(element, ctx.child(str(i)), src))
        return items

    def _decode_sequence(self, shape: Sequence, ctx: DecodeContext, src: ByteSource) -> List[Any]:
        if not ctx.is_greedy:
            return self._decode_items(shape.element, self._resolve_length(ctx, src), ctx, src)

        # Greedy: elements until the input runs out. A trailing partial
        # element is a ShortRead.
        start = src.position
        data = src.read_rest()
        rest = ByteSource(data, offset=start)
        end = start + len(data)
        logger.debug("%s: greedy, %d bytes remaining", ctx.path, len(data))
        items = []
        while rest.position < end:
            before = rest.position
            items.append(self._decode(shape.element, ctx.child(str(len(items))), rest))
            if rest.position == before:
                raise SchemaError(
                    f"Greedy sequence '{ctx.path}' has elements of type "
                    f"{shape.element.type_name} that consume no bytes"
                )
        return items

    def _decode_record(self, shape: Record, ctx: DecodeContext, src: ByteSource,
                       into: Any = None) -> Any:
        values = {}
        for f in shape.fields:
            value = self._decode(f.shape, ctx.child(f.name, f.directives), src)
            if into is None:
                values[f.name] = value
            elif isinstance(into, MutableMapping):
                into[f.name] = value
            else:
                setattr(into, f.name, value)

        if into is not None:
            return into
        if shape.factory is not None:
            return shape.factory(**values)
        return values


def _type_name(shape: Any) -> str:
    if isinstance(shape, Shape):
        return shape.type_name
    if isinstance(shape, type):
        return shape.__name__
    return type(shape).__name__


def unmarshal(data, shape: Shape, config: Optional[Config] = None) -> Any:
    """Decode ``data`` (bytes or a binary stream) into a value of ``shape``."""
    return Decoder(data, config).decode(shape)


def decode_payload(data: bytes, shape: Shape, config: Optional[Config] = None) -> DecodeResult:
    """
    Decode ``data`` and report the outcome instead of raising.

    Data errors (ShortRead, UnresolvedReference, UnsupportedType) end up
    in ``errors``; schema errors still raise since no input can fix them.
    """
    decoder = Decoder(data, config)
    try:
        value = decoder.decode(shape)
    except DecodeError as e:
        return DecodeResult(data=None, bytes_consumed=decoder.bytes_consumed,
                            errors=[str(e)], error=e)

    result = DecodeResult(data=value, bytes_consumed=decoder.bytes_consumed)
    extra = len(data) - decoder.bytes_consumed if isinstance(data, (bytes, bytearray)) else 0
    if extra > 0:
        result.warnings.append(f"{extra} trailing bytes not decoded")
    return result


def iter_decode(source, shape: Shape, config: Optional[Config] = None) -> Iterator[Any]:
    """Yield consecutive values of ``shape`` until the source is exhausted.

    The source must be bytes, a seekable stream, or a buffered stream
    that supports peek().
    """
    decoder = source if isinstance(source, Decoder) else Decoder(source, config)
    while not decoder.source.at_end():
        yield decoder.decode(shape)
