"""
errors.py - Exception types raised while decoding

Two families:

    DecodeError  - the input bytes could not be decoded (short input,
                   a length reference that was never recorded, a shape
                   with no decoding rule). Depends on the data.
    SchemaError  - the schema itself is wrong (bad endian, bad
                   lengthSize, unparsable length). Raised when the
                   schema is built, never depends on the data.

Both derive from ValueError.
"""

from typing import Optional


class DecodeError(ValueError):
    """Input could not be decoded into the requested shape."""
    pass


class ShortRead(DecodeError):
    """Fewer bytes were available than a field required."""

    def __init__(self, requested: int, offset: int, path: Optional[str] = None,
                 available: int = 0):
        self.requested = requested
        self.offset = offset
        self.path = path
        self.available = available
        where = f" for field '{path}'" if path else ""
        super().__init__(
            f"Buffer too short: need {requested} bytes at pos {offset}{where}, "
            f"got {available}"
        )


class UnresolvedReference(DecodeError):
    """A length directive names a field path with no recorded value."""

    def __init__(self, reference: str, path: Optional[str] = None):
        self.reference = reference
        self.path = path
        where = f" (needed by '{path}')" if path else ""
        super().__init__(f"Field value not found: '{reference}'{where}")


class UnsupportedType(DecodeError):
    """The destination shape has no decoding rule."""

    def __init__(self, type_name: str, path: Optional[str] = None):
        self.type_name = type_name
        self.path = path
        where = f" at '{path}'" if path else ""
        super().__init__(f"Type {type_name} cannot be decoded{where}")


class SchemaError(ValueError):
    """Error in a schema definition."""
    pass


class MalformedDirective(SchemaError):
    """A field directive (length, endian, lengthSize, flags) is invalid."""

    def __init__(self, directive: str, value, reason: str):
        self.directive = directive
        self.value = value
        super().__init__(f"Invalid '{directive}' directive {value!r}: {reason}")
