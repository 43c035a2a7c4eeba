"""
schema_loader.py - Load shape schemas from YAML

Schema format:

    name: qyv_executable
    config:
      lengthSize: 4
      store_field_values: true
    types:
      Header:
        fields:
          - {name: Sig, type: string, length: 3}
          - {name: Flags, type: u8}
          - {name: TextSize, type: u32, endian: big}
    fields:
      - {name: Header, type: Header}
      - {name: Text, type: "u8[]", length: Header.TextSize}
      - {name: Data, type: "u8[]", length: "greedy:"}

Type grammar:
    u8 u16 u32 u64 s8 s16 s32 s64 f32 f64 bool (+ aliases uint8, i8, ...)
    string          text, sized by length directive or length prefix
    T[N]            fixed array of N elements
    T[]             sequence
    "*T"            pointer to T (quote it, '*' starts a YAML alias)
    Name            an entry under types:

Instead of top-level ``fields``, ``root: Name`` selects one of the types.

Usage:
    schema = load_schema_file('qyv.yaml')
    value = schema.decode(data)
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .config import Config, DEFAULT_CONFIG
from .decoder import Decoder, DecodeResult, decode_payload, unmarshal
from .directives import Directives, TAG_NAMES
from .errors import SchemaError
from .shapes import SCALARS, Field, FixedArray, Pointer, Record, Sequence, Shape, Text


SCHEMA_KEYS = {'name', 'version', 'description', 'config', 'types', 'fields', 'root'}
FIELD_KEYS = {'name', 'type', 'encoding', 'description'} | set(TAG_NAMES)
TEXT_TYPES = {'string', 'str', 'text'}

_ARRAY_RE = re.compile(r'^(.+)\[(\d+)\]$')


@dataclass
class LoadedSchema:
    """A schema loaded from YAML."""
    name: str
    root: Shape
    types: Dict[str, Record] = field(default_factory=dict)
    config: Config = DEFAULT_CONFIG

    def decoder(self, source, config: Optional[Config] = None) -> Decoder:
        return Decoder(source, config or self.config)

    def decode(self, data, config: Optional[Config] = None) -> Any:
        return unmarshal(data, self.root, config or self.config)

    def decode_payload(self, data: bytes, config: Optional[Config] = None) -> DecodeResult:
        return decode_payload(data, self.root, config or self.config)


class _Builder:
    def __init__(self, type_defs: Mapping[str, Any]):
        self.type_defs = {str(name): definition for name, definition in type_defs.items()}
        # Placeholders first so types can refer to each other
        self.types: Dict[str, Record] = {name: Record(name, []) for name in self.type_defs}

    def build_types(self) -> None:
        for name, definition in self.type_defs.items():
            if isinstance(definition, Mapping):
                unknown = set(definition) - {'fields', 'description'}
                if unknown:
                    raise SchemaError(f"Type '{name}': unknown keys {sorted(unknown)}")
                field_defs = definition.get('fields', [])
            else:
                field_defs = definition
            self.types[name].fields = self.build_fields(field_defs, name)

    def validate(self) -> None:
        for rec in self.types.values():
            rec.validate()

    def build_fields(self, field_defs: Any, where: str) -> List[Field]:
        if not isinstance(field_defs, list):
            raise SchemaError(f"{where}: 'fields' must be a list")
        return [self.build_field(fd, where) for fd in field_defs]

    def build_field(self, fd: Any, where: str) -> Field:
        if not isinstance(fd, Mapping):
            raise SchemaError(f"{where}: field definition must be a mapping, got {fd!r}")
        name = fd.get('name')
        if not name:
            raise SchemaError(f"{where}: field without a name: {dict(fd)!r}")
        unknown = set(fd) - FIELD_KEYS
        if unknown:
            raise SchemaError(f"{where}.{name}: unknown keys {sorted(unknown)}")
        if 'type' not in fd:
            raise SchemaError(f"{where}.{name}: missing 'type'")

        shape = self.parse_type(fd['type'], f"{where}.{name}")
        if 'encoding' in fd:
            if not isinstance(shape, Text):
                raise SchemaError(f"{where}.{name}: 'encoding' only applies to string fields")
            shape = Text(encoding=fd['encoding'])

        tags = {k: v for k, v in fd.items() if k in TAG_NAMES}
        return Field(str(name), shape, directives=Directives.from_tags(tags))

    def parse_type(self, type_str: Any, where: str) -> Shape:
        if not isinstance(type_str, str) or not type_str.strip():
            raise SchemaError(f"{where}: type must be a non-empty string, got {type_str!r}")
        t = type_str.strip()

        if t.startswith('*'):
            return Pointer(self.parse_type(t[1:], where))
        if t.endswith('[]'):
            return Sequence(self.parse_type(t[:-2], where))
        match = _ARRAY_RE.match(t)
        if match:
            return FixedArray(self.parse_type(match.group(1), where), int(match.group(2)))
        if t in SCALARS:
            return SCALARS[t]
        if t in TEXT_TYPES:
            return Text()
        if t in self.types:
            return self.types[t]
        if t == 'map' or t.startswith('map<'):
            raise SchemaError(f"{where}: maps are not supported")
        raise SchemaError(f"{where}: unknown type: {t}")


def load_schema(source: Union[str, bytes, Mapping[str, Any]]) -> LoadedSchema:
    """Load a schema from YAML text or an already-parsed mapping."""
    if isinstance(source, (str, bytes)):
        try:
            data = yaml.safe_load(source)
        except yaml.YAMLError as e:
            raise SchemaError(f"Invalid YAML: {e}") from e
    else:
        data = source

    if not isinstance(data, Mapping):
        raise SchemaError("Schema must be a mapping")
    unknown = set(data) - SCHEMA_KEYS
    if unknown:
        raise SchemaError(f"Unknown schema keys: {sorted(unknown)}")

    name = str(data.get('name', 'unknown'))
    config = Config.from_dict(data.get('config'))

    type_defs = data.get('types') or {}
    if not isinstance(type_defs, Mapping):
        raise SchemaError("'types' must be a mapping of type name to fields")
    builder = _Builder(type_defs)
    builder.build_types()

    if 'fields' in data and 'root' in data:
        raise SchemaError("Schema has both 'fields' and 'root'")
    if 'root' in data:
        root = builder.parse_type(data['root'], name)
    elif 'fields' in data:
        root = Record(name, [])
        root.fields = builder.build_fields(data['fields'], name)
    else:
        raise SchemaError("Schema needs 'fields' or 'root'")

    builder.validate()
    if isinstance(root, Record):
        root.validate()

    return LoadedSchema(name=name, root=root, types=builder.types, config=config)


def load_schema_file(path: Union[str, Path]) -> LoadedSchema:
    with open(path, encoding='utf-8') as f:
        return load_schema(f.read())
