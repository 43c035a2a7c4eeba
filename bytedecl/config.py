"""
config.py - Decoder configuration

A Config is immutable and may be shared by any number of decoders.

    store_field_values    record unsigned integer fields so later
                          ``length`` directives can reference them
    length_size           default width in bytes of length prefixes
    persist_field_values  keep recorded values across decode() calls
                          on the same decoder (off: each call starts
                          with an empty table)
"""

from dataclasses import dataclass, fields, replace as _replace
from typing import Any, Dict, Mapping, Optional

from .directives import parse_length_size
from .errors import MalformedDirective, SchemaError


@dataclass(frozen=True)
class Config:
    store_field_values: bool = True
    length_size: int = 4
    persist_field_values: bool = False

    def __post_init__(self):
        for name in ('store_field_values', 'persist_field_values'):
            if not isinstance(getattr(self, name), bool):
                raise SchemaError(f"Config.{name} must be a boolean, got {getattr(self, name)!r}")
        size = self.length_size
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise SchemaError(f"Config.length_size must be a positive integer, got {size!r}")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'Config':
        """Build from a mapping, e.g. the ``config:`` block of a YAML schema."""
        if not data:
            return DEFAULT_CONFIG
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = 'length_size' if key == 'lengthSize' else key
            if name not in known:
                raise SchemaError(f"Unknown config option: {key}")
            if name == 'length_size':
                try:
                    value = parse_length_size(value)
                except MalformedDirective as e:
                    raise SchemaError(f"Config.length_size: {e}") from e
            kwargs[name] = value
        return cls(**kwargs)

    def replace(self, **changes) -> 'Config':
        return _replace(self, **changes)


DEFAULT_CONFIG = Config()
