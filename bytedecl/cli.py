#!/usr/bin/env python3
"""
cli.py - Decode a binary file against a YAML shape schema

Usage:
    bytedecl schema.yaml payload.bin
    bytedecl schema.yaml --hex "41 42 43 00 00 00 02 FF EE"
    bytedecl schema.yaml frames.bin --all --json
    cat payload.bin | bytedecl schema.yaml -

Exit codes:
    0  decoded
    1  input could not be decoded
    2  schema or usage error
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

import yaml

from .decoder import Decoder, iter_decode
from .errors import DecodeError, SchemaError
from .schema_loader import load_schema_file


logger = logging.getLogger(__name__)


def parse_hex(text: str) -> bytes:
    cleaned = text.replace(' ', '').replace(':', '').replace('\n', '')
    if cleaned.lower().startswith('0x'):
        cleaned = cleaned[2:]
    try:
        return bytes.fromhex(cleaned)
    except ValueError as e:
        raise SchemaError(f"Invalid hex input: {e}") from e


def format_output(value: Any, as_json: bool) -> str:
    if as_json:
        return json.dumps(value, indent=2, default=str)
    return yaml.safe_dump(value, sort_keys=False, default_flow_style=None).rstrip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bytedecl',
        description='Decode binary data using a YAML shape schema'
    )
    parser.add_argument('schema', help='Path to schema YAML file')
    parser.add_argument('input', nargs='?', default=None,
                        help="Binary input file ('-' for stdin)")
    parser.add_argument('--hex', dest='hex_input',
                        help='Hex string to decode instead of a file')
    parser.add_argument('--all', action='store_true',
                        help='Decode repeated records until end of input')
    parser.add_argument('--length-size', type=int, default=None,
                        help='Override the default length prefix width')
    parser.add_argument('--persist', action='store_true',
                        help='Keep field values across records (with --all)')
    parser.add_argument('--json', action='store_true',
                        help='Output results as JSON')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log decoding steps')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if (args.input is None) == (args.hex_input is None):
        print("Error: give exactly one of INPUT or --hex", file=sys.stderr)
        return 2

    try:
        schema = load_schema_file(args.schema)
        config = schema.config
        if args.length_size is not None:
            config = config.replace(length_size=args.length_size)
        if args.persist:
            config = config.replace(persist_field_values=True)

        if args.hex_input is not None:
            data = parse_hex(args.hex_input)
        elif args.input == '-':
            data = sys.stdin.buffer.read()
        else:
            with open(args.input, 'rb') as f:
                data = f.read()
    except (SchemaError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logger.debug("schema %s, %d input bytes", schema.name, len(data))

    decoder = Decoder(data, config)
    try:
        if args.all:
            result = list(iter_decode(decoder, schema.root))
        else:
            result = decoder.decode(schema.root)
    except DecodeError as e:
        print(f"Decode error: {e}", file=sys.stderr)
        return 1
    except SchemaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(format_output(result, args.json))

    extra = len(data) - decoder.bytes_consumed
    if extra > 0:
        print(f"Warning: {extra} trailing bytes not decoded", file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
