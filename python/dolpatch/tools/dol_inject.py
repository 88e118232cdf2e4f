#!/usr/bin/env python3
"""
DOL header inspection and section injection CLI.

Usage:
    python -m dolpatch.tools.dol_inject info <in.dol> [--msgpack OUT]
    python -m dolpatch.tools.dol_inject [-v] inject <in.dol> <out.dol> <size> [--address ADDR]
    python -m dolpatch.tools.dol_inject locate <in.dol> <address>
    python -m dolpatch.tools.dol_inject [-v] verify <in.dol>

Sizes and addresses accept decimal or 0x-prefixed hexadecimal.
"""

import argparse
import logging
import sys
from pathlib import Path

from dolpatch import (
    DolVerifier,
    InvalidAddressError,
    InvalidSizeError,
    format_header,
    inject_into_image,
    locate,
    pack_header_summary,
    read_header,
)
from dolpatch.types import U32_MAX


def _parse_u32(text: str) -> int:
    value = int(text, 0)
    if not 0 <= value <= U32_MAX:
        raise ValueError(f"{text} is out of 32-bit range")
    return value


def parse_size(text: str) -> int:
    """Parse a section size argument.

    Raises:
        InvalidSizeError: If text is not a positive 32-bit integer
    """
    try:
        value = _parse_u32(text)
    except ValueError as e:
        raise InvalidSizeError(f"Invalid section size: {text}") from e
    if value == 0:
        raise InvalidSizeError(f"Invalid section size: {text}")
    return value


def parse_address(text: str, allow_zero: bool = True) -> int:
    """Parse a memory address argument.

    Zero parses fine for queries. Pass allow_zero=False where the value
    becomes a section address, since zero marks a slot as unused.

    Raises:
        InvalidAddressError: If text is not a valid 32-bit address
    """
    try:
        value = _parse_u32(text)
    except ValueError as e:
        raise InvalidAddressError(f"Invalid address: {text}") from e
    if value == 0 and not allow_zero:
        raise InvalidAddressError(f"Invalid address: {text}")
    return value


def cmd_info(args: argparse.Namespace) -> int:
    header = read_header(args.dol)
    print(format_header(header))
    if args.msgpack is not None:
        args.msgpack.write_bytes(pack_header_summary(header))
        print(f"\nWrote header summary: {args.msgpack}")
    return 0


def cmd_inject(args: argparse.Namespace) -> int:
    size = parse_size(args.size)
    address = None
    if args.address is not None:
        address = parse_address(args.address, allow_zero=False)

    result = inject_into_image(
        args.input, args.output, size, address, verbose=args.verbose
    )

    print(
        f"Added section {result['slot']:02d}: "
        f"offset = {result['file_offset']:#010x}, "
        f"start_addr = {result['address']:#010x}, "
        f"end_addr = {result['address'] + result['size']:#010x}, "
        f"size = {result['size']:#010x}"
    )
    if args.verbose:
        print()
        print(format_header(read_header(args.output)))
    return 0


def cmd_locate(args: argparse.Namespace) -> int:
    address = parse_address(args.address)
    header = read_header(args.dol)
    offset = locate(header, address)
    print(f"{address:#010x} -> file offset {offset:#010x}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    result = DolVerifier.verify(args.dol)
    print(f"Verifying: {args.dol}")
    print("-" * 60)
    for e in result.errors:
        print(f"  ERROR: {e}")
    if args.verbose:
        for w in result.warnings:
            print(f"  WARN: {w}")
    print("-" * 60)
    print(f"Overall: {'PASSED' if result.passed else 'FAILED'}")
    return 0 if result.passed else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect DOL headers and reserve space for new sections"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show progress, debug logging and warnings",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    info = subparsers.add_parser("info", help="Print the section table")
    info.add_argument("dol", type=Path, help="Path to DOL image")
    info.add_argument(
        "--msgpack",
        type=Path,
        default=None,
        help="Also write a MessagePack header summary to this path",
    )
    info.set_defaults(func=cmd_info)

    inject = subparsers.add_parser(
        "inject", help="Copy an image with space reserved for a new text section"
    )
    inject.add_argument("input", type=Path, help="Path to input DOL image")
    inject.add_argument("output", type=Path, help="Path for output DOL image")
    inject.add_argument("size", help="Size of the new section in bytes")
    inject.add_argument(
        "--address",
        default=None,
        help="Memory address for the new section (default: after all mapped content)",
    )
    inject.set_defaults(func=cmd_inject)

    locate_cmd = subparsers.add_parser(
        "locate", help="Translate a memory address to a file offset"
    )
    locate_cmd.add_argument("dol", type=Path, help="Path to DOL image")
    locate_cmd.add_argument("address", help="Memory address to look up")
    locate_cmd.set_defaults(func=cmd_locate)

    verify = subparsers.add_parser("verify", help="Check header consistency")
    verify.add_argument("dol", type=Path, help="Path to DOL image")
    verify.set_defaults(func=cmd_verify)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    # DolError subclasses ValueError
    try:
        return args.func(args)
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
