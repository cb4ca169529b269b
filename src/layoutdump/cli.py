from __future__ import annotations
import argparse, logging, sys, zlib
from typing import Optional, Sequence

from pydantic import ValidationError

from .binary.errors import DumpError
from .binary.reader import DUMPERS, dump_file
from .models.options import DumpOptions

__version__ = "0.2"

def build_parser(prog: str = "layoutdump", fixed_format: Optional[str] = None):
    what = {"oasis": "An OASIS", "gds2": "A GDS2"}.get(fixed_format or "", "A GDS2/OASIS")
    p = argparse.ArgumentParser(
        prog=prog,
        description=f"{what} file disassembly tool",
        epilog=f"Version {__version__}",
    )
    p.add_argument("-n", "--width", type=int, default=8, help="number of bytes to print per line")
    p.add_argument("-s", "--short", action="store_true",
                   help='short: abbreviate hex dump with more than "width" bytes')
    if fixed_format is None:
        p.add_argument("-f", "--format", default="auto", choices=["auto", *DUMPERS],
                       help="input format (default: detect from the magic bytes)")
    p.add_argument("input", help="layout file ('-' reads standard input, .gz is expanded)")
    return p

def run(argv: Optional[Sequence[str]] = None, *, prog: str = "layoutdump",
        fixed_format: Optional[str] = None) -> int:
    p = build_parser(prog, fixed_format)
    try:
        ns = p.parse_args(argv)
    except SystemExit:
        # help text or usage problem
        return 1

    logging.basicConfig(stream=sys.stderr, format="%(message)s", level=logging.WARNING)

    try:
        options = DumpOptions(width=ns.width, short_mode=ns.short)
    except ValidationError:
        print("*** ERROR: Invalid width specification for -n command line option", file=sys.stderr)
        return 2

    try:
        dump_file(ns.input, fmt=fixed_format or ns.format, options=options)
    except (DumpError, OSError, EOFError, zlib.error) as e:
        print(f"*** ERROR: {e}", file=sys.stderr)
        return 2
    return 0

def main(argv: Optional[Sequence[str]] = None) -> int:
    return run(argv)

def main_oas(argv: Optional[Sequence[str]] = None) -> int:
    return run(argv, prog="dump-oas", fixed_format="oasis")

def main_gds2(argv: Optional[Sequence[str]] = None) -> int:
    return run(argv, prog="dump-gds2", fixed_format="gds2")


if __name__ == "__main__":
    raise SystemExit(main())
