"""Command line front end.

Usage:
    tacl check config.tacl other.tacl
    tacl dump config.tacl --format yaml
    tacl resolve config.tacl servers[0].host
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from . import ast
from .config import ParseOptions
from .parser import parse_file
from .render import document_to_dict
from .resolver import ReferenceResolver


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tacl", description="Parse and check .tacl files")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--tab-width", type=int, default=4, help="Columns per tab (default: 4)")
    parser.add_argument(
        "--indent-step",
        type=int,
        default=2,
        help="Extra indent of block bodies (default: 2)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Report unresolved references")
    check.add_argument("files", nargs="+", type=Path)

    dump = sub.add_parser("dump", help="Print the parsed document")
    dump.add_argument("file", type=Path)
    dump.add_argument("--format", choices=["json", "yaml"], default="json")

    resolve = sub.add_parser("resolve", help="Print the value a reference path points at")
    resolve.add_argument("file", type=Path)
    resolve.add_argument("path")

    return parser


def _load(path: Path, options: ParseOptions) -> ast.Document | None:
    try:
        return parse_file(path, options)
    except OSError as e:
        print(f"Error: cannot read {path}: {e.strerror or e}", file=sys.stderr)
        return None
    except UnicodeDecodeError as e:
        print(f"Error: cannot read {path}: not valid UTF-8 ({e.reason})", file=sys.stderr)
        return None


def _check(files: list[Path], options: ParseOptions) -> int:
    errors = 0
    unreadable = 0
    for path in files:
        document = _load(path, options)
        if document is None:
            unreadable += 1
            continue
        for d in document.diagnostics:
            start = d.range.start
            print(f"{path}:{start.line + 1}:{start.character + 1}: {d.severity}: {d.message}")
            if d.severity == "error":
                errors += 1

    print()
    print(f"Checked {len(files) - unreadable} file(s), {errors} error(s)")
    return 1 if errors or unreadable else 0


def _dump(path: Path, fmt: str, options: ParseOptions) -> int:
    document = _load(path, options)
    if document is None:
        return 1
    data = document_to_dict(document)
    if fmt == "yaml":
        print(yaml.safe_dump(data, sort_keys=False), end="")
    else:
        print(json.dumps(data, indent=2))
    return 0


def _resolve(path: Path, ref_path: str, options: ParseOptions) -> int:
    document = _load(path, options)
    if document is None:
        return 1
    value = ReferenceResolver(document.fields).lookup(ref_path)
    if value is None:
        print(f"Cannot resolve reference: &{ref_path}", file=sys.stderr)
        return 1
    print(json.dumps(ast.to_python(value)))
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``tacl``."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        options = ParseOptions(tab_width=args.tab_width, indent_step=args.indent_step)
    except ValidationError:
        parser.error("--tab-width and --indent-step must be positive")

    if args.command == "check":
        code = _check(args.files, options)
    elif args.command == "dump":
        code = _dump(args.file, args.format, options)
    else:
        code = _resolve(args.file, args.path, options)
    sys.exit(code)


if __name__ == "__main__":
    main()
