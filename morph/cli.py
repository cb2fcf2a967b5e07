"""Morph CLI — Command-line interface for the Morph front end.

Commands:
  morph run <file.morph>        — Type check, then interpret in draft mode
  morph check <file.morph>      — Type check (optionally verify ensures with z3)
  morph tokenize <file.morph>   — Print the token stream
  morph parse <file.morph>      — Pretty-print the parsed module

Exit codes: 0 success, 1 any compile/check/runtime error, 2 file not found.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Optional

from morph import __version__
from morph.checker import check
from morph.config import MorphConfig, load_config
from morph.errors import MorphError, MorphException, CompileError, EvaluationError
from morph.interpreter import interpret
from morph.lexer import tokenize
from morph.parser import parse
from morph.printer import format_module
from morph.values import UnitValue

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _read_source(path: str) -> tuple[Optional[str], int]:
    """Return the file contents, or None with the exit code to stop with."""
    if not os.path.isfile(path):
        print(f"File not found: {path}", file=sys.stderr)
        return None, 2
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read(), 0
    except UnicodeDecodeError as e:
        print(f"Cannot decode {path} as UTF-8: {e}", file=sys.stderr)
        return None, 1


def _wants_json(args: argparse.Namespace, config: MorphConfig) -> bool:
    return bool(getattr(args, "json", False)) or config.format == "json"


def _print_errors(errors: list[MorphError], as_json: bool) -> None:
    if as_json:
        print(json.dumps([e.to_dict() for e in errors], indent=2))
        return
    for error in errors:
        print(str(error))


def _print_exception(exc: MorphException, as_json: bool) -> None:
    _print_errors(exc.errors, as_json)


def cmd_run(args: argparse.Namespace) -> int:
    """Check and interpret a Morph source file."""
    config: MorphConfig = args.config_obj
    as_json = _wants_json(args, config)
    source, code = _read_source(args.file)
    if source is None:
        return code

    try:
        module = parse(source, filename=args.file)
    except CompileError as e:
        _print_exception(e, as_json)
        return 1

    if config.check_before_run and not args.no_check:
        errors = check(module, verify=args.verify or config.verify_ensures)
        if errors:
            _print_errors(errors, as_json)
            return 1

    try:
        result = interpret(
            module,
            validate_ghosts=config.validate_ghosts,
            recursion_limit=config.recursion_limit,
        )
    except EvaluationError as e:
        _print_exception(e, as_json)
        return 1

    if not isinstance(result, UnitValue):
        print(result)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Type check a Morph source file."""
    config: MorphConfig = args.config_obj
    as_json = _wants_json(args, config)
    source, code = _read_source(args.file)
    if source is None:
        return code

    try:
        module = parse(source, filename=args.file)
    except CompileError as e:
        _print_exception(e, as_json)
        return 1

    errors = check(module, verify=args.verify or config.verify_ensures)
    if errors:
        _print_errors(errors, as_json)
        return 1

    if as_json:
        print("[]")
    else:
        print(f"OK: {args.file}")
    return 0


def cmd_tokenize(args: argparse.Namespace) -> int:
    """Print one token per line."""
    source, code = _read_source(args.file)
    if source is None:
        return code

    try:
        tokens = tokenize(source, filename=args.file)
    except CompileError as e:
        _print_exception(e, _wants_json(args, args.config_obj))
        return 1

    for tok in tokens:
        print(f"{tok.line}:{tok.column}\t{tok.type.name}\t{tok.value!r}")
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    """Pretty-print the parsed module."""
    source, code = _read_source(args.file)
    if source is None:
        return code

    try:
        module = parse(source, filename=args.file)
    except CompileError as e:
        _print_exception(e, _wants_json(args, args.config_obj))
        return 1

    print(format_module(module), end="")
    return 0


def _configure_logging(args: argparse.Namespace, config: MorphConfig) -> None:
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="morph",
        description="Morph — staged language front end (draft-mode interpreter)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    parser.add_argument("--config", default=None, help="Path to a .morphrc.yml / .json file")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run
    p_run = subparsers.add_parser("run", help="Type check and interpret a Morph file")
    p_run.add_argument("file", help="Morph source file (.morph)")
    p_run.add_argument("--no-check", action="store_true", dest="no_check", help="Skip type checking")
    p_run.add_argument("--verify", action="store_true", help="Verify solve-block ensures with Z3")
    p_run.add_argument("--json", action="store_true", help="Print errors as JSON")
    p_run.set_defaults(func=cmd_run)

    # check
    p_check = subparsers.add_parser("check", help="Type check a Morph file")
    p_check.add_argument("file", help="Morph source file (.morph)")
    p_check.add_argument("--verify", action="store_true", help="Verify solve-block ensures with Z3")
    p_check.add_argument("--json", action="store_true", help="Print errors as JSON")
    p_check.set_defaults(func=cmd_check)

    # tokenize
    p_tokenize = subparsers.add_parser("tokenize", help="Print the token stream")
    p_tokenize.add_argument("file", help="Morph source file (.morph)")
    p_tokenize.set_defaults(func=cmd_tokenize)

    # parse
    p_parse = subparsers.add_parser("parse", help="Pretty-print the parsed module")
    p_parse.add_argument("file", help="Morph source file (.morph)")
    p_parse.set_defaults(func=cmd_parse)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    start_dir = os.path.dirname(os.path.abspath(args.file))
    args.config_obj = load_config(args.config, start_dir=start_dir)
    _configure_logging(args, args.config_obj)
    logger.debug("Running %s on %s", args.command, args.file)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
