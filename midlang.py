"""MidLang entry point."""

from __future__ import annotations
import argparse
import sys
from typing import List, Optional

from interpreter import Interpreter, MidRuntimeError, TracebackFormatter
from lexer import MidError


def run_cli(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="MidLang reference interpreter")
    parser.add_argument("program", help="Source file path or literal source with -source")
    parser.add_argument("-source", "--source", dest="source_mode", action="store_true", help="Treat program argument as literal source text")
    parser.add_argument("-verbose", "--verbose", dest="verbose", action="store_true", help="Print a traceback with env snapshots on runtime errors")
    parser.add_argument("--traceback-json", action="store_true", help="Also emit JSON traceback")
    args = parser.parse_args(argv)

    if args.source_mode:
        source_text = args.program
        filename = "<string>"
    else:
        filename = args.program
        try:
            with open(filename, "r", encoding="utf-8") as handle:
                source_text = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            print(f"Error: Failed to read {filename}: {exc}", file=sys.stderr)
            return 1

    interpreter = Interpreter(source=source_text, filename=filename, verbose=args.verbose)
    try:
        interpreter.run()
    except MidRuntimeError as error:
        print(f"Error: {error.message}", file=sys.stderr)
        formatter = TracebackFormatter(interpreter)
        if args.verbose:
            print(formatter.format_text(error, verbose=True), file=sys.stderr)
        if args.traceback_json:
            print(formatter.to_json(error), file=sys.stderr)
        return 1
    except MidError as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
