"""CLI entry point for the Nexen interpreter.

Usage:
    python -m nexen [-v|-vv|-vvv] [-d] <program_file>
    python -m nexen [-v...] -s '<source text>'
    python -m nexen -t <program_file>

Options:
  -v              Increase debug verbosity (can be repeated)
  -s, --source    Treat the positional argument as program text instead of a path
  -t, --tokenize  Print the token stream instead of running the program
  -d, --debug     Print the execution time after the program finishes

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero.
"""

import argparse
import sys
from pathlib import Path

from .errors import NexenError, ProgramError
from .interpreter import interpret, tokenize

SOURCE_SUFFIX = '.nx'


def read_program(path: Path) -> str:
    if path.suffix != SOURCE_SUFFIX:
        got = path.suffix or '(none)'
        print(f"Invalid file extension. Expected {SOURCE_SUFFIX}, got {got}", file=sys.stderr)
        sys.exit(1)
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Nexen language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('-s', '--source', action='store_true', help='treat PROGRAM as source text')
    parser.add_argument('-t', '--tokenize', action='store_true', help='print the token stream and exit')
    parser.add_argument('-d', '--debug', action='store_true', help='print the execution time')
    parser.add_argument('program', help='Nexen program file (.nx) to execute')
    args = parser.parse_args(argv)

    if args.source:
        origin = '<source>'
        source = args.program
    else:
        origin = args.program
        source = read_program(Path(args.program))

    try:
        if args.tokenize:
            tokenize(source)
            return
        elapsed = interpret(source, debug_level=args.v)
    except (ProgramError, NexenError) as e:
        print(f"[Interpreter] when executing {origin}: \n\n{e}", file=sys.stderr)
        sys.exit(1)

    if args.debug:
        print(f"Program finished\n-> Execution time: [{elapsed}]")


if __name__ == '__main__':
    main()
