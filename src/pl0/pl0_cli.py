"""
PL/0 CLI Entrypoint.

This module provides the command-line interface for running PL/0 programs.
It supports running source files, inline source strings, and an interactive prompt.

Example usage:
    pl0 hello.pl0
    pl0 -s "! 'Hello world'."
    pl0 -d program.pl0
    pl0 --prompt

Functions:
    setup_logging(debug: bool) -> None:
        Configures the root logger; debug mode shows evaluator tracing.

    run_pl0(source: str, is_string: bool = False, debug: bool = False) -> None:
        Parses and runs one program.

    main(argv: list[str] | None = None) -> None:
        Parses CLI arguments and invokes the appropriate action.
"""

import argparse
import logging
import sys

from pl0.pl0_errors import EvaluationError, ParseError, format_error
from pl0.pl0_eval import Evaluator
from pl0.pl0_parser import parse

__version__ = "1.0.0"

logger = logging.getLogger(__name__)


def setup_logging(debug: bool) -> None:
    logging.basicConfig(format="{levelname}: {message}", style="{")
    logging.getLogger().setLevel(logging.DEBUG if debug else logging.WARNING)


def run_pl0(source: str, is_string: bool = False, debug: bool = False) -> None:
    """
    Run a PL/0 program: read, parse, evaluate.

    Args:
        source (str): The PL/0 source code or a path to a source file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        debug (bool): If True, logs the parsed program tree before running it.

    Raises:
        OSError: If the source file cannot be read.
        ParseError: If the program does not parse.
        EvaluationError: If the program fails while running.
    """
    if not is_string:
        logger.debug("Reading %s", source)
        with open(source, encoding="utf-8") as f:
            source = f.read()

    program = parse(source)
    Evaluator(debug=debug).run(program)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pl0",
        description="An interpreter for an extended version of the PL/0 language.",
    )
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-d", "--debug", action="store_true", help="Enables debug mode."
    )
    parser.add_argument(
        "-p", "--prompt", action="store_true", help="Enters in prompt mode."
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s v{__version__}",
        help="Print the version info.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the PL/0 CLI.

    Launches the interactive prompt if no arguments are passed or `--prompt` is
    given; otherwise runs the program named by `source`. Parse and runtime errors
    are written to stderr as `<Kind>: ( line, column ) message` and exit with
    status 1.
    """
    argv = sys.argv[1:] if argv is None else argv
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.debug)

    if args.prompt or args.source is None:
        from pl0.pl0_repl import start_repl

        start_repl(debug=args.debug)
        return

    try:
        run_pl0(source=args.source, is_string=args.string, debug=args.debug)
    except (ParseError, EvaluationError) as e:
        print(format_error(e), file=sys.stderr)
        raise SystemExit(1) from e
    except OSError as e:
        print(f"An error occurred: {e}", file=sys.stderr)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
