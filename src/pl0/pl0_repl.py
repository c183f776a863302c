"""
Interactive prompt for the PL/0 interpreter.

Each entry is parsed as a block fragment and run on one long-lived `Evaluator`,
so declarations and variable values carry over from one entry to the next. Input
continues over several lines while a `begin` is still open.

Commands:
    exit, quit     leave the prompt
    debug-mode     toggle logging of each parsed fragment and scope activity
    .              end the session (a fragment ending in '.' also ends it)

Parse and runtime errors are printed and the session continues.
"""

import io
import traceback

from pl0.pl0_ast import ExitMarker, Program
from pl0.pl0_constants import TokenType
from pl0.pl0_cli import setup_logging
from pl0.pl0_errors import EvaluationError, ParseError, format_error
from pl0.pl0_eval import Evaluator
from pl0.pl0_lexer import tokenize
from pl0.pl0_parser import parse_fragment


def print_traceback() -> None:
    buf = io.StringIO()
    traceback.print_exc(file=buf)
    print("[error] >>>")
    print(buf.getvalue())


def open_blocks(text: str) -> int:
    """Net number of `begin`s the text opens.

    Only keyword tokens count, so `begin` inside a string or an identifier does
    not. Text that does not scan counts as balanced; the parser reports it.
    """
    depth = 0
    try:
        for tok in tokenize(text):
            if tok.type == TokenType.BEGIN:
                depth += 1
            elif tok.type == TokenType.END:
                depth -= 1
    except ParseError:
        return 0
    return depth


def read_entry() -> str | None:
    """Reads one entry, continuing while `begin`/`end` are unbalanced.

    Returns:
        str | None: The entry text, or None at end of input.
    """
    src_lines: list[str] = []
    while True:
        prompt = ">>> " if not src_lines else "... "
        try:
            line = input(prompt)
        except EOFError:
            return None if not src_lines else "\n".join(src_lines)
        src_lines.append(line)
        if open_blocks("\n".join(src_lines)) <= 0:
            return "\n".join(src_lines)


def run_entry(evaluator: Evaluator, src: str) -> bool:
    """Parses and runs one entry.

    Returns:
        bool: True if the entry ended the session with a closing '.'.
    """
    block = parse_fragment(src)
    evaluator.run(Program(block.offset, block.line, block.col, body=block))
    return bool(block.body) and isinstance(block.body[-1], ExitMarker)


def start_repl(debug: bool = False) -> None:
    print("PL/0 REPL. Type 'exit' or 'quit' to leave.")
    setup_logging(debug)
    evaluator = Evaluator(debug=debug)

    while True:
        try:
            src = read_entry()
        except KeyboardInterrupt:
            src = None
        if src is None:
            print("\nExiting PL/0 REPL.")
            return
        src = src.strip()
        if not src:
            continue
        if src in ("exit", "quit"):
            print("Exiting PL/0 REPL.")
            return
        if src.lower() == "debug-mode":
            evaluator.debug = not evaluator.debug
            setup_logging(evaluator.debug)
            print(f"[mode] >>> Debug mode {'ON' if evaluator.debug else 'OFF'}")
            continue

        try:
            finished = run_entry(evaluator, src)
        except (ParseError, EvaluationError) as e:
            print("[error] >>>")
            print(format_error(e))
            continue
        except Exception:
            print_traceback()
            continue

        if finished:
            print("Exiting PL/0 REPL.")
            return


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
