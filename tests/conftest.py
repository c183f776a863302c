import io
import sys
from collections.abc import Callable, Iterator

import pytest

import pl0.pl0_eval
import pl0.pl0_parser
from pl0.pl0_eval import Evaluator


def run_program(source: str, stdin: str = "") -> str:
    """Runs `source` on a fresh evaluator and returns everything it printed."""
    out = io.StringIO()
    Evaluator(out=out, in_=io.StringIO(stdin)).run_source(source)
    return out.getvalue()


@pytest.fixture  # type: ignore[misc]
def run() -> Callable[..., str]:
    return run_program


@pytest.fixture  # type: ignore[misc]
def shallow_stack(monkeypatch: pytest.MonkeyPatch) -> Iterator[int]:
    """Caps the Python stack low so runaway nesting overflows quickly."""
    limit = 1000
    monkeypatch.setattr(pl0.pl0_eval, "RECURSION_LIMIT", limit)
    monkeypatch.setattr(pl0.pl0_parser, "RECURSION_LIMIT", limit)
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(limit)
    yield limit
    sys.setrecursionlimit(previous)
