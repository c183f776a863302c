from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pl0.pl0_ast import (
    Assignment,
    Begin,
    Binary,
    BinaryOperator,
    Block,
    Call,
    ComparisonOperator,
    Condition,
    DataType,
    ExitMarker,
    Identifier,
    If,
    Input,
    Literal,
    Print,
    ProcedureDeclaration,
    Program,
    Typecast,
    Unary,
    UnaryOperator,
    VariableDeclaration,
    VariableDeclarationGroup,
    While,
)
from pl0.pl0_constants import KEYWORDS
from pl0.pl0_errors import (
    MalformedFloatError,
    ParseError,
    UnexpectedTokenError,
    UnterminatedStringError,
)
from pl0.pl0_parser import Parser, parse, parse_fragment


def prune(node: Any) -> Any:
    """Strips positions so trees can be compared by shape."""
    if isinstance(node, list):
        return [prune(n) for n in node]
    if isinstance(node, dict):
        return {k: prune(v) for k, v in node.items() if k not in ("line", "col", "offset")}
    return node


def statements(source: str) -> tuple[Any, ...]:
    return parse(source).body.body


def expr_of(source: str) -> Any:
    """Parses `! <source> .` and returns the printed expression."""
    stmt = statements(f"! {source} .")[0]
    assert isinstance(stmt, Print)
    return stmt.expr


def test_dot_only_program_has_single_exit_marker() -> None:
    program = parse(".")
    assert isinstance(program, Program)
    assert program.body.body == (ExitMarker(0, 1, 1),)


def test_empty_source_fails() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected DOT"):
        parse("")


def test_trailing_tokens_after_dot_fail() -> None:
    with pytest.raises(UnexpectedTokenError, match="after the closing"):
        parse("! 1 . ! 2 .")


def test_missing_dot_reports_position() -> None:
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse("! 1\n! 2 .")
    assert (excinfo.value.line, excinfo.value.column) == (2, 1)
    assert "Expected DOT at end of program but got BANG" in str(excinfo.value)


def test_program_position_is_first_token() -> None:
    program = parse("\n  ! 1 .")
    assert (program.offset, program.line, program.col) == (3, 2, 3)
    assert (program.body.line, program.body.col) == (2, 3)


def test_constant_group() -> None:
    (group, marker) = statements("const a = 1, b = 2.5, c = 'x';.")
    assert isinstance(group, VariableDeclarationGroup)
    assert isinstance(marker, ExitMarker)
    names = [d.name for d in group.declarations]
    assert names == ["a", "b", "c"]
    assert all(d.is_constant for d in group.declarations)
    values = [(d.value.data_type, d.value.raw) for d in group.declarations]
    assert values == [
        (DataType.INTEGER, "1"),
        (DataType.FLOAT, "2.5"),
        (DataType.STRING, "x"),
    ]


def test_constant_with_radix_literal_keeps_decimal_text() -> None:
    (group, _) = statements("const a = 0x10;.")
    assert group.declarations[0].value.raw == "16"


def test_constant_without_value_fails() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected EQ"):
        parse("const a, b = 2;.")


def test_constant_with_expression_value_fails() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected an integer, float, or string"):
        parse("const a = b;.")


def test_constant_with_negative_value_fails() -> None:
    with pytest.raises(UnexpectedTokenError, match="but got SUB"):
        parse("const a = -1;.")


def test_constant_group_missing_separator() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected COMMA or SEMICOLON but got IDENT"):
        parse("const a = 1 b = 2;.")


def test_variable_group() -> None:
    (group, _) = statements("var x, y;.")
    assert group == VariableDeclarationGroup(
        0,
        1,
        1,
        declarations=(
            VariableDeclaration(4, 1, 5, name="x"),
            VariableDeclaration(7, 1, 8, name="y"),
        ),
    )


def test_variable_group_missing_semicolon() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected COMMA or SEMICOLON but got DOT"):
        parse("var x.")


def test_const_must_precede_var() -> None:
    with pytest.raises(ParseError):
        parse("var x; const a = 1;.")


def test_procedure_declaration() -> None:
    (proc, call, _) = statements("procedure p; ! 1; call p.")
    assert isinstance(proc, ProcedureDeclaration)
    assert proc.name == "p"
    assert isinstance(proc.body, Block)
    assert isinstance(proc.body.body[0], Print)
    assert call == Call(18, 1, 19, identifier=Identifier(23, 1, 24, name="p"))


def test_procedure_block_has_no_exit_marker() -> None:
    (proc, marker) = statements("procedure p; ! 1 .")
    assert isinstance(marker, ExitMarker)
    assert not any(isinstance(n, ExitMarker) for n in proc.body.body)


def test_nested_procedures_and_declarations() -> None:
    src = """
    var x;
    procedure outer;
        var y;
        procedure inner;
            y := 2;
        begin
            call inner;
            x := y
        end;
    call outer.
    """
    (vars_, outer, call, marker) = statements(src)
    assert isinstance(vars_, VariableDeclarationGroup)
    assert isinstance(outer, ProcedureDeclaration)
    assert isinstance(call, Call)
    assert isinstance(marker, ExitMarker)
    inner_vars, inner, begin = outer.body.body
    assert isinstance(inner_vars, VariableDeclarationGroup)
    assert inner.name == "inner"
    assert isinstance(begin, Begin)
    assert len(begin.body) == 2


def test_procedure_missing_name() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected IDENT after 'procedure'"):
        parse("procedure ; ! 1 .")


def test_assignment() -> None:
    (stmt, _) = statements("x := 1 + 2 .")
    assert isinstance(stmt, Assignment)
    assert stmt.identifier.name == "x"
    assert isinstance(stmt.expr, Binary)


def test_assignment_requires_assign_operator() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected ASSIGN"):
        parse("x = 1 .")


@pytest.mark.parametrize(  # type: ignore[misc]
    "source",
    ["call 1 .", "? 'x'.", "call .", "? ."],
)
def test_call_and_input_require_identifier(source: str) -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected IDENT"):
        parse(source)


def test_input_statement() -> None:
    (stmt, _) = statements("? x.")
    assert stmt == Input(0, 1, 1, identifier=Identifier(2, 1, 3, name="x"))


def test_begin_end() -> None:
    (stmt, _) = statements("begin ! 1; ! 2 end.")
    assert isinstance(stmt, Begin)
    assert [type(s) for s in stmt.body] == [Print, Print]


def test_begin_allows_empty_statements() -> None:
    (stmt, _) = statements("begin ; ! 1; end.")
    assert isinstance(stmt, Begin)
    assert len(stmt.body) == 1


def test_empty_begin() -> None:
    (stmt, _) = statements("begin end.")
    assert stmt == Begin(0, 1, 1, body=())


def test_unclosed_begin() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected END to close 'begin'"):
        parse("begin ! 1 .")


def test_if_statement() -> None:
    (stmt, _) = statements("if 1 < 2 then ! 'yes'.")
    assert isinstance(stmt, If)
    assert stmt.condition.operator is ComparisonOperator.LT
    assert isinstance(stmt.body, Print)


def test_if_with_empty_body() -> None:
    (stmt, _) = statements("if 1 = 1 then.")
    assert isinstance(stmt, If)
    assert stmt.body is None


def test_if_requires_then() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected THEN"):
        parse("if 1 = 1 ! 2 .")


def test_while_statement() -> None:
    (stmt, _) = statements("while odd x do x := x - 1 .")
    assert isinstance(stmt, While)
    assert stmt.condition.is_odd
    assert stmt.condition.operator is None
    assert stmt.condition.right is None
    assert isinstance(stmt.body, Assignment)


def test_while_requires_do() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected DO"):
        parse("while 1 = 1 then ! 1 .")


@pytest.mark.parametrize(  # type: ignore[misc]
    "text, op",
    [
        ("=", ComparisonOperator.EQ),
        ("#", ComparisonOperator.NE),
        ("<", ComparisonOperator.LT),
        (">", ComparisonOperator.GT),
        ("<=", ComparisonOperator.LE),
        (">=", ComparisonOperator.GE),
    ],
)
def test_comparison_operators(text: str, op: ComparisonOperator) -> None:
    (stmt, _) = statements(f"if a {text} b then.")
    assert stmt.condition == Condition(
        3,
        1,
        4,
        left=Identifier(3, 1, 4, name="a"),
        operator=op,
        right=Identifier(6 + len(text), 1, 7 + len(text), name="b"),
    )


def test_condition_requires_comparison() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected a comparison operator but got THEN"):
        parse("if a then ! 1 .")


def test_nested_unary() -> None:
    expr = expr_of("---1")
    assert isinstance(expr, Unary)
    assert isinstance(expr.operand, Unary)
    assert isinstance(expr.operand.operand, Unary)
    assert expr.operand.operand.operand == Literal(5, 1, 6, data_type=DataType.INTEGER, raw="1")
    assert expr.operator is UnaryOperator.MINUS


def test_unary_plus() -> None:
    expr = expr_of("+x")
    assert expr == Unary(2, 1, 3, operator=UnaryOperator.PLUS, operand=Identifier(3, 1, 4, name="x"))


def test_binary_is_right_associative() -> None:
    expr = expr_of("4 - 2 - 1")
    assert isinstance(expr, Binary)
    assert expr.operator is BinaryOperator.MINUS
    assert expr.left == Literal(2, 1, 3, data_type=DataType.INTEGER, raw="4")
    assert isinstance(expr.right, Binary)
    assert expr.right.left.raw == "2"
    assert expr.right.right.raw == "1"


def test_multiplication_binds_tighter() -> None:
    expr = expr_of("1 + 2 * 3")
    assert expr.operator is BinaryOperator.PLUS
    assert isinstance(expr.right, Binary)
    assert expr.right.operator is BinaryOperator.STAR

    expr = expr_of("1 * 2 + 3")
    assert expr.operator is BinaryOperator.PLUS
    assert isinstance(expr.left, Binary)
    assert expr.left.operator is BinaryOperator.STAR


def test_parentheses_group() -> None:
    expr = expr_of("(1 + 2) * 3")
    assert expr.operator is BinaryOperator.STAR
    assert isinstance(expr.left, Binary)
    assert expr.left.operator is BinaryOperator.PLUS


def test_binary_position_is_first_token() -> None:
    expr = expr_of("(1 + 2) * 3")
    assert (expr.offset, expr.col) == (2, 3)


def test_typecast_binds_to_factor() -> None:
    expr = expr_of("(int) '5' + 1")
    assert isinstance(expr, Binary)
    assert expr.left == Typecast(
        2,
        1,
        3,
        target_type=DataType.INTEGER,
        operand=Literal(8, 1, 9, data_type=DataType.STRING, raw="5"),
    )


@pytest.mark.parametrize(  # type: ignore[misc]
    "keyword, data_type",
    [("int", DataType.INTEGER), ("float", DataType.FLOAT), ("string", DataType.STRING)],
)
def test_typecast_targets(keyword: str, data_type: DataType) -> None:
    expr = expr_of(f"({keyword}) x")
    assert isinstance(expr, Typecast)
    assert expr.target_type is data_type


def test_typecast_of_parenthesized_expression() -> None:
    expr = expr_of("(float)(1 + 2)")
    assert isinstance(expr, Typecast)
    assert isinstance(expr.operand, Binary)


def test_unclosed_parenthesis() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected RPAREN to close expression"):
        parse("! (1 + 2 .")


def test_unclosed_typecast() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected RPAREN to close typecast"):
        parse("! (int 1 .")


def test_missing_expression() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected an expression but got DOT"):
        parse("x := .")


def test_invalid_token_in_expression() -> None:
    with pytest.raises(UnexpectedTokenError, match="Expected an expression but got INVALID"):
        parse("! @.")


def test_lexer_errors_propagate() -> None:
    with pytest.raises(UnterminatedStringError):
        parse("! 'abc.")
    with pytest.raises(MalformedFloatError):
        parse("! 2.")


def test_integer_then_spaced_dot_ends_program() -> None:
    (stmt, marker) = statements("! 2 .")
    assert stmt.expr.raw == "2"
    assert isinstance(marker, ExitMarker)


def test_exit_marker_after_semicolon() -> None:
    body = statements("x := 1;.")
    assert isinstance(body[-1], ExitMarker)
    assert body[-1].offset == 7


def test_parse_fragment_without_dot() -> None:
    block = parse_fragment("! 1")
    assert [type(n) for n in block.body] == [Print]


def test_parse_fragment_with_dot_marks_exit() -> None:
    block = parse_fragment("! 1 .")
    assert [type(n) for n in block.body] == [Print, ExitMarker]


def test_parse_fragment_rejects_trailing_tokens() -> None:
    with pytest.raises(UnexpectedTokenError, match="after statement"):
        parse_fragment("! 1 ! 2")


def test_parser_check_and_advance() -> None:
    parser = Parser.from_source("x := 1")
    assert parser.check(parser.current.type)
    tok = parser.advance()
    assert tok.value == "x"
    assert parser.current.value == ":="


def test_to_dict_of_parsed_program() -> None:
    tree = prune(parse("! 1 .").to_dict())
    assert tree == {
        "kind": "program",
        "body": {
            "kind": "block",
            "body": [
                {
                    "kind": "print",
                    "expr": {"kind": "literal", "data_type": "Integer", "raw": "1"},
                },
                {"kind": "exit_marker"},
            ],
        },
    }


@given(  # type: ignore[misc]
    st.from_regex(r"[a-z_][a-z0-9_]{0,8}", fullmatch=True).filter(lambda s: s not in KEYWORDS),
    st.integers(min_value=0, max_value=10**6),
)
def test_assignment_roundtrip(name: str, value: int) -> None:
    (stmt, _) = statements(f"{name} := {value} .")
    assert stmt.identifier.name == name
    assert stmt.expr.raw == str(value)


@given(st.text(alphabet="abx01:=+-*/();!?.,<>#' \n", max_size=40))  # type: ignore[misc]
def test_parser_only_raises_parse_errors(source: str) -> None:
    try:
        parse(source)
    except ParseError:
        pass


def test_deeply_nested_parentheses_parse() -> None:
    expr = expr_of("(" * 400 + "1" + ")" * 400)
    assert expr == Literal(402, 1, 403, data_type=DataType.INTEGER, raw="1")


def test_nesting_beyond_the_stack_is_a_syntax_error(shallow_stack: int) -> None:
    source = "! " + "(" * shallow_stack + "1" + ")" * shallow_stack + " ."
    with pytest.raises(UnexpectedTokenError, match="nested too deeply"):
        parse(source)
    with pytest.raises(UnexpectedTokenError, match="nested too deeply"):
        parse_fragment(source)
