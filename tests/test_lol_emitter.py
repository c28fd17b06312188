from typing import Any

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from lolcode.emitters.lol_emitter import LolEmitter
from lolcode.lolcode_ast import (
    AltArrayDefStmt,
    AssignmentStmt,
    Block,
    BreakStmt,
    CastExpr,
    CastStmt,
    Constant,
    ConstantType,
    DeallocationStmt,
    DeclarationStmt,
    Expression,
    ExprStmt,
    FuncCallExpr,
    FuncDefStmt,
    Identifier,
    IdentifierType,
    IfThenElseStmt,
    ImplicitVar,
    InputStmt,
    LoopStmt,
    OpExpr,
    OpType,
    PrintStmt,
    Program,
    ReturnStmt,
    Statement,
    SwitchStmt,
    TypeNode,
)
from lolcode.lolcode_parser import parse_source

SCALAR_TYPES = [t for t in ConstantType if t is not ConstantType.ARRAY]
FIXED_OPS = [op for op in OpType if op not in (OpType.NOT, OpType.CAT)]
VARIADIC = [OpType.AND, OpType.OR, OpType.CAT]
I = Identifier.direct("I")


def render(node: Program) -> str:
    emitter = LolEmitter()
    emitter.emit_program(node)
    return emitter.get_output()


def render_expr(node: Expression) -> str:
    return LolEmitter().emit_expr(node)


def render_stmt(node: Statement) -> str:
    return render(Program(Block([node]))).splitlines()[1]


# Strategies

names = st.from_regex(r"[a-z][a-z0-9_]{0,6}", fullmatch=True)

string_payloads = st.lists(
    st.one_of(
        st.text(alphabet="abcXYZ 019!,.?'", min_size=1, max_size=4),
        st.sampled_from([":)", ":>", ":o", ':"', "::", ":{var}"]),
    ),
    max_size=4,
).map("".join)

constants = st.one_of(
    st.integers(min_value=-(2**63), max_value=2**63 - 1).map(
        lambda n: Constant(ConstantType.INTEGER, n)
    ),
    st.floats(width=32, allow_nan=False, allow_infinity=False).map(
        lambda f: Constant(ConstantType.FLOAT, f)
    ),
    st.booleans().map(lambda b: Constant(ConstantType.BOOLEAN, b)),
    string_payloads.map(lambda s: Constant(ConstantType.STRING, s)),
)


@composite  # type: ignore[misc]
def identifiers(draw: Any, depth: int = 2) -> Identifier:
    if draw(st.integers(min_value=0, max_value=4)) == 0:
        name: Any = draw(string_payloads.map(lambda s: Constant(ConstantType.STRING, s)))
        type_ = IdentifierType.INDIRECT
    else:
        name = draw(names)
        type_ = IdentifierType.DIRECT
    slot = None
    if depth > 0 and draw(st.booleans()):
        slot = draw(identifiers(depth - 1))
    return Identifier(type_, name, slot=slot)


@composite  # type: ignore[misc]
def expressions(draw: Any, depth: int = 2) -> Expression:
    leaves = [constants, identifiers(), st.just(ImplicitVar())]
    if depth == 0:
        return draw(st.one_of(*leaves))
    sub = expressions(depth - 1)
    choice = draw(st.integers(min_value=0, max_value=7))
    if choice == 0:
        return OpExpr(OpType.NOT, [draw(sub)])
    if choice == 1:
        return OpExpr(draw(st.sampled_from(FIXED_OPS)), draw(st.lists(sub, min_size=2, max_size=2)))
    if choice == 2:
        return OpExpr(draw(st.sampled_from(VARIADIC)), draw(st.lists(sub, min_size=2, max_size=4)))
    if choice == 3:
        return CastExpr(draw(sub), TypeNode(draw(st.sampled_from(SCALAR_TYPES))))
    if choice == 4:
        scope = draw(st.one_of(st.just(I), identifiers()))
        return FuncCallExpr(scope, draw(identifiers()), draw(st.lists(sub, max_size=3)))
    return draw(st.one_of(*leaves))


@composite  # type: ignore[misc]
def loops(draw: Any, depth: int) -> LoopStmt:
    name = draw(identifiers())
    body = draw(blocks(depth - 1))
    var = update = None
    kind = draw(st.sampled_from(["none", "uppin", "nerfin", "func"]))
    if kind != "none":
        var = draw(identifiers())
        one = Constant(ConstantType.INTEGER, 1)
        if kind == "uppin":
            update: Any = OpExpr(OpType.ADD, [var, one])
        elif kind == "nerfin":
            update = OpExpr(OpType.SUB, [var, one])
        else:
            update = FuncCallExpr(I, draw(identifiers()), [var])
    guard = draw(st.none() | expressions(1))
    until = guard is not None and draw(st.booleans())
    return LoopStmt(name, body, var=var, update=update, guard=guard, until=until)


@composite  # type: ignore[misc]
def declarations(draw: Any) -> DeclarationStmt:
    scope = draw(st.one_of(st.just(I), identifiers()))
    target = draw(identifiers())
    form = draw(st.integers(min_value=0, max_value=4))
    if form == 1:
        return DeclarationStmt(scope, target, expr=draw(expressions()))
    if form == 2:
        return DeclarationStmt(scope, target, type_=TypeNode(draw(st.sampled_from(SCALAR_TYPES))))
    if form == 3:
        return DeclarationStmt(scope, target, expr=Constant(ConstantType.ARRAY))
    if form == 4:
        return DeclarationStmt(scope, target, parent=draw(identifiers()))
    return DeclarationStmt(scope, target)


@composite  # type: ignore[misc]
def statements(draw: Any, depth: int = 2) -> Statement:
    simple = [
        st.builds(PrintStmt, st.lists(expressions(), min_size=1, max_size=3), st.booleans()),
        st.builds(InputStmt, identifiers()),
        st.builds(AssignmentStmt, identifiers(), expressions()),
        declarations(),
        st.builds(CastStmt, identifiers(), st.sampled_from(SCALAR_TYPES).map(TypeNode)),
        st.just(BreakStmt()),
        st.builds(ReturnStmt, expressions()),
        st.builds(DeallocationStmt, identifiers()),
        st.builds(ExprStmt, expressions()),
    ]
    if depth == 0:
        return draw(st.one_of(*simple))
    inner = blocks(depth - 1)
    compound = [
        st.integers(min_value=0, max_value=2).flatmap(
            lambda n: st.builds(
                IfThenElseStmt,
                inner,
                st.none() | inner,
                st.lists(expressions(1), min_size=n, max_size=n),
                st.lists(inner, min_size=n, max_size=n),
            )
        ),
        st.integers(min_value=1, max_value=3).flatmap(
            lambda n: st.builds(
                SwitchStmt,
                st.lists(constants, min_size=n, max_size=n),
                st.lists(inner, min_size=n, max_size=n),
                st.none() | inner,
            )
        ),
        loops(depth),
        st.builds(
            FuncDefStmt,
            st.one_of(st.just(I), identifiers()),
            identifiers(),
            st.lists(identifiers(0), max_size=3),
            inner,
        ),
        st.builds(AltArrayDefStmt, identifiers(), blocks(depth - 1), st.none() | identifiers()),
    ]
    return draw(st.one_of(*simple, *compound))


@composite  # type: ignore[misc]
def blocks(draw: Any, depth: int = 2) -> Block:
    return Block(draw(st.lists(statements(depth), max_size=3)))


programs = blocks().map(Program)


# Round trip


@settings(max_examples=200, suppress_health_check=list(HealthCheck))  # type: ignore[misc]
@given(programs)  # type: ignore[misc]
def test_render_then_parse_is_identity(prog: Program) -> None:
    assert parse_source(render(prog)) == prog


@settings(max_examples=100, suppress_health_check=list(HealthCheck))  # type: ignore[misc]
@given(programs)  # type: ignore[misc]
def test_parse_render_parse_is_idempotent(prog: Program) -> None:
    text = render(prog)
    reparsed = parse_source(text)
    assert render(reparsed) == text


# Canonical forms


@pytest.mark.parametrize(  # type: ignore[misc]
    "node,text",
    [
        (Constant(ConstantType.INTEGER, -42), "-42"),
        (Constant(ConstantType.FLOAT, 1.5), "1.5"),
        (Constant(ConstantType.FLOAT, 1e-07), "0.0000001"),
        (Constant(ConstantType.FLOAT, 1e16), "10000000000000000.0"),
        (Constant(ConstantType.BOOLEAN, True), "WIN"),
        (Constant(ConstantType.BOOLEAN, False), "FAIL"),
        (Constant(ConstantType.STRING, 'a:"b'), '"a:"b"'),
        (ImplicitVar(), "IT"),
        (Identifier.direct("c", slot=Identifier.direct("b", slot=Identifier.direct("a"))), "a'Z b'Z c"),
        (Identifier(IdentifierType.INDIRECT, Identifier.direct("x")), "SRS x"),
        (OpExpr(OpType.NOT, [ImplicitVar()]), "NOT IT"),
        (OpExpr(OpType.NEQ, [ImplicitVar(), ImplicitVar()]), "DIFFRINT IT AN IT"),
        (OpExpr(OpType.AND, [ImplicitVar(), ImplicitVar()]), "BOTH OF IT AN IT"),
        (OpExpr(OpType.OR, [ImplicitVar()] * 3), "ANY OF IT AN IT AN IT MKAY"),
        (OpExpr(OpType.CAT, [ImplicitVar()] * 2), "SMOOSH IT AN IT MKAY"),
        (CastExpr(ImplicitVar(), TypeNode(ConstantType.NIL)), "MAEK IT A NOOB"),
        (FuncCallExpr(I, Identifier.direct("f")), "I IZ f MKAY"),
        (
            FuncCallExpr(I, Identifier.direct("f"), [ImplicitVar(), ImplicitVar()]),
            "I IZ f YR IT AN YR IT MKAY",
        ),
    ],
)
def test_expression_spelling(node: Expression, text: str) -> None:
    assert render_expr(node) == text


def test_program_layout() -> None:
    prog = parse_source(
        "HAI 1.2\n"
        "IM IN YR l UPPIN YR i TIL BOTH SAEM i AN 3\n"
        "O RLY?, YA RLY, VISIBLE i!, NO WAI, GTFO, OIC\n"
        "IM OUTTA YR l\n"
        "KTHXBYE\n"
    )
    assert render(prog) == (
        "HAI 1.2\n"
        "IM IN YR l UPPIN YR i TIL BOTH SAEM i AN 3\n"
        "    O RLY?\n"
        "    YA RLY\n"
        "        VISIBLE i!\n"
        "    NO WAI\n"
        "        GTFO\n"
        "    OIC\n"
        "IM OUTTA YR l\n"
        "KTHXBYE\n"
    )


@pytest.mark.parametrize(  # type: ignore[misc]
    "stmt,text",
    [
        (DeclarationStmt(I, Identifier.direct("x")), "I HAS A x"),
        (DeclarationStmt(I, Identifier.direct("x"), expr=Constant(ConstantType.ARRAY)), "I HAS A x ITZ A BUKKIT"),
        (DeclarationStmt(I, Identifier.direct("x"), type_=TypeNode(ConstantType.BOOLEAN)), "I HAS A x ITZ A TROOF"),
        (DeclarationStmt(I, Identifier.direct("x"), parent=Identifier.direct("p")), "I HAS A x ITZ LIEK A p"),
        (DeallocationStmt(Identifier.direct("x")), "x R NOOB"),
        (CastStmt(Identifier.direct("x"), TypeNode(ConstantType.FLOAT)), "x IS NOW A NUMBAR"),
        (
            LoopStmt(
                Identifier.direct("l"),
                Block(),
                var=Identifier.direct("i"),
                update=FuncCallExpr(I, Identifier.direct("twice"), [Identifier.direct("i")]),
                guard=ImplicitVar(),
            ),
            "IM IN YR l twice YR i WILE IT",
        ),
        (FuncDefStmt(I, Identifier.direct("f"), [Identifier.direct("a")], Block()), "HOW IZ I f YR a"),
        (AltArrayDefStmt(Identifier.direct("box"), Block(), Identifier.direct("base")), "O HAI IM box IM LIEK base"),
        (SwitchStmt([ImplicitVar()], [Block()]), "WTF?"),
    ],
)
def test_statement_spelling(stmt: Statement, text: str) -> None:
    assert render_stmt(stmt) == text


def test_nil_constant_has_no_spelling() -> None:
    with pytest.raises(ValueError, match="no literal spelling"):
        render_expr(Constant(ConstantType.NIL))


def test_indirect_over_slot_chain_is_rejected() -> None:
    name = Identifier.direct("b", slot=Identifier.direct("a"))
    with pytest.raises(ValueError, match="slot chain"):
        render_expr(Identifier(IdentifierType.INDIRECT, name))


def test_unspellable_loop_update_is_rejected() -> None:
    i = Identifier.direct("i")
    loop = LoopStmt(
        Identifier.direct("l"),
        Block(),
        var=i,
        update=OpExpr(OpType.ADD, [i, Constant(ConstantType.INTEGER, 2)]),
    )
    with pytest.raises(ValueError, match="no LOLCODE spelling"):
        render(Program(Block([loop])))


def test_loop_update_without_variable_is_rejected() -> None:
    loop = LoopStmt(Identifier.direct("l"), Block())
    with pytest.raises(ValueError, match="no loop variable"):
        LolEmitter()._loop_update(loop)


def test_conflicting_declaration_is_rejected() -> None:
    decl = DeclarationStmt(I, Identifier.direct("x"), expr=ImplicitVar(), parent=Identifier.direct("p"))
    with pytest.raises(ValueError, match="both initialise and inherit"):
        render_stmt(decl)


def test_unknown_node_kind() -> None:
    emitter = LolEmitter()
    with pytest.raises(NotImplementedError):
        emitter._visit(TypeNode(ConstantType.STRING))
    with pytest.raises(NotImplementedError):
        emitter.emit_expr(BreakStmt())
