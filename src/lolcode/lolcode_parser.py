"""
LOLCODE Parser

Parses LOLCODE tokens into a validated abstract syntax tree.

This module implements a recursive-descent parser with one routine per grammar
production, composed top-down from `Program` to the atomic `Constant` and
`Identifier` productions. Multi-word keywords have already been folded into
single tokens by the lexer, so every production needs at most one token of
lookahead, except where several statements share a leading identifier.

Grammar
-------
- Program:    HAI <version> NEWLINE Block KTHXBYE
- Block:      Statement*  (stops at the first token that cannot begin a statement)
- Statements:
    * Cast:         <ident> IS NOW A <type>
    * Print:        VISIBLE <expr>+ [!]
    * Input:        GIMMEH <ident>
    * Assignment:   <ident> R <expr>
    * Declaration:  <ident> HAS A <ident> [ITZ <expr> | ITZ A <type> | ITZ A BUKKIT | ITZ LIEK A <ident>]
    * If:           O RLY? / YA RLY <block> (MEBBE <expr> <block>)* [NO WAI <block>] OIC
    * Switch:       WTF? (OMG <expr> <block>)+ [OMGWTF <block>] OIC
    * Break:        GTFO
    * Return:       FOUND YR <expr>
    * Loop:         IM IN YR <name> [(UPPIN|NERFIN|<func>) YR <var>] [(TIL|WILE) <expr>]
                    <block> IM OUTTA YR <name>
    * Deallocation: <ident> R NOOB
    * FuncDef:      HOW IZ <scope> <name> [YR <arg> (AN YR <arg>)*] <block> IF U SAY SO
    * AltArrayDef:  O HAI IM <name> [IM LIEK <parent>] <block> KTHX
    * Expression statement
- Expressions:
    * Cast:     MAEK <expr> [A] <type>
    * Call:     <scope> IZ <name> [YR <expr> (AN YR <expr>)*] MKAY
    * Unary:    NOT <expr>
    * Binary:   <op> <expr> [AN] <expr>
    * N-ary:    (ALL OF|ANY OF|SMOOSH) <expr> ([AN] <expr>)+ MKAY
    * Constants, identifiers (`a'Z b`, `SRS <expr>`), and `IT`

Parser Behavior
---------------
- Fail-fast: the first error is raised and parsing stops; nothing is
  recovered or guessed.
- Statements led by an identifier are tried in a fixed order (cast,
  declaration, assignment, deallocation, expression) with the cursor
  restored after each failed attempt. When every attempt fails, the error
  from the attempt that got furthest is raised, listing all expectations tied
  at that point.

Raises
------
UnexpectedTokenError
    A token did not have any of the expected categories.
NameMismatchError
    A loop was closed with a different name than it was opened with.
LolSyntaxError
    A numeric constant does not fit its type.
"""

from __future__ import annotations

import copy
import logging
import struct
from collections.abc import Callable, Sequence
from typing import TypeVar

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
    INT64_MAX,
    INT64_MIN,
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
from lolcode.lolcode_errors import (
    LolSyntaxError,
    NameMismatchError,
    UnexpectedTokenError,
)
from lolcode.lolcode_keywords import (
    BOOLEAN_LITERALS,
    binary_ops,
    describe,
    nary_ops,
    type_keywords,
    unary_ops,
)
from lolcode.lolcode_lexer import Token, tokenize

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONSTANT_TYPES = ("INTEGER", "FLOAT", "STRING", "BOOLEAN")
IDENTIFIER_STARTS = ("IDENTIFIER", "SRS")
EXPRESSION_STARTS: tuple[str, ...] = (
    *CONSTANT_TYPES,
    *IDENTIFIER_STARTS,
    "IT",
    "MAEK",
    *unary_ops,
    *binary_ops,
    *nary_ops,
)


class TokenCursor:
    """
    Read position over a finite token sequence.

    The cursor never looks further than the current token. Productions that
    need to reconsider an alternative save the position with `mark()` and
    restore it with `reset()`.

    Attributes
    ----------
    tokens : list[Token]
        The token sequence, normally terminated by an EOF token.
    position : int
        Index of the current token.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self.tokens: list[Token] = list(tokens)
        self.position: int = 0

    def current(self) -> Token:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        last = self.tokens[-1] if self.tokens else Token("EOF")
        return Token("EOF", "", last.line, last.col, last.fname)

    def match(self, *types: str) -> bool:
        """True iff the current token has one of `types`; never advances."""
        return self.current().type in types

    def accept(self, *types: str) -> Token | None:
        """Consume and return the current token if it has one of `types`."""
        tok = self.current()
        if tok.type in types:
            self.position += 1
            return tok
        return None

    def expect(self, *types: str, hint: str | None = None) -> Token:
        """Consume and return the current token, or fail if it has none of `types`."""
        tok = self.accept(*types)
        if tok is None:
            raise self.fail(*types, hint=hint)
        return tok

    def fail(self, *expected: str, hint: str | None = None, what: str | None = None) -> UnexpectedTokenError:
        """Build the error for an unexpected current token."""
        return UnexpectedTokenError(
            tuple(expected), self.current(), self.position, hint=hint, what=what
        )

    def mark(self) -> int:
        return self.position

    def reset(self, mark: int) -> None:
        self.position = mark


class Parser:
    """
    LOLCODE Parser Class

    Transforms a token sequence into a `Program` tree.

    Attributes
    ----------
    cursor : TokenCursor
        Read position over the input tokens.
    statement_keywords : dict[str, Callable[[], Statement]]
        Statement productions selected by their leading keyword.
    identifier_statements : tuple[Callable[[], Statement], ...]
        Statement productions that begin with an identifier, most specific first.

    Methods
    -------
    parse() -> Program
        Parse a complete program.
    parse_block() -> Block
        Parse statements up to the enclosing construct's terminator.
    parse_statement() -> Statement
        Parse a single statement.
    parse_expression() -> Expression
        Parse a single expression.
    parse_identifier() -> Identifier
        Parse a direct, indirect, or slot-qualified identifier.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self.cursor = TokenCursor(tokens)
        self.statement_keywords: dict[str, Callable[[], Statement]] = {
            "VISIBLE": self.parse_print,
            "GIMMEH": self.parse_input,
            "ORLY": self.parse_if,
            "WTF": self.parse_switch,
            "GTFO": self.parse_break,
            "FOUNDYR": self.parse_return,
            "IMINYR": self.parse_loop,
            "HOWIZ": self.parse_func_def,
            "OHAIIM": self.parse_alt_array_def,
        }
        self.identifier_statements: tuple[Callable[[], Statement], ...] = (
            self.parse_cast_stmt,
            self.parse_declaration,
            self.parse_assignment,
            self.parse_deallocation,
            self.parse_expr_stmt,
        )

    # Helpers

    def can_start_expression(self) -> bool:
        return self.cursor.match(*EXPRESSION_STARTS)

    def can_start_statement(self) -> bool:
        return self.cursor.match(*self.statement_keywords) or self.can_start_expression()

    def parse_first(self, *productions: Callable[[], T]) -> T:
        """Return the result of the first production that parses.

        The cursor is restored after every failed attempt. Only token
        mismatches trigger the next alternative; any other error propagates.
        """
        failures: list[UnexpectedTokenError] = []
        for production in productions:
            mark = self.cursor.mark()
            try:
                return production()
            except UnexpectedTokenError as exc:
                logger.debug("backtracking from %s: %s", production.__name__, exc.message)
                self.cursor.reset(mark)
                failures.append(exc)
        raise UnexpectedTokenError.merge(failures)

    # Program structure

    def parse(self) -> Program:
        """Parse a full program: `HAI <version>`, the main block, and `KTHXBYE`."""
        self.cursor.expect("HAI", hint="programs start with HAI <version>")
        self.cursor.expect("FLOAT", "INTEGER", hint="HAI is followed by a version such as 1.2")
        self.cursor.expect("NEWLINE")
        body = self.parse_block()
        self.cursor.expect("KTHXBYE", hint="programs end with KTHXBYE")
        self.cursor.accept("NEWLINE")
        self.cursor.expect("EOF")
        logger.debug("parsed program with %d top-level statements", len(body.stmts))
        return Program(body)

    def parse_block(self) -> Block:
        """Parse statements until a token that cannot begin one; the terminator is left for the caller."""
        stmts: list[Statement] = []
        while self.can_start_statement():
            stmts.append(self.parse_statement())
        return Block(stmts)

    def parse_statement(self) -> Statement:
        """Parse a single statement, dispatching on its first token."""
        tok = self.cursor.current()
        logger.debug("%s:%s: statement starting with %s", tok.fname, tok.line, tok.type)

        production = self.statement_keywords.get(tok.type)
        if production is not None:
            return production()
        if tok.type in IDENTIFIER_STARTS:
            return self.parse_first(*self.identifier_statements)
        if tok.type in EXPRESSION_STARTS:
            return self.parse_expr_stmt()
        raise self.cursor.fail(
            *self.statement_keywords, *EXPRESSION_STARTS, what="a statement"
        )

    # Statements

    def parse_cast_stmt(self) -> CastStmt:
        """Parse `<ident> IS NOW A <type>`."""
        target = self.parse_identifier()
        self.cursor.expect("ISNOWA")
        newtype = self.parse_type()
        self.cursor.expect("NEWLINE")
        return CastStmt(target, newtype)

    def parse_print(self) -> PrintStmt:
        """Parse `VISIBLE <expr>+ [!]`; the bang suppresses the trailing newline."""
        self.cursor.expect("VISIBLE")
        args = [self.parse_expression()]
        while self.can_start_expression():
            args.append(self.parse_expression())
        nonl = self.cursor.accept("BANG") is not None
        self.cursor.expect("NEWLINE")
        return PrintStmt(args, nonl=nonl)

    def parse_input(self) -> InputStmt:
        self.cursor.expect("GIMMEH")
        target = self.parse_identifier()
        self.cursor.expect("NEWLINE")
        return InputStmt(target)

    def parse_assignment(self) -> AssignmentStmt:
        target = self.parse_identifier()
        self.cursor.expect("R")
        expr = self.parse_expression()
        self.cursor.expect("NEWLINE")
        return AssignmentStmt(target, expr)

    def parse_declaration(self) -> DeclarationStmt:
        """Parse `<scope> HAS A <target>` with its optional initialization."""
        scope = self.parse_identifier()
        self.cursor.expect("HASA")
        target = self.parse_identifier()

        expr: Expression | None = None
        type_: TypeNode | None = None
        parent: Identifier | None = None
        if self.cursor.accept("ITZ"):
            expr = self.parse_expression()
        elif self.cursor.accept("ITZA"):
            if self.cursor.accept("BUKKIT"):
                expr = Constant(ConstantType.ARRAY)
            else:
                type_ = self.parse_type(allow_array=True)
        elif self.cursor.accept("ITZLIEKA"):
            parent = self.parse_identifier()
        elif not self.cursor.match("NEWLINE"):
            raise self.cursor.fail("ITZ", "ITZA", "ITZLIEKA", "NEWLINE")

        self.cursor.expect("NEWLINE")
        return DeclarationStmt(scope, target, expr=expr, type_=type_, parent=parent)

    def parse_if(self) -> IfThenElseStmt:
        """Parse `O RLY?` with its YA RLY, MEBBE and NO WAI branches."""
        self.cursor.expect("ORLY")
        self.cursor.expect("NEWLINE")
        self.cursor.expect("YARLY")
        self.cursor.expect("NEWLINE")
        yes = self.parse_block()

        guards: list[Expression] = []
        blocks: list[Block] = []
        while self.cursor.accept("MEBBE"):
            guards.append(self.parse_expression())
            self.cursor.expect("NEWLINE")
            blocks.append(self.parse_block())

        no: Block | None = None
        if self.cursor.accept("NOWAI"):
            self.cursor.expect("NEWLINE")
            no = self.parse_block()

        self.cursor.expect("OIC")
        self.cursor.expect("NEWLINE")
        return IfThenElseStmt(yes, no=no, guards=guards, blocks=blocks)

    def parse_switch(self) -> SwitchStmt:
        """Parse `WTF?` with one or more OMG cases and an optional OMGWTF."""
        self.cursor.expect("WTF")
        self.cursor.expect("NEWLINE")

        guards: list[Expression] = []
        blocks: list[Block] = []
        self.cursor.expect("OMG", hint="WTF? needs at least one OMG case")
        while True:
            guards.append(self.parse_expression())
            self.cursor.expect("NEWLINE")
            blocks.append(self.parse_block())
            if not self.cursor.accept("OMG"):
                break

        default: Block | None = None
        if self.cursor.accept("OMGWTF"):
            self.cursor.expect("NEWLINE")
            default = self.parse_block()

        self.cursor.expect("OIC")
        self.cursor.expect("NEWLINE")
        return SwitchStmt(guards, blocks, default=default)

    def parse_break(self) -> BreakStmt:
        self.cursor.expect("GTFO")
        self.cursor.expect("NEWLINE")
        return BreakStmt()

    def parse_return(self) -> ReturnStmt:
        self.cursor.expect("FOUNDYR")
        value = self.parse_expression()
        self.cursor.expect("NEWLINE")
        return ReturnStmt(value)

    def parse_loop(self) -> LoopStmt:
        """Parse `IM IN YR ... IM OUTTA YR`, checking that both names agree."""
        self.cursor.expect("IMINYR")
        name = self.parse_identifier()

        var: Identifier | None = None
        update: OpExpr | FuncCallExpr | None = None
        op = self.cursor.accept("UPPIN", "NERFIN")
        if op is not None:
            self.cursor.expect("YR")
            var = self.parse_identifier()
            step = OpType.ADD if op.type == "UPPIN" else OpType.SUB
            update = OpExpr(step, [copy.deepcopy(var), Constant(ConstantType.INTEGER, 1)])
        elif self.cursor.match(*IDENTIFIER_STARTS):
            scope_tok = self.cursor.current()
            func = self.parse_identifier()
            self.cursor.expect("YR", hint="a loop update is <operation> YR <variable>")
            var = self.parse_identifier()
            scope = Identifier.direct("I", fname=scope_tok.fname, line=scope_tok.line)
            update = FuncCallExpr(scope, func, [copy.deepcopy(var)])

        guard: Expression | None = None
        until = False
        polarity = self.cursor.accept("TIL", "WILE")
        if polarity is not None:
            guard = self.parse_expression()
            until = polarity.type == "TIL"

        self.cursor.expect("NEWLINE")
        body = self.parse_block()
        self.cursor.expect("IMOUTTAYR", hint=f"loop {name.display()} is closed by IM OUTTA YR")
        closing_tok = self.cursor.current()
        closing = self.parse_identifier()
        if closing != name:
            raise NameMismatchError(
                name.display(),
                closing.display(),
                fname=closing_tok.fname,
                line=closing_tok.line,
                col=closing_tok.col,
            )
        self.cursor.expect("NEWLINE")
        return LoopStmt(name, body, var=var, update=update, guard=guard, until=until)

    def parse_deallocation(self) -> DeallocationStmt:
        target = self.parse_identifier()
        self.cursor.expect("RNOOB")
        self.cursor.expect("NEWLINE")
        return DeallocationStmt(target)

    def parse_func_def(self) -> FuncDefStmt:
        """Parse `HOW IZ <scope> <name> [YR <arg> (AN YR <arg>)*] ... IF U SAY SO`."""
        self.cursor.expect("HOWIZ")
        scope = self.parse_identifier()
        name = self.parse_identifier()
        args: list[Identifier] = []
        if self.cursor.accept("YR"):
            args.append(self.parse_identifier())
            while self.cursor.accept("ANYR"):
                args.append(self.parse_identifier())
        self.cursor.expect("NEWLINE")
        body = self.parse_block()
        self.cursor.expect("IFUSAYSO", hint=f"function {name.display()} is closed by IF U SAY SO")
        self.cursor.expect("NEWLINE")
        return FuncDefStmt(scope, name, args, body)

    def parse_expr_stmt(self) -> ExprStmt:
        expr = self.parse_expression()
        self.cursor.expect("NEWLINE")
        return ExprStmt(expr)

    def parse_alt_array_def(self) -> AltArrayDefStmt:
        """Parse `O HAI IM <name> [IM LIEK <parent>] ... KTHX`."""
        self.cursor.expect("OHAIIM")
        name = self.parse_identifier()
        parent = self.parse_identifier() if self.cursor.accept("IMLIEK") else None
        self.cursor.expect("NEWLINE")
        body = self.parse_block()
        self.cursor.expect("KTHX", hint=f"array {name.display()} is closed by KTHX")
        self.cursor.expect("NEWLINE")
        return AltArrayDefStmt(name, body, parent=parent)

    # Expressions

    def parse_expression(self, slots: bool = True) -> Expression:
        """Parse a single expression.

        Args:
            slots: Whether a leading identifier may take `'Z` qualifiers.
                Disabled for the operand of `SRS` so that `SRS x'Z y` names
                slot `y` of the object named by `x`.
        """
        tok = self.cursor.current()
        if tok.type == "MAEK":
            return self.parse_cast_expr()
        if tok.type in CONSTANT_TYPES:
            return self.parse_constant()
        if tok.type == "IT":
            self.cursor.expect("IT")
            return ImplicitVar()
        if tok.type in unary_ops or tok.type in binary_ops or tok.type in nary_ops:
            return self.parse_op_expr()
        if tok.type in IDENTIFIER_STARTS:
            ident = self.parse_identifier(slots=slots)
            if self.cursor.accept("IZ"):
                return self.parse_func_call(ident)
            return ident
        raise self.cursor.fail(*EXPRESSION_STARTS, what="an expression")

    def parse_cast_expr(self) -> CastExpr:
        """Parse `MAEK <expr> [A] <type>`."""
        self.cursor.expect("MAEK")
        target = self.parse_expression()
        self.cursor.accept("A")
        return CastExpr(target, self.parse_type())

    def parse_constant(self) -> Constant:
        """Parse an INTEGER, FLOAT, STRING or BOOLEAN literal."""
        tok = self.cursor.expect(*CONSTANT_TYPES)
        if tok.type == "INTEGER":
            value = int(tok.value)
            if not INT64_MIN <= value <= INT64_MAX:
                raise LolSyntaxError(
                    f"integer constant {tok.value} does not fit in 64 bits",
                    fname=tok.fname,
                    line=tok.line,
                    col=tok.col,
                )
            return Constant(ConstantType.INTEGER, value)
        if tok.type == "FLOAT":
            try:
                (single,) = struct.unpack("<f", struct.pack("<f", float(tok.value)))
            except OverflowError:
                raise LolSyntaxError(
                    f"float constant {tok.value} is out of range",
                    fname=tok.fname,
                    line=tok.line,
                    col=tok.col,
                ) from None
            return Constant(ConstantType.FLOAT, single)
        if tok.type == "BOOLEAN":
            return Constant(ConstantType.BOOLEAN, BOOLEAN_LITERALS[tok.value])
        return Constant(ConstantType.STRING, tok.value)

    def parse_op_expr(self) -> OpExpr:
        """Parse a unary, binary, or N-ary operator application."""
        tok = self.cursor.expect(*unary_ops, *binary_ops, *nary_ops)

        if tok.type in unary_ops:
            return OpExpr(OpType[unary_ops[tok.type]], [self.parse_expression()])

        if tok.type in binary_ops:
            left = self.parse_expression()
            self.cursor.accept("AN")
            right = self.parse_expression()
            return OpExpr(OpType[binary_ops[tok.type]], [left, right])

        args = [self.parse_expression()]
        while not self.cursor.match("MKAY"):
            if not self.cursor.accept("AN") and not self.can_start_expression():
                raise self.cursor.fail(
                    "MKAY", hint=f"{describe(tok.type)} operands end with MKAY"
                )
            args.append(self.parse_expression())
        if len(args) < 2:
            raise self.cursor.fail(
                *EXPRESSION_STARTS,
                what="an expression",
                hint=f"{describe(tok.type)} needs at least two operands",
            )
        self.cursor.expect("MKAY")
        return OpExpr(OpType[nary_ops[tok.type]], args)

    def parse_func_call(self, scope: Identifier) -> FuncCallExpr:
        """Parse the rest of `<scope> IZ <name> [YR <expr> (AN YR <expr>)*] MKAY`."""
        name = self.parse_identifier()
        args: list[Expression] = []
        if self.cursor.accept("YR"):
            args.append(self.parse_expression())
            while self.cursor.accept("ANYR"):
                args.append(self.parse_expression())
        self.cursor.expect("MKAY")
        return FuncCallExpr(scope, name, args)

    # Atoms

    def parse_identifier(self, slots: bool = True) -> Identifier:
        """Parse an identifier, folding `a'Z b'Z c` into `c` within `b` within `a`."""
        ident = self.parse_identifier_base()
        while slots and self.cursor.accept("APOSTROPHEZ"):
            ident = self.parse_identifier_base(slot=ident)
        return ident

    def parse_identifier_base(self, slot: Identifier | None = None) -> Identifier:
        """Parse a plain name or `SRS <expr>`."""
        tok = self.cursor.accept("IDENTIFIER")
        if tok is not None:
            return Identifier(
                IdentifierType.DIRECT, tok.value, slot=slot, fname=tok.fname, line=tok.line
            )
        tok = self.cursor.accept("SRS")
        if tok is not None:
            expr = self.parse_expression(slots=False)
            return Identifier(
                IdentifierType.INDIRECT, expr, slot=slot, fname=tok.fname, line=tok.line
            )
        raise self.cursor.fail(*IDENTIFIER_STARTS)

    def parse_type(self, allow_array: bool = False) -> TypeNode:
        """Parse one of NOOB, TROOF, NUMBR, NUMBAR, YARN."""
        tok = self.cursor.accept(*type_keywords)
        if tok is not None:
            return TypeNode(ConstantType[type_keywords[tok.type]])
        expected = (*type_keywords, "BUKKIT") if allow_array else tuple(type_keywords)
        hint = None
        if self.cursor.match("BUKKIT"):
            hint = "BUKKIT is not a cast target; declare arrays with ITZ A BUKKIT"
        raise self.cursor.fail(*expected, hint=hint)


def parse_source(source: str, fname: str = "<string>") -> Program:
    """Lex and parse `source` in one call."""
    return Parser(tokenize(source, fname)).parse()


__all__ = ["EXPRESSION_STARTS", "Parser", "TokenCursor", "parse_source"]
