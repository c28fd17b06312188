"""
Renders LOLCODE AST nodes back into canonical LOLCODE source.

This module defines the `LolEmitter` class, used by the `Transpiler` to turn a
parsed `Program` into source text that parses back to an equal tree. Keywords
are spelled exactly as in the keyword table and every block level is indented
by four spaces.

Canonical Forms:
    - Binary operators always separate their operands with `AN`.
    - AND/OR with two operands render as `BOTH OF` / `EITHER OF`; with more,
      as `ALL OF ... MKAY` / `ANY OF ... MKAY`.
    - `MAEK` casts always include the optional `A`.
    - Floats are written in positional notation with at least one decimal.
    - Strings are written with their raw payload, escapes included.

Raises:
    - `ValueError`: If a node has no LOLCODE spelling, e.g. a loop update that
      is not `UPPIN`/`NERFIN`/`<func> YR`, or an indirect name whose
      expression is itself slot-qualified.
    - `NotImplementedError`: If a node kind has no emitter method.
"""

from decimal import Decimal

from lolcode.lolcode_ast import (
    AltArrayDefStmt,
    AssignmentStmt,
    ASTNode,
    Block,
    BreakStmt,
    CastExpr,
    CastStmt,
    Constant,
    ConstantType,
    DeallocationStmt,
    DeclarationStmt,
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
    SwitchStmt,
    TypeNode,
)
from lolcode.lolcode_keywords import binary_ops, keyword_table, nary_ops, type_keywords, unary_ops

BINARY_SPELLING = {op: keyword_table[cat] for cat, op in binary_ops.items()}
NARY_SPELLING = {op: keyword_table[cat] for cat, op in nary_ops.items()}
UNARY_SPELLING = {op: keyword_table[cat] for cat, op in unary_ops.items()}
TYPE_SPELLING = {name: keyword_table[cat] for cat, name in type_keywords.items()}


class LolEmitter:
    """Emits LOLCODE source from AST nodes.

    Attributes:
        lines (list[str]): Accumulated lines of emitted source.
        indent (int): Current block nesting level.
        version (str): Language version written after `HAI`.

    Methods:
        get_output(): Returns the emitted program as a string.
        emit_expr(node): Renders an expression node.
        emit_block(node): Emits the statements of a block one level deeper.
    """

    def __init__(self, version: str = "1.2") -> None:
        self.lines: list[str] = []
        self.indent = 0
        self.version = version

    def indent_str(self) -> str:
        return "    " * self.indent

    def line(self, text: str) -> None:
        self.lines.append(f"{self.indent_str()}{text}")

    def get_output(self) -> str:
        return "\n".join(self.lines) + "\n"

    # Expressions

    def emit_expr(self, node: ASTNode) -> str:
        """
        Dispatches expression rendering based on node kind.

        Parameters
        ----------
        node : ASTNode
            The expression node to render.

        Returns
        -------
        str
            The LOLCODE text of the expression.

        Raises
        ------
        NotImplementedError
            If no renderer exists for the node kind.
        """
        method = getattr(self, f"emit_expr_{node.kind}", None)
        if not callable(method):
            raise NotImplementedError(f"No expression emitter for kind '{node.kind}'")
        # pylint: disable=not-callable
        return str(method(node))

    def emit_expr_constant(self, node: Constant) -> str:
        if node.type is ConstantType.INTEGER:
            return str(node.value)
        if node.type is ConstantType.FLOAT:
            text = format(Decimal(repr(node.value)), "f")
            return text if "." in text else text + ".0"
        if node.type is ConstantType.BOOLEAN:
            return "WIN" if node.value else "FAIL"
        if node.type is ConstantType.STRING:
            return f'"{node.value}"'
        raise ValueError(f"{node.type.name} constants have no literal spelling")

    def emit_expr_identifier(self, node: Identifier) -> str:
        """
        Renders a direct, indirect, or slot-qualified identifier.

        Parameters
        ----------
        node : Identifier
            The identifier to render.

        Returns
        -------
        str
            `name`, `SRS <expr>`, or `<slot>'Z <name>`.
        """
        if node.type is IdentifierType.DIRECT:
            own = str(node.name)
        else:
            if isinstance(node.name, Identifier) and node.name.slot is not None:
                raise ValueError(
                    f"indirect name {node.name.display()} would be read as a slot chain"
                )
            own = f"SRS {self.emit_expr(node.name)}"
        if node.slot is None:
            return own
        return f"{self.emit_expr(node.slot)}'Z {own}"

    def emit_expr_type(self, node: TypeNode) -> str:
        return TYPE_SPELLING[node.type.name]

    def emit_expr_cast_expr(self, node: CastExpr) -> str:
        return f"MAEK {self.emit_expr(node.target)} A {self.emit_expr(node.newtype)}"

    def emit_expr_func_call(self, node: FuncCallExpr) -> str:
        call = f"{self.emit_expr(node.scope)} IZ {self.emit_expr(node.name)}"
        if node.args:
            call += " YR " + " AN YR ".join(self.emit_expr(a) for a in node.args)
        return call + " MKAY"

    def emit_expr_op(self, node: OpExpr) -> str:
        """
        Renders an operator application in prefix form.

        Parameters
        ----------
        node : OpExpr
            The operator node.

        Returns
        -------
        str
            The rendered expression, e.g. `SUM OF a AN b` or `SMOOSH a AN b MKAY`.
        """
        args = [self.emit_expr(a) for a in node.args]
        if node.op.name in UNARY_SPELLING:
            return f"{UNARY_SPELLING[node.op.name]} {args[0]}"
        if len(args) == 2 and node.op.name in BINARY_SPELLING:
            return f"{BINARY_SPELLING[node.op.name]} {args[0]} AN {args[1]}"
        return f"{NARY_SPELLING[node.op.name]} {' AN '.join(args)} MKAY"

    def emit_expr_implicit(self, node: ImplicitVar) -> str:
        return "IT"

    # Structure

    def emit_program(self, node: Program) -> None:
        self.lines.append(f"HAI {self.version}")
        for stmt in node.body.stmts:
            self._visit(stmt)
        self.lines.append("KTHXBYE")

    def emit_block(self, node: Block) -> None:
        self.indent += 1
        for stmt in node.stmts:
            self._visit(stmt)
        self.indent -= 1

    # Statements

    def emit_cast_stmt(self, node: CastStmt) -> None:
        self.line(f"{self.emit_expr(node.target)} IS NOW A {self.emit_expr(node.newtype)}")

    def emit_print(self, node: PrintStmt) -> None:
        text = "VISIBLE " + " ".join(self.emit_expr(a) for a in node.args)
        self.line(text + "!" if node.nonl else text)

    def emit_input(self, node: InputStmt) -> None:
        self.line(f"GIMMEH {self.emit_expr(node.target)}")

    def emit_assignment(self, node: AssignmentStmt) -> None:
        self.line(f"{self.emit_expr(node.target)} R {self.emit_expr(node.expr)}")

    def emit_declaration(self, node: DeclarationStmt) -> None:
        """
        Emits `<scope> HAS A <target>` with its initializer, if any.

        An `ARRAY` constant initializer is written as `ITZ A BUKKIT`.
        """
        text = f"{self.emit_expr(node.scope)} HAS A {self.emit_expr(node.target)}"
        if isinstance(node.expr, Constant) and node.expr.type is ConstantType.ARRAY:
            text += " ITZ A BUKKIT"
        elif node.expr is not None:
            text += f" ITZ {self.emit_expr(node.expr)}"
        elif node.type is not None:
            text += f" ITZ A {self.emit_expr(node.type)}"
        if node.parent is not None:
            if node.expr is not None or node.type is not None:
                raise ValueError("a declaration cannot both initialise and inherit")
            text += f" ITZ LIEK A {self.emit_expr(node.parent)}"
        self.line(text)

    def emit_if(self, node: IfThenElseStmt) -> None:
        self.line("O RLY?")
        self.line("YA RLY")
        self.emit_block(node.yes)
        for guard, block in zip(node.guards, node.blocks):
            self.line(f"MEBBE {self.emit_expr(guard)}")
            self.emit_block(block)
        if node.no is not None:
            self.line("NO WAI")
            self.emit_block(node.no)
        self.line("OIC")

    def emit_switch(self, node: SwitchStmt) -> None:
        self.line("WTF?")
        for guard, block in zip(node.guards, node.blocks):
            self.line(f"OMG {self.emit_expr(guard)}")
            self.emit_block(block)
        if node.default is not None:
            self.line("OMGWTF")
            self.emit_block(node.default)
        self.line("OIC")

    def emit_break(self, node: BreakStmt) -> None:
        self.line("GTFO")

    def emit_return(self, node: ReturnStmt) -> None:
        self.line(f"FOUND YR {self.emit_expr(node.value)}")

    def emit_loop(self, node: LoopStmt) -> None:
        """
        Emits a named loop with its update and guard clauses.

        Parameters
        ----------
        node : LoopStmt
            The loop node.

        Raises
        ------
        ValueError
            If the update has no `UPPIN`, `NERFIN`, or `<func> YR` spelling.
        """
        name = self.emit_expr(node.name)
        header = f"IM IN YR {name}"
        if node.update is not None:
            header += f" {self._loop_update(node)}"
        if node.guard is not None:
            header += f" {'TIL' if node.until else 'WILE'} {self.emit_expr(node.guard)}"
        self.line(header)
        self.emit_block(node.body)
        self.line(f"IM OUTTA YR {name}")

    def _loop_update(self, node: LoopStmt) -> str:
        var = node.var
        update = node.update
        if var is None:
            raise ValueError("loop update has no loop variable")
        one = Constant(ConstantType.INTEGER, 1)
        if isinstance(update, OpExpr) and update.args == (var, one):
            if update.op is OpType.ADD:
                return f"UPPIN YR {self.emit_expr(var)}"
            if update.op is OpType.SUB:
                return f"NERFIN YR {self.emit_expr(var)}"
        if (
            isinstance(update, FuncCallExpr)
            and update.scope == Identifier.direct("I")
            and update.args == (var,)
        ):
            return f"{self.emit_expr(update.name)} YR {self.emit_expr(var)}"
        raise ValueError(f"loop update {update!r} has no LOLCODE spelling")

    def emit_deallocation(self, node: DeallocationStmt) -> None:
        self.line(f"{self.emit_expr(node.target)} R NOOB")

    def emit_func_def(self, node: FuncDefStmt) -> None:
        header = f"HOW IZ {self.emit_expr(node.scope)} {self.emit_expr(node.name)}"
        if node.args:
            header += " YR " + " AN YR ".join(self.emit_expr(a) for a in node.args)
        self.line(header)
        self.emit_block(node.body)
        self.line("IF U SAY SO")

    def emit_expr_stmt(self, node: ExprStmt) -> None:
        self.line(self.emit_expr(node.expr))

    def emit_alt_array_def(self, node: AltArrayDefStmt) -> None:
        header = f"O HAI IM {self.emit_expr(node.name)}"
        if node.parent is not None:
            header += f" IM LIEK {self.emit_expr(node.parent)}"
        self.line(header)
        self.emit_block(node.body)
        self.line("KTHX")

    def _visit(self, node: ASTNode) -> None:
        """
        Dispatches a statement node to its emit method.

        Raises
        ------
        NotImplementedError
            If no emitter is defined for the node kind.
        """
        meth = getattr(self, f"emit_{node.kind}", None)
        if not meth:
            raise NotImplementedError(f"LolEmitter: no emitter for {node.kind}")
        # pylint: disable=not-callable
        meth(node)

