"""
Defines the abstract syntax tree (AST) node classes for LOLCODE.

Every construct the parser recognises has its own node class. Classes fall
into two closed families, expressed as `Union` aliases at the bottom of the
module:

    Expression: CastExpr | Constant | Identifier | FuncCallExpr | OpExpr | ImplicitVar
    Statement:  CastStmt | PrintStmt | InputStmt | AssignmentStmt | DeclarationStmt
                | IfThenElseStmt | SwitchStmt | BreakStmt | ReturnStmt | LoopStmt
                | DeallocationStmt | FuncDefStmt | ExprStmt | AltArrayDefStmt

plus the structural nodes `Block`, `Program`, and `TypeNode`.

Each constructor validates its structural invariants and raises
`StructuralInvariantViolation` when they are broken; such a failure points at
a bug in whatever built the node, not at the user's program. Nodes are
immutable once constructed and sequence fields are stored as tuples, so the
tree owns everything beneath it and nothing is shared or patched later.

The only by-name references in the tree are `Identifier.slot`,
`DeclarationStmt.parent` and `AltArrayDefStmt.parent`. They are identifiers
resolved by the evaluator, never links to other nodes.

Each ASTNode supports:
    __repr__(): A compact structural representation for debugging.
    __eq__(other): Structural equality. Source-position metadata (`fname`,
        `line`) is ignored, so a re-parsed tree compares equal to the original.
    to_dict(): A nested dictionary suitable for JSON output.

Example:
    >>> Identifier.direct("b", slot=Identifier.direct("a"))
    Identifier(type=DIRECT, name='b', slot=Identifier(type=DIRECT, name='a'))
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Iterable, Union

from lolcode.lolcode_errors import StructuralInvariantViolation

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ConstantType(Enum):
    """Kinds of constant values; the first five double as type tags."""

    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"
    STRING = "STRING"
    NIL = "NIL"
    ARRAY = "ARRAY"


class IdentifierType(Enum):
    DIRECT = "DIRECT"
    INDIRECT = "INDIRECT"


class OpType(Enum):
    """Operations an `OpExpr` can apply."""

    ADD = "ADD"
    SUB = "SUB"
    MULT = "MULT"
    DIV = "DIV"
    MOD = "MOD"
    MAX = "MAX"
    MIN = "MIN"

    AND = "AND"
    OR = "OR"
    XOR = "XOR"
    NOT = "NOT"

    EQ = "EQ"
    NEQ = "NEQ"

    CAT = "CAT"


UNARY_OPS = frozenset({OpType.NOT})
VARIADIC_OPS = frozenset({OpType.AND, OpType.OR, OpType.CAT})


def _require(condition: bool, message: str, *args: Any) -> None:
    # args are %-formatted only when the check fails
    if not condition:
        raise StructuralInvariantViolation(message % args if args else message)


def _serialize(value: Any) -> Any:
    if isinstance(value, ASTNode):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_serialize(v) for v in value]
    if isinstance(value, Enum):
        return value.name
    return value


class ASTNode:
    """
    Base class for all AST nodes.

    Subclasses list their structural attributes in `_fields` and any
    source-position metadata in `_meta`. Only `_fields` take part in equality.

    Attributes:
        kind (str): The node kind, used by emitters to dispatch `emit_<kind>`.
    """

    kind: ClassVar[str] = "node"
    _fields: ClassVar[tuple[str, ...]] = ()
    _meta: ClassVar[tuple[str, ...]] = ()

    def _freeze(self) -> None:
        object.__setattr__(self, "_frozen", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise StructuralInvariantViolation(
                f"{type(self).__name__} nodes are immutable (tried to set {name!r})"
            )
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        parts = []
        for name in self._fields:
            value = getattr(self, name)
            if value is None or value == ():
                continue
            if isinstance(value, Enum):
                parts.append(f"{name}={value.name}")
            elif isinstance(value, tuple):
                preview = ", ".join(repr(v) for v in value[:3])
                if len(value) > 3:
                    preview += ", ..."
                parts.append(f"{name}=[{preview}]")
            else:
                parts.append(f"{name}={value!r}")
        return f"{type(self).__name__}({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return False
        return all(getattr(self, f) == getattr(other, f) for f in self._fields)

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> dict[str, Any]:
        """Converts the node (and all descendants) into nested dictionaries."""
        result: dict[str, Any] = {"kind": self.kind}
        for name in self._fields + self._meta:
            result[name] = _serialize(getattr(self, name))
        return result


# Types and constants


class TypeNode(ASTNode):
    """A bare scalar type tag used as a cast or declaration target."""

    kind = "type"
    _fields = ("type",)

    def __init__(self, type_: ConstantType) -> None:
        _require(
            isinstance(type_, ConstantType) and type_ is not ConstantType.ARRAY,
            "TypeNode needs a scalar ConstantType, got %r",
            type_,
        )
        self.type = type_
        self._freeze()


class Constant(ASTNode):
    """
    A constant value. Exactly one payload is meaningful per kind.

    Attributes:
        type (ConstantType): The kind of constant.
        value: int for INTEGER (signed 64-bit), float for FLOAT, bool for
            BOOLEAN, str for STRING (raw source text, escapes unexpanded),
            None for NIL and ARRAY.
    """

    kind = "constant"
    _fields = ("type", "value")

    def __init__(self, type_: ConstantType, value: Any = None) -> None:
        _require(isinstance(type_, ConstantType), "unknown constant type %r", type_)
        if type_ is ConstantType.INTEGER:
            _require(
                isinstance(value, int) and not isinstance(value, bool),
                "INTEGER constant needs an int, got %r",
                value,
            )
            _require(INT64_MIN <= value <= INT64_MAX, f"integer {value} exceeds 64 bits")
        elif type_ is ConstantType.FLOAT:
            _require(isinstance(value, float), "FLOAT constant needs a float, got %r", value)
        elif type_ is ConstantType.BOOLEAN:
            _require(isinstance(value, bool), "BOOLEAN constant needs a bool, got %r", value)
        elif type_ is ConstantType.STRING:
            _require(isinstance(value, str), "STRING constant needs a str, got %r", value)
        else:
            _require(value is None, f"{type_.name} constant carries no payload")
        self.type = type_
        self.value = value
        self._freeze()


class Identifier(ASTNode):
    """
    A reference to a named variable, function, loop or array.

    Attributes:
        type (IdentifierType): DIRECT for a literal name, INDIRECT when the
            name is computed at runtime (`SRS <expr>`).
        name (str | Expression): The literal name or the name expression.
        slot (Identifier | None): Scope or object the name is resolved
            within (`<slot>'Z <name>`).
        fname (str): Originating source file.
        line (int): Originating source line.
    """

    kind = "identifier"
    _fields = ("type", "name", "slot")
    _meta = ("fname", "line")

    def __init__(
        self,
        type_: IdentifierType,
        name: str | Expression,
        slot: Identifier | None = None,
        fname: str = "",
        line: int = 0,
    ) -> None:
        if type_ is IdentifierType.DIRECT:
            _require(
                isinstance(name, str) and name != "",
                "direct identifier needs a non-empty name, got %r",
                name,
            )
        else:
            _require(type_ is IdentifierType.INDIRECT, "unknown identifier type %r", type_)
            _check_expression(name, "indirect identifier name")
        _require(
            slot is None or isinstance(slot, Identifier),
            "identifier slot must be an Identifier, got %r",
            slot,
        )
        self.type = type_
        self.name = name
        self.slot = slot
        self.fname = fname
        self.line = line
        self._freeze()

    @classmethod
    def direct(
        cls, name: str, slot: Identifier | None = None, fname: str = "", line: int = 0
    ) -> Identifier:
        return cls(IdentifierType.DIRECT, name, slot=slot, fname=fname, line=line)

    def display(self) -> str:
        """Short text for diagnostics, e.g. `a'Z b` or `SRS <expr>`."""
        own = self.name if isinstance(self.name, str) else "SRS <expr>"
        if self.slot is None:
            return own
        return f"{self.slot.display()}'Z {own}"


# Expressions


class CastExpr(ASTNode):
    kind = "cast_expr"
    _fields = ("target", "newtype")

    def __init__(self, target: Expression, newtype: TypeNode) -> None:
        _check_expression(target, "cast target")
        _require(isinstance(newtype, TypeNode), "cast needs a TypeNode")
        self.target = target
        self.newtype = newtype
        self._freeze()


class FuncCallExpr(ASTNode):
    """Call of function `name` defined in `scope`, with ordered arguments."""

    kind = "func_call"
    _fields = ("scope", "name", "args")

    def __init__(self, scope: Identifier, name: Identifier, args: Iterable[Expression] = ()) -> None:
        _require(isinstance(scope, Identifier), "function call scope must be an Identifier")
        _require(isinstance(name, Identifier), "function call name must be an Identifier")
        self.scope = scope
        self.name = name
        self.args = _expression_list(args, "function call argument")
        self._freeze()


class OpExpr(ASTNode):
    """
    Application of an operator to its arguments.

    NOT takes exactly one argument, AND/OR/CAT two or more, every other
    operator exactly two.
    """

    kind = "op"
    _fields = ("op", "args")

    def __init__(self, op: OpType, args: Iterable[Expression]) -> None:
        _require(isinstance(op, OpType), "unknown operator %r", op)
        args = _expression_list(args, "operator argument")
        if op in UNARY_OPS:
            _require(len(args) == 1, f"{op.name} takes one argument, got {len(args)}")
        elif op in VARIADIC_OPS:
            _require(len(args) >= 2, f"{op.name} takes at least two arguments, got {len(args)}")
        else:
            _require(len(args) == 2, f"{op.name} takes two arguments, got {len(args)}")
        self.op = op
        self.args = args
        self._freeze()


class ImplicitVar(ASTNode):
    """The implicit variable `IT`."""

    kind = "implicit"

    def __init__(self) -> None:
        self._freeze()


# Structure


class Block(ASTNode):
    """An ordered sequence of statements."""

    kind = "block"
    _fields = ("stmts",)

    def __init__(self, stmts: Iterable[Statement] = ()) -> None:
        stmts = tuple(stmts)
        for stmt in stmts:
            _require(isinstance(stmt, STATEMENT_NODES), "not a statement: %r", stmt)
        self.stmts = stmts
        self._freeze()


class Program(ASTNode):
    """The root of the tree: the main block between HAI and KTHXBYE."""

    kind = "program"
    _fields = ("body",)

    def __init__(self, body: Block) -> None:
        _require(isinstance(body, Block), "program body must be a Block")
        self.body = body
        self._freeze()


# Statements


class CastStmt(ASTNode):
    kind = "cast_stmt"
    _fields = ("target", "newtype")

    def __init__(self, target: Identifier, newtype: TypeNode) -> None:
        _require(isinstance(target, Identifier), "cast target must be an Identifier")
        _require(isinstance(newtype, TypeNode), "cast needs a TypeNode")
        self.target = target
        self.newtype = newtype
        self._freeze()


class PrintStmt(ASTNode):
    """Prints its arguments, followed by a newline unless `nonl` is set."""

    kind = "print"
    _fields = ("args", "nonl")

    def __init__(self, args: Iterable[Expression], nonl: bool = False) -> None:
        args = _expression_list(args, "print argument")
        _require(len(args) >= 1, "print needs at least one argument")
        self.args = args
        self.nonl = bool(nonl)
        self._freeze()


class InputStmt(ASTNode):
    kind = "input"
    _fields = ("target",)

    def __init__(self, target: Identifier) -> None:
        _require(isinstance(target, Identifier), "input target must be an Identifier")
        self.target = target
        self._freeze()


class AssignmentStmt(ASTNode):
    kind = "assignment"
    _fields = ("target", "expr")

    def __init__(self, target: Identifier, expr: Expression) -> None:
        _require(isinstance(target, Identifier), "assignment target must be an Identifier")
        _check_expression(expr, "assigned value")
        self.target = target
        self.expr = expr
        self._freeze()


class DeclarationStmt(ASTNode):
    """
    Creates `target` in `scope`.

    At most one of `expr` and `type` initialises the variable. `parent`
    names an array the new variable inherits from.
    """

    kind = "declaration"
    _fields = ("scope", "target", "expr", "type", "parent")

    def __init__(
        self,
        scope: Identifier,
        target: Identifier,
        expr: Expression | None = None,
        type_: TypeNode | None = None,
        parent: Identifier | None = None,
    ) -> None:
        _require(isinstance(scope, Identifier), "declaration scope must be an Identifier")
        _require(isinstance(target, Identifier), "declaration target must be an Identifier")
        _require(
            expr is None or type_ is None,
            "declaration takes an initial expression or a type, not both",
        )
        if expr is not None:
            _check_expression(expr, "declaration initializer")
        _require(type_ is None or isinstance(type_, TypeNode), "declaration type must be a TypeNode")
        _require(
            parent is None or isinstance(parent, Identifier),
            "declaration parent must be an Identifier",
        )
        self.scope = scope
        self.target = target
        self.expr = expr
        self.type = type_
        self.parent = parent
        self._freeze()


class IfThenElseStmt(ASTNode):
    """
    Branches on the implicit variable.

    `yes` runs when IT is true, otherwise the first `blocks[i]` whose
    `guards[i]` holds, otherwise `no` when present.
    """

    kind = "if"
    _fields = ("yes", "guards", "blocks", "no")

    def __init__(
        self,
        yes: Block,
        no: Block | None = None,
        guards: Iterable[Expression] = (),
        blocks: Iterable[Block] = (),
    ) -> None:
        _require(isinstance(yes, Block), "if needs a Block for YA RLY")
        _require(no is None or isinstance(no, Block), "NO WAI branch must be a Block")
        self.yes = yes
        self.no = no
        self.guards, self.blocks = _guarded_blocks(guards, blocks)
        self._freeze()


class SwitchStmt(ASTNode):
    """Compares IT against each guard in order and runs the matching block."""

    kind = "switch"
    _fields = ("guards", "blocks", "default")

    def __init__(
        self,
        guards: Iterable[Expression],
        blocks: Iterable[Block],
        default: Block | None = None,
    ) -> None:
        guards, blocks = _guarded_blocks(guards, blocks)
        _require(len(guards) >= 1, "switch needs at least one case")
        _require(default is None or isinstance(default, Block), "default case must be a Block")
        self.guards = guards
        self.blocks = blocks
        self.default = default
        self._freeze()


class BreakStmt(ASTNode):
    kind = "break"

    def __init__(self) -> None:
        self._freeze()


class ReturnStmt(ASTNode):
    kind = "return"
    _fields = ("value",)

    def __init__(self, value: Expression) -> None:
        _check_expression(value, "return value")
        self.value = value
        self._freeze()


class LoopStmt(ASTNode):
    """
    A named loop.

    Attributes:
        name (Identifier): The loop label, repeated at IM OUTTA YR.
        var (Identifier | None): The variable `update` is applied to.
        update (OpExpr | FuncCallExpr | None): Expression assigned to `var`
            after each pass.
        guard (Expression | None): Continuation test.
        until (bool): True when the guard was introduced by TIL (loop until
            it holds), False for WILE (loop while it holds).
        body (Block): The loop body.
    """

    kind = "loop"
    _fields = ("name", "var", "update", "guard", "until", "body")

    def __init__(
        self,
        name: Identifier,
        body: Block,
        var: Identifier | None = None,
        update: Expression | None = None,
        guard: Expression | None = None,
        until: bool = False,
    ) -> None:
        _require(isinstance(name, Identifier), "loop name must be an Identifier")
        _require(isinstance(body, Block), "loop body must be a Block")
        _require(var is None or isinstance(var, Identifier), "loop variable must be an Identifier")
        if update is not None:
            _require(var is not None, "loop update needs a loop variable")
            _require(
                isinstance(update, (OpExpr, FuncCallExpr)),
                "loop update must be an operator or function call expression",
            )
        if guard is not None:
            _check_expression(guard, "loop guard")
        else:
            _require(not until, "TIL polarity needs a guard")
        self.name = name
        self.var = var
        self.update = update
        self.guard = guard
        self.until = bool(until)
        self.body = body
        self._freeze()


class DeallocationStmt(ASTNode):
    kind = "deallocation"
    _fields = ("target",)

    def __init__(self, target: Identifier) -> None:
        _require(isinstance(target, Identifier), "deallocation target must be an Identifier")
        self.target = target
        self._freeze()


class FuncDefStmt(ASTNode):
    kind = "func_def"
    _fields = ("scope", "name", "args", "body")

    def __init__(
        self,
        scope: Identifier,
        name: Identifier,
        args: Iterable[Identifier],
        body: Block,
    ) -> None:
        _require(isinstance(scope, Identifier), "function scope must be an Identifier")
        _require(isinstance(name, Identifier), "function name must be an Identifier")
        args = tuple(args)
        for arg in args:
            _require(isinstance(arg, Identifier), "function parameter must be an Identifier, got %r", arg)
        _require(isinstance(body, Block), "function body must be a Block")
        self.scope = scope
        self.name = name
        self.args = args
        self.body = body
        self._freeze()


class ExprStmt(ASTNode):
    """A bare expression; its value becomes the implicit variable."""

    kind = "expr_stmt"
    _fields = ("expr",)

    def __init__(self, expr: Expression) -> None:
        _check_expression(expr, "expression statement")
        self.expr = expr
        self._freeze()


class AltArrayDefStmt(ASTNode):
    """Defines array `name` from the declarations in `body`, optionally inheriting `parent`."""

    kind = "alt_array_def"
    _fields = ("name", "body", "parent")

    def __init__(self, name: Identifier, body: Block, parent: Identifier | None = None) -> None:
        _require(isinstance(name, Identifier), "array name must be an Identifier")
        _require(isinstance(body, Block), "array body must be a Block")
        _require(parent is None or isinstance(parent, Identifier), "array parent must be an Identifier")
        self.name = name
        self.body = body
        self.parent = parent
        self._freeze()


Expression = Union[CastExpr, Constant, Identifier, FuncCallExpr, OpExpr, ImplicitVar]

Statement = Union[
    CastStmt,
    PrintStmt,
    InputStmt,
    AssignmentStmt,
    DeclarationStmt,
    IfThenElseStmt,
    SwitchStmt,
    BreakStmt,
    ReturnStmt,
    LoopStmt,
    DeallocationStmt,
    FuncDefStmt,
    ExprStmt,
    AltArrayDefStmt,
]

EXPRESSION_NODES: tuple[type[ASTNode], ...] = (
    CastExpr,
    Constant,
    Identifier,
    FuncCallExpr,
    OpExpr,
    ImplicitVar,
)

STATEMENT_NODES: tuple[type[ASTNode], ...] = (
    CastStmt,
    PrintStmt,
    InputStmt,
    AssignmentStmt,
    DeclarationStmt,
    IfThenElseStmt,
    SwitchStmt,
    BreakStmt,
    ReturnStmt,
    LoopStmt,
    DeallocationStmt,
    FuncDefStmt,
    ExprStmt,
    AltArrayDefStmt,
)


def _check_expression(value: Any, what: str) -> None:
    _require(isinstance(value, EXPRESSION_NODES), "%s must be an expression, got %r", what, value)


def _expression_list(values: Iterable[Any], what: str) -> tuple[Any, ...]:
    values = tuple(values)
    for value in values:
        _check_expression(value, what)
    return values


def _guarded_blocks(
    guards: Iterable[Expression], blocks: Iterable[Block]
) -> tuple[tuple[Expression, ...], tuple[Block, ...]]:
    guards = _expression_list(guards, "guard")
    blocks = tuple(blocks)
    _require(
        len(guards) == len(blocks),
        f"{len(guards)} guards paired with {len(blocks)} blocks",
    )
    for block in blocks:
        _require(isinstance(block, Block), "guarded branch must be a Block, got %r", block)
    return guards, blocks


__all__ = [
    "ASTNode",
    "AltArrayDefStmt",
    "AssignmentStmt",
    "Block",
    "BreakStmt",
    "CastExpr",
    "CastStmt",
    "Constant",
    "ConstantType",
    "DeallocationStmt",
    "DeclarationStmt",
    "EXPRESSION_NODES",
    "Expression",
    "ExprStmt",
    "FuncCallExpr",
    "FuncDefStmt",
    "Identifier",
    "IdentifierType",
    "IfThenElseStmt",
    "ImplicitVar",
    "InputStmt",
    "LoopStmt",
    "OpExpr",
    "OpType",
    "PrintStmt",
    "Program",
    "ReturnStmt",
    "STATEMENT_NODES",
    "Statement",
    "SwitchStmt",
    "TypeNode",
]
