"""
Provides the `Transpiler` class and emitter interface for rendering LOLCODE ASTs.

Classes and Features:
    - Emitter (Protocol): Interface for all backend emitters. Requires `__init__` and `get_output`.
    - Transpiler: Selects an emitter by target name ("lol", "lolcode", "json") and
      dispatches AST nodes to the corresponding `emit_*` methods.

Example:
    >>> transpiler = Transpiler("lol")
    >>> source = transpiler.transpile(program)

Raises:
    ValueError: If the target is not supported.
    TypeError: If the input is not an AST node.
    NotImplementedError: If the emitter lacks an `emit_*` method for a node kind.
"""

import logging
from typing import Protocol

from lolcode.emitters.json_emitter import JsonEmitter
from lolcode.emitters.lol_emitter import LolEmitter
from lolcode.lolcode_ast import ASTNode

logger = logging.getLogger(__name__)


class Emitter(Protocol):  # pragma: no cover
    """Protocol for all LOLCODE emitters.

    Methods:
        __init__(): Initializes the emitter.
        get_output(): Returns the complete emitted text as a string.
    """

    def __init__(self) -> None: ...  # pragma: no cover

    def get_output(self) -> str: ...  # pragma: no cover


EmitterType = type[Emitter]
"""Alias for a concrete Emitter class type."""


class Transpiler:
    """Dispatches LOLCODE AST nodes to the emitter for an output target.

    Attributes:
        emitter (Emitter): The selected emitter instance for the output target.
    """

    def __init__(self, target: str) -> None:
        """Initializes the transpiler with the desired output target.

        Args:
            target: The output format ("lol", "lolcode" or "json"), case-insensitive.

        Raises:
            ValueError: If the target is not supported.
        """
        emitters: dict[str, EmitterType] = {
            "lol": LolEmitter,
            "lolcode": LolEmitter,
            "json": JsonEmitter,
        }
        target = target.lower()
        if target not in emitters:
            raise ValueError(f"Unknown transpilation target: {target!r}")
        self.target = target
        self.emitter: Emitter = emitters[target]()

    def transpile(self, program: ASTNode) -> str:
        """Renders a parsed program for the selected target.

        Args:
            program: The root node, normally a `Program`.

        Returns:
            The emitted text.

        Raises:
            TypeError: If `program` is not an ASTNode.
        """
        if not isinstance(program, ASTNode):
            raise TypeError("Transpiler input must be an ASTNode instance.")
        logger.debug("emitting %s as %s", program.kind, self.target)
        self._visit(program)
        return self.emitter.get_output()

    def _visit(self, node: ASTNode) -> None:
        method_name = f"emit_{node.kind}"
        if hasattr(self.emitter, method_name):
            getattr(self.emitter, method_name)(node)
        else:
            raise NotImplementedError(
                f"No emitter method for node kind '{node.kind}' ({type(node).__name__})"
            )
