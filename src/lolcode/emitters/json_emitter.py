"""
Serialises LOLCODE AST nodes to JSON.

The emitted document mirrors `ASTNode.to_dict()`: every node is an object with
a `kind` key plus one key per structural field, enums are written by name, and
identifiers additionally carry their `fname` and `line`.
"""

import json

from lolcode.lolcode_ast import Program


class JsonEmitter:
    """Emits a JSON document for a whole program.

    Attributes:
        documents (list[dict]): Serialised programs, in visiting order.
        indent (int | None): Indentation passed to `json.dumps`.
    """

    def __init__(self, indent: int | None = 2) -> None:
        self.documents: list[dict] = []
        self.indent = indent

    def emit_program(self, node: Program) -> None:
        self.documents.append(node.to_dict())

    def get_output(self) -> str:
        if len(self.documents) == 1:
            return json.dumps(self.documents[0], indent=self.indent)
        return json.dumps(self.documents, indent=self.indent)
