import json
from typing import Any

import pytest

from lolcode.emitters.json_emitter import JsonEmitter
from lolcode.emitters.lol_emitter import LolEmitter
from lolcode.lolcode_ast import Block, BreakStmt, Program
from lolcode.lolcode_parser import parse_source
from lolcode.lolcode_transpile import Emitter, Transpiler

HELLO = 'HAI 1.2\nVISIBLE "HAI WORLD"\nKTHXBYE\n'


def test_force_protocol_reference() -> None:
    assert hasattr(Emitter, "get_output")


class DummyEmitter:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def emit_program(self, node: Program) -> None:
        self.calls.append(node.kind)

    def get_output(self) -> str:
        return "result"


@pytest.mark.parametrize(  # type: ignore[misc]
    "target,emitter",
    [("lol", LolEmitter), ("LOLCODE", LolEmitter), ("json", JsonEmitter), ("Json", JsonEmitter)],
)
def test_transpiler_selects_emitter(target: str, emitter: type) -> None:
    assert isinstance(Transpiler(target).emitter, emitter)


def test_transpiler_invalid_target_raises() -> None:
    with pytest.raises(ValueError, match="Unknown transpilation target"):
        Transpiler("py")


def test_transpiler_rejects_non_ast() -> None:
    with pytest.raises(TypeError, match="ASTNode"):
        Transpiler("lol").transpile(["not-an-ast"])  # type: ignore[arg-type]


def test_transpiler_calls_emit_method(monkeypatch: Any) -> None:
    dummy = DummyEmitter()
    monkeypatch.setattr("lolcode.lolcode_transpile.LolEmitter", lambda: dummy)
    result = Transpiler("lol").transpile(Program(Block()))
    assert result == "result"
    assert dummy.calls == ["program"]


def test_transpiler_missing_emit_method_raises() -> None:
    with pytest.raises(NotImplementedError, match="'break'"):
        Transpiler("json").transpile(BreakStmt())


def test_lol_target_round_trips() -> None:
    prog = parse_source(HELLO)
    assert Transpiler("lol").transpile(prog) == HELLO


def test_json_target() -> None:
    data = json.loads(Transpiler("json").transpile(parse_source(HELLO, "hello.lol")))
    assert data["kind"] == "program"
    (stmt,) = data["body"]["stmts"]
    assert stmt == {
        "kind": "print",
        "args": [{"kind": "constant", "type": "STRING", "value": "HAI WORLD"}],
        "nonl": False,
    }


def test_json_emitter_collects_several_programs() -> None:
    emitter = JsonEmitter(indent=None)
    emitter.emit_program(Program(Block()))
    emitter.emit_program(Program(Block([BreakStmt()])))
    assert json.loads(emitter.get_output())[1]["body"]["stmts"] == [{"kind": "break"}]
