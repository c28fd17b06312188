import json
import logging
import os
import subprocess
import sys
from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from lolcode import lolcode_cli

HELLO = 'HAI 1.2\nVISIBLE "HI"\nKTHXBYE\n'


def test_run_string_input_prints(capsys: pytest.CaptureFixture[str]) -> None:
    lolcode_cli.run_lolcode(source="HAI 1.2, VISIBLE 1, KTHXBYE", is_string=True)
    assert capsys.readouterr().out == "HAI 1.2\nVISIBLE 1\nKTHXBYE\n"


def test_run_file_input(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    file_path = tmp_path / "hello.lol"
    file_path.write_text(HELLO)
    lolcode_cli.run_lolcode(source=str(file_path))
    assert capsys.readouterr().out == HELLO


def test_run_rejects_other_extensions(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match=".lol"):
        lolcode_cli.run_lolcode(source=str(tmp_path / "hello.txt"))


def test_run_json_target(capsys: pytest.CaptureFixture[str]) -> None:
    lolcode_cli.run_lolcode(source=HELLO, is_string=True, target="json")
    data = json.loads(capsys.readouterr().out)
    assert data["body"]["stmts"][0]["kind"] == "print"


def test_run_pretty_output(capsys: pytest.CaptureFixture[str]) -> None:
    lolcode_cli.run_lolcode(source=HELLO, is_string=True, pretty=True)
    out = capsys.readouterr().out
    assert "<string> (lol)" in out
    assert out.count("=" * 20) == 3


def test_run_output_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output_path = tmp_path / "out.lol"
    lolcode_cli.run_lolcode(source=HELLO, is_string=True, out=str(output_path), pretty=True)
    assert output_path.read_text() == HELLO
    assert f"(wrote to {output_path})" in capsys.readouterr().out


def test_main_entry(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, object] = {}
    monkeypatch.setattr(lolcode_cli, "run_lolcode", lambda **kwargs: seen.update(kwargs))
    lolcode_cli.main(["-s", HELLO, "-t", "json"])
    assert seen == {"source": HELLO, "is_string": True, "target": "json", "out": None, "pretty": False}


def test_main_reads_sys_argv(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(sys, "argv", ["lolcode", "-s", HELLO])
    lolcode_cli.main()
    assert capsys.readouterr().out == HELLO


def test_main_invalid_target() -> None:
    with pytest.raises(SystemExit) as e:
        lolcode_cli.main(["-t", "py", "-s", HELLO])
    assert e.value.code == 2


def test_main_reports_syntax_errors(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as e:
        lolcode_cli.main(["-s", "HAI 1.2\nO RLY?\nYA RLY\n"])
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("<string>:4:1: error: expected 'OIC', got end of file")


def test_main_reports_loop_name_mismatch(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    file_path = tmp_path / "loop.lol"
    file_path.write_text("HAI 1.2\nIM IN YR a\nIM OUTTA YR b\nKTHXBYE\n")
    with pytest.raises(SystemExit) as e:
        lolcode_cli.main([str(file_path)])
    assert e.value.code == 1
    assert "loop 'a' closed as 'b'" in capsys.readouterr().err


def test_main_reports_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as e:
        lolcode_cli.main([str(tmp_path / "missing.lol")])
    assert e.value.code == 2
    assert capsys.readouterr().err.startswith("lolcode: ")


def test_verbose_logs_parser_decisions(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: None)
    with caplog.at_level(logging.DEBUG, logger="lolcode"):
        lolcode_cli.main(["-v", "-s", "HAI 1.2\nx R 1\nKTHXBYE\n"])
    messages = [record.getMessage() for record in caplog.records]
    assert any("backtracking from parse_cast_stmt" in m for m in messages)
    assert any("top-level statements" in m for m in messages)


def test_module_entry_point(tmp_path: Path) -> None:
    file_path = tmp_path / "hello.lol"
    file_path.write_text(HELLO)
    env = {**os.environ, "PYTHONPATH": str(Path(__file__).resolve().parents[1] / "src")}
    result = subprocess.run(
        [sys.executable, "-c", "from lolcode.lolcode_cli import main; main()", str(file_path)],
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )
    assert result.returncode == 0, result.stderr
    assert result.stdout == HELLO


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])  # type: ignore[misc]
@given(st.text(alphabet="@#$%^&~|", min_size=1, max_size=6))  # type: ignore[misc]
def test_fuzz_garbage_exits_cleanly(capsys: pytest.CaptureFixture[str], text: str) -> None:
    with pytest.raises(SystemExit) as e:
        lolcode_cli.main(["-s", f"HAI 1.2\n{text}\nKTHXBYE\n"])
    assert e.value.code == 1
    assert "error: unrecognised lexeme" in capsys.readouterr().err
