import os
from collections.abc import Callable
from typing import Any

import pytest

from lolcode.lolcode_ast import Program
from lolcode.lolcode_parser import parse_source

# Monkeypatch coverage to bypass teardown crash in act/docker
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    # Nukes the teardown assertion that fails in act
    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop


def wrap(*lines: str) -> str:
    return "HAI 1.2\n" + "".join(f"{line}\n" for line in lines) + "KTHXBYE\n"


@pytest.fixture  # type: ignore[misc]
def program() -> Callable[..., Program]:
    """Parses the given statement lines inside HAI 1.2 / KTHXBYE."""

    def _parse(*lines: str) -> Program:
        return parse_source(wrap(*lines), "test.lol")

    return _parse
