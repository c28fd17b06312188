"""
Exception hierarchy for the LOLCODE front end.

Exception Hierarchy
-------------------
LolError (base for all front end errors)
├── LolSyntaxError - anything wrong with the program text
│   ├── LexError - source text that cannot be split into tokens
│   ├── UnexpectedTokenError - token category mismatch, including dispatch
│   │                          failures where no alternative matched
│   └── NameMismatchError - loop closed with a different name
└── StructuralInvariantViolation - AST constructor contract broken

Every error is raised at the point of failure and terminates parsing; the
first failure is the only one reported.

Error Message Format
--------------------
    hello.lol:3:5: error: expected 'OIC', got end of file
    hint: every O RLY? block is closed by OIC
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lolcode.lolcode_keywords import LITERAL_TYPES, describe, keyword_table

if TYPE_CHECKING:
    from lolcode.lolcode_lexer import Token


class LolError(Exception):
    """
    Base exception for all LOLCODE front end errors.

    Attributes:
        message: The error description.
        fname: Source file name the error refers to, if known.
        line: 1-based source line, 0 when unknown.
        col: 1-based source column, 0 when unknown.
        hint: Optional suggestion for fixing the error.
    """

    def __init__(
        self,
        message: str,
        fname: str | None = None,
        line: int = 0,
        col: int = 0,
        hint: str | None = None,
    ) -> None:
        self.message = message
        self.fname = fname
        self.line = line
        self.col = col
        self.hint = hint
        super().__init__(self._format_message())

    def location(self) -> str:
        """Return the `file:line:col` prefix, omitting unknown parts."""
        parts = [self.fname or "<unknown>"]
        if self.line:
            parts.append(str(self.line))
            if self.col:
                parts.append(str(self.col))
        return ":".join(parts)

    def _format_message(self) -> str:
        if self.fname is None and not self.line:
            text = f"error: {self.message}"
        else:
            text = f"{self.location()}: error: {self.message}"
        if self.hint:
            text += f"\nhint: {self.hint}"
        return text


class LolSyntaxError(LolError, SyntaxError):
    """
    Syntax error in LOLCODE source.

    Subclasses the builtin `SyntaxError` so callers may catch either. The
    builtin's location attributes (`filename`, `lineno`, `offset`, `msg`)
    are filled in from the LOLCODE position.
    """

    def __init__(
        self,
        message: str,
        fname: str | None = None,
        line: int = 0,
        col: int = 0,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, fname=fname, line=line, col=col, hint=hint)
        self.msg = self._format_message()
        self.filename = fname
        self.lineno = line or None
        self.offset = col or None

    def __str__(self) -> str:
        return self._format_message()


class LexError(LolSyntaxError):
    """Raised when source text cannot be split into tokens."""


class UnexpectedTokenError(LolSyntaxError):
    """
    The token at the cursor does not have any of the expected categories.

    Attributes:
        expected: Categories that would have been accepted, in order.
        found: The token actually present.
        position: Index of `found` in the token sequence.
        what: Optional wording that replaces the list of categories in the
            message, e.g. "an expression".
    """

    def __init__(
        self,
        expected: tuple[str, ...],
        found: Token,
        position: int = 0,
        hint: str | None = None,
        what: str | None = None,
    ) -> None:
        self.expected = expected
        self.found = found
        self.position = position
        self.what = what
        super().__init__(
            f"expected {self._render_expected()}, got {self._render_found()}",
            fname=found.fname,
            line=found.line,
            col=found.col,
            hint=hint,
        )

    def _render_expected(self) -> str:
        if self.what:
            return self.what
        names = [
            f"'{keyword_table[c]}'" if keyword_table.get(c) else describe(c)
            for c in self.expected
        ]
        if len(names) == 1:
            return names[0]
        return "one of " + ", ".join(names)

    def _render_found(self) -> str:
        found = describe(self.found.type)
        if self.found.type == "STRING":
            return f'{found} "{self.found.value}"'
        if self.found.type in LITERAL_TYPES:
            return f"{found} '{self.found.value}'"
        if self.found.type in ("EOF", "NEWLINE"):
            return found
        return f"'{found}'"

    @classmethod
    def merge(cls, failures: list[UnexpectedTokenError]) -> UnexpectedTokenError:
        """Combine the failures of ordered alternatives into one error.

        The failure that got furthest into the token sequence wins; failures
        tied at that position contribute their expected categories.

        Args:
            failures: At least one error, in the order the alternatives ran.

        Returns:
            UnexpectedTokenError: A single error describing every expectation
            at the furthest failure point.
        """
        if not failures:
            raise StructuralInvariantViolation("merge() needs at least one failure")
        furthest = max(failure.position for failure in failures)
        tied = [failure for failure in failures if failure.position == furthest]
        if len(tied) == 1:
            return tied[0]
        expected: list[str] = []
        for failure in tied:
            expected.extend(c for c in failure.expected if c not in expected)
        hint = next((failure.hint for failure in tied if failure.hint), None)
        return cls(tuple(expected), tied[0].found, furthest, hint=hint)


class NameMismatchError(LolSyntaxError):
    """
    A named construct is closed with a different name than it was opened with.

    Attributes:
        opened: The name given when the construct was opened.
        closed: The name found at the closing keyword.
    """

    def __init__(
        self,
        opened: str,
        closed: str,
        fname: str | None = None,
        line: int = 0,
        col: int = 0,
    ) -> None:
        self.opened = opened
        self.closed = closed
        super().__init__(
            f"loop '{opened}' closed as '{closed}'",
            fname=fname,
            line=line,
            col=col,
            hint=f"close the loop with IM OUTTA YR {opened}",
        )


class StructuralInvariantViolation(LolError, AssertionError):
    """
    An AST node was constructed with arguments that break its contract.

    This signals a bug in the code building the tree, never a problem with
    the user's program.
    """


__all__ = [
    "LexError",
    "LolError",
    "LolSyntaxError",
    "NameMismatchError",
    "StructuralInvariantViolation",
    "UnexpectedTokenError",
]
