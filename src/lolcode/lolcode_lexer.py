"""
Lexical analyzer for LOLCODE.

This module converts raw source text into the token sequence consumed by the
parser. Lexing runs in two steps: the source is first split into lexemes
(words, strings, bangs and logical line breaks), then consecutive words are
matched against the keyword table by longest match so that multi-word
keywords such as `IM OUTTA YR` arrive at the parser as a single token.

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: Represents a single token with category, payload, and source location.
    Lexer: Converts a CharacterStream into a list of tokens.

Features:
    - Line breaks and commas end a logical line (`NEWLINE` token)
    - `BTW` line comments and `OBTW ... TLDR` block comments
    - `...` at the end of a line continues the statement on the next line
    - Strings keep their raw text; `:` escapes (`:)`, `:"`, `:{var}`, ...)
      are left for the runtime to expand
    - `!` and a trailing `'Z` are split off the word they are attached to
    - Longest-match recognition of multi-word keywords within one line

Raises:
    LexError: For unterminated strings or comments and unrecognised lexemes.

Example:
    >>> [t.type for t in tokenize('HAI 1.2\\nVISIBLE "HI"\\nKTHXBYE')]
    ['HAI', 'FLOAT', 'NEWLINE', 'VISIBLE', 'STRING', 'NEWLINE', 'KTHXBYE', 'NEWLINE', 'EOF']
"""

import logging
import re
from typing import Any, NamedTuple

from lolcode.lolcode_errors import LexError
from lolcode.lolcode_keywords import keyword_phrases, keyword_table, token_hashmap

logger = logging.getLogger(__name__)

INTEGER_RE = re.compile(r"-?[0-9]+")
FLOAT_RE = re.compile(r"-?([0-9]+\.[0-9]*|\.[0-9]+)")
IDENTIFIER_RE = re.compile(r"[A-Za-z][A-Za-z0-9_]*")
BOOLEAN_WORDS = ("WIN", "FAIL")
CONTINUATIONS = ("...", "…")
WORD_DELIMITERS = " \t\r\n,!"


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            LexError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise LexError(
                f"attempted to read past end of source at position {self.position}",
                line=self.line,
                col=self.column,
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character at `offset` without advancing, or "" when out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def startswith(self, text: str) -> bool:
        return self.source.startswith(text, self.position)

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token.

    Tokens are value objects: the parser reads them but never changes them.

    Attributes:
        type (str): The token category (a key of `keyword_table`).
        value (str): The literal payload; keyword tokens carry their canonical
            text, NEWLINE and EOF carry "".
        line (int): The 1-based line number where the token appears.
        col (int): The 1-based column number where the token starts.
        fname (str): Name of the source the token came from.
    """

    __slots__ = ("type", "value", "line", "col", "fname")

    def __init__(
        self, type_: str, value: str = "", line: int = 0, col: int = 0, fname: str = ""
    ):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col
        self.fname = fname

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
            and self.fname == other.fname
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col, self.fname))


class Lexeme(NamedTuple):
    """A raw piece of source text before keyword matching."""

    kind: str  # "word", "string", "bang" or "newline"
    text: str
    line: int
    col: int


class Lexer:
    """Lexical analyzer for LOLCODE.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        fname (str): Source name stamped on every token.
    """

    def __init__(self, stream: CharacterStream, fname: str = "<string>") -> None:
        self.stream = stream
        self.fname = fname
        self._tokens: list[Token] | None = None
        self._index = 0

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def error(self, message: str, line: int, col: int) -> LexError:
        return LexError(message, fname=self.fname, line=line, col=col)

    def skip_whitespace(self) -> None:
        """Skips blanks, stopping at line breaks which are significant."""
        while not self.stream.end_of_file() and self.peek() in " \t\r":
            self.advance()

    def skip_comment(self) -> None:
        """Advances through the stream until the end of a `BTW` comment line."""
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def skip_block_comment(self, line: int, col: int) -> None:
        """Advances past the `TLDR` that closes an `OBTW` comment."""
        while not self.stream.end_of_file():
            if self.stream.startswith("TLDR"):
                for _ in range(len("TLDR")):
                    self.advance()
                return
            self.advance()
        raise self.error("unterminated OBTW comment", line, col)

    def read_string(self) -> str:
        """Reads a double-quoted string, returning its raw contents."""
        line, col = self.stream.line, self.stream.column
        self.advance()  # opening quote
        val = ""
        while not self.stream.end_of_file() and self.peek() != "\n":
            ch = self.advance()
            if ch == ":":
                if self.stream.end_of_file() or self.peek() == "\n":
                    break
                val += ch + self.advance()
            elif ch == '"':
                return val
            else:
                val += ch
        raise self.error("unterminated string", line, col)

    def read_word(self) -> str:
        """Reads a bare word, stopping before delimiters and a trailing `'Z`."""
        word = ""
        while not self.stream.end_of_file() and self.peek() not in WORD_DELIMITERS:
            if (
                word
                and self.peek() == "'"
                and self.stream.peek(1) == "Z"
                and self.stream.peek(2) in ("", *WORD_DELIMITERS)
            ):
                break
            word += self.advance()
        return word

    def read_lexemes(self) -> list[Lexeme]:
        """Splits the whole source into lexemes.

        Returns:
            list[Lexeme]: Words, strings, bangs and line breaks in source order.

        Raises:
            LexError: On unterminated strings or block comments, or a line
                continuation that is not at the end of its line.
        """
        lexemes: list[Lexeme] = []
        while True:
            self.skip_whitespace()
            if self.stream.end_of_file():
                return lexemes

            ch = self.peek()
            line, col = self.stream.line, self.stream.column

            if ch in "\n,":
                self.advance()
                lexemes.append(Lexeme("newline", "", line, col))
            elif ch == '"':
                lexemes.append(Lexeme("string", self.read_string(), line, col))
            elif ch == "!":
                lexemes.append(Lexeme("bang", self.advance(), line, col))
            else:
                word = self.read_word()
                if word == "BTW":
                    self.skip_comment()
                elif word == "OBTW":
                    self.skip_block_comment(line, col)
                elif word in CONTINUATIONS:
                    self.skip_whitespace()
                    if self.peek() != "\n":
                        raise self.error("line continuation must end the line", line, col)
                    self.advance()
                else:
                    lexemes.append(Lexeme("word", word, line, col))
                    if self.peek() == "'":
                        zline, zcol = self.stream.line, self.stream.column
                        lexemes.append(
                            Lexeme("word", self.advance() + self.advance(), zline, zcol)
                        )

    def match_keyword(self, lexemes: list[Lexeme], start: int) -> tuple[str, int] | None:
        """Finds the longest keyword starting at `lexemes[start]`.

        Returns:
            tuple[str, int] | None: The keyword category and the number of
            lexemes it spans, or None if no keyword matches.
        """
        for phrase in keyword_phrases:
            end = start + len(phrase)
            if end > len(lexemes):
                continue
            candidate = lexemes[start:end]
            if all(lx.kind == "word" for lx in candidate) and tuple(
                lx.text for lx in candidate
            ) == phrase:
                return token_hashmap[" ".join(phrase)], len(phrase)
        return None

    def classify(self, lexeme: Lexeme) -> Token:
        """Classifies a non-keyword word as a literal or identifier token."""
        text = lexeme.text
        if INTEGER_RE.fullmatch(text):
            type_ = "INTEGER"
        elif FLOAT_RE.fullmatch(text):
            type_ = "FLOAT"
        elif text in BOOLEAN_WORDS:
            type_ = "BOOLEAN"
        elif IDENTIFIER_RE.fullmatch(text):
            type_ = "IDENTIFIER"
        else:
            raise self.error(f"unrecognised lexeme '{text}'", lexeme.line, lexeme.col)
        return Token(type_, text, lexeme.line, lexeme.col, self.fname)

    def tokenize(self) -> list[Token]:
        """Converts the whole stream into tokens, terminated by an EOF token.

        Line breaks are normalised: no leading NEWLINE, no consecutive
        NEWLINEs, and a NEWLINE always precedes EOF when the program is not
        empty.
        """
        if self._tokens is not None:
            return list(self._tokens)

        lexemes = self.read_lexemes()
        tokens: list[Token] = []

        def emit(token: Token) -> None:
            if token.type == "NEWLINE" and (not tokens or tokens[-1].type == "NEWLINE"):
                return
            tokens.append(token)

        i = 0
        while i < len(lexemes):
            lx = lexemes[i]
            if lx.kind == "newline":
                emit(Token("NEWLINE", "", lx.line, lx.col, self.fname))
                i += 1
            elif lx.kind == "string":
                emit(Token("STRING", lx.text, lx.line, lx.col, self.fname))
                i += 1
            elif lx.kind == "bang":
                emit(Token("BANG", lx.text, lx.line, lx.col, self.fname))
                i += 1
            else:
                matched = self.match_keyword(lexemes, i)
                if matched:
                    category, span = matched
                    emit(Token(category, keyword_table[category], lx.line, lx.col, self.fname))
                    i += span
                else:
                    emit(self.classify(lx))
                    i += 1

        line, col = self.stream.line, self.stream.column
        if tokens and tokens[-1].type != "NEWLINE":
            tokens.append(Token("NEWLINE", "", line, col, self.fname))
        tokens.append(Token("EOF", "", line, col, self.fname))
        logger.debug("%s: %d tokens from %d lexemes", self.fname, len(tokens), len(lexemes))
        self._tokens = tokens
        return list(tokens)

    def next_token(self) -> Token:
        """Returns the next token, repeating EOF once the stream is exhausted."""
        tokens = self.tokenize() if self._tokens is None else self._tokens
        token = tokens[min(self._index, len(tokens) - 1)]
        self._index += 1
        return token


def tokenize(source: str, fname: str = "<string>") -> list[Token]:
    """Tokenizes `source` in one call."""
    return Lexer(CharacterStream(source), fname).tokenize()


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
