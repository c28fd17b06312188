"""
LOLCODE CLI Entrypoint.

This module provides the command-line interface for the LOLCODE front end. It
reads a program, parses it, and prints the tree in the selected format.

Features:
    - Read source from `.lol` files or inline strings.
    - Lex, parse, and render the tree as canonical LOLCODE or JSON.
    - Output to console or file.
    - Report syntax errors as `file:line:col: error: ...` on stderr.

Example usage:
    lolcode hello.lol
    lolcode -s "HAI 1.2, VISIBLE 1, KTHXBYE"
    lolcode hello.lol -t json -o hello.json
    lolcode hello.lol --verbose

Functions:
    run_lolcode(source: str, is_string: bool = False, target: str = "lol", out: str | None = None,
                pretty: bool = False) -> None:
        Executes the full pipeline (lex → parse → render → output).

    main(argv: list[str] | None = None) -> None:
        Parses CLI arguments and invokes `run_lolcode`.
"""

import argparse
import logging
import sys

from lolcode.lolcode_errors import LolError
from lolcode.lolcode_lexer import CharacterStream, Lexer
from lolcode.lolcode_parser import Parser
from lolcode.lolcode_transpile import Transpiler

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".lol", ".lols")


def run_lolcode(
    source: str,
    is_string: bool = False,
    target: str = "lol",
    out: str | None = None,
    pretty: bool = False,
) -> None:
    """
    Run the front end: lex, parse, render, and print or write the result.

    Args:
        source (str): LOLCODE source text or the path to a `.lol` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        target (str): Output format ('lol' or 'json'). Defaults to 'lol'.
        out (str | None): Optional path to write the output to. If None, prints to stdout.
        pretty (bool): If True, prints banners around the output.

    Raises:
        ValueError: If `is_string` is False and the source is not a `.lol` file.
        LolSyntaxError: If the program does not parse.
    """
    fname = "<string>"
    if not is_string:
        if not source.endswith(SOURCE_SUFFIXES):
            raise ValueError("Only .lol files are supported.")
        fname = source
        with open(source, encoding="utf-8") as f:
            source = f.read()

    tokens = Lexer(CharacterStream(source), fname).tokenize()
    logger.info("%s: %d tokens", fname, len(tokens))

    program = Parser(tokens).parse()
    logger.info("%s: %d top-level statements", fname, len(program.body.stmts))

    code = Transpiler(target).transpile(program)

    if pretty and not out:
        banner = "=" * 20
        print(f"{banner}\n{fname} ({target})\n{banner}\n{code.rstrip()}\n{banner}")
    elif not out:
        print(code.rstrip("\n"))

    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(code)
        if pretty:
            print(f"(wrote to {out})")


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the LOLCODE CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-t`, `--target`: Output format ('lol' or 'json'), default is 'lol'.
        - `-o`, `--out`: Write output to a file.
        - `-p`, `--pretty`: Show banners around the output.
        - `-v`, `--verbose`: Log lexer and parser decisions to stderr.

    Exits with status 1 after printing the error when the program does not parse.
    """
    parser = argparse.ArgumentParser(prog="lolcode")
    parser.add_argument("source", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-t",
        "--target",
        choices=("lol", "json"),
        default="lol",
        help="Output format (default: lol)",
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "-p", "--pretty", action="store_true", help="Show output with banners"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log lexer and parser decisions"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )

    try:
        run_lolcode(
            source=args.source,
            is_string=args.string,
            target=args.target,
            out=args.out,
            pretty=args.pretty,
        )
    except LolError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as exc:
        print(f"lolcode: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
