"""
wlparse CLI Entrypoint.

This module provides the command-line interface for parsing Wolfram Language source.
It supports FullForm and JSON output, syntax error reports, symbol resolution and an
interactive REPL.

Features:
    - Read source from `.m` / `.wl` files or inline strings.
    - Lex, parse and render every top-level expression.
    - Output to console or file.
    - Report syntax errors with their positions.
    - Resolve where a symbol is defined.
    - Launch an interactive REPL.

Example usage:
    wlparse package.wl
    wlparse -s "a::usage = \\"text\\""
    wlparse package.m -f json -o tree.json
    wlparse package.wl --errors --resolve f

Functions:
    run_wlparse(source: str, is_string: bool = False, output_format: str = "fullform",
                out: str | None = None, show_errors: bool = False,
                resolve: str | None = None, config: GrammarConfig | None = None) -> int:
        Executes the full pipeline (lex -> parse -> render -> output).

    main() -> None:
        Parses CLI arguments and invokes the appropriate action (REPL or batch run).
"""

import argparse
import logging
import sys

from wlparse.wl_config import ConfigError, GrammarConfig
from wlparse.wl_lexer import tokenize
from wlparse.wl_parser import Parser
from wlparse.wl_registry import build_registry
from wlparse.wl_render import Renderer
from wlparse.wl_resolve import describe_symbol
from wlparse.wl_scope import ScopeClassifier

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".m", ".wl")


def run_wlparse(
    source: str,
    is_string: bool = False,
    output_format: str = "fullform",
    out: str | None = None,
    show_errors: bool = False,
    resolve: str | None = None,
    config: GrammarConfig | None = None,
) -> int:
    """
    Run the wlparse toolchain: lex, parse, render, and print or write the result.

    Args:
        source (str): Wolfram Language source code or a path to a `.m` / `.wl` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path. Defaults to False.
        output_format (str): "fullform" or "json". Defaults to "fullform".
        out (str | None): Optional path to write the rendered output. If None, prints to stdout.
        show_errors (bool): If True, prints every syntax error with its position to stderr.
        resolve (str | None): Optional symbol name whose definition is reported.
        config (GrammarConfig | None): Grammar configuration; the default grammar when None.

    Returns:
        int: The number of syntax errors found.

    Raises:
        ValueError: If `is_string` is False and the source is not a `.m` or `.wl` file.
    """
    if not is_string and not source.endswith(SOURCE_SUFFIXES):
        raise ValueError("Only .m and .wl files are supported.")
    # 1. Read source
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    # 2. Lexing and parsing
    registry = build_registry(config)
    tree = Parser(tokenize(source), registry).parse()

    # 3. Rendering
    text = Renderer(output_format).render(tree)
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        logger.info("Wrote %s output to %s", output_format, out)
    else:
        print(text)

    # 4. Diagnostics
    errors = tree.errors()
    if show_errors:
        for node in errors:
            print(f"{node.line}:{node.col}: {node.message}", file=sys.stderr)

    if resolve:
        classifier = ScopeClassifier.from_config(config) if config is not None else ScopeClassifier()
        print(describe_symbol(tree, resolve, classifier))

    return len(errors)


def main() -> None:
    """
    Entry point for the wlparse CLI.

    Launches the REPL if no arguments are passed. Otherwise parses the arguments and
    runs the toolchain on the given file or string.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-f`, `--format`: Output format ('fullform' or 'json'), default is 'fullform'.
        - `-o`, `--out`: Write rendered output to a file.
        - `--errors`: Print syntax errors to stderr; the exit status is 1 when there are any.
        - `--resolve NAME`: Report where the first occurrence of NAME is defined.
        - `--config PATH`: Load a grammar configuration (JSON).
        - `--verbose`: Enable debug logging.
    """
    if len(sys.argv) == 1:
        # No args passed: open REPL instead
        from wlparse.wl_repl import start_repl

        start_repl()
        return
    parser = argparse.ArgumentParser(prog="wlparse")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="output_format",
        choices=("fullform", "json"),
        default="fullform",
        help="Output format (default: fullform)",
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "--errors", action="store_true", help="Print syntax errors to stderr"
    )
    parser.add_argument(
        "--resolve", metavar="NAME", help="Report where symbol NAME is defined"
    )
    parser.add_argument(
        "--config", metavar="PATH", help="Grammar configuration file (JSON)"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = GrammarConfig.from_env()
        if args.config:
            config.load_from_json(args.config)
    except ConfigError as e:
        print(f"wlparse: {e}", file=sys.stderr)
        for conflict in e.conflicts:
            print(f" - {conflict}", file=sys.stderr)
        sys.exit(2)

    if args.source is None:
        from wlparse.wl_repl import start_repl

        start_repl(output_format=args.output_format, verbose=args.verbose, config=config)
        return

    try:
        error_count = run_wlparse(
            source=args.source,
            is_string=args.string,
            output_format=args.output_format,
            out=args.out,
            show_errors=args.errors,
            resolve=args.resolve,
            config=config,
        )
    except (OSError, ValueError) as e:
        print(f"wlparse: {e}", file=sys.stderr)
        sys.exit(2)
    if args.errors and error_count:
        sys.exit(1)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
