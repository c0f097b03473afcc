"""
Wolfram Language Parser

Parses a token stream into a concrete syntax tree with an operator-precedence
(Pratt) algorithm.

The parser itself knows no operators. Every construct is handled by a parselet
looked up in a `ParseletRegistry`: a prefix parselet starts an expression, and the
climbing loop keeps handing the expression to infix parselets while they bind
tighter than the caller's minimum precedence. Nodes are never built directly;
parselets drive the markers of a `TreeBuilder`, which produces the tree once the
whole input is consumed.

Layout Rules
------------
- Whitespace and comments are insignificant, except that blank patterns (`x_`)
  only attach to a symbol they touch.
- Two expressions written next to each other multiply (`2 x` is `Times[2, x]`).
- Outside of brackets, braces and parentheses a line break ends the current
  expression, so every line of a file can hold its own top-level expression.

Error Handling
--------------
Malformed input never raises. Parselets record `Error` nodes and report
`succeeded=False`, and `parse()` wraps any token it cannot start an expression
with into an error node, so it always makes progress. The only fatal condition is
`CriticalParserError`, raised by the token cursor when the token stream is corrupt.

Entry Points
------------
- `Parser.parse()`: Parse a whole file into a `File` root node.
- `Parser.parse_expression(min_precedence)`: Parse one (sub-)expression.
- `parse_source(source)`: Lex and parse a string in one step.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from wlparse.wl_ast import Node, NodeKind
from wlparse.wl_builder import CriticalParserError, Marker, TreeBuilder
from wlparse.wl_constants import message
from wlparse.wl_lexer import Token, tokenize
from wlparse.wl_parselets import InfixParselet, ParseOutcome
from wlparse.wl_registry import ParseletRegistry, default_registry

logger = logging.getLogger(__name__)


class Parser:
    """
    Pratt parser over a token stream.

    Attributes
    ----------
    builder : TreeBuilder
        Token cursor and marker production the parselets work on.
    registry : ParseletRegistry
        Grammar used for every lookup.
    """

    def __init__(self, tokens: list[Token], registry: ParseletRegistry | None = None) -> None:
        self.builder = TreeBuilder(tokens)
        self.registry = registry if registry is not None else default_registry()
        self._nesting = 0

    # Cursor passthroughs used by the parselets

    def token_type(self) -> str:
        return self.builder.token_type()

    def matches_token(self, *types: str) -> bool:
        return self.builder.matches_token(*types)

    def advance_lexer(self) -> None:
        self.builder.advance_lexer()

    def raw_lookahead(self, offset: int = 1) -> str | None:
        return self.builder.raw_lookahead(offset)

    def whitespace_before(self) -> bool:
        return self.builder.whitespace_before()

    def mark(self) -> Marker:
        return self.builder.mark()

    def error(self, text: str) -> Marker:
        return self.builder.error(text)

    def empty(self, kind: NodeKind, text: str | None = None) -> Marker:
        return self.builder.empty(kind, text)

    @contextmanager
    def grouping(self) -> Iterator[None]:
        """Marks the parse of a bracketed region, where line breaks are insignificant."""
        self._nesting += 1
        try:
            yield
        finally:
            self._nesting -= 1

    # Layout

    def at_line_end(self) -> bool:
        """True when a line break outside of any brackets ends the current expression."""
        return self._nesting == 0 and self.builder.newline_before()

    def continues_with(self, token_type: str) -> bool:
        return self.matches_token(token_type) and not self.at_line_end()

    def expression_follows(self) -> bool:
        if self.at_line_end():
            return False
        return self.registry.lookup_prefix(self.token_type()) is not None

    def juxtaposition_follows(self) -> bool:
        """True when the next token starts an expression that multiplies the previous one."""
        if not self.expression_follows():
            return False
        infix = self.registry.lookup_infix(self.token_type())
        return infix is None or (infix.adjacent_only and self.whitespace_before())

    # Parsing

    def parse(self) -> Node:
        """
        Parse the whole token stream.

        Returns
        -------
        Node
            A `File` node whose expressions are the top-level expressions of the input.

        Raises
        ------
        CriticalParserError
            If the token stream is corrupt (for example it lacks its `EOF` token).
        """
        root = self.mark()
        while not self.builder.eof():
            outcome = self.parse_expression(0)
            if not outcome.valid:
                self._skip_unexpected()
        root.done(NodeKind.FILE)
        tree = self.builder.build()
        errors = tree.errors()
        if errors:
            logger.debug("Parsed with %d syntax error(s)", len(errors))
        return tree

    def _skip_unexpected(self) -> None:
        token = self.builder.token()
        key = "general.bad.character" if token.type == "ERROR" else "general.unexpected.token"
        skipped = self.mark()
        self.advance_lexer()
        skipped.error(message(key, token.value))

    def parse_expression(self, min_precedence: int = 0) -> ParseOutcome:
        """
        Parse one expression whose operators bind tighter than `min_precedence`.

        Parameters
        ----------
        min_precedence : int
            Infix parselets with a precedence less than or equal to this value end
            the expression and are left to the caller.

        Returns
        -------
        ParseOutcome
            The outcome of the outermost construct, or a not-parsed outcome when
            the current token cannot start an expression (nothing is consumed then).
        """
        prefix = self.registry.lookup_prefix(self.token_type())
        if prefix is None:
            return ParseOutcome.not_parsed()

        left = prefix.parse(self)
        while left.valid:
            infix = self._next_infix()
            if infix is None or infix.precedence <= min_precedence:
                break
            left = infix.parse(self, left)
        return left

    def _next_infix(self) -> InfixParselet | None:
        if self.at_line_end():
            return None
        token_type = self.token_type()
        infix = self.registry.lookup_infix(token_type)
        if infix is not None and not (infix.adjacent_only and self.whitespace_before()):
            return infix
        if self.registry.lookup_prefix(token_type) is not None:
            return self.registry.implicit
        return None


def parse_source(source: str, registry: ParseletRegistry | None = None) -> Node:
    """Lex and parse `source`, returning the `File` root node."""
    return Parser(tokenize(source), registry).parse()


__all__ = ["CriticalParserError", "ParseOutcome", "Parser", "parse_source"]
