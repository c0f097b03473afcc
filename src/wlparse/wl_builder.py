"""
Streaming tree builder and token cursor used by the parser.

The parser never creates nodes directly. It drives a `TreeBuilder`: it opens
markers in front of tokens, closes them with a node kind once the construct is
complete, and may later wrap an already closed marker in a new one with
`precede()`. Only `build()` turns the recorded production into `Node` objects.

Classes:
    CriticalParserError: Raised when the token stream itself is corrupt.
    Marker: An open or closed range of tokens that becomes one node.
    TreeBuilder: Token cursor plus the production list of markers.

Marker operations:
    - mark():            open a marker before the current token
    - precede():         open a marker directly in front of an existing one
    - done(kind):        close the marker after the last consumed token
    - drop():            forget the marker; its tokens stay with the enclosing node
    - error(message):    close the marker as an `Error` node carrying `message`

Whitespace, line breaks and comments are skipped by the cursor. Leading trivia is
never part of a marker that starts after it, and trailing trivia is never part
of a marker that ends before it.
"""

from __future__ import annotations

import logging

from wlparse.wl_ast import Node, NodeKind
from wlparse.wl_constants import TRIVIA_TOKENS
from wlparse.wl_lexer import Token

logger = logging.getLogger(__name__)


class CriticalParserError(Exception):
    """Raised when no token is available although the grammar requires one.

    Ordinary malformed input never raises; it produces `Error` nodes instead. This
    error means the token stream is corrupt (for example it is missing its `EOF`
    token), and it aborts the whole parse.
    """


class Marker:
    """A range of tokens that will become one node of the tree.

    Attributes:
        start (int): Index of the first token covered by the marker.
        end (int | None): Index one past the last token, set by `done`.
        kind (NodeKind | None): Node kind, set by `done`.
        message (str | None): Error message, set by `error`.
        position (tuple[int, int] | None): Line and column reported for a zero-width node.
        dropped (bool): Set by `drop`; `build` ignores dropped markers.

    A marker opened by `precede()` is not recorded in the production list. It is
    kept in the preceding chain of the marker that was recorded (its anchor),
    ordered from the innermost to the outermost wrapper.
    """

    def __init__(self, builder: TreeBuilder, start: int) -> None:
        self._builder = builder
        self.start = start
        self.end: int | None = None
        self.kind: NodeKind | None = None
        self.message: str | None = None
        self.position: tuple[int, int] | None = None
        self.dropped = False
        self._anchor: Marker = self
        self._chain: list[Marker] | None = None

    def __repr__(self) -> str:
        return f"Marker(start={self.start}, end={self.end}, kind={self.kind})"

    @property
    def is_done(self) -> bool:
        return self.end is not None

    def precede(self) -> Marker:
        return self._builder._precede(self)

    def done(self, kind: NodeKind) -> None:
        self._builder._done(self, kind)

    def drop(self) -> None:
        self._builder._drop(self)

    def error(self, message: str) -> None:
        self.message = message
        self._builder._done(self, NodeKind.ERROR)


class TreeBuilder:
    """Token cursor and production recorder.

    Args:
        tokens (list[Token]): Complete token stream, trivia included, terminated by `EOF`.

    Attributes:
        tokens (list[Token]): The token stream being parsed.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self._index = 0
        self._last_end = 0
        # Entries are (is_start, marker) in production order.
        self._production: list[tuple[bool, Marker]] = []
        self._skip_trivia()

    # Token cursor

    def _skip_trivia(self) -> None:
        while (
            self._index < len(self.tokens)
            and self.tokens[self._index].type in TRIVIA_TOKENS
        ):
            self._index += 1

    def token(self) -> Token:
        if self._index >= len(self.tokens):
            raise CriticalParserError(
                f"Token stream ended without EOF after {len(self.tokens)} tokens"
            )
        return self.tokens[self._index]

    def token_type(self) -> str:
        return self.token().type

    def token_text(self) -> str:
        return self.token().value

    def eof(self) -> bool:
        return self.token_type() == "EOF"

    def matches_token(self, *types: str) -> bool:
        return self.token_type() in types

    def advance_lexer(self) -> None:
        tok = self.token()
        if tok.type == "EOF":
            raise CriticalParserError(
                f"Attempted to advance past end of input at line {tok.line}, col {tok.col}"
            )
        self._index += 1
        self._last_end = self._index
        self._skip_trivia()

    def raw_lookahead(self, offset: int = 1) -> str | None:
        """Type of the token `offset` positions ahead, trivia included."""
        index = self._index + offset
        return self.tokens[index].type if index < len(self.tokens) else None

    def whitespace_before(self) -> bool:
        """True when trivia separates the current token from the previous one."""
        return self._index > self._last_end

    def newline_before(self) -> bool:
        return any(
            tok.type == "LINE_BREAK"
            for tok in self.tokens[self._last_end : self._index]
        )

    # Markers

    def mark(self) -> Marker:
        marker = Marker(self, self._index)
        self._production.append((True, marker))
        return marker

    def empty(self, kind: NodeKind, message: str | None = None) -> Marker:
        """Records a zero-width node directly after the last consumed token."""
        marker = Marker(self, self._last_end)
        marker.message = message
        tok = self.token()
        marker.position = (tok.line, tok.col)
        self._production.append((True, marker))
        self._done(marker, kind)
        return marker

    def error(self, message: str) -> Marker:
        logger.debug("Syntax error at token %d: %s", self._index, message)
        return self.empty(NodeKind.ERROR, message)

    def _precede(self, marker: Marker) -> Marker:
        new = Marker(self, marker.start)
        anchor = marker._anchor
        new._anchor = anchor
        if anchor._chain is None:
            anchor._chain = [anchor]
        chain = anchor._chain
        # Usually the outermost wrapper is preceded again, which is an append.
        if chain[-1] is marker:
            chain.append(new)
        else:
            index = next(i for i, m in enumerate(chain) if m is marker)
            chain.insert(index + 1, new)
        return new

    def _done(self, marker: Marker, kind: NodeKind) -> None:
        if marker.is_done:
            raise ValueError(f"{marker!r} is already done")
        marker.kind = kind
        marker.end = max(marker.start, self._last_end)
        self._production.append((False, marker))

    def _drop(self, marker: Marker) -> None:
        marker.dropped = True

    # Tree construction

    def build(self) -> Node:
        """Turns the production into a tree.

        The outermost marker becomes the root and also receives every trailing token.

        Returns:
            Node: The root node.

        Raises:
            CriticalParserError: If the production is empty or contains unclosed markers.
        """
        if not self._production:
            raise CriticalParserError("Nothing was parsed")
        root_marker = self._production[0][1]
        if self._production[-1] != (False, root_marker):
            raise CriticalParserError("The root marker must be closed last")
        root_marker.end = len(self.tokens)

        pos = 0
        stack: list[tuple[Marker, list[Node]]] = []
        root: Node | None = None

        def flush(upto: int) -> None:
            nonlocal pos
            while pos < upto:
                tok = self.tokens[pos]
                if tok.type != "EOF":
                    kind = NodeKind.WHITESPACE if tok.type in TRIVIA_TOKENS else NodeKind.TOKEN
                    stack[-1][1].append(Node.leaf(kind, tok))
                pos += 1

        for is_start, marker in self._production:
            if is_start:
                if stack:
                    flush(marker.start)
                for opened in reversed(marker._chain or [marker]):
                    if not opened.dropped:
                        stack.append((opened, []))
                continue
            if marker.dropped:
                continue
            if not stack or stack[-1][0] is not marker:
                raise CriticalParserError(f"Unbalanced production at {marker!r}")
            assert marker.end is not None and marker.kind is not None  # for mypy
            flush(marker.end)
            _, children = stack.pop()
            node = Node(marker.kind, children=children, message=marker.message, position=marker.position)
            if stack:
                stack[-1][1].append(node)
            else:
                root = node

        if stack or root is None:
            raise CriticalParserError("Unclosed markers at end of input")
        return root


__all__ = ["CriticalParserError", "Marker", "TreeBuilder"]
