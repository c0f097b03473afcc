"""
Parselets: one handler per syntactic construct introduced or continued by a token.

A prefix parselet starts an expression (a symbol, a number, `{`, a prefix `-`, ...).
An infix parselet continues an expression that is already parsed (`+`, `[`, `::`,
a postfix `!`, ...) and carries the precedence the Pratt loop compares against.

Every parselet returns a `ParseOutcome`. Failures are never raised: the parselet
records an `Error` node through the tree builder and reports `succeeded=False`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from wlparse.wl_ast import NodeKind
from wlparse.wl_builder import Marker
from wlparse.wl_constants import message

if TYPE_CHECKING:
    from wlparse.wl_parser import Parser


@dataclass(frozen=True)
class ParseOutcome:
    """Result of parsing one (sub-)expression.

    Attributes:
        marker (Marker | None): Marker of the produced node; None when nothing was parsed.
        kind (NodeKind | None): Kind the marker was closed with.
        succeeded (bool): False when an error node was produced along the way.
    """

    marker: Marker | None
    kind: NodeKind | None
    succeeded: bool

    @property
    def valid(self) -> bool:
        return self.marker is not None

    @classmethod
    def not_parsed(cls) -> ParseOutcome:
        return cls(None, None, False)


class PrefixParselet:
    precedence: int = 0

    def parse(self, parser: Parser) -> ParseOutcome:  # pragma: no cover
        raise NotImplementedError


class InfixParselet:
    # Pattern blanks only continue an expression when they touch a symbol.
    adjacent_only = False

    def __init__(self, precedence: int) -> None:
        self.precedence = precedence

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.precedence})"

    def parse(self, parser: Parser, left: ParseOutcome) -> ParseOutcome:  # pragma: no cover
        raise NotImplementedError


# Helpers


def expect_closing(parser: Parser, token_type: str, text: str) -> bool:
    if parser.matches_token(token_type):
        parser.advance_lexer()
        return True
    parser.error(message("general.closing.expected", text))
    return False


def parse_sequence(parser: Parser, closing: str) -> bool:
    """Parses comma separated operands up to (not including) the `closing` token."""
    if parser.matches_token(closing):
        return True
    ok = True
    while True:
        item = parser.parse_expression(0)
        if not item.valid:
            parser.error(message("general.expression.expected"))
            ok = False
        else:
            ok = ok and item.succeeded
        if not parser.matches_token("COMMA"):
            return ok
        parser.advance_lexer()


def parse_operand(parser: Parser, precedence: int) -> bool:
    operand = parser.parse_expression(precedence)
    if not operand.valid:
        parser.error(message("general.expression.expected"))
        return False
    return operand.succeeded


# Prefix parselets


class AtomParselet(PrefixParselet):
    """Single-token expressions: symbols, numbers, strings, slots."""

    def __init__(self, kind: NodeKind) -> None:
        self.kind = kind

    def parse(self, parser: Parser) -> ParseOutcome:
        marker = parser.mark()
        parser.advance_lexer()
        marker.done(self.kind)
        return ParseOutcome(marker, self.kind, True)


class BlankParselet(PrefixParselet):
    """`_`, `__`, `___`, optionally followed by a touching head symbol as in `_Integer`."""

    def __init__(self, kind: NodeKind) -> None:
        self.kind = kind

    def parse(self, parser: Parser) -> ParseOutcome:
        marker = parser.mark()
        parser.advance_lexer()
        if parser.matches_token("IDENTIFIER") and not parser.whitespace_before():
            head = parser.mark()
            parser.advance_lexer()
            head.done(NodeKind.SYMBOL)
        marker.done(self.kind)
        return ParseOutcome(marker, self.kind, True)


class GroupParselet(PrefixParselet):
    """Parenthesised expression `( expr )`."""

    def parse(self, parser: Parser) -> ParseOutcome:
        marker = parser.mark()
        parser.advance_lexer()
        with parser.grouping():
            ok = parse_operand(parser, 0)
            ok = expect_closing(parser, "RIGHT_PAR", ")") and ok
        marker.done(NodeKind.GROUP)
        return ParseOutcome(marker, NodeKind.GROUP, ok)


class ListParselet(PrefixParselet):
    """List literal `{a, b, ...}`."""

    def parse(self, parser: Parser) -> ParseOutcome:
        marker = parser.mark()
        parser.advance_lexer()
        with parser.grouping():
            ok = parse_sequence(parser, "RIGHT_BRACE")
            ok = expect_closing(parser, "RIGHT_BRACE", "}") and ok
        marker.done(NodeKind.LIST)
        return ParseOutcome(marker, NodeKind.LIST, ok)


class PrefixOperatorParselet(PrefixParselet):
    """Prefix operators such as `-x`, `!x` and `++x`."""

    def __init__(self, kind: NodeKind, precedence: int) -> None:
        self.kind = kind
        self.precedence = precedence

    def parse(self, parser: Parser) -> ParseOutcome:
        marker = parser.mark()
        parser.advance_lexer()
        ok = parse_operand(parser, self.precedence)
        marker.done(self.kind)
        return ParseOutcome(marker, self.kind, ok)


# Infix parselets


class BinaryOperatorParselet(InfixParselet):
    def __init__(self, kind: NodeKind, precedence: int, right_associative: bool = False) -> None:
        super().__init__(precedence)
        self.kind = kind
        self.right_associative = right_associative

    def parse(self, parser: Parser, left: ParseOutcome) -> ParseOutcome:
        assert left.marker is not None  # for mypy
        marker = left.marker.precede()
        parser.advance_lexer()
        precedence = self.precedence - 1 if self.right_associative else self.precedence
        ok = parse_operand(parser, precedence)
        marker.done(self.kind)
        return ParseOutcome(marker, self.kind, ok)


class FlatOperatorParselet(InfixParselet):
    """N-ary operators that collect a whole chain, so `a+b+c` becomes one `Plus` node."""

    def __init__(self, kind: NodeKind, precedence: int) -> None:
        super().__init__(precedence)
        self.kind = kind

    def next_operand(self, parser: Parser, operator: str) -> bool:
        """Consumes the operator token in front of the next operand, if the chain continues."""
        if parser.continues_with(operator):
            parser.advance_lexer()
            return True
        return False

    def parse(self, parser: Parser, left: ParseOutcome) -> ParseOutcome:
        assert left.marker is not None  # for mypy
        marker = left.marker.precede()
        operator = parser.token_type()
        ok = True
        while self.next_operand(parser, operator):
            if not parse_operand(parser, self.precedence):
                ok = False
                break
        marker.done(self.kind)
        return ParseOutcome(marker, self.kind, ok)


class TimesParselet(FlatOperatorParselet):
    """Multiplication, written with `*` or by juxtaposition as in `2 x y`."""

    def __init__(self, precedence: int) -> None:
        super().__init__(NodeKind.TIMES, precedence)

    def next_operand(self, parser: Parser, operator: str) -> bool:
        if parser.continues_with("TIMES"):
            parser.advance_lexer()
            return True
        return parser.juxtaposition_follows()


class PostfixOperatorParselet(InfixParselet):
    """Single-token postfix operators like `a!`, `i++` or `body &`.

    The node kind is whatever the registry associates with this parselet.
    """

    def parse(self, parser: Parser, left: ParseOutcome) -> ParseOutcome:
        assert left.marker is not None  # for mypy
        kind = parser.registry.element_for(self)
        postfix = left.marker.precede()
        parser.advance_lexer()
        postfix.done(kind)
        return ParseOutcome(postfix, kind, True)


class FunctionCallParselet(InfixParselet):
    """`f[args]`, and `expr[[i, j]]` for `Part`."""

    def parse(self, parser: Parser, left: ParseOutcome) -> ParseOutcome:
        assert left.marker is not None  # for mypy
        marker = left.marker.precede()
        is_part = parser.raw_lookahead() == "LEFT_BRACKET"
        parser.advance_lexer()
        with parser.grouping():
            if is_part:
                parser.advance_lexer()
            ok = parse_sequence(parser, "RIGHT_BRACKET")
            if is_part:
                ok = expect_closing(parser, "RIGHT_BRACKET", "]]") and ok
            ok = expect_closing(parser, "RIGHT_BRACKET", "]") and ok
        kind = NodeKind.PART if is_part else NodeKind.FUNCTION_CALL
        marker.done(kind)
        return ParseOutcome(marker, kind, ok)


class PatternParselet(InfixParselet):
    """`x_`, `x__h`, ...: a symbol touching a blank becomes `Pattern[x, Blank[...]]`."""

    adjacent_only = True

    def parse(self, parser: Parser, left: ParseOutcome) -> ParseOutcome:
        assert left.marker is not None  # for mypy
        marker = left.marker.precede()
        blank = parser.registry.lookup_prefix(parser.token_type())
        assert blank is not None  # for mypy
        result = blank.parse(parser)
        marker.done(NodeKind.PATTERN)
        return ParseOutcome(marker, NodeKind.PATTERN, result.succeeded)


class MessageNameParselet(InfixParselet):
    """`symbol::tag` and `symbol::tag::language`.

    The tags are strings in the target language. A bare symbol written as a tag is
    therefore turned into a `StringifiedSymbol`; anything else but a string is marked
    as an error.
    """

    def parse(self, parser: Parser, left: ParseOutcome) -> ParseOutcome:
        assert left.marker is not None  # for mypy
        message_name = left.marker.precede()
        parsed, ok = self.parse_tag(parser)
        if parsed and parser.matches_token("DOUBLE_COLON"):
            ok = self.parse_tag(parser)[1]
        message_name.done(NodeKind.MESSAGE_NAME)
        return ParseOutcome(message_name, NodeKind.MESSAGE_NAME, ok)

    def parse_tag(self, parser: Parser) -> tuple[bool, bool]:
        """Consumes `::` and the tag after it.

        Returns whether a tag was parsed at all and whether it is a valid symbol or string.
        """
        parser.advance_lexer()
        result = parser.parse_expression(self.precedence)
        if not result.valid:
            parser.error(message("MessageName.arg"))
            return False, False
        assert result.marker is not None  # for mypy
        if result.kind == NodeKind.SYMBOL:
            stringified = result.marker.precede()
            stringified.done(NodeKind.STRINGIFIED_SYMBOL)
            result.marker.drop()
            return True, result.succeeded
        if result.kind != NodeKind.STRING:
            result.marker.precede().error(message("MessageName.no.symbol.or.string"))
            return True, False
        return True, result.succeeded


class CompoundExpressionParselet(InfixParselet):
    """`a; b; c`. A trailing `;` ends the sequence with an implicit `Null`."""

    def parse(self, parser: Parser, left: ParseOutcome) -> ParseOutcome:
        assert left.marker is not None  # for mypy
        marker = left.marker.precede()
        ok = True
        while True:
            parser.advance_lexer()
            if parser.expression_follows():
                ok = parse_operand(parser, self.precedence) and ok
            else:
                parser.empty(NodeKind.NULL)
            if not parser.continues_with("SEMICOLON"):
                break
        marker.done(NodeKind.COMPOUND_EXPRESSION)
        return ParseOutcome(marker, NodeKind.COMPOUND_EXPRESSION, ok)


class TagSetParselet(InfixParselet):
    """`f /: lhs = rhs`, `f /: lhs := rhs`."""

    assignments = {"SET": NodeKind.TAG_SET, "SET_DELAYED": NodeKind.TAG_SET_DELAYED}

    def parse(self, parser: Parser, left: ParseOutcome) -> ParseOutcome:
        assert left.marker is not None  # for mypy
        marker = left.marker.precede()
        parser.advance_lexer()
        if not parse_operand(parser, self.precedence):
            marker.done(NodeKind.TAG_SET)
            return ParseOutcome(marker, NodeKind.TAG_SET, False)

        kind = self.assignments.get(parser.token_type())
        if kind is None:
            parser.error(message("TagSet.assignment.expected"))
            marker.done(NodeKind.TAG_SET)
            return ParseOutcome(marker, NodeKind.TAG_SET, False)

        parser.advance_lexer()
        ok = parse_operand(parser, self.precedence - 1)
        marker.done(kind)
        return ParseOutcome(marker, kind, ok)


__all__ = [
    "AtomParselet",
    "BinaryOperatorParselet",
    "BlankParselet",
    "CompoundExpressionParselet",
    "FlatOperatorParselet",
    "FunctionCallParselet",
    "GroupParselet",
    "InfixParselet",
    "ListParselet",
    "MessageNameParselet",
    "ParseOutcome",
    "PatternParselet",
    "PostfixOperatorParselet",
    "PrefixOperatorParselet",
    "PrefixParselet",
    "TagSetParselet",
    "TimesParselet",
    "expect_closing",
    "parse_operand",
    "parse_sequence",
]
