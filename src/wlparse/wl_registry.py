"""
Parselet registry: which parselet handles a token, and how tightly it binds.

The registry is an immutable value built once by `build_registry` and handed to
every `Parser`. Precedence overrides from a `GrammarConfig` apply to infix
parselets only; prefix operators keep their default binding.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import TYPE_CHECKING

from wlparse.wl_ast import NodeKind
from wlparse.wl_parselets import (
    AtomParselet,
    BinaryOperatorParselet,
    BlankParselet,
    CompoundExpressionParselet,
    FlatOperatorParselet,
    FunctionCallParselet,
    GroupParselet,
    InfixParselet,
    ListParselet,
    MessageNameParselet,
    PatternParselet,
    PostfixOperatorParselet,
    PrefixOperatorParselet,
    PrefixParselet,
    TagSetParselet,
    TimesParselet,
)

if TYPE_CHECKING:
    from wlparse.wl_config import GrammarConfig

logger = logging.getLogger(__name__)

IMPLICIT_TIMES_PRECEDENCE = 400


def _binary(kind: NodeKind, right: bool = False) -> Callable[[int], InfixParselet]:
    return lambda precedence: BinaryOperatorParselet(kind, precedence, right)


def _flat(kind: NodeKind) -> Callable[[int], InfixParselet]:
    return lambda precedence: FlatOperatorParselet(kind, precedence)


# token type -> (default precedence, parselet factory, element kind for postfix parselets)
INFIX_TABLE: dict[str, tuple[int, Callable[[int], InfixParselet], NodeKind | None]] = {
    "SEMICOLON": (10, CompoundExpressionParselet, None),
    "SET": (40, _binary(NodeKind.SET, right=True), None),
    "SET_DELAYED": (40, _binary(NodeKind.SET_DELAYED, right=True), None),
    "UP_SET": (40, _binary(NodeKind.UP_SET, right=True), None),
    "UP_SET_DELAYED": (40, _binary(NodeKind.UP_SET_DELAYED, right=True), None),
    "TAG_SET": (40, TagSetParselet, None),
    "UNSET": (40, PostfixOperatorParselet, NodeKind.UNSET),
    "POSTFIX": (70, _binary(NodeKind.POSTFIX_CALL), None),
    "FUNCTION": (90, PostfixOperatorParselet, NodeKind.FUNCTION),
    "ADD_TO": (100, _binary(NodeKind.ADD_TO, right=True), None),
    "SUBTRACT_FROM": (100, _binary(NodeKind.SUBTRACT_FROM, right=True), None),
    "TIMES_BY": (100, _binary(NodeKind.TIMES_BY, right=True), None),
    "DIVIDE_BY": (100, _binary(NodeKind.DIVIDE_BY, right=True), None),
    "REPLACE_ALL": (110, _binary(NodeKind.REPLACE_ALL), None),
    "REPLACE_REPEATED": (110, _binary(NodeKind.REPLACE_REPEATED), None),
    "RULE": (120, _binary(NodeKind.RULE, right=True), None),
    "RULE_DELAYED": (120, _binary(NodeKind.RULE_DELAYED, right=True), None),
    "CONDITION": (130, _binary(NodeKind.CONDITION), None),
    "STRING_EXPRESSION": (135, _flat(NodeKind.STRING_EXPRESSION), None),
    "COLON": (150, _binary(NodeKind.PATTERN), None),
    "ALTERNATIVES": (160, _flat(NodeKind.ALTERNATIVES), None),
    "REPEATED": (170, PostfixOperatorParselet, NodeKind.REPEATED),
    "REPEATED_NULL": (170, PostfixOperatorParselet, NodeKind.REPEATED_NULL),
    "OR": (215, _flat(NodeKind.OR), None),
    "AND": (220, _flat(NodeKind.AND), None),
    "EQUAL": (290, _flat(NodeKind.EQUAL), None),
    "UNEQUAL": (290, _flat(NodeKind.UNEQUAL), None),
    "SAME_Q": (290, _flat(NodeKind.SAME_Q), None),
    "UNSAME_Q": (290, _flat(NodeKind.UNSAME_Q), None),
    "LESS": (290, _flat(NodeKind.LESS), None),
    "GREATER": (290, _flat(NodeKind.GREATER), None),
    "LESS_EQUAL": (290, _flat(NodeKind.LESS_EQUAL), None),
    "GREATER_EQUAL": (290, _flat(NodeKind.GREATER_EQUAL), None),
    "SPAN": (305, _binary(NodeKind.SPAN), None),
    "PLUS": (310, _flat(NodeKind.PLUS), None),
    "MINUS": (310, _binary(NodeKind.SUBTRACT), None),
    "TIMES": (IMPLICIT_TIMES_PRECEDENCE, TimesParselet, None),
    "DIVIDE": (470, _binary(NodeKind.DIVIDE), None),
    "DOT": (490, _flat(NodeKind.DOT), None),
    "POWER": (590, _binary(NodeKind.POWER, right=True), None),
    "STRING_JOIN": (600, _flat(NodeKind.STRING_JOIN), None),
    "EXCLAMATION": (610, PostfixOperatorParselet, NodeKind.FACTORIAL),
    "FACTORIAL2": (610, PostfixOperatorParselet, NodeKind.FACTORIAL2),
    "MAP": (620, _binary(NodeKind.MAP, right=True), None),
    "APPLY": (620, _binary(NodeKind.APPLY, right=True), None),
    "MAP_APPLY": (620, _binary(NodeKind.MAP_APPLY, right=True), None),
    "PREFIX": (640, _binary(NodeKind.PREFIX_CALL, right=True), None),
    "INCREMENT": (660, PostfixOperatorParselet, NodeKind.INCREMENT),
    "DECREMENT": (660, PostfixOperatorParselet, NodeKind.DECREMENT),
    "DERIVATIVE": (670, PostfixOperatorParselet, NodeKind.DERIVATIVE),
    "QUESTION_MARK": (680, _binary(NodeKind.PATTERN_TEST), None),
    "BLANK": (730, PatternParselet, None),
    "BLANK_SEQUENCE": (730, PatternParselet, None),
    "BLANK_NULL_SEQUENCE": (730, PatternParselet, None),
    "DOUBLE_COLON": (750, MessageNameParselet, None),
    "LEFT_BRACKET": (1000, FunctionCallParselet, None),
}


def _prefix_table() -> dict[str, PrefixParselet]:
    return {
        "IDENTIFIER": AtomParselet(NodeKind.SYMBOL),
        "NUMBER": AtomParselet(NodeKind.NUMBER),
        "STRING": AtomParselet(NodeKind.STRING),
        "SLOT": AtomParselet(NodeKind.SLOT),
        "SLOT_SEQUENCE": AtomParselet(NodeKind.SLOT_SEQUENCE),
        "BLANK": BlankParselet(NodeKind.BLANK),
        "BLANK_SEQUENCE": BlankParselet(NodeKind.BLANK_SEQUENCE),
        "BLANK_NULL_SEQUENCE": BlankParselet(NodeKind.BLANK_NULL_SEQUENCE),
        "LEFT_PAR": GroupParselet(),
        "LEFT_BRACE": ListParselet(),
        "MINUS": PrefixOperatorParselet(NodeKind.MINUS, 480),
        "PLUS": PrefixOperatorParselet(NodeKind.PLUS, 480),
        "EXCLAMATION": PrefixOperatorParselet(NodeKind.NOT, 230),
        "INCREMENT": PrefixOperatorParselet(NodeKind.PRE_INCREMENT, 660),
        "DECREMENT": PrefixOperatorParselet(NodeKind.PRE_DECREMENT, 660),
    }


@dataclass(frozen=True, eq=False)
class ParseletRegistry:
    """Read-only lookup tables of one grammar.

    Attributes:
        prefix: Token type to the parselet that starts an expression with it.
        infix: Token type to the parselet that continues an expression with it.
        elements: Postfix parselet to the node kind it produces.
        implicit: Parselet applied when two expressions are juxtaposed.
    """

    prefix: Mapping[str, PrefixParselet]
    infix: Mapping[str, InfixParselet]
    elements: Mapping[InfixParselet, NodeKind]
    implicit: InfixParselet

    def lookup_prefix(self, token_type: str) -> PrefixParselet | None:
        return self.prefix.get(token_type)

    def lookup_infix(self, token_type: str) -> InfixParselet | None:
        return self.infix.get(token_type)

    def element_for(self, parselet: InfixParselet) -> NodeKind:
        return self.elements[parselet]

    def precedence_of(self, token_type: str) -> int:
        """Binding power of `token_type` as an infix operator; 0 when it is none."""
        parselet = self.infix.get(token_type)
        return parselet.precedence if parselet else 0


def build_registry(config: GrammarConfig | None = None) -> ParseletRegistry:
    """Constructs the Wolfram grammar.

    Args:
        config: Optional grammar configuration whose `precedence` entries replace the
            default infix precedences.

    Returns:
        A new immutable `ParseletRegistry`.
    """
    overrides = dict(config.precedence) if config is not None else {}
    prefix = _prefix_table()
    infix: dict[str, InfixParselet] = {}
    elements: dict[InfixParselet, NodeKind] = {}
    for token_type, (default, factory, element) in INFIX_TABLE.items():
        parselet = factory(overrides.get(token_type, default))
        infix[token_type] = parselet
        if element is not None:
            elements[parselet] = element

    if overrides:
        logger.debug("Precedence overrides: %s", overrides)
    logger.debug("Built registry with %d prefix and %d infix parselets", len(prefix), len(infix))
    return ParseletRegistry(
        prefix=MappingProxyType(prefix),
        infix=MappingProxyType(infix),
        elements=MappingProxyType(elements),
        implicit=infix["TIMES"],
    )


@lru_cache(maxsize=1)
def default_registry() -> ParseletRegistry:
    return build_registry()


__all__ = [
    "IMPLICIT_TIMES_PRECEDENCE",
    "INFIX_TABLE",
    "ParseletRegistry",
    "build_registry",
    "default_registry",
]
