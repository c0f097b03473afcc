"""
Finding where a symbol is defined.

Two searches are offered:

- `find_global_definition` looks for the assignment that defines a name anywhere in
  a file: `x = ...`, `f[x_] := ...`, `f /: g[f] = ...`, `g[f] ^= ...`, their
  `Set[...]`-style call forms, and `SetAttributes[f, ...]` / `SetOptions[f, ...]`.
- `resolve_symbol` first walks upwards from an occurrence through the enclosing
  localizing constructs (`Module`, `Table`, `f[x_] := ...`, ...) and only falls back
  to the global search when none of them declares the name.

Neither function raises. A name without a definition resolves to None.
"""

import logging
from dataclasses import dataclass

from wlparse.wl_ast import Node, NodeKind
from wlparse.wl_scope import ConstructType, ScopeClassifier

logger = logging.getLogger(__name__)

SET_HEADS = frozenset({"Set", "SetDelayed"})
TAG_SET_HEADS = frozenset({"TagSet", "TagSetDelayed"})
UP_SET_HEADS = frozenset({"UpSet", "UpSetDelayed"})
ATTRIBUTE_HEADS = frozenset({"SetAttributes", "SetOptions"})

# Left-hand sides like Attributes[f] = ... or Options[f] = ... define their argument.
WRAPPER_HEADS = frozenset(
    {
        "Attributes",
        "Options",
        "Default",
        "Format",
        "N",
        "SyntaxInformation",
        "Messages",
        "DownValues",
        "UpValues",
        "OwnValues",
        "SubValues",
    }
)

_TRANSPARENT_KINDS = frozenset({NodeKind.GROUP, NodeKind.CONDITION, NodeKind.MESSAGE_NAME, NodeKind.PART})
_BLANK_KINDS = frozenset({NodeKind.BLANK, NodeKind.BLANK_SEQUENCE, NodeKind.BLANK_NULL_SEQUENCE})


def head_name(node: Node | None) -> str | None:
    """Name of the symbol heading a function call, or None."""
    if node is None or node.kind != NodeKind.FUNCTION_CALL:
        return None
    head = node.head
    return head.symbol_name if head is not None and head.kind == NodeKind.SYMBOL else None


def set_definition_symbols(lhs: Node | None) -> list[Node]:
    """Symbols defined by an assignment whose left-hand side is `lhs`.

    `x` defines `x`, `f[x_]` and `f[x][y]` define `f`, `Attributes[f]` defines `f`,
    and `{a, b}` defines both `a` and `b`.
    """
    if lhs is None:
        return []
    if lhs.kind == NodeKind.SYMBOL:
        return [lhs]
    if lhs.kind in _TRANSPARENT_KINDS:
        return set_definition_symbols(lhs.first_expression)
    if lhs.kind == NodeKind.LIST:
        return [s for item in lhs.expressions for s in set_definition_symbols(item)]
    if lhs.kind == NodeKind.FUNCTION_CALL:
        name = head_name(lhs)
        if name == "HoldPattern" or name in WRAPPER_HEADS:
            return set_definition_symbols(lhs.argument(1))
        return set_definition_symbols(lhs.head)
    return []


def _argument_symbol(arg: Node) -> Node | None:
    while arg.kind in _TRANSPARENT_KINDS and arg.first_expression is not None:
        arg = arg.first_expression
    if arg.kind == NodeKind.SYMBOL:
        return arg
    if arg.kind == NodeKind.FUNCTION_CALL:
        defined = set_definition_symbols(arg.head)
        return defined[0] if defined else None
    if arg.kind == NodeKind.PATTERN:
        blank = arg.argument(1)
        if blank is not None and blank.kind in _BLANK_KINDS:
            return blank.first_expression
        return None
    if arg.kind in _BLANK_KINDS:
        return arg.first_expression
    return None


def upset_definition_symbols(lhs: Node | None) -> list[Node]:
    """Symbols an up-value assignment attaches to: the level-one arguments of `lhs`.

    For `g[f, h[x], y_k] ^= ...` these are `f`, `h` and `k`.
    """
    if lhs is None:
        return []
    while lhs.kind in _TRANSPARENT_KINDS and lhs.first_expression is not None:
        lhs = lhs.first_expression
    if head_name(lhs) == "HoldPattern" and lhs.argument(1) is not None:
        return upset_definition_symbols(lhs.argument(1))
    if lhs.kind != NodeKind.FUNCTION_CALL:
        return []
    found = []
    for arg in lhs.arguments:
        symbol = _argument_symbol(arg)
        if symbol is not None:
            found.append(symbol)
    return found


class GlobalDefinitionResolver:
    """Element processor matching assignments against one symbol name.

    Feed it nodes in traversal order through `execute`; it returns False as soon as a
    node defines the name, after which `referring_symbol` holds the defining
    occurrence. Which of several definitions wins is therefore decided by the order
    the caller walks the tree in.

    Args:
        start (Node): The symbol occurrence whose definition is wanted.
    """

    def __init__(self, start: Node) -> None:
        self.start = start
        self.referring_symbol: Node | None = None

    @property
    def name(self) -> str:
        return self.start.symbol_name

    def execute(self, node: Node) -> bool:
        if node.kind in (NodeKind.SET, NodeKind.SET_DELAYED):
            return self._match(set_definition_symbols(node.first_expression))
        if node.kind in (NodeKind.TAG_SET, NodeKind.TAG_SET_DELAYED):
            return self._visit_tag(node.first_expression)
        if node.kind in (NodeKind.UP_SET, NodeKind.UP_SET_DELAYED):
            return self._match(upset_definition_symbols(node.first_expression))

        name = head_name(node)
        if name is None:
            return True
        lhs = node.argument(1)
        if name in SET_HEADS:
            return self._match(set_definition_symbols(lhs))
        if name in TAG_SET_HEADS:
            return self._visit_tag(lhs)
        if name in UP_SET_HEADS:
            return self._match(upset_definition_symbols(lhs))
        if name in ATTRIBUTE_HEADS and lhs is not None and lhs.kind == NodeKind.SYMBOL:
            return self._match([lhs])
        return True

    def _visit_tag(self, tag: Node | None) -> bool:
        if tag is not None and tag.kind == NodeKind.SYMBOL:
            return self._match([tag])
        return True

    def _match(self, candidates: list[Node]) -> bool:
        for symbol in candidates:
            if symbol.symbol_name == self.name:
                self.referring_symbol = symbol
                return False
        return True


def find_global_definition(symbol: Node, root: Node | None = None) -> Node | None:
    """Searches `root` (default: the tree of `symbol`) for the definition of `symbol`.

    Nodes are visited in document order, ancestors before descendants, so the first
    definition in the file wins.
    """
    resolver = GlobalDefinitionResolver(symbol)
    for node in (root if root is not None else symbol.root()).walk():
        if not resolver.execute(node):
            return resolver.referring_symbol
    return None


@dataclass
class SymbolResolution:
    """Where a symbol occurrence gets its meaning.

    Attributes:
        symbol: The occurrence that was resolved.
        definition: The declaring or defining occurrence.
        scope: The localizing construct that declares the name; None for globals.
        construct: Classification of `scope`; `NULL` for globals.
    """

    symbol: Node
    definition: Node
    scope: Node | None
    construct: ConstructType

    @property
    def is_local(self) -> bool:
        return self.scope is not None


def resolve_symbol(symbol: Node, classifier: ScopeClassifier | None = None) -> SymbolResolution | None:
    classifier = classifier or ScopeClassifier()
    name = symbol.symbol_name
    last = symbol
    for element in symbol.ancestors():
        for declared in classifier.process_declarations(element, last, symbol):
            if declared.symbol_name == name:
                construct = classifier.classify(element)
                logger.debug("%s is local to %s at %d:%d", name, construct.value, element.line, element.col)
                return SymbolResolution(symbol, declared, element, construct)
        last = element

    definition = find_global_definition(symbol)
    if definition is None:
        logger.debug("No definition found for %s", name)
        return None
    return SymbolResolution(symbol, definition, None, ConstructType.NULL)


def find_symbol(root: Node, name: str) -> Node | None:
    """First occurrence of the symbol `name` under `root`, in document order."""
    for node in root.walk():
        if node.kind == NodeKind.SYMBOL and node.symbol_name == name:
            return node
    return None


def describe_symbol(root: Node, name: str, classifier: ScopeClassifier | None = None) -> str:
    """One-line, human readable resolution of the first occurrence of `name`."""
    symbol = find_symbol(root, name)
    if symbol is None:
        return f"{name}: no such symbol"
    resolution = resolve_symbol(symbol, classifier)
    if resolution is None:
        return f"{name} at {symbol.line}:{symbol.col}: no definition found"
    where = f"{resolution.definition.line}:{resolution.definition.col}"
    if resolution.scope is not None:
        return f"{name} at {symbol.line}:{symbol.col}: local to {resolution.construct.value}, declared at {where}"
    return f"{name} at {symbol.line}:{symbol.col}: defined at {where}"


__all__ = [
    "ATTRIBUTE_HEADS",
    "GlobalDefinitionResolver",
    "SymbolResolution",
    "WRAPPER_HEADS",
    "describe_symbol",
    "find_global_definition",
    "find_symbol",
    "head_name",
    "resolve_symbol",
    "set_definition_symbols",
    "upset_definition_symbols",
]
