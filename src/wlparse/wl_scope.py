"""
Classification of localizing constructs such as `Module[{x}, ...]` or `Table[..., {i, n}]`.

A function call is a localizing construct when its head is a symbol naming one of
the known scoping functions. Classification is memoized per node in a side table
owned by the classifier; an entry is only reused while the node's structural
version is unchanged, so editing a call (or its head) forces a fresh lookup.
"""

import logging
import threading
import weakref
from enum import Enum

from wlparse.wl_ast import Node, NodeKind

logger = logging.getLogger(__name__)


class ConstructType(Enum):
    MODULE = "Module"
    BLOCK = "Block"
    WITH = "With"
    FUNCTION = "Function"
    TABLE = "Table"
    DO = "Do"
    SUM = "Sum"
    PRODUCT = "Product"
    NSUM = "NSum"
    NPRODUCT = "NProduct"
    INTEGRATE = "Integrate"
    NINTEGRATE = "NIntegrate"
    PLOT = "Plot"
    PLOT3D = "Plot3D"
    MANIPULATE = "Manipulate"
    COMPILE = "Compile"
    LIMIT = "Limit"
    SET_DELAYED = "SetDelayed"
    RULE_DELAYED = "RuleDelayed"
    NULL = "Null"


LOCALIZATION_CONSTRUCTS: dict[str, ConstructType] = {
    "Module": ConstructType.MODULE,
    "Block": ConstructType.BLOCK,
    "With": ConstructType.WITH,
    "Function": ConstructType.FUNCTION,
    "Table": ConstructType.TABLE,
    "ParallelTable": ConstructType.TABLE,
    "Do": ConstructType.DO,
    "ParallelDo": ConstructType.DO,
    "Sum": ConstructType.SUM,
    "Product": ConstructType.PRODUCT,
    "NSum": ConstructType.NSUM,
    "NProduct": ConstructType.NPRODUCT,
    "Integrate": ConstructType.INTEGRATE,
    "NIntegrate": ConstructType.NINTEGRATE,
    "Plot": ConstructType.PLOT,
    "ParametricPlot": ConstructType.PLOT,
    "LogPlot": ConstructType.PLOT,
    "Plot3D": ConstructType.PLOT3D,
    "ContourPlot": ConstructType.PLOT3D,
    "DensityPlot": ConstructType.PLOT3D,
    "Manipulate": ConstructType.MANIPULATE,
    "Compile": ConstructType.COMPILE,
    "Limit": ConstructType.LIMIT,
}

# Operator forms that localize the pattern names of their left-hand side.
OPERATOR_CONSTRUCTS: dict[NodeKind, ConstructType] = {
    NodeKind.SET_DELAYED: ConstructType.SET_DELAYED,
    NodeKind.RULE_DELAYED: ConstructType.RULE_DELAYED,
}

_ITERATOR_CONSTRUCTS = frozenset(
    {
        ConstructType.TABLE,
        ConstructType.DO,
        ConstructType.SUM,
        ConstructType.PRODUCT,
        ConstructType.NSUM,
        ConstructType.NPRODUCT,
        ConstructType.INTEGRATE,
        ConstructType.NINTEGRATE,
        ConstructType.PLOT,
        ConstructType.PLOT3D,
        ConstructType.MANIPULATE,
    }
)


_INITIALIZER_CONSTRUCTS = frozenset({ConstructType.MODULE, ConstructType.BLOCK, ConstructType.WITH})


def get_type(name: str) -> ConstructType:
    return LOCALIZATION_CONSTRUCTS.get(name, ConstructType.NULL)


def _unwrap(node: Node | None) -> Node | None:
    while node is not None and node.kind == NodeKind.GROUP:
        node = node.first_expression
    return node


def _symbol(node: Node | None) -> Node | None:
    node = _unwrap(node)
    return node if node is not None and node.kind == NodeKind.SYMBOL else None


def pattern_symbols(lhs: Node) -> list[Node]:
    """Names bound by the patterns in `lhs`: the `x` of every `x_`, `x__h` or `x : p`."""
    found = []
    for node in lhs.walk():
        if node.kind == NodeKind.PATTERN:
            name = _symbol(node.first_expression)
            if name is not None:
                found.append(name)
    return found


def _list_entries(node: Node | None) -> list[Node]:
    node = _unwrap(node)
    if node is None:
        return []
    if node.kind == NodeKind.LIST:
        return node.expressions
    return [node]


def _declaration(entry: Node) -> Node | None:
    """`x`, `x = value` and `x := value` all declare `x`."""
    entry = _unwrap(entry) or entry
    if entry.kind in (NodeKind.SET, NodeKind.SET_DELAYED):
        return _symbol(entry.first_expression)
    return _symbol(entry)


def _in_initializer_value(call: Node, place: Node) -> bool:
    """Whether `place` sits in the value of an `x = value` entry of the variable list."""
    for entry in _list_entries(call.argument(1)):
        entry = _unwrap(entry) or entry
        if entry.kind not in (NodeKind.SET, NodeKind.SET_DELAYED):
            continue
        value = entry.argument(1)
        if value is not None and (place is value or any(a is value for a in place.ancestors())):
            return True
    return False


def _iterator_variable(iterator: Node) -> Node | None:
    """The variable of an iterator `{i, ...}`, also for Manipulate's `{{i, init}, ...}`."""
    iterator = _unwrap(iterator) or iterator
    if iterator.kind != NodeKind.LIST:
        return None
    first = _unwrap(iterator.first_expression)
    if first is not None and first.kind == NodeKind.LIST:
        first = _unwrap(first.first_expression)
    return _symbol(first)


def localized_symbols(call: Node, construct: ConstructType) -> list[Node]:
    """Returns the symbol nodes `call` declares as local, given its construct type.

    Args:
        call: A function call or an operator form such as `lhs := rhs`.
        construct: The classification of `call`.

    Returns:
        The declaring symbol occurrences in source order; empty for `NULL`.
    """
    if construct in (ConstructType.SET_DELAYED, ConstructType.RULE_DELAYED):
        lhs = call.first_expression
        return pattern_symbols(lhs) if lhs is not None else []

    args = call.arguments
    if not args:
        return []

    if construct in (ConstructType.MODULE, ConstructType.BLOCK, ConstructType.WITH):
        return [s for s in map(_declaration, _list_entries(args[0])) if s is not None]

    if construct == ConstructType.FUNCTION:
        if len(args) < 2:
            return []
        return [s for s in map(_symbol, _list_entries(args[0])) if s is not None]

    if construct in _ITERATOR_CONSTRUCTS:
        return [s for s in map(_iterator_variable, args[1:]) if s is not None]

    if construct == ConstructType.COMPILE:
        found = []
        for entry in _list_entries(args[0]):
            entry = _unwrap(entry) or entry
            found.append(_symbol(entry.first_expression) if entry.kind == NodeKind.LIST else _symbol(entry))
        return [s for s in found if s is not None]

    if construct == ConstructType.LIMIT and len(args) >= 2:
        rule = _unwrap(args[1])
        if rule is not None and rule.kind == NodeKind.RULE:
            name = _symbol(rule.first_expression)
            return [name] if name is not None else []

    return []


class ScopeClassifier:
    """Memoizing classifier of localizing constructs.

    Args:
        constructs (dict[str, ConstructType], optional): Head name table; defaults to
            `LOCALIZATION_CONSTRUCTS`.

    Attributes:
        recomputations (int): Number of times a classification was computed rather
            than served from the cache.
    """

    def __init__(self, constructs: dict[str, ConstructType] | None = None) -> None:
        self.constructs = dict(LOCALIZATION_CONSTRUCTS if constructs is None else constructs)
        self.recomputations = 0
        self._cache: weakref.WeakKeyDictionary[Node, tuple[int, ConstructType]] = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config) -> "ScopeClassifier":
        """Builds a classifier whose table is extended by `config.scoping_constructs`."""
        constructs = dict(LOCALIZATION_CONSTRUCTS)
        for name, type_name in config.scoping_constructs.items():
            constructs[name] = ConstructType[type_name]
        return cls(constructs)

    def _compute(self, node: Node) -> ConstructType:
        if node.kind in OPERATOR_CONSTRUCTS:
            return OPERATOR_CONSTRUCTS[node.kind]
        if node.kind != NodeKind.FUNCTION_CALL:
            return ConstructType.NULL
        head = node.head
        if head is None or head.kind != NodeKind.SYMBOL:
            return ConstructType.NULL
        return self.constructs.get(head.symbol_name, ConstructType.NULL)

    def classify(self, node: Node) -> ConstructType:
        with self._lock:
            cached = self._cache.get(node)
            if cached is not None and cached[0] == node.version:
                return cached[1]
            construct = self._compute(node)
            self._cache[node] = (node.version, construct)
            self.recomputations += 1
        logger.debug("Classified %r as %s", node, construct.name)
        return construct

    scoping_construct = classify

    def is_scoping_construct(self, node: Node) -> bool:
        return self.classify(node) != ConstructType.NULL

    def process_declarations(self, element: Node, last_parent: Node, place: Node) -> list[Node]:
        """Local declarations `element` contributes to a reference at `place`.

        Called while walking upwards from `place`; `last_parent` is the child of
        `element` the walk came from. A call only contributes when the walk enters it
        through one of its arguments, never through its head. Module, Block and With
        declare nothing for the values of their initializers, which are evaluated outside.

        Returns:
            The declaring symbols, or an empty list when `element` binds nothing here.
        """
        if last_parent.parent is not element:
            return []
        if element.kind == NodeKind.FUNCTION_CALL and last_parent is element.head:
            return []
        construct = self.classify(element)
        if construct == ConstructType.NULL:
            return []
        if construct in _INITIALIZER_CONSTRUCTS and _in_initializer_value(element, place):
            return []
        return localized_symbols(element, construct)


__all__ = [
    "ConstructType",
    "LOCALIZATION_CONSTRUCTS",
    "OPERATOR_CONSTRUCTS",
    "ScopeClassifier",
    "get_type",
    "localized_symbols",
    "pattern_symbols",
]
