"""
Defines the concrete syntax tree used by the wlparse parser, resolvers and emitters.

Classes:
    NodeKind:
        Closed enumeration of node kinds. The value of each member is the FullForm
        head the renderer falls back to for kinds without a dedicated rule.

    Node:
        A node in the syntax tree. Composite nodes own an ordered list of children;
        leaf nodes wrap exactly one Token (operators, brackets, whitespace, ...).

    NodeDict:
        TypedDict representation for serializing Node instances to plain Python
        dictionaries, suitable for JSON output or debugging.

Each Node tracks:
    kind (NodeKind): The syntactic construct.
    token (Token, optional): The wrapped token of a leaf.
    children (list[Node]): Child nodes in source order, leaves included.
    parent (Node, optional): The owning node; None for the root.
    message (str, optional): The error message of an `Error` node.
    version (int): Advances whenever this node or any descendant is structurally edited.

Usage:
    Nodes are produced by `wlparse.wl_builder.TreeBuilder` while parsing. The editing
    methods (`append_child`, `insert_child`, `replace_child`, `remove_child`) are the
    only way to change a tree after construction; each bumps the version of the edited
    node and of every ancestor so memoized analysis results can tell they are stale.

Example:
    node = Node(NodeKind.SYMBOL, children=[Node.leaf(NodeKind.TOKEN, Token("IDENTIFIER", "x"))])
"""

import itertools
from collections.abc import Iterator
from enum import Enum
from typing import Any, TypedDict

from wlparse.wl_lexer import Token


class NodeKind(Enum):
    # Atoms
    SYMBOL = "Symbol"
    NUMBER = "Number"
    STRING = "String"
    STRINGIFIED_SYMBOL = "StringifiedSymbol"
    SLOT = "Slot"
    SLOT_SEQUENCE = "SlotSequence"
    NULL = "Null"

    # Structure
    FILE = "File"
    GROUP = "Group"
    FUNCTION_CALL = "FunctionCall"
    PART = "Part"
    LIST = "List"
    MESSAGE_NAME = "MessageName"
    COMPOUND_EXPRESSION = "CompoundExpression"
    FUNCTION = "Function"
    PREFIX_CALL = "Prefix"
    POSTFIX_CALL = "Postfix"
    ERROR = "Error"

    # Assignment
    SET = "Set"
    SET_DELAYED = "SetDelayed"
    TAG_SET = "TagSet"
    TAG_SET_DELAYED = "TagSetDelayed"
    UP_SET = "UpSet"
    UP_SET_DELAYED = "UpSetDelayed"
    UNSET = "Unset"
    ADD_TO = "AddTo"
    SUBTRACT_FROM = "SubtractFrom"
    TIMES_BY = "TimesBy"
    DIVIDE_BY = "DivideBy"

    # Patterns and rules
    PATTERN = "Pattern"
    PATTERN_TEST = "PatternTest"
    BLANK = "Blank"
    BLANK_SEQUENCE = "BlankSequence"
    BLANK_NULL_SEQUENCE = "BlankNullSequence"
    CONDITION = "Condition"
    ALTERNATIVES = "Alternatives"
    REPEATED = "Repeated"
    REPEATED_NULL = "RepeatedNull"
    RULE = "Rule"
    RULE_DELAYED = "RuleDelayed"
    REPLACE_ALL = "ReplaceAll"
    REPLACE_REPEATED = "ReplaceRepeated"
    STRING_EXPRESSION = "StringExpression"

    # Operators
    PLUS = "Plus"
    SUBTRACT = "Subtract"
    MINUS = "Minus"
    TIMES = "Times"
    DIVIDE = "Divide"
    POWER = "Power"
    DOT = "Dot"
    STRING_JOIN = "StringJoin"
    FACTORIAL = "Factorial"
    FACTORIAL2 = "Factorial2"
    INCREMENT = "Increment"
    DECREMENT = "Decrement"
    PRE_INCREMENT = "PreIncrement"
    PRE_DECREMENT = "PreDecrement"
    DERIVATIVE = "Derivative"
    MAP = "Map"
    APPLY = "Apply"
    MAP_APPLY = "MapApply"
    SPAN = "Span"
    NOT = "Not"
    AND = "And"
    OR = "Or"
    EQUAL = "Equal"
    UNEQUAL = "Unequal"
    SAME_Q = "SameQ"
    UNSAME_Q = "UnsameQ"
    LESS = "Less"
    GREATER = "Greater"
    LESS_EQUAL = "LessEqual"
    GREATER_EQUAL = "GreaterEqual"

    # Leaves
    TOKEN = "Token"
    WHITESPACE = "Whitespace"


LEAF_KINDS = frozenset({NodeKind.TOKEN, NodeKind.WHITESPACE})

_versions = itertools.count(1)


class NodeDict(TypedDict, total=False):
    """
    TypedDict representation of a Node used for serialization.

    Fields:
        kind (str): The FullForm tag of the node kind (e.g., "Symbol", "Set").
        text (str): Source text covered by the node.
        line (int): Line number where the node starts.
        col (int): Column number where the node starts.
        message (str): Error message, present on `Error` nodes only.
        children (list[NodeDict]): Non-leaf children in source order.
    """

    kind: str
    text: str
    line: int
    col: int
    message: str
    children: list["NodeDict"]


class Node:
    """
    Represents a node in the concrete syntax tree.

    Args:
        kind (NodeKind): The kind of the node.
        token (Token, optional): The token wrapped by a leaf node.
        children (list[Node], optional): Child nodes; their `parent` is set to this node.
        message (str, optional): Error description for `Error` nodes.
        position (tuple[int, int], optional): Line and column of a node that covers no tokens.

    Attributes:
        kind (NodeKind): Kind of the node, fixed at construction.
        token (Token | None): Wrapped token for leaves.
        children (list[Node]): All children, leaves included.
        parent (Node | None): Owning node.
        message (str | None): Error message.
        version (int): Structural version stamp.

    Nodes compare and hash by identity: two `x` symbols are distinct nodes that merely
    share a name.
    """

    def __init__(
        self,
        kind: NodeKind,
        token: Token | None = None,
        children: list["Node"] | None = None,
        message: str | None = None,
        position: tuple[int, int] | None = None,
    ):
        self.kind = kind
        self.token = token
        self.children: list["Node"] = []
        self.parent: "Node | None" = None
        self.message = message
        self.position = position
        self.version = next(_versions)
        for child in children or []:
            self._adopt(child)
            self.children.append(child)

    @classmethod
    def leaf(cls, kind: NodeKind, token: Token) -> "Node":
        return cls(kind, token=token)

    def __repr__(self) -> str:
        parts = [self.kind.value]
        if self.kind == NodeKind.ERROR and self.message:
            parts.append(f"message={self.message!r}")
        elif self.is_leaf or not self.expressions:
            parts.append(f"text={self.text!r}")
        exprs = self.expressions
        if exprs:
            preview = ", ".join(repr(c) for c in exprs[:3])
            if len(exprs) > 3:
                preview += ", ..."
            parts.append(f"children=[{preview}]")
        return f"Node({', '.join(parts)})"

    # Structure

    @property
    def is_leaf(self) -> bool:
        return self.kind in LEAF_KINDS

    @property
    def is_whitespace(self) -> bool:
        return self.kind == NodeKind.WHITESPACE

    @property
    def text(self) -> str:
        if self.token is not None:
            return self.token.value
        return "".join(child.text for child in self.children)

    @property
    def expressions(self) -> list["Node"]:
        """Children that are not leaves, i.e. the operands of this node."""
        return [child for child in self.children if not child.is_leaf]

    @property
    def first_expression(self) -> "Node | None":
        for child in self.children:
            if not child.is_leaf:
                return child
        return None

    @property
    def head(self) -> "Node | None":
        """The head of a function call (its first operand)."""
        return self.first_expression

    @property
    def arguments(self) -> list["Node"]:
        return self.expressions[1:]

    def argument(self, n: int) -> "Node | None":
        """Returns operand `n`, where 0 is the head of a call and 1 its first argument."""
        exprs = self.expressions
        return exprs[n] if 0 <= n < len(exprs) else None

    @property
    def symbol_name(self) -> str:
        return self.text

    @property
    def line(self) -> int:
        tok = self.first_token()
        if tok is not None:
            return tok.line
        return self.position[0] if self.position else 0

    @property
    def col(self) -> int:
        tok = self.first_token()
        if tok is not None:
            return tok.col
        return self.position[1] if self.position else 0

    def first_token(self) -> Token | None:
        if self.token is not None:
            return self.token
        for child in self.children:
            if child.is_whitespace:
                continue
            tok = child.first_token()
            if tok is not None:
                return tok
        return None

    def walk(self) -> Iterator["Node"]:
        """Yields this node and all descendants in pre-order, left to right."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def ancestors(self) -> Iterator["Node"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def root(self) -> "Node":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def errors(self) -> list["Node"]:
        return [node for node in self.walk() if node.kind == NodeKind.ERROR]

    # Editing

    def _adopt(self, child: "Node") -> None:
        if child.parent is not None:
            raise ValueError(f"{child!r} already belongs to {child.parent!r}")
        if child is self or any(a is child for a in self.ancestors()):
            raise ValueError("A node cannot become its own descendant")
        child.parent = self

    def _subtree_changed(self) -> None:
        stamp = next(_versions)
        node: Node | None = self
        while node is not None:
            node.version = stamp
            node = node.parent

    def append_child(self, child: "Node") -> None:
        self._adopt(child)
        self.children.append(child)
        self._subtree_changed()

    def insert_child(self, index: int, child: "Node") -> None:
        self._adopt(child)
        self.children.insert(index, child)
        self._subtree_changed()

    def remove_child(self, child: "Node") -> None:
        self.children.remove(child)
        child.parent = None
        self._subtree_changed()

    def replace_child(self, old: "Node", new: "Node") -> None:
        index = next(i for i, c in enumerate(self.children) if c is old)
        self._adopt(new)
        self.children[index] = new
        old.parent = None
        self._subtree_changed()

    # Serialization

    def to_dict(self) -> NodeDict:
        result: NodeDict = {
            "kind": self.kind.value,
            "text": self.text,
            "line": self.line,
            "col": self.col,
            "children": [c.to_dict() for c in self.expressions],
        }
        if self.message is not None:
            result["message"] = self.message
        return result


def make_symbol(name: str) -> Node:
    """Builds a detached Symbol node, e.g. for tree edits."""
    return Node(NodeKind.SYMBOL, children=[Node.leaf(NodeKind.TOKEN, Token("IDENTIFIER", name))])


__all__ = ["LEAF_KINDS", "Node", "NodeDict", "NodeKind", "make_symbol"]
