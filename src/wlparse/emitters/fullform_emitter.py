"""
Renders wlparse syntax trees as FullForm text.

FullForm is the canonical, fully bracketed notation of the Wolfram Language:
`a + b c` becomes `Plus[a,Times[b,c]]` and `x::usage` becomes
`MessageName[x,"usage"]`. Arguments are joined by a bare comma.

Rendering Rules:
    - FunctionCall: `head[arg1,arg2,...]`
    - Symbol and Number: source text verbatim
    - String: source text verbatim, quotes included
    - StringifiedSymbol: the symbol name in double quotes
    - Slot / SlotSequence: `Slot[n]` / `SlotSequence[n]`, `n` defaulting to 1;
      named slots render as `Slot["name"]`
    - Function (`body &`): `Function[body]`
    - Prefix (`f@x`) and Postfix (`x//f`) calls: `f[x]`
    - Group (`(expr)`): the inner expression
    - Null (after a trailing `;`): `Null`
    - File: one line per top-level expression
    - Anything else: `Head[children]`, the head being the node kind's name

Token and whitespace children never produce output, so no stray commas appear.
"""

from wlparse.wl_ast import Node, NodeKind


class FullFormEmitter:
    """Collects FullForm lines for the nodes passed to `emit`.

    Attributes:
        lines (list[str]): Rendered lines in emission order.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []

    def get_output(self) -> str:
        return "\n".join(self.lines)

    def emit(self, node: Node) -> None:
        if node.kind == NodeKind.FILE:
            self.lines.extend(self.render(expr) for expr in node.expressions)
        else:
            self.lines.append(self.render(node))

    def render(self, node: Node) -> str:
        kind = node.kind
        if kind == NodeKind.FUNCTION_CALL:
            head, *args = node.expressions
            return self.render(head) + self._bracket(args)
        elif kind in (NodeKind.SYMBOL, NodeKind.NUMBER, NodeKind.STRING):
            return node.text
        elif kind == NodeKind.STRINGIFIED_SYMBOL:
            return f'"{node.text}"'
        elif kind in (NodeKind.SLOT, NodeKind.SLOT_SEQUENCE):
            return kind.value + "[" + self._slot_index(node.text) + "]"
        elif kind == NodeKind.FUNCTION:
            return "Function" + self._bracket(node.expressions)
        elif kind == NodeKind.PREFIX_CALL:
            head, *args = node.expressions
            return self.render(head) + self._bracket(args)
        elif kind == NodeKind.POSTFIX_CALL:
            *args, head = node.expressions
            return self.render(head) + self._bracket(args)
        elif kind == NodeKind.GROUP:
            inner = node.first_expression
            return self.render(inner) if inner is not None else ""
        elif kind == NodeKind.NULL:
            return "Null"
        elif kind == NodeKind.FILE:
            return "\n".join(self.render(expr) for expr in node.expressions)
        else:
            return kind.value + self._bracket(node.expressions)

    def _bracket(self, args: list[Node]) -> str:
        return "[" + ",".join(self.render(arg) for arg in args) + "]"

    @staticmethod
    def _slot_index(text: str) -> str:
        suffix = text.lstrip("#")
        if not suffix:
            return "1"
        if suffix.isdigit():
            return suffix
        return f'"{suffix}"'
