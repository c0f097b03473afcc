import pytest

from wlparse.wl_ast import Node, NodeKind
from wlparse.wl_parser import parse_source
from wlparse.wl_render import render_fullform
from wlparse.wl_scope import ScopeClassifier


def parse(source: str) -> Node:
    return parse_source(source)


def fullform(source: str) -> str:
    return render_fullform(parse_source(source))


def first(source: str) -> Node:
    """The first top-level expression of `source`."""
    expr = parse_source(source).first_expression
    assert expr is not None
    return expr


def symbols(root: Node, name: str) -> list[Node]:
    return [n for n in root.walk() if n.kind == NodeKind.SYMBOL and n.symbol_name == name]


@pytest.fixture  # type: ignore[misc]
def classifier() -> ScopeClassifier:
    return ScopeClassifier()

