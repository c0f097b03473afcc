import pytest
from hypothesis import given
from hypothesis import strategies as st

from conftest import first, parse
from wlparse.wl_ast import Node, NodeKind, make_symbol
from wlparse.wl_lexer import Token


def test_node_repr() -> None:
    node = make_symbol("x")
    assert repr(node) == "Node(Symbol, text='x')"


def test_error_repr_shows_message() -> None:
    node = Node(NodeKind.ERROR, message="Expression expected")
    assert repr(node) == "Node(Error, message='Expression expected')"


def test_nodes_compare_by_identity() -> None:
    assert make_symbol("x") != make_symbol("x")
    node = make_symbol("x")
    assert node == node
    assert len({node, make_symbol("x")}) == 2


def test_leaves_are_not_expressions() -> None:
    call = first("f[ a, b ]")
    assert call.kind == NodeKind.FUNCTION_CALL
    assert [c.text for c in call.expressions] == ["f", "a", "b"]
    assert any(c.is_whitespace for c in call.children)
    assert call.head is not None and call.head.text == "f"
    assert [a.text for a in call.arguments] == ["a", "b"]
    assert call.argument(0) is call.head
    assert call.argument(2) is call.arguments[1]
    assert call.argument(3) is None


def test_positions() -> None:
    tree = parse("a\n  f[x]")
    call = tree.expressions[1]
    assert (call.line, call.col) == (2, 3)


def test_to_dict() -> None:
    d = first("f[1]").to_dict()
    assert d["kind"] == "FunctionCall"
    assert d["text"] == "f[1]"
    assert (d["line"], d["col"]) == (1, 1)
    assert [c["kind"] for c in d["children"]] == ["Symbol", "Number"]
    assert "message" not in d


def test_to_dict_of_error_has_message() -> None:
    (error,) = parse("f[a").errors()
    assert error.to_dict()["message"] == "']' expected"


def test_walk_is_preorder() -> None:
    tree = parse("f[g[x], y]")
    names = [n.text for n in tree.walk() if n.kind == NodeKind.SYMBOL]
    assert names == ["f", "g", "x", "y"]


def test_ancestors_and_root() -> None:
    tree = parse("f[g[x]]")
    x = next(n for n in tree.walk() if n.kind == NodeKind.SYMBOL and n.text == "x")
    kinds = [a.kind for a in x.ancestors()]
    assert kinds == [NodeKind.FUNCTION_CALL, NodeKind.FUNCTION_CALL, NodeKind.FILE]
    assert x.root() is tree


def test_edit_bumps_versions_up_to_root() -> None:
    tree = parse("f[g[x]]")
    outer = tree.first_expression
    assert outer is not None
    inner = outer.arguments[0]
    before = (tree.version, outer.version, inner.version)
    untouched = outer.head
    assert untouched is not None
    untouched_version = untouched.version

    inner.append_child(make_symbol("y"))

    assert tree.version > before[0]
    assert outer.version > before[1]
    assert inner.version > before[2]
    assert untouched.version == untouched_version


def test_replace_child_moves_parent() -> None:
    call = first("f[x]")
    old = call.head
    assert old is not None
    new = make_symbol("Module")
    call.replace_child(old, new)
    assert call.head is new
    assert new.parent is call
    assert old.parent is None


def test_remove_and_insert_child() -> None:
    call = first("f[x]")
    x = call.arguments[0]
    call.remove_child(x)
    assert call.arguments == []
    call.insert_child(len(call.children) - 1, x)
    assert call.arguments == [x]


def test_adopting_owned_node_raises() -> None:
    call = first("f[x]")
    with pytest.raises(ValueError):
        call.append_child(call.arguments[0])


def test_cycle_is_rejected() -> None:
    outer = Node(NodeKind.LIST)
    inner = Node(NodeKind.LIST)
    outer.append_child(inner)
    with pytest.raises(ValueError):
        inner.append_child(outer)


def test_leaf_text() -> None:
    leaf = Node.leaf(NodeKind.TOKEN, Token("PLUS", "+"))
    assert leaf.is_leaf
    assert leaf.text == "+"
    assert leaf.expressions == []


@given(st.lists(st.sampled_from(["a", "b", "c"]), min_size=1, max_size=6))  # type: ignore[misc]
def test_version_increases_with_each_edit(names: list[str]) -> None:
    root = Node(NodeKind.LIST)
    seen = [root.version]
    for name in names:
        root.append_child(make_symbol(name))
        seen.append(root.version)
    assert seen == sorted(set(seen))
