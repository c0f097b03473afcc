import threading

import pytest

from conftest import first, parse, symbols
from wlparse.wl_ast import make_symbol
from wlparse.wl_config import GrammarConfig
from wlparse.wl_scope import (
    ConstructType,
    ScopeClassifier,
    get_type,
    localized_symbols,
    pattern_symbols,
)


@pytest.mark.parametrize(  # type: ignore[misc]
    "source,expected",
    [
        ("Module[{x}, x + 1]", ConstructType.MODULE),
        ("Block[{x = 1}, x]", ConstructType.BLOCK),
        ("With[{x = 1}, x]", ConstructType.WITH),
        ("Table[i, {i, 10}]", ConstructType.TABLE),
        ("ParallelTable[i, {i, 10}]", ConstructType.TABLE),
        ("Do[Print[i], {i, 3}]", ConstructType.DO),
        ("Manipulate[x, {x, 0, 1}]", ConstructType.MANIPULATE),
        ("f[x_] := x", ConstructType.SET_DELAYED),
        ("x_ :> x", ConstructType.RULE_DELAYED),
        ("f[x]", ConstructType.NULL),
        ("f[x][y]", ConstructType.NULL),
        ("x = 1", ConstructType.NULL),
        ("{x}", ConstructType.NULL),
    ],
)
def test_classify(classifier: ScopeClassifier, source: str, expected: ConstructType) -> None:
    assert classifier.classify(first(source)) == expected
    assert classifier.is_scoping_construct(first(source)) == (expected != ConstructType.NULL)


def test_get_type() -> None:
    assert get_type("Module") == ConstructType.MODULE
    assert get_type("Sum") == ConstructType.SUM
    assert get_type("Print") == ConstructType.NULL


def test_classification_is_memoized(classifier: ScopeClassifier) -> None:
    call = first("Module[{x}, x]")
    assert classifier.classify(call) == ConstructType.MODULE
    assert classifier.scoping_construct(call) == ConstructType.MODULE
    assert classifier.recomputations == 1


def test_edit_invalidates_cache(classifier: ScopeClassifier) -> None:
    call = first("Module[{x}, x]")
    assert classifier.classify(call) == ConstructType.MODULE
    head = call.head
    assert head is not None
    call.replace_child(head, make_symbol("Block"))
    assert classifier.classify(call) == ConstructType.BLOCK
    assert classifier.recomputations == 2


def test_edit_below_call_invalidates_cache(classifier: ScopeClassifier) -> None:
    call = first("f[x]")
    assert classifier.classify(call) == ConstructType.NULL
    call.arguments[0].append_child(make_symbol("y"))
    classifier.classify(call)
    assert classifier.recomputations == 2


def test_concurrent_classification(classifier: ScopeClassifier) -> None:
    calls = [first("Module[{x}, x]") for _ in range(8)]
    results: list[ConstructType] = []

    def worker() -> None:
        for call in calls:
            results.append(classifier.classify(call))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert set(results) == {ConstructType.MODULE}
    assert classifier.recomputations == len(calls)


def _names(nodes: list) -> list[str]:
    return [n.symbol_name for n in nodes]


@pytest.mark.parametrize(  # type: ignore[misc]
    "source,expected",
    [
        ("Module[{x, y = 2}, x + y]", ["x", "y"]),
        ("Block[{x := 1}, x]", ["x"]),
        ("With[{(x) = 1}, x]", ["x"]),
        ("Function[{a, b}, a + b]", ["a", "b"]),
        ("Function[x, x^2]", ["x"]),
        ("Function[x]", []),
        ("Table[i + j, {i, 3}, {j, 4}]", ["i", "j"]),
        ("Sum[k, k]", []),
        ("Manipulate[a, {{a, 1}, 0, 2}]", ["a"]),
        ("Compile[{{x, _Real}, n}, x^n]", ["x", "n"]),
        ("Limit[f[t], t -> 0]", ["t"]),
        ("Module[]", []),
    ],
)
def test_localized_symbols(classifier: ScopeClassifier, source: str, expected: list[str]) -> None:
    call = first(source)
    assert _names(localized_symbols(call, classifier.classify(call))) == expected


def test_set_delayed_localizes_patterns(classifier: ScopeClassifier) -> None:
    node = first("f[x_, y__Integer, z : _ | 0] := x")
    assert _names(localized_symbols(node, classifier.classify(node))) == ["x", "y", "z"]


def test_pattern_symbols() -> None:
    lhs = first("g[a_, {b_}, c]")
    assert _names(pattern_symbols(lhs)) == ["a", "b"]


def test_declarations_only_reach_the_body(classifier: ScopeClassifier) -> None:
    call = first("Module[{x}, x]")
    declared, used = symbols(call, "x")
    body = used
    assert [d.symbol_name for d in classifier.process_declarations(call, body, used)] == ["x"]
    head = call.head
    assert head is not None
    assert classifier.process_declarations(call, head, head) == []


def test_declarations_require_direct_child(classifier: ScopeClassifier) -> None:
    tree = parse("Module[{x}, x]")
    call = tree.first_expression
    assert call is not None
    used = symbols(call, "x")[1]
    assert classifier.process_declarations(tree, used, used) == []


def test_plain_call_declares_nothing(classifier: ScopeClassifier) -> None:
    call = first("f[x]")
    x = call.arguments[0]
    assert classifier.process_declarations(call, x, x) == []


def test_from_config_adds_constructs() -> None:
    config = GrammarConfig()
    config.configure({"scoping_constructs": {"MyModule": "Module", "Loop": "DO"}})
    classifier = ScopeClassifier.from_config(config)
    assert classifier.classify(first("MyModule[{x}, x]")) == ConstructType.MODULE
    assert classifier.classify(first("Loop[i, {i, 3}]")) == ConstructType.DO
    assert classifier.classify(first("Module[{x}, x]")) == ConstructType.MODULE


def test_custom_table_replaces_defaults() -> None:
    classifier = ScopeClassifier({"Scope": ConstructType.BLOCK})
    assert classifier.classify(first("Scope[{x}, x]")) == ConstructType.BLOCK
    assert classifier.classify(first("Module[{x}, x]")) == ConstructType.NULL
