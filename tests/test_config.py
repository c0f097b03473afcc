import json
from pathlib import Path

import pytest

from wlparse.wl_config import ENV_VAR, ConfigError, GrammarConfig


def write_config(tmp_path: Path, data: object) -> str:
    path = tmp_path / "grammar.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_configure_merges_values() -> None:
    config = GrammarConfig()
    config.configure({"precedence": {"SPAN": 320}})
    config.configure({"scoping_constructs": {"MyModule": "Module"}})
    assert config.precedence == {"SPAN": 320}
    assert config.scoping_constructs == {"MyModule": "MODULE"}


def test_same_value_twice_is_not_a_conflict() -> None:
    config = GrammarConfig()
    config.configure({"precedence": {"SPAN": 320}})
    config.configure({"precedence": {"SPAN": 320}})
    assert config.precedence == {"SPAN": 320}


@pytest.mark.parametrize(  # type: ignore[misc]
    "cfg,fragment",
    [
        ({"precedence": {"COMMA": 10}}, "not an infix token type"),
        ({"precedence": {"PLUS": 0}}, "not a positive integer"),
        ({"precedence": {"PLUS": "high"}}, "not a positive integer"),
        ({"precedence": {"PLUS": True}}, "not a positive integer"),
        ({"scoping_constructs": {"Foo": "Loop"}}, "unknown construct type"),
        ({"scoping_constructs": {"Foo": 3}}, "unknown construct type"),
    ],
)
def test_invalid_entries(cfg: dict, fragment: str) -> None:
    config = GrammarConfig()
    with pytest.raises(ConfigError, match="Invalid grammar configuration") as exc:
        config.configure(cfg)
    assert len(exc.value.conflicts) == 1
    assert fragment in exc.value.conflicts[0]


def test_conflicting_values_are_reported() -> None:
    config = GrammarConfig()
    config.configure({"precedence": {"SPAN": 320}, "scoping_constructs": {"Foo": "MODULE"}})
    with pytest.raises(ConfigError) as exc:
        config.configure({"precedence": {"SPAN": 330}, "scoping_constructs": {"Foo": "Block"}})
    assert exc.value.conflicts == [
        "precedence of 'SPAN': conflict between 320 and 330",
        "scoping construct 'Foo': conflict between MODULE and BLOCK",
    ]


def test_invalid_configuration_is_not_applied() -> None:
    config = GrammarConfig()
    with pytest.raises(ConfigError):
        config.configure({"precedence": {"SPAN": 320, "COMMA": 1}})
    assert config.precedence == {}


def test_unknown_keys() -> None:
    with pytest.raises(ConfigError, match="Unknown configuration keys") as exc:
        GrammarConfig().configure({"colors": {}})
    assert exc.value.conflicts == ["'colors'"]


def test_non_object() -> None:
    with pytest.raises(ConfigError, match="must be a JSON object"):
        GrammarConfig().configure([1, 2])  # type: ignore[arg-type]


def test_load_from_json(tmp_path: Path) -> None:
    path = write_config(tmp_path, {"precedence": {"SPAN": 320}})
    config = GrammarConfig()
    config.load_from_json(path)
    assert config.precedence == {"SPAN": 320}
    assert config.sources == [path]


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Failed to load grammar config"):
        GrammarConfig().load_from_json(str(tmp_path / "missing.json"))


def test_load_malformed_json(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="Failed to load grammar config"):
        GrammarConfig().load_from_json(str(path))


def test_from_env(tmp_path: Path) -> None:
    path = write_config(tmp_path, {"scoping_constructs": {"Loop": "DO"}})
    config = GrammarConfig.from_env({ENV_VAR: path})
    assert config.scoping_constructs == {"Loop": "DO"}
    assert GrammarConfig.from_env({}).sources == []


def test_report() -> None:
    config = GrammarConfig()
    config.configure({"precedence": {"SPAN": 320}, "scoping_constructs": {"Loop": "DO"}})
    lines = config.report().splitlines()
    assert lines[0].strip() == "SPAN → precedence 320"
    assert lines[1].strip() == "Loop → DO"
    assert GrammarConfig().report() == ""
