"""
Provides the `GrammarConfig` class for adjusting the wlparse grammar without code changes.

Two things can be configured:

- `precedence`: infix token type -> binding power, replacing the defaults of the
  parselet registry (for example `{"SPAN": 320}`).
- `scoping_constructs`: head name -> construct type, adding localizing constructs
  the scope classifier should know about (for example `{"MyModule": "MODULE"}`).

Classes:
    - GrammarConfig: Validated grammar settings.
    - ConfigError: Raised when a configuration is invalid or contradicts itself.

Usage:
    >>> config = GrammarConfig()
    >>> config.configure({"precedence": {"SPAN": 320}})
    >>> registry = build_registry(config)

A config file is a JSON object with the same two keys. `GrammarConfig.from_env()`
loads the file named by the `WLPARSE_CONFIG` environment variable.
"""

import json
import logging
import os
from collections.abc import Mapping
from typing import Any

from wlparse.wl_registry import INFIX_TABLE
from wlparse.wl_scope import ConstructType

logger = logging.getLogger(__name__)

ENV_VAR = "WLPARSE_CONFIG"


class ConfigError(Exception):
    """Raised when a grammar configuration is invalid.

    Attributes:
        conflicts (list[str]): One description per offending entry.

    Example:
        raise ConfigError("Invalid grammar configuration", ["precedence of 'FOO': unknown token type"])
    """

    def __init__(self, message: str, conflicts: list[str] | None = None):
        super().__init__(message)
        self.conflicts = conflicts or []


def _construct_name(value: Any) -> str | None:
    """Accepts both member names (`"MODULE"`) and values (`"Module"`)."""
    if not isinstance(value, str):
        return None
    if value in ConstructType.__members__:
        return value
    for member in ConstructType:
        if member.value == value:
            return member.name
    return None


class GrammarConfig:
    """Grammar settings consumed by `build_registry` and `ScopeClassifier.from_config`.

    Attributes:
        precedence (dict[str, int]): Infix precedence overrides by token type.
        scoping_constructs (dict[str, str]): Extra localizing heads, mapped to
            `ConstructType` member names.
        sources (list[str]): Files this configuration was loaded from.
    """

    def __init__(self) -> None:
        self.precedence: dict[str, int] = {}
        self.scoping_constructs: dict[str, str] = {}
        self.sources: list[str] = []

    def configure(self, cfg: Mapping[str, Any]) -> None:
        """
        Validates `cfg` and merges it into this configuration.

        Nothing is applied unless the whole mapping is valid.

        Args:
            cfg: A mapping with optional `precedence` and `scoping_constructs` entries.

        Raises:
            ConfigError: If any of the following occur:
                - `cfg` is not a mapping or has unknown keys
                - a precedence names a token type without an infix parselet, or is not
                  a positive integer
                - a construct type is unknown
                - an entry contradicts a value configured earlier
        """
        if not isinstance(cfg, Mapping):
            raise ConfigError("Configuration must be a JSON object")
        unknown = sorted(set(cfg) - {"precedence", "scoping_constructs"})
        if unknown:
            raise ConfigError("Unknown configuration keys", [repr(k) for k in unknown])

        new_precedence: dict[str, int] = {}
        new_constructs: dict[str, str] = {}
        conflicts: list[str] = []

        for token_type, value in dict(cfg.get("precedence") or {}).items():
            if token_type not in INFIX_TABLE:
                conflicts.append(f"precedence of {token_type!r}: not an infix token type")
            elif isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                conflicts.append(f"precedence of {token_type!r}: {value!r} is not a positive integer")
            elif self.precedence.get(token_type, value) != value:
                conflicts.append(
                    f"precedence of {token_type!r}: conflict between {self.precedence[token_type]} and {value}"
                )
            else:
                new_precedence[token_type] = value

        for head, value in dict(cfg.get("scoping_constructs") or {}).items():
            name = _construct_name(value)
            if name is None:
                conflicts.append(f"scoping construct {head!r}: unknown construct type {value!r}")
            elif self.scoping_constructs.get(head, name) != name:
                conflicts.append(
                    f"scoping construct {head!r}: conflict between {self.scoping_constructs[head]} and {name}"
                )
            else:
                new_constructs[head] = name

        if conflicts:
            raise ConfigError("Invalid grammar configuration", conflicts)

        self.precedence.update(new_precedence)
        self.scoping_constructs.update(new_constructs)
        logger.debug(
            "Configured %d precedence override(s) and %d scoping construct(s)",
            len(new_precedence),
            len(new_constructs),
        )

    def load_from_json(self, path: str) -> None:
        """
        Loads a JSON configuration file and applies it via `configure`.

        Example JSON structure:
            {
                "precedence": {"SPAN": 320},
                "scoping_constructs": {"MyModule": "MODULE"}
            }

        Raises:
            ConfigError: If the file cannot be read, is not valid JSON, or is invalid.
        """
        try:
            with open(path, encoding="utf-8") as f:
                raw_cfg = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Failed to load grammar config: {e}") from e
        self.configure(raw_cfg)
        self.sources.append(path)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GrammarConfig":
        """Returns a configuration loaded from `$WLPARSE_CONFIG`, or an empty one."""
        instance = cls()
        path = (os.environ if environ is None else environ).get(ENV_VAR)
        if path:
            instance.load_from_json(path)
        return instance

    def report(self) -> str:
        """Generates a newline-separated summary of the configured values."""
        lines: list[str] = []
        for token_type, value in sorted(self.precedence.items()):
            lines.append(f"{token_type:>20} → precedence {value}")
        for head, name in sorted(self.scoping_constructs.items()):
            lines.append(f"{head:>20} → {name}")
        return "\n".join(lines)


__all__ = ["ENV_VAR", "ConfigError", "GrammarConfig"]
