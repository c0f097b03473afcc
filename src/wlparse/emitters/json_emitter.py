"""Dumps wlparse syntax trees as JSON, one object per emitted node."""

import json
from typing import Any

from wlparse.wl_ast import Node


class JsonEmitter:
    def __init__(self) -> None:
        self.trees: list[dict[str, Any]] = []

    def emit(self, node: Node) -> None:
        self.trees.append(dict(node.to_dict()))

    def get_output(self) -> str:
        data: Any = self.trees[0] if len(self.trees) == 1 else self.trees
        return json.dumps(data, indent=2)
