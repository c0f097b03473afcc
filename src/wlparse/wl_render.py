"""
Provides the `Renderer` class and the emitter interface for turning syntax trees into text.

Classes and Features:
    - Emitter (Protocol): Interface for all output emitters. Requires `emit` and `get_output`.
    - Renderer: Picks the emitter for the selected output format ("fullform" or "json")
      and feeds it the nodes to render.

Example:
    >>> renderer = Renderer("fullform")
    >>> renderer.render(parse_source("a::usage"))
    'MessageName[a,"usage"]'

Raises:
    ValueError: If the output format is not supported.
    TypeError: If something other than a `Node` is passed in.
"""

from typing import Protocol

from wlparse.emitters.fullform_emitter import FullFormEmitter
from wlparse.emitters.json_emitter import JsonEmitter
from wlparse.wl_ast import Node


class Emitter(Protocol):  # pragma: no cover
    """Protocol for all wlparse emitters.

    Methods:
        emit(node): Renders one node into the emitter's buffer.
        get_output(): Returns everything emitted so far as a string.
    """

    def emit(self, node: Node) -> None: ...  # pragma: no cover

    def get_output(self) -> str: ...  # pragma: no cover


EmitterType = type[Emitter]
"""Alias for a concrete Emitter class type."""

EMITTERS: dict[str, EmitterType] = {
    "fullform": FullFormEmitter,
    "ff": FullFormEmitter,
    "json": JsonEmitter,
}


class Renderer:
    """Renders syntax trees in one output format.

    Attributes:
        target (str): The normalized output format name.
    """

    def __init__(self, target: str = "fullform") -> None:
        """Initializes the renderer.

        Args:
            target: The output format ("fullform" or "json", case-insensitive).

        Raises:
            ValueError: If the format is not supported.
        """
        target = target.lower()
        if target not in EMITTERS:
            raise ValueError(f"Unknown output format: {target!r}")
        self.target = target

    def render(self, *nodes: Node) -> str:
        """Renders `nodes` with a fresh emitter.

        Raises:
            TypeError: If any argument is not a Node.
        """
        if not all(isinstance(node, Node) for node in nodes):
            raise TypeError("Only Node instances can be rendered.")
        emitter: Emitter = EMITTERS[self.target]()
        for node in nodes:
            emitter.emit(node)
        return emitter.get_output()


def render_fullform(node: Node) -> str:
    return Renderer("fullform").render(node)


__all__ = ["EMITTERS", "Emitter", "Renderer", "render_fullform"]
