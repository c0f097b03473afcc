import io
import traceback

from wlparse.wl_ast import Node
from wlparse.wl_config import GrammarConfig
from wlparse.wl_constants import GROUPING_PAIRS, token_hashmap
from wlparse.wl_lexer import tokenize
from wlparse.wl_parser import Parser
from wlparse.wl_registry import build_registry
from wlparse.wl_render import Renderer
from wlparse.wl_resolve import describe_symbol
from wlparse.wl_scope import ScopeClassifier

OPENERS = "".join(text for text, token_type in token_hashmap.items() if token_type in GROUPING_PAIRS)
CLOSERS = "".join(text for text, token_type in token_hashmap.items() if token_type in GROUPING_PAIRS.values())


def print_traceback() -> None:
    buf = io.StringIO()
    traceback.print_exc(file=buf)
    print("[error] >>>")
    print(buf.getvalue())


def bracket_depth(text: str) -> int:
    """Open brackets, braces and parentheses left unclosed in `text`; strings are skipped."""
    depth = 0
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth -= 1
    return depth


def print_errors(tree: Node) -> None:
    for node in tree.errors():
        print(f"[syntax] >>> {node.line}:{node.col}: {node.message}")


def start_repl(
    output_format: str = "fullform",
    verbose: bool = False,
    config: GrammarConfig | None = None,
) -> None:
    print(f"wlparse REPL [format={output_format}]. Type 'exit' or 'quit' to leave.")
    registry = build_registry(config)
    classifier = ScopeClassifier.from_config(config) if config is not None else ScopeClassifier()
    last_tree: Node | None = None

    while True:
        try:
            src_lines: list[str] = []
            while True:
                prompt = ">>> " if not src_lines else "... "
                line = input(prompt)
                if line.strip() in ("exit", "quit") and not src_lines:
                    print("Exiting wlparse REPL.")
                    return
                src_lines.append(line)
                if bracket_depth("\n".join(src_lines)) <= 0:
                    break
            src = "\n".join(src_lines).strip()
            if not src:
                continue
            if src == ":json":
                output_format = "json"
                print("[mode] >>> Output format json")
                continue
            if src == ":fullform":
                output_format = "fullform"
                print("[mode] >>> Output format fullform")
                continue
            if src == ":verbose":
                verbose = not verbose
                print(f"[mode] >>> Verbose mode {'ON' if verbose else 'OFF'}")
                continue
            if src.startswith(":resolve"):
                name = src[len(":resolve") :].strip()
                if not name:
                    print("[error] >>> Usage: :resolve NAME")
                elif last_tree is None:
                    print("[error] >>> Nothing parsed yet.")
                else:
                    print(f"[resolve] >>> {describe_symbol(last_tree, name, classifier)}")
                continue

            try:
                tree = Parser(tokenize(src), registry).parse()
                output = Renderer(output_format).render(tree)
            except Exception:
                print_traceback()
                continue

            last_tree = tree
            if output:
                print(output)
            if verbose:
                print(f"[tree] >>> {tree!r}")
            print_errors(tree)

        except (KeyboardInterrupt, EOFError):
            print("\nExiting wlparse REPL.")
            break


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
