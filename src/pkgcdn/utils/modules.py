"""
ES module rewriting
Parses JavaScript with tree-sitter (the source is never executed) and rewrites
the specifiers of import/export/require so the browser can load them from the CDN.
"""
import asyncio
import logging
from typing import Dict, Iterator, List, Optional, Tuple

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from pkgcdn.models import RewriteError, RewriteResult
from pkgcdn.plugins.rewrite import rewrite_specifier

logger = logging.getLogger(__name__)

JAVASCRIPT = Language(tree_sitter_javascript.language())

LINES_ABOVE = 2
LINES_BELOW = 3

# Lazy-loaded parser
_parser = None


def get_parser() -> Parser:
    """Get or create the JavaScript parser; no config files are ever consulted"""
    global _parser
    if _parser is None:
        _parser = Parser(JAVASCRIPT)
    return _parser


class ModuleSyntaxError(Exception):
    """Source could not be parsed; line is 1-based, column 0-based"""

    def __init__(self, message: str, line: int, column: int):
        super().__init__(message)
        self.line = line
        self.column = column


def _walk(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _first_error(root: Node) -> Optional[Node]:
    for node in _walk(root):
        if node.type == "ERROR" or node.is_missing:
            return node
    return None


def _string_argument(call: Node) -> Optional[Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None or arguments.named_child_count != 1:
        return None
    argument = arguments.named_children[0]
    return argument if argument.type == "string" else None


def find_specifiers(root: Node) -> List[Node]:
    """
    String literal nodes naming another module:
    import/export ... from "x", import("x") and require("x")
    """
    found = []
    for node in _walk(root):
        if node.type in ("import_statement", "export_statement"):
            source = node.child_by_field_name("source")
            if source is not None and source.type == "string":
                found.append(source)
        elif node.type == "call_expression":
            function = node.child_by_field_name("function")
            if function is None:
                continue
            if function.type == "import" or (
                function.type == "identifier" and function.text == b"require"
            ):
                argument = _string_argument(node)
                if argument is not None:
                    found.append(argument)
    return found


def code_frame(source: str, line: int, column: int) -> str:
    """
    Source excerpt around line:column, e.g.

          1 | import a from "a";
        > 2 | import { from "b";
            |          ^
    """
    lines = source.split("\n")
    start = max(line - LINES_ABOVE, 1)
    end = min(line + LINES_BELOW, len(lines))
    width = len(str(end))

    frame = []
    for number in range(start, end + 1):
        gutter = f" {str(number).rjust(width)} |"
        text = lines[number - 1]
        if number == line:
            frame.append(f">{gutter} {text}".rstrip())
            marker = "".join(c if c == "\t" else " " for c in text[:column])
            frame.append(f"  {' ' * width} | {marker}^")
        else:
            frame.append(f" {gutter} {text}".rstrip())
    return "\n".join(frame)


def transform(source: bytes, dependencies: Dict[str, str], origin: str, filename: str = "unknown") -> str:
    """
    Rewrite every module specifier in source

    Raises:
        ModuleSyntaxError: The source is not valid JavaScript
    """
    tree = get_parser().parse(source)
    root = tree.root_node

    if root.has_error:
        error = _first_error(root)
        row, column = error.start_point if error is not None else (0, 0)
        if error is not None and error.is_missing:
            reason = f"Missing {error.type}"
        else:
            reason = "Unexpected token"
        raise ModuleSyntaxError(f"{filename}: {reason} ({row + 1}:{column})", row + 1, column)

    edits: List[Tuple[int, int, bytes]] = []
    for node in find_specifiers(root):
        raw = node.text
        quote, value = raw[:1], raw[1:-1].decode("utf-8")
        rewritten = rewrite_specifier(value, dependencies, origin)
        if rewritten != value:
            edits.append((node.start_byte, node.end_byte, quote + rewritten.encode("utf-8") + quote))

    logger.debug(f"Rewriting {len(edits)} specifier(s) in {filename}")
    output = bytearray(source)
    for start, end, replacement in sorted(edits, reverse=True):
        output[start:end] = replacement
    return output.decode("utf-8")


async def rewrite_bare_module_identifiers(
    file: str, dependencies: Dict[str, str], origin: str
) -> RewriteResult:
    """
    Read file and rewrite its bare import specifiers

    Args:
        file: Absolute path of a JavaScript file
        dependencies: peerDependencies merged with dependencies of the package
        origin: CDN origin used in rewritten URLs

    Returns:
        RewriteResult with either code or error set
    """
    try:
        source = await asyncio.to_thread(_read_bytes, file)
    except OSError as e:
        return RewriteResult(error=RewriteError(name=type(e).__name__, message=f"{file}: {e.strerror or e}"))

    try:
        return RewriteResult(code=transform(source, dependencies, origin, filename=file))
    except ModuleSyntaxError as e:
        text = source.decode("utf-8", errors="replace")
        return RewriteResult(error=RewriteError(
            name="SyntaxError",
            message=str(e),
            code_frame=code_frame(text, e.line, e.column),
        ))
    except UnicodeDecodeError as e:
        return RewriteResult(error=RewriteError(name=type(e).__name__, message=f"{file}: {e.reason}"))


def _read_bytes(file: str) -> bytes:
    with open(file, "rb") as f:
        return f.read()
