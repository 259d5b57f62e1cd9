"""Block-level MDX body tokenizer.

Splits body text into an ordered list of :class:`BodyNode` blocks and renders them back. Only
block structure is recognised; inline markdown stays inside each node's content verbatim.
"""

from __future__ import annotations

import re
from typing import Sequence

from mdxai.errors import ParsingError
from mdxai.models.document import BodyNode

_HEADING_RE = re.compile(r"^(?P<hashes>#{1,6})\s+(?P<text>.*?)(?:\s+#+)?\s*$")
_FENCE_RE = re.compile(r"^(?P<fence>`{3,}|~{3,})\s*(?P<lang>[^\s`]*)")
# `<Name ...` (JSX elements are capitalised) or a `<>` fragment.
_COMPONENT_OPEN_RE = re.compile(r"^<(?:(?P<name>[A-Z][\w.]*)(?=[\s/>]|$)|>)")
_ESM_RE = re.compile(r"^(import|export)\s")
_LIST_RE = re.compile(r"^\s{0,3}([-*+]|\d+[.)])\s+")
_BREAK_RE = re.compile(r"^\s{0,3}([-*_])(\s*\1){2,}\s*$")
_BACKTICK_RUN_RE = re.compile(r"`+")


def _is_block_start(line: str) -> bool:
    return bool(_HEADING_RE.match(line) or _FENCE_RE.match(line))


def _consume_paragraph(lines: Sequence[str], i: int) -> tuple[list[str], int]:
    block: list[str] = []
    while i < len(lines) and lines[i].strip() and not (block and _is_block_start(lines[i])):
        block.append(lines[i])
        i += 1
    return block, i


def _consume_fence(lines: Sequence[str], i: int) -> tuple[BodyNode, int]:
    m = _FENCE_RE.match(lines[i])
    assert m is not None
    fence = m.group("fence")
    lang = m.group("lang") or None
    start = i
    i += 1
    code: list[str] = []
    while i < len(lines):
        if lines[i].strip().startswith(fence[0] * len(fence)) and not lines[i].strip().strip(fence[0]):
            return BodyNode(kind="code", content="\n".join(code), lang=lang), i + 1
        code.append(lines[i])
        i += 1
    raise ParsingError(f"Unterminated code fence starting at body line {start + 1}")


def _consume_component(lines: Sequence[str], i: int, name: str) -> tuple[BodyNode, int]:
    start = i
    if name:
        open_re = re.compile(re.escape(f"<{name}") + r"(?=[\s/>]|$)")
        self_closing_re = re.compile(re.escape(f"<{name}") + r"(?:\s[^<>]*)?/>")
        close_tag = f"</{name}>"
    else:
        open_re = re.compile(r"<>")
        self_closing_re = re.compile(r"(?!)")
        close_tag = "</>"

    depth = 0
    block: list[str] = []
    # Inside a multi-line opening tag such as `<Card\n  title="x"\n/>`.
    pending_open = False
    while i < len(lines):
        line = lines[i]
        block.append(line)
        stripped = line.rstrip()
        if pending_open:
            if stripped.endswith("/>"):
                depth -= 1
                pending_open = False
            elif stripped.endswith(">"):
                pending_open = False
        opens = len(open_re.findall(line))
        depth += opens - len(self_closing_re.findall(line)) - line.count(close_tag)
        if opens:
            last_open = max(m.start() for m in open_re.finditer(line))
            pending_open = ">" not in line[last_open:]
        i += 1
        if depth <= 0 and not pending_open:
            return BodyNode(kind="component", content="\n".join(block).rstrip()), i
    raise ParsingError(f"Unclosed <{name}> component starting at body line {start + 1}")


def tokenize(body: str) -> list[BodyNode]:
    """Split MDX body text into block nodes.

    Raises:
        ParsingError: On an unterminated code fence or an unclosed component tag.
    """

    lines = body.replace("\r\n", "\n").split("\n")
    nodes: list[BodyNode] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if not line.strip():
            i += 1
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            nodes.append(
                BodyNode(kind="heading", content=heading.group("text"), depth=len(heading.group("hashes")))
            )
            i += 1
            continue

        if _FENCE_RE.match(line):
            node, i = _consume_fence(lines, i)
            nodes.append(node)
            continue

        component = _COMPONENT_OPEN_RE.match(line)
        if component:
            node, i = _consume_component(lines, i, component.group("name") or "")
            nodes.append(node)
            continue

        if _BREAK_RE.match(line):
            nodes.append(BodyNode(kind="thematicBreak", content=line.strip()))
            i += 1
            continue

        block, i = _consume_paragraph(lines, i)
        content = "\n".join(block).rstrip()
        first = block[0]
        if _ESM_RE.match(first):
            kind = "esm"
        elif _LIST_RE.match(first):
            kind = "list"
        elif first.lstrip().startswith(">"):
            kind = "blockquote"
        elif first.lstrip().startswith("|"):
            kind = "table"
        else:
            kind = "text"
        nodes.append(BodyNode(kind=kind, content=content))
    return nodes


def render_node(node: BodyNode) -> str:
    if node.kind == "heading":
        text = node.content
        if text.endswith("#"):
            # A closing sequence keeps trailing hashes from being read as one.
            text += " #"
        return f"{'#' * (node.depth or 1)} {text}"
    if node.kind == "code":
        longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(node.content)), default=0)
        fence = "`" * max(3, longest + 1)
        return f"{fence}{node.lang or ''}\n{node.content}\n{fence}"
    return node.content


def render(nodes: Sequence[BodyNode]) -> str:
    """Render nodes back to MDX body text, one blank line between blocks."""

    return "\n\n".join(render_node(node) for node in nodes)
