"""Turn raw assistant text into typed prose, code, and math segments.

Rendering happens in a fixed order:

1. ``\\( ... \\)`` and ``\\[ ... \\]`` delimiters are rewritten to the ``$`` and
   ``$$`` markers before any Markdown parsing, so the parser treats math as
   math rather than as escaped punctuation.
2. The normalized text is parsed with markdown-it (CommonMark plus tables and
   the dollarmath plugin).
3. Top-level fenced code becomes ``CODE`` segments tagged with a Pygments
   language name, falling back to ``text``.
4. Math tokens become ``MATH`` segments; they are typeset later, after the
   view has attached the structural content (see :func:`typeset_block`).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
import re
from typing import TYPE_CHECKING

from markdown_it import MarkdownIt
from mdit_py_plugins.dollarmath import dollarmath_plugin
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

if TYPE_CHECKING:
    from markdown_it.token import Token

    from .typesetting import MathTypesetter

LOGGER = logging.getLogger(__name__)

PLAIN_TEXT_LANGUAGE = "text"

# Fenced blocks and inline code spans are copied through untouched by the
# delimiter normalization pass. A code span never crosses a blank line.
_VERBATIM_RE = re.compile(
    r"(?P<fence>^[ \t]*(?P<tick>`{3,}|~{3,})[^\n]*\n.*?^[ \t]*(?P=tick)[ \t]*$)"
    r"|(?P<span>(?P<run>`+)(?!\n[ \t]*\n)[^`](?:(?!\n[ \t]*\n).)*?(?P=run))",
    re.DOTALL | re.MULTILINE,
)
_BLOCK_MATH_RE = re.compile(r"\\\[(?P<expr>.+?)\\\]", re.DOTALL)
_INLINE_MATH_RE = re.compile(r"\\\((?P<expr>.+?)\\\)", re.DOTALL)

_CODE_TOKENS = frozenset({"fence", "code_block"})
_MATH_BLOCK_TOKENS = frozenset({"math_block", "math_block_label"})
_MATH_INLINE_TOKENS = frozenset({"math_inline", "math_inline_double"})
# Inline math is split out only where a widget boundary keeps the Markdown valid.
_SPLITTABLE_PARENTS = frozenset({"paragraph_open", "heading_open"})


class SegmentKind(str, Enum):
    """Kinds of content a rendered reply is split into."""

    TEXT = "text"
    CODE = "code"
    MATH = "math"


@dataclass(frozen=True)
class Segment:
    """One typed piece of a rendered reply."""

    kind: SegmentKind
    content: str
    language: str | None = None
    highlight: bool = False
    display: bool = False
    markdown: bool = True


@dataclass(frozen=True)
class RenderedBlock:
    """Ordered segments derived from one reply."""

    segments: tuple[Segment, ...]

    @property
    def math_segments(self) -> tuple[Segment, ...]:
        return tuple(s for s in self.segments if s.kind is SegmentKind.MATH)

    @property
    def code_segments(self) -> tuple[Segment, ...]:
        return tuple(s for s in self.segments if s.kind is SegmentKind.CODE)

    @property
    def text(self) -> str:
        """Concatenated segment content, mostly useful for copy and search."""
        return "".join(segment.content for segment in self.segments)


def resolve_language(declared: str | None) -> str:
    """Return a Pygments language alias for a fence info string."""
    words = (declared or "").split()
    if not words:
        return PLAIN_TEXT_LANGUAGE
    name = words[0].lower()
    try:
        get_lexer_by_name(name)
    except ClassNotFound:
        return PLAIN_TEXT_LANGUAGE
    return name


def normalize_math_delimiters(text: str) -> str:
    """Rewrite LaTeX-style delimiters to dollar markers outside of code."""
    parts: list[str] = []
    cursor = 0
    for match in _VERBATIM_RE.finditer(text):
        parts.append(_rewrite_delimiters(text[cursor : match.start()]))
        parts.append(match.group(0))
        cursor = match.end()
    parts.append(_rewrite_delimiters(text[cursor:]))
    return "".join(parts)


def _rewrite_delimiters(chunk: str) -> str:
    if "\\" not in chunk:
        return chunk
    chunk = _BLOCK_MATH_RE.sub(
        lambda m: f"\n$$\n{m.group('expr').strip()}\n$$\n", chunk
    )
    return _INLINE_MATH_RE.sub(lambda m: f"${m.group('expr').strip()}$", chunk)


class TranscriptRenderer:
    """Stateless converter from reply text to a :class:`RenderedBlock`."""

    def __init__(self) -> None:
        # text_join stays off so escapes and entities keep their source markup.
        self._parser = (
            MarkdownIt("commonmark", {"breaks": True})
            .enable(["table", "strikethrough"])
            .disable("text_join")
            .use(dollarmath_plugin, allow_digits=False, double_inline=True)
        )

    def render_plain(self, text: str) -> RenderedBlock:
        """Wrap literal text without interpreting any markup."""
        return RenderedBlock(
            segments=(Segment(SegmentKind.TEXT, text, markdown=False),)
        )

    def render(self, text: str) -> RenderedBlock:
        """Split ``text`` into prose, code, and math segments."""
        normalized = normalize_math_delimiters(text)
        tokens = self._parser.parse(normalized)
        builder = _SegmentBuilder(normalized.splitlines(keepends=True))

        for index, token in enumerate(tokens):
            if token.map is None:
                continue
            if token.type == "inline":
                parent = tokens[index - 1] if index else None
                if parent is not None and parent.type in _SPLITTABLE_PARENTS:
                    builder.add_inline(token, parent)
                continue
            if token.level != 0:
                continue
            special = self._block_segment(token)
            if special is not None:
                builder.add_block(token, special)
        segments = builder.finish()

        LOGGER.debug(
            "render.complete",
            extra={
                "event": "render.complete",
                "segments": len(segments),
                "code_segments": sum(s.kind is SegmentKind.CODE for s in segments),
                "math_segments": sum(s.kind is SegmentKind.MATH for s in segments),
            },
        )
        return RenderedBlock(segments=tuple(segments))

    @staticmethod
    def _block_segment(token: Token) -> Segment | None:
        if token.type in _CODE_TOKENS:
            declared = token.info if token.type == "fence" else ""
            return Segment(
                SegmentKind.CODE,
                token.content,
                language=resolve_language(declared),
                highlight=True,
            )
        if token.type in _MATH_BLOCK_TOKENS:
            return Segment(SegmentKind.MATH, token.content.strip(), display=True)
        return None


class _SegmentBuilder:
    """Collect prose source lines and cut them wherever a segment starts.

    Prose is kept as Markdown source. Lines untouched by code or math are
    copied verbatim; a paragraph or heading holding inline math is rebuilt
    from its inline children so each math token splits it exactly where the
    parser found it.
    """

    def __init__(self, lines: list[str]) -> None:
        self._lines = lines
        self._cursor = 0
        self._prose: list[str] = []
        self.segments: list[Segment] = []

    def _copy_lines_until(self, line: int) -> None:
        if line > self._cursor:
            self._prose.extend(self._lines[self._cursor : line])
            self._cursor = line

    def _flush(self) -> None:
        source = "".join(self._prose)
        self._prose = []
        if source.strip():
            self.segments.append(Segment(SegmentKind.TEXT, source))

    def add_block(self, token: Token, segment: Segment) -> None:
        start, end = token.map  # type: ignore[misc]
        self._copy_lines_until(start)
        self._flush()
        self.segments.append(segment)
        self._cursor = max(self._cursor, end)

    def add_inline(self, token: Token, parent: Token) -> None:
        children = token.children or []
        if not any(child.type in _MATH_INLINE_TOKENS for child in children):
            return
        start, end = token.map  # type: ignore[misc]
        if start < self._cursor:
            return
        self._copy_lines_until(start)
        self._prose.append(_block_prefix(self._lines[start], token, parent))
        links: list[Token] = []
        for child in children:
            if child.type in _MATH_INLINE_TOKENS:
                self._flush()
                self.segments.append(
                    Segment(
                        SegmentKind.MATH,
                        child.content.strip(),
                        display=child.type == "math_inline_double",
                    )
                )
            else:
                self._prose.append(_inline_source(child, links))
        self._prose.append("\n")
        self._cursor = end

    def finish(self) -> list[Segment]:
        self._copy_lines_until(len(self._lines))
        self._flush()
        return self.segments


def _block_prefix(line: str, token: Token, parent: Token) -> str:
    """Return the block markup (list marker, quote, indent) before inline text."""
    if parent.type == "heading_open":
        return "#" * int(parent.tag[1:]) + " "
    first = token.content.split("\n", 1)[0].rstrip()
    stripped = line.rstrip()
    if first and stripped.endswith(first):
        return stripped[: len(stripped) - len(first)]
    return ""


def _inline_source(child: Token, links: list[Token]) -> str:
    """Rebuild the Markdown source of one inline token."""
    kind = child.type
    if kind == "text":
        return child.content
    if kind == "text_special":
        return child.markup or child.content
    if kind == "softbreak":
        return "\n"
    if kind == "hardbreak":
        return "\\\n"
    if kind == "code_inline":
        content = child.content
        pad = " " if content.startswith("`") or content.endswith("`") else ""
        return f"{child.markup}{pad}{content}{pad}{child.markup}"
    if kind == "link_open":
        links.append(child)
        return "<" if child.markup == "autolink" else "["
    if kind == "link_close":
        opener = links.pop() if links else None
        if opener is None:
            return ""
        if opener.markup == "autolink":
            return ">"
        href = str(opener.attrGet("href") or "")
        title = opener.attrGet("title")
        return f'](<{href}> "{title}")' if title else f"](<{href}>)"
    if kind == "image":
        return f"![{child.content}](<{child.attrGet('src') or ''}>)"
    if kind == "html_inline":
        return child.content
    return child.markup or child.content


async def typeset_block(
    block: RenderedBlock, typesetter: MathTypesetter | None
) -> dict[int, str]:
    """Typeset every math segment, keyed by its index in ``block.segments``.

    Returns an empty mapping when no typesetter is available or the block has
    no math, so callers can run this unconditionally.
    """
    if typesetter is None:
        return {}
    targets = [
        (index, segment)
        for index, segment in enumerate(block.segments)
        if segment.kind is SegmentKind.MATH
    ]
    if not targets:
        return {}

    def _run() -> dict[int, str]:
        return {
            index: typesetter.typeset(segment.content, display=segment.display)
            for index, segment in targets
        }

    return await asyncio.to_thread(_run)
