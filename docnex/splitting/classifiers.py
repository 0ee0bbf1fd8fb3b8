"""Regex splitters: headers, custom patterns, two-level hierarchies, paragraphs.

All splitters scan lines once and return SplitItem drafts in document order.
Patterns are matched with ``re.search`` so ``^`` anchors at the line start.
"""

import re

from docnex.core.constants import (
    TITLE_EMPTY_HEADER,
    TITLE_HTML_PRE_CONTENT,
    TITLE_PRE_CONTENT,
    TITLE_UNTITLED,
)
from docnex.schemas.blocks import SplitItem


_TAG = re.compile(r"<[^>]+>")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def header_pattern(level: int) -> str:
    """Markdown header regex for exactly ``level`` hashes, title in group 1."""
    return rf"^#{{{level}}}\s+(.+)"


def _title_from(match: re.Match[str]) -> str:
    if match.re.groups and match.group(1):
        return match.group(1).strip()
    return match.group(0).strip()


def split_by_header(text: str, level: int) -> list[SplitItem]:
    """Split markdown or HTML text on headers of the given level."""
    if text.strip().startswith("<"):
        return _split_html_by_header(text, level)
    return split_by_pattern(text, header_pattern(level), level)


def _split_html_by_header(html: str, level: int) -> list[SplitItem]:
    header_re = re.compile(rf"<h{level}[^>]*>(.*?)</h{level}>", re.IGNORECASE)
    items: list[SplitItem] = []

    matches = list(header_re.finditer(html))
    if matches and matches[0].start() > 0:
        pre_content = html[: matches[0].start()].strip()
        if pre_content:
            items.append(SplitItem(title=TITLE_HTML_PRE_CONTENT, content=pre_content, level=level))

    # Each section ends where the next opening tag of the same level starts
    next_open = re.compile(rf"<h{level}[^>]*>", re.IGNORECASE)
    for match in matches:
        title = _TAG.sub("", match.group(1)).strip()
        start = match.end()
        following = next_open.search(html, start)
        end = following.start() if following else len(html)
        items.append(
            SplitItem(
                title=title or TITLE_EMPTY_HEADER,
                content=html[start:end].strip(),
                level=level,
            )
        )

    return items


def split_by_pattern(text: str, pattern: str, level: int | None = None) -> list[SplitItem]:
    """Start a new block at every line matching ``pattern``.

    The title is group 1 of the match, or the whole match when the pattern
    has no group. Text before the first match becomes a cover block.

    Raises:
        re.error: If the pattern does not compile
    """
    regex = re.compile(pattern)
    items: list[SplitItem] = []
    current_title = ""
    current_content: list[str] = []

    for line in text.split("\n"):
        match = regex.search(line)
        if match is None:
            current_content.append(line)
            continue

        if current_title or current_content:
            fallback = TITLE_PRE_CONTENT if not items else TITLE_EMPTY_HEADER
            items.append(
                SplitItem(
                    title=current_title or fallback,
                    content="\n".join(current_content).strip(),
                    level=level,
                )
            )
        current_title = _title_from(match)
        current_content = []

    if current_title or current_content:
        items.append(
            SplitItem(
                title=current_title or TITLE_UNTITLED,
                content="\n".join(current_content).strip(),
                level=level,
            )
        )

    return items


def build_hierarchy(lines: list[str], parent_pattern: str, child_pattern: str) -> list[SplitItem]:
    """Build a two-level tree from parent and child header patterns.

    A parent line opens a root block; child lines attach to the most recent
    parent. Children seen before any parent are kept as roots, and text
    before the first header becomes a cover block.
    """
    parent_re = re.compile(parent_pattern)
    child_re = re.compile(child_pattern)

    roots: list[SplitItem] = []
    current_parent: SplitItem | None = None
    current_title = ""
    current_content: list[str] = []
    current_kind: str | None = None

    def flush() -> None:
        nonlocal current_parent
        if not current_title and not current_content:
            return

        item = SplitItem(
            title=current_title or TITLE_UNTITLED,
            content="\n".join(current_content).strip(),
            children=[],
        )
        if current_kind == "parent":
            roots.append(item)
            current_parent = item
        elif current_kind == "child" and current_parent is not None:
            current_parent.children.append(item)
        else:
            roots.append(item)

    for line in lines:
        parent_match = parent_re.search(line)
        child_match = None if parent_match else child_re.search(line)
        match = parent_match or child_match
        if match is None:
            current_content.append(line)
            continue

        if current_parent is None and not current_title and current_content:
            current_kind = None
            current_title = TITLE_PRE_CONTENT
        flush()

        current_kind = "parent" if parent_match else "child"
        current_title = _title_from(match)
        current_content = []

    flush()
    return roots


def split_by_paragraphs(text: str) -> list[SplitItem]:
    """One block per blank-line separated paragraph."""
    items = []
    for index, paragraph in enumerate(_PARAGRAPH_BREAK.split(text)):
        content = paragraph.strip()
        if content:
            items.append(SplitItem(title=f"Topic {index + 1}: {paragraph[:30]}...", content=content))
    return items
