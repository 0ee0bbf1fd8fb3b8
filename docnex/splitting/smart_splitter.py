"""Index-driven and numbering-driven splitters."""

import re

from docnex.schemas.blocks import SplitItem


_NUMBERED_LINE = re.compile(r"^(\d+)[.)]\s+(.+)")


def split_by_index(text: str, index_text: str) -> list[SplitItem]:
    """Split ``text`` at the entries of a table of contents.

    Each non-empty index line is searched for, in order, as a literal at the
    start of a line (case-insensitive). A block runs from the end of its
    entry to the start of the next located entry. Entries that cannot be
    found after the previous one are skipped.
    """
    entries = [line.strip() for line in index_text.split("\n") if line.strip()]
    located: list[tuple[str, int, int]] = []
    position = 0

    for title in entries:
        regex = re.compile(rf"^{re.escape(title)}", re.IGNORECASE | re.MULTILINE)
        match = regex.search(text, position)
        if match is None:
            continue
        located.append((title, match.start(), match.end()))
        position = match.end()

    items = []
    for i, (title, _start, end) in enumerate(located):
        stop = located[i + 1][1] if i + 1 < len(located) else len(text)
        items.append(SplitItem(title=title, content=text[end:stop].strip(), level=1))
    return items


def split_by_smart_numbering(text: str) -> list[SplitItem]:
    """Split on the dominant ``1. 2. 3.`` sequence, ignoring nested restarts.

    Every line numbered ``1`` starts a candidate chain; each chain greedily
    takes the next line numbered one higher. The longest chain wins (the
    first one on ties). Fewer than two numbered lines yields no split.
    """
    lines = text.split("\n")
    numbered: list[tuple[int, int]] = []  # (line index, number)
    for index, line in enumerate(lines):
        match = _NUMBERED_LINE.match(line)
        if match:
            numbered.append((index, int(match.group(1))))

    if len(numbered) < 2:
        return []

    best: list[int] = []
    for start, (line_index, number) in enumerate(numbered):
        if number != 1:
            continue
        chain = [line_index]
        expected = 2
        for candidate_line, candidate_number in numbered[start + 1:]:
            if candidate_number == expected:
                chain.append(candidate_line)
                expected += 1
        if len(chain) > len(best):
            best = chain

    items = []
    for i, line_index in enumerate(best):
        stop = best[i + 1] if i + 1 < len(best) else len(lines)
        content = "\n".join(lines[line_index + 1:stop]).strip()
        items.append(SplitItem(title=lines[line_index], content=content, level=1))
    return items
