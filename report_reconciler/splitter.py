from __future__ import annotations

import re

# Secondary delimiters for run-on status text: comma, Chinese semicolon and
# full stop, semicolon, period.
CLAUSE_SPLIT_RE = re.compile(r"[,；。;.]")
LINE_BREAK_RE = re.compile(r"\r?\n")


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in LINE_BREAK_RE.split(text) if line.strip()]


def split_items(text: str | None) -> list[str]:
    """Break a free-text status blob into task items.

    Line breaks win. Only when they yield at most one item is the text
    re-split on punctuation, and that split is used only if it produces
    more than one item.
    """
    if not text:
        return []
    items = split_lines(text)
    if len(items) <= 1 and text.strip():
        clauses = [part.strip() for part in CLAUSE_SPLIT_RE.split(text) if part.strip()]
        if len(clauses) > 1:
            return clauses
    return items
