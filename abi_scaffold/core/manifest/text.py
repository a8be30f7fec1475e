"""Region based editing of TypeScript manifests.

A TS manifest cannot be pushed through a full parser and printed back without
losing user comments and formatting, so edits here are done by locating the
byte span of one array literal and splicing text into it. Nothing outside the
located span is touched.
"""

from __future__ import annotations

import re

from abi_scaffold.core.errors import KeyNotFoundError, UnbalancedDelimitersError

_QUOTES = ("'", '"', "`")
_WHITESPACE_RE = re.compile(r"\s+")
_LEADING_WS_RE = re.compile(r"[ \t]*")
_TRAILING_COMMA_RE = re.compile(r"\s*,")


def _skip_literal(content: str, idx: int) -> int:
    """Return the index of the last character of the literal starting at *idx*.

    Returns ``idx - 1`` when no string or comment starts at *idx*.
    """
    ch = content[idx]
    if ch in _QUOTES:
        end = idx + 1
        while end < len(content):
            if content[end] == "\\":
                end += 2
                continue
            if content[end] == ch:
                return end
            end += 1
        return len(content) - 1

    if content.startswith("//", idx):
        newline = content.find("\n", idx)
        return len(content) - 1 if newline == -1 else newline - 1

    if content.startswith("/*", idx):
        close = content.find("*/", idx + 2)
        return len(content) - 1 if close == -1 else close + 1

    return idx - 1


def find_matching_indices(
    content: str,
    open_char: str,
    close_char: str,
    start: int = 0,
    *,
    skip_literals: bool = True,
) -> list[tuple[int, int]]:
    """Find the first balanced ``open_char ... close_char`` span at or after *start*.

    Returns a list with one ``(start, end)`` pair (inclusive offsets), or an
    empty list when no opening delimiter is found. With ``skip_literals``
    delimiters inside quoted strings and comments are ignored.
    """
    depth = 0
    span_start = -1
    pairs: list[tuple[int, int]] = []

    idx = start
    while idx < len(content):
        if skip_literals:
            literal_end = _skip_literal(content, idx)
            if literal_end >= idx:
                idx = literal_end + 1
                continue

        ch = content[idx]
        if ch == open_char:
            if depth == 0:
                span_start = idx
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                pairs.append((span_start, idx))
                break
        idx += 1

    if depth != 0:
        raise UnbalancedDelimitersError(open_char, close_char)
    return pairs


def _skip_trivia(content: str, idx: int) -> int:
    """Index of the first character at or after *idx* that is not whitespace or a comment."""
    while idx < len(content):
        if content[idx].isspace():
            idx += 1
        elif content.startswith(("//", "/*"), idx):
            idx = _skip_literal(content, idx) + 1
        else:
            break
    return idx


def find_array_indices(content: str, key: str) -> tuple[int, int]:
    """Span of the array literal that is the value of *key*.

    Only whitespace and comments may sit between ``key:`` and the opening
    bracket.
    """
    start = content.find(f"{key}:")
    if start == -1:
        raise KeyNotFoundError(key)

    value_start = _skip_trivia(content, start + len(key) + 1)
    if value_start >= len(content) or content[value_start] != "[":
        raise UnbalancedDelimitersError(
            "[", "]", f"{key} does not contain a balanced array"
        )
    return find_matching_indices(content, "[", "]", value_start)[0]


def extract_array_value(content: str, key: str) -> str:
    """Return the array literal assigned to *key*, brackets included."""
    start, end = find_array_indices(content, key)
    return content[start : end + 1]


def replace_array_value(content: str, key: str, new_value: str) -> str:
    """Replace the array literal assigned to *key* with *new_value*."""
    start, end = find_array_indices(content, key)
    return content[:start] + new_value + content[end + 1 :]


def _element_spans(inner: str) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    last_end = 0
    while last_end < len(inner):
        pairs = find_matching_indices(inner, "{", "}", last_end)
        if not pairs:
            break
        spans.append(pairs[0])
        last_end = pairs[0][1] + 1
    return spans


def array_elements(array_text: str) -> list[str]:
    """Top-level ``{...}`` elements of an array literal, verbatim.

    Commas are never used as separators, so only object elements are found.
    """
    inner = array_text.strip()[1:-1]
    return [inner[start : end + 1] for start, end in _element_spans(inner)]


def split_array_string(array_text: str) -> list[str]:
    """Like :func:`array_elements`, with whitespace runs collapsed to one space."""
    return [_WHITESPACE_RE.sub(" ", el).strip() for el in array_elements(array_text)]


def _array_inner(array_text: str) -> str:
    text = array_text.strip()
    if not (text.startswith("[") and text.endswith("]")):
        raise ValueError("Input string is not a valid array literal")
    return text[1:-1]


def _line_indent(text: str, offset: int) -> str:
    line_start = text.rfind("\n", 0, offset) + 1
    return _LEADING_WS_RE.match(text, line_start).group(0)


def array_element_indent(array_text: str) -> str:
    """Indentation of the line holding the last element of *array_text*."""
    inner = _array_inner(array_text)
    spans = _element_spans(inner)
    if not spans:
        return ""
    return _line_indent(inner, spans[-1][0])


def key_line_indent(content: str, key: str) -> str:
    """Indentation of the line holding ``key:``."""
    start = content.find(f"{key}:")
    if start == -1:
        raise KeyNotFoundError(key)
    return _line_indent(content, start)


def append_array_element(
    array_text: str, element: str, indent: str = "", step: str = "  "
) -> str:
    """Append *element* after the last ``{...}`` element of *array_text*.

    The new element reuses the indentation of the previous one, and a trailing
    comma after the previous element is kept after the new one. An array
    without elements keeps its contents (comments included) and gets the
    element on its own line at *indent*, with the closing bracket one *step*
    further out.
    """
    inner = _array_inner(array_text)
    spans = _element_spans(inner)
    if not spans:
        if not indent and not inner.strip():
            return f"[{element}]"
        if "\n" in inner:
            return f"[\n{indent}{element}{inner}]"
        closing = indent[: -len(step)] if step and indent.endswith(step) else ""
        return f"[{inner.rstrip()}\n{indent}{element}\n{closing}]"

    last_start, last_end = spans[-1]
    indent = _line_indent(inner, last_start)

    insert_at = last_end + 1
    trailing = _TRAILING_COMMA_RE.match(inner, insert_at)
    if trailing:
        insert_at = trailing.end()
        addition = f"\n{indent}{element},"
    else:
        addition = f",\n{indent}{element}"
    return "[" + inner[:insert_at] + addition + inner[insert_at:] + "]"


def extract_from_ts(
    manifest: str, patterns: dict[str, re.Pattern[str] | None]
) -> dict[str, str | None]:
    """Pull values out of TS manifest text.

    Keys mapped to a pattern take its first capture group; keys mapped to
    ``None`` take the array literal assigned to that key.
    """
    result: dict[str, str | None] = {}
    for key, pattern in patterns.items():
        if pattern is None:
            result[key] = extract_array_value(manifest, key)
            continue
        match = pattern.search(manifest)
        result[key] = match.group(1) if match else None
    return result
