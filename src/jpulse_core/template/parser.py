"""Tokenizer for {{...}} markers and helper argument lists.

Markers are found by scanning, not by regex pairing: block open/close
markers are matched by counting nested markers of the same name, so an
inner block's ``{{else}}`` or closing marker never pairs with an outer one.
"""

import re
from dataclasses import dataclass
from enum import Enum

# {{!-- multi-line --}} and {{! short }} comments
COMMENT_PATTERN = re.compile(r"\{\{!--.*?--\}\}|\{\{!(?!--).*?\}\}", re.S)

_BLOCK_OPEN = re.compile(r"#([A-Za-z_][\w.\-]*)(?:\s+(.*))?$", re.S)
_BLOCK_CLOSE = re.compile(r"/([A-Za-z_][\w.\-]*)$")
_HASH_KEY = re.compile(r"([A-Za-z_@][\w.\-]*)=")


class TagKind(str, Enum):
    """Kind of {{...}} marker."""

    OPEN = "open"  # {{#name params}}
    CLOSE = "close"  # {{/name}}
    ELSE = "else"  # {{else}}
    EXPR = "expr"  # {{expression}}
    TEXT = "text"  # malformed marker, emitted verbatim


@dataclass(frozen=True)
class Tag:
    """A marker located in a template string; end is exclusive."""

    kind: TagKind
    start: int
    end: int
    name: str = ""
    params: str = ""


class ArgKind(str, Enum):
    """Kind of helper argument token."""

    STRING = "string"
    SUBEXPR = "subexpr"
    WORD = "word"


@dataclass(frozen=True)
class ArgToken:
    """One argument. ``key`` is set for hash parameters (key=value)."""

    kind: ArgKind
    text: str
    key: str | None = None


def strip_comments(text: str) -> str:
    """Remove template comments."""
    return COMMENT_PATTERN.sub("", text)


def scan_tags(text: str) -> list[Tag]:
    """Locate all markers in order.

    An opening ``{{`` without a closing ``}}`` ends the scan, so the rest of
    the text is left as-is. A ``{{`` followed by another ``{{`` before any
    ``}}`` is skipped as literal text. A ``{{`` directly followed by ``{`` is not
    a marker start; scanning resumes one character later, so ``{{{x}}}``
    keeps its outer braces.
    """
    tags: list[Tag] = []
    pos = 0
    while True:
        start = text.find("{{", pos)
        if start < 0:
            break
        if text.startswith("{", start + 2):
            pos = start + 1
            continue
        end, restart = _find_tag_end(text, start + 2)
        if restart is not None:
            pos = restart
            continue
        if end < 0:
            break
        tags.append(_classify(text[start + 2 : end], start, end + 2))
        pos = end + 2
    return tags


def _find_tag_end(text: str, begin: int) -> tuple[int, int | None]:
    """Index of the closing ``}}`` (quote-aware) or a restart position."""
    quote: str | None = None
    i = begin
    length = len(text)
    while i < length:
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif text.startswith("}}", i):
            return i, None
        elif text.startswith("{{", i):
            return -1, i
        i += 1
    if quote:
        # Unbalanced quote, e.g. an apostrophe in a path: use the first closing marker
        return text.find("}}", begin), None
    return -1, None


def _classify(inner: str, start: int, end: int) -> Tag:
    stripped = inner.strip()
    if stripped.startswith("#"):
        match = _BLOCK_OPEN.match(stripped)
        if match:
            return Tag(TagKind.OPEN, start, end, match.group(1), (match.group(2) or "").strip())
        return Tag(TagKind.TEXT, start, end)
    if stripped.startswith("/"):
        match = _BLOCK_CLOSE.match(stripped)
        if match:
            return Tag(TagKind.CLOSE, start, end, match.group(1))
        return Tag(TagKind.TEXT, start, end)
    if stripped == "else":
        return Tag(TagKind.ELSE, start, end)
    return Tag(TagKind.EXPR, start, end, params=stripped)


def find_block_end(tags: list[Tag], open_index: int) -> int | None:
    """Index of the close tag matching tags[open_index], or None if unclosed."""
    name = tags[open_index].name
    depth = 0
    for j in range(open_index + 1, len(tags)):
        tag = tags[j]
        if tag.name != name:
            continue
        if tag.kind == TagKind.OPEN:
            depth += 1
        elif tag.kind == TagKind.CLOSE:
            if depth == 0:
                return j
            depth -= 1
    return None


def split_else(body: str) -> tuple[str, str | None]:
    """Split a block body at its own top-level ``{{else}}``.

    ``{{else}}`` markers inside nested blocks belong to those blocks.
    """
    tags = scan_tags(body)
    i = 0
    while i < len(tags):
        tag = tags[i]
        if tag.kind == TagKind.OPEN:
            close = find_block_end(tags, i)
            if close is not None:
                i = close + 1
                continue
        elif tag.kind == TagKind.ELSE:
            return body[: tag.start], body[tag.end :]
        i += 1
    return body, None


def tokenize_args(source: str) -> list[ArgToken]:
    """Split a helper expression into argument tokens.

    Whitespace separates tokens except inside quotes or parentheses.
    Quoted spans may contain the other quote character and backslash
    escapes; ``(helper ...)`` is kept whole as a subexpression;
    ``key=value`` produces a keyed token.
    """
    tokens: list[ArgToken] = []
    i = 0
    length = len(source)
    while i < length:
        if source[i].isspace():
            i += 1
            continue
        key = None
        match = _HASH_KEY.match(source, i)
        if match and match.end() < length and not source[match.end()].isspace():
            key = match.group(1)
            i = match.end()
        token, i = _read_value(source, i)
        tokens.append(ArgToken(token.kind, token.text, key))
    return tokens


def _read_value(source: str, i: int) -> tuple[ArgToken, int]:
    ch = source[i]
    if ch in "\"'":
        return _read_quoted(source, i)
    if ch == "(":
        return _read_subexpr(source, i)
    j = i
    while j < len(source) and not source[j].isspace():
        j += 1
    return ArgToken(ArgKind.WORD, source[i:j]), j


def _read_quoted(source: str, i: int) -> tuple[ArgToken, int]:
    quote = source[i]
    chars: list[str] = []
    j = i + 1
    while j < len(source):
        ch = source[j]
        if ch == "\\" and j + 1 < len(source):
            nxt = source[j + 1]
            chars.append(nxt if nxt in "\"'\\" else ch + nxt)
            j += 2
            continue
        if ch == quote:
            return ArgToken(ArgKind.STRING, "".join(chars)), j + 1
        chars.append(ch)
        j += 1
    # Unterminated: take the rest as the string
    return ArgToken(ArgKind.STRING, "".join(chars)), j


def _read_subexpr(source: str, i: int) -> tuple[ArgToken, int]:
    depth = 0
    quote: str | None = None
    j = i
    while j < len(source):
        ch = source[j]
        if quote:
            if ch == "\\":
                j += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return ArgToken(ArgKind.SUBEXPR, source[i + 1 : j].strip()), j + 1
        j += 1
    return ArgToken(ArgKind.SUBEXPR, source[i + 1 :].strip()), j
