"""string.* helpers.

Transform helpers (length, lowercase, uppercase, titlecase, slugify,
urlEncode, urlDecode, htmlEscape, htmlToText, htmlToMd) concatenate all
positional arguments first, then apply the transform.
"""

import re
import unicodedata
from typing import Any
from urllib.parse import quote, unquote

from bs4 import BeautifulSoup, Comment, Declaration, Doctype, NavigableString, PageElement, ProcessingInstruction, Tag

from ..types import HelperArgs, HelperScope
from ..values import stringify

# Lowercased inside titles unless first or last word
DEFAULT_SMALL_WORDS = frozenset(
    {
        "a", "an", "and", "as", "at", "but", "by", "en", "for", "from", "if", "in",
        "into", "nor", "of", "off", "on", "or", "per", "so", "the", "to", "up",
        "via", "vs", "with", "yet",
    }
)

_INVALID_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _int_arg(value: Any) -> int | None:
    """Integer argument or None when missing/non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(float(str(value)))
    except ValueError:
        return None


def string_concat(args: HelperArgs, scope: HelperScope) -> str:
    """Concatenate all arguments."""
    return args.text()


def string_default(args: HelperArgs, scope: HelperScope) -> str:
    """First non-empty argument."""
    for value in args.positional:
        text = stringify(value)
        if text:
            return text
    return ""


def string_replace(args: HelperArgs, scope: HelperScope) -> str:
    """Replace all occurrences: string.replace text search replacement."""
    text = stringify(args.target)
    if len(args.positional) < 3:
        return text
    search, replacement = stringify(args.positional[1]), stringify(args.positional[2])
    if search == "":
        return replacement.join(text)
    return text.replace(search, replacement)


def string_substring(args: HelperArgs, scope: HelperScope) -> str:
    """Substring by start and optional length."""
    text = stringify(args.target)
    start = _int_arg(args.positional[1] if len(args.positional) > 1 else None)
    if start is None:
        return text
    start = max(0, start)
    length = _int_arg(args.positional[2] if len(args.positional) > 2 else None)
    if length is None:
        return text[start:]
    return text[start : start + max(0, length)]


def _pad(args: HelperArgs, left: bool) -> str:
    text = stringify(args.target)
    width = _int_arg(args.positional[1] if len(args.positional) > 1 else None)
    fill = stringify(args.positional[2]) if len(args.positional) > 2 else ""
    if width is None or not fill:
        return text
    missing = width - len(text)
    if missing <= 0:
        return text
    padding = (fill * missing)[:missing]
    return padding + text if left else text + padding


def string_pad_left(args: HelperArgs, scope: HelperScope) -> str:
    """Left-pad to a length with a fill character."""
    return _pad(args, left=True)


def string_pad_right(args: HelperArgs, scope: HelperScope) -> str:
    """Right-pad to a length with a fill character."""
    return _pad(args, left=False)


def string_starts_with(args: HelperArgs, scope: HelperScope) -> bool:
    """Whether text starts with a prefix."""
    if len(args.positional) < 2:
        return False
    return stringify(args.target).startswith(stringify(args.positional[1]))


def string_ends_with(args: HelperArgs, scope: HelperScope) -> bool:
    """Whether text ends with a suffix."""
    if len(args.positional) < 2:
        return False
    return stringify(args.target).endswith(stringify(args.positional[1]))


def string_contains(args: HelperArgs, scope: HelperScope) -> bool:
    """Whether text contains a substring."""
    if len(args.positional) < 2:
        return False
    return stringify(args.positional[1]) in stringify(args.target)


def string_length(args: HelperArgs, scope: HelperScope) -> int:
    """Length of the concatenated arguments."""
    return len(args.text())


def string_lowercase(args: HelperArgs, scope: HelperScope) -> str:
    """Lowercase the concatenated arguments."""
    return args.text().lower()


def string_uppercase(args: HelperArgs, scope: HelperScope) -> str:
    """Uppercase the concatenated arguments."""
    return args.text().upper()


def titlecase(text: str, small_words: frozenset[str] | set[str] = DEFAULT_SMALL_WORDS) -> str:
    """Title-case text; small words stay lowercase except first and last.

    All-caps input is lowered first so "THE LORD" becomes "The Lord".
    """
    if text.isupper():
        text = text.lower()
    parts = re.split(r"(\s+)", text)
    word_positions = [i for i, part in enumerate(parts) if part and not part.isspace()]
    if not word_positions:
        return text
    first, last = word_positions[0], word_positions[-1]
    for i in word_positions:
        word = parts[i]
        if i not in (first, last) and word.lower() in small_words:
            parts[i] = word.lower()
        else:
            parts[i] = word[0].upper() + word[1:]
    return "".join(parts)


def string_titlecase(args: HelperArgs, scope: HelperScope) -> str:
    """Title-case the concatenated arguments."""
    return titlecase(args.text())


def make_titlecase_helper(small_words: list[str]) -> Any:
    """string.titlecase with a custom small-word list."""
    words = frozenset(w.lower() for w in small_words)

    def string_titlecase_custom(args: HelperArgs, scope: HelperScope) -> str:
        """Title-case the concatenated arguments."""
        return titlecase(args.text(), words)

    return string_titlecase_custom


def slugify(text: str) -> str:
    """URL slug: ascii-folded, lowercase, hyphen-separated."""
    folded = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]+", "-", folded.lower()).strip("-")


def string_slugify(args: HelperArgs, scope: HelperScope) -> str:
    """Slugify the concatenated arguments."""
    return slugify(args.text())


def url_encode(text: str) -> str:
    """Percent-encode everything except unreserved characters."""
    return quote(text, safe="-_.!~*'()")


def url_decode(text: str) -> str:
    """Percent-decode; malformed input is returned unchanged."""
    if _INVALID_PERCENT.search(text):
        return text
    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError:
        return text


def string_url_encode(args: HelperArgs, scope: HelperScope) -> str:
    """URL-encode the concatenated arguments."""
    return url_encode(args.text())


def string_url_decode(args: HelperArgs, scope: HelperScope) -> str:
    """URL-decode the concatenated arguments."""
    return url_decode(args.text())


def html_escape(text: str) -> str:
    """Escape & < > " ' as entities."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def string_html_escape(args: HelperArgs, scope: HelperScope) -> str:
    """HTML-escape the concatenated arguments."""
    return html_escape(args.text())


# Dropped together with their content
_SKIPPED_TAGS = ["script", "style", "noscript", "template"]
_MARKUP_ONLY = (Comment, Declaration, Doctype, ProcessingInstruction)


def _soup(markup: str) -> BeautifulSoup:
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup.find_all(_SKIPPED_TAGS):
        tag.decompose()
    return soup


def html_to_text(markup: str) -> str:
    """Strip tags (space at each tag boundary), decode entities, collapse whitespace."""
    text = _soup(markup).get_text(" ")
    return re.sub(r"\s+", " ", text).strip()


def string_html_to_text(args: HelperArgs, scope: HelperScope) -> str:
    """Convert HTML to plain text."""
    return html_to_text(args.text())


def _children_md(node: Tag) -> str:
    return "".join(_node_md(child) for child in node.children)


def _list_md(node: Tag, ordered: bool) -> str:
    items = [_children_md(li).strip() for li in node.find_all("li", recursive=False)]
    lines = [f"{n}. {item}" if ordered else f"- {item}" for n, item in enumerate(items, start=1)]
    return "\n\n" + "\n".join(lines) + "\n\n"


def _table_md(node: Tag) -> str:
    rows: list[str] = []
    for index, row in enumerate(node.find_all("tr")):
        cells = row.find_all(["th", "td"], recursive=False)
        rows.append("| " + " | ".join(_children_md(cell).strip() for cell in cells) + " |")
        if index == 0 and row.find("th", recursive=False):
            rows.append("| " + " | ".join("---" for _ in cells) + " |")
    return "\n\n" + "\n".join(rows) + "\n\n"


def _node_md(node: PageElement) -> str:
    if isinstance(node, _MARKUP_ONLY):
        return ""
    if isinstance(node, NavigableString):
        return re.sub(r"\s+", " ", str(node))
    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name in ("h1", "h2", "h3", "h4", "h5", "h6"):
        return f"\n\n{'#' * int(name[1])} {_children_md(node).strip()}\n\n"
    if name == "p":
        return f"\n\n{_children_md(node).strip()}\n\n"
    if name == "br":
        return "\n"
    if name in ("b", "strong"):
        return f"**{_children_md(node)}**"
    if name in ("em", "i"):
        return f"*{_children_md(node)}*"
    if name == "a":
        text = _children_md(node)
        href = node.get("href")
        return f"[{text}]({href})" if href else text
    if name == "img":
        return str(node.get("alt") or "")
    if name == "pre":
        return f"\n\n```\n{node.get_text().strip(chr(10))}\n```\n\n"
    if name == "code":
        return f"`{node.get_text()}`"
    if name in ("ul", "ol"):
        return _list_md(node, ordered=name == "ol")
    if name == "table":
        return _table_md(node)
    return _children_md(node)


def html_to_markdown(markup: str) -> str:
    """Convert a subset of HTML to Markdown.

    Handles h1-h6, p, br, b/strong, em/i, a, ul/ol, img (alt text), code,
    pre and simple tables. Other tags keep only their content; at most one
    blank line separates blocks. Code fences are copied as-is.
    """
    md = _node_md(_soup(markup)).replace("\xa0", " ")

    lines: list[str] = []
    in_fence = False
    for line in md.split("\n"):
        if line.strip() == "```":
            in_fence = not in_fence
            lines.append("```")
        elif in_fence:
            lines.append(line)
        else:
            lines.append(re.sub(r"[ \t]+", " ", line).strip())
    md = "\n".join(lines)
    md = re.sub(r"\n{3,}", "\n\n", md)
    return md.strip()


def string_html_to_md(args: HelperArgs, scope: HelperScope) -> str:
    """Convert HTML to Markdown."""
    return html_to_markdown(args.text())


STRING_HELPERS: dict[str, Any] = {
    "string.concat": string_concat,
    "string.default": string_default,
    "string.replace": string_replace,
    "string.substring": string_substring,
    "string.padLeft": string_pad_left,
    "string.padRight": string_pad_right,
    "string.startsWith": string_starts_with,
    "string.endsWith": string_ends_with,
    "string.contains": string_contains,
    "string.length": string_length,
    "string.lowercase": string_lowercase,
    "string.uppercase": string_uppercase,
    "string.titlecase": string_titlecase,
    "string.slugify": string_slugify,
    "string.urlEncode": string_url_encode,
    "string.urlDecode": string_url_decode,
    "string.htmlEscape": string_html_escape,
    "string.htmlToText": string_html_to_text,
    "string.htmlToMd": string_html_to_md,
}
