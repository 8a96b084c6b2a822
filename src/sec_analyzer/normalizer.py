"""Text normalizer — raw filing HTML / text → clean scanning buffer.

HTML is walked with BeautifulSoup using block-element awareness so that
inline runs (``<span>B</span><span>USINESS</span>``) are joined without
breaking words while paragraphs, rows and headings land on their own lines.
Table rows become single lines with `` | `` between cells; the line-based
statement parser relies on that delimiter.

Nothing in here raises: if BeautifulSoup chokes on a pathological document
a regex stripper takes over.
"""

from __future__ import annotations

import html as _html
import logging
import re

from sec_analyzer.models import DocumentFormat

log = logging.getLogger(__name__)

CELL_DELIMITER = " | "

_BLOCK_TAGS = frozenset([
    "p", "div", "br", "h1", "h2", "h3", "h4", "h5", "h6",
    "li", "ol", "ul", "blockquote", "pre", "hr",
    "section", "article", "header", "footer", "nav",
    "tr", "table", "thead", "tbody", "tfoot",
    "dt", "dd", "dl", "figcaption", "figure", "center",
])

_DROP_TAGS = ["script", "style", "head", "title", "noscript", "ix:header"]

_HIDDEN_RE = re.compile(r"display\s*:\s*none", re.I)
_HTML_SNIFF_RE = re.compile(
    r"<\s*(?:html|body|div|table|p|span|font|tr|td|br|!doctype|xbrl|ix:)",
    re.I,
)

# Characters that should read as plain ASCII in the scanning buffer.
_CHAR_MAP = str.maketrans({
    "\u00a0": " ",   # nbsp
    "\u2007": " ",   # figure space
    "\u2009": " ",   # thin space
    "\u200b": "",    # zero-width space
    "\u2013": "-",   # en dash
    "\u2014": "-",   # em dash
    "\u2212": "-",   # minus sign
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
})


# ═══════════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════════

def normalize(content: str | bytes | None, fmt: DocumentFormat | str | None = None) -> str:
    """Turn raw filing content into clean text.

    When *fmt* is missing or unrecognized the format is sniffed from the
    content itself.
    """
    if content is None:
        return ""
    text = _decode(content)
    if not text.strip():
        return ""

    resolved = DocumentFormat.coerce(fmt)
    if resolved is None:
        resolved = DocumentFormat.HTML if looks_like_html(text) else DocumentFormat.PLAIN

    if resolved is DocumentFormat.HTML:
        return clean_html_to_text(text)
    return normalize_whitespace_preserve_newlines(decode_entities(text))


def clean_html_to_text(html: str) -> str:
    """Strip markup and return readable text with line structure kept."""
    try:
        text = _soup_to_text(html)
    except Exception as exc:
        log.warning("BeautifulSoup failed (%s); falling back to regex stripping", exc)
        text = _regex_to_text(html)
    return normalize_whitespace_preserve_newlines(text.translate(_CHAR_MAP))


def decode_entities(text: str) -> str:
    """Decode HTML entities and map typographic characters to ASCII."""
    if not text:
        return ""
    return _html.unescape(text).translate(_CHAR_MAP)


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space."""
    return re.sub(r"\s+", " ", text or "").strip()


def normalize_whitespace_preserve_newlines(text: str) -> str:
    """Collapse spaces within lines and keep at most one blank line."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t\f\v]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def looks_like_html(content: str | bytes) -> bool:
    """Heuristic: does the head of *content* contain markup?"""
    head = _decode(content)[:4096]
    return bool(_HTML_SNIFF_RE.search(head))


# ═══════════════════════════════════════════════════════════════════════════
#  Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _decode(content: str | bytes) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def _soup_to_text(html: str) -> str:
    from bs4 import BeautifulSoup, NavigableString, Tag
    from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

    soup = BeautifulSoup(html, "html.parser")

    for tag in soup(_DROP_TAGS):
        tag.decompose()
    for tag in soup.find_all(attrs={"style": _HIDDEN_RE}):
        tag.decompose()

    # Rows → "cell | cell | cell" lines; interior blank cells keep their column
    for tr in soup.find_all("tr"):
        cells = [td.get_text(" ", strip=True) for td in tr.find_all(["td", "th"])]
        while cells and not cells[0]:
            cells.pop(0)
        while cells and not cells[-1]:
            cells.pop()
        if cells:
            tr.replace_with("\n" + CELL_DELIMITER.join(cells) + "\n")
        else:
            tr.decompose()

    parts: list[str] = []
    skip = (Comment, Declaration, Doctype, ProcessingInstruction)

    def _walk(node) -> None:
        if isinstance(node, NavigableString):
            if isinstance(node, skip):
                return
            parts.append(str(node))
            return
        if not isinstance(node, Tag):
            return
        is_block = (node.name or "").lower() in _BLOCK_TAGS
        if is_block:
            parts.append("\n")
        for child in node.children:
            _walk(child)
        if is_block:
            parts.append("\n")

    _walk(soup)
    return "".join(parts)


def _regex_to_text(html: str) -> str:
    text = re.sub(r"<(script|style|head)[^>]*>.*?</\1\s*>", " ", html, flags=re.DOTALL | re.I)
    text = re.sub(r"<ix:header[^>]*>.*?</ix:header\s*>", " ", text, flags=re.DOTALL | re.I)
    text = re.sub(r"<!--.*?-->", " ", text, flags=re.DOTALL)
    text = re.sub(r"</t[dh]\s*>", CELL_DELIMITER, text, flags=re.I)
    text = re.sub(r"<(?:br|p|div|tr|li|h[1-6]|table)\b[^>]*>", "\n", text, flags=re.I)
    text = re.sub(r"</(?:p|div|tr|li|h[1-6]|table)\s*>", "\n", text, flags=re.I)
    text = re.sub(r"<[^>]*>", " ", text)
    text = re.sub(r"\|\s*\n", "\n", text)
    return _html.unescape(text)
