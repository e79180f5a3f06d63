from __future__ import annotations

import html
import re
from typing import Optional

_BLOCK_RE = re.compile(
    r"<\s*(script|style|iframe|object|embed|noscript)\b[^>]*>.*?<\s*/\s*\1\s*>",
    flags=re.IGNORECASE | re.DOTALL,
)
_UNCLOSED_BLOCK_RE = re.compile(
    r"<\s*(script|style|iframe|object|embed|noscript)\b[^>]*>.*\Z",
    flags=re.IGNORECASE | re.DOTALL,
)
_COMMENT_RE = re.compile(r"<!--.*?(-->|\Z)", flags=re.DOTALL)
_DECLARATION_RE = re.compile(r"<![A-Za-z\[][^<>]*>")
_TAG_RE = re.compile(r"<(/?)([A-Za-z][A-Za-z0-9-]*)((?:[\s/][^<>]*)?)>")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_KNOWN_TAGS = frozenset(
    """
    a abbr address area article aside audio b base bdi bdo blockquote body br
    button canvas caption cite code col colgroup data datalist dd del details
    dfn dialog div dl dt em embed fieldset figcaption figure font footer form
    frame frameset h1 h2 h3 h4 h5 h6 head header hr html i iframe img input ins
    kbd label legend li link main map mark marquee math menu meta meter nav
    noscript object ol optgroup option output p param picture pre progress q
    rp rt ruby s samp script section select slot small source span strong
    style sub summary sup svg table tbody td template textarea tfoot th thead
    time title tr track u ul var video wbr
    """.split()
)
_BOOLEAN_ATTRS = frozenset(
    """
    allowfullscreen async autofocus autoplay checked controls default defer
    disabled formnovalidate hidden inert ismap loop multiple muted nomodule
    novalidate open playsinline readonly required reversed selected
    """.split()
)


def _is_tag(match: re.Match) -> bool:
    """
    Tell markup from math such as ``a<b and c>d``.

    Anything carrying an attribute value is markup. Otherwise the name must be
    a real element and any bare attributes must be boolean ones.
    """
    closing, name, attrs = match.group(1), match.group(2).lower(), match.group(3)
    if "=" in attrs:
        return True
    if name not in _KNOWN_TAGS and "-" not in name:
        return False
    words = attrs.replace("/", " ").split()
    if closing:
        return not words
    return all(word.lower() in _BOOLEAN_ATTRS for word in words)


def _strip_tags(text: str) -> str:
    return _TAG_RE.sub(lambda m: "" if _is_tag(m) else m.group(0), text)


def _has_markup(text: str) -> bool:
    return bool(_DECLARATION_RE.search(text)) or any(_is_tag(m) for m in _TAG_RE.finditer(text))


def strip_markup(text: str) -> str:
    """
    Remove every HTML tag, keeping the text between tags.
    Script/style-like blocks are dropped together with their content.
    Comparisons that only look like tags are kept.
    """
    out = _BLOCK_RE.sub("", text)
    out = _UNCLOSED_BLOCK_RE.sub("", out)
    out = _COMMENT_RE.sub("", out)
    out = _DECLARATION_RE.sub("", out)
    out = _strip_tags(out)
    # entity-encoded markup must not survive a decode on the client
    decoded = html.unescape(out)
    if decoded != out and (_has_markup(decoded) or _UNCLOSED_BLOCK_RE.search(decoded)):
        return strip_markup(decoded)
    return _CONTROL_RE.sub("", out)


def sanitize_question(raw: Optional[str]) -> Optional[str]:
    """Plain-text question or None when nothing meaningful is left."""
    if raw is None:
        return None
    cleaned = strip_markup(raw).strip()
    return cleaned or None


def sanitize_filename(raw: Optional[str], max_length: int = 255) -> Optional[str]:
    if not raw:
        return None
    cleaned = strip_markup(raw).replace("/", "_").replace("\\", "_").strip()
    return cleaned[:max_length] or None
