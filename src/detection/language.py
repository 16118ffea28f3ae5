"""Content classification from markup hints.

Maps the class attributes of a code block (and its enclosing ``<pre>``)
to a coarse :class:`ContentTag`.  Highlighters spell the language in many
ways (``language-python``, ``lang-py``, ``hljs python``, ``golang``), so
classification is an ordered table of case-insensitive, word-bounded
alias patterns: the first pattern that matches wins, and ``txt`` is the
default when nothing does.
"""

from __future__ import annotations

import re

from bs4 import Tag

from src.detection.models import ContentTag

# Table order only matters where two aliases could both match the same
# hint string; the first entry wins.
_LANGUAGE_ALIASES: tuple[tuple[re.Pattern[str], ContentTag], ...] = (
    (re.compile(r"\b(rust)\b", re.IGNORECASE), ContentTag.RS),
    (re.compile(r"\b(javascript|js)\b", re.IGNORECASE), ContentTag.JS),
    (re.compile(r"\b(typescript|ts)\b", re.IGNORECASE), ContentTag.TS),
    (re.compile(r"\b(python|py)\b", re.IGNORECASE), ContentTag.PY),
    (re.compile(r"\b(bash|shell|sh)\b", re.IGNORECASE), ContentTag.SH),
    (re.compile(r"\b(json)\b", re.IGNORECASE), ContentTag.JSON),
    (re.compile(r"\b(yaml|yml)\b", re.IGNORECASE), ContentTag.YAML),
    (re.compile(r"\b(toml)\b", re.IGNORECASE), ContentTag.TOML),
    (re.compile(r"\b(sql)\b", re.IGNORECASE), ContentTag.SQL),
    (re.compile(r"\b(html)\b", re.IGNORECASE), ContentTag.HTML),
    (re.compile(r"\b(css)\b", re.IGNORECASE), ContentTag.CSS),
    (re.compile(r"\b(markdown|md)\b", re.IGNORECASE), ContentTag.MD),
    (re.compile(r"\b(go|golang)\b", re.IGNORECASE), ContentTag.GO),
    (re.compile(r"\b(java)\b", re.IGNORECASE), ContentTag.JAVA),
    (re.compile(r"\b(c|cpp|c\+\+)\b", re.IGNORECASE), ContentTag.CPP),
    (re.compile(r"\b(ruby|rb)\b", re.IGNORECASE), ContentTag.RB),
    (re.compile(r"\b(php)\b", re.IGNORECASE), ContentTag.PHP),
    (re.compile(r"\b(swift)\b", re.IGNORECASE), ContentTag.SWIFT),
    (re.compile(r"\b(kotlin|kt)\b", re.IGNORECASE), ContentTag.KT),
    (re.compile(r"\b(dockerfile)\b", re.IGNORECASE), ContentTag.DOCKERFILE),
)


def classify(markup_hints: str) -> ContentTag:
    """Return the content tag named by ``markup_hints``, or ``txt``."""
    for pattern, tag in _LANGUAGE_ALIASES:
        if pattern.search(markup_hints):
            return tag
    return ContentTag.TXT


def classify_element(element: Tag) -> ContentTag:
    """Classify a block element from its own and its ``<pre>``'s classes.

    ``element`` may be the ``<pre>`` itself or the ``<code>`` inside it;
    either way both class lists contribute to the hint string.
    """
    code = element if element.name == "code" else element.find("code")
    pre = element if element.name == "pre" else element.find_parent("pre")

    hints: list[str] = []
    if isinstance(code, Tag):
        hints.append(_class_string(code))
    if isinstance(pre, Tag):
        hints.append(_class_string(pre))
    if not hints:
        hints.append(_class_string(element))
    return classify(" ".join(hints))


def _class_string(tag: Tag) -> str:
    classes = tag.get("class", [])
    if isinstance(classes, str):
        return classes
    return " ".join(classes)
