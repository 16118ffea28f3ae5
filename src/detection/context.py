"""Document context around a block.

The cascade never touches the document tree directly.  Everything it
reads from the neighbourhood of a block is captured here, once, into an
immutable :class:`BlockContext`:

  - ``header_text``: trimmed text of the element right before the block
    (or, when the block is its parent's first element, the element right
    before the parent).  Code-block toolbars usually render the filename
    there.
  - ``data_file`` / ``title``: explicit metadata attributes on the block.
  - ``surrounding_text``: the conversational window, i.e. preceding
    siblings at three nesting levels joined and truncated.
  - ``nearby_texts``: trimmed texts of the few elements checked for a
    heading, bold span, or ``File:`` label.

Element walking mirrors the DOM's ``previousElementSibling`` /
``parentElement``: text nodes between elements are skipped, and the
``BeautifulSoup`` root is not treated as a parent element.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from config import settings


@dataclass(frozen=True)
class BlockContext:
    """Immutable snapshot of the document around one block."""

    header_text: str | None = None
    data_file: str | None = None
    title: str | None = None
    surrounding_text: str = ""
    nearby_texts: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "BlockContext":
        return cls()

    @classmethod
    def from_text(cls, surrounding_text: str) -> "BlockContext":
        """Context carrying only conversational text (no document tree)."""
        return cls(surrounding_text=surrounding_text)

    @classmethod
    def from_element(
        cls,
        block: Tag,
        *,
        window_chars: int | None = None,
        sibling_limit: int | None = None,
        parent_sibling_limit: int | None = None,
        grandparent_sibling_limit: int | None = None,
        markdown_limit: int | None = None,
    ) -> "BlockContext":
        """Capture the context of ``block`` (a ``<pre>`` element)."""
        code = block.find("code")
        code = code if isinstance(code, Tag) else None

        return cls(
            header_text=_header_text(block),
            data_file=_data_file(block, code),
            title=_attr(block, "title") or (_attr(code, "title") if code else None),
            surrounding_text=surrounding_text(
                block,
                window_chars=window_chars,
                sibling_limit=sibling_limit,
                parent_sibling_limit=parent_sibling_limit,
                grandparent_sibling_limit=grandparent_sibling_limit,
            ),
            nearby_texts=tuple(
                label_text(element)
                for element in markdown_candidates(block, limit=markdown_limit)
            ),
        )


# ── Element walking ───────────────────────────────────────────


def parent_element(node: Tag) -> Tag | None:
    parent = node.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def previous_elements(node: Tag, limit: int) -> Iterator[Tag]:
    """Yield up to ``limit`` preceding element siblings, nearest first."""
    if limit <= 0:
        return
    count = 0
    for sibling in node.previous_siblings:
        if not isinstance(sibling, Tag):
            continue
        yield sibling
        count += 1
        if count >= limit:
            return


def previous_element(node: Tag) -> Tag | None:
    return next(previous_elements(node, 1), None)


# ── Context pieces ────────────────────────────────────────────


def surrounding_text(
    block: Tag,
    *,
    window_chars: int | None = None,
    sibling_limit: int | None = None,
    parent_sibling_limit: int | None = None,
    grandparent_sibling_limit: int | None = None,
) -> str:
    """Collect the conversational text window preceding ``block``.

    Nearest-first: the block's own preceding siblings, then its parent's,
    then its grandparent's.  Joined with single spaces and cut to
    ``window_chars``.
    """
    window = window_chars if window_chars is not None else settings.context_window_chars
    own = sibling_limit if sibling_limit is not None else settings.context_sibling_limit
    up_one = (
        parent_sibling_limit
        if parent_sibling_limit is not None
        else settings.context_parent_sibling_limit
    )
    up_two = (
        grandparent_sibling_limit
        if grandparent_sibling_limit is not None
        else settings.context_grandparent_sibling_limit
    )

    texts = [sibling.get_text() for sibling in previous_elements(block, own)]

    parent = parent_element(block)
    if parent is not None:
        texts.extend(sibling.get_text() for sibling in previous_elements(parent, up_one))
        grandparent = parent_element(parent)
        if grandparent is not None:
            texts.extend(
                sibling.get_text() for sibling in previous_elements(grandparent, up_two)
            )

    return " ".join(texts)[:window]


def markdown_candidates(block: Tag, *, limit: int | None = None) -> list[Tag]:
    """Elements that may carry a heading or label naming the block's file."""
    effective_limit = limit if limit is not None else settings.markdown_scan_limit
    elements = list(previous_elements(block, effective_limit))
    parent = parent_element(block)
    if parent is not None:
        elements.extend(previous_elements(parent, effective_limit))
    return elements


_HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
_BOLD_TAGS = {"strong", "b"}


def label_text(element: Tag) -> str:
    """Trimmed text of ``element``, in markdown spelling where rendered.

    Raw markdown (``# name``, ``**name**``) passes through unchanged.  A
    rendered heading element reads as ``# name`` and an element whose only
    content is a bold span reads as ``**name**``, so one set of label
    patterns covers both forms.
    """
    text = element.get_text().strip()
    if not text:
        return text
    if element.name in _HEADING_TAGS and not text.startswith("#"):
        return f"# {text}"
    if element.name in _BOLD_TAGS:
        return f"**{text}**"

    children = [
        child for child in element.children
        if isinstance(child, Tag) or str(child).strip()
    ]
    if len(children) == 1 and isinstance(children[0], Tag) and children[0].name in _BOLD_TAGS:
        return f"**{text}**"
    return text


def _header_text(block: Tag) -> str | None:
    header = previous_element(block)
    if header is None:
        parent = parent_element(block)
        if parent is not None:
            header = previous_element(parent)
    if header is None:
        return None
    return header.get_text().strip()


def _data_file(block: Tag, code: Tag | None) -> str | None:
    if code is not None:
        value = _attr(code, "data-file") or _attr(code, "data-filename")
        if value:
            return value
    return _attr(block, "data-file")


def _attr(tag: Tag | None, name: str) -> str | None:
    if tag is None:
        return None
    value = tag.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        value = " ".join(value)
    return str(value) or None
