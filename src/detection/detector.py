"""Filename inference cascade.

Turns a raw block of text plus its captured document context into a
:class:`DetectionResult`.  Documents carry no structured metadata about
what a block is, so the destination is inferred from weak signals tried
in a fixed order.  The first stage that produces a valid candidate wins:

  1. header / attribute lookup     (header, data-attr, title-attr; high)
  2. conversational context        (context; per-pattern confidence)
  3. first-line comment            (comment; high)
  4. code-structure rule table     (code-structure; per-rule confidence)
  5. markdown heading / bold label (markdown; high)
  6. declaration extraction        (extracted; low)
  7. synthesis                     (generated; none)

Stage 7 cannot fail, so :func:`infer` always returns a result.  Every
candidate from stages 1-6 passes :func:`is_acceptable_filename` first; a
candidate that fails is a non-match and the cascade moves on.  Nothing in
here raises for "don't know": that answer is source ``generated`` with
confidence ``none``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from bs4 import Tag

from config import settings
from src.detection.context import BlockContext
from src.detection.filenames import (
    FILENAME_PATTERN,
    is_acceptable_filename,
    snippet_filename,
    to_snake_case,
)
from src.detection.language import classify_element
from src.detection.models import Confidence, ContentTag, DetectionResult, DetectionSource
from src.detection.rules import match_rules

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
Stage = Callable[[str, BlockContext, str], "DetectionResult | None"]

_Q = "[`'\"]"  # optional quoting around a captured name
_NAME = f"({FILENAME_PATTERN})"


# ── Stage 1: header / attributes ──────────────────────────────

_BARE_FILENAME_RE = re.compile(rf"^({FILENAME_PATTERN})$")
_TITLE_EXTENSION_RE = re.compile(r"\.[a-z0-9]+$", re.IGNORECASE)


def from_header(text: str, context: BlockContext, tag: str) -> DetectionResult | None:
    """A bare filename right above the block, or explicit metadata."""
    if context.header_text:
        match = _BARE_FILENAME_RE.match(context.header_text)
        if match and is_acceptable_filename(match.group(1)):
            return _result(match.group(1), DetectionSource.HEADER, Confidence.HIGH)

    if context.data_file and is_acceptable_filename(context.data_file):
        return _result(context.data_file, DetectionSource.DATA_ATTR, Confidence.HIGH)

    title = context.title
    if title and _TITLE_EXTENSION_RE.search(title) and is_acceptable_filename(title):
        return _result(title, DetectionSource.TITLE_ATTR, Confidence.HIGH)

    return None


# ── Stage 2: conversational context ───────────────────────────

_I = re.IGNORECASE

# Priority order: explicit instructions first, bare quoted names last.
_CONTEXT_PATTERNS: tuple[tuple[re.Pattern[str], Confidence], ...] = (
    (re.compile(rf"(?:save|create|write)\s+(?:this\s+)?(?:as|to|in)\s+{_Q}?{_NAME}{_Q}?", _I), Confidence.HIGH),
    (re.compile(rf"(?:file|filename|name)[:\s]+{_Q}?{_NAME}{_Q}?", _I), Confidence.HIGH),
    (re.compile(rf"(?:called|named)\s+{_Q}?{_NAME}{_Q}?", _I), Confidence.HIGH),
    (re.compile(rf"(?:update|modify|edit|change)\s+(?:your\s+)?{_Q}?{_NAME}{_Q}?", _I), Confidence.HIGH),
    (
        re.compile(rf"(?:here'?s?|this is)\s+(?:the\s+)?(?:updated?\s+)?{_Q}?{_NAME}{_Q}?", _I),
        Confidence.MEDIUM,
    ),
    (re.compile(rf"{_Q}([a-zA-Z0-9_\-]+/[a-zA-Z0-9_\-./\\]+\.[a-zA-Z0-9]+){_Q}", _I), Confidence.MEDIUM),
    (re.compile(rf"{_Q}{_NAME}{_Q}", _I), Confidence.LOW),
    (re.compile(rf"\bin\s+{_Q}?{_NAME}{_Q}?", _I), Confidence.MEDIUM),
    (re.compile(rf"^#+\s*{_Q}?{_NAME}{_Q}?\s*$", re.MULTILINE), Confidence.HIGH),
)


def from_conversation(text: str, context: BlockContext, tag: str) -> DetectionResult | None:
    """Natural-language mentions of the file in the text above the block."""
    window = context.surrounding_text
    if not window:
        return None
    for pattern, confidence in _CONTEXT_PATTERNS:
        match = pattern.search(window)
        if match and is_acceptable_filename(match.group(1)):
            return _result(match.group(1), DetectionSource.CONTEXT, confidence)
    return None


# ── Stage 3: first-line comment ───────────────────────────────

_LABEL = r"(?:file(?:name|path)?[:\s]+)?"

_COMMENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"^//\s*{_LABEL}{_NAME}", _I),
    re.compile(rf"^#\s*{_LABEL}{_NAME}", _I),
    re.compile(rf"^/\*+\s*(?:@file\s+)?{_LABEL}{_NAME}", _I),
    re.compile(rf"^<!--\s*{_LABEL}{_NAME}", _I),
    re.compile(rf"^--\s*{_LABEL}{_NAME}", _I),
)


def from_first_line_comment(
    text: str,
    context: BlockContext,
    tag: str,
    *,
    max_lines: int | None = None,
) -> DetectionResult | None:
    """A filename in a comment on one of the block's first lines."""
    limit = max_lines if max_lines is not None else settings.comment_scan_lines
    for line in text.strip().split("\n")[:limit]:
        for pattern in _COMMENT_PATTERNS:
            match = pattern.match(line)
            if match and is_acceptable_filename(match.group(1)):
                return _result(match.group(1), DetectionSource.COMMENT, Confidence.HIGH)
    return None


# ── Stage 4: code structure ───────────────────────────────────


def from_code_structure(text: str, context: BlockContext, tag: str) -> DetectionResult | None:
    """Idiomatic entry-point / manifest / declaration shapes per tag."""
    matched = match_rules(text, tag)
    if matched is None:
        return None
    filename, confidence = matched
    if not is_acceptable_filename(filename):
        return None
    return _result(filename, DetectionSource.CODE_STRUCTURE, confidence)


# ── Stage 5: markdown labels ──────────────────────────────────

_MARKDOWN_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"^#+\s*{_Q}?{_NAME}{_Q}?\s*$"),
    re.compile(rf"^\*\*{_Q}?{_NAME}{_Q}?\*\*$"),
    re.compile(rf"^File:\s*{_Q}?{_NAME}{_Q}?$", _I),
)


def from_markdown_labels(text: str, context: BlockContext, tag: str) -> DetectionResult | None:
    """A nearby element that is entirely a heading, bold span or label."""
    for label in context.nearby_texts:
        for pattern in _MARKDOWN_PATTERNS:
            match = pattern.match(label)
            if match and is_acceptable_filename(match.group(1)):
                return _result(match.group(1), DetectionSource.MARKDOWN, Confidence.HIGH)
    return None


# ── Stage 6: declaration extraction ───────────────────────────

_DECLARATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?:export\s+)?(?:async\s+)?function\s+(\w+)", re.MULTILINE),
    re.compile(r"^(?:export\s+)?class\s+(\w+)", re.MULTILINE),
    re.compile(r"^(?:export\s+)?const\s+(\w+)\s*=", re.MULTILINE),
    re.compile(r"^(?:pub\s+)?(?:struct|enum)\s+(\w+)", re.MULTILINE),
)


def from_declarations(text: str, context: BlockContext, tag: str) -> DetectionResult | None:
    """Name the file after the block's first recognised declaration."""
    for pattern in _DECLARATION_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        filename = f"{to_snake_case(match.group(1))}.{_extension(tag)}"
        if is_acceptable_filename(filename):
            return _result(filename, DetectionSource.EXTRACTED, Confidence.LOW)
        return None
    return None


# ── Stage 7: synthesis ────────────────────────────────────────


def synthesize(tag: str, clock: Clock | None = None) -> DetectionResult:
    return _result(
        snippet_filename(_extension(tag), clock),
        DetectionSource.GENERATED,
        Confidence.NONE,
    )


# ── Cascade ───────────────────────────────────────────────────

STAGES: tuple[Stage, ...] = (
    from_header,
    from_conversation,
    from_first_line_comment,
    from_code_structure,
    from_markdown_labels,
    from_declarations,
)


def infer(
    text: str,
    context: BlockContext | None = None,
    tag: ContentTag | str = ContentTag.TXT,
    *,
    clock: Clock | None = None,
) -> DetectionResult:
    """Infer the destination filename for ``text``.

    Parameters
    ----------
    text:
        Raw block content.
    context:
        Captured document context; ``None`` means no surrounding document.
    tag:
        Content tag of the block, used for rule constraints and as the
        extension of extracted and synthesized names.
    clock:
        Epoch-milliseconds source for synthesized names.  Inject a fixed
        clock to make the whole cascade deterministic.
    """
    ctx = context if context is not None else BlockContext.empty()
    tag_value = _extension(tag)
    for stage in STAGES:
        result = stage(text or "", ctx, tag_value)
        if result is not None:
            logger.debug(
                "Detected %s via %s (%s)",
                result.filename,
                result.source.value,
                result.confidence.value,
            )
            return result

    result = synthesize(tag_value, clock)
    logger.debug("No filename signal; synthesized %s", result.filename)
    return result


def block_text(block: Tag) -> str:
    """Raw text of a block: its ``<code>`` child if present, else itself."""
    code = block.find("code")
    source = code if isinstance(code, Tag) else block
    return source.get_text()


def detect_element(
    block: Tag,
    *,
    tag: ContentTag | str | None = None,
    clock: Clock | None = None,
) -> DetectionResult:
    """Run the cascade for a ``<pre>`` element in a parsed document."""
    effective_tag = tag if tag is not None else classify_element(block)
    return infer(
        block_text(block),
        BlockContext.from_element(block),
        effective_tag,
        clock=clock,
    )


# ── Helpers ───────────────────────────────────────────────────


def _result(filename: str, source: DetectionSource, confidence: Confidence) -> DetectionResult:
    return DetectionResult(filename=filename, source=source, confidence=confidence)


def _extension(tag: ContentTag | str) -> str:
    if isinstance(tag, ContentTag):
        return tag.extension
    return str(tag) or ContentTag.TXT.value
