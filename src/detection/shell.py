"""Executable shell-script detection."""

from __future__ import annotations

import re

from src.detection.models import ContentTag

# interpreter directive naming one of the POSIX-ish shells, either by
# absolute path or through /usr/bin/env
_SHEBANG_RE = re.compile(
    r"^#!(?:/(?:bin|usr/bin)/(?:bash|sh|zsh)|/usr/bin/env\s+(?:bash|sh|zsh))\b"
)


def is_executable(text: str | None, tag: ContentTag | str) -> bool:
    """Return True when the block should be offered for execution.

    A block is executable when it was tagged as shell, or when its first
    non-blank characters are a ``#!`` directive for bash, sh or zsh.
    """
    if tag == ContentTag.SH:
        return True
    trimmed = (text or "").strip()
    return bool(_SHEBANG_RE.match(trimmed))
