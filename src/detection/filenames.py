"""Filename helpers shared by the detection cascade.

- ``is_valid_filename`` is the gate every candidate passes before a stage
  may accept it.
- ``to_snake_case`` folds a CamelCase / PascalCase identifier into a
  filename stem.
- ``snippet_filename`` synthesizes the last-resort name.
"""

from __future__ import annotations

import re
import time
from typing import Callable

# characters allowed in a filename or relative path captured from text
FILENAME_CHARS = r"[a-zA-Z0-9_\-./\\]"
# a candidate: one or more path characters, a dot, an alphanumeric extension
FILENAME_PATTERN = rf"{FILENAME_CHARS}+\.[a-zA-Z0-9]+"

MAX_FILENAME_LENGTH = 255

# Names that are conventionally extensionless.  The cascade accepts these
# as-is; everything else must satisfy ``is_valid_filename``.
WELL_KNOWN_FILENAMES = frozenset({"Dockerfile", "Makefile"})

_EXTENSION_RE = re.compile(r"\.[a-z0-9]{1,10}\Z", re.IGNORECASE)
_FORBIDDEN_RE = re.compile(r'[<>:"\n?*]')
_UPPER_RE = re.compile(r"([A-Z])")
_REPEATED_SEP_RE = re.compile(r"__+")

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def is_valid_filename(name: str | None) -> bool:
    """Return True if ``name`` is plausible as a destination filename."""
    if not name or len(name) > MAX_FILENAME_LENGTH:
        return False
    # ".env" alone is ambiguous; ".env.local" is qualified enough
    if name.startswith(".") and len(name.split(".")) < 3:
        return False
    if name[0].isdigit():
        return False
    if not _EXTENSION_RE.search(name):
        return False
    if _FORBIDDEN_RE.search(name):
        return False
    return True


def is_acceptable_filename(name: str | None) -> bool:
    """Validity gate used by the cascade, admitting well-known names."""
    return bool(name) and (name in WELL_KNOWN_FILENAMES or is_valid_filename(name))


def to_snake_case(identifier: str) -> str:
    """Fold ``UserProfile`` into ``user_profile``.

    Every upper-case letter gets a ``_`` in front, the result is
    lower-cased, one leading ``_`` is stripped and runs of ``_`` collapse.
    """
    folded = _UPPER_RE.sub(r"_\1", identifier).lower()
    if folded.startswith("_"):
        folded = folded[1:]
    return _REPEATED_SEP_RE.sub("_", folded)


def to_base36(value: int) -> str:
    if value < 0:
        return "-" + to_base36(-value)
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def epoch_millis() -> int:
    return int(time.time() * 1000)


def snippet_filename(extension: str, clock: Callable[[], int] | None = None) -> str:
    """Synthesize ``snippet-<base36 millis>.<extension>``."""
    millis = (clock or epoch_millis)()
    return f"snippet-{to_base36(millis)}.{extension}"
