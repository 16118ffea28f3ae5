"""Destination path helpers for the confirmation step."""

from __future__ import annotations

import posixpath


def join_path(root: str, relative: str) -> str:
    """Join a project root and a detected relative filename.

    Exactly one ``/`` separates the two, however many slashes either side
    carries at the seam::

        >>> join_path("/home/me/project/", "/src/main.rs")
        '/home/me/project/src/main.rs'
    """
    root = root.rstrip("/")
    relative = relative.lstrip("/")
    if not relative:
        return root or "/"
    return f"{root}/{relative}"


def is_within(root: str, path: str) -> bool:
    """True when ``path`` stays under ``root`` once ``..`` is resolved."""
    base = posixpath.normpath(root)
    target = posixpath.normpath(path)
    return target == base or target.startswith(base.rstrip("/") + "/")
