from __future__ import annotations

from collections.abc import Callable

import pytest
from bs4 import BeautifulSoup, Tag

from src.scanning.document import LiveDocument


# ---------------------------------------------------------------------------
# Frozen clock: synthesized snippet names depend on epoch millis, so tests
# that compare synthesized filenames pin it.
# ---------------------------------------------------------------------------
FIXED_MILLIS = 1_700_000_000_000


@pytest.fixture
def fixed_clock() -> Callable[[], int]:
    return lambda: FIXED_MILLIS


@pytest.fixture
def make_block() -> Callable[[str], Tag]:
    """Parse an HTML snippet and return its first ``<pre>`` element."""

    def _make(html: str) -> Tag:
        soup = BeautifulSoup(f"<html><body>{html}</body></html>", "lxml")
        pre = soup.find("pre")
        assert isinstance(pre, Tag), "fixture HTML must contain a <pre>"
        return pre

    return _make


@pytest.fixture
def document() -> LiveDocument:
    return LiveDocument("<html><body><main id='chat'></main></body></html>")
