"""Processed-block registry.

Records which block elements the scan pipeline has already handled.  A
mark is write-once: nothing ever clears it, so a block is processed at
most once for the lifetime of the registry no matter how many scans
observe it.

Identities are ``id(element)``.  The registry keeps a reference to every
marked element, so an identity can't be recycled for a new element while
the registry is alive.
"""

from __future__ import annotations

from bs4 import Tag


class BlockRegistry:
    def __init__(self) -> None:
        self._seen: dict[int, Tag] = {}

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, element: object) -> bool:
        return isinstance(element, Tag) and self.is_processed(element)

    def is_processed(self, element: Tag) -> bool:
        return self._seen.get(id(element)) is element

    def mark(self, element: Tag) -> bool:
        """Mark ``element`` processed.

        Returns True when this call did the marking, False when the
        element was already marked (the caller must then do nothing).
        """
        if self.is_processed(element):
            return False
        self._seen[id(element)] = element
        return True

    def processed_ids(self) -> frozenset[int]:
        return frozenset(self._seen)
