"""Live document with mutation notifications.

A parsed HTML tree (BeautifulSoup) plus a subscriber list.  Every
structural change made through this wrapper is reported to subscribers
as a :class:`Mutation`, the way a browser's ``MutationObserver`` reports
``childList`` changes.  Delivery is synchronous: subscribers run, in
subscription order, before the mutating call returns.  A subscriber that
mutates the document therefore re-enters every subscriber (itself
included) before its own call returns.

Code that edits ``soup`` directly bypasses notification; use
:meth:`LiveDocument.notify` afterwards to report such changes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, FeatureNotFound, Tag
from bs4.element import PageElement

logger = logging.getLogger(__name__)


@dataclass
class Mutation:
    """One reported change: ``target`` gained and/or lost child nodes."""

    target: Tag
    added: list[PageElement] = field(default_factory=list)
    removed: list[PageElement] = field(default_factory=list)


MutationCallback = Callable[[Mutation], None]


@dataclass
class Subscription:
    callback: MutationCallback
    active: bool = True


def _soup_from_html(text: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(text, "lxml")
    except FeatureNotFound:
        return BeautifulSoup(text, "html.parser")


def _fragment_nodes(html: str) -> list[PageElement]:
    # html.parser keeps fragments as-is (lxml would add html/body/p wrappers)
    fragment = BeautifulSoup(html, "html.parser")
    return list(fragment.contents)


class LiveDocument:
    """A mutable HTML document that notifies subscribers of changes."""

    def __init__(self, html: str = "") -> None:
        self.soup = _soup_from_html(html or "<html><body></body></html>")
        self._subscriptions: list[Subscription] = []

    @classmethod
    def from_soup(cls, soup: BeautifulSoup) -> "LiveDocument":
        document = cls.__new__(cls)
        document.soup = soup
        document._subscriptions = []
        return document

    # ── Queries ───────────────────────────────────────────────

    @property
    def body(self) -> Tag:
        body = self.soup.body
        return body if isinstance(body, Tag) else self.soup

    def select(self, selector: str) -> list[Tag]:
        """Elements matching a CSS selector, in document order."""
        return list(self.soup.select(selector))

    # ── Subscriptions ─────────────────────────────────────────

    def subscribe(self, callback: MutationCallback) -> Subscription:
        subscription = Subscription(callback=callback)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def notify(self, mutation: Mutation) -> None:
        """Deliver ``mutation`` to every active subscriber."""
        # snapshot: callbacks may subscribe or unsubscribe while running
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription.callback(mutation)

    # ── Mutations ─────────────────────────────────────────────

    def append_html(self, html: str, parent: Tag | None = None) -> list[PageElement]:
        """Parse ``html`` as a fragment and append it to ``parent``."""
        target = parent if parent is not None else self.body
        nodes = _fragment_nodes(html)
        for node in nodes:
            target.append(node)
        logger.debug("Appended %d node(s) to <%s>", len(nodes), target.name)
        self.notify(Mutation(target=target, added=nodes))
        return nodes

    def append(self, child: PageElement, parent: Tag) -> PageElement:
        parent.append(child)
        self.notify(Mutation(target=parent, added=[child]))
        return child

    def wrap(self, element: Tag, wrapper: Tag) -> Tag:
        """Insert ``wrapper`` where ``element`` is and move ``element`` into it."""
        parent = element.parent
        element.wrap(wrapper)
        if isinstance(parent, Tag):
            self.notify(Mutation(target=parent, added=[wrapper], removed=[element]))
        return wrapper

    def remove(self, element: PageElement) -> None:
        parent = element.parent
        element.extract()
        if isinstance(parent, Tag):
            self.notify(Mutation(target=parent, removed=[element]))

    def new_tag(
        self,
        name: str,
        attrs: dict[str, str | list[str]] | None = None,
        text: str | None = None,
    ) -> Tag:
        """Create a detached element owned by this document."""
        tag = self.soup.new_tag(name, attrs=attrs or {})
        if text is not None:
            tag.string = text
        return tag
