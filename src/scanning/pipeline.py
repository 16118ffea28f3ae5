"""Block scan pipeline.

Discovers candidate blocks in a :class:`LiveDocument`, processes each one
exactly once, and re-scans after every document mutation.

Processing a block:
  1. Skip it if it's part of the confirmation surface (nested in the
     modal overlay, or the execute dialog's own preview block).
  2. Mark it in the :class:`BlockRegistry` before anything touches the
     document.
  3. Classify it (content tag, executable or not) and attach the action
     affordance: a positioned wrapper around the block plus a button.

Attaching an affordance is itself a mutation, and notifications arrive
synchronously.  A notification that lands while a scan is running only
flags a rescan; the running scan then makes another pass.  Scans never
nest, however many blocks arrive in one mutation.

Filename detection is not part of scanning.  It runs when an affordance
is activated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from bs4 import Tag

from config import settings
from src.detection.detector import block_text, detect_element
from src.detection.language import classify_element
from src.detection.models import DetectionResult
from src.detection.shell import is_executable
from src.scanning.document import LiveDocument, Mutation, Subscription
from src.scanning.models import ActionKind, Affordance, Block
from src.scanning.registry import BlockRegistry

logger = logging.getLogger(__name__)

ActivateHandler = Callable[[Block], Any]

_WRAPPER_STYLE = "position: relative; display: inline-block; width: 100%;"
_BUTTON_LABELS: dict[ActionKind, tuple[str, str]] = {
    ActionKind.SAVE: ("Save", "Save to project"),
    ActionKind.EXECUTE: ("Run", "Execute shell script"),
}


def detect(block: Block) -> DetectionResult:
    """Default activation: infer the block's destination filename."""
    return detect_element(block.element, tag=block.tag)


class ScanPipeline:
    """Scan/attach service bound to one document."""

    def __init__(
        self,
        document: LiveDocument,
        *,
        on_activate: ActivateHandler | None = None,
        registry: BlockRegistry | None = None,
        selector: str | None = None,
        overlay_class: str | None = None,
        preview_class: str | None = None,
    ) -> None:
        self.document = document
        self.registry = registry if registry is not None else BlockRegistry()
        self._on_activate = on_activate or detect
        self._selector = selector or settings.block_selector
        self._overlay_class = overlay_class or settings.modal_overlay_class
        self._preview_class = preview_class or settings.exec_preview_class
        self._affordances: dict[int, Affordance] = {}
        self._subscription: Subscription | None = None
        self._scanning = False
        self._rescan_pending = False

    # ── Lifecycle ─────────────────────────────────────────────

    def start(self) -> Subscription:
        """Scan now, then re-scan on every mutation of the document.

        One subscription per pipeline: calling ``start`` again returns the
        existing handle.
        """
        if self._subscription is not None:
            return self._subscription
        self.scan_once()
        self._subscription = self.document.subscribe(self._on_mutation)
        logger.info("Scan pipeline started (%d block(s) processed)", len(self.registry))
        return self._subscription

    def stop(self) -> None:
        """Stop observing the document.  Processed marks are kept."""
        if self._subscription is None:
            return
        self.document.unsubscribe(self._subscription)
        self._subscription = None
        logger.info("Scan pipeline stopped")

    @property
    def running(self) -> bool:
        return self._subscription is not None

    def _on_mutation(self, mutation: Mutation) -> None:
        self.scan_once()

    # ── Scanning ──────────────────────────────────────────────

    def scan_once(self) -> list[Block]:
        """Process every not-yet-seen block; return the ones handled now.

        Called while a scan is already running, it only requests another
        pass of that scan and returns an empty list.
        """
        if self._scanning:
            self._rescan_pending = True
            return []

        processed: list[Block] = []
        self._scanning = True
        try:
            self._rescan_pending = True
            while self._rescan_pending:
                self._rescan_pending = False
                processed.extend(self._scan_pass())
        finally:
            self._scanning = False
            self._rescan_pending = False
        if processed:
            logger.debug("Scan processed %d new block(s)", len(processed))
        return processed

    def _scan_pass(self) -> list[Block]:
        processed: list[Block] = []
        for element in self.document.select(self._selector):
            if self._is_excluded(element):
                continue
            block = self._process(element)
            if block is not None:
                processed.append(block)
        return processed

    def _is_excluded(self, element: Tag) -> bool:
        """True for blocks that belong to the confirmation surface."""
        if self._preview_class in (element.get("class") or []):
            return True
        return element.find_parent(class_=self._overlay_class) is not None

    def _process(self, element: Tag) -> Block | None:
        if not self.registry.mark(element):
            return None

        tag = classify_element(element)
        block = Block(
            element=element,
            tag=tag,
            executable=is_executable(block_text(element), tag),
        )
        affordance = self._attach(block)
        self._affordances[id(element)] = affordance
        self._affordances[id(affordance.button)] = affordance
        return block

    def _attach(self, block: Block) -> Affordance:
        wrapper = self.document.new_tag(
            "div",
            {"class": [settings.affordance_wrapper_class], "style": _WRAPPER_STYLE},
        )
        self.document.wrap(block.element, wrapper)

        label, title = _BUTTON_LABELS[block.action]
        button = self.document.new_tag(
            "button",
            {
                "type": "button",
                "class": [settings.affordance_button_class],
                "data-action": block.action.value,
                "title": title,
            },
            text=label,
        )
        self.document.append(button, wrapper)
        return Affordance(block=block, wrapper=wrapper, button=button)

    # ── Activation ────────────────────────────────────────────

    def affordance_for(self, element: Tag) -> Affordance | None:
        """Affordance attached to a block, looked up by block or button."""
        return self._affordances.get(id(element))

    def affordances(self) -> list[Affordance]:
        seen: dict[int, Affordance] = {}
        for affordance in self._affordances.values():
            seen.setdefault(id(affordance), affordance)
        return list(seen.values())

    def activate(self, element: Tag) -> Any:
        """Run the activation handler for the block behind ``element``."""
        affordance = self.affordance_for(element)
        if affordance is None:
            raise LookupError("element has no attached affordance")
        logger.debug(
            "Activating %s affordance (%s)", affordance.kind.value, affordance.block.tag.value
        )
        return self._on_activate(affordance.block)
