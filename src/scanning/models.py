"""Scanning-layer shapes: discovered blocks and their attached affordances.

These hold live references into a parsed document, so they are plain
dataclasses rather than pydantic models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bs4 import Tag

from src.detection.detector import block_text
from src.detection.models import ContentTag


class ActionKind(str, Enum):
    SAVE = "save"
    EXECUTE = "execute"


# one discovered code/text region; identity is the element itself
@dataclass(eq=False)
class Block:
    element: Tag
    tag: ContentTag
    executable: bool

    @property
    def block_id(self) -> int:
        return id(self.element)

    @property
    def text(self) -> str:
        # read live: a streamed block keeps growing after it was scanned
        return block_text(self.element)

    @property
    def action(self) -> ActionKind:
        return ActionKind.EXECUTE if self.executable else ActionKind.SAVE


@dataclass(eq=False)
class Affordance:
    """The action button attached next to a processed block."""

    block: Block
    wrapper: Tag
    button: Tag

    @property
    def kind(self) -> ActionKind:
        return self.block.action
