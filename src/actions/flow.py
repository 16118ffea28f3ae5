"""Activation flow: detect, confirm, then save or execute.

When the user activates a block's affordance:

  1. The destination filename is inferred (lazily, only now).
  2. The confirmation surface is asked what to do.  It gets the
     inference result, the block's current text and its content tag, and
     answers with a :class:`SaveDecision`, an :class:`ExecuteDecision`,
     or ``None``.
  3. Only an explicit decision crosses the host boundary.  Anything else
     (cancel, dismiss, an unrecognised answer) leaves everything as it
     was.

Host responses are returned untouched so the surface can show their
``error`` text as-is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Union

from pydantic import BaseModel, ConfigDict, Field

from config import settings
from src.actions.paths import is_within, join_path
from src.detection.detector import Clock, detect_element
from src.detection.models import ContentTag, DetectionResult
from src.host.client import HostClient
from src.host.protocol import ExecuteResponse, SaveResponse
from src.scanning.models import ActionKind, Block

logger = logging.getLogger(__name__)


class SaveDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str


class ExecuteDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    command: str
    working_dir: str
    timeout_secs: int = Field(
        default_factory=lambda: settings.host_default_timeout_secs, ge=1
    )


Decision = Union[SaveDecision, ExecuteDecision]


@dataclass(frozen=True)
class ConfirmationRequest:
    """What the confirmation surface is shown."""

    detection: DetectionResult
    text: str
    tag: ContentTag
    kind: ActionKind


class ConfirmationSurface(Protocol):
    async def confirm(self, request: ConfirmationRequest) -> Decision | None:
        ...


@dataclass
class ActionOutcome:
    request: ConfirmationRequest
    decision: Decision | None = None
    response: SaveResponse | ExecuteResponse | None = None

    @property
    def accepted(self) -> bool:
        return self.decision is not None

    @property
    def succeeded(self) -> bool:
        return self.response is not None and self.response.success


class BlockActions:
    """Activation handler tying detection, confirmation and the host together.

    An instance is callable with a :class:`Block`, so it can be passed as a
    scan pipeline's ``on_activate``; ``pipeline.activate(el)`` then returns
    the coroutine to await.
    """

    def __init__(
        self,
        surface: ConfirmationSurface,
        client: HostClient,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.surface = surface
        self.client = client
        self.clock = clock

    async def __call__(self, block: Block) -> ActionOutcome:
        return await self.handle(block)

    async def handle(self, block: Block) -> ActionOutcome:
        text = block.text
        detection = detect_element(block.element, tag=block.tag, clock=self.clock)
        request = ConfirmationRequest(
            detection=detection, text=text, tag=block.tag, kind=block.action
        )

        answer = await self.surface.confirm(request)
        if isinstance(answer, SaveDecision):
            response = await self.client.save(answer.path, text)
        elif isinstance(answer, ExecuteDecision):
            response = await self.client.execute(
                answer.command, answer.working_dir, answer.timeout_secs
            )
        else:
            logger.debug("Confirmation declined for %s", detection.filename)
            return ActionOutcome(request=request)

        if not response.success:
            logger.warning("%s failed: %s", block.action.value, response.error)
        return ActionOutcome(request=request, decision=answer, response=response)


class ProjectRootSurface:
    """Non-interactive surface that accepts every guess under one root.

    Save blocks go to ``root/<detected filename>``; a guess that would
    climb out of ``root`` is declined.  Executable blocks run with
    ``root`` as their working directory, but only when ``allow_execute``
    is set.
    """

    def __init__(
        self,
        root: str,
        *,
        allow_execute: bool = False,
        timeout_secs: int | None = None,
    ) -> None:
        self.root = root
        self.allow_execute = allow_execute
        self.timeout_secs = timeout_secs or settings.host_default_timeout_secs

    async def confirm(self, request: ConfirmationRequest) -> Decision | None:
        if request.kind is ActionKind.EXECUTE:
            if not self.allow_execute:
                return None
            return ExecuteDecision(
                command=request.text,
                working_dir=self.root,
                timeout_secs=self.timeout_secs,
            )

        path = join_path(self.root, request.detection.filename)
        if not is_within(self.root, path):
            logger.warning("Declining %s: outside %s", request.detection.filename, self.root)
            return None
        return SaveDecision(path=path)
