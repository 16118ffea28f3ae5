"""Async client for the host process.

Each request launches a fresh host process, sends one frame, and reads
one frame back, the way a browser's one-shot native message works.
Transport failures (the host can't be launched, dies mid-frame, or
doesn't answer in time) come back as ``success=False`` responses with
the failure text in ``error``; callers surface it unmodified.

Tests and embedders can swap the subprocess for any :class:`Transport`,
e.g. :class:`LoopbackTransport` which answers in-process.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from config import settings
from src.host.protocol import (
    ExecuteRequest,
    ExecuteResponse,
    PingRequest,
    PingResponse,
    ProtocolError,
    SaveRequest,
    SaveResponse,
    dump_message,
    pack_frame,
    read_frame_async,
)
from src.host.server import handle_message

logger = logging.getLogger(__name__)

_ResponseT = TypeVar("_ResponseT", SaveResponse, ExecuteResponse, PingResponse)


class Transport(Protocol):
    async def exchange(self, body: bytes, timeout: float) -> bytes:
        """Send one request body and return the response body."""
        ...


def default_host_command() -> list[str]:
    if settings.host_command.strip():
        return shlex.split(settings.host_command)
    return [sys.executable, "-m", "src.host"]


class SubprocessTransport:
    """Launch the host per request and talk to it over stdin/stdout."""

    def __init__(
        self,
        command: Sequence[str] | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self.command = list(command) if command else default_host_command()
        self.cwd = cwd

    async def exchange(self, body: bytes, timeout: float) -> bytes:
        process = await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            cwd=self.cwd,
        )
        assert process.stdin is not None and process.stdout is not None
        try:
            process.stdin.write(pack_frame(body))
            await process.stdin.drain()
            process.stdin.close()
            return await asyncio.wait_for(read_frame_async(process.stdout), timeout)
        finally:
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
            await process.wait()


class LoopbackTransport:
    """Answer requests in-process through the host's own dispatcher."""

    async def exchange(self, body: bytes, timeout: float) -> bytes:
        # handlers block on the filesystem and on child processes
        return await asyncio.wait_for(asyncio.to_thread(handle_message, body), timeout)


class HostClient:
    """Send save, execute and ping requests to the host.

    Parameters
    ----------
    transport:
        How frames reach the host.  Defaults to launching
        ``settings.host_command`` per request.
    grace_secs:
        Extra seconds allowed on top of a command's own timeout before
        the client gives up waiting for the host.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        grace_secs: float | None = None,
    ) -> None:
        self.transport = transport or SubprocessTransport()
        self.grace_secs = (
            grace_secs if grace_secs is not None else settings.host_response_grace_secs
        )

    async def save(self, path: str, content: str) -> SaveResponse:
        request = SaveRequest(path=path, content=content)
        return await self._send(request, SaveResponse, self.grace_secs)

    async def execute(
        self,
        command: str,
        working_dir: str,
        timeout_secs: int | None = None,
    ) -> ExecuteResponse:
        if timeout_secs is None:
            request = ExecuteRequest(command=command, working_dir=working_dir)
        else:
            request = ExecuteRequest(
                command=command, working_dir=working_dir, timeout_secs=timeout_secs
            )
        return await self._send(
            request, ExecuteResponse, request.timeout_secs + self.grace_secs
        )

    async def ping(self) -> bool:
        """True when the host answers a connection test."""
        response = await self._send(PingRequest(), PingResponse, self.grace_secs)
        return response.success

    async def _send(
        self,
        request: BaseModel,
        response_type: type[_ResponseT],
        timeout: float,
    ) -> _ResponseT:
        try:
            body = await self.transport.exchange(dump_message(request), timeout)
            return response_type.model_validate_json(body)
        except (OSError, asyncio.TimeoutError, ProtocolError, ValidationError) as exc:
            message = _describe(exc)
            logger.error("Host %s request failed: %s", request.action, message)
            return response_type(success=False, error=message)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "Host did not respond in time"
    if isinstance(exc, ValidationError):
        return "Host sent a malformed response"
    return str(exc) or type(exc).__name__
