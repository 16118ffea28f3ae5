"""Host boundary protocol: message shapes and framing.

Requests and responses cross the boundary as native-messaging frames: a
4-byte unsigned length in native byte order, followed by exactly that
many bytes of UTF-8 JSON.  One request frame gets exactly one response
frame; nothing is retried.

Requests are discriminated on ``action``:

  ``save``     write ``content`` to the absolute ``path``
  ``execute``  run ``command`` through ``/bin/sh -c`` in ``working_dir``
  ``ping``     connection test

Responses always carry ``success``.  Failures carry an ``error`` string
that callers pass through to the user unmodified.  Optional fields that
are unset are left out of the JSON entirely.
"""

from __future__ import annotations

import asyncio
import json
import struct
from typing import Annotated, Any, BinaryIO, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from config import settings

_HEADER = struct.Struct("=I")
HEADER_SIZE = _HEADER.size
# Browsers cap messages to the host at 64 MiB.
MAX_FRAME_BYTES = 64 * 1024 * 1024


class ProtocolError(ValueError):
    """A frame or message that can't be decoded."""


# ── Requests ──────────────────────────────────────────────────


class SaveRequest(BaseModel):
    action: Literal["save"] = "save"
    path: str
    content: str


class ExecuteRequest(BaseModel):
    action: Literal["execute"] = "execute"
    command: str
    working_dir: str
    timeout_secs: int = Field(
        default_factory=lambda: settings.host_default_timeout_secs, ge=1
    )


class PingRequest(BaseModel):
    action: Literal["ping"] = "ping"


Request = Annotated[
    Union[SaveRequest, ExecuteRequest, PingRequest],
    Field(discriminator="action"),
]

_REQUEST_ADAPTER: TypeAdapter[Request] = TypeAdapter(Request)


# ── Responses ─────────────────────────────────────────────────


class SaveResponse(BaseModel):
    success: bool
    full_path: str | None = None
    error: str | None = None


class ExecuteResponse(BaseModel):
    success: bool
    stdout: str | None = None
    stderr: str | None = None
    exit_code: int | None = None
    error: str | None = None


class PingResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


Response = Union[SaveResponse, ExecuteResponse, PingResponse, ErrorResponse]


# ── Encoding ──────────────────────────────────────────────────


def dump_message(message: BaseModel | dict[str, Any]) -> bytes:
    if isinstance(message, BaseModel):
        return message.model_dump_json(exclude_none=True).encode("utf-8")
    return json.dumps(message).encode("utf-8")


def parse_request(data: bytes) -> Request:
    try:
        return _REQUEST_ADAPTER.validate_json(data)
    except ValidationError as exc:
        raise ProtocolError(f"Invalid request: {exc}") from exc


def pack_frame(body: bytes) -> bytes:
    return _HEADER.pack(len(body)) + body


def encode_frame(message: BaseModel | dict[str, Any]) -> bytes:
    return pack_frame(dump_message(message))


def _frame_length(header: bytes) -> int:
    (length,) = _HEADER.unpack(header)
    if length > MAX_FRAME_BYTES:
        raise ProtocolError(f"Frame of {length} bytes exceeds {MAX_FRAME_BYTES}")
    return length


def read_frame(stream: BinaryIO) -> bytes | None:
    """Read one frame body; None on a clean end of stream."""
    header = stream.read(HEADER_SIZE)
    if not header:
        return None
    if len(header) < HEADER_SIZE:
        raise ProtocolError("Truncated frame header")
    length = _frame_length(header)
    body = stream.read(length)
    if len(body) < length:
        raise ProtocolError(f"Truncated frame: expected {length} bytes, got {len(body)}")
    return body


def write_frame(stream: BinaryIO, message: BaseModel | dict[str, Any]) -> None:
    stream.write(encode_frame(message))
    stream.flush()


async def read_frame_async(reader: asyncio.StreamReader) -> bytes:
    """Read one frame body from an asyncio stream."""
    try:
        header = await reader.readexactly(HEADER_SIZE)
        return await reader.readexactly(_frame_length(header))
    except asyncio.IncompleteReadError as exc:
        raise ProtocolError("Connection closed before a complete frame arrived") from exc
