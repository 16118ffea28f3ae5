"""Request handlers for the host process.

Every handler returns a response model; none of them raise for
operational failures.  A failed save or command comes back as
``success=False`` with a human-readable ``error`` that the caller shows
as-is.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from pydantic import BaseModel

from src.host.protocol import (
    ExecuteRequest,
    ExecuteResponse,
    PingRequest,
    PingResponse,
    Request,
    SaveRequest,
    SaveResponse,
)

logger = logging.getLogger(__name__)

SHELL = "/bin/sh"


def handle_save(request: SaveRequest) -> SaveResponse:
    path = Path(request.path)
    if not path.is_absolute():
        return SaveResponse(success=False, error="Path must be absolute")

    parent = path.parent
    if not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as exc:
            return SaveResponse(success=False, error=f"Failed to create directories: {exc}")

    try:
        path.write_bytes(request.content.encode("utf-8"))
    except (OSError, ValueError) as exc:
        return SaveResponse(success=False, error=f"Failed to write file: {exc}")

    logger.info("Saved %d bytes to %s", len(request.content), path)
    return SaveResponse(success=True, full_path=str(path))


def handle_execute(request: ExecuteRequest) -> ExecuteResponse:
    work_dir = Path(request.working_dir)
    if not work_dir.is_absolute():
        return ExecuteResponse(success=False, error="Working directory must be absolute")
    if not work_dir.exists():
        return ExecuteResponse(
            success=False,
            error=f"Working directory does not exist: {request.working_dir}",
        )

    logger.info("Executing in %s (timeout %ds)", work_dir, request.timeout_secs)
    try:
        completed = subprocess.run(
            [SHELL, "-c", request.command],
            cwd=work_dir,
            capture_output=True,
            timeout=request.timeout_secs,
        )
    except subprocess.TimeoutExpired:
        # subprocess.run has already killed and reaped the child
        logger.warning("Command timed out after %ds", request.timeout_secs)
        return ExecuteResponse(
            success=False,
            error=f"Command timed out after {request.timeout_secs} seconds",
        )
    except (OSError, ValueError) as exc:
        # ValueError: arguments the OS refuses outright, e.g. an embedded NUL
        return ExecuteResponse(success=False, error=f"Failed to spawn command: {exc}")

    stdout = completed.stdout.decode("utf-8", errors="replace")
    stderr = completed.stderr.decode("utf-8", errors="replace")
    # a signal-terminated child has no exit code
    exit_code = completed.returncode if completed.returncode >= 0 else None

    return ExecuteResponse(
        success=completed.returncode == 0,
        stdout=stdout or None,
        stderr=stderr or None,
        exit_code=exit_code,
    )


def handle_ping(request: PingRequest) -> PingResponse:
    return PingResponse(success=True)


def dispatch(request: Request) -> BaseModel:
    if isinstance(request, SaveRequest):
        return handle_save(request)
    if isinstance(request, ExecuteRequest):
        return handle_execute(request)
    return handle_ping(request)
