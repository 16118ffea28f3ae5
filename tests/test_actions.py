"""Tests for the activation flow (src.actions)."""

from __future__ import annotations

import pytest

from src.actions.flow import (
    BlockActions,
    ConfirmationRequest,
    ExecuteDecision,
    ProjectRootSurface,
    SaveDecision,
)
from src.actions.paths import is_within, join_path
from src.detection.models import ContentTag, DetectionSource
from src.host.client import HostClient, LoopbackTransport
from src.host.protocol import ExecuteResponse, SaveResponse
from src.scanning.models import ActionKind
from src.scanning.pipeline import ScanPipeline


class TestJoinPath:
    @pytest.mark.parametrize(
        "root, relative, expected",
        [
            ("/home/me/project", "src/main.rs", "/home/me/project/src/main.rs"),
            ("/home/me/project/", "/src/main.rs", "/home/me/project/src/main.rs"),
            ("/home/me/project//", "//a.txt", "/home/me/project/a.txt"),
            ("/", "a.txt", "/a.txt"),
        ],
    )
    def test_single_separator(self, root, relative, expected):
        assert join_path(root, relative) == expected

    def test_empty_relative(self):
        assert join_path("/srv/", "") == "/srv"

    def test_is_within(self):
        assert is_within("/srv/app", "/srv/app/src/x.py")
        assert not is_within("/srv/app", "/srv/app/../other/x.py")
        assert not is_within("/srv/app", "/srv/application/x.py")


class _FakeSurface:
    def __init__(self, answer):
        self.answer = answer
        self.requests: list[ConfirmationRequest] = []

    async def confirm(self, request):
        self.requests.append(request)
        return self.answer


class _FakeClient:
    def __init__(self):
        self.saved: list[tuple[str, str]] = []
        self.executed: list[tuple[str, str, int]] = []

    async def save(self, path, content):
        self.saved.append((path, content))
        return SaveResponse(success=False, error="disk full")

    async def execute(self, command, working_dir, timeout_secs=None):
        self.executed.append((command, working_dir, timeout_secs))
        return ExecuteResponse(success=True, stdout="ok\n", exit_code=0)


def _first_block(document, html):
    document.append_html(html)
    return ScanPipeline(document).scan_once()[0]


class TestBlockActions:
    @pytest.mark.asyncio
    async def test_surface_sees_detection(self, document, fixed_clock):
        block = _first_block(
            document, '<p>app/models.py</p><pre><code class="language-python">x = 1</code></pre>'
        )
        surface = _FakeSurface(None)

        await BlockActions(surface, _FakeClient(), clock=fixed_clock).handle(block)

        request = surface.requests[0]
        assert request.detection.filename == "app/models.py"
        assert request.detection.source is DetectionSource.HEADER
        assert request.text == "x = 1"
        assert request.tag is ContentTag.PY
        assert request.kind is ActionKind.SAVE

    @pytest.mark.asyncio
    async def test_cancel_does_nothing(self, document):
        block = _first_block(document, "<pre>x</pre>")
        client = _FakeClient()

        outcome = await BlockActions(_FakeSurface(None), client).handle(block)

        assert not outcome.accepted
        assert outcome.response is None
        assert client.saved == [] and client.executed == []

    @pytest.mark.asyncio
    async def test_unrecognised_answer_does_nothing(self, document):
        block = _first_block(document, "<pre>x</pre>")
        client = _FakeClient()

        outcome = await BlockActions(_FakeSurface("yes"), client).handle(block)

        assert not outcome.accepted
        assert client.saved == []

    @pytest.mark.asyncio
    async def test_save_errors_pass_through(self, document):
        block = _first_block(document, "<pre>body</pre>")
        client = _FakeClient()
        surface = _FakeSurface(SaveDecision(path="/tmp/out.txt"))

        outcome = await BlockActions(surface, client).handle(block)

        assert client.saved == [("/tmp/out.txt", "body")]
        assert outcome.accepted
        assert not outcome.succeeded
        assert outcome.response.error == "disk full"

    @pytest.mark.asyncio
    async def test_execute_decision(self, document):
        block = _first_block(document, '<pre><code class="language-bash">ls</code></pre>')
        client = _FakeClient()
        decision = ExecuteDecision(command="ls -la", working_dir="/srv", timeout_secs=5)

        outcome = await BlockActions(_FakeSurface(decision), client).handle(block)

        assert outcome.request.kind is ActionKind.EXECUTE
        assert client.executed == [("ls -la", "/srv", 5)]
        assert outcome.succeeded

    @pytest.mark.asyncio
    async def test_as_pipeline_activation_handler(self, document):
        client = _FakeClient()
        actions = BlockActions(_FakeSurface(SaveDecision(path="/tmp/a.txt")), client)
        pipeline = ScanPipeline(document, on_activate=actions)
        document.append_html("<pre>hello</pre>")
        block = pipeline.scan_once()[0]

        outcome = await pipeline.activate(block.element)

        assert outcome.accepted
        assert client.saved == [("/tmp/a.txt", "hello")]


class TestProjectRootSurface:
    @pytest.mark.asyncio
    async def test_saves_under_root_end_to_end(self, document, tmp_path):
        block = _first_block(
            document,
            "<p>Save this as `notes/todo.md`</p>"
            '<pre><code class="language-md">- buy milk</code></pre>',
        )
        actions = BlockActions(ProjectRootSurface(str(tmp_path)), HostClient(LoopbackTransport()))

        outcome = await actions.handle(block)

        assert outcome.succeeded
        assert (tmp_path / "notes" / "todo.md").read_text() == "- buy milk"

    @pytest.mark.asyncio
    async def test_declines_paths_outside_root(self, document, tmp_path):
        block = _first_block(document, "<p>../escape.txt</p><pre>x</pre>")
        client = _FakeClient()

        outcome = await BlockActions(ProjectRootSurface(str(tmp_path)), client).handle(block)

        assert outcome.request.detection.filename == "../escape.txt"
        assert not outcome.accepted
        assert client.saved == []

    @pytest.mark.asyncio
    async def test_execute_requires_opt_in(self, document, tmp_path):
        block = _first_block(document, "<pre><code>#!/bin/sh\necho hi</code></pre>")
        client = HostClient(LoopbackTransport())

        declined = await BlockActions(ProjectRootSurface(str(tmp_path)), client).handle(block)
        surface = ProjectRootSurface(str(tmp_path), allow_execute=True, timeout_secs=5)
        ran = await BlockActions(surface, client).handle(block)

        assert not declined.accepted
        assert ran.succeeded
        assert ran.response.stdout == "hi\n"
