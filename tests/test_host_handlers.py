"""Tests for src.host.handlers, run against a real /bin/sh."""

from __future__ import annotations

import json

from src.host.handlers import dispatch, handle_execute, handle_ping, handle_save
from src.host.protocol import (
    ExecuteRequest,
    PingRequest,
    PingResponse,
    SaveRequest,
    dump_message,
)


class TestSave:
    def test_writes_file(self, tmp_path):
        target = tmp_path / "hello.txt"
        response = handle_save(SaveRequest(path=str(target), content="hi\n"))

        assert response.success
        assert response.full_path == str(target)
        assert target.read_text() == "hi\n"

    def test_creates_parent_directories(self, tmp_path):
        target = tmp_path / "src" / "deep" / "main.rs"
        response = handle_save(SaveRequest(path=str(target), content="fn main() {}"))

        assert response.success
        assert target.read_text() == "fn main() {}"

    def test_overwrites(self, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("old")
        handle_save(SaveRequest(path=str(target), content="new"))
        assert target.read_text() == "new"

    def test_rejects_relative_path(self):
        response = handle_save(SaveRequest(path="relative/file.txt", content="x"))
        assert not response.success
        assert response.error == "Path must be absolute"

    def test_write_failure_is_reported(self, tmp_path):
        # the target is an existing directory
        response = handle_save(SaveRequest(path=str(tmp_path), content="x"))
        assert not response.success
        assert response.error.startswith("Failed to write file:")


    def test_nul_byte_in_path_is_answered(self, tmp_path):
        target = str(tmp_path / "a\x00b" / "f.txt")
        response = handle_save(SaveRequest(path=target, content="x"))
        assert not response.success
        assert response.error.startswith("Failed to")


class TestExecute:
    def test_captures_stdout(self, tmp_path):
        response = handle_execute(
            ExecuteRequest(command="echo hi", working_dir=str(tmp_path))
        )
        assert response.success
        assert response.stdout == "hi\n"
        assert response.stderr is None
        assert response.exit_code == 0

    def test_runs_in_working_dir(self, tmp_path):
        response = handle_execute(ExecuteRequest(command="pwd", working_dir=str(tmp_path)))
        assert response.stdout.strip() == str(tmp_path.resolve())

    def test_nonzero_exit(self, tmp_path):
        response = handle_execute(
            ExecuteRequest(command="echo oops >&2; exit 3", working_dir=str(tmp_path))
        )
        assert not response.success
        assert response.exit_code == 3
        assert response.stderr == "oops\n"
        assert response.error is None

    def test_empty_output_is_omitted_on_the_wire(self, tmp_path):
        response = handle_execute(ExecuteRequest(command="true", working_dir=str(tmp_path)))
        assert json.loads(dump_message(response)) == {"success": True, "exit_code": 0}

    def test_timeout(self, tmp_path):
        response = handle_execute(
            ExecuteRequest(command="sleep 5", working_dir=str(tmp_path), timeout_secs=1)
        )
        assert not response.success
        assert response.error == "Command timed out after 1 seconds"

    def test_missing_working_dir(self, tmp_path):
        missing = tmp_path / "nope"
        response = handle_execute(ExecuteRequest(command="ls", working_dir=str(missing)))
        assert not response.success
        assert response.error == f"Working directory does not exist: {missing}"

    def test_relative_working_dir(self):
        response = handle_execute(ExecuteRequest(command="ls", working_dir="."))
        assert not response.success
        assert "absolute" in response.error

    def test_script_with_shebang(self, tmp_path):
        script = "#!/usr/bin/env bash\nfor i in 1 2; do echo $i; done"
        response = handle_execute(ExecuteRequest(command=script, working_dir=str(tmp_path)))
        assert response.stdout == "1\n2\n"


    def test_nul_byte_in_command_is_answered(self, tmp_path):
        response = handle_execute(
            ExecuteRequest(command="echo a\x00b", working_dir=str(tmp_path))
        )
        assert not response.success
        assert response.error.startswith("Failed to spawn command:")


class TestDispatch:
    def test_ping(self):
        assert handle_ping(PingRequest()) == PingResponse(success=True)
        assert dispatch(PingRequest()).success

    def test_routes_by_type(self, tmp_path):
        save = dispatch(SaveRequest(path=str(tmp_path / "x.txt"), content="x"))
        run = dispatch(ExecuteRequest(command="echo ok", working_dir=str(tmp_path)))
        assert save.full_path == str(tmp_path / "x.txt")
        assert run.stdout == "ok\n"
