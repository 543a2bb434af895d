"""Tests for running the external tool with streamed output."""

import asyncio
import os
import sys

import pytest

from blvdiff.config.schema import BlvdiffConfig
from blvdiff.invoker import ToolEventKind, ToolInvoker, _platform_tag, resolve_binary
from blvdiff.output import BufferSink

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh scripts")


async def _collect(invoker, binary, args, stdin_line=None):
    return [event async for event in invoker.stream(binary, args, stdin_line=stdin_line)]


@pytest.mark.asyncio
async def test_streams_stdout_and_stderr_then_exit(make_tool) -> None:
    tool = make_tool('echo "out $1 $2"\necho "err" >&2\nexit 0')

    events = await _collect(ToolInvoker(), str(tool), ["--explain", "foo.py"])

    output = [e for e in events if e.kind == ToolEventKind.OUTPUT]
    stdout = "".join(e.text for e in output if e.stream == "stdout")
    stderr = "".join(e.text for e in output if e.stream == "stderr")
    assert stdout == "out --explain foo.py\n"
    assert stderr == "err\n"
    assert events[-1].kind == ToolEventKind.EXIT
    assert events[-1].exit_code == 0
    assert sum(1 for e in events if e.is_final) == 1


@pytest.mark.asyncio
async def test_non_zero_exit_is_reported_in_log(make_tool) -> None:
    tool = make_tool("echo partial\nexit 3")
    sink = BufferSink()

    event = await ToolInvoker().run(str(tool), ["--diff", "foo.py"], sink)

    assert event.kind == ToolEventKind.EXIT
    assert event.exit_code == 3
    assert sink.text == "partial\n\nBLVDIFF exited with code 3\n"
    assert sink.errors == []


@pytest.mark.asyncio
async def test_missing_binary_is_a_start_failure(tmp_path) -> None:
    sink = BufferSink()

    event = await ToolInvoker().run(str(tmp_path / "nope" / "blvflag"), ["--explain", "x.py"], sink)

    assert event.kind == ToolEventKind.START_FAILED
    assert event.error is not None
    assert sink.chunks == []
    assert len(sink.errors) == 1
    assert sink.errors[0].startswith("BLVDIFF error: ")


@pytest.mark.asyncio
async def test_non_executable_binary_is_a_start_failure(tmp_path) -> None:
    binary = tmp_path / "blvflag"
    binary.write_text("#!/bin/sh\necho hi\n")
    binary.chmod(0o644)

    events = await _collect(ToolInvoker(), str(binary), [])

    assert [e.kind for e in events] == [ToolEventKind.START_FAILED]


@pytest.mark.asyncio
async def test_stdin_line_is_written_then_closed(make_tool) -> None:
    tool = make_tool('read secret\necho "got:$secret"\ncat > /dev/null\necho done')
    sink = BufferSink()

    event = await ToolInvoker().run(str(tool), ["--setup"], sink, stdin_line="s3cr3t")

    assert event.exit_code == 0
    assert "got:s3cr3t\n" in sink.text
    assert "done\n" in sink.text


@pytest.mark.asyncio
async def test_without_stdin_line_tool_sees_eof(make_tool) -> None:
    tool = make_tool('if read line; then echo "line:$line"; else echo eof; fi')
    sink = BufferSink()

    await ToolInvoker().run(str(tool), [], sink)

    assert sink.text.startswith("eof\n")


@pytest.mark.asyncio
async def test_run_clears_and_shows_sink(make_tool) -> None:
    tool = make_tool("echo fresh")
    sink = BufferSink()
    sink.append("stale output")

    await ToolInvoker().run(str(tool), [], sink)

    assert sink.shown
    assert "stale output" not in sink.text


@pytest.mark.asyncio
async def test_multibyte_output_survives_chunking(make_tool) -> None:
    tool = make_tool("i=0\nwhile [ $i -lt 3000 ]; do printf 'é'; i=$((i+1)); done")

    events = await _collect(ToolInvoker(), str(tool), [])

    text = "".join(e.text for e in events if e.kind == ToolEventKind.OUTPUT)
    assert text == "é" * 3000


@pytest.mark.asyncio
async def test_cancelling_consumer_terminates_and_reaps_process(make_tool, tmp_path) -> None:
    pid_file = tmp_path / "pid"
    tool = make_tool(f"echo $$ > {pid_file}\necho started\nexec sleep 30")
    invoker = ToolInvoker()
    started = asyncio.Event()

    async def consume():
        async for event in invoker.stream(str(tool), []):
            if event.kind == ToolEventKind.OUTPUT:
                started.set()

    task = asyncio.create_task(consume())
    await asyncio.wait_for(started.wait(), timeout=10)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(task, timeout=10)

    pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


def test_resolve_binary_prefers_configured_path() -> None:
    config = BlvdiffConfig(tool={"binary_path": "  /opt/blvflag  "})

    assert resolve_binary(config) == "/opt/blvflag"


def test_resolve_binary_uses_bundled_executable(make_tool, tmp_path) -> None:
    bundled = make_tool("exit 0", name=f"{_platform_tag()}/blvflag")
    config = BlvdiffConfig(tool={"bin_dir": str(tmp_path / "bin")})

    assert resolve_binary(config) == str(bundled)


def test_resolve_binary_falls_back_to_path(tmp_path) -> None:
    config = BlvdiffConfig(tool={"bin_dir": str(tmp_path / "empty")})

    assert resolve_binary(config) == "blvflag"


def test_blank_override_is_ignored() -> None:
    config = BlvdiffConfig(tool={"binary_path": "   "})

    assert resolve_binary(config) == "blvflag"
