"""External tool invocation with streamed output.

The blvflag binary is run without a shell. stdout and stderr are read
concurrently and forwarded as they arrive; the stream ends with exactly one
EXIT or START_FAILED event. No timeout is applied: a process that never
exits keeps the stream open. Cancelling the consuming task terminates the
process.
"""

import asyncio
import codecs
import contextlib
import os
import platform
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import AsyncIterator

from loguru import logger

from blvdiff.config.schema import BlvdiffConfig
from blvdiff.errors import ToolStartError
from blvdiff.output import OutputSink


class ToolEventKind(str, Enum):
    OUTPUT = "output"
    EXIT = "exit"
    START_FAILED = "start_failed"


@dataclass(frozen=True)
class ToolEvent:
    """One event from a running tool."""

    kind: ToolEventKind
    text: str = ""
    stream: str = ""  # "stdout" or "stderr" for OUTPUT events
    exit_code: int | None = None
    error: ToolStartError | None = None

    @property
    def is_final(self) -> bool:
        return self.kind != ToolEventKind.OUTPUT


def _platform_tag() -> str:
    """Platform directory name, e.g. ``linux-x64`` or ``darwin-arm64``."""
    machine = platform.machine().lower()
    arch = {"x86_64": "x64", "amd64": "x64", "aarch64": "arm64", "i386": "ia32", "i686": "ia32"}.get(
        machine, machine
    )
    system = sys.platform
    if system.startswith("linux"):
        system = "linux"
    return f"{system}-{arch}"


def resolve_binary(config: BlvdiffConfig) -> str:
    """Pick the blvflag binary.

    Order: configured override, bundled binary for this platform if it is
    executable, then the bare name looked up on PATH.
    """
    configured = (config.tool.binary_path or "").strip()
    if configured:
        return configured

    name = config.tool.binary_name
    bin_name = f"{name}.exe" if sys.platform == "win32" else name
    if config.bin_dir is not None:
        candidate = config.bin_dir / _platform_tag() / bin_name
        if os.access(candidate, os.X_OK):
            logger.debug(f"Using bundled binary {candidate}")
            return str(candidate)
    return name


class ToolInvoker:
    """Run an external binary and stream its output."""

    def __init__(self, cwd: Path | None = None, env: dict[str, str] | None = None):
        self.cwd = cwd
        self.env = env

    async def _start(self, binary: str, args: list[str], with_stdin: bool) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                binary,
                *args,
                stdin=asyncio.subprocess.PIPE if with_stdin else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
                env=self.env,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            raise ToolStartError(f"spawn {binary} failed: {e.strerror or e}") from e
        except OSError as e:
            raise ToolStartError(f"spawn {binary} failed: {e}") from e

    @staticmethod
    async def _pump(
        reader: asyncio.StreamReader,
        stream: str,
        queue: "asyncio.Queue[ToolEvent | None]",
    ) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while True:
                chunk = await reader.read(4096)
                if not chunk:
                    tail = decoder.decode(b"", final=True)
                    if tail:
                        await queue.put(ToolEvent(ToolEventKind.OUTPUT, text=tail, stream=stream))
                    break
                text = decoder.decode(chunk)
                if text:
                    await queue.put(ToolEvent(ToolEventKind.OUTPUT, text=text, stream=stream))
        finally:
            await queue.put(None)

    @staticmethod
    async def _feed_stdin(process: asyncio.subprocess.Process, line: str) -> None:
        if process.stdin is None:
            return
        try:
            process.stdin.write((line + "\n").encode("utf-8"))
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("Tool closed stdin before the input line was written")
        finally:
            process.stdin.close()

    async def stream(
        self,
        binary: str,
        args: list[str],
        stdin_line: str | None = None,
    ) -> AsyncIterator[ToolEvent]:
        """Run binary with args, yielding output chunks then a final event."""
        logger.debug(f"Running {binary} {' '.join(args)}")
        try:
            process = await self._start(binary, args, with_stdin=stdin_line is not None)
        except ToolStartError as e:
            logger.error(str(e))
            yield ToolEvent(ToolEventKind.START_FAILED, error=e)
            return

        if stdin_line is not None:
            await self._feed_stdin(process, stdin_line)

        queue: asyncio.Queue[ToolEvent | None] = asyncio.Queue()
        pumps = [
            asyncio.create_task(self._pump(process.stdout, "stdout", queue)),
            asyncio.create_task(self._pump(process.stderr, "stderr", queue)),
        ]
        try:
            open_streams = len(pumps)
            while open_streams:
                event = await queue.get()
                if event is None:
                    open_streams -= 1
                    continue
                yield event
            code = await process.wait()
        except BaseException:
            # Consumer cancelled or stopped early
            for task in pumps:
                task.cancel()
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.terminate()
                with contextlib.suppress(asyncio.CancelledError, ProcessLookupError):
                    await process.wait()
            raise

        yield ToolEvent(ToolEventKind.EXIT, exit_code=code)

    async def run(
        self,
        binary: str,
        args: list[str],
        sink: OutputSink,
        stdin_line: str | None = None,
    ) -> ToolEvent:
        """Drive a tool run into an output sink and return the final event.

        Start failures are reported through ``sink.error`` and nothing is
        appended to the output log. A non-zero exit is only logged.
        """
        sink.clear()
        sink.show()
        final = ToolEvent(ToolEventKind.EXIT, exit_code=None)
        async for event in self.stream(binary, args, stdin_line=stdin_line):
            if event.kind == ToolEventKind.OUTPUT:
                sink.append(event.text)
            elif event.kind == ToolEventKind.START_FAILED:
                sink.error(f"BLVDIFF error: {event.error}")
                final = event
            else:
                sink.append_line(f"\nBLVDIFF exited with code {event.exit_code}")
                final = event
        return final
