"""Diff orchestration: resolve history, write comparison files, dispatch.

Per invocation: Idle -> Resolving -> NotFound | Found -> Writing ->
Dispatched. Nothing is carried between invocations; comparison files have
fixed names per script and are overwritten each time.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from loguru import logger

from blvdiff.config.schema import BlvdiffConfig
from blvdiff.errors import ArtifactWriteError
from blvdiff.history.reader import HistoryStore, base_name_for
from blvdiff.history.records import SnapshotRecord, read_snapshot
from blvdiff.history.selector import SnapshotCandidate
from blvdiff.invoker import ToolEventKind, ToolInvoker, resolve_binary
from blvdiff.output import OutputSink


class DiffMode(str, Enum):
    """How a comparison is presented."""
    TEXT = "text-based"
    SIDE_BY_SIDE = "side-by-side"

    @classmethod
    def parse(cls, value: "str | DiffMode | None") -> "DiffMode | None":
        """Return the mode for value, or None if it is missing or unknown."""
        if value is None or isinstance(value, DiffMode):
            return value
        normalized = value.strip().lower()
        aliases = {"text": cls.TEXT, "side": cls.SIDE_BY_SIDE, "sbs": cls.SIDE_BY_SIDE}
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            return None


class OutcomeStatus(str, Enum):
    NOT_FOUND = "not_found"
    DISPATCHED = "dispatched"
    CANCELLED = "cancelled"
    TOOL_FINISHED = "tool_finished"
    TOOL_FAILED = "tool_failed"


@dataclass(frozen=True)
class ComparablePair:
    """Historical and current text, written out for side-by-side viewing."""

    script_name: str
    old_path: Path
    new_path: Path
    snapshot: SnapshotCandidate
    record: SnapshotRecord

    @property
    def title(self) -> str:
        return f"{self.script_name}: Previous Version <-> Current Version"


@dataclass(frozen=True)
class DiffOutcome:
    status: OutcomeStatus
    message: str = ""
    pair: ComparablePair | None = None
    exit_code: int | None = None


CANCELLED = DiffOutcome(OutcomeStatus.CANCELLED)


class DiffOrchestrator:
    """Entry point for explain / diff / revert / setup."""

    def __init__(
        self,
        config: BlvdiffConfig,
        sink: OutputSink,
        invoker: ToolInvoker | None = None,
        store: HistoryStore | None = None,
    ):
        self.config = config
        self.sink = sink
        self.invoker = invoker or ToolInvoker()
        self.store = store or HistoryStore.from_config(config)

    def artifact_paths(self, script_name: str) -> tuple[Path, Path]:
        """Deterministic (old, current) comparison file paths for a script."""
        suffix = self.config.history.script_suffix
        temp_dir = self.config.temp_dir
        return (
            temp_dir / f"{script_name}.history.old{suffix}",
            temp_dir / f"{script_name}.current{suffix}",
        )

    async def _run_tool(self, args: list[str], stdin_line: str | None = None) -> DiffOutcome:
        binary = resolve_binary(self.config)
        event = await self.invoker.run(binary, args, self.sink, stdin_line=stdin_line)
        if event.kind == ToolEventKind.START_FAILED:
            return DiffOutcome(OutcomeStatus.TOOL_FAILED, message=str(event.error))
        return DiffOutcome(OutcomeStatus.TOOL_FINISHED, exit_code=event.exit_code)

    async def explain(self, path: str | Path) -> DiffOutcome:
        """Ask blvflag to explain the script."""
        return await self._run_tool(["--explain", str(path)])

    async def revert(self, path: str | Path) -> DiffOutcome:
        """Ask blvflag to restore the script from its history."""
        return await self._run_tool(["--revert", str(path)])

    async def setup(self, secret: str) -> DiffOutcome:
        """Pass a credential to blvflag on stdin."""
        return await self._run_tool(["--setup"], stdin_line=secret)

    async def diff(
        self,
        path: str | Path,
        current_text: str,
        mode: "str | DiffMode | None",
    ) -> DiffOutcome:
        """Compare current_text with the newest snapshot of the script at path."""
        selected = DiffMode.parse(mode)
        if selected is None:
            logger.debug(f"Diff cancelled (mode={mode!r})")
            return CANCELLED
        if selected == DiffMode.TEXT:
            # blvflag does its own history lookup
            return await self._run_tool(["--diff", str(path)])
        return await self.side_by_side(path, current_text)

    async def side_by_side(self, path: str | Path, current_text: str) -> DiffOutcome:
        script_name = Path(path).name
        base_name = base_name_for(script_name, self.config.history.script_suffix)

        snapshot = await self.store.find_latest(base_name)
        if snapshot is None:
            return self._not_found(script_name)

        try:
            record = await read_snapshot(snapshot.path)
        except OSError as e:
            # Selected file disappeared or became unreadable
            logger.debug(f"Cannot read snapshot {snapshot.path}: {e}")
            return self._not_found(script_name)

        old_path, new_path = self.artifact_paths(script_name)
        await self._write(old_path, record.text)
        await self._write(new_path, current_text)

        pair = ComparablePair(
            script_name=script_name,
            old_path=old_path,
            new_path=new_path,
            snapshot=snapshot,
            record=record,
        )
        logger.info(f"Comparing {script_name} against {snapshot.path.name} ({record.kind.value})")
        return DiffOutcome(OutcomeStatus.DISPATCHED, message=pair.title, pair=pair)

    def _not_found(self, script_name: str) -> DiffOutcome:
        message = f"No script history found for {script_name}."
        self.sink.info(message)
        return DiffOutcome(OutcomeStatus.NOT_FOUND, message=message)

    @staticmethod
    async def _write(path: Path, text: str) -> None:
        def write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps the snapshot's line endings as recorded
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(text)

        try:
            await asyncio.to_thread(write)
        except OSError as e:
            raise ArtifactWriteError(path, e) from e
