"""Snapshot discovery across history partitions.

Snapshots are written by an external recorder as
``<root>/<partition>/<baseName>_<token>.json``. The token is opaque; ordering
relies only on file modification time.
"""

import asyncio
import os
from pathlib import Path

from loguru import logger

from blvdiff.config.schema import BlvdiffConfig
from blvdiff.history.selector import SnapshotCandidate, select_latest


def base_name_for(script_name: str, script_suffix: str = ".py") -> str:
    """Strip the script suffix from a file name (``foo.py`` -> ``foo``)."""
    name = Path(script_name).name
    if script_suffix and name.endswith(script_suffix) and len(name) > len(script_suffix):
        return name[: -len(script_suffix)]
    return name


class HistoryStore:
    """Read-only view over the snapshot history tree."""

    def __init__(
        self,
        root: Path,
        partitions: list[str],
        snapshot_suffix: str = ".json",
    ):
        self.root = Path(root)
        self.partitions = list(partitions)
        self.snapshot_suffix = snapshot_suffix

    @classmethod
    def from_config(cls, config: BlvdiffConfig) -> "HistoryStore":
        return cls(
            root=config.history_root,
            partitions=config.history.partitions,
            snapshot_suffix=config.history.snapshot_suffix,
        )

    def _scan_partition(self, partition: str, prefix: str) -> list[SnapshotCandidate]:
        """List matches in one partition. Unreadable partitions yield nothing."""
        directory = self.root / partition
        found: list[SnapshotCandidate] = []
        try:
            entries = list(os.scandir(directory))
        except OSError as e:
            logger.debug(f"Skipping history partition {directory}: {e}")
            return found

        for entry in entries:
            name = entry.name
            if not (name.startswith(prefix) and name.endswith(self.snapshot_suffix)):
                continue
            try:
                if not entry.is_file():
                    continue
                mtime = entry.stat().st_mtime
            except OSError as e:
                # Removed or made unreadable between listing and stat
                logger.debug(f"Skipping snapshot {entry.path}: {e}")
                continue
            found.append(SnapshotCandidate(path=Path(entry.path), mtime=mtime, partition=partition))
        return found

    def _scan(self, base_name: str) -> list[SnapshotCandidate]:
        prefix = f"{base_name}_"
        candidates: list[SnapshotCandidate] = []
        for partition in self.partitions:
            candidates.extend(self._scan_partition(partition, prefix))
        return candidates

    async def list_candidates(self, base_name: str) -> list[SnapshotCandidate]:
        """Find every ``<base_name>_*<suffix>`` file in any partition.

        An empty list means there is no history for this script.
        """
        candidates = await asyncio.to_thread(self._scan, base_name)
        logger.debug(f"Found {len(candidates)} snapshot(s) for {base_name!r} under {self.root}")
        return candidates

    async def find_latest(self, base_name: str) -> SnapshotCandidate | None:
        """Return the newest snapshot for base_name, or None."""
        return select_latest(await self.list_candidates(base_name))
