"""Pick the newest snapshot among candidates."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SnapshotCandidate:
    """A snapshot file found on disk, with its modification time."""

    path: Path
    mtime: float
    partition: str = ""

    @property
    def name(self) -> str:
        return self.path.name


def _sort_key(candidate: SnapshotCandidate) -> tuple[float, str, str]:
    # Equal mtimes fall back to the file name, so the later token wins
    return (candidate.mtime, candidate.path.name, str(candidate.path))


def select_latest(candidates: list[SnapshotCandidate]) -> SnapshotCandidate | None:
    """Return the candidate with the greatest mtime, or None if there are none."""
    if not candidates:
        return None
    return max(candidates, key=_sort_key)


def newest_first(candidates: list[SnapshotCandidate]) -> list[SnapshotCandidate]:
    """Order candidates the same way select_latest ranks them."""
    return sorted(candidates, key=_sort_key, reverse=True)
