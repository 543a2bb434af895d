"""Snapshot history: discovery, selection and decoding."""

from blvdiff.history.reader import HistoryStore, base_name_for
from blvdiff.history.records import RecordKind, SnapshotRecord, decode_record, read_snapshot
from blvdiff.history.selector import SnapshotCandidate, newest_first, select_latest

__all__ = [
    "HistoryStore",
    "base_name_for",
    "RecordKind",
    "SnapshotRecord",
    "decode_record",
    "read_snapshot",
    "SnapshotCandidate",
    "newest_first",
    "select_latest",
]
