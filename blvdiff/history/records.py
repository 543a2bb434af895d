"""Decoding of persisted snapshot records.

A snapshot file is loosely typed. In priority order it may hold:

- a JSON string: the script text itself
- a JSON object with a non-empty ``content`` field
- a JSON object with a non-empty ``text`` field
- anything else, in which case the raw file text is the content

Decoding never fails; every path ends in some text.
"""

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger


class RecordKind(str, Enum):
    """Which branch of the fallback produced the text."""
    STRING = "string"
    CONTENT = "content"
    TEXT = "text"
    RAW = "raw"


@dataclass(frozen=True)
class SnapshotRecord:
    """Decoded snapshot: the extracted text and where it came from."""

    kind: RecordKind
    text: str


def _field(obj: Any, key: str) -> str | None:
    if not isinstance(obj, dict):
        return None
    value = obj.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def decode_record(raw: str) -> SnapshotRecord:
    """Apply the ordered fallback to raw snapshot file text."""
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        logger.debug("Snapshot is not valid JSON, using raw content")
        return SnapshotRecord(RecordKind.RAW, raw)

    if isinstance(parsed, str):
        return SnapshotRecord(RecordKind.STRING, parsed)

    content = _field(parsed, "content")
    if content is not None:
        return SnapshotRecord(RecordKind.CONTENT, content)

    text = _field(parsed, "text")
    if text is not None:
        return SnapshotRecord(RecordKind.TEXT, text)

    logger.debug("Snapshot has no usable content/text field, using raw content")
    return SnapshotRecord(RecordKind.RAW, raw)


def _read_text(path: Path) -> str:
    # newline="" so CRLF snapshots come back byte for byte
    with open(path, encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


async def read_snapshot(path: Path) -> SnapshotRecord:
    """Read a snapshot file and decode it."""
    raw = await asyncio.to_thread(_read_text, Path(path))
    return decode_record(raw)
