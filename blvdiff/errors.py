"""Shared error types for blvdiff.

Goal: keep "nothing to compare yet" apart from real faults. A missing
snapshot is an outcome, not an exception; only failures the user has to act
on are raised.
"""


class BlvdiffError(Exception):
    """Base error for blvdiff."""


class ConfigError(BlvdiffError):
    """Config file could not be read or validated."""


class ToolStartError(BlvdiffError):
    """External tool could not be started (missing or not executable)."""


class ArtifactWriteError(BlvdiffError):
    """Temporary comparison file could not be written."""

    def __init__(self, path, cause: Exception):
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause
