"""Configuration schema using Pydantic."""

import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HistoryConfig(BaseModel):
    """Where snapshots live and how they are matched."""
    root: str = "~/blvflag/tool/history"
    partitions: list[str] = Field(default_factory=lambda: ["err_history", "std_history"])
    script_suffix: str = ".py"  # Stripped from the script name to get the base name
    snapshot_suffix: str = ".json"

    @field_validator("partitions")
    @classmethod
    def _no_nested_partitions(cls, value: list[str]) -> list[str]:
        for name in value:
            if not name or "/" in name or "\\" in name or name in (".", ".."):
                raise ValueError(f"Invalid partition name: {name!r}")
        return value


class ToolConfig(BaseModel):
    """External blvflag binary configuration."""
    binary_path: str = ""  # Explicit override, wins over everything else
    bin_dir: str | None = None  # Bundled binaries laid out as <bin_dir>/<platform>-<arch>/
    binary_name: str = "blvflag"


class DiffConfig(BaseModel):
    """Side-by-side comparison settings."""
    model_config = ConfigDict(extra="ignore")

    temp_dir: str | None = None  # None = system temp dir
    default_mode: str | None = None  # None = ask every time
    viewer: list[str] = Field(default_factory=list)  # e.g. ["code", "--diff"]


class BlvdiffConfig(BaseSettings):
    """Root configuration for blvdiff."""
    model_config = SettingsConfigDict(
        env_prefix="BLVDIFF_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    history: HistoryConfig = Field(default_factory=HistoryConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)

    @property
    def history_root(self) -> Path:
        """Get expanded history root."""
        return Path(self.history.root).expanduser()

    @property
    def temp_dir(self) -> Path:
        """Get the directory comparison files are written to."""
        if self.diff.temp_dir:
            return Path(self.diff.temp_dir).expanduser()
        return Path(tempfile.gettempdir())

    @property
    def bin_dir(self) -> Path | None:
        return Path(self.tool.bin_dir).expanduser() if self.tool.bin_dir else None
