"""Output sinks for tool logs and user notifications."""

from typing import Protocol

from rich.console import Console


class OutputSink(Protocol):
    """Where streamed tool output and user-facing messages go."""

    def clear(self) -> None: ...

    def show(self) -> None: ...

    def append(self, text: str) -> None: ...

    def append_line(self, text: str) -> None: ...

    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class ConsoleSink:
    """Write tool output to a rich console."""

    def __init__(self, console: Console | None = None, err_console: Console | None = None):
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def clear(self) -> None:
        pass  # Terminal output is append-only

    def show(self) -> None:
        pass

    def append(self, text: str) -> None:
        self.console.out(text, end="", highlight=False)

    def append_line(self, text: str) -> None:
        self.console.out(text, highlight=False)

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]{message}[/cyan]")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]{message}[/red]")


class BufferSink:
    """Collect output in memory."""

    def __init__(self):
        self.chunks: list[str] = []
        self.infos: list[str] = []
        self.errors: list[str] = []
        self.shown = False

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    def clear(self) -> None:
        self.chunks.clear()

    def show(self) -> None:
        self.shown = True

    def append(self, text: str) -> None:
        self.chunks.append(text)

    def append_line(self, text: str) -> None:
        self.chunks.append(text + "\n")

    def info(self, message: str) -> None:
        self.infos.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)
