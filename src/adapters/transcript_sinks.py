"""Where transcript lines go.

A simulated run's transcript is meant to be readable and replayable by a
human, so sinks write lines verbatim.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, Iterable

import typer

from core.interfaces.collaborators import TranscriptSink


class ConsoleTranscript:
    """Prints each line to stdout (or `file`).

    Lines are written verbatim: no markup, no tab expansion, no wrapping.
    """

    def __init__(self, file: IO[str] | None = None) -> None:
        self._file = file

    def emit(self, line: str) -> None:
        typer.echo(line, file=self._file)


class MemoryTranscript:
    """Keeps lines in memory (tests, summaries)."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def emit(self, line: str) -> None:
        self.lines.append(line)

    def text(self) -> str:
        return "\n".join(self.lines)


class FileTranscript:
    """Appends lines to a script file.

    The file itself is written for real even while simulating: it is the
    output of the run, not one of its side effects.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, line: str) -> None:
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")


class TeeTranscript:
    """Fans every line out to several sinks."""

    def __init__(self, sinks: Iterable[TranscriptSink]) -> None:
        self._sinks = list(sinks)

    def emit(self, line: str) -> None:
        for sink in self._sinks:
            sink.emit(line)
