"""Contracts for the collaborators behind the dispatcher.

Why Protocol:
- Structural contracts (duck typing) without rigid inheritance.
- The default adapters (`adapters.filesystem`, `adapters.download_cache`,
  `adapters.pki`) satisfy them, and so does any recording fake in tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class FileSystem(Protocol):
    """Real filesystem primitives."""

    def create(self, name: Path) -> None: ...

    def copy(self, oldpath: Path, newpath: Path) -> None: ...

    def rename(self, oldpath: Path, newpath: Path) -> None: ...

    def append(self, name: Path, content: bytes) -> None: ...

    def remove(self, name: Path) -> None: ...

    def remove_all(self, name: Path) -> None: ...

    def open(self, name: Path) -> BinaryIO: ...

    def write(self, name: Path, content: bytes) -> None: ...

    def write_with_mode(self, name: Path, content: bytes, mode: int) -> None: ...

    def mkdir_all(self, name: Path) -> None: ...


@runtime_checkable
class Downloader(Protocol):
    """Cache-aware fetcher.

    `is_dry_run` tells the downloader the surrounding run is simulated, so it
    can leave shared cache state untouched while still producing real bytes.
    `deadline` is an absolute `time.monotonic()` value, or None.
    """

    def download_with_cache(
        self,
        cache_dir: Path,
        src: str,
        dest: Path,
        mode: int,
        *,
        quiet: bool,
        is_dry_run: bool,
        deadline: float | None = None,
    ) -> None: ...

    def download_with_cache_and_extract(
        self,
        cache_dir: Path,
        src: str,
        dest: Path,
        member: str,
        mode: int,
        *,
        quiet: bool,
        extract: bool,
        is_dry_run: bool,
        deadline: float | None = None,
    ) -> None: ...


@runtime_checkable
class PkiGenerator(Protocol):
    """Writes a CA plus an admin key/certificate valid for `sans`."""

    def generate_pki(self, pki_path: Path, *sans: str) -> None: ...


@runtime_checkable
class TranscriptSink(Protocol):
    """Receives rendered transcript lines. Must not raise."""

    def emit(self, line: str) -> None: ...
