"""The apply/simulate strategy contract.

`RealExecutor` and `SimulatingExecutor` share one method per operation
kind; the Session picks one of them per run instead of branching per call.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class Executor(Protocol):
    def create_file(self, name: Path) -> None: ...

    def copy_file(self, oldpath: Path, newpath: Path) -> None: ...

    def rename_file(self, oldpath: Path, newpath: Path) -> None: ...

    def append_to_file(self, name: Path, content: bytes) -> None: ...

    def remove(self, name: Path) -> None: ...

    def remove_all(self, name: Path) -> None: ...

    def open_file(self, name: Path) -> BinaryIO: ...

    def write_file(self, name: Path, content: bytes) -> None: ...

    def write_file_with_mode(self, name: Path, content: bytes, mode: int) -> None: ...

    def mkdir_all(self, name: Path) -> None: ...

    def download(
        self,
        cache_dir: Path,
        url: str,
        dest: Path,
        mode: int,
        *,
        quiet: bool,
        deadline: float | None = None,
    ) -> None: ...

    def download_and_extract(
        self,
        cache_dir: Path,
        url: str,
        dest: Path,
        member: str,
        mode: int,
        *,
        quiet: bool,
        deadline: float | None = None,
    ) -> None: ...

    def generate_pki(self, pki_path: Path, *sans: str) -> None: ...
