"""Real filesystem primitives (the apply side of file operations).

Rules:
- Creation/writes make missing parent directories first.
- New files get mode 0640 unless a mode is given.
- `remove`/`remove_all` of a missing path is not an error.
- Any other `OSError` propagates untouched.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import BinaryIO

DEFAULT_FILE_MODE = 0o640
DEFAULT_DIR_MODE = 0o755


def _ensure_parent(name: Path) -> None:
    name.parent.mkdir(mode=DEFAULT_DIR_MODE, parents=True, exist_ok=True)


class LocalFileSystem:
    """`core.interfaces.collaborators.FileSystem` over the host filesystem."""

    def create(self, name: Path) -> None:
        _ensure_parent(name)
        fd = os.open(name, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, DEFAULT_FILE_MODE)
        os.close(fd)

    def copy(self, oldpath: Path, newpath: Path) -> None:
        _ensure_parent(newpath)
        shutil.copyfile(oldpath, newpath)
        shutil.copymode(oldpath, newpath)

    def rename(self, oldpath: Path, newpath: Path) -> None:
        _ensure_parent(newpath)
        os.replace(oldpath, newpath)

    def append(self, name: Path, content: bytes) -> None:
        _ensure_parent(name)
        fd = os.open(name, os.O_CREAT | os.O_WRONLY | os.O_APPEND, DEFAULT_FILE_MODE)
        with os.fdopen(fd, "ab") as fh:
            fh.write(content)

    def remove(self, name: Path) -> None:
        try:
            name.unlink()
        except FileNotFoundError:
            pass

    def remove_all(self, name: Path) -> None:
        if name.is_symlink() or name.is_file():
            name.unlink()
            return
        if not name.exists():
            return
        shutil.rmtree(name)

    def open(self, name: Path) -> BinaryIO:
        _ensure_parent(name)
        fd = os.open(name, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, DEFAULT_FILE_MODE)
        return os.fdopen(fd, "wb")

    def write(self, name: Path, content: bytes) -> None:
        with self.open(name) as fh:
            fh.write(content)

    def write_with_mode(self, name: Path, content: bytes, mode: int) -> None:
        _ensure_parent(name)
        fd = os.open(name, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        # O_CREAT honours the umask and leaves existing files alone.
        os.chmod(name, mode)

    def mkdir_all(self, name: Path) -> None:
        name.mkdir(mode=DEFAULT_DIR_MODE, parents=True, exist_ok=True)
