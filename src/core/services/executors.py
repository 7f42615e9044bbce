"""Apply and simulate strategies.

`RealExecutor` forwards every call to a collaborator and returns exactly what
it returns: no retry, no wrapping, no transcript. `SimulatingExecutor`
renders the equivalent `OperationRequest` and hands the lines to a sink; it
never touches the filesystem or the network and never raises.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

from core.domain.models import OperationKind, OperationRequest
from core.interfaces.collaborators import Downloader, FileSystem, PkiGenerator, TranscriptSink
from core.services.transcript import CatToFileWriter, render

logger = logging.getLogger(__name__)


class RealExecutor:
    """Performs the real side effects through the injected collaborators."""

    def __init__(
        self,
        *,
        filesystem: FileSystem,
        downloader: Downloader,
        pki: PkiGenerator,
        is_dry_run: bool = False,
    ) -> None:
        self._fs = filesystem
        self._downloader = downloader
        self._pki = pki
        # Passed through to the downloader: a simulated run may still fetch
        # real bytes, but the downloader must know the run is simulated.
        self._is_dry_run = is_dry_run

    def create_file(self, name: Path) -> None:
        logger.debug("create %s", name)
        self._fs.create(name)

    def copy_file(self, oldpath: Path, newpath: Path) -> None:
        logger.debug("copy %s -> %s", oldpath, newpath)
        self._fs.copy(oldpath, newpath)

    def rename_file(self, oldpath: Path, newpath: Path) -> None:
        logger.debug("rename %s -> %s", oldpath, newpath)
        self._fs.rename(oldpath, newpath)

    def append_to_file(self, name: Path, content: bytes) -> None:
        logger.debug("append %d bytes to %s", len(content), name)
        self._fs.append(name, content)

    def remove(self, name: Path) -> None:
        logger.debug("remove %s", name)
        self._fs.remove(name)

    def remove_all(self, name: Path) -> None:
        logger.debug("remove tree %s", name)
        self._fs.remove_all(name)

    def open_file(self, name: Path) -> BinaryIO:
        logger.debug("open %s for writing", name)
        return self._fs.open(name)

    def write_file(self, name: Path, content: bytes) -> None:
        logger.debug("write %d bytes to %s", len(content), name)
        self._fs.write(name, content)

    def write_file_with_mode(self, name: Path, content: bytes, mode: int) -> None:
        logger.debug("write %d bytes to %s (mode %o)", len(content), name, mode)
        self._fs.write_with_mode(name, content, mode)

    def mkdir_all(self, name: Path) -> None:
        logger.debug("mkdir %s", name)
        self._fs.mkdir_all(name)

    def download(
        self,
        cache_dir: Path,
        url: str,
        dest: Path,
        mode: int,
        *,
        quiet: bool,
        deadline: float | None = None,
    ) -> None:
        logger.debug("download %s -> %s", url, dest)
        self._downloader.download_with_cache(
            cache_dir,
            url,
            dest,
            mode,
            quiet=quiet,
            is_dry_run=self._is_dry_run,
            deadline=deadline,
        )

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
    ) -> None:
        logger.debug("download %s, extract %s -> %s", url, member, dest)
        self._downloader.download_with_cache_and_extract(
            cache_dir,
            url,
            dest,
            member,
            mode,
            quiet=quiet,
            extract=True,
            is_dry_run=self._is_dry_run,
            deadline=deadline,
        )

    def generate_pki(self, pki_path: Path, *sans: str) -> None:
        logger.debug("generate pki at %s for %s", pki_path, ", ".join(sans) or "<no SANs>")
        self._pki.generate_pki(pki_path, *sans)


class SimulatingExecutor:
    """Renders each call as transcript lines instead of performing it."""

    def __init__(self, sink: TranscriptSink) -> None:
        self._sink = sink

    def _emit(self, request: OperationRequest) -> None:
        for line in render(request):
            self._sink.emit(line)

    def create_file(self, name: Path) -> None:
        self._emit(OperationRequest(kind=OperationKind.CREATE, path=name))

    def copy_file(self, oldpath: Path, newpath: Path) -> None:
        self._emit(OperationRequest(kind=OperationKind.COPY, path=newpath, source_path=oldpath))

    def rename_file(self, oldpath: Path, newpath: Path) -> None:
        self._emit(OperationRequest(kind=OperationKind.RENAME, path=newpath, source_path=oldpath))

    def append_to_file(self, name: Path, content: bytes) -> None:
        self._emit(OperationRequest(kind=OperationKind.APPEND, path=name, content=bytes(content)))

    def remove(self, name: Path) -> None:
        self._emit(OperationRequest(kind=OperationKind.REMOVE, path=name))

    def remove_all(self, name: Path) -> None:
        self._emit(OperationRequest(kind=OperationKind.REMOVE_ALL, path=name))

    def open_file(self, name: Path) -> BinaryIO:
        return CatToFileWriter(name, self._sink)  # type: ignore[return-value]

    def write_file(self, name: Path, content: bytes) -> None:
        self._emit(OperationRequest(kind=OperationKind.WRITE, path=name, content=bytes(content)))

    def write_file_with_mode(self, name: Path, content: bytes, mode: int) -> None:
        self._emit(OperationRequest(kind=OperationKind.WRITE, path=name, content=bytes(content), mode=mode))

    def mkdir_all(self, name: Path) -> None:
        self._emit(OperationRequest(kind=OperationKind.MKDIR_ALL, path=name))

    def download(
        self,
        cache_dir: Path,
        url: str,
        dest: Path,
        mode: int,
        *,
        quiet: bool,
        deadline: float | None = None,
    ) -> None:
        self._emit(OperationRequest(kind=OperationKind.DOWNLOAD, path=dest, source=url, mode=mode))

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
    ) -> None:
        self._emit(
            OperationRequest(kind=OperationKind.DOWNLOAD, path=dest, source=f"{url}#{member}", mode=mode)
        )

    def generate_pki(self, pki_path: Path, *sans: str) -> None:
        self._emit(OperationRequest(kind=OperationKind.GENERATE_PKI, path=pki_path, sans=tuple(sans)))
