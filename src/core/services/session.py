"""Provisioning session: the dispatcher every side effect goes through.

The Session is a policy object. It carries the `ExecutionMode` and the run
configuration, selects an executor once at construction, and exposes one
method per operation. It owns no files and needs no teardown.

Contract:
- Simulated calls render a transcript and return; they never raise.
- Real calls return whatever the collaborator returns, and collaborator
  errors reach the caller unchanged.
- Downloads get their own executor, chosen from
  `ExecutionMode.should_download_for_real()`: a simulated run may still
  fetch real artifacts when `allow_real_download` is set.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Callable

from core.config import AppSettings
from core.domain.models import DEFAULT_BINARY_MODE, OperationKind, OperationRequest, SourceDescriptor
from core.interfaces.collaborators import Downloader, FileSystem, PkiGenerator, TranscriptSink
from core.interfaces.executor import Executor
from core.mode import ExecutionMode
from core.services.executors import RealExecutor, SimulatingExecutor

logger = logging.getLogger(__name__)


class Session:
    def __init__(
        self,
        mode: ExecutionMode,
        *,
        transcript: TranscriptSink,
        filesystem: FileSystem,
        downloader: Downloader,
        pki: PkiGenerator,
        settings: AppSettings | None = None,
        settings_loader: Callable[[], AppSettings] = AppSettings,
    ) -> None:
        self.mode = mode
        self._settings = settings
        self._settings_loader = settings_loader

        real = RealExecutor(
            filesystem=filesystem,
            downloader=downloader,
            pki=pki,
            is_dry_run=mode.is_simulating(),
        )
        simulating = SimulatingExecutor(transcript)

        self._executor: Executor = simulating if mode.is_simulating() else real
        self._download_executor: Executor = real if mode.should_download_for_real() else simulating

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        *,
        transcript: TranscriptSink | None = None,
        filesystem: FileSystem | None = None,
        downloader: Downloader | None = None,
        pki: PkiGenerator | None = None,
    ) -> "Session":
        """Build a Session wired to the default adapters."""

        # Imported here: the Core must stay importable without the adapters.
        from adapters.download_cache import HttpDownloader  # noqa: PLC0415
        from adapters.filesystem import LocalFileSystem  # noqa: PLC0415
        from adapters.pki import X509PkiGenerator  # noqa: PLC0415
        from adapters.transcript_sinks import ConsoleTranscript  # noqa: PLC0415

        return cls(
            ExecutionMode.from_settings(settings),
            transcript=transcript or ConsoleTranscript(),
            filesystem=filesystem or LocalFileSystem(),
            downloader=downloader or HttpDownloader(settings),
            pki=pki or X509PkiGenerator(),
            settings=settings,
        )

    # -- Mode ------------------------------------------------------------

    def is_simulating(self) -> bool:
        return self.mode.is_simulating()

    def should_download_for_real(self) -> bool:
        return self.mode.should_download_for_real()

    # -- Configuration ---------------------------------------------------

    def config(self) -> AppSettings:
        """Return the run configuration, loading it on first use.

        Loading errors (e.g. pydantic `ValidationError`) propagate as-is.
        """

        if self._settings is None:
            self._settings = self._settings_loader()
        return self._settings

    def bin_path(self, filename: str) -> Path:
        return self.config().workdir / "bin" / filename

    # -- File operations -------------------------------------------------

    def create_file(self, name: str | Path) -> None:
        self._executor.create_file(Path(name))

    def copy_file(self, oldpath: str | Path, newpath: str | Path) -> None:
        self._executor.copy_file(Path(oldpath), Path(newpath))

    def rename_file(self, oldpath: str | Path, newpath: str | Path) -> None:
        self._executor.rename_file(Path(oldpath), Path(newpath))

    def append_to_file(self, name: str | Path, content: bytes) -> None:
        self._executor.append_to_file(Path(name), content)

    def remove(self, name: str | Path) -> None:
        self._executor.remove(Path(name))

    def remove_all(self, name: str | Path) -> None:
        self._executor.remove_all(Path(name))

    def open_file(self, name: str | Path) -> BinaryIO:
        """Open `name` for streaming writes.

        While simulating, the returned stream buffers what is written and
        emits a single write transcript when closed (once, however many
        times `close()` is called).
        """

        return self._executor.open_file(Path(name))

    def write_file(self, name: str | Path, content: bytes) -> None:
        self._executor.write_file(Path(name), content)

    def write_file_with_mode(self, name: str | Path, content: bytes, mode: int) -> None:
        self._executor.write_file_with_mode(Path(name), content, mode)

    def mkdir_all(self, name: str | Path) -> None:
        self._executor.mkdir_all(Path(name))

    # -- Downloads / PKI -------------------------------------------------

    def download_with_cache(
        self,
        cache_dir: str | Path,
        src: str,
        dest: str | Path,
        mode: int,
        quiet: bool,
        *,
        deadline: float | None = None,
    ) -> None:
        """Resolve the source descriptor `src` into a file at `dest`.

        `SOURCE#MEMBER` downloads an archive and extracts `MEMBER`; a plain
        `SOURCE` is copied as-is. No validation happens here beyond the split:
        malformed sources are the downloader's to reject.
        """

        descriptor = SourceDescriptor.parse(src)
        if descriptor.is_archive:
            self._download_executor.download_and_extract(
                Path(cache_dir),
                descriptor.url,
                Path(dest),
                descriptor.member,  # type: ignore[arg-type]
                mode,
                quiet=quiet,
                deadline=deadline,
            )
            return

        self._download_executor.download(
            Path(cache_dir),
            src,
            Path(dest),
            mode,
            quiet=quiet,
            deadline=deadline,
        )

    def generate_pki(self, pki_path: str | Path, *sans: str) -> None:
        self._executor.generate_pki(Path(pki_path), *sans)

    def ensure_binary(self, name: str, binary: str, *, deadline: float | None = None) -> Path:
        """Make sure executable `name` exists under the bin dir; return its path.

        The path is returned even when the download was simulated, in which
        case the file does not exist. Callers may only rely on real bytes
        when `should_download_for_real()` is true.
        """

        conf = self.config()
        binary_path = self.bin_path(name + conf.bin_suffix)
        self.download_with_cache(
            conf.cache_dir,
            binary,
            binary_path,
            DEFAULT_BINARY_MODE,
            conf.quiet_pull,
            deadline=deadline,
        )
        return binary_path

    # -- Requests --------------------------------------------------------

    def execute(self, request: OperationRequest) -> None:
        """Run one `OperationRequest` through the matching operation."""

        kind = request.kind
        path = request.path
        if kind is OperationKind.CREATE:
            self.create_file(path)
        elif kind is OperationKind.WRITE:
            if request.mode is None:
                self.write_file(path, request.content or b"")
            else:
                self.write_file_with_mode(path, request.content or b"", request.mode)
        elif kind is OperationKind.COPY:
            self.copy_file(request.source_path, path)  # type: ignore[arg-type]
        elif kind is OperationKind.RENAME:
            self.rename_file(request.source_path, path)  # type: ignore[arg-type]
        elif kind is OperationKind.REMOVE:
            self.remove(path)
        elif kind is OperationKind.REMOVE_ALL:
            self.remove_all(path)
        elif kind is OperationKind.MKDIR_ALL:
            self.mkdir_all(path)
        elif kind is OperationKind.APPEND:
            self.append_to_file(path, request.content or b"")
        elif kind is OperationKind.DOWNLOAD:
            conf = self.config()
            mode = DEFAULT_BINARY_MODE if request.mode is None else request.mode
            self.download_with_cache(conf.cache_dir, request.source or "", path, mode, conf.quiet_pull)
        elif kind is OperationKind.GENERATE_PKI:
            self.generate_pki(path, *request.sans)
        else:  # pragma: no cover
            raise ValueError(f"unsupported operation kind: {kind}")
