"""Shared fixtures: recording fakes for every collaborator plus a Session factory."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from adapters.transcript_sinks import MemoryTranscript
from core.config import AppSettings
from core.mode import ExecutionMode
from core.services.session import Session


class RecordingFileSystem:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.opened: dict[Path, io.BytesIO] = {}
        self.error: Exception | None = None

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def create(self, name):
        self._record("create", name)

    def copy(self, oldpath, newpath):
        self._record("copy", oldpath, newpath)

    def rename(self, oldpath, newpath):
        self._record("rename", oldpath, newpath)

    def append(self, name, content):
        self._record("append", name, content)

    def remove(self, name):
        self._record("remove", name)

    def remove_all(self, name):
        self._record("remove_all", name)

    def open(self, name):
        self._record("open", name)
        stream = io.BytesIO()
        self.opened[name] = stream
        return stream

    def write(self, name, content):
        self._record("write", name, content)

    def write_with_mode(self, name, content, mode):
        self._record("write_with_mode", name, content, mode)

    def mkdir_all(self, name):
        self._record("mkdir_all", name)


class RecordingDownloader:
    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.error: Exception | None = None

    def download_with_cache(self, cache_dir, src, dest, mode, *, quiet, is_dry_run, deadline=None):
        self.calls.append(
            {
                "op": "download",
                "cache_dir": cache_dir,
                "src": src,
                "dest": dest,
                "mode": mode,
                "quiet": quiet,
                "is_dry_run": is_dry_run,
                "deadline": deadline,
            }
        )
        if self.error is not None:
            raise self.error

    def download_with_cache_and_extract(
        self, cache_dir, src, dest, member, mode, *, quiet, extract, is_dry_run, deadline=None
    ):
        self.calls.append(
            {
                "op": "extract",
                "cache_dir": cache_dir,
                "src": src,
                "dest": dest,
                "member": member,
                "mode": mode,
                "quiet": quiet,
                "extract": extract,
                "is_dry_run": is_dry_run,
                "deadline": deadline,
            }
        )
        if self.error is not None:
            raise self.error


class RecordingPki:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.error: Exception | None = None

    def generate_pki(self, pki_path, *sans):
        self.calls.append((pki_path, sans))
        if self.error is not None:
            raise self.error


@pytest.fixture
def transcript() -> MemoryTranscript:
    return MemoryTranscript()


@pytest.fixture
def fs() -> RecordingFileSystem:
    return RecordingFileSystem()


@pytest.fixture
def downloader() -> RecordingDownloader:
    return RecordingDownloader()


@pytest.fixture
def pki() -> RecordingPki:
    return RecordingPki()


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        _env_file=None,
        cache_dir=tmp_path / "cache",
        workdir=tmp_path / "work",
        bin_suffix="",
        quiet_pull=True,
    )


@pytest.fixture
def make_session(transcript, fs, downloader, pki, settings):
    """Build a Session over the recording fakes; override anything by keyword."""

    def _make(simulate: bool = False, allow_real_download: bool = False, **overrides) -> Session:
        kwargs = {
            "transcript": transcript,
            "filesystem": fs,
            "downloader": downloader,
            "pki": pki,
            "settings": settings,
        }
        kwargs.update(overrides)
        return Session(ExecutionMode(simulate=simulate, allow_real_download=allow_real_download), **kwargs)

    return _make
