"""Cache-aware downloads (httpx) with optional single-member extraction.

Cache layout:
- `<cache_dir>/<scheme>/<host>/<path>` for a fetched artifact.
- `<cache_dir>/<scheme>/<host>/<path>.d/<member>` for a member extracted
  from it.

Rules:
- `file://` URLs and plain paths are read in place and never cached.
- With `is_dry_run=True` the cache is read-only: hits are used, misses are
  fetched into a temporary directory and discarded afterwards. The
  destination is still written, since the caller asked for real bytes.
- The destination is replaced atomically and chmod-ed to `mode`.
- Every failure surfaces as `DownloadError` (or `ArchiveMemberNotFoundError`).
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Callable
from urllib.parse import urlsplit
from urllib.request import url2pathname

import httpx
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TransferSpeedColumn,
)

from adapters.archive import extract_member
from adapters.http_client import build_client
from core.config import AppSettings
from core.domain.errors import DownloadError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def is_local_source(src: str) -> bool:
    scheme = urlsplit(src).scheme
    # A one-letter scheme is a Windows drive ("C:\\tools\\x.zip").
    return scheme in ("", "file") or len(scheme) == 1


def local_source_path(src: str) -> Path:
    parts = urlsplit(src)
    if parts.scheme == "file":
        return Path(url2pathname(parts.path))
    return Path(src)


def cache_path_for(cache_dir: Path, src: str) -> Path:
    """Where the artifact fetched from `src` lives inside `cache_dir`."""

    parts = urlsplit(src)
    host = parts.netloc.replace(":", "_") or "_"
    rel = parts.path.lstrip("/") or "index"
    return cache_dir / parts.scheme / host / rel


def _check_deadline(deadline: float | None, src: str) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise DownloadError(f"deadline exceeded while downloading {src}")


def _member_cache_path(archive: Path, member: str) -> Path | None:
    """`<archive>.d/<member>`, or None when `member` would land outside it."""

    base = Path(f"{archive}.d")
    cached = base / member
    if not cached.resolve().is_relative_to(base.resolve()):
        logger.warning("not caching member %r of %s: path leaves the cache", member, archive)
        return None
    return cached


def _extract_into_cache(archive: Path, member: str, cached_member: Path) -> Path:
    cached_member.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=".part-", dir=cached_member.parent)
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        extract_member(archive, member, tmp)
        os.replace(tmp, cached_member)
    finally:
        tmp.unlink(missing_ok=True)
    return cached_member


class HttpDownloader:
    """`core.interfaces.collaborators.Downloader` backed by httpx."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client_factory: Callable[[], httpx.Client] | None = None,
        console: Console | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory or (lambda: build_client(self._settings))
        self._console = console or Console(stderr=True)

    # -- fetching --------------------------------------------------------

    def _fetch(self, src: str, out_path: Path, *, quiet: bool, deadline: float | None) -> None:
        _check_deadline(deadline, src)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".part-", dir=out_path.parent)
        tmp = Path(tmp_name)
        logger.info("fetching %s", src)
        try:
            with os.fdopen(fd, "wb") as fh, self._client_factory() as client:
                with client.stream("GET", src) as response:
                    response.raise_for_status()
                    total = int(response.headers.get("Content-Length") or 0) or None
                    with Progress(
                        TextColumn("[bold blue]{task.description}"),
                        BarColumn(),
                        DownloadColumn(),
                        TransferSpeedColumn(),
                        console=self._console,
                        disable=quiet,
                        transient=True,
                    ) as progress:
                        task = progress.add_task(Path(urlsplit(src).path).name or src, total=total)
                        for chunk in response.iter_bytes(_CHUNK_SIZE):
                            _check_deadline(deadline, src)
                            fh.write(chunk)
                            progress.advance(task, len(chunk))
            os.replace(tmp, out_path)
        except httpx.HTTPError as exc:
            raise DownloadError(f"failed to download {src}: {exc}") from exc
        finally:
            tmp.unlink(missing_ok=True)

    def _obtain(
        self,
        cache_dir: Path,
        src: str,
        scratch: Path,
        *,
        quiet: bool,
        is_dry_run: bool,
        deadline: float | None,
    ) -> tuple[Path, bool]:
        """Return a local file holding `src`, and whether it sits in the cache."""

        if is_local_source(src):
            path = local_source_path(src)
            if not path.is_file():
                raise DownloadError(f"source not found: {src!r}")
            return path, False

        cached = cache_path_for(cache_dir, src)
        if cached.is_file():
            logger.debug("cache hit %s", cached)
            return cached, True

        logger.debug("cache miss %s", cached)
        if is_dry_run:
            target = scratch / (cached.name or "artifact")
            self._fetch(src, target, quiet=quiet, deadline=deadline)
            return target, False

        self._fetch(src, cached, quiet=quiet, deadline=deadline)
        return cached, True

    # -- placing ---------------------------------------------------------

    @staticmethod
    def _place(src_file: Path, dest: Path, mode: int) -> None:
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".part-", dir=dest.parent)
            os.close(fd)
            tmp = Path(tmp_name)
            try:
                shutil.copyfile(src_file, tmp)
                os.chmod(tmp, mode)
                os.replace(tmp, dest)
            finally:
                tmp.unlink(missing_ok=True)
        except OSError as exc:
            raise DownloadError(f"cannot place {src_file} at {dest}: {exc}") from exc

    # -- Downloader ------------------------------------------------------

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
    ) -> None:
        with tempfile.TemporaryDirectory(prefix="dualrun-") as scratch:
            artifact, _ = self._obtain(
                Path(cache_dir),
                src,
                Path(scratch),
                quiet=quiet,
                is_dry_run=is_dry_run,
                deadline=deadline,
            )
            self._place(artifact, dest, mode)
        logger.info("downloaded %s to %s", src, dest)

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
    ) -> None:
        with tempfile.TemporaryDirectory(prefix="dualrun-") as scratch_dir:
            scratch = Path(scratch_dir)
            archive, in_cache = self._obtain(
                Path(cache_dir),
                src,
                scratch,
                quiet=quiet,
                is_dry_run=is_dry_run,
                deadline=deadline,
            )
            if not extract:
                self._place(archive, dest, mode)
                return

            member_path: Path | None = None
            cached_member = _member_cache_path(archive, member) if in_cache else None
            if cached_member is not None:
                if cached_member.is_file():
                    logger.debug("cache hit %s", cached_member)
                    member_path = cached_member
                elif not is_dry_run:
                    member_path = _extract_into_cache(archive, member, cached_member)

            if member_path is None:
                member_path = extract_member(archive, member, scratch / "member")

            self._place(member_path, dest, mode)
        logger.info("extracted %s from %s to %s", member, src, dest)
