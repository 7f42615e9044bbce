"""Single-member extraction from tar (gz/bz2/xz) and zip archives.

Only the requested member is read and written to a caller-chosen path, so
archive entry names never decide where bytes land on disk.

Matching:
- exact path (after dropping a leading `./`), else
- a path ending in `/<member>`, which covers release archives that wrap
  everything in a top-level directory (`tool-v1.2/bin/tool`).
"""

from __future__ import annotations

import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import IO, Iterable

from core.domain.errors import ArchiveMemberNotFoundError, DownloadError


def _normalize(name: str) -> str:
    name = name.replace("\\", "/")
    while name.startswith("./"):
        name = name[2:]
    return name.rstrip("/")


def match_member(names: Iterable[str], member: str) -> str | None:
    """Return the archive entry that `member` designates, or None."""

    wanted = _normalize(member)
    suffix_match: str | None = None
    for name in names:
        normalized = _normalize(name)
        if normalized == wanted:
            return name
        if suffix_match is None and normalized.endswith("/" + wanted):
            suffix_match = name
    return suffix_match


def _copy_stream(src: IO[bytes], out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("wb") as fh:
        shutil.copyfileobj(src, fh)


def _extract_from_zip(archive: Path, member: str, out_path: Path) -> None:
    with zipfile.ZipFile(archive) as zf:
        names = [info.filename for info in zf.infolist() if not info.is_dir()]
        found = match_member(names, member)
        if found is None:
            raise ArchiveMemberNotFoundError(str(archive), member)
        with zf.open(found) as src:
            _copy_stream(src, out_path)


def _extract_from_tar(archive: Path, member: str, out_path: Path) -> None:
    with tarfile.open(archive, mode="r:*") as tf:
        by_name = {info.name: info for info in tf.getmembers() if info.isfile()}
        found = match_member(by_name, member)
        if found is None:
            raise ArchiveMemberNotFoundError(str(archive), member)
        src = tf.extractfile(by_name[found])
        if src is None:
            raise ArchiveMemberNotFoundError(str(archive), member)
        with src:
            _copy_stream(src, out_path)


def extract_member(archive: Path, member: str, out_path: Path) -> Path:
    """Extract `member` of `archive` into `out_path` and return `out_path`."""

    try:
        if zipfile.is_zipfile(archive):
            _extract_from_zip(archive, member, out_path)
        else:
            _extract_from_tar(archive, member, out_path)
    except (tarfile.TarError, zipfile.BadZipFile) as exc:
        raise DownloadError(f"cannot extract {member!r} from {archive}: {exc}") from exc
    return out_path
