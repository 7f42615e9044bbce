"""Transcript rendering for simulated operations.

One rule per `OperationKind`. Every rule is a pure function of the request,
so identical requests always render identical lines, and every parameter
that changes the real outcome (content, mode, member) shows up in the text.

Heredoc rules:
- Delimiter is `EOF`; if some content line equals it, `EOF_1`, `EOF_2`, ...
  are tried until one is free.
- Content that is not UTF-8 is rendered through `base64 -d`.

The transcript describes the run; it is not a byte-exact replay script. The
heredoc delimiter is unquoted, so a shell replaying it expands `$VAR`,
backticks and `\\` in the content and appends a trailing newline. Only the
`base64 -d` form reproduces the payload exactly.
"""

from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import Callable

from core.domain.models import OperationKind, OperationRequest
from core.interfaces.collaborators import TranscriptSink


def _delimiter_for(text: str) -> str:
    lines = set(text.split("\n"))
    delimiter = "EOF"
    n = 0
    while delimiter in lines:
        n += 1
        delimiter = f"EOF_{n}"
    return delimiter


def _heredoc(path: Path | None, content: bytes, redirect: str) -> list[str]:
    try:
        text = content.decode("utf-8")
        command = "cat"
    except UnicodeDecodeError:
        text = base64.b64encode(content).decode("ascii")
        command = "base64 -d"
    delimiter = _delimiter_for(text)
    return [f"{command} <<{delimiter} {redirect}{path}\n{text}\n{delimiter}"]


def _render_create(req: OperationRequest) -> list[str]:
    return [f"touch {req.path}"]


def _render_copy(req: OperationRequest) -> list[str]:
    return [f"cp {req.source_path} {req.path}"]


def _render_rename(req: OperationRequest) -> list[str]:
    return [f"mv {req.source_path} {req.path}"]


def _render_append(req: OperationRequest) -> list[str]:
    return _heredoc(req.path, req.content or b"", ">>")


def _render_remove(req: OperationRequest) -> list[str]:
    return [f"rm {req.path}"]


def _render_remove_all(req: OperationRequest) -> list[str]:
    return [f"rm -rf {req.path}"]


def _render_write(req: OperationRequest) -> list[str]:
    lines = _heredoc(req.path, req.content or b"", ">")
    if req.mode is not None:
        lines.append(f"chmod 0{req.mode:03o} {req.path}")
    return lines


def _render_mkdir_all(req: OperationRequest) -> list[str]:
    return [f"mkdir -p {req.path}"]


def _render_download(req: OperationRequest) -> list[str]:
    descriptor = req.descriptor
    if descriptor is not None and descriptor.is_archive:
        return [f"# Download {descriptor.url} and extract {descriptor.member} to {req.path}"]
    return [f"# Download {req.source} to {req.path}"]


def _render_generate_pki(req: OperationRequest) -> list[str]:
    return [f"# Generate PKI to {req.path}"]


_RULES: dict[OperationKind, Callable[[OperationRequest], list[str]]] = {
    OperationKind.CREATE: _render_create,
    OperationKind.COPY: _render_copy,
    OperationKind.RENAME: _render_rename,
    OperationKind.APPEND: _render_append,
    OperationKind.REMOVE: _render_remove,
    OperationKind.REMOVE_ALL: _render_remove_all,
    OperationKind.WRITE: _render_write,
    OperationKind.MKDIR_ALL: _render_mkdir_all,
    OperationKind.DOWNLOAD: _render_download,
    OperationKind.GENERATE_PKI: _render_generate_pki,
}


def render(request: OperationRequest) -> list[str]:
    """Render `request` as shell-like transcript lines."""

    return _RULES[request.kind](request)


class CatToFileWriter(io.RawIOBase):
    """Writable stream returned by `open_file` while simulating.

    Buffers everything written and, on the first `close()`, emits the same
    transcript a single `write_file(name, buffered)` would. Later closes are
    no-ops.
    """

    def __init__(self, name: Path, sink: TranscriptSink) -> None:
        super().__init__()
        self.name = name
        self._sink = sink
        self._buffer = bytearray()

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:  # type: ignore[override]
        if self.closed:
            raise ValueError("write to closed file")
        data = bytes(b)
        self._buffer.extend(data)
        return len(data)

    def close(self) -> None:
        if self.closed:
            return
        try:
            request = OperationRequest(kind=OperationKind.WRITE, path=self.name, content=bytes(self._buffer))
            for line in render(request):
                self._sink.emit(line)
        finally:
            super().close()
