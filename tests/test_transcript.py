"""Rendering rules and the transcript-sink writer."""

from pathlib import Path

import pytest

from adapters.transcript_sinks import MemoryTranscript
from core.domain.models import OperationKind, OperationRequest
from core.services.transcript import CatToFileWriter, render


def _req(kind, path="/p", **kwargs):
    return OperationRequest(kind=kind, path=Path(path), **kwargs)


@pytest.mark.parametrize(
    "request_,expected",
    [
        (_req(OperationKind.CREATE), ["touch /p"]),
        (_req(OperationKind.COPY, "/new", source_path=Path("/old")), ["cp /old /new"]),
        (_req(OperationKind.RENAME, "/new", source_path=Path("/old")), ["mv /old /new"]),
        (_req(OperationKind.APPEND, content=b"line"), ["cat <<EOF >>/p\nline\nEOF"]),
        (_req(OperationKind.REMOVE), ["rm /p"]),
        (_req(OperationKind.REMOVE_ALL), ["rm -rf /p"]),
        (_req(OperationKind.WRITE, content=b"hello"), ["cat <<EOF >/p\nhello\nEOF"]),
        (
            _req(OperationKind.WRITE, content=b"hello", mode=0o750),
            ["cat <<EOF >/p\nhello\nEOF", "chmod 0750 /p"],
        ),
        (_req(OperationKind.MKDIR_ALL), ["mkdir -p /p"]),
        (_req(OperationKind.DOWNLOAD, "/d", source="http://h/plain"), ["# Download http://h/plain to /d"]),
        (
            _req(OperationKind.DOWNLOAD, "/d", source="http://h/a.tgz#bin/tool"),
            ["# Download http://h/a.tgz and extract bin/tool to /d"],
        ),
        (_req(OperationKind.GENERATE_PKI, "/pki", sans=("a",)), ["# Generate PKI to /pki"]),
    ],
)
def test_render_forms(request_, expected):
    assert render(request_) == expected


def test_every_kind_has_a_rule():
    samples = {
        OperationKind.CREATE: {},
        OperationKind.WRITE: {"content": b""},
        OperationKind.COPY: {"source_path": Path("/o")},
        OperationKind.RENAME: {"source_path": Path("/o")},
        OperationKind.REMOVE: {},
        OperationKind.REMOVE_ALL: {},
        OperationKind.MKDIR_ALL: {},
        OperationKind.APPEND: {"content": b""},
        OperationKind.DOWNLOAD: {"source": "s"},
        OperationKind.GENERATE_PKI: {},
    }
    assert set(samples) == set(OperationKind)
    for kind, extra in samples.items():
        assert render(_req(kind, **extra))


def test_render_is_deterministic():
    req = _req(OperationKind.WRITE, content=b"x: 1\ny: 2", mode=0o640)
    assert render(req) == render(req)
    assert render(req) == render(_req(OperationKind.WRITE, content=b"x: 1\ny: 2", mode=0o640))


def test_small_modes_keep_three_digits():
    assert render(_req(OperationKind.WRITE, content=b"", mode=0o7))[-1] == "chmod 0007 /p"


def test_delimiter_avoids_content_lines():
    content = b"first\nEOF\nEOF_1\nlast"
    (line,) = render(_req(OperationKind.WRITE, content=content))
    assert line == "cat <<EOF_2 >/p\nfirst\nEOF\nEOF_1\nlast\nEOF_2"


def test_binary_content_is_base64():
    (line,) = render(_req(OperationKind.WRITE, content=b"\xff\x00\xfe"))
    assert line == "base64 -d <<EOF >/p\n/wD+\nEOF"


def test_binary_append_is_base64():
    (line,) = render(_req(OperationKind.APPEND, content=b"\xff"))
    assert line.startswith("base64 -d <<EOF >>/p\n")


class TestCatToFileWriter:
    def test_stream_matches_single_write(self):
        sink = MemoryTranscript()
        writer = CatToFileWriter(Path("/tmp/x"), sink)
        writer.write(b"a")
        writer.write(b"b")
        writer.close()
        assert sink.lines == render(_req(OperationKind.WRITE, "/tmp/x", content=b"ab"))

    def test_close_twice_emits_once(self):
        sink = MemoryTranscript()
        writer = CatToFileWriter(Path("/tmp/x"), sink)
        writer.write(b"ab")
        writer.close()
        writer.close()
        assert len(sink.lines) == 1

    def test_context_manager_after_explicit_close(self):
        sink = MemoryTranscript()
        with CatToFileWriter(Path("/tmp/x"), sink) as writer:
            writer.write(b"data")
            writer.close()
        assert sink.lines == ["cat <<EOF >/tmp/x\ndata\nEOF"]

    def test_nothing_emitted_before_close(self):
        sink = MemoryTranscript()
        writer = CatToFileWriter(Path("/tmp/x"), sink)
        writer.write(b"partial")
        assert sink.lines == []
        writer.close()
        assert sink.lines == ["cat <<EOF >/tmp/x\npartial\nEOF"]

    def test_empty_stream_still_emits(self):
        sink = MemoryTranscript()
        CatToFileWriter(Path("/tmp/x"), sink).close()
        assert sink.lines == ["cat <<EOF >/tmp/x\n\nEOF"]

    def test_write_after_close_fails(self):
        writer = CatToFileWriter(Path("/tmp/x"), MemoryTranscript())
        writer.close()
        with pytest.raises(ValueError):
            writer.write(b"late")

    def test_accepts_memoryview(self):
        sink = MemoryTranscript()
        writer = CatToFileWriter(Path("/tmp/x"), sink)
        assert writer.write(memoryview(b"abc")) == 3
        writer.close()
        assert sink.lines == ["cat <<EOF >/tmp/x\nabc\nEOF"]
