from pathlib import Path

import pytest
from pydantic import ValidationError

from core.domain.models import OperationKind, OperationRequest, Plan, SourceDescriptor


class TestSourceDescriptor:
    def test_archive_source_splits_on_hash(self):
        descriptor = SourceDescriptor.parse("http://h/a.tgz#bin/tool")
        assert descriptor.url == "http://h/a.tgz"
        assert descriptor.member == "bin/tool"
        assert descriptor.is_archive

    def test_plain_source(self):
        descriptor = SourceDescriptor.parse("http://h/plain")
        assert descriptor.url == "http://h/plain"
        assert descriptor.member is None
        assert not descriptor.is_archive

    def test_only_first_hash_splits(self):
        descriptor = SourceDescriptor.parse("http://h/a.tgz#dir#1/tool")
        assert descriptor.url == "http://h/a.tgz"
        assert descriptor.member == "dir#1/tool"

    def test_empty_source_is_not_rejected(self):
        assert SourceDescriptor.parse("").url == ""

    def test_str_round_trip(self):
        assert str(SourceDescriptor.parse("u#m")) == "u#m"
        assert str(SourceDescriptor.parse("u")) == "u"


class TestOperationRequest:
    def test_write_requires_content(self):
        with pytest.raises(ValidationError):
            OperationRequest(kind=OperationKind.WRITE, path=Path("/x"))

    def test_copy_requires_source_path(self):
        with pytest.raises(ValidationError):
            OperationRequest(kind=OperationKind.COPY, path=Path("/x"))

    def test_download_requires_source(self):
        with pytest.raises(ValidationError):
            OperationRequest(kind=OperationKind.DOWNLOAD, path=Path("/x"))

    @pytest.mark.parametrize("raw", ["0750", "750", "0o750"])
    def test_octal_mode_strings(self, raw):
        req = OperationRequest(kind=OperationKind.WRITE, path=Path("/x"), content=b"", mode=raw)
        assert req.mode == 0o750

    def test_is_immutable(self):
        req = OperationRequest(kind=OperationKind.CREATE, path=Path("/x"))
        with pytest.raises(ValidationError):
            req.path = Path("/y")  # type: ignore[misc]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            OperationRequest(kind=OperationKind.CREATE, path=Path("/x"), color="red")

    def test_descriptor(self):
        req = OperationRequest(kind=OperationKind.DOWNLOAD, path=Path("/d"), source="s#m")
        assert req.descriptor == SourceDescriptor(url="s", member="m")


def test_plan_from_json():
    plan = Plan.model_validate_json(
        '{"operations": ['
        '{"kind": "mkdir_all", "path": "/srv"},'
        '{"kind": "write", "path": "/srv/a", "content": "hello", "mode": "0600"},'
        '{"kind": "generate_pki", "path": "/srv/pki", "sans": ["a.example", "10.0.0.1"]}'
        "]}"
    )
    assert [op.kind for op in plan.operations] == [
        OperationKind.MKDIR_ALL,
        OperationKind.WRITE,
        OperationKind.GENERATE_PKI,
    ]
    assert plan.operations[1].content == b"hello"
    assert plan.operations[1].mode == 0o600
    assert plan.operations[2].sans == ("a.example", "10.0.0.1")
