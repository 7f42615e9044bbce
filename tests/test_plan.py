import json

import pytest

from adapters.filesystem import LocalFileSystem
from core.domain.errors import PlanError
from core.domain.models import OperationKind
from core.services.plan import load_plan, run_plan


def _write_plan(path, operations):
    path.write_text(json.dumps({"operations": operations}), encoding="utf-8")
    return path


@pytest.fixture
def plan_file(tmp_path):
    root = tmp_path / "srv"
    return _write_plan(
        tmp_path / "plan.json",
        [
            {"kind": "mkdir_all", "path": str(root)},
            {"kind": "write", "path": str(root / "app.conf"), "content": "port = 80", "mode": "0600"},
            {"kind": "append", "path": str(root / "app.conf"), "content": "\nhost = a"},
            {"kind": "copy", "source_path": str(root / "app.conf"), "path": str(root / "app.bak")},
            {"kind": "download", "path": str(root / "bin" / "tool"), "source": "https://h/t.tgz#tool"},
            {"kind": "generate_pki", "path": str(root / "pki"), "sans": ["srv.local"]},
        ],
    )


def test_load_plan(plan_file):
    plan = load_plan(plan_file)
    assert len(plan.operations) == 6
    assert plan.operations[1].mode == 0o600


def test_missing_plan(tmp_path):
    with pytest.raises(PlanError, match="cannot read"):
        load_plan(tmp_path / "nope.json")


def test_invalid_plan(tmp_path):
    path = _write_plan(tmp_path / "plan.json", [{"kind": "write", "path": "/x"}])
    with pytest.raises(PlanError, match="invalid plan"):
        load_plan(path)


def test_simulated_run(plan_file, make_session, transcript, tmp_path, fs, downloader, pki):
    result = run_plan(make_session(simulate=True), load_plan(plan_file))

    root = tmp_path / "srv"
    assert result.simulated is True
    assert [op.kind for op in result.executed][0] is OperationKind.MKDIR_ALL
    assert transcript.lines == [
        f"mkdir -p {root}",
        f"cat <<EOF >{root / 'app.conf'}\nport = 80\nEOF",
        f"chmod 0600 {root / 'app.conf'}",
        f"cat <<EOF >>{root / 'app.conf'}\n\nhost = a\nEOF",
        f"cp {root / 'app.conf'} {root / 'app.bak'}",
        f"# Download https://h/t.tgz and extract tool to {root / 'bin' / 'tool'}",
        f"# Generate PKI to {root / 'pki'}",
    ]
    assert not root.exists()
    assert fs.calls == downloader.calls == pki.calls == []


def test_applied_run_uses_config_for_downloads(plan_file, make_session, downloader, pki, settings, tmp_path):
    run_plan(make_session(filesystem=LocalFileSystem()), load_plan(plan_file))

    root = tmp_path / "srv"
    assert (root / "app.bak").read_text() == "port = 80\nhost = a"
    (call,) = downloader.calls
    assert call["cache_dir"] == settings.cache_dir
    assert call["mode"] == 0o750
    assert call["member"] == "tool"
    assert pki.calls == [(root / "pki", ("srv.local",))]


def test_first_error_stops_the_run(tmp_path, make_session, fs):
    path = _write_plan(
        tmp_path / "plan.json",
        [
            {"kind": "remove", "path": "/a"},
            {"kind": "remove", "path": "/b"},
        ],
    )
    fs.error = PermissionError("denied")
    steps = []
    with pytest.raises(PermissionError):
        run_plan(make_session(), load_plan(path), on_step=lambda i, req: steps.append(i))
    assert steps == [0]
    assert len(fs.calls) == 1
