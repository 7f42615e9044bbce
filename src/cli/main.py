"""dualrun CLI (Typer).

Every command goes through one `Session`. With `--dry-run` the commands
print a shell-like transcript on stdout instead of touching the host;
diagnostics and errors go to stderr.
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from adapters.transcript_sinks import ConsoleTranscript, FileTranscript, TeeTranscript
from cli import doctor
from cli.ui_components import build_plan_table, print_banner
from core.config import AppSettings
from core.domain.errors import DualrunError
from core.domain.models import DEFAULT_BINARY_MODE
from core.interfaces.collaborators import TranscriptSink
from core.log import configure_logging
from core.services.plan import load_plan, run_plan
from core.services.session import Session

app = typer.Typer(
    no_args_is_help=True,
    help="Provisioning operations that can be applied for real or simulated as a transcript.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console(stderr=True)

_STREAM_CHUNK = 64 * 1024


@contextmanager
def _reported_errors() -> Iterator[None]:
    try:
        yield
    except (DualrunError, OSError, ValidationError) as exc:
        _console.print(f"[red]Error:[/red] {exc}", markup=True, highlight=False)
        raise typer.Exit(code=1) from exc


def _parse_mode(value: str) -> int:
    try:
        return int(value.strip().lower().removeprefix("0o"), 8)
    except ValueError as exc:
        raise typer.BadParameter(f"not an octal mode: {value!r}") from exc


def _session(ctx: typer.Context) -> Session:
    return ctx.obj


@app.callback()
def main(
    ctx: typer.Context,
    dry_run: Optional[bool] = typer.Option(
        None,
        "--dry-run/--apply",
        help="Simulate and print a transcript instead of touching the host.",
    ),
    allow_real_download: Optional[bool] = typer.Option(
        None,
        "--allow-real-download/--no-allow-real-download",
        help="Download artifacts for real even with --dry-run.",
    ),
    transcript_out: Optional[Path] = typer.Option(
        None,
        "--transcript-out",
        help="Also append the transcript to this file.",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="No banner, no progress bars."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
) -> None:
    with _reported_errors():
        settings = AppSettings()

    updates: dict[str, object] = {}
    if dry_run is not None:
        updates["dry_run"] = dry_run
    if allow_real_download is not None:
        updates["allow_real_download"] = allow_real_download
    if quiet:
        updates["quiet_pull"] = True
    if updates:
        settings = settings.model_copy(update=updates)

    configure_logging("DEBUG" if verbose else settings.log_level)

    sinks: list[TranscriptSink] = [ConsoleTranscript()]
    if transcript_out is not None:
        sinks.append(FileTranscript(transcript_out))

    session = Session.from_settings(settings, transcript=TeeTranscript(sinks))
    if not quiet and ctx.invoked_subcommand not in (None, "doctor"):
        print_banner(_console, session.mode)
    ctx.obj = session


@app.command()
def touch(ctx: typer.Context, path: Path) -> None:
    """Create an empty file."""

    with _reported_errors():
        _session(ctx).create_file(path)


@app.command()
def cp(ctx: typer.Context, oldpath: Path, newpath: Path) -> None:
    """Copy a file."""

    with _reported_errors():
        _session(ctx).copy_file(oldpath, newpath)


@app.command()
def mv(ctx: typer.Context, oldpath: Path, newpath: Path) -> None:
    """Rename a file."""

    with _reported_errors():
        _session(ctx).rename_file(oldpath, newpath)


@app.command()
def append(
    ctx: typer.Context,
    path: Path,
    content: str = typer.Option(..., "--content", "-c", help="Text to append."),
) -> None:
    """Append text to a file."""

    with _reported_errors():
        _session(ctx).append_to_file(path, content.encode("utf-8"))


@app.command()
def rm(
    ctx: typer.Context,
    path: Path,
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Remove a directory tree."),
) -> None:
    """Remove a file (or a directory tree with -r)."""

    session = _session(ctx)
    with _reported_errors():
        if recursive:
            session.remove_all(path)
        else:
            session.remove(path)


@app.command()
def mkdir(ctx: typer.Context, path: Path) -> None:
    """Create a directory and its parents."""

    with _reported_errors():
        _session(ctx).mkdir_all(path)


@app.command()
def write(
    ctx: typer.Context,
    path: Path,
    content: Optional[str] = typer.Option(
        None,
        "--content",
        "-c",
        help="Text to write (default: read stdin).",
    ),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="Octal permission bits, e.g. 0640."),
) -> None:
    """Write a file from --content or from stdin."""

    session = _session(ctx)
    mode_bits = _parse_mode(mode) if mode is not None else None
    with _reported_errors():
        if content is None and mode_bits is None:
            with session.open_file(path) as fh:
                stdin = sys.stdin.buffer
                while chunk := stdin.read(_STREAM_CHUNK):
                    fh.write(chunk)
            return

        data = content.encode("utf-8") if content is not None else sys.stdin.buffer.read()
        if mode_bits is None:
            session.write_file(path, data)
        else:
            session.write_file_with_mode(path, data, mode_bits)


@app.command()
def download(
    ctx: typer.Context,
    src: str = typer.Argument(..., help="SOURCE or SOURCE#MEMBER (extract MEMBER from the archive)."),
    dest: Path = typer.Argument(...),
    mode: str = typer.Option(f"0{DEFAULT_BINARY_MODE:o}", "--mode", "-m", help="Octal permission bits."),
) -> None:
    """Download (through the cache) to DEST."""

    session = _session(ctx)
    mode_bits = _parse_mode(mode)
    with _reported_errors():
        conf = session.config()
        session.download_with_cache(conf.cache_dir, src, dest, mode_bits, conf.quiet_pull)


@app.command(name="ensure-binary")
def ensure_binary(
    ctx: typer.Context,
    name: str,
    source: str = typer.Argument(..., help="SOURCE or SOURCE#MEMBER of the binary."),
) -> None:
    """Make sure binary NAME exists in <workdir>/bin and print its path."""

    with _reported_errors():
        path = _session(ctx).ensure_binary(name, source)
    typer.echo(str(path))


@app.command()
def pki(
    ctx: typer.Context,
    path: Path,
    san: list[str] = typer.Option([], "--san", help="Subject alternative name (repeatable)."),
) -> None:
    """Generate a CA and an admin certificate under PATH."""

    with _reported_errors():
        _session(ctx).generate_pki(path, *san)


@app.command(name="run")
def run_plan_command(ctx: typer.Context, plan_path: Path = typer.Argument(..., metavar="PLAN")) -> None:
    """Run every operation of a JSON plan file, in order."""

    session = _session(ctx)
    with _reported_errors():
        plan = load_plan(plan_path)
        result = run_plan(session, plan)
    _console.print(build_plan_table(result))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
