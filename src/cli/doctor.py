"""Doctor command for environment diagnostics."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import cryptography
import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_client
from cli.ui_components import build_settings_table
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        with build_client(settings) as client:
            response = client.head(url)
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc)


def _check_writable(path: Path) -> tuple[bool, str]:
    """Create and delete a probe file to prove `path` is writable."""

    try:
        path.mkdir(parents=True, exist_ok=True)
        fd, probe = tempfile.mkstemp(prefix=".doctor-", dir=path)
        os.close(fd)
        os.unlink(probe)
        return True, str(path)
    except OSError as exc:
        return False, str(exc)


@app.command()
def run(
    url: str = typer.Option("https://github.com", help="URL used for the connectivity check."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    _console.print(build_settings_table(settings))

    table = Table(title="dualrun Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    ok_cache, detail_cache = _check_writable(settings.cache_dir)
    table.add_row("Cache dir", "OK" if ok_cache else "FAIL", detail_cache)

    ok_bin, detail_bin = _check_writable(settings.workdir / "bin")
    table.add_row("Bin dir", "OK" if ok_bin else "FAIL", detail_bin)

    ok_http, detail_http = _check_http(url, settings)
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    table.add_row("cryptography", "OK", cryptography.__version__)

    _console.print(table)

    if not ok_http:
        _console.print(
            "\n[yellow]Note:[/yellow] Downloads already in the cache keep working offline."
        )


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores defaults in the user config .env)."""

    settings = AppSettings()
    cache_dir = typer.prompt("Cache directory", default=str(settings.cache_dir), show_default=True).strip()
    workdir = typer.prompt("Work directory", default=str(settings.workdir), show_default=True).strip()
    quiet = typer.confirm("Quiet downloads (no progress bars)?", default=settings.quiet_pull)

    if not cache_dir or not workdir:
        raise typer.BadParameter("cache directory and work directory are required")

    env_path = write_user_env_vars(
        {
            "DUALRUN_CACHE_DIR": cache_dir,
            "DUALRUN_WORKDIR": workdir,
            "DUALRUN_QUIET_PULL": "true" if quiet else "false",
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
