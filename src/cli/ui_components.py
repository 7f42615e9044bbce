"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Tables/panels are reused by several commands (run, doctor).
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import AppSettings
from core.domain.models import OperationRequest
from core.mode import ExecutionMode
from core.services.plan import PlanResult


def print_banner(console: Console, mode: ExecutionMode) -> None:
    """Print the run banner (stderr console, so stdout stays a clean transcript)."""

    title = Text("dualrun", style="bold cyan")
    if mode.is_simulating():
        label = "simulate (dry-run)"
        if mode.allow_real_download:
            label += " • real downloads"
        subtitle = Text(label, style="yellow")
    else:
        subtitle = Text("apply", style="green")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(0, 4)))


def describe_request(request: OperationRequest) -> str:
    if request.source_path is not None:
        return f"{request.source_path} -> {request.path}"
    if request.source is not None:
        return f"{request.source} -> {request.path}"
    return str(request.path)


def build_plan_table(result: PlanResult) -> Table:
    """Table of the operations a plan ran."""

    title = "Plan (simulated)" if result.simulated else "Plan (applied)"
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Operation", style="cyan", no_wrap=True)
    table.add_column("Target", style="white")
    table.add_column("Mode", style="magenta")
    for index, request in enumerate(result.executed, start=1):
        mode = f"0{request.mode:o}" if request.mode is not None else ""
        table.add_row(str(index), request.kind.value, describe_request(request), mode)
    return table


def build_settings_table(settings: AppSettings) -> Table:
    table = Table(title="Configuration")
    table.add_column("Setting", style="bright_green", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("cache_dir", str(settings.cache_dir))
    table.add_row("workdir", str(settings.workdir))
    table.add_row("bin_suffix", repr(settings.bin_suffix))
    table.add_row("quiet_pull", str(settings.quiet_pull))
    table.add_row("dry_run", str(settings.dry_run))
    table.add_row("allow_real_download", str(settings.allow_real_download))
    return table
