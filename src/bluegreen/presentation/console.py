"""Rich-based console output for deployment outcomes.

:class:`DeploymentConsole` renders outcomes, slot reports and live phase
progress as rich tables and styled lines.  Passing ``use_rich=False`` falls
back to plain ``print()`` output for log collectors that cannot handle ANSI
escapes.
"""

from __future__ import annotations

import sys
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from bluegreen.domain.values import DeploymentOutcome

_COLOR_STYLES = {"blue": "bold blue", "green": "bold green"}


def _color_text(label: str) -> Text:
    return Text(label, style=_COLOR_STYLES.get(label, "bold"))


class DeploymentConsole:
    """Console presentation layer for the CLI.

    Parameters
    ----------
    use_rich:
        Render with rich (default) or plain text.
    file:
        Output stream.  Defaults to ``sys.stdout``.
    """

    def __init__(self, use_rich: bool = True, file: Any = None) -> None:
        self._file = file or sys.stdout
        self._use_rich = use_rich
        self._console = Console(file=self._file, highlight=False) if use_rich else None

    # -- helpers -----------------------------------------------------------

    def _plain_print(self, *args: Any) -> None:
        print(*args, file=self._file)

    # -- public API --------------------------------------------------------

    def print_outcome(self, outcome: DeploymentOutcome) -> None:
        """Print the summary of a successful deployment."""
        if not self._use_rich:
            self._plain_print(
                f"Deployment of {outcome.version} succeeded: "
                f"{outcome.previous_color.value} -> {outcome.active_color.value} "
                f"({outcome.elapsed_seconds:.1f}s)"
            )
            self._plain_print(f"  phases: {' -> '.join(outcome.phases)}")
            return

        table = Table(title="Blue-Green Deployment", show_header=True)
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value")
        table.add_row("Result", Text("success", style="bold green"))
        table.add_row("Version", outcome.version)
        table.add_row("Active color", _color_text(outcome.active_color.value))
        table.add_row("Previous color", _color_text(outcome.previous_color.value))
        table.add_row("Phases", " -> ".join(outcome.phases))
        table.add_row("Elapsed", f"{outcome.elapsed_seconds:.1f}s")
        self._console.print(table)

    def print_failure(self, error: BaseException) -> None:
        """Print the triggering error of a failed deployment."""
        label = type(error).__name__
        if not self._use_rich:
            self._plain_print(f"Deployment failed ({label}): {error}")
            self._plain_print("  rollback attempted; verify the cluster")
            return
        self._console.print(Text(f"Deployment failed ({label}): {error}", style="bold red"))
        self._console.print(
            "  rollback attempted; verify the cluster",
            style="yellow",
        )

    def print_progress(self, record: dict[str, Any]) -> None:
        """Print one progress record from the streamed graph."""
        node = record.get("node", "?")
        if record.get("failed"):
            line = f"  x {node}: {record.get('reason', '')}"
            style = "red"
        else:
            line = f"  > {node}"
            style = "dim"
        if self._use_rich:
            self._console.print(line, style=style)
        else:
            self._plain_print(line)

    def print_status(self, report: dict[str, Any]) -> None:
        """Print the active color and per-slot readiness of an application."""
        active = report["activeColor"]
        ready = report.get("readyReplicas", {})
        if not self._use_rich:
            self._plain_print(f"{report['namespace']}/{report['appName']}: active={active}")
            for slot, count in ready.items():
                self._plain_print(f"  {slot}: {count} ready")
            return

        table = Table(title=f"{report['namespace']}/{report['appName']}", show_header=True)
        table.add_column("Slot", no_wrap=True)
        table.add_column("Ready", justify="right")
        table.add_column("Live traffic")
        for slot, count in ready.items():
            table.add_row(_color_text(slot), str(count), "yes" if slot == active else "")
        self._console.print(table)
