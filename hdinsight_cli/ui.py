"""Colorized console output for hdinsight-cli.

Thin wrapper around :mod:`rich` that degrades gracefully when stdout
is not a TTY (e.g. piped, CI, cron).  All user-facing status messages
should flow through this module; ``logger.*`` calls are kept for
structured logging.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

# Shared console; force_terminal=None lets Rich detect a TTY.
console = Console(stderr=False, force_terminal=None)

# ── Symbols ────────────────────────────────────────────────────────────────

_ARROW = "[bold cyan]›[/]"
_DOT = "[dim]·[/]"

_MASK = "****"

_STATE_STYLES = {
    "Operational": "green",
    "Running": "green",
    "Error": "red",
    "Requested": "yellow",
    "Registering": "yellow",
}

# ── Status lines ───────────────────────────────────────────────────────────


def step(msg: str) -> None:
    """Cyan arrow + action message (in-progress)."""
    console.print(f"  {_ARROW} {msg}")


def info(msg: str) -> None:
    """Dim dot + informational message."""
    console.print(f"  {_DOT} [dim]{msg}[/]")


# ── Prompts ────────────────────────────────────────────────────────────────


def prompt(label: str, secret: bool = False) -> str:
    """Ask for a value on the console."""
    return Prompt.ask(f"  {_ARROW} {label}", password=secret, console=console)


# ── Entities ───────────────────────────────────────────────────────────────


def _state_markup(state: str) -> str:
    style = _STATE_STYLES.get(state)
    return f"[{style}]{state}[/]" if style else state


def cluster_panel(cluster: Any, *, title: str = "Cluster", failed: bool = False) -> None:
    """Bordered panel with every populated field of a cluster."""
    rows = [
        ("Name", cluster.name),
        ("Location", cluster.location),
        ("State", _state_markup(cluster.state.value)),
        ("Error", cluster.error),
        ("Created", cluster.created_date),
        ("Nodes", cluster.node_count),
        ("Connection URL", cluster.connection_url),
        ("User", cluster.user_name),
        ("Version", cluster.version),
    ]
    body = "\n".join(f"[bold]{k}[/]: {v}" for k, v in rows if v not in (None, ""))
    style = "red" if failed else "green"
    console.print()
    console.print(
        Panel(
            body,
            title=f"[bold {style}]{title}[/]",
            border_style=style,
            padding=(1, 2),
        )
    )


def cluster_table(clusters: Iterable[Any]) -> None:
    """One row per cluster: name, location, state."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Location")
    table.add_column("State")
    count = 0
    for cluster in clusters:
        table.add_row(cluster.name, cluster.location, _state_markup(cluster.state.value))
        count += 1
    if count == 0:
        info("No clusters found.")
        return
    console.print(table)


def _masked(data: Dict[str, Any], secrets: Iterable[str]) -> Dict[str, Any]:
    secret_keys = set(secrets)
    out: Dict[str, Any] = {}
    for key, value in data.items():
        if key in secret_keys and value:
            out[key] = _MASK
        elif isinstance(value, dict):
            out[key] = _masked(value, secret_keys)
        elif isinstance(value, list):
            out[key] = [
                _masked(v, secret_keys) if isinstance(v, dict) else v for v in value
            ]
        else:
            out[key] = value
    return out


def config_panel(path: str, document: Dict[str, Any]) -> None:
    """Config file contents with keys and passwords masked."""
    shown = _masked(document, ("storageAccountKey", "password", "key"))
    lines = []
    for key in sorted(shown):
        value = shown[key]
        if isinstance(value, list):
            lines.append(f"[bold]{key}[/]:")
            lines.extend(f"  - {item}" for item in value)
        elif isinstance(value, dict):
            lines.append(f"[bold]{key}[/]:")
            lines.extend(f"  {k}: {v}" for k, v in sorted(value.items()))
        else:
            lines.append(f"[bold]{key}[/]: {value}")
    console.print()
    console.print(
        Panel("\n".join(lines), title=f"[bold]{path}[/]", border_style="blue", padding=(1, 2))
    )

