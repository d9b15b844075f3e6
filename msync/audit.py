"""Audit trail for a bump cascade.

Collects one row per propagated change, in the order the cascade visited
modules, and renders them as a table.
"""

from __future__ import annotations

from collections.abc import Iterator

from rich.console import Console
from rich.table import Table

from .models import AuditRow, RootStatus

COLUMNS = ("update", "module", "version", "ref updated")


class AuditTable:
    """Append-only list of audit rows plus the root status line."""

    def __init__(self) -> None:
        self.status: RootStatus | None = None
        self._rows: list[AuditRow] = []

    def add(self, row: AuditRow) -> None:
        self._rows.append(row)

    @property
    def rows(self) -> tuple[AuditRow, ...]:
        return tuple(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[AuditRow]:
        return iter(self._rows)

    def status_line(self) -> str:
        """Describe the root change, e.g. "MINOR update a to version 1.1.0"."""
        if self.status is None:
            return ""
        s = self.status
        return f"{s.release.upper()} update {s.module} to version {s.version}"

    def render(self) -> Table:
        """Build a rich Table with one line per row, in insertion order."""
        table = Table(*COLUMNS)
        for row in self._rows:
            table.add_row(
                f"[cyan]{row.release.upper()}[/cyan]",
                f"[magenta]{row.module}[/magenta]",
                f"[magenta]{row.version}[/magenta]",
                f"[yellow]{row.ref.name} ({row.ref.version})[/yellow]",
            )
        return table

    def print(self, console: Console | None = None) -> None:
        """Print the status line, then the table if any dependents changed."""
        console = console or Console()
        if self.status is not None:
            console.print(f"  [cyan]{self.status_line()}[/cyan]")
        if self._rows:
            console.print("\n[dim]Dependant modules:[/dim]")
            console.print(self.render())
