"""Tests for msync.audit."""

from __future__ import annotations

import io

from rich.console import Console

from msync.audit import COLUMNS, AuditTable
from msync.models import AuditRow, ParentRef, RootStatus


def _row(module: str, version: str, ref: str, ref_version: str) -> AuditRow:
    return AuditRow(
        release="patch",
        module=module,
        version=version,
        ref=ParentRef(name=ref, version=ref_version),
    )


def _render(table: AuditTable) -> str:
    out = io.StringIO()
    table.print(Console(file=out, width=120, color_system=None))
    return out.getvalue()


class TestAuditTable:
    def test_keeps_insertion_order_and_duplicates(self) -> None:
        table = AuditTable()
        first = _row("b", "1.0.1", "a", "1.1.0")
        second = _row("c", "1.0.1", "b", "1.0.1")
        table.add(first)
        table.add(second)
        table.add(first)
        assert table.rows == (first, second, first)
        assert len(table) == 3
        assert list(table) == [first, second, first]

    def test_status_line(self) -> None:
        table = AuditTable()
        assert table.status_line() == ""
        table.status = RootStatus(release="minor", module="a", version="1.1.0")
        assert table.status_line() == "MINOR update a to version 1.1.0"

    def test_render_columns(self) -> None:
        table = AuditTable()
        table.add(_row("b", "1.0.1", "a", "1.1.0"))
        rendered = table.render()
        assert tuple(str(c.header) for c in rendered.columns) == COLUMNS
        assert rendered.row_count == 1

    def test_print_shows_status_and_rows(self) -> None:
        table = AuditTable()
        table.status = RootStatus(release="minor", module="a", version="1.1.0")
        table.add(_row("b", "1.0.1", "a", "1.1.0"))

        output = _render(table)

        assert "MINOR update a to version 1.1.0" in output
        assert "Dependant modules:" in output
        assert "PATCH" in output
        assert "a (1.1.0)" in output

    def test_print_without_rows_skips_table(self) -> None:
        table = AuditTable()
        table.status = RootStatus(release="patch", module="a", version="1.0.1")
        output = _render(table)
        assert "PATCH update a to version 1.0.1" in output
        assert "ref updated" not in output
