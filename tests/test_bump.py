"""Tests for msync.bump."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from conftest import make_module, read_package

from msync.bump import bump
from msync.errors import DependencyCycleError, WriteError
from msync.models import Module
from msync.versions import range_matches


def rows(table) -> list[tuple[str, str, str, str, str]]:
    return [(r.release, r.module, r.version, r.ref.name, r.ref.version) for r in table]


class TestBumpScenarios:
    def test_single_dependent(self) -> None:
        a = make_module("a")
        b = make_module("b", deps={"a": "^1.0.0"})

        table = bump(a, "minor", [a, b], persist=False)

        assert table.status is not None
        assert (table.status.release, table.status.module, table.status.version) == (
            "minor",
            "a",
            "1.1.0",
        )
        assert rows(table) == [("patch", "b", "1.0.1", "a", "1.1.0")]
        assert range_matches(b.dependency_ranges["a"], "1.1.0")
        assert b.dependency_ranges["a"] == "^1.1.0"

    def test_root_is_reported_as_status_not_row(self) -> None:
        a = make_module("a")
        b = make_module("b", deps={"a": "^1.0.0"})
        table = bump(a, "patch", [a, b], persist=False)
        assert table.status.module == "a"
        assert "a" not in [r.module for r in table]

    def test_no_dependents(self) -> None:
        a = make_module("a", "2.4.1")
        table = bump(a, "major", [a], persist=False)
        assert table.status_line() == "MAJOR update a to version 3.0.0"
        assert len(table) == 0

    def test_dependents_always_get_patch(self) -> None:
        a = make_module("a")
        b = make_module("b", "3.2.1", deps={"a": "^1.0.0"})
        table = bump(a, "major", [a, b], persist=False)
        assert rows(table) == [("patch", "b", "3.2.2", "a", "2.0.0")]

    def test_transitive_cascade_is_preorder(self) -> None:
        a = make_module("a")
        b = make_module("b", deps={"a": "^1.0.0"})
        c = make_module("c", "2.0.0", deps={"b": "^1.0.0"})
        d = make_module("d", deps={"a": "^1.0.0"})

        table = bump(a, "minor", [a, b, d, c], persist=False)

        # b and its dependent c finish before sibling d starts
        assert rows(table) == [
            ("patch", "b", "1.0.1", "a", "1.1.0"),
            ("patch", "c", "2.0.1", "b", "1.0.1"),
            ("patch", "d", "1.0.1", "a", "1.1.0"),
        ]
        assert c.dependency_ranges["b"] == "^1.0.1"
        assert d.dependency_ranges["a"] == "^1.1.0"

    def test_diamond_visits_shared_dependent_once_per_path(self) -> None:
        bottom = make_module("bottom")
        left = make_module("left", deps={"bottom": "1.0.0"})
        right = make_module("right", deps={"bottom": "1.0.0"})
        top = make_module("top", deps={"left": "1.0.0", "right": "1.0.0"})

        table = bump(bottom, "patch", [bottom, left, right, top], persist=False)

        assert [r.module for r in table] == ["left", "top", "right", "top"]
        assert top.dependency_ranges == {"left": "1.0.1", "right": "1.0.1"}

    def test_bumps_from_latest(self) -> None:
        a = make_module("a", "1.0.0")
        a.latest = "1.4.0"
        table = bump(a, "minor", [a], persist=False)
        assert table.status.version == "1.5.0"
        assert a.manifest.version == "1.5.0"

    def test_root_not_in_snapshot(self) -> None:
        a = make_module("a")
        b = make_module("b", deps={"a": "^1.0.0"})
        table = bump(a, "patch", [b], persist=False)
        assert [r.module for r in table] == ["b"]

    def test_strict_range_is_widened_to_new_version(self) -> None:
        a = make_module("a")
        b = make_module("b", deps={"a": ">1.0.0"})
        bump(a, "minor", [a, b], persist=False)
        assert b.dependency_ranges["a"] == ">=1.1.0"
        assert range_matches(b.dependency_ranges["a"], "1.1.0")

    def test_configurable_dependent_release(self) -> None:
        a = make_module("a")
        b = make_module("b", deps={"a": "^1.0.0"})
        table = bump(a, "major", [a, b], persist=False, dependent_release="minor")
        assert rows(table) == [("minor", "b", "1.1.0", "a", "2.0.0")]

    def test_unknown_release_type(self) -> None:
        a = make_module("a")
        with pytest.raises(ValueError):
            bump(a, "huge", [a], persist=False)  # type: ignore[arg-type]


class TestBumpProperties:
    def test_every_dependent_gets_patch_row_and_new_range(self) -> None:
        for release in ("major", "minor", "patch"):
            a = make_module("a")
            dependents = [make_module(n, deps={"a": "~1.0.0"}) for n in ("b", "c", "d")]
            table = bump(a, release, [a, *dependents], persist=False)
            new_version = table.status.version
            for dep in dependents:
                row = next(r for r in table if r.module == dep.name)
                assert row.release == "patch"
                assert row.ref.version == new_version
                assert range_matches(dep.dependency_ranges["a"], new_version)

    def test_dry_runs_are_deterministic(self) -> None:
        a = make_module("a")
        b = make_module("b", deps={"a": "^1.0.0"})
        c = make_module("c", deps={"b": "^1.0.0", "a": "^1.0.0"})
        modules = [a, b, c]

        first = bump(a, "minor", modules, persist=False)
        second = bump(a, "minor", modules, persist=False)

        assert first.status == second.status
        assert first.rows == second.rows

    def test_dry_run_never_writes(
        self, workspace: Callable[..., Module], tmp_path: Path
    ) -> None:
        a = workspace("a")
        b = workspace("b", deps={"a": "^1.0.0"})
        c = workspace("c", deps={"b": "^1.0.0"})
        before = {m.name: (m.dir / "package.json").read_text() for m in (a, b, c)}

        bump(a, "major", [a, b, c], persist=False)

        after = {m.name: (m.dir / "package.json").read_text() for m in (a, b, c)}
        assert after == before

    def test_persist_writes_versions_and_ranges(
        self, workspace: Callable[..., Module]
    ) -> None:
        a = workspace("a")
        b = workspace("b", deps={"a": "^1.0.0"})
        c = workspace("c", "0.3.0", deps={"b": "~1.0.0"})

        bump(a, "minor", [a, b, c], persist=True)

        assert read_package(a.dir)["version"] == "1.1.0"
        assert read_package(b.dir) == {
            "name": "b",
            "version": "1.0.1",
            "dependencies": {"a": "^1.1.0"},
        }
        assert read_package(c.dir) == {
            "name": "c",
            "version": "0.3.1",
            "dependencies": {"b": "~1.0.1"},
        }

    def test_persist_uses_injected_collaborators(self) -> None:
        a = make_module("a")
        b = make_module("b", deps={"a": "^1.0.0"})
        save = MagicMock()
        update_ref = MagicMock(return_value=True)

        bump(a, "patch", [a, b], persist=True, save=save, update_ref=update_ref)

        assert [c.args[0] for c in save.call_args_list] == [a.dir, b.dir]
        update_ref.assert_called_once_with(b, "a", "1.0.1", save=True)


class TestBumpFailures:
    def test_write_failure_stops_cascade_without_rollback(
        self, workspace: Callable[..., Module]
    ) -> None:
        a = workspace("a")
        b = workspace("b", deps={"a": "^1.0.0"})
        c = workspace("c", deps={"b": "^1.0.0"})
        d = workspace("d", deps={"a": "^1.0.0"})
        # c's directory disappears, so its write fails mid-cascade
        (c.dir / "package.json").unlink()
        c.dir.rmdir()

        with pytest.raises(WriteError) as info:
            bump(a, "minor", [a, b, c, d], persist=True)

        # a and b were written and stay written; d was never reached
        assert read_package(a.dir)["version"] == "1.1.0"
        assert read_package(b.dir)["version"] == "1.0.1"
        assert read_package(d.dir)["version"] == "1.0.0"
        assert info.value.table is not None
        assert [r.module for r in info.value.table] == ["b"]

    def test_cycle_fails_fast_without_changes(self) -> None:
        a = make_module("a", deps={"b": "^1.0.0"})
        b = make_module("b", deps={"a": "^1.0.0"})
        save = MagicMock()

        with pytest.raises(DependencyCycleError) as info:
            bump(a, "minor", [a, b], persist=True, save=save)

        assert info.value.cycle == ["a", "b", "a"]
        save.assert_not_called()
        assert a.manifest.version == "1.0.0"
        assert b.dependency_ranges == {"a": "^1.0.0"}

    def test_unrelated_cycle_does_not_block(self) -> None:
        a = make_module("a")
        b = make_module("b", deps={"a": "^1.0.0"})
        x = make_module("x", deps={"y": "^1.0.0"})
        y = make_module("y", deps={"x": "^1.0.0"})
        table = bump(a, "patch", [a, b, x, y], persist=False)
        assert [r.module for r in table] == ["b"]
