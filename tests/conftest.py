"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from msync.manifest import load_manifest
from msync.models import Manifest, Module


def write_package(
    module_dir: Path,
    name: str,
    version: str = "1.0.0",
    dependencies: dict[str, str] | None = None,
    **extra: object,
) -> Path:
    """Write a package.json into module_dir and return the directory."""
    module_dir.mkdir(parents=True, exist_ok=True)
    doc: dict[str, object] = {"name": name, "version": version}
    if dependencies is not None:
        doc["dependencies"] = dependencies
    doc.update(extra)
    (module_dir / "package.json").write_text(json.dumps(doc, indent=2) + "\n")
    return module_dir


def read_package(module_dir: Path) -> dict:
    return json.loads((module_dir / "package.json").read_text())


def make_module(
    name: str,
    version: str = "1.0.0",
    deps: dict[str, str] | None = None,
    module_dir: Path | None = None,
) -> Module:
    """Build an in-memory module without touching disk."""
    manifest = Manifest(name=name, version=version, dependencies=deps)
    return Module(
        name=name,
        dir=module_dir or Path("/nonexistent") / name,
        version=version,
        manifest=manifest,
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Callable[..., Module]:
    """Factory that writes a module to disk and loads it back."""

    def _make(name: str, version: str = "1.0.0", deps: dict[str, str] | None = None) -> Module:
        d = write_package(tmp_path / "code" / name, name, version, deps)
        manifest = load_manifest(d)
        return Module(name=name, dir=d, version=version, manifest=manifest)

    return _make


@pytest.fixture
def msync_root(tmp_path: Path) -> Path:
    """A workspace root with msync.toml and three modules: a ← b ← c."""
    (tmp_path / "msync.toml").write_text(
        '[msync]\nmodules = ["code/*"]\nignore = ["old"]\n'
    )
    write_package(tmp_path / "code" / "a", "a", "1.0.0")
    write_package(tmp_path / "code" / "b", "b", "1.0.0", {"a": "^1.0.0"})
    write_package(tmp_path / "code" / "c", "c", "2.3.4", {"b": "~1.0.0", "left-pad": "^1.3.0"})
    write_package(tmp_path / "code" / "old", "old", "0.1.0", {"a": "^1.0.0"})
    return tmp_path
