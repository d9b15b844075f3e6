"""Workspace configuration and module discovery.

Settings live in an ``msync.toml`` at the workspace root:

    [msync]
    modules = ["code/*", "libs/*"]
    ignore = ["legacy-lib"]
    install-root = "node_modules"
    exclude = [".cache"]

Uses tomlkit so the file can later be edited without losing comments.
"""

from __future__ import annotations

import glob
import json
from collections.abc import Iterable, Mapping
from pathlib import Path

import tomlkit
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError, DependencyCycleError
from .graph import topo_sort
from .manifest import MANIFEST, load_manifest, load_out_dir
from .models import Module
from .sync import EXCLUDE, INSTALL_ROOT

CONFIG_FILE = "msync.toml"


class Settings(BaseModel):
    """Loaded workspace settings.

    Attributes:
        root: Workspace root directory.
        module_globs: Glob patterns (relative to root) of module directories.
        ignore: Names of modules flagged as ignored.
        install_root: Directory inside a module that dependencies install to.
        exclude: Names never mirrored by a sync.
        modules: Discovered modules, dependencies first.
    """

    root: Path
    module_globs: list[str]
    ignore: list[str] = Field(default_factory=list)
    install_root: str = INSTALL_ROOT
    exclude: list[str] = Field(default_factory=lambda: list(EXCLUDE))
    modules: list[Module] = Field(default_factory=list)

    def module(self, name: str) -> Module | None:
        return next((m for m in self.modules if m.name == name), None)


def load_config(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse an msync.toml file."""
    return tomlkit.parse(path.read_text())


def get_module_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract [msync].modules glob patterns.

    Raises:
        ConfigError: If no module patterns are defined.
    """
    globs = doc.get("msync", {}).get("modules")
    if not globs:
        raise ConfigError(f"No [msync] modules defined in {CONFIG_FILE}")
    return [str(g) for g in globs]


def load_settings(
    root: Path | None = None, latest: Mapping[str, str] | None = None
) -> Settings | None:
    """Read msync.toml from root and discover the workspace's modules.

    Args:
        root: Workspace root, defaults to the current directory.
        latest: Optional module name → published version, used as the
                version to bump from.

    Returns:
        Settings, or None when root has no msync.toml.

    Raises:
        ConfigError: If the file has no module patterns.
    """
    root = Path(root or Path.cwd()).resolve()
    path = root / CONFIG_FILE
    if not path.exists():
        return None

    doc = load_config(path)
    table = doc.get("msync", {})
    globs = get_module_globs(doc)
    ignore = [str(n) for n in table.get("ignore", [])]
    exclude = list(EXCLUDE) + [str(p) for p in table.get("exclude", []) if p not in EXCLUDE]

    return Settings(
        root=root,
        module_globs=globs,
        ignore=ignore,
        install_root=str(table.get("install-root", INSTALL_ROOT)),
        exclude=exclude,
        modules=discover_modules(root, globs, ignore, latest),
    )


def discover_modules(
    root: Path,
    globs: Iterable[str],
    ignore: Iterable[str] = (),
    latest: Mapping[str, str] | None = None,
) -> list[Module]:
    """Find every module directory matching the glob patterns.

    A directory is a module if it contains a package.json. Modules are
    returned dependencies first; if the graph has a cycle they are sorted
    by name instead, so the caller can still list them and report it.
    """
    ignored = set(ignore)
    latest = latest or {}

    # Expand globs to find all module directories
    module_dirs: list[Path] = []
    for pattern in globs:
        for match in sorted(glob.glob(str(Path(root) / pattern))):
            p = Path(match)
            if (p / MANIFEST).exists() and p not in module_dirs:
                module_dirs.append(p)

    modules: dict[str, Module] = {}
    for d in module_dirs:
        try:
            manifest = load_manifest(d)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ConfigError(f"Invalid {MANIFEST} in {d}: {exc}") from exc
        name = manifest.name or d.name
        if name in modules:
            raise ConfigError(f"Duplicate module name {name!r} in {d} and {modules[name].dir}")
        modules[name] = Module(
            name=name,
            dir=d.resolve(),
            version=manifest.version,
            latest=latest.get(name),
            manifest=manifest,
            ignored=name in ignored,
            out_dir=load_out_dir(d.resolve()),
        )

    try:
        order = topo_sort(list(modules.values()))
    except DependencyCycleError:
        order = sorted(modules)
    return [modules[name] for name in order]


def include_ignored(modules: Iterable[Module], include: bool) -> list[Module]:
    """Drop ignored modules unless include is True."""
    return [m for m in modules if include or not m.ignored]
