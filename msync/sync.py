"""Mirror a module into another module's node_modules.

A sync makes ``<target>/node_modules/<source name>/`` an exact copy of the
source module's working tree: new and changed files are copied, files
that no longer exist in the source are deleted, and housekeeping paths
(OS metadata, nested node_modules, temp build dirs) are left alone on
both sides.

Two interchangeable syncers are provided. RsyncSyncer shells out to rsync
for speed; NativeSyncer does the same job in Python when rsync is not
available.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from .errors import SyncError
from .shell import run

INSTALL_ROOT = "node_modules"
EXCLUDE: tuple[str, ...] = (".DS_Store", "node_modules", ".tmp")


class NamedDir(Protocol):
    """Anything with a module name and a working directory."""

    name: str
    dir: Path


class Syncer(Protocol):
    def sync(self, source: Path, dest: Path, exclude: Iterable[str]) -> None:
        """Make dest mirror source, skipping excluded names.

        Raises:
            SyncError: If the copy fails.
        """
        ...


class RsyncSyncer:
    """Mirror with ``rsync -aW --delete``."""

    def __init__(self, executable: str = "rsync") -> None:
        self.executable = executable

    def command(self, source: Path, dest: Path, exclude: Iterable[str]) -> list[str]:
        # Trailing slashes copy the contents of source, not source itself
        return [
            self.executable,
            "-aW",
            "--delete",
            *(f"--exclude={pattern}" for pattern in exclude),
            f"{source}/",
            f"{dest}/",
        ]

    def sync(self, source: Path, dest: Path, exclude: Iterable[str]) -> None:
        cmd = self.command(source, dest, exclude)
        command = " ".join(cmd)
        try:
            result = run(*cmd, capture=True)
        except OSError as exc:
            raise SyncError(str(exc), None, command) from exc
        if result.returncode != 0:
            raise SyncError(result.stderr or "", result.returncode, command)


class NativeSyncer:
    """Mirror with a recursive compare, copy and delete in Python.

    Files are compared by size and modification time, like rsync's quick
    check, and copied with shutil.copy2 to keep permissions and timestamps.
    """

    def sync(self, source: Path, dest: Path, exclude: Iterable[str]) -> None:
        try:
            _mirror(Path(source), Path(dest), frozenset(exclude))
        except OSError as exc:
            raise SyncError(str(exc), None, f"mirror {source}/ {dest}/") from exc


def _kind(path: Path) -> str | None:
    if path.is_symlink():
        return "link"
    if path.is_dir():
        return "dir"
    if path.exists():
        return "file"
    return None


def _remove(path: Path) -> None:
    if _kind(path) == "dir":
        shutil.rmtree(path)
    else:
        path.unlink()


def _unchanged(src: Path, dst: Path) -> bool:
    a, b = src.stat(), dst.stat()
    return a.st_size == b.st_size and int(a.st_mtime) == int(b.st_mtime)


def _mirror(src: Path, dst: Path, exclude: frozenset[str]) -> None:
    dst.mkdir(parents=True, exist_ok=True)
    wanted = {p.name: _kind(p) for p in src.iterdir() if p.name not in exclude}

    # Delete anything the source no longer has, or has as a different kind
    for entry in dst.iterdir():
        if entry.name in exclude:
            continue
        if wanted.get(entry.name) != _kind(entry):
            _remove(entry)

    for name in sorted(wanted):
        s, d = src / name, dst / name
        kind = wanted[name]
        if kind == "link":
            target = os.readlink(s)
            if d.is_symlink() and os.readlink(d) == target:
                continue
            if _kind(d):
                _remove(d)
            d.symlink_to(target)
        elif kind == "dir":
            _mirror(s, d, exclude)
        elif not (d.exists() and _unchanged(s, d)):
            shutil.copy2(s, d)

    shutil.copystat(src, dst)


def default_syncer() -> Syncer:
    """Use rsync when it is installed, otherwise the native syncer."""
    if shutil.which("rsync"):
        return RsyncSyncer()
    return NativeSyncer()


def destination(source: NamedDir, target: NamedDir, install_root: str = INSTALL_ROOT) -> Path:
    """Where source is installed inside target.

    Scoped names nest: "@scope/pkg" → <target>/node_modules/@scope/pkg.
    """
    return Path(target.dir) / install_root / source.name


def sync_module(
    source: NamedDir,
    target: NamedDir,
    *,
    syncer: Syncer | None = None,
    exclude: Iterable[str] = EXCLUDE,
    install_root: str = INSTALL_ROOT,
) -> Path:
    """Mirror source's working tree into target's install root.

    Each call is a full reconciliation of the destination. There is no
    retry; callers must not run two syncs into the same destination at once.

    Returns:
        The destination directory.

    Raises:
        SyncError: If the destination cannot be created or the copy fails.
    """
    dest = destination(source, target, install_root)
    try:
        dest.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SyncError(str(exc), None, f"mkdir -p {dest}") from exc
    (syncer or default_syncer()).sync(Path(source.dir), dest, list(exclude))
    return dest
