"""Manifest reading and writing.

Reads and writes package.json through the typed Manifest model, keeping
unknown fields and key order so rewritten files diff cleanly.
"""

from __future__ import annotations

import json
from pathlib import Path

from .errors import WriteError
from .models import Manifest, Module
from .versions import reference_range

MANIFEST = "package.json"
TSCONFIG = "tsconfig.json"


def load_manifest(module_dir: Path) -> Manifest:
    """Load and parse the package.json in a module directory."""
    doc = json.loads((Path(module_dir) / MANIFEST).read_text())
    return Manifest.from_document(doc)


def save_manifest(module_dir: Path, manifest: Manifest) -> None:
    """Write a manifest back to the module's package.json.

    Raises:
        WriteError: If the file cannot be written (missing directory,
                    permissions, disk full).
    """
    path = Path(module_dir) / MANIFEST
    text = json.dumps(manifest.to_document(), indent=2, ensure_ascii=False) + "\n"
    try:
        path.write_text(text)
    except OSError as exc:
        raise WriteError(path, exc) from exc


def update_reference(module: Module, dep_name: str, version: str, *, save: bool) -> bool:
    """Point a module's dependency on dep_name at a new version.

    The previous range's operator is kept (see reference_range). The
    in-memory manifest is always updated; the file is only written when
    save is True.

    Returns:
        True if the module declared a dependency on dep_name.

    Raises:
        WriteError: If save is True and the manifest cannot be written.
    """
    old_range = module.dependency_ranges.get(dep_name)
    if old_range is None:
        return False
    module.manifest.set_reference(dep_name, reference_range(old_range, version))
    if save:
        save_manifest(module.dir, module.manifest)
    return True


def load_out_dir(module_dir: Path) -> Path | None:
    """Find a module's compiled-output directory from tsconfig.json.

    Returns None when there is no tsconfig.json, it cannot be parsed, or it
    does not set compilerOptions.outDir.
    """
    path = Path(module_dir) / TSCONFIG
    if not path.exists():
        return None
    try:
        doc = json.loads(path.read_text())
    except json.JSONDecodeError:
        return None
    out_dir = doc.get("compilerOptions", {}).get("outDir")
    if not out_dir:
        return None
    return Path(module_dir) / out_dir
