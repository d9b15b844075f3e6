"""Version bump propagation.

Bumping a module also bumps everything that depends on it:

1. The chosen module gets the requested release (major/minor/patch)
2. Each dependent has its range on that module rewritten to the new version
3. Each dependent then gets a patch release of its own, recursively

The cascade is depth-first and preorder. A dependent and all of its own
dependents are finished before the next sibling starts, which keeps the
audit table readable as a chain of cause and effect.

Writes are not transactional. If a write fails partway, modules already
written stay written and the error carries the rows that completed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from .audit import AuditTable
from .errors import DependencyCycleError, WriteError
from .graph import depends_on, find_cycle
from .manifest import save_manifest, update_reference
from .models import (
    RELEASE_TYPES,
    AuditRow,
    BumpNode,
    Manifest,
    Module,
    ParentRef,
    ReleaseType,
    RootStatus,
)
from .versions import increment

SaveFn = Callable[[Path, Manifest], None]
UpdateRefFn = Callable[..., bool]


def bump(
    root: Module,
    release: ReleaseType,
    modules: Sequence[Module],
    *,
    persist: bool,
    dependent_release: ReleaseType = "patch",
    save: SaveFn = save_manifest,
    update_ref: UpdateRefFn = update_reference,
) -> AuditTable:
    """Bump a module and every module that depends on it.

    Args:
        root: The module to bump.
        release: Release type for the root module.
        modules: The workspace snapshot. Manifests of visited modules are
                 updated in place.
        persist: Write manifests to disk. False is a dry run.
        dependent_release: Release type applied to every dependent.
        save: Writes a manifest into a module directory.
        update_ref: Rewrites one dependency range on a module.

    Returns:
        The audit table for the cascade.

    Raises:
        ValueError: If a release type is unknown.
        DependencyCycleError: If the cascade from root would loop. Nothing
            is changed in that case.
        WriteError: If a manifest could not be written. ``error.table``
            holds the rows completed before the failure.
    """
    for value in (release, dependent_release):
        if value not in RELEASE_TYPES:
            raise ValueError(f"Unknown release type: {value!r}")

    cycle = find_cycle(modules, start=root.name)
    if cycle:
        raise DependencyCycleError(cycle)

    table = AuditTable()
    node = BumpNode(release=release, module=root, is_root=True)
    try:
        _bump_node(node, modules, table, persist, dependent_release, save, update_ref)
    except WriteError as exc:
        exc.table = table
        raise
    return table


def _bump_node(
    node: BumpNode,
    modules: Sequence[Module],
    table: AuditTable,
    persist: bool,
    dependent_release: ReleaseType,
    save: SaveFn,
    update_ref: UpdateRefFn,
) -> None:
    module = node.module
    version = increment(module.latest, node.release)

    module.manifest = module.manifest.copy_with_version(version)
    if persist:
        save(module.dir, module.manifest)

    if node.is_root:
        table.status = RootStatus(release=node.release, module=module.name, version=version)
    else:
        table.add(
            AuditRow(release=node.release, module=module.name, version=version, ref=node.parent)
        )

    # Resolved after this module's own update so the live snapshot is used
    for dependent in depends_on(module, modules):
        update_ref(dependent, module.name, version, save=persist)
        child = BumpNode(
            release=dependent_release,
            module=dependent,
            is_root=False,
            parent=ParentRef(name=module.name, version=version),
        )
        _bump_node(child, modules, table, persist, dependent_release, save, update_ref)
