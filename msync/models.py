"""Data models for msync.

These Pydantic models represent the workspace snapshot that the bump
engine walks and the audit trail it produces.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

ReleaseType = Literal["major", "minor", "patch"]
RELEASE_TYPES: tuple[str, ...] = ("major", "minor", "patch")

# Sections of package.json that reference other modules, lowest precedence first.
DEPENDENCY_SECTIONS = ("devDependencies", "peerDependencies", "dependencies")


class Manifest(BaseModel):
    """Typed view of a module's package.json.

    Only the fields msync reads or writes are typed. Everything else is kept
    as pydantic extras and written back untouched, in its original order.

    Attributes:
        name: Module name as published.
        version: Current version string.
        dependencies: Runtime dependency name → version range.
        devDependencies: Development dependency name → version range.
        peerDependencies: Peer dependency name → version range.
    """

    model_config = ConfigDict(extra="allow")

    name: str = ""
    version: str = "0.0.0"
    dependencies: dict[str, str] | None = None
    devDependencies: dict[str, str] | None = None
    peerDependencies: dict[str, str] | None = None

    _order: list[str] | None = PrivateAttr(default=None)

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Manifest:
        manifest = cls.model_validate(doc)
        # Remember the key order so re-serialisation keeps diffs small
        manifest._order = list(doc.keys())
        return manifest

    def to_document(self) -> dict[str, Any]:
        """Return the manifest as a plain dict, unknown fields included."""
        # Fields the file never had stay out, as do emptied dependency sections
        absent = {s for s in DEPENDENCY_SECTIONS if getattr(self, s) is None}
        absent |= {f for f in ("name", "version") if f not in self.model_fields_set}
        data = self.model_dump(exclude=absent)
        order = self._order or list(data.keys())
        doc = {key: data[key] for key in order if key in data}
        for key, value in data.items():
            doc.setdefault(key, value)
        return doc

    @property
    def dependency_ranges(self) -> dict[str, str]:
        """Merged name → range across all dependency sections."""
        ranges: dict[str, str] = {}
        for section in DEPENDENCY_SECTIONS:
            ranges.update(getattr(self, section) or {})
        return ranges

    def set_reference(self, dep_name: str, version_range: str) -> bool:
        """Point every declared reference to dep_name at version_range."""
        changed = False
        for section in DEPENDENCY_SECTIONS:
            deps = getattr(self, section)
            if deps and dep_name in deps:
                deps[dep_name] = version_range
                changed = True
        return changed

    def copy_with_version(self, version: str) -> Manifest:
        clone = self.model_copy(deep=True)
        clone.version = version
        return clone


class Module(BaseModel):
    """One independently versioned package in the workspace.

    Attributes:
        name: Unique name within the snapshot.
        dir: Absolute path to the module's working tree.
        version: Version of the local working copy.
        latest: Version to bump from. Equals ``version`` unless a caller
                supplied a registry-known published version.
        manifest: Parsed package.json.
        ignored: Excluded from default listings and bumps.
        out_dir: Compiled-output directory, if the module has one.
    """

    name: str
    dir: Path
    version: str
    latest: str | None = None
    manifest: Manifest = Field(default_factory=Manifest)
    ignored: bool = False
    out_dir: Path | None = None

    def model_post_init(self, __context: Any) -> None:
        if self.latest is None:
            self.latest = self.version

    @property
    def dependency_ranges(self) -> dict[str, str]:
        return self.manifest.dependency_ranges


class ParentRef(BaseModel):
    """The module (and its new version) a dependent was bumped for."""

    name: str
    version: str


class BumpNode(BaseModel):
    """One frame of a bump cascade."""

    release: ReleaseType
    module: Module
    is_root: bool
    parent: ParentRef | None = None


class AuditRow(BaseModel):
    """Records one propagated version change.

    Attributes:
        release: Release type applied to the module.
        module: Name of the module that was bumped.
        version: The module's new version.
        ref: The dependency whose new version caused this bump.
    """

    release: ReleaseType
    module: str
    version: str
    ref: ParentRef


class RootStatus(BaseModel):
    """The top-level change that started a cascade."""

    release: ReleaseType
    module: str
    version: str
