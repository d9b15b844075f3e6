"""Exceptions raised by msync.

Library code raises these; the CLI turns them into click errors.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .audit import AuditTable


class MsyncError(Exception):
    """Base class for all msync errors."""


class ConfigError(MsyncError):
    """The workspace configuration is missing something required."""


class WriteError(MsyncError):
    """A manifest, reference or sentinel file could not be written.

    Attributes:
        path: The file that failed to write.
        cause: The underlying OS error.
        table: Audit rows for the part of a bump cascade that completed
               before the failure, when raised from a bump.
    """

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause
        self.table: AuditTable | None = None


class SyncError(MsyncError):
    """Mirroring a module failed.

    Attributes:
        cause: Description of the failure (stderr, or the OS error).
        exit_code: Exit status of the copy process, None if it never ran.
        command: The command that was invoked.
    """

    def __init__(self, cause: str, exit_code: int | None, command: str) -> None:
        status = f"exit code {exit_code}" if exit_code is not None else "not run"
        super().__init__(f"Sync failed ({status}): {command}\n{cause}".rstrip())
        self.cause = cause
        self.exit_code = exit_code
        self.command = command


class DependencyCycleError(MsyncError, RuntimeError):
    """The dependency graph contains a cycle.

    Attributes:
        cycle: Module names along the cycle, first name repeated at the end.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        super().__init__(f"Dependency cycle detected: {' → '.join(cycle)}")
        self.cycle = list(cycle)
