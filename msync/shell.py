"""Shell utilities.

Provides a thin wrapper around subprocess for running external tools,
plus output formatting helpers for the CLI.
"""

from __future__ import annotations

import subprocess


def run(*args: str, capture: bool = False) -> subprocess.CompletedProcess[str]:
    """Run a command without raising on a non-zero exit.

    Args:
        *args: Command and arguments (e.g., "rsync", "-aW", "src/", "dst/").
        capture: If True, capture stdout/stderr instead of streaming them
                 to the terminal.

    Returns:
        CompletedProcess with returncode for the caller to check.

    Raises:
        OSError: If the command could not be started (e.g., not installed).
    """
    return subprocess.run(args, capture_output=capture, text=True, check=False)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate phases of a command in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")
