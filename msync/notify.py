"""Change notification for file watchers.

Dev servers such as nodemon ignore node_modules, so a freshly synced
dependency would go unnoticed. Rewriting a small sentinel file in the
dependent's compiled-output directory gives the watcher a change to react
to. The counter inside the file only helps a human see how many syncs
happened; nothing reads it back except the next write.
"""

from __future__ import annotations

import re
from pathlib import Path

from .errors import WriteError
from .models import Module

SENTINEL = "__msync.js"

_COUNTER_LINE = re.compile(r"^saveTotal:\s*(\d+)$")

_TEMPLATE = """
/*
  TEMPORARY FILE GENERATED BY
  MSync (https://github.com/philcockfield/msync)
  This file causes [nodemon] to restart. It is safe to delete this file.

  saveTotal: {counter}
*/
"""


def parse_counter(text: str) -> int | None:
    """Read the counter from sentinel file text.

    Returns None if no line reads exactly "saveTotal: <digits>".
    """
    for line in text.splitlines():
        match = _COUNTER_LINE.match(line.strip())
        if match:
            return int(match.group(1))
    return None


def format_sentinel(counter: int) -> str:
    return _TEMPLATE.format(counter=counter)


def notify_change(module: Module) -> Path | None:
    """Touch the sentinel file in a module's compiled-output directory.

    Does nothing for ignored modules, modules without an out_dir, or when
    the out_dir has not been built yet.

    Returns:
        Path of the sentinel file written, or None if nothing was done.

    Raises:
        WriteError: If the sentinel file cannot be written.
    """
    if module.ignored or module.out_dir is None:
        return None
    out_dir = Path(module.out_dir)
    if not out_dir.is_dir():
        return None

    path = out_dir / SENTINEL
    previous = None
    if path.is_file():
        try:
            previous = parse_counter(path.read_text(errors="replace"))
        except OSError:
            previous = None
    counter = 0 if previous is None else previous + 1

    try:
        path.write_text(format_sentinel(counter))
    except OSError as exc:
        raise WriteError(path, exc) from exc
    return path
