"""Version parsing, bumping and range utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0"),
and rewriting of npm-style range strings when a dependency moves.
"""

from __future__ import annotations

import re

import semver

# A range msync knows how to rewrite: an optional operator and one version.
_SIMPLE_RANGE = re.compile(
    r"^\s*(?P<op>\^|~|>=|<=|>|<|=)?\s*v?"
    r"(?P<version>\d+(\.\d+){0,2}(-[0-9A-Za-z.-]+)?(\+[0-9A-Za-z.-]+)?)\s*$"
)


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    A full three-part version may carry prerelease/build metadata
    ("1.2.3-beta.1"), which is kept.
    """
    version_str = version_str.strip().lstrip("v")
    if semver.Version.is_valid(version_str):
        return semver.Version.parse(version_str)
    parts = version_str.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]))


def increment(version_str: str, release: str) -> str:
    """Apply a semver release increment and return the new version.

    Examples:
        increment("1.2.3", "major") → "2.0.0"
        increment("1.2.3", "minor") → "1.3.0"
        increment("1.2.3", "patch") → "1.2.4"

    Raises:
        ValueError: If release is not major, minor or patch.
    """
    version = parse_version(version_str)
    if release == "major":
        return str(version.bump_major())
    if release == "minor":
        return str(version.bump_minor())
    if release == "patch":
        return str(version.bump_patch())
    raise ValueError(f"Unknown release type: {release!r}")


def reference_range(old_range: str | None, version: str) -> str:
    """Build the range a dependent should declare for a new version.

    Keeps the operator of the previous range so a module pinned with "~"
    stays on "~", and an exact pin stays exact. Strict comparisons are
    widened to include the new version. Anything that is not a single
    operator plus version (tags, file/link/workspace protocols, compound
    ranges) becomes a caret range.

    Examples:
        reference_range("^1.0.0", "1.1.0") → "^1.1.0"
        reference_range("~1.0.0", "1.1.0") → "~1.1.0"
        reference_range("1.0.0", "1.1.0") → "1.1.0"
        reference_range(">1.0.0", "1.1.0") → ">=1.1.0"
        reference_range("*", "1.1.0") → "^1.1.0"
    """
    match = _SIMPLE_RANGE.match(old_range or "")
    if not match:
        return f"^{version}"
    op = match.group("op") or ""
    # The new range must include the version it points at
    op = {">": ">=", "<": "<="}.get(op, op)
    return f"{op}{version}"


def range_matches(version_range: str, version_str: str) -> bool:
    """Check a simple npm-style range against a version.

    Supports exact pins, comparison operators, caret and tilde ranges.
    Ranges that are not a single operator plus version never match.
    """
    match = _SIMPLE_RANGE.match(version_range or "")
    if not match:
        return False
    op = match.group("op") or "="
    try:
        target = parse_version(match.group("version"))
        version = parse_version(version_str)
    except ValueError:
        return False

    if op == "=":
        return version == target
    if op in (">=", "<=", ">", "<"):
        return version.match(f"{op}{target}")
    if op == "~":
        upper = target.bump_minor()
    elif target.major > 0:
        upper = target.bump_major()
    elif target.minor > 0:
        upper = target.bump_minor()
    else:
        upper = target.bump_patch()
    return target <= version < upper
