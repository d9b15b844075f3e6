"""Dependency graph utilities.

Answers "who depends on this module?" for the bump cascade, and provides
topological ordering and cycle detection over a workspace snapshot.
"""

from __future__ import annotations

from collections.abc import Sequence

from .errors import DependencyCycleError
from .models import Module


def depends_on(module: Module, modules: Sequence[Module]) -> list[Module]:
    """Find the modules that declare a dependency on module.

    Reads each module's current dependency ranges, so changes made earlier
    in a cascade are visible. The result keeps the order of modules.

    Example:
        If b and c depend on a: depends_on(a, [a, b, c]) → [b, c]
    """
    return [
        other
        for other in modules
        if other.name != module.name and module.name in other.dependency_ranges
    ]


def _internal_deps(modules: Sequence[Module]) -> dict[str, list[str]]:
    # Dangling references (names not in the snapshot) are dropped
    names = {m.name for m in modules}
    return {
        m.name: [dep for dep in m.dependency_ranges if dep in names and dep != m.name]
        for m in modules
    }


def topo_sort(modules: Sequence[Module]) -> list[str]:
    """Topologically sort modules by their internal dependencies.

    Uses Kahn's algorithm to produce an order where dependencies come
    before dependents. Ties are broken alphabetically for deterministic
    output.

    Returns:
        List of module names, dependencies first.

    Raises:
        DependencyCycleError: If a dependency cycle is detected.

    Example:
        If A depends on B, and B depends on C:
        topo_sort([A, B, C]) → [C, B, A]
    """
    deps = _internal_deps(modules)
    # Count incoming edges (dependencies) for each module
    in_degree = {name: len(d) for name, d in deps.items()}
    # Track reverse dependencies (who depends on each module)
    reverse_deps: dict[str, list[str]] = {name: [] for name in deps}
    for name, d in deps.items():
        for dep in d:
            reverse_deps[dep].append(name)

    queue = sorted(n for n, d in in_degree.items() if d == 0)
    order: list[str] = []

    while queue:
        node = queue.pop(0)
        order.append(node)
        for dependent in sorted(reverse_deps[node]):
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(order) != len(deps):
        raise DependencyCycleError(find_cycle(modules) or sorted(set(deps) - set(order)))

    return order


def find_cycle(modules: Sequence[Module], start: str | None = None) -> list[str] | None:
    """Find a cycle in the "is depended on by" graph.

    Walks depth-first from start (or from every module) along dependent
    edges, the same direction a bump cascade travels.

    Returns:
        Names along the cycle with the first name repeated at the end
        (e.g. ["a", "b", "a"]), or None if the graph is acyclic.
    """
    deps = _internal_deps(modules)
    dependents: dict[str, list[str]] = {name: [] for name in deps}
    for name, d in deps.items():
        for dep in d:
            dependents[dep].append(name)

    done: set[str] = set()

    def visit(name: str, path: list[str]) -> list[str] | None:
        if name in path:
            return path[path.index(name) :] + [name]
        if name in done:
            return None
        path.append(name)
        for dependent in dependents[name]:
            cycle = visit(dependent, path)
            if cycle:
                return cycle
        path.pop()
        done.add(name)
        return None

    roots = [start] if start is not None else list(deps)
    for root in roots:
        if root in deps:
            cycle = visit(root, [])
            if cycle:
                return cycle
    return None
