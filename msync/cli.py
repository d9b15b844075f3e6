"""CLI entry point for msync."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from msync.bump import bump as bump_cascade
from msync.config import Settings, include_ignored, load_settings
from msync.errors import DependencyCycleError, MsyncError, SyncError, WriteError
from msync.graph import depends_on, topo_sort
from msync.models import RELEASE_TYPES, Module
from msync.notify import notify_change
from msync.shell import step
from msync.sync import NativeSyncer, Syncer, default_syncer, sync_module
from msync.versions import range_matches

console = Console()


def _settings(ctx: click.Context) -> Settings:
    root: Path = ctx.obj["root"]
    try:
        settings = load_settings(root)
    except MsyncError as exc:
        raise click.ClickException(str(exc)) from exc
    if settings is None:
        raise click.ClickException(
            f"No msync.toml found in {root}.\n"
            "msync needs a list of module directories. Example:\n\n"
            "  [msync]\n"
            '  modules = ["code/*"]'
        )
    return settings


def _find(modules: list[Module], name: str) -> Module:
    for module in modules:
        if module.name == name:
            return module
    raise click.ClickException(f"Module {name!r} not found.")


def _deps_cell(module: Module, modules: list[Module]) -> str:
    versions = {m.name: m.version for m in modules}
    cells = []
    for name, version_range in module.dependency_ranges.items():
        if name not in versions:
            continue
        if range_matches(version_range, versions[name]):
            cells.append(f"{name} {version_range}")
        else:
            cells.append(f"[red]{name} {version_range}[/red]")
    return "\n".join(cells)


def print_table(modules: list[Module], all_modules: list[Module], dependants: bool) -> None:
    """Print modules with their internal dependencies (or dependants)."""
    table = Table("module", "version", "dependants" if dependants else "dependencies")
    for module in modules:
        if dependants:
            cell = "\n".join(d.name for d in depends_on(module, all_modules))
        else:
            cell = _deps_cell(module, all_modules)
        name = f"[dim]{module.name}[/dim]" if module.ignored else f"[cyan]{module.name}[/cyan]"
        table.add_row(name, f"[magenta]{module.version}[/magenta]", cell)
    console.print(table)


@click.group()
@click.version_option(package_name="msync")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root containing msync.toml.",
)
@click.pass_context
def cli(ctx: click.Context, root: Path) -> None:
    """Manage versions and local builds of interdependent modules."""
    ctx.ensure_object(dict)
    ctx.obj["root"] = root


@cli.command("ls")
@click.option(
    "-i", "--include-ignored", "with_ignored", is_flag=True, help="Include ignored modules."
)
@click.option("-D", "--dependants", is_flag=True, help="List dependants instead of dependencies.")
@click.pass_context
def ls(ctx: click.Context, with_ignored: bool, dependants: bool) -> None:
    """List modules and how they reference each other."""
    settings = _settings(ctx)
    modules = include_ignored(settings.modules, with_ignored)
    print_table(modules, settings.modules, dependants)


@cli.command()
@click.argument("module")
@click.argument("release", type=click.Choice(RELEASE_TYPES))
@click.option(
    "-i", "--include-ignored", "with_ignored", is_flag=True, help="Include ignored modules."
)
@click.option("-d", "--dry-run", is_flag=True, help="Dry run where no files are saved.")
@click.option(
    "--dependent-release",
    type=click.Choice(RELEASE_TYPES),
    default="patch",
    show_default=True,
    help="Release type applied to dependant modules.",
)
@click.pass_context
def bump(
    ctx: click.Context,
    module: str,
    release: str,
    with_ignored: bool,
    dry_run: bool,
    dependent_release: str,
) -> None:
    """Bump MODULE and every module that depends on it."""
    settings = _settings(ctx)
    modules = include_ignored(settings.modules, with_ignored)
    target = _find(modules, module)

    print_table([target], modules, dependants=True)
    if dry_run:
        click.secho("Dry run...no files will be saved.\n", dim=True)

    try:
        table = bump_cascade(
            target,
            release,
            modules,
            persist=not dry_run,
            dependent_release=dependent_release,
        )
    except DependencyCycleError as exc:
        raise click.ClickException(str(exc)) from exc
    except WriteError as exc:
        if exc.table is not None:
            exc.table.print(console)
        raise click.ClickException(f"{exc}\nModules listed above were already saved.") from exc

    table.print(console)
    if dry_run:
        click.secho("\nNo files were saved.", dim=True)


@cli.command()
@click.argument("modules", nargs=-1)
@click.option("--native", is_flag=True, help="Copy with Python instead of rsync.")
@click.pass_context
def sync(ctx: click.Context, modules: tuple[str, ...], native: bool) -> None:
    """Copy MODULES into the node_modules of the modules that depend on them.

    With no MODULES, every non-ignored module is synced, dependencies first.
    """
    settings = _settings(ctx)
    active = include_ignored(settings.modules, False)
    if modules:
        sources = [_find(settings.modules, name) for name in modules]
    else:
        try:
            order = topo_sort(active)
        except DependencyCycleError as exc:
            raise click.ClickException(str(exc)) from exc
        sources = [_find(active, name) for name in order]

    syncer: Syncer = NativeSyncer() if native else default_syncer()
    step(f"Syncing {len(sources)} module{'s' if len(sources) != 1 else ''}")
    count = 0
    for source in sources:
        for target in depends_on(source, active):
            try:
                sync_module(
                    source,
                    target,
                    syncer=syncer,
                    exclude=settings.exclude,
                    install_root=settings.install_root,
                )
                notify_change(target)
            except (SyncError, WriteError) as exc:
                raise click.ClickException(str(exc)) from exc
            click.echo(f"  {source.name} → {target.name}")
            count += 1

    click.echo(f"✓ Synced {count} module{'s' if count != 1 else ''}")
