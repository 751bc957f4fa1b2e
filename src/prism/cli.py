"""
Command-line interface for the package engine.
"""

from __future__ import annotations

import argparse
import sys
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prism.config import PrismConfig
from prism.dependencies import check_system_dependencies
from prism.errors import PrismError
from prism.files import ArchiveBuilder, FileInstaller, format_size
from prism.hooks import HookRunner
from prism.logging import setup_logging
from prism.manifest import (
    Manifest,
    ManifestParser,
    resolve_variant,
    resolve_variant_name,
    select_variant,
)
from prism.validation import validate_package

console = Console()


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="PRISM package manager for Claude Code extensions",
        prog="prism",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (debug logging)",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to a YAML config file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a package directory")
    validate_parser.add_argument("directory", nargs="?", default=".", help="Package directory")
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Stop at the first failing check",
    )

    # Package command
    package_parser = subparsers.add_parser("package", help="Create a package archive")
    package_parser.add_argument("directory", nargs="?", default=".", help="Package directory")
    package_parser.add_argument("-o", "--output", default=None, help="Output archive path")

    # Install command
    install_parser = subparsers.add_parser("install", help="Install a package into a project")
    install_parser.add_argument("source", help="Package directory or .tar.gz archive")
    install_parser.add_argument("--variant", default=None, help="Variant to install")
    install_parser.add_argument("-p", "--project", default=".", help="Project root")
    install_parser.add_argument("--dry-run", action="store_true", help="Show the install plan")
    install_parser.add_argument("--no-hooks", action="store_true", help="Skip lifecycle hooks")

    # Uninstall command
    uninstall_parser = subparsers.add_parser("uninstall", help="Remove a package from a project")
    uninstall_parser.add_argument("source", help="Package directory or .tar.gz archive")
    uninstall_parser.add_argument("-p", "--project", default=".", help="Project root")
    uninstall_parser.add_argument("--no-hooks", action="store_true", help="Skip lifecycle hooks")

    # Info command
    info_parser = subparsers.add_parser("info", help="Show package details")
    info_parser.add_argument("source", help="Package directory or .tar.gz archive")

    # Init command
    init_parser = subparsers.add_parser("init", help="Write a starter manifest")
    init_parser.add_argument("directory", nargs="?", default=".", help="Package directory")
    init_parser.add_argument("--name", default=None, help="Package name")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing manifest")

    args = parser.parse_args(argv)

    if getattr(args, "verbose", False):
        setup_logging("DEBUG", rich=True)
    else:
        setup_logging("WARNING", rich=True)

    commands = {
        "validate": cmd_validate,
        "package": cmd_package,
        "install": cmd_install,
        "uninstall": cmd_uninstall,
        "info": cmd_info,
        "init": cmd_init,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    try:
        command(args)
    except PrismError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        sys.exit(1)


def _load_config(args: argparse.Namespace) -> PrismConfig:
    path = getattr(args, "config", None)
    if path:
        return PrismConfig.from_yaml(Path(path))
    return PrismConfig()


@contextmanager
def _package_source(source: str, config: PrismConfig) -> Iterator[Path]:
    """Yield a package directory, extracting archives to a temporary one."""
    path = Path(source)
    if path.is_file() and path.name.endswith((".tar.gz", ".tgz")):
        with tempfile.TemporaryDirectory(prefix="prism-") as tmp:
            yield ArchiveBuilder(config).extract_archive(path, Path(tmp))
        return
    yield path


def _load_manifest(package_dir: Path, config: PrismConfig) -> Manifest:
    manifest_path = package_dir / config.manifest_filename
    if not manifest_path.is_file():
        raise PrismError(f"No {config.manifest_filename} found in {package_dir}")
    return ManifestParser().parse_file(manifest_path)


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a package directory."""
    config = _load_config(args)
    directory = Path(args.directory)
    console.print(f"\n[bold]Validating package at {directory}[/bold]\n")

    report = validate_package(directory, strict=args.strict, config=config)

    for check in report.checks:
        label = check.name.replace("_", " ").capitalize()
        if check.skipped:
            console.print(f"  [dim]-[/dim] {label}: skipped")
        elif check.passed:
            console.print(f"  [green]✓[/green] {label}")
        else:
            console.print(f"  [red]✗[/red] {label}: {escape(check.message)}")

    for warning in report.warnings:
        console.print(f"  [yellow]⚠[/yellow] {escape(warning)}")

    console.print("\n[bold]Summary:[/bold]")
    passed = len(report.checks) - len(report.failed_checks)
    console.print(f"  Passed: {passed}/{len(report.checks)}")

    if not report.passed:
        console.print(f"  [red]Failed: {', '.join(report.failed_checks)}[/red]")
        sys.exit(1)

    if report.manifest:
        console.print(f"\n[green]{report.manifest.id} is ready for distribution[/green]")


def cmd_package(args: argparse.Namespace) -> None:
    """Create a package archive."""
    config = _load_config(args)
    directory = Path(args.directory)
    manifest = _load_manifest(directory, config)

    output = Path(args.output or f"{manifest.name}-{manifest.version}.tar.gz").resolve()
    builder = ArchiveBuilder(config)
    archive = builder.create_archive(directory, output, manifest)

    console.print(f"[green]Package created:[/green] {archive.name}")
    console.print(f"  Location: {archive}")
    console.print(f"  Size: {format_size(archive.stat().st_size)}")
    console.print(f"  Files: {len(builder.list_archive(archive))}")


def cmd_install(args: argparse.Namespace) -> None:
    """Install a package into a project."""
    config = _load_config(args)
    project = Path(args.project)

    with _package_source(args.source, config) as package_dir:
        manifest = _load_manifest(package_dir, config)
        check_system_dependencies(manifest)
        if args.variant:
            variant_name = resolve_variant_name(manifest, args.variant)
        else:
            variant_name = select_variant(manifest, config.default_variant)

        if args.dry_run:
            _show_install_plan(manifest, variant_name)
            return

        hooks = None if args.no_hooks else HookRunner(project, timeout=config.hook_timeout_seconds)
        if hooks:
            hooks.run(manifest, "preInstall", variant_name)

        report = FileInstaller(project, config).install_files(package_dir, manifest, variant_name)

        if hooks:
            hooks.run(manifest, "postInstall", variant_name)

    console.print(
        f"[green]✓[/green] {manifest.id} installed "
        f"({report.file_count} files, variant: {report.variant})"
    )
    if report.merged_configs:
        console.print(f"  Merged configuration into {config.aggregate_path(project)}")
    for source in report.missing_sources:
        console.print(f"  [yellow]⚠[/yellow] Source not found: {source}")


def cmd_uninstall(args: argparse.Namespace) -> None:
    """Remove a package from a project."""
    config = _load_config(args)
    project = Path(args.project)

    with _package_source(args.source, config) as package_dir:
        manifest = _load_manifest(package_dir, config)

    hooks = None if args.no_hooks else HookRunner(project, timeout=config.hook_timeout_seconds)
    if hooks:
        hooks.run(manifest, "preUninstall")

    removed = FileInstaller(project, config).uninstall_files(manifest)

    if hooks:
        hooks.run(manifest, "postUninstall")

    console.print(f"[green]✓[/green] {manifest.name} uninstalled ({removed} locations removed)")


def cmd_info(args: argparse.Namespace) -> None:
    """Show package details."""
    config = _load_config(args)

    with _package_source(args.source, config) as package_dir:
        manifest = _load_manifest(package_dir, config)

    console.print(f"\n[bold]{manifest.name}[/bold] [dim]v{manifest.version}[/dim]")
    console.print(f"[dim]{manifest.description}[/dim]\n")
    console.print(f"  Author: {manifest.author}")
    console.print(f"  License: {manifest.license}")
    if manifest.repository:
        console.print(f"  Repository: {manifest.repository}")
    if manifest.homepage:
        console.print(f"  Homepage: {manifest.homepage}")
    if manifest.keywords:
        console.print(f"  Keywords: {', '.join(manifest.keywords)}")

    structure = Table(title="File Structure")
    structure.add_column("Type", style="yellow")
    structure.add_column("Source")
    structure.add_column("Destination")
    for kind, item in manifest.iter_items():
        structure.add_row(kind, item.source, item.dest)
    console.print(structure)

    variants = Table(title="Installation Variants")
    variants.add_column("Name", style="cyan")
    variants.add_column("Description")
    variants.add_column("Include")
    variants.add_column("Exclude", style="dim")
    for name, variant in manifest.variants.items():
        variants.add_row(
            name, variant.description, ", ".join(variant.include), ", ".join(variant.exclude)
        )
    console.print(variants)

    if manifest.dependencies.system:
        deps = ", ".join(
            dep.name if dep.required else f"{dep.name} (optional)"
            for dep in manifest.dependencies.system
        )
        console.print(f"  System dependencies: {deps}")
    if manifest.hooks:
        console.print(f"  Hooks: {', '.join(manifest.hooks)}")


def cmd_init(args: argparse.Namespace) -> None:
    """Write a starter manifest."""
    config = _load_config(args)
    directory = Path(args.directory)
    manifest_path = directory / config.manifest_filename

    if manifest_path.exists() and not args.force:
        raise PrismError(f"{manifest_path} already exists. Use --force to overwrite.")

    name = args.name or directory.resolve().name.lower().replace(" ", "-")
    directory.mkdir(parents=True, exist_ok=True)
    manifest_path.write_text(ManifestParser().create_template(name=name), encoding="utf-8")

    console.print(f"[green]✓[/green] Created {manifest_path}")
    console.print("  Next: edit the manifest, then run 'prism validate'")


def _show_install_plan(manifest: Manifest, variant_name: str) -> None:
    variant = resolve_variant(manifest, variant_name)
    console.print("\n[bold]Dry run - would install:[/bold]")
    console.print(f"  Package: [cyan]{manifest.id}[/cyan]")
    console.print(f"  Variant: [yellow]{variant_name}[/yellow] ({variant.description})")
    console.print(f"  Description: {manifest.description}")
    for kind, items in manifest.structure.items():
        console.print(f"  {kind}: {len(items)} item(s)")


if __name__ == "__main__":
    main()
