"""
Built-in commands.

Each handler takes ``(context, args)`` and returns an exit code.
"""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

import yaml
from rich.markup import escape
from rich.table import Table

from powertool._version import __version__
from powertool.commands.dispatch import resolve, search, suggest
from powertool.commands.help import paginate, render_command, render_page
from powertool.commands.models import CommandDefinition, Token, TokenKind
from powertool.commands.validator import validate
from powertool.extensions.installer import OperationResult, Outcome

if TYPE_CHECKING:
    from powertool.context import RegistryContext
    from powertool.extensions.models import Extension

_OUTCOME_STYLE = {
    Outcome.SUCCEEDED: "[green]✓[/green]",
    Outcome.FAILED: "[red]✗[/red]",
    Outcome.SKIPPED: "[yellow]-[/yellow]",
}


def print_result(context: RegistryContext, result: OperationResult, indent: str = "") -> None:
    console = context.console
    reason = f" [dim]({result.reason.value})[/dim]" if result.reason else ""
    console.print(f"{indent}{_OUTCOME_STYLE[result.outcome]} {result.extension}: {escape(result.detail)}{reason}")
    for warning in result.warnings:
        console.print(f"{indent}  [yellow]⚠[/yellow] {escape(warning)}")
    if result.missing_dependencies:
        console.print(f"{indent}  [yellow]Missing dependencies:[/yellow] {', '.join(result.missing_dependencies)}")
    for child in result.dependency_results:
        print_result(context, child, indent + "  ")


def cmd_help(context: RegistryContext, args: argparse.Namespace) -> int:
    console = context.console
    if args.command:
        command = resolve(context.registry, args.command)
        if command is None:
            console.print(f"[red]Unknown command: {escape(args.command)}[/red]")
            candidates = suggest(context.registry, args.command, context.config.suggestion_threshold)
            if candidates:
                console.print(f"Did you mean: {', '.join(candidates)}?")
            return 2
        render_command(console, command)
        return 0

    module = args.module
    if module and module.lower() not in {o.lower() for o in context.registry.owners()}:
        console.print(f"[red]No commands from module: {escape(module)}[/red]")
        return 2
    render_page(
        console,
        paginate(context.registry, module=module, page=args.page or 1, page_size=context.config.help_page_size),
    )
    return 0


def cmd_search(context: RegistryContext, args: argparse.Namespace) -> int:
    hits = search(context.registry, args.term)
    if not hits:
        context.console.print(f"[dim]No commands match '{escape(args.term)}'[/dim]")
        return 1
    table = Table(title=f"Search: {escape(args.term)}")
    table.add_column("Command", style="cyan")
    table.add_column("Score", justify="right", style="dim")
    table.add_column("Summary")
    for hit in hits:
        table.add_row(hit.name, str(hit.score), escape(hit.command.summary))
    context.console.print(table)
    return 0


def cmd_validate(context: RegistryContext, args: argparse.Namespace) -> int:
    console = context.console
    report = validate(
        context.registry,
        context.extensions,
        context.load_errors,
        default_host=context.config.default_host,
    )
    for issue in report.errors:
        console.print(f"  [red]✗[/red] {issue.subject}: {escape(issue.message)}")
    for issue in report.warnings:
        console.print(f"  [yellow]⚠[/yellow] {issue.subject}: {escape(issue.message)}")

    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Extensions: {len(context.extensions)}")
    console.print(f"  Commands: {len(context.registry)}")
    console.print(f"  Errors: {len(report.errors)}")
    console.print(f"  Warnings: {len(report.warnings)}")
    return 0 if report.ok else 1


def _show_extension_table(context: RegistryContext) -> int:
    if not context.extensions:
        context.console.print(f"[dim]No extensions installed in {context.config.extension_root}[/dim]")
        return 0
    table = Table(title="Installed Extensions")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Commands")
    table.add_column("Description")
    for extension in context.extensions:
        table.add_row(
            extension.name,
            str(extension.version),
            ", ".join(extension.loaded_commands) or "[dim]none[/dim]",
            escape(extension.description[:60]),
        )
    context.console.print(table)
    return 0


def cmd_extension(context: RegistryContext, args: argparse.Namespace) -> int:
    console = context.console
    if not args.name:
        if args.update and context.installer is not None:
            for extension in context.extensions:
                _print_status(context, extension)
            return 0
        return _show_extension_table(context)

    extension = context.get_extension(args.name)
    if extension is None:
        console.print(f"[red]Extension not found: {escape(args.name)}[/red]")
        return 1

    console.print(f"\n[bold]{extension.name}[/bold] {extension.version}")
    console.print(f"[dim]{escape(extension.description)}[/dim]\n")
    for label, value in (
        ("Author", extension.author),
        ("License", extension.license),
        ("Homepage", extension.homepage),
        ("Source", extension.source_url),
        ("Path", str(extension.install_path)),
        ("Keywords", ", ".join(extension.keywords)),
        ("Commands", ", ".join(extension.loaded_commands) or "none"),
    ):
        if value:
            console.print(f"  {label}: {escape(value)}")
    if extension.dependencies:
        console.print("  Dependencies:")
        for key, constraint in extension.dependencies.items():
            console.print(f"    {key} {constraint}")

    if args.update and context.installer is not None:
        _print_status(context, extension)
    return 0


def _print_status(context: RegistryContext, extension: Extension) -> None:
    assert context.installer is not None
    status = context.installer.status(extension)
    console = context.console
    if not status.version_controlled:
        console.print(f"  [dim]{extension.name}: not a version-controlled checkout[/dim]")
        return
    if status.error:
        console.print(f"  [red]{extension.name}: {status.error}[/red]")
        return
    behind = "unknown" if status.commits_behind is None else str(status.commits_behind)
    marker = "[yellow]update available[/yellow]" if status.update_available else "[green]up to date[/green]"
    console.print(
        f"  {extension.name}: {status.current_version}, latest tag {status.latest_tag or 'none'}, "
        f"{behind} commits behind {status.branch} - {marker}"
    )


def cmd_install(context: RegistryContext, args: argparse.Namespace) -> int:
    assert context.installer is not None
    result = context.installer.install(args.source, version=args.version, force=args.force)
    print_result(context, result)
    if result.ok:
        context.console.print("[dim]Changes take effect the next time powertool starts.[/dim]")
    return 0 if result.ok else 1


def cmd_update_extension(context: RegistryContext, args: argparse.Namespace) -> int:
    assert context.installer is not None
    console = context.console
    if args.version and args.nightly:
        console.print("[red]A version and --nightly cannot be combined[/red]")
        return 2

    if args.all:
        summary = context.installer.update_all(nightly=args.nightly)
        for result in summary.results:
            print_result(context, result)
        console.print(
            f"\nUpdated: {summary.updated}  Failed: {summary.failed}  Skipped: {summary.skipped}"
        )
        return 1 if summary.failed else 0

    if not args.name:
        console.print("[red]Name an extension or pass --all[/red]")
        return 2
    result = context.installer.update(args.name, target_version=args.version, nightly=args.nightly)
    print_result(context, result)
    return 0 if result.ok else 1


def cmd_config(context: RegistryContext, args: argparse.Namespace) -> int:
    console = context.console
    settings = context.settings
    assert settings is not None
    if args.reset:
        removed = settings.reset(args.key)
        console.print("Reset." if removed else "[dim]Nothing to reset.[/dim]")
        return 0
    if args.key and args.value is not None:
        settings.set(args.key, yaml.safe_load(args.value))
        return 0
    if args.key:
        value = settings.get(args.key)
        if value is None:
            console.print(f"[dim]{escape(args.key)} is not set[/dim]")
            return 1
        console.print(f"{escape(args.key)} = {escape(repr(value))}")
        return 0
    for key, value in settings.items():
        console.print(f"{escape(key)} = {escape(repr(value))}")
    return 0


def cmd_version(context: RegistryContext, args: argparse.Namespace) -> int:
    context.console.print(f"powertool {__version__}")
    return 0


def _t(kind: TokenKind, label: str, description: str = "") -> Token:
    return Token(kind, label, description)


def builtin_commands() -> list[CommandDefinition]:
    """Definitions of every built-in command."""
    req, opt = TokenKind.REQUIRED_POSITIONAL, TokenKind.OPTIONAL_POSITIONAL
    opt_flag, hint = TokenKind.OPTIONAL_FLAG, TokenKind.TYPE_HINT
    return [
        CommandDefinition(
            name="help",
            summary="Show commands, or detailed help for one command",
            aliases=("h", "?"),
            option_groups=[
                (
                    _t(opt, "command", "Command to describe"),
                    _t(opt_flag, "--module", "Only list commands from this module"),
                    _t(hint, "name"),
                    _t(opt_flag, "--page", "Page of the listing"),
                    _t(hint, "n"),
                )
            ],
            examples=["help install", "help --module core", "help --page 2"],
            display_position=0,
            action=cmd_help,
        ),
        CommandDefinition(
            name="search",
            summary="Search commands by keyword",
            aliases=("find", "s"),
            option_groups=[(_t(req, "term", "Keyword to look for"),)],
            examples=["search image"],
            display_position=1,
            action=cmd_search,
        ),
        CommandDefinition(
            name="extension",
            summary="List installed extensions or show one extension",
            aliases=("ext", "extensions"),
            option_groups=[
                (
                    _t(opt, "name", "Extension to show"),
                    _t(opt_flag, "--update", "Check the remote for newer versions"),
                )
            ],
            examples=["extension", "extension imagetools --update"],
            display_position=10,
            action=cmd_extension,
        ),
        CommandDefinition(
            name="install",
            summary="Install an extension from a git repository",
            aliases=("i", "add"),
            option_groups=[
                (
                    _t(req, "source", "owner/repo or repository URL"),
                    _t(opt, "version", "Tag, branch or commit to check out"),
                    _t(opt_flag, "--force", "Replace an existing installation"),
                )
            ],
            examples=["install owner/imagetools", "install https://example.com/x/tools.git 1.2.0 --force"],
            display_position=11,
            action=cmd_install,
        ),
        CommandDefinition(
            name="update-extension",
            summary="Update one or all installed extensions",
            aliases=("update", "upgrade"),
            option_groups=[
                (
                    _t(opt, "name", "Extension to update"),
                    _t(opt, "version", "Tag, branch or commit to move to"),
                    _t(opt_flag, "--nightly", "Follow the default branch instead of tags"),
                ),
                (
                    _t(TokenKind.FLAG, "--all", "Update every installed extension"),
                    _t(opt_flag, "--nightly", "Follow the default branch instead of tags"),
                ),
            ],
            examples=["update-extension imagetools", "update-extension --all --nightly"],
            display_position=12,
            action=cmd_update_extension,
        ),
        CommandDefinition(
            name="validate",
            summary="Check extensions, dependencies and command names",
            aliases=("check",),
            display_position=13,
            action=cmd_validate,
        ),
        CommandDefinition(
            name="config",
            summary="Get, set or reset persisted settings",
            aliases=("settings",),
            option_groups=[
                (
                    _t(opt, "key", "Setting name"),
                    _t(opt, "value", "New value (YAML scalar)"),
                    _t(opt_flag, "--reset", "Reset the key, or every key"),
                )
            ],
            examples=["config", "config editor vim", "config editor --reset"],
            display_position=20,
            action=cmd_config,
        ),
        CommandDefinition(
            name="version",
            summary="Show the powertool version",
            display_position=21,
            action=cmd_version,
        ),
    ]
