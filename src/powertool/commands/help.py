"""
Help listing and per-command help.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from powertool.commands.models import CommandDefinition
from powertool.commands.registry import CommandRegistry


@dataclass
class HelpPage:
    commands: list[CommandDefinition]
    page: int
    pages: int
    total: int
    module: str | None = None


def paginate(
    registry: CommandRegistry,
    module: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> HelpPage:
    """
    One page of the command listing.

    Args:
        registry: Command registry
        module: Only commands owned by this module (``core`` or an extension)
        page: 1-based page number, clamped to the valid range
        page_size: Commands per page
    """
    commands = registry.by_owner(module) if module else registry.list_commands()
    page_size = max(1, page_size)
    pages = max(1, math.ceil(len(commands) / page_size))
    page = min(max(1, page), pages)
    start = (page - 1) * page_size
    return HelpPage(
        commands=commands[start:start + page_size],
        page=page,
        pages=pages,
        total=len(commands),
        module=module,
    )


def render_page(console: Console, help_page: HelpPage) -> None:
    title = f"Commands ({help_page.module})" if help_page.module else "Commands"
    table = Table(title=title)
    table.add_column("Command", style="cyan")
    table.add_column("Aliases", style="dim")
    table.add_column("Summary")
    table.add_column("Module", style="dim")
    for command in help_page.commands:
        table.add_row(command.name, escape(", ".join(command.aliases)), escape(command.summary), command.owner)
    console.print(table)
    if help_page.pages > 1:
        console.print(
            f"[dim]Page {help_page.page}/{help_page.pages} "
            f"({help_page.total} commands) - use --page N[/dim]"
        )


def render_command(console: Console, command: CommandDefinition) -> None:
    console.print(f"\n[bold]{command.name}[/bold] [dim]({command.owner})[/dim]")
    if command.summary:
        console.print(escape(command.summary))
    if command.aliases:
        console.print(f"\n[bold]Aliases:[/bold] {escape(', '.join(command.aliases))}")

    console.print("\n[bold]Usage:[/bold]")
    for usage in command.usages():
        console.print(f"  {escape(usage)}")

    described = [t for t in command.all_tokens() if t.description]
    if described:
        console.print("\n[bold]Arguments:[/bold]")
        seen: set[str] = set()
        for token in described:
            if token.label in seen:
                continue
            seen.add(token.label)
            console.print(f"  {escape(token.render()):<20} {escape(token.description)}")

    if command.examples:
        console.print("\n[bold]Examples:[/bold]")
        for example in command.examples:
            console.print(f"  {escape(example)}")
