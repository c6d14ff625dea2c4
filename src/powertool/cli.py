"""
Command-line entry point.

Startup: load config, scan and load extensions, merge their commands with
the built-ins, then resolve the first argument to a command and run it.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from powertool._version import __version__
from powertool.commands.builtins import builtin_commands
from powertool.commands.dispatch import resolve, suggest
from powertool.commands.parsing import CommandUsageError, build_parser
from powertool.commands.registry import build_registry
from powertool.config import PowertoolConfig
from powertool.context import RegistryContext
from powertool.extensions.installer import Confirmer, ExtensionInstaller
from powertool.extensions.manager import ExtensionManager
from powertool.logging import get_logger, level_for_verbosity, setup_logging
from powertool.settings import SettingsStore
from powertool.vcs.base import VersionControlClient
from powertool.vcs.git import GitClient

logger = get_logger("cli")


class ConsoleConfirmer:
    """Asks yes/no questions on the terminal."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def confirm(self, prompt: str) -> bool:
        return Confirm.ask(prompt, console=self.console, default=False)


def create_context(
    config: PowertoolConfig,
    console: Console | None = None,
    vcs: VersionControlClient | None = None,
    confirmer: Confirmer | None = None,
) -> RegistryContext:
    """Scan extensions and build the registry for one invocation."""
    console = console or Console()
    manager = ExtensionManager()
    scan = manager.load_all(config.extension_root)
    registry = build_registry(
        builtin_commands(),
        manager.get_commands(),
        core_precedence=config.core_precedence,
    )
    installer = ExtensionInstaller(
        root=config.extension_root,
        vcs=vcs or GitClient(config.vcs_executable),
        loader=manager.loader,
        confirmer=confirmer or ConsoleConfirmer(console),
        interactive=config.interactive,
        default_host=config.default_host,
    )
    return RegistryContext(
        registry=registry,
        config=config,
        extensions=scan.extensions,
        load_errors=scan.errors,
        installer=installer,
        settings=SettingsStore(config.settings_file),
        console=console,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="powertool",
        description="Command-line toolbox extended by git-hosted extensions",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More log output (-v info, -vv debug)"
    )
    parser.add_argument("--log-file", help="Also write a debug log to this file")
    parser.add_argument("-c", "--config", type=Path, help="Path to a config YAML file")
    parser.add_argument(
        "--no-input",
        action="store_true",
        help="Never prompt (missing dependencies are only reported)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", nargs="?", help="Command name or alias")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Command arguments")
    return parser


def run(context: RegistryContext, token: str, argv: list[str]) -> int:
    """Resolve *token* and run the matching command with *argv*."""
    console = context.console
    command = resolve(context.registry, token)
    if command is None:
        console.print(f"[red]Unknown command: {escape(token)}[/red]")
        candidates = suggest(context.registry, token, context.config.suggestion_threshold)
        if candidates:
            console.print(f"Did you mean: {', '.join(candidates)}?")
        else:
            console.print("[dim]Run 'powertool help' to list commands.[/dim]")
        return 2

    if "-h" in argv or "--help" in argv:
        return run(context, "help", [command.name])

    parser = build_parser(command)
    try:
        args = parser.parse_args(argv)
    except CommandUsageError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        console.print(f"usage: {escape(' | '.join(command.usages()))}")
        return 2

    if command.action is None:
        console.print(f"[red]Command {command.name} has no action[/red]")
        return 1
    try:
        code = command.action(context, args)
    except Exception as e:
        logger.debug("Command %s raised", command.name, exc_info=True)
        console.print(f"[red]{command.name} failed: {escape(str(e))}[/red]")
        return 1
    return int(code or 0)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = _build_parser().parse_args(argv)

    setup_logging(level_for_verbosity(args.verbose), log_file=args.log_file)

    config = PowertoolConfig.load(args.config)
    if args.no_input:
        config.interactive = False

    context = create_context(config)
    if not args.command:
        return run(context, "help", [])
    return run(context, args.command, list(args.args))


if __name__ == "__main__":
    sys.exit(main())
