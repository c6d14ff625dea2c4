"""
Extension API - the registration surface passed to extension modules.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from powertool.commands.models import CommandDefinition

if TYPE_CHECKING:
    from powertool.extensions.manager import ExtensionManager
    from powertool.extensions.models import Extension


class ExtensionAPI:
    """
    API object passed to an extension module's ``register`` callable.

    Example module (``modules/hello.py``)::

        def register(api):
            api.register_command(
                "hello",
                lambda ctx, args: print(f"Hello {args.who}"),
                summary="Say hello",
                aliases=["hi"],
                syntax="[who]",
            )
    """

    def __init__(self, manager: ExtensionManager, extension: Extension) -> None:
        self._manager = manager
        self._extension = extension

    @property
    def extension(self) -> Extension:
        """The manifest record of the extension being loaded."""
        return self._extension

    @property
    def extension_name(self) -> str:
        return self._extension.name

    def register_command(
        self,
        name: str,
        handler: Callable[..., Any],
        summary: str = "",
        aliases: list[str] | tuple[str, ...] = (),
        syntax: Any = None,
        examples: list[str] | None = None,
        position: int | None = None,
    ) -> CommandDefinition:
        """
        Register a command owned by this extension.

        Args:
            name: Primary command name
            handler: ``handler(context, args)`` invoked by the dispatcher
            summary: One-line description shown in help and search
            aliases: Alternate names, unique across the whole registry
            syntax: Usage string(s) or token dicts, see ``coerce_option_groups``
            examples: Example invocations
            position: Optional sort position in help listings
        """
        command = CommandDefinition(
            name=name,
            summary=summary,
            aliases=tuple(aliases),
            option_groups=syntax,
            examples=list(examples or []),
            display_position=position,
            owner=self._extension.name,
            action=handler,
        )
        self._manager._register_command(command)
        return command
