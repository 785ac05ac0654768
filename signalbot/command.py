"""Command contract for signalbot.

A command inspects each Context offered to it and decides whether it
claims the message. The bot offers every message to registered
commands in registration order and stops at the first one that
returns True.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import Context

DEFAULT_DESCRIPTION = "No description provided"


class Command(ABC):
    """Abstract base class for bot commands.

    Subclasses implement handle() and usually self-filter with
    ``context.starts_with(...)`` or ``context.args()``, returning False
    immediately for messages they do not care about. State a command
    needs across messages belongs on the instance.

    Override ``name`` and ``description`` for help listings; they have
    no effect on dispatch.
    """

    @abstractmethod
    async def handle(self, context: Context) -> bool:
        """Handle an incoming message.

        Args:
            context: Message text, sender and reply methods.

        Returns:
            True if this command handled the message, False to let the
            next command try.
        """
        ...

    @property
    def name(self) -> str:
        """Command name (defaults to the class name)."""
        return type(self).__name__

    @property
    def description(self) -> str:
        """One-line description for help listings."""
        return DEFAULT_DESCRIPTION

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
