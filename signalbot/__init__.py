"""signalbot: command-dispatch framework for Signal bots.

Polls a signal-cli REST gateway for inbound messages and offers each
one to an ordered chain of commands.
"""

from .bot import SignalBot
from .command import Command
from .config import BotConfig
from .context import Context
from .exceptions import (
    CommandError,
    ConfigurationError,
    ErrorCategory,
    LifecycleError,
    SignalAPIError,
    SignalBotError,
)
from .gateway import SignalGateway
from .models import Attachment, InboundMessage

__version__ = "1.0.0"

__all__ = [
    "Attachment",
    "BotConfig",
    "Command",
    "CommandError",
    "ConfigurationError",
    "Context",
    "ErrorCategory",
    "InboundMessage",
    "LifecycleError",
    "SignalAPIError",
    "SignalBot",
    "SignalBotError",
    "SignalGateway",
]
