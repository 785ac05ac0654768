"""Per-message context handed to commands."""

from typing import List

from .config import BotConfig
from .gateway import SignalGateway
from .models import Attachment, InboundMessage


class Context:
    """Read-only view of one inbound message plus reply operations.

    Built fresh for every message by the bot and owned by that
    message's dispatch pass. Replies go through the gateway, from the
    configured account.
    """

    def __init__(self, gateway: SignalGateway, message: InboundMessage):
        self._gateway = gateway
        self._message = message

    @property
    def text(self) -> str:
        return self._message.text

    @property
    def sender(self) -> str:
        return self._message.sender

    @property
    def timestamp(self) -> int:
        """Delivery timestamp in epoch milliseconds."""
        return self._message.timestamp

    def __repr__(self) -> str:
        return (
            f"Context(sender={'...' + self.sender[-4:]!r}, "
            f"timestamp={self.timestamp}, length={len(self.text)})"
        )

    @property
    def config(self) -> BotConfig:
        return self._gateway.config

    @property
    def attachments(self) -> List[Attachment]:
        return list(self._message.attachments)

    @property
    def raw(self) -> dict:
        """The envelope exactly as received from the gateway."""
        return self._message.raw

    async def send(self, message: str) -> None:
        """Reply to the sender."""
        await self.send_to(self.sender, message)

    async def send_to(self, recipient: str, message: str) -> None:
        """Send a message to an arbitrary recipient.

        Raises:
            SignalAPIError: If the gateway rejects the message.
        """
        await self._gateway.send(recipient, message)

    def starts_with(self, prefix: str) -> bool:
        """Case-insensitive prefix test against the message text."""
        return self.text.lower().startswith(prefix.lower())

    def args(self) -> List[str]:
        """Whitespace-split tokens: "save contact John" -> ["save", "contact", "John"]."""
        return self.text.split()
