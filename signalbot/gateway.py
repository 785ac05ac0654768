"""HTTP client for the Signal REST gateway (signal-cli-rest-api).

Only two calls are used: GET /v1/receive/<number> to drain pending
messages and POST /v2/send to deliver a text message. Every call
carries a total timeout from BotConfig.request_timeout so a stalled
gateway cannot hang a poll cycle forever.

Key classes:
    SignalGateway: Owns the aiohttp session and shapes requests.
"""

import asyncio
import json
from typing import List, Optional
from urllib.parse import quote, urlparse

import aiohttp
import structlog

from .config import BotConfig
from .exceptions import SignalAPIError
from .models import InboundMessage, parse_batch

logger = structlog.get_logger("signalbot.gateway")


class SignalGateway:
    """Thin async client for the Signal REST gateway.

    The aiohttp session is created lazily on first use so that the
    gateway can be constructed outside a running event loop.

    Args:
        config: Validated bot configuration.
        session: Optional externally managed session. When given,
            close() leaves it open.
    """

    def __init__(
        self,
        config: BotConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

        parsed = urlparse(config.base_url)
        if (
            parsed.hostname not in ("127.0.0.1", "localhost", "::1")
            and parsed.scheme != "https"
        ):
            logger.warning(
                "insecure_signal_api_url", url=config.base_url,
                msg="Non-localhost Signal API should use HTTPS",
            )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the shared aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this gateway created it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    @property
    def receive_url(self) -> str:
        number = quote(self.config.phone_number, safe="")
        return f"{self.config.base_url}/v1/receive/{number}"

    @property
    def send_url(self) -> str:
        return f"{self.config.base_url}/v2/send"

    async def receive(self) -> List[InboundMessage]:
        """Fetch and filter the pending inbound batch.

        Returns:
            Valid messages in gateway order. A body that is not a JSON
            list yields an empty list.

        Raises:
            SignalAPIError: On a non-success status or transport failure.
        """
        session = await self._get_session()
        try:
            async with session.get(self.receive_url, timeout=self._timeout) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise SignalAPIError(
                        f"Failed to fetch messages: {resp.reason}",
                        status=resp.status,
                        body=body[:200],
                    )
                text = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SignalAPIError(
                f"Failed to fetch messages: {e or type(e).__name__}",
                error_type=type(e).__name__,
            ) from e

        try:
            payload = json.loads(text) if text.strip() else None
        except json.JSONDecodeError:
            logger.warning("receive_invalid_json", data=text[:100])
            return []
        return parse_batch(payload)

    async def send(self, recipient: str, message: str) -> None:
        """Send a text message from the configured account.

        Raises:
            SignalAPIError: On a non-success status or transport failure.
        """
        payload = {
            "message": message,
            "number": self.config.phone_number,
            "recipients": [recipient],
        }
        session = await self._get_session()
        try:
            async with session.post(
                self.send_url, json=payload, timeout=self._timeout
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise SignalAPIError(
                        f"Failed to send message: {resp.reason}",
                        status=resp.status,
                        body=body[:200],
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SignalAPIError(
                f"Failed to send message: {e or type(e).__name__}",
                error_type=type(e).__name__,
            ) from e

        logger.debug("message_sent", recipient="..." + recipient[-4:], length=len(message))
