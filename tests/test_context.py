"""Tests for the per-message Context."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from signalbot.config import BotConfig
from signalbot.context import Context
from signalbot.exceptions import SignalAPIError
from signalbot.models import InboundMessage


def _make_context(text="ping pong", sender="+15551234567", timestamp=1700000000000):
    gateway = MagicMock()
    gateway.config = BotConfig(signal_service="localhost:8080", phone_number="+15550000000")
    gateway.send = AsyncMock()
    message = InboundMessage(sender=sender, text=text, timestamp=timestamp)
    return Context(gateway, message), gateway


class TestContextFields:

    def test_fields_copied_from_message(self):
        ctx, _ = _make_context(text="hi", sender="+15557654321", timestamp=99)
        assert ctx.text == "hi"
        assert ctx.sender == "+15557654321"
        assert ctx.timestamp == 99

    def test_read_only(self):
        ctx, _ = _make_context()
        with pytest.raises(AttributeError):
            ctx.text = "changed"

    def test_config_exposed(self):
        ctx, gateway = _make_context()
        assert ctx.config is gateway.config

    def test_repr_masks_sender(self):
        ctx, _ = _make_context(sender="+15551234567")
        assert "+15551234567" not in repr(ctx)
        assert "...4567" in repr(ctx)


class TestStartsWith:

    def test_case_insensitive(self):
        ctx, _ = _make_context(text="ping pong")
        assert ctx.starts_with("PING") is True

    def test_prefix_must_be_at_start(self):
        ctx, _ = _make_context(text="PONGping")
        assert ctx.starts_with("PING") is False


class TestArgs:

    def test_simple_split(self):
        ctx, _ = _make_context(text="save contact John")
        assert ctx.args() == ["save", "contact", "John"]

    def test_extra_whitespace(self):
        ctx, _ = _make_context(text="  save   John ")
        assert ctx.args() == ["save", "John"]

    def test_tabs_and_newlines(self):
        ctx, _ = _make_context(text="remind\t30\nCheck the server")
        assert ctx.args() == ["remind", "30", "Check", "the", "server"]


class TestSend:

    @pytest.mark.asyncio
    async def test_send_replies_to_sender(self):
        ctx, gateway = _make_context(sender="+15551234567")
        await ctx.send("pong")
        gateway.send.assert_awaited_once_with("+15551234567", "pong")

    @pytest.mark.asyncio
    async def test_send_to_other_recipient(self):
        ctx, gateway = _make_context()
        await ctx.send_to("+15559990000", "hello")
        gateway.send.assert_awaited_once_with("+15559990000", "hello")

    @pytest.mark.asyncio
    async def test_send_error_propagates_with_status(self):
        ctx, gateway = _make_context()
        gateway.send.side_effect = SignalAPIError("Failed to send message: Bad Request", status=400)
        with pytest.raises(SignalAPIError) as exc:
            await ctx.send("pong")
        assert exc.value.status == 400
