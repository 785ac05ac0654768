"""Tests for gateway envelope parsing and batch filtering."""

from signalbot.models import InboundMessage, parse_batch


def _envelope(source="+15551234567", message="hello", timestamp=1700000000000, **extra):
    data = {"timestamp": timestamp}
    if message is not None:
        data["message"] = message
    data.update(extra)
    env = {"timestamp": timestamp, "dataMessage": data}
    if source is not None:
        env["source"] = source
    return {"envelope": env, "account": "+15550000000"}


class TestInboundMessage:
    """Tests for InboundMessage.from_envelope."""

    def test_valid_envelope(self):
        msg = InboundMessage.from_envelope(_envelope(message="ping"))
        assert msg.sender == "+15551234567"
        assert msg.text == "ping"
        assert msg.timestamp == 1700000000000
        assert msg.attachments == []

    def test_raw_preserved(self):
        entry = _envelope()
        msg = InboundMessage.from_envelope(entry)
        assert msg.raw == entry

    def test_missing_body_rejected(self):
        assert InboundMessage.from_envelope(_envelope(message=None)) is None

    def test_empty_body_rejected(self):
        assert InboundMessage.from_envelope(_envelope(message="")) is None

    def test_missing_sender_rejected(self):
        assert InboundMessage.from_envelope(_envelope(source=None)) is None

    def test_source_number_fallback(self):
        entry = _envelope(source=None)
        entry["envelope"]["sourceNumber"] = "+15552223333"
        msg = InboundMessage.from_envelope(entry)
        assert msg.sender == "+15552223333"

    def test_receipt_without_data_message_rejected(self):
        entry = {"envelope": {"source": "+15551234567", "receiptMessage": {"isRead": True}}}
        assert InboundMessage.from_envelope(entry) is None

    def test_non_dict_rejected(self):
        assert InboundMessage.from_envelope("garbage") is None
        assert InboundMessage.from_envelope(None) is None

    def test_wrong_types_rejected(self):
        entry = _envelope()
        entry["envelope"]["dataMessage"]["message"] = {"nested": True}
        assert InboundMessage.from_envelope(entry) is None

    def test_timestamp_falls_back_to_envelope(self):
        entry = _envelope()
        del entry["envelope"]["dataMessage"]["timestamp"]
        entry["envelope"]["timestamp"] = 42
        assert InboundMessage.from_envelope(entry).timestamp == 42

    def test_attachments_parsed(self):
        entry = _envelope(attachments=[{
            "id": "abc123",
            "contentType": "image/png",
            "filename": "cat.png",
            "size": 2048,
            "width": 640,
            "height": 480,
        }])
        msg = InboundMessage.from_envelope(entry)
        assert len(msg.attachments) == 1
        att = msg.attachments[0]
        assert att.id == "abc123"
        assert att.content_type == "image/png"
        assert att.width == 640


class TestParseBatch:
    """Tests for parse_batch."""

    def test_non_list_payload_is_empty(self):
        assert parse_batch({"error": "nope"}) == []
        assert parse_batch(None) == []
        assert parse_batch("[]") == []

    def test_malformed_entry_skipped_order_kept(self):
        payload = [
            _envelope(source="+15550000001", message="first"),
            _envelope(source="+15550000002", message=None),
            _envelope(source="+15550000003", message="third"),
        ]
        messages = parse_batch(payload)
        assert [m.text for m in messages] == ["first", "third"]
        assert [m.sender for m in messages] == ["+15550000001", "+15550000003"]

    def test_empty_list(self):
        assert parse_batch([]) == []
