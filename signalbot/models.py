"""Wire models for Signal REST gateway envelopes.

The gateway's /v1/receive endpoint returns a JSON list of envelope
wrappers. Only entries carrying both a sender and a non-empty
message body become InboundMessage objects; everything else
(receipts, typing indicators, sync messages, malformed entries) is
dropped before dispatch without reordering the rest.
"""

from typing import Any, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = structlog.get_logger("signalbot.gateway")


class Attachment(BaseModel):
    """Attachment metadata as reported by the gateway."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")
    filename: Optional[str] = None
    size: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None


class DataMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None
    timestamp: Optional[int] = None
    attachments: List[Attachment] = Field(default_factory=list)


class Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    source: Optional[str] = None
    source_number: Optional[str] = Field(default=None, alias="sourceNumber")
    source_uuid: Optional[str] = Field(default=None, alias="sourceUuid")
    timestamp: Optional[int] = None
    data_message: Optional[DataMessage] = Field(default=None, alias="dataMessage")

    @property
    def sender(self) -> Optional[str]:
        return self.source or self.source_number or self.source_uuid


class EnvelopeWrapper(BaseModel):
    model_config = ConfigDict(extra="ignore")

    envelope: Envelope
    account: Optional[str] = None


class InboundMessage(BaseModel):
    """One valid inbound text message.

    Attributes:
        sender: Sender identifier (phone number or UUID).
        text: Message body, never empty.
        timestamp: Delivery timestamp in epoch milliseconds.
        attachments: Attachment metadata, possibly empty.
        raw: The envelope wrapper exactly as the gateway sent it.
    """

    model_config = ConfigDict(frozen=True)

    sender: str
    text: str
    timestamp: int = 0
    attachments: List[Attachment] = Field(default_factory=list)
    raw: dict = Field(default_factory=dict)

    @classmethod
    def from_envelope(cls, entry: Any) -> Optional["InboundMessage"]:
        """Build an InboundMessage from one raw list entry.

        Returns None when the entry is malformed or lacks a sender or a
        message body.
        """
        if not isinstance(entry, dict):
            return None
        try:
            wrapper = EnvelopeWrapper.model_validate(entry)
        except ValidationError:
            return None

        envelope = wrapper.envelope
        data = envelope.data_message
        sender = envelope.sender
        if data is None or not data.message or not sender:
            return None

        timestamp = data.timestamp if data.timestamp is not None else envelope.timestamp
        return cls(
            sender=sender,
            text=data.message,
            timestamp=timestamp or 0,
            attachments=data.attachments,
            raw=entry,
        )


def parse_batch(payload: Any) -> List[InboundMessage]:
    """Turn a /v1/receive response body into dispatchable messages.

    A body that is not a list counts as an empty batch. Invalid
    entries are skipped; surviving entries keep their original order.
    """
    if not isinstance(payload, list):
        logger.info("receive_payload_not_a_list", type=type(payload).__name__)
        return []

    messages = []
    skipped = 0
    for entry in payload:
        message = InboundMessage.from_envelope(entry)
        if message is None:
            skipped += 1
            continue
        messages.append(message)

    if skipped:
        logger.debug("receive_entries_skipped", skipped=skipped, kept=len(messages))
    return messages
