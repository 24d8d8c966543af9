"""Conversation message entity."""
import threading
import time
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, BigInteger, ForeignKey, Integer, String, Text, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity


class MessageRole(str, Enum):
    """Actor that produced a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


# SQL NULL (not JSON 'null') when no feedback was given, so `info IS NULL` works
FeedbackColumn = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), "postgresql"
)

_sequence_lock = threading.Lock()
_last_sequence = 0


def next_sequence() -> int:
    """Strictly increasing within the process, wall-clock ordered across processes."""
    global _last_sequence
    with _sequence_lock:
        _last_sequence = max(_last_sequence + 1, time.time_ns())
        return _last_sequence


class ConversationMessage(BaseEntity):
    """A single turn of a conversation.

    ``info`` holds the serialized feedback for the message and is the only
    column rewritten after insert.
    """

    __tablename__ = "conversation_messages"

    conversation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("conversations.id"), nullable=False, index=True
    )
    app_id: Mapped[Optional[str]] = mapped_column(String(36))
    role: Mapped[MessageRole] = mapped_column(
        SQLEnum(
            MessageRole,
            native_enum=False,
            length=16,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Model accounting recorded by the answer pipeline
    provider: Mapped[Optional[str]] = mapped_column(String(64))
    model: Mapped[Optional[str]] = mapped_column(String(128))
    prompt_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completion_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    remote_ip: Mapped[Optional[str]] = mapped_column(String(64))

    info: Mapped[Optional[Dict[str, Any]]] = mapped_column(FeedbackColumn, nullable=True)

    # Insertion order; breaks ties between equal created_at values
    seq: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=next_sequence, index=True
    )
