"""Retrieval reference cited by an assistant reply."""
from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity


class ConversationReference(BaseEntity):
    """Citation stored alongside a message, looked up per conversation."""

    __tablename__ = "conversation_references"

    conversation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("conversations.id"), nullable=False, index=True
    )
    app_id: Mapped[Optional[str]] = mapped_column(String(36))
    node_id: Mapped[Optional[str]] = mapped_column(String(36))
    name: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    favicon: Mapped[Optional[str]] = mapped_column(Text)
