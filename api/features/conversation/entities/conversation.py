"""Conversation entity: one end-user chat session."""
from typing import Optional
from uuid import uuid4

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity


class Conversation(BaseEntity):
    """Conversation header row; immutable after insert."""

    __tablename__ = "conversations"

    nonce: Mapped[str] = mapped_column(
        String(64), nullable=False, default=lambda: str(uuid4())
    )
    kb_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    app_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    subject: Mapped[str] = mapped_column(Text, nullable=False, default="")
    remote_ip: Mapped[Optional[str]] = mapped_column(String(64))
