"""Domain models for the Conversation feature."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.features.conversation.entities.conversation import Conversation as ConversationEntity
from api.features.conversation.entities.message import (
    ConversationMessage as ConversationMessageEntity,
    MessageRole,
)
from api.features.conversation.entities.reference import (
    ConversationReference as ConversationReferenceEntity,
)


class FeedbackType(str, Enum):
    """Why a user rated an answer."""

    INACCURATE = "inaccurate"
    INCOMPLETE = "incomplete"
    IRRELEVANT = "irrelevant"
    OTHER = "other"


class FeedbackInfo(BaseModel):
    """Feedback attached to a message; replaced wholesale on every submission.

    A score of ``0`` means no feedback was given.
    """

    score: int = Field(default=0, description="1 like, -1 dislike, 0 unset")
    feedback_type: Optional[FeedbackType] = Field(default=None, description="Feedback category")
    feedback_content: str = Field(default="", description="Free-text note")

    def to_column(self) -> Dict[str, Any]:
        """Serialized form stored in ``conversation_messages.info``."""
        return self.model_dump(mode="json")

    @classmethod
    def from_column(cls, value: Optional[Dict[str, Any]]) -> Optional["FeedbackInfo"]:
        if value is None:
            return None
        return cls.model_validate(value)


class ConversationModel(BaseModel):
    """Domain model for Conversation."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(default=None, description="Conversation identifier")
    nonce: Optional[str] = Field(default=None, description="Token bound to the conversation")
    kb_id: str = Field(description="Knowledge base identifier")
    app_id: Optional[str] = Field(default=None, description="Application identifier")
    subject: str = Field(default="", description="Conversation subject")
    remote_ip: Optional[str] = Field(default=None, description="Client address")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")

    @classmethod
    def from_entity(cls, entity: ConversationEntity) -> "ConversationModel":
        return cls.model_validate(entity)

    def to_entity(self) -> ConversationEntity:
        # Unset id/nonce/created_at fall back to the column defaults
        values = self.model_dump(exclude_none=True)
        return ConversationEntity(**values)


class ConversationMessageModel(BaseModel):
    """Domain model for a conversation message.

    ``info`` is ``None`` until feedback is submitted for the message.
    """

    id: Optional[str] = Field(default=None, description="Message identifier")
    conversation_id: str = Field(description="Owning conversation")
    app_id: Optional[str] = Field(default=None, description="Application identifier")
    role: MessageRole = Field(description="Actor that produced the message")
    content: str = Field(default="", description="Message content")
    provider: Optional[str] = Field(default=None, description="Model provider")
    model: Optional[str] = Field(default=None, description="Model name")
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)
    remote_ip: Optional[str] = Field(default=None, description="Client address")
    info: Optional[FeedbackInfo] = Field(default=None, description="Feedback, if any")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")

    @classmethod
    def from_entity(cls, entity: ConversationMessageEntity) -> "ConversationMessageModel":
        return cls(
            id=entity.id,
            conversation_id=entity.conversation_id,
            app_id=entity.app_id,
            role=entity.role,
            content=entity.content,
            provider=entity.provider,
            model=entity.model,
            prompt_tokens=entity.prompt_tokens,
            completion_tokens=entity.completion_tokens,
            total_tokens=entity.total_tokens,
            remote_ip=entity.remote_ip,
            info=FeedbackInfo.from_column(entity.info),
            created_at=entity.created_at,
        )

    def to_entity(self) -> ConversationMessageEntity:
        values = self.model_dump(exclude={"info"}, exclude_none=True)
        entity = ConversationMessageEntity(**values)
        entity.info = self.info.to_column() if self.info is not None else None
        return entity


class ConversationReferenceModel(BaseModel):
    """Domain model for a retrieval reference."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(default=None, description="Reference identifier")
    conversation_id: str = Field(description="Owning conversation")
    app_id: Optional[str] = Field(default=None, description="Application identifier")
    node_id: Optional[str] = Field(default=None, description="Cited knowledge-base node")
    name: str = Field(default="", description="Display name of the source")
    url: str = Field(default="", description="Source URL")
    favicon: Optional[str] = Field(default=None, description="Source favicon")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")

    @classmethod
    def from_entity(cls, entity: ConversationReferenceEntity) -> "ConversationReferenceModel":
        return cls.model_validate(entity)

    def to_entity(self) -> ConversationReferenceEntity:
        return ConversationReferenceEntity(**self.model_dump(exclude_none=True))
