"""DTOs for the Conversation feature."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from api.features.conversation.entities.app import AppType
from api.features.conversation.models import FeedbackType
from api.shared.dtos import BaseDTO, PaginationRequest


class ConversationListRequest(PaginationRequest):
    """Filters for the conversation listing; empty strings mean "not set"."""

    kb_id: str = Field(description="Knowledge base identifier")
    app_id: Optional[str] = Field(default=None, description="Exact application match")
    subject: Optional[str] = Field(default=None, description="Substring of the subject")
    remote_ip: Optional[str] = Field(default=None, description="Substring of the client address")


class ConversationListItem(BaseDTO):
    """Conversation row joined with its application."""

    id: str = Field(description="Conversation identifier")
    kb_id: str = Field(description="Knowledge base identifier")
    app_id: Optional[str] = Field(default=None, description="Application identifier")
    subject: str = Field(default="", description="Conversation subject")
    remote_ip: Optional[str] = Field(default=None, description="Client address")
    created_at: datetime = Field(description="Creation timestamp")
    app_name: Optional[str] = Field(default=None, description="Application name")
    app_type: Optional[AppType] = Field(default=None, description="Application type")


class ConversationDetail(BaseDTO):
    """Single conversation as stored."""

    id: str = Field(description="Conversation identifier")
    nonce: str = Field(description="Token bound to the conversation")
    kb_id: str = Field(description="Knowledge base identifier")
    app_id: Optional[str] = Field(default=None, description="Application identifier")
    subject: str = Field(default="", description="Conversation subject")
    remote_ip: Optional[str] = Field(default=None, description="Client address")
    created_at: datetime = Field(description="Creation timestamp")


class ConversationDistribution(BaseDTO):
    """Conversation count of one application inside the stats window."""

    app_id: Optional[str] = Field(default=None, description="Application identifier")
    count: int = Field(description="Conversations in the window")


class FeedbackRequest(BaseDTO):
    """User feedback for one assistant message."""

    conversation_id: Optional[str] = Field(default=None, description="Owning conversation")
    message_id: str = Field(description="Rated message")
    score: int = Field(description="1 like, -1 dislike, 0 clears the rating")
    type: Optional[FeedbackType] = Field(default=None, description="Feedback category")
    feedback_content: str = Field(default="", description="Free-text note")
