"""Repository for conversation persistence operations.

Every method runs on the session it was constructed with and never commits;
``ConversationService`` owns session lifetime and transactions.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import structlog
from sqlalchemy import func, select, update

from api.features.conversation.dtos import (
    ConversationDistribution,
    ConversationListItem,
    ConversationListRequest,
)
from api.features.conversation.entities.app import App
from api.features.conversation.entities.conversation import Conversation
from api.features.conversation.entities.message import ConversationMessage, MessageRole
from api.features.conversation.entities.reference import ConversationReference
from api.features.conversation.models import FeedbackInfo
from api.shared.base import BaseRepository
from api.shared.entities.base import utcnow
from api.shared.query import FilterSet

logger = structlog.get_logger("conversation.repository")


class ConversationRepository(BaseRepository[Conversation]):
    """Statements for conversations, their messages and references."""

    model = Conversation

    # --- writes -----------------------------------------------------------

    async def create_message(
        self,
        message: ConversationMessage,
        references: Sequence[ConversationReference],
    ) -> ConversationMessage:
        """Insert the message, then its references; atomicity is up to the caller's transaction."""
        self.session.add(message)
        await self.session.flush()
        if references:
            await self.create_many(list(references))
        return message

    async def update_message_info(self, message_id: str, info: FeedbackInfo) -> int:
        """Overwrite ``info`` of one message; returns the number of rows touched."""
        stmt = (
            update(ConversationMessage)
            .where(ConversationMessage.id == message_id)
            .values(info=info.to_column())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        logger.debug("Message info rewritten", message_id=message_id, rows=result.rowcount)
        return result.rowcount or 0

    # --- reads ------------------------------------------------------------

    @staticmethod
    def list_filters(request: ConversationListRequest) -> FilterSet:
        return (
            FilterSet()
            .equals(Conversation.kb_id, request.kb_id)
            .equals_if_present(Conversation.app_id, request.app_id)
            .contains_if_present(Conversation.subject, request.subject)
            .contains_if_present(Conversation.remote_ip, request.remote_ip)
        )

    async def list_conversations(
        self, request: ConversationListRequest
    ) -> Tuple[List[ConversationListItem], int]:
        filters = self.list_filters(request)
        total = await self.count(filters)

        stmt = (
            filters.apply(
                select(
                    Conversation,
                    App.name.label("app_name"),
                    App.type.label("app_type"),
                ).outerjoin(App, Conversation.app_id == App.id)
            )
            .order_by(Conversation.created_at.desc(), Conversation.id.desc())
            .offset(request.offset())
            .limit(request.limit())
        )
        result = await self.session.execute(stmt)
        items = [
            ConversationListItem(
                id=conversation.id,
                kb_id=conversation.kb_id,
                app_id=conversation.app_id,
                subject=conversation.subject,
                remote_ip=conversation.remote_ip,
                created_at=conversation.created_at,
                app_name=app_name,
                app_type=app_type,
            )
            for conversation, app_name, app_type in result.all()
        ]
        return items, total

    async def get_by_id_and_nonce(self, conversation_id: str, nonce: str) -> Optional[Conversation]:
        filters = FilterSet().equals(Conversation.id, conversation_id).equals(Conversation.nonce, nonce)
        stmt = filters.apply(select(Conversation)).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_references(self, conversation_id: str) -> List[ConversationReference]:
        stmt = (
            select(ConversationReference)
            .where(ConversationReference.conversation_id == conversation_id)
            .order_by(ConversationReference.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_messages(self, conversation_id: str) -> List[ConversationMessage]:
        """All messages of a conversation, oldest first."""
        stmt = (
            select(ConversationMessage)
            .where(ConversationMessage.conversation_id == conversation_id)
            .order_by(ConversationMessage.created_at.asc(), ConversationMessage.seq.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_message(self, message_id: str) -> Optional[ConversationMessage]:
        result = await self.session.execute(
            select(ConversationMessage).where(ConversationMessage.id == message_id)
        )
        return result.scalar_one_or_none()

    # --- aggregation --------------------------------------------------------

    async def get_feedback_by_conversation_ids(
        self, conversation_ids: Sequence[str]
    ) -> Dict[str, FeedbackInfo]:
        """Latest scored assistant feedback per conversation."""
        if not conversation_ids:
            return {}

        filters = (
            FilterSet()
            .in_list(ConversationMessage.conversation_id, conversation_ids)
            .not_null(ConversationMessage.info)
            .equals(ConversationMessage.role, MessageRole.ASSISTANT)
        )
        stmt = (
            filters.apply(select(ConversationMessage.conversation_id, ConversationMessage.info))
            .where(ConversationMessage.info["score"].as_integer() != 0)
            .order_by(ConversationMessage.created_at.asc(), ConversationMessage.seq.asc())
        )
        result = await self.session.execute(stmt)

        feedback: Dict[str, FeedbackInfo] = {}
        for conversation_id, info in result.all():
            # Ascending order: a later message replaces an earlier one
            feedback[conversation_id] = FeedbackInfo.from_column(info)
        logger.debug("Feedback folded", requested=len(conversation_ids), found=len(feedback))
        return feedback

    @staticmethod
    def window_filters(kb_id: str, window: timedelta, now: Optional[datetime] = None) -> FilterSet:
        since = (now or utcnow()) - window
        return FilterSet().equals(Conversation.kb_id, kb_id).newer_than(Conversation.created_at, since)

    async def get_distribution(
        self, kb_id: str, *, window: timedelta, now: Optional[datetime] = None
    ) -> List[ConversationDistribution]:
        filters = self.window_filters(kb_id, window, now)
        stmt = filters.apply(
            select(Conversation.app_id, func.count().label("count"))
        ).group_by(Conversation.app_id)
        result = await self.session.execute(stmt)
        return [
            ConversationDistribution(app_id=app_id, count=count)
            for app_id, count in result.all()
        ]

    async def count_recent(
        self, kb_id: str, *, window: timedelta, now: Optional[datetime] = None
    ) -> int:
        return await self.count(self.window_filters(kb_id, window, now))
