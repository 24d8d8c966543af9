"""Service layer for the Conversation feature.

One coroutine per use case. Each call opens its own session from the injected
``DatabaseResource``; only the message+references write runs inside an
explicit transaction. Store failures surface as ``PersistenceError``
subclasses with the driver error attached as ``__cause__``.
"""
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from api.features.conversation.dtos import (
    ConversationDetail,
    ConversationDistribution,
    ConversationListItem,
    ConversationListRequest,
    FeedbackRequest,
)
from api.features.conversation.exceptions import (
    ConversationNotFoundError,
    MessageNotFoundError,
)
from api.features.conversation.models import (
    ConversationMessageModel,
    ConversationModel,
    ConversationReferenceModel,
    FeedbackInfo,
)
from api.features.conversation.repository import ConversationRepository
from api.shared.db import session_scope, transaction_scope, translate_db_errors
from api.shared.entities.base import utcnow
from infra.resources import DatabaseResource

logger = structlog.get_logger("conversation.service")


class ConversationService:
    """Persistence and query operations for conversations."""

    def __init__(
        self,
        database: DatabaseResource,
        stats_window_hours: int = 24,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.database = database
        self.stats_window = timedelta(hours=stats_window_hours)
        self.clock = clock

    # --- writes -----------------------------------------------------------

    async def create_conversation(self, conversation: ConversationModel) -> ConversationModel:
        async with translate_db_errors("create_conversation"):
            async with session_scope(self.database) as session:
                async with session.begin():
                    entity = await ConversationRepository(session).create(conversation.to_entity())
        logger.info("Conversation created", conversation_id=entity.id, kb_id=entity.kb_id)
        return ConversationModel.from_entity(entity)

    async def create_conversation_message(
        self,
        message: ConversationMessageModel,
        references: Optional[Iterable[ConversationReferenceModel]] = None,
    ) -> ConversationMessageModel:
        """Store a message and its references atomically.

        Either the message and every reference are committed, or nothing is.
        """
        reference_entities = [reference.to_entity() for reference in references or []]
        async with transaction_scope(self.database, "create_conversation_message") as session:
            entity = await ConversationRepository(session).create_message(
                message.to_entity(), reference_entities
            )
        logger.info(
            "Conversation message stored",
            conversation_id=entity.conversation_id,
            message_id=entity.id,
            role=entity.role.value,
            references=len(reference_entities),
        )
        return ConversationMessageModel.from_entity(entity)

    async def update_message_feedback(self, feedback: FeedbackRequest) -> None:
        """Replace the feedback of a message; last write wins."""
        info = FeedbackInfo(
            score=feedback.score,
            feedback_type=feedback.type,
            feedback_content=feedback.feedback_content,
        )
        async with translate_db_errors("update_message_feedback"):
            async with session_scope(self.database) as session:
                async with session.begin():
                    updated = await ConversationRepository(session).update_message_info(
                        feedback.message_id, info
                    )
        if updated == 0:
            logger.warning("Feedback matched no message", message_id=feedback.message_id)
        else:
            logger.info("Message feedback updated", message_id=feedback.message_id, score=info.score)

    # --- reads ------------------------------------------------------------

    async def get_conversation_list(
        self, request: ConversationListRequest
    ) -> Tuple[List[ConversationListItem], int]:
        """Page of conversations plus the total for the same filters.

        Count and fetch are separate statements and may disagree under
        concurrent writes.
        """
        async with translate_db_errors("get_conversation_list"):
            async with session_scope(self.database) as session:
                return await ConversationRepository(session).list_conversations(request)

    async def get_conversation_detail(self, conversation_id: str) -> ConversationDetail:
        async with translate_db_errors("get_conversation_detail"):
            async with session_scope(self.database) as session:
                entity = await ConversationRepository(session).get_by_id(conversation_id)
        if entity is None:
            raise ConversationNotFoundError(conversation_id)
        return ConversationDetail.model_validate(entity)

    async def get_conversation_references(
        self, conversation_id: str
    ) -> List[ConversationReferenceModel]:
        async with translate_db_errors("get_conversation_references"):
            async with session_scope(self.database) as session:
                entities = await ConversationRepository(session).get_references(conversation_id)
        return [ConversationReferenceModel.from_entity(entity) for entity in entities]

    async def get_conversation_messages(
        self, conversation_id: str
    ) -> List[ConversationMessageModel]:
        """Messages of every role, oldest first."""
        async with translate_db_errors("get_conversation_messages"):
            async with session_scope(self.database) as session:
                entities = await ConversationRepository(session).get_messages(conversation_id)
        return [ConversationMessageModel.from_entity(entity) for entity in entities]

    async def validate_conversation_nonce(self, conversation_id: str, nonce: str) -> None:
        async with translate_db_errors("validate_conversation_nonce"):
            async with session_scope(self.database) as session:
                entity = await ConversationRepository(session).get_by_id_and_nonce(
                    conversation_id, nonce
                )
        if entity is None:
            raise ConversationNotFoundError(conversation_id)

    async def get_message_detail(self, message_id: str) -> ConversationMessageModel:
        async with translate_db_errors("get_message_detail"):
            async with session_scope(self.database) as session:
                entity = await ConversationRepository(session).get_message(message_id)
        if entity is None:
            raise MessageNotFoundError(message_id)
        return ConversationMessageModel.from_entity(entity)

    # --- analytics ----------------------------------------------------------

    async def get_feedback_info_by_conversation_ids(
        self, conversation_ids: Sequence[str]
    ) -> Dict[str, FeedbackInfo]:
        """Most recent scored assistant feedback for each conversation."""
        if not conversation_ids:
            return {}
        try:
            async with translate_db_errors("get_feedback_info_by_conversation_ids"):
                async with session_scope(self.database) as session:
                    return await ConversationRepository(session).get_feedback_by_conversation_ids(
                        list(conversation_ids)
                    )
        except Exception as e:
            logger.error(
                "Feedback lookup failed",
                conversations=len(conversation_ids),
                error=str(e),
            )
            raise

    async def get_conversation_distribution(self, kb_id: str) -> List[ConversationDistribution]:
        """Per-app conversation counts over the trailing stats window."""
        async with translate_db_errors("get_conversation_distribution"):
            async with session_scope(self.database) as session:
                return await ConversationRepository(session).get_distribution(
                    kb_id, window=self.stats_window, now=self.clock()
                )

    async def get_conversation_count(self, kb_id: str) -> int:
        """Conversations created within the trailing stats window."""
        async with translate_db_errors("get_conversation_count"):
            async with session_scope(self.database) as session:
                return await ConversationRepository(session).count_recent(
                    kb_id, window=self.stats_window, now=self.clock()
                )
