"""Write path: conversations, messages and their references."""
import asyncio

import pytest

from api.features.conversation.entities.message import MessageRole
from api.features.conversation.exceptions import MessageNotFoundError
from api.features.conversation.models import ConversationModel, ConversationReferenceModel
from api.features.conversation.repository import ConversationRepository
from api.shared.exceptions import ConstraintViolationError, TransactionAbortedError


def _reference(conversation_id: str, name: str, **extra) -> ConversationReferenceModel:
    return ConversationReferenceModel(
        conversation_id=conversation_id,
        name=name,
        url=f"https://docs.example.com/{name}",
        **extra,
    )


class TestCreateConversation:
    """Conversation inserts."""

    async def test_create_assigns_id_and_nonce(self, service, make_conversation):
        """Missing id and nonce are generated on insert."""
        conversation = await make_conversation()
        assert conversation.id
        assert conversation.nonce
        assert conversation.created_at is not None

        detail = await service.get_conversation_detail(conversation.id)
        assert detail.nonce == conversation.nonce
        assert detail.subject == "How do I reset my password?"

    async def test_duplicate_id_is_constraint_violation(self, make_conversation):
        """Reusing a primary key surfaces the constraint violation with the driver error attached."""
        await make_conversation(id="conv-dup")
        with pytest.raises(ConstraintViolationError) as exc_info:
            await make_conversation(id="conv-dup")
        assert exc_info.value.error_code == "CONSTRAINT_VIOLATION"
        assert exc_info.value.__cause__ is not None


class TestCreateConversationMessage:
    """Message + references transaction."""

    async def test_message_with_references_commits_both(self, service, make_conversation, make_message):
        """Message and all references become visible together."""
        conversation = await make_conversation()
        references = [
            _reference(conversation.id, "reset-password"),
            _reference(conversation.id, "account-settings", node_id="node-7"),
        ]
        message = await make_message(conversation.id, references=references)

        stored = await service.get_message_detail(message.id)
        assert stored.content == "answer"
        assert stored.role is MessageRole.ASSISTANT
        assert stored.info is None

        refs = await service.get_conversation_references(conversation.id)
        assert sorted(ref.name for ref in refs) == ["account-settings", "reset-password"]

    async def test_message_without_references_commits(self, service, make_conversation, make_message):
        """An empty reference list is a normal commit."""
        conversation = await make_conversation()
        message = await make_message(conversation.id, role=MessageRole.USER, content="hello")

        assert (await service.get_message_detail(message.id)).content == "hello"
        assert await service.get_conversation_references(conversation.id) == []

    async def test_failed_reference_rolls_back_message(self, service, make_conversation, make_message):
        """A reference that breaks a constraint leaves no message behind."""
        conversation = await make_conversation()
        broken = [
            _reference(conversation.id, "ok"),
            _reference("conversation-that-does-not-exist", "dangling"),
        ]

        with pytest.raises(TransactionAbortedError) as exc_info:
            await make_message(conversation.id, references=broken, id="msg-atomic")
        assert exc_info.value.error_code == "TRANSACTION_ABORTED"
        assert exc_info.value.__cause__ is not None

        with pytest.raises(MessageNotFoundError):
            await service.get_message_detail("msg-atomic")
        assert await service.get_conversation_messages(conversation.id) == []
        assert await service.get_conversation_references(conversation.id) == []

    async def test_duplicate_reference_ids_roll_back(self, service, make_conversation, make_message):
        """Two references sharing a primary key abort the whole write."""
        conversation = await make_conversation()
        twins = [
            _reference(conversation.id, "first", id="ref-1"),
            _reference(conversation.id, "second", id="ref-1"),
        ]

        with pytest.raises(TransactionAbortedError):
            await make_message(conversation.id, references=twins)
        assert await service.get_conversation_messages(conversation.id) == []

    async def test_cancelled_write_leaves_nothing_behind(
        self, service, make_conversation, make_message, monkeypatch
    ):
        """Cancelling mid-transaction propagates and rolls the message back."""
        conversation = await make_conversation()
        inside_transaction = asyncio.Event()

        async def stalled_create_many(self, entities):
            inside_transaction.set()
            await asyncio.sleep(30)

        monkeypatch.setattr(ConversationRepository, "create_many", stalled_create_many)

        task = asyncio.create_task(
            make_message(
                conversation.id,
                references=[_reference(conversation.id, "slow")],
                id="msg-cancelled",
            )
        )
        await asyncio.wait_for(inside_transaction.wait(), timeout=5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        monkeypatch.undo()
        with pytest.raises(MessageNotFoundError):
            await service.get_message_detail("msg-cancelled")
        assert await service.get_conversation_messages(conversation.id) == []
        assert await service.get_conversation_references(conversation.id) == []

    async def test_message_for_unknown_conversation_aborts(self, service):
        """The message row itself must reference an existing conversation."""
        from api.features.conversation.models import ConversationMessageModel

        orphan = ConversationMessageModel(
            conversation_id="missing", role=MessageRole.USER, content="hi"
        )
        with pytest.raises(TransactionAbortedError):
            await service.create_conversation_message(orphan, [])

    async def test_model_round_trip_keeps_accounting(self, service, make_conversation, make_message):
        """Token accounting fields survive storage."""
        conversation = await make_conversation()
        message = await make_message(
            conversation.id,
            provider="openai",
            model="gpt-4o-mini",
            prompt_tokens=12,
            completion_tokens=30,
            total_tokens=42,
        )
        stored = await service.get_message_detail(message.id)
        assert (stored.provider, stored.model, stored.total_tokens) == ("openai", "gpt-4o-mini", 42)


def test_conversation_model_to_entity_omits_unset_fields():
    """Unset identifiers are left to column defaults."""
    entity = ConversationModel(kb_id="kb-1").to_entity()
    assert entity.kb_id == "kb-1"
    assert entity.id is None
