"""Shared fixtures: an in-memory SQLite store and a service bound to it."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from sqlalchemy.pool import StaticPool

from api.features.conversation.entities.app import App, AppType
from api.features.conversation.entities.message import MessageRole
from api.features.conversation.models import (
    ConversationMessageModel,
    ConversationModel,
)
from api.features.conversation.service import ConversationService
from api.shared.entities.registry import BaseEntity
from infra.resources import DatabaseResource

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def database():
    """Fresh in-memory database with the full schema for each test."""
    db = DatabaseResource(TEST_DATABASE_URL, engine_options={"poolclass": StaticPool})
    await db.init()
    await db.create_schema(BaseEntity)
    yield db
    await db.shutdown()


@pytest.fixture
def service(database):
    return ConversationService(database=database)


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def make_conversation(service):
    """Persist a conversation through the service and return the stored model."""

    async def _make(
        kb_id: str = "kb-1",
        app_id: Optional[str] = "app-web",
        subject: str = "How do I reset my password?",
        remote_ip: str = "10.0.0.1",
        created_at: Optional[datetime] = None,
        **extra,
    ) -> ConversationModel:
        model = ConversationModel(
            kb_id=kb_id,
            app_id=app_id,
            subject=subject,
            remote_ip=remote_ip,
            created_at=created_at,
            **extra,
        )
        return await service.create_conversation(model)

    return _make


@pytest.fixture
def make_message(service, now):
    """Persist a message; ``offset_seconds`` places it relative to ``now``."""

    async def _make(
        conversation_id: str,
        role: MessageRole = MessageRole.ASSISTANT,
        content: str = "answer",
        offset_seconds: int = 0,
        references=None,
        **extra,
    ) -> ConversationMessageModel:
        model = ConversationMessageModel(
            conversation_id=conversation_id,
            role=role,
            content=content,
            created_at=now + timedelta(seconds=offset_seconds),
            **extra,
        )
        return await service.create_conversation_message(model, references or [])

    return _make


@pytest.fixture
async def apps(database):
    """Two applications of kb-1 used by listing joins."""
    async with database.get_session() as session:
        async with session.begin():
            session.add_all(
                [
                    App(id="app-web", kb_id="kb-1", name="Help Center", type=AppType.WEB),
                    App(id="app-bot", kb_id="kb-1", name="Support Bot", type=AppType.FEISHU_BOT),
                ]
            )
    return {"web": "app-web", "bot": "app-bot"}
