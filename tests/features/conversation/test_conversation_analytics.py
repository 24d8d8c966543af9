"""Trailing-window count and per-app distribution."""
from datetime import timedelta

from api.features.conversation.service import ConversationService


class TestConversationCount:
    async def test_window_boundary(self, service, make_conversation, now):
        """23h old counts, 25h old does not."""
        await make_conversation(created_at=now - timedelta(hours=23))
        await make_conversation(created_at=now - timedelta(hours=25))

        assert await service.get_conversation_count("kb-1") == 1

    async def test_other_knowledge_bases_excluded(self, service, make_conversation, now):
        await make_conversation(kb_id="kb-1", created_at=now - timedelta(minutes=5))
        await make_conversation(kb_id="kb-2", created_at=now - timedelta(minutes=5))

        assert await service.get_conversation_count("kb-1") == 1
        assert await service.get_conversation_count("kb-3") == 0

    async def test_window_is_evaluated_at_query_time(self, database, make_conversation, now):
        """Moving the clock forward drops rows that fell out of the window."""
        await make_conversation(created_at=now - timedelta(hours=23))
        clock = {"now": now}
        service = ConversationService(database=database, clock=lambda: clock["now"])

        assert await service.get_conversation_count("kb-1") == 1
        clock["now"] = now + timedelta(hours=2)
        assert await service.get_conversation_count("kb-1") == 0

    async def test_custom_window(self, database, make_conversation, now):
        await make_conversation(created_at=now - timedelta(hours=3))
        service = ConversationService(database=database, stats_window_hours=2)

        assert await service.get_conversation_count("kb-1") == 0


class TestConversationDistribution:
    async def test_grouped_by_app(self, service, make_conversation, now):
        recent = now - timedelta(hours=1)
        await make_conversation(app_id="app-web", created_at=recent)
        await make_conversation(app_id="app-web", created_at=recent)
        await make_conversation(app_id="app-bot", created_at=recent)
        await make_conversation(app_id="app-bot", created_at=now - timedelta(hours=30))
        await make_conversation(kb_id="kb-2", app_id="app-web", created_at=recent)

        distribution = await service.get_conversation_distribution("kb-1")
        assert {entry.app_id: entry.count for entry in distribution} == {
            "app-web": 2,
            "app-bot": 1,
        }

    async def test_empty_knowledge_base(self, service):
        assert await service.get_conversation_distribution("kb-empty") == []
