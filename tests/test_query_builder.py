"""FilterSet composition, checked without a database."""
from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import sqlite

from api.features.conversation.dtos import ConversationListRequest
from api.features.conversation.entities.conversation import Conversation
from api.features.conversation.repository import ConversationRepository
from api.shared.query import Contains, Equals, FilterSet, InList, IsNotNull, Predicate, TimeAfter


def _sql(stmt, dialect=None) -> str:
    return str(stmt.compile(dialect=dialect or sqlite.dialect()))


class TestPredicates:
    def test_equals(self):
        assert _sql(Equals(Conversation.kb_id, "kb").compile()) == "conversations.kb_id = ?"

    def test_contains_is_case_insensitive_and_escaped(self):
        sql = _sql(Contains(Conversation.subject, "50%").compile())
        assert "lower(conversations.subject) LIKE" in sql
        assert "ESCAPE '/'" in sql

    def test_time_after_is_strict(self):
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert _sql(TimeAfter(Conversation.created_at, moment).compile()) == "conversations.created_at > ?"

    def test_in_list(self):
        sql = _sql(InList(Conversation.id, ["a", "b"]).compile())
        assert sql.startswith("conversations.id IN")

    def test_is_not_null(self):
        assert _sql(IsNotNull(Conversation.app_id).compile()) == "conversations.app_id IS NOT NULL"

    def test_predicate_base_is_abstract(self):
        with pytest.raises(TypeError):
            Predicate()


class TestFilterSet:
    def test_empty_set_leaves_statement_unfiltered(self):
        stmt = FilterSet().apply(select(Conversation.id))
        assert "WHERE" not in _sql(stmt)

    def test_optional_helpers_skip_missing_values(self):
        filters = (
            FilterSet()
            .equals_if_present(Conversation.app_id, None)
            .equals_if_present(Conversation.app_id, "")
            .contains_if_present(Conversation.subject, None)
            .contains_if_present(Conversation.subject, "")
        )
        assert len(filters) == 0

    def test_predicates_are_conjoined(self):
        filters = FilterSet().equals(Conversation.kb_id, "kb").equals(Conversation.app_id, "app")
        sql = _sql(filters.apply(select(Conversation.id)))
        assert "conversations.kb_id = ? AND conversations.app_id = ?" in sql

    def test_list_filters_follow_request(self):
        request = ConversationListRequest(kb_id="kb", subject="refund")
        kinds = [type(p) for p in ConversationRepository.list_filters(request)]
        assert kinds == [Equals, Contains]

    def test_list_filters_with_every_field(self):
        request = ConversationListRequest(kb_id="kb", app_id="app", subject="s", remote_ip="10.")
        kinds = [type(p) for p in ConversationRepository.list_filters(request)]
        assert kinds == [Equals, Equals, Contains, Contains]


class TestPagination:
    def test_offset_and_limit(self):
        request = ConversationListRequest(kb_id="kb", page=3, per_page=20)
        assert (request.offset(), request.limit()) == (40, 20)

    def test_first_page_starts_at_zero(self):
        assert ConversationListRequest(kb_id="kb").offset() == 0
