"""Unit tests for conversation and message records."""

from datetime import UTC, datetime, timedelta, timezone

from chatdesk.models import Conversation, ConversationList, Message


class TestTimestamps:
    """Timestamps are always timezone-aware."""

    def test_naive_message_timestamp_becomes_utc(self):
        message = Message(id="m1", chat_id="c1", role="user", created_at=datetime(2024, 1, 1))

        assert message.created_at == datetime(2024, 1, 1, tzinfo=UTC)

    def test_aware_timestamp_keeps_offset(self):
        plus_two = timezone(timedelta(hours=2))

        message = Message(
            id="m1", chat_id="c1", role="user", created_at=datetime(2024, 1, 1, tzinfo=plus_two)
        )

        assert message.created_at.utcoffset() == timedelta(hours=2)

    def test_naive_conversation_timestamps_from_json(self):
        (conversation,) = ConversationList.validate_json(
            '[{"id": "c1", "user_id": "u1", "title": "t",'
            ' "created_at": "2024-01-01T00:00:00", "updated_at": "2024-01-02T00:00:00"}]'
        )

        assert conversation.created_at.tzinfo is UTC
        assert conversation.updated_at == datetime(2024, 1, 2, tzinfo=UTC)
        assert conversation.updated_at < datetime.now(UTC)

    def test_find_message(self):
        message = Message(id="m1", chat_id="c1", role="assistant")
        conversation = Conversation(id="c1", user_id="u1", title="t", messages=[message])

        assert conversation.find_message("m1") == message
        assert conversation.find_message("missing") is None
