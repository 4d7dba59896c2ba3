"""
ChatDesk Models Module

Pydantic models for type-safe data validation throughout the application.

Available Models:
    - Message: One conversation turn (user or assistant)
    - Conversation: Titled, ordered sequence of messages
    - SearchResult: Ranked search hit referencing a message

Usage:
    from chatdesk.models import Conversation, Message, SearchResult
"""

from chatdesk.models.chat import (
    Conversation,
    ConversationList,
    Message,
    Role,
    SearchResult,
    utc_now,
)

__all__ = [
    "Conversation",
    "ConversationList",
    "Message",
    "Role",
    "SearchResult",
    "utc_now",
]
