"""
Conversation Search

Keyword search with additive relevance scoring across every stored message.
Exact phrase hits dominate, whole-word hits reward repetition, and flat
substring bonuses still surface partial matches.

Usage:
    engine = SearchEngine()
    results = engine.search(store.conversations, "trip peru")
    snippet = engine.highlight(results[0].content, "trip peru")
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from chatdesk.config import SearchSettings
from chatdesk.models.chat import Conversation, Message, SearchResult

if TYPE_CHECKING:
    from chatdesk.conversations.store import ConversationStore

logger = logging.getLogger(__name__)

PHRASE_IN_CONTENT = 100
PHRASE_IN_TITLE = 80
WORD_IN_CONTENT = 10
WORD_IN_TITLE = 15
SUBSTRING_IN_CONTENT = 5
SUBSTRING_IN_TITLE = 8


def split_query(query: str) -> list[str]:
    """Lowercase ``query`` and split it on whitespace, dropping empty tokens."""
    return query.lower().split()


def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-component contributions to a message's relevance score."""

    phrase_in_content: int = 0
    phrase_in_title: int = 0
    content_words: int = 0
    title_words: int = 0
    content_substrings: int = 0
    title_substrings: int = 0

    @property
    def total(self) -> int:
        return (
            self.phrase_in_content
            + self.phrase_in_title
            + self.content_words
            + self.title_words
            + self.content_substrings
            + self.title_substrings
        )


class _CompiledQuery:
    def __init__(self, query: str) -> None:
        self.phrase = query.lower()
        self.words = split_query(query)
        self.patterns = [_word_pattern(word) for word in self.words]


class SearchEngine:
    """
    Stateless ranker over a snapshot of conversations.

    Results are ordered by descending score, then newest message first,
    and capped at ``max_results``.
    """

    def __init__(self, settings: SearchSettings | None = None) -> None:
        settings = settings or SearchSettings()
        self.max_results = settings.max_results
        self.highlight_open = settings.highlight_open
        self.highlight_close = settings.highlight_close

    def search(self, conversations: Iterable[Conversation], query: str) -> list[SearchResult]:
        compiled = _CompiledQuery(query)
        if not compiled.words:
            return []

        results: list[SearchResult] = []
        scanned = 0
        for conversation in conversations:
            for message in conversation.messages:
                scanned += 1
                score = self._score(compiled, conversation.title, message.content).total
                if score <= 0:
                    continue
                results.append(
                    SearchResult(
                        chat_id=conversation.id,
                        message_id=message.id,
                        chat_title=conversation.title,
                        content=message.content,
                        role=message.role,
                        created_at=message.created_at,
                        relevance_score=score,
                    )
                )

        results.sort(key=lambda result: (result.relevance_score, result.created_at), reverse=True)
        logger.debug(
            "search_completed",
            extra={"scanned": scanned, "matched": len(results), "terms": len(compiled.words)},
        )
        return results[: self.max_results]

    def search_store(self, store: "ConversationStore", query: str) -> list[SearchResult]:
        """Search the current snapshot of a ConversationStore."""
        return self.search(store.conversations, query)

    def score_message(
        self, conversation: Conversation, message: Message, query: str
    ) -> ScoreBreakdown:
        compiled = _CompiledQuery(query)
        if not compiled.words:
            return ScoreBreakdown()
        return self._score(compiled, conversation.title, message.content)

    def highlight(self, text: str, query: str) -> str:
        """
        Wrap every case-insensitive occurrence of each query word in markers.

        Words are applied one after another, so a later word may match inside
        markers added for an earlier one.
        """
        words = split_query(query)
        if not words:
            return text

        def wrap(match: re.Match[str]) -> str:
            return f"{self.highlight_open}{match.group(0)}{self.highlight_close}"

        highlighted = text
        for word in words:
            highlighted = re.sub(re.escape(word), wrap, highlighted, flags=re.IGNORECASE)
        return highlighted

    @staticmethod
    def _score(compiled: _CompiledQuery, title: str, content: str) -> ScoreBreakdown:
        content_lower = content.lower()
        title_lower = title.lower()

        content_words = 0
        title_words = 0
        content_substrings = 0
        title_substrings = 0
        for word, pattern in zip(compiled.words, compiled.patterns):
            content_words += WORD_IN_CONTENT * len(pattern.findall(content))
            title_words += WORD_IN_TITLE * len(pattern.findall(title))
            if word in content_lower:
                content_substrings += SUBSTRING_IN_CONTENT
            if word in title_lower:
                title_substrings += SUBSTRING_IN_TITLE

        return ScoreBreakdown(
            phrase_in_content=PHRASE_IN_CONTENT if compiled.phrase in content_lower else 0,
            phrase_in_title=PHRASE_IN_TITLE if compiled.phrase in title_lower else 0,
            content_words=content_words,
            title_words=title_words,
            content_substrings=content_substrings,
            title_substrings=title_substrings,
        )
