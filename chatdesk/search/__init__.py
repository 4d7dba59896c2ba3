"""Full-text search and highlighting over stored conversations."""

from chatdesk.search.engine import ScoreBreakdown, SearchEngine, split_query

__all__ = ["ScoreBreakdown", "SearchEngine", "split_query"]
