"""
ChatDesk

Single-user chat client core: per-user conversation state with streamed
assistant replies, local persistence, and ranked full-text search.
"""

__version__ = "0.1.0"
