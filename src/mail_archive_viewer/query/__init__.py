"""Message search for a selected folder."""

from .engine import (
    ParsedQuery,
    QueryEngine,
    QueryOperator,
    filter_messages,
    parse_query,
)

__all__ = [
    "ParsedQuery",
    "QueryEngine",
    "QueryOperator",
    "filter_messages",
    "parse_query",
]
