"""Search over the messages of one folder.

A query is either a single prefixed clause or free text:

    from:<text>         sender contains <text>
    to:<text>           recipient contains <text>
    subject:<text>      subject contains <text>
    attachments:<text>  has attachments; with <text>, one filename contains it
    <anything else>     sender, recipient, subject or either body contains it

Matching is case-insensitive and clauses cannot be combined.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import structlog

from mail_archive_viewer.models import MessageRecord
from mail_archive_viewer.store import MailStoreRepository

logger = structlog.get_logger()


class QueryOperator(str, Enum):
    """Query operator enumeration."""

    FROM = "from"
    TO = "to"
    SUBJECT = "subject"
    ATTACHMENTS = "attachments"
    FREE_TEXT = "free_text"


_PREFIXED = (
    QueryOperator.FROM,
    QueryOperator.TO,
    QueryOperator.SUBJECT,
    QueryOperator.ATTACHMENTS,
)


@dataclass(frozen=True)
class ParsedQuery:
    """A query reduced to its operator and lower-cased operand."""

    operator: QueryOperator
    value: str


def parse_query(raw: str) -> ParsedQuery:
    """Tokenize a raw query into exactly one operator and its value."""

    text = raw.strip().lower()
    for operator in _PREFIXED:
        prefix = f"{operator.value}:"
        if text.startswith(prefix):
            return ParsedQuery(operator, text[len(prefix) :].strip())
    return ParsedQuery(QueryOperator.FREE_TEXT, text)


def _contains(field: str, needle: str) -> bool:
    return needle in field.lower()


def _match_from(message: MessageRecord, value: str) -> bool:
    return _contains(message.sender, value)


def _match_to(message: MessageRecord, value: str) -> bool:
    return _contains(message.recipient, value)


def _match_subject(message: MessageRecord, value: str) -> bool:
    return _contains(message.subject, value)


def _match_attachments(message: MessageRecord, value: str) -> bool:
    if not message.attachments:
        return False
    if not value:
        return True
    return any(_contains(a.file_name, value) for a in message.attachments)


def _match_free_text(message: MessageRecord, value: str) -> bool:
    return (
        _contains(message.sender, value)
        or _contains(message.recipient, value)
        or _contains(message.subject, value)
        or _contains(message.text_body, value)
        or _contains(message.html_body, value)
    )


_MATCHERS: dict[QueryOperator, Callable[[MessageRecord, str], bool]] = {
    QueryOperator.FROM: _match_from,
    QueryOperator.TO: _match_to,
    QueryOperator.SUBJECT: _match_subject,
    QueryOperator.ATTACHMENTS: _match_attachments,
    QueryOperator.FREE_TEXT: _match_free_text,
}

if set(_MATCHERS) != set(QueryOperator):
    raise RuntimeError("Every query operator needs a matcher")


def filter_messages(messages: Iterable[MessageRecord], raw_query: str) -> list[MessageRecord]:
    """Keep the messages matching ``raw_query``, preserving their order.

    An empty or whitespace-only query keeps everything.
    """

    messages = list(messages)
    if not raw_query or not raw_query.strip():
        return messages

    query = parse_query(raw_query)
    matcher = _MATCHERS[query.operator]
    return [m for m in messages if matcher(m, query.value)]


class QueryEngine:
    """Read-only search over the local store."""

    def __init__(self, store: MailStoreRepository) -> None:
        self.store = store

    def search(self, folder_id: str, query: str = "") -> list[MessageRecord]:
        """Return the folder's messages, newest first, filtered by ``query``."""

        messages = self.store.list_messages_by_folder(folder_id, newest_first=True)
        results = filter_messages(messages, query)
        logger.debug(
            "folder_search",
            folder_id=folder_id,
            query=query,
            candidates=len(messages),
            matches=len(results),
        )
        return results
