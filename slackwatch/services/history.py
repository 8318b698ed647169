"""Channel history crawling"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from slackwatch.helpers import (
    DEFAULT_HISTORY_LIMIT,
    non_empty,
    parse_limit,
    placeholder_profile,
)
from slackwatch.models import HistoryMessage, HistoryPage
from slackwatch.services.directory import RemoteDirectory
from slackwatch.services.profile_cache import ProfileCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryQuery:
    """Filters for one conversations.history page"""

    limit: int = DEFAULT_HISTORY_LIMIT
    oldest: Optional[str] = None
    latest: Optional[str] = None
    inclusive: bool = False
    cursor: Optional[str] = None

    @classmethod
    def from_params(
        cls,
        limit: Optional[str] = None,
        oldest: Optional[str] = None,
        latest: Optional[str] = None,
        inclusive: Optional[str] = None,
        cursor: Optional[str] = None,
    ) -> "HistoryQuery":
        """Build a query from raw query-string values"""
        return cls(
            limit=parse_limit(limit),
            oldest=non_empty(oldest),
            latest=non_empty(latest),
            inclusive=inclusive == "true",
            cursor=non_empty(cursor),
        )


class HistoryCrawler:
    """Pages through channel history, attaching cached sender profiles.

    Senders are only looked up in the cache; a crawl never fetches users,
    so uncached senders come back as Unknown placeholders.
    """

    def __init__(self, directory: RemoteDirectory, cache: ProfileCache):
        self.directory = directory
        self.cache = cache

    async def crawl(self, channel_id: str, query: HistoryQuery) -> HistoryPage:
        """Fetch a single page of history; pagination is left to the caller"""
        result: dict[str, Any] = await self.directory.history(
            channel_id,
            limit=query.limit,
            oldest=query.oldest,
            latest=query.latest,
            inclusive=query.inclusive,
            cursor=query.cursor,
        )

        messages: list[HistoryMessage] = []
        for msg in result.get("messages") or []:
            user_id: Optional[str] = msg.get("user")
            profile = self.cache.get(user_id) or placeholder_profile(user_id)
            messages.append(
                {
                    "user": profile,
                    "text": msg.get("text", ""),
                    "timestamp": msg.get("ts"),
                }
            )

        metadata: dict[str, Any] = result.get("response_metadata") or {}
        logger.info(f"Crawled {len(messages)} messages from {channel_id}")
        return {
            "messages": messages,
            "has_more": bool(result.get("has_more", False)),
            "next_cursor": metadata.get("next_cursor") or None,
        }
