"""Slack Events API handling"""

import logging
from dataclasses import dataclass, field
from typing import Any

from slackwatch.helpers import UNKNOWN, normalize_profile
from slackwatch.models import (
    MemberJoinedChannel,
    MessagePosted,
    MessageRecord,
    UnknownEvent,
    UrlVerification,
    UserChanged,
    parse_event,
)
from slackwatch.services.directory import DirectoryError
from slackwatch.services.enricher import Enricher
from slackwatch.services.profile_cache import ProfileCache
from slackwatch.services.sinks import MessageSink

logger = logging.getLogger(__name__)


@dataclass
class Ack:
    """Outcome returned to the webhook caller"""

    status_code: int = 200
    body: dict[str, Any] = field(default_factory=lambda: {"success": True})


class EventIngestor:
    """Classifies inbound events and applies them to the profile cache.

    Enrichment problems never fail an acknowledgment, so Slack does not
    redeliver events because of a transient lookup error. Only unexpected
    processing errors produce a 500.
    """

    def __init__(self, enricher: Enricher, cache: ProfileCache, sink: MessageSink):
        self.enricher = enricher
        self.cache = cache
        self.sink = sink

    async def handle(self, payload: dict[str, Any]) -> Ack:
        """Process one decoded request body"""
        try:
            event = parse_event(payload)
            if isinstance(event, UrlVerification):
                return Ack(body={"challenge": event.challenge})
            if isinstance(event, MessagePosted):
                await self._on_message(event)
            elif isinstance(event, MemberJoinedChannel):
                await self._on_member_joined(event)
            elif isinstance(event, UserChanged):
                self._on_user_change(event)
            elif isinstance(event, UnknownEvent):
                logger.debug(f"Ignoring event type {event.type}")
            return Ack()
        except Exception as err:  # pylint: disable=broad-except
            logger.exception(f"Error processing event: {err}")
            return Ack(500, {"success": False, "error": str(err)})

    async def _on_message(self, event: MessagePosted) -> None:
        if event.subtype:
            return
        user = await self.enricher.resolve_user(event.user_id)
        channel = await self.enricher.resolve_channel(event.channel_id)
        record: MessageRecord = {
            "channel": event.channel_id,
            "channel_name": channel["name"],
            "user": event.user_id,
            "user_name": user["name"] or UNKNOWN,
            "text": event.text,
            "timestamp": event.ts,
        }
        await self.sink.emit(record)

    async def _on_member_joined(self, event: MemberJoinedChannel) -> None:
        logger.info(f"User {event.user_id} joined channel {event.channel_id}")
        try:
            await self.enricher.fetch_user(event.user_id)
        except DirectoryError as err:
            logger.error(f"Error fetching info for user {event.user_id}: {err}")
            return
        logger.info(f"Updated profile cache with user {event.user_id}")

    def _on_user_change(self, event: UserChanged) -> None:
        profile = normalize_profile(event.user)
        self.cache.put(profile["id"], profile)
        logger.info(f"Updated profile cache with new info for user {profile['id']}")
