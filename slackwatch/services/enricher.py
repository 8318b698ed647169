"""Cache-first user and channel lookups"""

import asyncio
import logging
from typing import Optional

from slackwatch.helpers import UNKNOWN, normalize_profile, placeholder_profile
from slackwatch.models import ChannelRef, Profile
from slackwatch.services.directory import DirectoryError, RemoteDirectory
from slackwatch.services.profile_cache import ProfileCache

logger = logging.getLogger(__name__)


class Enricher:
    """Resolves bare Slack ids into display metadata"""

    def __init__(
        self,
        directory: RemoteDirectory,
        cache: ProfileCache,
        max_concurrency: int = 10,
    ):
        self.directory = directory
        self.cache = cache
        self.max_concurrency = max(1, max_concurrency)

    async def fetch_user(self, user_id: str) -> Profile:
        """Fetch a user from Slack and cache it, raising DirectoryError on failure"""
        user = await self.directory.get_user(user_id)
        profile = normalize_profile(user)
        self.cache.put(profile["id"], profile)
        return profile

    async def _cached_or_fetch(self, user_id: str) -> Profile:
        cached: Optional[Profile] = self.cache.get(user_id)
        if cached is not None:
            return cached
        return await self.fetch_user(user_id)

    async def resolve_user(self, user_id: str) -> Profile:
        """Get a user's profile, falling back to an Unknown placeholder"""
        try:
            return await self._cached_or_fetch(user_id)
        except DirectoryError as err:
            logger.warning(f"Error fetching info for user {user_id}: {err}")
            return placeholder_profile(user_id)

    async def resolve_channel(self, channel_id: str) -> ChannelRef:
        """Get a channel's name; channels are not cached"""
        try:
            channel = await self.directory.get_channel(channel_id)
        except DirectoryError as err:
            logger.warning(f"Error fetching info for channel {channel_id}: {err}")
            return {"id": channel_id, "name": UNKNOWN}
        return {"id": channel_id, "name": channel.get("name") or UNKNOWN}

    async def list_members(self, channel_id: str) -> list[Profile]:
        """Resolve every member of a channel, skipping members that fail"""
        member_ids = await self.directory.list_members(channel_id)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _resolve(user_id: str) -> Optional[Profile]:
            async with semaphore:
                try:
                    profile = await self._cached_or_fetch(user_id)
                except DirectoryError as err:
                    logger.warning(f"Error fetching info for user {user_id}: {err}")
                    return None
            self.cache.put(profile["id"], profile)
            return profile

        results = await asyncio.gather(*(_resolve(uid) for uid in member_ids))
        return [profile for profile in results if profile is not None]
