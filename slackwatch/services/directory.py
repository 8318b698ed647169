"""Slack Web API access"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, Protocol

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 200


class DirectoryError(Exception):
    """A Slack call failed (API error, transport error or timeout)"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class RemoteDirectory(Protocol):
    """What the service needs from Slack"""

    async def get_user(self, user_id: str) -> dict[str, Any]: ...

    async def get_channel(self, channel_id: str) -> dict[str, Any]: ...

    async def list_members(self, channel_id: str) -> list[str]: ...

    async def history(
        self,
        channel_id: str,
        *,
        limit: int,
        oldest: Optional[str] = None,
        latest: Optional[str] = None,
        inclusive: bool = False,
        cursor: Optional[str] = None,
    ) -> dict[str, Any]: ...

    async def list_channels(self, types: str) -> list[dict[str, Any]]: ...

    async def post_message(self, channel_id: str, text: str) -> str: ...


class SlackDirectory:
    """RemoteDirectory backed by the Slack Web API"""

    def __init__(self, client: AsyncWebClient, timeout: float = 10.0):
        self.client = client
        self.timeout = timeout

    async def _call(self, method: str, request: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(request, timeout=self.timeout)
        except SlackApiError as err:
            code: Optional[str] = err.response.get("error") if err.response else None  # type: ignore
            raise DirectoryError(f"{method} failed: {code or err}", code) from err
        except asyncio.TimeoutError as err:
            raise DirectoryError(
                f"{method} timed out after {self.timeout}s", "timeout"
            ) from err
        except (SlackClientError, aiohttp.ClientError) as err:
            raise DirectoryError(f"{method} failed: {err}") from err

    async def get_user(self, user_id: str) -> dict[str, Any]:
        """Get a Slack user object"""
        response = await self._call(
            "users.info", self.client.users_info(user=user_id)
        )
        user: Optional[dict[str, Any]] = response.get("user")
        if not user:
            raise DirectoryError(f"users.info returned no user for {user_id}")
        return user

    async def get_channel(self, channel_id: str) -> dict[str, Any]:
        """Get a Slack conversation object"""
        response = await self._call(
            "conversations.info", self.client.conversations_info(channel=channel_id)
        )
        return response.get("channel") or {}

    async def list_members(self, channel_id: str) -> list[str]:
        """Get every member id of a channel, following pagination"""
        members: list[str] = []
        cursor: Optional[str] = None
        while True:
            response = await self._call(
                "conversations.members",
                self.client.conversations_members(
                    channel=channel_id, limit=PAGE_SIZE, cursor=cursor
                ),
            )
            members.extend(response.get("members") or [])
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return members

    async def history(
        self,
        channel_id: str,
        *,
        limit: int,
        oldest: Optional[str] = None,
        latest: Optional[str] = None,
        inclusive: bool = False,
        cursor: Optional[str] = None,
    ) -> dict[str, Any]:
        """Get one page of channel history"""
        response = await self._call(
            "conversations.history",
            self.client.conversations_history(
                channel=channel_id,
                limit=limit,
                oldest=oldest,
                latest=latest,
                inclusive=inclusive,
                cursor=cursor,
            ),
        )
        return response.data  # type: ignore

    async def list_channels(self, types: str) -> list[dict[str, Any]]:
        """Get every channel of the given types, following pagination"""
        channels: list[dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            response = await self._call(
                "conversations.list",
                self.client.conversations_list(
                    types=types, limit=PAGE_SIZE, cursor=cursor
                ),
            )
            channels.extend(response.get("channels") or [])
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return channels

    async def post_message(self, channel_id: str, text: str) -> str:
        """Post a message and return its timestamp"""
        response = await self._call(
            "chat.postMessage",
            self.client.chat_postMessage(channel=channel_id, text=text),
        )
        logger.debug(f"Posted message to {channel_id}")
        return response["ts"]
