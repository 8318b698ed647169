"""Data shapes shared across the service"""

from dataclasses import dataclass
from typing import Any, Optional, TypedDict


class Profile(TypedDict):
    """Normalized Slack user profile"""

    id: str
    name: str
    real_name: Optional[str]
    display_name: Optional[str]
    email: Optional[str]
    avatar: Optional[str]
    is_bot: bool
    is_admin: bool
    team_id: Optional[str]


class ChannelRef(TypedDict):
    """Channel id with its display name"""

    id: str
    name: str


class MessageRecord(TypedDict):
    """Enriched record of a new channel message"""

    channel: str
    channel_name: str
    user: str
    user_name: str
    text: str
    timestamp: str


class HistoryMessage(TypedDict):
    """A crawled message merged with its sender's profile"""

    user: Profile
    text: str
    timestamp: str


class HistoryPage(TypedDict):
    """One page of channel history"""

    messages: list[HistoryMessage]
    has_more: bool
    next_cursor: Optional[str]


# === Inbound events ===


@dataclass(frozen=True)
class UrlVerification:
    """Endpoint ownership handshake sent by Slack"""

    challenge: Any


@dataclass(frozen=True)
class MessagePosted:
    """A message event; subtype is None for plain new messages"""

    channel_id: str
    user_id: str
    text: str
    ts: str
    subtype: Optional[str] = None


@dataclass(frozen=True)
class MemberJoinedChannel:
    """A user joined a channel"""

    user_id: str
    channel_id: str


@dataclass(frozen=True)
class UserChanged:
    """A user updated their profile; carries the full Slack user object"""

    user: dict[str, Any]


@dataclass(frozen=True)
class UnknownEvent:
    """Any event kind this service does not act on"""

    type: Optional[str]


Event = (
    UrlVerification | MessagePosted | MemberJoinedChannel | UserChanged | UnknownEvent
)


def parse_event(payload: dict[str, Any]) -> Event:
    """Classify a decoded Events API request body.

    Raises KeyError when a recognized event is missing a field it cannot
    be handled without.
    """
    outer_type: Optional[str] = payload.get("type")
    if outer_type == "url_verification":
        return UrlVerification(challenge=payload.get("challenge"))

    event: Optional[dict[str, Any]] = payload.get("event")
    if outer_type != "event_callback" or not event:
        return UnknownEvent(type=outer_type)

    event_type: Optional[str] = event.get("type")
    if event_type == "message":
        return MessagePosted(
            channel_id=event.get("channel", ""),
            user_id=event.get("user", ""),
            text=event.get("text", ""),
            ts=event.get("ts", ""),
            subtype=event.get("subtype") or None,
        )
    if event_type == "member_joined_channel":
        return MemberJoinedChannel(user_id=event["user"], channel_id=event["channel"])
    if event_type == "user_change":
        user: dict[str, Any] = event["user"]
        if "id" not in user:
            raise KeyError("id")
        return UserChanged(user=user)
    return UnknownEvent(type=event_type)
