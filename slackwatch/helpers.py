"""Profile shaping and request parsing helpers"""

import re
from typing import Any, Optional

from slackwatch.models import Profile

UNKNOWN = "Unknown"
DEFAULT_HISTORY_LIMIT = 100

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def normalize_profile(user: dict[str, Any]) -> Profile:
    """Map a Slack user object into a Profile"""
    profile: dict[str, Any] = user.get("profile") or {}
    real_name: Optional[str] = user.get("real_name") or profile.get("real_name")
    return {
        "id": user["id"],
        "name": user.get("name") or "",
        "real_name": real_name,
        "display_name": profile.get("display_name") or real_name,
        "email": profile.get("email") or None,
        "avatar": profile.get("image_192") or None,
        "is_bot": bool(user.get("is_bot", False)),
        "is_admin": bool(user.get("is_admin", False)),
        "team_id": user.get("team_id") or None,
    }


def placeholder_profile(user_id: Optional[str]) -> Profile:
    """Profile used when a user could not be resolved"""
    return {
        "id": user_id,  # type: ignore[typeddict-item]
        "name": UNKNOWN,
        "real_name": UNKNOWN,
        "display_name": UNKNOWN,
        "email": None,
        "avatar": None,
        "is_bot": False,
        "is_admin": False,
        "team_id": None,
    }


def parse_limit(raw: Optional[str], default: int = DEFAULT_HISTORY_LIMIT) -> int:
    """Parse the leading integer of a query value, like JS parseInt.

    Missing, non-numeric and non-positive values give the default.
    """
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    if not match:
        return default
    value = int(match.group(1))
    return value if value > 0 else default


def non_empty(raw: Optional[str]) -> Optional[str]:
    """Treat empty query values as absent"""
    return raw or None
