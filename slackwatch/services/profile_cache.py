"""In-memory user profile cache"""

from typing import Optional

from slackwatch.models import Profile


class ProfileCache:
    """Maps user ids to their last known Profile.

    Writes overwrite whatever is stored (last write wins, no merging). There
    is no locking: a get followed by a put is not atomic, so concurrent
    resolutions of the same id may race and the last completed write stays.
    Entries are never evicted.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, Profile] = {}

    def get(self, user_id: Optional[str]) -> Optional[Profile]:
        """Get a cached profile, or None"""
        if not user_id:
            return None
        return self._profiles.get(user_id)

    def put(self, user_id: str, profile: Profile) -> None:
        """Store a profile, replacing any previous entry"""
        self._profiles[user_id] = profile

    def __len__(self) -> int:
        return len(self._profiles)
