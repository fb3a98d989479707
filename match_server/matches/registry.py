"""In-memory registries of connected users and live matches (single process, not shared between instances)."""

from dataclasses import dataclass
from typing import Iterator, Optional

import structlog

from match_server.core.exceptions import DuplicateMatchError
from match_server.core.models import ConnectionHandle
from match_server.core.shared_types import MatchStatus
from match_server.matches.match import Match

logger = structlog.get_logger()


@dataclass
class User:
    id: str
    display_name: str
    connection: ConnectionHandle


class UserRegistry:
    """Maps a user ID to its live connection. One connection per user: last write wins."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def add_user(
        self, user_id: str, display_name: str, connection: ConnectionHandle
    ) -> User:
        replaced = self._users.get(user_id)
        if replaced is not None and replaced.connection is not connection:
            logger.info(
                "user connection replaced",
                user_id=user_id,
                previous_connection=replaced.connection.connection_id,
            )
        user = User(id=user_id, display_name=display_name, connection=connection)
        self._users[user_id] = user
        logger.info("added user", user_id=user_id, display_name=display_name)
        return user

    def remove_user(self, user_id: str) -> None:
        user = self._users.pop(user_id, None)
        if user is not None:
            logger.info("removed user", user_id=user_id, display_name=user.display_name)

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def lookup_by_connection(self, connection: ConnectionHandle) -> Optional[User]:
        """Linear scan over all registered users."""
        for user in self._users.values():
            if user.connection is connection:
                return user
        return None

    def __iter__(self) -> Iterator[User]:
        return iter(list(self._users.values()))

    def __len__(self) -> int:
        return len(self._users)


class MatchRegistry:
    """Maps a match ID to its Match."""

    def __init__(self) -> None:
        self._matches: dict[str, Match] = {}

    def add(self, match: Match) -> Match:
        if match.id in self._matches:
            raise DuplicateMatchError(f"Match with id={match.id!r} already exists.")
        self._matches[match.id] = match
        logger.info("created match", match_id=match.id)
        return match

    def get(self, match_id: str) -> Optional[Match]:
        return self._matches.get(match_id)

    def all(self) -> list[Match]:
        return list(self._matches.values())

    def available(self) -> list[Match]:
        """Pending matches with at least one empty seat."""
        return [
            match
            for match in self._matches.values()
            if match.status == MatchStatus.PENDING and match.has_open_seat
        ]

    def for_user(self, user_id: str) -> list[Match]:
        return [match for match in self._matches.values() if match.is_seated(user_id)]

    def __contains__(self, match_id: object) -> bool:
        return match_id in self._matches

    def __len__(self) -> int:
        return len(self._matches)
