"""Protocol for the persistent match store (SQLAlchemy implementation in sql_repository.py)."""

from typing import Protocol

from match_server.core.models import MatchSnapshot


class MatchStore(Protocol):
    """Persistence layer orchestration"""

    def write_match(self, snapshot: MatchSnapshot) -> MatchSnapshot:
        """Insert or overwrite the record for snapshot.match_id. Writing the same snapshot twice is harmless."""
        ...

    def get_match(self, match_id: str) -> MatchSnapshot | None:
        """Get match by ID, if record exists."""
        ...
