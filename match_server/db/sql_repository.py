"""Implementation of MatchStore using SQLAlchemy"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from match_server.core.exceptions import RepositoryError
from match_server.core.models import MatchSnapshot
from match_server.db.schema import DBMatch


class SQLMatchStore:
    """Data stored using SQL / methods implemented using SQLAlchemy.

    Opens one session per call, so it can be used from the outbox's worker thread.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def write_match(self, snapshot: MatchSnapshot) -> MatchSnapshot:
        """Insert or overwrite the record for snapshot.match_id."""
        try:
            with self.session_factory() as db:
                match_db = self._fetch_match(db, snapshot.match_id)
                if match_db is None:
                    match_db = DBMatch(id=snapshot.match_id)
                    db.add(match_db)
                self._apply(match_db, snapshot)
                db.commit()
                db.refresh(match_db)
                return self._to_snapshot(match_db)
        except SQLAlchemyError as error:
            raise RepositoryError(
                f"Could not write match {snapshot.match_id}: {error}"
            ) from error

    def get_match(self, match_id: str) -> MatchSnapshot | None:
        """Get match by ID, if record exists."""
        with self.session_factory() as db:
            match_db = self._fetch_match(db, match_id)
            if match_db:
                return self._to_snapshot(match_db)
            return None

    def _fetch_match(self, db: Session, match_id: str) -> DBMatch | None:
        query = select(DBMatch).where(DBMatch.id == match_id)
        return db.scalar(query)

    def _apply(self, match_db: DBMatch, snapshot: MatchSnapshot) -> None:
        match_db.status = snapshot.status
        match_db.white_player_id = snapshot.white_player_id
        match_db.black_player_id = snapshot.black_player_id
        match_db.white_display_name = snapshot.white_display_name
        match_db.black_display_name = snapshot.black_display_name
        match_db.stake_amount = snapshot.stake
        match_db.time_control = snapshot.time_control
        match_db.game_mode = snapshot.game_mode
        match_db.winner_id = snapshot.winner_id
        match_db.created_at = snapshot.created_at
        match_db.updated_at = snapshot.updated_at
        match_db.completed_at = snapshot.completed_at

    def _to_snapshot(self, match_db: DBMatch) -> MatchSnapshot:
        """Convert SQLAlchemy model to data transfer model."""
        return MatchSnapshot(
            match_id=match_db.id,
            status=match_db.status,
            white_player_id=match_db.white_player_id,
            black_player_id=match_db.black_player_id,
            white_display_name=match_db.white_display_name,
            black_display_name=match_db.black_display_name,
            stake=match_db.stake_amount,
            time_control=match_db.time_control,
            game_mode=match_db.game_mode,
            winner_id=match_db.winner_id,
            created_at=_as_utc(match_db.created_at),
            updated_at=_as_utc(match_db.updated_at),
            completed_at=_as_utc(match_db.completed_at)
            if match_db.completed_at
            else None,
        )


def _as_utc(value: datetime) -> datetime:
    """SQLite drops the timezone on the way back; everything is stored in UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
