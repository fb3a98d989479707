"""Orchestration of communication from the message dispatcher to the domain layer and the persistence outbox."""

import random
from typing import Optional

import structlog

from match_server.api.messages import (
    CancelMatchRequest,
    CreateMatchRequest,
    JoinMatchRequest,
    MakeMoveRequest,
    MatchResponse,
    StartMatchRequest,
)
from match_server.core.exceptions import MatchNotFoundError, NotSeatedError
from match_server.matches.match import FORCED_END_MOVE_COUNT, Match, Move
from match_server.matches.registry import MatchRegistry, User
from match_server.services.outbox import SnapshotSink

logger = structlog.get_logger()


class MatchService:
    """Orchestration of layers for match coordination."""

    def __init__(
        self,
        matches: MatchRegistry,
        outbox: SnapshotSink,
        forced_end_move_count: int = FORCED_END_MOVE_COUNT,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.matches = matches
        self.outbox = outbox
        self.forced_end_move_count = forced_end_move_count
        self.rng = rng or random.Random()

    # -- Dispatcher logic ---
    def create_match(self, request: CreateMatchRequest, user: User) -> MatchResponse:
        """A player opens a new match and takes the white seat."""
        match = Match.open(
            creator_id=user.id,
            creator_name=user.display_name,
            match_id=request.match_id,
            stake=request.stake,
            time_control=request.time_control,
            game_mode=request.game_mode,
        )
        self.matches.add(match)
        return MatchResponse.from_match(match)

    def join_match(self, request: JoinMatchRequest, user: User) -> MatchResponse:
        """Second player requested to join a match (a seated player re-joining gets the match unchanged)."""
        match = self._fetch_match(request.match_id)

        seat_filled = match.join(user.id, user.display_name)
        if seat_filled:
            logger.info(
                "user joined match",
                match_id=match.id,
                user_id=user.id,
                color=match.seat_of(user.id),
            )
            if match.has_both_seats:
                self.outbox.enqueue(match.to_snapshot())

        return MatchResponse.from_match(match)

    def start_match(self, request: StartMatchRequest, user: User) -> MatchResponse:
        match = self._fetch_match(request.match_id)
        self._assert_player(match, user)

        match.start()
        logger.info("started match", match_id=match.id)
        self.outbox.enqueue(match.to_snapshot())

        return MatchResponse.from_match(match)

    def make_move(self, request: MakeMoveRequest, user: User) -> MatchResponse:
        """Make a move attempt."""
        match = self._fetch_match(request.match_id)
        self._assert_player(match, user)

        move = Move.from_algebraic(request.move.from_square, request.move.to_square)
        match.make_move(
            user.id, move, forced_end_move_count=self.forced_end_move_count, rng=self.rng
        )
        logger.info(
            "move made",
            match_id=match.id,
            user_id=user.id,
            from_square=request.move.from_square,
            to_square=request.move.to_square,
        )

        if match.is_finished:
            logger.info("match completed", match_id=match.id, winner=match.winner)
            self.outbox.enqueue(match.to_snapshot())

        return MatchResponse.from_match(match)

    def cancel_match(self, request: CancelMatchRequest, user: User) -> MatchResponse:
        """A seated player withdraws a match that has not started yet."""
        match = self._fetch_match(request.match_id)

        match.cancel(user.id)
        logger.info("cancelled match", match_id=match.id, user_id=user.id)
        self.outbox.enqueue(match.to_snapshot())

        return MatchResponse.from_match(match)

    def available_matches(self) -> list[MatchResponse]:
        return [MatchResponse.from_match(match) for match in self.matches.available()]

    def user_matches(self, user: User) -> list[MatchResponse]:
        return [
            MatchResponse.from_match(match) for match in self.matches.for_user(user.id)
        ]

    # -- Internal helpers --
    def _fetch_match(self, match_id: str) -> Match:
        """Attempt to find the match in the registry and raise error if it fails."""
        match = self.matches.get(match_id)
        if match is None:
            raise MatchNotFoundError(f"Match with {match_id=} not found.")
        return match

    def _assert_player(self, match: Match, user: User) -> None:
        if not match.is_seated(user.id):
            raise NotSeatedError("Not a player in this match")
