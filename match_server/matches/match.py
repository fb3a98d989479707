"""
The Match class is the entrypoint into the domain layer for the service layer.
It owns the seat-filling rules, the status machine (pending -> active -> completed, pending -> cancelled)
and the move gate (turn ownership + move history).

No chess rules are evaluated here: any move between two board squares is accepted when it is the mover's turn,
and a match is ended once the move history reaches a fixed length.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Self
from uuid import uuid4

from match_server.core.exceptions import (
    MatchFullError,
    MatchStateError,
    NotSeatedError,
    NotYourTurnError,
)
from match_server.core.models import MatchSnapshot
from match_server.core.shared_types import (
    STATUS_TRANSITIONS,
    Color,
    GameStatus,
    MatchStatus,
)
from match_server.matches.square import Square

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
DEFAULT_TIME_CONTROL = "5"
DEFAULT_GAME_MODE = "standard"
FORCED_END_MOVE_COUNT = 10


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Move:
    from_square: Square
    to_square: Square

    @classmethod
    def from_algebraic(cls, from_square: str, to_square: str) -> Self:
        return cls(Square.from_algebraic(from_square), Square.from_algebraic(to_square))

    def to_dict(self) -> dict[str, str]:
        return {
            "from": self.from_square.to_algebraic(),
            "to": self.to_square.to_algebraic(),
        }


@dataclass
class GameState:
    board: str
    current_turn: Color
    move_history: list[Move]
    game_status: GameStatus
    winner: Optional[Color] = None

    @classmethod
    def initial(cls) -> Self:
        return cls(
            board=STARTING_FEN,
            current_turn=Color.WHITE,
            move_history=[],
            game_status=GameStatus.ACTIVE,
        )


@dataclass
class Match:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    id: str
    stake: float
    time_control: str
    game_mode: str
    status: MatchStatus = MatchStatus.PENDING
    white_player_id: Optional[str] = None
    black_player_id: Optional[str] = None
    white_display_name: Optional[str] = None
    black_display_name: Optional[str] = None
    winner: Optional[str] = None
    game_state: Optional[GameState] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None

    @classmethod
    def open(
        cls,
        creator_id: str,
        creator_name: str,
        match_id: Optional[str] = None,
        stake: float = 0,
        time_control: Optional[str] = None,
        game_mode: Optional[str] = None,
    ) -> Self:
        """New pending match. The creator always takes the white seat."""
        now = utc_now()
        return cls(
            id=match_id or str(uuid4()),
            stake=stake,
            time_control=time_control or DEFAULT_TIME_CONTROL,
            game_mode=game_mode or DEFAULT_GAME_MODE,
            white_player_id=creator_id,
            white_display_name=creator_name,
            created_at=now,
            updated_at=now,
        )

    # -- Seats --
    def seat_of(self, user_id: str) -> Optional[Color]:
        if self.white_player_id == user_id:
            return Color.WHITE
        if self.black_player_id == user_id:
            return Color.BLACK
        return None

    def is_seated(self, user_id: str) -> bool:
        return self.seat_of(user_id) is not None

    @property
    def has_both_seats(self) -> bool:
        return bool(self.white_player_id) and bool(self.black_player_id)

    @property
    def has_open_seat(self) -> bool:
        return not self.has_both_seats

    def player_ids(self) -> list[str]:
        """Seated player IDs, white first."""
        return [
            player_id
            for player_id in (self.white_player_id, self.black_player_id)
            if player_id
        ]

    def player_for(self, color: Color) -> Optional[str]:
        return self.white_player_id if color == Color.WHITE else self.black_player_id

    # -- Lifecycle --
    def join(self, user_id: str, display_name: str) -> bool:
        """
        Seat a player.
        ----
        Returns False when the user was already seated (nothing changes), True when a seat got filled.
        White is filled before black.
        """
        if self.is_seated(user_id):
            return False

        if self.status != MatchStatus.PENDING:
            raise MatchStateError(
                f"Cannot join match {self.id}. Match is not accepting players. status: {self.status}"
            )

        if not self.white_player_id:
            self.white_player_id = user_id
            self.white_display_name = display_name
        elif not self.black_player_id:
            self.black_player_id = user_id
            self.black_display_name = display_name
        else:
            raise MatchFullError(f"Match {self.id} already has two players.")

        self._touch()
        return True

    def start(self) -> None:
        """Both seats filled: initialize the game state, white to move."""
        if not self.has_both_seats:
            raise MatchStateError(
                f"Cannot start match {self.id}. Waiting for a second player."
            )
        self._change_status(MatchStatus.ACTIVE)
        self.game_state = GameState.initial()
        self._touch()

    def cancel(self, user_id: str) -> None:
        self._assert_seated(user_id)
        self._change_status(MatchStatus.CANCELLED)
        self._touch()

    # -- Move gate --
    def make_move(
        self,
        user_id: str,
        move: Move,
        forced_end_move_count: int = FORCED_END_MOVE_COUNT,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Attempt to make a move
        -----
        1. match must be active (a game state exists and the game has not ended)
        2. user must be seated
        3. it must be the user's turn
        4. append move, flip turn
        5. end the game once the history is long enough
        """
        if self.game_state is None or self.status != MatchStatus.ACTIVE:
            raise MatchStateError(
                f"Match {self.id} is not in progress. status: {self.status}"
            )
        color = self._assert_seated(user_id)
        state = self.game_state
        if color != state.current_turn:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {state.current_turn} to make a move first."
            )

        state.move_history.append(move)
        state.current_turn = state.current_turn.opponent

        if len(state.move_history) >= forced_end_move_count:
            self._force_end((rng or random).choice([Color.WHITE, Color.BLACK]))

        self._touch()

    @property
    def is_finished(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    def to_snapshot(self) -> MatchSnapshot:
        """Encode the persisted fields in a format the Service layer hands to the store"""
        return MatchSnapshot(
            match_id=self.id,
            status=self.status.value,
            white_player_id=self.white_player_id,
            black_player_id=self.black_player_id,
            white_display_name=self.white_display_name,
            black_display_name=self.black_display_name,
            stake=self.stake,
            time_control=self.time_control,
            game_mode=self.game_mode,
            winner_id=self.winner,
            created_at=self.created_at,
            updated_at=self.updated_at,
            completed_at=self.completed_at,
        )

    # -- PRIVATE HELPERS ---
    def _assert_seated(self, user_id: str) -> Color:
        color = self.seat_of(user_id)
        if color is None:
            raise NotSeatedError(f"Not a player in match {self.id}.")
        return color

    def _force_end(self, winning_color: Color) -> None:
        """Stand-in for rule evaluation: declare checkmate with the given winner."""
        assert self.game_state is not None
        self.game_state.game_status = GameStatus.CHECKMATE
        self.game_state.winner = winning_color
        self.winner = self.player_for(winning_color)
        self._change_status(MatchStatus.COMPLETED)
        self.completed_at = utc_now()

    def _change_status(self, new_status: MatchStatus) -> None:
        if new_status not in STATUS_TRANSITIONS[self.status]:
            raise MatchStateError(
                f"Match {self.id} cannot go from {self.status} to {new_status}."
            )
        self.status = new_status

    def _touch(self) -> None:
        self.updated_at = utc_now()
