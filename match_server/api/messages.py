"""Inbound (request) and outbound (response / push) message models. All keys are camelCase on the wire."""

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    FiniteFloat,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel

from match_server.core.exceptions import InvalidRequestError
from match_server.core.shared_types import Color, GameStatus, MatchStatus
from match_server.matches.match import GameState, Match
from match_server.matches.square import is_algebraic_notation

RequestId = Union[str, int, FiniteFloat, None]
PlayerId = str


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# --- REQUEST MODELS ---
class MovePayload(WireModel):
    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value


class AuthRequest(WireModel):
    type: Literal["auth"]
    request_id: RequestId = None
    user_id: str = Field(min_length=1)
    display_name: str = Field(min_length=1)


class CreateMatchRequest(WireModel):
    type: Literal["createMatch"]
    request_id: RequestId = None
    match_id: Optional[str] = None
    stake: float = Field(default=0, ge=0, allow_inf_nan=False)
    time_control: Optional[str] = None
    game_mode: Optional[str] = None


class JoinMatchRequest(WireModel):
    type: Literal["joinMatch"]
    request_id: RequestId = None
    match_id: str


class StartMatchRequest(WireModel):
    type: Literal["startMatch"]
    request_id: RequestId = None
    match_id: str


class MakeMoveRequest(WireModel):
    type: Literal["makeMove"]
    request_id: RequestId = None
    match_id: str
    move: MovePayload


class CancelMatchRequest(WireModel):
    type: Literal["cancelMatch"]
    request_id: RequestId = None
    match_id: str


class GetAvailableMatchesRequest(WireModel):
    type: Literal["getAvailableMatches"]
    request_id: RequestId = None


class GetUserMatchesRequest(WireModel):
    type: Literal["getUserMatches"]
    request_id: RequestId = None


InboundMessage = Annotated[
    Union[
        AuthRequest,
        CreateMatchRequest,
        JoinMatchRequest,
        StartMatchRequest,
        MakeMoveRequest,
        CancelMatchRequest,
        GetAvailableMatchesRequest,
        GetUserMatchesRequest,
    ],
    Field(discriminator="type"),
]

INBOUND_ADAPTER: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


# --- RESPONSE MODELS ---
class GameStateResponse(WireModel):
    board: str
    current_turn: Color
    move_history: list[MovePayload]
    game_status: GameStatus
    winner: Optional[Color]

    @classmethod
    def from_state(cls, state: GameState) -> "GameStateResponse":
        return cls(
            board=state.board,
            current_turn=state.current_turn,
            move_history=[
                MovePayload(
                    from_square=move.from_square.to_algebraic(),
                    to_square=move.to_square.to_algebraic(),
                )
                for move in state.move_history
            ],
            game_status=state.game_status,
            winner=state.winner,
        )


class MatchResponse(WireModel):
    id: str
    white_player_id: Optional[PlayerId]
    black_player_id: Optional[PlayerId]
    white_display_name: Optional[str]
    black_display_name: Optional[str]
    stake: float
    time_control: str
    game_mode: str
    status: MatchStatus
    winner: Optional[PlayerId]
    game_state: Optional[GameStateResponse]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_match(cls, match: Match) -> "MatchResponse":
        return cls(
            id=match.id,
            white_player_id=match.white_player_id,
            black_player_id=match.black_player_id,
            white_display_name=match.white_display_name,
            black_display_name=match.black_display_name,
            stake=match.stake,
            time_control=match.time_control,
            game_mode=match.game_mode,
            status=match.status,
            winner=match.winner,
            game_state=GameStateResponse.from_state(match.game_state)
            if match.game_state
            else None,
            created_at=match.created_at,
            updated_at=match.updated_at,
        )

    def player_ids(self) -> list[PlayerId]:
        return [
            player_id
            for player_id in (self.white_player_id, self.black_player_id)
            if player_id
        ]


# Direct replies (echo the requestId)
class AuthSuccess(WireModel):
    type: Literal["authSuccess"] = "authSuccess"
    request_id: RequestId = None
    user_id: PlayerId
    display_name: str


class CreateMatchSuccess(WireModel):
    type: Literal["createMatchSuccess"] = "createMatchSuccess"
    request_id: RequestId = None
    match: MatchResponse


class JoinMatchSuccess(WireModel):
    type: Literal["joinMatchSuccess"] = "joinMatchSuccess"
    request_id: RequestId = None
    match: MatchResponse


class StartMatchSuccess(WireModel):
    type: Literal["startMatchSuccess"] = "startMatchSuccess"
    request_id: RequestId = None
    match: MatchResponse


class MakeMoveSuccess(WireModel):
    type: Literal["makeMoveSuccess"] = "makeMoveSuccess"
    request_id: RequestId = None
    match: MatchResponse


class CancelMatchSuccess(WireModel):
    type: Literal["cancelMatchSuccess"] = "cancelMatchSuccess"
    request_id: RequestId = None
    match: MatchResponse


class AvailableMatches(WireModel):
    type: Literal["availableMatches"] = "availableMatches"
    request_id: RequestId = None
    matches: list[MatchResponse]


class UserMatches(WireModel):
    type: Literal["userMatches"] = "userMatches"
    request_id: RequestId = None
    matches: list[MatchResponse]


class ErrorMessage(WireModel):
    type: Literal["error"] = "error"
    request_id: RequestId = None
    error: str


# Pushes (fanout)
class MatchUpdate(WireModel):
    type: Literal["matchUpdate"] = "matchUpdate"
    match: MatchResponse


class GameStateUpdate(WireModel):
    type: Literal["gameStateUpdate"] = "gameStateUpdate"
    match_id: str
    game_state: GameStateResponse


class MatchCreated(WireModel):
    type: Literal["matchCreated"] = "matchCreated"
    match: MatchResponse
