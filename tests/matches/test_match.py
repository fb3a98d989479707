"""Unit tests for match_server/matches/match.py"""

import random

import pytest

from match_server.core.exceptions import (
    MatchFullError,
    MatchStateError,
    NotSeatedError,
    NotYourTurnError,
)
from match_server.core.shared_types import Color, GameStatus, MatchStatus
from match_server.matches.match import (
    DEFAULT_GAME_MODE,
    DEFAULT_TIME_CONTROL,
    STARTING_FEN,
    Match,
    Move,
)

ALICE = "alice-id"
BOB = "bob-id"
CAROL = "carol-id"

# Ten alternating moves, white first. Legality is not checked, only the squares.
TEN_MOVES = [
    ("e2", "e4"),
    ("e7", "e5"),
    ("g1", "f3"),
    ("b8", "c6"),
    ("f1", "b5"),
    ("a7", "a6"),
    ("b5", "a4"),
    ("g8", "f6"),
    ("e1", "g1"),
    ("f8", "e7"),
]


@pytest.fixture
def pending_match() -> Match:
    return Match.open(creator_id=ALICE, creator_name="Alice", stake=25)


@pytest.fixture
def full_match(pending_match: Match) -> Match:
    pending_match.join(BOB, "Bob")
    return pending_match


@pytest.fixture
def active_match(full_match: Match) -> Match:
    full_match.start()
    return full_match


def play(match: Match, moves: list[tuple[str, str]], rng: random.Random | None = None) -> None:
    for index, (from_square, to_square) in enumerate(moves):
        player = ALICE if index % 2 == 0 else BOB
        match.make_move(player, Move.from_algebraic(from_square, to_square), rng=rng)


def assert_game_state_invariant(match: Match) -> None:
    if match.status in (MatchStatus.ACTIVE, MatchStatus.COMPLETED):
        assert match.game_state is not None
    else:
        assert match.game_state is None


# -- CREATION --
def test_open_match_seats_creator_as_white() -> None:
    match = Match.open(creator_id=ALICE, creator_name="Alice")

    assert match.status == MatchStatus.PENDING
    assert match.white_player_id == ALICE
    assert match.white_display_name == "Alice"
    assert match.black_player_id is None
    assert match.game_state is None
    assert match.winner is None
    assert match.time_control == DEFAULT_TIME_CONTROL
    assert match.game_mode == DEFAULT_GAME_MODE
    assert match.stake == 0
    assert match.created_at == match.updated_at
    assert match.id  # generated


def test_open_match_keeps_supplied_id_and_settings() -> None:
    match = Match.open(
        creator_id=ALICE,
        creator_name="Alice",
        match_id="m-1",
        stake=10.5,
        time_control="10+5",
        game_mode="blitz",
    )
    assert match.id == "m-1"
    assert match.stake == 10.5
    assert match.time_control == "10+5"
    assert match.game_mode == "blitz"


def test_generated_ids_are_unique() -> None:
    ids = {Match.open(creator_id=ALICE, creator_name="Alice").id for _ in range(50)}
    assert len(ids) == 50


# -- JOINING --
def test_second_player_takes_black_seat(pending_match: Match) -> None:
    before = pending_match.updated_at
    assert pending_match.join(BOB, "Bob") is True

    assert pending_match.black_player_id == BOB
    assert pending_match.black_display_name == "Bob"
    assert pending_match.has_both_seats
    assert pending_match.status == MatchStatus.PENDING
    assert pending_match.updated_at >= before
    assert_game_state_invariant(pending_match)


def test_rejoin_is_idempotent(full_match: Match) -> None:
    """A seated player joining again changes nothing."""
    white, black, updated = (
        full_match.white_player_id,
        full_match.black_player_id,
        full_match.updated_at,
    )
    assert full_match.join(ALICE, "Alice again") is False
    assert full_match.join(BOB, "Bob again") is False

    assert full_match.white_player_id == white
    assert full_match.black_player_id == black
    assert full_match.white_display_name == "Alice"
    assert full_match.black_display_name == "Bob"
    assert full_match.updated_at == updated


def test_creator_cannot_take_both_seats(pending_match: Match) -> None:
    assert pending_match.join(ALICE, "Alice") is False
    assert pending_match.black_player_id is None


def test_third_player_cannot_join(full_match: Match) -> None:
    with pytest.raises(MatchFullError):
        full_match.join(CAROL, "Carol")
    assert full_match.seat_of(CAROL) is None


def test_white_seat_is_filled_first() -> None:
    """A match without a white player (e.g. restored from elsewhere) gives white to the first joiner."""
    match = Match(id="m-2", stake=0, time_control="5", game_mode="standard")
    match.join(BOB, "Bob")
    match.join(CAROL, "Carol")
    assert match.white_player_id == BOB
    assert match.black_player_id == CAROL


def test_cannot_join_cancelled_match(pending_match: Match) -> None:
    pending_match.cancel(ALICE)
    with pytest.raises(MatchStateError):
        pending_match.join(BOB, "Bob")


def test_seated_player_rejoining_active_match_gets_it_back(active_match: Match) -> None:
    assert active_match.join(BOB, "Bob") is False
    assert active_match.status == MatchStatus.ACTIVE


# -- STARTING --
def test_start_requires_both_seats(pending_match: Match) -> None:
    with pytest.raises(MatchStateError):
        pending_match.start()
    assert pending_match.status == MatchStatus.PENDING
    assert_game_state_invariant(pending_match)


def test_start_initializes_game_state(full_match: Match) -> None:
    full_match.start()

    assert full_match.status == MatchStatus.ACTIVE
    state = full_match.game_state
    assert state is not None
    assert state.board == STARTING_FEN
    assert state.current_turn == Color.WHITE
    assert state.move_history == []
    assert state.game_status == GameStatus.ACTIVE
    assert state.winner is None


def test_cannot_start_twice(active_match: Match) -> None:
    play(active_match, [("e2", "e4")])
    with pytest.raises(MatchStateError):
        active_match.start()
    # history survives the failed restart
    assert active_match.game_state is not None
    assert len(active_match.game_state.move_history) == 1


# -- CANCELLING --
def test_cancel_pending_match(full_match: Match) -> None:
    full_match.cancel(BOB)
    assert full_match.status == MatchStatus.CANCELLED
    assert_game_state_invariant(full_match)


def test_only_players_can_cancel(pending_match: Match) -> None:
    with pytest.raises(NotSeatedError):
        pending_match.cancel(CAROL)
    assert pending_match.status == MatchStatus.PENDING


def test_cannot_cancel_active_match(active_match: Match) -> None:
    with pytest.raises(MatchStateError):
        active_match.cancel(ALICE)
    assert active_match.status == MatchStatus.ACTIVE


def test_cancelled_match_cannot_start(full_match: Match) -> None:
    full_match.cancel(ALICE)
    with pytest.raises(MatchStateError):
        full_match.start()
    assert_game_state_invariant(full_match)


# -- MOVE GATE --
def test_move_flips_turn(active_match: Match) -> None:
    active_match.make_move(ALICE, Move.from_algebraic("e2", "e4"))

    state = active_match.game_state
    assert state is not None
    assert state.current_turn == Color.BLACK
    assert [move.to_dict() for move in state.move_history] == [{"from": "e2", "to": "e4"}]


def test_move_before_start_is_rejected(full_match: Match) -> None:
    with pytest.raises(MatchStateError):
        full_match.make_move(ALICE, Move.from_algebraic("e2", "e4"))
    assert full_match.game_state is None


def test_move_out_of_turn_is_rejected(active_match: Match) -> None:
    with pytest.raises(NotYourTurnError):
        active_match.make_move(BOB, Move.from_algebraic("e7", "e5"))

    state = active_match.game_state
    assert state is not None
    assert state.move_history == []
    assert state.current_turn == Color.WHITE


def test_move_by_stranger_is_rejected(active_match: Match) -> None:
    with pytest.raises(NotSeatedError):
        active_match.make_move(CAROL, Move.from_algebraic("e2", "e4"))

    assert active_match.game_state is not None
    assert active_match.game_state.move_history == []


def test_same_player_cannot_move_twice(active_match: Match) -> None:
    active_match.make_move(ALICE, Move.from_algebraic("e2", "e4"))
    with pytest.raises(NotYourTurnError):
        active_match.make_move(ALICE, Move.from_algebraic("d2", "d4"))
    assert active_match.game_state is not None
    assert len(active_match.game_state.move_history) == 1


def test_nine_moves_keep_the_game_going(active_match: Match) -> None:
    play(active_match, TEN_MOVES[:9])

    assert active_match.status == MatchStatus.ACTIVE
    assert active_match.game_state is not None
    assert active_match.game_state.game_status == GameStatus.ACTIVE
    assert active_match.winner is None


@pytest.mark.parametrize("seed", range(20))
def test_tenth_move_ends_the_game(active_match: Match, seed: int) -> None:
    play(active_match, TEN_MOVES, rng=random.Random(seed))

    state = active_match.game_state
    assert state is not None
    assert active_match.status == MatchStatus.COMPLETED
    assert state.game_status == GameStatus.CHECKMATE
    assert state.winner in (Color.WHITE, Color.BLACK)
    assert active_match.winner in (ALICE, BOB)
    assert active_match.winner == active_match.player_for(state.winner)
    assert active_match.completed_at is not None
    assert len(state.move_history) == 10


def test_both_colors_can_win() -> None:
    """The winner is drawn at random, so over enough games both colors should win at least once."""
    winners = set()
    rng = random.Random(1234)
    for _ in range(40):
        match = Match.open(creator_id=ALICE, creator_name="Alice")
        match.join(BOB, "Bob")
        match.start()
        play(match, TEN_MOVES, rng=rng)
        winners.add(match.winner)
    assert winners == {ALICE, BOB}


def test_no_moves_after_completion(active_match: Match) -> None:
    play(active_match, TEN_MOVES)
    with pytest.raises(MatchStateError):
        active_match.make_move(ALICE, Move.from_algebraic("a2", "a3"))
    assert active_match.game_state is not None
    assert len(active_match.game_state.move_history) == 10


def test_custom_forced_end_count(active_match: Match) -> None:
    active_match.make_move(ALICE, Move.from_algebraic("e2", "e4"), forced_end_move_count=2)
    assert active_match.status == MatchStatus.ACTIVE
    active_match.make_move(BOB, Move.from_algebraic("e7", "e5"), forced_end_move_count=2)
    assert active_match.status == MatchStatus.COMPLETED


# -- SNAPSHOT --
def test_snapshot_of_completed_match(active_match: Match) -> None:
    play(active_match, TEN_MOVES, rng=random.Random(7))
    snapshot = active_match.to_snapshot()

    assert snapshot.match_id == active_match.id
    assert snapshot.status == "completed"
    assert snapshot.white_player_id == ALICE
    assert snapshot.black_player_id == BOB
    assert snapshot.white_display_name == "Alice"
    assert snapshot.black_display_name == "Bob"
    assert snapshot.stake == 25
    assert snapshot.winner_id == active_match.winner
    assert snapshot.completed_at == active_match.completed_at
