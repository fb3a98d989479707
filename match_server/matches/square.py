"""
A square on the board

(placed in its own module as both the move gate and the request models need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass
from string import ascii_lowercase

from match_server.core.exceptions import InvalidRequestError

# Chess board is always 8x8.
BOARD_DIMENSIONS = (8, 8)


@dataclass(frozen=True)
class Square:
    file: int
    rank: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' get converted to (1,1) - (8,8)"""
        if not is_algebraic_notation(sq):
            raise InvalidRequestError(f"Cannot interpret {sq!r} as a square name.")
        square = cls(file=ord(sq[0]) - ord("a") + 1, rank=int(sq[1:]))
        if not square.is_within_bounds():
            raise InvalidRequestError(f"Square {sq!r} is not on the board.")
        return square

    def to_algebraic(self) -> str:
        return f"{chr(self.file + ord('a') - 1)}{self.rank}"

    def is_within_bounds(self) -> bool:
        return (1 <= self.file <= BOARD_DIMENSIONS[0]) and (
            1 <= self.rank <= BOARD_DIMENSIONS[1]
        )


def is_algebraic_notation(value: str) -> bool:
    """A lower case file letter followed by a one or two digit rank, e.g. 'e4'."""
    if not 2 <= len(value) <= 3:
        return False
    return value[0] in ascii_lowercase and value[1:].isdecimal()
