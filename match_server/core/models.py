"""
Boundary layer data model(s).

These objects are used to communicate across layers.
The domain layer (matches) produces a MatchSnapshot, the service hands it to the persistence layer,
and the registries only know about connections through the ConnectionHandle protocol.
(Decouples the domain objects from the DB schema and from the web framework's WebSocket type)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

# Type aliases to make MatchSnapshot easier to read
PlayerId = str
DisplayName = str


@dataclass(frozen=True)
class MatchSnapshot:
    """Transport-safe representation of a match's persisted fields (status, seats, winner)."""

    match_id: str
    status: str
    white_player_id: Optional[PlayerId]
    black_player_id: Optional[PlayerId]
    white_display_name: Optional[DisplayName]
    black_display_name: Optional[DisplayName]
    stake: float
    time_control: str
    game_mode: str
    winner_id: Optional[PlayerId]
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None


class ConnectionHandle(Protocol):
    """Non-owning reference to a client's duplex channel."""

    connection_id: str

    @property
    def is_open(self) -> bool:
        """True while messages can still be pushed to the client."""
        ...

    async def send_json(self, payload: dict[str, Any]) -> None:
        """Serialize and push a single message. Raises ConnectionClosedError if the channel is gone."""
        ...
