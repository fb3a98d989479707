"""Push state changes to the players' live connections. No queuing, no retry, no delivery guarantee."""

from typing import Any

import structlog

from match_server.api.messages import (
    GameStateResponse,
    GameStateUpdate,
    MatchCreated,
    MatchResponse,
    MatchUpdate,
)
from match_server.core.exceptions import ConnectionClosedError
from match_server.matches.registry import UserRegistry

logger = structlog.get_logger()


class MatchNotifier:
    def __init__(self, users: UserRegistry) -> None:
        self.users = users

    async def notify_match_update(self, match: MatchResponse) -> int:
        """Send the match to both seated players. Returns the number of deliveries."""
        payload = MatchUpdate(match=match).to_wire()
        return await self._push_to_players(match.player_ids(), payload)

    async def notify_game_state_update(
        self, match: MatchResponse, state: GameStateResponse
    ) -> int:
        payload = GameStateUpdate(match_id=match.id, game_state=state).to_wire()
        return await self._push_to_players(match.player_ids(), payload)

    async def broadcast_match_created(self, match: MatchResponse) -> int:
        """Every connected user learns about the new match (lobby listing)."""
        payload = MatchCreated(match=match).to_wire()
        return await self._push_to_players([user.id for user in self.users], payload)

    async def _push_to_players(self, player_ids: list[str], payload: dict[str, Any]) -> int:
        delivered = 0
        for player_id in player_ids:
            if await self._push(player_id, payload):
                delivered += 1
        return delivered

    async def _push(self, user_id: str, payload: dict[str, Any]) -> bool:
        user = self.users.get(user_id)
        if user is None or not user.connection.is_open:
            return False
        try:
            await user.connection.send_json(payload)
        except ConnectionClosedError:
            logger.info("skipped push to closed connection", user_id=user_id, type=payload["type"])
            return False
        return True
