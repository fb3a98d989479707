"""
Route inbound WebSocket messages to the match service.

Messages are parsed into one of the InboundMessage models (tagged on "type") and dispatched through a closed
mapping of message model -> handler. Every handler replies to the sender first, then fans out to the players.
Any MatchError ends up as an "error" message for the sender; the connection stays open.
"""

import json
import math
from typing import Any, Awaitable, Callable, Optional

import structlog
from pydantic import ValidationError

from match_server.api.messages import (
    INBOUND_ADAPTER,
    AuthRequest,
    AuthSuccess,
    AvailableMatches,
    CancelMatchRequest,
    CancelMatchSuccess,
    CreateMatchRequest,
    CreateMatchSuccess,
    ErrorMessage,
    GetAvailableMatchesRequest,
    GetUserMatchesRequest,
    JoinMatchRequest,
    JoinMatchSuccess,
    MakeMoveRequest,
    MakeMoveSuccess,
    RequestId,
    StartMatchRequest,
    StartMatchSuccess,
    UserMatches,
    WireModel,
)
from match_server.core.exceptions import (
    InvalidRequestError,
    MatchError,
    NotAuthenticatedError,
)
from match_server.core.models import ConnectionHandle
from match_server.matches.registry import User, UserRegistry
from match_server.services.fanout import MatchNotifier
from match_server.services.match_service import MatchService

logger = structlog.get_logger()

Handler = Callable[[ConnectionHandle, Any, Optional[User]], Awaitable[None]]


class MessageDispatcher:
    def __init__(
        self, users: UserRegistry, service: MatchService, notifier: MatchNotifier
    ) -> None:
        self.users = users
        self.service = service
        self.notifier = notifier
        self.handlers: dict[type[WireModel], Handler] = {
            AuthRequest: self._handle_auth,
            CreateMatchRequest: self._handle_create_match,
            JoinMatchRequest: self._handle_join_match,
            StartMatchRequest: self._handle_start_match,
            MakeMoveRequest: self._handle_make_move,
            CancelMatchRequest: self._handle_cancel_match,
            GetAvailableMatchesRequest: self._handle_get_available_matches,
            GetUserMatchesRequest: self._handle_get_user_matches,
        }

    async def handle_text(self, connection: ConnectionHandle, text: str) -> None:
        """Entry point for one raw inbound frame."""
        request_id: RequestId = None
        try:
            raw = self._decode(text)
            request_id = _request_id(raw)
            user = self.users.lookup_by_connection(connection)
            if raw.get("type") != "auth" and user is None:
                raise NotAuthenticatedError("Not authenticated")

            message = self._parse(raw)
            handler = self.handlers[type(message)]
            await handler(connection, message, user)
        except MatchError as error:
            logger.info(
                "request failed",
                connection_id=connection.connection_id,
                request_id=request_id,
                error_type=type(error).__name__,
                error=str(error),
            )
            await self._reply(
                connection, ErrorMessage(request_id=request_id, error=str(error))
            )

    def handle_disconnect(self, connection: ConnectionHandle) -> None:
        """Forget the user behind this connection. Matches are left exactly as they are."""
        user = self.users.lookup_by_connection(connection)
        if user is None:
            return
        logger.info("user disconnected", user_id=user.id, display_name=user.display_name)
        self.users.remove_user(user.id)

    # -- Parsing --
    def _decode(self, text: str) -> dict[str, Any]:
        try:
            raw = json.loads(text)
        except (ValueError, RecursionError) as error:
            raise InvalidRequestError("Malformed message") from error
        if not isinstance(raw, dict):
            raise InvalidRequestError("Malformed message")
        return raw

    def _parse(self, raw: dict[str, Any]) -> WireModel:
        try:
            return INBOUND_ADAPTER.validate_python(raw)
        except ValidationError as error:
            first = error.errors()[0]
            if first["type"] == "union_tag_invalid":
                raise InvalidRequestError(
                    f"Unknown message type: {raw.get('type')}"
                ) from error
            if first["type"] == "union_tag_not_found":
                raise InvalidRequestError("Message has no type") from error
            fields = ", ".join(
                ".".join(str(part) for part in detail["loc"][1:]) or "message"
                for detail in error.errors()
            )
            raise InvalidRequestError(f"Invalid {raw.get('type')} message: {fields}") from error

    # -- Handlers --
    async def _handle_auth(
        self, connection: ConnectionHandle, message: AuthRequest, user: Optional[User]
    ) -> None:
        if user is not None and user.id != message.user_id:
            # same socket, different identity: the old identity is no longer connected
            self.users.remove_user(user.id)
        authenticated = self.users.add_user(
            message.user_id, message.display_name, connection
        )
        await self._reply(
            connection,
            AuthSuccess(
                request_id=message.request_id,
                user_id=authenticated.id,
                display_name=authenticated.display_name,
            ),
        )

    async def _handle_create_match(
        self, connection: ConnectionHandle, message: CreateMatchRequest, user: User
    ) -> None:
        match = self.service.create_match(message, user)
        await self._reply(
            connection, CreateMatchSuccess(request_id=message.request_id, match=match)
        )
        await self.notifier.broadcast_match_created(match)

    async def _handle_join_match(
        self, connection: ConnectionHandle, message: JoinMatchRequest, user: User
    ) -> None:
        match = self.service.join_match(message, user)
        await self._reply(
            connection, JoinMatchSuccess(request_id=message.request_id, match=match)
        )
        await self.notifier.notify_match_update(match)

    async def _handle_start_match(
        self, connection: ConnectionHandle, message: StartMatchRequest, user: User
    ) -> None:
        match = self.service.start_match(message, user)
        await self._reply(
            connection, StartMatchSuccess(request_id=message.request_id, match=match)
        )
        await self.notifier.notify_match_update(match)
        assert match.game_state is not None
        await self.notifier.notify_game_state_update(match, match.game_state)

    async def _handle_make_move(
        self, connection: ConnectionHandle, message: MakeMoveRequest, user: User
    ) -> None:
        match = self.service.make_move(message, user)
        await self._reply(
            connection, MakeMoveSuccess(request_id=message.request_id, match=match)
        )
        await self.notifier.notify_match_update(match)
        assert match.game_state is not None
        await self.notifier.notify_game_state_update(match, match.game_state)

    async def _handle_cancel_match(
        self, connection: ConnectionHandle, message: CancelMatchRequest, user: User
    ) -> None:
        match = self.service.cancel_match(message, user)
        await self._reply(
            connection, CancelMatchSuccess(request_id=message.request_id, match=match)
        )
        await self.notifier.notify_match_update(match)

    async def _handle_get_available_matches(
        self,
        connection: ConnectionHandle,
        message: GetAvailableMatchesRequest,
        user: User,
    ) -> None:
        await self._reply(
            connection,
            AvailableMatches(
                request_id=message.request_id,
                matches=self.service.available_matches(),
            ),
        )

    async def _handle_get_user_matches(
        self, connection: ConnectionHandle, message: GetUserMatchesRequest, user: User
    ) -> None:
        await self._reply(
            connection,
            UserMatches(
                request_id=message.request_id, matches=self.service.user_matches(user)
            ),
        )

    # -- Internal helpers --
    async def _reply(self, connection: ConnectionHandle, message: WireModel) -> None:
        await connection.send_json(message.to_wire())


def _request_id(raw: dict[str, Any]) -> RequestId:
    """Echo back only IDs the client could have correlated on."""
    value = raw.get("requestId")
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return value
    return None
