"""FastAPI application: the /ws match socket, a health probe, and the lifespan that runs the persistence outbox."""

import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from fastapi import APIRouter, FastAPI, Request, WebSocket, WebSocketDisconnect

from match_server.core.config import Settings, get_settings
from match_server.core.exceptions import ConnectionClosedError
from match_server.db.database import create_session_factory
from match_server.db.repository import MatchStore
from match_server.db.sql_repository import SQLMatchStore
from match_server.matches.registry import MatchRegistry, UserRegistry
from match_server.services.fanout import MatchNotifier
from match_server.services.match_service import MatchService
from match_server.services.outbox import PersistenceOutbox
from match_server.transport.connection import WebSocketConnection
from match_server.transport.dispatcher import MessageDispatcher

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict[str, object]:
    state = request.app.state
    return {
        "status": "ok",
        "users": len(state.users),
        "matches": len(state.matches),
    }


@router.websocket("/ws")
async def match_socket(websocket: WebSocket) -> None:
    dispatcher: MessageDispatcher = websocket.app.state.dispatcher
    await websocket.accept()
    connection = WebSocketConnection(websocket)
    logger.info("connection opened", connection_id=connection.connection_id)

    try:
        while True:
            text = await websocket.receive_text()
            await dispatcher.handle_text(connection, text)
    except (WebSocketDisconnect, ConnectionClosedError):
        logger.info("connection closed", connection_id=connection.connection_id)
    finally:
        dispatcher.handle_disconnect(connection)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MatchStore] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """Wire registries, service, outbox and dispatcher into one app (one independent state per app instance)."""
    settings = settings or get_settings()
    if store is None:
        store = SQLMatchStore(create_session_factory(settings.database_url))

    users = UserRegistry()
    matches = MatchRegistry()
    outbox = PersistenceOutbox(
        store,
        max_attempts=settings.persist_max_attempts,
        retry_delay=settings.persist_retry_delay,
    )
    service = MatchService(
        matches,
        outbox,
        forced_end_move_count=settings.forced_end_move_count,
        rng=rng,
    )
    dispatcher = MessageDispatcher(users, service, MatchNotifier(users))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        outbox.start()
        logger.info("match server started")
        try:
            yield
        finally:
            await outbox.stop()
            logger.info("match server stopped")

    app = FastAPI(title="match-server", lifespan=lifespan)
    app.state.settings = settings
    app.state.users = users
    app.state.matches = matches
    app.state.outbox = outbox
    app.state.service = service
    app.state.dispatcher = dispatcher
    app.include_router(router)
    return app
