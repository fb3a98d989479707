"""
Best-effort persistence of match snapshots.

Handlers only enqueue; a single worker task drains the queue and runs the (blocking) store write in a thread,
so gameplay never waits on the database. A write that keeps failing is logged and dropped: clients are never told.
"""

import asyncio
from typing import Optional, Protocol

import structlog

from match_server.core.models import MatchSnapshot
from match_server.db.repository import MatchStore

logger = structlog.get_logger()


class SnapshotSink(Protocol):
    """What the service needs from the outbox."""

    def enqueue(self, snapshot: MatchSnapshot) -> None: ...


class PersistenceOutbox:
    def __init__(
        self,
        store: MatchStore,
        max_attempts: int = 1,
        retry_delay: float = 0.5,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._queue: asyncio.Queue[MatchSnapshot] = asyncio.Queue()
        self._worker: Optional[asyncio.Task[None]] = None

    def enqueue(self, snapshot: MatchSnapshot) -> None:
        """Never blocks. Writes happen once the worker is running."""
        self._queue.put_nowait(snapshot)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._worker = asyncio.create_task(self._run(), name="persistence-outbox")

    async def drain(self) -> None:
        """Wait until every snapshot enqueued so far has been written (or given up on)."""
        await self._queue.join()

    async def stop(self) -> None:
        """Flush outstanding writes, then stop the worker."""
        if self._worker is None:
            return
        await self.drain()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def _run(self) -> None:
        while True:
            snapshot = await self._queue.get()
            try:
                await self._write(snapshot)
            finally:
                self._queue.task_done()

    async def _write(self, snapshot: MatchSnapshot) -> bool:
        for attempt in range(1, self.max_attempts + 1):
            try:
                await asyncio.to_thread(self.store.write_match, snapshot)
            except Exception:
                logger.exception(
                    "database update error",
                    match_id=snapshot.match_id,
                    status=snapshot.status,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay)
                continue
            logger.debug(
                "persisted match", match_id=snapshot.match_id, status=snapshot.status
            )
            return True
        logger.warning(
            "dropped match snapshot", match_id=snapshot.match_id, status=snapshot.status
        )
        return False
