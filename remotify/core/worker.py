"""Single-consumer request queue in front of the dispatcher."""
import asyncio
import logging
from typing import Optional, Tuple

from remotify.core.dispatcher import RequestDispatcher
from remotify.core.errors import RemotifyError
from remotify.core.state import SharedAppState

logger = logging.getLogger(__name__)


class RequestWorker:
    """Feeds requests to the dispatcher one at a time, in submission order.

    Callers get a future per request that resolves when the dispatcher is done
    with it (or fails with the dispatcher's error).
    """

    def __init__(self, dispatcher: RequestDispatcher, state: SharedAppState) -> None:
        self.dispatcher = dispatcher
        self.state = state
        self._queue: "asyncio.Queue[Tuple[object, asyncio.Future]]" = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    def submit_nowait(self, request) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((request, future))
        return future

    async def submit(self, request) -> None:
        await self.submit_nowait(request)

    async def run(self) -> None:
        while True:
            request, future = await self._queue.get()
            try:
                await self.dispatcher.handle(self.state, request)
            except RemotifyError as e:
                logger.warning("Failed to handle %s: %s", type(request).__name__, e)
                if not future.done():
                    future.set_exception(e)
            except Exception as e:
                # A bug in one handler must not stop the queue
                logger.exception("Unexpected error while handling %r", request)
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(None)
            finally:
                self._queue.task_done()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run(), name="request-worker")
        return self._task

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.dispatcher.supervisor.shutdown()
