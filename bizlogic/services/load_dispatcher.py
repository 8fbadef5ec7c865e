"""
Load Dispatcher

Runs bulk loads off the request path with single-flight semantics per kind.

Each data type gets one worker task consuming a queue of size 1:
- idle worker: a trigger starts a run right away
- worker busy: the trigger waits in the queue and runs next
- worker busy and one already waiting: the trigger is coalesced (logged and
  dropped), since the waiting run will read the same file anyway

Kinds have independent workers, so an identity load never waits on an account
load.

Usage:
    dispatcher = LoadDispatcher({DataType.ACCOUNT: AccountLoader(context), ...})
    dispatcher.start()
    dispatcher.submit(DataType.ACCOUNT, 'account.json')
    ...
    await dispatcher.stop()
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Mapping, Union

from bizlogic.models.enums import DataType
from bizlogic.services.bulk_loader import StreamingBulkLoader


logger = logging.getLogger(__name__)


class LoadDispatcher:
    """One background worker and one pending slot per data type."""

    def __init__(self, loaders: Mapping[DataType, StreamingBulkLoader]):
        self.loaders: Dict[DataType, StreamingBulkLoader] = dict(loaders)
        self._queues: Dict[DataType, asyncio.Queue] = {}
        self._workers: Dict[DataType, asyncio.Task] = {}

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        """Start one worker per registered loader. Must be called from a running event loop."""
        if self._workers:
            return
        for kind in self.loaders:
            self._queues[kind] = asyncio.Queue(maxsize=1)
            self._workers[kind] = asyncio.create_task(self._worker(kind), name=f"load-{kind.value}")
        logger.info(f"Load dispatcher started for {', '.join(k.value for k in self.loaders)}")

    def submit(self, kind: DataType, filename: Union[str, Path]) -> bool:
        """
        Queue a load for `kind` without waiting for it.

        Returns:
            True if the load was queued, False if it was coalesced into a load
            already waiting for the same kind.

        Raises:
            KeyError: If no loader is registered for `kind` or the dispatcher
                has not been started.
        """
        queue = self._queues[kind]
        try:
            queue.put_nowait(filename)
        except asyncio.QueueFull:
            logger.warning(f"[{kind.value}] Load already pending; coalescing trigger for {filename}")
            return False
        logger.info(f"[{kind.value}] Load queued for {filename}")
        return True

    async def _worker(self, kind: DataType) -> None:
        queue = self._queues[kind]
        loader = self.loaders[kind]
        while True:
            filename = await queue.get()
            try:
                await loader.load(filename)
            except asyncio.CancelledError:
                raise
            except Exception:
                # Keep the worker alive for the next trigger.
                logger.exception(f"[{kind.value}] Unexpected error during load of {filename}")
            finally:
                queue.task_done()

    async def join(self) -> None:
        """Wait until every queued load has finished."""
        for queue in self._queues.values():
            await queue.join()

    async def stop(self) -> None:
        """Cancel the workers. A run in progress is abandoned and its transaction rolled back."""
        for task in self._workers.values():
            task.cancel()
        await asyncio.gather(*self._workers.values(), return_exceptions=True)
        self._workers.clear()
        self._queues.clear()
        logger.info("Load dispatcher stopped")
