"""
Runtime support imported by generated fakes
"""

import asyncio
import threading
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator


class RWLock:
    """
    Many readers or one writer.

    Writers are preferred: once a writer is waiting, new readers block
    until it has finished. The lock is not reentrant; a thread holding
    the write lock that asks for either side again deadlocks.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a matching acquire_read()")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called without a matching acquire_write()")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @asynccontextmanager
    async def write_async(self) -> AsyncIterator[None]:
        """
        write() for coroutines.

        The wait happens in a worker thread so other tasks on the event
        loop keep running while this one is queued behind a writer. The
        lock has no owner thread, so the loop thread releases it.
        """
        acquiring = asyncio.ensure_future(asyncio.to_thread(self.acquire_write))
        try:
            await asyncio.shield(acquiring)
        except asyncio.CancelledError:
            acquiring.add_done_callback(self._release_abandoned)
            raise
        try:
            yield
        finally:
            self.release_write()

    def _release_abandoned(self, acquiring: "asyncio.Future[None]") -> None:
        if not acquiring.cancelled() and acquiring.exception() is None:
            self.release_write()
